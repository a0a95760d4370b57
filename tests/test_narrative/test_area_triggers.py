import pytest
from unittest.mock import MagicMock
from narrative.area_triggers import (
    ActionType,
    AreaTrigger,
    TriggerAction,
    TriggerContext,
    TriggerEvent,
)
from narrative.models import TriggerCondition

@pytest.fixture
def context():
    return TriggerContext(coordinates=(1, 0), area_type="harbor")

def test_action_from_dict():
    action = TriggerAction.from_dict({"type": "exploreTile", "tileCoords": {"q": 2, "r": -1}})
    assert action.type is ActionType.EXPLORE_TILE
    assert action.tile_coords == (2, -1)

    action = TriggerAction.from_dict({"type": "showDialog", "dialogId": "foundry-master-intro"})
    assert action.dialog_id == "foundry-master-intro"
    assert action.tile_coords is None

def test_label():
    assert AreaTrigger(TriggerEvent.ON_ENTER, description="Greet").label() == "Greet"
    assert AreaTrigger(TriggerEvent.ON_FEATURE_INTERACT, feature_id="forge").label() == "onFeatureInteract (forge)"

@pytest.mark.asyncio
async def test_narrative_actions(service, context):
    await service.initialize()
    triggers = [
        AreaTrigger(
            TriggerEvent.ON_ENTER,
            actions=[
                TriggerAction(ActionType.SHOW_TUTORIAL, tutorial_id="welcome"),
                TriggerAction(ActionType.SHOW_DIALOG, dialog_id="harbormaster-greeting"),
                TriggerAction(ActionType.SHOW_DIALOG_TREE, dialog_id="headmaster-intro"),
            ],
        ),
    ]

    assert await service.area_triggers.execute_triggers(triggers, TriggerEvent.ON_ENTER, context) == 1

    assert [entry.item_id for entry in service.modals.modal_queue] == ["welcome", "harbormaster-greeting"]
    assert service.trees.current_tree_id == "headmaster-intro"

@pytest.mark.asyncio
async def test_only_matching_event_runs(service, context):
    calls = []
    triggers = [
        AreaTrigger(TriggerEvent.ON_ENTER, callback=lambda ctx: calls.append("enter")),
        AreaTrigger(TriggerEvent.ON_EXIT, callback=lambda ctx: calls.append("exit")),
        AreaTrigger(TriggerEvent.ON_FIRST_VISIT, callback=lambda ctx: calls.append("first")),
    ]

    await service.area_triggers.execute_triggers(triggers, TriggerEvent.ON_EXIT, context)

    assert calls == ["exit"]

@pytest.mark.asyncio
async def test_feature_trigger_needs_matching_feature(service):
    calls = []
    triggers = [
        AreaTrigger(TriggerEvent.ON_FEATURE_INTERACT, feature_id="forge", callback=lambda ctx: calls.append("forge")),
        AreaTrigger(TriggerEvent.ON_FEATURE_INTERACT, feature_id="anvil", callback=lambda ctx: calls.append("anvil")),
    ]
    context = TriggerContext(coordinates=(0, 0), area_type="academy", feature_id="anvil")

    await service.area_triggers.execute_triggers(triggers, TriggerEvent.ON_FEATURE_INTERACT, context)

    assert calls == ["anvil"]

@pytest.mark.asyncio
async def test_conditions_gate_triggers(service, world, context):
    calls = []
    trigger = AreaTrigger(
        TriggerEvent.ON_ENTER,
        conditions=[TriggerCondition.model_validate({"type": "resource", "id": "gold", "value": 10})],
        callback=lambda ctx: calls.append(ctx.area_type),
    )

    assert await service.area_triggers.execute_triggers([trigger], TriggerEvent.ON_ENTER, context) == 0
    world.resources["gold"] = 12
    assert await service.area_triggers.execute_triggers([trigger], TriggerEvent.ON_ENTER, context) == 1
    assert calls == ["harbor"]

@pytest.mark.asyncio
async def test_collaborator_actions_use_handlers(service, context):
    unlocked = []

    async def unlock(action, ctx):
        unlocked.append(action.feature_id)

    service.area_triggers.register_action_handler(ActionType.UNLOCK_FEATURE, unlock)
    trigger = AreaTrigger(
        TriggerEvent.ON_FIRST_VISIT,
        actions=[
            TriggerAction(ActionType.UNLOCK_FEATURE, feature_id="forge"),
            TriggerAction(ActionType.ADD_RESOURCE, resource_id="gold", amount=5),  # no handler
        ],
    )

    assert await service.area_triggers.execute_triggers([trigger], TriggerEvent.ON_FIRST_VISIT, context) == 1
    assert unlocked == ["forge"]

    explore = MagicMock(return_value=None)
    service.area_triggers.register_action_handler(ActionType.EXPLORE_TILE, explore)
    action = TriggerAction.from_dict({"type": "exploreTile", "tileCoords": {"q": 0, "r": 1}})
    await service.area_triggers.execute_action(action, context)
    explore.assert_called_once_with(action, context)

    service.area_triggers.unregister_action_handler(ActionType.UNLOCK_FEATURE)
    await service.area_triggers.execute_triggers([trigger], TriggerEvent.ON_FIRST_VISIT, context)
    assert unlocked == ["forge"]

@pytest.mark.asyncio
async def test_failing_trigger_does_not_stop_the_rest(service, context):
    calls = []

    def broken(ctx):
        raise RuntimeError("boom")

    async def later(ctx):
        calls.append("later")

    triggers = [
        AreaTrigger(TriggerEvent.ON_ENTER, callback=broken, description="Broken"),
        AreaTrigger(TriggerEvent.ON_ENTER, callback=later),
    ]

    assert await service.area_triggers.execute_triggers(triggers, TriggerEvent.ON_ENTER, context) == 1

    assert calls == ["later"]
    error = service.notifications.find("Trigger Error")[0]
    assert error.timeout == 5000
