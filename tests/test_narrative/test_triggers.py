import pytest
from narrative.models import TriggerCondition, TriggerType

@pytest.mark.asyncio
async def test_immediate_tutorials(service):
    await service.initialize()

    assert service.tutorials.trigger_immediate_tutorials() == ["welcome"]
    # Pending showOnce tutorials are not queued again
    assert service.tutorials.trigger_immediate_tutorials() == []

    service.dismiss()
    assert service.tutorials.trigger_immediate_tutorials() == []
    assert service.current_modal is None

@pytest.mark.asyncio
async def test_feature_tutorial_records_interaction(service):
    await service.initialize()

    assert service.tutorials.trigger_feature_tutorial("wharf") == []
    assert service.tutorials.trigger_feature_tutorial("foundry") == ["foundry-basics"]

    assert service.interactions.has_interacted_with_feature("foundry")
    assert service.interactions.has_interacted_with_feature("wharf")

@pytest.mark.asyncio
async def test_location_tutorial_needs_explored_tile(service, world):
    await service.initialize()

    assert service.tutorials.trigger_location_tutorial(0, 0) == []

    world.tiles[(0, 0)] = "explored"
    assert service.tutorials.trigger_location_tutorial(1, 0) == []
    assert service.tutorials.trigger_location_tutorial(0, 0) == ["academy-unlocked"]

@pytest.mark.asyncio
async def test_repeatable_objective_tutorial(service, world):
    await service.initialize()
    assert service.tutorials.trigger_objective_tutorial("talk-to-headmaster") == []

    world.objectives["talk-to-headmaster"] = "completed"

    assert service.tutorials.trigger_objective_tutorial("talk-to-headmaster") == ["help"]
    service.dismiss()
    assert service.tutorials.trigger_objective_tutorial("talk-to-headmaster") == ["help"]

@pytest.mark.asyncio
async def test_trigger_type_accepts_strings(service):
    await service.initialize()
    assert service.tutorials.trigger_tutorials("immediate") == ["welcome"]
    assert service.tutorials.trigger_tutorials(TriggerType.RESOURCE, "gold") == []

@pytest.mark.asyncio
async def test_feature_dialog(service):
    await service.initialize()

    assert await service.dialogs.trigger_feature_dialog("foundry", "foundry-master-intro")

    assert service.interactions.has_interacted_with_feature("foundry")
    assert service.dialogs.is_dialog_active()
    assert service.dialogs.get_current_dialog_id() == "foundry-master-intro"

@pytest.mark.asyncio
async def test_dialog_sequence_continues_past_failures(service):
    await service.initialize()

    ok = await service.dialogs.trigger_dialog_sequence(
        ["harbormaster-greeting", "ghost", "foundry-master-intro"]
    )

    assert not ok
    assert [entry.item_id for entry in service.modals.modal_queue] == [
        "harbormaster-greeting",
        "foundry-master-intro",
    ]
    assert service.notifications.find("Dialog Error")

@pytest.mark.asyncio
async def test_location_objective_and_event_dialogs(service):
    await service.initialize()

    assert await service.dialogs.trigger_location_dialog(1, 0, "harbormaster-greeting")
    assert await service.dialogs.trigger_objective_dialog("talk-to-harbormaster", "foundry-master-intro")
    assert not await service.dialogs.trigger_event_dialog("storm", "ghost")
    assert len(service.modals.modal_queue) == 2

@pytest.mark.asyncio
async def test_tree_takes_precedence_for_current_dialog(service):
    await service.initialize()
    assert not service.dialogs.is_dialog_active()
    assert service.dialogs.get_current_dialog_id() is None

    service.show_tutorial("welcome")
    assert not service.dialogs.is_dialog_active()

    assert await service.dialogs.trigger_dialog_tree("headmaster-intro")
    assert service.dialogs.get_current_dialog_id() == "headmaster-intro"

@pytest.mark.asyncio
async def test_dialog_condition_after_conversation(service):
    await service.initialize()
    await service.dialogs.trigger_dialog("harbormaster-greeting")

    parsed = TriggerCondition.model_validate({"type": "dialog", "id": "harbormaster-intro"})

    assert not service.is_condition_met(parsed)
    service.dismiss()
    assert service.is_condition_met(parsed)
