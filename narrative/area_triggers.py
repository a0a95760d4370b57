"""
Area triggers - declarative reactions to entering, leaving and using areas.

An area declares its triggers as data:

    AreaTrigger(
        event=TriggerEvent.ON_FEATURE_INTERACT,
        feature_id="foundry",
        actions=[TriggerAction(ActionType.SHOW_DIALOG, dialog_id="foundry-master-intro")],
        description="Introduce the foundry master",
    )

Narrative actions (dialogs, dialog trees, tutorials) run here. Other
action types belong to collaborators (objectives, resources, world map)
and are dispatched to handlers they register.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from engine.core.config import NarrativeConfig
from narrative.conditions import ConditionEvaluator
from narrative.dialog_tree import DialogTreeEngine
from narrative.modals import ModalQueueManager
from narrative.models import TriggerCondition
from narrative.notifications import NotificationCenter

logger = logging.getLogger(__name__)


class TriggerEvent(Enum):
    """When an area trigger fires."""
    ON_FIRST_VISIT = "onFirstVisit"
    ON_ENTER = "onEnter"
    ON_EXIT = "onExit"
    ON_FEATURE_INTERACT = "onFeatureInteract"


class ActionType(Enum):
    """Declarative trigger actions."""
    # Narrative
    SHOW_DIALOG = "showDialog"
    SHOW_DIALOG_TREE = "showDialogTree"
    SHOW_TUTORIAL = "showTutorial"

    # Collaborators
    COMPLETE_OBJECTIVE = "completeObjective"
    UNLOCK_OBJECTIVE = "unlockObjective"
    UNLOCK_FEATURE = "unlockFeature"
    HIDE_FEATURE = "hideFeature"
    ADD_RESOURCE = "addResource"
    REMOVE_RESOURCE = "removeResource"
    EXPLORE_TILE = "exploreTile"


@dataclass
class TriggerAction:
    """A single declarative action and its parameters."""
    type: ActionType
    dialog_id: Optional[str] = None
    tutorial_id: Optional[str] = None
    objective_id: Optional[str] = None
    feature_id: Optional[str] = None
    resource_id: Optional[str] = None
    amount: Optional[float] = None
    tile_coords: Optional[tuple[int, int]] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TriggerAction:
        """Build an action from camelCase area configuration data."""
        coords = data.get('tileCoords')
        return cls(
            type=ActionType(data['type']),
            dialog_id=data.get('dialogId'),
            tutorial_id=data.get('tutorialId'),
            objective_id=data.get('objectiveId'),
            feature_id=data.get('featureId'),
            resource_id=data.get('resourceId'),
            amount=data.get('amount'),
            tile_coords=(coords['q'], coords['r']) if coords else None,
        )


@dataclass
class TriggerContext:
    """
    Facts about the event being processed.

    Attributes:
        coordinates: World tile (q, r) of the area
        area_type: Kind of area (academy, harbor, ...)
        feature_id: Feature interacted with, for feature events
        data: Anything else a callback may need
    """
    coordinates: tuple[int, int]
    area_type: str
    feature_id: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)


TriggerCallback = Callable[[TriggerContext], Union[None, Awaitable[None]]]
ActionHandler = Callable[[TriggerAction, TriggerContext], Union[None, Awaitable[None]]]


@dataclass
class AreaTrigger:
    """
    A reaction declared by an area.

    Attributes:
        event: When it fires
        feature_id: Required feature for feature-interaction events
        conditions: Extra conditions that must all hold (none = always)
        actions: Declarative actions, run in order
        callback: Optional custom logic run after the actions
        description: Shown in the log when the trigger runs
    """
    event: TriggerEvent
    feature_id: Optional[str] = None
    conditions: list[TriggerCondition] = field(default_factory=list)
    actions: list[TriggerAction] = field(default_factory=list)
    callback: Optional[TriggerCallback] = None
    description: str = ""

    def label(self) -> str:
        if self.description:
            return self.description
        suffix = f" ({self.feature_id})" if self.feature_id else ""
        return f"{self.event.value}{suffix}"


class AreaTriggerExecutor:
    """
    Runs the area triggers that match an event.

    Usage:
        executor = AreaTriggerExecutor(modals, trees, evaluator, notifications)
        executor.register_action_handler(ActionType.COMPLETE_OBJECTIVE, objectives.on_action)
        await executor.execute_triggers(area.triggers, TriggerEvent.ON_ENTER, context)
    """

    def __init__(
        self,
        modals: ModalQueueManager,
        trees: DialogTreeEngine,
        evaluator: ConditionEvaluator,
        notifications: NotificationCenter,
        config: Optional[NarrativeConfig] = None,
    ):
        self.modals = modals
        self.trees = trees
        self.evaluator = evaluator
        self.notifications = notifications
        self.config = config or NarrativeConfig()
        self._handlers: dict[ActionType, ActionHandler] = {}

    def register_action_handler(self, action_type: ActionType, handler: ActionHandler) -> None:
        """Route a collaborator-owned action type to its handler."""
        self._handlers[action_type] = handler

    def unregister_action_handler(self, action_type: ActionType) -> None:
        self._handlers.pop(action_type, None)

    def matching_triggers(
        self,
        triggers: Iterable[AreaTrigger],
        event: TriggerEvent,
        context: TriggerContext,
    ) -> list[AreaTrigger]:
        matches = []
        for trigger in triggers:
            if trigger.event is not event:
                continue
            if event is TriggerEvent.ON_FEATURE_INTERACT and trigger.feature_id != context.feature_id:
                continue
            if trigger.conditions and not self.evaluator.are_all_conditions_met(trigger.conditions):
                continue
            matches.append(trigger)
        return matches

    async def execute_triggers(
        self,
        triggers: Iterable[AreaTrigger],
        event: TriggerEvent,
        context: TriggerContext,
    ) -> int:
        """
        Run every matching trigger in declaration order.

        Returns:
            Number of triggers that completed without error
        """
        succeeded = 0
        for trigger in self.matching_triggers(triggers, event, context):
            if await self._execute_trigger(trigger, context):
                succeeded += 1
        return succeeded

    async def _execute_trigger(self, trigger: AreaTrigger, context: TriggerContext) -> bool:
        logger.info(f"Trigger: {trigger.label()}")
        try:
            for action in trigger.actions:
                await self.execute_action(action, context)

            if trigger.callback:
                result = trigger.callback(context)
                if inspect.isawaitable(result):
                    await result
        except Exception:
            # A broken trigger must not stop the remaining ones
            logger.exception(f"Error executing trigger {trigger.label()}")
            self.notifications.show_error(
                "Trigger Error",
                "An error occurred while processing a game event. Check the log for details.",
                self.config.trigger_error_timeout,
            )
            return False
        return True

    async def execute_action(self, action: TriggerAction, context: TriggerContext) -> None:
        if action.type is ActionType.SHOW_DIALOG:
            if action.dialog_id:
                await self.modals.show_dialog(action.dialog_id)
            else:
                logger.warning("showDialog: missing dialog_id")
        elif action.type is ActionType.SHOW_DIALOG_TREE:
            if action.dialog_id:
                await self.trees.show_dialog_tree(action.dialog_id)
            else:
                logger.warning("showDialogTree: missing dialog_id")
        elif action.type is ActionType.SHOW_TUTORIAL:
            if action.tutorial_id:
                self.modals.show_tutorial(action.tutorial_id)
            else:
                logger.warning("showTutorial: missing tutorial_id")
        else:
            handler = self._handlers.get(action.type)
            if handler is None:
                logger.warning(f"No handler registered for action {action.type.value}")
                return
            result = handler(action, context)
            if inspect.isawaitable(result):
                await result
