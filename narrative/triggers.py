"""
Trigger composables - game events in, queued modals out.

Thin orchestration over the condition evaluator, the modal queue and the
dialog tree engine. Game code calls these when something happens in the
world; they decide what, if anything, to show.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Union

from narrative.conditions import ConditionEvaluator, format_location_id
from narrative.dialog_tree import DialogTreeEngine
from narrative.interactions import InteractionTracker
from narrative.modals import ModalQueueManager
from narrative.models import TriggerType, TutorialItem

logger = logging.getLogger(__name__)


class TutorialTriggers:
    """
    Fires tutorials whose conditions match a game event.

    Usage:
        tutorials.trigger_immediate_tutorials()
        tutorials.trigger_feature_tutorial("foundry")
        tutorials.trigger_location_tutorial(0, 0)
    """

    def __init__(
        self,
        modals: ModalQueueManager,
        evaluator: ConditionEvaluator,
        interactions: InteractionTracker,
    ):
        self.modals = modals
        self.evaluator = evaluator
        self.interactions = interactions

    def trigger_tutorials(
        self,
        trigger_type: Union[TriggerType, str],
        trigger_id: Optional[str] = None,
        context: Any = None,
    ) -> list[str]:
        """
        Queue every tutorial keyed to this event whose conditions all hold.

        A tutorial is keyed to the event if one of its conditions has the
        same type and, when both carry an identifier, the same identifier.

        Returns:
            Ids of the tutorials queued
        """
        trigger_type = TriggerType(trigger_type)
        queued = []

        for tutorial in list(self.modals.library.tutorials.values()):
            if tutorial.show_once and self.modals.has_seen_tutorial(tutorial.id):
                continue

            if not self._matches(tutorial, trigger_type, trigger_id):
                continue

            if self.evaluator.are_all_conditions_met(tutorial.trigger_conditions, context):
                if self.modals.show_tutorial(tutorial.id):
                    queued.append(tutorial.id)

        if queued:
            logger.debug(f"{trigger_type.value} trigger {trigger_id or ''} queued {queued}")
        return queued

    @staticmethod
    def _matches(tutorial: TutorialItem, trigger_type: TriggerType, trigger_id: Optional[str]) -> bool:
        for condition in tutorial.trigger_conditions:
            if condition.type is not trigger_type:
                continue
            if trigger_id and condition.id and condition.id != trigger_id:
                continue
            return True
        return False

    def trigger_feature_tutorial(self, feature_id: str, context: Any = None) -> list[str]:
        """Record the interaction, then fire feature tutorials."""
        self.interactions.mark_feature_interacted(feature_id)
        return self.trigger_tutorials(TriggerType.FEATURE, feature_id, context)

    def trigger_location_tutorial(self, q: int, r: int, context: Any = None) -> list[str]:
        return self.trigger_tutorials(TriggerType.LOCATION, format_location_id(q, r), context)

    def trigger_objective_tutorial(self, objective_id: str, context: Any = None) -> list[str]:
        return self.trigger_tutorials(TriggerType.OBJECTIVE, objective_id, context)

    def trigger_resource_tutorial(self, resource_id: str, context: Any = None) -> list[str]:
        return self.trigger_tutorials(TriggerType.RESOURCE, resource_id, context)

    def trigger_immediate_tutorials(self, context: Any = None) -> list[str]:
        return self.trigger_tutorials(TriggerType.IMMEDIATE, None, context)


class DialogTriggers:
    """
    Shows dialogs and dialog trees in response to game events.

    Usage:
        await dialogs.trigger_feature_dialog("foundry", "foundry-master-intro")
        await dialogs.trigger_dialog_sequence(["intro-1", "intro-2"])
    """

    def __init__(
        self,
        modals: ModalQueueManager,
        trees: DialogTreeEngine,
        interactions: InteractionTracker,
    ):
        self.modals = modals
        self.trees = trees
        self.interactions = interactions

    async def trigger_dialog(self, dialog_id: str) -> bool:
        return await self.modals.show_dialog(dialog_id)

    async def trigger_dialog_sequence(self, dialog_ids: Iterable[str]) -> bool:
        """
        Queue several dialogs in order.

        A missing dialog is reported and skipped; the rest still queue.

        Returns:
            True if every dialog was queued
        """
        results = []
        for dialog_id in dialog_ids:
            results.append(await self.modals.show_dialog(dialog_id))
        return all(results)

    async def trigger_feature_dialog(self, feature_id: str, dialog_id: str) -> bool:
        self.interactions.mark_feature_interacted(feature_id)
        return await self.modals.show_dialog(dialog_id)

    async def trigger_location_dialog(self, q: int, r: int, dialog_id: str) -> bool:
        logger.debug(f"Location {format_location_id(q, r)} triggered dialog {dialog_id}")
        return await self.modals.show_dialog(dialog_id)

    async def trigger_objective_dialog(self, objective_id: str, dialog_id: str) -> bool:
        logger.debug(f"Objective {objective_id} triggered dialog {dialog_id}")
        return await self.modals.show_dialog(dialog_id)

    async def trigger_event_dialog(self, event_id: str, dialog_id: str) -> bool:
        logger.debug(f"Event {event_id} triggered dialog {dialog_id}")
        return await self.modals.show_dialog(dialog_id)

    async def trigger_dialog_tree(self, tree_id: str) -> bool:
        return await self.trees.show_dialog_tree(tree_id)

    def is_dialog_active(self) -> bool:
        """Whether a conversation (tree or queued dialog) is being presented."""
        if self.trees.is_active:
            return True
        modal = self.modals.current_modal
        return modal is not None and modal.is_dialog

    def get_current_dialog_id(self) -> Optional[str]:
        if self.trees.is_active:
            return self.trees.current_tree_id
        modal = self.modals.current_modal
        if modal is not None and modal.is_dialog:
            return modal.item_id
        return None
