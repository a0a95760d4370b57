"""
Narrative service - the explicitly constructed composition root.

Owns every narrative component and wires them together. The host builds
one per game session and hands it to whatever owns the UI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Union

from engine.core.config import NarrativeConfig
from engine.core.events import EventBus
from engine.resources.database import ContentLibrary
from engine.resources.provider import ContentProvider, FileContentProvider
from engine.storage.store import JsonFileStore, KeyValueStore
from narrative.area_triggers import AreaTriggerExecutor
from narrative.conditions import ConditionEvaluator
from narrative.dialog_tree import DialogTreeEngine
from narrative.interactions import InteractionTracker
from narrative.modals import ModalQueueManager
from narrative.models import (
    CharacterPortrait,
    DialogHistoryRecord,
    DialogItem,
    DialogNode,
    DialogTree,
    ModalQueueItem,
    TriggerCondition,
    TutorialItem,
)
from narrative.notifications import NotificationCenter, SaveFailureReporter
from narrative.state import NarrativeGameState, WorldState
from narrative.triggers import DialogTriggers, TutorialTriggers

logger = logging.getLogger(__name__)


class PresentationKind(Enum):
    TUTORIAL = "tutorial"
    DIALOG = "dialog"
    DIALOG_TREE = "dialog_tree"


@dataclass
class Presentation:
    """What occupies the single presentation slot right now."""
    kind: PresentationKind
    item: Union[TutorialItem, DialogItem, DialogTree]
    node: Optional[DialogNode] = None
    portrait: Optional[CharacterPortrait] = None


class NarrativeService:
    """
    Narrative delivery for one game session.

    Usage:
        service = NarrativeService.from_config(world, NarrativeConfig())
        await service.initialize()
        service.tutorials.trigger_immediate_tutorials()
        shown = service.presentation()
        service.dismiss()
    """

    def __init__(
        self,
        world: WorldState,
        provider: ContentProvider,
        store: KeyValueStore,
        config: Optional[NarrativeConfig] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or NarrativeConfig()
        self.event_bus = event_bus or EventBus()
        self.store = store

        # Content and surfacing
        self.library = ContentLibrary(provider)
        self.notifications = NotificationCenter(self.config, self.event_bus, clock)
        self.save_failures = SaveFailureReporter(self.notifications)

        # Core components
        self.interactions = InteractionTracker(store, self.save_failures, self.config, self.event_bus)
        self.modals = ModalQueueManager(
            self.library,
            store,
            self.notifications,
            self.save_failures,
            self.config,
            self.event_bus,
            clock,
        )
        self.trees = DialogTreeEngine(
            self.library, self.modals, self.notifications, self.config, self.event_bus
        )

        # Conditions and triggers
        self.state = NarrativeGameState(world, self.interactions, self.modals)
        self.evaluator = ConditionEvaluator(self.state)
        self.tutorials = TutorialTriggers(self.modals, self.evaluator, self.interactions)
        self.dialogs = DialogTriggers(self.modals, self.trees, self.interactions)
        self.area_triggers = AreaTriggerExecutor(
            self.modals, self.trees, self.evaluator, self.notifications, self.config
        )

        self._initialized = False

    @classmethod
    def from_config(
        cls,
        world: WorldState,
        config: Optional[NarrativeConfig] = None,
        event_bus: Optional[EventBus] = None,
    ) -> NarrativeService:
        """Build a service reading content files and saving progress to disk."""
        config = config or NarrativeConfig()
        return cls(
            world,
            FileContentProvider(Path(config.content_path)),
            JsonFileStore(Path(config.save_path)),
            config,
            event_bus,
        )

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Restore persisted progress and load the tutorial registry."""
        if self._initialized:
            logger.warning("NarrativeService already initialized")
            return
        self.interactions.load()
        await self.modals.initialize()
        self._initialized = True
        logger.info(
            f"Narrative ready: {len(self.library.tutorials)} tutorials, "
            f"{len(self.modals.completed_tutorials)} completed, "
            f"{len(self.modals.dialog_history)} past conversations"
        )

    def shutdown(self) -> None:
        self.event_bus.clear()
        self.notifications.clear()
        self._initialized = False

    # Presentation

    def presentation(self) -> Optional[Presentation]:
        """The active dialog tree if any, else the queue head, else None."""
        if self.trees.is_active:
            return Presentation(
                kind=PresentationKind.DIALOG_TREE,
                item=self.trees.active_tree,
                node=self.trees.current_node,
                portrait=self.trees.current_portrait,
            )

        head = self.modals.current_modal
        if head is None:
            return None
        if head.is_tutorial:
            return Presentation(kind=PresentationKind.TUTORIAL, item=head.item)
        return Presentation(kind=PresentationKind.DIALOG, item=head.item, portrait=head.item.portrait)

    def dismiss(self) -> Union[ModalQueueItem, DialogHistoryRecord]:
        """Close whatever is presented: the active tree first, else the queue head."""
        if self.trees.is_active:
            return self.trees.close_dialog_tree()
        return self.modals.close_current_modal()

    # Delegates

    @property
    def current_modal(self) -> Optional[ModalQueueItem]:
        return self.modals.current_modal

    @property
    def active_conversation(self) -> Optional[DialogHistoryRecord]:
        return self.modals.active_conversation

    def has_seen_tutorial(self, tutorial_id: str) -> bool:
        return self.modals.has_seen_tutorial(tutorial_id)

    def show_tutorial(self, tutorial_id: str) -> bool:
        return self.modals.show_tutorial(tutorial_id)

    async def show_dialog(self, dialog_id: str) -> bool:
        return await self.modals.show_dialog(dialog_id)

    async def show_dialog_tree(self, tree_id: str) -> bool:
        return await self.trees.show_dialog_tree(tree_id)

    def close_current_modal(self) -> ModalQueueItem:
        return self.modals.close_current_modal()

    def select_response(self, index: int) -> Optional[DialogNode]:
        return self.trees.select_response(index)

    def mark_feature_interacted(self, feature_id: str) -> bool:
        return self.interactions.mark_feature_interacted(feature_id)

    def is_condition_met(self, condition: TriggerCondition, context: Any = None) -> bool:
        return self.evaluator.is_condition_met(condition, context)

    def are_all_conditions_met(self, conditions: Iterable[TriggerCondition], context: Any = None) -> bool:
        return self.evaluator.are_all_conditions_met(conditions, context)
