"""
Modal queue - serializes tutorials and dialogs into one presentation slot.

The head of the queue is the only item ever presented and items leave
strictly from the head. The manager also owns the two pieces of state
that survive across sessions: the completed-tutorial set and the
finalized conversation history.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import ValidationError

from engine.core.config import NarrativeConfig
from engine.core.events import EventBus, NarrativeEvent
from engine.resources.database import ContentLibrary
from engine.resources.provider import ContentError, ContentNotFoundError
from engine.storage.store import KeyValueStore, StorageError
from narrative.errors import EmptyModalQueueError
from narrative.models import (
    DialogHistoryEntry,
    DialogHistoryRecord,
    DialogItem,
    ModalQueueItem,
    Speaker,
    TutorialItem,
)
from narrative.notifications import NotificationCenter, SaveFailureReporter


class ModalQueueManager:
    """
    Owns the modal queue, tutorial completion and conversation history.

    Usage:
        modals = ModalQueueManager(library, store, notifications, save_failures)
        await modals.initialize()
        modals.show_tutorial("welcome")
        await modals.show_dialog("headmaster-greeting")
        head = modals.current_modal
        modals.close_current_modal()
    """

    def __init__(
        self,
        library: ContentLibrary,
        store: KeyValueStore,
        notifications: NotificationCenter,
        save_failures: SaveFailureReporter,
        config: Optional[NarrativeConfig] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.library = library
        self.store = store
        self.notifications = notifications
        self.save_failures = save_failures
        self.config = config or NarrativeConfig()
        self.event_bus = event_bus
        self.clock = clock

        # Session state
        self.modal_queue: list[ModalQueueItem] = []

        # Persistent state
        self.completed_tutorials: set[str] = set()
        self.dialog_history: list[DialogHistoryRecord] = []
        # Survives history trimming
        self.completed_conversations: set[str] = set()

        # Conversation of the active dialog tree; presented ahead of the queue
        self._tree_conversation: Optional[DialogHistoryRecord] = None

        self.logger = logging.getLogger(__name__)

    # Startup

    async def initialize(self) -> None:
        """Read persisted progress, then load the tutorial registry."""
        self.load_persisted_state()
        await self.load_tutorials()

    def load_persisted_state(self) -> None:
        completed = self.store.read(self.config.completed_tutorials_key, [])
        if isinstance(completed, list):
            self.completed_tutorials = {str(tutorial_id) for tutorial_id in completed}
        else:
            self.logger.warning(f"Ignoring malformed {self.config.completed_tutorials_key}")
            self.completed_tutorials = set()

        history = self.store.read(self.config.dialog_history_key, [])
        if not isinstance(history, list):
            self.logger.warning(f"Ignoring malformed {self.config.dialog_history_key}")
            history = []

        self.dialog_history = []
        for index, data in enumerate(history):
            try:
                self.dialog_history.append(DialogHistoryRecord.model_validate(data))
            except ValidationError as e:
                self.logger.warning(f"Skipping unreadable history record {index}: {e.error_count()} error(s)")

        conversations = self.store.read(self.config.completed_conversations_key, [])
        if not isinstance(conversations, list):
            self.logger.warning(f"Ignoring malformed {self.config.completed_conversations_key}")
            conversations = []
        # Saves written before the set existed only have history
        self.completed_conversations = {str(conversation_id) for conversation_id in conversations}
        self.completed_conversations.update(record.conversation_id for record in self.dialog_history)

    async def load_tutorials(self) -> int:
        """
        Load the eager tutorial registry.

        Every rejected file raises a "Tutorial Load Error" notification; the
        rest of the registry is still usable.
        """
        try:
            count = await self.library.load_tutorials()
        except (ContentError, OSError) as e:
            self.logger.error(f"Failed to load tutorials: {e}")
            self.notifications.show_error(
                "Tutorial Load Error",
                "Failed to load tutorial content. Some tutorials may not be available.",
                self.config.error_timeout,
            )
            return 0

        for error in self.library.load_errors:
            self.notifications.show_error(
                "Tutorial Load Error",
                f"Failed to load tutorial from {error.content_id}",
                self.config.error_timeout,
            )
        return count

    # Queries

    @property
    def current_modal(self) -> Optional[ModalQueueItem]:
        """The queue head, or None."""
        return self.modal_queue[0] if self.modal_queue else None

    @property
    def active_conversation(self) -> Optional[DialogHistoryRecord]:
        """
        The in-progress conversation of whatever is being presented.

        An active dialog tree takes precedence over the queue head.
        """
        if self._tree_conversation is not None:
            return self._tree_conversation
        head = self.current_modal
        if head is not None and head.is_dialog:
            return head.conversation
        return None

    @property
    def conversation_history(self) -> list[DialogHistoryRecord]:
        """Finalized conversations, most recent first."""
        return list(reversed(self.dialog_history))

    def has_seen_tutorial(self, tutorial_id: str) -> bool:
        return tutorial_id in self.completed_tutorials

    def has_completed_conversation(self, conversation_id: str) -> bool:
        return conversation_id in self.completed_conversations

    def is_pending(self, tutorial_id: str) -> bool:
        """Whether a tutorial is waiting in the queue."""
        return any(
            entry.is_tutorial and entry.item_id == tutorial_id for entry in self.modal_queue
        )

    def get_tutorial(self, tutorial_id: str) -> Optional[TutorialItem]:
        return self.library.tutorials.get(tutorial_id)

    # Tutorials

    def show_tutorial(self, tutorial_id: str) -> bool:
        """
        Queue a tutorial.

        A ``showOnce`` tutorial that is completed, or already waiting in the
        queue, is skipped.

        Returns:
            True if the tutorial was queued
        """
        try:
            tutorial = self.library.get_tutorial(tutorial_id)
        except ContentNotFoundError as e:
            self._report_content_error(e, "Tutorial Error")
            return False

        if tutorial.show_once and (self.has_seen_tutorial(tutorial_id) or self.is_pending(tutorial_id)):
            return False

        self._enqueue(ModalQueueItem.tutorial(tutorial))
        return True

    def replay_tutorial(self, tutorial_id: str) -> bool:
        """Queue a tutorial even if it was completed (help menu)."""
        try:
            tutorial = self.library.get_tutorial(tutorial_id)
        except ContentNotFoundError as e:
            self._report_content_error(e, "Tutorial Error")
            return False

        self._enqueue(ModalQueueItem.tutorial(tutorial))
        return True

    def mark_tutorial_completed(self, tutorial_id: str) -> None:
        self.completed_tutorials.add(tutorial_id)
        self._persist(self.config.completed_tutorials_key, sorted(self.completed_tutorials))
        if self.event_bus:
            self.event_bus.publish(NarrativeEvent.TUTORIAL_COMPLETED, tutorial_id=tutorial_id)

    # Dialogs

    async def show_dialog(self, dialog_id: str) -> bool:
        """
        Load a dialog (lazily, memoized) and queue it.

        The conversation record is started here and travels with the queue
        item, so several queued dialogs each keep their own transcript.

        Returns:
            True if the dialog was queued
        """
        try:
            dialog: DialogItem = await self.library.load_dialog(dialog_id)
        except ContentError as e:
            self._report_content_error(e, "Dialog Error")
            return False

        conversation = self.begin_conversation(dialog.conversation_key, dialog.character_name)
        self.add_entry(conversation, Speaker.NPC, dialog.character_name, dialog.message)

        self._enqueue(ModalQueueItem.dialog(dialog, conversation))
        return True

    # Closing

    def close_current_modal(self) -> ModalQueueItem:
        """
        Remove the queue head and record its completion.

        Returns:
            The closed item

        Raises:
            EmptyModalQueueError: nothing is queued
        """
        if not self.modal_queue:
            raise EmptyModalQueueError()

        current = self.modal_queue.pop(0)
        self.logger.debug(f"Closing {current.type.value} {current.item_id}")

        if current.is_tutorial:
            self.mark_tutorial_completed(current.item_id)
        elif current.conversation is not None:
            self.complete_conversation(current.conversation)

        if self.event_bus:
            self.event_bus.publish(NarrativeEvent.MODAL_CLOSED, item=current)
        return current

    # Conversation records

    def begin_conversation(self, conversation_id: str, character_name: str) -> DialogHistoryRecord:
        """Create an in-progress record; the caller decides where it lives."""
        record = DialogHistoryRecord(
            conversation_id=conversation_id,
            character_name=character_name,
            started_at=self.clock(),
        )
        self.logger.info(f"Conversation started: {conversation_id} ({character_name})")
        if self.event_bus:
            self.event_bus.publish(NarrativeEvent.CONVERSATION_STARTED, conversation=record)
        return record

    def add_entry(
        self,
        record: DialogHistoryRecord,
        speaker: Speaker,
        speaker_name: str,
        message: str,
    ) -> DialogHistoryEntry:
        entry = DialogHistoryEntry(
            speaker=speaker,
            speaker_name=speaker_name,
            message=message,
            timestamp=self.clock(),
        )
        record.transcript.append(entry)
        return entry

    def add_dialog_entry(self, entry: DialogHistoryEntry) -> bool:
        """
        Append an entry to the active conversation.

        Returns:
            False if no conversation is in progress
        """
        conversation = self.active_conversation
        if conversation is None:
            self.logger.warning("No active conversation to add entry to")
            return False
        conversation.transcript.append(entry)
        return True

    def complete_conversation(self, record: Optional[DialogHistoryRecord] = None) -> Optional[DialogHistoryRecord]:
        """
        Finalize a conversation and move it into history.

        Args:
            record: The record to finalize; defaults to the active conversation

        Returns:
            The finalized record, or None if there was nothing to finalize
        """
        record = record or self.active_conversation
        if record is None or record.is_complete:
            return None

        record.completed_at = self.clock()
        self.dialog_history.append(record)
        if record.conversation_id not in self.completed_conversations:
            self.completed_conversations.add(record.conversation_id)
            self._persist(self.config.completed_conversations_key, sorted(self.completed_conversations))

        overflow = len(self.dialog_history) - self.config.history_limit
        if overflow > 0:
            del self.dialog_history[:overflow]

        self._persist(
            self.config.dialog_history_key,
            [entry.to_storage() for entry in self.dialog_history],
        )

        self.logger.info(
            f"Conversation finished: {record.conversation_id} ({len(record.transcript)} entries)"
        )
        if self.event_bus:
            self.event_bus.publish(
                NarrativeEvent.CONVERSATION_ENDED,
                conversation_id=record.conversation_id,
                conversation=record,
            )
        return record

    def attach_tree_conversation(self, record: DialogHistoryRecord) -> None:
        """Make a dialog tree's record the presented conversation."""
        self._tree_conversation = record

    def detach_tree_conversation(self) -> Optional[DialogHistoryRecord]:
        record, self._tree_conversation = self._tree_conversation, None
        return record

    # Internals

    def _enqueue(self, item: ModalQueueItem) -> None:
        self.modal_queue.append(item)
        if self.event_bus:
            self.event_bus.publish(NarrativeEvent.MODAL_QUEUED, item=item)

    def _report_content_error(self, error: ContentError, title: str) -> None:
        self.logger.error(str(error))
        self.notifications.show_error(title, str(error), self.config.error_timeout)
        if self.event_bus:
            self.event_bus.publish(
                NarrativeEvent.CONTENT_LOAD_FAILED,
                kind=error.kind,
                content_id=error.content_id,
                error=error,
            )

    def _persist(self, key: str, value: Any) -> None:
        try:
            self.store.write(key, value)
        except StorageError as e:
            self.save_failures.report(e)
