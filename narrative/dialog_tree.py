"""
Dialog tree engine - branching conversations with player choices.

Holds at most one active tree and the current node within it. An active
tree occupies the presentation slot ahead of the modal queue; the queue
is left untouched while a tree runs.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Union

from engine.core.config import NarrativeConfig
from engine.core.events import EventBus, NarrativeEvent
from engine.resources.database import ContentLibrary
from engine.resources.provider import ContentError, ContentKind
from narrative.errors import DialogTreeValidationError, NoActiveDialogTreeError, ResponseIndexError
from narrative.modals import ModalQueueManager
from narrative.models import (
    CharacterPortrait,
    DialogHistoryRecord,
    DialogNode,
    DialogTree,
    Response,
    Speaker,
)
from narrative.notifications import NotificationCenter
from narrative.validation import ValidationReport, validate_dialog_tree


class DialogTreeEngine:
    """
    Navigates the active dialog tree and records its transcript.

    Usage:
        trees = DialogTreeEngine(library, modals, notifications)
        await trees.show_dialog_tree("headmaster-intro")
        trees.current_node.message
        trees.select_response(0)
    """

    def __init__(
        self,
        library: ContentLibrary,
        modals: ModalQueueManager,
        notifications: NotificationCenter,
        config: Optional[NarrativeConfig] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.library = library
        self.modals = modals
        self.notifications = notifications
        self.config = config or NarrativeConfig()
        self.event_bus = event_bus

        # Current state
        self.active_tree: Optional[DialogTree] = None
        self.current_node_id: Optional[str] = None
        self._conversation: Optional[DialogHistoryRecord] = None

        # Validation runs once per loaded tree
        self._reports: dict[str, ValidationReport] = {}

        self._on_tree_end: Optional[Callable[[DialogTree, DialogHistoryRecord], None]] = None

        self.logger = logging.getLogger(__name__)

    # Queries

    @property
    def is_active(self) -> bool:
        return self.active_tree is not None

    @property
    def current_tree_id(self) -> Optional[str]:
        return self.active_tree.id if self.active_tree else None

    @property
    def current_node(self) -> Optional[DialogNode]:
        if not self.active_tree or self.current_node_id is None:
            return None
        return self.active_tree.get_node(self.current_node_id)

    @property
    def current_portrait(self) -> Optional[CharacterPortrait]:
        """The node's portrait override, else the tree's default portrait."""
        if not self.active_tree:
            return None
        node = self.current_node
        if node is not None and node.portrait is not None:
            return node.portrait
        return self.active_tree.portrait

    @property
    def available_responses(self) -> list[Response]:
        node = self.current_node
        return list(node.responses) if node else []

    @property
    def conversation(self) -> Optional[DialogHistoryRecord]:
        return self._conversation

    def set_end_callback(self, callback: Callable[[DialogTree, DialogHistoryRecord], None]) -> None:
        """Set callback invoked when a tree conversation finishes."""
        self._on_tree_end = callback

    def validation_report(self, tree_id: str) -> Optional[ValidationReport]:
        return self._reports.get(tree_id)

    # Activation

    async def show_dialog_tree(self, tree_id: str) -> bool:
        """
        Load, validate and activate a tree.

        Content and validation failures are logged and surfaced as an error
        notification; nothing changes.

        Returns:
            True if the tree is now active
        """
        try:
            tree: DialogTree = await self.library.load_dialog_tree(tree_id)
        except ContentError as e:
            self._report_failure(e, self.config.error_timeout)
            return False

        report = self._reports.get(tree.id)
        if report is None:
            report = self._validate(tree)
            self._reports[tree.id] = report

        return self._activate(tree, report)

    def preview_dialog_tree(self, tree: Union[DialogTree, dict[str, Any]]) -> bool:
        """
        Activate an in-memory tree (authoring preview).

        The tree is validated fresh every time since it may have been edited.
        """
        if not isinstance(tree, DialogTree):
            tree_id = str(tree.get("id", "<preview>")) if isinstance(tree, dict) else "<preview>"
            try:
                tree = self.library.parse(ContentKind.DIALOG_TREE, tree, tree_id)
            except ContentError as e:
                self._report_failure(e, self.config.error_timeout)
                return False

        return self._activate(tree, self._validate(tree))

    def _activate(self, tree: DialogTree, report: ValidationReport) -> bool:
        if not report.is_valid:
            self._report_failure(DialogTreeValidationError(report), self.config.tree_error_timeout)
            return False

        if self.active_tree is not None:
            self.logger.warning(
                f"Refusing to start dialog tree {tree.id}: {self.active_tree.id} is still active"
            )
            return False

        self.active_tree = tree
        self.current_node_id = tree.start_node_id

        self._conversation = self.modals.begin_conversation(tree.id, tree.character_name)
        self.modals.attach_tree_conversation(self._conversation)

        start = tree.start_node
        self.modals.add_entry(self._conversation, Speaker.NPC, tree.character_name, start.message)

        if self.event_bus:
            self.event_bus.publish(NarrativeEvent.DIALOG_TREE_STARTED, tree_id=tree.id)
            self.event_bus.publish(NarrativeEvent.DIALOG_NODE_ENTERED, tree_id=tree.id, node_id=start.id)
        return True

    # Navigation

    def select_response(self, index: int) -> Optional[DialogNode]:
        """
        Choose a response on the current node.

        Args:
            index: Position in the current node's response list

        Returns:
            The node now shown, or None if the conversation ended

        Raises:
            NoActiveDialogTreeError: no tree is active
            ResponseIndexError: index is out of range
        """
        node = self.current_node
        if self.active_tree is None or node is None:
            raise NoActiveDialogTreeError("select a response")

        if not 0 <= index < len(node.responses):
            raise ResponseIndexError(node.id, index, len(node.responses))

        response = node.responses[index]
        self.modals.add_entry(
            self._conversation, Speaker.PLAYER, self.config.player_speaker_name, response.text
        )
        if self.event_bus:
            self.event_bus.publish(
                NarrativeEvent.RESPONSE_SELECTED,
                tree_id=self.active_tree.id,
                node_id=node.id,
                index=index,
                response=response,
            )

        if response.ends_conversation:
            self._finish()
            return None

        next_node = self.active_tree.nodes[response.next_node_id]
        self.current_node_id = next_node.id
        self.modals.add_entry(
            self._conversation, Speaker.NPC, self.active_tree.character_name, next_node.message
        )
        if self.event_bus:
            self.event_bus.publish(
                NarrativeEvent.DIALOG_NODE_ENTERED, tree_id=self.active_tree.id, node_id=next_node.id
            )
        return next_node

    def close_dialog_tree(self) -> DialogHistoryRecord:
        """
        Dismiss the active tree and finalize its conversation.

        Raises:
            NoActiveDialogTreeError: no tree is active
        """
        if self.active_tree is None:
            raise NoActiveDialogTreeError("close the dialog tree")
        return self._finish()

    def _finish(self) -> DialogHistoryRecord:
        tree, record = self.active_tree, self._conversation

        # Clear first so end handlers may start another tree
        self.active_tree = None
        self.current_node_id = None
        self._conversation = None
        self.modals.detach_tree_conversation()

        self.modals.complete_conversation(record)

        if self.event_bus:
            self.event_bus.publish(NarrativeEvent.DIALOG_TREE_ENDED, tree_id=tree.id, conversation=record)
        if self._on_tree_end:
            self._on_tree_end(tree, record)
        return record

    # Internals

    def _validate(self, tree: DialogTree) -> ValidationReport:
        report = validate_dialog_tree(tree, self.config)
        for issue in report.errors:
            self.logger.error(f"Dialog tree {tree.id}: {issue}")
        for issue in report.warnings:
            self.logger.warning(f"Dialog tree {tree.id}: {issue}")
        return report

    def _report_failure(self, error: ContentError, timeout: int) -> None:
        if isinstance(error, DialogTreeValidationError):
            message = f"{error}. Check the log."
        else:
            self.logger.error(str(error))
            message = str(error)

        self.notifications.show_error("Dialog Tree Error", message, timeout)
        if self.event_bus:
            self.event_bus.publish(
                NarrativeEvent.CONTENT_LOAD_FAILED,
                kind=error.kind,
                content_id=error.content_id,
                error=error,
            )
