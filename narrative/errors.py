"""
Narrative error taxonomy.

1. Content not found      -> engine.resources.ContentNotFoundError
2. Schema/graph invalid   -> engine.resources.ContentValidationError,
                             DialogTreeValidationError
3. Programmer misuse      -> EmptyModalQueueError, ResponseIndexError,
                             NoActiveDialogTreeError (never caught here)
4. Persistence failure    -> engine.storage.StorageError
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from engine.resources.provider import (
    ContentError,
    ContentKind,
    ContentNotFoundError,
    ContentValidationError,
)
from engine.storage.store import StorageError

if TYPE_CHECKING:
    from narrative.validation import ValidationReport


class NarrativeError(Exception):
    """Base class for narrative-layer errors."""


class DialogTreeValidationError(NarrativeError, ContentError):
    """A dialog tree has blocking structural errors and cannot be activated."""

    def __init__(self, report: ValidationReport):
        count = len(report.errors)
        ContentError.__init__(
            self,
            ContentKind.DIALOG_TREE,
            report.tree_id,
            f"Tree {report.tree_id} has {count} validation error(s)",
        )
        self.report = report


class EmptyModalQueueError(NarrativeError, IndexError):
    """Closing or advancing the modal queue while it is empty."""

    def __init__(self):
        super().__init__("No modal to close: the modal queue is empty")


class NoActiveDialogTreeError(NarrativeError):
    """Navigating a dialog tree while none is active."""

    def __init__(self, operation: str):
        super().__init__(f"Cannot {operation}: no dialog tree is active")
        self.operation = operation


class ResponseIndexError(NarrativeError, IndexError):
    """Selecting a response index the current node does not have."""

    def __init__(self, node_id: str, index: int, count: int):
        super().__init__(
            f"Response {index} not found in node '{node_id}' ({count} response(s))"
        )
        self.node_id = node_id
        self.index = index
        self.count = count


__all__ = [
    "NarrativeError",
    "ContentError",
    "ContentNotFoundError",
    "ContentValidationError",
    "DialogTreeValidationError",
    "EmptyModalQueueError",
    "NoActiveDialogTreeError",
    "ResponseIndexError",
    "StorageError",
]
