"""
Content providers - fetch authored content by kind and identifier.

The narrative core never knows where content lives. It asks a provider
for ``(kind, id)`` and awaits the raw JSON document. Two providers ship:

- RegistryContentProvider: identifier -> loader function or pre-populated
  data, for embedded content and tests
- FileContentProvider: one JSON file per item under a content directory
"""

from __future__ import annotations

import asyncio
import copy
import inspect
import json
import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Union

logger = logging.getLogger(__name__)


class ContentKind(Enum):
    """Kinds of authored narrative content."""
    TUTORIAL = "tutorial"
    DIALOG = "dialog"
    DIALOG_TREE = "dialog_tree"

    @property
    def directory(self) -> str:
        """Folder name under the content root."""
        return _KIND_DIRECTORIES[self]

    @property
    def label(self) -> str:
        """Human-readable name for notifications."""
        return self.value.replace('_', ' ')


_KIND_DIRECTORIES = {
    ContentKind.TUTORIAL: "tutorials",
    ContentKind.DIALOG: "dialogs",
    ContentKind.DIALOG_TREE: "dialog-trees",
}


class ContentError(Exception):
    """Base class for content loading failures."""

    def __init__(self, kind: ContentKind, content_id: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.content_id = content_id


class ContentNotFoundError(ContentError):
    """No content exists for the requested identifier."""

    def __init__(self, kind: ContentKind, content_id: str):
        super().__init__(kind, content_id, f"Missing {kind.label}: {content_id}")


class ContentValidationError(ContentError):
    """Loaded content is missing required fields or has the wrong shape."""

    def __init__(self, kind: ContentKind, content_id: str, problems: list[str]):
        summary = "; ".join(problems) if problems else "invalid content"
        super().__init__(kind, content_id, f"Invalid {kind.label} {content_id}: {summary}")
        self.problems = problems


def validate_content_id(content_id: str) -> str:
    """Reject identifiers that could escape the content directory."""
    if (
        not content_id
        or '/' in content_id
        or '\\' in content_id
        or '..' in content_id
    ):
        raise ValueError(f"Invalid content id: {content_id!r}")
    return content_id


# A registry entry: pre-populated data, or a (possibly async) loader
ContentSource = Union[
    dict[str, Any],
    Callable[[], dict[str, Any]],
    Callable[[], Awaitable[dict[str, Any]]],
]


class ContentProvider(ABC):
    """Asynchronous source of raw content documents."""

    @abstractmethod
    async def fetch(self, kind: ContentKind, content_id: str) -> dict[str, Any]:
        """
        Fetch one document.

        Raises:
            ContentNotFoundError: nothing exists for this identifier
        """

    @abstractmethod
    async def list_ids(self, kind: ContentKind) -> list[str]:
        """List identifiers available for a kind."""


class RegistryContentProvider(ContentProvider):
    """
    Explicit identifier -> source registry.

    Usage:
        provider = RegistryContentProvider()
        provider.register(ContentKind.TUTORIAL, "welcome", {...})
        provider.register(ContentKind.DIALOG_TREE, "harbormaster", load_harbormaster)
    """

    def __init__(self, entries: dict[ContentKind, dict[str, ContentSource]] | None = None):
        self._entries: dict[ContentKind, dict[str, ContentSource]] = {kind: {} for kind in ContentKind}
        # (kind, id) -> number of fetches, for cache diagnostics
        self.fetch_counts: dict[tuple[ContentKind, str], int] = {}

        for kind, sources in (entries or {}).items():
            for content_id, source in sources.items():
                self.register(kind, content_id, source)

    def register(self, kind: ContentKind, content_id: str, source: ContentSource) -> None:
        self._entries[kind][content_id] = source

    def unregister(self, kind: ContentKind, content_id: str) -> None:
        self._entries[kind].pop(content_id, None)

    async def fetch(self, kind: ContentKind, content_id: str) -> dict[str, Any]:
        source = self._entries[kind].get(content_id)
        if source is None:
            raise ContentNotFoundError(kind, content_id)

        key = (kind, content_id)
        self.fetch_counts[key] = self.fetch_counts.get(key, 0) + 1

        if callable(source):
            result = source()
            if inspect.isawaitable(result):
                result = await result
            return result

        return copy.deepcopy(source)

    async def list_ids(self, kind: ContentKind) -> list[str]:
        return list(self._entries[kind])


class FileContentProvider(ContentProvider):
    """
    Loads content from JSON files.

    Layout:
        <root>/tutorials/*.json
        <root>/dialogs/<id>.json
        <root>/dialog-trees/<id>.json

    A file may hold a single document; tutorial files may also hold a list.
    File reads run in a worker thread so the event loop keeps turning.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path_for(self, kind: ContentKind, content_id: str) -> Path:
        return self.root / kind.directory / f"{validate_content_id(content_id)}.json"

    @staticmethod
    def _read_json(path: Path) -> Any:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    async def fetch(self, kind: ContentKind, content_id: str) -> dict[str, Any]:
        try:
            path = self._path_for(kind, content_id)
        except ValueError:
            raise ContentNotFoundError(kind, content_id) from None

        if not path.exists():
            raise ContentNotFoundError(kind, content_id)

        try:
            return await asyncio.to_thread(self._read_json, path)
        except json.JSONDecodeError as e:
            raise ContentValidationError(kind, content_id, [f"malformed JSON: {e}"]) from e
        except UnicodeDecodeError as e:
            raise ContentValidationError(kind, content_id, [f"not UTF-8 text: {e}"]) from e
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            raise ContentNotFoundError(kind, content_id) from e

    async def list_ids(self, kind: ContentKind) -> list[str]:
        directory = self.root / kind.directory
        if not directory.exists():
            logger.warning(f"Content directory not found: {directory}")
            return []
        return sorted(p.stem for p in directory.glob("*.json"))

    def write_dialog_tree(self, tree_id: str, content: dict[str, Any]) -> Path:
        """
        Write a dialog tree document back to the content directory.

        Args:
            tree_id: Target identifier (becomes the filename)
            content: Tree document in the authored JSON shape

        Returns:
            Path of the written file

        Raises:
            ValueError: the identifier contains a path separator or '..'
        """
        path = self._path_for(ContentKind.DIALOG_TREE, tree_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(content, f, indent=2)
            f.write('\n')
        logger.info(f"Saved dialog tree {tree_id} -> {path}")
        return path
