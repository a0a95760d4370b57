"""
Content Library.

Handles loading and validation of authored narrative content:
tutorials are loaded eagerly into a registry at startup, dialogs and
dialog trees are loaded lazily on first reference and cached for the
lifetime of the library.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import jsonschema
from pydantic import ValidationError

from engine.core.content import ContentModel, get_content_type
from engine.resources.provider import (
    ContentError,
    ContentKind,
    ContentNotFoundError,
    ContentProvider,
    ContentValidationError,
)
from engine.resources.schemas import CONTENT_SCHEMAS


class ContentLibrary:
    """
    Central storage for loaded narrative content.

    Concurrent requests for the same identifier share one in-flight load,
    so a second caller resolves from the first caller's result instead of
    fetching again. A load, once started, runs to completion even if the
    caller that requested it goes away.

    Documents are built into the model class registered for their kind
    with ``@register_content``. Those registrations happen when
    ``narrative.models`` is imported (importing the ``narrative`` package
    does it); until then ``parse`` rejects every document with "no model
    registered".
    """

    def __init__(
        self,
        provider: ContentProvider,
        schemas: dict[ContentKind, dict[str, Any]] | None = None,
    ):
        self.provider = provider
        self._schemas = dict(CONTENT_SCHEMAS)
        if schemas:
            self._schemas.update(schemas)

        # Data stores
        self.tutorials: dict[str, ContentModel] = {}
        self.dialogs: dict[str, ContentModel] = {}
        self.dialog_trees: dict[str, ContentModel] = {}

        # Tutorial files rejected by the last registry load
        self.load_errors: list[ContentError] = []

        self._pending: dict[tuple[ContentKind, str], asyncio.Future] = {}

        self.logger = logging.getLogger(__name__)

    def _cache_for(self, kind: ContentKind) -> dict[str, ContentModel]:
        if kind is ContentKind.TUTORIAL:
            return self.tutorials
        if kind is ContentKind.DIALOG:
            return self.dialogs
        return self.dialog_trees

    def parse(self, kind: ContentKind, data: Any, content_id: str) -> ContentModel:
        """
        Validate a raw document and build its model.

        Raises:
            ContentValidationError: schema or model validation failed
        """
        schema = self._schemas.get(kind)
        if schema:
            try:
                jsonschema.validate(instance=data, schema=schema)
            except jsonschema.ValidationError as e:
                location = "/".join(str(p) for p in e.absolute_path) or "<root>"
                raise ContentValidationError(kind, content_id, [f"{location}: {e.message}"]) from e
        else:
            self.logger.warning(f"No schema found for {kind.label}")

        model_type = get_content_type(kind.value)
        if model_type is None:
            raise ContentValidationError(kind, content_id, [f"no model registered for {kind.label}"])

        try:
            return model_type.model_validate(data)
        except ValidationError as e:
            problems = [
                f"{'/'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            ]
            raise ContentValidationError(kind, content_id, problems) from e

    async def load_tutorials(self) -> int:
        """
        Load the whole tutorial registry.

        Unreadable or invalid documents are logged, collected in
        ``load_errors`` and skipped; the rest of the registry still loads.
        A source may hold one tutorial or a list of them.

        Returns:
            Number of tutorials in the registry
        """
        self.load_errors = []

        for source_id in await self.provider.list_ids(ContentKind.TUTORIAL):
            try:
                data = await self.provider.fetch(ContentKind.TUTORIAL, source_id)
            except ContentError as e:
                self.logger.error(f"Failed to read tutorial source {source_id}: {e}")
                self.load_errors.append(e)
                continue

            if isinstance(data, list):
                documents = [(f"{source_id}[{index}]", item) for index, item in enumerate(data)]
            else:
                documents = [(source_id, data)]

            for document_id, document in documents:
                try:
                    tutorial = self.parse(ContentKind.TUTORIAL, document, document_id)
                except ContentValidationError as e:
                    self.logger.error(f"Invalid tutorial at {document_id}: {e}")
                    self.load_errors.append(e)
                    continue

                if tutorial.id in self.tutorials:
                    self.logger.warning(f"Duplicate tutorial id {tutorial.id} at {document_id}; replacing")
                self.tutorials[tutorial.id] = tutorial

        self.logger.info(f"Loaded {len(self.tutorials)} tutorials.")
        return len(self.tutorials)

    def get_tutorial(self, tutorial_id: str) -> ContentModel:
        """
        Get a tutorial from the eager registry.

        Raises:
            ContentNotFoundError: no tutorial has this id
        """
        tutorial = self.tutorials.get(tutorial_id)
        if tutorial is None:
            raise ContentNotFoundError(ContentKind.TUTORIAL, tutorial_id)
        return tutorial

    async def load_dialog(self, dialog_id: str) -> ContentModel:
        return await self._load(ContentKind.DIALOG, dialog_id)

    async def load_dialog_tree(self, tree_id: str) -> ContentModel:
        return await self._load(ContentKind.DIALOG_TREE, tree_id)

    def is_cached(self, kind: ContentKind, content_id: str) -> bool:
        return content_id in self._cache_for(kind)

    def cache(self, kind: ContentKind, item: ContentModel) -> None:
        """Insert an already-built item (authoring previews, tests)."""
        self._cache_for(kind)[item.id] = item

    async def _load(self, kind: ContentKind, content_id: str) -> ContentModel:
        cache = self._cache_for(kind)
        if content_id in cache:
            return cache[content_id]

        key = (kind, content_id)
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_parse(kind, content_id))
            self._pending[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))

        # Shielded: cancelling the caller does not cancel the load
        return await asyncio.shield(task)

    def _forget(self, key: tuple[ContentKind, str], task: asyncio.Future) -> None:
        self._pending.pop(key, None)
        if not task.cancelled():
            # Mark the exception retrieved; awaiting callers re-raise it
            task.exception()

    async def _fetch_and_parse(self, kind: ContentKind, content_id: str) -> ContentModel:
        data = await self.provider.fetch(kind, content_id)

        # Another path may have filled the cache while we were suspended
        cache = self._cache_for(kind)
        if content_id in cache:
            return cache[content_id]

        item = self.parse(kind, data, content_id)
        if item.id != content_id:
            raise ContentValidationError(
                kind, content_id, [f"id: '{item.id}' does not match requested identifier"]
            )

        cache[content_id] = item
        return item
