"""
Resources module - authored content loading.

Provides:
- Content providers (registry and JSON files)
- JSON Schemas for tutorials, dialogs and dialog trees
- ContentLibrary with an eager tutorial registry and memoized lazy loads
"""

from engine.resources.provider import (
    ContentKind,
    ContentError,
    ContentNotFoundError,
    ContentValidationError,
    ContentProvider,
    RegistryContentProvider,
    FileContentProvider,
    validate_content_id,
)
from engine.resources.database import ContentLibrary
from engine.resources.schemas import CONTENT_SCHEMAS

__all__ = [
    "ContentKind",
    "ContentError",
    "ContentNotFoundError",
    "ContentValidationError",
    "ContentProvider",
    "RegistryContentProvider",
    "FileContentProvider",
    "validate_content_id",
    "ContentLibrary",
    "CONTENT_SCHEMAS",
]
