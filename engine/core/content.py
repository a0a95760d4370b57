"""
Base classes for content and state models.

Content (tutorials, dialogs, dialog trees) is authored as JSON with
camelCase keys and is immutable once loaded. Runtime state (conversation
transcripts) is mutable and persisted. Both use Pydantic for:
- Validation of loaded data
- JSON round-tripping with the authored key names
- Type hints and defaults

Usage:
    @register_content("tutorial")
    class TutorialItem(ContentModel):
        id: str
        show_once: bool = Field(default=True, alias="showOnce")
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar

from pydantic import BaseModel, ConfigDict


class ContentModel(BaseModel):
    """
    Base class for authored, read-only content.

    Fields may be populated by their Python name or by their authored
    (camelCase) alias. Unknown keys are ignored so content files can carry
    editor metadata.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra='ignore',
    )

    # Content kind this model is registered under
    content_kind: ClassVar[str] = ""

    @classmethod
    def get_kind(cls) -> str:
        return cls.content_kind or cls.__name__

    def to_content(self) -> dict[str, Any]:
        """Dump back to the authored JSON shape."""
        return self.model_dump(mode='json', by_alias=True)


class StateModel(BaseModel):
    """
    Base class for mutable runtime state that is persisted.

    Assignments are validated, and serialization uses the same camelCase
    aliases as the content files so saved state stays readable.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra='ignore',
    )

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


# Registry of content kinds for parsing loaded data
_content_registry: dict[str, type[ContentModel]] = {}


def register_content(kind: str) -> Callable[[type[ContentModel]], type[ContentModel]]:
    """
    Decorator registering a model as the parser for a content kind.

    Usage:
        @register_content("dialog")
        class DialogItem(ContentModel):
            ...
    """
    def decorator(cls: type[ContentModel]) -> type[ContentModel]:
        cls.content_kind = kind
        _content_registry[kind] = cls
        return cls
    return decorator


def get_content_type(kind: str) -> type[ContentModel] | None:
    """Get the model class registered for a content kind."""
    return _content_registry.get(kind)


def get_all_content_types() -> dict[str, type[ContentModel]]:
    return _content_registry.copy()
