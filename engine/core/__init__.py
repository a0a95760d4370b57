"""
Core engine module.

Exports:
- NarrativeConfig: Engine configuration
- ContentModel, StateModel, register_content: Model bases and registration
- EventBus, Event, NarrativeEvent: Event system
"""

from engine.core.config import NarrativeConfig
from engine.core.content import (
    ContentModel,
    StateModel,
    register_content,
    get_content_type,
    get_all_content_types,
)
from engine.core.events import EventBus, Event, NarrativeEvent

__all__ = [
    # Config
    "NarrativeConfig",
    # Models
    "ContentModel",
    "StateModel",
    "register_content",
    "get_content_type",
    "get_all_content_types",
    # Events
    "EventBus",
    "Event",
    "NarrativeEvent",
]
