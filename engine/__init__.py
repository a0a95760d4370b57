"""
Narrative Engine

Infrastructure for the narrative layer of an idle game: typed events,
content models and loading, and key-value persistence.

Quick Start:
    from engine.core import EventBus, NarrativeConfig
    from engine.resources import ContentLibrary, FileContentProvider
    from engine.storage import JsonFileStore

    config = NarrativeConfig(content_path="content", save_path="saves")
    library = ContentLibrary(FileContentProvider(config.content_path))
    store = JsonFileStore(config.save_path)
"""

__version__ = "0.1.0"

from engine.core import (
    NarrativeConfig,
    ContentModel,
    StateModel,
    register_content,
    EventBus,
    Event,
    NarrativeEvent,
)

__all__ = [
    "NarrativeConfig",
    "ContentModel",
    "StateModel",
    "register_content",
    "EventBus",
    "Event",
    "NarrativeEvent",
]
