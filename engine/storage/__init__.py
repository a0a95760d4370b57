"""
Storage module - string-keyed persistence for narrative progress.

Provides:
- KeyValueStore interface (read once at startup, rewritten in full)
- JSON file backend with checksum validation
- In-memory backend
"""

from engine.storage.store import (
    KeyValueStore,
    JsonFileStore,
    MemoryStore,
    StorageError,
)

__all__ = [
    "KeyValueStore",
    "JsonFileStore",
    "MemoryStore",
    "StorageError",
]
