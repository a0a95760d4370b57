"""
Key-value persistence.

Each record is addressed by a string key and holds one JSON document.
Records are read once at startup and rewritten in full on every mutation,
so a backend only needs whole-record get/set.
"""

from __future__ import annotations

import base64
import copy
import hashlib
import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a record cannot be written (unavailable, quota, I/O)."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Failed to write '{key}': {reason}")
        self.key = key
        self.reason = reason


class KeyValueStore(ABC):
    """
    Whole-record store addressed by string keys.

    Reads never raise: a missing or unreadable record yields the default.
    Writes raise StorageError so the caller can surface the failure.
    """

    @abstractmethod
    def read(self, key: str, default: Any = None) -> Any:
        """Read a record, or return default if absent or unreadable."""

    @abstractmethod
    def write(self, key: str, value: Any) -> None:
        """Replace a record. Raises StorageError on failure."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a record if present."""

    @abstractmethod
    def keys(self) -> list[str]:
        """List stored keys."""


class MemoryStore(KeyValueStore):
    """
    In-process store.

    Values are deep-copied in and out so callers cannot alias stored state.
    Set ``fail_writes`` to simulate an unavailable backend.
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._records: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self.fail_writes = False
        self.write_count = 0

    def read(self, key: str, default: Any = None) -> Any:
        if key not in self._records:
            return default
        return copy.deepcopy(self._records[key])

    def write(self, key: str, value: Any) -> None:
        if self.fail_writes:
            raise StorageError(key, "storage unavailable")
        self._records[key] = copy.deepcopy(value)
        self.write_count += 1

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._records)


class JsonFileStore(KeyValueStore):
    """
    One JSON file per key under a directory.

    Each file is an envelope carrying the payload and a SHA-256 checksum;
    a record whose checksum does not match is treated as corrupt and read
    as the default.

    Usage:
        store = JsonFileStore("saves")
        store.write("idle-artifice-completed-tutorials", ["welcome"])
        store.read("idle-artifice-completed-tutorials", [])
    """

    VERSION = "1.0"

    _SAFE_KEY = re.compile(r'^[A-Za-z0-9_.-]+$')

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        if not self._SAFE_KEY.match(key) or '..' in key:
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def read(self, key: str, default: Any = None) -> Any:
        path = self._path_for(key)
        if not path.exists():
            return default

        try:
            with open(path, 'r', encoding='utf-8') as f:
                envelope = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read storage record {key}: {e}")
            return default

        if not isinstance(envelope, dict) or 'data' not in envelope:
            logger.error(f"Malformed storage record {key}")
            return default

        checksum = envelope.get('checksum')
        if checksum and checksum != self._calculate_checksum(envelope['data']):
            logger.error(f"Storage record {key} is corrupted: checksum mismatch")
            return default

        return envelope['data']

    def write(self, key: str, value: Any) -> None:
        path = self._path_for(key)

        # Write to a sibling then swap, so a failed write keeps the old record
        tmp_path = path.with_suffix('.json.tmp')
        try:
            envelope = {
                'version': self.VERSION,
                'key': key,
                'data': value,
                'checksum': self._calculate_checksum(value),
            }
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(envelope, f, indent=2)
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(key, str(e)) from e

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        if path.exists():
            path.unlink()

    def keys(self) -> list[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))

    @staticmethod
    def _calculate_checksum(data: Any) -> str:
        json_str = json.dumps(data, sort_keys=True, separators=(',', ':'))
        hash_bytes = hashlib.sha256(json_str.encode('utf-8')).digest()
        return base64.b64encode(hash_bytes).decode('ascii')
