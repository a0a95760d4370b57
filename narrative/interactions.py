"""
Feature interaction tracking.

Remembers which world features the player has touched. Consumed by the
``feature`` trigger condition and persisted under its own storage key.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from engine.core.config import NarrativeConfig
from engine.core.events import EventBus, NarrativeEvent
from engine.storage.store import KeyValueStore, StorageError
from narrative.notifications import SaveFailureReporter

logger = logging.getLogger(__name__)


class InteractionTracker:
    """Set of interacted feature ids, synchronized with storage."""

    def __init__(
        self,
        store: KeyValueStore,
        save_failures: SaveFailureReporter,
        config: Optional[NarrativeConfig] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.store = store
        self.save_failures = save_failures
        self.config = config or NarrativeConfig()
        self.event_bus = event_bus
        self.interacted_features: set[str] = set()

    def load(self) -> None:
        """Read the persisted set. Unreadable data starts an empty set."""
        stored = self.store.read(self.config.interacted_features_key, [])
        if not isinstance(stored, list):
            logger.warning(
                f"Ignoring malformed {self.config.interacted_features_key}: expected a list"
            )
            stored = []
        self.interacted_features = {str(feature_id) for feature_id in stored}

    def restore(self, feature_ids: Iterable[str]) -> None:
        """Replace the set (save-file import) and persist it."""
        self.interacted_features = set(feature_ids)
        self._persist()

    def has_interacted_with_feature(self, feature_id: str) -> bool:
        return feature_id in self.interacted_features

    def mark_feature_interacted(self, feature_id: str) -> bool:
        """
        Record an interaction.

        Returns:
            True if this was the first interaction with the feature
        """
        if feature_id in self.interacted_features:
            return False

        self.interacted_features.add(feature_id)
        self._persist()

        if self.event_bus:
            self.event_bus.publish(NarrativeEvent.FEATURE_INTERACTED, feature_id=feature_id)
        return True

    def _persist(self) -> None:
        try:
            self.store.write(
                self.config.interacted_features_key,
                sorted(self.interacted_features),
            )
        except StorageError as e:
            self.save_failures.report(e)
