"""
Narrative engine configuration.
"""

from __future__ import annotations

from typing import Any


class NarrativeConfig:
    """Configuration for the narrative engine."""

    def __init__(
        self,
        content_path: str = "content",
        save_path: str = "saves",
        completed_tutorials_key: str = "idle-artifice-completed-tutorials",
        dialog_history_key: str = "idle-artifice-dialog-history",
        interacted_features_key: str = "idle-artifice-interacted-features",
        completed_conversations_key: str = "idle-artifice-completed-conversations",
        history_limit: int = 200,
        player_speaker_name: str = "You",
        max_responses_per_node: int = 4,
        max_response_length: int = 200,
        max_message_length: int = 1000,
        default_timeout: int = 4000,
        warning_timeout: int = 8000,
        error_timeout: int = 8000,
        tree_error_timeout: int = 10000,
        trigger_error_timeout: int = 5000,
    ):
        self.content_path = content_path
        self.save_path = save_path

        # Persistent storage keys
        self.completed_tutorials_key = completed_tutorials_key
        self.dialog_history_key = dialog_history_key
        self.interacted_features_key = interacted_features_key
        self.completed_conversations_key = completed_conversations_key

        # Finalized conversations kept; oldest dropped first
        self.history_limit = history_limit
        self.player_speaker_name = player_speaker_name

        # Authoring guidelines (warnings, never blocking)
        self.max_responses_per_node = max_responses_per_node
        self.max_response_length = max_response_length
        self.max_message_length = max_message_length

        # Notification timeouts (ms, 0 = sticky)
        self.default_timeout = default_timeout
        self.warning_timeout = warning_timeout
        self.error_timeout = error_timeout
        self.tree_error_timeout = tree_error_timeout
        self.trigger_error_timeout = trigger_error_timeout

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NarrativeConfig:
        """Build a config from a mapping, ignoring unknown keys."""
        config = cls()
        for key, value in data.items():
            if hasattr(config, key):
                setattr(config, key, value)
        return config

    def to_dict(self) -> dict[str, Any]:
        return dict(vars(self))
