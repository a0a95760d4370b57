"""
Read-only views of game state consumed by condition evaluation.

The narrative layer never mutates tiles, objectives or resources; it only
queries them. Hosts implement ``WorldState`` over their own stores. The
narrative layer adds the two facts it owns itself (feature interactions
and finished conversations) to form a full ``GameStateView``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from narrative.interactions import InteractionTracker
    from narrative.modals import ModalQueueManager

EXPLORED = "explored"
COMPLETED = "completed"


@runtime_checkable
class WorldState(Protocol):
    """Host-provided accessors."""

    def tile_exploration_status(self, q: int, r: int) -> Optional[str]:
        """Exploration status of the tile at (q, r), or None if no tile."""
        ...

    def objective_status(self, objective_id: str) -> Optional[str]:
        """Status of an objective, or None if unknown."""
        ...

    def resource_amount(self, resource_id: str) -> Optional[float]:
        """Current amount of a resource, or None if unknown."""
        ...


@runtime_checkable
class GameStateView(WorldState, Protocol):
    """Everything a trigger condition may ask about."""

    def has_interacted_with_feature(self, feature_id: str) -> bool:
        ...

    def has_completed_conversation(self, conversation_id: str) -> bool:
        ...


@dataclass
class GameStateSnapshot:
    """
    Plain in-memory game state.

    Useful for tests, tools, and hosts whose state is already a handful of
    dictionaries.
    """
    tiles: dict[tuple[int, int], str] = field(default_factory=dict)
    objectives: dict[str, str] = field(default_factory=dict)
    resources: dict[str, float] = field(default_factory=dict)
    interacted_features: set[str] = field(default_factory=set)
    completed_conversations: set[str] = field(default_factory=set)

    def tile_exploration_status(self, q: int, r: int) -> Optional[str]:
        return self.tiles.get((q, r))

    def objective_status(self, objective_id: str) -> Optional[str]:
        return self.objectives.get(objective_id)

    def resource_amount(self, resource_id: str) -> Optional[float]:
        return self.resources.get(resource_id)

    def has_interacted_with_feature(self, feature_id: str) -> bool:
        return feature_id in self.interacted_features

    def has_completed_conversation(self, conversation_id: str) -> bool:
        return conversation_id in self.completed_conversations


class NarrativeGameState:
    """
    Host world state plus the facts the narrative layer tracks itself.
    """

    def __init__(
        self,
        world: WorldState,
        interactions: InteractionTracker,
        modals: ModalQueueManager,
    ):
        self.world = world
        self.interactions = interactions
        self.modals = modals

    def tile_exploration_status(self, q: int, r: int) -> Optional[str]:
        return self.world.tile_exploration_status(q, r)

    def objective_status(self, objective_id: str) -> Optional[str]:
        return self.world.objective_status(objective_id)

    def resource_amount(self, resource_id: str) -> Optional[float]:
        return self.world.resource_amount(resource_id)

    def has_interacted_with_feature(self, feature_id: str) -> bool:
        return self.interactions.has_interacted_with_feature(feature_id)

    def has_completed_conversation(self, conversation_id: str) -> bool:
        return self.modals.has_completed_conversation(conversation_id)
