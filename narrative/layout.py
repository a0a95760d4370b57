"""
Auto-layout for the dialog tree editor.

Columns are breadth-first levels from the start node; orphans share one
extra column at the end. Nodes are centred vertically within a column.
"""

from __future__ import annotations

from dataclasses import dataclass

from narrative.models import DialogTree
from narrative.validation import node_depths

LEVEL_SPACING = 300
NODE_SPACING = 150


@dataclass(frozen=True)
class NodePosition:
    x: float
    y: float


def layout_levels(tree: DialogTree) -> list[list[str]]:
    """Group node ids into columns, in breadth-first visiting order."""
    levels: list[list[str]] = []
    for node_id, depth in node_depths(tree).items():
        while len(levels) <= depth:
            levels.append([])
        levels[depth].append(node_id)

    visited = {node_id for level in levels for node_id in level}
    orphans = [node_id for node_id in tree.nodes if node_id not in visited]
    if orphans:
        levels.append(orphans)
    return levels


def auto_layout_nodes(
    tree: DialogTree,
    level_spacing: float = LEVEL_SPACING,
    node_spacing: float = NODE_SPACING,
) -> dict[str, NodePosition]:
    """
    Compute editor canvas positions for every node.

    Returns:
        Mapping of node id to position
    """
    positions: dict[str, NodePosition] = {}
    for level, node_ids in enumerate(layout_levels(tree)):
        level_height = len(node_ids) * node_spacing
        for index, node_id in enumerate(node_ids):
            positions[node_id] = NodePosition(
                x=level * level_spacing,
                y=index * node_spacing - level_height / 2,
            )
    return positions
