"""
Dialog tree structural validation.

Runs once per tree, before activation. Errors block activation; warnings
are logged and the tree still loads.

Errors:
- start node missing from the node map
- response pointing at a node that does not exist
- empty node message or empty response text
- node map key different from the node's own id

Warnings:
- orphan nodes (unreachable from the start node)
- no reachable exit, or reachable nodes from which no exit can be reached
- overlong messages or responses, too many responses on one node
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from engine.core.config import NarrativeConfig
from narrative.models import DialogTree


class IssueSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ValidationIssue:
    """
    A single validation finding.

    Attributes:
        severity: Blocking error or warning
        message: Human readable description
        node_id: Offending node, if any
        field: Offending field path within the node, if any
    """
    severity: IssueSeverity
    message: str
    node_id: Optional[str] = None
    field: Optional[str] = None

    def __str__(self) -> str:
        location = ""
        if self.node_id is not None:
            location = f"[{self.node_id}"
            if self.field:
                location += f".{self.field}"
            location += "] "
        return f"{location}{self.message}"


@dataclass
class ValidationReport:
    """Result of validating one tree."""
    tree_id: str
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.errors + self.warnings

    def error(self, message: str, node_id: Optional[str] = None, field: Optional[str] = None) -> None:
        self.errors.append(ValidationIssue(IssueSeverity.ERROR, message, node_id, field))

    def warning(self, message: str, node_id: Optional[str] = None, field: Optional[str] = None) -> None:
        self.warnings.append(ValidationIssue(IssueSeverity.WARNING, message, node_id, field))


# Graph helpers

def iter_edges(tree: DialogTree) -> Iterator[tuple[str, str]]:
    """Yield (node_id, next_node_id) for every non-null response target."""
    for node_id, node in tree.nodes.items():
        for response in node.responses:
            if response.next_node_id is not None:
                yield node_id, response.next_node_id


def node_depths(tree: DialogTree) -> dict[str, int]:
    """
    Breadth-first distance of every reachable node from the start node.

    Targets missing from the node map are ignored. An empty result means
    the start node itself is missing.
    """
    if tree.start_node_id not in tree.nodes:
        return {}

    depths = {tree.start_node_id: 0}
    queue = deque([tree.start_node_id])

    while queue:
        node_id = queue.popleft()
        for response in tree.nodes[node_id].responses:
            next_id = response.next_node_id
            if next_id is None or next_id not in tree.nodes or next_id in depths:
                continue
            depths[next_id] = depths[node_id] + 1
            queue.append(next_id)

    return depths


def find_orphans(tree: DialogTree) -> list[str]:
    """Nodes unreachable from the start node, in node-map order."""
    reachable = node_depths(tree)
    return [node_id for node_id in tree.nodes if node_id not in reachable]


def is_exit_node(tree: DialogTree, node_id: str) -> bool:
    """A node ends the conversation if it has no responses or a null response."""
    node = tree.nodes[node_id]
    return node.is_terminal or any(r.ends_conversation for r in node.responses)


def has_exit_path(tree: DialogTree) -> bool:
    """Whether some exit is reachable from the start node."""
    return any(is_exit_node(tree, node_id) for node_id in node_depths(tree))


def find_dead_ends(tree: DialogTree) -> list[str]:
    """
    Reachable nodes from which no exit can ever be reached.

    Walks the reversed graph backwards from every exit node; reachable
    nodes the walk never touches can only loop.
    """
    reachable = node_depths(tree)

    incoming: dict[str, list[str]] = {node_id: [] for node_id in tree.nodes}
    for source, target in iter_edges(tree):
        if target in incoming:
            incoming[target].append(source)

    can_exit = {node_id for node_id in tree.nodes if is_exit_node(tree, node_id)}
    queue = deque(can_exit)
    while queue:
        node_id = queue.popleft()
        for source in incoming[node_id]:
            if source not in can_exit:
                can_exit.add(source)
                queue.append(source)

    return [node_id for node_id in reachable if node_id not in can_exit]


# Validation

def validate_dialog_tree(tree: DialogTree, config: Optional[NarrativeConfig] = None) -> ValidationReport:
    """
    Validate a tree's structure.

    Args:
        tree: The tree to check
        config: Supplies the authoring guideline limits

    Returns:
        A report; ``report.is_valid`` is False if activation must be refused
    """
    config = config or NarrativeConfig()
    report = ValidationReport(tree_id=tree.id)

    start_missing = tree.start_node_id not in tree.nodes
    if start_missing:
        report.error(f'Start node "{tree.start_node_id}" not found in nodes', field="startNodeId")

    for node_id, node in tree.nodes.items():
        if node.id != node_id:
            report.error(
                f'Node key "{node_id}" does not match node id "{node.id}"',
                node_id=node_id,
                field="id",
            )

        if not node.message.strip():
            report.error("Node has an empty message", node_id=node_id, field="message")
        elif len(node.message) > config.max_message_length:
            report.warning(
                f"Message is {len(node.message)} characters (guideline {config.max_message_length})",
                node_id=node_id,
                field="message",
            )

        if len(node.responses) > config.max_responses_per_node:
            report.warning(
                f"Node has {len(node.responses)} responses (guideline {config.max_responses_per_node})",
                node_id=node_id,
                field="responses",
            )

        for index, response in enumerate(node.responses):
            if not response.text.strip():
                report.error(
                    f"Response {index} has empty text",
                    node_id=node_id,
                    field=f"responses[{index}].text",
                )
            elif len(response.text) > config.max_response_length:
                report.warning(
                    f"Response {index} is {len(response.text)} characters "
                    f"(guideline {config.max_response_length})",
                    node_id=node_id,
                    field=f"responses[{index}].text",
                )

            if response.next_node_id is not None and response.next_node_id not in tree.nodes:
                report.error(
                    f'Response {index} references non-existent node "{response.next_node_id}"',
                    node_id=node_id,
                    field=f"responses[{index}].nextNodeId",
                )

    # Reachability needs a start node
    if start_missing:
        return report

    for orphan in find_orphans(tree):
        report.warning("Node is unreachable from the start node", node_id=orphan)

    if not has_exit_path(tree):
        report.warning(
            "No path from the start node reaches an exit; every conversation path loops. "
            "Add a response with nextNodeId null or a node without responses."
        )
    else:
        for node_id in find_dead_ends(tree):
            report.warning("No exit can be reached from this node", node_id=node_id)

    return report
