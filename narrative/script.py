"""
Dialog tree scripts - a plain-text authoring format compiled to JSON.

```
@tree headmaster-intro
@character Headmaster Aldric
@portrait portraits/headmaster.png | Headmaster Aldric

# welcome
Welcome to the Academy of Artifice.

>> Tell me about the academy -> academy
>> Goodbye -> END

---

# academy
@portrait portraits/headmaster-smiling.png
We train artificers here.
>> That's all I need -> END
```

Header directives come before the first node. ``@start`` names the start
node; it defaults to the first node. Inside a node, ``@portrait``
overrides the tree portrait. ``END`` ends the conversation.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from narrative.models import DialogTree

logger = logging.getLogger(__name__)

END_SENTINEL = "END"


class DialogScriptError(ValueError):
    """A script line could not be understood."""

    def __init__(self, line_number: int, message: str):
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number


@dataclass
class ParsedResponse:
    """A parsed player response."""
    text: str
    next_node: Optional[str]


@dataclass
class ParsedNode:
    """A parsed dialog node."""
    id: str
    text: str = ""
    portrait: Optional[tuple[Optional[str], str]] = None
    responses: list[ParsedResponse] = field(default_factory=list)


@dataclass
class ParsedTree:
    """A complete parsed dialog tree."""
    id: str
    character_name: str = ""
    portrait: tuple[Optional[str], str] = (None, "")
    start_node: Optional[str] = None
    nodes: list[ParsedNode] = field(default_factory=list)


class DialogScriptParser:
    """
    Parses dialog tree scripts.
    """

    # Regex patterns
    NODE_PATTERN = re.compile(r'^#\s*([\w-]+)\s*$')
    DIRECTIVE_PATTERN = re.compile(r'^@(\w+)\s+(.+?)\s*$')
    RESPONSE_PATTERN = re.compile(r'^>>\s*(.+?)\s*->\s*([\w-]+)\s*$')

    def parse_file(self, path: str | Path) -> ParsedTree:
        """Parse a script file. The file stem is the id unless @tree says otherwise."""
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()

        return self.parse_string(content, default_id=path.stem)

    def parse_string(self, content: str, default_id: str = "parsed") -> ParsedTree:
        """Parse a script string."""
        tree = ParsedTree(id=default_id)
        current_node: Optional[ParsedNode] = None
        text_lines: list[str] = []

        def finish_node() -> None:
            if current_node:
                current_node.text = '\n'.join(text_lines).strip()
                tree.nodes.append(current_node)

        for line_number, line in enumerate(content.split('\n'), start=1):
            line = line.rstrip()
            stripped = line.strip()

            # Blank lines are kept inside message text
            if not stripped:
                if current_node and text_lines:
                    text_lines.append('')
                continue

            if stripped.startswith('//'):
                continue

            # Node separator
            if stripped == '---':
                finish_node()
                current_node = None
                text_lines = []
                continue

            match = self.NODE_PATTERN.match(stripped)
            if match:
                finish_node()
                current_node = ParsedNode(id=match.group(1))
                text_lines = []
                continue

            match = self.DIRECTIVE_PATTERN.match(stripped)
            if match:
                name, value = match.group(1), match.group(2)
                if current_node is None:
                    self._apply_header(tree, name, value, line_number)
                elif name == 'portrait':
                    current_node.portrait = self._parse_portrait(value)
                else:
                    raise DialogScriptError(line_number, f"@{name} is not allowed inside a node")
                continue

            if current_node is None:
                raise DialogScriptError(line_number, "text outside of a node")

            match = self.RESPONSE_PATTERN.match(stripped)
            if match:
                target = match.group(2)
                current_node.responses.append(ParsedResponse(
                    text=match.group(1),
                    next_node=None if target == END_SENTINEL else target,
                ))
                continue

            # Regular text line
            text_lines.append(stripped)

        # Don't forget the last node
        finish_node()

        if tree.start_node is None and tree.nodes:
            tree.start_node = tree.nodes[0].id

        return tree

    def _apply_header(self, tree: ParsedTree, name: str, value: str, line_number: int) -> None:
        if name == 'tree':
            tree.id = value
        elif name == 'character':
            tree.character_name = value
        elif name == 'portrait':
            tree.portrait = self._parse_portrait(value)
        elif name == 'start':
            tree.start_node = value
        else:
            raise DialogScriptError(line_number, f"unknown directive @{name}")

    @staticmethod
    def _parse_portrait(value: str) -> tuple[Optional[str], str]:
        path, _, alt = value.partition('|')
        path = path.strip()
        return (None if path in ('', 'none') else path), alt.strip()

    def to_content(self, tree: ParsedTree) -> dict[str, Any]:
        """Convert a parsed tree to the authored JSON shape."""
        def portrait(value: tuple[Optional[str], str]) -> dict[str, Any]:
            return {'path': value[0], 'alt': value[1]}

        nodes = {}
        for node in tree.nodes:
            data: dict[str, Any] = {
                'id': node.id,
                'message': node.text,
                'responses': [
                    {'text': response.text, 'nextNodeId': response.next_node}
                    for response in node.responses
                ],
            }
            if node.portrait is not None:
                data['portrait'] = portrait(node.portrait)
            nodes[node.id] = data

        return {
            'id': tree.id,
            'characterName': tree.character_name,
            'portrait': portrait(tree.portrait),
            'startNodeId': tree.start_node or "",
            'nodes': nodes,
        }

    def to_tree(self, tree: ParsedTree) -> DialogTree:
        return DialogTree.model_validate(self.to_content(tree))


def export_tree(tree: DialogTree) -> str:
    """Serialize a tree to the JSON text stored in content files."""
    return json.dumps(tree.to_content(), indent=2, ensure_ascii=False) + '\n'


def compile_dialog_script(input_path: str | Path, output_path: Optional[str | Path] = None) -> Path:
    """
    Compile a dialog script to JSON.

    Args:
        input_path: Path to the script file
        output_path: Path to output .json file (default: same name with .json)

    Returns:
        The path written
    """
    input_path = Path(input_path)
    if output_path is None:
        output_path = input_path.with_suffix('.json')
    else:
        output_path = Path(output_path)

    parser = DialogScriptParser()
    tree = parser.parse_file(input_path)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(parser.to_content(tree), f, indent=2, ensure_ascii=False)

    logger.info(f"Compiled {input_path} -> {output_path}")
    return output_path
