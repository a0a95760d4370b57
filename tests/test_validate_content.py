import json
import pytest
from pathlib import Path
from validate_content import validate

CONTENT = Path(__file__).resolve().parents[1] / "content"

@pytest.mark.asyncio
async def test_shipped_content_is_valid():
    assert await validate(CONTENT) == 0

@pytest.mark.asyncio
async def test_problems_are_counted(tmp_path):
    for directory in ("tutorials", "dialogs", "dialog-trees"):
        (tmp_path / directory).mkdir()
    (tmp_path / "tutorials" / "untitled.json").write_text(json.dumps({"id": "untitled", "content": "x"}))
    (tmp_path / "dialogs" / "mute.json").write_text(json.dumps({"id": "mute", "characterName": "Mute"}))
    (tmp_path / "dialog-trees" / "lost.json").write_text(json.dumps({
        "id": "lost",
        "characterName": "Lost",
        "startNodeId": "missing",
        "nodes": {"a": {"id": "a", "message": "Hi", "responses": []}},
    }))

    assert await validate(tmp_path) == 3
