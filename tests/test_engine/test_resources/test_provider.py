import json
import pytest
from engine.resources.provider import (
    ContentKind,
    ContentNotFoundError,
    ContentValidationError,
    FileContentProvider,
    RegistryContentProvider,
    validate_content_id,
)

def test_content_kind_directories():
    assert ContentKind.TUTORIAL.directory == "tutorials"
    assert ContentKind.DIALOG.directory == "dialogs"
    assert ContentKind.DIALOG_TREE.directory == "dialog-trees"

@pytest.mark.parametrize("content_id", ["", "../secrets", "a/b", "a\\b", "..hidden"])
def test_validate_content_id_rejects_paths(content_id):
    with pytest.raises(ValueError):
        validate_content_id(content_id)

@pytest.mark.asyncio
async def test_registry_sources():
    async def async_loader():
        return {"id": "b"}

    provider = RegistryContentProvider()
    provider.register(ContentKind.DIALOG, "a", {"id": "a"})
    provider.register(ContentKind.DIALOG, "b", async_loader)
    provider.register(ContentKind.DIALOG, "c", lambda: {"id": "c"})

    assert await provider.list_ids(ContentKind.DIALOG) == ["a", "b", "c"]
    assert (await provider.fetch(ContentKind.DIALOG, "b"))["id"] == "b"
    assert (await provider.fetch(ContentKind.DIALOG, "c"))["id"] == "c"

    data = await provider.fetch(ContentKind.DIALOG, "a")
    data["id"] = "mutated"
    assert (await provider.fetch(ContentKind.DIALOG, "a"))["id"] == "a"

    provider.unregister(ContentKind.DIALOG, "a")
    with pytest.raises(ContentNotFoundError):
        await provider.fetch(ContentKind.DIALOG, "a")

@pytest.mark.asyncio
async def test_file_provider_fetch(tmp_path):
    (tmp_path / "dialogs").mkdir()
    (tmp_path / "dialogs" / "hello.json").write_text(json.dumps({"id": "hello"}))
    provider = FileContentProvider(tmp_path)

    assert await provider.fetch(ContentKind.DIALOG, "hello") == {"id": "hello"}
    assert await provider.list_ids(ContentKind.DIALOG) == ["hello"]

    with pytest.raises(ContentNotFoundError):
        await provider.fetch(ContentKind.DIALOG, "missing")
    with pytest.raises(ContentNotFoundError):
        await provider.fetch(ContentKind.DIALOG, "../hello")

@pytest.mark.asyncio
async def test_file_provider_rejects_unreadable_documents(tmp_path):
    (tmp_path / "dialogs").mkdir()
    (tmp_path / "dialogs" / "latin1.json").write_bytes(b'{"id": "caf\xe9"}')
    (tmp_path / "dialogs" / "broken.json").write_text('{"id": ')
    provider = FileContentProvider(tmp_path)

    with pytest.raises(ContentValidationError) as excinfo:
        await provider.fetch(ContentKind.DIALOG, "latin1")
    assert "UTF-8" in str(excinfo.value)

    with pytest.raises(ContentValidationError):
        await provider.fetch(ContentKind.DIALOG, "broken")

@pytest.mark.asyncio
async def test_file_provider_missing_directory(tmp_path):
    provider = FileContentProvider(tmp_path / "nowhere")
    assert await provider.list_ids(ContentKind.TUTORIAL) == []

def test_write_dialog_tree(tmp_path, tree_data):
    provider = FileContentProvider(tmp_path)
    path = provider.write_dialog_tree("headmaster-intro", tree_data)

    assert path == tmp_path / "dialog-trees" / "headmaster-intro.json"
    assert json.loads(path.read_text()) == tree_data

@pytest.mark.parametrize("tree_id", ["../escape", "nested/tree", "a\\b"])
def test_write_dialog_tree_rejects_unsafe_ids(tmp_path, tree_data, tree_id):
    provider = FileContentProvider(tmp_path)
    with pytest.raises(ValueError):
        provider.write_dialog_tree(tree_id, tree_data)
    assert not (tmp_path / "dialog-trees").exists()
