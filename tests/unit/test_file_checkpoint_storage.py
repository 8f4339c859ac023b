"""Unit tests for the JSON file checkpoint backend."""

import asyncio
import json
from pathlib import Path

import pytest

from workflow_engine.checkpoint import CheckpointManager, JsonFileCheckpointStorage


@pytest.fixture
def file_checkpoints(tmp_path: Path) -> CheckpointManager:
    return CheckpointManager(JsonFileCheckpointStorage(tmp_path / "checkpoints"))


@pytest.mark.asyncio
async def test_checkpoint_survives_a_new_manager(tmp_path: Path, file_checkpoints: CheckpointManager) -> None:
    state = {"stage": "analysis", "results": ["s1", "s2"], "score": 7.5}
    created = await file_checkpoints.create_checkpoint("wf", "analyze", state, metadata={"attempt": 1})

    reopened = CheckpointManager(JsonFileCheckpointStorage(tmp_path / "checkpoints"))
    loaded = await reopened.load_checkpoint(created.id)

    assert loaded is not None
    assert loaded.state == state
    assert loaded.current_node == "analyze"
    assert loaded.metadata == {"attempt": 1}
    assert loaded.timestamp == created.timestamp


@pytest.mark.asyncio
async def test_one_json_file_per_checkpoint(tmp_path: Path, file_checkpoints: CheckpointManager) -> None:
    created = await file_checkpoints.create_checkpoint("wf", "n", {"a": 1})

    path = tmp_path / "checkpoints" / f"{created.id}.json"
    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8"))["workflow_id"] == "wf"


@pytest.mark.asyncio
async def test_missing_directory_behaves_as_empty(file_checkpoints: CheckpointManager) -> None:
    assert await file_checkpoints.list_checkpoints("wf") == []
    assert await file_checkpoints.load_checkpoint("cp_missing") is None
    await file_checkpoints.cleanup("wf")


@pytest.mark.asyncio
async def test_ids_cannot_escape_the_directory(tmp_path: Path, file_checkpoints: CheckpointManager) -> None:
    outside = tmp_path / "secret.json"
    outside.write_text("{}", encoding="utf-8")

    assert await file_checkpoints.load_checkpoint("../secret") is None
    await file_checkpoints.delete_checkpoint("../secret")
    assert outside.exists()


@pytest.mark.asyncio
async def test_list_delete_and_cleanup(file_checkpoints: CheckpointManager) -> None:
    first = await file_checkpoints.create_checkpoint("wf_1", "a", {})
    second = await file_checkpoints.create_checkpoint("wf_1", "b", {})
    third = await file_checkpoints.create_checkpoint("wf_1", "c", {})
    other = await file_checkpoints.create_checkpoint("wf_2", "a", {})

    assert [cp.id for cp in await file_checkpoints.list_checkpoints("wf_1")] == [third.id, second.id, first.id]

    await file_checkpoints.delete_checkpoint(second.id)
    assert [cp.id for cp in await file_checkpoints.list_checkpoints("wf_1")] == [third.id, first.id]

    await file_checkpoints.cleanup("wf_1")
    assert await file_checkpoints.list_checkpoints("wf_1") == []
    assert (await file_checkpoints.get_latest_checkpoint("wf_2")).id == other.id


@pytest.mark.asyncio
async def test_unserialisable_state_is_reported(file_checkpoints: CheckpointManager) -> None:
    with pytest.raises(Exception):
        await file_checkpoints.create_checkpoint("wf", "n", {"handle": object()})


@pytest.mark.asyncio
async def test_listing_while_another_workflow_is_cleaned_up(file_checkpoints: CheckpointManager) -> None:
    kept = [await file_checkpoints.create_checkpoint("wf_b", f"n{i}", {"i": i}) for i in range(5)]

    for _ in range(30):
        for i in range(40):
            await file_checkpoints.create_checkpoint("wf_a", f"n{i}", {"i": i})

        listed, _ = await asyncio.gather(
            file_checkpoints.list_checkpoints("wf_b"),
            file_checkpoints.cleanup("wf_a"),
        )

        assert [cp.id for cp in listed] == [cp.id for cp in reversed(kept)]
        assert await file_checkpoints.list_checkpoints("wf_a") == []


@pytest.mark.asyncio
async def test_corrupt_file_is_skipped_when_listing(tmp_path: Path, file_checkpoints: CheckpointManager) -> None:
    created = await file_checkpoints.create_checkpoint("wf", "n", {"a": 1})
    (tmp_path / "checkpoints" / "garbage.json").write_text("{not json", encoding="utf-8")

    assert [cp.id for cp in await file_checkpoints.list_checkpoints("wf")] == [created.id]
    await file_checkpoints.cleanup("wf")
    assert await file_checkpoints.list_checkpoints("wf") == []

    with pytest.raises(ValueError):
        await file_checkpoints.load_checkpoint("garbage")


def test_file_removed_before_read_is_skipped(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    storage = JsonFileCheckpointStorage(tmp_path)
    (tmp_path / "cp_gone.json").write_text("{}", encoding="utf-8")

    def vanished(path: Path):
        raise FileNotFoundError(path)

    monkeypatch.setattr(storage, "_read", vanished)

    assert storage._read_all() == []
    assert storage._load("cp_gone") is None
