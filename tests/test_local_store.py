"""Tests for the file-backed collaborators."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from learnsync.exceptions import BlobStorageError, CollectionLoadError, StoreError
from learnsync.services.local_store import (
    FileBlobStorage,
    HybridDataStore,
    JsonCollectionStore,
    StaticIdentity,
)
from learnsync.services.recovery_service import RecoveryCoordinator
from learnsync.services.store_types import BlobStorage, DataStore, IdentityProvider

# ── Fixtures ────────────────────────────────────────────────────────


@pytest.fixture
def local(tmp_path: Path) -> JsonCollectionStore:
    return JsonCollectionStore(tmp_path / "local")


@pytest.fixture
def remote(tmp_path: Path) -> JsonCollectionStore:
    root = tmp_path / "remote"
    root.mkdir()
    return JsonCollectionStore(root)


@pytest.fixture
def store(local: JsonCollectionStore, remote: JsonCollectionStore) -> HybridDataStore:
    return HybridDataStore(local, remote)


# ── JsonCollectionStore ─────────────────────────────────────────────


class TestJsonCollectionStore:
    def test_missing_collection_is_empty(self, local: JsonCollectionStore) -> None:
        assert local.load("progress") == []

    def test_save_upserts_by_id(self, local: JsonCollectionStore) -> None:
        local.save("notes", {"id": "n1", "content": "first"})
        local.save("notes", {"id": "n2", "content": "other"})
        local.save("notes", {"id": "n1", "content": "second"})

        records = local.load("notes")
        assert [r["id"] for r in records] == ["n1", "n2"]
        assert records[0]["content"] == "second"

    def test_save_stamps_timestamps(self, local: JsonCollectionStore) -> None:
        local.save("notes", {"id": "n1", "timestamp": "2026-01-01T00:00:00+00:00"})
        record = local.find("notes", "n1")
        assert record["timestamp"] == "2026-01-01T00:00:00+00:00"
        assert "updatedAt" in record

    def test_save_generates_missing_id(self, local: JsonCollectionStore) -> None:
        record_id = local.save("notes", {"content": "x"})
        assert record_id
        assert local.find("notes", record_id)["content"] == "x"

    def test_corrupt_file_raises(self, local: JsonCollectionStore) -> None:
        local.root.mkdir(parents=True)
        (local.root / "notes.json").write_text("{oops")
        with pytest.raises(CollectionLoadError) as exc_info:
            local.load("notes")
        assert exc_info.value.collection == "notes"

    def test_non_list_file_raises(self, local: JsonCollectionStore) -> None:
        local.root.mkdir(parents=True)
        (local.root / "notes.json").write_text(json.dumps({"id": "n1"}))
        with pytest.raises(CollectionLoadError):
            local.load("notes")

    @pytest.mark.parametrize("name", ["", "../outside", "nested/notes", "..\\outside", ".hidden"])
    def test_rejects_unsafe_collection_names(self, local: JsonCollectionStore, name: str) -> None:
        with pytest.raises(StoreError):
            local.save(name, {"id": "n1"})
        with pytest.raises(StoreError):
            local.load(name)
        assert not (local.root.parent / "outside.json").exists()


# ── HybridDataStore ─────────────────────────────────────────────────


class TestHybridDataStore:
    def test_satisfies_protocols(self, store: HybridDataStore, tmp_path: Path) -> None:
        assert isinstance(store, DataStore)
        assert isinstance(FileBlobStorage(tmp_path), BlobStorage)
        assert isinstance(StaticIdentity("ana"), IdentityProvider)

    def test_reachability(self, local: JsonCollectionStore, tmp_path: Path) -> None:
        assert not HybridDataStore(local).is_reachable()
        assert not HybridDataStore(local, JsonCollectionStore(tmp_path / "absent")).is_reachable()
        (tmp_path / "present").mkdir()
        assert HybridDataStore(local, JsonCollectionStore(tmp_path / "present")).is_reachable()

    @pytest.mark.asyncio
    async def test_sync_from_remote_upserts_locally(self, store, local, remote) -> None:
        remote.save("progress", {"id": "a", "status": "completed"})
        remote.save("notes", {"id": "n1"})
        local.save("progress", {"id": "b", "status": "in_progress"})

        await store.sync_from_remote()

        assert {r["id"] for r in await store.get_data("progress")} == {"a", "b"}
        assert len(await store.get_data("notes")) == 1

    @pytest.mark.asyncio
    async def test_sync_without_remote_is_noop(self, local) -> None:
        await HybridDataStore(local).sync_from_remote()
        assert local.load("progress") == []

    @pytest.mark.asyncio
    async def test_save_progress_new_and_update(self, store, local) -> None:
        await store.save_progress("w1d1l0", 1, 1, 0, "in_progress")
        first = local.find("progress", "w1d1l0")
        assert first["startedAt"]
        assert first["completedAt"] is None

        await store.save_progress("w1d1l0", 1, 1, 0, "completed", 25)
        second = local.find("progress", "w1d1l0")
        assert second["startedAt"] == first["startedAt"]
        assert second["completedAt"]
        assert second["timeSpent"] == 25
        assert len(local.load("progress")) == 1

    @pytest.mark.asyncio
    async def test_save_progress_writes_audit_log(self, store, local) -> None:
        await store.save_progress("w1d1l0", 1, 1, 0, "completed")
        logs = local.load("auditLogs")
        assert len(logs) == 1
        assert logs[0]["action"] == "progress_saved"
        assert logs[0]["targetId"] == "w1d1l0"

    @pytest.mark.asyncio
    async def test_save_dashboard_figure_upserts(self, store, local) -> None:
        await store.save_dashboard_figure("efficiency_ratio", 5000)
        await store.save_dashboard_figure("efficiency_ratio", 0)
        figures = local.load("dashboardFigures")
        assert len(figures) == 1
        assert figures[0]["value"] == 0

    @pytest.mark.asyncio
    async def test_save_data_uses_given_id(self, store, local) -> None:
        await store.save_data("planners", {"id": "ignored", "title": "plan"}, "p1")
        assert local.find("planners", "p1")["title"] == "plan"


# ── FileBlobStorage / StaticIdentity ────────────────────────────────


class TestFileBlobStorage:
    def test_get_missing(self, tmp_path: Path) -> None:
        assert FileBlobStorage(tmp_path / "blobs").get("k") is None

    def test_set_and_overwrite(self, tmp_path: Path) -> None:
        blobs = FileBlobStorage(tmp_path / "blobs")
        blobs.set("k", "one")
        blobs.set("k", "two")
        assert blobs.get("k") == "two"
        assert [p.name for p in (tmp_path / "blobs").iterdir()] == ["k"]

    @pytest.mark.parametrize("key", ["", "../escape", ".hidden"])
    def test_invalid_keys(self, tmp_path: Path, key: str) -> None:
        with pytest.raises(BlobStorageError):
            FileBlobStorage(tmp_path).set(key, "x")


def test_static_identity() -> None:
    assert StaticIdentity("ana").get_current_user() == "ana"
    assert StaticIdentity("").get_current_user() is None
    assert StaticIdentity(None).get_current_user() is None


# ── End to end with real files ──────────────────────────────────────


@pytest.mark.asyncio
async def test_backup_then_recover_after_data_loss(tmp_path: Path, local: JsonCollectionStore) -> None:
    store = HybridDataStore(local)
    coordinator = RecoveryCoordinator(
        data_store=store,
        identity=StaticIdentity("ana"),
        blob_storage=FileBlobStorage(tmp_path / "blobs"),
    )
    await store.save_progress("w1d1l0", 1, 1, 0, "completed", 30)
    await store.save_progress("w1d1l1", 1, 1, 1, "in_progress")

    backup = await coordinator.create_backup()
    assert backup.items == 2

    (local.root / "progress.json").unlink()
    result = await coordinator.recover_collection()

    assert result.success
    assert result.source == "backup"
    restored = {r["id"]: r for r in local.load("progress")}
    assert set(restored) == {"w1d1l0", "w1d1l1"}
    assert restored["w1d1l0"]["timeSpent"] == 30
