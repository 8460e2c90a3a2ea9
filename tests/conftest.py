"""Shared pytest fixtures for learnsync tests."""

from __future__ import annotations

from typing import Any, Optional

import pytest

from learnsync.services.recovery_service import RecoveryCoordinator


class FakeRemote:
    """Remote store serving canned records per collection."""

    def __init__(self) -> None:
        self.collections: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[str] = []

    async def get_data(self, collection: str) -> list[dict[str, Any]]:
        self.calls.append(collection)
        return [dict(r) for r in self.collections.get(collection, [])]


class FakeDataStore:
    """In-memory hybrid store that records every write."""

    def __init__(self) -> None:
        self.local: dict[str, dict[str, dict[str, Any]]] = {}
        self.remote: Optional[FakeRemote] = FakeRemote()
        self.reachable = False
        self.failing: set[str] = set()
        self.sync_calls = 0
        self.sync_error: Optional[Exception] = None
        self.save_data_calls: list[tuple[str, str]] = []
        self.progress_calls: list[tuple] = []
        self.figure_calls: list[tuple[str, float]] = []

    def seed(self, collection: str, records: list[dict[str, Any]]) -> None:
        self.local[collection] = {r["id"]: dict(r) for r in records}

    def is_reachable(self) -> bool:
        return self.reachable

    async def get_data(self, collection: str) -> list[dict[str, Any]]:
        if collection in self.failing:
            raise RuntimeError(f"{collection} unavailable")
        return [dict(r) for r in self.local.get(collection, {}).values()]

    async def sync_from_remote(self) -> None:
        self.sync_calls += 1
        if self.sync_error is not None:
            raise self.sync_error

    async def save_data(self, collection: str, record: dict[str, Any], record_id: str) -> None:
        self.save_data_calls.append((collection, record_id))
        self.local.setdefault(collection, {})[record_id] = {**record, "id": record_id}

    async def save_progress(self, record_id, week, day, lesson_index, status, time_spent=0):
        self.progress_calls.append((record_id, week, day, lesson_index, status, time_spent))
        self.local.setdefault("progress", {})[record_id] = {
            "id": record_id,
            "weekNum": week,
            "dayNum": day,
            "lessonIndex": lesson_index,
            "status": status,
            "timeSpent": time_spent,
        }

    async def save_dashboard_figure(self, metric_id: str, value: float) -> None:
        self.figure_calls.append((metric_id, value))
        figures = self.local.setdefault("dashboardFigures", {})
        figures[metric_id] = {**figures.get(metric_id, {}), "id": metric_id, "value": value}

    @property
    def write_count(self) -> int:
        return len(self.save_data_calls) + len(self.progress_calls) + len(self.figure_calls)


class FakeBlobStorage:
    """Dict-backed blob storage that counts reads and writes."""

    def __init__(self) -> None:
        self.blobs: dict[str, str] = {}
        self.get_calls: list[str] = []
        self.set_calls: list[str] = []

    def get(self, key: str) -> Optional[str]:
        self.get_calls.append(key)
        return self.blobs.get(key)

    def set(self, key: str, value: str) -> None:
        self.set_calls.append(key)
        self.blobs[key] = value


class FakeIdentity:
    def __init__(self, user: Optional[str] = "ana") -> None:
        self.user = user

    def get_current_user(self) -> Optional[str]:
        return self.user


@pytest.fixture
def data_store() -> FakeDataStore:
    return FakeDataStore()


@pytest.fixture
def blob_storage() -> FakeBlobStorage:
    return FakeBlobStorage()


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture
def reloads() -> list[int]:
    """Collects one entry per reload signal."""
    return []


@pytest.fixture
def coordinator(
    data_store: FakeDataStore,
    identity: FakeIdentity,
    blob_storage: FakeBlobStorage,
    reloads: list[int],
) -> RecoveryCoordinator:
    return RecoveryCoordinator(
        data_store=data_store,
        identity=identity,
        blob_storage=blob_storage,
        on_reload=lambda: reloads.append(1),
    )


@pytest.fixture
def progress_records() -> list[dict[str, Any]]:
    return [
        {"id": "w1d1l0", "weekNum": 1, "dayNum": 1, "lessonIndex": 0, "status": "completed", "timeSpent": 30},
        {"id": "w1d1l1", "weekNum": 1, "dayNum": 1, "lessonIndex": 1, "status": "in_progress"},
        {"id": "w1d2l0", "weekNum": 1, "dayNum": 2, "lessonIndex": 0, "status": "completed", "timeSpent": 12},
    ]
