"""File-backed collaborators for the recovery coordinator.

These are the stores the CLI runs against: a JSON file per collection for
the local cache (and for a mirrored "remote" directory), a directory of
blob files for backups, and a fixed identity.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from ..config.constants import (
    AUDIT_LOGS_COLLECTION,
    DASHBOARD_FIGURES_COLLECTION,
    KNOWN_COLLECTIONS,
    PROGRESS_COLLECTION,
)
from ..exceptions import BlobStorageError, CollectionLoadError, StoreError
from .store_types import Record

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def _atomic_write(path: Path, text: str) -> None:
    """Write text to path via a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class JsonCollectionStore:
    """One JSON array file per collection under a root directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, collection: str) -> Path:
        if not collection or "/" in collection or "\\" in collection or collection.startswith("."):
            raise StoreError("Invalid collection name", collection=collection)
        return self.root / f"{collection}.json"

    def exists(self) -> bool:
        return self.root.is_dir()

    def load(self, collection: str) -> list[Record]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CollectionLoadError(collection, str(e)) from e
        if not isinstance(data, list):
            raise CollectionLoadError(collection, "file does not contain a list")
        return data

    def find(self, collection: str, record_id: str) -> Optional[Record]:
        for record in self.load(collection):
            if record.get("id") == record_id:
                return record
        return None

    def save(self, collection: str, record: Record) -> str:
        """Upsert a record by id, stamping timestamp and updatedAt."""
        records = self.load(collection)
        stored = {
            **record,
            "id": record.get("id") or uuid.uuid4().hex,
            "timestamp": record.get("timestamp") or _now(),
            "updatedAt": _now(),
        }
        for index, existing in enumerate(records):
            if existing.get("id") == stored["id"]:
                records[index] = stored
                break
        else:
            records.append(stored)

        try:
            _atomic_write(self._path(collection), json.dumps(records, indent=2))
        except OSError as e:
            raise StoreError("Failed to write collection", collection=collection) from e
        return stored["id"]

    async def get_data(self, collection: str) -> list[Record]:
        return self.load(collection)


class HybridDataStore:
    """Local JSON store with an optional remote mirror."""

    def __init__(
        self,
        local: JsonCollectionStore,
        remote: Optional[JsonCollectionStore] = None,
        collections: Iterable[str] = KNOWN_COLLECTIONS,
    ) -> None:
        self.local = local
        self.remote = remote
        self.collections = tuple(collections)

    def is_reachable(self) -> bool:
        return self.remote is not None and self.remote.exists()

    async def get_data(self, collection: str) -> list[Record]:
        return self.local.load(collection)

    async def sync_from_remote(self) -> None:
        """Upsert every remote record of every known collection locally."""
        remote = self.remote
        if remote is None or not remote.exists():
            logger.info("Remote not reachable, skipping sync")
            return
        for collection in self.collections:
            records = remote.load(collection)
            for record in records:
                self.local.save(collection, record)
            logger.debug(f"Synced {len(records)} {collection} records from remote")

    async def save_data(self, collection: str, record: Record, record_id: str) -> None:
        self.local.save(collection, {**record, "id": record_id})

    async def save_progress(
        self,
        record_id: str,
        week: Any,
        day: Any,
        lesson_index: Any,
        status: Any,
        time_spent: float = 0,
    ) -> None:
        """Save a progress entry and record it in the audit log."""
        existing = self.local.find(PROGRESS_COLLECTION, record_id)
        progress = {
            "id": record_id,
            "lessonId": record_id,
            "weekNum": week,
            "dayNum": day,
            "lessonIndex": lesson_index,
            "status": status,
            "timeSpent": time_spent,
            "completedAt": _now() if status == "completed" else None,
        }
        if existing:
            progress = {**existing, **progress}
        else:
            progress["startedAt"] = _now()
        self.local.save(PROGRESS_COLLECTION, progress)

        self.local.save(
            AUDIT_LOGS_COLLECTION,
            {
                "action": "progress_saved",
                "category": PROGRESS_COLLECTION,
                "targetId": record_id,
                "metadata": {"status": status},
            },
        )

    async def save_dashboard_figure(self, metric_id: str, value: float) -> None:
        existing = self.local.find(DASHBOARD_FIGURES_COLLECTION, metric_id) or {}
        self.local.save(
            DASHBOARD_FIGURES_COLLECTION,
            {**existing, "id": metric_id, "type": metric_id, "value": value},
        )


class FileBlobStorage:
    """One file per key under a root directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or key.startswith("."):
            raise BlobStorageError("Invalid blob key", key=key)
        return self.root / key

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise BlobStorageError("Failed to read blob", key=key) from e

    def set(self, key: str, value: str) -> None:
        try:
            _atomic_write(self._path(key), value)
        except OSError as e:
            raise BlobStorageError("Failed to write blob", key=key) from e


class StaticIdentity:
    """Identity provider that always reports the configured user."""

    def __init__(self, user: Optional[str]) -> None:
        self.user = user

    def get_current_user(self) -> Optional[str]:
        return self.user or None
