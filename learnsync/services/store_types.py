"""TypedDict definitions and protocols for the recovery collaborators."""

from __future__ import annotations

from typing import Any, Optional, Protocol, TypedDict, runtime_checkable

# A record is an identifiable mapping; "id" is unique within its collection.
Record = dict[str, Any]


class BackupMeta(TypedDict):
    """Metadata stored alongside each backup blob."""

    timestamp: str  # ISO 8601
    collection: str
    item_count: int


@runtime_checkable
class IdentityProvider(Protocol):
    """Answers who is signed in."""

    def get_current_user(self) -> Optional[str]:
        """Return the current user, or None when nobody is authenticated."""
        ...


@runtime_checkable
class RemoteStore(Protocol):
    """Direct access to the remote store, bypassing any cache."""

    async def get_data(self, collection: str) -> list[Record]: ...


@runtime_checkable
class DataStore(Protocol):
    """Local cache plus optional remote, seen as one store."""

    remote: Optional[RemoteStore]

    def is_reachable(self) -> bool:
        """Return True if the remote store is available."""
        ...

    async def get_data(self, collection: str) -> list[Record]:
        """Return every record of a collection from the merged view."""
        ...

    async def sync_from_remote(self) -> None:
        """Pull the remote state into the local cache."""
        ...

    async def save_data(self, collection: str, record: Record, record_id: str) -> None:
        """Upsert a record locally by id."""
        ...

    async def save_progress(
        self,
        record_id: str,
        week: Any,
        day: Any,
        lesson_index: Any,
        status: Any,
        time_spent: float = 0,
    ) -> None:
        """Write a progress entry through the domain write path."""
        ...

    async def save_dashboard_figure(self, metric_id: str, value: float) -> None:
        """Upsert a dashboard figure."""
        ...


@runtime_checkable
class BlobStorage(Protocol):
    """Durable string key/value storage for backup blobs."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...
