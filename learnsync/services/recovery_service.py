"""Recovery service for learning-progress data.

Reconciles the local record cache with the remote store, keeps a latest-only
backup snapshot per collection in blob storage, restores records after
failures, and repairs the known efficiency-ratio corruption.

Every public operation returns a result object; nothing is raised past the
operation boundary.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from ..config.constants import (
    BACKUP_KEY_SUFFIX,
    BACKUP_META_SUFFIX,
    DASHBOARD_FIGURES_COLLECTION,
    DEFAULT_APP_PREFIX,
    EFFICIENCY_CORRUPTION_THRESHOLD,
    EFFICIENCY_METRIC_ID,
    EFFICIENCY_SAFE_DEFAULT,
    KNOWN_COLLECTIONS,
    PROGRESS_COLLECTION,
)
from .recovery_types import (
    BackupResult,
    CollectionLoadFailed,
    ErrorKind,
    IntegrityIssue,
    IntegrityReport,
    IntegrityResult,
    IssueKind,
    RecoveryResult,
    RefreshResult,
    RepairResult,
)
from .store_types import BackupMeta, BlobStorage, DataStore, IdentityProvider, Record

logger = logging.getLogger(__name__)


def find_metric_value(figures: Iterable[Record], metric_id: str) -> Optional[Any]:
    """Return the value of the figure with the given id, or None if absent."""
    for figure in figures:
        if figure.get("id") == metric_id:
            return figure.get("value")
    return None


def is_corrupt_metric(value: Any) -> bool:
    """Check whether a derived metric value is past the corruption threshold."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return float(value) > EFFICIENCY_CORRUPTION_THRESHOLD
    except (TypeError, ValueError):
        return False


class RecoveryCoordinator:
    """Coordinates backup, restore and repair against injected collaborators."""

    def __init__(
        self,
        data_store: DataStore,
        identity: IdentityProvider,
        blob_storage: BlobStorage,
        on_reload: Optional[Callable[[], None]] = None,
        app_prefix: str = DEFAULT_APP_PREFIX,
        collections: Iterable[str] = KNOWN_COLLECTIONS,
    ) -> None:
        self.data_store = data_store
        self.identity = identity
        self.blob_storage = blob_storage
        self.on_reload = on_reload
        self.app_prefix = app_prefix
        self.collections = tuple(collections)
        self._backups_in_flight: set[str] = set()

    # ── Keys ────────────────────────────────────────────────────────

    def backup_key(self, collection: str = PROGRESS_COLLECTION) -> str:
        """Blob key for a collection's backup, e.g. learning_portal_progress_backup."""
        return f"{self.app_prefix}_{collection}{BACKUP_KEY_SUFFIX}"

    def backup_meta_key(self, collection: str = PROGRESS_COLLECTION) -> str:
        return self.backup_key(collection) + BACKUP_META_SUFFIX

    def is_backup_running(self, collection: str = PROGRESS_COLLECTION) -> bool:
        return collection in self._backups_in_flight

    # ── Operations ──────────────────────────────────────────────────

    async def force_refresh(self) -> RefreshResult:
        """Sync from the remote store and reload every known collection.

        Requires an authenticated user. A failed sync or a failed
        collection load is logged and recorded, never fatal. The reload
        callback runs once when the refresh completes.
        """
        try:
            logger.info("Starting forced data refresh")

            user = self.identity.get_current_user()
            if not user:
                logger.warning("Refresh requested without an authenticated user")
                return RefreshResult(
                    success=False,
                    message="Not authenticated",
                    error_kind=ErrorKind.NOT_AUTHENTICATED,
                )

            if self.data_store.is_reachable():
                try:
                    await self.data_store.sync_from_remote()
                    logger.info("Remote sync completed")
                except Exception as e:
                    logger.warning(f"Remote sync failed, continuing with local data: {e}")

            counts, failures = await self._load_counts()

            if self.on_reload is not None:
                self.on_reload()

            return RefreshResult(
                success=True,
                message=f"Refreshed {len(counts)} collections",
                counts=counts,
                failures=failures,
            )
        except Exception as e:
            logger.error(f"Force refresh failed: {e}")
            return RefreshResult(
                success=False,
                message=f"Refresh failed: {e}",
                error_kind=ErrorKind.UNEXPECTED_FAILURE,
            )

    async def recover_collection(self, name: str = PROGRESS_COLLECTION) -> RecoveryResult:
        """Restore a collection into local storage.

        Precedence, first match wins:
        1. remote store reachable and non-empty: upsert remote records locally
        2. local backup blob present: replay records through the write path
        3. otherwise: NO_RECOVERY_DATA_FOUND, nothing written
        """
        try:
            logger.info(f"Attempting recovery of {name}")

            remote = self.data_store.remote
            if self.data_store.is_reachable() and remote is not None:
                records = await remote.get_data(name)
                if records:
                    _require_ids(records, name)
                    for record in records:
                        await self.data_store.save_data(name, record, record["id"])
                    logger.info(f"Recovered {len(records)} {name} items from remote")
                    return RecoveryResult(
                        success=True,
                        message=f"Recovered {len(records)} items from remote",
                        recovered=len(records),
                        source="remote",
                    )

            blob = self.blob_storage.get(self.backup_key(name))
            if blob:
                records = _decode_backup(blob, name)
                _require_ids(records, name)
                for record in records:
                    await self._replay(name, record)
                logger.info(f"Recovered {len(records)} {name} items from backup")
                return RecoveryResult(
                    success=True,
                    message=f"Recovered {len(records)} items from backup",
                    recovered=len(records),
                    source="backup",
                )

            logger.warning(f"No recovery data found for {name}")
            return RecoveryResult(
                success=False,
                message="No recovery data found",
                error_kind=ErrorKind.NO_RECOVERY_DATA_FOUND,
            )
        except Exception as e:
            logger.error(f"Recovery of {name} failed: {e}")
            return RecoveryResult(
                success=False,
                message=f"Recovery failed: {e}",
                error_kind=ErrorKind.UNEXPECTED_FAILURE,
            )

    async def create_backup(self, name: str = PROGRESS_COLLECTION) -> BackupResult:
        """Snapshot a collection into blob storage, replacing the previous one.

        Blob and metadata are serialized before either key is written. Only
        one backup per collection runs at a time; a concurrent request
        returns BACKUP_IN_PROGRESS without writing.
        """
        if name in self._backups_in_flight:
            logger.info(f"Backup of {name} already in progress, skipping")
            return BackupResult(
                success=False,
                message=f"Backup of {name} already in progress",
                error_kind=ErrorKind.BACKUP_IN_PROGRESS,
            )

        self._backups_in_flight.add(name)
        try:
            records = await self.data_store.get_data(name)
            timestamp = datetime.now(tz=timezone.utc).isoformat()
            meta: BackupMeta = {
                "timestamp": timestamp,
                "collection": name,
                "item_count": len(records),
            }
            blob = json.dumps(list(records))
            meta_blob = json.dumps(meta)

            self.blob_storage.set(self.backup_key(name), blob)
            self.blob_storage.set(self.backup_meta_key(name), meta_blob)

            logger.info(f"Backup created for {name}: {len(records)} items")
            return BackupResult(
                success=True,
                message=f"Backup created: {len(records)} items",
                items=len(records),
                timestamp=timestamp,
            )
        except Exception as e:
            logger.error(f"Backup creation for {name} failed: {e}")
            return BackupResult(
                success=False,
                message=f"Backup failed: {e}",
                error_kind=ErrorKind.UNEXPECTED_FAILURE,
            )
        finally:
            self._backups_in_flight.discard(name)

    def read_backup_metadata(self, name: str = PROGRESS_COLLECTION) -> Optional[BackupMeta]:
        """Return the metadata of the current backup, or None if there is none."""
        raw = self.blob_storage.get(self.backup_meta_key(name))
        if not raw:
            return None
        try:
            meta = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Backup metadata for {name} is not valid JSON")
            return None
        return meta if isinstance(meta, dict) else None

    async def repair_derived_metric(self, metric_id: str = EFFICIENCY_METRIC_ID) -> RepairResult:
        """Reset a corrupt dashboard figure to its safe default."""
        try:
            figures = await self.data_store.get_data(DASHBOARD_FIGURES_COLLECTION)
            value = find_metric_value(figures, metric_id)
            if not is_corrupt_metric(value):
                return RepairResult(success=True, message=f"{metric_id} is within bounds")

            await self.data_store.save_dashboard_figure(metric_id, EFFICIENCY_SAFE_DEFAULT)
            logger.info(f"Reset {metric_id} from {value} to {EFFICIENCY_SAFE_DEFAULT}")
            return RepairResult(
                success=True,
                message=f"{metric_id} reset to {EFFICIENCY_SAFE_DEFAULT}",
                repaired=True,
                previous_value=value,
            )
        except Exception as e:
            logger.error(f"Repair of {metric_id} failed: {e}")
            return RepairResult(
                success=False,
                message=f"Repair failed: {e}",
                error_kind=ErrorKind.UNEXPECTED_FAILURE,
            )

    async def validate_integrity(self) -> IntegrityResult:
        """Count every known collection and look for known corruption."""
        try:
            logger.info("Validating data integrity")
            report = IntegrityReport()

            for collection in self.collections:
                try:
                    records = await self.data_store.get_data(collection)
                except Exception as e:
                    report.counts[collection] = 0
                    report.issues.append(
                        IntegrityIssue(
                            IssueKind.COLLECTION_LOAD_FAILED,
                            f"Failed to load {collection}: {e}",
                        )
                    )
                    continue

                report.counts[collection] = len(records)
                if collection == DASHBOARD_FIGURES_COLLECTION:
                    value = find_metric_value(records, EFFICIENCY_METRIC_ID)
                    if is_corrupt_metric(value):
                        report.issues.append(
                            IntegrityIssue(
                                IssueKind.EFFICIENCY_CORRUPT,
                                "Efficiency calculation is invalid",
                            )
                        )

            logger.info(f"Integrity report: {report.counts}, {len(report.issues)} issues")
            return IntegrityResult(
                success=True,
                message=f"{len(report.issues)} issues found",
                report=report,
            )
        except Exception as e:
            logger.error(f"Data validation failed: {e}")
            return IntegrityResult(
                success=False,
                message=f"Validation failed: {e}",
                error_kind=ErrorKind.UNEXPECTED_FAILURE,
            )

    # ── Helpers ─────────────────────────────────────────────────────

    async def _load_counts(self) -> tuple[dict[str, int], list[CollectionLoadFailed]]:
        counts: dict[str, int] = {}
        failures: list[CollectionLoadFailed] = []
        for collection in self.collections:
            try:
                records = await self.data_store.get_data(collection)
                counts[collection] = len(records)
                logger.info(f"{collection}: {len(records)} items loaded")
            except Exception as e:
                logger.error(f"Failed to load {collection}: {e}")
                counts[collection] = 0
                failures.append(CollectionLoadFailed(collection, str(e)))
        return counts, failures

    async def _replay(self, name: str, record: Record) -> None:
        """Write one backed-up record through the store's normal write path."""
        if name != PROGRESS_COLLECTION:
            await self.data_store.save_data(name, record, record["id"])
            return

        await self.data_store.save_progress(
            record["id"],
            _first(record, "weekNum", "week"),
            _first(record, "dayNum", "day"),
            record.get("lessonIndex"),
            record.get("status"),
            record.get("timeSpent") or 0,
        )


def _first(record: Record, *keys: str) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return None


def _decode_backup(blob: str, name: str) -> list[Record]:
    records = json.loads(blob)
    if not isinstance(records, list):
        raise ValueError(f"Backup for {name} is not a list of records")
    return records


def _require_ids(records: list[Record], name: str) -> None:
    """Raise before any write if a record cannot be keyed."""
    for index, record in enumerate(records):
        if not isinstance(record, dict) or "id" not in record:
            raise ValueError(f"{name} record at position {index} has no id")
