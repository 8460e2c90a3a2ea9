"""Periodic backups with an explicit start/stop lifecycle."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..config.constants import AUTO_BACKUP_INTERVAL_SECONDS, PROGRESS_COLLECTION
from .recovery_service import RecoveryCoordinator
from .recovery_types import BackupResult, ErrorKind

logger = logging.getLogger(__name__)


class AutoBackupScheduler:
    """Calls RecoveryCoordinator.create_backup on a fixed interval.

    The scheduler is owned by whoever builds the coordinator and must be
    started and stopped explicitly. A tick that fires while the previous
    tick's backup is still running is skipped.

    Usage:
        scheduler = AutoBackupScheduler(coordinator, interval_seconds=300)
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        coordinator: RecoveryCoordinator,
        interval_seconds: float = AUTO_BACKUP_INTERVAL_SECONDS,
        collection: str = PROGRESS_COLLECTION,
        max_ticks: Optional[int] = None,
        run_immediately: bool = False,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.coordinator = coordinator
        self.interval_seconds = interval_seconds
        self.collection = collection
        self.max_ticks = max_ticks
        self.run_immediately = run_immediately

        self.completed = 0
        self.skipped = 0
        self.failed = 0
        self.last_result: Optional[BackupResult] = None

        self._task: Optional[asyncio.Task] = None
        self._current: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the backup loop on the running event loop."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(
            f"Auto-backup enabled for {self.collection} (every {self.interval_seconds:g}s)"
        )

    async def stop(self) -> None:
        """Cancel the loop and wait for an in-flight backup to finish."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._current is not None:
            await asyncio.gather(self._current, return_exceptions=True)
            self._current = None
        logger.info(f"Auto-backup stopped for {self.collection}")

    async def wait(self) -> None:
        """Wait until a scheduler with max_ticks has fired all of its ticks."""
        if self._task is not None:
            await self._task

    async def __aenter__(self) -> "AutoBackupScheduler":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def _run(self) -> None:
        ticks = 0
        if self.run_immediately:
            self._fire()
            ticks += 1
        while self.max_ticks is None or ticks < self.max_ticks:
            await asyncio.sleep(self.interval_seconds)
            self._fire()
            ticks += 1
        if self._current is not None:
            await asyncio.gather(asyncio.shield(self._current), return_exceptions=True)

    def _fire(self) -> None:
        if self._current is not None and not self._current.done():
            logger.info(f"Previous backup of {self.collection} still running, skipping tick")
            self.skipped += 1
            return
        self._current = asyncio.get_running_loop().create_task(self._tick())

    async def _tick(self) -> None:
        try:
            result = await self.coordinator.create_backup(self.collection)
        except Exception as e:
            self.failed += 1
            logger.warning(f"Auto-backup failed: {e}")
            return

        self.last_result = result
        if result.success:
            self.completed += 1
        elif result.error_kind == ErrorKind.BACKUP_IN_PROGRESS:
            self.skipped += 1
        else:
            self.failed += 1
            logger.warning(f"Auto-backup failed: {result.message}")
