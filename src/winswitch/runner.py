"""Run backups and restores off the caller's thread."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Generic, TypeVar

from winswitch.backup import BackupOrchestrator, ProgressCallback
from winswitch.cancellation import CancellationToken
from winswitch.models import BackupPlan, BackupResult, RestoreResult
from winswitch.restore import LogCallback, RestoreOrchestrator

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RunHandle(Generic[T]):
    """A submitted run: its future result and its cancel switch."""

    def __init__(self, future: Future[T], token: CancellationToken) -> None:
        self._future = future
        self._token = token

    @property
    def token(self) -> CancellationToken:
        return self._token

    def cancel(self) -> None:
        """Ask the run to stop at its next chunk or file boundary."""
        self._token.cancel()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> T:
        return self._future.result(timeout)


class BackgroundRunner:
    """Executes one run at a time on a dedicated worker thread.

    Progress and log observers are called on the worker thread; callers that
    own UI state must hand the snapshots over to their own thread.
    """

    def __init__(
        self,
        backup: BackupOrchestrator | None = None,
        restore: RestoreOrchestrator | None = None,
    ) -> None:
        self._backup = backup or BackupOrchestrator()
        self._restore = restore or RestoreOrchestrator()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="winswitch")

    def submit_backup(
        self, plan: BackupPlan, on_progress: ProgressCallback | None = None
    ) -> RunHandle[BackupResult]:
        token = CancellationToken()
        logger.debug("Submitting backup of %d sources", len(plan.sources))
        future = self._executor.submit(self._backup.run, plan, on_progress, token)
        return RunHandle(future, token)

    def submit_restore(
        self,
        backup_set: str | Path,
        target: str | Path,
        on_log: LogCallback | None = None,
    ) -> RunHandle[RestoreResult]:
        token = CancellationToken()
        logger.debug("Submitting restore of %s", backup_set)
        future = self._executor.submit(self._restore.restore, backup_set, target, on_log, token)
        return RunHandle(future, token)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> BackgroundRunner:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
