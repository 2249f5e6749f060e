"""Backup orchestration: enumerate, detect changes, copy, hash, catalog."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from pathlib import Path

from winswitch.cancellation import CancellationToken, OperationCancelledError
from winswitch.change_detector import CopyDecision, classify
from winswitch.copy_engine import CopyEngine
from winswitch.enumerator import TreeEnumerator
from winswitch.hasher import ContentHasher
from winswitch.layout import BackupLayout, BackupSetLayout
from winswitch.manifest import (
    JsonManifestStore,
    ManifestBuilder,
    ManifestError,
    ManifestStore,
)
from winswitch.models import (
    BackupManifest,
    BackupPlan,
    BackupProgress,
    BackupResult,
    RunState,
    SourceFile,
)
from winswitch.path_mapper import PathMapper
from winswitch.settings import BackupSettings
from winswitch.sources import distinct_roots

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BackupProgress], None]


class _BackupRun:
    """Buffer, counters and collaborators scoped to a single run."""

    def __init__(
        self,
        plan: BackupPlan,
        set_layout: BackupSetLayout,
        baseline: BackupSetLayout | None,
        settings: BackupSettings,
        on_progress: ProgressCallback | None,
        token: CancellationToken,
    ) -> None:
        self.plan = plan
        self.set_layout = set_layout
        self.baseline = baseline
        self.on_progress = on_progress
        self.token = token

        buffer = bytearray(settings.buffer_size)
        self.copier = CopyEngine(buffer)
        self.hasher = ContentHasher(buffer)
        self.enumerator = TreeEnumerator()
        self.roots = distinct_roots(plan.sources)
        self.mapper = PathMapper(set_layout.data_dir, self.roots)
        self.builder = ManifestBuilder(settings, notes=plan.notes)

        self.total_files = 0
        self.total_bytes = 0
        self.bytes_copied = 0
        self.bytes_written = 0
        self.files_copied = 0
        self.files_skipped = 0
        self.files_failed = 0

    def report(self, current: str) -> None:
        if self.on_progress is not None:
            self.on_progress(
                BackupProgress(
                    bytes_copied=self.bytes_written,
                    total_bytes=self.total_bytes,
                    current=current,
                )
            )

    def enumerate(self) -> list[SourceFile]:
        """Collect every candidate up front so totals are known before copying."""
        candidates: list[SourceFile] = []
        for root in self.roots:
            self.token.raise_if_cancelled()
            found = 0
            for source_file in self.enumerator.walk(root, self.token):
                candidates.append(source_file)
                found += 1
            logger.info("Found %d files in %s", found, root)
        self.total_files = len(candidates)
        self.total_bytes = sum(c.size for c in candidates)
        return candidates

    def transfer(self, candidates: Sequence[SourceFile]) -> None:
        for source_file in candidates:
            self.token.raise_if_cancelled()
            try:
                self._transfer_one(source_file)
            except OperationCancelledError:
                raise
            except Exception as exc:
                self.files_failed += 1
                logger.warning("Backup of %s failed: %s", source_file.path, exc)
                self.report(f"Error: {source_file.path}: {exc}")

    def _transfer_one(self, source_file: SourceFile) -> None:
        mapped = self.mapper.map(source_file.root, source_file.path)
        destination = mapped.destination

        decision = classify(source_file.size, source_file.mtime_ns, destination)
        if decision is CopyDecision.COPY_NEEDED and self._link_from_baseline(
            source_file, mapped.relative, destination
        ):
            decision = CopyDecision.SKIP_IDENTICAL

        if decision is CopyDecision.SKIP_IDENTICAL:
            self.files_skipped += 1
            logger.debug("Unchanged: %s", source_file.path)
            self.report(f"Skipped: {source_file.path}")
        else:
            current = str(source_file.path)

            def advance(chunk: int) -> None:
                self.bytes_written += chunk
                self.report(current)

            self.bytes_copied += self.copier.copy(
                source_file.path,
                destination,
                mtime_ns=source_file.mtime_ns,
                token=self.token,
                on_chunk=advance,
            )
            self.files_copied += 1

        if destination.is_file():
            digest = self.hasher.digest(destination, self.token)
            size = os.stat(destination).st_size
            self.builder.add(mapped.relative, size, source_file.mtime_ns, digest)

    def _link_from_baseline(
        self, source_file: SourceFile, relative: str, destination: Path
    ) -> bool:
        if self.baseline is None:
            return False
        previous = self.baseline.data_dir.joinpath(*relative.split("/"))
        decision = classify(source_file.size, source_file.mtime_ns, previous)
        if decision is not CopyDecision.SKIP_IDENTICAL:
            return False
        return self.copier.link(previous, destination)


class BackupOrchestrator:
    """Runs a backup plan through its lifecycle.

    States::

        Idle -> Preparing -> Enumerating -> Transferring -> Finalizing
             -> Completed | PartiallyFailed | Canceled | Failed

    Per-file failures are reported through the progress observer and never
    stop the run. A manifest that cannot be written leaves the data on disk
    and ends the run ``PartiallyFailed``.
    """

    def __init__(
        self,
        manifest_store: ManifestStore | None = None,
        settings: BackupSettings | None = None,
    ) -> None:
        self._store = manifest_store or JsonManifestStore()
        self._settings = settings or BackupSettings()
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    def _enter(self, state: RunState) -> None:
        logger.debug("Backup state: %s -> %s", self._state, state)
        self._state = state

    def run(
        self,
        plan: BackupPlan,
        on_progress: ProgressCallback | None = None,
        token: CancellationToken | None = None,
    ) -> BackupResult:
        """Execute *plan* and return its terminal result.

        Args:
            plan: Sources, destination root and label of the run.
            on_progress: Receives a snapshot after every chunk and a status
                message for every skipped or failed file.
            token: Cooperative cancellation signal.

        Returns:
            The terminal :class:`BackupResult`; this method does not raise
            for run outcomes.
        """
        token = token or CancellationToken()
        layout = BackupLayout(plan.destination_root, self._settings)

        self._enter(RunState.PREPARING)
        set_layout = layout.set_layout(layout.new_set_name())
        try:
            set_layout.path.mkdir(parents=True)
        except OSError as exc:
            msg = f"Cannot create backup folder '{set_layout.path}': {exc}"
            logger.error(msg)
            return self._finish(RunState.FAILED, set_layout.path, msg)

        baseline = layout.previous_set(set_layout.name) if self._settings.use_baseline else None
        if baseline is not None:
            logger.info("Using baseline set %s", baseline.name)
        run = _BackupRun(plan, set_layout, baseline, self._settings, on_progress, token)
        logger.info(
            "Backing up %d sources to %s (%s)",
            len(run.roots),
            set_layout.path,
            plan.human_timestamp,
        )
        try:
            self._enter(RunState.ENUMERATING)
            candidates = run.enumerate()
            run.report(f"Found {run.total_files} files ({run.total_bytes} bytes)")

            self._enter(RunState.TRANSFERRING)
            run.transfer(candidates)
        except OperationCancelledError:
            logger.info("Backup canceled")
            return self._finish(RunState.CANCELED, set_layout.path, "Backup canceled.", run)
        except Exception as exc:
            logger.error("Backup failed: %s", exc)
            return self._finish(RunState.FAILED, set_layout.path, f"Backup failed: {exc}", run)

        self._enter(RunState.FINALIZING)
        manifest = run.builder.build()
        try:
            self._store.save(set_layout.manifest_path, manifest)
        except (ManifestError, OSError) as exc:
            msg = f"Backup data complete but manifest write failed: {exc}"
            logger.error(msg)
            return self._finish(RunState.PARTIALLY_FAILED, set_layout.path, msg, run)

        msg = f"Backup complete. {len(manifest.files)} files saved."
        logger.info(msg)
        return self._finish(RunState.COMPLETED, set_layout.path, msg, run, manifest)

    def _finish(
        self,
        state: RunState,
        set_path: Path,
        message: str,
        run: _BackupRun | None = None,
        manifest: BackupManifest | None = None,
    ) -> BackupResult:
        self._enter(state)
        if run is None:
            return BackupResult(state=state, set_path=set_path, message=message)
        return BackupResult(
            state=state,
            set_path=set_path,
            message=message,
            total_files=run.total_files,
            files_copied=run.files_copied,
            files_skipped=run.files_skipped,
            files_failed=run.files_failed,
            bytes_copied=run.bytes_copied,
            total_bytes=run.total_bytes,
            manifest=manifest,
        )
