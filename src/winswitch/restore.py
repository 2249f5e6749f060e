"""Replay a backup set's manifest into a target folder."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path, PurePosixPath

from winswitch.cancellation import CancellationToken, OperationCancelledError
from winswitch.copy_engine import CopyEngine, CopyError
from winswitch.layout import BackupSetLayout
from winswitch.manifest import JsonManifestStore, ManifestError, ManifestStore
from winswitch.models import RestoreResult, ticks_to_ns
from winswitch.settings import BackupSettings

logger = logging.getLogger(__name__)

LogCallback = Callable[[str], None]


def manifest_parts(relative_path: str) -> tuple[str, ...]:
    """Split a manifest path into components that stay inside a folder.

    Both ``/`` and ``\\`` are accepted as separators.

    Raises:
        ValueError: If the path is empty, absolute, carries a drive or
            climbs out with ``..``.
    """
    rel = PurePosixPath(relative_path.replace("\\", "/"))
    parts = tuple(p for p in rel.parts if p not in ("", "."))
    if not parts or rel.is_absolute() or ".." in parts or ":" in parts[0]:
        msg = f"Unsafe path in manifest: {relative_path!r}"
        raise ValueError(msg)
    return parts


class RestoreOrchestrator:
    """Copies every manifest entry from ``data/`` back to a target tree."""

    def __init__(
        self,
        manifest_store: ManifestStore | None = None,
        settings: BackupSettings | None = None,
    ) -> None:
        self._store = manifest_store or JsonManifestStore()
        self._settings = settings or BackupSettings()

    def restore(
        self,
        backup_set: str | Path,
        target: str | Path,
        on_log: LogCallback | None = None,
        token: CancellationToken | None = None,
    ) -> RestoreResult:
        """Restore *backup_set* into *target*.

        A missing or unreadable manifest aborts immediately. Entries that fail
        to copy are logged and skipped; the result is still successful when
        the restore runs to the end.
        """
        token = token or CancellationToken()
        set_layout = BackupSetLayout(backup_set, self._settings)
        target_root = Path(target)

        def log(message: str) -> None:
            logger.info(message)
            if on_log is not None:
                on_log(message)

        if not set_layout.has_manifest():
            log("Manifest not found.")
            return RestoreResult(success=False, message="Manifest not found.")

        try:
            manifest = self._store.load(set_layout.manifest_path)
        except ManifestError as exc:
            msg = f"Restore failed: {exc}"
            log(msg)
            return RestoreResult(success=False, message=msg)

        copier = CopyEngine(bytearray(self._settings.buffer_size))
        restored = 0
        failed = 0
        try:
            for entry in manifest.files:
                token.raise_if_cancelled()
                try:
                    parts = manifest_parts(entry.relative_path)
                    copier.copy(
                        set_layout.data_dir.joinpath(*parts),
                        target_root.joinpath(*parts),
                        mtime_ns=ticks_to_ns(entry.last_write_utc_ticks),
                        token=token,
                    )
                except (CopyError, ValueError) as exc:
                    failed += 1
                    logger.warning("Restore of %s failed: %s", entry.relative_path, exc)
                    if on_log is not None:
                        on_log(f"Restore error: {entry.relative_path}: {exc}")
                    continue
                restored += 1
                log(f"Restored {entry.relative_path}")
        except OperationCancelledError:
            log("Restore canceled.")
            return RestoreResult(
                success=False,
                message="Restore canceled.",
                files_restored=restored,
                files_failed=failed,
            )

        msg = f"Restore complete. {restored} files restored, {failed} failed."
        log(msg)
        return RestoreResult(
            success=True,
            message=msg,
            files_restored=restored,
            files_failed=failed,
        )
