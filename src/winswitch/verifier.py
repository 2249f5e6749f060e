"""Audit a backup set by re-hashing its stored data."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from winswitch.cancellation import CancellationToken
from winswitch.hasher import ContentHasher
from winswitch.layout import BackupSetLayout
from winswitch.manifest import JsonManifestStore, ManifestError, ManifestStore
from winswitch.models import (
    EntryProblem,
    ManifestEntry,
    VerificationIssue,
    VerificationReport,
)
from winswitch.restore import manifest_parts
from winswitch.settings import BackupSettings

logger = logging.getLogger(__name__)


class BackupVerifier:
    """Checks every manifest entry against the bytes under ``data/``."""

    def __init__(
        self,
        manifest_store: ManifestStore | None = None,
        settings: BackupSettings | None = None,
    ) -> None:
        self._store = manifest_store or JsonManifestStore()
        self._settings = settings or BackupSettings()

    def verify(
        self, backup_set: str | Path, token: CancellationToken | None = None
    ) -> VerificationReport:
        set_layout = BackupSetLayout(backup_set, self._settings)
        try:
            manifest = self._store.load(set_layout.manifest_path)
        except ManifestError as exc:
            logger.error("Cannot verify %s: %s", set_layout.path, exc)
            return VerificationReport(set_path=set_layout.path, manifest_error=str(exc))

        hasher = ContentHasher(bytearray(self._settings.buffer_size))
        issues: list[VerificationIssue] = []
        for entry in manifest.files:
            if token is not None:
                token.raise_if_cancelled()
            issue = self._check(set_layout, entry, hasher, token)
            if issue is not None:
                logger.warning("%s: %s %s", issue.relative_path, issue.problem, issue.detail)
                issues.append(issue)

        logger.info(
            "Verified %d files in %s, %d issues",
            len(manifest.files),
            set_layout.path,
            len(issues),
        )
        return VerificationReport(
            set_path=set_layout.path,
            files_checked=len(manifest.files),
            issues=issues,
        )

    @staticmethod
    def _check(
        set_layout: BackupSetLayout,
        entry: ManifestEntry,
        hasher: ContentHasher,
        token: CancellationToken | None,
    ) -> VerificationIssue | None:
        relative_path = entry.relative_path
        size = entry.size_bytes
        sha256 = entry.sha256
        try:
            stored = set_layout.data_dir.joinpath(*manifest_parts(relative_path))
        except ValueError as exc:
            return VerificationIssue(
                relative_path=relative_path,
                problem=EntryProblem.UNREADABLE,
                detail=str(exc),
            )
        if not stored.is_file():
            return VerificationIssue(relative_path=relative_path, problem=EntryProblem.MISSING)
        try:
            actual_size = os.stat(stored).st_size
            if actual_size != size:
                return VerificationIssue(
                    relative_path=relative_path,
                    problem=EntryProblem.SIZE_MISMATCH,
                    detail=f"expected {size} bytes, found {actual_size}",
                )
            digest = hasher.digest(stored, token)
        except OSError as exc:
            return VerificationIssue(
                relative_path=relative_path,
                problem=EntryProblem.UNREADABLE,
                detail=str(exc),
            )
        if digest.lower() != sha256.lower():
            return VerificationIssue(
                relative_path=relative_path,
                problem=EntryProblem.DIGEST_MISMATCH,
                detail=f"expected {sha256.lower()}, found {digest}",
            )
        return None
