"""Manifest accumulation and persistence."""

from __future__ import annotations

import logging
import platform
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from winswitch.models import BackupManifest, ManifestEntry, ns_to_ticks
from winswitch.settings import BackupSettings

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """Raised when a manifest cannot be written or read back."""


class ManifestStore(ABC):
    """Interface for saving and loading manifest documents."""

    @abstractmethod
    def save(self, path: str | Path, manifest: BackupManifest) -> None:
        """Persist *manifest* at *path*, creating parent directories."""
        ...

    @abstractmethod
    def load(self, path: str | Path) -> BackupManifest:
        """Read the manifest stored at *path*."""
        ...


class JsonManifestStore(ManifestStore):
    """Stores manifests as indented JSON with PascalCase field names."""

    def save(self, path: str | Path, manifest: BackupManifest) -> None:
        manifest_path = Path(path)
        try:
            manifest_path.parent.mkdir(parents=True, exist_ok=True)
            manifest_path.write_text(
                manifest.model_dump_json(indent=2, by_alias=True),
                encoding="utf-8",
            )
        except OSError as exc:
            msg = f"Cannot write manifest {manifest_path}: {exc}"
            raise ManifestError(msg) from exc
        logger.info("Wrote manifest: %s", manifest_path)

    def load(self, path: str | Path) -> BackupManifest:
        manifest_path = Path(path)
        try:
            data = manifest_path.read_text(encoding="utf-8-sig")
        except FileNotFoundError as exc:
            msg = f"Manifest not found: {manifest_path}"
            raise ManifestError(msg) from exc
        except OSError as exc:
            msg = f"Cannot read manifest {manifest_path}: {exc}"
            raise ManifestError(msg) from exc
        try:
            return BackupManifest.model_validate_json(data)
        except ValidationError as exc:
            msg = f"Invalid manifest {manifest_path}: {exc}"
            raise ManifestError(msg) from exc


class ManifestBuilder:
    """Collects entries in processing order and assembles the document."""

    def __init__(self, settings: BackupSettings, notes: str | None = None) -> None:
        self._settings = settings
        self._notes = notes
        self._entries: list[ManifestEntry] = []
        self._paths: set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, relative_path: str, size: int, mtime_ns: int, sha256: str) -> ManifestEntry:
        """Append an entry; a relative path may only be recorded once."""
        if relative_path in self._paths:
            msg = f"Duplicate manifest path: {relative_path}"
            raise ValueError(msg)
        entry = ManifestEntry(
            relative_path=relative_path,
            size_bytes=size,
            last_write_utc_ticks=ns_to_ticks(mtime_ns),
            sha256=sha256,
        )
        self._entries.append(entry)
        self._paths.add(relative_path)
        return entry

    def build(self) -> BackupManifest:
        return BackupManifest(
            app_name=self._settings.app_name,
            version=self._settings.format_version,
            created_at=datetime.now(UTC).isoformat(),
            machine_name=platform.node(),
            files=list(self._entries),
            notes=self._notes,
        )
