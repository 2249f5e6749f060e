"""On-disk layout of backup sets on a destination volume."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from winswitch.settings import BackupSettings


class BackupSetLayout:
    """Paths inside one backup set::

        <set>/
        ├── manifest.json
        └── data/
            └── <source token>/...
    """

    def __init__(self, path: str | Path, settings: BackupSettings | None = None) -> None:
        self._path = Path(path)
        self._settings = settings or BackupSettings()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def data_dir(self) -> Path:
        return self._path / self._settings.data_dir_name

    @property
    def manifest_path(self) -> Path:
        return self._path / self._settings.manifest_name

    def has_manifest(self) -> bool:
        return self.manifest_path.is_file()


class BackupLayout:
    """Resolve backup sets under ``<root>/WinSwitch/Backups``.

    Set names are ``yyyyMMdd_HHmmss`` timestamps. A second set created within
    the same second gets a ``_01``, ``_02``... suffix so names stay unique
    and sort chronologically.
    """

    _SET_PATTERN = re.compile(r"^\d{8}_\d{6}(?:_\d{2})?$")

    def __init__(
        self, destination_root: str | Path, settings: BackupSettings | None = None
    ) -> None:
        self._settings = settings or BackupSettings()
        self._root = Path(destination_root)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def backups_dir(self) -> Path:
        return self._root / self._settings.app_dir_name / self._settings.backups_dir_name

    def set_layout(self, name: str) -> BackupSetLayout:
        return BackupSetLayout(self.backups_dir / name, self._settings)

    def new_set_name(self, now: datetime | None = None) -> str:
        """Return an unused set name for *now* (local time)."""
        base = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        name = base
        n = 0
        while (self.backups_dir / name).exists():
            n += 1
            name = f"{base}_{n:02d}"
        return name

    def list_sets(self) -> list[BackupSetLayout]:
        """Return existing backup sets, oldest first."""
        if not self.backups_dir.is_dir():
            return []
        names = sorted(
            child.name
            for child in self.backups_dir.iterdir()
            if child.is_dir() and self._SET_PATTERN.match(child.name)
        )
        return [self.set_layout(name) for name in names]

    def previous_set(self, name: str) -> BackupSetLayout | None:
        """Return the newest set that sorts before *name*, if any."""
        earlier = [s for s in self.list_sets() if s.name < name]
        return earlier[-1] if earlier else None
