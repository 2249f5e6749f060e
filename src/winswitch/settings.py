"""Tunable settings for backup and restore runs."""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_BUFFER_SIZE = 1024 * 1024


class BackupSettings(BaseModel):
    """Folder names, manifest identity and I/O sizing for a run."""

    buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, gt=0)
    app_dir_name: str = "WinSwitch"
    backups_dir_name: str = "Backups"
    data_dir_name: str = "data"
    manifest_name: str = "manifest.json"
    app_name: str = "WinSwitch"
    format_version: str = "1.0.0"
    use_baseline: bool = True
