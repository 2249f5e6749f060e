"""Pydantic models for backup planning, manifests and run results."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_pascal

# Ticks are 100ns intervals since 0001-01-01T00:00:00 UTC.
TICKS_PER_SECOND = 10_000_000
UNIX_EPOCH_TICKS = 621_355_968_000_000_000


def ns_to_ticks(mtime_ns: int) -> int:
    """Convert a POSIX timestamp in nanoseconds to UTC ticks."""
    return mtime_ns // 100 + UNIX_EPOCH_TICKS


def ticks_to_ns(ticks: int) -> int:
    """Convert UTC ticks to a POSIX timestamp in nanoseconds."""
    return (ticks - UNIX_EPOCH_TICKS) * 100


# ---------------------------------------------------------------------------
# Planning models
# ---------------------------------------------------------------------------


class SourceItem(BaseModel):
    """A named folder offered for backup."""

    name: str
    path: str
    selected: bool = False


class BackupPlan(BaseModel):
    """Inputs of a single backup run."""

    model_config = ConfigDict(frozen=True)

    sources: tuple[Path, ...]
    destination_root: Path
    human_timestamp: str
    notes: str | None = None


class SourceFile(BaseModel):
    """A candidate file found under a source root."""

    model_config = ConfigDict(frozen=True)

    root: Path
    path: Path
    size: int
    mtime_ns: int


# ---------------------------------------------------------------------------
# Manifest models
# ---------------------------------------------------------------------------


class ManifestEntry(BaseModel):
    """One file stored in a backup set."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    relative_path: str
    size_bytes: int
    last_write_utc_ticks: int
    sha256: str


class BackupManifest(BaseModel):
    """Catalog of every file captured in a backup set."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    app_name: str = "WinSwitch"
    version: str = "1.0.0"
    created_at: str = ""
    machine_name: str = ""
    files: list[ManifestEntry] = []
    notes: str | None = None


# ---------------------------------------------------------------------------
# Run state and results
# ---------------------------------------------------------------------------


class RunState(StrEnum):
    """Lifecycle of a backup run."""

    IDLE = "idle"
    PREPARING = "preparing"
    ENUMERATING = "enumerating"
    TRANSFERRING = "transferring"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    PARTIALLY_FAILED = "partially_failed"
    CANCELED = "canceled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {
        RunState.COMPLETED,
        RunState.PARTIALLY_FAILED,
        RunState.CANCELED,
        RunState.FAILED,
    }
)


class BackupProgress(BaseModel):
    """Snapshot reported to the progress observer."""

    model_config = ConfigDict(frozen=True)

    bytes_copied: int
    total_bytes: int
    current: str

    @property
    def percent(self) -> int:
        return int(self.bytes_copied * 100 // max(1, self.total_bytes))


class BackupResult(BaseModel):
    """Terminal outcome of a backup run."""

    state: RunState
    set_path: Path
    message: str
    total_files: int = 0
    files_copied: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    bytes_copied: int = 0
    total_bytes: int = 0
    manifest: BackupManifest | None = None

    @property
    def ok(self) -> bool:
        """``True`` when the data reached the backup set."""
        return self.state in (RunState.COMPLETED, RunState.PARTIALLY_FAILED)


class RestoreResult(BaseModel):
    """Outcome of a restore; success means the restore ran to completion."""

    success: bool
    message: str
    files_restored: int = 0
    files_failed: int = 0


class EntryProblem(StrEnum):
    """Ways a stored file can disagree with its manifest entry."""

    MISSING = "missing"
    SIZE_MISMATCH = "size_mismatch"
    DIGEST_MISMATCH = "digest_mismatch"
    UNREADABLE = "unreadable"


class VerificationIssue(BaseModel):
    """A single manifest entry that failed verification."""

    relative_path: str
    problem: EntryProblem
    detail: str = ""


class VerificationReport(BaseModel):
    """Result of re-hashing a backup set against its manifest."""

    set_path: Path
    files_checked: int = 0
    issues: list[VerificationIssue] = []
    manifest_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.manifest_error is None and not self.issues
