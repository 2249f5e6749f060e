"""WinSwitch: incremental backup and restore of user folders."""

__version__ = "0.1.0"

from winswitch.backup import BackupOrchestrator
from winswitch.cancellation import CancellationToken, OperationCancelledError
from winswitch.models import (
    BackupManifest,
    BackupPlan,
    BackupProgress,
    BackupResult,
    ManifestEntry,
    RestoreResult,
    RunState,
)
from winswitch.restore import RestoreOrchestrator
from winswitch.settings import BackupSettings

__all__ = [
    "BackupManifest",
    "BackupOrchestrator",
    "BackupPlan",
    "BackupProgress",
    "BackupResult",
    "BackupSettings",
    "CancellationToken",
    "ManifestEntry",
    "OperationCancelledError",
    "RestoreOrchestrator",
    "RestoreResult",
    "RunState",
]
