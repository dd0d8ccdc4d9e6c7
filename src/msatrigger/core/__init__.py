"""Core module - Shared config, path rules and error types."""

from msatrigger.core.config import TriggerConfig, parse_config_lines, read_config_file
from msatrigger.core.paths import contains_ci, resolve_destination
from msatrigger.core.types import (
    AcquisitionStatus,
    CleanupError,
    ConfigInvalidError,
    ConfigMissingKeyError,
    CopyFailureError,
    DestinationPrepareError,
    LedgerCorruptError,
    LedgerLockTimeoutError,
    ManifestEmptyError,
    ManifestUnavailableError,
    MarkerWriteError,
    TriggerError,
    TriggerFileNotFoundError,
    TriggerFileNotInManifestError,
    TriggerOutcome,
)

__all__ = [
    # Config
    "TriggerConfig",
    "parse_config_lines",
    "read_config_file",
    # Paths
    "contains_ci",
    "resolve_destination",
    # Types
    "AcquisitionStatus",
    "TriggerOutcome",
    # Errors
    "CleanupError",
    "ConfigInvalidError",
    "ConfigMissingKeyError",
    "CopyFailureError",
    "DestinationPrepareError",
    "LedgerCorruptError",
    "LedgerLockTimeoutError",
    "ManifestEmptyError",
    "ManifestUnavailableError",
    "MarkerWriteError",
    "TriggerError",
    "TriggerFileNotFoundError",
    "TriggerFileNotInManifestError",
]
