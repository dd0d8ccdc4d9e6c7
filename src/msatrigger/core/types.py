"""Shared types for msatrigger.

This module provides:
- AcquisitionStatus: Ledger entry status (with its on-disk spelling)
- TriggerOutcome: Result of a single trigger invocation
- TriggerError and subclasses: Fatal error taxonomy
"""

from __future__ import annotations

from enum import Enum


class AcquisitionStatus(str, Enum):
    """Status of one expected file in the acquisition ledger.

    The values are the exact strings written to the ledger file.
    """

    PENDING = "no"
    ACQUIRED = "yes"


class TriggerOutcome(str, Enum):
    """What a trigger invocation ended up doing."""

    IGNORED = "ignored"  # Control file, ledger untouched
    PENDING = "pending"  # Ledger updated, sequence still incomplete
    TRANSFERRED = "transferred"  # Sequence complete, transfer finished


class TriggerError(Exception):
    """Base exception for fatal trigger errors."""


class ConfigMissingKeyError(TriggerError):
    """A required configuration key is absent."""

    def __init__(self, key: str, config_path: str | None = None) -> None:
        self.key = key
        self.config_path = config_path
        where = f" in {config_path}" if config_path else ""
        super().__init__(f'Missing key "{key}"{where}')


class ConfigInvalidError(TriggerError):
    """A configuration value could not be converted to its expected type."""


class ManifestUnavailableError(TriggerError):
    """The sequence descriptor could not be located or read."""


class ManifestEmptyError(TriggerError):
    """The sequence manifest (or the ledger built from it) has no entries."""


class TriggerFileNotFoundError(TriggerError):
    """The file that triggered this invocation does not exist."""


class TriggerFileNotInManifestError(TriggerError):
    """The triggering file is not an entry of the acquisition ledger."""

    def __init__(self, identifier: str, manifest_source: str = "") -> None:
        self.identifier = identifier
        self.manifest_source = manifest_source
        source = f" {manifest_source}" if manifest_source else ""
        super().__init__(f"RAW file not found in sequence{source}: {identifier}")


class LedgerCorruptError(TriggerError):
    """The ledger file holds a status value other than yes/no."""


class LedgerLockTimeoutError(TriggerError):
    """The per-directory lock could not be acquired in time."""


class DestinationPrepareError(TriggerError):
    """The destination directory could not be created or purged."""


class CopyFailureError(TriggerError):
    """Copying the source tree failed partway through.

    The destination may be partially populated. Only a later invocation for
    the same directory re-attempts the transfer; when the failed invocation
    was triggered by the last outstanding file there is no later invocation.
    """


class CleanupError(TriggerError):
    """Removing source files or directories failed."""


class MarkerWriteError(TriggerError):
    """The completion marker could not be written."""
