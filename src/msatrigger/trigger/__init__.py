"""Trigger module - Acquisition tracking and sequence transfer."""

from msatrigger.trigger.filtering import ControlFilePolicy, is_control_file
from msatrigger.trigger.ledger import LEDGER_FILENAME, AcquisitionLedger
from msatrigger.trigger.lock import directory_lock
from msatrigger.trigger.manifest import (
    ManifestProvider,
    OverrideManifest,
    SequenceFileManifest,
    find_sequence_file,
)
from msatrigger.trigger.pipeline import run_trigger
from msatrigger.trigger.transfer import (
    TransferOrchestrator,
    TransferResult,
    clean_source,
    copy_tree,
    prepare_destination,
    write_completion_marker,
)

__all__ = [
    # Filtering
    "ControlFilePolicy",
    "is_control_file",
    # Ledger
    "LEDGER_FILENAME",
    "AcquisitionLedger",
    # Lock
    "directory_lock",
    # Manifest
    "ManifestProvider",
    "OverrideManifest",
    "SequenceFileManifest",
    "find_sequence_file",
    # Pipeline
    "run_trigger",
    # Transfer
    "TransferOrchestrator",
    "TransferResult",
    "clean_source",
    "copy_tree",
    "prepare_destination",
    "write_completion_marker",
]
