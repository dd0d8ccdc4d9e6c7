"""Per-invocation control flow.

One call to run_trigger handles one RAW file written by the instrument:

    control-file check -> lock directory -> load or seed ledger
    -> mark file acquired -> save ledger -> completion check
    -> (if complete) transfer

The ledger is saved before the transfer starts, so a failed transfer is
retried by the next invocation for the same directory, if there is one.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from msatrigger.core.config import TriggerConfig
from msatrigger.core.types import (
    ManifestEmptyError,
    TriggerFileNotFoundError,
    TriggerOutcome,
)
from msatrigger.trigger.filtering import ControlFilePolicy
from msatrigger.trigger.ledger import LEDGER_FILENAME, AcquisitionLedger
from msatrigger.trigger.lock import directory_lock
from msatrigger.trigger.manifest import (
    ManifestProvider,
    OverrideManifest,
    SequenceFileManifest,
    find_sequence_file,
)
from msatrigger.trigger.transfer import TransferOrchestrator

logger = logging.getLogger(__name__)


def manifest_provider_for(
    source_dir: Path,
    config: TriggerConfig,
    policy: ControlFilePolicy,
    override_sequence: Sequence[str] | None = None,
) -> ManifestProvider:
    """Choose the manifest provider for a source directory.

    With an override sequence the descriptor file is bypassed. Otherwise the
    single descriptor in source_dir must exist even if the ledger is already
    seeded; it is only parsed when seeding.
    """
    if override_sequence is not None:
        logger.info(
            f"MOCK SEQUENCE MODE: mock sequence file contents are: "
            f"[ {', '.join(override_sequence)} ]"
        )
        return OverrideManifest(override_sequence, config.data_file_extension)

    descriptor = find_sequence_file(
        source_dir, config.sequence_starts_with, config.sequence_extension, policy
    )
    logger.info(f"Using sequence file: {descriptor}")
    return SequenceFileManifest(descriptor, config.data_file_extension)


def load_or_seed_ledger(
    ledger_path: Path,
    provider: ManifestProvider,
    policy: ControlFilePolicy,
) -> AcquisitionLedger:
    """Load the directory's ledger, seeding it from the manifest the first time.

    Raises:
        ManifestUnavailableError, ManifestEmptyError: From the provider.
        ManifestEmptyError: If the resulting ledger has no entries.
    """
    if ledger_path.exists():
        logger.debug(f"Acquisition status file exists at: '{ledger_path}'")
        ledger = AcquisitionLedger.load(ledger_path)
    else:
        logger.debug(f"Acquisition status file does not exist, creating: '{ledger_path}'")
        ledger = AcquisitionLedger.seed(provider.identifiers(), policy)

    if len(ledger) == 0:
        raise ManifestEmptyError(
            f"Acquisition status internal dictionary is empty. "
            f"Check {provider.source} and {ledger_path}"
        )
    return ledger


def run_trigger(
    trigger_file: str | Path,
    config: TriggerConfig,
    override_sequence: Sequence[str] | None = None,
) -> TriggerOutcome:
    """Process one newly written RAW file.

    Args:
        trigger_file: Path of the RAW file, as given by the instrument software.
        config: Configuration for this invocation.
        override_sequence: Explicit file list replacing the descriptor file.

    Returns:
        IGNORED for control files, PENDING while files are outstanding,
        TRANSFERRED once the completed sequence has been transferred.

    Raises:
        TriggerError: Any fatal condition (see msatrigger.core.types).
    """
    trigger_path = Path(trigger_file).absolute()
    trigger_name = trigger_path.name
    if not trigger_path.is_file():
        raise TriggerFileNotFoundError(f"{trigger_file} error: RAW file does not exist.")
    source_dir = trigger_path.parent

    policy = ControlFilePolicy.from_config(config)
    if policy.enabled:
        logger.info("Control files will be ignored for this sequence")
        logger.info(f'Any RAW file in this sequence with "{policy.marker}" in its name will be ignored')
        if policy.matches(trigger_name):
            logger.info(f"Provided RAW file '{trigger_name}' is a control file and will be ignored.")
            return TriggerOutcome.IGNORED
    else:
        logger.warning(
            "Control files will not be ignored. This will cause an error if the "
            "control file is saved in a different directory"
        )

    with directory_lock(source_dir, Path(config.lock_directory), config.lock_timeout):
        ledger_path = source_dir / LEDGER_FILENAME
        provider = manifest_provider_for(source_dir, config, policy, override_sequence)
        ledger = load_or_seed_ledger(ledger_path, provider, policy)

        ledger.mark_acquired(trigger_name, provider.source)
        logger.info(f"Updated acquisition status for RAW file {trigger_file}")
        ledger.save(ledger_path)
        logger.debug(f"{LEDGER_FILENAME} contents:\n{ledger.describe()}")

        progress = f"{ledger.acquired_count}/{len(ledger)} raw files acquired"
        if not ledger.is_complete():
            logger.info(f"{progress}, not performing payload activities yet")
            return TriggerOutcome.PENDING

        logger.info("All raw files have been acquired.")
        logger.info(f"{progress}, beginning payload activity ...")
        TransferOrchestrator(config).run(source_dir, str(trigger_file))

    return TriggerOutcome.TRANSFERRED
