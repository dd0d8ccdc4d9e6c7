"""Configuration file discovery for the msa-trigger CLI.

The config file (MassSpecTrigger.cfg) is looked up, first match wins:
1. the --config option
2. the current directory
3. next to the running executable or script (also as <exe stem>.cfg)
4. the user config directory (~/.msatrigger)
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from msatrigger.core.config import OUTPUT_DIR_KEY, TriggerConfig, read_config_file
from msatrigger.core.types import ConfigInvalidError, ConfigMissingKeyError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "MassSpecTrigger.cfg"
LOG_FILENAME = "mass_spec_trigger_log_file.txt"


def get_config_dir() -> Path:
    """Get the configuration directory for msatrigger.

    Returns:
        Path to ~/.msatrigger or equivalent.
    """
    return Path.home() / ".msatrigger"


def get_default_log_file() -> Path:
    """Get the path of the log file used when --logfile is not given."""
    return get_config_dir() / LOG_FILENAME


def candidate_config_paths(explicit: Path | None = None) -> list[Path]:
    """List config file locations in lookup order."""
    if explicit is not None:
        return [Path(explicit)]

    exe = Path(sys.argv[0]).resolve()
    paths = [
        Path.cwd() / CONFIG_FILENAME,
        exe.parent / f"{exe.stem}.cfg",
        exe.parent / CONFIG_FILENAME,
        get_config_dir() / CONFIG_FILENAME,
    ]
    unique: list[Path] = []
    for path in paths:
        if path not in unique:
            unique.append(path)
    return unique


def load_trigger_config(explicit: Path | None = None) -> TriggerConfig:
    """Find, read and validate the configuration file.

    Args:
        explicit: Path given with --config, if any.

    Returns:
        Validated configuration.

    Raises:
        ConfigMissingKeyError: If no config file exists or Output_Directory
            is missing.
        ConfigInvalidError: If the file cannot be read or holds bad values.
    """
    paths = candidate_config_paths(explicit)
    config_path = next((p for p in paths if p.is_file()), None)
    if config_path is None:
        logger.error("Failed to open any configuration file after trying config file locations:")
        for path in paths:
            logger.error(f'  - "{path.absolute()}"')
        raise ConfigMissingKeyError(OUTPUT_DIR_KEY)

    logger.debug(f"Using configuration file: {config_path}")
    try:
        values = read_config_file(config_path)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigInvalidError(f"Cannot read configuration file {config_path}: {e}") from e
    return TriggerConfig.from_mapping(values, str(config_path))
