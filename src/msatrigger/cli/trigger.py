"""The msa-trigger command.

Called by the instrument software after each RAW file is written, e.g. from
the Xcalibur post-processing dialog:

    msa-trigger "%R"

Exit status is 0 when the file was recorded (and the sequence transferred if
it completed) or ignored as a control file, and 1 on any error.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from msatrigger import __app_name__, __version__
from msatrigger.cli.config import get_default_log_file, load_trigger_config
from msatrigger.cli.log import close_logging, enable_debug_logging, setup_logging
from msatrigger.core.types import TriggerError
from msatrigger.trigger.pipeline import run_trigger

logger = logging.getLogger(__name__)


def parse_mock_sequence(value: str) -> list[str]:
    """Split a semicolon-separated file list, dropping blank entries."""
    return [part.strip() for part in value.split(";") if part.strip()]


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name=__app_name__)
@click.argument("raw_file", required=False, metavar='"file_path.raw"')
@click.option(
    "--mock",
    "-m",
    metavar='"file1.raw;file2.raw;..."',
    help=(
        "Mock sequence: a semicolon-separated list of RAW files (complete path) "
        "which will stand in for the contents of the sequence file."
    ),
)
@click.option(
    "--logfile",
    "-l",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Complete path to log file (default: ~/.msatrigger/mass_spec_trigger_log_file.txt).",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: search for MassSpecTrigger.cfg).",
)
@click.option("--debug", "-d", is_flag=True, help="Enable debug output.")
def trigger(
    raw_file: str | None,
    mock: str | None,
    logfile: Path | None,
    config_path: Path | None,
    debug: bool,
) -> None:
    """Record an acquired RAW file and transfer its sequence once complete.

    RAW_FILE is the complete path of the file the instrument just wrote.
    """
    setup_logging(logfile or get_default_log_file(), debug)
    try:
        logger.info("")
        logger.info("=============================================")
        logger.info(f"COMMAND: {' '.join(sys.argv)}")

        if not raw_file:
            logger.error("Please pass in the full path to a RAW file (using %R parameter in Xcalibur)")
            sys.exit(1)

        override = parse_mock_sequence(mock) if mock else None

        try:
            config = load_trigger_config(config_path)
            if config.debug:
                enable_debug_logging()
            outcome = run_trigger(raw_file, config, override)
        except TriggerError as e:
            logger.error(f"Error processing {raw_file}: {e}")
            sys.exit(1)
        except Exception as e:
            logger.error(f"Unexpected error processing {raw_file}: {e}")
            logger.debug("Traceback:", exc_info=True)
            sys.exit(1)

        logger.debug(f"Finished with outcome: {outcome.value}")
    finally:
        close_logging()
