"""Command-line interface for msatrigger.

This module provides the CLI entry point.

Commands:
- msa-trigger RAW_FILE: Record an acquired RAW file and transfer the sequence
  once it is complete
"""

from __future__ import annotations

from msatrigger.cli.config import (
    get_config_dir,
    get_default_log_file,
    load_trigger_config,
)
from msatrigger.cli.trigger import parse_mock_sequence, trigger

cli = trigger


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_config_dir",
    "get_default_log_file",
    "load_trigger_config",
    "parse_mock_sequence",
]
