"""Transfer of a completed sequence to its destination.

This module provides:
- prepare_destination: Create the destination or purge an interrupted copy
- copy_tree: Recursive copy of the source directory
- clean_source: Source removal according to the cleanup flags
- write_completion_marker: The MSAComplete.txt file downstream tools watch for
- TransferOrchestrator: Runs the steps above in their fixed order

Step order is resolve -> prepare -> copy -> clean -> marker. The marker is
written last so its presence means every earlier step succeeded.

Known open defect: copy and delete are single attempts with no retry and no
rollback. A copy that fails partway leaves a partial destination. The next
invocation for the same directory purges it (when an undersized data file
betrays it) and copies again, but when the failed invocation was triggered by
the last outstanding file no further invocation comes, and the sequence has
to be re-triggered by hand.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from msatrigger.core.config import TriggerConfig
from msatrigger.core.paths import contains_ci, resolve_destination
from msatrigger.core.types import (
    CleanupError,
    CopyFailureError,
    DestinationPrepareError,
    MarkerWriteError,
)

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
TMP_SUFFIX = ".tmp"


def timestamp() -> str:
    """Current local time as yyyy-MM-dd HH:mm:ss (19 characters)."""
    return datetime.now().strftime(TIMESTAMP_FORMAT)


@dataclass
class TransferResult:
    """Outcome of a completed transfer.

    Attributes:
        source: Source directory.
        destination: Resolved destination directory.
        copied: Destination paths written.
        skipped: Destination paths left as they were (already present).
        removed_files: Number of source files deleted.
        removed_directories: Number of source directories deleted.
        purged_destination: Whether an interrupted earlier copy was deleted.
        marker_path: Completion marker path.
        repeat_run: Value written to the marker.
    """

    source: Path
    destination: Path
    copied: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    removed_files: int = 0
    removed_directories: int = 0
    purged_destination: bool = False
    marker_path: Path | None = None
    repeat_run: bool = False


def prepare_destination(destination: Path, min_file_size: int, data_extension: str) -> bool:
    """Make the destination ready for copying.

    A missing destination is created. An existing one is scanned (top level
    only) for data files smaller than min_file_size; any such file is taken
    as a sign of an interrupted earlier copy and the whole destination tree
    is deleted and recreated. This is a size heuristic, not a verification.

    Args:
        destination: Destination directory.
        min_file_size: Size threshold in bytes.
        data_extension: Data file suffix, e.g. ".raw".

    Returns:
        True if an existing destination was purged.

    Raises:
        DestinationPrepareError: If the directory cannot be created or purged.
    """
    try:
        if not destination.exists():
            destination.mkdir(parents=True)
            logger.debug(f"Created destination directory: {destination}")
            return False

        suffix = data_extension.lower()
        undersized = [
            p
            for p in destination.iterdir()
            if p.is_file() and p.name.lower().endswith(suffix) and p.stat().st_size < min_file_size
        ]
        if not undersized:
            return False

        logger.info(
            f"Found existing small raw files, previous copy may have been interrupted. "
            f"Deleting {destination}"
        )
        for p in undersized:
            logger.debug(f"Undersized file: {p} ({p.stat().st_size} bytes)")
        shutil.rmtree(destination)
        destination.mkdir(parents=True)
        return True
    except OSError as e:
        raise DestinationPrepareError(
            f'Could not prepare destination: "{destination}". Check this directory. ({e})'
        ) from e


def copy_tree(
    source: Path,
    destination: Path,
    overwrite_older: bool,
    result: TransferResult | None = None,
) -> TransferResult:
    """Copy every file and subdirectory of source into destination.

    Files that already exist in the destination are replaced only when
    overwrite_older is set and the source file is newer. OSError propagates
    at the first failure; nothing already copied is rolled back.

    Args:
        source: Source directory.
        destination: Destination directory (created if missing).
        overwrite_older: Replace existing destination files older than source.
        result: Result to accumulate into.

    Returns:
        The result with copied and skipped paths.
    """
    if result is None:
        result = TransferResult(source=source, destination=destination)

    destination.mkdir(parents=True, exist_ok=True)
    entries = sorted(source.iterdir())

    for src in entries:
        if not src.is_file():
            continue
        dst = destination / src.name
        if dst.exists():
            newer = src.stat().st_mtime > dst.stat().st_mtime
            if not (overwrite_older and newer):
                logger.debug(f"Not overwriting existing file: {dst}")
                result.skipped.append(dst)
                continue
        logger.debug(f"Copying {src} -> {dst}")
        shutil.copy2(src, dst)
        result.copied.append(dst)

    for src in entries:
        if src.is_dir():
            copy_tree(src, destination / src.name, overwrite_older, result)

    return result


def clean_source(
    source: Path,
    remove_files: bool = False,
    remove_directories: bool = False,
    preserve_manifest: bool = True,
    manifest_suffix: str = ".sld",
) -> tuple[int, int]:
    """Remove transferred files from the source directory.

    Nothing is removed unless remove_files is set. With remove_files, every
    file in the tree goes except sequence descriptors when preserve_manifest
    is set. Directories (including source itself) are removed only when
    remove_directories is set and preserve_manifest is not, since removing
    them would take the preserved descriptor with them.

    Args:
        source: Source directory.
        remove_files: Delete files.
        remove_directories: Delete directories too.
        preserve_manifest: Keep descriptor files (and hence directories).
        manifest_suffix: Descriptor file suffix.

    Returns:
        (files removed, directories removed).

    Raises:
        CleanupError: If a file or directory cannot be removed.
    """
    if not remove_files:
        logger.info(f"Not removing any files or subdirectories from: {source}")
        return 0, 0
    if preserve_manifest:
        logger.info(f"Removing all non-sequence files but no subdirectories from: {source}")
    elif remove_directories:
        logger.info(f"Removing all files and directories from: {source}")
    else:
        logger.info(f"Removing only files from: {source}")

    suffix = manifest_suffix.lower()
    removed_files = 0
    removed_dirs = 0
    try:
        for path in sorted(source.rglob("*")):
            if not path.is_file():
                continue
            if preserve_manifest and path.name.lower().endswith(suffix):
                continue
            logger.debug(f"Removing file: {path}")
            path.unlink()
            removed_files += 1

        if remove_directories and not preserve_manifest:
            subdirs = [p for p in source.rglob("*") if p.is_dir()]
            for path in sorted(subdirs, key=lambda p: len(p.parts), reverse=True):
                logger.debug(f"Removing directory: {path}")
                path.rmdir()
                removed_dirs += 1
            logger.debug(f"Removing base directory: {source}")
            source.rmdir()
            removed_dirs += 1
    except OSError as e:
        raise CleanupError(f"Failed to clean source directory {source}: {e}") from e

    return removed_files, removed_dirs


def is_repeat_run(destination: Path | str, trigger_name: str, repeat_marker: str) -> bool:
    """Check the destination path and trigger name for the repeat-run tag."""
    return contains_ci(str(destination), repeat_marker) or contains_ci(trigger_name, repeat_marker)


def write_completion_marker(
    destination: Path,
    token_file: str,
    trigger_name: str,
    repeat_marker: str,
) -> tuple[Path, bool]:
    """Write the completion marker into the destination.

    The marker has exactly three lines:
        2024-01-31 12:00:00
        raw_file="<trigger_name>"
        repeat_run="<true|false>"

    It is written to a temporary name first and renamed, so watchers never
    see a partial marker.

    Returns:
        (marker path, repeat-run flag).

    Raises:
        MarkerWriteError: If the file cannot be written.
    """
    repeat = is_repeat_run(destination, trigger_name, repeat_marker)
    marker_path = destination / token_file
    tmp_path = destination / (token_file + TMP_SUFFIX)
    lines = [
        timestamp(),
        f'raw_file="{trigger_name}"',
        f'repeat_run="{"true" if repeat else "false"}"',
    ]
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
        os.replace(tmp_path, marker_path)
    except OSError as e:
        raise MarkerWriteError(f"Could not write trigger file {marker_path}: {e}") from e
    return marker_path, repeat


class TransferOrchestrator:
    """Moves a completed sequence to its destination.

    Usage:
        orchestrator = TransferOrchestrator(config)
        result = orchestrator.run(source_dir, trigger_name)
    """

    def __init__(self, config: TriggerConfig) -> None:
        self._config = config

    def destination_for(self, source_dir: Path) -> Path:
        """Resolve the destination directory for a source directory."""
        return Path(
            resolve_destination(source_dir, self._config.output_root, self._config.source_trim)
        )

    def run(self, source_dir: Path, trigger_name: str) -> TransferResult:
        """Run resolve, prepare, copy, clean and marker steps in order.

        Args:
            source_dir: Directory of the completed sequence.
            trigger_name: Triggering file as given on the command line.

        Returns:
            TransferResult describing what was done.

        Raises:
            DestinationPrepareError, CopyFailureError, CleanupError,
            MarkerWriteError: From the step that failed. Later steps do
                not run.
        """
        cfg = self._config
        destination = self.destination_for(source_dir)
        result = TransferResult(source=source_dir, destination=destination)

        result.purged_destination = prepare_destination(
            destination, cfg.min_file_size_to_retransfer, cfg.data_file_extension
        )

        logger.info(f'Copying directory: "{source_dir}" => "{destination}"')
        try:
            copy_tree(source_dir, destination, cfg.overwrite_older, result)
        except OSError as e:
            raise CopyFailureError(
                f'Copy of "{source_dir}" to "{destination}" failed: {e}. '
                f"The destination may be partially populated and is only recovered "
                f"by a later invocation for this directory; if this was the last "
                f"file of the sequence, re-trigger the transfer manually."
            ) from e
        logger.info(f"Copied {len(result.copied)} files, left {len(result.skipped)} existing files")

        result.removed_files, result.removed_directories = clean_source(
            source_dir,
            remove_files=cfg.remove_files,
            remove_directories=cfg.remove_directories,
            preserve_manifest=cfg.preserve_manifest,
            manifest_suffix=cfg.sequence_extension,
        )

        result.marker_path, result.repeat_run = write_completion_marker(
            destination, cfg.token_file, trigger_name, cfg.repeat_run_matches
        )
        logger.info(f"Wrote trigger file: {result.marker_path}")
        return result
