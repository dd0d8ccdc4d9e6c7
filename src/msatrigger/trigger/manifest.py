"""Sequence manifest providers.

This module provides:
- ManifestProvider: Protocol for anything that lists expected RAW files
- OverrideManifest: Manifest from an explicit list (--mock)
- SequenceFileManifest: Manifest read from a sequence descriptor file
- find_sequence_file: Locate the single descriptor in a source directory
- Descriptor readers for .csv (Xcalibur export) and .txt (plain list)

Readers for other descriptor formats (e.g. the vendor's binary .sld) are
registered under the "msatrigger.sequence_readers" entry-point group, keyed
by the suffix without its dot:

    [project.entry-points."msatrigger.sequence_readers"]
    sld = my_package.sld:read_sld_samples

A reader takes the descriptor path and returns the raw file names it lists.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Callable, Iterable
from importlib.metadata import entry_points
from pathlib import Path, PureWindowsPath
from typing import Protocol

from msatrigger.core.types import ManifestEmptyError, ManifestUnavailableError
from msatrigger.trigger.filtering import ControlFilePolicy

logger = logging.getLogger(__name__)

SEQUENCE_READER_GROUP = "msatrigger.sequence_readers"
FILE_NAME_COLUMN = "file name"

SequenceReader = Callable[[Path], list[str]]


def read_csv_sequence(path: Path) -> list[str]:
    """Read sample file names from an Xcalibur sequence CSV export.

    The export may start with a "Bracket Type=" line; the first row with a
    "File Name" cell is the header. Rows with an empty file name are skipped.
    """
    with open(path, encoding="utf-8-sig", newline="") as f:
        rows = list(csv.reader(f))

    column = None
    names: list[str] = []
    for row in rows:
        cells = [cell.strip() for cell in row]
        if column is None:
            lowered = [cell.lower() for cell in cells]
            if FILE_NAME_COLUMN in lowered:
                column = lowered.index(FILE_NAME_COLUMN)
            continue
        if column < len(cells) and cells[column]:
            names.append(cells[column])

    if column is None:
        raise ValueError(f'no "File Name" column in {path}')
    return names


def read_list_sequence(path: Path) -> list[str]:
    """Read one file name per line, skipping blanks and '#' comments."""
    names = []
    with open(path, encoding="utf-8-sig") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                names.append(line)
    return names


BUILTIN_READERS: dict[str, SequenceReader] = {
    ".csv": read_csv_sequence,
    ".txt": read_list_sequence,
}


def get_sequence_reader(suffix: str) -> SequenceReader:
    """Find the reader for a descriptor suffix.

    Args:
        suffix: Descriptor file suffix, e.g. ".csv".

    Returns:
        Reader callable.

    Raises:
        ManifestUnavailableError: If no reader handles the suffix.
    """
    suffix = suffix.lower()
    if suffix in BUILTIN_READERS:
        return BUILTIN_READERS[suffix]

    name = suffix.lstrip(".")
    for ep in entry_points(group=SEQUENCE_READER_GROUP):
        if ep.name.lower() == name:
            logger.debug("Using sequence reader %s for %s files", ep.value, suffix)
            reader: SequenceReader = ep.load()
            return reader

    raise ManifestUnavailableError(
        f'No sequence reader available for "{suffix}" files '
        f'(register one in the "{SEQUENCE_READER_GROUP}" entry-point group)'
    )


def normalize_identifier(name: str, data_extension: str) -> str:
    """Turn a file name or path into a ledger identifier.

    The identifier is the lower-cased base name. Both '/' and '\\' count as
    separators. The data extension is appended when missing.
    """
    identifier = PureWindowsPath(name.strip()).name.lower()
    if data_extension and not identifier.endswith(data_extension.lower()):
        identifier += data_extension.lower()
    return identifier


def _unique_identifiers(names: Iterable[str], data_extension: str) -> list[str]:
    identifiers: dict[str, None] = {}
    for name in names:
        if not name or not name.strip():
            continue
        identifiers.setdefault(normalize_identifier(name, data_extension), None)
    return list(identifiers)


class ManifestProvider(Protocol):
    """Source of expected file identifiers for one sequence."""

    @property
    def source(self) -> str:
        """Human-readable origin of the manifest."""
        ...

    def identifiers(self) -> list[str]:
        """Return the ordered, de-duplicated identifiers."""
        ...


class OverrideManifest:
    """Manifest given explicitly, bypassing the descriptor file."""

    def __init__(self, paths: Iterable[str], data_extension: str = ".raw") -> None:
        self._paths = list(paths)
        self._data_extension = data_extension

    @property
    def source(self) -> str:
        return "mock sequence"

    def identifiers(self) -> list[str]:
        identifiers = _unique_identifiers(self._paths, self._data_extension)
        if not identifiers:
            raise ManifestEmptyError("Mock sequence contains no RAW files")
        return identifiers


class SequenceFileManifest:
    """Manifest read from a sequence descriptor file."""

    def __init__(self, descriptor: Path, data_extension: str = ".raw") -> None:
        self.descriptor = Path(descriptor)
        self._data_extension = data_extension

    @property
    def source(self) -> str:
        return str(self.descriptor)

    def identifiers(self) -> list[str]:
        """Read the descriptor.

        Raises:
            ManifestUnavailableError: If the descriptor cannot be read.
            ManifestEmptyError: If it lists no files.
        """
        reader = get_sequence_reader(self.descriptor.suffix)
        try:
            names = reader(self.descriptor)
        except (OSError, ValueError, csv.Error) as e:
            raise ManifestUnavailableError(
                f"Error opening the sequence file: {self.descriptor}, {e}"
            ) from e

        identifiers = _unique_identifiers(names, self._data_extension)
        if not identifiers:
            raise ManifestEmptyError(f"Sequence file lists no RAW files: {self.descriptor}")
        return identifiers


def find_sequence_file(
    directory: Path,
    starts_with: str,
    extension: str,
    policy: ControlFilePolicy | None = None,
) -> Path:
    """Locate the single sequence descriptor in a source directory.

    Candidates are top-level files named <starts_with>*<extension> (both
    compared case-insensitively). Names matching the control-file policy are
    not candidates.

    Args:
        directory: Source directory.
        starts_with: Required name prefix (Sequence_Starts_With).
        extension: Descriptor suffix (Sequence_Extension).
        policy: Control-file policy, if any.

    Returns:
        Path of the descriptor.

    Raises:
        ManifestUnavailableError: Unless exactly one candidate exists.
    """
    prefix = starts_with.lower()
    suffix = extension.lower()
    try:
        candidates = sorted(
            p
            for p in directory.iterdir()
            if p.is_file()
            and p.name.lower().startswith(prefix)
            and p.name.lower().endswith(suffix)
            and not (policy is not None and policy.matches(p.name))
        )
    except OSError as e:
        raise ManifestUnavailableError(f"Cannot list directory {directory}: {e}") from e

    if len(candidates) != 1:
        raise ManifestUnavailableError(
            f'Problem finding sequence file: directory "{directory}" contains '
            f"{len(candidates)} matching sequence files ({starts_with}*{extension}), "
            f"directory must contain a single matching sequence file."
        )
    return candidates[0]
