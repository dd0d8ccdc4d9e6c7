"""Acquisition ledger for one source directory.

This module provides:
- AcquisitionLedger: Ordered identifier -> status record with its file format
- LEDGER_FILENAME: Name of the ledger file inside the source directory

File format (shared with MassSpecTrigger 1.x):
    one "identifier=status" line per entry, identifiers lower-cased,
    status "yes" (acquired) or "no" (pending), UTF-8.

Lifecycle:
    The ledger is seeded once from the sequence manifest when no ledger file
    exists, and afterwards only loaded, updated and saved again. It goes away
    with the source directory when cleanup removes it.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from msatrigger.core.types import (
    AcquisitionStatus,
    LedgerCorruptError,
    TriggerFileNotInManifestError,
)

logger = logging.getLogger(__name__)

LEDGER_FILENAME = "RawFilesAcquired.txt"
TMP_SUFFIX = ".tmp"


class AcquisitionLedger:
    """Pending/acquired status of every expected file in a sequence.

    Entries keep insertion order; the order only makes the saved file
    deterministic.
    """

    def __init__(self, entries: dict[str, AcquisitionStatus] | None = None) -> None:
        self._entries: dict[str, AcquisitionStatus] = {}
        for identifier, status in (entries or {}).items():
            self._entries[identifier.lower()] = AcquisitionStatus(status)

    # === Construction ===

    @classmethod
    def load(cls, path: Path) -> AcquisitionLedger:
        """Load a ledger file.

        Args:
            path: Ledger file path.

        Returns:
            The stored ledger, or an empty ledger if the file does not exist.

        Raises:
            LedgerCorruptError: If a line carries an unknown status.
        """
        ledger = cls()
        if not path.exists():
            logger.debug("Acquisition status file not found, will be initialized as empty: %s", path)
            return ledger

        logger.debug("Acquisition status file exists, reading values from: %s", path)
        with open(path, encoding="utf-8") as f:
            for line in f:
                parts = line.rstrip("\r\n").split("=")
                if len(parts) != 2:
                    continue
                identifier, value = parts[0].lower(), parts[1].lower()
                try:
                    ledger._entries[identifier] = AcquisitionStatus(value)
                except ValueError as e:
                    raise LedgerCorruptError(
                        f'Unknown status "{parts[1]}" for {parts[0]} in {path}'
                    ) from e
        return ledger

    @classmethod
    def seed(
        cls,
        manifest: Iterable[str],
        is_control: Callable[[str], bool] | None = None,
    ) -> AcquisitionLedger:
        """Create a ledger with every manifest entry pending.

        Args:
            manifest: Expected identifiers, in order.
            is_control: Predicate for identifiers to leave out entirely.

        Returns:
            New ledger.
        """
        ledger = cls()
        for identifier in manifest:
            if is_control is not None and is_control(identifier):
                logger.debug("Leaving control file out of the ledger: %s", identifier)
                continue
            ledger._entries.setdefault(identifier.lower(), AcquisitionStatus.PENDING)
        return ledger

    # === Mutation ===

    def mark_acquired(self, identifier: str, manifest_source: str = "") -> None:
        """Record that a file has arrived.

        Args:
            identifier: File base name (any case).
            manifest_source: Where the manifest came from, for the error.

        Raises:
            TriggerFileNotInManifestError: If the identifier is not in the ledger.
        """
        key = identifier.lower()
        if key not in self._entries:
            raise TriggerFileNotInManifestError(identifier, manifest_source)
        logger.debug("Acquisition status file has record for RAW file, setting acquired status to yes")
        self._entries[key] = AcquisitionStatus.ACQUIRED

    # === Persistence ===

    def save(self, path: Path) -> None:
        """Write the ledger file, replacing any previous version atomically."""
        tmp_path = path.with_name(path.name + TMP_SUFFIX)
        with open(tmp_path, "w", encoding="utf-8") as f:
            for identifier, status in self._entries.items():
                f.write(f"{identifier}={status.value}\n")
        os.replace(tmp_path, path)

    # === Queries ===

    def is_complete(self) -> bool:
        """Check whether every expected file has been acquired.

        An empty ledger is never complete.
        """
        if not self._entries:
            return False
        return all(status is AcquisitionStatus.ACQUIRED for status in self._entries.values())

    def status_of(self, identifier: str) -> AcquisitionStatus | None:
        return self._entries.get(identifier.lower())

    @property
    def acquired_count(self) -> int:
        return sum(1 for s in self._entries.values() if s is AcquisitionStatus.ACQUIRED)

    @property
    def pending(self) -> list[str]:
        """Identifiers still outstanding, in ledger order."""
        return [i for i, s in self._entries.items() if s is AcquisitionStatus.PENDING]

    def items(self) -> list[tuple[str, AcquisitionStatus]]:
        return list(self._entries.items())

    def describe(self) -> str:
        """Render the entries one per line for debug logging."""
        if not self._entries:
            return "(empty)"
        return "\n".join(f"{i}={s.value}" for i, s in self._entries.items())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and identifier.lower() in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AcquisitionLedger):
            return NotImplemented
        return list(self._entries.items()) == list(other._entries.items())

    def __repr__(self) -> str:
        return f"AcquisitionLedger({self.acquired_count}/{len(self)} acquired)"
