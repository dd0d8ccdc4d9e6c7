"""Control-file filtering.

Control files (blank or background runs, "PostBlank" by default) are kept out
of the completion calculus: they never enter the ledger, and a control file
that triggers an invocation is skipped without touching the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass

from msatrigger.core.config import DEFAULT_CONTROL_MATCHES, TriggerConfig
from msatrigger.core.paths import contains_ci


def is_control_file(name: str, control_marker: str, enabled: bool) -> bool:
    """Check whether name is a control file.

    Args:
        name: File name or identifier.
        control_marker: Substring marking control files (case-insensitive).
        enabled: Whether filtering is switched on.

    Returns:
        True if filtering is enabled and the marker occurs in name.
    """
    return enabled and contains_ci(name, control_marker)


@dataclass(frozen=True)
class ControlFilePolicy:
    """Control-file filter bound to its configured marker."""

    marker: str = DEFAULT_CONTROL_MATCHES
    enabled: bool = True

    @classmethod
    def from_config(cls, config: TriggerConfig) -> ControlFilePolicy:
        return cls(marker=config.control_file_matches, enabled=config.ignore_control_files)

    def matches(self, name: str) -> bool:
        """Check whether name should be ignored."""
        return is_control_file(name, self.marker, self.enabled)

    def __call__(self, name: str) -> bool:
        return self.matches(name)
