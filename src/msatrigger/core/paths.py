"""Path helpers for msatrigger.

This module provides:
- contains_ci: Case-insensitive substring test used by all name matching
- resolve_destination: Source directory -> destination directory rewrite
"""

from __future__ import annotations

from pathlib import Path, PurePath


def contains_ci(text: str, fragment: str) -> bool:
    """Check whether fragment occurs in text, ignoring case.

    An empty fragment matches every string.
    """
    return fragment.lower() in text.lower()


def resolve_destination(
    source_dir: str | PurePath,
    output_root: str | PurePath,
    trim_token: str = "",
) -> PurePath:
    """Compute where a sequence directory is transferred to.

    The anchor (drive, UNC share or '/') is stripped from source_dir to get a
    root-relative path. Then:

    - empty trim_token: output_root / relative path
    - relative path equals trim_token (ignoring case): output_root itself
    - trim_token found as a substring (ignoring case): everything up to and
      including the token and the following separator is dropped
    - token not found: output_root / relative path

    The token search is a plain substring search, not aware of path segments:
    "D:\\Data\\NoTransfer\\run1" with token "Transfer" resolves to
    "<output_root>\\run1". The result always stays below output_root, also
    when the cut falls inside a segment ("NoTransferX").

    Paths keep the flavour of source_dir, so PureWindowsPath inputs resolve
    the same way on every host. Plain strings use the host flavour.

    Args:
        source_dir: Directory holding the sequence files.
        output_root: Configured Output_Directory.
        trim_token: Configured Source_Trim.

    Returns:
        Destination directory.
    """
    flavour = type(source_dir) if isinstance(source_dir, PurePath) else Path
    source = flavour(source_dir)
    output = flavour(output_root)

    rel = str(source)[len(source.anchor):]
    if not trim_token:
        return output / rel
    if rel.lower() == trim_token.lower():
        return output

    pos = rel.lower().find(trim_token.lower())
    if pos == -1:
        return output / rel
    # a cut inside a segment can leave a leading separator
    return output / rel[pos + len(trim_token) + 1:].lstrip("\\/")
