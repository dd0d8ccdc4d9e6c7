"""Tests for destination path resolution."""

from __future__ import annotations

from pathlib import Path, PurePosixPath, PureWindowsPath

from msatrigger.core.paths import contains_ci, resolve_destination


def win(path: str) -> PureWindowsPath:
    return PureWindowsPath(path)


class TestContainsCi:
    """Tests for case-insensitive substring matching."""

    def test_mixed_case(self) -> None:
        """Should match regardless of case on either side."""
        assert contains_ci("A STRING WITH ALL CAPS", "with")
        assert contains_ci("a string with all lowercase", "WITH")
        assert contains_ci("A string With MIXED case", "wItH")

    def test_empty_fragment_matches(self) -> None:
        """An empty fragment matches everything."""
        assert contains_ci("anything", "")

    def test_no_match(self) -> None:
        """Should return False when the fragment is absent."""
        assert not contains_ci("A string With MIXED case", "asdfasdf")


class TestResolveDestination:
    """Tests for resolve_destination."""

    def test_token_stripped_with_following_separator(self) -> None:
        """Everything up to and including the token and separator is dropped."""
        result = resolve_destination(win(r"D:\Transfer\rawFiles\TestSearch001"), r"Z:\Transfer", "Transfer")
        assert result == win(r"Z:\Transfer\rawFiles\TestSearch001")
        assert str(result) == r"Z:\Transfer\rawFiles\TestSearch001"

    def test_source_equal_to_token_flattens(self) -> None:
        """A source equal to the token goes straight into the output root."""
        result = resolve_destination(win(r"D:\Transfer"), r"Z:\Transfer", "Transfer")
        assert str(result) == r"Z:\Transfer"

    def test_flatten_is_case_insensitive(self) -> None:
        """The flatten comparison ignores case."""
        result = resolve_destination(win(r"D:\TRANSFER"), r"Z:\Transfer", "transfer")
        assert str(result) == r"Z:\Transfer"

    def test_empty_token_means_no_rewrite(self) -> None:
        """With an empty token the whole root-relative path is kept."""
        result = resolve_destination(win(r"D:\Transfer"), r"Z:\Transfer", "")
        assert str(result) == r"Z:\Transfer\Transfer"

    def test_token_absent_is_ignored(self) -> None:
        """A token that never occurs gives the same result as no token."""
        source = win(r"C:\RawFiles\X")
        with_token = resolve_destination(source, r"Z:\Transfer", "Transfer")
        without_token = resolve_destination(source, r"Z:\Transfer", "")
        assert str(with_token) == r"Z:\Transfer\RawFiles\X"
        assert with_token == without_token

    def test_case_insensitive_search(self) -> None:
        """The substring search ignores case."""
        result = resolve_destination(win(r"D:\transfer\Run1"), r"Z:\Out", "TRANSFER")
        assert str(result) == r"Z:\Out\Run1"

    def test_substring_matches_inside_segment(self) -> None:
        """The token is cut out even when it is only part of a segment name."""
        result = resolve_destination(win(r"D:\Data\NoTransfer\run1"), r"Z:\Out", "Transfer")
        assert str(result) == r"Z:\Out\run1"

    def test_cut_inside_segment_stays_below_output_root(self) -> None:
        """A cut ending mid-segment must not escape the output root."""
        result = resolve_destination(win(r"D:\Data\NoTransferX\run1"), r"Z:\Out", "Transfer")
        assert str(result) == r"Z:\Out\run1"

    def test_cut_inside_segment_posix(self) -> None:
        """The same holds for POSIX paths."""
        result = resolve_destination(PurePosixPath("/data/NoTransferX/run1"), "/mnt/nas", "Transfer")
        assert result == PurePosixPath("/mnt/nas/run1")

    def test_token_at_end_of_path(self) -> None:
        """A token ending the path leaves only the output root."""
        result = resolve_destination(win(r"D:\Data\Transfer"), r"Z:\Out", "Transfer")
        assert str(result) == r"Z:\Out"

    def test_deeper_token(self) -> None:
        """Only the part after the first occurrence of the token is kept."""
        result = resolve_destination(
            win(r"D:\Instruments\Transfer\2024\Transfer\Seq"), r"Z:\Out", "Transfer"
        )
        assert str(result) == r"Z:\Out\2024\Transfer\Seq"

    def test_unc_anchor_stripped(self) -> None:
        """UNC share prefixes are removed like drive letters."""
        result = resolve_destination(win(r"\\nas\share\Transfer\Seq1"), r"Z:\Out", "Transfer")
        assert str(result) == r"Z:\Out\Seq1"

    def test_posix_paths(self) -> None:
        """POSIX paths strip the leading '/' as their root."""
        result = resolve_destination(PurePosixPath("/data/Transfer/seq1"), "/mnt/nas", "Transfer")
        assert result == PurePosixPath("/mnt/nas/seq1")

    def test_posix_no_token(self) -> None:
        """Without a token the relative POSIX path is appended."""
        result = resolve_destination(PurePosixPath("/data/seq1"), "/mnt/nas", "")
        assert result == PurePosixPath("/mnt/nas/data/seq1")

    def test_string_input_uses_host_paths(self, tmp_path: Path) -> None:
        """Plain strings come back as host Path objects."""
        source = tmp_path / "Transfer" / "seq"
        result = resolve_destination(str(source), str(tmp_path / "out"), "Transfer")
        assert isinstance(result, Path)
        assert result == tmp_path / "out" / "seq"

    def test_deterministic(self) -> None:
        """Repeated calls give identical results."""
        args = (win(r"D:\Transfer\a\b"), r"Z:\T", "Transfer")
        assert resolve_destination(*args) == resolve_destination(*args)
