# SPDX-License-Identifier: MIT
"""Tests for srcbld.util.writefile."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import pytest

from srcbld.core.errors import GenerateError
from srcbld.util.writefile import (
    diff_lines,
    normalize_content,
    normalize_lines,
    write_if_changed,
)


class TestNormalize:
    """Tests for line normalization."""

    def test_trailing_whitespace(self) -> None:
        """Test that trailing blanks are removed from each line."""
        assert normalize_lines(["rule cc  ", "  command = cl\t"]) == [
            "rule cc",
            "  command = cl",
        ]

    def test_blank_runs(self) -> None:
        """Test that blank runs collapse and outer blanks vanish."""
        assert normalize_lines(["", "a", "", "", "", "b", ""]) == ["a", "", "b"]

    def test_content_ends_with_newline(self) -> None:
        """Test that text and line input normalize the same way."""
        assert normalize_content("a\n\n\nb\n\n") == "a\n\nb\n"
        assert normalize_content(["a", "", "", "b"]) == "a\n\nb\n"


class TestDiffLines:
    """Tests for the dry-run diff."""

    def test_identical(self) -> None:
        """Test that equal files have no differences."""
        assert diff_lines(["a", "b"], ["a", "b"]) == []

    def test_removed_line(self) -> None:
        """Test a line that disappeared."""
        assert diff_lines(["a", "x", "b"], ["a", "b"]) == ["old 2: x"]

    def test_appended_lines(self) -> None:
        """Test lines added at the end."""
        assert diff_lines(["a"], ["a", "b", "c"]) == ["new 2: b", "new 3: c"]

    def test_truncated(self) -> None:
        """Test lines removed from the end."""
        assert diff_lines(["a", "b"], ["a"]) == ["old 2: b"]

    def test_lookahead_limit(self) -> None:
        """Test that a match beyond the lookahead is reported as a change."""
        old = ["x", "a"]
        new = ["y", "z", "x", "a"]
        assert diff_lines(old, new, lookahead=1) == [
            "old 1: x",
            "new 1: y",
            "old 2: a",
            "new 2: z",
            "new 3: x",
            "new 4: a",
        ]


class TestWriteIfChanged:
    """Tests for write_if_changed."""

    def test_creates_file_and_directory(self, tmp_path: Path) -> None:
        """Test writing a new file in a new directory."""
        path = tmp_path / "bld" / "msvc_rel.ninja"
        assert write_if_changed(path, ["line 1", "line 2  "])
        assert path.read_text() == "line 1\nline 2\n"

    def test_unchanged_file_keeps_mtime(self, tmp_path: Path) -> None:
        """Test that identical content is not rewritten."""
        path = tmp_path / "out.ninja"
        write_if_changed(path, "a\nb\n")
        before = path.stat().st_mtime_ns
        assert not write_if_changed(path, ["a", "b", ""])
        assert path.stat().st_mtime_ns == before

    def test_changed_file_is_rewritten(self, tmp_path: Path, caplog) -> None:
        """Test that different content replaces the file."""
        path = tmp_path / "out.ninja"
        path.write_text("old\n")
        with caplog.at_level(logging.INFO, logger="srcbld"):
            assert write_if_changed(path, ["new"])
        assert path.read_text() == "new\n"
        assert "Updated" in caplog.text

    def test_force(self, tmp_path: Path) -> None:
        """Test that force rewrites identical content."""
        path = tmp_path / "out.ninja"
        path.write_text("same\n")
        assert write_if_changed(path, ["same"], force=True)

    def test_dry_run_new_file(self, tmp_path: Path) -> None:
        """Test dry-run output for a file that does not exist."""
        path = tmp_path / "out.ninja"
        out = io.StringIO()
        assert not write_if_changed(path, ["a"], dry_run=True, out=out)
        assert not path.exists()
        assert out.getvalue() == f"would create {path}\n"

    def test_dry_run_changes(self, tmp_path: Path) -> None:
        """Test dry-run output for a changed file."""
        path = tmp_path / "out.ninja"
        path.write_text("a\nb\n")
        out = io.StringIO()
        assert not write_if_changed(path, ["a", "c"], dry_run=True, out=out)
        assert path.read_text() == "a\nb\n"
        assert out.getvalue().splitlines() == [
            f"{path} dryrun changes:",
            "  old 2: b",
            "  new 2: c",
        ]

    def test_dry_run_unchanged_is_silent(self, tmp_path: Path) -> None:
        """Test that a dry run of an unchanged file prints nothing."""
        path = tmp_path / "out.ninja"
        path.write_text("a\n")
        out = io.StringIO()
        assert not write_if_changed(path, ["a"], dry_run=True, out=out)
        assert out.getvalue() == ""

    def test_unwritable_location(self, tmp_path: Path) -> None:
        """Test that a path blocked by a file raises GenerateError."""
        (tmp_path / "bld").write_text("not a directory")
        with pytest.raises(GenerateError, match="cannot write"):
            write_if_changed(tmp_path / "bld" / "out.ninja", ["a"])
