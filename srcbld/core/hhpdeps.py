# SPDX-License-Identifier: MIT
"""Dependency scanner for HTML Help projects.

An HTML Help project (.hhp) is an ini-style file read by hhc.exe. The
files it compiles into the .chm are named in these sections:

    [OPTIONS]
    Compiled file=help.chm
    Contents file=toc.hhc
    Index file=index.hhk
    Default topic=html/intro.htm

    [FILES]
    html/intro.htm
    html/*.htm

    [ALIAS]
    IDH_INTRO=html/intro.htm

An "#include" line naming another .hhp file is followed recursively.
Paths in an .hhp file are relative to that file; the scanner reports
them relative to the project root. ";" starts a comment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# [OPTIONS] entries that name a file compiled into the .chm.
HHP_FILE_OPTIONS: tuple[str, ...] = (
    "contents file",
    "index file",
    "dat file",
    "default topic",
)

_COMPILED_FILE = "compiled file"


def _strip_comment(text: str) -> str:
    return text.split(";", 1)[0].strip()


def _posix(path: str) -> str:
    return path.replace("\\", "/")


@dataclass
class HelpProject:
    """Result of scanning an .hhp file.

    Attributes:
        hhp_file: The scanned project, relative to the root.
        chm_file: The compiled help file hhc.exe writes.
        dependencies: Files the .chm is built from, in first-seen order.
        warnings: Files that could not be found.
    """

    hhp_file: str
    chm_file: str
    dependencies: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class HelpProjectScanner:
    """Find the files an HTML Help project compiles.

    As with DependencyScanner, an instance can be reused and every call
    to scan() starts with an empty visited set.
    """

    def __init__(self, root_dir: Path | None = None) -> None:
        self.root_dir = Path(root_dir) if root_dir else Path.cwd()
        self._visited: set[str] = set()
        self._result = HelpProject("", "")

    def scan(self, hhp_file: str | Path) -> HelpProject:
        """Scan a help project.

        The .chm name comes from "Compiled file" in the root project's
        [OPTIONS] section, or is the .hhp name with a .chm extension.

        Args:
            hhp_file: The .hhp file, relative to root_dir.
        """
        hhp_path = self.root_dir / hhp_file
        self._visited = {self._key(hhp_path)}
        self._result = HelpProject(
            self._relative(hhp_path),
            self._relative(hhp_path.with_suffix(".chm")),
        )
        if not self._scan_file(hhp_path, is_root=True):
            self._result.warnings.append(f"Cannot open {hhp_file}")

        logger.debug(
            "%s: %d dependencies, %d warnings",
            hhp_file,
            len(self._result.dependencies),
            len(self._result.warnings),
        )
        return self._result

    def _scan_file(self, path: Path, is_root: bool = False) -> bool:
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            return False

        section = ""
        for lineno, line in enumerate(text.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith(";"):
                continue
            if stripped.lower().startswith("#include"):
                self._scan_include(path, stripped, lineno)
            elif stripped.startswith("["):
                section = stripped.strip("[]").strip().upper()
            elif section.startswith("OPTION"):
                self._scan_option(path, stripped, lineno, is_root)
            elif section.startswith("ALIAS"):
                _, sep, value = _strip_comment(stripped).partition("=")
                if sep:
                    self._add_file(path, value.strip(), lineno)
            elif section.startswith("FILE") or section == "TEXT POPUPS":
                self._add_file(path, _strip_comment(stripped), lineno)
        return True

    def _scan_include(self, path: Path, line: str, lineno: int) -> None:
        rest = line[len("#include") :].strip()
        if rest.startswith('"'):
            end = rest.find('"', 1)
            rest = rest[1:end] if end > 0 else rest[1:]
        name = _posix(_strip_comment(rest))
        if ".hhp" not in name.lower():
            return  # headers for the [MAP] section are not compiled

        included = path.parent / name
        if self._key(included) in self._visited:
            return
        if not included.is_file():
            self._warn(path, lineno, name)
            return
        self._append(included)
        self._scan_file(included)

    def _scan_option(self, path: Path, line: str, lineno: int, is_root: bool) -> None:
        name, sep, value = line.partition("=")
        value = _strip_comment(value)
        if not sep or not value:
            return
        key = name.strip().lower()
        if key.startswith(HHP_FILE_OPTIONS):
            self._add_file(path, value, lineno)
        elif key.startswith(_COMPILED_FILE) and is_root:
            self._result.chm_file = self._relative(path.parent / _posix(value))

    def _add_file(self, path: Path, name: str, lineno: int) -> None:
        name = _posix(name)
        if not name:
            return
        candidate = path.parent / name
        if "*" in name or "?" in name:
            for match in sorted(candidate.parent.glob(candidate.name)):
                if match.is_file():
                    self._append(match)
            return
        if not candidate.is_file():
            self._warn(path, lineno, name)
            return
        self._append(candidate)

    def _relative(self, path: Path) -> str:
        return Path(os.path.normpath(os.path.relpath(path, self.root_dir))).as_posix()

    def _key(self, path: Path) -> str:
        return self._relative(path).lower()

    def _append(self, path: Path) -> None:
        key = self._key(path)
        if key in self._visited:
            return
        self._visited.add(key)
        self._result.dependencies.append(self._relative(path))

    def _warn(self, path: Path, lineno: int, name: str) -> None:
        self._result.warnings.append(
            f"{self._relative(path)}({lineno}):  warning: cannot locate {name}"
        )
