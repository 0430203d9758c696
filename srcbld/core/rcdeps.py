# SPDX-License-Identifier: MIT
"""Dependency scanner for Windows resource scripts.

Resource scripts (.rc) pull in headers with #include and load files
with statements such as:

    IDI_APP      ICON    "res/app.ico"
    IDR_MANIFEST RCDATA  "res\\\\manifest.xml"

The scanner follows quoted #include directives recursively and records
every file a resource statement loads, so the generated build script
can rebuild the .res file when any of them change. Missing files are
reported as warnings; the resource compiler reports the real error.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Resource statements that load an external file.
RC_KEYWORDS: tuple[str, ...] = (
    "BITMAP",
    "CURSOR",
    "FONT",
    "HTML",
    "ICON",
    "RCDATA",
    "TYPELIB",
    "MESSAGETABLE",
)

# Framework headers that never change with the project.
_FRAMEWORK_PREFIXES: tuple[str, ...] = ("afx", "atl", "winres")


class DependencyScanner:
    """Find the files a resource script depends on.

    A scanner instance can be reused; every call to scan() starts a new
    session with an empty visited set.

    Example:
        >>> scanner = DependencyScanner(Path("."))
        >>> deps, warnings = scanner.scan("app.rc")  # doctest: +SKIP
    """

    def __init__(self, root_dir: Path | None = None) -> None:
        self.root_dir = Path(root_dir) if root_dir else Path.cwd()
        self._visited: set[str] = set()
        self._dependencies: list[str] = []
        self._warnings: list[str] = []

    def scan(self, rc_file: str | Path) -> tuple[list[str], list[str]]:
        """Scan a resource script.

        Args:
            rc_file: The resource script, relative to root_dir.

        Returns:
            Dependencies in first-seen order (paths relative to
            root_dir) and a list of warnings.
        """
        self._visited = set()
        self._dependencies = []
        self._warnings = []

        rc_path = self.root_dir / rc_file
        self._visited.add(self._key(rc_path))
        if not self._scan_file(rc_path, rc_path.parent):
            self._warnings.append(f"Cannot open {rc_file}")

        logger.debug(
            "%s: %d dependencies, %d warnings",
            rc_file,
            len(self._dependencies),
            len(self._warnings),
        )
        return list(self._dependencies), list(self._warnings)

    def _scan_file(self, path: Path, rc_dir: Path) -> bool:
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            return False

        for lineno, line in enumerate(text.splitlines(), start=1):
            stripped = line.strip()
            if stripped.startswith("#include"):
                self._scan_include(path, rc_dir, line, lineno)
            else:
                self._scan_resource(path, rc_dir, line, lineno)
        return True

    def _scan_include(self, path: Path, rc_dir: Path, line: str, lineno: int) -> None:
        start = line.find('"')
        if start < 0:
            return  # system header
        end = line.find('"', start + 1)
        if end < 0:
            return
        name = line[start + 1 : end].replace("\\\\", "/").replace("\\", "/")
        if name.lower().startswith(_FRAMEWORK_PREFIXES):
            return

        found = self._resolve(name, path.parent, rc_dir)
        if found is None:
            self._warn(path, lineno, start + 1, name)
            return
        if self._add(found):
            self._scan_file(found, rc_dir)

    def _scan_resource(self, path: Path, rc_dir: Path, line: str, lineno: int) -> None:
        stripped = line.strip()
        if not stripped or stripped[0] in "/\"":
            return
        tokens = stripped.split(None, 2)
        if len(tokens) < 3:
            return
        if not tokens[1].startswith(RC_KEYWORDS):
            return

        rest = tokens[2]
        start = rest.find('"')
        end = rest.find('"', start + 1) if start >= 0 else -1
        if end < 0 or 0 <= rest.find("{") < start:
            return  # inline data block, not a file

        name = rest[start + 1 : end].replace("\\\\", "/").replace("\\", "/")
        found = self._resolve(name, path.parent, rc_dir)
        if found is None:
            self._warn(path, lineno, line.find('"') + 1, name)
            return
        self._add(found)

    def _resolve(self, name: str, current_dir: Path, rc_dir: Path) -> Path | None:
        """Resolve a file relative to the current file, then the .rc file."""
        for base in (current_dir, rc_dir):
            candidate = base / name
            if candidate.is_file():
                return candidate
        return None

    def _relative(self, path: Path) -> str:
        return Path(os.path.normpath(os.path.relpath(path, self.root_dir))).as_posix()

    def _key(self, path: Path) -> str:
        return self._relative(path).lower()

    def _add(self, path: Path) -> bool:
        key = self._key(path)
        if key in self._visited:
            return False
        self._visited.add(key)
        self._dependencies.append(self._relative(path))
        return True

    def _warn(self, path: Path, lineno: int, column: int, name: str) -> None:
        self._warnings.append(
            f"{self._relative(path)}({lineno},{column}):  warning: "
            f"cannot locate include file {name}"
        )


def scan_rc_dependencies(
    rc_file: str | Path, root_dir: Path | None = None
) -> tuple[list[str], list[str]]:
    """Convenience wrapper around DependencyScanner.scan()."""
    return DependencyScanner(root_dir).scan(rc_file)
