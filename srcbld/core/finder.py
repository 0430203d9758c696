# SPDX-License-Identifier: MIT
"""Locate the project file for a source directory."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Searched in order; the first existing file wins.
PROJECT_FILE_NAMES: tuple[str, ...] = (
    ".srcfiles.yaml",
    "srcfiles.yaml",
    ".vscode/srcfiles.yaml",
    ".private/.srcfiles.yaml",
    "bld/.srcfiles.yaml",
    "build/.srcfiles.yaml",
    ".srcfiles",
)

DEFAULT_PROJECT_FILE = PROJECT_FILE_NAMES[0]


def find_project_file(search_dir: Path | None = None) -> Path | None:
    """Find the project file for a directory.

    Args:
        search_dir: Directory to search in (default: current dir).

    Returns:
        Path to the project file if found, None otherwise.
    """
    if search_dir is None:
        search_dir = Path.cwd()

    for name in PROJECT_FILE_NAMES:
        candidate = search_dir / name
        if candidate.is_file():
            logger.debug("Found project file %s", candidate)
            return candidate

    return None


def project_root(project_file: Path) -> Path:
    """Return the source directory a project file belongs to.

    A file found in a subdirectory such as .vscode/ or bld/ describes
    the directory above it.

    Examples:
        >>> project_root(Path("app/.vscode/srcfiles.yaml")).as_posix()
        'app'
        >>> project_root(Path("app/.srcfiles.yaml")).as_posix()
        'app'
    """
    parts = project_file.parts
    for name in PROJECT_FILE_NAMES:
        suffix = tuple(name.split("/"))
        if len(suffix) > 1 and parts[-len(suffix) :] == suffix:
            return Path(*parts[: -len(suffix)]) if len(parts) > len(suffix) else Path()
    return project_file.parent
