# SPDX-License-Identifier: MIT
"""Locations inside project files, used to decorate error messages."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SourceLocation:
    """A position in a project file.

    Attributes:
        filename: Path of the file, as the user would recognize it.
        lineno: 1-based line number, or 0 when the whole file is meant.
    """

    filename: str
    lineno: int = 0

    @classmethod
    def of(cls, path: Path | str, lineno: int = 0) -> SourceLocation:
        return cls(str(path), lineno)

    def __str__(self) -> str:
        if self.lineno:
            return f"{self.filename}:{self.lineno}"
        return self.filename
