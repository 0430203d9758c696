# SPDX-License-Identifier: MIT
"""Generator protocol for build file generation.

Generators take a parsed ProjectModel and produce build files (ninja
scripts, a makefile) in the project's build directory.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from srcbld.core.project import ProjectModel

# Default directory, relative to the project root, for generated scripts.
DEFAULT_BUILD_DIR = "bld"

BUILD_DIR_ENV_VAR = "SRCBLD_BUILD_DIR"


def default_build_dir() -> str:
    """Return the build directory from the environment, or the default."""
    return os.environ.get(BUILD_DIR_ENV_VAR) or DEFAULT_BUILD_DIR


@runtime_checkable
class Generator(Protocol):
    """Protocol for build file generators.

    A Generator writes one or more files for the project it was created
    with. Problems that only affect one output are returned; problems
    that make every output impossible are raised.
    """

    @property
    def name(self) -> str:
        """Generator name (e.g., 'ninja', 'makefile')."""
        ...

    def write(self, *, dry_run: bool = False, force: bool = False) -> list[str]:
        """Generate and write build files.

        Args:
            dry_run: Report what would change without writing.
            force: Write files even if their content is unchanged.

        Returns:
            Recoverable errors.
        """
        ...


class BaseGenerator:
    """Base class for generators with common functionality."""

    def __init__(
        self, name: str, model: ProjectModel, builddir: str = DEFAULT_BUILD_DIR
    ) -> None:
        """Initialize a generator.

        Args:
            name: Generator name.
            model: The project to generate for.
            builddir: Directory for generated files, relative to the
                project root.
        """
        self._name = name
        self.model = model
        self.builddir = builddir.replace("\\", "/").rstrip("/") or DEFAULT_BUILD_DIR

    @property
    def name(self) -> str:
        return self._name

    @property
    def output_dir(self) -> Path:
        return self.model.root_dir / self.builddir

    def write(self, *, dry_run: bool = False, force: bool = False) -> list[str]:
        """Generate build files. Subclasses must implement."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
