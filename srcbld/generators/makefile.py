# SPDX-License-Identifier: MIT
"""Makefile generator.

Writes a small GNU make compatible makefile to the project root whose
goals run ninja on the generated scripts, so "make", "make debug" and
"make clean" work without remembering script names.

Whether the makefile is written is controlled by the Makefile option:

- never: the makefile is not touched
- missing: the makefile is only written if it does not exist
- always: the makefile is regenerated whenever its content changes
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from srcbld.core.options import TOOL_NAME, TOOL_VERSION, Opt, format_version
from srcbld.core.target import BuildTarget, Compiler
from srcbld.generators.generator import DEFAULT_BUILD_DIR, BaseGenerator
from srcbld.generators.ninja import build_matrix
from srcbld.util.writefile import write_if_changed

if TYPE_CHECKING:
    from srcbld.core.project import ProjectModel

logger = logging.getLogger(__name__)

MAKEFILE_NAME = "makefile"

MAKEFILE_MODES = ("never", "missing", "always")

DEFAULT_GOAL = "release"

MAKEFILE_TEMPLATE = """\
# makefile for %project% (generated by %tool%)
#
# Each goal runs ninja on one of the scripts in %builddir%/.

BLD = %builddir%

.PHONY: all release debug clean

all: %defgoal%

release:
\tninja -f $(BLD)/%compiler%%arch%_rel.ninja

debug:
\tninja -f $(BLD)/%compiler%%arch%_dbg.ninja

clean:
\tninja -f $(BLD)/%compiler%%arch%_rel.ninja -t clean
\tninja -f $(BLD)/%compiler%%arch%_dbg.ninja -t clean
"""


def preferred_target(targets: list[BuildTarget]) -> BuildTarget | None:
    """Pick the tuple the release/debug goals build.

    clang-cl is preferred when it is part of the matrix, and 64-bit is
    preferred over 32-bit.
    """
    if not targets:
        return None
    for target in targets:
        if target.compiler is Compiler.CLANG:
            return target
    return targets[0]


class MakefileGenerator(BaseGenerator):
    """Generator for the project's makefile."""

    def __init__(
        self,
        model: ProjectModel,
        *,
        builddir: str = DEFAULT_BUILD_DIR,
        compilers: Iterable[Compiler] | None = None,
        mode: str | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            model: The project to generate for.
            builddir: Directory holding the ninja scripts.
            compilers: Restrict the goals to these compilers.
            mode: Overrides the Makefile option ("never", "missing" or
                "always").
        """
        super().__init__("makefile", model, builddir)
        self.compilers = list(compilers) if compilers else None
        self.mode = (mode or model.get_option(Opt.MAKEFILE) or "missing").lower()

    @property
    def path(self) -> Path:
        return self.model.root_dir / MAKEFILE_NAME

    def render(self) -> str:
        """Return the makefile content."""
        targets = build_matrix(self.model, self.compilers)
        chosen = preferred_target(targets)
        compiler = chosen.compiler.value if chosen else Compiler.MSVC.value
        arch = "_x86" if chosen and chosen.is_32bit else ""

        text = MAKEFILE_TEMPLATE
        replacements = {
            "%project%": self.model.project_name,
            "%tool%": f"{TOOL_NAME} {format_version(TOOL_VERSION)}",
            "%builddir%": self.builddir,
            "%defgoal%": DEFAULT_GOAL,
            "%compiler%": compiler,
            "%arch%": arch,
        }
        for placeholder, value in replacements.items():
            text = text.replace(placeholder, value)

        lines = text.splitlines()
        names = [target.name for target in targets]
        if names:
            lines.append("")
            lines.append(f".PHONY: {' '.join(names)}")
        for target in targets:
            lines.append("")
            lines.append(f"{target.name}:")
            lines.append(f"\tninja -f $(BLD)/{target.name}.ninja")
        return "\n".join(lines) + "\n"

    def write(self, *, dry_run: bool = False, force: bool = False) -> list[str]:
        """Write the makefile according to the Makefile option.

        Returns:
            Recoverable errors, e.g. an unknown Makefile value.
        """
        errors: list[str] = []
        mode = self.mode
        if mode not in MAKEFILE_MODES:
            errors.append(
                f"Unknown Makefile value {mode!r} (expected never, missing or always)"
            )
            mode = "missing"

        if mode == "never":
            logger.debug("Makefile generation disabled")
            return errors
        if mode == "missing" and self.path.exists():
            logger.debug("%s exists, not updating it", self.path)
            return errors

        write_if_changed(self.path, self.render(), dry_run=dry_run, force=force)
        return errors
