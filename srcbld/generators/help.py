# SPDX-License-Identifier: MIT
"""Ninja script for compiling HTML Help.

When the project lists an .hhp file, one extra script is written next
to the build tuple scripts:

    rule compile
      command = hhc.exe $in
      description = compiling $out

    build help/app.chm : compile help/app.hhp | $
      help/toc.hhc $
      help/html/intro.htm

The implicit dependencies come from HelpProjectScanner, so the .chm is
rebuilt when any page, contents or index file changes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from srcbld.core.errors import GenerateError
from srcbld.core.hhpdeps import HelpProjectScanner
from srcbld.generators.generator import DEFAULT_BUILD_DIR, BaseGenerator
from srcbld.generators.ninja import NINJA_REQUIRED_VERSION, banner, escape_path
from srcbld.util.writefile import write_if_changed

if TYPE_CHECKING:
    from srcbld.core.project import ProjectModel

logger = logging.getLogger(__name__)

HELP_SCRIPT_NAME = "ChmHelp.ninja"


class HelpGenerator(BaseGenerator):
    """Generator for the HTML Help script.

    Example:
        gen = HelpGenerator(model)
        errors += gen.write()
    """

    def __init__(
        self, model: ProjectModel, *, builddir: str = DEFAULT_BUILD_DIR
    ) -> None:
        super().__init__("help", model, builddir)
        self.written: list[Path] = []

    @property
    def script_path(self) -> Path:
        return self.output_dir / HELP_SCRIPT_NAME

    def generate(self) -> tuple[list[str], list[str]]:
        """Assemble the help script.

        Returns:
            The script lines and the scanner's warnings.

        Raises:
            GenerateError: If the project has no .hhp file.
        """
        help_file = self.model.help_file
        if not help_file:
            raise GenerateError(f"{self.model.project_name} has no .hhp file")

        scan = HelpProjectScanner(self.model.root_dir).scan(help_file)
        lines = [
            banner(),
            "",
            f"ninja_required_version = {NINJA_REQUIRED_VERSION}",
            "",
            "builddir = build",
            "",
            "rule compile",
            "  command = hhc.exe $in",
            "  description = compiling $out",
            "",
        ]

        edge = f"build {escape_path(scan.chm_file)} : compile {escape_path(help_file)}"
        deps = [escape_path(dep) for dep in scan.dependencies]
        if not deps:
            lines.append(edge)
            return lines, scan.warnings

        lines.append(f"{edge} | $")
        lines += [f"  {dep} $" for dep in deps[:-1]]
        lines.append(f"  {deps[-1]}")
        return lines, scan.warnings

    def write(self, *, dry_run: bool = False, force: bool = False) -> list[str]:
        """Write the help script if the project has an .hhp file.

        Returns:
            Warnings about help files that could not be found.
        """
        self.written = []
        if not self.model.help_file:
            return []

        lines, errors = self.generate()
        path = self.script_path
        if write_if_changed(path, lines, dry_run=dry_run, force=force):
            self.written.append(path)
        return errors
