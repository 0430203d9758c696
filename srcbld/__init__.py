# SPDX-License-Identifier: MIT
"""
srcbld: generate ninja build scripts from a declarative project file.

A project file (.srcfiles.yaml) lists options and source files once;
srcbld turns it into one ninja script per compiler, bitness and
configuration, plus an optional makefile that drives them.
"""

from __future__ import annotations

from srcbld.core.options import TOOL_VERSION, format_version

__version__ = format_version(TOOL_VERSION)

# Re-export commonly used classes for convenient imports
from srcbld.core.project import ProjectModel  # noqa: E402
from srcbld.generators.makefile import MakefileGenerator  # noqa: E402
from srcbld.generators.ninja import NinjaGenerator  # noqa: E402

__all__ = [
    "MakefileGenerator",
    "NinjaGenerator",
    "ProjectModel",
    "__version__",
]
