# SPDX-License-Identifier: MIT
"""Build file generators for srcbld."""

from srcbld.generators.generator import BaseGenerator, Generator
from srcbld.generators.help import HelpGenerator
from srcbld.generators.makefile import MakefileGenerator
from srcbld.generators.ninja import NinjaGenerator

__all__ = [
    "BaseGenerator",
    "Generator",
    "HelpGenerator",
    "MakefileGenerator",
    "NinjaGenerator",
]
