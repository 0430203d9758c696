# SPDX-License-Identifier: MIT
"""Ninja build file generator.

One script is written per build tuple (compiler, bitness and
configuration), e.g. bld/msvc_dbg.ninja or bld/clang_x86_rel.ninja.
Each script is assembled in a fixed sequence of stages:

1. banner and ninja_required_version
2. path variables, the flag comment block and cflags
3. the precompiled header rule
4. the compile rule
5. the resource compiler rule
6. the midl rule and one edge pair per IDL file
7. the link or lib rule followed by the compile and resource edges
8. the link or archive edge

Paths in the generated scripts are relative to the project root, which
is the directory ninja is run from.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from srcbld.core.errors import GenerateError, SrcbldError
from srcbld.core.finder import find_project_file
from srcbld.core.flags import split_list
from srcbld.core.options import TOOL_NAME, TOOL_VERSION, Opt, format_version
from srcbld.core.project import ProjectModel, is_source_file
from srcbld.core.rcdeps import DependencyScanner
from srcbld.core.target import BuildTarget, Compiler, Config
from srcbld.generators.generator import DEFAULT_BUILD_DIR, BaseGenerator
from srcbld.toolchains import toolchain_for
from srcbld.tools.toolchain import ToolContext
from srcbld.util.writefile import write_if_changed

if TYPE_CHECKING:
    from srcbld.tools.toolchain import BaseToolchain

logger = logging.getLogger(__name__)

NINJA_REQUIRED_VERSION = "1.8"

DEFAULT_COMPILERS: tuple[Compiler, ...] = (Compiler.MSVC, Compiler.CLANG)

_COMPILER_SEPARATORS = re.compile(r"[\s;,]+")


def banner() -> str:
    return (
        f"# WARNING: THIS FILE IS AUTO-GENERATED by {TOOL_NAME} "
        f"{format_version(TOOL_VERSION)}. CHANGES YOU MAKE WILL BE LOST IF IT IS "
        "AUTO-GENERATED AGAIN."
    )


def escape_path(path: str) -> str:
    """Escape a path for use in a ninja build edge.

    Examples:
        >>> escape_path("src/main.cpp")
        'src/main.cpp'
        >>> escape_path("my dir/c:file.cpp")
        'my$ dir/c$:file.cpp'
    """
    return path.replace("$", "$$").replace(" ", "$ ").replace(":", "$:")


def _posix(path: str) -> str:
    return path.replace("\\", "/")


def _stem(path: str) -> str:
    return os.path.splitext(os.path.basename(_posix(path)))[0]


def _edge_lines(head: str, items: list[str], implicit: str = "") -> list[str]:
    """Format a build edge with one input per continuation line."""
    if not items:
        return [head + implicit]
    lines = [f"{head} {items[0]}"]
    for item in items[1:]:
        lines[-1] += " $"
        lines.append(f"  {item}")
    lines[-1] += implicit
    return lines


def parse_compilers(value: str | None) -> list[Compiler]:
    """Parse a list of compiler names separated by spaces, ';' or ','.

    Unknown names are logged and skipped. An empty list means the
    default compilers.
    """
    compilers: list[Compiler] = []
    for name in _COMPILER_SEPARATORS.split(value or ""):
        if not name:
            continue
        compiler = Compiler.from_name(name)
        if compiler is None:
            logger.warning("Unknown compiler %r in Compilers option", name)
        elif compiler not in compilers:
            compilers.append(compiler)
    return compilers


def build_matrix(
    model: ProjectModel, compilers: Iterable[Compiler] | None = None
) -> list[BuildTarget]:
    """Return the build tuples for a project, in generation order.

    Args:
        model: The project.
        compilers: Compilers to generate for. Defaults to the project's
            Compilers option, or MSVC and clang-cl if it is not set.
    """
    selected = list(compilers) if compilers else []
    if not selected and model.has_option(Opt.COMPILERS):
        selected = parse_compilers(model.get_option(Opt.COMPILERS))
    if not selected:
        selected = list(DEFAULT_COMPILERS)

    bitness = []
    if model.is_option_true(Opt.BIT64):
        bitness.append(64)
    if model.is_option_true(Opt.BIT32):
        bitness.append(32)

    return [
        BuildTarget(config, bits, compiler)
        for compiler in selected
        for bits in bitness
        for config in (Config.DEBUG, Config.RELEASE)
    ]


class NinjaGenerator(BaseGenerator):
    """Generator that writes one ninja script per build tuple.

    Example:
        model, errors = ProjectModel.from_directory(Path("."))
        gen = NinjaGenerator(model)
        errors += gen.write()
    """

    def __init__(
        self,
        model: ProjectModel,
        *,
        environ: Mapping[str, str] | None = None,
        builddir: str = DEFAULT_BUILD_DIR,
        compilers: Iterable[Compiler] | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            model: The project to generate for.
            environ: Environment for flag overrides (default: os.environ).
            builddir: Directory for the scripts, relative to the project
                root.
            compilers: Restrict generation to these compilers.
        """
        super().__init__("ninja", model, builddir)
        self.environ = os.environ if environ is None else environ
        self.compilers = list(compilers) if compilers else None
        self.written: list[Path] = []

    def build_matrix(self) -> list[BuildTarget]:
        return build_matrix(self.model, self.compilers)

    def script_path(self, target: BuildTarget) -> Path:
        return self.model.root_dir / target.script_name(self.builddir)

    def write(self, *, dry_run: bool = False, force: bool = False) -> list[str]:
        """Generate and write the script of every build tuple.

        A tuple that cannot be generated is logged and skipped; the
        remaining tuples are still written.

        Raises:
            GenerateError: If a script cannot be written.
        """
        errors: list[str] = []
        self.written = []
        for target in self.build_matrix():
            try:
                lines, tuple_errors = self.generate(target)
            except GenerateError:
                raise
            except SrcbldError as e:
                logger.warning("%s: %s", target.name, e)
                errors.append(f"{target.name}: {e}")
                continue

            for error in tuple_errors:
                if error not in errors:
                    errors.append(error)
            path = self.script_path(target)
            if write_if_changed(path, lines, dry_run=dry_run, force=force):
                self.written.append(path)
        return errors

    # -- script assembly ----------------------------------------------------

    def generate(self, target: BuildTarget) -> tuple[list[str], list[str]]:
        """Assemble the script for one build tuple.

        Returns:
            The script lines and a list of recoverable errors.
        """
        toolchain = toolchain_for(target.compiler)
        ctx = ToolContext(self.model, target, self.environ)
        errors: list[str] = []

        lines = [banner(), "", f"ninja_required_version = {NINJA_REQUIRED_VERSION}", ""]
        lines += self._variables(toolchain, ctx)

        pch_object = self._pch_object(target)
        if pch_object is not None:
            lines += toolchain.compile_pch_rule(ctx)
        lines += toolchain.compile_rule(ctx)

        rc_file = self._rc_file()
        if rc_file is not None:
            lines += toolchain.rc_rule(ctx)

        idl_headers: list[str] = []
        if self.model.idl_files and toolchain.supports_midl:
            lines += toolchain.midl_rule(ctx)
            idl_headers = self._idl_edges(lines)

        if self.model.is_exe_type_lib():
            lines += toolchain.lib_rule(ctx)
        else:
            lines += toolchain.link_rule(ctx)

        objects = self._compile_edges(lines, target, pch_object, idl_headers)
        resource = None
        if rc_file is not None:
            resource = self._rc_edge(lines, target, rc_file, errors)

        libs, lib_errors = self.resolve_build_libs(target)
        errors += lib_errors
        self._target_edge(lines, target, resource, objects, pch_object, libs)

        return lines, errors

    def _variables(self, toolchain: BaseToolchain, ctx: ToolContext) -> list[str]:
        lines = [
            "builddir = build",
            f"outdir = {ctx.target.outdir}",
            "resout = build/res",
            "",
        ]
        lines += toolchain.comment_lines(ctx)
        lines.append(f"cflags = {toolchain.cflags(ctx)}")
        lines.append("")
        return lines

    def _pch_object(self, target: BuildTarget) -> str | None:
        source = self.model.pch_source
        if not self.model.pch_header or not source:
            return None
        return f"$outdir/{_stem(source)}{target.object_suffix}"

    def _rc_file(self) -> str | None:
        rc_file = self.model.rc_file
        if rc_file and (self.model.root_dir / rc_file).is_file():
            return rc_file
        return None

    def _idl_edges(self, lines: list[str]) -> list[str]:
        headers = []
        for idl in self.model.idl_files:
            base = os.path.splitext(_posix(idl))[0]
            header = escape_path(f"{base}.h")
            lines.append(f"build {header} : midl {escape_path(_posix(idl))}")
            lines.append("")
            lines.append(f"build {escape_path(base + '.tlb')} : phony {header}")
            lines.append("")
            headers.append(header)
        return headers

    def _compile_edges(
        self,
        lines: list[str],
        target: BuildTarget,
        pch_object: str | None,
        idl_headers: list[str],
    ) -> list[str]:
        """Write the compile edges and return the object files in order.

        Objects are named after the source file's basename, so two
        sources with the same name in different directories share an
        object file.
        """
        objects: list[str] = []
        pch_source = self.model.pch_source

        if pch_object is not None and pch_source:
            lines.append(
                f"build {pch_object} : compilePCH {escape_path(_posix(pch_source))}"
            )
            lines.append("")

        if pch_object is not None:
            implicit = f" | {pch_object}"
        elif idl_headers:
            implicit = " | " + " ".join(idl_headers)
        else:
            implicit = ""

        pch_name = os.path.basename(_posix(pch_source)).lower() if pch_object else None
        for source in self.model.source_files_for(target.is_debug):
            if not is_source_file(source):
                continue
            if pch_name and os.path.basename(_posix(source)).lower() == pch_name:
                continue
            obj = f"$outdir/{_stem(source)}{target.object_suffix}"
            lines.append(
                f"build {obj} : compile {escape_path(_posix(source))}{implicit}"
            )
            lines.append("")
            if obj not in objects:
                objects.append(obj)
        return objects

    def _res_name(self, target: BuildTarget, rc_file: str) -> str:
        debug = target.is_debug and self.model.is_option_true(Opt.DEBUG_RC)
        return f"$resout/{_stem(rc_file)}{'D' if debug else ''}.res"

    def _rc_edge(
        self, lines: list[str], target: BuildTarget, rc_file: str, errors: list[str]
    ) -> str:
        scanner = DependencyScanner(self.model.root_dir)
        deps, warnings = scanner.scan(rc_file)
        errors += warnings

        res = self._res_name(target, rc_file)
        head = f"build {res} : rc {escape_path(_posix(rc_file))}"
        if deps:
            head += " |"
        lines += _edge_lines(head, [escape_path(_posix(dep)) for dep in deps])
        lines.append("")
        return res

    def _target_edge(
        self,
        lines: list[str],
        target: BuildTarget,
        resource: str | None,
        objects: list[str],
        pch_object: str | None,
        libs: list[str],
    ) -> None:
        rule = "lib" if self.model.is_exe_type_lib() else "link"
        inputs: list[str] = []
        if resource is not None:
            inputs.append(resource)
        inputs += objects
        if pch_object is not None and pch_object not in inputs:
            inputs.append(pch_object)
        inputs += [escape_path(lib) for lib in libs]

        implicit = ""
        natvis = self.model.get_option(Opt.NATVIS)
        if target.is_debug and natvis and self.model.has_option(Opt.NATVIS):
            implicit = f" | {escape_path(_posix(natvis))}"

        output = escape_path(target.target_path(self.model))
        lines += _edge_lines(f"build {output} : {rule}", inputs, implicit)
        lines.append("")

    # -- BuildLibs ------------------------------------------------------------

    def resolve_build_libs(self, target: BuildTarget) -> tuple[list[str], list[str]]:
        """Resolve the BuildLibs option into library paths for a tuple.

        Each entry names a sibling project directory. Its project file
        is parsed and its target path for the same tuple is rebased
        onto this project's root. The sibling's own BuildLibs are
        followed as well; each directory is visited once.

        Returns:
            Library paths relative to the project root, and errors for
            entries that could not be resolved.
        """
        libs: list[str] = []
        errors: list[str] = []
        root = self.model.root_dir
        visited = {str(root.resolve())}
        self._collect_build_libs(self.model, target, visited, libs, errors)
        return libs, errors

    def _collect_build_libs(
        self,
        model: ProjectModel,
        target: BuildTarget,
        visited: set[str],
        libs: list[str],
        errors: list[str],
    ) -> None:
        for entry in split_list(model.get_option(Opt.BUILD_LIBS)):
            directory = model.root_dir / _posix(entry)
            if not directory.is_dir() and _is_sibling_dir(directory.parent, model):
                # The entry may name the library inside its source directory.
                directory = directory.parent
            project_file = find_project_file(directory) if directory.is_dir() else None
            if project_file is None:
                errors.append(
                    f"The library source directory {entry} specified in "
                    "BuildLibs: does not exist."
                )
                continue

            key = str(directory.resolve())
            if key in visited:
                continue
            visited.add(key)

            try:
                sibling, _ = ProjectModel.parse(project_file, root_dir=directory)
            except SrcbldError as e:
                errors.append(f"{entry}: {e}")
                continue

            lib_path = directory / target.target_path(sibling)
            relative = _posix(os.path.relpath(lib_path, self.model.root_dir))
            if relative not in libs:
                libs.append(relative)
            self._collect_build_libs(sibling, target, visited, libs, errors)


def _is_sibling_dir(directory: Path, model: ProjectModel) -> bool:
    return directory.is_dir() and directory.resolve() != model.root_dir.resolve()
