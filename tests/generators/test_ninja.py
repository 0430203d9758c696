# SPDX-License-Identifier: MIT
"""Tests for srcbld.generators.ninja."""

from __future__ import annotations

from pathlib import Path

import pytest

from srcbld.core.project import ProjectModel
from srcbld.core.target import BuildTarget, Compiler, Config
from srcbld.generators import Generator, NinjaGenerator
from srcbld.generators.ninja import (
    NINJA_REQUIRED_VERSION,
    banner,
    build_matrix,
    escape_path,
    parse_compilers,
)

MSVC_DBG = BuildTarget(Config.DEBUG, 64, Compiler.MSVC)
MSVC_REL = BuildTarget(Config.RELEASE, 64, Compiler.MSVC)
CLANG_DBG = BuildTarget(Config.DEBUG, 64, Compiler.CLANG)
GCC_DBG = BuildTarget(Config.DEBUG, 64, Compiler.GCC)


def make_project(directory: Path, options: str, files: str, *sources: str) -> Path:
    """Write a project file and touch the named source files."""
    directory.mkdir(parents=True, exist_ok=True)
    for name in sources:
        path = directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
    project = directory / ".srcfiles.yaml"
    project.write_text(f"Options:\n{options}\nFiles:\n{files}")
    return project


def load(directory: Path) -> ProjectModel:
    model, _ = ProjectModel.from_directory(directory)
    return model


def generate(model: ProjectModel, target: BuildTarget = MSVC_DBG, **kwargs):
    gen = NinjaGenerator(model, environ=kwargs.pop("environ", {}), **kwargs)
    return gen.generate(target)


def edge_block(lines: list[str], head: str) -> list[str]:
    """Return a build edge and its continuation lines."""
    start = next(i for i, line in enumerate(lines) if line.startswith(head))
    block = [lines[start]]
    while block[-1].endswith(" $"):
        start += 1
        block.append(lines[start])
    return block


@pytest.fixture
def pch_app(tmp_path: Path) -> ProjectModel:
    """A console program with a precompiled header and a resource script."""
    make_project(
        tmp_path / "app",
        "    Project:  app\n    exe_type: console\n    PCH:      pch.h\n",
        "    pch.cpp\n    main.cpp\n    app.rc\n",
        "pch.h",
        "pch.cpp",
        "main.cpp",
        "app.rc",
    )
    return load(tmp_path / "app")


class TestHelpers:
    """Tests for module level helpers."""

    def test_banner(self) -> None:
        """Test that the banner warns about regeneration."""
        assert banner().startswith("# WARNING: THIS FILE IS AUTO-GENERATED by srcbld")

    def test_escape_path(self) -> None:
        """Test escaping ninja's special characters."""
        assert escape_path("a b/$x:y.cpp") == "a$ b/$$x$:y.cpp"

    def test_parse_compilers(self) -> None:
        """Test separators, duplicates and unknown names."""
        assert parse_compilers("GCC; clang,gcc tcc") == [Compiler.GCC, Compiler.CLANG]
        assert parse_compilers(None) == []

    def test_generator_protocol(self, tmp_path: Path) -> None:
        """Test that the ninja generator satisfies the Generator protocol."""
        gen = NinjaGenerator(ProjectModel(tmp_path))
        assert isinstance(gen, Generator)
        assert gen.name == "ninja"


class TestBuildMatrix:
    """Tests for the set of generated tuples."""

    def test_default_matrix(self, tmp_path: Path) -> None:
        """Test that MSVC and clang 64-bit debug and release are the default."""
        names = [target.name for target in build_matrix(ProjectModel(tmp_path))]
        assert names == ["msvc_dbg", "msvc_rel", "clang_dbg", "clang_rel"]

    def test_32bit_added(self, tmp_path: Path) -> None:
        """Test the order when 32-bit scripts are enabled."""
        model = ProjectModel(tmp_path)
        model.set_option_by_name("32Bit", "true")
        names = [target.name for target in build_matrix(model, [Compiler.MSVC])]
        assert names == ["msvc_dbg", "msvc_rel", "msvc_x86_dbg", "msvc_x86_rel"]

    def test_32bit_only(self, tmp_path: Path) -> None:
        """Test that 64-bit scripts can be turned off."""
        model = ProjectModel(tmp_path)
        model.set_option_by_name("64Bit", "false")
        model.set_option_by_name("32Bit", "true")
        names = [target.name for target in build_matrix(model, [Compiler.GCC])]
        assert names == ["gcc_x86_dbg", "gcc_x86_rel"]

    def test_compilers_option(self, tmp_path: Path) -> None:
        """Test that the Compilers option picks the compilers."""
        model = ProjectModel(tmp_path)
        model.set_option_by_name("Compilers", "GCC")
        names = [target.name for target in build_matrix(model)]
        assert names == ["gcc_dbg", "gcc_rel"]

    def test_explicit_compilers_win(self, tmp_path: Path) -> None:
        """Test that a caller's compiler list overrides the option."""
        model = ProjectModel(tmp_path)
        model.set_option_by_name("Compilers", "GCC")
        gen = NinjaGenerator(model, compilers=[Compiler.CLANG])
        assert [target.name for target in gen.build_matrix()] == [
            "clang_dbg",
            "clang_rel",
        ]


class TestScriptLayout:
    """Tests for the sequence of a generated script."""

    def test_preamble(self, pch_app: ProjectModel) -> None:
        """Test the banner, version and path variables."""
        lines, _ = generate(pch_app)
        assert lines[:8] == [
            banner(),
            "",
            f"ninja_required_version = {NINJA_REQUIRED_VERSION}",
            "",
            "builddir = build",
            "outdir = build/msvc_dbg",
            "resout = build/res",
            "",
        ]
        assert lines[8] == "msvc_deps_prefix = Note: including file:"

    def test_rule_order(self, pch_app: ProjectModel) -> None:
        """Test that rules come in their fixed order before any edge."""
        lines, _ = generate(pch_app)
        order = [
            lines.index("rule compilePCH"),
            lines.index("rule compile"),
            lines.index("rule rc"),
            lines.index("rule link"),
        ]
        assert order == sorted(order)
        edges = [i for i, line in enumerate(lines) if line.startswith("build ")]
        assert order[-1] < edges[0]

    def test_cflags_line(self, pch_app: ProjectModel) -> None:
        """Test that the precompiled header is named in cflags."""
        lines, _ = generate(pch_app)
        cflags = next(line for line in lines if line.startswith("cflags = "))
        assert cflags.endswith("/Fp$outdir/pch.pch")

    def test_precompiled_header_program(self, pch_app: ProjectModel) -> None:
        """Test the edges of a program with a precompiled header."""
        lines, errors = generate(pch_app)
        assert errors == []
        assert "build $outdir/pch.obj : compilePCH pch.cpp" in lines
        assert "build $outdir/main.obj : compile main.cpp | $outdir/pch.obj" in lines
        assert not any(" : compile pch.cpp" in line for line in lines)
        assert "build $resout/app.res : rc app.rc" in lines
        assert edge_block(lines, "build bin/appD.exe") == [
            "build bin/appD.exe : link $resout/app.res $",
            "  $outdir/main.obj $",
            "  $outdir/pch.obj",
        ]

    def test_release_names(self, pch_app: ProjectModel) -> None:
        """Test the release object directory and program name."""
        lines, _ = generate(pch_app, MSVC_REL)
        assert "outdir = build/msvc_rel" in lines
        assert any(line.startswith("build bin/app.exe : link") for line in lines)

    def test_plain_program(self, tmp_path: Path) -> None:
        """Test a program without a precompiled header or resources."""
        make_project(tmp_path, "    Project: hello\n", "    main.cpp\n", "main.cpp")
        lines, errors = generate(load(tmp_path))
        assert errors == []
        assert "rule compilePCH" not in lines
        assert "rule rc" not in lines
        assert "build $outdir/main.obj : compile main.cpp" in lines
        assert "build bin/helloD.exe : link $outdir/main.obj" in lines

    def test_static_library(self, tmp_path: Path) -> None:
        """Test that a library is archived instead of linked."""
        make_project(
            tmp_path / "util",
            "    Project: util\n    exe_type: lib\n",
            "    a.cpp\n    b.c\n",
            "a.cpp",
            "b.c",
        )
        lines, _ = generate(load(tmp_path / "util"), MSVC_REL)
        assert "rule lib" in lines
        assert "rule link" not in lines
        assert edge_block(lines, "build lib/util.lib") == [
            "build lib/util.lib : lib $outdir/a.obj $",
            "  $outdir/b.obj",
        ]

    def test_headers_are_not_compiled(self, tmp_path: Path) -> None:
        """Test that listed headers produce no compile edge."""
        make_project(
            tmp_path,
            "    Project: hello\n",
            "    main.cpp\n    main.h\n",
            "main.cpp",
            "main.h",
        )
        lines, _ = generate(load(tmp_path))
        assert not any("main.h" in line for line in lines)

    def test_paths_are_escaped(self, tmp_path: Path) -> None:
        """Test that spaces in source paths are escaped."""
        make_project(
            tmp_path, "    Project: hello\n", "    my src/main.cpp\n", "my src/main.cpp"
        )
        lines, _ = generate(load(tmp_path))
        assert "build $outdir/main.obj : compile my$ src/main.cpp" in lines

    def test_gcc_objects(self, tmp_path: Path) -> None:
        """Test GCC object suffixes and program names."""
        make_project(tmp_path, "    Project: hello\n", "    main.cpp\n", "main.cpp")
        lines, _ = generate(load(tmp_path), GCC_DBG)
        assert "build $outdir/main.o : compile main.cpp" in lines
        assert "build bin/helloD : link $outdir/main.o" in lines
        assert "msvc_deps_prefix = Note: including file:" not in lines


class TestOptionalInputs:
    """Tests for debug files, IDL files, resources and natvis."""

    def test_debug_only_files(self, tmp_path: Path) -> None:
        """Test that DebugFiles are compiled in debug builds only."""
        make_project(
            tmp_path,
            "    Project: hello\n",
            "    main.cpp\n\nDebugFiles:\n    trace.cpp\n",
            "main.cpp",
            "trace.cpp",
        )
        model = load(tmp_path)
        debug, _ = generate(model, MSVC_DBG)
        release, _ = generate(model, MSVC_REL)
        assert "build $outdir/trace.obj : compile trace.cpp" in debug
        assert not any("trace" in line for line in release)

    def test_idl_files(self, tmp_path: Path) -> None:
        """Test the midl edges and the header dependency of compiles."""
        make_project(
            tmp_path,
            "    Project: hello\n    MIDL_CMN: /W1\n",
            "    main.cpp\n    iface.idl\n",
            "main.cpp",
            "iface.idl",
        )
        lines, _ = generate(load(tmp_path))
        assert "rule midl" in lines
        assert "build iface.h : midl iface.idl" in lines
        assert "build iface.tlb : phony iface.h" in lines
        assert "build $outdir/main.obj : compile main.cpp | iface.h" in lines
        assert lines.index("rule midl") < lines.index("build iface.h : midl iface.idl")
        assert lines.index("build iface.tlb : phony iface.h") < lines.index("rule link")

    def test_gcc_skips_idl(self, tmp_path: Path) -> None:
        """Test that GCC scripts have no midl rule."""
        make_project(
            tmp_path,
            "    Project: hello\n",
            "    main.cpp\n    iface.idl\n",
            "main.cpp",
            "iface.idl",
        )
        lines, _ = generate(load(tmp_path), GCC_DBG)
        assert "rule midl" not in lines
        assert "build $outdir/main.o : compile main.cpp" in lines

    def test_resource_dependencies(self, tmp_path: Path) -> None:
        """Test that headers and icons used by the resource script are tracked."""
        make_project(
            tmp_path,
            "    Project: hello\n",
            "    main.cpp\n    app.rc\n",
            "main.cpp",
            "resource.h",
            "res/app.ico",
        )
        (tmp_path / "app.rc").write_text(
            '#include "resource.h"\nIDI_APP ICON "res/app.ico"\n'
        )
        lines, errors = generate(load(tmp_path))
        assert errors == []
        assert edge_block(lines, "build $resout/app.res") == [
            "build $resout/app.res : rc app.rc | resource.h $",
            "  res/app.ico",
        ]

    def test_resource_warning(self, tmp_path: Path) -> None:
        """Test that a missing resource include is reported."""
        make_project(
            tmp_path, "    Project: hello\n", "    main.cpp\n    app.rc\n", "main.cpp"
        )
        (tmp_path / "app.rc").write_text('#include "gone.h"\n')
        _, errors = generate(load(tmp_path))
        assert errors == ["app.rc(1,10):  warning: cannot locate include file gone.h"]

    def test_debug_rc(self, tmp_path: Path) -> None:
        """Test that DebugRC gives debug builds their own resource file."""
        make_project(
            tmp_path,
            "    Project: hello\n    DebugRC: true\n",
            "    main.cpp\n    app.rc\n",
            "main.cpp",
            "app.rc",
        )
        model = load(tmp_path)
        debug, _ = generate(model, MSVC_DBG)
        release, _ = generate(model, MSVC_REL)
        assert "build $resout/appD.res : rc app.rc" in debug
        assert "build $resout/app.res : rc app.rc" in release

    def test_missing_rc_file(self, tmp_path: Path) -> None:
        """Test that a resource script missing on disk gets no rule."""
        make_project(
            tmp_path, "    Project: hello\n", "    main.cpp\n    app.rc\n", "main.cpp"
        )
        lines, _ = generate(load(tmp_path))
        assert "rule rc" not in lines

    def test_natvis_is_implicit_in_debug(self, tmp_path: Path) -> None:
        """Test that the natvis file is an implicit link input."""
        make_project(
            tmp_path,
            "    Project: hello\n    Natvis: hello.natvis\n",
            "    main.cpp\n",
            "main.cpp",
        )
        model = load(tmp_path)
        debug, _ = generate(model, MSVC_DBG)
        release, _ = generate(model, MSVC_REL)
        assert "build bin/helloD.exe : link $outdir/main.obj | hello.natvis" in debug
        assert "build bin/hello.exe : link $outdir/main.obj" in release

    def test_environment_flags_last(self, tmp_path: Path) -> None:
        """Test that environment flags end the cflags line."""
        make_project(
            tmp_path,
            "    Project: hello\n    CFlags: -DPROJECT\n",
            "    main.cpp\n",
            "main.cpp",
        )
        environ = {"CFLAGS": "-DENV", "SRCBLD_CFLAGS": "-DLAST"}
        lines, _ = generate(load(tmp_path), CLANG_DBG, environ=environ)
        cflags = next(line for line in lines if line.startswith("cflags = "))
        assert cflags.endswith("-DENV -DLAST")
        assert cflags.index("-DPROJECT") < cflags.index("-DENV")


class TestBuildLibs:
    """Tests for linking libraries built from sibling projects."""

    def make_library(self, directory: Path, name: str, build_libs: str = "") -> None:
        options = f"    Project: {name}\n    exe_type: lib\n"
        if build_libs:
            options += f"    BuildLibs: {build_libs}\n"
        make_project(directory, options, f"    {name}.cpp\n", f"{name}.cpp")

    def make_app(self, tmp_path: Path, build_libs: str) -> ProjectModel:
        make_project(
            tmp_path / "app",
            f"    Project: app\n    BuildLibs: {build_libs}\n",
            "    main.cpp\n",
            "main.cpp",
        )
        return load(tmp_path / "app")

    def test_sibling_library(self, tmp_path: Path) -> None:
        """Test that a sibling library is resolved and linked."""
        self.make_library(tmp_path / "util", "util")
        model = self.make_app(tmp_path, "../util")
        gen = NinjaGenerator(model, environ={})

        libs, errors = gen.resolve_build_libs(MSVC_DBG)
        assert errors == []
        assert libs == ["../util/lib/utilD.lib"]

        lines, _ = gen.generate(MSVC_DBG)
        assert edge_block(lines, "build bin/appD.exe") == [
            "build bin/appD.exe : link $outdir/main.obj $",
            "  ../util/lib/utilD.lib",
        ]

    def test_library_named_inside_directory(self, tmp_path: Path) -> None:
        """Test that an entry naming the library inside its directory works."""
        self.make_library(tmp_path / "util", "util")
        model = self.make_app(tmp_path, "../util/util.lib")
        libs, errors = NinjaGenerator(model).resolve_build_libs(MSVC_REL)
        assert errors == []
        assert libs == ["../util/lib/util.lib"]

    def test_transitive_libraries(self, tmp_path: Path) -> None:
        """Test that a library's own BuildLibs are followed once."""
        self.make_library(tmp_path / "base", "base")
        self.make_library(tmp_path / "util", "util", "../base")
        model = self.make_app(tmp_path, "../util;../base")
        libs, errors = NinjaGenerator(model).resolve_build_libs(CLANG_DBG)
        assert errors == []
        assert libs == ["../util/lib/utilD.lib", "../base/lib/baseD.lib"]

    def test_missing_library(self, tmp_path: Path) -> None:
        """Test the error for a library directory that does not exist."""
        model = self.make_app(tmp_path, "../nowhere")
        lines, errors = generate(model)
        assert errors == [
            "The library source directory ../nowhere specified in BuildLibs: "
            "does not exist."
        ]
        assert "build bin/appD.exe : link $outdir/main.obj" in lines

    def test_current_project_is_not_a_library(self, tmp_path: Path) -> None:
        """Test that a missing subdirectory never resolves to the project itself."""
        model = self.make_app(tmp_path, "missing")
        libs, errors = NinjaGenerator(model).resolve_build_libs(MSVC_DBG)
        assert libs == []
        assert len(errors) == 1


class TestWrite:
    """Tests for writing scripts to disk."""

    def test_writes_every_tuple(self, tmp_path: Path) -> None:
        """Test that one script per tuple is written to the build directory."""
        make_project(tmp_path, "    Project: hello\n", "    main.cpp\n", "main.cpp")
        gen = NinjaGenerator(load(tmp_path), environ={})
        assert gen.write() == []
        names = sorted(path.name for path in (tmp_path / "bld").iterdir())
        assert names == [
            "clang_dbg.ninja",
            "clang_rel.ninja",
            "msvc_dbg.ninja",
            "msvc_rel.ninja",
        ]
        assert len(gen.written) == 4

    def test_rewrite_is_idempotent(self, tmp_path: Path) -> None:
        """Test that regenerating unchanged input leaves the files alone."""
        make_project(tmp_path, "    Project: hello\n", "    main.cpp\n", "main.cpp")
        model = load(tmp_path)
        NinjaGenerator(model, environ={}).write()
        script = tmp_path / "bld" / "msvc_dbg.ninja"
        before = script.stat().st_mtime_ns

        gen = NinjaGenerator(model, environ={})
        gen.write()
        assert gen.written == []
        assert script.stat().st_mtime_ns == before

    def test_force(self, tmp_path: Path) -> None:
        """Test that force rewrites unchanged scripts."""
        make_project(tmp_path, "    Project: hello\n", "    main.cpp\n", "main.cpp")
        model = load(tmp_path)
        NinjaGenerator(model, environ={}).write()
        gen = NinjaGenerator(model, environ={}, compilers=[Compiler.GCC])
        gen.write()
        gen.write(force=True)
        assert len(gen.written) == 2

    def test_dry_run(self, tmp_path: Path, capsys) -> None:
        """Test that a dry run writes nothing."""
        make_project(tmp_path, "    Project: hello\n", "    main.cpp\n", "main.cpp")
        gen = NinjaGenerator(load(tmp_path), environ={}, compilers=[Compiler.MSVC])
        gen.write(dry_run=True)
        assert not (tmp_path / "bld").exists()
        assert gen.written == []
        assert capsys.readouterr().out.count("would create") == 2

    def test_custom_build_dir(self, tmp_path: Path) -> None:
        """Test writing scripts to another directory."""
        make_project(tmp_path, "    Project: hello\n", "    main.cpp\n", "main.cpp")
        gen = NinjaGenerator(
            load(tmp_path), environ={}, builddir="out\\", compilers=[Compiler.GCC]
        )
        gen.write()
        assert (tmp_path / "out" / "gcc_dbg.ninja").is_file()
        assert gen.script_path(GCC_DBG) == tmp_path / "out" / "gcc_dbg.ninja"

    def test_errors_are_collected_once(self, tmp_path: Path) -> None:
        """Test that an error shared by every tuple is reported once."""
        make_project(
            tmp_path,
            "    Project: hello\n    BuildLibs: ../nowhere\n",
            "    main.cpp\n",
            "main.cpp",
        )
        errors = NinjaGenerator(load(tmp_path), environ={}).write()
        assert len(errors) == 1
