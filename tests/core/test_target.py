# SPDX-License-Identifier: MIT
"""Tests for srcbld.core.target."""

from __future__ import annotations

from pathlib import Path

import pytest

from srcbld.core.options import Opt
from srcbld.core.project import ProjectModel
from srcbld.core.target import BuildTarget, Compiler, Config


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project directory whose parent holds nothing but the project."""
    directory = tmp_path / "hello"
    directory.mkdir()
    return directory


def make_model(root: Path, **options: str) -> ProjectModel:
    model = ProjectModel(root)
    model.set_option(Opt.PROJECT, "hello")
    for name, value in options.items():
        model.set_option(Opt[name], value)
    return model


MSVC_DBG = BuildTarget(Config.DEBUG, 64, Compiler.MSVC)
MSVC_REL = BuildTarget(Config.RELEASE, 64, Compiler.MSVC)
CLANG_X86_REL = BuildTarget(Config.RELEASE, 32, Compiler.CLANG)
GCC_DBG = BuildTarget(Config.DEBUG, 64, Compiler.GCC)


class TestCompiler:
    """Tests for the Compiler enum."""

    def test_from_name(self) -> None:
        """Test looking up compilers by name."""
        assert Compiler.from_name("MSVC") is Compiler.MSVC
        assert Compiler.from_name(" clang ") is Compiler.CLANG
        assert Compiler.from_name("gcc") is Compiler.GCC
        assert Compiler.from_name("tcc") is None

    def test_msvc_compatible(self) -> None:
        """Test which compilers take cl.exe style flags."""
        assert Compiler.MSVC.is_msvc_compatible
        assert Compiler.CLANG.is_msvc_compatible
        assert not Compiler.GCC.is_msvc_compatible


class TestBuildTargetNames:
    """Tests for names derived from a tuple."""

    def test_name(self) -> None:
        """Test short tuple names."""
        assert MSVC_DBG.name == "msvc_dbg"
        assert CLANG_X86_REL.name == "clang_x86_rel"

    def test_outdir(self) -> None:
        """Test the object directory."""
        assert MSVC_DBG.outdir == "build/msvc_dbg"

    def test_script_name(self) -> None:
        """Test the ninja script path."""
        assert MSVC_REL.script_name() == "bld/msvc_rel.ninja"
        assert CLANG_X86_REL.script_name("out") == "out/clang_x86_rel.ninja"

    def test_object_suffix(self) -> None:
        """Test object file suffixes."""
        assert MSVC_DBG.object_suffix == ".obj"
        assert GCC_DBG.object_suffix == ".o"

    def test_flags(self) -> None:
        """Test the debug and bitness properties."""
        assert MSVC_DBG.is_debug
        assert not MSVC_REL.is_debug
        assert CLANG_X86_REL.is_32bit
        assert not MSVC_DBG.is_32bit


class TestTargetPath:
    """Tests for BuildTarget.target_path."""

    def test_console_exe(self, project_dir: Path) -> None:
        """Test a console program with no output directories present."""
        model = make_model(project_dir)
        assert MSVC_DBG.target_path(model) == "bin/helloD.exe"
        assert MSVC_REL.target_path(model) == "bin/hello.exe"

    def test_exe_prefers_bin64(self, project_dir: Path) -> None:
        """Test that 64-bit programs go to an existing bin64 directory."""
        (project_dir.parent / "bin64").mkdir()
        model = make_model(project_dir)
        assert MSVC_REL.target_path(model) == "../bin64/hello.exe"

    def test_exe_uses_parent_bin(self, project_dir: Path) -> None:
        """Test that an existing ../bin directory is used."""
        (project_dir.parent / "bin").mkdir()
        model = make_model(project_dir, BIT32="true")
        assert CLANG_X86_REL.target_path(model) == "../bin/hello.exe"

    def test_bitness_suffix(self, project_dir: Path) -> None:
        """Test that the 64 and 32 suffixes are opt-in."""
        model = make_model(project_dir, BIT64_SUFFIX="true", BIT32_SUFFIX="true")
        assert MSVC_DBG.target_path(model) == "bin/hello64D.exe"
        assert CLANG_X86_REL.target_path(model) == "bin/hello32.exe"

    def test_static_library(self, project_dir: Path) -> None:
        """Test static library naming."""
        model = make_model(project_dir, EXE_TYPE="lib")
        assert MSVC_DBG.target_path(model) == "lib/helloD.lib"
        assert MSVC_REL.target_path(model) == "lib/hello.lib"

    def test_static_library_parent_lib(self, project_dir: Path) -> None:
        """Test that libraries go to an existing ../lib directory."""
        (project_dir.parent / "lib").mkdir()
        model = make_model(project_dir, EXE_TYPE="lib", BIT64_SUFFIX="true")
        assert MSVC_DBG.target_path(model) == "../lib/hello64D.lib"

    def test_dll_has_no_debug_suffix(self, project_dir: Path) -> None:
        """Test that a dll keeps its name in debug builds."""
        model = make_model(project_dir, EXE_TYPE="dll")
        assert MSVC_DBG.target_path(model) == "bin/hello.dll"

    def test_ocx(self, project_dir: Path) -> None:
        """Test that an ocx keeps its extension."""
        model = make_model(project_dir, EXE_TYPE="ocx")
        assert MSVC_REL.target_path(model) == "bin/hello.ocx"

    def test_target_dir_override(self, project_dir: Path) -> None:
        """Test that TargetDir64 and TargetDir32 replace the directory."""
        model = make_model(
            project_dir,
            TARGET_DIR64="..\\out64\\",
            TARGET_DIR32="../out32",
            BIT32="true",
        )
        assert MSVC_REL.target_path(model) == "../out64/hello.exe"
        assert CLANG_X86_REL.target_path(model) == "../out32/hello.exe"

    def test_gcc_names(self, project_dir: Path) -> None:
        """Test GCC library, shared object and program names."""
        assert GCC_DBG.target_path(make_model(project_dir)) == "bin/helloD"
        lib = make_model(project_dir, EXE_TYPE="lib")
        assert GCC_DBG.target_path(lib) == "lib/libhelloD.a"
        dll = make_model(project_dir, EXE_TYPE="dll")
        assert GCC_DBG.target_path(dll) == "bin/libhello.so"
