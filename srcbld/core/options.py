# SPDX-License-Identifier: MIT
"""Option schema for srcbld project files.

The schema is a fixed, process-wide table describing every option a
project file may set: its display name, default value, whether it is a
boolean, whether it is always written out, and the first tool version
that understood it. Per-project values live in ProjectModel, never here.

Example:
    >>> lookup_by_name("EXE_TYPE").key is Opt.EXE_TYPE
    True
    >>> lookup(Opt.WARN).default
    '4'
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto

Version = tuple[int, int, int]

# Version of the option schema understood by this tool.
TOOL_VERSION: Version = (1, 4, 0)

TOOL_NAME = "srcbld"


class Opt(Enum):
    """Stable keys for every recognized option."""

    PROJECT = auto()
    PCH = auto()
    EXE_TYPE = auto()

    PERMISSIVE = auto()
    STDCALL = auto()
    OPTIMIZE = auto()
    WARN = auto()

    MAKEFILE = auto()
    COMPILERS = auto()

    CFLAGS_CMN = auto()
    CFLAGS_REL = auto()
    CFLAGS_DBG = auto()

    LINK_CMN = auto()
    LINK_REL = auto()
    LINK_DBG = auto()

    NATVIS = auto()

    RC_CMN = auto()
    RC_REL = auto()
    RC_DBG = auto()

    MIDL_CMN = auto()
    MIDL_REL = auto()
    MIDL_DBG = auto()

    CLANG_CMN = auto()
    CLANG_REL = auto()
    CLANG_DBG = auto()

    GCC_CMN = auto()
    GCC_REL = auto()
    GCC_DBG = auto()

    DEBUG_RC = auto()
    STATIC_CRT_REL = auto()
    STATIC_CRT_DBG = auto()
    MS_LINKER = auto()
    MS_RC = auto()

    BIT64 = auto()
    TARGET_DIR64 = auto()
    BIT32 = auto()
    TARGET_DIR32 = auto()
    BIT64_SUFFIX = auto()
    BIT32_SUFFIX = auto()

    INC_DIRS = auto()
    BUILD_LIBS = auto()
    LIB_DIRS = auto()
    LIBS_CMN = auto()
    LIBS_REL = auto()
    LIBS_DBG = auto()


@dataclass(frozen=True)
class OptionDescriptor:
    """Schema entry for a single option.

    Attributes:
        key: Enumerated key.
        name: Display name as written in the project file.
        default: Value used when the project file does not set one.
        is_bool: True for options holding "true" or "false".
        required: True if the option is always written to a new project file.
        min_version: First tool version that understood the option.
        comment: Default comment written next to the option.
    """

    key: Opt
    name: str
    default: str | None
    is_bool: bool
    required: bool
    min_version: Version
    comment: str


def _opt(
    key: Opt,
    name: str,
    default: str | None = None,
    *,
    is_bool: bool = False,
    required: bool = False,
    version: Version = (1, 0, 0),
    comment: str = "",
) -> OptionDescriptor:
    return OptionDescriptor(key, name, default, is_bool, required, version, comment)


def _flag_family(
    keys: tuple[Opt, Opt, Opt],
    names: tuple[str, str, str],
    tool: str,
    *,
    version: Version = (1, 0, 0),
) -> tuple[OptionDescriptor, ...]:
    scopes = ("in all build targets", "in release builds", "in debug builds")
    return tuple(
        _opt(key, name, version=version, comment=f"flags to pass to the {tool} {scope}")
        for key, name, scope in zip(keys, names, scopes)
    )


_SCHEMA: tuple[OptionDescriptor, ...] = (
    _opt(Opt.PROJECT, "Project", required=True, comment="project name"),
    _opt(
        Opt.PCH,
        "PCH",
        "none",
        required=True,
        comment='name of precompiled header file, or "none" if not using one',
    ),
    _opt(
        Opt.EXE_TYPE,
        "exe_type",
        "console",
        required=True,
        comment="[window | console | lib | dll | ocx]",
    ),
    _opt(
        Opt.PERMISSIVE,
        "permissive",
        "false",
        is_bool=True,
        comment="true means add -permissive- compiler flag",
    ),
    _opt(
        Opt.STDCALL,
        "stdcall",
        "false",
        is_bool=True,
        comment="true to use stdcall calling convention, false for cdecl (default)",
    ),
    _opt(
        Opt.OPTIMIZE,
        "optimize",
        "space",
        comment="[space | speed] optimization",
    ),
    _opt(Opt.WARN, "WarnLevel", "4", comment="[1-4] default is 4"),
    _opt(Opt.MAKEFILE, "Makefile", "missing", comment="[never | missing | always]"),
    _opt(
        Opt.COMPILERS,
        "Compilers",
        comment="[MSVC CLANG GCC] default is MSVC and CLANG",
    ),
    *_flag_family(
        (Opt.CFLAGS_CMN, Opt.CFLAGS_REL, Opt.CFLAGS_DBG),
        ("CFlags", "CFlagsR", "CFlagsD"),
        "compiler",
    ),
    *_flag_family(
        (Opt.LINK_CMN, Opt.LINK_REL, Opt.LINK_DBG),
        ("LFlags", "LFlagsR", "LFlagsD"),
        "linker",
    ),
    _opt(
        Opt.NATVIS,
        "Natvis",
        comment="Specifies a .natvis file to link into the pdb file",
    ),
    *_flag_family(
        (Opt.RC_CMN, Opt.RC_REL, Opt.RC_DBG),
        ("RC_CMN", "RC_REL", "RC_DBG"),
        "resource compiler",
    ),
    *_flag_family(
        (Opt.MIDL_CMN, Opt.MIDL_REL, Opt.MIDL_DBG),
        ("MIDL_CMN", "MIDL_REL", "MIDL_DBG"),
        "midl compiler",
    ),
    *_flag_family(
        (Opt.CLANG_CMN, Opt.CLANG_REL, Opt.CLANG_DBG),
        ("CLANG_CMN", "CLANG_REL", "CLANG_DBG"),
        "CLANG compiler",
    ),
    *_flag_family(
        (Opt.GCC_CMN, Opt.GCC_REL, Opt.GCC_DBG),
        ("GCC_CMN", "GCC_REL", "GCC_DBG"),
        "GCC compiler",
        version=(1, 4, 0),
    ),
    _opt(
        Opt.DEBUG_RC,
        "DebugRC",
        "false",
        is_bool=True,
        comment="true means build a -D_DEBUG version of the project's rc file",
    ),
    _opt(
        Opt.STATIC_CRT_REL,
        "static_crt",
        "false",
        is_bool=True,
        comment="true means link to static CRT in release builds",
    ),
    _opt(
        Opt.STATIC_CRT_DBG,
        "static_crt_dbg",
        "false",
        is_bool=True,
        version=(1, 2, 0),
        comment="true means link to static CRT in debug builds",
    ),
    _opt(
        Opt.MS_LINKER,
        "ms_linker",
        "false",
        is_bool=True,
        comment="true means use link.exe even when compiling with CLANG",
    ),
    _opt(
        Opt.MS_RC,
        "ms_rc",
        "true",
        is_bool=True,
        comment="use rc.exe even when compiling with CLANG",
    ),
    _opt(Opt.BIT64, "64Bit", "true", is_bool=True, comment="generate 64-bit scripts"),
    _opt(Opt.TARGET_DIR64, "TargetDir64", comment="64-bit target directory"),
    _opt(Opt.BIT32, "32Bit", "false", is_bool=True, comment="generate 32-bit scripts"),
    _opt(Opt.TARGET_DIR32, "TargetDir32", comment="32-bit target directory"),
    _opt(
        Opt.BIT64_SUFFIX,
        "b64_suffix",
        "false",
        is_bool=True,
        comment="true means append '64' to target's directory or .exe name",
    ),
    _opt(
        Opt.BIT32_SUFFIX,
        "b32_suffix",
        "false",
        is_bool=True,
        comment="true means append '32' to target's directory or .exe name",
    ),
    _opt(Opt.INC_DIRS, "IncDirs", comment="additional directories for header files"),
    _opt(
        Opt.BUILD_LIBS,
        "BuildLibs",
        comment="libraries that need to be built (added to makefile generation)",
    ),
    _opt(Opt.LIB_DIRS, "LibDirs", comment="additional directories for lib files"),
    _opt(Opt.LIBS_CMN, "Libs", comment="additional libraries to link to in all builds"),
    _opt(
        Opt.LIBS_REL,
        "LibsR",
        version=(1, 2, 0),
        comment="additional libraries to link to in release builds",
    ),
    _opt(
        Opt.LIBS_DBG,
        "LibsD",
        version=(1, 2, 0),
        comment="additional libraries to link to in debug builds",
    ),
)

_BY_KEY: dict[Opt, OptionDescriptor] = {desc.key: desc for desc in _SCHEMA}
_BY_NAME: dict[str, OptionDescriptor] = {desc.name.lower(): desc for desc in _SCHEMA}


def all_options() -> tuple[OptionDescriptor, ...]:
    """Return every schema entry, in the order they are written to a file."""
    return _SCHEMA


def lookup(key: Opt) -> OptionDescriptor:
    """Get the schema entry for an option key."""
    return _BY_KEY[key]


def lookup_by_name(name: str) -> OptionDescriptor | None:
    """Find a schema entry by its display name.

    The comparison ignores case, so "exe_type" and "EXE_TYPE" are the
    same option.

    Args:
        name: Option name as written in a project file.

    Returns:
        The matching descriptor, or None if the name is not recognized.
    """
    return _BY_NAME.get(name.strip().lower())


def min_version_required(keys: Iterable[Opt] | None = None) -> Version:
    """Return the oldest tool version able to process the given options.

    Args:
        keys: Options in use. Defaults to the whole schema.

    Returns:
        The maximum min_version over the selected descriptors.
    """
    descriptors = _SCHEMA if keys is None else [_BY_KEY[key] for key in keys]
    return max((desc.min_version for desc in descriptors), default=(1, 0, 0))


def normalize_bool(value: str | None) -> str:
    """Normalize a boolean option value.

    Examples:
        >>> normalize_bool("YES")
        'true'
        >>> normalize_bool("No")
        'false'
    """
    if value is not None and value.strip().lower() in ("yes", "true"):
        return "true"
    return "false"


def format_version(version: Version) -> str:
    return ".".join(str(part) for part in version)


_VERSION_LINE_RE = re.compile(
    r"^#\s*Requires\s+\S+\s+version\s+(\d+)\.(\d+)\.(\d+)\s+or\s+higher",
    re.IGNORECASE,
)


def format_version_line(version: Version) -> str:
    """Build the version comment that starts every written project file."""
    text = format_version(version)
    return f"# Requires {TOOL_NAME} version {text} or higher to process"


def parse_version_line(line: str) -> Version | None:
    """Extract the required version from a "# Requires ..." comment.

    The tool name in the comment is not checked, so files written by
    older tools are still honored.

    Examples:
        >>> parse_version_line("# Requires srcbld version 1.2.0 or higher to process")
        (1, 2, 0)
        >>> parse_version_line("# just a comment") is None
        True
    """
    match = _VERSION_LINE_RE.match(line.strip())
    if match is None:
        return None
    major, minor, patch = (int(part) for part in match.groups())
    return (major, minor, patch)


def is_newer(version: Version, than: Version = TOOL_VERSION) -> bool:
    """Return True if version is newer than the reference version."""
    return version > than
