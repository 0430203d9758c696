# SPDX-License-Identifier: MIT
"""Flag handling utilities for srcbld.

Project files hold flags and directory lists as plain strings. This
module splits those strings, quotes paths for ninja command lines, and
collects the environment overrides that are appended after every other
flag source of a build tuple.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from srcbld.core.target import BuildTarget

# Environment variable appended to every compile, after CFLAGS/CFLAGSR/CFLAGSD.
UMBRELLA_ENV_VAR = "SRCBLD_CFLAGS"


def split_list(value: str | None, sep: str = ";") -> list[str]:
    """Split a ";"-separated option value into its non-empty parts.

    Examples:
        >>> split_list("include; ../common ;")
        ['include', '../common']
        >>> split_list(None)
        []
    """
    if not value:
        return []
    return [part.strip() for part in value.split(sep) if part.strip()]


def quote_path(path: str) -> str:
    """Quote a path for a command line if it contains a space.

    Examples:
        >>> quote_path("include")
        'include'
        >>> quote_path("C:/Program Files/sdk")
        '"C:/Program Files/sdk"'
    """
    if " " in path and not path.startswith('"'):
        return f'"{path}"'
    return path


def prefixed(prefix: str, values: Iterable[str]) -> list[str]:
    """Attach a prefix to each value, quoting values that contain spaces.

    Examples:
        >>> prefixed("-I", ["inc", "my dir"])
        ['-Iinc', '-I"my dir"']
    """
    return [f"{prefix}{quote_path(value)}" for value in values]


def join_flags(*parts: str | Iterable[str] | None) -> str:
    """Join flag fragments with single spaces, skipping empty ones.

    Examples:
        >>> join_flags("-nologo", None, "", ["-W4", "-EHsc"])
        '-nologo -W4 -EHsc'
    """
    tokens: list[str] = []
    for part in parts:
        if not part:
            continue
        if isinstance(part, str):
            part = part.strip()
            if part:
                tokens.append(part)
        else:
            tokens.extend(item.strip() for item in part if item and item.strip())
    return " ".join(tokens)


def env_flags(
    target: BuildTarget, environ: Mapping[str, str] | None = None
) -> list[str]:
    """Return environment overrides for compiler flags.

    CFLAGS applies to every build, CFLAGSD or CFLAGSR to the matching
    configuration, and SRCBLD_CFLAGS is appended after both.

    Args:
        target: The build tuple being generated.
        environ: Environment to read (default: os.environ).
    """
    if environ is None:
        environ = os.environ
    names = ["CFLAGS", "CFLAGSD" if target.is_debug else "CFLAGSR", UMBRELLA_ENV_VAR]
    return [environ[name].strip() for name in names if environ.get(name, "").strip()]
