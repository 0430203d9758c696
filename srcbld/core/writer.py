# SPDX-License-Identifier: MIT
"""Write a ProjectModel back to a project file.

Two entry points are provided:

- write_project() produces a complete new file from a model.
- update_project() edits the option lines of an existing file in place,
  leaving comments, file lists and anything else it does not understand
  untouched.

Options the schema does not recognize are written with the "#~" marker
so they survive as comments and come back to life once a newer srcbld
understands them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from srcbld.core.errors import ProjectFileError
from srcbld.core.options import (
    Opt,
    all_options,
    format_version_line,
    lookup,
    lookup_by_name,
    min_version_required,
    parse_version_line,
)
from srcbld.core.project import (
    REVIVAL_MARKER,
    ProjectModel,
    Section,
    section_for_header,
    split_option_line,
)
from srcbld.util.writefile import write_if_changed

logger = logging.getLogger(__name__)

# Values longer than this get a wider column so comments still line up.
_VALUE_WIDTH = 12


def quote_value(name: str, value: str) -> str:
    """Quote a value that would not read back as written.

    A value needs quotes when it contains "#" or starts with a quote
    character. Double quotes are used unless the value contains one.

    Examples:
        >>> quote_value("CFlags", "-DCOLOR=#fff")
        '"-DCOLOR=#fff"'

    Raises:
        ProjectFileError: If the value needs quotes but contains both
            quote characters.
    """
    if "#" not in value and value[:1] not in ("'", '"'):
        return value
    for quote in ('"', "'"):
        if quote not in value:
            return f"{quote}{value}{quote}"
    raise ProjectFileError(
        f"{name}: value {value!r} needs quotes but contains both ' and \""
    )


def format_option(name: str, value: str, comment: str | None = None) -> str:
    """Format one line of the Options block.

    Examples:
        >>> format_option("WarnLevel", "3", "quieter")
        '    WarnLevel:   3            # quieter'
        >>> format_option("Project", "hello")
        '    Project:     hello'
    """
    value = quote_value(name, value)
    label = f"{name}:"
    if not comment:
        return f"    {label:<12} {value}".rstrip()
    if len(value) > _VALUE_WIDTH:
        return f"    {label:<12} {value:<30}    # {comment}"
    return f"    {label:<12} {value:<12} # {comment}"


def options_to_write(model: ProjectModel) -> list[Opt]:
    """Return the options a written file must contain, in schema order.

    That is every required option plus every option whose value differs
    from its default.
    """
    return [
        desc.key
        for desc in all_options()
        if desc.required or model.is_changed(desc.key)
    ]


def _option_line(model: ProjectModel, key: Opt, comment: str | None = None) -> str:
    desc = lookup(key)
    if comment is None:
        comment = model.get_comment(key) or desc.comment
    return format_option(desc.name, model.get_option(key) or "", comment)


def _version_line(keys: list[Opt]) -> str:
    return format_version_line(min_version_required(keys))


def render_project(model: ProjectModel) -> list[str]:
    """Return the lines of a complete project file for a model."""
    keys = options_to_write(model)
    lines = [_version_line(keys), "", "Options:"]
    lines += [_option_line(model, key) for key in keys]
    lines += [
        f"    {REVIVAL_MARKER} {option.raw}" for option in model.unrecognized_options
    ]

    lines += ["", "Files:"]
    lines += [f"    {entry}" for entry in model.source_files]
    if model.debug_files:
        lines += ["", "DebugFiles:"]
        lines += [f"    {entry}" for entry in model.debug_files]

    for header, mapping in (
        ("GZIP:", model.gzip_files),
        ("XPM:", model.xpm_files),
        ("PNG:", model.png_files),
    ):
        if mapping:
            lines += ["", header]
            lines += [f"    {source}: {dest}" for source, dest in mapping.items()]
    return lines


def write_project(
    model: ProjectModel, path: Path | str, *, dry_run: bool = False
) -> bool:
    """Write a complete project file.

    Args:
        model: The project to write.
        path: Destination file.
        dry_run: Report what would change without writing.

    Returns:
        True if the file was written.
    """
    return write_if_changed(path, render_project(model), dry_run=dry_run)


def update_project(
    model: ProjectModel, path: Path | str, *, dry_run: bool = False
) -> bool:
    """Update the option lines of an existing project file.

    Option lines that the model sets are rewritten with the model's
    value, keeping the comment already in the file. "#~" lines the
    schema now recognizes become live options again. Options that still
    need to be written are appended to the end of the Options block, and
    the "# Requires" line is brought up to date.

    Args:
        model: Project whose option values are written.
        path: Existing project file.
        dry_run: Report what would change without writing.

    Returns:
        True if the file was written.
    """
    path = Path(path)
    old_lines = path.read_text(encoding="utf-8").splitlines()
    wanted = options_to_write(model)
    written: set[Opt] = set()

    lines: list[str] = []
    section = Section.NONE
    options_end: int | None = None
    version_index: int | None = None

    for line in old_lines:
        stripped = line.strip()
        if stripped and (line[0].isalpha() or line[0] == "["):
            section = section_for_header(line)
            lines.append(line)
            if section is Section.OPTIONS:
                options_end = len(lines)
            continue

        if stripped.startswith("#") and parse_version_line(stripped) is not None:
            version_index = len(lines)
            lines.append(line)
            continue

        if section is not Section.OPTIONS or not stripped:
            lines.append(line)
            continue

        revived = stripped.startswith(REVIVAL_MARKER)
        if stripped.startswith("#") and not revived:
            lines.append(line)
            options_end = len(lines)
            continue

        text = stripped[len(REVIVAL_MARKER) :].strip() if revived else stripped
        parts = split_option_line(text)
        desc = lookup_by_name(parts[0]) if parts else None
        if desc is None or desc.key in written:
            lines.append(line)
        else:
            lines.append(_option_line(model, desc.key, parts[2] if parts else None))
            written.add(desc.key)
            if revived:
                logger.info("Reviving option %s", desc.name)
        options_end = len(lines)

    missing = [_option_line(model, key) for key in wanted if key not in written]
    if missing:
        if options_end is None:
            start = 0 if version_index is None else version_index + 1
            lines[start:start] = ["", "Options:", *missing, ""]
        else:
            lines[options_end:options_end] = missing

    used = sorted(written | set(wanted), key=lambda key: key.value)
    version = _version_line(used)
    if version_index is None:
        lines[0:0] = [version, ""]
    else:
        lines[version_index] = version

    return write_if_changed(path, lines, dry_run=dry_run)
