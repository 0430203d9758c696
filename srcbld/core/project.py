# SPDX-License-Identifier: MIT
"""Project model: option values and file lists read from a project file.

A project file is a line-oriented subset of YAML:

    # Requires srcbld version 1.0.0 or higher to process

    Options:
        Project:     hello          # project name
        exe_type:    console
        PCH:         pch.h

    Files:
        pch.cpp
        src/*.cpp
        app.rc
        .include ../common/.srcfiles.yaml

Section headers start in the first column. Everything else is indented
content of the current section. Problems that only affect a single line
are collected and returned; only an unreadable root file or a version
gate failure raise.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from srcbld.core.errors import (
    ProjectFileError,
    UnknownOptionError,
    VersionError,
)
from srcbld.core.finder import find_project_file
from srcbld.core.options import (
    TOOL_VERSION,
    Opt,
    Version,
    is_newer,
    lookup,
    lookup_by_name,
    normalize_bool,
    parse_version_line,
)
from srcbld.util.source_location import SourceLocation

logger = logging.getLogger(__name__)

# Prefix used to persist option lines this tool does not recognize.
REVIVAL_MARKER = "#~"

SOURCE_EXTENSIONS: tuple[str, ...] = (".c", ".cpp", ".cc", ".cxx")

# Used when a project file lists no files at all.
DEFAULT_SOURCE_PATTERNS: tuple[str, ...] = ("*.c", "*.cpp", "*.cc", "*.cxx", "*.rc")

# Directory names that are never used as a project name.
_SOURCE_DIR_NAMES = ("src", "source")

_GLOB_CHARS = re.compile(r"[*?\[]")


class Section(Enum):
    NONE = "none"
    OPTIONS = "options"
    FILES = "files"
    DEBUG_FILES = "debugfiles"
    GZIP = "gzip"
    XPM = "xpm"
    PNG = "png"


# "Lib:" is an older name for a file list.
_SECTION_PREFIXES: tuple[tuple[str, Section], ...] = (
    ("options", Section.OPTIONS),
    ("debugfiles", Section.DEBUG_FILES),
    ("files", Section.FILES),
    ("gzip", Section.GZIP),
    ("xpm", Section.XPM),
    ("png", Section.PNG),
    ("lib", Section.FILES),
)


@dataclass
class OptionValue:
    """Per-project value and comment for one option."""

    value: str | None = None
    comment: str | None = None


@dataclass(frozen=True)
class RecognizedOption:
    """An option line whose name is part of the schema."""

    key: Opt
    value: str
    comment: str | None = None


@dataclass(frozen=True)
class UnrecognizedOption:
    """An option line kept verbatim because the schema does not know it."""

    raw: str


OptionLine = RecognizedOption | UnrecognizedOption


def is_source_file(filename: str) -> bool:
    """Return True for C and C++ source files."""
    return os.path.splitext(filename)[1].lower() in SOURCE_EXTENSIONS


def section_for_header(line: str) -> Section:
    """Map a section header line such as "Files:" or "[FILES]" to a Section."""
    text = line.strip().lstrip("[").lower()
    for prefix, section in _SECTION_PREFIXES:
        if text.startswith(prefix):
            return section
    return Section.NONE


def split_option_line(line: str) -> tuple[str, str, str | None] | None:
    """Split an option line into name, value and comment.

    The name ends at the first ":" or "=". A value in single or double
    quotes may contain "#"; otherwise the first "#" starts the comment.

    Args:
        line: The option line, with or without leading whitespace.

    Returns:
        (name, value, comment) with comment None when absent, or None
        if the line has no separator.

    Examples:
        >>> split_option_line("  WarnLevel: 3  # quieter")
        ('WarnLevel', '3', 'quieter')
        >>> split_option_line('CFlags = "-DCOLOR=#fff" # web color')
        ('CFlags', '-DCOLOR=#fff', 'web color')
        >>> split_option_line("no separator here") is None
        True
    """
    text = line.strip()
    positions = [pos for pos in (text.find(":"), text.find("=")) if pos > 0]
    if not positions:
        return None
    sep = min(positions)
    name = text[:sep].strip()
    rest = text[sep + 1 :].strip()

    if rest[:1] in ("'", '"'):
        end = rest.find(rest[0], 1)
        if end > 0:
            value = rest[1:end]
            tail = rest[end + 1 :]
            hash_pos = tail.find("#")
            comment = tail[hash_pos + 1 :].strip() if hash_pos >= 0 else ""
            return name, value, comment or None

    hash_pos = rest.find("#")
    if hash_pos >= 0:
        return name, rest[:hash_pos].strip(), rest[hash_pos + 1 :].strip() or None
    return name, rest, None


def _relative(path: Path | str, base: Path) -> str:
    return Path(os.path.relpath(path, base)).as_posix()


class ProjectModel:
    """Options and file lists for a single project.

    Option values are only changed through set_option(), which keeps
    boolean options normalized to "true" or "false".

    Attributes:
        path: The project file this model was read from, if any.
        root_dir: Directory that file-list entries are relative to.
        source_files: Files from the Files section, in declaration order.
        debug_files: Files that are only built in debug configurations.
        rc_file: The resource script, if one is listed.
        help_file: The HTML help project (.hhp), if one is listed.
        idl_files: Interface definition files.
        pch_header: Precompiled header, or None when not used.
        pch_source: Source file that builds the precompiled header.
        gzip_files: Source to header mapping for gzip conversion.
        xpm_files: Source to header mapping for XPM conversion.
        png_files: Source to header mapping for PNG conversion.
        option_lines: Option lines in file order, recognized or not.
        required_version: Version from the "# Requires" line, if present.
    """

    def __init__(self, root_dir: Path | None = None, path: Path | None = None) -> None:
        self.path = path
        self.root_dir = Path(root_dir) if root_dir else Path.cwd()
        self._values: dict[Opt, OptionValue] = {}
        self.option_lines: list[OptionLine] = []
        self.source_files: list[str] = []
        self.debug_files: list[str] = []
        self.rc_file: str | None = None
        self.help_file: str | None = None
        self.idl_files: list[str] = []
        self.pch_header: str | None = None
        self.pch_source: str | None = None
        self.gzip_files: dict[str, str] = {}
        self.xpm_files: dict[str, str] = {}
        self.png_files: dict[str, str] = {}
        self.required_version: Version | None = None
        self.files_declared = False

    # -- construction -----------------------------------------------------

    @classmethod
    def parse(
        cls, path: Path | str, *, root_dir: Path | None = None
    ) -> tuple[ProjectModel, list[str]]:
        """Read a project file.

        Args:
            path: The project file.
            root_dir: Directory file entries are relative to. Defaults
                to the directory containing the project file.

        Returns:
            The model and a list of recoverable errors.

        Raises:
            ProjectFileError: If the file cannot be read.
            VersionError: If the file requires a newer srcbld.
        """
        path = Path(path)
        model = cls(root_dir or path.parent, path)
        errors: list[str] = []

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ProjectFileError(f"cannot read project file: {e}") from e

        model._read_text(text, path, model.root_dir, errors, {path.resolve()})
        model._apply_defaults(errors)
        for error in errors:
            logger.debug("%s", error)
        return model, errors

    @classmethod
    def from_directory(
        cls, directory: Path | None = None
    ) -> tuple[ProjectModel, list[str]]:
        """Locate and read the project file of a directory.

        Raises:
            ProjectFileError: If no project file can be found.
        """
        directory = Path(directory) if directory else Path.cwd()
        found = find_project_file(directory)
        if found is None:
            raise ProjectFileError(f"no project file found in {directory}")
        return cls.parse(found, root_dir=directory)

    @classmethod
    def create(
        cls, directory: Path | None = None, *, name: str | None = None
    ) -> tuple[ProjectModel, list[str]]:
        """Build a model for a directory that has no project file yet.

        The project name defaults to the directory name and the file list
        to the C/C++ sources and resource script found in the directory.
        """
        model = cls(directory)
        if name:
            model.set_option(Opt.PROJECT, name)
        errors: list[str] = []
        model._apply_defaults(errors)
        return model, errors

    # -- reading ----------------------------------------------------------

    def _read_text(
        self,
        text: str,
        path: Path,
        base_dir: Path,
        errors: list[str],
        visited: set[Path],
    ) -> None:
        section = Section.NONE
        for lineno, line in enumerate(text.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("---"):
                continue
            if stripped.lower().startswith("%yaml"):
                continue

            location = SourceLocation.of(path, lineno)
            if stripped.startswith("#"):
                version = parse_version_line(stripped)
                if version is not None:
                    self._check_version(version, location)
                elif stripped.startswith(REVIVAL_MARKER) and section is Section.OPTIONS:
                    kept = stripped[len(REVIVAL_MARKER) :].strip()
                    self._read_option(kept, location, errors, revived=True)
                continue

            if line[0].isalpha() or line[0] == "[":
                section = section_for_header(line)
                if section is Section.NONE:
                    logger.debug("%s: ignoring section %s", location, stripped)
                continue

            if section is Section.OPTIONS:
                self._read_option(stripped, location, errors, revived=False)
            elif section in (Section.FILES, Section.DEBUG_FILES):
                self._read_file_entry(
                    stripped, section, base_dir, location, errors, visited
                )
            elif section in (Section.GZIP, Section.XPM, Section.PNG):
                self._read_conversion(stripped, section, location, errors)

    def _check_version(self, version: Version, location: SourceLocation) -> None:
        if self.required_version is None or version > self.required_version:
            self.required_version = version
        if is_newer(version, TOOL_VERSION):
            raise VersionError(version, TOOL_VERSION, location)

    def _read_option(
        self,
        text: str,
        location: SourceLocation,
        errors: list[str],
        *,
        revived: bool,
    ) -> None:
        parts = split_option_line(text)
        if parts is None:
            if revived:
                self.option_lines.append(UnrecognizedOption(text))
            else:
                errors.append(f"{location}: Invalid option line: {text}")
            return

        name, value, comment = parts
        if name.lower() == "targetdirs":
            # Older files used one option for both target directories.
            dirs = [part.strip() for part in value.split(";")]
            if dirs and dirs[0]:
                self.set_option(Opt.TARGET_DIR32, dirs[0])
            if len(dirs) > 1 and dirs[1]:
                self.set_option(Opt.TARGET_DIR64, dirs[1])
            return

        desc = lookup_by_name(name)
        if desc is None:
            self.option_lines.append(UnrecognizedOption(text))
            if revived:
                logger.debug("%s: %s is still not recognized", location, name)
            else:
                errors.append(f"{location}: {name} is an unknown option")
            return

        if desc.key is Opt.BUILD_LIBS:
            value = re.sub(r"\.lib\b", "", value, flags=re.IGNORECASE)
        self.set_option(desc.key, value, comment)
        self.option_lines.append(
            RecognizedOption(desc.key, self.get_option(desc.key) or "", comment)
        )

    def _read_file_entry(
        self,
        text: str,
        section: Section,
        base_dir: Path,
        location: SourceLocation,
        errors: list[str],
        visited: set[Path],
    ) -> None:
        self.files_declared = True
        if section is Section.DEBUG_FILES:
            target = self.debug_files
        else:
            target = self.source_files

        if text.lower().startswith(".include"):
            include = text[len(".include") :].split("#", 1)[0].strip()
            merged = self._read_include(include, base_dir, location, errors, visited)
            for entry in merged:
                self._add_file(entry, target)
            return

        entry = text.split("#", 1)[0].strip().replace("\\", "/")
        if not entry:
            return
        if _GLOB_CHARS.search(entry):
            self._add_pattern(entry, base_dir, target)
            return

        entry = Path(os.path.normpath(entry)).as_posix()
        self._add_file(entry, target)
        if not (base_dir / entry).exists():
            errors.append(f"{location}: Cannot locate {entry}")

    def _read_include(
        self,
        include: str,
        base_dir: Path,
        location: SourceLocation,
        errors: list[str],
        visited: set[Path],
    ) -> list[str]:
        """Read an included project file and return its sources.

        Entries of the included file are relative to its own directory.
        They are re-expressed relative to base_dir, the directory of the
        file holding the .include line.
        """
        include_path = base_dir / include
        resolved = include_path.resolve()
        if resolved in visited:
            logger.debug("%s: skipping recursive include of %s", location, include)
            return []

        try:
            text = include_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            errors.append(f"{location}: Cannot open {include}")
            return []

        include_dir = include_path.parent
        child = ProjectModel(include_dir, include_path)
        child._read_text(
            text, include_path, include_dir, errors, visited | {resolved}
        )
        return [
            _relative(include_dir / entry, base_dir) for entry in child.source_files
        ]

    def _read_conversion(
        self,
        text: str,
        section: Section,
        location: SourceLocation,
        errors: list[str],
    ) -> None:
        parts = split_option_line(text)
        if parts is None or not parts[1]:
            errors.append(f"{location}: Invalid {section.name} line: {text}")
            return
        source, dest, _ = parts
        mapping = {
            Section.GZIP: self.gzip_files,
            Section.XPM: self.xpm_files,
            Section.PNG: self.png_files,
        }[section]
        mapping[source] = dest

    def _add_pattern(self, pattern: str, base_dir: Path, target: list[str]) -> None:
        for match in sorted(base_dir.glob(pattern)):
            if match.is_file():
                self._add_file(_relative(match, base_dir), target)

    def _add_file(self, entry: str, target: list[str]) -> None:
        if entry in target:
            return
        target.append(entry)

        ext = os.path.splitext(entry)[1].lower()
        if ext == ".rc":
            self.rc_file = entry
        elif ext == ".idl":
            if entry not in self.idl_files:
                self.idl_files.append(entry)
        elif ext == ".hhp":
            self.help_file = entry

    def _apply_defaults(self, errors: list[str]) -> None:
        if not self.get_option(Opt.PROJECT):
            self.set_option(Opt.PROJECT, default_project_name(self.root_dir))

        if not self.files_declared:
            for pattern in DEFAULT_SOURCE_PATTERNS:
                self._add_pattern(pattern, self.root_dir, self.source_files)

        header = self.get_option(Opt.PCH)
        if header and self.has_option(Opt.PCH):
            self.pch_header = header
            self.pch_source = self._find_pch_source(header, errors)

    def _find_pch_source(self, header: str, errors: list[str]) -> str:
        stem = os.path.splitext(header)[0]

        for entry in self.source_files:
            base, ext = os.path.splitext(entry)
            if ext.lower() in SOURCE_EXTENSIONS and Path(base).name == Path(stem).name:
                return entry

        for ext in (".cpp", ".cxx", ".cc", ".c"):
            if (self.root_dir / (stem + ext)).exists():
                return stem + ext

        errors.append(
            f"No C++ source file found that matches {header} -- "
            "precompiled header will not build correctly."
        )
        for entry in self.source_files:
            if is_source_file(entry):
                return stem + os.path.splitext(entry)[1]
        return stem + ".cpp"

    # -- option access ----------------------------------------------------

    def get_option(self, key: Opt) -> str | None:
        """Get an option value, falling back to the schema default."""
        current = self._values.get(key)
        if current is not None and current.value is not None:
            return current.value
        return lookup(key).default

    def get_comment(self, key: Opt) -> str | None:
        current = self._values.get(key)
        return current.comment if current else None

    def has_option(self, key: Opt) -> bool:
        """Return True if the option has a usable, non-"none" value."""
        value = self.get_option(key)
        return bool(value) and value.strip().lower() != "none"

    def is_option_true(self, key: Opt) -> bool:
        value = self.get_option(key)
        return value is not None and value.strip().lower() in ("true", "yes")

    def is_changed(self, key: Opt) -> bool:
        """Return True if the option was set to something other than its default."""
        current = self._values.get(key)
        if current is None or current.value is None:
            return False
        return current.value != lookup(key).default

    def changed_options(self) -> list[Opt]:
        return [key for key in Opt if self.is_changed(key)]

    def set_option(
        self, key: Opt, value: str | None, comment: str | None = None
    ) -> None:
        """Set an option value.

        Boolean options are normalized to "true" or "false" whatever the
        caller passes in.

        Args:
            key: Option to set.
            value: New value; None clears the value.
            comment: New comment. None keeps the existing comment.
        """
        desc = lookup(key)
        if value is not None:
            value = value.strip()
            if desc.is_bool:
                value = normalize_bool(value)
        current = self._values.setdefault(key, OptionValue())
        current.value = value
        if comment is not None:
            current.comment = comment

    def set_option_by_name(
        self, name: str, value: str | None, comment: str | None = None
    ) -> None:
        """Set an option by its display name.

        Raises:
            UnknownOptionError: If the name is not part of the schema.
        """
        desc = lookup_by_name(name)
        if desc is None:
            raise UnknownOptionError(name)
        self.set_option(desc.key, value, comment)

    @property
    def unrecognized_options(self) -> list[UnrecognizedOption]:
        lines = self.option_lines
        return [line for line in lines if isinstance(line, UnrecognizedOption)]

    # -- convenience --------------------------------------------------------

    @property
    def project_name(self) -> str:
        return self.get_option(Opt.PROJECT) or ""

    @property
    def exe_type(self) -> str:
        return (self.get_option(Opt.EXE_TYPE) or "console").strip().lower()

    def is_exe_type_lib(self) -> bool:
        return self.exe_type == "lib"

    def is_exe_type_dll(self) -> bool:
        return self.exe_type in ("dll", "ocx")

    def is_exe_type_console(self) -> bool:
        return self.exe_type == "console"

    def is_optimize_speed(self) -> bool:
        return (self.get_option(Opt.OPTIMIZE) or "").strip().lower() == "speed"

    def source_files_for(self, debug: bool) -> list[str]:
        """Return the files to build, adding debug-only files when asked."""
        files = list(self.source_files)
        if debug:
            files.extend(entry for entry in self.debug_files if entry not in files)
        return files

    def __repr__(self) -> str:
        return (
            f"ProjectModel({self.project_name!r}, "
            f"files={len(self.source_files)}, root_dir={str(self.root_dir)!r})"
        )


def default_project_name(directory: Path) -> str:
    """Derive a project name from a directory.

    A directory literally named "src" or "source" is skipped in favor
    of its parent.
    """
    directory = directory.resolve()
    if directory.name.lower() in _SOURCE_DIR_NAMES and directory.parent != directory:
        return directory.parent.name
    return directory.name
