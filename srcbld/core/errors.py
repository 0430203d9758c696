# SPDX-License-Identifier: MIT
"""Custom exceptions for srcbld.

All srcbld exceptions inherit from SrcbldError, which includes
optional source location information for better error messages.

Only conditions that stop the whole invocation are raised. Problems
that affect a single option line, file entry or build tuple are
collected as plain strings and returned alongside partial results.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from srcbld.util.source_location import SourceLocation


class SrcbldError(Exception):
    """Base class for all srcbld exceptions.

    Attributes:
        message: The error message.
        location: Optional source location where the error occurred.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation | None = None,
    ) -> None:
        self.message = message
        self.location = location
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class ProjectFileError(SrcbldError):
    """The project file is missing or cannot be read or written."""


class VersionError(SrcbldError):
    """Project file requires a newer version of srcbld.

    Attributes:
        required: Version the project file asks for.
        current: Version of the running tool.
    """

    def __init__(
        self,
        required: tuple[int, int, int],
        current: tuple[int, int, int],
        location: SourceLocation | None = None,
    ) -> None:
        self.required = required
        self.current = current
        req = ".".join(str(part) for part in required)
        cur = ".".join(str(part) for part in current)
        super().__init__(
            f"project file requires srcbld version {req} or higher "
            f"(this is version {cur})",
            location,
        )


class UnknownOptionError(SrcbldError):
    """An option name is not part of the schema.

    Attributes:
        name: The option name as it was written.
    """

    def __init__(
        self,
        name: str,
        location: SourceLocation | None = None,
    ) -> None:
        self.name = name
        super().__init__(f"{name} is an unknown option", location)


class GenerateError(SrcbldError):
    """Error during the generate phase.

    Raised when an output directory or file cannot be written.
    """
