# SPDX-License-Identifier: MIT
"""Write generated files only when their content changes.

Rewriting an unchanged build script would update its modification time
and make ninja (and anything else watching timestamps) think something
is different. Every generated file therefore goes through
write_if_changed(), which also implements dry-run reporting.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from srcbld.core.errors import GenerateError

logger = logging.getLogger(__name__)

# How far ahead the diff looks for a line that merely moved.
DIFF_LOOKAHEAD = 16


def normalize_lines(lines: Iterable[str]) -> list[str]:
    """Trim trailing whitespace and collapse runs of blank lines.

    Examples:
        >>> normalize_lines(["a  ", "", "", "b", "", ""])
        ['a', '', 'b']
    """
    result: list[str] = []
    for line in lines:
        line = line.rstrip()
        if not line and (not result or not result[-1]):
            continue
        result.append(line)
    while result and not result[-1]:
        result.pop()
    return result


def normalize_content(content: str | Iterable[str]) -> str:
    """Return normalized text ending in a single newline."""
    lines = content.splitlines() if isinstance(content, str) else content
    return "\n".join(normalize_lines(lines)) + "\n"


def diff_lines(
    old: list[str], new: list[str], lookahead: int = DIFF_LOOKAHEAD
) -> list[str]:
    """Describe the differences between two versions of a file.

    This is a two-pointer walk rather than a full LCS diff. When lines
    differ, it looks up to `lookahead` lines ahead in either file for
    the other side's line; if found, the skipped lines are reported as
    added or removed, otherwise the pair is reported as a change.

    Returns:
        Human-readable lines such as "old 12: ..." and "new 12: ...".

    Examples:
        >>> diff_lines(["a", "b"], ["a", "x", "b"])
        ['new 2: x']
        >>> diff_lines(["a", "b"], ["a", "c"])
        ['old 2: b', 'new 2: c']
    """
    output: list[str] = []
    i = j = 0
    while i < len(old) and j < len(new):
        if old[i] == new[j]:
            i += 1
            j += 1
            continue

        window = new[j + 1 : j + 1 + lookahead]
        if old[i] in window:
            end = j + 1 + window.index(old[i])
            output.extend(f"new {k + 1}: {new[k]}" for k in range(j, end))
            j = end
            continue

        window = old[i + 1 : i + 1 + lookahead]
        if new[j] in window:
            end = i + 1 + window.index(new[j])
            output.extend(f"old {k + 1}: {old[k]}" for k in range(i, end))
            i = end
            continue

        output.append(f"old {i + 1}: {old[i]}")
        output.append(f"new {j + 1}: {new[j]}")
        i += 1
        j += 1

    output.extend(f"old {k + 1}: {old[k]}" for k in range(i, len(old)))
    output.extend(f"new {k + 1}: {new[k]}" for k in range(j, len(new)))
    return output


def _write(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8", newline="\n")
    except OSError as e:
        raise GenerateError(f"cannot write {path}: {e}") from e


def write_if_changed(
    path: Path | str,
    content: str | Iterable[str],
    *,
    dry_run: bool = False,
    force: bool = False,
    out: TextIO | None = None,
) -> bool:
    """Write a file unless it already holds the same content.

    Args:
        path: File to write.
        content: New content, as text or as a sequence of lines.
        dry_run: Report what would change instead of writing.
        force: Write even if the content is unchanged.
        out: Stream for dry-run reports (default: stdout).

    Returns:
        True if the file was written.

    Raises:
        GenerateError: If the file or its directory cannot be written.
    """
    path = Path(path)
    text = normalize_content(content)
    stream = out if out is not None else sys.stdout

    if not path.exists():
        if dry_run:
            print(f"would create {path}", file=stream)
            return False
        _write(path, text)
        logger.info("Created %s", path)
        return True

    try:
        old_lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as e:
        raise GenerateError(f"cannot read {path}: {e}") from e

    new_lines = text.splitlines()
    if old_lines == new_lines and not force:
        logger.debug("%s is unchanged", path)
        return False

    if dry_run:
        print(f"{path} dryrun changes:", file=stream)
        for line in diff_lines(old_lines, new_lines):
            print(f"  {line}", file=stream)
        return False

    _write(path, text)
    logger.info("Updated %s", path)
    return True
