"""
Windowed reconciliation of read-tool output.

A read tool shows an excerpt of a file as numbered lines between tags:

    <file>
    00018| export function add(a: number, b: number): number {
    00019|   const sum = a + b;
    ...
    (File has more lines. Use 'offset' parameter to read beyond line 26)
    </file>

The numbers map the excerpt to a line window over the real file. The file
is read from disk and redacted with that window, and the redacted lines are
put back behind their original prefixes. Anything that does not line up
makes the reconciler abstain and return None.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .edits import LineWindow
from .utils import read_file_safe, split_lines

if TYPE_CHECKING:
    from .config import BlackboxConfig
    from .redactor import Redactor
    from .tree_cache import TreeCache

logger = logging.getLogger(__name__)

FILE_START_TAG = "<file>\n"
FILE_END_TAG = "\n</file>"

LINE_PREFIX_PATTERN = re.compile(r"^(\d+\| )(.*)$", re.DOTALL)
LINE_NUMBER_PATTERN = re.compile(r"^(\d+)\|\s")


@dataclass
class PrefixedLine:
    """One numbered line of an excerpt."""

    prefix: str
    text: str

    @property
    def number(self) -> int | None:
        return parse_line_prefix(self.prefix)


@dataclass
class FileSection:
    """The parsed interior of a ``<file>`` section."""

    # Offsets of the interior within the wrapped text
    start: int
    end: int
    prefixed: list[PrefixedLine]
    trailing: list[str]


def parse_line_prefix(prefix: str) -> int | None:
    """Return the line number carried by a prefix like ``00018| ``."""
    match = LINE_NUMBER_PATTERN.match(prefix)
    if not match:
        return None
    return int(match.group(1))


def extract_section(wrapped: str) -> FileSection | None:
    """
    Locate the ``<file>`` section and split it into numbered and trailing lines.

    Numbered lines are read from the top until the first line without a
    prefix; everything from there on is trailing content.
    """
    start = wrapped.find(FILE_START_TAG)
    if start == -1:
        return None

    interior_start = start + len(FILE_START_TAG)
    length = wrapped[interior_start:].find(FILE_END_TAG)
    if length == -1:
        return None

    lines = split_lines(wrapped[interior_start:interior_start + length])
    prefixed: list[PrefixedLine] = []
    for line in lines:
        match = LINE_PREFIX_PATTERN.match(line)
        if not match:
            break
        prefixed.append(PrefixedLine(prefix=match.group(1), text=match.group(2)))

    return FileSection(
        start=interior_start,
        end=interior_start + length,
        prefixed=prefixed,
        trailing=lines[len(prefixed):],
    )


def derive_window(prefixed: list[PrefixedLine]) -> LineWindow | None:
    """Build the window spanning the first and last numbered lines."""
    if not prefixed:
        return None
    start = prefixed[0].number
    end = prefixed[-1].number
    if start is None or end is None:
        return None
    try:
        return LineWindow(start, end)
    except ValueError:
        return None


def redact_output(
    path: Path | str,
    wrapped: str,
    *,
    cache: TreeCache | None = None,
    config: BlackboxConfig | None = None,
    redactor: Redactor | None = None,
) -> str | None:
    """
    Redact the excerpt of a file embedded in a read-tool output.

    Args:
        path: Path of the file the excerpt was read from
        wrapped: Full tool output containing one ``<file>`` section
        cache: Tree cache to reuse (ignored when a redactor is given)
        config: Marker configuration (ignored when a redactor is given)
        redactor: Redactor to run the pipeline with (optional)

    Returns:
        The output with the excerpt redacted, or None to leave it unchanged
    """
    section = extract_section(wrapped)
    if section is None:
        logger.debug("No <file> section in output", extra={"file_path": str(path)})
        return None

    window = derive_window(section.prefixed)
    if window is None:
        logger.debug("No numbered lines in <file> section", extra={"file_path": str(path)})
        return None

    try:
        source, _ = read_file_safe(path)
    except OSError as e:
        logger.debug("Could not read file for redaction", extra={"file_path": str(path), "error": str(e)})
        return None

    if redactor is None:
        from .redactor import Redactor

        redactor = Redactor(config=config, cache=cache)

    redacted = split_lines(redactor.redact_file(path, source, window))

    if len(redacted) < window.end:
        logger.debug(
            "File is shorter than the excerpt window",
            extra={"file_path": str(path), "lines": len(redacted), "window_end": window.end},
        )
        return None

    updated = redacted[window.start - 1:window.end]
    if len(updated) != len(section.prefixed):
        logger.debug(
            "Excerpt numbering does not match the file",
            extra={"file_path": str(path), "expected": len(section.prefixed), "actual": len(updated)},
        )
        return None

    rebuilt = [f"{entry.prefix}{line}" for entry, line in zip(section.prefixed, updated)]
    content = "\n".join(rebuilt + section.trailing)
    return f"{wrapped[:section.start]}{content}{wrapped[section.end:]}"
