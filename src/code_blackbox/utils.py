"""
Utility functions for code-blackbox.

Includes encoding-aware file reading, path normalization and small line
helpers shared by the planner, the reconciler and the session glue.
"""

from __future__ import annotations

import base64
import posixpath
from pathlib import Path

import chardet


def detect_encoding(file_path: Path | str, sample_size: int = 8192) -> str:
    """
    Detect the encoding of a file.

    Strategy:
    1. Check for BOM markers first
    2. Try UTF-8 (most common for modern source files)
    3. Fall back to chardet only if UTF-8 fails

    Args:
        file_path: Path to the file
        sample_size: Number of bytes to sample for detection

    Returns:
        Detected encoding name (e.g., 'utf-8', 'latin-1')
    """
    with open(file_path, "rb") as f:
        sample = f.read(sample_size)

    if not sample:
        return "utf-8"

    if sample.startswith(b"\xef\xbb\xbf"):
        return "utf-8-sig"
    if sample.startswith(b"\xff\xfe"):
        return "utf-16-le"
    if sample.startswith(b"\xfe\xff"):
        return "utf-16-be"

    try:
        sample.decode("utf-8")
        return "utf-8"
    except UnicodeDecodeError:
        pass

    encoding = chardet.detect(sample).get("encoding")
    if encoding is None:
        return "utf-8"

    encoding = encoding.lower()
    if encoding in ("ascii", "utf-8", "utf8"):
        return "utf-8"
    return encoding


def read_file_safe(file_path: Path | str, encoding: str | None = None) -> tuple[str, str]:
    """
    Read a whole file with encoding detection.

    Tries UTF-8 strictly first so files with emojis or smart quotes decode
    correctly, then falls back to the detected encoding with replacement.

    Args:
        file_path: Path to the file
        encoding: Encoding to use (None for auto-detect)

    Returns:
        Tuple of (content, encoding_used)

    Raises:
        OSError: If the file cannot be read
    """
    if encoding is not None:
        try:
            with open(file_path, encoding=encoding, errors="replace") as f:
                return f.read(), encoding
        except LookupError:
            # Unknown encoding, fall through to auto-detect
            pass

    try:
        with open(file_path, encoding="utf-8", errors="strict") as f:
            return f.read(), "utf-8"
    except UnicodeDecodeError:
        pass

    detected = detect_encoding(file_path)
    try:
        with open(file_path, encoding=detected, errors="replace") as f:
            return f.read(), detected
    except LookupError:
        with open(file_path, encoding="utf-8", errors="replace") as f:
            return f.read(), "utf-8"


def normalize_path(path: str) -> str:
    """
    Normalize a path for consistent comparison.

    Uses forward slashes and collapses ``.``/``..`` segments, so
    ``src/./a/../b.ts`` and ``src\\b.ts`` both become ``src/b.ts``.
    """
    if not path:
        return path
    return posixpath.normpath(path.replace("\\", "/"))


def relative_to_base(path: str, base: Path | str | None) -> str:
    """Express an absolute path relative to base; relative paths pass through."""
    if base is None or not Path(path).is_absolute():
        return normalize_path(path)
    try:
        return normalize_path(str(Path(path).relative_to(base)))
    except ValueError:
        return normalize_path(path)


def leading_whitespace(line: str) -> str:
    """Return the indentation of a line."""
    return line[: len(line) - len(line.lstrip())]


def split_lines(text: str) -> list[str]:
    """Split on LF only; a trailing newline yields a final empty line."""
    return text.split("\n")


def data_url(mime: str, text: str) -> str:
    """Encode text as a base64 ``data:`` URL."""
    payload = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return f"data:{mime};base64,{payload}"
