"""
Configuration models and defaults for code-blackbox.

Holds the marker text, the extension to grammar table and the
`BlackboxConfig` dataclass shared by the engine, the session glue and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

DEFAULT_PLACEHOLDER = "implementation hidden"

# Marker forms inserted in place of redacted content
HIDDEN_LINE = f"// {DEFAULT_PLACEHOLDER}"
HIDDEN_INLINE = f"/* {DEFAULT_PLACEHOLDER} */"


class Grammar(str, Enum):
    """Tree-sitter grammar used to parse a file."""

    TYPESCRIPT = "typescript"
    TSX = "tsx"
    JAVASCRIPT = "javascript"


GRAMMAR_BY_EXTENSION: dict[str, Grammar] = {
    ".ts": Grammar.TYPESCRIPT,
    ".mts": Grammar.TYPESCRIPT,
    ".cts": Grammar.TYPESCRIPT,
    ".tsx": Grammar.TSX,
    ".js": Grammar.JAVASCRIPT,
    ".jsx": Grammar.JAVASCRIPT,
    ".mjs": Grammar.JAVASCRIPT,
    ".cjs": Grammar.JAVASCRIPT,
}

# Extensions the host glue redacts (matches what the read tool reports)
DEFAULT_EXTENSIONS: set[str] = {".ts", ".tsx", ".js", ".jsx"}

# Paths that are never redacted: tests are what the agent is meant to write
DEFAULT_ALLOW_PATTERNS: list[str] = [
    "**/*.test.ts",
    "**/*.test.tsx",
    "**/tests/**",
]

READ_REMINDER = (
    "<system-reminder>\n"
    "Implementation redacted by code-blackbox; signatures and structure are intact.\n"
    "</system-reminder>"
)

ATTACHMENT_REMINDER = (
    "<system-reminder>\n"
    "Some attached files were redacted by code-blackbox.\n"
    "</system-reminder>"
)


def get_grammar(path: Path | str) -> Grammar:
    """Pick the grammar for a path; unknown extensions parse as TypeScript."""
    suffix = Path(path).suffix.lower()
    return GRAMMAR_BY_EXTENSION.get(suffix, Grammar.TYPESCRIPT)


def _validate_placeholder(placeholder: str) -> str:
    if not placeholder.strip():
        raise ValueError("Placeholder text must not be empty")
    if "\n" in placeholder or "\r" in placeholder:
        raise ValueError("Placeholder text must fit on one line")
    if "*/" in placeholder:
        raise ValueError("Placeholder text must not contain '*/'")
    return placeholder


@dataclass
class BlackboxConfig:
    """
    Configuration for the redaction engine and its host glue.

    The placeholder is rendered in exactly two forms: a full-line comment
    for collapsed blocks and a delimited comment for inline spans. Both are
    inert in TypeScript and JavaScript.
    """

    placeholder: str = DEFAULT_PLACEHOLDER

    # Extensions handled by the session glue
    extensions: set[str] = field(default_factory=lambda: set(DEFAULT_EXTENSIONS))

    # Extra allowlist globs, merged with the per-agent ones
    allow_patterns: list[str] = field(default_factory=list)
    default_allow_patterns: list[str] = field(
        default_factory=lambda: list(DEFAULT_ALLOW_PATTERNS)
    )

    reminder: str = READ_REMINDER
    attachment_reminder: str = ATTACHMENT_REMINDER

    def __post_init__(self) -> None:
        _validate_placeholder(self.placeholder)

    @property
    def line_marker(self) -> str:
        return f"// {self.placeholder}"

    @property
    def inline_marker(self) -> str:
        return f"/* {self.placeholder} */"

    def handles(self, path: Path | str) -> bool:
        """Check whether a path has one of the handled extensions."""
        return Path(path).suffix.lower() in self.extensions

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BlackboxConfig:
        """Create a BlackboxConfig from a dictionary (e.g., from a config file)."""
        config = cls()

        if "placeholder" in data:
            config.placeholder = _validate_placeholder(str(data["placeholder"]))

        if "extensions" in data:
            extensions = data["extensions"]
            if isinstance(extensions, str):
                extensions = extensions.split(",")
            normalized = set()
            for ext in extensions:
                ext = str(ext).strip().lower()
                if not ext:
                    continue
                normalized.add(ext if ext.startswith(".") else f".{ext}")
            if normalized:
                config.extensions = normalized

        allow = data.get("allow_patterns") or data.get("allow")
        if allow:
            if isinstance(allow, str):
                allow = allow.split(",")
            config.allow_patterns = [str(p).strip() for p in allow if str(p).strip()]

        if "default_allow_patterns" in data:
            config.default_allow_patterns = [
                str(p).strip() for p in data["default_allow_patterns"] if str(p).strip()
            ]

        if "reminder" in data:
            config.reminder = str(data["reminder"])

        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (sorted keys for determinism)."""
        return {
            "allow_patterns": list(self.allow_patterns),
            "default_allow_patterns": list(self.default_allow_patterns),
            "extensions": sorted(self.extensions),
            "placeholder": self.placeholder,
            "reminder": self.reminder,
        }
