"""
Agent policy for code-blackbox.

Decides which agents get redacted reads and which paths stay visible.
Allowlist patterns use gitignore-style globs via pathspec, so
``**/*.test.ts`` matches test files at any depth.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import pathspec
from pathspec.patterns import GitWildMatchPattern

from .config import DEFAULT_ALLOW_PATTERNS
from .utils import normalize_path

BLACKBOX_OPTION = "blackbox"
ALLOW_OPTION = "blackboxAllow"


@dataclass
class AgentInfo:
    """An agent as reported by the host: its name and free-form options."""

    name: str
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgentInfo:
        options = data.get("options")
        return cls(name=str(data["name"]), options=dict(options) if isinstance(options, dict) else {})


def should_blackbox(agent: AgentInfo | None) -> bool:
    """Only agents that opt in with ``blackbox: true`` get redacted reads."""
    if agent is None:
        return False
    return agent.options.get(BLACKBOX_OPTION) is True


def parse_agent_allowlist(agent: AgentInfo | None) -> list[str]:
    """Read the agent's ``blackboxAllow`` option (a list or a comma-separated string)."""
    if agent is None:
        return []
    raw = agent.options.get(ALLOW_OPTION)
    if not raw:
        return []

    if isinstance(raw, str):
        values: Iterable[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple, set)):
        values = raw
    else:
        return []

    return [str(value).strip() for value in values if str(value).strip()]


def parse_allowed(
    agent: AgentInfo | None,
    defaults: Iterable[str] = DEFAULT_ALLOW_PATTERNS,
    extra: Iterable[str] = (),
) -> pathspec.PathSpec:
    """
    Build the allowlist for an agent.

    Args:
        agent: Agent whose ``blackboxAllow`` option is merged in
        defaults: Patterns that always apply
        extra: Additional patterns (e.g., from a config file)

    Returns:
        Compiled gitignore-style PathSpec
    """
    patterns = [*parse_agent_allowlist(agent), *extra, *defaults]
    return pathspec.PathSpec.from_lines(GitWildMatchPattern, patterns)


def matches_any(path: str, spec: pathspec.PathSpec) -> bool:
    """Check a (relative) path against the allowlist."""
    normalized = normalize_path(path).lstrip("/")
    if not normalized:
        return False
    return spec.match_file(normalized)


def normalize(path: str) -> str:
    """Normalize a path the way written files and reads are compared."""
    return normalize_path(path)
