"""
Configuration file loader for code-blackbox.

Supports loading configuration from:
- blackbox.toml / .blackbox.toml
- blackbox.yml / .blackbox.yml / blackbox.yaml / .blackbox.yaml

CLI flags override config file values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import BlackboxConfig

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

import yaml

# Config file search order (first found wins)
CONFIG_FILE_NAMES = [
    "blackbox.toml",
    ".blackbox.toml",
    "blackbox.yml",
    ".blackbox.yml",
    "blackbox.yaml",
    ".blackbox.yaml",
]

SECTION_NAMES = ("blackbox", "code-blackbox")


@dataclass
class ProjectConfig:
    """
    Project-level configuration loaded from config files.

    All fields are optional - CLI flags will override any values set here.
    """

    placeholder: str | None = None
    extensions: set[str] | None = None
    allow_patterns: list[str] | None = None
    default_allow_patterns: list[str] | None = None
    reminder: str | None = None

    # Source file path (for debugging)
    _config_file: Path | None = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (sorted keys for determinism)."""
        result: dict[str, Any] = {}

        if self.placeholder is not None:
            result["placeholder"] = self.placeholder
        if self.extensions is not None:
            result["extensions"] = sorted(self.extensions)
        if self.allow_patterns is not None:
            result["allow_patterns"] = list(self.allow_patterns)
        if self.default_allow_patterns is not None:
            result["default_allow_patterns"] = list(self.default_allow_patterns)
        if self.reminder is not None:
            result["reminder"] = self.reminder

        if self._config_file is not None:
            result["_loaded_from"] = str(self._config_file)

        return dict(sorted(result.items()))

    def to_blackbox_config(self) -> BlackboxConfig:
        """Build the engine configuration, keeping defaults for unset values."""
        data = {k: v for k, v in self.to_dict().items() if not k.startswith("_")}
        return BlackboxConfig.from_dict(data)


def find_config_file(root: Path) -> Path | None:
    """
    Find a configuration file in a directory.

    Args:
        root: Directory to search

    Returns:
        Path to the config file, or None if not found
    """
    for name in CONFIG_FILE_NAMES:
        config_path = root / name
        if config_path.exists() and config_path.is_file():
            return config_path
    return None


def _select_section(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        return {}

    # Support both flat and nested [blackbox] section
    for name in SECTION_NAMES:
        section = data.get(name)
        if isinstance(section, dict):
            return section
    return data


def _parse_toml(path: Path) -> dict[str, Any]:
    """Parse a TOML config file."""
    with open(path, "rb") as f:
        return _select_section(tomllib.load(f))


def _parse_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML config file."""
    with open(path, encoding="utf-8") as f:
        return _select_section(yaml.safe_load(f))


def _normalize_extensions(extensions: Any) -> set[str] | None:
    """Normalize extension list to set with leading dots."""
    if extensions is None:
        return None

    if isinstance(extensions, str):
        extensions = [e.strip() for e in extensions.split(",")]

    if not isinstance(extensions, (list, set, tuple)):
        return None

    result = set()
    for ext in extensions:
        ext = str(ext).strip().lower()
        if ext:
            if not ext.startswith("."):
                ext = f".{ext}"
            result.add(ext)

    return result if result else None


def _normalize_globs(globs: Any) -> list[str] | None:
    """Normalize glob patterns to a list, keeping their order."""
    if globs is None:
        return None

    if isinstance(globs, str):
        globs = [g.strip() for g in globs.split(",")]

    if not isinstance(globs, (list, set, tuple)):
        return None

    result = []
    for glob in globs:
        glob = str(glob).strip()
        if glob and glob not in result:
            result.append(glob)
    return result if result else None


def load_config(root: Path, config_path: Path | None = None) -> ProjectConfig:
    """
    Load configuration from a config file.

    Args:
        root: Directory searched for a config file
        config_path: Explicit path to config file (optional)

    Returns:
        ProjectConfig with loaded values (unset values remain None)
    """
    if config_path is None:
        config_path = find_config_file(root)

    if config_path is None or not config_path.exists():
        return ProjectConfig()

    suffix = config_path.suffix.lower()
    try:
        if suffix == ".toml":
            data = _parse_toml(config_path)
        elif suffix in (".yml", ".yaml"):
            data = _parse_yaml(config_path)
        else:
            return ProjectConfig()
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError):
        # Unparsable config files are ignored - the CLI works without one
        return ProjectConfig()

    config = ProjectConfig(_config_file=config_path)

    if data.get("placeholder") is not None:
        config.placeholder = str(data["placeholder"])
    config.extensions = _normalize_extensions(data.get("extensions") or data.get("include_ext"))
    config.allow_patterns = _normalize_globs(data.get("allow_patterns") or data.get("allow"))
    if "default_allow_patterns" in data:
        # An explicit empty list disables the defaults
        config.default_allow_patterns = _normalize_globs(data["default_allow_patterns"]) or []
    if data.get("reminder") is not None:
        config.reminder = str(data["reminder"])

    return config


def merge_cli_with_config(
    config: ProjectConfig,
    *,
    # CLI arguments (None means not specified on CLI)
    placeholder: str | None = None,
    extensions: str | None = None,
    allow: list[str] | None = None,
) -> BlackboxConfig:
    """
    Merge CLI arguments with config file values.

    CLI arguments take precedence over config file values; allow patterns
    from both sources are combined.

    Returns:
        BlackboxConfig with merged values

    Raises:
        ValueError: If the resulting placeholder is invalid
    """
    merged = config.to_blackbox_config()

    if placeholder is not None:
        merged = BlackboxConfig.from_dict({**merged.to_dict(), "placeholder": placeholder})

    if extensions:
        normalized = _normalize_extensions(extensions)
        if normalized:
            merged.extensions = normalized

    if allow:
        for pattern in _normalize_globs(allow) or []:
            if pattern not in merged.allow_patterns:
                merged.allow_patterns.append(pattern)

    return merged
