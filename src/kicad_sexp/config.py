"""
Configuration file support for kicad-sexp.

Provides hierarchical configuration loading from:
1. Project config: .kicad-sexp.toml or kicad-sexp.toml in project root
2. User config: ~/.config/kicad-sexp/config.toml

Project config overrides user config, which overrides the built-in defaults.
The library entry points never read config files on their own; pass a
loaded section (``config.decode``, ``config.writer``) explicitly.
"""

import sys
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from kicad_sexp.exceptions import ConfigurationError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

# Config file names to search for in project directories
CONFIG_FILENAMES = [".kicad-sexp.toml", "kicad-sexp.toml"]

# User-level config path
USER_CONFIG_PATH = Path.home() / ".config" / "kicad-sexp" / "config.toml"

KNOWN_KEYS = {
    "decode": {"duplicate_fields", "chunk_size"},
    "writer": {"indent"},
}

DUPLICATE_POLICIES = ("last", "error")


@dataclass
class DecodeConfig:
    """Decoder and scanner options."""

    # "last": a repeated single-valued named field overwrites the earlier value
    # "error": a repeated single-valued named field is a SchemaError
    duplicate_fields: str = "last"
    chunk_size: int = 4096

    def __post_init__(self):
        if self.duplicate_fields not in DUPLICATE_POLICIES:
            raise ConfigurationError(
                "Invalid duplicate_fields policy",
                context={"value": self.duplicate_fields, "allowed": list(DUPLICATE_POLICIES)},
            )
        if not isinstance(self.chunk_size, int) or self.chunk_size < 1:
            raise ConfigurationError(
                "chunk_size must be a positive integer",
                context={"value": self.chunk_size},
            )


@dataclass
class WriterConfig:
    """Writer formatting options."""

    indent: str = "  "

    def __post_init__(self):
        if not isinstance(self.indent, str) or self.indent.strip(" \t"):
            raise ConfigurationError(
                "indent may only contain spaces and tabs",
                context={"value": self.indent},
            )


@dataclass
class Config:
    """Merged configuration from all sources."""

    decode: DecodeConfig = field(default_factory=DecodeConfig)
    writer: WriterConfig = field(default_factory=WriterConfig)

    # Track which file each setting came from
    _sources: dict = field(default_factory=dict, repr=False)

    @classmethod
    def load(cls, start_dir: Path | None = None) -> "Config":
        """
        Load configuration with precedence: project > user > defaults.

        Args:
            start_dir: Directory to start searching from (default: current directory)

        Returns:
            Merged configuration object

        Raises:
            ConfigurationError: If a config file is unreadable or holds invalid values
        """
        if start_dir is None:
            start_dir = Path.cwd()

        data: dict[str, dict[str, Any]] = {}
        sources: dict[str, str] = {}

        if USER_CONFIG_PATH.exists():
            _merge_data(data, _load_toml_file(USER_CONFIG_PATH), str(USER_CONFIG_PATH), sources)

        project_config = _find_project_config(start_dir)
        if project_config:
            _merge_data(data, _load_toml_file(project_config), str(project_config), sources)

        try:
            config = cls(
                decode=DecodeConfig(**data.get("decode", {})),
                writer=WriterConfig(**data.get("writer", {})),
            )
        except ConfigurationError as e:
            e.context.setdefault("sources", sources)
            raise
        config._sources = sources
        return config

    def get_source(self, key: str) -> str:
        """Get the source file for a config key such as ``decode.chunk_size``."""
        return self._sources.get(key, "default")


def _find_project_config(start_dir: Path) -> Path | None:
    """
    Find project config by walking up the directory tree.

    Stops at .git directory or filesystem root.
    """
    current = start_dir.resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        if (current / ".git").exists():
            break

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def _load_toml_file(path: Path) -> dict[str, Any]:
    """
    Load a TOML file.

    Raises:
        ConfigurationError: If the file can't be read or isn't valid TOML
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e


def _merge_data(
    merged: dict[str, dict[str, Any]],
    data: dict[str, Any],
    source: str,
    sources: dict[str, str],
) -> None:
    """Merge known keys from one config file into ``merged``, warning about the rest."""
    for section, values in data.items():
        if section not in KNOWN_KEYS:
            warnings.warn(f"Unknown config key '{section}' in {source}", stacklevel=3)
            continue
        if not isinstance(values, dict):
            raise ConfigurationError(
                f"Config section '{section}' must be a table",
                context={"file": source},
            )
        _warn_unknown_keys(values, KNOWN_KEYS[section], section, source)
        for key, value in values.items():
            if key in KNOWN_KEYS[section]:
                merged.setdefault(section, {})[key] = value
                sources[f"{section}.{key}"] = source


def _warn_unknown_keys(data: dict[str, Any], known: set[str], section: str, source: str) -> None:
    """Warn about unknown keys in a config section."""
    for key in data:
        if key not in known:
            warnings.warn(f"Unknown config key '{section}.{key}' in {source}", stacklevel=4)


def generate_template() -> str:
    """Generate a template config file with all options documented."""
    return """# kicad-sexp configuration file
# Place as .kicad-sexp.toml in project root or ~/.config/kicad-sexp/config.toml for user defaults

[decode]
# What to do when a single-valued named field appears more than once:
# "last" keeps the last occurrence, "error" rejects the document
# duplicate_fields = "last"

# Number of bytes the scanner reads from the input at a time
# chunk_size = 4096

[writer]
# Indentation added per nesting level
# indent = "  "
"""


def get_config_paths() -> dict[str, Path | None]:
    """
    Get paths to config files that would be loaded.

    Returns:
        Dict with 'user' and 'project' keys
    """
    project_config = _find_project_config(Path.cwd())

    return {
        "user": USER_CONFIG_PATH if USER_CONFIG_PATH.exists() else None,
        "project": project_config,
    }
