"""
Config command for the kicad-sexp CLI.

Usage:
    kicad-sexp config --show          Show effective configuration with sources
    kicad-sexp config --init [--user] Create a template config file
    kicad-sexp config --paths         Show config file paths
"""

import argparse
import sys
from pathlib import Path

from kicad_sexp import config as config_module
from kicad_sexp.config import CONFIG_FILENAMES, KNOWN_KEYS, Config, generate_template, get_config_paths


def config_cmd(args: argparse.Namespace, config: Config) -> int:
    """Dispatch the config subcommand."""
    if args.init:
        return _init_config(args.user)
    if args.paths:
        return _show_paths()
    return _show_config(config)


def _show_config(config: Config) -> int:
    """Show effective configuration with sources."""
    print("# Effective kicad-sexp configuration")
    for section, keys in KNOWN_KEYS.items():
        print()
        print(f"[{section}]")
        section_obj = getattr(config, section)
        for key in sorted(keys):
            _print_value(key, getattr(section_obj, key), config.get_source(f"{section}.{key}"))
    return 0


def _print_value(key: str, value, source: str) -> None:
    """Print a config value with its source."""
    if isinstance(value, str):
        formatted = '"' + value.replace("\\", "\\\\").replace("\t", "\\t").replace('"', '\\"') + '"'
    else:
        formatted = str(value)

    # Show just the filename for brevity
    source_display = Path(source).name if source != "default" else source
    print(f"{key} = {formatted}  # from: {source_display}")


def _show_paths() -> int:
    """Show config file paths."""
    paths = get_config_paths()

    print(f"User config: {config_module.USER_CONFIG_PATH}")
    print("  Status: exists" if paths["user"] else "  Status: not found")
    print()

    print(f"Project config search: {', '.join(CONFIG_FILENAMES)}")
    if paths["project"]:
        print(f"  Found: {paths['project']}")
    else:
        print("  Status: not found")
    return 0


def _init_config(user: bool = False) -> int:
    """Create a template config file."""
    if user:
        target = config_module.USER_CONFIG_PATH
        target.parent.mkdir(parents=True, exist_ok=True)
    else:
        target = Path.cwd() / CONFIG_FILENAMES[0]

    if target.exists():
        print(f"Error: Config file already exists: {target}", file=sys.stderr)
        print("Remove it first or edit manually.", file=sys.stderr)
        return 1

    target.write_text(generate_template())
    print(f"Created config template: {target}")
    return 0
