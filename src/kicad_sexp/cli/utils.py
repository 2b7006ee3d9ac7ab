"""Shared utilities for CLI commands."""

from __future__ import annotations

import sys
import traceback
from typing import TYPE_CHECKING

from kicad_sexp.exceptions import SexpError

if TYPE_CHECKING:
    from rich.console import Console

__all__ = ["format_error", "print_error", "get_console", "get_error_console"]

# Module-level consoles, created lazily
_console: Console | None = None
_error_console: Console | None = None


def get_console() -> Console:
    """Get or create the Rich console for regular output."""
    global _console
    if _console is None:
        from rich.console import Console

        _console = Console()
    return _console


def get_error_console() -> Console:
    """Get or create the Rich console for error output on stderr."""
    global _error_console
    if _error_console is None:
        from rich.console import Console

        _error_console = Console(stderr=True, force_terminal=None)
    return _error_console


def print_error(
    e: Exception,
    verbose: bool = False,
    use_rich: bool | None = None,
) -> None:
    """
    Print an exception, styled when stderr is a terminal.

    Args:
        e: The exception to print
        verbose: If True, include full stack trace
        use_rich: Override automatic TTY detection (None = auto-detect)
    """
    console = get_error_console()

    if use_rich is None:
        use_rich = console.is_terminal

    if verbose:
        # Always use plain text for stack traces
        print(traceback.format_exc(), file=sys.stderr)
        return

    if use_rich:
        from rich.text import Text

        console.print(Text(format_error(e), style="bold red"))
    else:
        print(format_error(e), file=sys.stderr)


def format_error(e: Exception, verbose: bool = False) -> str:
    """
    Format an exception for user-friendly display (plain text).

    Args:
        e: The exception to format
        verbose: If True, include full stack trace
    """
    if verbose:
        return traceback.format_exc()

    if isinstance(e, SexpError):
        return f"Error: {e}"

    return f"Error: {type(e).__name__}: {e}"
