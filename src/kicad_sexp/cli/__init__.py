"""
Command-line interface for kicad-sexp.

    kicad-sexp tokens <file>             - Print the token stream
    kicad-sexp fmt <file> [-o OUT]       - Reformat a document
    kicad-sexp check <file> [--type T]   - Verify brackets and document type
    kicad-sexp config [--init|--paths]   - View or create configuration

Examples:
    kicad-sexp tokens board.kicad_pcb --limit 20
    kicad-sexp fmt netlist.net -o netlist-pretty.net
    kicad-sexp check board.kicad_pcb --type kicad_pcb
    kicad-sexp config --init
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import BinaryIO, List, Optional

from kicad_sexp import __version__
from kicad_sexp.config import Config
from kicad_sexp.exceptions import SchemaError, SexpError, StructureError
from kicad_sexp.logging import enable_verbose
from kicad_sexp.sexp import Scanner, TokenType, Writer

from .config_cmd import config_cmd
from .utils import get_console, print_error

__all__ = ["main"]


def _read_token(scanner: Scanner):
    token = scanner.read()
    if token.type is TokenType.INVALID:
        raise scanner.error
    return token


def tokens_cmd(args: argparse.Namespace, config: Config) -> int:
    """Print the token stream of a file as a table."""
    from rich.table import Table

    table = Table(title=str(args.file))
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Text", overflow="fold")

    count = 0
    with open(args.file, "rb") as f:
        scanner = Scanner(f, chunk_size=config.decode.chunk_size)
        while args.limit is None or count < args.limit:
            scanner.peek()
            line = scanner.line
            token = _read_token(scanner)
            if token.type is TokenType.EOF:
                break
            table.add_row(str(line), str(token.type), token.text)
            count += 1

    get_console().print(table)
    return 0


def fmt_cmd(args: argparse.Namespace, config: Config) -> int:
    """Re-emit a document through the writer."""
    if args.output:
        sink: BinaryIO = open(args.output, "wb")
        close_sink = True
    else:
        sink = sys.stdout.buffer
        close_sink = False

    try:
        with open(args.file, "rb") as f:
            scanner = Scanner(f, chunk_size=config.decode.chunk_size)
            writer = Writer(sink, config.writer, close_sink=close_sink)
            while True:
                token = _read_token(scanner)
                if token.type is TokenType.EOF:
                    break
                writer.write_token(token)
            writer.close()
    finally:
        if close_sink and not sink.closed:
            sink.close()

    if not args.output:
        sys.stdout.buffer.write(b"\n")
    return 0


def check_cmd(args: argparse.Namespace, config: Config) -> int:
    """Lex a whole file, checking bracket balance and optionally the document type."""
    depth = 0
    max_depth = 0
    count = 0

    with open(args.file, "rb") as f:
        scanner = Scanner(f, chunk_size=config.decode.chunk_size)
        if args.type:
            first = _read_token(scanner)
            second = _read_token(scanner)
            if first.type is not TokenType.LEFT or second.type is not TokenType.RAW_ATOM:
                raise SchemaError(
                    "Input is not a (type field...) document",
                    context={"file": args.file},
                )
            if second.text != args.type:
                raise SchemaError(
                    "Document type mismatch",
                    context={"file": args.file, "expected": args.type, "got": second.text},
                )
            depth = max_depth = 1
            count = 2

        while True:
            token = _read_token(scanner)
            if token.type is TokenType.EOF:
                break
            count += 1
            if token.type is TokenType.LEFT:
                depth += 1
                max_depth = max(max_depth, depth)
            elif token.type is TokenType.RIGHT:
                depth -= 1
                if depth < 0:
                    raise StructureError(
                        "Unbalanced closing paren",
                        context={"file": args.file, "line": scanner.line},
                    )

    if depth > 0:
        raise StructureError(
            "Unexpected end of stream inside tuple",
            context={"file": args.file, "open_tuples": depth},
        )

    get_console().print(f"[green]OK[/green]: {count} tokens, max depth {max_depth}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the kicad-sexp CLI."""
    parser = argparse.ArgumentParser(
        prog="kicad-sexp",
        description="KiCad S-expression codec tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version=f"kicad-sexp {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    tokens_parser = subparsers.add_parser("tokens", help="Print the token stream of a file")
    tokens_parser.add_argument("file", help="S-expression file")
    tokens_parser.add_argument("--limit", type=int, help="Stop after this many tokens")

    fmt_parser = subparsers.add_parser("fmt", help="Reformat an S-expression file")
    fmt_parser.add_argument("file", help="S-expression file")
    fmt_parser.add_argument("-o", "--output", help="Output file (default: stdout)")

    check_parser = subparsers.add_parser("check", help="Check brackets and document type")
    check_parser.add_argument("file", help="S-expression file")
    check_parser.add_argument("--type", help="Expected document type, e.g. kicad_pcb")

    config_parser = subparsers.add_parser("config", help="View or create configuration")
    config_action = config_parser.add_mutually_exclusive_group()
    config_action.add_argument(
        "--show", action="store_true", help="Show effective configuration with sources (default)"
    )
    config_action.add_argument("--init", action="store_true", help="Create a template config file")
    config_action.add_argument("--paths", action="store_true", help="Show config file paths")
    config_parser.add_argument(
        "--user", action="store_true", help="With --init, create the user config instead"
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if args.verbose:
        enable_verbose("DEBUG")

    commands = {
        "tokens": tokens_cmd,
        "fmt": fmt_cmd,
        "check": check_cmd,
        "config": config_cmd,
    }

    try:
        config = Config.load(Path.cwd())
        return commands[args.command](args, config)
    except (SexpError, OSError) as e:
        print_error(e, verbose=args.verbose)
        return 1


if __name__ == "__main__":
    sys.exit(main())
