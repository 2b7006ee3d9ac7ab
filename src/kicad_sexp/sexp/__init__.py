"""
S-expression tokens, scanning, literals and writing.

This is the low-level layer of kicad-sexp: it knows about parentheses and
atoms but nothing about the shape of the data they encode. The schema-driven
decoder in :mod:`kicad_sexp.decode` is built on top of it.

Usage:
    from kicad_sexp.sexp import Scanner, Writer, TokenType, parse_uint

    scanner = Scanner(b"(layerselection 0x00010fc_ffffffff)")
    scanner.read()            # Token(LEFT, '(')
    scanner.read()            # Token(RAW_ATOM, 'layerselection')
    parse_uint(scanner.read().text)
"""

from .literals import parse_bool, parse_float, parse_int, parse_string, parse_uint, unquote
from .scanner import Scanner
from .tokens import EOF_TOKEN, Token, TokenType
from .writer import Writer

__all__ = [
    # Tokens
    "Token",
    "TokenType",
    "EOF_TOKEN",
    # Scanning
    "Scanner",
    # Literal grammar
    "unquote",
    "parse_string",
    "parse_int",
    "parse_uint",
    "parse_float",
    "parse_bool",
    # Writing
    "Writer",
]
