"""
kicad-sexp: Schema-driven S-expression codec for KiCad files.

This package turns the parenthesized format used by KiCad documents into
typed Python data without hand-written parsers for each file type.

Modules:
    sexp: Tokens, scanner, literal grammar and writer
    schema: Field metadata and value shapes for decode targets
    decode: The schema-driven decoder
    config: Configuration file support
    cli: The ``kicad-sexp`` command line tool

Quick Start::

    from dataclasses import dataclass
    from kicad_sexp import decode_document, named, positional

    @dataclass
    class Layer:
        index: int = positional()
        name: str = positional()
        kind: str = positional()
        flags: list[str] = positional(flat=True)

    @dataclass
    class Board:
        version: str = named("version")
        layers: list[Layer] = named("layers", flat=True)

    with open("project.kicad_pcb", "rb") as f:
        board = decode_document(f, "kicad_pcb", Board)
"""

__version__ = "0.1.0"

from kicad_sexp import logging as _logging  # noqa: F401  installs the NullHandler
from kicad_sexp.decode import Decoder, decode_document, decode_value
from kicad_sexp.exceptions import (
    ConfigurationError,
    DecodeError,
    InvalidTargetError,
    LexError,
    LiteralError,
    SchemaError,
    SexpError,
    StructureError,
    WriterError,
)
from kicad_sexp.schema import RecordShape, UInt, named, positional, shape_of
from kicad_sexp.sexp import Scanner, Token, TokenType, Writer

__all__ = [
    # Version
    "__version__",
    # Decoding
    "Decoder",
    "decode_document",
    "decode_value",
    # Schema
    "positional",
    "named",
    "UInt",
    "RecordShape",
    "shape_of",
    # Tokens
    "Scanner",
    "Token",
    "TokenType",
    "Writer",
    # Errors
    "SexpError",
    "LexError",
    "DecodeError",
    "StructureError",
    "LiteralError",
    "SchemaError",
    "InvalidTargetError",
    "WriterError",
    "ConfigurationError",
]
