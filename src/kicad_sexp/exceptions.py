"""
Exception hierarchy for kicad-sexp.

Every failure raised by the codec derives from :class:`SexpError`, which
carries a message plus optional context (line numbers, token kinds, field
names) and suggestions for fixing the input.

Example::

    from kicad_sexp.exceptions import SchemaError

    raise SchemaError(
        "Document type mismatch",
        context={"expected": "kicad_pcb", "got": "kicad_sch"},
        suggestions=["Check that the file is a PCB, not a schematic"],
    )
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class SexpError(Exception):
    """
    Base exception for all kicad-sexp errors.

    Attributes:
        context: Dictionary of contextual information (line, token, field...)
        suggestions: List of actionable suggestions for fixing the error
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.context = context or {}
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context and suggestions."""
        parts = [self.message]

        if self.context:
            parts.append("\n\nContext:")
            for key, value in self.context.items():
                parts.append(f"\n  {key}: {value}")

        if self.suggestions:
            parts.append("\n\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"\n  - {suggestion}")

        return "".join(parts)

    def __str__(self) -> str:
        return self._format_message()


class LexError(SexpError):
    """
    The byte stream could not be split into tokens.

    Raised for unterminated quoted atoms and for failures of the
    underlying stream.

    Example::

        raise LexError("Unexpected end of stream in quoted atom", line=12)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        line: Optional[int] = None,
    ):
        ctx = context or {}
        if line is not None and "line" not in ctx:
            ctx["line"] = line
        self.line = line
        super().__init__(message, ctx, suggestions)


class DecodeError(SexpError):
    """Base class for failures while decoding a token stream into a value."""

    pass


class StructureError(DecodeError):
    """
    The token stream does not have the expected bracket structure.

    Raised when a tuple appears where an atom was expected (or the other way
    around), when the stream ends inside a tuple, or when a closing paren is
    missing.
    """

    pass


class LiteralError(DecodeError):
    """
    Atom text is not a valid literal of the requested type.

    Example::

        raise LiteralError(
            "Invalid integer literal",
            context={"text": "12x"},
        )
    """

    pass


class SchemaError(DecodeError):
    """
    The input does not satisfy the declared shape, or the shape itself is
    malformed.

    Covers envelope type-name mismatches, missing positional fields,
    malformed map entries and invalid field metadata.
    """

    pass


class InvalidTargetError(SchemaError):
    """The decode target is ``None`` or a type the decoder cannot build."""

    def __init__(self, target: Any, reason: Optional[str] = None):
        self.target = target
        if target is None:
            message = "Can't decode into None"
        else:
            message = f"Can't decode into {getattr(target, '__name__', repr(target))}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            suggestions=[
                "Use str, int, UInt, float, bool, list[...], dict[...] or a dataclass",
            ],
        )


class WriterError(SexpError):
    """
    The writer was driven into an invalid state.

    Raised for unbalanced tuples, a second top-level value, or closing a
    writer with open tuples or with nothing written.
    """

    pass


class ConfigurationError(SexpError):
    """
    Configuration file is invalid or unreadable.

    Example::

        raise ConfigurationError(
            "Invalid duplicate_fields policy",
            context={"value": "first", "allowed": ["last", "error"]},
        )
    """

    pass


__all__ = [
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
