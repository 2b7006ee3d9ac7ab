"""
Low-level S-expression writer.

The writing counterpart of :class:`~kicad_sexp.sexp.scanner.Scanner`: it
emits tokens one call at a time, keeps track of open tuples, and indents
nested tuples on their own lines, KiCad style.

Usage:
    import io
    from kicad_sexp.sexp import Writer

    out = io.BytesIO()
    w = Writer(out, close_sink=False)
    w.begin_tuple()
    w.write_raw("net")
    w.write_raw("1")
    w.write_string("GND")
    w.end_tuple()
    w.close()
    out.getvalue()  # b'(net 1 GND)'
"""

from __future__ import annotations

from enum import Enum
from typing import BinaryIO, Optional

from kicad_sexp.config import WriterConfig
from kicad_sexp.exceptions import WriterError

from .tokens import Token, TokenType

# Characters that can't appear in a raw atom
_NEEDS_QUOTING = frozenset(" \t\r\n\v\f\x00()#\"")

_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    '"': '\\"',
    "\\": "\\\\",
}


class Delimiter(Enum):
    """What to emit before the next atom or opening paren."""

    NONE = 0
    SPACE = 1
    INDENT = 2


class Writer:
    """
    Writes one S-expression value to a binary sink.

    The writer enforces balanced tuples and a single top-level value; any
    violation raises :class:`WriterError`. Output is UTF-8.

    Args:
        sink: Binary stream to write to
        config: Formatting options (default: two-space indent)
        close_sink: Whether :meth:`close` also closes ``sink``
    """

    def __init__(
        self,
        sink: BinaryIO,
        config: Optional[WriterConfig] = None,
        close_sink: bool = True,
    ):
        self._sink = sink
        self._indent_unit = (config or WriterConfig()).indent
        self._close_sink = close_sink
        self.depth = 0
        self.indent = 0
        self._next_delim = Delimiter.NONE
        self._written_value = False

    def __enter__(self) -> Writer:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()

    def begin_tuple(self) -> None:
        """Write the ``(`` that opens a tuple. Nested tuples start on a new line."""
        if self.indent > 0:
            self._newline()
        elif self._written_value:
            raise WriterError("Can't begin a second top-level value")

        self._delimiter()
        self._write("(")
        self.indent += 1
        self.depth += 1
        self._next_delim = Delimiter.NONE

    def end_tuple(self) -> None:
        """Write the ``)`` that closes the innermost open tuple."""
        if self.depth == 0:
            raise WriterError(
                "Unbalanced tuple delimiters",
                suggestions=["Call begin_tuple() before end_tuple()"],
            )
        if self._next_delim is not Delimiter.SPACE:
            self._delimiter()
        self._write(")")
        self._next_delim = Delimiter.SPACE
        self.indent -= 1
        self.depth -= 1
        self._record_value()

    def write_raw(self, text: str) -> None:
        """
        Write ``text`` verbatim as a raw atom.

        The caller must make sure ``text`` is a valid raw atom: non-empty, with
        no whitespace, parentheses, ``#`` or leading quote.
        """
        self._check_value_allowed()
        self._delimiter()
        self._write(text)
        self._next_delim = Delimiter.SPACE
        self._record_value()

    def write_quoted(self, text: str) -> None:
        """Write ``text`` as a quoted atom, escaping control characters, quotes and backslashes."""
        self._check_value_allowed()
        self._delimiter()
        self._write('"' + "".join(_ESCAPES.get(ch, ch) for ch in text) + '"')
        self._next_delim = Delimiter.SPACE
        self._record_value()

    def write_string(self, text: str) -> None:
        """Write ``text`` as a raw atom if possible, otherwise quoted."""
        if not text or any(ch in _NEEDS_QUOTING for ch in text):
            self.write_quoted(text)
        else:
            self.write_raw(text)

    def write_token(self, token: Token) -> None:
        """
        Write a token as produced by the scanner.

        Parentheses update the nesting bookkeeping; atoms are written
        verbatim since the scanner already validated their text.
        """
        if token.type is TokenType.LEFT:
            self.begin_tuple()
        elif token.type is TokenType.RIGHT:
            self.end_tuple()
        elif token.type.is_atom:
            self.write_raw(token.text)
        else:
            raise WriterError(f"Can't write a {token.type} token")

    def close(self) -> None:
        """
        Finish the document.

        Raises:
            WriterError: If tuples are still open or nothing was written
        """
        if self.depth > 0:
            raise WriterError(
                "Unbalanced tuple delimiters",
                context={"open_tuples": self.depth},
            )
        if not self._written_value:
            raise WriterError("No value written")
        if self._close_sink and hasattr(self._sink, "close"):
            self._sink.close()

    def _write(self, text: str) -> None:
        self._sink.write(text.encode("utf-8", "surrogateescape"))

    def _check_value_allowed(self) -> None:
        if self._written_value:
            raise WriterError("Can't begin a second top-level value")

    def _newline(self) -> None:
        # Already at the start of a line
        if self._next_delim is Delimiter.INDENT:
            return
        self._write("\n")
        self._next_delim = Delimiter.INDENT

    def _delimiter(self) -> None:
        if self._next_delim is Delimiter.SPACE:
            self._write(" ")
        elif self._next_delim is Delimiter.INDENT:
            self._write(self._indent_unit * self.indent)
        self._next_delim = Delimiter.NONE

    def _record_value(self) -> None:
        if self.depth == 0:
            self._written_value = True


__all__ = ["Writer", "Delimiter"]
