"""
S-expression token scanner.

Splits a byte stream into parentheses, raw atoms and quoted atoms, skipping
whitespace and ``#`` line comments. Input is read incrementally, one chunk
at a time, so arbitrarily large files can be scanned with bounded memory.

Usage:
    from kicad_sexp.sexp import Scanner, TokenType

    scanner = Scanner(b'(net 1 "GND")')
    while scanner.peek().type is not TokenType.EOF:
        print(scanner.read())
"""

from __future__ import annotations

import io
import logging
from typing import BinaryIO, Iterator, Optional, Union

from kicad_sexp.exceptions import LexError

from .tokens import EOF_TOKEN, Token, TokenType

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096

_LF = 0x0A
_CR = 0x0D
_QUOTE = 0x22
_HASH = 0x23
_BACKSLASH = 0x5C
_LEFT = 0x28
_RIGHT = 0x29

WHITESPACE = frozenset(b" \t\r\n\x00")
DELIMITERS = WHITESPACE | frozenset(b"()#")

Source = Union[BinaryIO, bytes, bytearray, str]


def as_stream(source: Source) -> BinaryIO:
    """Wrap in-memory input in a binary stream; pass streams through."""
    if isinstance(source, str):
        return io.BytesIO(source.encode("utf-8"))
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    if hasattr(source, "read"):
        return source
    raise TypeError(f"Expected a binary stream, bytes or str, not {type(source).__name__}")


def _text(data: Union[bytes, bytearray]) -> str:
    return bytes(data).decode("utf-8", "surrogateescape")


class Scanner:
    """
    Lazily tokenizes an S-expression byte stream with one token of lookahead.

    ``peek()`` returns the next token without consuming it; repeated calls
    return the same token until ``read()`` consumes it. Once the stream is
    exhausted every call returns an ``EOF`` token.

    A lexing failure is reported as an ``INVALID`` token rather than an
    exception; the matching :class:`LexError` is kept in :attr:`error` and
    the scanner reports ``EOF`` after the invalid token has been read.

    Attributes:
        line: 1-based line number of the scan position
        error: The lex error behind the last ``INVALID`` token, if any
    """

    def __init__(self, source: Source, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self._stream = as_stream(source)
        self._chunk_size = chunk_size
        self._buf = bytearray()
        self._pos = 0
        self._exhausted = False
        self._done = False
        self._peeked: Optional[Token] = None
        self.line = 1
        self.error: Optional[LexError] = None

    def peek(self) -> Token:
        """Return the next token without consuming it."""
        if self._peeked is not None:
            return self._peeked
        if self._done:
            return EOF_TOKEN

        try:
            token = self._scan()
        except LexError as e:
            logger.debug(f"Lex error on line {self.line}: {e.message}")
            self.error = e
            self._done = True
            token = Token(TokenType.INVALID, e.context.get("byte", ""))
        else:
            if token.type is TokenType.EOF:
                self._done = True
                return token

        self._peeked = token
        return token

    def read(self) -> Token:
        """Return and consume the next token. ``EOF`` is never consumed."""
        token = self.peek()
        if token.type is not TokenType.EOF:
            self._peeked = None
        return token

    def __iter__(self) -> Iterator[Token]:
        """Iterate over the remaining tokens, excluding the final ``EOF``."""
        while True:
            token = self.read()
            if token.type is TokenType.EOF:
                return
            yield token

    # Input buffering

    def _fill(self) -> bool:
        """Append one chunk from the stream to the buffer; False at end of input."""
        if self._exhausted:
            return False
        try:
            chunk = self._stream.read(self._chunk_size)
        except OSError as e:
            raise LexError(
                f"Failed to read input: {e}",
                line=self.line,
            ) from e
        if not chunk:
            self._exhausted = True
            return False
        self._buf.extend(chunk)
        return True

    def _byte_at(self, index: int) -> Optional[int]:
        """Return the buffered byte at ``index``, reading more input as needed."""
        while index >= len(self._buf):
            if not self._fill():
                return None
        return self._buf[index]

    def _compact(self) -> None:
        if self._pos:
            del self._buf[: self._pos]
            self._pos = 0

    # Token classification

    def _scan(self) -> Token:
        self._compact()
        self._skip_irrelevant()

        next_byte = self._byte_at(self._pos)
        if next_byte is None:
            return EOF_TOKEN

        if next_byte == _LEFT:
            self._pos += 1
            return Token(TokenType.LEFT, "(")
        if next_byte == _RIGHT:
            self._pos += 1
            return Token(TokenType.RIGHT, ")")
        if next_byte == _QUOTE:
            return self._scan_quoted()
        return self._scan_raw()

    def _skip_irrelevant(self) -> None:
        """Skip whitespace runs and comments."""
        while True:
            b = self._byte_at(self._pos)
            if b is None:
                return
            if b in WHITESPACE:
                if b == _LF:
                    self.line += 1
                self._pos += 1
            elif b == _HASH:
                self._skip_comment()
            else:
                return

    def _skip_comment(self) -> None:
        # A comment runs through the first CR or LF, inclusive.
        self._pos += 1
        while True:
            b = self._byte_at(self._pos)
            if b is None:
                return
            self._pos += 1
            if b == _LF:
                self.line += 1
                return
            if b == _CR:
                return

    def _scan_quoted(self) -> Token:
        start = self._pos
        start_line = self.line
        index = start + 1
        escape = False

        while True:
            b = self._byte_at(index)
            if b is None:
                preview = _text(self._buf[start : start + 40])
                raise LexError(
                    "Unexpected end of stream in quoted atom",
                    context={"byte": '"', "atom": preview},
                    suggestions=["Check for a missing closing quote"],
                    line=start_line,
                )
            if b == _LF:
                self.line += 1
            if escape:
                escape = False
            elif b == _BACKSLASH:
                escape = True
            elif b == _QUOTE:
                break
            index += 1

        self._pos = index + 1
        return Token(TokenType.QUOTED_ATOM, _text(self._buf[start : self._pos]))

    def _scan_raw(self) -> Token:
        start = self._pos
        index = start
        while True:
            b = self._byte_at(index)
            if b is None or b in DELIMITERS:
                break
            index += 1

        self._pos = index
        return Token(TokenType.RAW_ATOM, _text(self._buf[start:index]))


__all__ = ["Scanner", "as_stream", "DEFAULT_CHUNK_SIZE", "WHITESPACE", "DELIMITERS"]
