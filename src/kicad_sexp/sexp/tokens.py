"""Token vocabulary shared by the scanner, the decoder and the writer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Kinds of token produced by :class:`~kicad_sexp.sexp.scanner.Scanner`."""

    LEFT = "LEFT"  # (
    RIGHT = "RIGHT"  # )
    RAW_ATOM = "RAW_ATOM"  # abc-def-123, 0xdeadface, 3.1459
    QUOTED_ATOM = "QUOTED_ATOM"  # "abc def"
    EOF = "EOF"
    INVALID = "INVALID"

    def __str__(self) -> str:
        return self.value

    @property
    def is_atom(self) -> bool:
        """True for raw and quoted atoms."""
        return self in (TokenType.RAW_ATOM, TokenType.QUOTED_ATOM)


@dataclass(frozen=True)
class Token:
    """
    A single S-expression token.

    Attributes:
        type: The token kind
        text: The token's source text. Quoted atoms keep their delimiting
            quotes and escapes; ``EOF`` has empty text; ``INVALID`` holds the
            offending byte when one is known.
    """

    type: TokenType
    text: str = ""

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.text!r})"


EOF_TOKEN = Token(TokenType.EOF)

__all__ = ["TokenType", "Token", "EOF_TOKEN"]
