"""
Literal grammar for S-expression atoms.

Pure conversions from atom text to Python scalars. These functions know
nothing about token kinds; the decoder checks that a token can hold a
scalar before handing its text over.

Quoted atoms use C-style escapes::

    \\n \\r \\t \\v \\a \\b \\f \\\\ \\"   control and literal characters
    \\xHH                          one or two hex digits
    \\NNN                          one to three octal digits

Any other escaped character is kept as a backslash followed by that
character.
"""

from __future__ import annotations

import re

from kicad_sexp.exceptions import LiteralError

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1

_BACKSLASH = 0x5C
_QUOTE = 0x22

_SIMPLE_ESCAPES = {
    ord("n"): 0x0A,
    ord("r"): 0x0D,
    ord("t"): 0x09,
    ord("v"): 0x0B,
    ord("a"): 0x07,
    ord("b"): 0x08,
    ord("f"): 0x0C,
    _BACKSLASH: _BACKSLASH,
    _QUOTE: _QUOTE,
}

_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")
_OCTAL_DIGITS = frozenset(b"01234567")

_INT_RE = re.compile(r"[+-]?[0-9]+")
_DEC_DIGITS_RE = re.compile(r"[0-9]+")
_HEX_DIGITS_RE = re.compile(r"[0-9a-fA-F]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_FLOAT_SPECIAL_RE = re.compile(r"[+-]?(?:inf|infinity|nan)", re.IGNORECASE)

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

# KiCad 6+ writes flags such as (legacy_teardrops no)
_KICAD_TRUE = frozenset({"yes"})
_KICAD_FALSE = frozenset({"no"})


def _digit_run(data: bytes, start: int, digits: frozenset, limit: int) -> bytes:
    end = start
    while end < len(data) and end - start < limit and data[end] in digits:
        end += 1
    return data[start:end]


def unquote(text: str) -> str:
    """
    Strip the quotes from a quoted atom and resolve its escape sequences.

    Escapes are resolved at the byte level: ``\\xc3\\xa9`` yields ``"é"``.

    Raises:
        LiteralError: If ``text`` is not delimited by double quotes
    """
    raw = text.encode("utf-8", "surrogateescape")
    if len(raw) < 2 or raw[0] != _QUOTE or raw[-1] != _QUOTE:
        raise LiteralError("Quoted atom must be delimited by '\"'", context={"text": text})

    body = raw[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        b = body[i]
        if b != _BACKSLASH or i + 1 >= len(body):
            out.append(b)
            i += 1
            continue

        escaped = body[i + 1]
        if escaped in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[escaped])
            i += 2
        elif escaped == ord("x"):
            digits = _digit_run(body, i + 2, _HEX_DIGITS, 2)
            if not digits:
                # "\x" with no digits stays literal
                out.append(_BACKSLASH)
                i += 1
                continue
            out.append(int(digits, 16))
            i += 2 + len(digits)
        elif escaped in _OCTAL_DIGITS:
            digits = _digit_run(body, i + 1, _OCTAL_DIGITS, 3)
            out.append(int(digits, 8) & 0xFF)
            i += 1 + len(digits)
        else:
            out.append(_BACKSLASH)
            i += 1

    return out.decode("utf-8", "surrogateescape")


def parse_string(text: str) -> str:
    """Return the string value of an atom: raw text verbatim, quoted text unescaped."""
    if text.startswith('"'):
        return unquote(text)
    return text


def parse_int(text: str) -> int:
    """
    Parse a signed base-10 integer.

    Only an optional sign followed by decimal digits is accepted; there is
    no exponent, radix prefix or digit separator.
    """
    if not _INT_RE.fullmatch(text):
        raise LiteralError("Invalid integer literal", context={"text": text})
    value = int(text, 10)
    if not INT64_MIN <= value <= INT64_MAX:
        raise LiteralError("Integer literal out of range", context={"text": text})
    return value


def parse_uint(text: str) -> int:
    """
    Parse an unsigned integer.

    Underscores are digit separators and are ignored. A ``0x`` or ``0X``
    prefix selects base 16.

    Example:
        >>> hex(parse_uint("0xfeed_face_cafe"))
        '0xfeedfacecafe'
    """
    token = text.replace("_", "")
    if token[:2] in ("0x", "0X"):
        digits, base, pattern = token[2:], 16, _HEX_DIGITS_RE
    else:
        digits, base, pattern = token, 10, _DEC_DIGITS_RE

    if not pattern.fullmatch(digits):
        raise LiteralError("Invalid unsigned integer literal", context={"text": text})
    value = int(digits, base)
    if value > UINT64_MAX:
        raise LiteralError("Unsigned integer literal out of range", context={"text": text})
    return value


def parse_float(text: str) -> float:
    """Parse a decimal floating point number (optionally with an exponent)."""
    if _FLOAT_SPECIAL_RE.fullmatch(text):
        return float(text)
    if not _FLOAT_RE.fullmatch(text):
        raise LiteralError("Invalid float literal", context={"text": text})
    value = float(text)
    if value in (float("inf"), float("-inf")):
        raise LiteralError("Float literal out of range", context={"text": text})
    return value


def parse_bool(text: str) -> bool:
    """
    Parse a boolean literal.

    Accepts ``1 t T TRUE true True`` and ``0 f F FALSE false False``, plus
    the lower-case ``yes`` / ``no`` spellings used by current KiCad files.
    Anything else, including ``Yes`` or ``NO``, is malformed.
    """
    if text in _TRUE or text in _KICAD_TRUE:
        return True
    if text in _FALSE or text in _KICAD_FALSE:
        return False
    raise LiteralError(
        "Invalid boolean literal",
        context={"text": text},
        suggestions=["Use true/false, yes/no or 1/0"],
    )


__all__ = [
    "unquote",
    "parse_string",
    "parse_int",
    "parse_uint",
    "parse_float",
    "parse_bool",
]
