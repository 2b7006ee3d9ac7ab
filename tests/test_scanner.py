"""Tests for the S-expression token scanner."""

import io

import pytest

from kicad_sexp.exceptions import LexError
from kicad_sexp.sexp import Scanner, Token, TokenType

L = Token(TokenType.LEFT, "(")
R = Token(TokenType.RIGHT, ")")
EOF = Token(TokenType.EOF, "")


def raw(text):
    return Token(TokenType.RAW_ATOM, text)


def quoted(text):
    return Token(TokenType.QUOTED_ATOM, text)


def scan_all(source, chunk_size=4096):
    """Read tokens up to and including EOF."""
    scanner = Scanner(source, chunk_size=chunk_size)
    tokens = []
    while True:
        token = scanner.read()
        tokens.append(token)
        if token.type in (TokenType.EOF, TokenType.INVALID):
            return tokens


NESTED = [L, raw("foo"), L, raw("bar"), quoted('"baz"'), R, L, raw("boz"), raw("12"), R, R, EOF]


class TestTokenStream:
    """Tests for token classification."""

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("", [EOF]),
            ("    ", [EOF]),
            ("# comment", [EOF]),
            ("# comment\n#\n#comment", [EOF]),
            ("()", [L, R, EOF]),
            ('""', [quoted('""'), EOF]),
            ('"hello"', [quoted('"hello"'), EOF]),
            ('"hello\\nworld"', [quoted('"hello\\nworld"'), EOF]),
            ('"hello\\xffworld"', [quoted('"hello\\xffworld"'), EOF]),
            ('"hello\\"world"', [quoted('"hello\\"world"'), EOF]),
            ("baz", [raw("baz"), EOF]),
            ("Resistors_SMD:R_1206_HandSoldering", [raw("Resistors_SMD:R_1206_HandSoldering"), EOF]),
        ],
    )
    def test_single_tokens(self, source, expected):
        """Atoms, parens, whitespace and comments are classified correctly."""
        assert scan_all(source) == expected

    @pytest.mark.parametrize(
        "source",
        [
            ' (foo ( bar "baz" ) (boz 12 ) ) ',
            '\t(foo\t(\tbar\t"baz"\t)\t(boz\t12\t)\t)\t',
            '\n  (foo\n  (\n  bar\n  "baz"\n  )\n  (boz\n  12\n  )\n  )\n  ',
            '\r\n(foo\r\n(\r\nbar\r\n"baz"\r\n)\r\n(boz\r\n12\r\n)\r\n)\r\n',
            '(foo (bar "baz") (boz 12))',
            '(foo(bar "baz")(boz 12))',
            '(foo\x00(bar "baz") (boz 12))',
        ],
    )
    def test_whitespace_variants(self, source):
        """All whitespace kinds (including NUL) separate tokens the same way."""
        assert scan_all(source) == NESTED

    def test_comment_ends_raw_atom(self):
        """A '#' terminates a raw atom and starts a comment."""
        assert scan_all("(foo# trailing comment\nbar)") == [L, raw("foo"), raw("bar"), R, EOF]

    def test_comment_between_tokens(self):
        """Comments between tuples don't produce tokens."""
        source = "(a # first\n  # second\r (b))"
        assert scan_all(source) == [L, raw("a"), L, raw("b"), R, R, EOF]

    def test_hash_inside_quoted_atom(self):
        """'#' inside a quoted atom is not a comment."""
        assert scan_all('"a # b"') == [quoted('"a # b"'), EOF]

    def test_parens_inside_quoted_atom(self):
        """Parens and whitespace inside quotes stay part of the atom."""
        assert scan_all('("a (b) c")') == [L, quoted('"a (b) c"'), R, EOF]

    def test_escaped_backslash_before_quote(self):
        """An escaped backslash doesn't escape the closing quote."""
        assert scan_all('"a\\\\" b') == [quoted('"a\\\\"'), raw("b"), EOF]

    def test_utf8_atoms(self):
        """Multi-byte UTF-8 text survives in raw and quoted atoms."""
        assert scan_all('(µ "Ω 10k")'.encode("utf-8")) == [L, raw("µ"), quoted('"Ω 10k"'), R, EOF]


class TestIncrementalInput:
    """Tests for chunked reading from streams."""

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 7, 4096])
    def test_chunk_sizes(self, chunk_size):
        """Token boundaries are found regardless of how input is chunked."""
        source = io.BytesIO(b'(foo (bar "baz") (boz 12))')
        assert scan_all(source, chunk_size=chunk_size) == NESTED

    def test_atom_at_end_of_input(self):
        """A raw atom may end at end of input."""
        assert scan_all(io.BytesIO(b"(a) tail"), chunk_size=2) == [L, raw("a"), R, raw("tail"), EOF]

    def test_bytes_and_str_sources(self):
        """bytes and str sources are accepted directly."""
        assert scan_all(b"(a)") == scan_all("(a)") == [L, raw("a"), R, EOF]

    def test_invalid_source_type(self):
        """Non-stream sources are rejected."""
        with pytest.raises(TypeError):
            Scanner(42)


class TestLookahead:
    """Tests for peek/read semantics."""

    def test_peek_is_idempotent(self):
        """peek() returns the same token until read() is called."""
        scanner = Scanner("(a b)")
        assert scanner.peek() == L
        assert scanner.peek() == L
        assert scanner.read() == L
        assert scanner.peek() == raw("a")
        assert scanner.read() == raw("a")
        assert scanner.read() == raw("b")

    def test_eof_is_sticky(self):
        """EOF is returned repeatedly and never consumed."""
        scanner = Scanner("a")
        assert scanner.read() == raw("a")
        for _ in range(3):
            assert scanner.read() == EOF
            assert scanner.peek() == EOF

    def test_iteration(self):
        """Iterating yields tokens up to but excluding EOF."""
        assert list(Scanner("(a)")) == [L, raw("a"), R]

    def test_line_tracking(self):
        """Line numbers advance over newlines, comments and quoted atoms."""
        scanner = Scanner('a\nb # c\n"d\ne"\nf')
        scanner.read()
        assert scanner.line == 1
        scanner.read()
        assert scanner.line == 2
        scanner.read()
        assert scanner.line == 4
        scanner.read()
        assert scanner.line == 5


class TestLexErrors:
    """Tests for INVALID tokens."""

    def test_unterminated_quoted_atom(self):
        """An unterminated quoted atom yields INVALID and records a LexError."""
        scanner = Scanner('(a "unterminated')
        assert scanner.read() == L
        assert scanner.read() == raw("a")
        token = scanner.read()
        assert token.type is TokenType.INVALID
        assert token.text == '"'
        assert isinstance(scanner.error, LexError)
        assert "quoted atom" in scanner.error.message

    def test_unterminated_after_escape(self):
        """A trailing backslash can't close a quoted atom."""
        tokens = scan_all('"abc\\"')
        assert tokens[-1].type is TokenType.INVALID

    def test_error_line_number(self):
        """The lex error reports the line where the quoted atom started."""
        scanner = Scanner('(a\n\n "oops\n')
        scan = [scanner.read() for _ in range(3)]
        assert scan[-1].type is TokenType.INVALID
        assert scanner.error.line == 3
        assert scanner.error.context["line"] == 3

    def test_eof_after_invalid(self):
        """The scanner reports EOF once the INVALID token has been read."""
        scanner = Scanner('"x')
        assert scanner.peek().type is TokenType.INVALID
        assert scanner.peek().type is TokenType.INVALID
        scanner.read()
        assert scanner.read() == EOF

    def test_stream_failure(self):
        """I/O errors from the stream become INVALID tokens."""

        class BrokenStream:
            def read(self, n):
                raise OSError("device unplugged")

        scanner = Scanner(BrokenStream())
        token = scanner.read()
        assert token.type is TokenType.INVALID
        assert "device unplugged" in str(scanner.error)
        assert isinstance(scanner.error.__cause__, OSError)


class TestTokenType:
    """Tests for token kind labels."""

    @pytest.mark.parametrize("token_type", list(TokenType))
    def test_label(self, token_type):
        """Each kind prints as its own name."""
        assert str(token_type) == token_type.name

    def test_atom_kinds(self):
        assert {t for t in TokenType if t.is_atom} == {TokenType.RAW_ATOM, TokenType.QUOTED_ATOM}
