"""
Schema-driven S-expression decoder.

Decodes a token stream into Python values guided by a target shape, so
individual file formats only need to declare their data structures:

    from dataclasses import dataclass

    from kicad_sexp import decode_document, named, positional

    @dataclass
    class Net:
        number: int = positional()
        name: str = positional()

    @dataclass
    class Netlist:
        nets: list[Net] = named("net", multi=True, flat=True)

    doc = decode_document(b'(doc (net 1 "Foo") (net 3 "Baz"))', "doc", Netlist)
    doc.nets  # [Net(number=1, name='Foo'), Net(number=3, name='Baz')]

Decoding rules for records:

1. Positional fields are filled in declaration order from the values at the
   start of the tuple. A flat positional field (always the last one) takes
   every remaining value, or the remaining fields of a record.
2. Every following value must be a ``(label value...)`` tuple. An unknown
   label must be followed by exactly one value (atom or tuple), which is
   skipped. Flat named fields take their elements/fields directly after
   the label; multi named fields append each occurrence.
3. All non-flat positional fields must be present.

Any error aborts the decode; no partial value is returned.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from kicad_sexp.config import DecodeConfig
from kicad_sexp.exceptions import (
    InvalidTargetError,
    LexError,
    LiteralError,
    SchemaError,
    StructureError,
)
from kicad_sexp.schema.shapes import (
    FieldPlan,
    MappingShape,
    RecordShape,
    ScalarKind,
    ScalarShape,
    SequenceShape,
    Shape,
    shape_of,
)
from kicad_sexp.sexp.literals import parse_bool, parse_float, parse_int, parse_string, parse_uint
from kicad_sexp.sexp.scanner import Scanner, Source
from kicad_sexp.sexp.tokens import Token, TokenType

logger = logging.getLogger(__name__)

_PARSERS: Dict[ScalarKind, Callable[[str], Any]] = {
    ScalarKind.STRING: parse_string,
    ScalarKind.INT: parse_int,
    ScalarKind.UINT: parse_uint,
    ScalarKind.FLOAT: parse_float,
    ScalarKind.BOOL: parse_bool,
}


class Decoder:
    """
    Decodes values from a :class:`Scanner` according to target shapes.

    A decoder is tied to one scanner and is not safe to share between
    threads.

    Args:
        scanner: Token source
        config: Decode options (default: last write wins for repeated fields)
    """

    def __init__(self, scanner: Scanner, config: Optional[DecodeConfig] = None):
        self.scanner = scanner
        self.config = config or DecodeConfig()

    def decode_document(self, name: str, target: Any) -> Any:
        """
        Decode a ``(name field...)`` document into a record.

        Args:
            name: Expected document type, the first atom of the outer tuple
            target: Record target (dataclass or :class:`RecordShape`)

        Raises:
            SchemaError: If the document type is not ``name``
            DecodeError: For any other malformed input
        """
        shape = shape_of(target)
        if not isinstance(shape, RecordShape):
            raise InvalidTargetError(target, "documents decode into records")

        opening = self._read()
        if opening.type is not TokenType.LEFT:
            raise self._structure_error(f"Document must start with LEFT; got {opening.type}")

        type_token = self._read()
        if type_token.type is not TokenType.RAW_ATOM:
            raise SchemaError(
                f"Document type must be RAW_ATOM; got {type_token.type}",
                context={"line": self.scanner.line},
            )
        if type_token.text != name:
            raise SchemaError(
                "Document type mismatch",
                context={"expected": name, "got": type_token.text},
                suggestions=["Check that the input is the right kind of file"],
            )

        try:
            value = self._decode_fields(shape)
        except RecursionError:
            raise self._too_deep() from None
        self._expect_close(f"document '{name}'")
        return value

    def decode_value(self, target: Any) -> Any:
        """Decode one value with no envelope."""
        shape = shape_of(target)
        try:
            return self._decode(shape)
        except RecursionError:
            raise self._too_deep() from None

    # Token access

    def _peek(self) -> Token:
        token = self.scanner.peek()
        if token.type is TokenType.INVALID:
            raise self.scanner.error or LexError("Invalid token", line=self.scanner.line)
        return token

    def _read(self) -> Token:
        token = self._peek()
        self.scanner.read()
        return token

    def _structure_error(self, message: str, **context: Any) -> StructureError:
        context.setdefault("line", self.scanner.line)
        return StructureError(message, context=context)

    def _too_deep(self) -> StructureError:
        return StructureError(
            "Nesting too deep",
            context={"line": self.scanner.line},
            suggestions=["Raise the interpreter recursion limit with sys.setrecursionlimit()"],
        )

    def _expect_open(self, what: str) -> None:
        token = self._peek()
        if token.type is not TokenType.LEFT:
            raise self._structure_error(f"{what} value cannot begin with {token.type}")
        self.scanner.read()

    def _expect_close(self, what: str) -> None:
        token = self._read()
        if token.type is not TokenType.RIGHT:
            raise self._structure_error(
                f"Missing closing paren for {what}; got {token.type}",
                token=token.text,
            )

    # Values

    def _decode(self, shape: Shape) -> Any:
        if isinstance(shape, ScalarShape):
            return self._decode_scalar(shape)
        if isinstance(shape, SequenceShape):
            return self._decode_sequence(shape)
        if isinstance(shape, MappingShape):
            return self._decode_mapping(shape)
        if isinstance(shape, RecordShape):
            return self._decode_record(shape)
        raise InvalidTargetError(shape)

    def _decode_scalar(self, shape: ScalarShape) -> Any:
        token = self._peek()
        if shape.kind is ScalarKind.STRING:
            accepted = token.type.is_atom
        else:
            accepted = token.type is TokenType.RAW_ATOM
        if not accepted:
            raise self._structure_error(
                f"Unexpected {token.type} while decoding into {shape.kind.value}"
            )

        try:
            value = _PARSERS[shape.kind](token.text)
        except LiteralError as e:
            e.context.setdefault("line", self.scanner.line)
            raise
        self.scanner.read()
        return value

    def _decode_sequence(self, shape: SequenceShape) -> List[Any]:
        self._expect_open("List")
        items = self._decode_elements(shape.element)
        self._expect_close("list")
        return items

    def _decode_elements(self, element: Shape) -> List[Any]:
        """Decode values up to (not including) the enclosing closing paren."""
        items = []
        while True:
            token = self._peek()
            if token.type is TokenType.RIGHT:
                return items
            if token.type is TokenType.EOF:
                raise self._structure_error("Unexpected end of stream while decoding list")
            items.append(self._decode(element))

    def _decode_mapping(self, shape: MappingShape) -> Dict[Any, Any]:
        self._expect_open("Map")
        result: Dict[Any, Any] = {}
        while True:
            token = self._peek()
            if token.type is TokenType.RIGHT:
                self.scanner.read()
                return result
            if token.type is TokenType.EOF:
                raise self._structure_error("Unexpected end of stream while decoding map")
            if token.type is not TokenType.LEFT:
                raise SchemaError(
                    f"Map entry must be a tuple, but got {token.type}",
                    context={"line": self.scanner.line},
                )
            self.scanner.read()

            key = self._decode(shape.key)
            self._check_entry_continues()
            value = self._decode(shape.value)
            if self._peek().type is not TokenType.RIGHT:
                self._check_entry_continues()
                raise SchemaError(
                    "Map entry tuples must have two elements",
                    context={"line": self.scanner.line, "key": key},
                )
            self.scanner.read()
            result[key] = value

    def _check_entry_continues(self) -> None:
        token = self._peek()
        if token.type is TokenType.EOF:
            raise self._structure_error("Unexpected end of stream while decoding map entry")
        if token.type is TokenType.RIGHT:
            raise SchemaError(
                "Map entry tuples must have two elements",
                context={"line": self.scanner.line},
            )

    # Records

    def _decode_record(self, shape: RecordShape) -> Any:
        self._expect_open(shape.name)
        value = self._decode_fields(shape)
        self._expect_close(shape.name)
        return value

    def _decode_fields(self, shape: RecordShape) -> Any:
        """Decode a record's fields up to (not including) the enclosing closing paren."""
        values: Dict[str, Any] = {}
        pending = list(shape.positional)

        while True:
            token = self._peek()
            if token.type is TokenType.RIGHT:
                break
            if token.type is TokenType.EOF:
                raise self._structure_error(
                    f"Unexpected end of stream while decoding {shape.name}"
                )

            if pending:
                plan = pending.pop(0)
                values[plan.name] = self._decode_plan(plan)
                continue

            if token.type is not TokenType.LEFT:
                raise self._structure_error(
                    f"Named field must start with LEFT, but got {token.type}",
                    record=shape.name,
                    token=token.text,
                )
            self.scanner.read()

            label = self._peek()
            if label.type is not TokenType.RAW_ATOM:
                raise self._structure_error(
                    f"Field name must be RAW_ATOM, but got {label.type}",
                    record=shape.name,
                )
            self.scanner.read()

            plan = shape.named.get(label.text)
            if plan is None:
                logger.debug(f"Skipping unknown field '{label.text}' in {shape.name}")
                self._skip_value(label.text)
            else:
                self._store(shape, plan, values, self._decode_plan(plan))

            self._expect_close(f"field '{label.text}'")

        # A single flat positional field may legitimately match nothing
        if pending and not (len(pending) == 1 and pending[0].is_flat):
            raise SchemaError(
                "Insufficient values for positional fields",
                context={
                    "record": shape.name,
                    "missing": ", ".join(p.name for p in pending),
                    "line": self.scanner.line,
                },
            )

        return shape.construct(values)

    def _decode_plan(self, plan: FieldPlan) -> Any:
        if not plan.is_flat:
            return self._decode(plan.shape)
        if isinstance(plan.shape, RecordShape):
            return self._decode_fields(plan.shape)
        return self._decode_elements(plan.shape.element)

    def _store(self, shape: RecordShape, plan: FieldPlan, values: Dict[str, Any], value: Any) -> None:
        if plan.is_multi:
            values.setdefault(plan.name, []).append(value)
            return
        if plan.name in values:
            if self.config.duplicate_fields == "error":
                raise SchemaError(
                    "Field occurs more than once",
                    context={"record": shape.name, "field": plan.label, "line": self.scanner.line},
                    suggestions=["Declare the field with multi=True if it may repeat"],
                )
            logger.debug(f"Field '{plan.label}' in {shape.name} repeated; keeping the last value")
        values[plan.name] = value

    def _skip_value(self, label: str) -> None:
        """Skip the single value of an unknown field. A tuple is skipped whole."""
        token = self._peek()
        if token.type in (TokenType.RIGHT, TokenType.EOF):
            raise self._structure_error(f"No value to skip; found {token.type}", field=label)
        self.scanner.read()
        if token.type is not TokenType.LEFT:
            return

        depth = 1
        while depth:
            token = self._read()
            if token.type is TokenType.LEFT:
                depth += 1
            elif token.type is TokenType.RIGHT:
                depth -= 1
            elif token.type is TokenType.EOF:
                raise self._structure_error(
                    "Unexpected end of stream while skipping field",
                    field=label,
                )


def decode_document(
    source: Source, name: str, target: Any, config: Optional[DecodeConfig] = None
) -> Any:
    """
    Decode a whole ``(name field...)`` document.

    Args:
        source: Binary stream, bytes or str
        name: Expected document type (e.g. ``"kicad_pcb"``)
        target: Dataclass or :class:`RecordShape` to decode into
        config: Decode options

    Returns:
        The decoded record
    """
    config = config or DecodeConfig()
    scanner = Scanner(source, chunk_size=config.chunk_size)
    return Decoder(scanner, config).decode_document(name, target)


def decode_value(source: Source, target: Any, config: Optional[DecodeConfig] = None) -> Any:
    """
    Decode a single bare value (scalar, list, dict or record) with no envelope.

    Example:
        >>> decode_value(b"((hello world) () (pizza))", list[list[str]])
        [['hello', 'world'], [], ['pizza']]
    """
    config = config or DecodeConfig()
    scanner = Scanner(source, chunk_size=config.chunk_size)
    return Decoder(scanner, config).decode_value(target)


__all__ = ["Decoder", "decode_document", "decode_value"]
