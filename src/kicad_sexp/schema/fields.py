"""
Field metadata for declaring decode targets.

Decode targets are ordinary dataclasses whose fields are declared with
:func:`positional` or :func:`named`, the same way ``dataclasses.field`` is
used::

    from dataclasses import dataclass

    from kicad_sexp.schema import named, positional

    @dataclass
    class Net:
        number: int = positional()
        name: str = positional()

    @dataclass
    class Board:
        version: str = named("version")
        nets: list[Net] = named("net", multi=True, flat=True)

Fields declared without these helpers are ignored by the decoder.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from kicad_sexp.exceptions import SchemaError

SEXP_METADATA_KEY = "kicad_sexp"


class Role(Enum):
    """How a field is located in its parent tuple."""

    POSITIONAL = "positional"  # matched by position
    NAMED = "named"  # matched by a (label value...) tuple


class Cardinality(Enum):
    """How many times a named field may occur."""

    SINGLE = "single"
    MULTI = "multi"  # occurrences accumulate into a list, in source order


class Layout(Enum):
    """Whether a field's value is wrapped in its own tuple."""

    NESTED = "nested"
    FLAT = "flat"  # sub-fields or elements inlined into the parent tuple


@dataclass(frozen=True)
class FieldSpec:
    """Role, label, cardinality and layout of one field."""

    role: Role
    label: Optional[str] = None
    cardinality: Cardinality = Cardinality.SINGLE
    layout: Layout = Layout.NESTED

    def __post_init__(self):
        if self.role is Role.NAMED:
            if not self.label or any(ch in self.label for ch in ' \t\r\n\x00()#"'):
                raise SchemaError(
                    "Named field label must be a non-empty raw atom",
                    context={"label": self.label},
                )
        elif self.label is not None:
            raise SchemaError("Positional fields have no label", context={"label": self.label})
        if self.role is Role.POSITIONAL and self.cardinality is Cardinality.MULTI:
            raise SchemaError(
                "'multi' can only be used on named fields",
                suggestions=["Use a flat list as the last positional field instead"],
            )

    @classmethod
    def positional(cls, flat: bool = False) -> FieldSpec:
        return cls(Role.POSITIONAL, layout=Layout.FLAT if flat else Layout.NESTED)

    @classmethod
    def named(cls, label: str, multi: bool = False, flat: bool = False) -> FieldSpec:
        return cls(
            Role.NAMED,
            label=label,
            cardinality=Cardinality.MULTI if multi else Cardinality.SINGLE,
            layout=Layout.FLAT if flat else Layout.NESTED,
        )

    @property
    def is_flat(self) -> bool:
        return self.layout is Layout.FLAT

    @property
    def is_multi(self) -> bool:
        return self.cardinality is Cardinality.MULTI


def _field(spec: FieldSpec, default: Any, default_factory: Any) -> Any:
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata={SEXP_METADATA_KEY: spec},
    )


def positional(
    *,
    flat: bool = False,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
) -> Any:
    """
    Declare a field matched by its position in the parent tuple.

    Args:
        flat: The value is a list or record whose elements/fields follow
            directly in the parent tuple. Only the last positional field may
            be flat, and it may match nothing.
        default: Value used when the field is absent
        default_factory: Factory used when the field is absent
    """
    return _field(FieldSpec.positional(flat=flat), default, default_factory)


def named(
    label: str,
    *,
    multi: bool = False,
    flat: bool = False,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
) -> Any:
    """
    Declare a field matched by a ``(label value...)`` tuple.

    Args:
        label: The raw atom that opens the field's tuple
        multi: The field may repeat; the field type must be ``list[T]`` and
            each occurrence appends one ``T``
        flat: The value's elements/fields appear directly after the label
        default: Value used when the field is absent
        default_factory: Factory used when the field is absent
    """
    return _field(FieldSpec.named(label, multi=multi, flat=flat), default, default_factory)


__all__ = [
    "SEXP_METADATA_KEY",
    "Role",
    "Cardinality",
    "Layout",
    "FieldSpec",
    "positional",
    "named",
]
