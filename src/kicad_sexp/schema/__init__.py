"""
Declarative shapes for schema-driven decoding.

Consumers describe the data they expect with dataclasses and the
:func:`positional` / :func:`named` field helpers; the decoder resolves
each dataclass once into a :class:`RecordShape`.
"""

from .fields import Cardinality, FieldSpec, Layout, Role, named, positional
from .shapes import (
    FieldPlan,
    MappingShape,
    RecordShape,
    ScalarKind,
    ScalarShape,
    SequenceShape,
    Shape,
    UInt,
    shape_of,
)

__all__ = [
    # Field metadata
    "positional",
    "named",
    "FieldSpec",
    "Role",
    "Cardinality",
    "Layout",
    # Shapes
    "UInt",
    "Shape",
    "ScalarKind",
    "ScalarShape",
    "SequenceShape",
    "MappingShape",
    "RecordShape",
    "FieldPlan",
    "shape_of",
]
