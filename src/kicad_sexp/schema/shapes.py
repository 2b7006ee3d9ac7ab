"""
Value shapes understood by the decoder.

A shape is resolved once per target type and cached. It is one of:

- :class:`ScalarShape`: string, signed/unsigned integer, float or bool
- :class:`SequenceShape`: a tuple of values of one element shape -> ``list``
- :class:`MappingShape`: a tuple of ``(key value)`` pairs -> ``dict``
- :class:`RecordShape`: positional and named fields -> a dataclass (or any
  factory taking keyword arguments)

Usage:
    from kicad_sexp.schema import UInt, shape_of

    shape_of(list[int])         # SequenceShape(element=ScalarShape(kind=INT))
    shape_of(dict[str, UInt])   # MappingShape(...)
    shape_of(MyDataclass)       # RecordShape(MyDataclass)
"""

from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, NewType, Optional, Tuple

from kicad_sexp.exceptions import InvalidTargetError, SchemaError

from .fields import SEXP_METADATA_KEY, FieldSpec

# Annotation marker for unsigned integers (hex and digit separators allowed)
UInt = NewType("UInt", int)


class ScalarKind(Enum):
    STRING = "string"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    BOOL = "bool"


_ZERO = {
    ScalarKind.STRING: "",
    ScalarKind.INT: 0,
    ScalarKind.UINT: 0,
    ScalarKind.FLOAT: 0.0,
    ScalarKind.BOOL: False,
}


class Shape:
    """Base class for all value shapes."""

    def zero(self) -> Any:
        """Value used for a field that the input never mentions."""
        raise NotImplementedError


@dataclass(frozen=True)
class ScalarShape(Shape):
    kind: ScalarKind

    def zero(self) -> Any:
        return _ZERO[self.kind]


@dataclass(frozen=True)
class SequenceShape(Shape):
    element: Shape

    def zero(self) -> list:
        return []


@dataclass(frozen=True)
class MappingShape(Shape):
    key: Shape
    value: Shape

    def __post_init__(self):
        if not isinstance(self.key, ScalarShape):
            raise SchemaError(
                "Mapping keys must be scalars",
                context={"key": self.key},
            )

    def zero(self) -> dict:
        return {}


@dataclass(frozen=True)
class FieldPlan:
    """
    Decode plan for one record field.

    Attributes:
        name: Keyword argument the decoded value is passed as
        spec: Role, label, cardinality and layout
        shape: Shape of one value (the list element shape for multi fields)
        has_default: Whether the factory supplies a value when absent
    """

    name: str
    spec: FieldSpec
    shape: Shape
    has_default: bool = False

    @property
    def label(self) -> Optional[str]:
        return self.spec.label

    @property
    def is_flat(self) -> bool:
        return self.spec.is_flat

    @property
    def is_multi(self) -> bool:
        return self.spec.is_multi

    def zero(self) -> Any:
        if self.is_multi:
            return []
        return self.shape.zero()


@dataclass(eq=False)
class RecordShape(Shape):
    """
    A record decoded from positional values followed by named field tuples.

    Use :meth:`build` to declare one without a dataclass; records resolved
    from dataclasses are built by :func:`shape_of`.
    """

    factory: Callable[..., Any]
    name: str = ""
    positional: Tuple[FieldPlan, ...] = ()
    named: Dict[str, FieldPlan] = field(default_factory=dict)

    @classmethod
    def build(
        cls, factory: Callable[..., Any], plans: Iterable[FieldPlan], name: Optional[str] = None
    ) -> RecordShape:
        """Create a record shape from explicit field plans, validating them."""
        shape = cls(factory, name or getattr(factory, "__name__", "record"))
        shape._set_plans(list(plans))
        return shape

    def _set_plans(self, plans: list[FieldPlan]) -> None:
        positional = []
        named: Dict[str, FieldPlan] = {}
        for plan in plans:
            if plan.is_flat and not isinstance(plan.shape, (RecordShape, SequenceShape)):
                raise SchemaError(
                    "'flat' can only be used on list or record fields",
                    context={"record": self.name, "field": plan.name},
                )
            if plan.label is None:
                if positional and positional[-1].is_flat:
                    raise SchemaError(
                        "Only the last positional field may be flat",
                        context={"record": self.name, "field": positional[-1].name},
                    )
                positional.append(plan)
            elif plan.label in named:
                raise SchemaError(
                    "Duplicate field label",
                    context={"record": self.name, "label": plan.label},
                )
            else:
                named[plan.label] = plan

        self.positional = tuple(positional)
        self.named = named

    @property
    def plans(self) -> Tuple[FieldPlan, ...]:
        return self.positional + tuple(self.named.values())

    def construct(self, values: Dict[str, Any]) -> Any:
        """Build the record, filling absent fields without defaults with zero values."""
        for plan in self.plans:
            if plan.name not in values and not plan.has_default:
                values[plan.name] = plan.zero()
        return self.factory(**values)

    def zero(self) -> Any:
        return self.construct({})

    def __repr__(self) -> str:
        return f"RecordShape({self.name})"


_SCALARS = {
    str: ScalarKind.STRING,
    int: ScalarKind.INT,
    UInt: ScalarKind.UINT,
    float: ScalarKind.FLOAT,
    bool: ScalarKind.BOOL,
}

_SHAPE_CACHE: Dict[Any, Shape] = {}

# Cache keys added by the resolution in progress; evicted together if it fails
_pending: Optional[List[Any]] = None


def shape_of(target: Any) -> Shape:
    """
    Resolve a decode target to its shape.

    Accepts a :class:`Shape` (returned unchanged), ``str``, ``int``,
    :data:`UInt`, ``float``, ``bool``, ``list[T]``, ``dict[K, V]`` and
    dataclasses declared with :func:`~kicad_sexp.schema.positional` /
    :func:`~kicad_sexp.schema.named` fields.

    Raises:
        InvalidTargetError: If the target is ``None`` or unsupported
        SchemaError: If a dataclass declares invalid field metadata
    """
    if isinstance(target, Shape):
        return target
    if target is None:
        raise InvalidTargetError(None)
    try:
        cached = _SHAPE_CACHE.get(target)
    except TypeError:
        raise InvalidTargetError(target, "not a type") from None
    if cached is not None:
        return cached

    global _pending
    outermost = _pending is None
    if outermost:
        _pending = []
    try:
        shape = _resolve(target)
        _cache(target, shape)
    except BaseException:
        if outermost:
            for key in _pending:
                _SHAPE_CACHE.pop(key, None)
        raise
    finally:
        if outermost:
            _pending = None
    return shape


def _cache(target: Any, shape: Shape) -> None:
    _SHAPE_CACHE[target] = shape
    if _pending is not None:
        _pending.append(target)


def _resolve(target: Any) -> Shape:
    if target in _SCALARS:
        return ScalarShape(_SCALARS[target])

    origin = typing.get_origin(target)
    args = typing.get_args(target)
    if origin is list:
        if len(args) != 1:
            raise InvalidTargetError(target, "list needs an element type")
        return SequenceShape(shape_of(args[0]))
    if origin is dict:
        if len(args) != 2:
            raise InvalidTargetError(target, "dict needs key and value types")
        return MappingShape(shape_of(args[0]), shape_of(args[1]))

    if isinstance(target, type) and dataclasses.is_dataclass(target):
        return _record_from_dataclass(target)

    raise InvalidTargetError(target)


def _record_from_dataclass(cls: type) -> RecordShape:
    shape = RecordShape(cls, cls.__name__)
    # Registered before resolving fields so self-referencing records terminate;
    # shape_of() evicts it again if resolution fails
    _cache(cls, shape)
    try:
        hints = typing.get_type_hints(cls)
    except Exception as e:
        raise SchemaError(
            "Can't resolve field annotations",
            context={"record": cls.__name__, "error": f"{type(e).__name__}: {e}"},
        ) from e

    plans = []
    for f in dataclasses.fields(cls):
        spec = f.metadata.get(SEXP_METADATA_KEY)
        has_default = (
            f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
        )
        if spec is None:
            if f.init and not has_default:
                raise SchemaError(
                    "Field without decode metadata needs a default",
                    context={"record": cls.__name__, "field": f.name},
                    suggestions=["Declare it with positional() or named()"],
                )
            continue
        if not f.init:
            raise SchemaError(
                "Decoded fields must be init fields",
                context={"record": cls.__name__, "field": f.name},
            )
        plans.append(_plan_for(cls, f.name, spec, hints[f.name], has_default))
    shape._set_plans(plans)
    return shape


def _plan_for(cls: type, name: str, spec: FieldSpec, annotation: Any, has_default: bool) -> FieldPlan:
    value_type = annotation
    if spec.is_multi:
        if typing.get_origin(annotation) is not list:
            raise SchemaError(
                "'multi' can only be used on list fields",
                context={"record": cls.__name__, "field": name},
            )
        (value_type,) = typing.get_args(annotation)
    return FieldPlan(name, spec, shape_of(value_type), has_default)


__all__ = [
    "UInt",
    "ScalarKind",
    "Shape",
    "ScalarShape",
    "SequenceShape",
    "MappingShape",
    "RecordShape",
    "FieldPlan",
    "shape_of",
]
