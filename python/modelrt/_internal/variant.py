"""Discriminated runtime value.

A :class:`Variant` carries one :class:`ValueKind` tag and a payload. Variants
are totally ordered: first by tag, then by payload content, which is what
lets sets hold values of mixed kinds.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np

from .dtypes import ValueKind, element_kind_of_value_kind, matrix_value_kind
from .errors import InvalidRuntimeConversion

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_SCALAR_KINDS = (ValueKind.BOOLEAN, ValueKind.INTEGER, ValueKind.REAL, ValueKind.COMPLEX)
_MATRIX_KINDS = (
    ValueKind.MATRIX_BOOLEAN,
    ValueKind.MATRIX_INTEGER,
    ValueKind.MATRIX_REAL,
    ValueKind.MATRIX_COMPLEX,
)

_MATRIX_TARGETS = {
    ValueKind.MATRIX_BOOLEAN: set(_MATRIX_KINDS),
    ValueKind.MATRIX_INTEGER: set(_MATRIX_KINDS),
    ValueKind.MATRIX_REAL: {ValueKind.MATRIX_BOOLEAN, ValueKind.MATRIX_REAL, ValueKind.MATRIX_COMPLEX},
    ValueKind.MATRIX_COMPLEX: {ValueKind.MATRIX_BOOLEAN, ValueKind.MATRIX_COMPLEX},
}


def _is_integral(value: float) -> bool:
    return math.isfinite(value) and value == math.floor(value) and _INT64_MIN <= value <= _INT64_MAX


def _three_way(a: Any, b: Any) -> int:
    # NaN sorts after every number and equal to itself so the order stays total.
    a_nan = isinstance(a, float) and math.isnan(a)
    b_nan = isinstance(b, float) and math.isnan(b)
    if a_nan or b_nan:
        return int(a_nan) - int(b_nan)
    return (a > b) - (a < b)


def _classify(value: Any) -> tuple[ValueKind, Any]:
    from .matrix_api import MatrixBase
    from .sets import Set
    from .tuples import Tuple

    if value is None:
        return ValueKind.NONE, None
    if isinstance(value, Variant):
        payload = value._value
        return value._kind, payload.copy() if hasattr(payload, "copy") else payload
    if isinstance(value, (bool, np.bool_)):
        return ValueKind.BOOLEAN, bool(value)
    if isinstance(value, (int, np.integer)):
        return ValueKind.INTEGER, int(value)
    if isinstance(value, (float, np.floating)):
        return ValueKind.REAL, float(value)
    if isinstance(value, (complex, np.complexfloating)):
        return ValueKind.COMPLEX, complex(value)
    if isinstance(value, Set):
        return ValueKind.SET, value.copy()
    if isinstance(value, Tuple):
        return ValueKind.TUPLE, value.copy()
    if isinstance(value, str):
        return ValueKind.TUPLE, Tuple.from_string(value)
    if isinstance(value, MatrixBase):
        return matrix_value_kind(value.kind), value.copy()
    raise InvalidRuntimeConversion(type(value).__name__, ValueKind.VARIANT)


class Variant:
    __slots__ = ("_kind", "_value")

    def __init__(self, value: Any = None, kind: ValueKind | None = None) -> None:
        self._kind, self._value = _classify(value)
        if kind is not None and kind not in (ValueKind.VARIANT, self._kind):
            converted = self.convert(kind)
            self._kind, self._value = converted._kind, converted._value

    # -- introspection -------------------------------------------------------

    def value_type(self) -> ValueKind:
        return self._kind

    @property
    def kind(self) -> ValueKind:
        return self._kind

    @property
    def value(self) -> Any:
        """The payload as a plain Python value or container."""
        return self._value

    def is_none(self) -> bool:
        return self._kind == ValueKind.NONE

    def is_scalar(self) -> bool:
        return self._kind in _SCALAR_KINDS

    def is_matrix(self) -> bool:
        return self._kind in _MATRIX_KINDS

    # -- conversion ----------------------------------------------------------

    def can_translate_to(self, target: ValueKind) -> bool:
        source = self._kind
        if source == ValueKind.NONE or target == ValueKind.VARIANT:
            return True
        if target == ValueKind.NONE:
            return False
        if source in (ValueKind.BOOLEAN, ValueKind.INTEGER):
            return target in _SCALAR_KINDS
        if source == ValueKind.REAL:
            if target == ValueKind.INTEGER:
                return _is_integral(self._value)
            return target in _SCALAR_KINDS
        if source == ValueKind.COMPLEX:
            if target == ValueKind.INTEGER:
                return self._value.imag == 0 and _is_integral(self._value.real)
            if target == ValueKind.REAL:
                return self._value.imag == 0
            return target in (ValueKind.BOOLEAN, ValueKind.COMPLEX)
        if source in (ValueKind.SET, ValueKind.TUPLE):
            return target in (ValueKind.BOOLEAN, source)
        return target in _MATRIX_TARGETS[source]

    def _fail(self, target: ValueKind) -> InvalidRuntimeConversion:
        return InvalidRuntimeConversion(self._kind, target)

    def to_boolean(self) -> bool:
        if self._kind == ValueKind.NONE:
            return False
        if self._kind in _SCALAR_KINDS:
            return self._value != 0
        if self._kind in (ValueKind.SET, ValueKind.TUPLE):
            return not self._value.is_empty()
        raise self._fail(ValueKind.BOOLEAN)

    def to_integer(self) -> int:
        if self._kind == ValueKind.NONE:
            return 0
        if not self.can_translate_to(ValueKind.INTEGER):
            raise self._fail(ValueKind.INTEGER)
        value = self._value
        if isinstance(value, complex):
            value = value.real
        return int(value)

    def to_real(self) -> float:
        if self._kind == ValueKind.NONE:
            return 0.0
        if not self.can_translate_to(ValueKind.REAL):
            raise self._fail(ValueKind.REAL)
        value = self._value
        if isinstance(value, complex):
            value = value.real
        return float(value)

    def to_complex(self) -> complex:
        if self._kind == ValueKind.NONE:
            return 0j
        if self._kind not in _SCALAR_KINDS:
            raise self._fail(ValueKind.COMPLEX)
        return complex(self._value)

    def to_set(self):
        from .sets import Set

        if self._kind == ValueKind.NONE:
            return Set()
        if self._kind != ValueKind.SET:
            raise self._fail(ValueKind.SET)
        return self._value.copy()

    def to_tuple(self):
        from .tuples import Tuple

        if self._kind == ValueKind.NONE:
            return Tuple()
        if self._kind != ValueKind.TUPLE:
            raise self._fail(ValueKind.TUPLE)
        return self._value.copy()

    def _to_matrix(self, target: ValueKind):
        from .matrix_api import matrix_class

        element = element_kind_of_value_kind(target)
        cls = matrix_class(element)
        if self._kind == ValueKind.NONE:
            return cls()
        if not self.can_translate_to(target):
            raise self._fail(target)
        return cls(self._value)

    def to_matrix_boolean(self):
        return self._to_matrix(ValueKind.MATRIX_BOOLEAN)

    def to_matrix_integer(self):
        return self._to_matrix(ValueKind.MATRIX_INTEGER)

    def to_matrix_real(self):
        return self._to_matrix(ValueKind.MATRIX_REAL)

    def to_matrix_complex(self):
        return self._to_matrix(ValueKind.MATRIX_COMPLEX)

    _CONVERTERS = {
        ValueKind.BOOLEAN: "to_boolean",
        ValueKind.INTEGER: "to_integer",
        ValueKind.REAL: "to_real",
        ValueKind.COMPLEX: "to_complex",
        ValueKind.SET: "to_set",
        ValueKind.TUPLE: "to_tuple",
        ValueKind.MATRIX_BOOLEAN: "to_matrix_boolean",
        ValueKind.MATRIX_INTEGER: "to_matrix_integer",
        ValueKind.MATRIX_REAL: "to_matrix_real",
        ValueKind.MATRIX_COMPLEX: "to_matrix_complex",
    }

    def to(self, target: ValueKind) -> Any:
        """Payload coerced to ``target``; raises InvalidRuntimeConversion."""
        if target == ValueKind.VARIANT:
            return self
        if target == ValueKind.NONE:
            if self._kind == ValueKind.NONE:
                return None
            raise self._fail(target)
        return getattr(self, self._CONVERTERS[target])()

    def try_to(self, target: ValueKind) -> tuple[Any, bool]:
        """Like :meth:`to` but reports failure through the returned flag."""
        try:
            return self.to(target), True
        except InvalidRuntimeConversion:
            return None, False

    def convert(self, target: ValueKind) -> "Variant":
        result = Variant.__new__(Variant)
        result._kind = ValueKind(target)
        result._value = self.to(target)
        if isinstance(result._value, Variant):
            return result._value
        return result

    # -- matrix element updates ----------------------------------------------

    def update(self, *args: Any) -> None:
        """``update(row, column, value)`` or ``update(index, value)`` on a matrix payload."""
        if not self.is_matrix():
            raise InvalidRuntimeConversion(self._kind, ValueKind.MATRIX_BOOLEAN)
        *where, value = args
        element = element_kind_of_value_kind(self._kind)
        coerced = Variant(value).to(ValueKind(int(element)))
        self._value.update(*where, coerced)

    # -- ordering ------------------------------------------------------------

    def relative_order(self, other: Any) -> int:
        if not isinstance(other, Variant):
            other = Variant(other)
        if self._kind != other._kind:
            return -1 if self._kind < other._kind else 1
        kind = self._kind
        a, b = self._value, other._value
        if kind == ValueKind.NONE:
            return 0
        if kind == ValueKind.COMPLEX:
            return _three_way(a.real, b.real) or _three_way(a.imag, b.imag)
        if kind in _SCALAR_KINDS:
            return _three_way(a, b)
        return a.relative_order(b)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Variant):
            try:
                other = Variant(other)
            except InvalidRuntimeConversion:
                return NotImplemented
        return self.relative_order(other) == 0

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __lt__(self, other: Any) -> bool:
        return self.relative_order(other) < 0

    def __le__(self, other: Any) -> bool:
        return self.relative_order(other) <= 0

    def __gt__(self, other: Any) -> bool:
        return self.relative_order(other) > 0

    def __ge__(self, other: Any) -> bool:
        return self.relative_order(other) >= 0

    def __hash__(self) -> int:
        if self._kind in _MATRIX_KINDS:
            return hash((int(self._kind), self._value.raw_bytes()))
        if self._kind == ValueKind.REAL and math.isnan(self._value):
            return hash((int(self._kind), "nan"))
        return hash((int(self._kind), self._value))

    def __bool__(self) -> bool:
        return self.to_boolean()

    def __repr__(self) -> str:
        if self._kind == ValueKind.NONE:
            return "Variant()"
        return f"Variant({self._value!r})"

    def __str__(self) -> str:
        return str(self._value) if self._kind != ValueKind.NONE else ""


def as_variant(value: Any) -> Variant:
    if isinstance(value, Variant):
        return value
    return Variant(value)


def implicit_ordering(a: Any, b: Any) -> int:
    """Numeric three-way comparison across scalar kinds.

    Booleans compare as 0/1 and complex values by ``re + im``. Unlike the
    Variant order this ignores the kind tag.
    """

    def _key(value: Any) -> float:
        v = as_variant(value)
        if v.kind not in _SCALAR_KINDS:
            raise InvalidRuntimeConversion(v.kind, ValueKind.REAL)
        if v.kind == ValueKind.COMPLEX:
            return v.value.real + v.value.imag
        return float(v.value)

    return _three_way(_key(a), _key(b))
