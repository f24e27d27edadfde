"""Index specifications for matrix subscripts.

Every accepted subscript kind is normalised into an :class:`IndexSpec` so the
matrix layer handles the row-kind by column-kind product in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

import numpy as np

from .dtypes import ElementKind, ValueKind
from .errors import InvalidRuntimeConversion
from .ranges import Range


class IndexKind(Enum):
    INTEGER = "integer"
    REAL = "real"
    COMPLEX = "complex"
    RANGE = "range"
    SET = "set"
    TUPLE = "tuple"
    MATRIX_INTEGER = "matrix_integer"
    MATRIX_REAL = "matrix_real"
    MATRIX_COMPLEX = "matrix_complex"
    VARIANT = "variant"


@dataclass(frozen=True)
class IndexSpec:
    kind: IndexKind
    values: np.ndarray  # 1-based int64
    scalar: bool
    shape: tuple[int, int] | None = None  # set when the source was an index matrix

    def __len__(self) -> int:
        return int(self.values.size)


def _integral(value: Any, source: ValueKind) -> int:
    if isinstance(value, (complex, np.complexfloating)):
        if value.imag != 0:
            raise InvalidRuntimeConversion(source, ValueKind.INTEGER)
        value = value.real
    if isinstance(value, (float, np.floating)):
        if not np.isfinite(value) or value != np.floor(value):
            raise InvalidRuntimeConversion(source, ValueKind.INTEGER)
    return int(value)


def _array_indices(values: np.ndarray, source: ValueKind) -> np.ndarray:
    values = np.asarray(values).ravel(order="F")
    if values.dtype.kind == "c":
        if np.any(values.imag != 0):
            raise InvalidRuntimeConversion(source, ValueKind.INTEGER)
        values = values.real
    if values.dtype.kind == "f":
        if not np.all(np.isfinite(values)) or np.any(values != np.floor(values)):
            raise InvalidRuntimeConversion(source, ValueKind.INTEGER)
    if values.dtype.kind == "b":
        raise InvalidRuntimeConversion(ValueKind.MATRIX_BOOLEAN, ValueKind.INTEGER)
    return values.astype(np.int64)


def _from_variants(items: Any, kind: IndexKind) -> IndexSpec:
    out = []
    for item in items:
        spec = index_spec(item.value)
        if not spec.scalar:
            raise InvalidRuntimeConversion(item.kind, ValueKind.INTEGER)
        out.append(int(spec.values[0]))
    return IndexSpec(kind, np.asarray(out, dtype=np.int64), False)


def _scalar(kind: IndexKind, value: int) -> IndexSpec:
    return IndexSpec(kind, np.asarray([value], dtype=np.int64), True)


def index_spec(value: Any) -> IndexSpec:
    """Normalise a subscript into an :class:`IndexSpec`."""
    from .matrix_api import MatrixBase
    from .sets import Set
    from .tuples import Tuple
    from .variant import Variant

    if isinstance(value, IndexSpec):
        return value
    if isinstance(value, Variant):
        if value.kind == ValueKind.NONE:
            raise InvalidRuntimeConversion(ValueKind.NONE, ValueKind.INTEGER)
        inner = index_spec(value.value)
        return IndexSpec(IndexKind.VARIANT, inner.values, inner.scalar, inner.shape)
    if isinstance(value, (bool, np.bool_)):
        raise InvalidRuntimeConversion(ValueKind.BOOLEAN, ValueKind.INTEGER)
    if isinstance(value, (int, np.integer)):
        return _scalar(IndexKind.INTEGER, int(value))
    if isinstance(value, (float, np.floating)):
        return _scalar(IndexKind.REAL, _integral(value, ValueKind.REAL))
    if isinstance(value, (complex, np.complexfloating)):
        return _scalar(IndexKind.COMPLEX, _integral(value, ValueKind.COMPLEX))
    if isinstance(value, Range):
        return IndexSpec(IndexKind.RANGE, _array_indices(value.values(), ValueKind.REAL), False)
    if isinstance(value, Set):
        return _from_variants(value, IndexKind.SET)
    if isinstance(value, Tuple):
        return _from_variants(value, IndexKind.TUPLE)
    if isinstance(value, MatrixBase):
        kinds = {
            ElementKind.INTEGER: (IndexKind.MATRIX_INTEGER, ValueKind.MATRIX_INTEGER),
            ElementKind.REAL: (IndexKind.MATRIX_REAL, ValueKind.MATRIX_REAL),
            ElementKind.COMPLEX: (IndexKind.MATRIX_COMPLEX, ValueKind.MATRIX_COMPLEX),
        }
        if value.kind not in kinds:
            raise InvalidRuntimeConversion(ValueKind.MATRIX_BOOLEAN, ValueKind.INTEGER)
        kind, source = kinds[value.kind]
        return IndexSpec(kind, _array_indices(value.to_numpy(), source), False, value.shape)
    if isinstance(value, (list, tuple, np.ndarray)):
        array = np.asarray(value)
        kind = {"c": IndexKind.MATRIX_COMPLEX, "f": IndexKind.MATRIX_REAL}.get(
            array.dtype.kind, IndexKind.MATRIX_INTEGER
        )
        return IndexSpec(kind, _array_indices(array.ravel(), ValueKind.MATRIX_REAL), False)
    raise InvalidRuntimeConversion(type(value).__name__, ValueKind.INTEGER)


def check_bounds(spec: IndexSpec, bound: int, error: Callable[[int, int], Exception]) -> np.ndarray:
    """Validate 1-based indices against ``bound`` and return them 0-based."""
    values = spec.values
    bad = (values < 1) | (values > bound)
    if np.any(bad):
        offending = int(values[np.argmax(bad)])
        raise error(offending, bound)
    return values - 1
