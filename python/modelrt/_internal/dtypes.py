from __future__ import annotations

from enum import IntEnum
from typing import Any

import numpy as np


class ElementKind(IntEnum):
    """Scalar domain of a matrix coefficient, ordered by promotion rank."""

    BOOLEAN = 2
    INTEGER = 3
    REAL = 4
    COMPLEX = 5


class ValueKind(IntEnum):
    """Tag carried by a :class:`~modelrt.Variant`. Ordering is the tag order."""

    NONE = 0
    VARIANT = 1
    BOOLEAN = 2
    INTEGER = 3
    REAL = 4
    COMPLEX = 5
    SET = 6
    TUPLE = 7
    MATRIX_BOOLEAN = 8
    MATRIX_INTEGER = 9
    MATRIX_REAL = 10
    MATRIX_COMPLEX = 11


class StorageKind(IntEnum):
    DENSE = 0
    SPARSE = 1


NUMPY_DTYPES: dict[ElementKind, np.dtype] = {
    ElementKind.BOOLEAN: np.dtype(np.bool_),
    ElementKind.INTEGER: np.dtype(np.int64),
    ElementKind.REAL: np.dtype(np.float64),
    ElementKind.COMPLEX: np.dtype(np.complex128),
}

MATRIX_VALUE_KINDS: dict[ElementKind, ValueKind] = {
    ElementKind.BOOLEAN: ValueKind.MATRIX_BOOLEAN,
    ElementKind.INTEGER: ValueKind.MATRIX_INTEGER,
    ElementKind.REAL: ValueKind.MATRIX_REAL,
    ElementKind.COMPLEX: ValueKind.MATRIX_COMPLEX,
}

# Per-element width in the binary matrix file format.
ELEMENT_WIDTHS: dict[ElementKind, int] = {
    ElementKind.BOOLEAN: 1,
    ElementKind.INTEGER: 8,
    ElementKind.REAL: 8,
    ElementKind.COMPLEX: 16,
}

KIND_CODES: dict[ElementKind, str] = {
    ElementKind.BOOLEAN: "B",
    ElementKind.INTEGER: "I",
    ElementKind.REAL: "R",
    ElementKind.COMPLEX: "C",
}


def promote(*kinds: ElementKind) -> ElementKind:
    """Join of the given element kinds under Boolean < Integer < Real < Complex."""
    return ElementKind(max(int(k) for k in kinds))


def arithmetic_kind(kind: ElementKind) -> ElementKind:
    # Boolean matrices are added and multiplied as integer matrices.
    if kind == ElementKind.BOOLEAN:
        return ElementKind.INTEGER
    return kind


def matrix_value_kind(kind: ElementKind) -> ValueKind:
    return MATRIX_VALUE_KINDS[kind]


def element_kind_of_value_kind(kind: ValueKind) -> ElementKind | None:
    for element, value_kind in MATRIX_VALUE_KINDS.items():
        if value_kind == kind:
            return element
    if ValueKind.BOOLEAN <= kind <= ValueKind.COMPLEX:
        return ElementKind(int(kind))
    return None


def numpy_dtype(kind: ElementKind) -> np.dtype:
    return NUMPY_DTYPES[kind]


def normalize_kind(kind: Any) -> ElementKind | None:
    """Normalize user-provided kind tokens into an :class:`ElementKind`.

    Accepted inputs include:
    - ElementKind members and matrix ValueKind members
    - Case-insensitive strings: "bool", "boolean", "int", "int64", "real",
      "float64", "f64", "complex", "complex128", ...
    - Python builtins: bool, int, float, complex
    - NumPy dtypes and scalar types: np.int32, np.dtype("float32"), ...
    """

    if kind is None:
        return None

    if isinstance(kind, ElementKind):
        return kind
    if isinstance(kind, ValueKind):
        return element_kind_of_value_kind(kind)

    if kind is bool:
        return ElementKind.BOOLEAN
    if kind is int:
        return ElementKind.INTEGER
    if kind is float:
        return ElementKind.REAL
    if kind is complex:
        return ElementKind.COMPLEX

    if isinstance(kind, str):
        s = kind.strip().lower()
        if s in ("bool", "bool_", "boolean", "bit"):
            return ElementKind.BOOLEAN
        if s in ("int", "integer", "int8", "int16", "int32", "int64", "i64"):
            return ElementKind.INTEGER
        if s in ("real", "float", "float32", "float64", "f32", "f64", "double"):
            return ElementKind.REAL
        if s in ("complex", "complex64", "complex128", "complex_float64"):
            return ElementKind.COMPLEX
        return None

    try:
        np_dtype = np.dtype(kind)
    except TypeError:
        return None

    if np_dtype.kind == "b":
        return ElementKind.BOOLEAN
    if np_dtype.kind in ("i", "u"):
        return ElementKind.INTEGER
    if np_dtype.kind == "f":
        return ElementKind.REAL
    if np_dtype.kind == "c":
        return ElementKind.COMPLEX
    return None


def kind_of_array(array: np.ndarray) -> ElementKind:
    kind = normalize_kind(array.dtype)
    if kind is None:
        raise TypeError(f"unsupported array dtype: {array.dtype}")
    return kind


def kind_of_scalar(value: Any) -> ElementKind | None:
    if isinstance(value, (bool, np.bool_)):
        return ElementKind.BOOLEAN
    if isinstance(value, (int, np.integer)):
        return ElementKind.INTEGER
    if isinstance(value, (float, np.floating)):
        return ElementKind.REAL
    if isinstance(value, (complex, np.complexfloating)):
        return ElementKind.COMPLEX
    return None
