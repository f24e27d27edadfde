"""Lazy transform tags.

A tag is two bits, transpose and conjugate. Composition is XOR over the bits,
so the transform table closes over {NONE, TRANSPOSE, CONJUGATE, ADJOINT}.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

import numpy as np


class Transform(IntEnum):
    NONE = 0
    TRANSPOSE = 1
    CONJUGATE = 2
    ADJOINT = 3

    @property
    def transposes(self) -> bool:
        return bool(self & 1)

    @property
    def conjugates(self) -> bool:
        return bool(self & 2)

    def then(self, incoming: "Transform") -> "Transform":
        return Transform(int(self) ^ int(incoming))

    def restricted(self, is_complex: bool) -> "Transform":
        """Drop the conjugate bit for kinds where conjugation is the identity."""
        if is_complex:
            return self
        return Transform(int(self) & 1)


def compose(current: Transform, incoming: Transform, scalar: Any) -> tuple[Transform, Any]:
    """Fold ``incoming`` into ``(current, scalar)``.

    The logical matrix is ``scalar * T(store)``. Applying a conjugating
    transform on top also conjugates the accumulated scalar.
    """
    if incoming.conjugates and isinstance(scalar, complex):
        scalar = scalar.conjugate()
    return current.then(incoming), scalar


def transformed_shape(rows: int, cols: int, transform: Transform) -> tuple[int, int]:
    if transform.transposes:
        return cols, rows
    return rows, cols


def apply(array: np.ndarray, transform: Transform) -> np.ndarray:
    """Return a view (or conjugated copy) of ``array`` under ``transform``."""
    if transform.conjugates and np.iscomplexobj(array):
        array = np.conj(array)
    if transform.transposes:
        array = array.T
    return array


def source_index(row: int, col: int, transform: Transform) -> tuple[int, int]:
    """Map a logical 0-based coordinate onto the stored coordinate."""
    if transform.transposes:
        return col, row
    return row, col
