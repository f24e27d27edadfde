from __future__ import annotations

import math
from typing import Any, Iterator

import numpy as np

from .errors import InvalidIndex, InvalidParameterValue


class Range:
    """Arithmetic progression ``first, second, ..., last``.

    With two arguments the step is 1. The range is empty when stepping from
    ``first`` moves away from ``last``. Values are integers when every bound
    is an integer and reals otherwise.
    """

    __slots__ = ("_first", "_step", "_last", "_count", "_integral")

    def __init__(self, first: Any, second: Any, last: Any = None) -> None:
        if last is None:
            first, last = first, second
            step = 1
        else:
            step = second - first
        for bound in (first, step, last):
            if isinstance(bound, (complex, np.complexfloating)):
                raise InvalidParameterValue("range bounds must be real")
        if step == 0:
            raise InvalidParameterValue("range step can not be zero")

        self._integral = all(
            isinstance(v, (int, np.integer)) and not isinstance(v, bool) for v in (first, step, last)
        )
        if self._integral:
            self._first, self._step, self._last = int(first), int(step), int(last)
            count = (self._last - self._first) // self._step + 1
        else:
            self._first, self._step, self._last = float(first), float(step), float(last)
            span = (self._last - self._first) / self._step
            count = math.floor(span * (1.0 + 4.0 * np.finfo(float).eps) + 1e-12) + 1
        self._count = max(0, int(count))

    @property
    def first(self) -> Any:
        return self._first

    @property
    def second(self) -> Any:
        return self._first + self._step

    @property
    def last(self) -> Any:
        return self._last

    @property
    def step(self) -> Any:
        return self._step

    @property
    def is_integral(self) -> bool:
        return self._integral

    def size(self) -> int:
        return self._count

    def is_empty(self) -> bool:
        return self._count == 0

    def value_at(self, index: int) -> Any:
        """Element at 0-based ``index``."""
        if index < 0 or index >= self._count:
            raise InvalidIndex(index + 1, self._count)
        return self._first + index * self._step

    def contains(self, value: Any) -> bool:
        if isinstance(value, (complex, np.complexfloating)):
            if value.imag != 0:
                return False
            value = value.real
        try:
            offset = (value - self._first) / self._step
        except TypeError:
            return False
        if offset < 0 or offset > self._count - 1:
            return False
        i = round(offset)
        return self._first + i * self._step == value

    def values(self) -> np.ndarray:
        dtype = np.int64 if self._integral else np.float64
        return self._first + np.arange(self._count, dtype=dtype) * self._step

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Any]:
        for i in range(self._count):
            yield self._first + i * self._step

    def __contains__(self, value: Any) -> bool:
        return self.contains(value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Range):
            return NotImplemented
        return (self._first, self._step, self._count) == (other._first, other._step, other._count)

    def __hash__(self) -> int:
        return hash((self._first, self._step, self._count))

    def __repr__(self) -> str:
        if self._step == 1:
            return f"Range({self._first}, {self._last})"
        return f"Range({self._first}, {self.second}, {self._last})"
