"""Ordered polymorphic sequences with 1-based indexing."""

from __future__ import annotations

from typing import Any, Iterable, Iterator

from .errors import CanNotConvertToString, InvalidIndex, InvalidRuntimeConversion
from .dtypes import ValueKind
from .ranges import Range
from .variant import Variant, as_variant


class Tuple:
    __slots__ = ("_items",)

    def __init__(self, values: Iterable[Any] | str | None = None) -> None:
        self._items: list[Variant] = []
        if values is None:
            return
        if isinstance(values, str):
            self._items = [Variant(ord(ch)) for ch in values]
        elif isinstance(values, Tuple):
            self._items = list(values._items)
        else:
            for value in values:
                self._append_one(value)

    @classmethod
    def of(cls, *values: Any) -> "Tuple":
        return cls(values)

    @classmethod
    def from_string(cls, text: str | bytes) -> "Tuple":
        """One Integer element per Unicode scalar value of ``text``."""
        if isinstance(text, bytes):
            text = text.split(b"\0", 1)[0].decode("utf-8")
        return cls(text)

    def to_string(self) -> str:
        chars = []
        for position, item in enumerate(self._items, start=1):
            try:
                code = item.to_integer()
            except InvalidRuntimeConversion as exc:
                raise CanNotConvertToString(f"element {position} is not a character code") from exc
            if item.kind not in (ValueKind.INTEGER, ValueKind.BOOLEAN, ValueKind.REAL):
                raise CanNotConvertToString(f"element {position} is not a character code")
            if not 0 <= code <= 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                raise CanNotConvertToString(f"element {position} is not a Unicode scalar value")
            chars.append(chr(code))
        return "".join(chars)

    def copy(self) -> "Tuple":
        return Tuple(self)

    def _append_one(self, value: Any) -> None:
        if isinstance(value, Range):
            self._items.extend(Variant(v) for v in value)
        else:
            self._items.append(Variant(value))

    # -- mutation ------------------------------------------------------------

    def append(self, *values: Any) -> None:
        """Append values in order; a Range expands to its elements."""
        for value in values:
            self._append_one(value)

    def prepend(self, *values: Any) -> None:
        head = Tuple(values)
        self._items[:0] = head._items

    def take_first(self) -> Variant:
        if not self._items:
            raise InvalidIndex(1, 0)
        return self._items.pop(0)

    def take_last(self) -> Variant:
        if not self._items:
            raise InvalidIndex(1, 0)
        return self._items.pop()

    def update(self, index: int, value: Any) -> None:
        """Set the element at 1-based ``index``; gaps fill with empty variants."""
        if index < 1:
            raise InvalidIndex(index, len(self._items))
        while len(self._items) < index:
            self._items.append(Variant())
        self._items[index - 1] = Variant(value)

    def clear(self) -> None:
        self._items = []

    # -- queries -------------------------------------------------------------

    def at(self, index: int) -> Variant:
        if index < 1 or index > len(self._items):
            raise InvalidIndex(index, len(self._items))
        return self._items[index - 1]

    def size(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def contains(self, value: Any) -> bool:
        variant = as_variant(value)
        return any(item == variant for item in self._items)

    def extract(self, first: int, last: int) -> "Tuple":
        """Elements ``first`` through ``last`` inclusive (1-based)."""
        size = len(self._items)
        if first < 1 or first > size + 1:
            raise InvalidIndex(first, size)
        if last > size:
            raise InvalidIndex(last, size)
        result = Tuple()
        result._items = self._items[first - 1 : max(last, first - 1)]
        return result

    def find(self, sub_tuple: "Tuple", starting_at: int = 1) -> int:
        return find(self, sub_tuple, starting_at)

    def ends_with(self, other: "Tuple") -> bool:
        n = len(other._items)
        return n <= len(self._items) and (n == 0 or self._items[-n:] == other._items)

    def relative_order(self, other: "Tuple") -> int:
        """Length first, then element-wise Variant order."""
        if len(self) != len(other):
            return -1 if len(self) < len(other) else 1
        for a, b in zip(self._items, other._items):
            order = a.relative_order(b)
            if order:
                return order
        return 0

    # -- algebra -------------------------------------------------------------

    def __mul__(self, other: "Tuple") -> "Tuple":
        if not isinstance(other, Tuple):
            return NotImplemented
        result = Tuple()
        result._items = self._items + other._items
        return result

    def __truediv__(self, other: "Tuple") -> "Tuple":
        """Right-cancellation: drop a trailing copy of ``other`` if present."""
        if not isinstance(other, Tuple):
            return NotImplemented
        result = Tuple()
        n = len(other._items)
        if n and self.ends_with(other):
            result._items = self._items[:-n]
        else:
            result._items = list(self._items)
        return result

    # -- python protocol -----------------------------------------------------

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Variant]:
        return iter(list(self._items))

    def __contains__(self, value: Any) -> bool:
        return self.contains(value)

    def __getitem__(self, index: int) -> Variant:
        return self.at(index)

    def __setitem__(self, index: int, value: Any) -> None:
        self.update(index, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tuple):
            return NotImplemented
        return self.relative_order(other) == 0

    def __hash__(self) -> int:
        return hash(tuple(self._items))

    def __repr__(self) -> str:
        return "Tuple(" + ", ".join(repr(v.value) for v in self._items) + ")"

    def __str__(self) -> str:
        try:
            return self.to_string()
        except CanNotConvertToString:
            return repr(self)


def find(tuple_: Any, sub_tuple: Any, starting_at: int = 1) -> int:
    """1-based index of the first occurrence of ``sub_tuple`` at or after ``starting_at``, else 0."""
    tuple_ = as_variant(tuple_).to_tuple() if not isinstance(tuple_, Tuple) else tuple_
    sub_tuple = as_variant(sub_tuple).to_tuple() if not isinstance(sub_tuple, Tuple) else sub_tuple
    if starting_at <= 0:
        raise InvalidIndex(starting_at, len(tuple_))
    items = tuple_._items
    needle = sub_tuple._items
    n, m = len(items), len(needle)
    if m == 0 or m > n:
        return 0
    for start in range(starting_at - 1, n - m + 1):
        if items[start : start + m] == needle:
            return start + 1
    return 0


def split(tuple_: Any, split_terms: Any, keep_split: bool = False, remove_empty: bool = False) -> Tuple:
    """Partition ``tuple_`` at occurrences of a delimiter tuple or at members of a set.

    Returns a Tuple whose elements are the partitions.
    """
    from .sets import Set

    if not isinstance(tuple_, Tuple):
        tuple_ = as_variant(tuple_).to_tuple()
    if isinstance(split_terms, Variant):
        if split_terms.kind == ValueKind.SET:
            split_terms = split_terms.to_set()
        else:
            split_terms = split_terms.to_tuple()
    if isinstance(split_terms, str):
        split_terms = Tuple(split_terms)

    result = Tuple()
    if isinstance(split_terms, Set):
        part: list[Variant] = []
        for item in tuple_._items:
            if split_terms.contains(item):
                if keep_split:
                    part.append(item)
                if not remove_empty or part:
                    result._items.append(Variant(_tuple_of(part)))
                part = []
            else:
                part.append(item)
        if part:
            result._items.append(Variant(_tuple_of(part)))
        return result

    if not isinstance(split_terms, Tuple):
        raise InvalidRuntimeConversion(as_variant(split_terms).kind, ValueKind.TUPLE)

    length = len(tuple_)
    width = len(split_terms)
    current = 1
    while True:
        hit = find(tuple_, split_terms, current)
        if hit > 0:
            next_start = hit + width
            last = next_start - 1 if keep_split else hit - 1
        else:
            last = length
            next_start = length + 1
        if not remove_empty or current <= last:
            result._items.append(Variant(_tuple_of(tuple_._items[current - 1 : max(last, current - 1)])))
        current = next_start
        if current > length:
            break
    return result


def _tuple_of(items: list[Variant]) -> Tuple:
    result = Tuple()
    result._items = list(items)
    return result


def alphabet(value: Any):
    """The set of distinct elements of a tuple or matrix."""
    from .matrix_api import MatrixBase
    from .sets import Set

    if isinstance(value, Variant):
        value = value.value
    if isinstance(value, Tuple):
        return Set(value._items)
    if isinstance(value, MatrixBase):
        return Set(value.to_numpy().ravel(order="F").tolist())
    raise InvalidRuntimeConversion(as_variant(value).kind, ValueKind.TUPLE)
