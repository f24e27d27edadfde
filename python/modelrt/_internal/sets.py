"""Ordered polymorphic sets.

Elements are :class:`Variant` values kept sorted under the Variant total
order, so membership is a binary search. The element list is shared with live
iterators and copies; a mutation first forks it, so an iterator keeps walking
the contents it started on.
"""

from __future__ import annotations

from bisect import bisect_left
from typing import Any, Iterable, Iterator

from .dtypes import ElementKind, ValueKind
from .ranges import Range
from .variant import Variant, as_variant


class _NegatedRelations:
    __slots__ = ()

    def is_not_subset_of(self, other: Any) -> bool:
        return not self.is_subset_of(other)

    def is_not_proper_subset_of(self, other: Any) -> bool:
        return not self.is_proper_subset_of(other)

    def is_not_superset_of(self, other: Any) -> bool:
        return not self.is_superset_of(other)

    def is_not_proper_superset_of(self, other: Any) -> bool:
        return not self.is_proper_superset_of(other)


class Set(_NegatedRelations):
    __slots__ = ("_items", "_shared")

    def __init__(self, values: Iterable[Any] | None = None) -> None:
        self._items: list[Variant] = []
        self._shared = False
        if values is not None:
            if isinstance(values, Set):
                self._items = values._items
                self._shared = True
                values._shared = True
            else:
                for value in values:
                    self.insert(value)

    @classmethod
    def of(cls, *values: Any) -> "Set":
        return cls(values)

    def copy(self) -> "Set":
        return Set(self)

    def _detach(self) -> None:
        if self._shared:
            self._items = list(self._items)
            self._shared = False

    def _locate(self, variant: Variant) -> tuple[int, bool]:
        pos = bisect_left(self._items, variant)
        return pos, pos < len(self._items) and self._items[pos] == variant

    # -- mutation ------------------------------------------------------------

    def insert(self, value: Any) -> bool:
        """Insert a value or every value of a Range.

        Returns False if any inserted element was already present.
        """
        if isinstance(value, Range):
            inserted = True
            for element in value:
                inserted = self.insert(element) and inserted
            return inserted
        variant = as_variant(value)
        pos, found = self._locate(variant)
        if found:
            return False
        self._detach()
        self._items.insert(pos, Variant(variant))
        return True

    def remove(self, value: Any) -> bool:
        pos, found = self._locate(as_variant(value))
        if not found:
            return False
        self._detach()
        del self._items[pos]
        return True

    def clear(self) -> None:
        self._items = []
        self._shared = False

    def unite_with(self, other: "Set") -> "Set":
        for variant in other._items:
            self.insert(variant)
        return self

    def intersect_with(self, other: "Set") -> "Set":
        self._items = [v for v in self._items if other.contains(v)]
        self._shared = False
        return self

    def subtract(self, other: "Set") -> "Set":
        self._items = [v for v in self._items if not other.contains(v)]
        self._shared = False
        return self

    # -- queries -------------------------------------------------------------

    def contains(self, value: Any) -> bool:
        return self._locate(as_variant(value))[1]

    def find(self, value: Any) -> Variant | None:
        """The stored element equal to ``value`` or None."""
        pos, found = self._locate(as_variant(value))
        return self._items[pos] if found else None

    def size(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def united_with(self, other: "Set") -> "Set":
        return self.copy().unite_with(other)

    def intersected_with(self, other: "Set") -> "Set":
        return self.copy().intersect_with(other)

    def difference(self, other: "Set") -> "Set":
        return self.copy().subtract(other)

    def cartesian_product(self, other: "Set") -> "Set":
        from .tuples import Tuple

        result = Set()
        for a in self._items:
            for b in other._items:
                result._items.append(Variant(Tuple((a, b))))
        result._items.sort()
        return result

    def is_subset_of(self, other: Any) -> bool:
        if isinstance(other, TypeSet):
            return other.has_subset(self)
        return len(self) <= len(other) and all(other.contains(v) for v in self._items)

    def is_proper_subset_of(self, other: Any) -> bool:
        if isinstance(other, TypeSet):
            return other.has_proper_subset(self)
        return len(self) < len(other) and self.is_subset_of(other)

    def is_superset_of(self, other: Any) -> bool:
        if isinstance(other, TypeSet):
            return other.is_subset_of(self)
        return other.is_subset_of(self)

    def is_proper_superset_of(self, other: Any) -> bool:
        return other.is_proper_subset_of(self)

    def relative_order(self, other: "Set") -> int:
        """Size first, then element-wise Variant order."""
        if len(self) != len(other):
            return -1 if len(self) < len(other) else 1
        for a, b in zip(self._items, other._items):
            order = a.relative_order(b)
            if order:
                return order
        return 0

    # -- python protocol -----------------------------------------------------

    def __iter__(self) -> Iterator[Variant]:
        self._shared = True
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, value: Any) -> bool:
        return self.contains(value)

    def __or__(self, other: "Set") -> "Set":
        return self.united_with(other)

    def __and__(self, other: "Set") -> "Set":
        return self.intersected_with(other)

    def __sub__(self, other: "Set") -> "Set":
        return self.difference(other)

    def __xor__(self, other: "Set") -> "Set":
        return self.difference(other).unite_with(other.difference(self))

    def __le__(self, other: Any) -> bool:
        return self.is_subset_of(other)

    def __lt__(self, other: Any) -> bool:
        return self.is_proper_subset_of(other)

    def __ge__(self, other: Any) -> bool:
        return self.is_superset_of(other)

    def __gt__(self, other: Any) -> bool:
        return self.is_proper_superset_of(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Set):
            return NotImplemented
        return self.relative_order(other) == 0

    def __hash__(self) -> int:
        return hash(tuple(self._items))

    def __repr__(self) -> str:
        return "Set({" + ", ".join(repr(v.value) for v in self._items) + "})"


class TypeSet(_NegatedRelations):
    """Infinite sentinel set of every value of one scalar kind.

    Type sets nest as Boolean < Integer < Real < Complex.
    """

    __slots__ = ("kind",)

    def __init__(self, kind: ElementKind) -> None:
        self.kind = ElementKind(kind)

    def contains(self, value: Any) -> bool:
        variant = as_variant(value)
        if variant.kind == ValueKind.BOOLEAN:
            return True
        if self.kind == ElementKind.BOOLEAN or not variant.is_scalar():
            return False
        if self.kind == ElementKind.COMPLEX:
            return True
        if variant.kind == ValueKind.COMPLEX and variant.value.imag != 0:
            return False
        if self.kind == ElementKind.INTEGER:
            return variant.can_translate_to(ValueKind.INTEGER)
        return True

    def has_subset(self, other: Any) -> bool:
        if isinstance(other, TypeSet):
            return other.kind <= self.kind
        if self.kind == ElementKind.BOOLEAN:
            return len(other) <= 2 and all(v.kind == ValueKind.BOOLEAN for v in other._items)
        target = ValueKind(int(self.kind))
        return all(v.kind != ValueKind.BOOLEAN and v.can_translate_to(target) for v in other._items)

    def has_proper_subset(self, other: Any) -> bool:
        if isinstance(other, TypeSet):
            return other.kind < self.kind
        if self.kind == ElementKind.BOOLEAN:
            return len(other) < 2 and self.has_subset(other)
        return self.has_subset(other)

    def is_subset_of(self, other: Any) -> bool:
        if isinstance(other, TypeSet):
            return other.has_subset(self)
        if self.kind == ElementKind.BOOLEAN:
            return other.contains(True) and other.contains(False)
        return False

    def is_proper_subset_of(self, other: Any) -> bool:
        if isinstance(other, TypeSet):
            return other.has_proper_subset(self)
        return self.is_subset_of(other) and len(other) > 2

    def is_superset_of(self, other: Any) -> bool:
        return self.has_subset(other)

    def is_proper_superset_of(self, other: Any) -> bool:
        return self.has_proper_subset(other)

    def __contains__(self, value: Any) -> bool:
        return self.contains(value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeSet):
            return NotImplemented
        return self.kind == other.kind

    def __hash__(self) -> int:
        return hash(("TypeSet", int(self.kind)))

    def __repr__(self) -> str:
        return f"{self.kind.name.capitalize()}Set"


BooleanSet = TypeSet(ElementKind.BOOLEAN)
IntegerSet = TypeSet(ElementKind.INTEGER)
RealSet = TypeSet(ElementKind.REAL)
ComplexSet = TypeSet(ElementKind.COMPLEX)


def is_element_of(value: Any, container: Any) -> bool:
    return container.contains(value)


def is_not_element_of(value: Any, container: Any) -> bool:
    return not container.contains(value)
