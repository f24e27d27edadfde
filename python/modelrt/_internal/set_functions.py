"""Set-theoretic free functions.

Each function takes two operands, each a :class:`Set` or a :class:`Variant`
holding one, or a single container (Set, Tuple or any iterable) whose every
element is a set.
"""

from __future__ import annotations

from functools import reduce
from typing import Any, Callable, Iterable

from .errors import InvalidContainerContents
from .sets import Set
from .tuples import Tuple
from .variant import Variant

_MISSING = object()


def _as_set(value: Any) -> Set:
    if isinstance(value, Set):
        return value
    if isinstance(value, Variant):
        return value.to_set()
    raise InvalidContainerContents(f"expected a set, got {type(value).__name__}")


def _members(container: Any) -> list[Set]:
    if isinstance(container, Variant):
        container = container.value
    if isinstance(container, (Set, Tuple)):
        items: Iterable[Any] = (v.value for v in container)
    else:
        items = container
    result = []
    for item in items:
        if isinstance(item, Variant):
            item = item.value
        if not isinstance(item, Set):
            raise InvalidContainerContents(f"container holds a {type(item).__name__}, not a set")
        result.append(item)
    return result


def _apply(binary: Callable[[Set, Set], Set], first: Any, second: Any) -> Set:
    if second is not _MISSING:
        return binary(_as_set(first), _as_set(second))
    members = _members(first)
    if not members:
        return Set()
    return reduce(binary, members[1:], members[0].copy())


def union_of(first: Any, second: Any = _MISSING) -> Set:
    return _apply(lambda a, b: a.united_with(b), first, second)


def intersection_of(first: Any, second: Any = _MISSING) -> Set:
    return _apply(lambda a, b: a.intersected_with(b), first, second)


def relative_complement_of(first: Any, second: Any = _MISSING) -> Set:
    """Elements of the first set that are not in the later ones."""
    return _apply(lambda a, b: a.difference(b), first, second)


def symmetric_difference_of(first: Any, second: Any = _MISSING) -> Set:
    return _apply(lambda a, b: a ^ b, first, second)


def cartesian_product_of(first: Any, second: Any = _MISSING) -> Set:
    """Set of pairs; the n-ary form yields flat n-tuples."""
    if second is not _MISSING:
        return _as_set(first).cartesian_product(_as_set(second))
    members = _members(first)
    if not members:
        return Set()
    product = Set(Tuple.of(v) for v in members[0])
    for member in members[1:]:
        result = Set()
        for prefix in product:
            for value in member:
                extended = prefix.value.copy()
                extended.append(value)
                result.insert(extended)
        product = result
    return product


def disjoint_union_of(first: Any, second: Any = _MISSING) -> Set:
    """Union of ``(element, n)`` pairs, where ``n`` is the 1-based operand position."""
    if second is not _MISSING:
        members = [_as_set(first), _as_set(second)]
    else:
        members = _members(first)
    result = Set()
    for position, member in enumerate(members, start=1):
        for value in member:
            result.insert(Tuple.of(value, position))
    return result
