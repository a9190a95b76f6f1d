"""Grow-only set (G-Set) CRDT.

The simplest replicated set: elements can be added but never removed.
Merge is set union, which is trivially commutative, associative and
idempotent. There is nothing to expire, so ``cleanup`` is a no-op.

Example::

    a = GrowOnlySet()
    b = GrowOnlySet()
    a.add("sword")
    b.add("shield")
    a.merge(b)
    assert a.elements == frozenset({"sword", "shield"})
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Self, TypeVar

from gossipgrid.crdt.codec import decode_value, encode_value
from gossipgrid.crdt.protocol import require_same_type, value_order

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

T = TypeVar("T")


class GrowOnlySet(Generic[T]):
    """Monotonically accumulating set CRDT.

    Args:
        elements: Optional initial elements.
    """

    __slots__ = ("_elements",)

    def __init__(self, elements: Iterable[T] = ()):
        self._elements: set[T] = set(elements)

    @property
    def value(self) -> frozenset:
        """Current elements (alias for ``elements``)."""
        return self.elements

    @property
    def elements(self) -> frozenset:
        return frozenset(self._elements)

    def add(self, element: T) -> None:
        self._elements.add(element)

    def contains(self, element: T) -> bool:
        return element in self._elements

    def merge(self, other: GrowOnlySet[T]) -> None:
        """Merge another G-Set into this one (union)."""
        require_same_type(self, other)
        self._elements |= other._elements

    def cleanup(self, now: int) -> None:
        """G-Sets never shrink."""

    def to_dict(self) -> dict:
        """Serialize to a plain dict."""
        return {
            "type": "GrowOnlySet",
            "elements": [encode_value(e) for e in sorted(self._elements, key=value_order)],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Deserialize from a plain dict."""
        return cls(decode_value(e) for e in data["elements"])

    def __contains__(self, element: Any) -> bool:
        return element in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[T]:
        return iter(sorted(self._elements, key=value_order))

    def __repr__(self) -> str:
        return f"GrowOnlySet({sorted(self._elements, key=value_order)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GrowOnlySet):
            return NotImplemented
        return self._elements == other._elements
