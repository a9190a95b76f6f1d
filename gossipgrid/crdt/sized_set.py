"""Capacity-bounded First-Writer-Wins expiring set CRDT.

Like ``ExpiringSet`` but never holds more than ``capacity`` elements, which
keeps broadcast payloads small. Each element records the turn it was
first written and the turn it expires.

Admission rule, shared by ``insert`` and ``merge``:

- already present: the copy with the earlier ``written`` wins outright;
  on equal ``written`` the later ``expires`` is kept;
- absent and under capacity: inserted;
- absent and full: the occupant with the largest ``(written, value)`` key
  is evicted if that key is strictly greater than the incoming one;
  otherwise the incoming element is silently dropped.

The set therefore always holds the ``capacity`` earliest-written elements
it has seen (ties broken by value ordering), which makes the result
independent of merge order.

Example::

    s = SizedFWWExpiringSet(capacity=2)
    s.insert("a", now=0, expires=10)
    s.insert("b", now=1, expires=10)
    s.insert("c", now=2, expires=10)   # full, "c" is newest: dropped
    s.insert("z", now=0, expires=10)   # evicts "b" (written=1)
    assert set(s) == {"a", "z"}
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, Self, TypeVar

from gossipgrid.crdt.codec import decode_value, encode_value
from gossipgrid.crdt.protocol import require_same_type, value_order

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SizedFWWExpiringSet(Generic[T]):
    """Bounded expiring set that prefers the earliest-written elements.

    Args:
        capacity: Maximum number of elements held.

    Raises:
        ValueError: If capacity is negative.
    """

    __slots__ = ("_capacity", "_entries")

    def __init__(self, capacity: int):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._capacity = capacity
        self._entries: dict[T, tuple[int, int]] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def value(self) -> frozenset:
        """Elements currently held."""
        return frozenset(self._entries)

    def insert(self, element: T, now: int, expires: int) -> None:
        """Offer an element written at ``now``.

        Args:
            element: The element to add.
            now: Current turn, recorded as the write turn.
            expires: Turn at which the element lapses.
        """
        self._admit(element, now, expires)

    def contains(self, element: T) -> bool:
        return element in self._entries

    def written(self, element: T) -> int | None:
        entry = self._entries.get(element)
        return entry[0] if entry is not None else None

    def expiry(self, element: T) -> int | None:
        entry = self._entries.get(element)
        return entry[1] if entry is not None else None

    def _admit(self, element: T, written: int, expires: int) -> None:
        current = self._entries.get(element)
        if current is not None:
            if written < current[0]:
                self._entries[element] = (written, expires)
            elif written == current[0] and expires > current[1]:
                self._entries[element] = (written, expires)
            return
        if len(self._entries) < self._capacity:
            self._entries[element] = (written, expires)
            return
        if not self._entries:
            return

        newest = max(self._entries, key=lambda e: (self._entries[e][0], value_order(e)))
        if (self._entries[newest][0], value_order(newest)) > (written, value_order(element)):
            del self._entries[newest]
            self._entries[element] = (written, expires)
        else:
            logger.debug("Set full (capacity=%d); dropped %r", self._capacity, element)

    def merge(self, other: SizedFWWExpiringSet[T]) -> None:
        """Merge another sized set into this one, keeping this capacity."""
        require_same_type(self, other)
        for element, (written, expires) in sorted(
            other._entries.items(), key=lambda kv: (kv[1][0], value_order(kv[0]))
        ):
            self._admit(element, written, expires)

    def cleanup(self, now: int) -> None:
        """Drop every element with ``expires <= now``."""
        self._entries = {e: wx for e, wx in self._entries.items() if wx[1] > now}

    def to_dict(self) -> dict:
        """Serialize to a plain dict."""
        return {
            "type": "SizedFWWExpiringSet",
            "capacity": self._capacity,
            "entries": [
                [encode_value(e), w, x]
                for e, (w, x) in sorted(self._entries.items(), key=lambda kv: value_order(kv[0]))
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Deserialize from a plain dict.

        Entries beyond the recorded capacity are admitted through the
        normal eviction rule, so a tampered payload cannot overfill the set.
        """
        s = cls(int(data["capacity"]))
        for element, written, expires in data["entries"]:
            s._admit(decode_value(element), int(written), int(expires))
        return s

    def __contains__(self, element: Any) -> bool:
        return element in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[T]:
        return iter(sorted(self._entries, key=value_order))

    def __repr__(self) -> str:
        return f"SizedFWWExpiringSet(capacity={self._capacity}, elements={list(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SizedFWWExpiringSet):
            return NotImplemented
        return self._capacity == other._capacity and self._entries == other._entries
