"""Expiring set CRDT.

A set in which every element carries the turn at which it lapses. Merge
keeps the furthest expiry per element; ``cleanup(now)`` drops elements
whose expiry has been reached.

Expiry boundary: an element is retained while ``expires > now`` and
dropped once ``now >= expires``. This is the same boundary used by
``ExpiringFWWRegister`` and ``SizedFWWExpiringSet``.

Example::

    s = ExpiringSet()
    s.insert(Loc(3, 4), expires=10)
    s.cleanup(9)
    assert Loc(3, 4) in s
    s.cleanup(10)
    assert Loc(3, 4) not in s
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Self, TypeVar

from gossipgrid.crdt.codec import decode_value, encode_value
from gossipgrid.crdt.protocol import require_same_type, value_order

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")


class ExpiringSet(Generic[T]):
    """Set of elements, each with an expiry turn."""

    __slots__ = ("_entries",)

    def __init__(self):
        self._entries: dict[T, int] = {}

    @property
    def value(self) -> frozenset:
        """Elements currently held (expired ones linger until cleanup)."""
        return frozenset(self._entries)

    def insert(self, element: T, expires: int) -> None:
        """Insert or overwrite the local expiry of ``element``."""
        self._entries[element] = expires

    def contains(self, element: T) -> bool:
        return element in self._entries

    def expiry(self, element: T) -> int | None:
        """Expiry turn of ``element``, or None if absent."""
        return self._entries.get(element)

    def merge(self, other: ExpiringSet[T]) -> None:
        """Merge another expiring set into this one (max expiry per element)."""
        require_same_type(self, other)
        for element, expires in other._entries.items():
            current = self._entries.get(element)
            if current is None or expires > current:
                self._entries[element] = expires

    def cleanup(self, now: int) -> None:
        """Drop every element with ``expires <= now``."""
        self._entries = {e: x for e, x in self._entries.items() if x > now}

    def to_dict(self) -> dict:
        """Serialize to a plain dict."""
        return {
            "type": "ExpiringSet",
            "entries": [
                [encode_value(e), self._entries[e]]
                for e in sorted(self._entries, key=value_order)
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Deserialize from a plain dict."""
        s = cls()
        for element, expires in data["entries"]:
            s._entries[decode_value(element)] = int(expires)
        return s

    def __contains__(self, element: Any) -> bool:
        return element in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[T]:
        return iter(sorted(self._entries, key=value_order))

    def __repr__(self) -> str:
        return f"ExpiringSet({dict(sorted(self._entries.items(), key=lambda kv: value_order(kv[0])))!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExpiringSet):
            return NotImplemented
        return self._entries == other._entries
