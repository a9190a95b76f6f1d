"""Ordered CRDT map with a pluggable conflict policy.

One container, two policies. Each key maps to ``(value, written)``; when
two replicas disagree on a key the policy picks the survivor:

- **LastWriterWins** (``LWW``): the later write wins.
- **FirstWriterWins** (``FWW``): the earlier write wins.

Equal write turns fall back to value ordering (larger value for LWW,
smaller for FWW), so the choice is deterministic on every replica.
Entries never expire; they are only overwritten.

Example::

    tiles = CrdtMap(LWW)
    tiles.insert(Loc(0, 0), True, now=4)

    peer = CrdtMap(LWW)
    peer.insert(Loc(0, 0), False, now=7)

    tiles.merge(peer)
    assert tiles.get(Loc(0, 0)) is False   # written later
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Protocol, Self, TypeVar, runtime_checkable

from gossipgrid.crdt.codec import decode_value, encode_value
from gossipgrid.crdt.protocol import MergeError, require_same_type, value_order

if TYPE_CHECKING:
    from collections.abc import Iterator

K = TypeVar("K")
V = TypeVar("V")


@runtime_checkable
class ConflictPolicy(Protocol):
    """Decides which of two writes to the same key survives a merge."""

    name: str

    def prefers(self, candidate: tuple[Any, int], incumbent: tuple[Any, int]) -> bool:
        """Return True if ``candidate`` should replace ``incumbent``.

        Args:
            candidate: ``(value, written)`` from the incoming replica.
            incumbent: ``(value, written)`` currently held.
        """
        ...


class LastWriterWins:
    """Policy that keeps the write with the highest turn.

    Ties are broken toward the larger value.
    """

    name = "lww"

    def prefers(self, candidate: tuple[Any, int], incumbent: tuple[Any, int]) -> bool:
        return self._sort_key(candidate) > self._sort_key(incumbent)

    @staticmethod
    def _sort_key(entry: tuple[Any, int]) -> tuple:
        value, written = entry
        return (written, value_order(value))

    def __repr__(self) -> str:
        return "LastWriterWins()"


class FirstWriterWins:
    """Policy that keeps the write with the lowest turn.

    Ties are broken toward the smaller value.
    """

    name = "fww"

    def prefers(self, candidate: tuple[Any, int], incumbent: tuple[Any, int]) -> bool:
        return self._sort_key(candidate) < self._sort_key(incumbent)

    @staticmethod
    def _sort_key(entry: tuple[Any, int]) -> tuple:
        value, written = entry
        return (written, value_order(value))

    def __repr__(self) -> str:
        return "FirstWriterWins()"


LWW = LastWriterWins()
FWW = FirstWriterWins()

_POLICIES: dict[str, ConflictPolicy] = {LWW.name: LWW, FWW.name: FWW}


def policy_by_name(name: str) -> ConflictPolicy:
    """Look up a built-in policy by its ``name``.

    Raises:
        ValueError: If no policy has that name.
    """
    try:
        return _POLICIES[name]
    except KeyError:
        raise ValueError(f"Unknown conflict policy: {name!r}") from None


class CrdtMap(Generic[K, V]):
    """Map from keys to timestamped values, merged under a conflict policy.

    Iteration is in ascending key order regardless of insertion order.

    Args:
        policy: ``LWW`` or ``FWW`` (or any ``ConflictPolicy``).
    """

    __slots__ = ("_entries", "_policy")

    def __init__(self, policy: ConflictPolicy = LWW):
        self._policy = policy
        self._entries: dict[K, tuple[V, int]] = {}

    @property
    def policy(self) -> ConflictPolicy:
        return self._policy

    @property
    def value(self) -> dict[K, V]:
        """Plain ``{key: value}`` snapshot."""
        return {k: self._entries[k][0] for k in self.keys()}

    def insert(self, key: K, value: V, now: int) -> None:
        """Overwrite the local entry for ``key``, stamped with ``now``."""
        self._entries[key] = (value, now)

    def get(self, key: K, default: Any = None) -> V | Any:
        entry = self._entries.get(key)
        return entry[0] if entry is not None else default

    def written(self, key: K) -> int | None:
        """Write turn of ``key``, or None if absent."""
        entry = self._entries.get(key)
        return entry[1] if entry is not None else None

    def contains_key(self, key: K) -> bool:
        return key in self._entries

    def keys(self) -> list[K]:
        return sorted(self._entries, key=value_order)

    def items(self) -> list[tuple[K, V]]:
        return [(k, self._entries[k][0]) for k in self.keys()]

    def merge(self, other: CrdtMap[K, V]) -> None:
        """Merge another map into this one, key by key, under the policy.

        Raises:
            MergeError: If ``other`` uses a different conflict policy.
        """
        require_same_type(self, other)
        if other._policy.name != self._policy.name:
            raise MergeError(
                f"cannot merge {other._policy.name} map into {self._policy.name} map"
            )
        for key, entry in other._entries.items():
            current = self._entries.get(key)
            if current is None or self._policy.prefers(entry, current):
                self._entries[key] = entry

    def cleanup(self, now: int) -> None:
        """Map entries do not expire."""

    def to_dict(self) -> dict:
        """Serialize to a plain dict."""
        return {
            "type": "CrdtMap",
            "policy": self._policy.name,
            "entries": [
                [encode_value(k), encode_value(v), w]
                for k, (v, w) in ((k, self._entries[k]) for k in self.keys())
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Deserialize from a plain dict.

        Raises:
            ValueError: If the recorded policy is unknown.
        """
        m = cls(policy_by_name(data["policy"]))
        for key, value, written in data["entries"]:
            m._entries[decode_value(key)] = (decode_value(value), int(written))
        return m

    def __contains__(self, key: Any) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[K]:
        return iter(self.keys())

    def __repr__(self) -> str:
        return f"CrdtMap(policy={self._policy.name}, entries={len(self._entries)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CrdtMap):
            return NotImplemented
        return self._policy.name == other._policy.name and self._entries == other._entries
