"""Protocol definition for the expiring CRDT family.

Every replicated type in this package satisfies the same contract:

- **Commutativity**: ``merge(a, b) == merge(b, a)``
- **Associativity**: ``merge(a, merge(b, c)) == merge(merge(a, b), c)``
- **Idempotency**: ``merge(a, a) == a``

Conflicts are resolved only from data embedded in the replica itself
(write turn, expiry turn, value ordering), never from arrival order. That
is what lets agents gossip in any order, with duplicates and partial
connectivity, and still converge.

In addition to ``merge``, each type has a purely local ``cleanup(now)``
that drops or expires entries relative to the current turn.
"""

from __future__ import annotations

from typing import Any, Protocol, Self, runtime_checkable


class MergeError(Exception):
    """A replica could not be merged because it is structurally incompatible.

    Primitives never raise this for well-formed input of their own type.
    Composite containers re-raise a nested failure with the field path.
    """


@runtime_checkable
class CRDT(Protocol):
    """Protocol for all CRDT types.

    All CRDTs must support:
    - ``merge(other)``: Merge another replica's state (in-place).
    - ``cleanup(now)``: Expire entries relative to the current turn.
    - ``to_dict()`` / ``from_dict()``: Serialization for gossip.
    """

    def merge(self, other: Self) -> None:
        """Merge another replica's state into this one (in-place).

        Must be commutative, associative, and idempotent.

        Args:
            other: Another instance of the same CRDT type.

        Raises:
            MergeError: If ``other`` cannot be merged into this replica.
        """
        ...

    def cleanup(self, now: int) -> None:
        """Drop or expire entries relative to ``now``.

        Args:
            now: The current turn.
        """
        ...

    def to_dict(self) -> dict:
        """Serialize this CRDT's state to a plain dict for gossip."""
        ...

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Deserialize a CRDT from a plain dict.

        Args:
            data: Dict produced by ``to_dict()``.
        """
        ...


def value_order(value: Any) -> tuple:
    """Total-order sort key for payload values, with ``None`` first.

    Used only for deterministic tie-breaks between equal timestamps,
    never as a notion of recency.
    """
    if value is None:
        return (0, None)
    return (1, value)


def require_same_type(receiver: object, other: object) -> None:
    """Raise ``MergeError`` unless ``other`` is the receiver's exact type."""
    if type(other) is not type(receiver):
        raise MergeError(
            f"cannot merge {type(other).__name__} into {type(receiver).__name__}"
        )
