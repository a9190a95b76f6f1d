"""Expiring First-Writer-Wins Register CRDT.

A register holding at most one ``(value, written, expires)`` triple. On
merge the earliest write survives; equal write turns fall back to the
value ordering, so every replica picks the same winner without any
coordination. Once ``now >= expires`` the register resets to empty.

An empty register is ``written = MAX_TIMESTAMP, expires = MIN_TIMESTAMP``:
it never wins against a real write and is never mistaken for a live one.

Example::

    r = ExpiringFWWRegister()
    r.set("north-gate", now=0, expires=3)
    r.cleanup(2)
    assert r.get() == "north-gate"
    r.cleanup(3)
    assert r.get() is None
"""

from __future__ import annotations

from typing import Any, Generic, Self, TypeVar

from gossipgrid.core.clock import MAX_TIMESTAMP, MIN_TIMESTAMP
from gossipgrid.crdt.codec import decode_value, encode_value
from gossipgrid.crdt.protocol import require_same_type, value_order

T = TypeVar("T")


class ExpiringFWWRegister(Generic[T]):
    """First-writer-wins register with a time-to-live.

    Args:
        value: Initial value (default None = empty).
        written: Turn the value was written.
        expires: Turn at which the value is dropped.
    """

    __slots__ = ("_expires", "_value", "_written")

    def __init__(
        self,
        value: T | None = None,
        written: int = MAX_TIMESTAMP,
        expires: int = MIN_TIMESTAMP,
    ):
        self._value = value
        self._written = written if value is not None else MAX_TIMESTAMP
        self._expires = expires if value is not None else MIN_TIMESTAMP

    @property
    def value(self) -> T | None:
        """Current value, or None when empty."""
        return self._value

    @property
    def written(self) -> int:
        """Turn the current value was written."""
        return self._written

    @property
    def expires(self) -> int:
        """Turn at which the current value expires."""
        return self._expires

    @property
    def is_empty(self) -> bool:
        return self._value is None

    def get(self) -> T | None:
        """Return the current value (alias for ``value`` property)."""
        return self._value

    def set(self, value: T, now: int, expires: int) -> None:
        """Overwrite the local replica.

        Args:
            value: The new value.
            now: Current turn, recorded as the write turn.
            expires: Turn at which the value should be dropped.
        """
        self._value = value
        self._written = now
        self._expires = expires

    def update_expiry(self, expires: int) -> None:
        """Change the expiry of the current value, keeping its write turn."""
        self._expires = expires

    def _reset(self) -> None:
        self._value = None
        self._written = MAX_TIMESTAMP
        self._expires = MIN_TIMESTAMP

    def _order_key(self) -> tuple:
        return (self._written, value_order(self._value))

    def merge(self, other: ExpiringFWWRegister[T]) -> None:
        """Merge another register into this one (earliest write wins).

        An empty ``other`` is a no-op. When both hold the same write of the
        same value, the later expiry survives.

        Args:
            other: Another ExpiringFWWRegister to merge from.
        """
        require_same_type(self, other)
        if other._value is None:
            return
        if self._value is None or other._order_key() < self._order_key():
            self._value = other._value
            self._written = other._written
            self._expires = other._expires
        elif other._order_key() == self._order_key() and other._expires > self._expires:
            self._expires = other._expires

    def cleanup(self, now: int) -> None:
        """Reset to empty once ``now >= expires``."""
        if self._value is not None and now >= self._expires:
            self._reset()

    def to_dict(self) -> dict:
        """Serialize to a plain dict."""
        return {
            "type": "ExpiringFWWRegister",
            "value": encode_value(self._value),
            "written": self._written,
            "expires": self._expires,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Deserialize from a plain dict.

        Args:
            data: Dict produced by ``to_dict()``.
        """
        return cls(
            value=decode_value(data["value"]),
            written=int(data["written"]),
            expires=int(data["expires"]),
        )

    def __repr__(self) -> str:
        return (
            f"ExpiringFWWRegister(value={self._value!r}, "
            f"written={self._written}, expires={self._expires})"
        )

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ExpiringFWWRegister):
            return NotImplemented
        return (
            self._value == other._value
            and self._written == other._written
            and self._expires == other._expires
        )
