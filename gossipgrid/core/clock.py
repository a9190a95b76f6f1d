"""Turn-based time model.

Every expiry and tie-break in the library is a pure function of stored
timestamps plus one externally supplied integer: the current turn. Turns
are monotone for a single agent but are never assumed to agree across
agents; smaller only means "written earlier" by convention.

Usage::

    clock = TurnClock()
    now = clock.observe(world.turn)   # never goes backwards
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

Timestamp = int
"""A signed 64-bit turn counter."""

MAX_TIMESTAMP: Timestamp = 2**63 - 1
"""Sentinel "written at +infinity": loses every first-writer comparison."""

MIN_TIMESTAMP: Timestamp = -(2**63)
"""Sentinel "expires at -infinity": already expired for any ``now``."""


class TurnClock:
    """Monotonically non-decreasing view of the supplied turn counter.

    The world hands the agent a turn number once per turn. ``observe``
    records it and returns the value to use as ``now``. A value lower than
    one already observed is clamped, so local expiry never runs backwards.

    Args:
        initial: Starting value (default ``MIN_TIMESTAMP``, i.e. unset).
    """

    __slots__ = ("_now",)

    def __init__(self, initial: Timestamp = MIN_TIMESTAMP):
        self._now = initial

    @property
    def now(self) -> Timestamp:
        """The latest observed turn."""
        return self._now

    def observe(self, turn: Timestamp) -> Timestamp:
        """Record the externally supplied turn and return ``now``.

        Args:
            turn: Turn counter reported by the world.

        Returns:
            ``max(previous now, turn)``.
        """
        if turn < self._now:
            logger.warning("Turn counter regressed from %d to %d; keeping %d", self._now, turn, self._now)
            return self._now
        self._now = turn
        return self._now

    def __repr__(self) -> str:
        return f"TurnClock(now={self._now})"
