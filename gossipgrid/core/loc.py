"""Grid locations and the distance helpers used across the library.

``Loc`` is the key type for every spatial CRDT. It is an immutable,
hashable ``(x, y)`` pair ordered lexicographically, so maps keyed by
location iterate deterministically on every replica.
"""

from __future__ import annotations

import math
from typing import NamedTuple


class Loc(NamedTuple):
    """Absolute grid coordinates (signed integers)."""

    x: int
    y: int

    def offset(self, dx: int, dy: int) -> Loc:
        """Return the location displaced by ``(dx, dy)``."""
        return Loc(self.x + dx, self.y + dy)

    def __repr__(self) -> str:
        return f"Loc({self.x}, {self.y})"


def distance(a: Loc, b: Loc) -> float:
    """Euclidean distance between two locations."""
    return math.hypot(a.x - b.x, a.y - b.y)


def chebyshev(a: Loc, b: Loc) -> int:
    """King-move distance: the fewest 8-directional unit steps from a to b."""
    return max(abs(a.x - b.x), abs(a.y - b.y))


def neighbors(loc: Loc) -> list[Loc]:
    """The 8 cells surrounding ``loc``, in a fixed order."""
    return [
        Loc(loc.x + dx, loc.y + dy)
        for dx in (-1, 0, 1)
        for dy in (-1, 0, 1)
        if dx or dy
    ]


def square(loc: Loc, radius: int) -> list[Loc]:
    """All cells within Chebyshev ``radius`` of ``loc`` (centre included)."""
    return [
        Loc(loc.x + dx, loc.y + dy)
        for dx in range(-radius, radius + 1)
        for dy in range(-radius, radius + 1)
    ]
