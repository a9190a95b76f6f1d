"""Core value types: locations and the turn clock."""

from gossipgrid.core.clock import MAX_TIMESTAMP, MIN_TIMESTAMP, Timestamp, TurnClock
from gossipgrid.core.loc import Loc, chebyshev, distance, neighbors, square

__all__ = [
    "Loc",
    "MAX_TIMESTAMP",
    "MIN_TIMESTAMP",
    "Timestamp",
    "TurnClock",
    "chebyshev",
    "distance",
    "neighbors",
    "square",
]
