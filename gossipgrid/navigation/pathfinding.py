"""Grid A* over an incomplete, CRDT-backed map.

The search runs backward from the goal to the agent, so following the
``came_from`` links from the agent's cell yields the route already
ordered from next step to goal.

- 8-directional moves, unit step cost.
- A cell is enterable unless the map knows it is impassable or it is
  hard-blocked. Unknown cells count as passable so routes may lead into
  unexplored space.
- Soft-avoided cells stay enterable but cost ``1 + avoid_penalty``, so the
  search routes around threats when it can and through them when it must.
- Heuristic: Chebyshev distance to the agent, which is admissible and
  consistent for unit-cost king moves. Heap entries carry the Euclidean
  distance as a secondary key so straight routes win ties.
"""

from __future__ import annotations

import heapq
import logging
import math
from collections import deque
from typing import TYPE_CHECKING, Any, Protocol

from gossipgrid.core.loc import Loc, chebyshev, distance, neighbors

if TYPE_CHECKING:
    from collections.abc import Container

logger = logging.getLogger(__name__)


class LocMap(Protocol):
    """Known passability by location (``CrdtMap[Loc, bool]``, ``dict``...)."""

    def get(self, key: Loc, default: Any = None) -> Any:
        ...


def astar(
    start: Loc,
    goal: Loc,
    tiles: LocMap,
    blocked: Container[Loc] = frozenset(),
    avoid: Container[Loc] = frozenset(),
    *,
    avoid_penalty: float = 10.0,
    max_expansions: int | None = None,
) -> deque[Loc] | None:
    """Find a route from ``start`` to ``goal``.

    Args:
        start: The agent's current location.
        goal: Destination.
        tiles: Known passability; missing cells are treated as passable.
        blocked: Cells that may never be entered.
        avoid: Cells that may be entered at extra cost.
        avoid_penalty: Extra cost of entering an avoided cell.
        max_expansions: Give up after expanding this many nodes.

    Returns:
        The route from the step after ``start`` up to and including
        ``goal`` (empty when ``start == goal``), or None if no route was
        found.
    """
    open_heap: list[tuple[float, float, Loc]] = [
        (float(chebyshev(start, goal)), distance(start, goal), goal)
    ]
    g_scores: dict[Loc, float] = {goal: 0.0}
    came_from: dict[Loc, Loc] = {}
    closed: set[Loc] = set()

    while open_heap:
        _, _, loc = heapq.heappop(open_heap)
        if loc in closed:
            continue
        if loc == start:
            path: deque[Loc] = deque()
            current = loc
            while current in came_from:
                current = came_from[current]
                path.append(current)
            return path

        closed.add(loc)
        if max_expansions is not None and len(closed) > max_expansions:
            logger.debug("A* gave up after %d expansions (%s -> %s)", max_expansions, start, goal)
            return None

        base_score = g_scores[loc] + 1.0
        for n in neighbors(loc):
            if n in closed:
                continue
            if n != start and (tiles.get(n) is False or n in blocked):
                continue
            score = base_score + avoid_penalty if n in avoid else base_score
            if score < g_scores.get(n, math.inf):
                g_scores[n] = score
                came_from[n] = loc
                heapq.heappush(open_heap, (score + chebyshev(start, n), distance(start, n), n))

    return None
