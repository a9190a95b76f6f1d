"""Navigation helpers: avoidance sets and the cached route.

An agent keeps the route it computed last turn and only re-runs A* when
the cached route can no longer be trusted:

- there is no route, or it is empty;
- its last cell is not the current goal;
- its first cell is not adjacent to the agent (last turn's move did not
  happen);
- any remaining cell has since become blocked or marked for avoidance;
- any remaining cell before the goal is now known to be impassable.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gossipgrid.agent.world import MoveTo
from gossipgrid.config import NavigationConfig
from gossipgrid.core.loc import chebyshev, square
from gossipgrid.navigation.pathfinding import astar

if TYPE_CHECKING:
    from collections import deque

    from gossipgrid.agent.world import WorldView
    from gossipgrid.core.loc import Loc
    from gossipgrid.navigation.pathfinding import LocMap

logger = logging.getLogger(__name__)


def avoidance_sets(view: WorldView, config: NavigationConfig | None = None) -> tuple[set[Loc], set[Loc]]:
    """Compute the hard-blocked and soft-avoided cells for this turn.

    Blocked: every visible creature, plus every visible item that is
    impassable or listed in ``config.blocked_item_names``.
    Avoided: every cell within ``config.creature_margin`` of a creature.
    The agent's own cell is never in either set.

    Returns:
        ``(blocked, avoid)``.
    """
    config = config or NavigationConfig()
    here, _ = view.actor()
    blocked: set[Loc] = set()
    avoid: set[Loc] = set()

    for loc in view.visible_creatures():
        blocked.add(loc)
        if config.creature_margin > 0:
            avoid.update(square(loc, config.creature_margin))

    for loc, item in view.visible_items().items():
        if not item.is_passable or item.name in config.blocked_item_names:
            blocked.add(loc)

    blocked.discard(here)
    avoid.discard(here)
    return blocked, avoid


def update_path(
    path: deque[Loc] | None,
    start: Loc,
    goal: Loc,
    tiles: LocMap,
    blocked: set[Loc],
    avoid: set[Loc],
    config: NavigationConfig | None = None,
) -> deque[Loc] | None:
    """Return the route to follow, recomputing it if the cache is stale.

    Args:
        path: The cached route (next step first), or None.
        start: The agent's location.
        goal: The current goal.
        tiles: Known passability.
        blocked: Hard-blocked cells.
        avoid: Soft-avoided cells.
        config: Search settings.

    Returns:
        The cached route if still valid, otherwise a fresh A* result
        (None when no route exists).
    """
    config = config or NavigationConfig()
    if path:
        if path[-1] != goal:
            logger.debug("Route ends at %s, goal is now %s; replanning", path[-1], goal)
            path = None
        elif chebyshev(path[0], start) != 1:
            logger.debug("Route starts at %s, not adjacent to %s; replanning", path[0], start)
            path = None
        elif any(loc in blocked or loc in avoid for loc in path):
            logger.debug("Route to %s crosses a blocked or avoided cell; replanning", goal)
            path = None
        elif any(tiles.get(loc) is False and loc != goal for loc in path):
            logger.debug("Route to %s crosses a cell now known impassable; replanning", goal)
            path = None

    if path:
        return path
    return astar(
        start,
        goal,
        tiles,
        blocked,
        avoid,
        avoid_penalty=config.avoid_penalty,
        max_expansions=config.max_expansions,
    )


def move_towards(
    view: WorldView,
    tiles: LocMap,
    goal: Loc,
    path: deque[Loc] | None,
    config: NavigationConfig | None = None,
) -> tuple[MoveTo | None, deque[Loc] | None]:
    """Take the next step of the (possibly refreshed) route toward ``goal``.

    Returns:
        ``(command, remaining_route)``. The command is None when there is
        no route; the agent does not move this turn.
    """
    start, _ = view.actor()
    blocked, avoid = avoidance_sets(view, config)
    path = update_path(path, start, goal, tiles, blocked, avoid, config)
    if path:
        step = path.popleft()
        return MoveTo(step), path
    logger.debug("No path from %s to %s", start, goal)
    return None, path
