"""Raster views of what an agent knows.

``knowledge_grid`` turns a map's known tiles into a numpy array; ``render_map``
draws it with matplotlib together with the frontier, a route and the agent.
matplotlib is imported lazily so headless code paths never pay for it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Iterable

    from matplotlib.axes import Axes

    from gossipgrid.core.loc import Loc
    from gossipgrid.navigation.explorable_map import NavigableMap

UNKNOWN = np.nan
PASSABLE = 1.0
BLOCKED = 0.0


def _bounds(cells: Iterable[Loc]) -> tuple[int, int, int, int] | None:
    xs: list[int] = []
    ys: list[int] = []
    for loc in cells:
        xs.append(loc.x)
        ys.append(loc.y)
    if not xs:
        return None
    return min(xs), min(ys), max(xs), max(ys)


def knowledge_grid(nav_map: NavigableMap) -> tuple[np.ndarray, tuple[int, int]]:
    """Rasterize the map's known tiles.

    Returns:
        ``(grid, origin)``: ``grid[row, col]`` is 1.0 for passable, 0.0 for
        blocked and NaN for unknown; row ``r`` / column ``c`` correspond to
        ``Loc(origin[0] + c, origin[1] + r)``. An empty map gives a 0x0 grid.
    """
    tiles = nav_map.known_tiles()
    bounds = _bounds(tiles.keys())
    if bounds is None:
        return np.empty((0, 0)), (0, 0)
    min_x, min_y, max_x, max_y = bounds
    grid = np.full((max_y - min_y + 1, max_x - min_x + 1), UNKNOWN)
    for loc, passable in tiles.items():
        grid[loc.y - min_y, loc.x - min_x] = PASSABLE if passable else BLOCKED
    return grid, (min_x, min_y)


def render_map(
    nav_map: NavigableMap,
    *,
    ax: Axes | None = None,
    path: Iterable[Loc] | None = None,
    agent: Loc | None = None,
) -> Axes:
    """Draw known tiles, frontier, route and agent position.

    Args:
        nav_map: Any map exposing ``known_tiles()`` and ``frontier``.
        ax: Axes to draw into; a new figure is created when omitted.
        path: Route to overlay, defaults to the map's cached route.
        agent: Agent location to mark.

    Returns:
        The Axes drawn into.
    """
    import matplotlib
    import matplotlib.pyplot as plt

    if ax is None:
        _, ax = plt.subplots(figsize=(6, 6))

    grid, (ox, oy) = knowledge_grid(nav_map)
    if grid.size:
        cmap = matplotlib.colormaps["Greys_r"].copy()
        cmap.set_bad(color="#d9e3f0")
        extent = (ox - 0.5, ox + grid.shape[1] - 0.5, oy + grid.shape[0] - 0.5, oy - 0.5)
        ax.imshow(np.ma.masked_invalid(grid), cmap=cmap, vmin=0.0, vmax=1.0, extent=extent)

    frontier = nav_map.frontier
    if frontier:
        ax.scatter([c.x for c in frontier], [c.y for c in frontier], s=12, c="tab:orange", label="frontier")

    route = list(path) if path is not None else list(nav_map.current_path or ())
    if route:
        xs = [c.x for c in route]
        ys = [c.y for c in route]
        if agent is not None:
            xs.insert(0, agent.x)
            ys.insert(0, agent.y)
        ax.plot(xs, ys, color="tab:blue", linewidth=2, label="path")

    if agent is not None:
        ax.scatter([agent.x], [agent.y], s=80, c="tab:red", marker="*", label="agent", zorder=3)

    ax.set_aspect("equal")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    if ax.get_legend_handles_labels()[0]:
        ax.legend(loc="upper right", fontsize="small")
    return ax
