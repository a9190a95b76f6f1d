"""Plotting helpers (matplotlib) for agent maps."""

from gossipgrid.visual.render import knowledge_grid, render_map

__all__ = ["knowledge_grid", "render_map"]
