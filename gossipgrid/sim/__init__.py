"""Reference world and demo agents for simulations and tests."""

from gossipgrid.sim.agents import ExplorerState, ScoutReport
from gossipgrid.sim.world import AgentSlot, AgentView, GridWorld

__all__ = [
    "AgentSlot",
    "AgentView",
    "ExplorerState",
    "GridWorld",
    "ScoutReport",
]
