"""Agent-side integration: world interface, gossip and the per-turn runtime."""

from gossipgrid.agent.gossip import GossipRound, merge_broadcasts
from gossipgrid.agent.runtime import AgentRuntime, AgentRuntimeStats, AgentState, MapSubstrate
from gossipgrid.agent.world import Command, Creature, Item, MoveTo, Nothing, Tile, WorldView

__all__ = [
    "AgentRuntime",
    "AgentRuntimeStats",
    "AgentState",
    "Command",
    "Creature",
    "GossipRound",
    "Item",
    "MapSubstrate",
    "MoveTo",
    "Nothing",
    "Tile",
    "WorldView",
    "merge_broadcasts",
]
