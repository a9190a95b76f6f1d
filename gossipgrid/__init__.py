"""gossipgrid: CRDT state sharing and navigation for turn-based grid agents.

Agents observe a partially visible grid, keep their knowledge in
expiring, bounded CRDTs, gossip those replicas with visible teammates
each turn, and navigate the merged (incomplete, possibly stale) map
with A*.

Quick start::

    from gossipgrid import AgentRuntime, AgentState, ExplorableMap, GridWorld

See ``gossipgrid.sim`` for an in-process reference world.
"""

import logging

from gossipgrid.agent import (
    AgentRuntime,
    AgentRuntimeStats,
    AgentState,
    Command,
    Creature,
    GossipRound,
    Item,
    MoveTo,
    Nothing,
    Tile,
    WorldView,
    merge_broadcasts,
)
from gossipgrid.config import GossipConfig, NavigationConfig
from gossipgrid.core import Loc, TurnClock, chebyshev, distance
from gossipgrid.crdt import (
    CRDT,
    FWW,
    LWW,
    CrdtContainer,
    CrdtMap,
    ExpiringFWWRegister,
    ExpiringSet,
    GrowOnlySet,
    MergeError,
    PayloadDecodeError,
    Record,
    SizedFWWExpiringSet,
    crdt_field,
    dumps,
    loads,
)
from gossipgrid.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)
from gossipgrid.navigation import ExplorableMap, MultiLevelMap, astar, avoidance_sets, move_towards
from gossipgrid.sim import GridWorld

logging.getLogger("gossipgrid").addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "AgentRuntime",
    "AgentRuntimeStats",
    "AgentState",
    "CRDT",
    "Command",
    "Creature",
    "CrdtContainer",
    "CrdtMap",
    "ExpiringFWWRegister",
    "ExpiringSet",
    "ExplorableMap",
    "FWW",
    "GossipConfig",
    "GossipRound",
    "GridWorld",
    "GrowOnlySet",
    "Item",
    "LWW",
    "Loc",
    "MergeError",
    "MoveTo",
    "MultiLevelMap",
    "NavigationConfig",
    "Nothing",
    "PayloadDecodeError",
    "Record",
    "SizedFWWExpiringSet",
    "Tile",
    "TurnClock",
    "WorldView",
    "astar",
    "avoidance_sets",
    "chebyshev",
    "configure_from_env",
    "crdt_field",
    "disable_logging",
    "distance",
    "dumps",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "loads",
    "merge_broadcasts",
    "move_towards",
    "set_level",
    "set_module_level",
]
