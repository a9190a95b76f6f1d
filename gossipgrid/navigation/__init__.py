"""Map substrate, A* pathfinding and route maintenance."""

from gossipgrid.navigation.explorable_map import ExplorableMap, LevelSnapshot, MultiLevelMap, NavigableMap
from gossipgrid.navigation.navigator import avoidance_sets, move_towards, update_path
from gossipgrid.navigation.pathfinding import LocMap, astar

__all__ = [
    "ExplorableMap",
    "LevelSnapshot",
    "LocMap",
    "MultiLevelMap",
    "NavigableMap",
    "astar",
    "avoidance_sets",
    "move_towards",
    "update_path",
]
