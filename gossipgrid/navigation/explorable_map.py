"""CRDT-backed partial maps that an agent explores and navigates.

``ExplorableMap`` replicates two CRDT maps, both last-writer-wins and
stamped with the turn they were observed:

- ``tiles``: location -> passable
- ``seen_items``: location -> name of the item last seen there (or None)

Alongside them it keeps local bookkeeping that is never merged: the
frontier of unknown cells next to known-passable ones, the cell currently
being explored toward, and the cached route.

``MultiLevelMap`` keeps one such tile/item pair per level and prunes
levels that are neither current nor marked stable.
"""

from __future__ import annotations

import copy
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

from gossipgrid.core.loc import Loc, distance, neighbors
from gossipgrid.crdt.codec import decode_value, encode_value
from gossipgrid.crdt.container import CrdtContainer, Record, check_field, crdt_field
from gossipgrid.crdt.crdt_map import LWW, CrdtMap
from gossipgrid.crdt.protocol import require_same_type
from gossipgrid.navigation.navigator import move_towards

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gossipgrid.agent.world import MoveTo, WorldView
    from gossipgrid.config import NavigationConfig

logger = logging.getLogger(__name__)


def _tile_map() -> CrdtMap[Loc, bool]:
    return CrdtMap(LWW)


def _item_map() -> CrdtMap[Loc, str | None]:
    return CrdtMap(LWW)


class NavigableMap:
    """Exploration and navigation over a known-tiles / seen-items pair.

    Hosts provide ``known_tiles()`` / ``known_items()`` and the local
    attributes ``unexplored`` (insertion-ordered frontier), ``explore_target``
    and ``current_path``.
    """

    unexplored: dict[Loc, None]
    explore_target: Loc | None
    current_path: deque[Loc] | None

    def known_tiles(self) -> CrdtMap[Loc, bool]:
        raise NotImplementedError

    def known_items(self) -> CrdtMap[Loc, str | None]:
        raise NotImplementedError

    def is_passable(self, loc: Loc) -> bool | None:
        """Known passability of ``loc``, or None if never observed."""
        return self.known_tiles().get(loc)

    @property
    def frontier(self) -> list[Loc]:
        """Unknown cells adjacent to known-passable ones, oldest first."""
        return list(self.unexplored)

    def _observe(self, view: WorldView) -> None:
        tiles = self.known_tiles()
        items = self.known_items()
        now = view.turn
        for loc, tile in view.visible_tiles().items():
            self.unexplored.pop(loc, None)
            tiles.insert(loc, tile.passable, now)
            item = view.item_at(loc)
            items.insert(loc, item.name if item is not None else None, now)
            if tile.passable:
                for n in neighbors(loc):
                    if n not in tiles:
                        self.unexplored[n] = None

    def _prune_frontier(self) -> None:
        """Drop frontier cells that became known (e.g. through a merge)."""
        tiles = self.known_tiles()
        for loc in [loc for loc in self.unexplored if loc in tiles]:
            del self.unexplored[loc]

    def explore(self, view: WorldView, config: NavigationConfig | None = None) -> MoveTo | None:
        """Head for the nearest frontier cell.

        The current target is kept until it becomes visible (or otherwise
        known); then the frontier cell nearest to the agent by Euclidean
        distance is chosen, the oldest one on ties. A target with no route
        is dropped from the frontier and the next nearest one is tried.

        Returns:
            The next move, or None if there is nothing reachable to explore.
        """
        self._prune_frontier()
        if self.explore_target is not None and (
            self.explore_target in view.visible_tiles() or self.explore_target not in self.unexplored
        ):
            self.explore_target = None

        here, _ = view.actor()
        while True:
            if self.explore_target is None:
                if not self.unexplored:
                    return None
                self.explore_target = min(self.unexplored, key=lambda loc: distance(loc, here))
                logger.debug("New exploration target %s", self.explore_target)

            command = self.move_towards(view, self.explore_target, config)
            if command is not None:
                return command
            logger.debug("Exploration target %s unreachable; dropping it", self.explore_target)
            self.unexplored.pop(self.explore_target, None)
            self.explore_target = None

    def nearest(self, view: WorldView, kinds: Sequence[str]) -> Loc | None:
        """Locate the best remembered item among ``kinds``.

        ``kinds`` is in priority order: a higher-priority kind always wins
        over distance. Among equal priority the nearest (Euclidean) wins,
        then the smallest location.

        Returns:
            The chosen location, or None if no remembered item matches.
        """
        here, _ = view.actor()
        ranks = {kind: i for i, kind in reversed(list(enumerate(kinds)))}
        best: Loc | None = None
        best_key: tuple[int, float] | None = None
        for loc, name in self.known_items().items():
            if name is None or name not in ranks:
                continue
            key = (ranks[name], distance(here, loc))
            if best_key is None or key < best_key:
                best, best_key = loc, key
        return best

    def move_towards(self, view: WorldView, goal: Loc, config: NavigationConfig | None = None) -> MoveTo | None:
        """Step along the cached (or refreshed) route toward ``goal``."""
        command, self.current_path = move_towards(
            view, self.known_tiles(), goal, self.current_path, config
        )
        return command

    def move_towards_nearest(
        self,
        view: WorldView,
        kinds: Sequence[str],
        config: NavigationConfig | None = None,
    ) -> MoveTo | None:
        """Step toward the result of ``nearest``, if any."""
        goal = self.nearest(view, kinds)
        if goal is None:
            return None
        return self.move_towards(view, goal, config)


@dataclass
class ExplorableMap(NavigableMap, CrdtContainer):
    """Single-level explorable map.

    Only ``tiles`` and ``seen_items`` take part in merge and cleanup.
    """

    tiles: CrdtMap[Loc, bool] = crdt_field(default_factory=_tile_map)
    seen_items: CrdtMap[Loc, str | None] = crdt_field(default_factory=_item_map)
    unexplored: dict[Loc, None] = field(default_factory=dict)
    explore_target: Loc | None = None
    current_path: deque[Loc] | None = None

    def known_tiles(self) -> CrdtMap[Loc, bool]:
        return self.tiles

    def known_items(self) -> CrdtMap[Loc, str | None]:
        return self.seen_items

    def update(self, view: WorldView) -> None:
        """Absorb this turn's visible tiles and items."""
        self._observe(view)


@dataclass
class LevelSnapshot(CrdtContainer):
    """Tile and item knowledge for one level.

    ``stable`` marks a snapshot as final: it survives pruning after the
    agent leaves the level. Once set it stays set, including across merges.
    """

    tiles: CrdtMap[Loc, bool] = crdt_field(default_factory=_tile_map)
    seen_items: CrdtMap[Loc, str | None] = crdt_field(default_factory=_item_map)
    stable: bool = False

    def merge(self, other: Self) -> None:
        super().merge(other)
        self.stable = self.stable or other.stable

    def replica_dict(self) -> dict:
        out = super().replica_dict()
        out["fields"]["stable"] = self.stable
        return out


@dataclass
class MultiLevelMap(NavigableMap, Record):
    """Explorable map keyed by level identifier.

    Levels are merged pairwise; a level known only to the peer is copied.
    After each ``update`` every level that is neither current nor stable
    is pruned. Revisiting a pruned level starts it from scratch.
    """

    levels: dict[str, LevelSnapshot] = field(default_factory=dict)
    current_level: str | None = None
    unexplored: dict[Loc, None] = field(default_factory=dict)
    explore_target: Loc | None = None
    current_path: deque[Loc] | None = None

    def _current(self) -> LevelSnapshot:
        if self.current_level is None:
            return LevelSnapshot()
        snapshot = self.levels.get(self.current_level)
        if snapshot is None:
            snapshot = self.levels[self.current_level] = LevelSnapshot()
        return snapshot

    def known_tiles(self) -> CrdtMap[Loc, bool]:
        return self._current().tiles

    def known_items(self) -> CrdtMap[Loc, str | None]:
        return self._current().seen_items

    def mark_stable(self, level: str | None = None) -> None:
        """Mark ``level`` (default: the current one) as final."""
        name = level if level is not None else self.current_level
        if name is None:
            raise ValueError("No level given and no current level")
        self.levels.setdefault(name, LevelSnapshot()).stable = True

    def update(self, view: WorldView) -> None:
        """Switch to ``view.level`` if needed, absorb the view, prune levels."""
        level = view.level
        if level != self.current_level:
            logger.info("Level changed %s -> %s", self.current_level, level)
            self.current_level = level
            self.unexplored = {}
            self.explore_target = None
            self.current_path = None
            if level not in self.levels:
                logger.info("Starting level %s from scratch", level)
        self._current()
        self._observe(view)
        self.prune()

    def prune(self) -> None:
        """Forget every level that is neither current nor stable."""
        dropped = [n for n, s in self.levels.items() if n != self.current_level and not s.stable]
        for name in dropped:
            del self.levels[name]
        if dropped:
            logger.debug("Pruned levels %s", dropped)

    def merge(self, other: MultiLevelMap) -> None:
        """Merge every level of ``other``."""
        require_same_type(self, other)
        for name, snapshot in other.levels.items():
            if name in self.levels:
                self.levels[name].merge(snapshot)
            else:
                self.levels[name] = copy.deepcopy(snapshot)

    def cleanup(self, now: int) -> None:
        for snapshot in self.levels.values():
            snapshot.cleanup(now)

    def to_dict(self) -> dict:
        """Serialize to a plain dict."""
        return {
            "type": "MultiLevelMap",
            "levels": [[name, self.levels[name].to_dict()] for name in sorted(self.levels)],
            "current_level": self.current_level,
            "unexplored": encode_value(self.unexplored),
            "explore_target": encode_value(self.explore_target),
            "current_path": encode_value(self.current_path),
        }

    def replica_dict(self) -> dict:
        """Levels only; the frontier, target and route stay local."""
        return {
            "type": "MultiLevelMap",
            "levels": [[name, self.levels[name].replica_dict()] for name in sorted(self.levels)],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Deserialize from a plain dict."""
        m = cls()
        for name, snapshot in data["levels"]:
            m.levels[name] = LevelSnapshot.from_dict(snapshot)
        if "current_level" in data:
            m.current_level = check_field(cls, "current_level", data["current_level"])
        for name in ("unexplored", "explore_target", "current_path"):
            if name in data:
                setattr(m, name, check_field(cls, name, decode_value(data[name])))
        return m
