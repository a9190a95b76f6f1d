"""In-process reference world for exercising agents end to end.

``GridWorld`` stands in for a game engine: it exposes visible tiles,
creatures and items (cells beyond the edge read as impassable rock),
keeps each agent's persisted memory and broadcast payload as opaque
bytes, and applies ``MoveTo`` commands. Agents run sequentially within a
turn, but each only sees the broadcasts its peers published on the
previous turn, so the order agents run in does not leak information.

Example::

    world = GridWorld(12, 8, walls=[Loc(5, y) for y in range(6)], visibility=2)
    world.add_agent("scout-a", Loc(0, 0), faction="blue", runtime=AgentRuntime(ExplorerState))
    world.add_agent("scout-b", Loc(11, 7), faction="blue", runtime=AgentRuntime(ExplorerState))
    world.run(40)
    df = world.history()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import pandas as pd

from gossipgrid.agent.world import Creature, MoveTo, Nothing, Tile
from gossipgrid.core.loc import Loc, chebyshev, square
from gossipgrid.crdt.codec import PayloadDecodeError, dumps, loads
from gossipgrid.navigation.explorable_map import NavigableMap

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from gossipgrid.agent.runtime import AgentRuntime, AgentState
    from gossipgrid.agent.world import Command, Item

logger = logging.getLogger(__name__)

HISTORY_COLUMNS = [
    "turn",
    "agent",
    "x",
    "y",
    "known_tiles",
    "frontier",
    "broadcast_bytes",
    "command",
]


@dataclass
class AgentSlot:
    """World-side record of one agent."""

    name: str
    loc: Loc
    faction: str
    runtime: AgentRuntime
    store: bytes = b""
    published: bytes | None = None


class AgentView:
    """What one agent sees during one turn (implements ``WorldView``)."""

    def __init__(self, world: GridWorld, slot: AgentSlot, published: Mapping[str, bytes | None]):
        self._world = world
        self._slot = slot
        self._published = published
        self._visible = frozenset(square(slot.loc, world.visibility))

    @property
    def turn(self) -> int:
        return self._world.turn

    @property
    def level(self) -> str:
        return self._world.level

    def actor(self) -> tuple[Loc, Creature]:
        slot = self._slot
        return slot.loc, Creature(slot.faction, self._published.get(slot.name), slot.name)

    def visible_tiles(self) -> dict[Loc, Tile]:
        return {loc: Tile(passable=self._world.is_open(loc)) for loc in sorted(self._visible)}

    def visible_creatures(self) -> dict[Loc, Creature]:
        return {
            other.loc: Creature(other.faction, self._published.get(other.name), other.name)
            for other in self._world.slots()
            if other is not self._slot and other.loc in self._visible
        }

    def visible_items(self) -> dict[Loc, Item]:
        return {loc: item for loc, item in self._world.items.items() if loc in self._visible}

    def item_at(self, loc: Loc) -> Item | None:
        if loc not in self._visible:
            return None
        return self._world.items.get(loc)

    def load_store(self) -> bytes:
        return self._slot.store

    def save_store(self, data: bytes) -> None:
        self._slot.store = data

    def broadcast(self, data: bytes | None) -> None:
        self._slot.published = data


class GridWorld:
    """Bounded grid with walls, items and turn-synchronous agents.

    Args:
        width: Number of columns (x in ``0..width-1``).
        height: Number of rows (y in ``0..height-1``).
        walls: Impassable cells.
        items: Items by location.
        visibility: Chebyshev radius each agent can see.
        level: Level identifier reported to agents.
    """

    def __init__(
        self,
        width: int,
        height: int,
        walls: Iterable[Loc] = (),
        items: Mapping[Loc, Item] | None = None,
        *,
        visibility: int = 3,
        level: str = "surface",
    ):
        if width < 1 or height < 1:
            raise ValueError(f"Grid must be at least 1x1, got {width}x{height}")
        if visibility < 0:
            raise ValueError(f"visibility must be >= 0, got {visibility}")
        self.width = width
        self.height = height
        self.walls = frozenset(walls)
        self.items: dict[Loc, Item] = dict(items or {})
        self.visibility = visibility
        self.level = level
        self.turn = 0
        self._agents: dict[str, AgentSlot] = {}
        self._rows: list[dict[str, Any]] = []

    def in_bounds(self, loc: Loc) -> bool:
        return 0 <= loc.x < self.width and 0 <= loc.y < self.height

    def is_open(self, loc: Loc) -> bool:
        """True for in-bounds cells that are not walls; the grid is ringed by rock."""
        return self.in_bounds(loc) and loc not in self.walls

    def slots(self) -> list[AgentSlot]:
        return list(self._agents.values())

    def add_agent(
        self,
        name: str,
        loc: Loc,
        faction: str,
        runtime: AgentRuntime,
        memory: AgentState | None = None,
    ) -> AgentSlot:
        """Place an agent.

        Args:
            name: Unique agent name.
            loc: Spawn location.
            faction: Team; gossip only flows within a faction.
            runtime: The agent's runtime.
            memory: Optional initial memory (persisted before the first turn).

        Raises:
            ValueError: If the name is taken or the spawn cell is unusable.
        """
        if name in self._agents:
            raise ValueError(f"Agent {name!r} already exists")
        if not self._enterable(loc):
            raise ValueError(f"Cannot spawn {name!r} at {loc}")
        slot = AgentSlot(name=name, loc=loc, faction=faction, runtime=runtime)
        if memory is not None:
            slot.store = dumps(memory)
        self._agents[name] = slot
        return slot

    def _enterable(self, loc: Loc) -> bool:
        if not self.is_open(loc):
            return False
        item = self.items.get(loc)
        if item is not None and not item.is_passable:
            return False
        return all(slot.loc != loc for slot in self._agents.values())

    def step(self) -> dict[str, Command]:
        """Run one turn for every agent and return their commands."""
        published = {slot.name: slot.published for slot in self._agents.values()}
        commands: dict[str, Command] = {}
        for slot in self._agents.values():
            command = slot.runtime.step(AgentView(self, slot, published))
            self._apply(slot, command)
            commands[slot.name] = command
            self._record(slot, command)
        self.turn += 1
        return commands

    def run(self, turns: int) -> None:
        for _ in range(turns):
            self.step()

    def _apply(self, slot: AgentSlot, command: Command) -> None:
        if not isinstance(command, MoveTo):
            return
        target = command.target
        if chebyshev(slot.loc, target) != 1 or not self._enterable(target):
            logger.debug("[%s] Move %s -> %s rejected", slot.name, slot.loc, target)
            return
        slot.loc = target

    def agent_state(self, name: str) -> AgentState | None:
        """Decode an agent's persisted memory (None if absent or unreadable)."""
        slot = self._agents[name]
        if not slot.store:
            return None
        try:
            return loads(slot.store, slot.runtime.state_cls)
        except PayloadDecodeError:
            return None

    def _record(self, slot: AgentSlot, command: Command) -> None:
        state = self.agent_state(slot.name)
        substrate = state.map() if state is not None else None
        known = frontier = 0
        if isinstance(substrate, NavigableMap):
            known = len(substrate.known_tiles())
            frontier = len(substrate.unexplored)
        self._rows.append(
            {
                "turn": self.turn,
                "agent": slot.name,
                "x": slot.loc.x,
                "y": slot.loc.y,
                "known_tiles": known,
                "frontier": frontier,
                "broadcast_bytes": len(slot.published or b""),
                "command": "wait" if isinstance(command, Nothing) else repr(command),
            }
        )

    def history(self) -> pd.DataFrame:
        """One row per agent per turn, in execution order."""
        return pd.DataFrame(self._rows, columns=HISTORY_COLUMNS)
