"""A minimal decision layer for the reference world.

``ExplorerState`` explores the frontier (or walks toward remembered items
it is told to seek) and shares a ``ScoutReport`` with its teammates: the
explored map plus a bounded, expiring list of hostile sightings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gossipgrid.agent.runtime import AgentState
from gossipgrid.core.loc import Loc
from gossipgrid.crdt.container import CrdtContainer, crdt_field
from gossipgrid.crdt.sized_set import SizedFWWExpiringSet
from gossipgrid.navigation.explorable_map import ExplorableMap

if TYPE_CHECKING:
    from gossipgrid.agent.world import Command, WorldView

HOSTILE_CAPACITY = 8
HOSTILE_TTL = 5


def _hostile_set() -> SizedFWWExpiringSet[Loc]:
    return SizedFWWExpiringSet(HOSTILE_CAPACITY)


@dataclass
class ScoutReport(CrdtContainer):
    """What explorers tell each other."""

    world: ExplorableMap = crdt_field(default_factory=ExplorableMap)
    hostiles: SizedFWWExpiringSet[Loc] = crdt_field(default_factory=_hostile_set)


@dataclass
class ExplorerState(AgentState):
    """Explore, note hostiles, and optionally head for remembered items.

    Attributes:
        report: The shared broadcast; its map doubles as this agent's map.
        seek: Item names to walk toward, highest priority first.
    """

    report: ScoutReport = field(default_factory=ScoutReport)
    seek: tuple[str, ...] = ()

    def map(self) -> ExplorableMap:
        return self.report.world

    def broadcast(self) -> ScoutReport:
        return self.report

    def run(self, view: WorldView) -> Command | None:
        _, me = view.actor()
        for loc, creature in view.visible_creatures().items():
            if creature.faction != me.faction:
                self.report.hostiles.insert(loc, view.turn, view.turn + HOSTILE_TTL)

        if self.seek:
            command = self.report.world.move_towards_nearest(view, self.seek)
            if command is not None:
                return command
        return self.report.world.explore(view)
