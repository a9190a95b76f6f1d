"""The collaborator surface between an agent and the world it lives in.

The core never talks to a game engine directly. Each turn it is handed a
``WorldView`` exposing what the agent can currently see, its persisted
memory, and a slot for its broadcast payload. It answers with a
``Command``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from gossipgrid.core.loc import Loc


@dataclass(frozen=True)
class Tile:
    """A visible map cell."""

    passable: bool


@dataclass(frozen=True)
class Creature:
    """A visible creature (or the acting agent itself).

    Attributes:
        faction: Team identifier; gossip only flows within a faction.
        broadcast: The payload this creature published last turn, if any.
        name: Display name.
    """

    faction: str
    broadcast: bytes | None = None
    name: str = ""


@dataclass(frozen=True)
class Item:
    """A visible item lying on a tile."""

    name: str
    is_passable: bool = True
    is_furniture: bool = False


@dataclass(frozen=True)
class Command:
    """Base class for the single action an agent issues per turn."""


@dataclass(frozen=True)
class Nothing(Command):
    """Do nothing this turn."""


@dataclass(frozen=True)
class MoveTo(Command):
    """Step onto an adjacent tile."""

    target: Loc


@runtime_checkable
class WorldView(Protocol):
    """Per-turn observation feed and I/O slots supplied by the world."""

    @property
    def turn(self) -> int:
        """Current turn counter."""
        ...

    @property
    def level(self) -> str:
        """Identifier of the level/area the agent is on."""
        ...

    def actor(self) -> tuple[Loc, Creature]:
        """The acting agent's own location and creature record."""
        ...

    def visible_tiles(self) -> dict[Loc, Tile]:
        ...

    def visible_creatures(self) -> dict[Loc, Creature]:
        """Visible creatures, excluding the actor."""
        ...

    def visible_items(self) -> dict[Loc, Item]:
        ...

    def item_at(self, loc: Loc) -> Item | None:
        ...

    def load_store(self) -> bytes:
        """Memory persisted at the end of the previous turn (empty if none)."""
        ...

    def save_store(self, data: bytes) -> None:
        ...

    def broadcast(self, data: bytes | None) -> None:
        """Publish (or withdraw) this agent's broadcast payload."""
        ...
