"""One agent, one turn, start to finish.

``AgentRuntime.step`` is the whole per-turn control flow:

1. Decode persisted memory (fall back to a fresh state on any failure).
2. Refresh the map substrate from the visible tiles.
3. Merge teammates' broadcasts into the local broadcast CRDT, then clean it.
4. Let the decision layer (``AgentState.run``) pick a command.
5. Publish the broadcast CRDT and persist the full memory.

There is no suspension, blocking or concurrency inside a turn. Agents
share nothing in-process; they only exchange serialized payloads.

Example::

    @dataclass
    class Scout(AgentState):
        world_map: ExplorableMap = field(default_factory=ExplorableMap)

        def map(self):
            return self.world_map

        def broadcast(self):
            return self.world_map

        def run(self, view):
            return self.world_map.explore(view)

    runtime = AgentRuntime(Scout, name="scout-1")
    command = runtime.step(view)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar

from gossipgrid.agent.gossip import merge_broadcasts
from gossipgrid.agent.world import Command, Nothing
from gossipgrid.config import GossipConfig
from gossipgrid.core.clock import TurnClock
from gossipgrid.crdt.codec import PayloadDecodeError, dumps, loads
from gossipgrid.crdt.container import Record

if TYPE_CHECKING:
    from gossipgrid.agent.world import WorldView
    from gossipgrid.crdt.protocol import CRDT

logger = logging.getLogger(__name__)


class MapSubstrate(Protocol):
    """Anything that can absorb the current observation."""

    def update(self, view: WorldView) -> None:
        ...


class AgentState(Record):
    """Persisted memory plus the hooks of the decision layer.

    Subclasses are dataclasses whose fields all have defaults. Override
    the hooks that apply; the defaults opt out of each step.
    """

    def run(self, view: WorldView) -> Command | None:
        """Pick this turn's command."""
        return None

    def broadcast(self) -> CRDT | None:
        """The CRDT shared with teammates, if any."""
        return None

    def map(self) -> MapSubstrate | None:
        """The map substrate refreshed at the start of each turn, if any."""
        return None


S = TypeVar("S", bound=AgentState)


@dataclass(frozen=True)
class AgentRuntimeStats:
    """Statistics for an AgentRuntime.

    Attributes:
        turns: Turns processed.
        memory_resets: Turns that started from a fresh state because the
            persisted memory could not be decoded.
        peers_merged: Teammate broadcasts merged.
        payloads_rejected: Teammate broadcasts that failed to decode.
        merge_aborts: Turns whose broadcast merge stopped on a failure.
    """

    turns: int = 0
    memory_resets: int = 0
    peers_merged: int = 0
    payloads_rejected: int = 0
    merge_aborts: int = 0


class AgentRuntime(Generic[S]):
    """Drives an ``AgentState`` subclass through turns.

    Args:
        state_cls: The agent's memory type.
        name: Identifier for logging.
        gossip: Gossip settings (defaults to enabled).
    """

    def __init__(self, state_cls: type[S], *, name: str = "agent", gossip: GossipConfig | None = None):
        self.name = name
        self._state_cls = state_cls
        self._gossip = gossip or GossipConfig()
        self._clock = TurnClock()
        self._turns = 0
        self._memory_resets = 0
        self._peers_merged = 0
        self._payloads_rejected = 0
        self._merge_aborts = 0

    @property
    def stats(self) -> AgentRuntimeStats:
        """Return a frozen snapshot of runtime statistics."""
        return AgentRuntimeStats(
            turns=self._turns,
            memory_resets=self._memory_resets,
            peers_merged=self._peers_merged,
            payloads_rejected=self._payloads_rejected,
            merge_aborts=self._merge_aborts,
        )

    @property
    def clock(self) -> TurnClock:
        return self._clock

    @property
    def state_cls(self) -> type[S]:
        return self._state_cls

    def load(self, data: bytes) -> S:
        """Decode persisted memory, or return a fresh state if that fails."""
        if not data:
            return self._state_cls()
        try:
            return loads(data, self._state_cls)
        except PayloadDecodeError as e:
            self._memory_resets += 1
            logger.warning("[%s] Reinitialized memory: %s", self.name, e)
            return self._state_cls()

    def step(self, view: WorldView) -> Command:
        """Run one full turn against ``view`` and return the command."""
        self._turns += 1
        now = self._clock.observe(view.turn)
        state = self.load(view.load_store())

        substrate = state.map()
        if substrate is not None:
            substrate.update(view)

        shared = state.broadcast()
        if shared is not None:
            _, me = view.actor()
            summary = merge_broadcasts(
                shared,
                me.faction,
                view.visible_creatures(),
                now,
                merge_peers=self._gossip.enabled,
            )
            self._peers_merged += summary.peers_merged
            self._payloads_rejected += summary.payloads_rejected
            if summary.aborted:
                self._merge_aborts += 1

        command = state.run(view)

        shared = state.broadcast()
        if shared is not None:
            view.broadcast(dumps(shared, replicated_only=True))
        view.save_store(dumps(state))

        logger.debug("[%s] turn %d -> %r", self.name, now, command)
        return command if command is not None else Nothing()
