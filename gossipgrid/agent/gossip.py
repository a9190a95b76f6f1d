"""Per-turn epidemic gossip between co-faction agents.

Once per turn an agent merges the broadcast payloads advertised by every
visible teammate into its own broadcast CRDT, then expires stale entries
once. Nothing is sent anywhere: the merged state is re-published and
peers pick it up on their next turn. Convergence follows from the merge
laws alone, for any delivery order, duplication or partial connectivity,
as long as teammates are connected through "visible at some turn" edges
over time.

A payload that fails to decode is skipped and the remaining peers are
still merged. A ``MergeError`` aborts the rest of this turn's merges but
never the turn itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gossipgrid.crdt.codec import PayloadDecodeError, loads
from gossipgrid.crdt.protocol import MergeError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from gossipgrid.agent.world import Creature
    from gossipgrid.core.loc import Loc
    from gossipgrid.crdt.protocol import CRDT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GossipRound:
    """Outcome of one broadcast merge.

    Attributes:
        peers_seen: Visible teammates that published a payload.
        peers_merged: Payloads decoded and merged.
        payloads_rejected: Payloads that failed to decode.
        aborted: True if a merge failure stopped the round early.
    """

    peers_seen: int = 0
    peers_merged: int = 0
    payloads_rejected: int = 0
    aborted: bool = False


def merge_broadcasts(
    own: CRDT,
    faction: str,
    creatures: Mapping[Loc, Creature],
    now: int,
    *,
    merge_peers: bool = True,
) -> GossipRound:
    """Merge teammates' broadcasts into ``own`` and expire it against ``now``.

    Args:
        own: This agent's broadcast CRDT; modified in place.
        faction: This agent's faction.
        creatures: Currently visible creatures, keyed by location.
        now: Current turn, used for the single cleanup pass.
        merge_peers: When False only the cleanup runs.

    Returns:
        A summary of the round.
    """
    seen = merged = rejected = 0
    aborted = False
    cls = type(own)

    if merge_peers:
        for loc, creature in creatures.items():
            if creature.faction != faction or not creature.broadcast:
                continue
            seen += 1
            try:
                peer = loads(creature.broadcast, cls)
            except PayloadDecodeError as e:
                rejected += 1
                logger.debug("Skipping broadcast from %s at %s: %s", creature.name or "?", loc, e)
                continue
            try:
                own.merge(peer)
            except MergeError:
                logger.exception("Broadcast merge failed at %s; skipping remaining peers this turn", loc)
                aborted = True
                break
            merged += 1

    own.cleanup(now)
    if seen:
        logger.debug("Gossip round: merged=%d rejected=%d aborted=%s", merged, rejected, aborted)
    return GossipRound(
        peers_seen=seen,
        peers_merged=merged,
        payloads_rejected=rejected,
        aborted=aborted,
    )
