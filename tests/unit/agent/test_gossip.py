"""Tests for the per-turn broadcast merge."""

import logging
from dataclasses import dataclass

from gossipgrid.agent.gossip import GossipRound, merge_broadcasts
from gossipgrid.agent.world import Creature
from gossipgrid.core.loc import Loc
from gossipgrid.crdt.codec import dumps
from gossipgrid.crdt.container import CrdtContainer, crdt_field
from gossipgrid.crdt.crdt_map import FWW, LWW, CrdtMap
from gossipgrid.crdt.expiring_set import ExpiringSet


@dataclass
class Shared(CrdtContainer):
    tiles: CrdtMap = crdt_field(default_factory=lambda: CrdtMap(LWW))
    threats: ExpiringSet = crdt_field(default_factory=ExpiringSet)


def _payload(loc: Loc, passable: bool = True, written: int = 0) -> bytes:
    s = Shared()
    s.tiles.insert(loc, passable, written)
    return dumps(s)


class TestMergeBroadcasts:
    """Tests for merge_broadcasts."""

    def test_merges_teammates(self):
        own = Shared()
        creatures = {
            Loc(1, 0): Creature("blue", _payload(Loc(5, 5))),
            Loc(2, 0): Creature("blue", _payload(Loc(6, 6))),
        }
        result = merge_broadcasts(own, "blue", creatures, now=1)
        assert result == GossipRound(peers_seen=2, peers_merged=2)
        assert set(own.tiles.keys()) == {Loc(5, 5), Loc(6, 6)}

    def test_ignores_other_factions_and_silent_peers(self):
        own = Shared()
        creatures = {
            Loc(1, 0): Creature("red", _payload(Loc(5, 5))),
            Loc(2, 0): Creature("blue", None),
            Loc(3, 0): Creature("blue", b""),
        }
        result = merge_broadcasts(own, "blue", creatures, now=1)
        assert result.peers_seen == 0
        assert len(own.tiles) == 0

    def test_bad_payload_skipped_others_merged(self, caplog):
        own = Shared()
        creatures = {
            Loc(1, 0): Creature("blue", b"garbage", "broken"),
            Loc(2, 0): Creature("blue", _payload(Loc(6, 6))),
        }
        with caplog.at_level(logging.DEBUG, logger="gossipgrid"):
            result = merge_broadcasts(own, "blue", creatures, now=1)

        assert result.payloads_rejected == 1
        assert result.peers_merged == 1
        assert Loc(6, 6) in own.tiles
        assert "broken" in caplog.text

    def test_deeply_nested_payload_skipped_others_merged(self):
        own = Shared()
        creatures = {
            Loc(1, 0): Creature("blue", b"[" * 100_000 + b"]" * 100_000),
            Loc(2, 0): Creature("blue", _payload(Loc(6, 6))),
        }
        result = merge_broadcasts(own, "blue", creatures, now=1)

        assert result.payloads_rejected == 1
        assert result.peers_merged == 1
        assert Loc(6, 6) in own.tiles

    def test_payload_of_other_type_rejected(self):
        own = Shared()
        creatures = {Loc(1, 0): Creature("blue", dumps(ExpiringSet()))}
        result = merge_broadcasts(own, "blue", creatures, now=1)
        assert result.payloads_rejected == 1

    def test_merge_error_aborts_round_but_cleans(self):
        own = Shared()
        own.threats.insert("old", expires=1)

        bad = Shared()
        bad.tiles = CrdtMap(FWW)
        creatures = {
            Loc(1, 0): Creature("blue", dumps(bad)),
            Loc(2, 0): Creature("blue", _payload(Loc(6, 6))),
        }
        result = merge_broadcasts(own, "blue", creatures, now=3)

        assert result.aborted
        assert result.peers_merged == 0
        assert Loc(6, 6) not in own.tiles
        assert "old" not in own.threats

    def test_gossip_disabled_only_cleans(self):
        own = Shared()
        own.threats.insert("old", expires=1)
        creatures = {Loc(1, 0): Creature("blue", _payload(Loc(5, 5)))}
        result = merge_broadcasts(own, "blue", creatures, now=3, merge_peers=False)
        assert result == GossipRound()
        assert len(own.tiles) == 0
        assert "old" not in own.threats

    def test_duplicate_delivery_is_harmless(self):
        payload = _payload(Loc(5, 5), written=2)
        once = Shared()
        merge_broadcasts(once, "blue", {Loc(1, 0): Creature("blue", payload)}, now=2)
        twice = Shared()
        creatures = {Loc(1, 0): Creature("blue", payload), Loc(2, 0): Creature("blue", payload)}
        merge_broadcasts(twice, "blue", creatures, now=2)
        assert once.to_dict() == twice.to_dict()
