"""Tests for CrdtContainer and Record."""

import json
from dataclasses import dataclass, field

import pytest

from gossipgrid.core.loc import Loc
from gossipgrid.crdt.codec import PayloadDecodeError, dumps, loads
from gossipgrid.crdt.container import CrdtContainer, Record, crdt_field
from gossipgrid.crdt.crdt_map import FWW, LWW, CrdtMap
from gossipgrid.crdt.expiring_set import ExpiringSet
from gossipgrid.crdt.protocol import CRDT, MergeError
from gossipgrid.crdt.sized_set import SizedFWWExpiringSet


@dataclass
class TeamBroadcast(CrdtContainer):
    targets: SizedFWWExpiringSet = crdt_field(default_factory=lambda: SizedFWWExpiringSet(4))
    tiles: CrdtMap = crdt_field(default_factory=lambda: CrdtMap(LWW))
    dangers: ExpiringSet = crdt_field(default_factory=ExpiringSet)
    note: str = "local"


@dataclass
class Memory(Record):
    counter: int = 0
    visited: set = field(default_factory=set)
    last: Loc | None = None


class TestCrdtFields:
    """Tests for field tagging."""

    def test_only_tagged_fields_participate(self):
        assert TeamBroadcast.crdt_fields() == ["targets", "tiles", "dangers"]

    def test_container_is_a_crdt(self):
        assert isinstance(TeamBroadcast(), CRDT)


class TestContainerMerge:
    """Tests for aggregated merge and cleanup."""

    def test_merges_every_tagged_field(self):
        a = TeamBroadcast()
        a.targets.insert(Loc(1, 1), 0, 5)
        b = TeamBroadcast(note="peer")
        b.tiles.insert(Loc(2, 2), False, 3)
        b.dangers.insert(Loc(4, 4), 9)

        a.merge(b)

        assert Loc(1, 1) in a.targets
        assert a.tiles.get(Loc(2, 2)) is False
        assert Loc(4, 4) in a.dangers
        assert a.note == "local"

    def test_cleanup_reaches_every_field(self):
        c = TeamBroadcast()
        c.targets.insert("t", 0, 2)
        c.dangers.insert("d", 2)
        c.cleanup(2)
        assert len(c.targets) == 0
        assert len(c.dangers) == 0

    def test_failure_names_field_and_stops(self):
        a = TeamBroadcast()
        b = TeamBroadcast()
        b.tiles = CrdtMap(FWW)
        b.targets.insert("t", 0, 5)
        b.dangers.insert("d", 5)

        with pytest.raises(MergeError, match=r"TeamBroadcast\.tiles"):
            a.merge(b)

        # fields before the failure were merged, fields after were not
        assert "t" in a.targets
        assert "d" not in a.dangers

    def test_merging_other_type_raises(self):
        with pytest.raises(MergeError):
            TeamBroadcast().merge(ExpiringSet())


class TestRecordSerialization:
    """Tests for the generic dict codec."""

    def test_container_payload_round_trip(self):
        c = TeamBroadcast(note="hi")
        c.targets.insert(Loc(0, 1), 2, 8)
        c.tiles.insert(Loc(5, 5), True, 1)
        restored = loads(dumps(c), TeamBroadcast)
        assert restored.targets == c.targets
        assert restored.tiles == c.tiles
        assert restored.note == "hi"

    def test_plain_fields_keep_python_types(self):
        m = Memory(counter=3, visited={Loc(0, 0), Loc(1, 0)}, last=Loc(1, 0))
        restored = Memory.from_dict(m.to_dict())
        assert restored == m
        assert isinstance(restored.last, Loc)

    def test_missing_fields_keep_defaults(self):
        data = Memory(counter=3).to_dict()
        del data["fields"]["visited"]
        restored = Memory.from_dict(data)
        assert restored.counter == 3
        assert restored.visited == set()

    def test_wrong_type_rejected(self):
        with pytest.raises(ValueError):
            Memory.from_dict(TeamBroadcast().to_dict())

    def test_plain_field_of_wrong_type_rejected(self):
        data = Memory().to_dict()
        data["fields"]["counter"] = "three"
        with pytest.raises(ValueError, match=r"Memory\.counter"):
            Memory.from_dict(data)

    def test_optional_field_checked_against_annotation(self):
        data = Memory(last=Loc(1, 2)).to_dict()
        assert Memory.from_dict(data).last == Loc(1, 2)
        data["fields"]["last"] = "north"
        with pytest.raises(ValueError, match=r"Memory\.last"):
            Memory.from_dict(data)

    def test_layout_mismatch_is_a_decode_error(self):
        m = Memory()
        m.visited = 5
        with pytest.raises(PayloadDecodeError):
            loads(dumps(m), Memory)


class TestReplicaPayload:
    """Tests for the gossip form of a container."""

    def test_only_tagged_fields_are_sent(self):
        b = TeamBroadcast(note="private")
        b.tiles.insert(Loc(2, 2), True, 1)

        state = json.loads(dumps(b, replicated_only=True))["state"]
        restored = loads(dumps(b, replicated_only=True), TeamBroadcast)

        assert set(state["fields"]) == {"targets", "tiles", "dangers"}
        assert restored.tiles == b.tiles
        assert restored.note == "local"
