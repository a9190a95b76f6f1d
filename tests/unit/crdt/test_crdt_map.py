"""Tests for CrdtMap and its conflict policies."""

import pytest

from gossipgrid.core.loc import Loc
from gossipgrid.crdt.crdt_map import FWW, LWW, CrdtMap, FirstWriterWins, LastWriterWins, policy_by_name
from gossipgrid.crdt.protocol import CRDT, MergeError


class TestPolicies:
    """Tests for LastWriterWins / FirstWriterWins."""

    def test_lww_prefers_later(self):
        assert LWW.prefers(("new", 5), ("old", 3))
        assert not LWW.prefers(("old", 3), ("new", 5))

    def test_fww_prefers_earlier(self):
        assert FWW.prefers(("old", 3), ("new", 5))
        assert not FWW.prefers(("new", 5), ("old", 3))

    def test_equal_entry_never_preferred(self):
        assert not LWW.prefers(("x", 1), ("x", 1))
        assert not FWW.prefers(("x", 1), ("x", 1))

    def test_none_orders_below_values(self):
        assert LWW.prefers(("a", 1), (None, 1))
        assert FWW.prefers((None, 1), ("a", 1))

    def test_lookup_by_name(self):
        assert isinstance(policy_by_name("lww"), LastWriterWins)
        assert isinstance(policy_by_name("fww"), FirstWriterWins)
        with pytest.raises(ValueError):
            policy_by_name("mvr")


class TestCrdtMapBasics:
    """Tests for local operations."""

    def test_insert_and_get(self):
        m = CrdtMap()
        m.insert(Loc(0, 0), True, now=1)
        assert m.get(Loc(0, 0)) is True
        assert m.written(Loc(0, 0)) == 1
        assert m.contains_key(Loc(0, 0))
        assert Loc(0, 0) in m

    def test_get_default(self):
        m = CrdtMap()
        assert m.get("missing") is None
        assert m.get("missing", 7) == 7
        assert m.written("missing") is None

    def test_keys_sorted_regardless_of_insertion(self):
        m = CrdtMap()
        for key in [Loc(3, 0), Loc(0, 2), Loc(1, 1)]:
            m.insert(key, True, 0)
        assert m.keys() == [Loc(0, 2), Loc(1, 1), Loc(3, 0)]
        assert list(m) == m.keys()

    def test_value_snapshot(self):
        m = CrdtMap(FWW)
        m.insert("k", "v", 0)
        assert m.value == {"k": "v"}

    def test_implements_crdt_protocol(self):
        assert isinstance(CrdtMap(), CRDT)


class TestCrdtMapMerge:
    """Tests for merge under each policy."""

    def test_lww_later_write_wins(self):
        a = CrdtMap(LWW)
        a.insert(Loc(0, 0), True, 4)
        b = CrdtMap(LWW)
        b.insert(Loc(0, 0), False, 7)
        a.merge(b)
        assert a.get(Loc(0, 0)) is False
        assert a.written(Loc(0, 0)) == 7

    def test_fww_earlier_write_wins(self):
        a = CrdtMap(FWW)
        a.insert("door", "open", 4)
        b = CrdtMap(FWW)
        b.insert("door", "closed", 7)
        a.merge(b)
        assert a.get("door") == "open"

    def test_lww_tie_takes_larger_value(self):
        a = CrdtMap(LWW)
        a.insert("k", "apple", 2)
        b = CrdtMap(LWW)
        b.insert("k", "pear", 2)
        a.merge(b)
        b.merge(a)
        assert a.get("k") == b.get("k") == "pear"

    def test_disjoint_keys_union(self):
        a = CrdtMap()
        a.insert("x", 1, 0)
        b = CrdtMap()
        b.insert("y", 2, 0)
        a.merge(b)
        assert a.value == {"x": 1, "y": 2}

    def test_policy_mismatch_raises(self):
        with pytest.raises(MergeError):
            CrdtMap(LWW).merge(CrdtMap(FWW))

    def test_cleanup_keeps_entries(self):
        m = CrdtMap()
        m.insert("k", 1, 0)
        m.cleanup(10**9)
        assert len(m) == 1


class TestCrdtMapSerialization:
    """Tests for to_dict / from_dict."""

    def test_round_trip_keeps_policy_and_keys(self):
        m = CrdtMap(FWW)
        m.insert(Loc(1, 2), None, 3)
        m.insert(Loc(0, 0), "Exit", 1)
        restored = CrdtMap.from_dict(m.to_dict())
        assert restored == m
        assert restored.policy is FWW
        assert restored.get(Loc(1, 2), "absent") is None

    def test_unknown_policy_rejected(self):
        data = CrdtMap().to_dict()
        data["policy"] = "bogus"
        with pytest.raises(ValueError):
            CrdtMap.from_dict(data)
