"""Conflict-free Replicated Data Types (CRDTs) with expiry and bounded capacity.

CRDTs are data structures that converge automatically however their
replicas are exchanged, without requiring consensus. Merge operations are
commutative, associative, and idempotent; every type also offers a local
``cleanup(now)`` that expires entries against the current turn.

Provided CRDTs:

- **ExpiringFWWRegister**: First-writer-wins register with a time-to-live
- **GrowOnlySet**: Grow-only set (union merge)
- **ExpiringSet**: Set whose elements lapse at an expiry turn
- **SizedFWWExpiringSet**: Capacity-bounded expiring set keeping the earliest writes
- **CrdtMap**: Ordered map under a ``LWW`` or ``FWW`` conflict policy

``CrdtContainer`` turns a dataclass of CRDT fields into one CRDT, and
``dumps`` / ``loads`` move any of them across the agent boundary as bytes.
"""

from gossipgrid.crdt.codec import PayloadDecodeError, decode_value, dumps, encode_value, loads
from gossipgrid.crdt.container import CrdtContainer, Record, crdt_field
from gossipgrid.crdt.crdt_map import (
    FWW,
    LWW,
    ConflictPolicy,
    CrdtMap,
    FirstWriterWins,
    LastWriterWins,
    policy_by_name,
)
from gossipgrid.crdt.expiring_set import ExpiringSet
from gossipgrid.crdt.grow_only_set import GrowOnlySet
from gossipgrid.crdt.protocol import CRDT, MergeError, value_order
from gossipgrid.crdt.register import ExpiringFWWRegister
from gossipgrid.crdt.sized_set import SizedFWWExpiringSet

__all__ = [
    "CRDT",
    "ConflictPolicy",
    "CrdtContainer",
    "CrdtMap",
    "ExpiringFWWRegister",
    "ExpiringSet",
    "FWW",
    "FirstWriterWins",
    "GrowOnlySet",
    "LWW",
    "LastWriterWins",
    "MergeError",
    "PayloadDecodeError",
    "Record",
    "SizedFWWExpiringSet",
    "crdt_field",
    "decode_value",
    "dumps",
    "encode_value",
    "loads",
    "policy_by_name",
    "value_order",
]
