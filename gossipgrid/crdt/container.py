"""Composite CRDT containers built from dataclass fields.

A struct made of several CRDT fields can itself behave as one CRDT. Fields
are tagged once, at declaration, with ``crdt_field``; ``merge`` and
``cleanup`` then walk the tagged fields in declared order. Untagged
fields are ordinary local state and are never replicated.

Example::

    @dataclass
    class TeamBroadcast(CrdtContainer):
        targets: SizedFWWExpiringSet[Loc] = crdt_field(default_factory=lambda: SizedFWWExpiringSet(8))
        tiles: CrdtMap[Loc, bool] = crdt_field(default_factory=lambda: CrdtMap(LWW))
        last_sent: int = 0                     # local only

    mine.merge(theirs)    # merges targets, then tiles
    mine.cleanup(now)     # cleans targets and tiles

``Record`` supplies the generic ``to_dict`` / ``from_dict`` used for
persistence and gossip. It works for any dataclass whose fields all have
defaults: nested CRDTs use their own codec, everything else goes through
the value codec.
"""

from __future__ import annotations

import dataclasses
import functools
import types
import typing
from typing import Any, Self

from gossipgrid.crdt.codec import decode_value, encode_value
from gossipgrid.crdt.protocol import MergeError, require_same_type

_CRDT_MARKER = "gossipgrid.crdt"


def crdt_field(*, default_factory: Any) -> Any:
    """Declare a dataclass field that participates in merge and cleanup."""
    return dataclasses.field(default_factory=default_factory, metadata={_CRDT_MARKER: True})


@functools.cache
def _field_hints(cls: type) -> dict[str, Any]:
    """Resolved annotations of ``cls``; empty if a name only exists for type checkers."""
    try:
        return typing.get_type_hints(cls)
    except NameError:
        return {}


def _fits(value: Any, hint: Any) -> bool:
    """Shallow check of a decoded value against a field annotation."""
    if hint is Any or isinstance(hint, typing.TypeVar):
        return True
    if hint is None or hint is type(None):
        return value is None
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        return any(_fits(value, arm) for arm in typing.get_args(hint))
    if origin is typing.Literal:
        return value in typing.get_args(hint)
    if origin is not None:
        hint = origin
    if not isinstance(hint, type):
        return True
    if hint is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, hint)


def check_field(cls: type, name: str, value: Any, default: Any = None) -> Any:
    """Return ``value`` if it fits the annotation of ``cls.name``.

    Falls back to the type of ``default`` when the annotation cannot be
    resolved at runtime.

    Raises:
        ValueError: On a mismatch.
    """
    expected = _field_hints(cls).get(name, Any if default is None else type(default))
    if not _fits(value, expected):
        raise ValueError(f"{cls.__name__}.{name} holds {type(value).__name__}, expected {expected!r}")
    return value


class Record:
    """Dataclass mixin with generic dict serialization.

    Subclasses must be dataclasses constructible with no arguments.
    Fields missing from a stored dict keep their defaults, so adding a
    field does not invalidate previously persisted memory.
    """

    def to_dict(self) -> dict:
        """Serialize every dataclass field to a plain dict."""
        out: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            out[f.name] = value.to_dict() if hasattr(value, "to_dict") else encode_value(value)
        return {"type": type(self).__name__, "fields": out}

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Deserialize from a plain dict produced by ``to_dict()``.

        Plain fields are checked against their annotation (or, when it
        cannot be resolved, the type of their default), so memory written
        under an older layout is rejected instead of misbehaving later.

        Raises:
            ValueError: If the dict describes a different type or a field
                holds a value of the wrong type.
        """
        if data.get("type") != cls.__name__:
            raise ValueError(f"Expected {cls.__name__} state, got {data.get('type')!r}")
        obj = cls()
        stored = data["fields"]
        for f in dataclasses.fields(obj):
            if f.name not in stored:
                continue
            default = getattr(obj, f.name)
            raw = stored[f.name]
            if hasattr(default, "from_dict"):
                setattr(obj, f.name, type(default).from_dict(raw))
            else:
                setattr(obj, f.name, check_field(cls, f.name, decode_value(raw), default))
        return obj


class CrdtContainer(Record):
    """Aggregates ``merge`` / ``cleanup`` over fields tagged with ``crdt_field``."""

    @classmethod
    def crdt_fields(cls) -> list[str]:
        """Names of the replicated fields, in declared order."""
        return [f.name for f in dataclasses.fields(cls) if f.metadata.get(_CRDT_MARKER)]

    def replica_dict(self) -> dict:
        """Like ``to_dict`` but limited to the tagged fields.

        This is what teammates receive; local bookkeeping stays home and
        keeps its defaults when the payload is decoded.
        """
        out: dict[str, Any] = {}
        for name in self.crdt_fields():
            value = getattr(self, name)
            out[name] = value.replica_dict() if hasattr(value, "replica_dict") else value.to_dict()
        return {"type": type(self).__name__, "fields": out}

    def merge(self, other: Self) -> None:
        """Merge each tagged field from ``other``, stopping at the first failure.

        Raises:
            MergeError: Naming the field whose merge failed. Fields declared
                after it are left unmerged.
        """
        require_same_type(self, other)
        for name in self.crdt_fields():
            try:
                getattr(self, name).merge(getattr(other, name))
            except MergeError as e:
                raise MergeError(f"{type(self).__name__}.{name}: {e}") from e

    def cleanup(self, now: int) -> None:
        """Clean every tagged field."""
        for name in self.crdt_fields():
            getattr(self, name).cleanup(now)
