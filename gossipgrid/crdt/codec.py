"""Opaque byte payloads for gossip and persisted agent memory.

Agents never share memory; only serialized snapshots cross the boundary.
A payload is compact UTF-8 JSON wrapped in a self-describing envelope::

    {"format": "gossipgrid", "version": 1, "type": "TeamBroadcast", "state": {...}}

``state`` is whatever the object's ``to_dict()`` produced. Values inside
CRDTs go through ``encode_value`` which tags the Python types JSON would
otherwise flatten (``Loc``, tuples, sets, deques, non-string dict keys),
so keys and tie-break ordering survive a round trip unchanged.

Decoding is expected to fail sometimes (schema drift between agent
versions, corrupt stores, a peer of another type). Every failure surfaces
as ``PayloadDecodeError`` so callers can fall back without guessing which
exception a malformed payload happens to trigger.
"""

from __future__ import annotations

import json
from collections import deque
from typing import Any, TypeVar

from gossipgrid.core.loc import Loc
from gossipgrid.crdt.protocol import MergeError, value_order

FORMAT = "gossipgrid"
VERSION = 1

_TAG = "__t"

T = TypeVar("T")


class PayloadDecodeError(ValueError):
    """A payload could not be decoded into the requested type."""


def encode_value(value: Any) -> Any:
    """Encode a payload value into JSON-compatible form.

    Raises:
        TypeError: If the value (or something nested in it) has no encoding.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Loc):
        return {_TAG: "loc", "v": [value.x, value.y]}
    if isinstance(value, tuple):
        return {_TAG: "tuple", "v": [encode_value(v) for v in value]}
    if isinstance(value, list):
        return [encode_value(v) for v in value]
    if isinstance(value, deque):
        return {_TAG: "deque", "v": [encode_value(v) for v in value]}
    if isinstance(value, dict):
        return {_TAG: "dict", "v": [[encode_value(k), encode_value(v)] for k, v in value.items()]}
    if isinstance(value, (set, frozenset)):
        kind = "frozenset" if isinstance(value, frozenset) else "set"
        return {_TAG: kind, "v": [encode_value(v) for v in sorted(value, key=value_order)]}
    raise TypeError(f"Cannot encode value of type {type(value).__name__}")


def decode_value(data: Any) -> Any:
    """Inverse of ``encode_value``.

    Raises:
        PayloadDecodeError: On an unknown tag or malformed tagged value.
    """
    if isinstance(data, list):
        return [decode_value(v) for v in data]
    if not isinstance(data, dict):
        return data

    tag = data.get(_TAG)
    items = data.get("v")
    if not isinstance(items, list):
        raise PayloadDecodeError(f"Malformed tagged value: {data!r}")
    if tag == "loc":
        x, y = items
        return Loc(int(x), int(y))
    if tag == "tuple":
        return tuple(decode_value(v) for v in items)
    if tag == "deque":
        return deque(decode_value(v) for v in items)
    if tag == "dict":
        return {decode_value(k): decode_value(v) for k, v in items}
    if tag == "set":
        return {decode_value(v) for v in items}
    if tag == "frozenset":
        return frozenset(decode_value(v) for v in items)
    raise PayloadDecodeError(f"Unknown value tag: {tag!r}")


def dumps(obj: Any, *, replicated_only: bool = False) -> bytes:
    """Serialize an object exposing ``to_dict()`` into a payload.

    With ``replicated_only`` an object that offers ``replica_dict()`` is
    written without its local fields, which is the form used for gossip.
    """
    if replicated_only and hasattr(obj, "replica_dict"):
        state = obj.replica_dict()
    else:
        state = obj.to_dict()
    envelope = {
        "format": FORMAT,
        "version": VERSION,
        "type": type(obj).__name__,
        "state": state,
    }
    return json.dumps(envelope, separators=(",", ":")).encode("utf-8")


def loads(data: bytes, cls: type[T]) -> T:
    """Decode a payload produced by ``dumps`` into an instance of ``cls``.

    Args:
        data: Raw payload bytes.
        cls: Expected type; must provide ``from_dict``.

    Raises:
        PayloadDecodeError: If the bytes are not a valid payload for ``cls``.
    """
    try:
        envelope = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, AttributeError, RecursionError) as e:
        raise PayloadDecodeError(f"Not a {FORMAT} payload: {e}") from e

    if not isinstance(envelope, dict) or envelope.get("format") != FORMAT:
        raise PayloadDecodeError(f"Not a {FORMAT} payload")
    if envelope.get("version") != VERSION:
        raise PayloadDecodeError(f"Unsupported payload version {envelope.get('version')!r}")
    if envelope.get("type") != cls.__name__:
        raise PayloadDecodeError(f"Payload holds {envelope.get('type')!r}, expected {cls.__name__!r}")

    try:
        return cls.from_dict(envelope["state"])
    except PayloadDecodeError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError, RecursionError, MergeError) as e:
        raise PayloadDecodeError(f"Corrupt {cls.__name__} state: {e!r}") from e
