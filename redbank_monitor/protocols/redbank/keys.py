"""Decoder for cw-storage-plus map keys — no I/O.

A map entry key is laid out as::

    u16_be(len(namespace)) namespace
    u16_be(len(k1)) k1  ...  u16_be(len(kN-1)) kN-1
    kN

Every element of a composite key is length-prefixed except the last one,
which runs to the end of the key.
"""
from __future__ import annotations

import json
from typing import Any

from ...errors import KeyDecodeError
from ...models import StorageKey

_LENGTH_PREFIX = 2


def _read_prefixed(raw: bytes, offset: int) -> tuple[bytes, int]:
    """Read one length-prefixed element starting at ``offset``."""
    if offset + _LENGTH_PREFIX > len(raw):
        raise KeyDecodeError(
            f"Key truncated at offset {offset}: no room for length prefix"
        )
    length = int.from_bytes(raw[offset:offset + _LENGTH_PREFIX], "big")
    start = offset + _LENGTH_PREFIX
    end = start + length
    if end > len(raw):
        raise KeyDecodeError(
            f"Length prefix {length} at offset {offset} overruns key of {len(raw)} bytes"
        )
    return raw[start:end], end


def namespace_prefix(namespace: str) -> bytes:
    """Leading bytes shared by every key of the map ``namespace``."""
    encoded = namespace.encode("utf-8")
    return len(encoded).to_bytes(_LENGTH_PREFIX, "big") + encoded


def read_namespace(raw: bytes) -> str:
    """Return only the namespace of a map key."""
    namespace, _ = _read_prefixed(raw, 0)
    try:
        return namespace.decode("utf-8")
    except UnicodeDecodeError as e:
        raise KeyDecodeError(f"Namespace is not UTF-8: {namespace!r}") from e


def decode_map_key(raw: bytes, arity: int) -> StorageKey:
    """Split a raw map key into its namespace and ``arity`` key elements.

    Raises:
        KeyDecodeError: the key is shorter than its length prefixes claim.
    """
    if arity < 1:
        raise ValueError("arity must be at least 1")

    namespace = read_namespace(raw)
    _, offset = _read_prefixed(raw, 0)

    parts: list[bytes] = []
    for _ in range(arity - 1):
        part, offset = _read_prefixed(raw, offset)
        parts.append(part)
    parts.append(raw[offset:])

    return StorageKey(namespace=namespace, parts=tuple(parts))


def parse_user_id(part: bytes) -> dict[str, Any]:
    """Parse a Red Bank ``UserIdKey``, the JSON ``{"addr", "acc_id"}`` record."""
    try:
        record = json.loads(part.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise KeyDecodeError(f"User id is not a JSON record: {part[:80]!r}") from e

    if not isinstance(record, dict):
        raise KeyDecodeError(f"User id is not a JSON object: {record!r}")

    addr = record.get("addr")
    if not isinstance(addr, str) or not addr:
        raise KeyDecodeError(f"User id has no 'addr': {record!r}")
    return record
