"""Canonical state digest implementation (v1)."""
from __future__ import annotations

from typing import Any

from blake3 import blake3


def _hex_to_bytes(value: str | None) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("hex value must be string")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    if v == "":
        return b""
    return bytes.fromhex(v)


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def _var_bytes(value: bytes) -> bytes:
    return _u64_be(len(value)) + value


def compute_state_digest(post_state: dict[str, Any]) -> str:
    """Compute state digest v1 from post_state.

    Accounts then judges, each sorted by address, encoded as length-prefixed
    bytes and big-endian u64 fields, hashed with BLAKE3-256. Events are not
    part of the digest.
    """
    buf = bytearray()

    accounts = post_state.get("accounts", []) if isinstance(post_state, dict) else []
    sortable = sorted(
        ((_hex_to_bytes(acc.get("address", "")), acc) for acc in accounts),
        key=lambda x: x[0],
    )
    buf += _u64_be(len(sortable))
    for addr, acc in sortable:
        if not addr:
            raise ValueError("account address must not be empty")
        buf += _var_bytes(addr)
        for field in ("balance", "flags"):
            buf += _u64_be(int(acc.get(field, 0)))

    judges = post_state.get("judges", []) if isinstance(post_state, dict) else []
    sortable = sorted(
        ((_hex_to_bytes(j.get("address", "")), j) for j in judges),
        key=lambda x: x[0],
    )
    buf += _u64_be(len(sortable))
    for addr, j in sortable:
        buf += _var_bytes(addr)
        for field in ("user1", "user2", "resolver"):
            buf += _var_bytes(_hex_to_bytes(j.get(field)))
        for field in ("collateral_percentage", "amount_to_match", "settlement_count"):
            buf += _u64_be(int(j.get(field, 0)))
        buf += bytes([1 if j.get("finalized") else 0, 1 if j.get("reusable") else 0])

    return blake3(buf).hexdigest()
