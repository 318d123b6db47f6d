"""Helpers to serialize/deserialize minimal fixtures for Judge specs."""

from __future__ import annotations

from typing import Any, Optional

from judge_spec.state_digest import compute_state_digest
from judge_spec.types import (
    AccountState,
    ChainState,
    Event,
    EventKind,
    JudgeState,
    ResolverState,
    Transaction,
    TransactionType,
    TransferPayload,
)


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def _opt_hex(v: Optional[bytes]) -> Optional[str]:
    return _bytes_to_hex(v) if v is not None else None


def _opt_bytes(v: Optional[str]) -> Optional[bytes]:
    return _hex_to_bytes(v) if v else None


def _data_to_json(data: dict[str, object]) -> dict[str, object]:
    return {
        k: _bytes_to_hex(v) if isinstance(v, (bytes, bytearray)) else v
        for k, v in data.items()
    }


def state_to_json(state: ChainState) -> dict[str, Any]:
    result: dict[str, Any] = {
        "accounts": [
            {
                "address": _bytes_to_hex(a.address),
                "balance": a.balance,
                "flags": a.flags,
            }
            for a in state.accounts.values()
        ],
        "judges": [
            {
                "address": _bytes_to_hex(j.address),
                "creator": _bytes_to_hex(j.creator),
                "collateral_percentage": j.collateral_percentage,
                "reusable": j.reusable,
                "user1": _opt_hex(j.user1),
                "user2": _opt_hex(j.user2),
                "amount_to_match": j.amount_to_match,
                "finalized": j.finalized,
                "resolver": _opt_hex(j.resolver),
                "settlement_count": j.settlement_count,
            }
            for j in state.judges.values()
        ],
    }

    if state.resolvers:
        result["resolvers"] = [
            {
                "address": _bytes_to_hex(r.address),
                "judge": _bytes_to_hex(r.judge),
                "module_hash": _bytes_to_hex(r.module_hash),
                "module": _bytes_to_hex(r.module),
            }
            for r in state.resolvers.values()
        ]

    if state.events:
        result["events"] = [
            {
                "kind": e.kind.value,
                "judge": _bytes_to_hex(e.judge),
                "data": _data_to_json(e.data),
            }
            for e in state.events
        ]

    result["state_digest"] = compute_state_digest(result)
    return result


_EVENT_BYTES_FIELDS = {"sender", "resolver", "caller", "counterparty"}


def state_from_json(data: dict[str, Any]) -> ChainState:
    state = ChainState()

    for a in data.get("accounts", []):
        acct = AccountState(
            address=_hex_to_bytes(a["address"]),
            balance=a.get("balance", 0),
            flags=a.get("flags", 0),
        )
        state.accounts[acct.address] = acct

    for j in data.get("judges", []):
        judge = JudgeState(
            address=_hex_to_bytes(j["address"]),
            creator=_hex_to_bytes(j.get("creator", "")),
            collateral_percentage=j["collateral_percentage"],
            reusable=j.get("reusable", False),
            user1=_opt_bytes(j.get("user1")),
            user2=_opt_bytes(j.get("user2")),
            amount_to_match=j.get("amount_to_match", 0),
            finalized=j.get("finalized", False),
            resolver=_opt_bytes(j.get("resolver")),
            settlement_count=j.get("settlement_count", 0),
        )
        state.judges[judge.address] = judge

    for r in data.get("resolvers", []):
        resolver = ResolverState(
            address=_hex_to_bytes(r["address"]),
            judge=_hex_to_bytes(r["judge"]),
            module_hash=_hex_to_bytes(r["module_hash"]),
            module=_hex_to_bytes(r.get("module", "")),
        )
        state.resolvers[resolver.address] = resolver

    for e in data.get("events", []):
        fields = {
            k: _hex_to_bytes(v) if k in _EVENT_BYTES_FIELDS and isinstance(v, str) else v
            for k, v in e.get("data", {}).items()
        }
        state.events.append(
            Event(kind=EventKind(e["kind"]), judge=_hex_to_bytes(e["judge"]), data=fields)
        )

    return state


_BYTES_FIELDS: set[str] = {"judge", "digest", "signature", "payload"}


def tx_to_json(tx: Transaction) -> dict[str, Any]:
    payload: Any
    if tx.tx_type == TransactionType.TRANSFERS and isinstance(tx.payload, list):
        payload = [
            {"destination": _bytes_to_hex(t.destination), "amount": t.amount}
            for t in tx.payload
            if isinstance(t, TransferPayload)
        ]
    elif isinstance(tx.payload, dict):
        payload = {
            k: _bytes_to_hex(bytes(v)) if isinstance(v, (bytes, bytearray)) else v
            for k, v in tx.payload.items()
        }
    else:
        payload = tx.payload

    return {
        "source": _bytes_to_hex(tx.source),
        "tx_type": tx.tx_type.value,
        "payload": payload,
        "value": tx.value,
    }


def tx_from_json(data: dict[str, Any]) -> Transaction:
    tx_type = TransactionType(data["tx_type"])
    raw = data.get("payload")

    payload: Any
    if tx_type == TransactionType.TRANSFERS and isinstance(raw, list):
        payload = [
            TransferPayload(destination=_hex_to_bytes(t["destination"]), amount=t["amount"])
            for t in raw
        ]
    elif isinstance(raw, dict):
        payload = {
            k: _hex_to_bytes(v) if k in _BYTES_FIELDS and isinstance(v, str) else v
            for k, v in raw.items()
        }
    else:
        payload = raw

    return Transaction(
        source=_hex_to_bytes(data["source"]),
        tx_type=tx_type,
        payload=payload,
        value=data.get("value", 0),
    )
