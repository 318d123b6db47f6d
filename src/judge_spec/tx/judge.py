"""Judge contract transaction specs.

CREATE_JUDGE, JUDGE_DEPOSIT, JUDGE_REVEAL, JUDGE_RELEASE, JUDGE_RESET.

``verify`` checks every rejection condition against the pre-state and never
mutates it. ``apply`` works on a copy; anything it raises is a fatal halt and
the caller discards the copy.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Optional

from .. import escrow
from ..config import DEFAULT_COLLATERAL_PERCENTAGE, MAX_COLLATERAL_PERCENTAGE
from ..crypto.commitment import verify_commitment
from ..crypto.hash_algorithms import judge_address
from ..errors import ErrorCode, SpecError
from ..resolver import DEFAULT_ACTIVATOR, ActivationError, Activator
from ..types import (
    AccountState,
    ChainState,
    Commitment,
    Event,
    EventKind,
    JudgeState,
    Transaction,
    TransactionType,
)


def _to_bytes(v: object) -> bytes:
    if isinstance(v, bytes):
        return v
    if isinstance(v, (list, tuple, bytearray)):
        return bytes(v)
    return b""


def _payload(tx: Transaction) -> dict:
    p = tx.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "judge payload must be dict")
    return p


def _judge(state: ChainState, p: dict) -> JudgeState:
    judge = state.judges.get(_to_bytes(p.get("judge")))
    if judge is None:
        raise SpecError(ErrorCode.JUDGE_NOT_FOUND, "judge not found")
    return judge


def _commitment(p: dict) -> Commitment:
    return Commitment(
        digest=_to_bytes(p.get("digest")),
        signature=_to_bytes(p.get("signature")),
        payload=_to_bytes(p.get("payload")),
    )


def next_judge_address(state: ChainState, creator: bytes) -> bytes:
    return judge_address(creator, len(state.judges))


def verify(state: ChainState, tx: Transaction) -> None:
    p = _payload(tx)
    tt = tx.tx_type
    if tt == TransactionType.CREATE_JUDGE:
        _verify_create(state, tx, p)
    elif tt == TransactionType.JUDGE_DEPOSIT:
        _verify_deposit(state, tx, p)
    elif tt == TransactionType.JUDGE_REVEAL:
        _verify_reveal(state, tx, p)
    elif tt == TransactionType.JUDGE_RELEASE:
        _verify_release(state, tx, p)
    elif tt == TransactionType.JUDGE_RESET:
        _verify_reset(state, tx, p)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported judge tx type: {tt}")


def apply(
    state: ChainState, tx: Transaction, activator: Optional[Activator] = None
) -> ChainState:
    p = tx.payload
    tt = tx.tx_type
    if tt == TransactionType.CREATE_JUDGE:
        return _apply_create(state, tx, p)
    elif tt == TransactionType.JUDGE_DEPOSIT:
        return _apply_deposit(state, tx, p)
    elif tt == TransactionType.JUDGE_REVEAL:
        return _apply_reveal(state, tx, p, activator or DEFAULT_ACTIVATOR)
    elif tt == TransactionType.JUDGE_RELEASE:
        return _apply_release(state, tx, p)
    elif tt == TransactionType.JUDGE_RESET:
        return _apply_reset(state, tx, p)
    raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported judge tx type: {tt}")


def _require_no_value(tx: Transaction) -> None:
    if tx.value != 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, f"{tx.tx_type.value} does not accept value")


def _require_open_participant(judge: JudgeState, caller: bytes) -> None:
    if caller not in judge.participants:
        raise SpecError(ErrorCode.NOT_PARTICIPANT, "caller is not a participant")
    if judge.finalized:
        raise SpecError(ErrorCode.ALREADY_FINALIZED, "judge already finalized")


# --- CREATE_JUDGE ---

def _verify_create(state: ChainState, tx: Transaction, p: dict) -> None:
    _require_no_value(tx)

    pct = p.get("collateral_percentage", DEFAULT_COLLATERAL_PERCENTAGE)
    if not isinstance(pct, int) or isinstance(pct, bool):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "collateral_percentage must be int")
    if pct < 0 or pct > MAX_COLLATERAL_PERCENTAGE:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "collateral_percentage out of range")
    if not isinstance(p.get("reusable", False), bool):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "reusable must be bool")

    if next_judge_address(state, tx.source) in state.accounts:
        raise SpecError(ErrorCode.INVALID_ADDRESS, "judge address already in use")


def _apply_create(state: ChainState, tx: Transaction, p: dict) -> ChainState:
    ns = deepcopy(state)
    address = next_judge_address(ns, tx.source)
    ns.judges[address] = JudgeState(
        address=address,
        creator=tx.source,
        collateral_percentage=p.get("collateral_percentage", DEFAULT_COLLATERAL_PERCENTAGE),
        reusable=p.get("reusable", False),
    )
    ns.accounts[address] = AccountState(address=address)
    return ns


# --- JUDGE_DEPOSIT ---

def _verify_deposit(state: ChainState, tx: Transaction, p: dict) -> None:
    judge = _judge(state, p)
    escrow.verify_deposit(state, judge, tx.source, tx.value)


def _apply_deposit(state: ChainState, tx: Transaction, p: dict) -> ChainState:
    ns = deepcopy(state)
    judge = _judge(ns, p)
    escrow.record_deposit(ns, judge, tx.source, tx.value)
    ns.events.append(
        Event(
            kind=EventKind.DEPOSIT_OBSERVED,
            judge=judge.address,
            data={"sender": tx.source, "amount": tx.value},
        )
    )
    return ns


# --- JUDGE_REVEAL ---

def _verify_reveal(state: ChainState, tx: Transaction, p: dict) -> None:
    _require_no_value(tx)
    judge = _judge(state, p)
    _require_open_participant(judge, tx.source)
    verify_commitment(_commitment(p), judge.participants)


def _apply_reveal(
    state: ChainState, tx: Transaction, p: dict, activator: Activator
) -> ChainState:
    ns = deepcopy(state)
    judge = _judge(ns, p)
    payload = _to_bytes(p.get("payload"))

    try:
        resolver = activator.activate(ns, judge, payload)
    except ActivationError as exc:
        raise SpecError(ErrorCode.ACTIVATION_FAILED, f"resolver activation failed: {exc}") from exc

    final_balance = escrow.held_balance(ns, judge)
    escrow.pay_out(ns, judge, resolver, final_balance)

    judge.finalized = True
    judge.resolver = resolver
    judge.settlement_count += 1
    ns.events.append(
        Event(
            kind=EventKind.SETTLEMENT,
            judge=judge.address,
            data={"final_balance": final_balance, "resolver": resolver},
        )
    )
    return ns


# --- JUDGE_RELEASE ---

def _verify_release(state: ChainState, tx: Transaction, p: dict) -> None:
    _require_no_value(tx)
    judge = _judge(state, p)
    _require_open_participant(judge, tx.source)
    if not judge.armed:
        raise SpecError(ErrorCode.NOT_ARMED, "counterparty has not deposited")


def _apply_release(state: ChainState, tx: Transaction, p: dict) -> ChainState:
    ns = deepcopy(state)
    judge = _judge(ns, p)
    caller = tx.source
    counterparty = judge.user2 if caller == judge.user1 else judge.user1

    # Each payout reads the balance as it stands at that point, so the caller
    # only receives what is left after the counterparty has been paid.
    balance = escrow.held_balance(ns, judge)
    counterparty_amount = balance - balance * judge.collateral_percentage // 100
    escrow.pay_out(ns, judge, counterparty, counterparty_amount)

    caller_amount = escrow.held_balance(ns, judge)
    escrow.pay_out(ns, judge, caller, caller_amount)

    judge.finalized = True
    judge.settlement_count += 1
    ns.events.append(
        Event(
            kind=EventKind.RELEASED,
            judge=judge.address,
            data={
                "caller": caller,
                "counterparty": counterparty,
                "counterparty_amount": counterparty_amount,
                "caller_amount": caller_amount,
            },
        )
    )
    return ns


# --- JUDGE_RESET ---

def _verify_reset(state: ChainState, tx: Transaction, p: dict) -> None:
    _require_no_value(tx)
    judge = _judge(state, p)
    if not judge.finalized:
        raise SpecError(ErrorCode.NOT_FINALIZED, "judge not finalized")


def _apply_reset(state: ChainState, tx: Transaction, p: dict) -> ChainState:
    ns = deepcopy(state)
    judge = _judge(ns, p)
    escrow.clear(judge)
    if judge.reusable:
        judge.finalized = False
        judge.resolver = None
    return ns
