"""Escrow ledger bookkeeping for a Judge instance.

Tracks the two participant slots, the stake to match and the held balance.
The held balance is the Judge account's ledger balance, so every movement of
escrowed value goes through ``pay_in`` / ``pay_out``.
"""

from __future__ import annotations

from .config import ACCOUNT_FLAG_REJECT_FUNDS
from .errors import ErrorCode, SpecError, err
from .types import AccountState, ChainState, JudgeState


def held_balance(state: ChainState, judge: JudgeState) -> int:
    return state.balance_of(judge.address)


def verify_deposit(state: ChainState, judge: JudgeState, sender: bytes, amount: int) -> None:
    if judge.armed:
        raise err(ErrorCode.ALREADY_FUNDED, "both stakes already deposited")
    if judge.finalized:
        raise err(ErrorCode.ALREADY_FINALIZED, "judge already settled; reset does not reopen it")
    if amount <= 0:
        raise err(ErrorCode.ZERO_AMOUNT, "deposit amount must be > 0")

    if state.balance_of(sender) < amount:
        raise err(ErrorCode.INSUFFICIENT_BALANCE, "insufficient balance for deposit")

    if judge.user1 is not None:
        if sender == judge.user1:
            raise err(ErrorCode.SELF_MATCH, "first depositor cannot match their own stake")
        if amount != judge.amount_to_match:
            raise err(
                ErrorCode.AMOUNT_MISMATCH,
                f"deposit {amount} does not match stake {judge.amount_to_match}",
            )


def record_deposit(state: ChainState, judge: JudgeState, sender: bytes, amount: int) -> None:
    pay_in(state, judge, sender, amount)
    if judge.user1 is None:
        judge.user1 = sender
        judge.amount_to_match = amount
        return

    judge.user2 = sender
    check_armed_invariant(state, judge)


def check_armed_invariant(state: ChainState, judge: JudgeState) -> None:
    expected = 2 * judge.amount_to_match
    if held_balance(state, judge) != expected:
        raise SpecError(
            ErrorCode.INVARIANT_VIOLATION,
            f"held balance {held_balance(state, judge)} != {expected}",
        )


def pay_in(state: ChainState, judge: JudgeState, sender: bytes, amount: int) -> None:
    source = state.accounts.get(sender)
    if source is None or source.balance < amount:
        raise err(ErrorCode.INSUFFICIENT_BALANCE, "insufficient balance")
    source.balance -= amount
    state.accounts[judge.address].balance += amount


def pay_out(state: ChainState, judge: JudgeState, destination: bytes, amount: int) -> None:
    """Move ``amount`` out of escrow. A refusing destination halts the transaction."""
    escrow = state.accounts[judge.address]
    if escrow.balance < amount:
        raise SpecError(ErrorCode.INVARIANT_VIOLATION, "payout exceeds held balance")

    receiver = state.accounts.get(destination)
    if receiver is None:
        receiver = AccountState(address=destination)
        state.accounts[destination] = receiver
    if receiver.flags & ACCOUNT_FLAG_REJECT_FUNDS:
        raise SpecError(ErrorCode.TRANSFER_FAILED, f"destination {destination.hex()} refused funds")

    escrow.balance -= amount
    receiver.balance += amount


def clear(judge: JudgeState) -> None:
    judge.user1 = None
    judge.user2 = None
    judge.amount_to_match = 0
