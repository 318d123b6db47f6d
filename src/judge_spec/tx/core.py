"""Core transaction specs (Transfers)."""

from __future__ import annotations

from copy import deepcopy

from ..config import ACCOUNT_FLAG_REJECT_FUNDS, MAX_TRANSFER_COUNT
from ..errors import ErrorCode, SpecError
from ..types import AccountState, ChainState, Transaction, TransactionType, TransferPayload

U64_MAX = (1 << 64) - 1


def verify(state: ChainState, tx: Transaction) -> None:
    if tx.tx_type != TransactionType.TRANSFERS:
        raise SpecError(ErrorCode.INVALID_TYPE, "unsupported core tx type")

    if tx.value != 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "transfers carry amounts in the payload")

    if not isinstance(tx.payload, list) or not tx.payload:
        raise SpecError(ErrorCode.INVALID_FORMAT, "transfers list empty")

    if len(tx.payload) > MAX_TRANSFER_COUNT:
        raise SpecError(ErrorCode.INVALID_FORMAT, "too many transfers")

    total_amount = 0
    for t in tx.payload:
        if not isinstance(t, TransferPayload):
            raise SpecError(ErrorCode.INVALID_PAYLOAD, "invalid transfer payload")
        if t.destination == tx.source:
            raise SpecError(ErrorCode.SELF_OPERATION, "sender cannot be receiver")
        if t.amount < 0:
            raise SpecError(ErrorCode.INVALID_AMOUNT, "transfer amount invalid")
        # Escrowed value only enters a judge through a deposit.
        if t.destination in state.judges:
            raise SpecError(ErrorCode.INVALID_ADDRESS, "cannot transfer into a judge")
        receiver = state.accounts.get(t.destination)
        if receiver is not None and receiver.flags & ACCOUNT_FLAG_REJECT_FUNDS:
            raise SpecError(ErrorCode.INVALID_ADDRESS, "receiver refuses funds")
        total_amount += t.amount
        if total_amount > U64_MAX:
            raise SpecError(ErrorCode.INVALID_AMOUNT, "total transfer amount overflow")

    sender = state.accounts.get(tx.source)
    if sender is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "sender not found")
    if sender.balance < total_amount:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient balance for transfers")


def apply(state: ChainState, tx: Transaction) -> ChainState:
    next_state = deepcopy(state)
    sender = next_state.accounts.get(tx.source)
    if sender is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "sender not found")

    for t in tx.payload:
        if sender.balance < t.amount:
            raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient balance")
        sender.balance -= t.amount
        receiver = next_state.accounts.get(t.destination)
        if receiver is None:
            receiver = AccountState(address=t.destination, balance=0)
            next_state.accounts[t.destination] = receiver
        if receiver.balance + t.amount > U64_MAX:
            raise SpecError(ErrorCode.INVALID_AMOUNT, "receiver balance overflow")
        receiver.balance += t.amount

    return next_state
