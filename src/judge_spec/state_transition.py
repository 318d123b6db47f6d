"""State transition entrypoints for Judge Python specs."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Optional

from .errors import ErrorCode, SpecError
from .resolver import Activator
from .types import ChainState, Transaction, TransactionType
from .tx import core as tx_core
from .tx import judge as tx_judge

logger = logging.getLogger(__name__)

_JUDGE_TYPES = frozenset({
    TransactionType.CREATE_JUDGE,
    TransactionType.JUDGE_DEPOSIT,
    TransactionType.JUDGE_REVEAL,
    TransactionType.JUDGE_RELEASE,
    TransactionType.JUDGE_RESET,
})


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(self, ok: bool, error: Optional[SpecError] = None):
        self.ok = ok
        self.error = error

    @property
    def fatal(self) -> bool:
        return self.error is not None and self.error.fatal

    @classmethod
    def success(cls) -> "TransitionResult":
        return cls(True, None)

    @classmethod
    def failure(cls, error: SpecError) -> "TransitionResult":
        return cls(False, error)


def _dispatch_verify(state: ChainState, tx: Transaction) -> None:
    tt = tx.tx_type
    if tt == TransactionType.TRANSFERS:
        return tx_core.verify(state, tx)
    if tt in _JUDGE_TYPES:
        return tx_judge.verify(state, tx)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"verify not implemented for {tx.tx_type}")


def _dispatch_apply(
    state: ChainState, tx: Transaction, activator: Optional[Activator]
) -> ChainState:
    tt = tx.tx_type
    if tt == TransactionType.TRANSFERS:
        return tx_core.apply(state, tx)
    if tt in _JUDGE_TYPES:
        return tx_judge.apply(state, tx, activator)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"apply not implemented for {tx.tx_type}")


def _verify_common(state: ChainState, tx: Transaction) -> None:
    if tx.source not in state.accounts:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "sender not found")
    if tx.value < 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "value negative")


def verify_tx(state: ChainState, tx: Transaction) -> TransitionResult:
    """Stateless + stateful verification for a single tx."""
    try:
        _verify_common(state, tx)
        _dispatch_verify(state, tx)
        return TransitionResult.success()
    except SpecError as exc:
        return TransitionResult.failure(exc)


def apply_tx(
    state: ChainState, tx: Transaction, activator: Optional[Activator] = None
) -> tuple[ChainState, TransitionResult]:
    """Apply tx to state after verification.

    Failed-tx semantics:
    - Rejection (pre-validation failure): state unchanged
    - Fatal halt (execution failure): state unchanged, nothing of the
      partially executed tx survives
    """
    try:
        _verify_common(state, tx)
        _dispatch_verify(state, tx)
    except SpecError as exc:
        logger.debug("rejected %s from %s: %s", tx.tx_type.value, tx.source.hex(), exc)
        return state, TransitionResult.failure(exc)

    working = deepcopy(state)
    try:
        working = _dispatch_apply(working, tx, activator)
    except SpecError as exc:
        if exc.fatal:
            logger.error("halted %s from %s: %s", tx.tx_type.value, tx.source.hex(), exc)
        else:
            logger.debug("aborted %s from %s: %s", tx.tx_type.value, tx.source.hex(), exc)
        return state, TransitionResult.failure(exc)

    return working, TransitionResult.success()


def apply_block(
    state: ChainState, txs: list[Transaction], activator: Optional[Activator] = None
) -> tuple[ChainState, TransitionResult]:
    """Apply a block worth of transactions in order (block-atomic semantics).

    If any transaction fails, the entire block is rejected and the state is
    unchanged.
    """
    working = state
    for tx in txs:
        working, result = apply_tx(working, tx, activator)
        if not result.ok:
            return state, result
    return working, TransitionResult.success()
