"""Core types for Judge Python specs.

The ledger surface is intentionally small: plain value transfers plus the
Judge contract operations (create, deposit, reveal, release, reset).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TransactionType(Enum):
    TRANSFERS = "transfers"
    CREATE_JUDGE = "create_judge"
    JUDGE_DEPOSIT = "judge_deposit"
    JUDGE_REVEAL = "judge_reveal"
    JUDGE_RELEASE = "judge_release"
    JUDGE_RESET = "judge_reset"


class EventKind(Enum):
    DEPOSIT_OBSERVED = "deposit_observed"
    SETTLEMENT = "settlement"
    RELEASED = "released"


@dataclass
class TransferPayload:
    destination: bytes
    amount: int


@dataclass
class Transaction:
    source: bytes
    tx_type: TransactionType
    payload: object
    # Value attached to the call; only deposits and transfers move it.
    value: int = 0


@dataclass
class AccountState:
    address: bytes
    balance: int = 0
    flags: int = 0


@dataclass
class Commitment:
    digest: bytes
    signature: bytes
    payload: bytes


@dataclass
class JudgeState:
    address: bytes
    creator: bytes
    collateral_percentage: int
    reusable: bool = False
    user1: Optional[bytes] = None
    user2: Optional[bytes] = None
    amount_to_match: int = 0
    finalized: bool = False
    resolver: Optional[bytes] = None
    settlement_count: int = 0

    @property
    def participants(self) -> tuple[bytes, ...]:
        return tuple(u for u in (self.user1, self.user2) if u is not None)

    @property
    def armed(self) -> bool:
        return self.user1 is not None and self.user2 is not None


@dataclass
class ResolverState:
    address: bytes
    judge: bytes
    module_hash: bytes
    module: bytes = b""


@dataclass
class Event:
    kind: EventKind
    judge: bytes
    data: dict[str, object] = field(default_factory=dict)


@dataclass
class ChainState:
    accounts: dict[bytes, AccountState] = field(default_factory=dict)
    judges: dict[bytes, JudgeState] = field(default_factory=dict)
    resolvers: dict[bytes, ResolverState] = field(default_factory=dict)
    events: list[Event] = field(default_factory=list)

    def balance_of(self, address: bytes) -> int:
        acct = self.accounts.get(address)
        return acct.balance if acct is not None else 0
