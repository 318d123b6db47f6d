"""Judge creation and deposit specs."""

from __future__ import annotations

import pytest

from judge_spec import escrow
from judge_spec.config import COIN_VALUE, DEFAULT_COLLATERAL_PERCENTAGE
from judge_spec.crypto.hash_algorithms import judge_address
from judge_spec.errors import ErrorCode, SpecError
from judge_spec.state_transition import apply_tx
from judge_spec.test_accounts import ALICE, BOB, CAROL
from judge_spec.types import (
    AccountState,
    ChainState,
    EventKind,
    JudgeState,
    Transaction,
    TransactionType,
)

_FIXTURE = "transactions/judge/deposit.json"
JUDGE = judge_address(CAROL, 0)


def _base_state() -> ChainState:
    state = ChainState()
    state.accounts[ALICE] = AccountState(address=ALICE, balance=100 * COIN_VALUE)
    state.accounts[BOB] = AccountState(address=BOB, balance=100 * COIN_VALUE)
    state.accounts[CAROL] = AccountState(address=CAROL, balance=100 * COIN_VALUE)
    state.accounts[JUDGE] = AccountState(address=JUDGE)
    state.judges[JUDGE] = JudgeState(
        address=JUDGE, creator=CAROL, collateral_percentage=DEFAULT_COLLATERAL_PERCENTAGE
    )
    return state


def _one_deposit_state(amount: int = 10 * COIN_VALUE) -> ChainState:
    state = _base_state()
    state.accounts[ALICE].balance -= amount
    state.accounts[JUDGE].balance = amount
    judge = state.judges[JUDGE]
    judge.user1 = ALICE
    judge.amount_to_match = amount
    return state


def _deposit(sender: bytes, value: int, judge: bytes = JUDGE) -> Transaction:
    return Transaction(
        source=sender,
        tx_type=TransactionType.JUDGE_DEPOSIT,
        payload={"judge": judge},
        value=value,
    )


# --- create_judge specs ---


def test_create_judge_registers_instance() -> None:
    state = ChainState()
    state.accounts[CAROL] = AccountState(address=CAROL, balance=COIN_VALUE)
    tx = Transaction(
        source=CAROL,
        tx_type=TransactionType.CREATE_JUDGE,
        payload={"collateral_percentage": 5},
    )
    post, result = apply_tx(state, tx)

    assert result.ok
    judge = post.judges[judge_address(CAROL, 0)]
    assert judge.collateral_percentage == 5
    assert judge.reusable is False
    assert judge.user1 is None and judge.user2 is None
    assert post.balance_of(judge.address) == 0
    assert not state.judges


def test_create_judge_defaults_collateral() -> None:
    state = ChainState()
    state.accounts[CAROL] = AccountState(address=CAROL)
    tx = Transaction(source=CAROL, tx_type=TransactionType.CREATE_JUDGE, payload={})
    post, result = apply_tx(state, tx)

    assert result.ok
    assert post.judges[judge_address(CAROL, 0)].collateral_percentage == DEFAULT_COLLATERAL_PERCENTAGE


def test_create_two_judges_get_distinct_addresses() -> None:
    state = ChainState()
    state.accounts[CAROL] = AccountState(address=CAROL)
    tx = Transaction(source=CAROL, tx_type=TransactionType.CREATE_JUDGE, payload={})
    state, _ = apply_tx(state, tx)
    state, result = apply_tx(state, tx)

    assert result.ok
    assert set(state.judges) == {judge_address(CAROL, 0), judge_address(CAROL, 1)}


@pytest.mark.parametrize("pct", [-1, 101, "1", True])
def test_create_judge_invalid_collateral(pct) -> None:
    state = ChainState()
    state.accounts[CAROL] = AccountState(address=CAROL)
    tx = Transaction(
        source=CAROL,
        tx_type=TransactionType.CREATE_JUDGE,
        payload={"collateral_percentage": pct},
    )
    post, result = apply_tx(state, tx)

    assert result.error.code == ErrorCode.INVALID_PAYLOAD
    assert post is state


@pytest.mark.parametrize("reusable", ["false", 1, 0, None])
def test_create_judge_reusable_must_be_bool(reusable) -> None:
    state = ChainState()
    state.accounts[CAROL] = AccountState(address=CAROL)
    tx = Transaction(
        source=CAROL,
        tx_type=TransactionType.CREATE_JUDGE,
        payload={"reusable": reusable},
    )
    post, result = apply_tx(state, tx)

    assert result.error.code == ErrorCode.INVALID_PAYLOAD
    assert post is state
    assert not post.judges


def test_create_judge_rejects_value() -> None:
    state = ChainState()
    state.accounts[CAROL] = AccountState(address=CAROL, balance=COIN_VALUE)
    tx = Transaction(source=CAROL, tx_type=TransactionType.CREATE_JUDGE, payload={}, value=1)
    _, result = apply_tx(state, tx)

    assert result.error.code == ErrorCode.INVALID_AMOUNT


# --- deposit specs ---


def test_first_deposit_registers_user1(state_test_group) -> None:
    post, result = state_test_group(
        _FIXTURE, "first_deposit_registers_user1", _base_state(), _deposit(ALICE, 10 * COIN_VALUE)
    )

    assert result.ok
    judge = post.judges[JUDGE]
    assert judge.user1 == ALICE
    assert judge.user2 is None
    assert judge.amount_to_match == 10 * COIN_VALUE
    assert post.balance_of(JUDGE) == 10 * COIN_VALUE
    assert post.balance_of(ALICE) == 90 * COIN_VALUE


def test_deposit_emits_event(state_test_group) -> None:
    post, _ = state_test_group(
        _FIXTURE, "deposit_emits_event", _base_state(), _deposit(ALICE, 3 * COIN_VALUE)
    )

    assert len(post.events) == 1
    event = post.events[0]
    assert event.kind == EventKind.DEPOSIT_OBSERVED
    assert event.judge == JUDGE
    assert event.data == {"sender": ALICE, "amount": 3 * COIN_VALUE}


def test_second_deposit_arms_judge(state_test_group) -> None:
    post, result = state_test_group(
        _FIXTURE, "second_deposit_arms_judge", _one_deposit_state(), _deposit(BOB, 10 * COIN_VALUE)
    )

    assert result.ok
    judge = post.judges[JUDGE]
    assert judge.armed
    assert judge.user2 == BOB
    assert post.balance_of(JUDGE) == 2 * judge.amount_to_match


def test_second_deposit_amount_mismatch(state_test_group) -> None:
    pre = _one_deposit_state()
    post, result = state_test_group(
        _FIXTURE, "second_deposit_amount_mismatch", pre, _deposit(BOB, 7 * COIN_VALUE)
    )

    assert result.error.code == ErrorCode.AMOUNT_MISMATCH
    assert post is pre
    assert post.balance_of(JUDGE) == 10 * COIN_VALUE
    assert post.judges[JUDGE].user2 is None


def test_second_deposit_self_match(state_test_group) -> None:
    pre = _one_deposit_state()
    post, result = state_test_group(
        _FIXTURE, "second_deposit_self_match", pre, _deposit(ALICE, 10 * COIN_VALUE)
    )

    assert result.error.code == ErrorCode.SELF_MATCH
    assert post.balance_of(JUDGE) == 10 * COIN_VALUE


def test_deposit_zero_amount(state_test_group) -> None:
    _, result = state_test_group(
        _FIXTURE, "deposit_zero_amount", _base_state(), _deposit(ALICE, 0)
    )

    assert result.error.code == ErrorCode.ZERO_AMOUNT


def test_deposit_when_armed_already_funded(state_test_group) -> None:
    pre = _one_deposit_state()
    pre, _ = apply_tx(pre, _deposit(BOB, 10 * COIN_VALUE))
    post, result = state_test_group(
        _FIXTURE, "deposit_when_armed", pre, _deposit(CAROL, 10 * COIN_VALUE)
    )

    assert result.error.code == ErrorCode.ALREADY_FUNDED
    assert post.balance_of(JUDGE) == 20 * COIN_VALUE
    assert post.balance_of(CAROL) == 100 * COIN_VALUE


def test_deposit_insufficient_balance(state_test_group) -> None:
    _, result = state_test_group(
        _FIXTURE, "deposit_insufficient_balance", _base_state(), _deposit(ALICE, 101 * COIN_VALUE)
    )

    assert result.error.code == ErrorCode.INSUFFICIENT_BALANCE


def test_deposit_unknown_judge() -> None:
    _, result = apply_tx(_base_state(), _deposit(ALICE, COIN_VALUE, judge=bytes(32)))

    assert result.error.code == ErrorCode.JUDGE_NOT_FOUND


@pytest.mark.parametrize(
    ("second_sender", "second_amount", "accepted"),
    [
        (BOB, 10 * COIN_VALUE, True),
        (CAROL, 10 * COIN_VALUE, True),
        (BOB, 10 * COIN_VALUE + 1, False),
        (BOB, 10 * COIN_VALUE - 1, False),
        (ALICE, 10 * COIN_VALUE, False),
    ],
)
def test_second_deposit_acceptance_rule(second_sender, second_amount, accepted) -> None:
    pre = _one_deposit_state()
    post, result = apply_tx(pre, _deposit(second_sender, second_amount))

    assert result.ok is accepted
    if accepted:
        assert post.balance_of(JUDGE) == 2 * post.judges[JUDGE].amount_to_match
    else:
        assert post.balance_of(JUDGE) == 10 * COIN_VALUE
        assert post.judges[JUDGE].user2 is None


# --- escrow invariant ---


def test_second_deposit_with_skewed_escrow_halts(state_test_group) -> None:
    pre = _one_deposit_state()
    # Escrow holds more than the recorded stake.
    pre.accounts[JUDGE].balance += 5 * COIN_VALUE
    post, result = state_test_group(
        _FIXTURE, "second_deposit_skewed_escrow", pre, _deposit(BOB, 10 * COIN_VALUE)
    )

    assert result.error.code == ErrorCode.INVARIANT_VIOLATION
    assert result.fatal
    assert post is pre
    assert post.judges[JUDGE].user2 is None
    assert post.balance_of(BOB) == 100 * COIN_VALUE


def test_pay_out_beyond_held_balance() -> None:
    state = _one_deposit_state()
    judge = state.judges[JUDGE]

    with pytest.raises(SpecError) as exc_info:
        escrow.pay_out(state, judge, BOB, 10 * COIN_VALUE + 1)

    assert exc_info.value.code == ErrorCode.INVARIANT_VIOLATION
    assert exc_info.value.fatal
    assert state.balance_of(JUDGE) == 10 * COIN_VALUE
    assert state.balance_of(BOB) == 100 * COIN_VALUE
