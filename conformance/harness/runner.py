#!/usr/bin/env python3
"""
Judge Scenario Conformance Runner

Replays YAML scenario vectors (named accounts, a judge, and a sequence of
operations with expected outcomes) through judge_spec and reports any
divergence from the expected results.
"""

import glob
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import yaml

from judge_spec.crypto.hash_algorithms import commitment_digest
from judge_spec.state_transition import apply_tx
from judge_spec.test_accounts import NAMED_ACCOUNTS, sign_for
from judge_spec.tx.judge import next_judge_address
from judge_spec.types import (
    AccountState,
    ChainState,
    Transaction,
    TransactionType,
    TransferPayload,
)

from comparator import ResultComparator
from config import HarnessConfig
from reporter import ConformanceReport, ReportGenerator, SuiteResult, VectorResult

logger = logging.getLogger(__name__)

_OPS = {
    "deposit": TransactionType.JUDGE_DEPOSIT,
    "reveal": TransactionType.JUDGE_REVEAL,
    "release": TransactionType.JUDGE_RELEASE,
    "reset": TransactionType.JUDGE_RESET,
}


class VectorError(ValueError):
    """A scenario vector is malformed."""


def _address(name: str) -> bytes:
    try:
        return NAMED_ACCOUNTS[name.lower()]
    except KeyError:
        raise VectorError(f"unknown account name: {name}") from None


def _payload_bytes(step: Dict[str, Any], key: str) -> Optional[bytes]:
    if f"{key}_hex" in step:
        try:
            return bytes.fromhex(str(step[f"{key}_hex"]))
        except ValueError:
            raise VectorError(f"{key}_hex is not valid hex") from None
    if f"{key}_text" in step:
        return str(step[f"{key}_text"]).encode()
    return None


class ScenarioRunner:
    """Runs scenario vectors in-process against judge_spec."""

    def __init__(self, config: HarnessConfig):
        self.config = config
        self.comparator = ResultComparator()
        self.reporter = ReportGenerator(config.result_dir)

    def build_genesis(self, vector: Dict[str, Any]) -> tuple[ChainState, bytes]:
        """Create named accounts and the judge under test."""
        state = ChainState()
        accounts = vector.get("accounts") or {
            name: self.config.default_account_balance for name in ("alice", "bob", "carol")
        }
        for name, balance in accounts.items():
            addr = _address(name)
            state.accounts[addr] = AccountState(address=addr, balance=int(balance))

        judge_cfg = vector.get("judge") or {}
        creator = _address(judge_cfg.get("creator", "carol"))
        if creator not in state.accounts:
            state.accounts[creator] = AccountState(address=creator)
        judge = next_judge_address(state, creator)
        create = Transaction(
            source=creator,
            tx_type=TransactionType.CREATE_JUDGE,
            payload={
                "collateral_percentage": judge_cfg.get(
                    "collateral_percentage", self.config.default_collateral_percentage
                ),
                "reusable": judge_cfg.get("reusable", False),
            },
        )
        state, result = apply_tx(state, create)
        if not result.ok:
            raise VectorError(f"judge creation failed: {result.error}")
        return state, judge

    def build_tx(self, step: Dict[str, Any], judge: bytes) -> Transaction:
        """Translate one scenario step into a transaction."""
        sender = _address(step["sender"])
        op = step["op"]

        if op == "transfer":
            return Transaction(
                source=sender,
                tx_type=TransactionType.TRANSFERS,
                payload=[TransferPayload(destination=_address(step["to"]), amount=int(step["amount"]))],
            )
        if op not in _OPS:
            raise VectorError(f"unknown op: {op}")

        payload: Dict[str, Any] = {"judge": judge}
        if op == "reveal":
            module = _payload_bytes(step, "payload")
            if module is None:
                raise VectorError("reveal step needs payload_hex or payload_text")
            committed = _payload_bytes(step, "committed")
            digest = commitment_digest(module if committed is None else committed)
            payload.update(
                digest=digest,
                signature=sign_for(_address(step.get("signer", step["sender"])), digest),
                payload=module,
            )
        return Transaction(
            source=sender,
            tx_type=_OPS[op],
            payload=payload,
            value=int(step.get("value", 0)),
        )

    def snapshot(self, state: ChainState, judge: bytes) -> Dict[str, Any]:
        """Observable outcome in the vocabulary used by ``expected`` blocks."""
        names = {addr: name for name, addr in NAMED_ACCOUNTS.items()}
        j = state.judges[judge]
        return {
            "balances": {
                names[addr]: acct.balance
                for addr, acct in state.accounts.items()
                if addr in names
            },
            "judge": {
                "balance": state.balance_of(judge),
                "user1": names.get(j.user1) if j.user1 else None,
                "user2": names.get(j.user2) if j.user2 else None,
                "amount_to_match": j.amount_to_match,
                "finalized": j.finalized,
                "settled_to_resolver": state.balance_of(j.resolver) if j.resolver else None,
            },
            "events": [e.kind.value for e in state.events],
        }

    def run_vector(self, vector: Dict[str, Any]) -> VectorResult:
        """Run a single test vector."""
        outcome = VectorResult(vector_name=vector.get("name", "unknown"))

        try:
            state, judge = self.build_genesis(vector)
            # Creation is setup, not part of the observed event stream.
            state.events.clear()

            divergences = []
            for index, step in enumerate(vector.get("steps", [])):
                tx = self.build_tx(step, judge)
                state, result = apply_tx(state, tx)
                actual_error = result.error.code.name if result.error else None
                outcome.step_errors.append(actual_error)
                logger.debug(f"  step {index} {step['op']} by {step['sender']}: {actual_error or 'OK'}")
                divergences.extend(
                    self.comparator.compare_step(
                        index, step.get("expect"), actual_error, outcome.vector_name
                    )
                )

            outcome.final = self.snapshot(state, judge)
            divergences.extend(
                self.comparator.compare_final(
                    vector.get("expected", {}), outcome.final, outcome.vector_name
                )
            )
            outcome.comparison = self.comparator.combine(divergences)

        except (VectorError, KeyError) as e:
            logger.exception(f"Error running vector {outcome.vector_name}")
            outcome.error = str(e)

        return outcome

    def run_suite(self, suite_path: str) -> SuiteResult:
        """Run a test suite from a YAML file."""
        suite = SuiteResult(suite_name=Path(suite_path).stem, results=[])
        logger.info(f"Running suite: {suite.suite_name}")

        with open(suite_path) as f:
            vectors = (yaml.safe_load(f) or {}).get("test_vectors", [])

        for vector in vectors:
            result = self.run_vector(vector)
            result.suite_name = suite.suite_name
            suite.results.append(result)
            logger.info(f"  [{'PASS' if result.passed else 'FAIL'}] {result.vector_name}")

            if not result.passed and self.config.stop_on_first_failure:
                break

        return suite

    def run_all(self, vector_paths: List[str]) -> ConformanceReport:
        """Run all test suites."""
        start_time = time.time()

        suites = []
        for path in vector_paths:
            suite = self.run_suite(path)
            suites.append(suite)
            if suite.failed and self.config.stop_on_first_failure:
                break

        return self.reporter.generate_report(suites, (time.time() - start_time) * 1000)


def find_vector_files(vector_dir: str) -> List[str]:
    """Find all vector YAML files in directory."""
    patterns = [
        os.path.join(vector_dir, "**", "*.yaml"),
        os.path.join(vector_dir, "**", "*.yml"),
    ]

    files = []
    for pattern in patterns:
        files.extend(glob.glob(pattern, recursive=True))

    return sorted(files)


@click.command()
@click.option(
    "--vectors",
    default=None,
    help="Path to vectors directory or specific YAML file",
)
@click.option(
    "--result-dir",
    default=None,
    help="Directory to write results",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--stop-on-failure",
    is_flag=True,
    help="Stop on first test failure",
)
def main(
    vectors: Optional[str],
    result_dir: Optional[str],
    verbose: bool,
    stop_on_failure: bool,
) -> None:
    """Run Judge scenario conformance vectors."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    # Load config from environment, then override with CLI args
    config = HarnessConfig.from_env()

    if result_dir:
        config.result_dir = result_dir
    if verbose:
        config.verbose = True
    if config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if stop_on_failure:
        config.stop_on_first_failure = True

    vector_dir = vectors or config.vector_dir
    if os.path.isfile(vector_dir):
        vector_files = [vector_dir]
    else:
        vector_files = find_vector_files(vector_dir)

    if not vector_files:
        logger.error(f"No vector files found in {vector_dir}")
        sys.exit(1)

    logger.info(f"Found {len(vector_files)} vector files")

    runner = ScenarioRunner(config)
    report = runner.run_all(vector_files)

    runner.reporter.write_json_report(report)
    runner.reporter.write_summary(report)
    click.echo(runner.reporter.format_summary(report))

    sys.exit(0 if report.total_failed == 0 else 1)


if __name__ == "__main__":
    main()
