"""Resolver executor.

The Judge treats a revealed payload as an opaque module. Activation is a
capability: anything with ``activate(state, judge, payload) -> address`` that
raises ``ActivationError`` on refusal can stand in for the execution
environment.
"""

from __future__ import annotations

from typing import Protocol

from .config import MAX_MODULE_SIZE, RESOLVER_MODULE_MAGIC
from .crypto.hash_algorithms import blake3_hash, resolver_address
from .types import AccountState, ChainState, JudgeState, ResolverState


class ActivationError(Exception):
    """The execution environment refused to activate a resolver payload."""


class Activator(Protocol):
    def activate(self, state: ChainState, judge: JudgeState, payload: bytes) -> bytes:
        ...


class ModuleActivator:
    """Deploys the payload as a resolver module at a deterministic address."""

    def __init__(self, max_module_size: int = MAX_MODULE_SIZE):
        self.max_module_size = max_module_size

    def activate(self, state: ChainState, judge: JudgeState, payload: bytes) -> bytes:
        if not payload:
            raise ActivationError("module must not be empty")
        if len(payload) > self.max_module_size:
            raise ActivationError(f"module exceeds {self.max_module_size} bytes")
        if payload[: len(RESOLVER_MODULE_MAGIC)] != RESOLVER_MODULE_MAGIC:
            raise ActivationError("invalid module: not valid bytecode")

        address = resolver_address(judge.address, judge.settlement_count, payload)
        if address in state.resolvers or address in state.accounts:
            raise ActivationError("resolver address already in use")

        state.resolvers[address] = ResolverState(
            address=address,
            judge=judge.address,
            module_hash=blake3_hash(payload),
            module=payload,
        )
        state.accounts[address] = AccountState(address=address)
        return address


DEFAULT_ACTIVATOR = ModuleActivator()
