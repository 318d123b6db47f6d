"""Hash algorithm assignments for the Judge protocol."""

from __future__ import annotations

from dataclasses import dataclass

from blake3 import blake3

from ..config import HASH_SIZE, JUDGE_ADDRESS_PREFIX, RESOLVER_ADDRESS_PREFIX


@dataclass(frozen=True)
class HashAssignment:
    purpose: str
    algorithm: str
    output_size: int
    input_spec: str


ASSIGNMENTS = [
    HashAssignment("commitment_digest", "BLAKE3", HASH_SIZE, "raw resolver payload bytes"),
    HashAssignment("judge_address", "BLAKE3", HASH_SIZE, "0xfe || creator || u64_be(judge_index)"),
    HashAssignment(
        "resolver_address",
        "BLAKE3",
        HASH_SIZE,
        "0xff || judge || u64_be(settlement_count) || module_hash",
    ),
    HashAssignment("state_digest", "BLAKE3", HASH_SIZE, "canonical state encoding (v1)"),
]


def blake3_hash(data: bytes) -> bytes:
    return blake3(data).digest()


def commitment_digest(payload: bytes) -> bytes:
    return blake3_hash(payload)


def judge_address(creator: bytes, index: int) -> bytes:
    return blake3_hash(JUDGE_ADDRESS_PREFIX + creator + index.to_bytes(8, "big"))


def resolver_address(judge: bytes, settlement_count: int, module: bytes) -> bytes:
    code_hash = blake3_hash(module)
    data = RESOLVER_ADDRESS_PREFIX + judge + settlement_count.to_bytes(8, "big") + code_hash
    return blake3_hash(data)
