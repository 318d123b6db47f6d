"""Commitment verifier.

A commitment is only ever seen at reveal time. Verification is a pure function
of its inputs and runs in two ordered steps:

1. recover the signer of the digest and require it to be a registered
   participant (authorship, without looking at the payload);
2. recompute the payload hash and require it to equal the signed digest
   (binding the disclosed payload to that authorship).

Signer recovery uses recoverable secp256k1 ECDSA over the raw 32-byte digest,
so participant addresses are compressed public keys.
"""

from __future__ import annotations

from typing import Iterable

from coincurve import PrivateKey, PublicKey

from ..config import HASH_SIZE, SIGNATURE_SIZE
from ..errors import ErrorCode, SpecError
from ..types import Commitment
from .hash_algorithms import commitment_digest


def check_format(commitment: Commitment) -> None:
    if len(commitment.digest) != HASH_SIZE:
        raise SpecError(ErrorCode.INVALID_FORMAT, f"digest must be {HASH_SIZE} bytes")
    if len(commitment.signature) != SIGNATURE_SIZE:
        raise SpecError(ErrorCode.INVALID_FORMAT, f"signature must be {SIGNATURE_SIZE} bytes")


def recover_signer(digest: bytes, signature: bytes) -> bytes:
    """Return the compressed public key that produced ``signature`` over ``digest``."""
    try:
        public_key = PublicKey.from_signature_and_message(signature, digest, hasher=None)
    except ValueError as exc:
        raise SpecError(ErrorCode.INVALID_SIGNATURE, f"signer recovery failed: {exc}") from exc
    return public_key.format(compressed=True)


def sign_digest(private_key: bytes, digest: bytes) -> bytes:
    return PrivateKey(private_key).sign_recoverable(digest, hasher=None)


def verify_commitment(commitment: Commitment, participants: Iterable[bytes]) -> bytes:
    """Verify ``commitment`` against the registered participants.

    Returns the recovered signer. Raises ``SpecError`` with
    ``INVALID_SIGNATURE`` or ``COMMITMENT_MISMATCH``.
    """
    check_format(commitment)

    signer = recover_signer(commitment.digest, commitment.signature)
    if signer not in set(participants):
        raise SpecError(ErrorCode.INVALID_SIGNATURE, "signer is not a participant")

    if commitment_digest(commitment.payload) != commitment.digest:
        raise SpecError(ErrorCode.COMMITMENT_MISMATCH, "payload does not hash to digest")

    return signer
