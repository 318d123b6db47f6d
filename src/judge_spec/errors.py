"""Judge error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCategory(IntEnum):
    SUCCESS = 0x00
    VALIDATION = 0x01
    AUTHORIZATION = 0x02
    RESOURCE = 0x03
    STATE = 0x04
    CONTRACT = 0x05
    FATAL = 0xFE
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Success
    SUCCESS = 0x0000

    # Validation
    INVALID_FORMAT = 0x0100
    INVALID_TYPE = 0x0102
    INVALID_SIGNATURE = 0x0103
    INVALID_AMOUNT = 0x0105
    INVALID_ADDRESS = 0x0106
    INVALID_PAYLOAD = 0x0107
    ZERO_AMOUNT = 0x0108
    AMOUNT_MISMATCH = 0x0109
    COMMITMENT_MISMATCH = 0x010A

    # Authorization
    NOT_PARTICIPANT = 0x0200

    # Resource
    INSUFFICIENT_BALANCE = 0x0300

    # State
    ACCOUNT_NOT_FOUND = 0x0400
    JUDGE_NOT_FOUND = 0x0402
    SELF_OPERATION = 0x0409
    ALREADY_FUNDED = 0x0410
    SELF_MATCH = 0x0411
    ALREADY_FINALIZED = 0x0412
    NOT_FINALIZED = 0x0413
    NOT_ARMED = 0x0414

    # Fatal halts: the whole transaction is discarded
    INVARIANT_VIOLATION = 0xFE00
    TRANSFER_FAILED = 0xFE01
    ACTIVATION_FAILED = 0xFE02

    # Internal
    NOT_IMPLEMENTED = 0xFF01


@dataclass(frozen=True)
class SpecError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self.code >> 8)

    @property
    def fatal(self) -> bool:
        """Fatal halts are internal invariant breaks and failed fund movements.

        Everything else is a rejection the caller can correct and resubmit.
        """
        return self.category == ErrorCategory.FATAL


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen (Python 3.13 contextlib compat).
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__"))
_frozen_setattr = SpecError.__setattr__


def _spec_error_setattr(self: SpecError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


SpecError.__setattr__ = _spec_error_setattr  # type: ignore[method-assign]


def err(code: ErrorCode, message: str) -> SpecError:
    return SpecError(code=code, message=message)
