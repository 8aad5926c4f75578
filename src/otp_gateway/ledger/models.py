"""Value objects for the OTP ledger."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class IssueOutcome(str, Enum):
    """Result of :meth:`OTPLedger.issue`."""

    ISSUED = "issued"
    INVALID_INPUT = "invalid_input"
    DELIVERY_FAILED = "delivery_failed"


class VerifyOutcome(str, Enum):
    """Result of :meth:`OTPLedger.verify`.

    Only ``SUCCESS`` means the code was accepted.  The other values are
    ordinary protocol outcomes, not errors.
    """

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    MISMATCH = "mismatch"
    INVALID_INPUT = "invalid_input"


@dataclass
class Challenge:
    """The outstanding OTP for one identity."""

    identity: str
    code: str
    expires_at: float
    attempts_used: int = 0

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class DeliveryPayload:
    """What a delivery gateway needs to render the OTP message."""

    code: str
    display_name: str

    @classmethod
    def for_recipient(cls, recipient: str, code: str) -> DeliveryPayload:
        """Build a payload greeting the recipient by the local part of their address."""
        return cls(code=code, display_name=recipient.split("@")[0])
