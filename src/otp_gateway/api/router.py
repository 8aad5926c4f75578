"""OTP API router — issue and verify one-time passcodes over HTTP.

Endpoints
---------
POST /send-otp     → store the caller's code and email it
POST /verify-otp   → check a submitted code
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from otp_gateway.ledger.models import IssueOutcome, VerifyOutcome
from otp_gateway.ledger.store import OTPLedger

logger = logging.getLogger(__name__)

router = APIRouter(tags=["otp"])

MISSING_FIELDS_MESSAGE = "Email and OTP are required"
SEND_FAILED_MESSAGE = "Failed to send OTP"
VERIFY_FAILED_MESSAGE = "Failed to verify OTP"

# outcome → (status code, message); ``None`` means no message field
VERIFY_RESPONSES: dict[VerifyOutcome, tuple[int, str | None]] = {
    VerifyOutcome.SUCCESS: (200, None),
    VerifyOutcome.NOT_FOUND: (200, "No OTP found for this email"),
    VerifyOutcome.EXPIRED: (200, "OTP has expired"),
    VerifyOutcome.TOO_MANY_ATTEMPTS: (200, "Too many attempts. Please request a new OTP"),
    VerifyOutcome.MISMATCH: (200, "Invalid OTP code"),
    VerifyOutcome.INVALID_INPUT: (400, MISSING_FIELDS_MESSAGE),
}

ISSUE_RESPONSES: dict[IssueOutcome, tuple[int, str | None]] = {
    IssueOutcome.ISSUED: (200, None),
    IssueOutcome.INVALID_INPUT: (400, MISSING_FIELDS_MESSAGE),
    IssueOutcome.DELIVERY_FAILED: (500, SEND_FAILED_MESSAGE),
}


# ── Request models ───────────────────────────────────────

class OTPRequest(BaseModel):
    email: str | None = None
    otp: str | None = None

    @property
    def identity(self) -> str:
        """The email address in the form challenges are keyed by."""
        return (self.email or "").strip().lower()


# ── Helpers ──────────────────────────────────────────────

def get_ledger(request: Request) -> OTPLedger:
    """Return the ledger owned by the running application."""
    return request.app.state.ledger


def otp_response(status_code: int, message: str | None = None) -> JSONResponse:
    """Build the ``{success, message?}`` body used by every OTP endpoint."""
    content: dict = {"success": status_code == 200 and message is None}
    if message is not None:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


# ── Endpoints ────────────────────────────────────────────

@router.post("/send-otp")
async def send_otp(body: OTPRequest, ledger: OTPLedger = Depends(get_ledger)) -> JSONResponse:
    """Store the caller-supplied OTP and deliver it to the email address."""
    try:
        outcome = await ledger.issue(body.identity, body.otp or "")
    except Exception:
        logger.exception("Error sending OTP to %s", body.identity)
        return otp_response(500, SEND_FAILED_MESSAGE)

    return otp_response(*ISSUE_RESPONSES[outcome])


@router.post("/verify-otp")
async def verify_otp(body: OTPRequest, ledger: OTPLedger = Depends(get_ledger)) -> JSONResponse:
    """Check a submitted OTP.

    Every verification result other than malformed input is reported
    with status 200 and ``success: false``.
    """
    try:
        outcome = ledger.verify(body.identity, body.otp or "")
    except Exception:
        logger.exception("Error verifying OTP for %s", body.identity)
        return otp_response(500, VERIFY_FAILED_MESSAGE)

    return otp_response(*VERIFY_RESPONSES[outcome])
