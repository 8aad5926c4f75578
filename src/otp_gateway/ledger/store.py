"""In-memory OTP ledger with expiry and attempt limiting."""

from __future__ import annotations

import asyncio
import hmac
import logging
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from otp_gateway.ledger.models import (
    Challenge,
    DeliveryPayload,
    IssueOutcome,
    VerifyOutcome,
)

if TYPE_CHECKING:
    from otp_gateway.gateways.base import DeliveryGateway

logger = logging.getLogger(__name__)

# Defaults for the observed policy
DEFAULT_TTL_SECONDS = 300  # 5 minutes
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_DELIVERY_TIMEOUT = 10.0


class OTPLedger:
    """Stores at most one :class:`Challenge` per identity.

    Each entry maps ``identity → Challenge``.  Expired entries are removed
    lazily when they are read, or eagerly by :meth:`purge_expired`.

    All reads and writes of the map happen under a single lock, so a
    verify can never interleave with another verify or with a re-issue
    for the same identity.  The gateway call in :meth:`issue` runs
    outside the lock.
    """

    def __init__(
        self,
        gateway: DeliveryGateway,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delivery_timeout: float = DEFAULT_DELIVERY_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._gateway = gateway
        self._ttl = ttl_seconds
        self._max_attempts = max_attempts
        self._delivery_timeout = delivery_timeout
        self._clock = clock
        self._challenges: dict[str, Challenge] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._challenges)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._challenges

    # ── Issue ────────────────────────────────────────────

    async def issue(self, identity: str, code: str) -> IssueOutcome:
        """Store a fresh challenge for *identity* and deliver *code*.

        Any previous challenge for the same identity is replaced, attempt
        count included.  The challenge stays stored when delivery fails,
        so the caller may still verify or simply issue again.
        """
        if not identity or not code:
            return IssueOutcome.INVALID_INPUT

        challenge = Challenge(
            identity=identity,
            code=code,
            expires_at=self._clock() + self._ttl,
        )
        with self._lock:
            self._challenges[identity] = challenge
        logger.info("OTP challenge stored for %s", identity)

        payload = DeliveryPayload.for_recipient(identity, code)
        try:
            delivered = await asyncio.wait_for(
                self._gateway.send(identity, payload), timeout=self._delivery_timeout
            )
        except asyncio.TimeoutError:
            logger.error(
                "OTP delivery to %s timed out after %.1fs",
                identity,
                self._delivery_timeout,
            )
            return IssueOutcome.DELIVERY_FAILED

        if not delivered:
            logger.error("OTP delivery to %s failed", identity)
            return IssueOutcome.DELIVERY_FAILED

        logger.info("OTP delivered to %s", identity)
        return IssueOutcome.ISSUED

    # ── Verify ───────────────────────────────────────────

    def verify(self, identity: str, submitted_code: str) -> VerifyOutcome:
        """Check *submitted_code* against the challenge for *identity*.

        The checks run in a fixed order: input, presence, expiry, attempt
        limit, then comparison.  An expired challenge therefore reports
        ``EXPIRED`` even when its attempts are also exhausted.  Every call
        that reaches the comparison counts as an attempt.
        """
        if not identity or not submitted_code:
            return VerifyOutcome.INVALID_INPUT

        with self._lock:
            challenge = self._challenges.get(identity)
            if challenge is None:
                return VerifyOutcome.NOT_FOUND

            if challenge.is_expired(self._clock()):
                del self._challenges[identity]
                logger.info("OTP expired for %s", identity)
                return VerifyOutcome.EXPIRED

            if challenge.attempts_used >= self._max_attempts:
                del self._challenges[identity]
                logger.info("OTP attempt limit reached for %s", identity)
                return VerifyOutcome.TOO_MANY_ATTEMPTS

            challenge.attempts_used += 1

            if not hmac.compare_digest(
                challenge.code.encode("utf-8", "surrogatepass"),
                submitted_code.encode("utf-8", "surrogatepass"),
            ):
                logger.info(
                    "OTP mismatch for %s (attempt %d/%d)",
                    identity,
                    challenge.attempts_used,
                    self._max_attempts,
                )
                return VerifyOutcome.MISMATCH

            del self._challenges[identity]

        logger.info("OTP verified for %s", identity)
        return VerifyOutcome.SUCCESS

    # ── Maintenance ──────────────────────────────────────

    def purge_expired(self) -> int:
        """Drop every expired challenge and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [
                identity
                for identity, challenge in self._challenges.items()
                if challenge.is_expired(now)
            ]
            for identity in expired:
                del self._challenges[identity]

        if expired:
            logger.debug("Purged %d expired OTP challenge(s)", len(expired))
        return len(expired)

    def clear(self) -> None:
        """Remove every challenge (e.g. on shutdown or in tests)."""
        with self._lock:
            self._challenges.clear()
