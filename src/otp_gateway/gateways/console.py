"""Logging-only gateway for local development."""

from __future__ import annotations

import logging

from otp_gateway.gateways.base import DeliveryGateway
from otp_gateway.ledger.models import DeliveryPayload

logger = logging.getLogger(__name__)


class LoggingGateway(DeliveryGateway):
    """Writes the OTP to the log instead of sending it.  Never fails."""

    @property
    def name(self) -> str:
        return "log"

    async def send(self, recipient: str, payload: DeliveryPayload) -> bool:
        logger.info(
            "📧 OTP for %s: %s  (would be sent to %s)",
            payload.display_name,
            payload.code,
            recipient,
        )
        return True
