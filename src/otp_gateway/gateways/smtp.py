"""SMTP gateway — sends OTP emails via async SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage

import aiosmtplib

from otp_gateway.gateways.base import DeliveryGateway
from otp_gateway.ledger.models import DeliveryPayload

logger = logging.getLogger(__name__)


class SMTPGateway(DeliveryGateway):
    """Sends the OTP as a plain-text email using the configured SMTP server."""

    def __init__(
        self,
        hostname: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        start_tls: bool = True,
        subject: str = "Your verification code",
        from_name: str = "OTP Verification Service",
        timeout: float = 10.0,
    ) -> None:
        self._hostname = hostname
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._start_tls = start_tls
        self._subject = subject
        self._from_name = from_name
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "smtp"

    def build_message(self, recipient: str, payload: DeliveryPayload) -> EmailMessage:
        body = (
            f"Hello {payload.display_name},\n\n"
            f"Your verification code is: {payload.code}\n\n"
            "If you did not request this code, you can ignore this email.\n\n"
            "Best regards,\n"
            f"{self._from_name}"
        )

        msg = EmailMessage()
        msg["Subject"] = self._subject
        msg["From"] = f"{self._from_name} <{self._sender}>"
        msg["To"] = recipient
        msg.set_content(body)
        return msg

    async def send(self, recipient: str, payload: DeliveryPayload) -> bool:
        msg = self.build_message(recipient, payload)
        logger.info("Sending OTP email to %s via %s", recipient, self._hostname)
        try:
            await aiosmtplib.send(
                msg,
                hostname=self._hostname,
                port=self._port,
                username=self._username or None,
                password=self._password or None,
                start_tls=self._start_tls,
                timeout=self._timeout,
            )
        except aiosmtplib.SMTPException as exc:
            logger.exception("SMTP send to %s failed: %s", recipient, exc)
            return False
        return True
