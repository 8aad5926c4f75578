"""Pick the delivery gateway named in the settings."""

from __future__ import annotations

import logging

from otp_gateway.config import Settings
from otp_gateway.gateways.base import DeliveryGateway
from otp_gateway.gateways.console import LoggingGateway
from otp_gateway.gateways.emailjs import EmailJSGateway
from otp_gateway.gateways.smtp import SMTPGateway

logger = logging.getLogger(__name__)


def build_gateway(settings: Settings) -> DeliveryGateway:
    """Return the gateway for ``settings.delivery_backend``.

    Raises ``ValueError`` for an unknown backend name.
    """
    backend = settings.delivery_backend.strip().lower()

    if backend == "emailjs":
        if not (settings.emailjs_service_id and settings.emailjs_template_id):
            logger.warning(
                "EMAILJS_SERVICE_ID / EMAILJS_TEMPLATE_ID not set — delivery will fail"
            )
        return EmailJSGateway(
            service_id=settings.emailjs_service_id,
            template_id=settings.emailjs_template_id,
            public_key=settings.emailjs_public_key,
            private_key=settings.emailjs_private_key,
            from_name=settings.otp_from_name,
            api_url=settings.emailjs_api_url,
            timeout=settings.delivery_timeout_seconds,
        )

    if backend == "smtp":
        return SMTPGateway(
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.email_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
            start_tls=settings.smtp_start_tls,
            subject=settings.otp_subject,
            from_name=settings.otp_from_name,
            timeout=settings.delivery_timeout_seconds,
        )

    if backend == "log":
        logger.warning("Using the logging gateway — OTPs are written to the log only")
        return LoggingGateway()

    raise ValueError(f"Unknown delivery backend: {settings.delivery_backend!r}")
