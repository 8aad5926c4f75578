"""EmailJS gateway — delivers OTPs through the EmailJS REST API.

The template configured in EmailJS receives ``to_email``, ``otp``,
``from_name`` and ``to_name`` as its parameters.
"""

from __future__ import annotations

import logging

import httpx

from otp_gateway.gateways.base import DeliveryGateway
from otp_gateway.ledger.models import DeliveryPayload

logger = logging.getLogger(__name__)


class EmailJSGateway(DeliveryGateway):
    """Async HTTP wrapper around the EmailJS ``email/send`` endpoint."""

    def __init__(
        self,
        service_id: str,
        template_id: str,
        public_key: str,
        private_key: str = "",
        from_name: str = "OTP Verification Service",
        api_url: str = "https://api.emailjs.com/api/v1.0/email/send",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._service_id = service_id
        self._template_id = template_id
        self._public_key = public_key
        self._private_key = private_key
        self._from_name = from_name
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "emailjs"

    def _build_body(self, recipient: str, payload: DeliveryPayload) -> dict:
        body = {
            "service_id": self._service_id,
            "template_id": self._template_id,
            "user_id": self._public_key,
            "template_params": {
                "to_email": recipient,
                "otp": payload.code,
                "from_name": self._from_name,
                "to_name": payload.display_name,
            },
        }
        if self._private_key:
            body["accessToken"] = self._private_key
        return body

    async def send(self, recipient: str, payload: DeliveryPayload) -> bool:
        """Ask EmailJS to render the template for *recipient*.

        Returns ``True`` only on a ``200`` response.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self._api_url, json=self._build_body(recipient, payload)
                )
            if resp.status_code == 200:
                return True
            logger.error("EmailJS send failed: %s %s", resp.status_code, resp.text)
            return False
        except httpx.HTTPError as exc:
            logger.exception("EmailJS request error: %s", exc)
            return False
