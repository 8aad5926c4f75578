"""Base gateway — abstract interface every delivery backend must implement."""

from abc import ABC, abstractmethod

from otp_gateway.ledger.models import DeliveryPayload


class DeliveryGateway(ABC):
    """Abstract base class for OTP delivery backends.

    A gateway transmits a code to a recipient out-of-band.  It reports
    the result as a boolean; transport errors are logged and turned into
    ``False`` rather than raised.  Gateways never retry.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name (used in logs)."""

    @abstractmethod
    async def send(self, recipient: str, payload: DeliveryPayload) -> bool:
        """Deliver *payload* to *recipient*.

        Parameters
        ----------
        recipient:
            Destination email address.
        payload:
            The code and the name to greet the recipient with.

        Returns ``True`` if the provider accepted the message.
        """
