"""Shared fixtures: a controllable clock and a recording delivery gateway."""

from __future__ import annotations

import pytest

from otp_gateway.gateways.base import DeliveryGateway
from otp_gateway.ledger.models import DeliveryPayload
from otp_gateway.ledger.store import OTPLedger


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingGateway(DeliveryGateway):
    """Gateway that records every send and returns a configurable result."""

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.sent: list[tuple[str, DeliveryPayload]] = []

    @property
    def name(self) -> str:
        return "recording"

    async def send(self, recipient: str, payload: DeliveryPayload) -> bool:
        self.sent.append((recipient, payload))
        return self.result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def ledger(gateway, clock) -> OTPLedger:
    return OTPLedger(gateway, ttl_seconds=300, max_attempts=3, clock=clock)
