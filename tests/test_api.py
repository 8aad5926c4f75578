"""Tests for the HTTP surface — /send-otp, /verify-otp and /health."""

from __future__ import annotations

import asyncio

import httpx
import pytest
import pytest_asyncio

from otp_gateway.config import Settings
from otp_gateway.ledger.models import VerifyOutcome
from otp_gateway.ledger.store import OTPLedger
from otp_gateway.main import create_app


@pytest.fixture
def app(gateway, clock):
    """App wired to the recording gateway and a controllable clock."""
    return create_app(Settings(delivery_backend="log"), gateway=gateway, clock=clock)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _send(client, email="bob@example.com", otp="654321"):
    return await client.post("/send-otp", json={"email": email, "otp": otp})


async def _verify(client, email="bob@example.com", otp="654321"):
    return await client.post("/verify-otp", json={"email": email, "otp": otp})


# ──────────────────────────────────────────────────────────
# POST /send-otp
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_send_otp(client, gateway):
    resp = await _send(client)

    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    recipient, payload = gateway.sent[0]
    assert recipient == "bob@example.com"
    assert payload.code == "654321"
    assert payload.display_name == "bob"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [{"email": "bob@example.com"}, {"otp": "654321"}, {"email": "", "otp": "1"}, {}],
)
async def test_send_otp_missing_fields(app, client, gateway, body):
    resp = await client.post("/send-otp", json=body)

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Email and OTP are required"}
    assert gateway.sent == []
    assert len(app.state.ledger) == 0


@pytest.mark.asyncio
async def test_send_otp_malformed_body(client):
    resp = await client.post(
        "/send-otp", content=b"not json", headers={"Content-Type": "application/json"}
    )

    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_send_otp_delivery_failure(app, client, gateway):
    gateway.result = False

    resp = await _send(client)

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Failed to send OTP"}
    assert "bob@example.com" in app.state.ledger


@pytest.mark.asyncio
async def test_send_otp_unexpected_error(client, gateway):
    async def boom(recipient, payload):
        raise RuntimeError("provider exploded")

    gateway.send = boom

    resp = await _send(client)

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Failed to send OTP"}
    assert "exploded" not in resp.text


# ──────────────────────────────────────────────────────────
# POST /verify-otp
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_verify_otp_success(client):
    await _send(client)

    resp = await _verify(client)
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    resp = await _verify(client)
    assert resp.json() == {"success": False, "message": "No OTP found for this email"}


@pytest.mark.asyncio
async def test_verify_otp_normalises_email(client):
    await _send(client, email="  Bob@Example.COM ")

    resp = await _verify(client, email="bob@example.com")
    assert resp.json() == {"success": True}


@pytest.mark.asyncio
async def test_verify_otp_attempt_limit(client):
    await _send(client)

    for _ in range(3):
        resp = await _verify(client, otp="000000")
        assert resp.status_code == 200
        assert resp.json() == {"success": False, "message": "Invalid OTP code"}

    resp = await _verify(client)
    assert resp.status_code == 200
    assert resp.json() == {
        "success": False,
        "message": "Too many attempts. Please request a new OTP",
    }


@pytest.mark.asyncio
async def test_verify_otp_expired(client, clock):
    await _send(client)
    clock.advance(301)

    resp = await _verify(client)
    assert resp.status_code == 200
    assert resp.json() == {"success": False, "message": "OTP has expired"}


@pytest.mark.asyncio
async def test_verify_otp_missing_fields(app, client):
    await _send(client)

    resp = await client.post("/verify-otp", json={"email": "bob@example.com"})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Email and OTP are required"}
    # Stored challenge untouched
    assert app.state.ledger.verify("bob@example.com", "654321") == VerifyOutcome.SUCCESS


@pytest.mark.asyncio
async def test_verify_otp_unexpected_error(app, client):
    def boom(identity, code):
        raise RuntimeError("ledger exploded")

    app.state.ledger.verify = boom

    resp = await _verify(client)

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Failed to verify OTP"}


# ──────────────────────────────────────────────────────────
# GET /health
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_health_reports_pending_challenges(client):
    await _send(client)

    resp = await client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["pending_challenges"] == 1


@pytest.mark.asyncio
async def test_health_follows_replaced_ledger(app, client, gateway, clock):
    app.state.ledger = OTPLedger(gateway, clock=clock)

    await _send(client)

    resp = await client.get("/health")
    assert resp.json()["pending_challenges"] == len(app.state.ledger) == 1


# ──────────────────────────────────────────────────────────
# Lifespan
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_lifespan_sweep_purges_request_ledger(gateway, clock):
    app = create_app(
        Settings(delivery_backend="log", sweep_interval_seconds=0.01),
        gateway=gateway,
        clock=clock,
    )
    app.state.ledger = OTPLedger(gateway, clock=clock)

    async with app.router.lifespan_context(app):
        await app.state.ledger.issue("stale@example.com", "111111")
        clock.advance(301)
        await app.state.ledger.issue("fresh@example.com", "222222")
        await asyncio.sleep(0.05)

        assert "stale@example.com" not in app.state.ledger
        assert "fresh@example.com" in app.state.ledger

    # Shutdown drops what is left
    assert len(app.state.ledger) == 0


@pytest.mark.asyncio
async def test_lifespan_without_sweep_leaves_expired_challenges(gateway, clock):
    app = create_app(Settings(delivery_backend="log"), gateway=gateway, clock=clock)

    async with app.router.lifespan_context(app):
        await app.state.ledger.issue("stale@example.com", "111111")
        clock.advance(301)
        await asyncio.sleep(0.02)

        # Expiry is still enforced lazily on read
        assert "stale@example.com" in app.state.ledger
        assert app.state.ledger.verify("stale@example.com", "111111") == VerifyOutcome.EXPIRED


def test_create_app_accepts_keyword_arguments(gateway, clock):
    app = create_app(
        app_settings=Settings(delivery_backend="log", otp_max_attempts=5),
        gateway=gateway,
        clock=clock,
    )

    assert isinstance(app.state.ledger, OTPLedger)


@pytest.mark.asyncio
async def test_verify_otp_lone_surrogate_is_a_mismatch(client):
    await _send(client)

    resp = await client.post(
        "/verify-otp",
        content=b'{"email": "bob@example.com", "otp": "\\ud800"}',
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"success": False, "message": "Invalid OTP code"}
