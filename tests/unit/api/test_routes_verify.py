"""Tests for the token verification endpoint."""

import hashlib
from collections.abc import AsyncIterator

import pytest
from conftest import API_KEY
from httpx import ASGITransport, AsyncClient

from jwt_service.core.app import create_app
from jwt_service.core.settings import ServiceSettings
from jwt_service.crypto.types import SigningKeyData

AUTH = {"Authorization": f"Bearer {API_KEY}"}


async def _issue(client: AsyncClient, **claims: object) -> str:
    resp = await client.post("/issue", json={"sub": "svc-a", **claims}, headers=AUTH)
    assert resp.status_code == 200
    return resp.json()["token"]


@pytest.fixture
async def strict_client(keypair: SigningKeyData) -> AsyncIterator[AsyncClient]:
    """Client with binding enforcement and the replay cache enabled."""
    settings = ServiceSettings(
        api_key=API_KEY,
        private_key=keypair.private_key_pem,
        enforce_binding=True,
        replay_cache_enabled=True,
    )
    transport = ASGITransport(app=create_app(settings))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestVerify:
    """Tests for POST /verify."""

    async def test_valid_token(self, client: AsyncClient) -> None:
        token = await _issue(client)
        resp = await client.post("/verify", json={"token": token})
        assert resp.status_code == 200
        body = resp.json()
        assert body["valid"] is True
        assert body["payload"]["sub"] == "svc-a"

    async def test_invalid_token(self, client: AsyncClient) -> None:
        resp = await client.post("/verify", json={"token": "garbage"})
        assert resp.status_code == 401
        assert resp.json() == {"valid": False, "error": "signature/claims invalid"}

    async def test_missing_token_field(self, client: AsyncClient) -> None:
        resp = await client.post("/verify", json={"context": {}})
        assert resp.status_code == 400
        assert resp.json()["valid"] is False


class TestVerifyStrict:
    """Tests for binding and replay through HTTP."""

    async def test_method_binding(self, strict_client: AsyncClient) -> None:
        token = await _issue(strict_client, method="POST")
        resp = await strict_client.post(
            "/verify", json={"token": token, "context": {"method": "GET"}}
        )
        assert resp.status_code == 401
        assert resp.json()["error"] == "method mismatch"

        resp = await strict_client.post(
            "/verify", json={"token": token, "context": {"method": "POST"}}
        )
        assert resp.status_code == 200

    async def test_replay(self, strict_client: AsyncClient) -> None:
        token = await _issue(strict_client)
        first = await strict_client.post("/verify", json={"token": token})
        second = await strict_client.post("/verify", json={"token": token})
        assert first.status_code == 200
        assert second.status_code == 401
        assert second.json()["error"] == "replay detected"

    async def test_body_binding_with_raw_body(self, strict_client: AsyncClient) -> None:
        body = '{"amount":10}'
        token = await _issue(
            strict_client, body_sha256=hashlib.sha256(body.encode()).hexdigest()
        )
        resp = await strict_client.post(
            "/verify", json={"token": token, "context": {"body_raw": body}}
        )
        assert resp.status_code == 200
