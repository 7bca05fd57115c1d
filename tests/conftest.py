"""Shared test fixtures for the token service."""

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from jwt_service.core.app import create_app
from jwt_service.core.settings import ServiceSettings
from jwt_service.crypto.keys import generate_rsa_keypair, resolve_signing_identity
from jwt_service.crypto.types import SigningIdentity, SigningKeyData

API_KEY = "test-api-key"
START_TIME = 1_700_000_000.0

_SETTINGS_ENV = (
    "API_KEY",
    "PREVIOUS_API_KEY",
    "PRIVATE_KEY",
    "PUBLIC_KEY",
    "KEY_ID",
    "DEFAULT_EXP",
    "ISSUER",
    "AUDIENCE",
    "VERIFY_ONLY",
    "ENFORCE_BINDING",
    "REPLAY_CACHE_ENABLED",
    "REPLAY_TTL_SEC",
    "REQUIRE_JTI_ON_VERIFY",
    "CORS_ORIGINS",
)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host environment variables out of test settings."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session")
def keypair() -> SigningKeyData:
    """One RSA keypair shared by the session; generation is slow."""
    return generate_rsa_keypair()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(keypair: SigningKeyData) -> ServiceSettings:
    """Signing-capable settings with replay and binding off."""
    return ServiceSettings(
        api_key=API_KEY,
        private_key=keypair.private_key_pem,
        key_id="test-kid",
    )


@pytest.fixture
def identity(settings: ServiceSettings) -> SigningIdentity:
    return resolve_signing_identity(settings)


@pytest.fixture
async def client(settings: ServiceSettings) -> AsyncIterator[AsyncClient]:
    """Create an httpx test client against a freshly built app."""
    app = create_app(settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
