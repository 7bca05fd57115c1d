"""Tests for rotation-aware API key authentication."""

import pytest
from pydantic import ValidationError

from jwt_service.auth.api_keys import (
    ApiKeyAuthenticator,
    ApiKeySet,
    AuthRejection,
    extract_bearer,
)
from jwt_service.core.errors import AuthError, ConfigError
from jwt_service.core.settings import ServiceSettings


@pytest.fixture
def rotating() -> ApiKeyAuthenticator:
    return ApiKeyAuthenticator(ApiKeySet(current="k2", previous="k1"))


class TestApiKeySet:
    """Tests for the accepted key set."""

    def test_sentinel_previous_is_absent(self) -> None:
        keys = ApiKeySet(current="k2", previous="NONE")
        assert keys.previous is None
        assert keys.accepted() == ("k2",)

    def test_empty_current_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ApiKeySet(current="")

    def test_from_settings_requires_api_key(self) -> None:
        with pytest.raises(ConfigError):
            ApiKeySet.from_settings(ServiceSettings())

    def test_from_settings_carries_previous(self) -> None:
        keys = ApiKeySet.from_settings(
            ServiceSettings(api_key="k2", previous_api_key="k1")
        )
        assert set(keys.accepted()) == {"k1", "k2"}


class TestAuthenticate:
    """Tests for key membership checks."""

    def test_current_and_previous_accepted(self, rotating: ApiKeyAuthenticator) -> None:
        assert rotating.authenticate("k2").accepted
        assert rotating.authenticate("k1").accepted

    def test_unknown_key_rejected(self, rotating: ApiKeyAuthenticator) -> None:
        result = rotating.authenticate("k3")
        assert not result.accepted
        assert result.rejection is AuthRejection.UNKNOWN_KEY

    def test_only_current_when_previous_is_sentinel(self) -> None:
        auth = ApiKeyAuthenticator(ApiKeySet(current="k2", previous="NONE"))
        assert auth.authenticate("k2").accepted
        assert not auth.authenticate("k1").accepted
        assert not auth.authenticate("NONE").accepted

    def test_prefix_of_key_rejected(self, rotating: ApiKeyAuthenticator) -> None:
        assert not rotating.authenticate("k").accepted


class TestAuthorizationHeader:
    """Tests for Bearer header parsing."""

    def test_missing_header(self, rotating: ApiKeyAuthenticator) -> None:
        result = rotating.authenticate_header(None)
        assert result.rejection is AuthRejection.MISSING_HEADER

    @pytest.mark.parametrize("header", ["k2", "bearer k2", "Basic k2", "Bearer "])
    def test_malformed_header(
        self, rotating: ApiKeyAuthenticator, header: str
    ) -> None:
        result = rotating.authenticate_header(header)
        assert result.rejection is AuthRejection.MALFORMED_HEADER

    def test_valid_header(self, rotating: ApiKeyAuthenticator) -> None:
        assert rotating.authenticate_header("Bearer k1").accepted

    def test_extract_bearer_returns_credential(self) -> None:
        assert extract_bearer("Bearer abc") == "abc"

    def test_require_raises_with_reason(self, rotating: ApiKeyAuthenticator) -> None:
        with pytest.raises(AuthError) as exc_info:
            rotating.require("Bearer nope")
        assert exc_info.value.reason == AuthRejection.UNKNOWN_KEY.value
        assert exc_info.value.status_code == 401
