"""Service settings loaded from environment variables."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jwt_service.tokens.durations import is_numeric, parse_duration

DEFAULT_EXP_DEFAULT = "1h"
REPLAY_TTL_DEFAULT = 600
REPLAY_TTL_MIN = 1
PREVIOUS_KEY_SENTINEL = "NONE"


class ServiceSettings(BaseSettings):
    """Issuance, verification, and replay settings."""

    model_config = SettingsConfigDict(env_prefix="")

    api_key: str = ""
    previous_api_key: str | None = None
    private_key: str | None = None
    public_key: str | None = None
    key_id: str | None = None
    default_exp: str = DEFAULT_EXP_DEFAULT
    issuer: str | None = None
    audience: str | None = None
    verify_only: bool = False
    enforce_binding: bool = False
    replay_cache_enabled: bool = False
    replay_ttl_sec: int = Field(default=REPLAY_TTL_DEFAULT, ge=REPLAY_TTL_MIN)
    require_jti_on_verify: bool = False
    cors_origins: str = ""

    @field_validator("private_key", "public_key")
    @classmethod
    def _unfold_pem(cls, value: str | None) -> str | None:
        """Allow single-line PEM values with literal \\n escapes."""
        if not value or not value.strip():
            return None
        return value.replace("\\n", "\n").strip()

    @field_validator("default_exp")
    @classmethod
    def _default_exp_parses(cls, value: str) -> str:
        """Seconds as a plain integer, or a duration such as ``1h``."""
        value = value.strip()
        if is_numeric(value):
            return value
        parse_duration(value)
        return value

    @field_validator("key_id", "issuer", "audience")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def effective_previous_api_key(self) -> str | None:
        """Previous API key, or None when unset or the NONE sentinel."""
        previous = self.previous_api_key
        if not previous or previous == PREVIOUS_KEY_SENTINEL:
            return None
        return previous

    @property
    def effective_require_jti(self) -> bool:
        """Binding enforcement implies jti is mandatory."""
        return self.require_jti_on_verify or self.enforce_binding

    def get_cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        if not self.cors_origins:
            return []
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
