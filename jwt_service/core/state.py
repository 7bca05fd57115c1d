"""Construction of the long-lived components shared by all requests."""

from dataclasses import dataclass

from jwt_service.auth.api_keys import ApiKeyAuthenticator, ApiKeySet
from jwt_service.core.clock import Clock, system_clock
from jwt_service.core.settings import ServiceSettings
from jwt_service.crypto.keys import resolve_signing_identity
from jwt_service.crypto.types import SigningIdentity
from jwt_service.tokens.issuer import TokenIssuer
from jwt_service.tokens.replay import ReplayCache, ReplaySweeper
from jwt_service.tokens.verifier import TokenVerifier


@dataclass(frozen=True)
class ServiceComponents:
    """Everything a request handler needs, built once at startup."""

    settings: ServiceSettings
    identity: SigningIdentity
    authenticator: ApiKeyAuthenticator | None
    issuer: TokenIssuer
    verifier: TokenVerifier
    replay_cache: ReplayCache | None
    sweeper: ReplaySweeper | None


def build_components(
    settings: ServiceSettings, clock: Clock = system_clock
) -> ServiceComponents:
    """Resolve keys and wire issuer, verifier, and replay cache.

    Raises ConfigError when key material or API keys are unusable.
    """
    identity = resolve_signing_identity(settings)

    authenticator: ApiKeyAuthenticator | None = None
    if settings.api_key or not settings.verify_only:
        authenticator = ApiKeyAuthenticator(ApiKeySet.from_settings(settings))

    replay_cache: ReplayCache | None = None
    sweeper: ReplaySweeper | None = None
    if settings.replay_cache_enabled:
        replay_cache = ReplayCache(settings.replay_ttl_sec, clock=clock)
        sweeper = ReplaySweeper(replay_cache)

    return ServiceComponents(
        settings=settings,
        identity=identity,
        authenticator=authenticator,
        issuer=TokenIssuer(identity, settings, clock=clock),
        verifier=TokenVerifier(identity, settings, replay_cache, clock=clock),
        replay_cache=replay_cache,
        sweeper=sweeper,
    )
