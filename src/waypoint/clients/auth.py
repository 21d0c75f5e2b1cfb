"""Bearer credential provider for calls to the calculation service."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

import jwt

from waypoint.core.config import AuthConfig
from waypoint.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "
USER_CLAIMS = ("sub", "user_id")


def token_from_header(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer ...`` header value."""
    value = (authorization or "").strip()
    if value.lower().startswith(BEARER_PREFIX):
        return value[len(BEARER_PREFIX):].strip()
    return ""


@lru_cache(maxsize=4)
def _jwks_client(url: str) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(url)


def user_id_from_token(token: str, config: AuthConfig) -> Optional[str]:
    """User id claimed by a signed token, or None when it cannot be verified.

    Without a configured secret or key set no token is trusted.
    """
    if not token or not (config.jwt_secret or config.jwks_url):
        return None
    try:
        if config.jwks_url:
            key = _jwks_client(config.jwks_url).get_signing_key_from_jwt(token).key
            algorithms = ["RS256"]
        else:
            key = config.jwt_secret
            algorithms = ["HS256"]
        claims = jwt.decode(
            token,
            key,
            algorithms=algorithms,
            audience=config.audience,
            options={"verify_aud": config.audience is not None},
        )
    except jwt.PyJWTError as exc:
        logger.warning("Rejected bearer token: %s", exc)
        return None
    for claim in USER_CLAIMS:
        value = claims.get(claim)
        if value:
            return str(value)
    return None


class BearerCredentialProvider:
    """ICredentialProvider holding one already-issued bearer token.

    Token issuance belongs to the identity provider; this class only hands
    the token on and refuses to run without one.
    """

    def __init__(self, token: str | None, user_id: str | None = None) -> None:
        self._token = (token or "").strip()
        self._user_id = user_id or None

    @classmethod
    def from_header(cls, authorization: str | None, config: AuthConfig | None = None) -> BearerCredentialProvider:
        """Use the request's bearer token, else the configured service token."""
        config = config or AuthConfig()
        token = token_from_header(authorization)
        if token:
            return cls(token, user_id=user_id_from_token(token, config))
        if config.bearer_token:
            return cls(config.bearer_token, user_id=config.user_id)
        return cls(None)

    def current_user(self) -> str | None:
        return self._user_id if self._token else None

    def get_token(self, force_refresh: bool = True) -> str:
        if not self._token:
            raise AuthenticationError("No valid bearer token found. Are you signed in?")
        return self._token
