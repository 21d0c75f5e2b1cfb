"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class CalcServiceConfig(BaseSettings):
    """External compliance-calculation service."""

    model_config = {"env_prefix": "WAYPOINT_CALC_"}

    base_url: str = "http://localhost:8000"
    timeout: float | None = None  # no timeout unless configured


class AuthConfig(BaseSettings):
    """Bearer-token identity.

    A request token names its user through the `sub` (or `user_id`) claim once
    its signature checks out against `jwt_secret` (HS256) or the keys at
    `jwks_url` (RS256). `bearer_token` and `user_id` are the service identity
    used when a request carries no token.
    """

    model_config = {"env_prefix": "WAYPOINT_AUTH_"}

    bearer_token: str = ""
    user_id: str = ""
    jwt_secret: str = ""
    jwks_url: str | None = None
    audience: str | None = None


class SessionConfig(BaseSettings):
    """Wizard session storage."""

    model_config = {"env_prefix": "WAYPOINT_SESSION_"}

    backend: Literal["memory", "redis"] = "memory"
    ttl_seconds: int = 4 * 60 * 60


class RedisConfig(BaseSettings):
    """Redis cache configuration."""

    model_config = {"env_prefix": "WAYPOINT_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    namespace: str = "waypoint:"
    socket_timeout: float | None = 5.0


class S3Config(BaseSettings):
    """S3 artifact storage configuration."""

    model_config = {"env_prefix": "WAYPOINT_S3_"}

    enabled: bool = False
    bucket: str = "waypoint-artifacts"
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override
    prefix: str = ""
    server_side_encryption: str | None = "AES256"


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "WAYPOINT_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"

    calc_service: CalcServiceConfig = CalcServiceConfig()
    auth: AuthConfig = AuthConfig()
    session: SessionConfig = SessionConfig()
    redis: RedisConfig = RedisConfig()
    s3: S3Config = S3Config()
