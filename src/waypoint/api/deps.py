"""Request-scoped dependencies pulled from app.state."""

from __future__ import annotations

from fastapi import Depends, Header, Request

from waypoint.clients.auth import BearerCredentialProvider
from waypoint.core.config import AppSettings
from waypoint.core.protocols import ICalculationService
from waypoint.persistence.artifact_store import ArtifactStore
from waypoint.persistence.session_store import WizardSessionStore


def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_session_store(request: Request) -> WizardSessionStore:
    return request.app.state.session_store


def get_artifact_store(request: Request) -> ArtifactStore:
    return request.app.state.artifact_store


def get_calc_service(request: Request) -> ICalculationService:
    return request.app.state.calc_service


def get_credentials(
    settings: AppSettings = Depends(get_settings),
    authorization: str | None = Header(default=None),
) -> BearerCredentialProvider:
    return BearerCredentialProvider.from_header(authorization, settings.auth)
