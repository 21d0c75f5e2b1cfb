"""Wizard session persistence on top of an ICacheBackend."""

from __future__ import annotations

import logging
import uuid

from pydantic import ValidationError

from waypoint.core.exceptions import SessionNotFoundError
from waypoint.core.protocols import ICacheBackend
from waypoint.models.session import WizardState

logger = logging.getLogger(__name__)


class WizardSessionStore:
    """Stores one WizardState JSON document per session id.

    Sessions expire after ``ttl_seconds`` without a read or a write.
    """

    KEY_PREFIX = "wizard:"

    def __init__(self, cache: ICacheBackend, ttl_seconds: int = 4 * 60 * 60) -> None:
        self._cache = cache
        self._ttl = ttl_seconds

    def _key(self, session_id: str) -> str:
        return f"{self.KEY_PREFIX}{session_id}"

    def create(self) -> tuple[str, WizardState]:
        session_id = uuid.uuid4().hex
        state = WizardState()
        self.save(session_id, state)
        logger.debug("Created wizard session %s", session_id)
        return session_id, state

    def load(self, session_id: str) -> WizardState:
        key = self._key(session_id)
        raw = self._cache.get(key)
        if raw is None:
            raise SessionNotFoundError(session_id)
        try:
            state = WizardState.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable wizard session %s: %s", session_id, exc)
            self._cache.delete(key)
            raise SessionNotFoundError(session_id) from exc
        if not self._cache.expire(key, self._ttl):
            raise SessionNotFoundError(session_id)
        return state

    def save(self, session_id: str, state: WizardState) -> None:
        self._cache.setex(self._key(session_id), self._ttl, state.model_dump_json())

    def delete(self, session_id: str) -> None:
        self._cache.delete(self._key(session_id))
