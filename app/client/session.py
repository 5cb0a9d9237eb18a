"""Client-side session cache: access token in memory, user and refresh token durable."""

from __future__ import annotations

import json
import logging
from typing import Any

from app.client.storage import DurableStorage

logger = logging.getLogger(__name__)

USER_KEY = "user"
REFRESH_TOKEN_KEY = "refreshToken"


class ClientSession:
    """
    Session state for one client process, restored from storage at construction.

    The access token is never persisted and is expected to expire routinely, so
    is_authenticated depends only on the refresh token.
    """

    def __init__(self, storage: DurableStorage) -> None:
        self._storage = storage
        self.user: dict[str, Any] | None = self._load_user()
        self.access_token: str | None = None
        self.refresh_token: str | None = storage.get(REFRESH_TOKEN_KEY) or None

    def _load_user(self) -> dict[str, Any] | None:
        raw = self._storage.get(USER_KEY)
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored user profile is not valid JSON; ignoring it")
            return None
        return user if isinstance(user, dict) else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.refresh_token)

    def login(self, user: dict[str, Any], access_token: str, refresh_token: str) -> None:
        self._storage.set(REFRESH_TOKEN_KEY, refresh_token)
        self._storage.set(USER_KEY, json.dumps(user))
        self.user = user
        self.access_token = access_token
        self.refresh_token = refresh_token

    def set_access_token(self, access_token: str) -> None:
        self.access_token = access_token

    def logout(self) -> None:
        """Clear durable and in-memory state. Never talks to the server."""
        self._storage.remove(REFRESH_TOKEN_KEY)
        self._storage.remove(USER_KEY)
        self.user = None
        self.access_token = None
        self.refresh_token = None
