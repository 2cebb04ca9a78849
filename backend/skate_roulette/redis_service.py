"""Redis persistence for player settings and trick history."""
import json
import logging

import redis.asyncio as redis
from pydantic import TypeAdapter, ValidationError

from skate_roulette.config import settings
from skate_roulette.logic.history import TrickItem
from skate_roulette.logic.settings_state import SettingsSnapshot

logger = logging.getLogger(__name__)

_history_adapter = TypeAdapter(list[TrickItem])


class PersistenceError(Exception):
    """A settings or history document could not be read or written."""


class RedisService:
    """
    Redis client for per-player settings and history documents.

    Methods raise PersistenceError; the session decides how to fall back.
    """

    # Key prefixes
    SETTINGS_PREFIX = "settings:player:"
    HISTORY_PREFIX = "history:player:"

    STATE_TTL = settings.state_ttl_seconds

    def __init__(self, redis_url: str | None = None):
        self._url = redis_url or settings.redis_url
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True)

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client, raise if not connected."""
        if self._client is None:
            raise PersistenceError("Redis not connected")
        return self._client

    async def _get_json(self, key: str) -> object | None:
        try:
            cached = await self.client.get(key)
        except redis.RedisError as e:
            raise PersistenceError(f"GET {key} failed: {e}") from e
        if cached is None:
            return None
        try:
            return json.loads(cached)
        except ValueError as e:
            raise PersistenceError(f"{key} holds invalid JSON: {e}") from e

    async def _set_json(self, key: str, payload: str) -> None:
        try:
            await self.client.setex(key, self.STATE_TTL, payload)
        except redis.RedisError as e:
            raise PersistenceError(f"SETEX {key} failed: {e}") from e

    async def get_settings(self, player_id: str) -> SettingsSnapshot | None:
        """Load settings; None if the player has never saved any."""
        data = await self._get_json(f"{self.SETTINGS_PREFIX}{player_id}")
        if data is None:
            return None
        try:
            return SettingsSnapshot.model_validate(data)
        except ValidationError as e:
            raise PersistenceError(f"Stored settings for {player_id} are invalid: {e}") from e

    async def save_settings(self, player_id: str, snapshot: SettingsSnapshot) -> None:
        """
        Save settings.

        Shape:
        {
            "difficulty": "custom",
            "mode": "ledge",
            "customConfig": {"stances": ["Nollie"], "grinds": [], ...}
        }
        """
        await self._set_json(f"{self.SETTINGS_PREFIX}{player_id}", snapshot.model_dump_json())

    async def get_history(self, player_id: str) -> list[TrickItem] | None:
        """Load history, newest first; None if nothing stored."""
        data = await self._get_json(f"{self.HISTORY_PREFIX}{player_id}")
        if data is None:
            return None
        try:
            return _history_adapter.validate_python(data)
        except ValidationError as e:
            raise PersistenceError(f"Stored history for {player_id} is invalid: {e}") from e

    async def save_history(self, player_id: str, items: list[TrickItem]) -> None:
        payload = _history_adapter.dump_json(items).decode()
        await self._set_json(f"{self.HISTORY_PREFIX}{player_id}", payload)


# Global instance
redis_service = RedisService()
