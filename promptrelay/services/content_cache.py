"""Content cache gateway.

Holds the single generated-text value under a fixed key. Writes always
replace the whole value (last write wins); absence means nothing has been
generated yet.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from promptrelay.config import Settings
from promptrelay.utils.errors import CacheError, ConfigurationError

logger = logging.getLogger(__name__)


class ContentCache(ABC):
    """Key/value store for generated content."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored text, or None if absent."""

    @abstractmethod
    async def put(self, key: str, text: str) -> None:
        """Store text under key, overwriting any previous value."""


class InMemoryContentCache(ContentCache):
    """Process-local cache; contents are lost on restart."""

    def __init__(self):
        self._values: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    async def put(self, key: str, text: str) -> None:
        self._values[key] = text
        logger.info(f"[CACHE] Stored {len(text)} chars under '{key}'")


class SupabaseContentCache(ContentCache):
    """Cache backed by a ``(key text primary key, value text)`` Supabase table.

    The supabase client is synchronous; queries run in a worker thread.
    """

    def __init__(self, client, table: str = "content_cache"):
        self.client = client
        self.table = table

    def _select(self, key: str):
        return (
            self.client.table(self.table)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )

    def _upsert(self, key: str, text: str):
        return self.client.table(self.table).upsert(
            {"key": key, "value": text}, on_conflict="key"
        ).execute()

    async def get(self, key: str) -> Optional[str]:
        try:
            result = await asyncio.to_thread(self._select, key)
        except Exception as e:
            raise CacheError(f"Cache read failed: {e}") from e

        if not result.data:
            return None
        return result.data[0].get("value")

    async def put(self, key: str, text: str) -> None:
        try:
            await asyncio.to_thread(self._upsert, key, text)
        except Exception as e:
            raise CacheError(f"Cache write failed: {e}") from e
        logger.info(f"[CACHE] Stored {len(text)} chars under '{key}' in {self.table}")


def create_content_cache(settings: Settings) -> ContentCache:
    """Create the cache backend selected by ``settings.cache_backend``."""
    backend = settings.cache_backend.lower()
    if backend == "memory":
        return InMemoryContentCache()
    if backend == "supabase":
        from promptrelay.services.supabase import get_supabase_client

        return SupabaseContentCache(get_supabase_client(settings), settings.cache_table)
    raise ConfigurationError(f"Unknown cache backend: {settings.cache_backend}")
