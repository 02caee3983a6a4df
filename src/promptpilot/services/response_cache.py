"""Response cache for LLM-backed functions (Redis with in-memory fallback)."""

import hashlib
import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

import redis.asyncio as redis

from ..config import settings

logger = logging.getLogger(__name__)


class ResponseCache:
    """Cache JSON-serializable responses keyed by a hash of the request payload."""

    def __init__(self, ttl_seconds: Optional[int] = None, use_redis: Optional[bool] = None):
        self.ttl = ttl_seconds if ttl_seconds is not None else settings.response_cache_ttl_seconds
        self.redis_client = None
        # {key: (value, stored_at)}
        self._memory: Dict[str, Tuple[Any, float]] = {}

        if use_redis is None:
            use_redis = settings.redis_enabled
        if use_redis:
            self._init_redis()

    def _init_redis(self):
        """Initialize Redis connection."""
        try:
            self.redis_client = redis.Redis(
                host=settings.redis_host,
                port=settings.redis_port,
                db=settings.redis_db,
                decode_responses=True,
            )
        except Exception as e:
            logger.warning(f"Redis initialization failed, using in-memory cache: {e}")
            self.redis_client = None

    @staticmethod
    def make_key(namespace: str, payload: Dict[str, Any]) -> str:
        digest = hashlib.sha256(
            json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
        ).hexdigest()
        return f"promptpilot:{namespace}:{digest}"

    def sweep(self) -> int:
        """Remove expired in-memory entries; returns how many were dropped."""
        now = time.time()
        expired = [key for key, (_, stored_at) in self._memory.items() if now - stored_at > self.ttl]
        for key in expired:
            del self._memory[key]
        return len(expired)

    async def get(self, key: str) -> Optional[Any]:
        if self.redis_client:
            try:
                data = await self.redis_client.get(key)
                return json.loads(data) if data else None
            except Exception as e:
                logger.warning(f"Error reading from Redis, falling back to memory: {e}")

        self.sweep()
        entry = self._memory.get(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: Any) -> None:
        if self.redis_client:
            try:
                await self.redis_client.set(key, json.dumps(value, default=str), ex=self.ttl)
                return
            except Exception as e:
                logger.warning(f"Error saving to Redis, falling back to memory: {e}")

        self._memory[key] = (value, time.time())

    async def clear(self) -> None:
        self._memory.clear()
        if self.redis_client:
            try:
                async for key in self.redis_client.scan_iter(match="promptpilot:*"):
                    await self.redis_client.delete(key)
            except Exception as e:
                logger.warning(f"Error clearing Redis cache: {e}")


_response_cache: Optional[ResponseCache] = None


def get_response_cache() -> ResponseCache:
    global _response_cache
    if _response_cache is None:
        _response_cache = ResponseCache()
    return _response_cache
