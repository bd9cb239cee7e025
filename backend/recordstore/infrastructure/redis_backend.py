"""Redis Backend: DocumentBackend over redis-py's asyncio client and RedisJSON.

Invariants:
    - One method = one Redis command (JSON.GET, JSON.SET, JSON.DEL, JSON.MGET,
      EXISTS, EXPIRE, ZADD, ZREM, ZRANGE ... REV, SCAN ... TYPE)
    - Documents are read at JSONPath "$": the list wrapper is unwrapped here,
      so callers see dict | None
    - redis.exceptions.RedisError propagates unchanged (no retry, no mapping)
    - A missing kv_url raises ConfigError before any connection is attempted

Design Decisions:
    - decode_responses=True: sorted-set members and scanned keys come back as str
    - Connection pooling and retry policy left to redis-py defaults
"""

import logging
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from recordstore.config import Settings
from recordstore.core.errors import ConfigError

logger = logging.getLogger(__name__)


def _unwrap(response: Any) -> dict | None:
    """JSON.GET/MGET at path "$" return [doc] (or None when the key is absent)."""
    if not response:
        return None
    if isinstance(response, list):
        return response[0] if response else None
    return response


class RedisBackend:
    """Implements core.repository_protocols.DocumentBackend."""

    def __init__(self, client: Redis):
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisBackend":
        if not settings.kv_url:
            raise ConfigError(
                "Redis URL is required: set KV_URL (or KV_REST_API_URL / REDIS_URL)",
                "kv_url",
            )
        client = Redis.from_url(
            settings.kv_url,
            password=settings.kv_token,
            decode_responses=True,
        )
        return cls(client)

    async def close(self) -> None:
        await self.client.aclose()

    # ─── Documents ──────────────────────────────────────────────

    async def document_get(self, key: str) -> dict | None:
        return _unwrap(await self.client.json().get(key, "$"))

    async def document_set(self, key: str, document: dict) -> None:
        await self.client.json().set(key, "$", document)

    async def document_patch(self, key: str, path: str, value: Any) -> None:
        await self.client.json().set(key, f"$.{path}", value)

    async def document_delete(self, key: str) -> None:
        await self.client.json().delete(key, "$")

    async def multi_document_get(self, keys: list[str]) -> list[dict | None]:
        if not keys:
            return []
        responses = await self.client.json().mget(keys, "$")
        return [_unwrap(r) for r in responses]

    # ─── Keys ───────────────────────────────────────────────────

    async def key_exists(self, key: str) -> bool:
        return await self.client.exists(key) > 0

    async def set_expiry(self, key: str, seconds: int) -> None:
        await self.client.expire(key, seconds)

    async def scan_keys(
        self, cursor: int, match: str, type_filter: str | None, count: int,
    ) -> tuple[int, list[str]]:
        next_cursor, keys = await self.client.scan(
            cursor=cursor, match=match, count=count, _type=type_filter,
        )
        return int(next_cursor or 0), list(keys)

    # ─── Sorted sets ────────────────────────────────────────────

    async def ordered_set_add(self, set_key: str, score: float, member: str) -> None:
        await self.client.zadd(set_key, {member: score})

    async def ordered_set_remove(self, set_key: str, member: str) -> None:
        await self.client.zrem(set_key, member)

    async def ordered_set_range(
        self, set_key: str, start: int, stop: int, reverse: bool = False,
    ) -> list[str]:
        return list(await self.client.zrange(set_key, start, stop, desc=reverse))

    # ─── Health ─────────────────────────────────────────────────

    async def ping(self) -> bool:
        """Check backend connectivity (for readiness probes)."""
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False
