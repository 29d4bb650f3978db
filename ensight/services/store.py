"""Backing key-value store.

The graph and the blacklist live in a remote store that offers plain
get/set/delete plus named sets. Nothing here is transactional across keys.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Dict, Optional, Set

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from ensight.services.errors import StoreUnavailableError
from ensight.settings import Settings

logger = logging.getLogger(__name__)


class BackingStore(ABC):
    """Async key-value and set operations used by the graph and risk services."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def sadd(self, key: str, *members: str) -> None:
        pass

    @abstractmethod
    async def sismember(self, key: str, member: str) -> bool:
        pass

    @abstractmethod
    async def smembers(self, key: str) -> Set[str]:
        pass

    async def close(self) -> None:
        """Release client resources. No-op by default."""

    @property
    def persistent(self) -> bool:
        """Whether data outlives the process."""
        return True


class RedisStore(BackingStore):
    """Redis-backed store.

    Every client failure, including socket timeouts, is raised as
    StoreUnavailableError. Nothing is retried here.
    """

    def __init__(self, client: Any):
        self._client = client

    @classmethod
    def from_url(cls, url: str, timeout_seconds: float = 5.0) -> "RedisStore":
        client = aioredis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        return cls(client)

    async def _call(self, op: str, key: str, pending: Awaitable[Any]) -> Any:
        try:
            return await pending
        except (RedisError, OSError) as exc:
            raise StoreUnavailableError(f"store {op} {key!r} failed: {exc}") from exc

    async def get(self, key: str) -> Optional[str]:
        return await self._call("get", key, self._client.get(key))

    async def set(self, key: str, value: str) -> None:
        await self._call("set", key, self._client.set(key, value))

    async def delete(self, key: str) -> None:
        await self._call("delete", key, self._client.delete(key))

    async def sadd(self, key: str, *members: str) -> None:
        if not members:
            return
        await self._call("sadd", key, self._client.sadd(key, *members))

    async def sismember(self, key: str, member: str) -> bool:
        return bool(await self._call("sismember", key, self._client.sismember(key, member)))

    async def smembers(self, key: str) -> Set[str]:
        members = await self._call("smembers", key, self._client.smembers(key))
        return set(members or ())

    async def close(self) -> None:
        await self._client.aclose()


class MemoryStore(BackingStore):
    """Process-local store with the same semantics as RedisStore."""

    def __init__(self):
        self._values: Dict[str, str] = {}
        self._sets: Dict[str, Set[str]] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._sets.pop(key, None)

    async def sadd(self, key: str, *members: str) -> None:
        if members:
            self._sets.setdefault(key, set()).update(members)

    async def sismember(self, key: str, member: str) -> bool:
        return member in self._sets.get(key, ())

    async def smembers(self, key: str) -> Set[str]:
        return set(self._sets.get(key, ()))

    @property
    def persistent(self) -> bool:
        return False


def build_store(settings: Settings) -> BackingStore:
    """RedisStore when a URL is configured, otherwise an in-memory store."""
    if settings.redis_url:
        return RedisStore.from_url(settings.redis_url, settings.store_timeout_seconds)
    logger.warning("No redis_url configured; using an in-memory store, nothing will persist")
    return MemoryStore()
