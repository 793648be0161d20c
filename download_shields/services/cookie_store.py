import logging
from collections.abc import Mapping
from functools import lru_cache
from typing import Annotated
from typing import TypeAlias
from typing import Protocol

from fastapi import Depends

from download_shields.core.clock import Clock
from download_shields.core.clock import system_clock
from download_shields.core.config import configs
from download_shields.models.cookie import CookieJar
from download_shields.models.cookie import StructuredUpdate
from download_shields.services.cookie_normalizer import add_cookies
from download_shields.services.cookie_normalizer import cookie_header
from download_shields.services.cookie_normalizer import expiration
from download_shields.services.cookie_normalizer import is_control_attribute
from download_shields.services.redis_service import Key
from download_shields.services.redis_service import RedisService
from download_shields.services.redis_service import get_service_redis


logger = logging.getLogger(__name__)

RawCookies: TypeAlias = str | Mapping[str, str | None]


class CookieStore(Protocol):
    async def contains(self, key: str) -> bool: ...

    async def get(self, key: str) -> RawCookies: ...

    async def set(self, key: str, value: RawCookies, expire: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisCookieStore:
    def __init__(self, redis: RedisService, prefix: str = configs.cookie_prefix) -> None:
        self.redis = redis
        self.prefix = prefix

    def _key(self, resource: str) -> Key:
        return Key(self.prefix, "resource", resource)

    async def contains(self, key: str) -> bool:
        return await self.redis.exists(self._key(key))

    async def get(self, key: str) -> RawCookies:
        return await self.redis.get(self._key(key), "") or ""

    async def set(self, key: str, value: RawCookies, expire: int | None = None) -> None:
        await self.redis.set(self._key(key), value, expire)

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))


async def cookie_jar(store: CookieStore, resource: str) -> CookieJar:
    """Builds a fresh jar for ``resource``, never shared between requests."""
    jar = CookieJar()
    if await store.contains(resource):
        add_cookies(jar, await store.get(resource))
    return jar


def time_to_live(jar: CookieJar, clock: Clock = system_clock, default: int = configs.cookie_default_ttl) -> int | None:
    """Seconds the cookies of ``jar`` stay valid, ``None`` once they expired."""
    if (expires_at := expiration(jar, clock)) is None:
        return default
    seconds = round((expires_at - clock.now()).total_seconds())
    return seconds if seconds > 0 else None


async def persist_cookies(
    store: CookieStore,
    resource: str,
    updates: CookieJar,
    clock: Clock = system_clock,
) -> int | None:
    """Merges ``updates`` into the stored cookies of ``resource``.

    Expired updates delete their cookies from the store instead. Returns the
    time to live the cookies were saved with, ``None`` when nothing was saved.
    """
    if not updates:
        return None

    jar = await cookie_jar(store, resource)
    if (ttl := time_to_live(updates, clock)) is None:
        logger.info("Cookies for %s expired, removing them", resource)
        for key in updates.entries:
            if not is_control_attribute(key):
                jar.entries.pop(key, None)
        if not cookie_header(jar) or (ttl := time_to_live(jar, clock)) is None:
            await store.delete(resource)
            return None
    else:
        add_cookies(jar, StructuredUpdate(updates.entries))

    await store.set(resource, dict(jar.entries), ttl)
    return ttl


@lru_cache
def get_cookie_store(redis: Annotated[RedisService, Depends(get_service_redis)]) -> RedisCookieStore:
    return RedisCookieStore(redis)
