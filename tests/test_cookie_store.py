"""Tests for download_shields.services.cookie_store module."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from download_shields.models.cookie import CookieJar
from download_shields.services.cookie_normalizer import add_cookies
from download_shields.services.cookie_normalizer import collect_cookies
from download_shields.services.cookie_normalizer import cookie_header
from download_shields.services.cookie_store import RedisCookieStore
from download_shields.services.cookie_store import cookie_jar
from download_shields.services.cookie_store import persist_cookies
from download_shields.services.cookie_store import time_to_live
from download_shields.services.redis_service import Key


URL = "https://rubygems.org/api/v1/gems/rails.json"


class TestCookieJarSeeding:
    """Tests for cookie_jar."""

    @pytest.mark.asyncio
    async def test_missing_resource_gives_empty_jar(self, memory_store):
        """Test absence in the store seeds an empty jar without calling get."""
        jar = await cookie_jar(memory_store, URL)
        assert jar.entries == {}
        assert memory_store.get_calls == []

    @pytest.mark.asyncio
    async def test_seeds_from_raw_string(self, memory_store):
        """Test a stored wire string is parsed into the jar."""
        memory_store.data[URL] = "sid=abc; Path=/"
        jar = await cookie_jar(memory_store, URL)
        assert jar.entries == {"sid": "abc", "path": "/"}
        assert memory_store.get_calls == [URL]

    @pytest.mark.asyncio
    async def test_seeds_from_mapping(self, memory_store):
        """Test a stored mapping is merged into the jar."""
        memory_store.data[URL] = {"sid": "abc", "Max-Age": "10"}
        jar = await cookie_jar(memory_store, URL)
        assert jar.entries == {"sid": "abc", "max-age": "10"}

    @pytest.mark.asyncio
    async def test_jars_are_independent(self, memory_store):
        """Test two lookups never share a jar instance."""
        memory_store.data[URL] = {"sid": "abc", "path": "/"}
        first = await cookie_jar(memory_store, URL)
        second = await cookie_jar(memory_store, URL)
        first.entries["sid"] = "changed"
        assert first is not second
        assert second.entries["sid"] == "abc"
        assert memory_store.data[URL] == {"sid": "abc", "path": "/"}


class TestTimeToLive:
    """Tests for time_to_live."""

    def test_default_without_expiration(self, jar, clock):
        """Test cookies with no expiration get the default lifetime."""
        add_cookies(jar, "sid=1")
        assert time_to_live(jar, clock, default=300) == 300

    def test_from_max_age(self, jar, clock):
        """Test max-age drives the lifetime."""
        add_cookies(jar, "sid=1; Max-Age=90")
        assert time_to_live(jar, clock) == 90

    def test_expired(self, jar, clock):
        """Test already expired cookies give None."""
        add_cookies(jar, {"sid": "1", "expires": (clock.now() - timedelta(days=1)).isoformat()})
        assert time_to_live(jar, clock) is None


class TestPersistCookies:
    """Tests for persist_cookies."""

    @pytest.mark.asyncio
    async def test_nothing_to_save(self, memory_store, clock):
        """Test an empty update jar does not touch the store."""
        assert await persist_cookies(memory_store, URL, CookieJar(), clock) is None
        assert memory_store.set_calls == []

    @pytest.mark.asyncio
    async def test_merges_with_stored_cookies(self, memory_store, clock):
        """Test updates are merged into what the store already has."""
        memory_store.data[URL] = "a=1; b=2"
        updates = CookieJar()
        add_cookies(updates, "b=3; Max-Age=60")

        assert await persist_cookies(memory_store, URL, updates, clock) == 60
        assert memory_store.set_calls == [(URL, {"a": "1", "b": "3", "max-age": "60"}, 60)]

    @pytest.mark.asyncio
    async def test_does_not_mutate_updates(self, memory_store, clock):
        """Test the caller's update jar is left untouched."""
        updates = CookieJar()
        add_cookies(updates, "b=3; Path=/")
        await persist_cookies(memory_store, URL, updates, clock)
        assert updates.entries == {"b": "3", "path": "/"}

    @pytest.mark.asyncio
    async def test_expired_updates_are_dropped(self, memory_store, clock):
        """Test expired cookies are not saved."""
        updates = CookieJar()
        add_cookies(updates, "b=3; Max-Age=0")
        assert await persist_cookies(memory_store, URL, updates, clock) is None
        assert memory_store.set_calls == []
        assert memory_store.delete_calls == [URL]

    @pytest.mark.asyncio
    async def test_expired_update_deletes_stored_cookie(self, memory_store, clock):
        """Test a cookie expired by downstream is no longer sent."""
        memory_store.data[URL] = "sid=old; Max-Age=3600"
        updates = collect_cookies(["sid=; Max-Age=0"])

        assert await persist_cookies(memory_store, URL, updates, clock) is None
        assert "sid=old" not in cookie_header(await cookie_jar(memory_store, URL))
        assert memory_store.delete_calls == [URL]
        assert memory_store.set_calls == []

    @pytest.mark.asyncio
    async def test_expired_update_keeps_other_cookies(self, memory_store, clock):
        """Test only the expired cookie is removed from the stored jar."""
        memory_store.data[URL] = "sid=old; keep=1; Max-Age=3600"
        updates = collect_cookies(["sid=; Max-Age=0"])

        assert await persist_cookies(memory_store, URL, updates, clock) == 3600
        assert memory_store.data[URL] == {"keep": "1", "max-age": "3600"}
        assert memory_store.delete_calls == []

    @pytest.mark.asyncio
    async def test_huge_max_age_is_saved(self, memory_store, clock):
        """Test a max-age beyond the datetime range still persists."""
        updates = collect_cookies(["sid=1; Max-Age=300000000000"])
        assert await persist_cookies(memory_store, URL, updates, clock) > 0
        assert memory_store.data[URL]["sid"] == "1"


class TestRedisCookieStore:
    """Tests for RedisCookieStore on top of RedisService."""

    @pytest.fixture
    def redis_service(self):
        service = AsyncMock()
        service.exists.return_value = True
        service.get.return_value = "sid=1"
        return service

    @pytest.mark.asyncio
    async def test_contains(self, redis_service):
        """Test contains checks the prefixed key."""
        store = RedisCookieStore(redis_service, prefix="cookies")
        assert await store.contains(URL) is True
        redis_service.exists.assert_awaited_once_with(Key("cookies", "resource", URL))

    @pytest.mark.asyncio
    async def test_get(self, redis_service):
        """Test get returns the stored representation."""
        store = RedisCookieStore(redis_service, prefix="cookies")
        assert await store.get(URL) == "sid=1"

    @pytest.mark.asyncio
    async def test_get_missing_gives_empty_string(self, redis_service):
        """Test a value gone between contains and get reads as empty."""
        redis_service.get.return_value = None
        store = RedisCookieStore(redis_service, prefix="cookies")
        assert await store.get(URL) == ""

    @pytest.mark.asyncio
    async def test_set(self, redis_service):
        """Test set forwards value and expiry."""
        store = RedisCookieStore(redis_service, prefix="cookies")
        await store.set(URL, {"sid": "1"}, 30)
        redis_service.set.assert_awaited_once_with(Key("cookies", "resource", URL), {"sid": "1"}, 30)

    @pytest.mark.asyncio
    async def test_delete(self, redis_service):
        """Test delete removes the prefixed key."""
        store = RedisCookieStore(redis_service, prefix="cookies")
        await store.delete(URL)
        redis_service.delete.assert_awaited_once_with(Key("cookies", "resource", URL))

    def test_key_format(self):
        """Test the Redis key string layout."""
        assert str(Key("cookies", "resource", URL)) == f"cookies:resource:{URL}"
