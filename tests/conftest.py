"""Pytest configuration and fixtures."""

from datetime import UTC
from datetime import datetime

import pytest

from download_shields.models.cookie import CookieJar


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class FixedClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current


class MemoryCookieStore:
    """Dict-backed cookie store recording every call."""

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.get_calls = []
        self.set_calls = []
        self.delete_calls = []

    async def contains(self, key):
        return key in self.data

    async def get(self, key):
        self.get_calls.append(key)
        return self.data[key]

    async def set(self, key, value, expire=None):
        self.set_calls.append((key, value, expire))
        self.data[key] = value

    async def delete(self, key):
        self.delete_calls.append(key)
        self.data.pop(key, None)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def jar():
    return CookieJar()


@pytest.fixture
def memory_store():
    return MemoryCookieStore()
