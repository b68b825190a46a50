import asyncio
from typing import Optional

import pytest

from shortener.models import URLMapping
from shortener.services import ResolutionCoordinator
from shortener.stores import StoreUnavailable


class InMemoryCache:
    def __init__(self):
        self.data: dict[str, str] = {}
        self.fail = False

    async def get(self, key: str) -> Optional[str]:
        await asyncio.sleep(0)
        if self.fail:
            raise StoreUnavailable("Redis", "get", "connection refused")
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.sleep(0)
        if self.fail:
            raise StoreUnavailable("Redis", "set", "connection refused")
        self.data[key] = value


class InMemoryDurable:
    """Appends on every insert, so duplicate inserts show up as extra records."""

    def __init__(self):
        self.records: list[URLMapping] = []
        self.fail_reads = False
        self.fail_inserts = False

    async def find_by_long_url(self, long_url: str) -> Optional[URLMapping]:
        await asyncio.sleep(0)
        if self.fail_reads:
            raise StoreUnavailable("Postgres", "find_by_long_url", "timeout")
        return next((r for r in self.records if r.long_url == long_url), None)

    async def find_by_short_code(self, short_code: str) -> Optional[URLMapping]:
        await asyncio.sleep(0)
        if self.fail_reads:
            raise StoreUnavailable("Postgres", "find_by_short_code", "timeout")
        return next((r for r in self.records if r.short_url == short_code), None)

    async def insert(self, mapping: URLMapping) -> bool:
        await asyncio.sleep(0)
        if self.fail_inserts:
            raise StoreUnavailable("Postgres", "insert", "timeout")
        self.records.append(mapping)
        return True


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def durable():
    return InMemoryDurable()


@pytest.fixture
def coordinator(cache, durable):
    return ResolutionCoordinator(cache=cache, durable=durable)
