from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from shortener.cache import RedisCacheStore
from shortener.stores import StoreUnavailable

TEST_CODE = "100680ad54"
TEST_URL = "https://example.com"


# Fixtures
@pytest.fixture
def mock_redis():
    return AsyncMock()


# Tests get
@pytest.mark.asyncio
async def test_get_hit(mock_redis):
    mock_redis.get.return_value = TEST_URL
    store = RedisCacheStore(mock_redis)

    assert await store.get(TEST_CODE) == TEST_URL
    mock_redis.get.assert_called_once_with(f"url:{TEST_CODE}")


@pytest.mark.asyncio
async def test_get_miss(mock_redis):
    mock_redis.get.return_value = None
    store = RedisCacheStore(mock_redis, prefix="test:")

    assert await store.get(TEST_CODE) is None
    mock_redis.get.assert_called_once_with(f"test:{TEST_CODE}")


@pytest.mark.asyncio
async def test_get_fault(mock_redis):
    mock_redis.get.side_effect = RedisConnectionError("connection refused")
    store = RedisCacheStore(mock_redis)

    with pytest.raises(StoreUnavailable) as exc_info:
        await store.get(TEST_CODE)

    assert exc_info.value.store == "Redis"
    assert exc_info.value.operation == "get"


# Tests set
@pytest.mark.asyncio
async def test_set_without_expiry(mock_redis):
    store = RedisCacheStore(mock_redis)

    await store.set(TEST_CODE, TEST_URL)

    mock_redis.set.assert_called_once_with(f"url:{TEST_CODE}", TEST_URL)
    mock_redis.setex.assert_not_called()


@pytest.mark.asyncio
async def test_set_with_expiry(mock_redis):
    store = RedisCacheStore(mock_redis, expiry_seconds=3600)

    await store.set(TEST_CODE, TEST_URL)

    mock_redis.setex.assert_called_once_with(f"url:{TEST_CODE}", 3600, TEST_URL)
    mock_redis.set.assert_not_called()


@pytest.mark.asyncio
async def test_set_fault(mock_redis):
    mock_redis.set.side_effect = OSError("network unreachable")
    store = RedisCacheStore(mock_redis)

    with pytest.raises(StoreUnavailable):
        await store.set(TEST_CODE, TEST_URL)
