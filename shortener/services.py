import asyncio
import logging
from typing import Optional

from shortener.helpers import shorten_url
from shortener.models import URLMapping
from shortener.stores import CacheStore, DurableStore, StoreUnavailable

logger = logging.getLogger(__name__)


class ShortenFailed(Exception):
    def __init__(self, long_url: str, details: str):
        self.long_url = long_url
        self.details = details
        self.message = f"Failed to shorten {long_url}: {details}"
        super().__init__(self.message)


class LookupFailed(Exception):
    def __init__(self, short_code: str, details: str):
        self.short_code = short_code
        self.details = details
        self.message = f"Failed to look up short code {short_code}: {details}"
        super().__init__(self.message)


class ShortCodeCollision(Exception):
    def __init__(self, short_code: str, existing_url: str, requested_url: str):
        self.short_code = short_code
        self.existing_url = existing_url
        self.requested_url = requested_url
        self.message = (
            f"Short code {short_code} is already mapped to {existing_url}, "
            f"cannot map it to {requested_url}"
        )
        super().__init__(self.message)


def _reraise_unexpected(*outcomes):
    for outcome in outcomes:
        if isinstance(outcome, BaseException) and not isinstance(
            outcome, StoreUnavailable
        ):
            raise outcome


class ResolutionCoordinator:
    """Creates and resolves short codes across the cache and the durable store.

    Every call runs inside a single lock owned by the coordinator, so creations
    and lookups are totally ordered against each other. Within the critical
    section both stores are queried concurrently and both outcomes are joined
    before any decision is made.

    The cache and the durable store are both keyed by short code. The durable
    store is authoritative whenever the two disagree.
    """

    def __init__(
        self, cache: CacheStore, durable: DurableStore, backfill_cache: bool = False
    ):
        self.cache = cache
        self.durable = durable
        self.backfill_cache = backfill_cache
        self._lock = asyncio.Lock()

    async def resolve_or_create(self, long_url: str) -> str:
        short_code = shorten_url(long_url)

        async with self._lock:
            cache_outcome, durable_outcome = await asyncio.gather(
                self.cache.set(short_code, long_url),
                self.durable.find_by_short_code(short_code),
                return_exceptions=True,
            )
            _reraise_unexpected(cache_outcome, durable_outcome)

            if isinstance(cache_outcome, StoreUnavailable):
                logger.error(f"Could not cache {short_code} for url: {long_url}")
                raise ShortenFailed(long_url, cache_outcome.message)

            existing: Optional[URLMapping] = None
            if isinstance(durable_outcome, StoreUnavailable):
                logger.warning(
                    f"Durable store unavailable, assuming {short_code} is new: "
                    f"{durable_outcome.message}"
                )
            else:
                existing = durable_outcome

            if existing is not None:
                await self._ensure_same_target(existing, long_url)
                logger.info(f"URL already shortened: {long_url} -> {short_code}")
                return existing.short_url

            try:
                inserted = await self.durable.insert(
                    URLMapping(short_url=short_code, long_url=long_url)
                )
            except StoreUnavailable as exc:
                logger.error(f"Could not store the mapping for url: {long_url}")
                raise ShortenFailed(long_url, exc.message) from exc

            if inserted:
                logger.info(f"URL shortened and stored: {long_url} -> {short_code}")
                return short_code

            # Row already present: re-read it, it may hold a colliding URL.
            logger.warning(f"Mapping for {short_code} was already stored")
            try:
                existing = await self.durable.find_by_short_code(short_code)
            except StoreUnavailable as exc:
                logger.error(f"Could not verify the stored mapping for {short_code}")
                raise ShortenFailed(long_url, exc.message) from exc

            if existing is not None:
                await self._ensure_same_target(existing, long_url)

            return short_code

    async def lookup(self, short_code: str) -> Optional[str]:
        async with self._lock:
            cache_outcome, durable_outcome = await asyncio.gather(
                self.cache.get(short_code),
                self.durable.find_by_short_code(short_code),
                return_exceptions=True,
            )
            _reraise_unexpected(cache_outcome, durable_outcome)

            if isinstance(cache_outcome, StoreUnavailable):
                logger.error(f"Cache fault looking up short code: {short_code}")
                raise LookupFailed(short_code, cache_outcome.message)

            if cache_outcome is not None:
                if isinstance(durable_outcome, StoreUnavailable):
                    logger.warning(
                        f"Durable store unavailable on cache hit for {short_code}: "
                        f"{durable_outcome.message}"
                    )
                logger.info(f"Cache hit - Redirecting: {short_code} -> {cache_outcome}")
                return cache_outcome

            if isinstance(durable_outcome, StoreUnavailable):
                logger.error(f"Durable store fault looking up short code: {short_code}")
                raise LookupFailed(short_code, durable_outcome.message)

            if durable_outcome is None:
                logger.info(f"Cannot find matching URL for short code: {short_code}")
                return None

            if self.backfill_cache:
                await self._restore_cache(durable_outcome)

            logger.info(
                f"URL found in durable store - Redirecting: "
                f"{short_code} -> {durable_outcome.long_url}"
            )
            return durable_outcome.long_url

    async def _ensure_same_target(self, existing: URLMapping, long_url: str) -> None:
        if existing.long_url == long_url:
            return

        await self._restore_cache(existing)
        logger.error(
            f"Short code collision: {existing.short_url} -> {existing.long_url}, "
            f"requested {long_url}"
        )
        raise ShortCodeCollision(existing.short_url, existing.long_url, long_url)

    async def _restore_cache(self, mapping: URLMapping) -> None:
        try:
            await self.cache.set(mapping.short_url, mapping.long_url)
        except StoreUnavailable as exc:
            logger.error(
                f"Could not write {mapping.short_url} back to cache, cached value "
                f"may disagree with the durable record {mapping.long_url}: {exc.message}"
            )
