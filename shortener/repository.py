import logging
from typing import Optional

import asyncpg
from asyncpg import Pool

from shortener.models import URLMapping
from shortener.stores import StoreUnavailable

logger = logging.getLogger(__name__)

STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


async def ensure_schema(pool: Pool) -> None:
    await pool.execute(
        """
        CREATE TABLE IF NOT EXISTS url_mappings (
            id BIGSERIAL PRIMARY KEY,
            short_url TEXT NOT NULL UNIQUE,
            long_url TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    await pool.execute(
        """
        CREATE INDEX IF NOT EXISTS url_mappings_long_url_idx
        ON url_mappings (long_url)
        """
    )


class PostgresMappingStore:
    def __init__(self, pool: Pool):
        self.pool = pool

    async def find_by_long_url(self, long_url: str) -> Optional[URLMapping]:
        try:
            result = await self.pool.fetchrow(
                """
                SELECT short_url, long_url FROM url_mappings WHERE long_url = $1
                """,
                long_url,
            )
        except STORE_ERRORS as exc:
            logger.error(f"Postgres error finding long url {long_url}: {str(exc)}")
            raise StoreUnavailable("Postgres", "find_by_long_url", str(exc)) from exc

        if result:
            return URLMapping(short_url=result["short_url"], long_url=result["long_url"])
        return None

    async def find_by_short_code(self, short_code: str) -> Optional[URLMapping]:
        try:
            result = await self.pool.fetchrow(
                """
                SELECT short_url, long_url FROM url_mappings WHERE short_url = $1
                """,
                short_code,
            )
        except STORE_ERRORS as exc:
            logger.error(f"Postgres error finding short code {short_code}: {str(exc)}")
            raise StoreUnavailable("Postgres", "find_by_short_code", str(exc)) from exc

        if result:
            return URLMapping(short_url=result["short_url"], long_url=result["long_url"])
        return None

    async def insert(self, mapping: URLMapping) -> bool:
        try:
            result = await self.pool.fetchrow(
                """
                INSERT INTO url_mappings (short_url, long_url)
                VALUES ($1, $2)
                ON CONFLICT (short_url) DO NOTHING
                RETURNING id
                """,
                mapping.short_url,
                mapping.long_url,
            )
        except STORE_ERRORS as exc:
            logger.error(f"Postgres error inserting {mapping.short_url}: {str(exc)}")
            raise StoreUnavailable("Postgres", "insert", str(exc)) from exc

        return result is not None
