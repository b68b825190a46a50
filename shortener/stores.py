from typing import Optional, Protocol

from shortener.models import URLMapping


class StoreUnavailable(Exception):
    def __init__(self, store: str, operation: str, details: str):
        self.store = store
        self.operation = operation
        self.details = details
        self.message = f"{store} failed during '{operation}': {details}"
        super().__init__(self.message)


class CacheStore(Protocol):
    """Fast key-value store. A miss is ``None``, a fault is ``StoreUnavailable``."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...


class DurableStore(Protocol):
    """Source of truth for mappings. Not found is ``None``, a fault is ``StoreUnavailable``."""

    async def find_by_long_url(self, long_url: str) -> Optional[URLMapping]: ...

    async def find_by_short_code(self, short_code: str) -> Optional[URLMapping]: ...

    async def insert(self, mapping: URLMapping) -> bool: ...
