import hashlib

from cachetools import LFUCache, cached

CODE_LENGTH = 10


@cached(LFUCache(maxsize=1000))
def shorten_url(url: str) -> str:
    """Generate a shortened URL code."""

    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()
    return digest[:CODE_LENGTH]


def strip_code(path: str) -> str:
    """Strip leading path separators from a path-derived short code."""

    return path.lstrip("/")


def build_short_url(base_url: str, short_code: str) -> str:
    return f"{base_url.rstrip('/')}/{short_code}"
