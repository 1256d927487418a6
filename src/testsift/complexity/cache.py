"""
Disk cache for complexity results.

Uses diskcache for SQLite-based persistent caching, keyed by a hash of
the source text so unchanged files are never re-parsed.
"""

import hashlib
from typing import Any, Optional, Sequence

from diskcache import Cache

from ..logging_config import get_logger
from .models import ComplexityRecord

logger = get_logger(__name__)


def source_key(source: str, language: str) -> str:
    """SHA-256 of language and source text."""
    return hashlib.sha256(f"{language}\0{source}".encode("utf-8")).hexdigest()


class ComplexityCache:
    """
    Content-addressed cache of analyzed records.

    Errors from the cache backend are logged and treated as misses; a
    broken cache never fails an analysis.
    """

    def __init__(
        self,
        cache_dir: str = ".testsift-cache",
        ttl_hours: int = 24,
        enabled: bool = True,
    ):
        self.enabled = enabled
        self.ttl_seconds = ttl_hours * 3600
        self.hits = 0
        self.misses = 0

        self.cache: Optional[Cache]
        if self.enabled:
            self.cache = Cache(cache_dir)
            logger.debug(f"Complexity cache at {cache_dir} with TTL={ttl_hours}h")
        else:
            self.cache = None

    def get(self, source: str, language: str) -> Optional[tuple[ComplexityRecord, ...]]:
        if self.cache is None:
            return None

        key = source_key(source, language)
        try:
            value = self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache get failed: {e}")
            value = None

        if value is None:
            self.misses += 1
            return None
        self.hits += 1
        logger.debug(f"Cache hit: {key[:16]}...")
        return value

    def set(self, source: str, language: str, records: Sequence[ComplexityRecord]) -> None:
        if self.cache is None:
            return

        key = source_key(source, language)
        try:
            self.cache.set(key, tuple(records), expire=self.ttl_seconds or None)
        except Exception as e:
            logger.warning(f"Cache set failed: {e}")

    def clear(self) -> None:
        if self.cache is None:
            return
        try:
            self.cache.clear()
            logger.info("Complexity cache cleared")
        except Exception as e:
            logger.warning(f"Cache clear failed: {e}")

    def stats(self) -> dict[str, Any]:
        if self.cache is None:
            return {"enabled": False}
        try:
            return {
                "enabled": True,
                "size": len(self.cache),
                "directory": self.cache.directory,
                "hits": self.hits,
                "misses": self.misses,
            }
        except Exception as e:
            logger.warning(f"Cache stats failed: {e}")
            return {"enabled": True, "error": str(e)}

    def close(self) -> None:
        if self.cache is not None:
            self.cache.close()
