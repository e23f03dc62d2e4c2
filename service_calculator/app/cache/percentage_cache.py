"""
Redis-backed percentage cache for Calculator Service.
"""

import math
from typing import Optional

import redis.asyncio as redis

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..models import PercentageResult
from ..providers import PercentageProvider


PERCENTAGE_CACHE_KEY = "external_percentage"
PERCENTAGE_TTL_SECONDS = 1800


def create_redis_client(host: str, port: int, db: int = 0) -> redis.Redis:
    """Build an asyncio Redis client that returns decoded strings."""
    return redis.Redis(
        host=host,
        port=port,
        db=db,
        encoding="utf-8",
        decode_responses=True
    )


class PercentageCache:
    """Cache-aside lookup of the percentage.

    The cache is read first. On a miss the provider is consulted once and the
    value is written back with a fixed TTL. A failing read or write is
    reported as unavailable rather than treated as a miss, so a broken cache
    never falls through to the provider.
    """

    def __init__(
        self,
        client: redis.Redis,
        provider: PercentageProvider,
        metrics: Optional[MetricsCollector] = None
    ):
        self.redis = client
        self.provider = provider
        self.cache_key = PERCENTAGE_CACHE_KEY
        self.ttl_seconds = PERCENTAGE_TTL_SECONDS
        self.metrics = metrics
        self.logger = get_logger("calculator.cache.percentage")

    async def resolve_percentage(self) -> PercentageResult:
        """Resolve the percentage from the cache, falling back to the provider."""
        self.logger.info("Checking cached percentage", cache_key=self.cache_key)
        try:
            cached_value = await self.redis.get(self.cache_key)
            if cached_value is not None:
                percentage = float(cached_value)
                if not math.isfinite(percentage):
                    raise ValueError(f"cached value {cached_value!r} is not a finite number")
                self.logger.info("Cached percentage found", value=percentage)
                self._record_lookup("hit")
                return PercentageResult.from_cache(percentage)
        except Exception as e:
            self.logger.error("Failed to retrieve cached percentage", error=str(e), exc_info=True)
            self._record_lookup("error")
            return PercentageResult.unavailable(f"Failed to retrieve cached percentage: {e}")

        self.logger.info("No cached percentage found, calling external service")
        self._record_lookup("miss")

        percentage = await self._fetch_from_provider()
        if percentage is None or not math.isfinite(percentage):
            self.logger.error("External percentage service failed and no cache available", value=percentage)
            return PercentageResult.unavailable("Percentage service failed and no cache available.")

        try:
            await self.redis.setex(self.cache_key, self.ttl_seconds, str(percentage))
        except Exception as e:
            self.logger.error("Failed to cache percentage value", value=percentage, error=str(e), exc_info=True)
            return PercentageResult.unavailable(f"Failed to cache percentage value: {e}")

        self.logger.info("Percentage cached successfully", value=percentage, ttl=self.ttl_seconds)
        return PercentageResult.from_external(percentage)

    async def get_cached_value(self) -> Optional[str]:
        """Return the raw cached value without consulting the provider."""
        return await self.redis.get(self.cache_key)

    async def _fetch_from_provider(self) -> Optional[float]:
        try:
            return await self.provider.fetch_percentage()
        except Exception as e:
            self.logger.error("Error while calling external percentage service", error=str(e), exc_info=True)
            return None

    def _record_lookup(self, result: str):
        if self.metrics:
            self.metrics.increment_counter("percentage_lookups_total", result=result)

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self.redis.ping()
            return True
        except Exception:
            return False

    async def close(self):
        """Release the Redis connection pool."""
        await self.redis.aclose()
        self.logger.info("Redis client closed")
