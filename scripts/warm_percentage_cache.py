#!/usr/bin/env python3
"""
Warm the Redis percentage cache.

Runs the same cache-aside lookup the Calculator service performs so the
percentage key is populated before traffic arrives. With ``--dry-run`` the
current cached value is reported and nothing is written.
"""

import argparse
import asyncio
import json
from typing import Optional
import sys
import os

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.config import BaseConfig  # noqa: E402
from service_calculator.app.cache.percentage_cache import PercentageCache, create_redis_client  # noqa: E402
from service_calculator.app.providers import HttpPercentageProvider, StaticPercentageProvider  # noqa: E402


async def warm(
    *,
    redis_host: str,
    redis_port: int,
    provider_url: Optional[str],
    static_percentage: float,
    dry_run: bool,
) -> dict:
    """Execute cache warming and return the summary."""
    client = create_redis_client(redis_host, redis_port)
    if provider_url:
        provider = HttpPercentageProvider(provider_url)
    else:
        provider = StaticPercentageProvider(static_percentage)
    cache = PercentageCache(client, provider)

    try:
        if dry_run:
            return {"cache_key": cache.cache_key, "cached_value": await cache.get_cached_value(), "dry_run": True}

        result = await cache.resolve_percentage()
        return {
            "cache_key": cache.cache_key,
            "value": result.value,
            "source": result.source.value,
            "error": result.error,
        }
    finally:
        await cache.close()


def parse_args(argv=None) -> argparse.Namespace:
    config = BaseConfig()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--redis-host", default=config.redis_host)
    parser.add_argument("--redis-port", type=int, default=config.redis_port)
    parser.add_argument("--provider-url", default=config.percentage_provider_url)
    parser.add_argument("--static-percentage", type=float, default=config.static_percentage)
    parser.add_argument("--dry-run", action="store_true", help="Only report the cached value")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    summary = asyncio.run(
        warm(
            redis_host=args.redis_host,
            redis_port=args.redis_port,
            provider_url=args.provider_url,
            static_percentage=args.static_percentage,
            dry_run=args.dry_run,
        )
    )
    print(json.dumps(summary, indent=2))
    return 1 if summary.get("error") else 0


if __name__ == "__main__":
    sys.exit(main())
