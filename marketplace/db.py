"""
Storage Configuration - Upstash Redis client and cart storage settings

Provides:
- Environment-driven settings for the cart storage backend
- Singleton async Upstash Redis client
- Key constants for cart snapshots
"""

import os
from typing import Optional

from upstash_redis.asyncio import Redis as AsyncRedis


# Upstash uses REST_URL and REST_TOKEN
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Cart storage: "redis", "file" or "memory"
CART_STORAGE_BACKEND = os.environ.get("CART_STORAGE_BACKEND", "memory").lower()
CART_STORAGE_PATH = os.environ.get("CART_STORAGE_PATH", "data/cart.json")


_redis_client: Optional[AsyncRedis] = None


def get_redis() -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Requires UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN.
    """
    global _redis_client

    if _redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _redis_client


class StorageKeys:
    """Keys for persisted cart data."""

    CART_PRODUCTS = os.environ.get("CART_STORAGE_KEY", "@Marketplace:products")
