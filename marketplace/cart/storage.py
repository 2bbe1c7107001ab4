"""Key-value storage backends for cart snapshots."""
import asyncio
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from marketplace import db
from marketplace.logging import get_logger

logger = get_logger(__name__)


class KeyValueStorage(ABC):
    """Async string key-value store the cart persists into.

    Backends must implement:
    - get() - Return the stored value or None
    - set() - Replace the stored value wholesale
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None if absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""


class RedisStorage(KeyValueStorage):
    """Upstash Redis backend."""

    def __init__(self, redis=None) -> None:
        self._redis = redis  # Lazy initialization

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            try:
                self._redis = db.get_redis()
            except ValueError as e:
                raise ValueError(
                    f"Redis not available: {e}. Check UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN environment variables."
                )
        return self._redis

    async def get(self, key: str) -> Optional[str]:
        value = await self.redis.get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        await self.redis.set(key, value)


class FileStorage(KeyValueStorage):
    """
    Durable local backend: one JSON document mapping keys to values.

    Blocking file IO runs in a worker thread. Writes go to a temp file that
    is then renamed over the target, so a crash never leaves a torn file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Storage file {self.path} does not hold a JSON object")
        return data

    def _write_value(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            logger.warning(f"Storage file {self.path} is unreadable, rewriting it: {e}")
            data = {}
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)

    async def get(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._read_all)
        return data.get(key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write_value, key, value)


class MemoryStorage(KeyValueStorage):
    """Process-local backend for tests and development."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value


def create_storage(backend: str | None = None) -> KeyValueStorage:
    """Build the storage backend named by CART_STORAGE_BACKEND."""
    backend = (backend or db.CART_STORAGE_BACKEND).lower()

    if backend == "redis":
        return RedisStorage()
    if backend == "file":
        return FileStorage(db.CART_STORAGE_PATH)
    if backend == "memory":
        logger.warning("Using in-memory cart storage; cart will not survive restarts")
        return MemoryStorage()

    raise ValueError(f"Unknown CART_STORAGE_BACKEND: {backend!r} (expected redis, file or memory)")
