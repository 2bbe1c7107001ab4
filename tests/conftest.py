"""Pytest configuration and fixtures"""
import asyncio
import json
import os
from typing import List, Optional
from unittest.mock import AsyncMock

import pytest

# Set test environment variables
os.environ.setdefault("CART_STORAGE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from marketplace.cart import MemoryStorage, NewLineItem
from marketplace.db import StorageKeys

CART_KEY = StorageKeys.CART_PRODUCTS


class RecordingStorage(MemoryStorage):
    """MemoryStorage that records every write and can hold writes behind a gate."""

    def __init__(self, initial=None) -> None:
        super().__init__(initial)
        self.writes: List[list] = []
        self.gate: Optional[asyncio.Event] = None

    async def set(self, key: str, value: str) -> None:
        if self.gate is not None:
            await self.gate.wait()
        self.writes.append(json.loads(value))
        await super().set(key, value)


def stored_products(storage: MemoryStorage) -> list:
    """Decoded cart snapshot currently held by storage."""
    return json.loads(storage.data[CART_KEY])


@pytest.fixture
def memory_storage():
    """Empty in-memory backend"""
    return MemoryStorage()


@pytest.fixture
def recording_storage():
    """Backend that keeps the history of snapshot writes"""
    return RecordingStorage()


@pytest.fixture
def failing_storage():
    """Backend whose writes always fail"""
    storage = MemoryStorage()
    storage.set = AsyncMock(side_effect=ConnectionError("redis unreachable"))
    return storage


@pytest.fixture
def shirt():
    """Sample product"""
    return NewLineItem(
        id="p1",
        title="Shirt",
        image_url="https://cdn.example.com/shirt.png",
        price=10,
    )


@pytest.fixture
def mug():
    """Second sample product"""
    return NewLineItem(
        id="p2",
        title="Coffee Mug",
        image_url="https://cdn.example.com/mug.png",
        price=7.5,
    )


@pytest.fixture
def stored_cart_payload():
    """Snapshot as it would be stored after a previous session"""
    return json.dumps([
        {
            "id": "p1",
            "title": "Shirt",
            "image_url": "https://cdn.example.com/shirt.png",
            "price": 10,
            "quantity": 2,
        }
    ])
