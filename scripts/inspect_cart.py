#!/usr/bin/env python3
"""
Print the persisted cart snapshot.

Usage:
    python scripts/inspect_cart.py                    # CART_STORAGE_BACKEND
    python scripts/inspect_cart.py --backend file
    python scripts/inspect_cart.py --backend redis --raw
"""

import argparse
import asyncio
import sys

from marketplace.cart import create_storage, decode_snapshot
from marketplace.db import StorageKeys
from marketplace.errors import HydrationDecodeError


async def main():
    parser = argparse.ArgumentParser(description="Show the stored cart snapshot")
    parser.add_argument("--backend", default=None, help="redis, file or memory (defaults to CART_STORAGE_BACKEND)")
    parser.add_argument("--key", default=StorageKeys.CART_PRODUCTS, help="Storage key of the snapshot")
    parser.add_argument("--raw", action="store_true", help="Print the stored string without decoding")
    args = parser.parse_args()

    storage = create_storage(args.backend)
    raw = await storage.get(args.key)

    if not raw:
        print(f"No cart stored under {args.key}")
        return 0

    if args.raw:
        print(raw)
        return 0

    try:
        cart = decode_snapshot(raw)
    except HydrationDecodeError as e:
        print(f"Stored snapshot is corrupted: {e}")
        return 1

    print(f"{len(cart.items)} line(s), {cart.total_items} unit(s)")
    for position, item in enumerate(cart.items, start=1):
        print(f"  {position:2d}. {item.id:20s} x{item.quantity:<3d} {item.title}  @ {item.price}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
