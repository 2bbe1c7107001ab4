"""Cart package: models, storage backends, store and scope."""
from .models import Cart, LineItem, NewLineItem, decode_snapshot, encode_snapshot
from .scope import cart_scope, use_cart
from .service import CartStore
from .storage import FileStorage, KeyValueStorage, MemoryStorage, RedisStorage, create_storage

__all__ = [
    "Cart",
    "LineItem",
    "NewLineItem",
    "encode_snapshot",
    "decode_snapshot",
    "CartStore",
    "cart_scope",
    "use_cart",
    "KeyValueStorage",
    "RedisStorage",
    "FileStorage",
    "MemoryStorage",
    "create_storage",
]
