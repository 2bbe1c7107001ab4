"""Explicit store scope: the cart equivalent of a provider/consumer pair."""
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator, Optional

from marketplace.errors import CartScopeError
from .service import CartStore

_current_store: ContextVar[Optional[CartStore]] = ContextVar("current_cart_store", default=None)


@asynccontextmanager
async def cart_scope(store: CartStore) -> AsyncIterator[CartStore]:
    """Start store, make it current for the enclosed context, close it on exit."""
    await store.start()
    token = _current_store.set(store)
    try:
        yield store
    finally:
        _current_store.reset(token)
        await store.close()


def use_cart() -> CartStore:
    """
    Return the store of the enclosing cart_scope.

    Raises:
        CartScopeError: called outside an active cart_scope
    """
    store = _current_store.get()
    if store is None or not store.is_running:
        raise CartScopeError()
    return store
