"""
Cart Router

Endpoints over the application's CartStore. Every mutation waits for its
snapshot write, so a storage failure is reported to the caller instead of
leaving memory and storage silently apart.
"""
from fastapi import APIRouter, Depends, HTTPException, Request

from marketplace.cart import Cart, CartStore, NewLineItem
from marketplace.errors import CartScopeError, LineItemNotFoundError, PersistenceWriteError
from marketplace.logging import get_logger, sanitize_id_for_logging
from .models import AddToCartRequest, CartResponse

logger = get_logger(__name__)

router = APIRouter(tags=["cart"])


def get_cart_store(request: Request) -> CartStore:
    """Resolve the store opened by the application lifespan."""
    store = getattr(request.app.state, "cart_store", None)
    if store is None or not store.is_running:
        logger.error("Cart endpoint called without an initialized cart store")
        raise CartScopeError("Cart endpoints require the application lifespan to open a cart_scope")
    return store


def _format_cart_response(cart: Cart) -> dict:
    return {
        "products": [item.to_dict() for item in cart.items],
        "total_items": cart.total_items,
    }


async def _flush_or_503(store: CartStore) -> None:
    try:
        await store.flush()
    except PersistenceWriteError as e:
        logger.error(f"Cart write failed: {e}")
        raise HTTPException(status_code=503, detail="Cart storage unavailable; change not saved")


@router.get("/cart", response_model=CartResponse)
async def get_cart(store: CartStore = Depends(get_cart_store)):
    """Current cart snapshot."""
    return _format_cart_response(store.cart)


@router.post("/cart/add", response_model=CartResponse)
async def add_to_cart(request: AddToCartRequest, store: CartStore = Depends(get_cart_store)):
    """Add one unit of a product (new products go to the end)."""
    try:
        item = NewLineItem(
            id=request.id,
            title=request.title,
            image_url=request.image_url,
            price=request.price,
        )
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))

    store.add_to_cart(item)
    await _flush_or_503(store)
    return _format_cart_response(store.cart)


@router.post("/cart/items/{item_id}/increment", response_model=CartResponse)
async def increment_item(item_id: str, store: CartStore = Depends(get_cart_store)):
    try:
        store.increment(item_id)
    except LineItemNotFoundError:
        logger.info(f"Increment of missing item {sanitize_id_for_logging(item_id)}")
        raise HTTPException(status_code=404, detail="Item not in cart")

    await _flush_or_503(store)
    return _format_cart_response(store.cart)


@router.post("/cart/items/{item_id}/decrement", response_model=CartResponse)
async def decrement_item(item_id: str, store: CartStore = Depends(get_cart_store)):
    """Remove one unit; the item disappears at zero."""
    try:
        store.decrement(item_id)
    except LineItemNotFoundError:
        logger.info(f"Decrement of missing item {sanitize_id_for_logging(item_id)}")
        raise HTTPException(status_code=404, detail="Item not in cart")

    await _flush_or_503(store)
    return _format_cart_response(store.cart)
