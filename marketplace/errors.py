"""
Cart Errors

Message constants and the exception taxonomy raised by the cart store.
"""

# Messages
ERROR_SCOPE = "use_cart must be used within a cart_scope"
ERROR_STORE_NOT_STARTED = "CartStore is not started; enter cart_scope or 'async with' the store first"
ERROR_ITEM_NOT_FOUND = "Line item not found"
ERROR_PERSISTENCE_WRITE = "Failed to persist cart snapshot"
ERROR_HYDRATION_DECODE = "Stored cart snapshot is malformed"
ERROR_STORAGE_UNAVAILABLE = "Cart storage unavailable"


class CartError(Exception):
    """Base error for cart operations."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class CartScopeError(CartError):
    """Store accessed outside an active scope, or before it was started."""

    def __init__(self, message: str = ERROR_SCOPE) -> None:
        super().__init__(message, code="SCOPE")


class HydrationDecodeError(CartError):
    """Persisted snapshot could not be decoded."""

    def __init__(self, message: str = ERROR_HYDRATION_DECODE) -> None:
        super().__init__(message, code="HYDRATION_DECODE")


class PersistenceWriteError(CartError):
    """Backend rejected a snapshot write."""

    def __init__(self, message: str = ERROR_PERSISTENCE_WRITE, key: str | None = None) -> None:
        super().__init__(message, code="PERSISTENCE_WRITE")
        self.key = key


class LineItemNotFoundError(CartError):
    """Increment or decrement targeted an id that is not in the cart."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"{ERROR_ITEM_NOT_FOUND}: {item_id}", code="NOT_FOUND")
        self.item_id = item_id
