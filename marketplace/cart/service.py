"""Cart store: in-memory cart state mirrored to a key-value backend."""
import asyncio
import contextlib
from typing import Callable, List, Optional, Tuple

from marketplace.db import StorageKeys
from marketplace.errors import (
    CartScopeError,
    HydrationDecodeError,
    PersistenceWriteError,
    ERROR_PERSISTENCE_WRITE,
    ERROR_STORE_NOT_STARTED,
)
from marketplace.logging import get_logger, sanitize_id_for_logging
from .models import Cart, LineItem, NewLineItem, decode_snapshot, encode_snapshot
from .storage import KeyValueStorage

logger = get_logger(__name__)

Snapshot = Tuple[LineItem, ...]
Listener = Callable[[Snapshot], None]
ErrorListener = Callable[[PersistenceWriteError], None]

# Queue marker for the startup read
_HYDRATE = object()


class CartStore:
    """
    Owns the cart for one session and keeps its persisted copy in sync.

    Features:
    - add_to_cart / increment / decrement apply synchronously to memory
    - Every mutation enqueues a full snapshot write; one writer task
      drains the queue in order
    - Hydration from storage is the first queued job and never blocks start()
    - Listeners receive the full snapshot after each change

    Usage:
        async with CartStore(storage) as store:
            store.subscribe(render)
            store.add_to_cart(NewLineItem(id="p1", title="Shirt", image_url="", price=10))
            await store.flush()
    """

    def __init__(self, storage: KeyValueStorage, key: str = StorageKeys.CART_PRODUCTS):
        self._storage = storage
        self._key = key
        self._cart = Cart()
        self._listeners: List[Listener] = []
        self._error_listeners: List[ErrorListener] = []
        self._queue: Optional[asyncio.Queue] = None
        self._writer: Optional[asyncio.Task] = None
        self._hydrated: Optional[asyncio.Event] = None
        self._mutated = False
        self._first_write_error: Optional[PersistenceWriteError] = None
        self._write_error_count = 0

    # ==================== LIFECYCLE ====================

    @property
    def is_running(self) -> bool:
        return self._writer is not None and not self._writer.done()

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated is not None and self._hydrated.is_set()

    @property
    def unflushed_write_errors(self) -> int:
        """Write failures since the last flush(); only the first is kept."""
        return self._write_error_count

    async def start(self) -> None:
        """Start the writer task and schedule hydration; returns immediately."""
        if self.is_running:
            return
        self._queue = asyncio.Queue()
        self._hydrated = asyncio.Event()
        self._queue.put_nowait(_HYDRATE)
        self._writer = asyncio.create_task(self._run_writer(), name="cart-writer")
        logger.info(f"Cart store started (key={self._key})")

    async def wait_hydrated(self) -> None:
        if self._hydrated is None:
            raise CartScopeError(ERROR_STORE_NOT_STARTED)
        await self._hydrated.wait()

    async def flush(self) -> None:
        """
        Wait until every queued write has been attempted.

        Raises:
            PersistenceWriteError: first write failure since the previous flush
        """
        self._require_running()
        await self._queue.join()
        if self._first_write_error is not None:
            error = self._first_write_error
            self._first_write_error = None
            self._write_error_count = 0
            raise error

    async def close(self) -> None:
        """Drain pending writes and stop the writer task."""
        if not self.is_running:
            return
        await self._queue.join()
        self._writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._writer
        self._writer = None
        if self._write_error_count:
            logger.error(f"Cart store closed with {self._write_error_count} unflushed write error(s)")
        logger.info("Cart store closed")

    async def __aenter__(self) -> "CartStore":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ==================== READ / SUBSCRIBE ====================

    @property
    def products(self) -> Snapshot:
        """Current ordered snapshot."""
        return self._cart.items

    @property
    def cart(self) -> Cart:
        return self._cart

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def subscribe_errors(self, listener: ErrorListener) -> Callable[[], None]:
        """Register a listener for failed snapshot writes."""
        self._error_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._error_listeners:
                self._error_listeners.remove(listener)

        return unsubscribe

    # ==================== MUTATIONS ====================

    def add_to_cart(self, item: NewLineItem) -> Snapshot:
        """Add one unit of item; an existing entry keeps its position."""
        self._require_running()
        return self._commit(self._cart.add(item), "add", item.id)

    def increment(self, item_id: str) -> Snapshot:
        """
        Add one unit to an existing entry.

        Raises:
            LineItemNotFoundError: item_id is not in the cart (cart unchanged)
        """
        self._require_running()
        return self._commit(self._cart.increment(item_id), "increment", item_id)

    def decrement(self, item_id: str) -> Snapshot:
        """
        Remove one unit; the entry is dropped when its quantity reaches zero.

        Raises:
            LineItemNotFoundError: item_id is not in the cart (cart unchanged)
        """
        self._require_running()
        return self._commit(self._cart.decrement(item_id), "decrement", item_id)

    def _require_running(self) -> None:
        if not self.is_running:
            raise CartScopeError(ERROR_STORE_NOT_STARTED)

    def _commit(self, cart: Cart, action: str, item_id: str) -> Snapshot:
        self._cart = cart
        self._mutated = True
        self._queue.put_nowait(cart)
        logger.debug(
            f"Cart {action} {sanitize_id_for_logging(item_id)}: "
            f"{len(cart.items)} line(s), {cart.total_items} unit(s)"
        )
        self._notify(cart.items)
        return cart.items

    def _notify(self, snapshot: Snapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Cart listener {listener!r} failed: {e}", exc_info=True)

    # ==================== PERSISTENCE ====================

    async def _run_writer(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                if job is _HYDRATE:
                    await self._hydrate()
                else:
                    await self._persist(job)
            finally:
                self._queue.task_done()

    async def _persist(self, cart: Cart) -> None:
        try:
            await self._storage.set(self._key, encode_snapshot(cart))
        except Exception as e:
            logger.error(f"Failed to persist cart snapshot to {self._key}: {e}", exc_info=True)
            error = PersistenceWriteError(f"{ERROR_PERSISTENCE_WRITE}: {e}", key=self._key)
            error.__cause__ = e
            if self._first_write_error is None:
                self._first_write_error = error
            self._write_error_count += 1
            for listener in list(self._error_listeners):
                try:
                    listener(error)
                except Exception as listener_error:
                    logger.error(f"Cart error listener failed: {listener_error}", exc_info=True)

    async def _hydrate(self) -> None:
        try:
            raw = await self._storage.get(self._key)
            if not raw:
                logger.info(f"No stored cart under {self._key}; starting empty")
                return

            try:
                cart = decode_snapshot(raw)
            except HydrationDecodeError as e:
                logger.warning(f"Corrupted cart snapshot under {self._key}, starting empty: {e}")
                return

            if self._mutated:
                # Queued writes already carry newer state
                logger.warning("Cart changed before hydration finished; discarding stored snapshot")
                return

            self._cart = cart
            logger.info(f"Cart hydrated with {len(cart.items)} line(s)")
            self._notify(cart.items)
        except Exception as e:
            logger.error(f"Failed to read cart snapshot from {self._key}: {e}", exc_info=True)
        finally:
            self._hydrated.set()
