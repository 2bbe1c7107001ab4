"""
Marketplace Cart - FastAPI Application

Single entry point for the cart API. The lifespan owns the CartStore:
it is created and started on startup, published on app.state for the
routers, and drained and closed on shutdown.
"""
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketplace.cart import CartStore, KeyValueStorage, cart_scope, create_storage
from marketplace.logging import get_logger
from marketplace.routers import cart_router

logger = get_logger(__name__)


def create_app(storage_factory: Callable[[], KeyValueStorage] = create_storage) -> FastAPI:
    """Build the application; storage_factory is called once per lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler"""
        store = CartStore(storage_factory())
        async with cart_scope(store):
            # Serve nothing until the stored cart is loaded, so no request
            # can mutate ahead of hydration and overwrite it
            await store.wait_hydrated()
            app.state.cart_store = store
            try:
                yield
            finally:
                app.state.cart_store = None
        logger.info("Cart API shut down")

    app = FastAPI(
        title="Marketplace Cart",
        description="Shopping cart state with durable persistence",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.cart_store = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(cart_router, prefix="/api")

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        store = app.state.cart_store
        return {
            "status": "ok",
            "service": "marketplace-cart",
            "cart_ready": bool(store and store.is_hydrated),
        }

    return app


app = create_app()
