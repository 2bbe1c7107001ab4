"""
Marketplace Cart

This package contains:
- cart: cart models, storage backends, CartStore and its scope
- db: storage settings and the Upstash Redis client
- errors: cart error taxonomy
- logging: centralized logging setup
- routers: FastAPI endpoints over a CartStore
"""
