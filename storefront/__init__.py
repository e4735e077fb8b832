"""
Storefront Core Module

This package contains the storefront cart components:
- db: Database clients (Supabase + Redis)
- cart: inventory-aware cart manager, persisted to Redis
- inventory: stock/availability helpers
- routers: Inventory Query Service endpoints

Note: Imports are lazy to avoid circular dependency issues
and ensure clean module loading in serverless environments.
"""

__all__ = [
    "get_supabase",
    "get_redis",
    "CartManager",
    "create_cart_manager",
]


def __getattr__(name):
    """Lazy attribute access for clean serverless loading."""
    if name == "get_supabase":
        from storefront.db import get_supabase
        return get_supabase
    if name == "get_redis":
        from storefront.db import get_redis
        return get_redis
    if name == "CartManager":
        from storefront.cart import CartManager
        return CartManager
    if name == "create_cart_manager":
        from storefront.cart import create_cart_manager
        return create_cart_manager
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
