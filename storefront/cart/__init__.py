"""Cart package: models, inventory client, storage, and manager."""
from .errors import (
    CartError,
    CartStorageError,
    InsufficientStock,
    InventoryCheckFailed,
    InventoryNotFound,
    InventoryRefreshFailed,
    OutOfStock,
    ProductUnavailable,
)
from .inventory import InventoryClient
from .models import (
    Cart,
    CartItem,
    Product,
    ProductVariant,
    QuantityChange,
    RefreshSummary,
    RemovedItem,
    StockData,
    cart_item_id,
)
from .service import CartManager, create_cart_manager
from .storage import CartStorage, RedisCartStorage, generate_session_id
from .sync import CartMirror

__all__ = [
    "Cart",
    "CartItem",
    "CartManager",
    "CartMirror",
    "CartStorage",
    "Product",
    "ProductVariant",
    "QuantityChange",
    "RedisCartStorage",
    "RefreshSummary",
    "RemovedItem",
    "StockData",
    "cart_item_id",
    "create_cart_manager",
    "generate_session_id",
    "CartError",
    "CartStorageError",
    "InsufficientStock",
    "InventoryCheckFailed",
    "InventoryNotFound",
    "InventoryRefreshFailed",
    "OutOfStock",
    "ProductUnavailable",
]
