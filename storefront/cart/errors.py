"""Cart error taxonomy.

All of these carry a user-facing ``message`` so callers can show it as-is
(e.g. in a toast).
"""
from typing import Optional

from storefront.errors import (
    ERROR_CART_STORAGE_UNAVAILABLE,
    ERROR_INVENTORY_CHECK_FAILED,
    ERROR_INVENTORY_REFRESH_FAILED,
)


class CartError(Exception):
    """Base class for cart errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InventoryCheckFailed(CartError):
    """The Inventory Query Service call itself failed."""

    def __init__(
        self,
        message: str = ERROR_INVENTORY_CHECK_FAILED,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class InventoryNotFound(InventoryCheckFailed):
    """The product or variant no longer exists (HTTP 404)."""

    def __init__(self, message: str = "Product not found"):
        super().__init__(message, status_code=404, retryable=False)


class ProductUnavailable(CartError):
    """Product or variant is marked inactive."""

    def __init__(self, title: Optional[str] = None):
        super().__init__(f"{title or 'Product'} is no longer available")
        self.title = title


class OutOfStock(CartError):
    """Tracked stock is zero."""

    def __init__(self, title: Optional[str] = None):
        super().__init__(f"{title or 'Product'} is out of stock")
        self.title = title


class InsufficientStock(CartError):
    """Requested quantity exceeds tracked stock."""

    def __init__(self, available: int, requested: int, title: Optional[str] = None):
        super().__init__(f"Only {available} of {title or 'product'} available in stock")
        self.available = available
        self.requested = requested
        self.title = title


class InventoryRefreshFailed(CartError):
    """Reconciliation failed outside the per-item checks."""

    def __init__(self, message: str = ERROR_INVENTORY_REFRESH_FAILED):
        super().__init__(message)


class CartStorageError(CartError):
    """The persisted cart store could not be read or written."""

    def __init__(self, cause: object):
        super().__init__(f"{ERROR_CART_STORAGE_UNAVAILABLE}: {cause}")
