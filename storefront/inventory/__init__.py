"""Stock and availability helpers for catalog rows."""
from .stock import (
    UNLIMITED_QUANTITY,
    calculate_product_stock,
    format_stock_quantity,
    get_best_available_variant,
    get_max_purchasable_quantity,
    get_stock_status,
    is_product_available,
    is_variant_available,
)

__all__ = [
    "UNLIMITED_QUANTITY",
    "calculate_product_stock",
    "format_stock_quantity",
    "get_best_available_variant",
    "get_max_purchasable_quantity",
    "get_stock_status",
    "is_product_available",
    "is_variant_available",
]
