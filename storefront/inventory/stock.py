"""
Inventory helpers for consistent stock calculations.

All functions take product/variant rows as returned by Supabase (plain
dicts). A missing ``track_inventory`` means the row is tracked, and a
missing quantity counts as zero.
"""
from typing import Any, Dict, List, Optional

# Purchasable quantity reported for untracked products
UNLIMITED_QUANTITY = 999

DEFAULT_LOW_STOCK_THRESHOLD = 10


def _tracks(row: Dict[str, Any]) -> bool:
    return row.get("track_inventory") is not False


def _quantity(row: Dict[str, Any]) -> int:
    try:
        return int(row.get("inventory_quantity") or 0)
    except (TypeError, ValueError):
        return 0


def _variants(product: Dict[str, Any]) -> List[Dict[str, Any]]:
    if not product.get("has_variants"):
        return []
    return product.get("variants") or []


def calculate_product_stock(product: Dict[str, Any]) -> int:
    """
    Total available stock for a product.

    With variants, sums active tracked variants; otherwise uses the
    product's own quantity when tracked.
    """
    variants = _variants(product)
    if variants:
        return sum(
            _quantity(variant)
            for variant in variants
            if variant.get("is_active") and _tracks(variant)
        )
    return _quantity(product) if _tracks(product) else 0


def is_variant_available(variant: Dict[str, Any]) -> bool:
    """Active and either untracked, in stock or backorderable."""
    if not variant.get("is_active"):
        return False
    if not _tracks(variant):
        return True
    return _quantity(variant) > 0 or bool(variant.get("allow_backorder"))


def is_product_available(product: Dict[str, Any]) -> bool:
    """Whether a product can be purchased at all."""
    if not product.get("is_active"):
        return False

    variants = _variants(product)
    if variants:
        return any(is_variant_available(variant) for variant in variants)

    if not _tracks(product):
        return True
    return _quantity(product) > 0


def get_stock_status(quantity: Any, low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> Dict[str, str]:
    """
    Stock level with a display message.

    Levels: out-of-stock, very-low (<=3), low (<=threshold), limited (<=20), in-stock.
    """
    try:
        safe_quantity = int(quantity or 0)
    except (TypeError, ValueError):
        safe_quantity = 0

    if safe_quantity <= 0:
        return {"message": "Out of Stock", "level": "out-of-stock"}
    if safe_quantity <= 3:
        return {"message": "Few left!", "level": "very-low"}
    if safe_quantity <= low_stock_threshold:
        return {"message": "Low Stock", "level": "low"}
    if safe_quantity <= 20:
        return {"message": "Limited", "level": "limited"}
    return {"message": "In Stock", "level": "in-stock"}


def get_best_available_variant(variants: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Default available variant, else first available, else first active."""
    active = [variant for variant in variants or [] if variant.get("is_active")]
    if not active:
        return None

    for variant in active:
        if variant.get("is_default") and is_variant_available(variant):
            return variant

    for variant in active:
        if is_variant_available(variant):
            return variant

    return active[0]


def format_stock_quantity(quantity: Any, track_inventory: bool) -> str:
    if not track_inventory:
        return "Available"

    try:
        safe_quantity = int(quantity or 0)
    except (TypeError, ValueError):
        safe_quantity = 0

    if safe_quantity <= 0:
        return "Out of stock"
    if safe_quantity <= 10:
        return f"{safe_quantity} left"
    return "In stock"


def get_max_purchasable_quantity(product: Dict[str, Any], selected_variant_id: Optional[str] = None) -> int:
    """Upper bound for a quantity picker."""
    variants = _variants(product)

    if variants and selected_variant_id:
        variant = next((v for v in variants if v.get("id") == selected_variant_id), None)
        if not variant or not variant.get("is_active"):
            return 0
        if not _tracks(variant):
            return UNLIMITED_QUANTITY
        return max(0, _quantity(variant))

    if variants:
        return calculate_product_stock(product)

    if not _tracks(product):
        return UNLIMITED_QUANTITY
    return max(0, _quantity(product))
