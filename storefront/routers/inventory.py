"""
Inventory API Router

Inventory Query Service endpoints consumed by the cart: live stock,
active flag, price and SKU per product or variant.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront.errors import (
    ERROR_INTERNAL,
    ERROR_INVALID_PRODUCT_IDS,
    ERROR_PRODUCT_ID_REQUIRED,
    ERROR_PRODUCT_NOT_FOUND,
    ERROR_VARIANT_ID_REQUIRED,
    ERROR_VARIANT_NOT_FOUND,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.repositories import InventoryRepository
from .deps import get_inventory_repository

logger = get_logger(__name__)

router = APIRouter(tags=["inventory"])


# ==================== PYDANTIC MODELS ====================

class InventoryCheckRequest(BaseModel):
    product_id: Optional[str] = None
    variant_id: Optional[str] = None


class InventoryBulkRequest(BaseModel):
    product_ids: Any = None


class VariantInventoryRequest(BaseModel):
    variant_id: Optional[str] = None


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


# ==================== INVENTORY CHECK ====================

@router.post("/api/products/inventory/check")
async def check_inventory(
    payload: InventoryCheckRequest,
    repo: InventoryRepository = Depends(get_inventory_repository),
):
    """Live stock for a product, or for one of its variants when variant_id is set."""
    if not payload.product_id:
        return _error(400, ERROR_PRODUCT_ID_REQUIRED)

    try:
        if payload.variant_id:
            variant = await repo.get_variant_stock(payload.variant_id)
            if not variant:
                return _error(404, ERROR_VARIANT_NOT_FOUND)

            return {
                "inventory_quantity": variant.get("inventory_quantity") or 0,
                # Variants are always tracked
                "track_inventory": True,
                "is_active": variant.get("is_active") is not False,
                "title": variant.get("title"),
                "sku": variant.get("sku"),
                "price": variant.get("price"),
                "size": None,
                "color": None,
                "material": None,
                "featured_image": None,
                "type": "variant",
            }

        product = await repo.get_product_stock(payload.product_id)
        if not product:
            return _error(404, ERROR_PRODUCT_NOT_FOUND)

        return {
            "inventory_quantity": product.get("inventory_quantity") or 0,
            "track_inventory": product.get("track_inventory") is not False,
            "is_active": product.get("is_active") is not False,
            "title": product.get("title"),
            "sku": product.get("sku"),
            "price": product.get("price"),
            "featured_image": product.get("featured_image"),
            "type": "product",
        }
    except Exception as e:
        logger.error(
            f"Inventory check failed for {sanitize_id_for_logging(payload.product_id)}: {e}",
            exc_info=True,
        )
        return _error(500, ERROR_INTERNAL, details=str(e))


@router.post("/api/products/inventory")
async def get_inventory_levels(
    payload: InventoryBulkRequest,
    repo: InventoryRepository = Depends(get_inventory_repository),
):
    """Map of product id -> inventory quantity."""
    if not isinstance(payload.product_ids, list):
        return _error(400, ERROR_INVALID_PRODUCT_IDS)

    try:
        return await repo.get_quantities([str(pid) for pid in payload.product_ids])
    except Exception as e:
        logger.error(f"Bulk inventory lookup failed: {e}", exc_info=True)
        return _error(500, str(e))


@router.post("/api/products/inventory/variant")
async def get_variant_inventory(
    payload: VariantInventoryRequest,
    repo: InventoryRepository = Depends(get_inventory_repository),
):
    """Stock flags for a single variant."""
    if not payload.variant_id:
        return _error(400, ERROR_VARIANT_ID_REQUIRED)

    try:
        variant = await repo.get_variant_flags(payload.variant_id)
    except Exception as e:
        logger.error(
            f"Variant inventory lookup failed for {sanitize_id_for_logging(payload.variant_id)}: {e}",
            exc_info=True,
        )
        return _error(500, str(e))

    if not variant:
        return _error(404, ERROR_VARIANT_NOT_FOUND)

    return {
        "inventory_quantity": variant.get("inventory_quantity"),
        "is_active": variant.get("is_active"),
        "track_inventory": variant.get("track_inventory"),
    }
