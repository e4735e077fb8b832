"""Inventory Repository - stock, active flag and price per product/variant."""

from typing import Any

from .base import BaseRepository

PRODUCT_STOCK_FIELDS = (
    "id,inventory_quantity,track_inventory,is_active,title,sku,price,featured_image"
)
VARIANT_STOCK_FIELDS = "id,inventory_quantity,is_active,title,sku,price"


class InventoryRepository(BaseRepository):
    """Inventory reads against the catalog tables."""

    async def get_product_stock(self, product_id: str) -> dict[str, Any] | None:
        result = (
            await self.client.table("products")
            .select(PRODUCT_STOCK_FIELDS)
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None

    async def get_variant_stock(self, variant_id: str) -> dict[str, Any] | None:
        result = (
            await self.client.table("product_variants")
            .select(VARIANT_STOCK_FIELDS)
            .eq("id", variant_id)
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None

    async def get_variant_flags(self, variant_id: str) -> dict[str, Any] | None:
        result = (
            await self.client.table("product_variants")
            .select("inventory_quantity,is_active,track_inventory")
            .eq("id", variant_id)
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None

    async def get_quantities(self, product_ids: list[str]) -> dict[str, int]:
        """Map product id -> inventory quantity for the given ids."""
        if not product_ids:
            return {}
        result = (
            await self.client.table("products")
            .select("id,inventory_quantity")
            .in_("id", product_ids)
            .execute()
        )
        return {row["id"]: row.get("inventory_quantity") or 0 for row in result.data}
