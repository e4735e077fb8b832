"""
Shared Dependencies for Routers

Repositories are built per request on top of the Supabase singleton.
"""

from storefront.db import get_supabase
from storefront.services.repositories import InventoryRepository


async def get_inventory_repository() -> InventoryRepository:
    """FastAPI dependency: inventory repository bound to the Supabase client."""
    return InventoryRepository(await get_supabase())
