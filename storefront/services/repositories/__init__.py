"""
Repository Pattern for Database Operations

- InventoryRepository: product/variant stock reads
- CartRepository: server-side cart rows
"""
from .base import BaseRepository
from .inventory_repo import InventoryRepository
from .cart_repo import CartRepository

__all__ = [
    "BaseRepository",
    "InventoryRepository",
    "CartRepository",
]
