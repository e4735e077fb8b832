"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, field_validator

from storefront.services.money import to_decimal, tax_for


@dataclass
class Product:
    """Catalog product as passed to ``CartManager.add_item``."""
    id: str
    title: str
    slug: str
    price: Decimal
    sku: str
    featured_image: Optional[str] = None
    inventory_quantity: int = 0
    track_inventory: bool = True

    def __post_init__(self):
        self.price = to_decimal(self.price)


@dataclass
class ProductVariant:
    """Selected variant of a product (size/color/material option)."""
    id: str
    title: str
    sku: str
    price: Decimal
    size: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    compare_at_price: Optional[Decimal] = None
    inventory_quantity: int = 0
    is_default: bool = False
    featured_image: Optional[str] = None
    image_url: Optional[str] = None
    images: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.price = to_decimal(self.price)
        if self.compare_at_price is not None:
            self.compare_at_price = to_decimal(self.compare_at_price)


def cart_item_id(product_id: str, variant_id: Optional[str] = None) -> str:
    """
    Composite line id: product id, or product id + variant id.

    Catalog ids are UUIDs, so the ":" separator never appears inside a part.
    """
    return f"{product_id}:{variant_id}" if variant_id else product_id


class StockData(BaseModel):
    """
    Inventory Query Service response for a product or variant.

    A missing or null `is_active` / `track_inventory` counts as true: only an
    explicit false disables a flag. The inventory endpoints always send both
    flags as booleans.
    """
    is_active: bool = True
    track_inventory: bool = True
    inventory_quantity: int = 0
    price: Optional[Decimal] = None
    sku: Optional[str] = None
    title: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    featured_image: Optional[str] = None
    type: Optional[str] = None

    @field_validator("inventory_quantity", mode="before")
    @classmethod
    def _normalize_quantity(cls, value: Any) -> int:
        if value is None:
            return 0
        return max(0, int(value))

    @field_validator("price", mode="before")
    @classmethod
    def _normalize_price(cls, value: Any) -> Optional[Decimal]:
        return None if value is None else to_decimal(value)

    @field_validator("is_active", "track_inventory", mode="before")
    @classmethod
    def _default_flags(cls, value: Any) -> bool:
        # Only an explicit false disables the flag
        return value is not False

    @property
    def is_out_of_stock(self) -> bool:
        return self.track_inventory and self.inventory_quantity == 0

    def exceeds_stock(self, quantity: int) -> bool:
        return self.track_inventory and quantity > self.inventory_quantity


# Required keys when restoring a persisted item
REQUIRED_ITEM_KEYS = ("id", "product_id", "title", "price", "quantity")


@dataclass
class CartItem:
    """Single purchasable line in the cart."""
    id: str
    product_id: str
    title: str
    price: Decimal
    quantity: int
    sku: str = ""
    inventory_quantity: int = 0
    slug: str = ""
    variant_id: Optional[str] = None
    featured_image: Optional[str] = None
    # Variant-specific fields
    variant_title: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None

    def __post_init__(self):
        self.price = to_decimal(self.price)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        """Convert to JSON-safe dictionary."""
        return {
            "id": self.id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "title": self.title,
            "slug": self.slug,
            "price": str(self.price),
            "quantity": self.quantity,
            "featured_image": self.featured_image,
            "sku": self.sku,
            "inventory_quantity": self.inventory_quantity,
            "variant_title": self.variant_title,
            "size": self.size,
            "color": self.color,
            "material": self.material,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        """
        Create from dictionary.

        Unknown keys are ignored and optional keys default, so items written
        by older or newer versions still load. Raises KeyError/ValueError
        for items that cannot be restored.
        """
        missing = [key for key in REQUIRED_ITEM_KEYS if data.get(key) is None]
        if missing:
            raise KeyError(f"missing {', '.join(missing)}")

        quantity = int(data["quantity"])
        if quantity < 1:
            raise ValueError(f"invalid quantity {quantity}")

        return cls(
            id=str(data["id"]),
            product_id=str(data["product_id"]),
            variant_id=data.get("variant_id"),
            title=data["title"],
            slug=data.get("slug") or "",
            price=to_decimal(data["price"]),
            quantity=quantity,
            featured_image=data.get("featured_image"),
            sku=data.get("sku") or "",
            inventory_quantity=int(data.get("inventory_quantity") or 0),
            variant_title=data.get("variant_title"),
            size=data.get("size"),
            color=data.get("color"),
            material=data.get("material"),
        )


@dataclass
class Cart:
    """Shopper's cart: ordered line items plus the transient open flag."""
    session_id: str
    items: List[CartItem] = field(default_factory=list)
    is_open: bool = False

    def find(self, item_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.id == item_id), None)

    def find_line(self, product_id: str, variant_id: Optional[str] = None) -> Optional[CartItem]:
        """Line holding this product/variant, whatever id it was stored under."""
        return next(
            (
                item for item in self.items
                if item.product_id == product_id and item.variant_id == variant_id
            ),
            None,
        )

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> Decimal:
        return sum((item.price * item.quantity for item in self.items), Decimal("0"))

    @property
    def tax_amount(self) -> Decimal:
        return tax_for(self.subtotal)

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax_amount


@dataclass
class RemovedItem:
    """Line dropped during reconciliation."""
    item: CartItem
    reason: str


@dataclass
class QuantityChange:
    """Line whose quantity was clamped during reconciliation."""
    item: CartItem
    old_quantity: int
    new_quantity: int


@dataclass
class RefreshSummary:
    """Outcome of ``CartManager.refresh_inventory``."""
    removed_items: List[RemovedItem] = field(default_factory=list)
    quantity_changes: List[QuantityChange] = field(default_factory=list)
    total_items: int = 0
