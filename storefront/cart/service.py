"""Cart manager: inventory-aware cart state persisted to Redis."""
import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import replace
from decimal import Decimal
from typing import Dict, List, Optional

from storefront.errors import REASON_NOT_FOUND, REASON_OUT_OF_STOCK, REASON_UNAVAILABLE
from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from storefront.services.money import round_money, to_float
from .errors import (
    CartError,
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
from .storage import CartStorage, RedisCartStorage
from .sync import CartMirror

logger = get_logger(__name__)


class CartManager:
    """
    Manages one shopper's cart.

    Features:
    - Every add is validated against live inventory (active flag, stock, price)
    - Bulk reconciliation of the whole cart against live stock
    - Whole item list persisted after every mutation
    - Mutations on the same line are serialized
    """

    def __init__(
        self,
        session_id: str,
        inventory: InventoryClient,
        storage: CartStorage,
        mirror: Optional[CartMirror] = None,
    ):
        self.inventory = inventory
        self.storage = storage
        self.mirror = mirror
        self.cart = Cart(session_id=session_id)
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def _line_lock(self, item_id: str):
        """Hold the lock for one line; the lock is dropped once nobody uses it."""
        lock = self._locks.setdefault(item_id, asyncio.Lock())
        self._lock_users[item_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[item_id] -= 1
            if not self._lock_users[item_id]:
                del self._lock_users[item_id]
                del self._locks[item_id]

    @property
    def session_id(self) -> str:
        return self.cart.session_id

    @property
    def items(self) -> List[CartItem]:
        """Current snapshot of the line items."""
        return self.cart.items

    @property
    def is_open(self) -> bool:
        return self.cart.is_open

    # ---- persistence ----

    async def load(self) -> Cart:
        """Restore items from storage, dropping entries that cannot be read."""
        data = await self.storage.load(self.session_id)
        items: List[CartItem] = []
        seen = set()
        for raw in data or []:
            try:
                item = CartItem.from_dict(raw)
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning(
                    f"Dropping unreadable cart item for session "
                    f"{sanitize_id_for_logging(self.session_id)}: {e}"
                )
                continue
            if item.id in seen:
                continue
            seen.add(item.id)
            items.append(item)
        self.cart.items = items
        return self.cart

    async def _persist(self) -> None:
        await self.storage.save(self.session_id, [item.to_dict() for item in self.cart.items])
        if self.mirror is not None:
            await self.mirror.push(self.cart)

    # ---- mutations ----

    async def add_item(
        self,
        product: Product,
        variant: Optional[ProductVariant] = None,
        quantity: int = 1,
    ) -> CartItem:
        """
        Add a product (or one of its variants) after checking live inventory.

        Existing lines are incremented and re-synced with the latest price,
        SKU, stock and variant details.

        Raises:
            InventoryCheckFailed: the inventory service call failed
            ProductUnavailable: product/variant is inactive
            OutOfStock: tracked stock is zero
            InsufficientStock: the resulting quantity exceeds tracked stock
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValueError("quantity must be a positive integer")

        item_id = cart_item_id(product.id, variant.id if variant else None)

        async with self._line_lock(item_id):
            try:
                stock = await self.inventory.check(product.id, variant.id if variant else None)
                item = self._apply_add(item_id, product, variant, quantity, stock)
            except CartError as e:
                logger.error(
                    f"Failed to add {sanitize_id_for_logging(item_id)} to cart: {e.message}"
                )
                raise

            await self._persist()
            return item

    def _apply_add(
        self,
        item_id: str,
        product: Product,
        variant: Optional[ProductVariant],
        quantity: int,
        stock: StockData,
    ) -> CartItem:
        if not stock.is_active:
            raise ProductUnavailable(stock.title)

        if stock.is_out_of_stock:
            raise OutOfStock(stock.title)

        existing = self.cart.find_line(product.id, variant.id if variant else None)

        if existing:
            new_quantity = existing.quantity + quantity
            if stock.exceeds_stock(new_quantity):
                raise InsufficientStock(stock.inventory_quantity, new_quantity, stock.title)

            updated = _with_quantity(
                existing,
                new_quantity,
                inventory_quantity=stock.inventory_quantity,
                price=stock.price if stock.price is not None else existing.price,
                sku=stock.sku or existing.sku,
                title=stock.title or existing.title,
                variant_title=variant.title if variant else existing.variant_title,
                size=stock.size or (variant.size if variant else None) or existing.size,
                color=stock.color or (variant.color if variant else None) or existing.color,
                material=(
                    stock.material or (variant.material if variant else None) or existing.material
                ),
            )
            self.cart.items = [updated if item is existing else item for item in self.cart.items]
            return updated

        if stock.exceeds_stock(quantity):
            raise InsufficientStock(stock.inventory_quantity, quantity, stock.title)

        base_price = variant.price if variant else product.price
        item = CartItem(
            id=item_id,
            product_id=product.id,
            variant_id=variant.id if variant else None,
            title=stock.title or product.title,
            slug=product.slug,
            price=stock.price if stock.price is not None else base_price,
            quantity=quantity,
            featured_image=(
                (variant.featured_image or variant.image_url) if variant else None
            ) or product.featured_image,
            sku=stock.sku or (variant.sku if variant else product.sku),
            inventory_quantity=stock.inventory_quantity,
            variant_title=variant.title if variant else None,
            size=stock.size or (variant.size if variant else None),
            color=stock.color or (variant.color if variant else None),
            material=stock.material or (variant.material if variant else None),
        )
        self.cart.items = [*self.cart.items, item]
        return item

    async def update_quantity(self, item_id: str, quantity: int) -> None:
        """
        Set a line's quantity; zero or less removes it.

        Not re-checked against inventory: ``refresh_inventory`` clamps any
        overshoot.
        """
        if quantity <= 0:
            await self.remove_item(item_id)
            return

        async with self._line_lock(item_id):
            self.cart.items = [
                _with_quantity(item, quantity) if item.id == item_id else item
                for item in self.cart.items
            ]
            await self._persist()

    async def remove_item(self, item_id: str) -> None:
        """Remove a line; unknown ids are ignored."""
        async with self._line_lock(item_id):
            self.cart.items = [item for item in self.cart.items if item.id != item_id]
            await self._persist()

    async def clear_cart(self) -> None:
        self.cart.items = []
        await self._persist()

    def open_cart(self) -> None:
        self.cart.is_open = True

    def close_cart(self) -> None:
        self.cart.is_open = False

    # ---- reconciliation ----

    async def refresh_inventory(self) -> Optional[RefreshSummary]:
        """
        Reconcile every line against live inventory.

        Lines that no longer exist, are inactive or out of stock are dropped;
        lines above tracked stock are clamped down. Lines whose check fails
        for any other reason are kept unchanged. Returns None for an empty
        cart.

        Raises:
            InventoryRefreshFailed: reconciliation failed outside the per-item checks
        """
        snapshot = list(self.cart.items)
        if not snapshot:
            return None

        try:
            summary = RefreshSummary()
            outcomes: Dict[str, Optional[CartItem]] = {}

            for item in snapshot:
                outcomes[item.id] = await self._reconcile_item(item, summary)

            # Lines added, changed or removed while checks were in flight win
            originals = {item.id: item for item in snapshot}
            applied = set()
            reconciled: List[CartItem] = []
            for item in self.cart.items:
                if originals.get(item.id) is not item:
                    reconciled.append(item)
                    continue
                applied.add(item.id)
                if outcomes[item.id] is not None:
                    reconciled.append(outcomes[item.id])
            self.cart.items = reconciled

            # Only report outcomes that reached the cart
            summary.removed_items = [
                removed for removed in summary.removed_items if removed.item.id in applied
            ]
            summary.quantity_changes = [
                change for change in summary.quantity_changes if change.item.id in applied
            ]

            await self._persist()
            summary.total_items = len(self.cart.items)
        except Exception as e:
            logger.error(f"Failed to refresh cart inventory: {e}")
            raise InventoryRefreshFailed() from e

        if summary.removed_items or summary.quantity_changes:
            logger.info(
                f"Cart {sanitize_id_for_logging(self.session_id)} reconciled: "
                f"{len(summary.removed_items)} removed, "
                f"{len(summary.quantity_changes)} clamped"
            )
        return summary

    async def _reconcile_item(self, item: CartItem, summary: RefreshSummary) -> Optional[CartItem]:
        try:
            stock = await self.inventory.check(item.product_id, item.variant_id)
        except InventoryNotFound:
            summary.removed_items.append(RemovedItem(item, REASON_NOT_FOUND))
            return None
        except InventoryCheckFailed as e:
            logger.warning(
                f"Could not check inventory for {sanitize_string_for_logging(item.title)}: "
                f"{e.message}"
            )
            return item

        if not stock.is_active:
            summary.removed_items.append(RemovedItem(item, REASON_UNAVAILABLE))
            return None

        if stock.is_out_of_stock:
            summary.removed_items.append(RemovedItem(item, REASON_OUT_OF_STOCK))
            return None

        if stock.exceeds_stock(item.quantity):
            updated = _with_quantity(
                item, stock.inventory_quantity, inventory_quantity=stock.inventory_quantity
            )
            summary.quantity_changes.append(
                QuantityChange(updated, item.quantity, stock.inventory_quantity)
            )
            return updated

        return _with_quantity(item, item.quantity, inventory_quantity=stock.inventory_quantity)

    # ---- derived queries ----

    def get_total_items(self) -> int:
        return self.cart.total_items

    def get_subtotal(self) -> Decimal:
        return self.cart.subtotal

    def get_tax_amount(self) -> Decimal:
        """7.5% VAT on the subtotal."""
        return self.cart.tax_amount

    def get_cart_summary(self) -> dict:
        """Get cart summary for API responses (amounts rounded to cents)."""
        if not self.cart.items:
            return {
                "is_empty": True,
                "total_items": 0,
                "subtotal": 0,
                "tax_amount": 0,
                "total": 0,
            }

        return {
            "is_empty": False,
            "total_items": self.cart.total_items,
            "items": [
                {
                    "id": item.id,
                    "title": item.title,
                    "variant_title": item.variant_title,
                    "quantity": item.quantity,
                    "unit_price": to_float(item.price),
                    "total": to_float(round_money(item.line_total)),
                }
                for item in self.cart.items
            ],
            "subtotal": to_float(round_money(self.cart.subtotal)),
            "tax_amount": to_float(round_money(self.cart.tax_amount)),
            "total": to_float(round_money(self.cart.total)),
        }


def _with_quantity(item: CartItem, quantity: int, **changes) -> CartItem:
    """Copy of ``item`` with a new quantity."""
    return replace(item, quantity=quantity, **changes)


def create_cart_manager(
    session_id: str,
    inventory: Optional[InventoryClient] = None,
    storage: Optional[CartStorage] = None,
    mirror: Optional[CartMirror] = None,
) -> CartManager:
    """Build a CartManager from environment configuration."""
    return CartManager(
        session_id=session_id,
        inventory=inventory or InventoryClient(),
        storage=storage or RedisCartStorage(),
        mirror=mirror,
    )
