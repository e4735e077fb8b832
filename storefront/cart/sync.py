"""Best-effort server-side mirror of the cart (Supabase ``carts`` table)."""
from typing import Optional

from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.money import to_float
from storefront.services.repositories import CartRepository
from .models import Cart

logger = get_logger(__name__)


class CartMirror:
    """
    Keeps a copy of the cart and its totals in the database so orders and
    admin views can see it. Never raises: the client-side store stays the
    source of truth for the shopper.
    """

    def __init__(self, repo: CartRepository):
        self.repo = repo
        self.cart_id: Optional[str] = None

    async def attach(self, user_id: Optional[str], session_id: Optional[str]) -> Optional[str]:
        """Resolve (or create) the server cart row for this shopper."""
        try:
            self.cart_id = await self.repo.get_or_create_cart(user_id, session_id)
        except Exception as e:
            logger.warning(f"Cart mirror unavailable: {e}")
            self.cart_id = None
        return self.cart_id

    async def push(self, cart: Cart) -> None:
        if not self.cart_id:
            return
        try:
            await self.repo.update_cart(
                self.cart_id,
                items=[item.to_dict() for item in cart.items],
                subtotal=to_float(cart.subtotal),
                tax_amount=to_float(cart.tax_amount),
                total=to_float(cart.total),
            )
        except Exception as e:
            logger.warning(
                f"Failed to sync cart {sanitize_id_for_logging(self.cart_id)}: {e}"
            )
