"""Cart Repository - server-side copy of shopper carts."""

from datetime import UTC, datetime
from typing import Any

from .base import BaseRepository


class CartRepository(BaseRepository):
    """Operations on the ``carts`` table."""

    async def get_or_create_cart(self, user_id: str | None, session_id: str | None) -> str | None:
        """Return the cart id for a user (or anonymous session), creating it if needed."""
        result = await self.client.rpc(
            "get_or_create_cart", {"p_user_id": user_id, "p_session_id": session_id}
        ).execute()
        return result.data or None

    async def update_cart(
        self,
        cart_id: str,
        items: list[dict[str, Any]],
        subtotal: float,
        tax_amount: float,
        total: float,
    ) -> None:
        await self.client.table("carts").update(
            {
                "items": items,
                "subtotal": subtotal,
                "tax_amount": tax_amount,
                "total": total,
                "last_accessed_at": datetime.now(UTC).isoformat(),
            }
        ).eq("id", cart_id).execute()
