"""
Tests for cart inventory reconciliation
"""
import asyncio
from decimal import Decimal

import pytest

from storefront.cart import InventoryRefreshFailed, Product


def _product(product_id: str) -> Product:
    return Product(id=product_id, title=product_id.upper(), slug=product_id, price=10, sku=product_id)


async def _add(manager, stub, product_id: str, quantity: int = 1, **stock):
    stub.set_stock(product_id, inventory_quantity=100, **stock)
    await manager.add_item(_product(product_id), quantity=quantity)


@pytest.mark.asyncio
async def test_empty_cart_refresh_is_noop(cart_manager, inventory_stub, fake_redis):
    result = await cart_manager.refresh_inventory()

    assert result is None
    assert inventory_stub.calls == []
    assert fake_redis.data == {}


@pytest.mark.asyncio
async def test_inactive_item_removed(cart_manager, inventory_stub):
    await _add(cart_manager, inventory_stub, "a")
    inventory_stub.set_stock("a", is_active=False)

    summary = await cart_manager.refresh_inventory()

    assert cart_manager.items == []
    assert len(summary.removed_items) == 1
    assert summary.removed_items[0].item.id == "a"
    assert "no longer available" in summary.removed_items[0].reason
    assert summary.total_items == 0


@pytest.mark.asyncio
async def test_missing_item_removed(cart_manager, inventory_stub):
    await _add(cart_manager, inventory_stub, "a")
    inventory_stub.set_error("a", status=404, body={"error": "Product not found"})

    summary = await cart_manager.refresh_inventory()

    assert cart_manager.items == []
    assert summary.removed_items[0].reason == "product/variant no longer exists"


@pytest.mark.asyncio
async def test_out_of_stock_item_removed(cart_manager, inventory_stub):
    await _add(cart_manager, inventory_stub, "a")
    inventory_stub.set_stock("a", inventory_quantity=0)

    summary = await cart_manager.refresh_inventory()

    assert cart_manager.items == []
    assert summary.removed_items[0].reason == "out of stock"


@pytest.mark.asyncio
async def test_quantity_clamped_to_stock(cart_manager, inventory_stub):
    await _add(cart_manager, inventory_stub, "a", quantity=10)
    inventory_stub.set_stock("a", inventory_quantity=3)

    summary = await cart_manager.refresh_inventory()

    assert len(cart_manager.items) == 1
    assert cart_manager.items[0].quantity == 3
    assert cart_manager.items[0].inventory_quantity == 3
    assert len(summary.quantity_changes) == 1
    change = summary.quantity_changes[0]
    assert (change.item.id, change.old_quantity, change.new_quantity) == ("a", 10, 3)
    assert summary.removed_items == []


@pytest.mark.asyncio
async def test_untracked_item_not_clamped(cart_manager, inventory_stub):
    await _add(cart_manager, inventory_stub, "a", quantity=10)
    inventory_stub.set_stock("a", track_inventory=False, inventory_quantity=1)

    summary = await cart_manager.refresh_inventory()

    assert cart_manager.items[0].quantity == 10
    assert summary.quantity_changes == []


@pytest.mark.asyncio
async def test_transport_error_keeps_item(cart_manager, inventory_stub):
    await _add(cart_manager, inventory_stub, "a", quantity=2)
    await _add(cart_manager, inventory_stub, "b", quantity=4)
    inventory_stub.set_transport_error("a")
    inventory_stub.set_stock("b", inventory_quantity=1)

    summary = await cart_manager.refresh_inventory()

    assert [(i.id, i.quantity) for i in cart_manager.items] == [("a", 2), ("b", 1)]
    assert summary.removed_items == []
    assert summary.total_items == 2


@pytest.mark.asyncio
async def test_server_error_keeps_item(cart_manager, inventory_stub):
    await _add(cart_manager, inventory_stub, "a", quantity=2)
    inventory_stub.set_error("a", status=503, body="upstream unavailable")

    summary = await cart_manager.refresh_inventory()

    assert [(i.id, i.quantity) for i in cart_manager.items] == [("a", 2)]
    assert summary.removed_items == []
    assert summary.quantity_changes == []


@pytest.mark.asyncio
async def test_kept_item_refreshes_stock_but_not_price(cart_manager, inventory_stub):
    await _add(cart_manager, inventory_stub, "a", quantity=2, price=10.0)
    inventory_stub.set_stock("a", inventory_quantity=42, price=99.0)

    summary = await cart_manager.refresh_inventory()

    item = cart_manager.items[0]
    assert item.inventory_quantity == 42
    assert item.price == Decimal("10.0")
    assert summary.quantity_changes == []


@pytest.mark.asyncio
async def test_mixed_outcomes_preserve_order(cart_manager, inventory_stub):
    for product_id in ("a", "b", "c", "d"):
        await _add(cart_manager, inventory_stub, product_id, quantity=5)
    inventory_stub.calls.clear()
    inventory_stub.set_stock("a", inventory_quantity=50)
    inventory_stub.set_stock("b", is_active=False)
    inventory_stub.set_stock("c", inventory_quantity=2)
    inventory_stub.set_error("d", status=404, body={"error": "Product not found"})

    summary = await cart_manager.refresh_inventory()

    assert inventory_stub.calls == [("a", None), ("b", None), ("c", None), ("d", None)]
    assert [(i.id, i.quantity) for i in cart_manager.items] == [("a", 5), ("c", 2)]
    assert [(r.item.id, r.reason) for r in summary.removed_items] == [
        ("b", "no longer available"),
        ("d", "product/variant no longer exists"),
    ]
    assert [c.item.id for c in summary.quantity_changes] == ["c"]
    assert summary.total_items == 2


@pytest.mark.asyncio
async def test_refresh_persists_result(cart_manager, inventory_stub, cart_storage):
    await _add(cart_manager, inventory_stub, "a", quantity=10)
    inventory_stub.set_stock("a", inventory_quantity=3)

    await cart_manager.refresh_inventory()

    stored = await cart_storage.load("sess-1")
    assert stored[0]["quantity"] == 3


@pytest.mark.asyncio
async def test_storage_failure_raises_refresh_failed(cart_manager, inventory_stub, fake_redis):
    await _add(cart_manager, inventory_stub, "a")
    fake_redis.fail = True

    with pytest.raises(InventoryRefreshFailed) as exc_info:
        await cart_manager.refresh_inventory()

    assert exc_info.value.message == "Failed to refresh cart inventory"
    assert exc_info.value.__cause__ is not None


def _hold_checks(manager, held_ids):
    """Block inventory checks for ``held_ids`` until ``release`` is set."""
    started = asyncio.Event()
    release = asyncio.Event()
    check = manager.inventory.check

    async def held_check(product_id, variant_id=None):
        if product_id in held_ids:
            started.set()
            await release.wait()
        return await check(product_id, variant_id)

    manager.inventory.check = held_check
    return started, release


@pytest.mark.asyncio
async def test_changes_during_refresh_are_kept(cart_manager, inventory_stub):
    await _add(cart_manager, inventory_stub, "a", quantity=3)
    await _add(cart_manager, inventory_stub, "b", quantity=3)
    await _add(cart_manager, inventory_stub, "d", quantity=3)
    inventory_stub.set_stock("a", inventory_quantity=1)
    inventory_stub.set_stock("b", inventory_quantity=1)
    inventory_stub.set_stock("c", inventory_quantity=100)
    inventory_stub.set_stock("d", inventory_quantity=1)
    started, release = _hold_checks(cart_manager, {"a"})

    async def shopper():
        await started.wait()
        await cart_manager.remove_item("b")
        await cart_manager.add_item(_product("c"), quantity=2)
        release.set()

    summary, _ = await asyncio.gather(cart_manager.refresh_inventory(), shopper())

    assert [(i.id, i.quantity) for i in cart_manager.items] == [("a", 1), ("d", 1), ("c", 2)]
    assert [c.item.id for c in summary.quantity_changes] == ["a", "d"]
    assert summary.removed_items == []
    assert summary.total_items == 3


@pytest.mark.asyncio
async def test_summary_skips_lines_edited_during_refresh(cart_manager, inventory_stub):
    await _add(cart_manager, inventory_stub, "a", quantity=2)
    await _add(cart_manager, inventory_stub, "b", quantity=3)
    await _add(cart_manager, inventory_stub, "c", quantity=1)
    inventory_stub.set_stock("a", is_active=False)
    inventory_stub.set_stock("b", inventory_quantity=1)
    inventory_stub.set_stock("c", inventory_quantity=0)
    started, release = _hold_checks(cart_manager, {"a"})

    async def shopper():
        await started.wait()
        await cart_manager.update_quantity("a", 5)
        await cart_manager.remove_item("b")
        release.set()

    summary, _ = await asyncio.gather(cart_manager.refresh_inventory(), shopper())

    assert [(i.id, i.quantity) for i in cart_manager.items] == [("a", 5)]
    assert [r.item.id for r in summary.removed_items] == ["c"]
    assert summary.quantity_changes == []
    assert summary.total_items == 1
