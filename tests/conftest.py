"""Pytest configuration and fixtures"""
import json
import os
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

# Set test environment variables
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test_key")
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")

from storefront.cart import CartManager, InventoryClient, Product, ProductVariant, RedisCartStorage  # noqa: E402

BASE_URL = "http://storefront.test"


class InventoryStub:
    """Stands in for the inventory check endpoint behind an httpx.MockTransport."""

    def __init__(self):
        self.responses: Dict[Tuple[str, Optional[str]], Any] = {}
        self.calls: List[Tuple[str, Optional[str]]] = []

    def set_stock(self, product_id: str, variant_id: Optional[str] = None, **fields):
        stock = {
            "is_active": True,
            "track_inventory": True,
            "inventory_quantity": 10,
            "price": 25.0,
            "sku": f"SKU-{product_id}",
            "title": f"Product {product_id}",
        }
        stock.update(fields)
        self.responses[(product_id, variant_id)] = (200, stock)

    def set_error(self, product_id: str, variant_id: Optional[str] = None, status: int = 500, body: Any = None):
        self.responses[(product_id, variant_id)] = (status, body)

    def set_transport_error(self, product_id: str, variant_id: Optional[str] = None):
        self.responses[(product_id, variant_id)] = httpx.ConnectError

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        key = (payload["product_id"], payload.get("variant_id"))
        self.calls.append(key)

        canned = self.responses.get(key)
        if canned is None:
            return httpx.Response(404, json={"error": "Product not found"})
        if canned is httpx.ConnectError:
            raise httpx.ConnectError("connection refused", request=request)

        status, body = canned
        if body is None:
            return httpx.Response(status)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)


class FakeRedis:
    """In-process stand-in for the async Upstash client."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, Optional[int]] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise ConnectionError("redis unavailable")

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None):
        self._check()
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, key: str) -> int:
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0


@pytest.fixture
def inventory_stub():
    return InventoryStub()


@pytest.fixture
def inventory_client(inventory_stub):
    """Inventory client wired to the stub, without retries."""
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(inventory_stub.handler), base_url=BASE_URL
    )
    return InventoryClient(
        base_url=BASE_URL, http_client=http_client, max_attempts=1, backoff_multiplier=0
    )


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cart_storage(fake_redis):
    return RedisCartStorage(redis=fake_redis)


@pytest.fixture
def cart_manager(inventory_client, cart_storage):
    return CartManager(session_id="sess-1", inventory=inventory_client, storage=cart_storage)


@pytest.fixture
def sample_product():
    """Sample product descriptor"""
    return Product(
        id="prod-1",
        title="Silk Pillowcase",
        slug="silk-pillowcase",
        price=20.0,
        sku="PILLOW-1",
        featured_image="https://cdn.test/pillow.jpg",
    )


@pytest.fixture
def sample_variant():
    """Sample variant descriptor"""
    return ProductVariant(
        id="var-1",
        title="Queen / Ivory",
        sku="PILLOW-1-Q-IV",
        price=24.0,
        size="Queen",
        color="Ivory",
        material="Silk",
        image_url="https://cdn.test/pillow-ivory.jpg",
    )
