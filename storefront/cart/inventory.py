"""
Inventory Query Service client.

Asks the storefront's inventory check endpoint for the live availability,
active flag, canonical price and SKU of a product or variant. Transient
failures (network errors, 5xx) are retried with exponential backoff;
everything else is terminal.
"""
import os
from typing import Optional

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from storefront.errors import ERROR_INVENTORY_CHECK_FAILED
from storefront.logging import get_logger, sanitize_id_for_logging
from .errors import InventoryCheckFailed, InventoryNotFound
from .models import StockData

logger = get_logger(__name__)

INVENTORY_API_URL = os.environ.get("INVENTORY_API_URL", "http://localhost:3000")
INVENTORY_API_TIMEOUT = float(os.environ.get("INVENTORY_API_TIMEOUT", "10"))
INVENTORY_MAX_ATTEMPTS = int(os.environ.get("INVENTORY_MAX_ATTEMPTS", "3"))

CHECK_PATH = "/api/products/inventory/check"


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, InventoryCheckFailed) and error.retryable


def _error_message(response: httpx.Response) -> str:
    """Pull the service-provided message out of an error response."""
    fallback = f"{ERROR_INVENTORY_CHECK_FAILED} ({response.status_code})"
    try:
        data = response.json()
    except ValueError:
        return response.text or fallback
    if isinstance(data, dict):
        return data.get("error") or data.get("details") or fallback
    return fallback


class InventoryClient:
    """
    Client for the Inventory Query Service.

    Args:
        base_url: Storefront origin serving the inventory endpoints
        http_client: Optional preconfigured ``httpx.AsyncClient``
        max_attempts: Attempts per check, including the first
        backoff_multiplier: Multiplier for exponential backoff (0 disables waiting)
    """

    def __init__(
        self,
        base_url: str = INVENTORY_API_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        max_attempts: int = INVENTORY_MAX_ATTEMPTS,
        backoff_multiplier: float = 0.5,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = http_client
        self._owns_client = http_client is None
        self.max_attempts = max(1, max_attempts)
        self.backoff_multiplier = backoff_multiplier

    @property
    def client(self) -> httpx.AsyncClient:
        """HTTP client (lazy initialization)."""
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=INVENTORY_API_TIMEOUT)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def check(self, product_id: str, variant_id: Optional[str] = None) -> StockData:
        """
        Get live stock for a product, or for one of its variants.

        Raises:
            InventoryNotFound: product/variant does not exist
            InventoryCheckFailed: service error or unparseable response
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_multiplier, min=0, max=4),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        f"Retrying inventory check for {sanitize_id_for_logging(product_id)} "
                        f"(attempt {attempt.retry_state.attempt_number}/{self.max_attempts})"
                    )
                stock = await self._request(product_id, variant_id)
        return stock

    async def _request(self, product_id: str, variant_id: Optional[str]) -> StockData:
        logger.debug(
            f"Checking inventory for product={sanitize_id_for_logging(product_id)} "
            f"variant={sanitize_id_for_logging(variant_id)}"
        )
        try:
            response = await self.client.post(
                CHECK_PATH,
                json={"product_id": product_id, "variant_id": variant_id},
            )
        except httpx.HTTPError as e:
            raise InventoryCheckFailed(
                f"{ERROR_INVENTORY_CHECK_FAILED}: {e}", retryable=True
            ) from e

        if response.status_code == 404:
            raise InventoryNotFound(_error_message(response))

        if not response.is_success:
            raise InventoryCheckFailed(
                _error_message(response),
                status_code=response.status_code,
                retryable=response.status_code >= 500,
            )

        try:
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"expected JSON object, got {type(data).__name__}")
            return StockData.model_validate(data)
        except (ValueError, ValidationError) as e:
            raise InventoryCheckFailed(
                f"{ERROR_INVENTORY_CHECK_FAILED}: invalid response ({e})",
                status_code=response.status_code,
            ) from e
