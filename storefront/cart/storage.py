"""Persisted cart storage (Redis) for surviving reloads."""
import json
import secrets
import string
import time
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from storefront.db import get_redis, RedisKeys, TTL
from storefront.logging import get_logger, sanitize_id_for_logging
from .errors import CartStorageError

logger = get_logger(__name__)

# Bumped when the persisted item shape changes incompatibly
SCHEMA_VERSION = 1

_SESSION_ALPHABET = string.ascii_lowercase + string.digits


def generate_session_id() -> str:
    """Session id for anonymous shoppers: ``cart_<unix ms>_<9 random chars>``."""
    suffix = "".join(secrets.choice(_SESSION_ALPHABET) for _ in range(9))
    return f"cart_{int(time.time() * 1000)}_{suffix}"


def encode_items(items: List[dict]) -> str:
    return json.dumps({"version": SCHEMA_VERSION, "items": items})


def decode_items(raw: str) -> List[dict]:
    """
    Decode a persisted payload.

    Accepts the versioned envelope and the legacy bare list. Raises
    ValueError for anything else.
    """
    data = json.loads(raw)
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        return data["items"]
    raise ValueError("unrecognized cart payload")


class CartStorage(ABC):
    """Key-value store holding one serialized item list per session."""

    @abstractmethod
    async def load(self, session_id: str) -> Optional[List[dict]]:
        """Return persisted item dicts, or None if nothing is stored."""

    @abstractmethod
    async def save(self, session_id: str, items: List[dict]) -> None:
        """Persist the whole item list."""

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Forget the session's cart."""


class RedisCartStorage(CartStorage):
    """Stores carts in Upstash Redis under ``cart:<session_id>`` with a TTL."""

    def __init__(self, redis: Any = None, ttl: int = TTL.CART):
        self._redis = redis  # Lazy initialization
        self.ttl = ttl

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            try:
                self._redis = get_redis()
            except ValueError as e:
                raise CartStorageError(e) from e
        return self._redis

    async def load(self, session_id: str) -> Optional[List[dict]]:
        key = RedisKeys.cart_key(session_id)
        try:
            raw = await self.redis.get(key)
        except CartStorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to load cart from Redis: {e}")
            raise CartStorageError(e) from e

        if not raw:
            return None

        try:
            return decode_items(raw)
        except ValueError as e:
            # Corrupted data - clear it and start empty
            logger.warning(
                f"Corrupted cart data for session {sanitize_id_for_logging(session_id)}: {e}"
            )
            await self.delete(session_id)
            return None

    async def save(self, session_id: str, items: List[dict]) -> None:
        try:
            await self.redis.set(RedisKeys.cart_key(session_id), encode_items(items), ex=self.ttl)
        except CartStorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to save cart to Redis: {e}")
            raise CartStorageError(e) from e

    async def delete(self, session_id: str) -> None:
        try:
            await self.redis.delete(RedisKeys.cart_key(session_id))
        except CartStorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to delete cart from Redis: {e}")
            raise CartStorageError(e) from e
