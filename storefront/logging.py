"""
Centralized logging configuration for the storefront.

Usage:
    from storefront.logging import get_logger
    logger = get_logger(__name__)

    logger.info("Cart refreshed")
    logger.error("Inventory check failed", exc_info=True)
"""

import logging
import os
import sys
from functools import cache

# Default format for logs
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"


def _get_log_level() -> int:
    """Get log level from environment or default to INFO."""
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _configure_root_logger() -> None:
    """Configure root logger with appropriate handlers."""
    root = logging.getLogger()

    # Only configure if no handlers exist
    if root.handlers:
        return

    root.setLevel(_get_log_level())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(_get_log_level())

    # Simple format on Vercel, detailed locally
    is_production = os.environ.get("VERCEL") == "1"
    formatter = logging.Formatter(LOG_FORMAT_SIMPLE if is_production else LOG_FORMAT)
    handler.setFormatter(formatter)

    root.addHandler(handler)

    # Inventory checks and Supabase calls go through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def _escape_log_injection(value: str) -> str:
    """Escape newlines and control characters that could forge log entries (CWE-117)."""
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value: str | None) -> str:
    """
    Sanitize an ID for safe logging.

    Cart line ids are composite (product id + variant id), so only the
    first 8 characters of each part are kept.

    Args:
        id_value: ID value to sanitize (can be None)

    Returns:
        Sanitized ID string or "N/A" if None
    """
    if not id_value:
        return "N/A"
    safe_value = _escape_log_injection(str(id_value))
    return ":".join(part[:8] for part in safe_value.split(":", 1))


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """
    Sanitize string for safe logging (escape control characters, truncate).

    Args:
        value: String value to sanitize (can be None)
        max_length: Maximum length to keep (default: 50)

    Returns:
        Sanitized string or "N/A" if None
    """
    if not value:
        return "N/A"
    safe_value = _escape_log_injection(str(value))
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


__all__ = [
    "LOG_FORMAT",
    "LOG_FORMAT_SIMPLE",
    "get_logger",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
