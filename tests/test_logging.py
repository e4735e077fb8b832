"""Tests for logging helpers"""
from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging


def test_get_logger_is_cached():
    assert get_logger("storefront.test") is get_logger("storefront.test")


def test_sanitize_id():
    assert sanitize_id_for_logging(None) == "N/A"
    assert sanitize_id_for_logging("0123456789abcdef") == "01234567"
    assert sanitize_id_for_logging("0123456789:fedcba9876") == "01234567:fedcba98"
    assert sanitize_id_for_logging("ab\ncd") == "ab\\ncd"


def test_sanitize_string():
    assert sanitize_string_for_logging("") == "N/A"
    assert sanitize_string_for_logging("Silk\rPillow") == "Silk\\rPillow"
    assert sanitize_string_for_logging("x" * 60, max_length=10) == "x" * 10 + "..."
