"""
Common Error Constants

Centralized user-facing error messages shared by the cart and the
inventory endpoints.
"""

# Catalog errors
ERROR_PRODUCT_NOT_FOUND = "Product not found"
ERROR_VARIANT_NOT_FOUND = "Variant not found"
ERROR_PRODUCT_ID_REQUIRED = "Product ID is required"
ERROR_VARIANT_ID_REQUIRED = "variant_id is required"
ERROR_INVALID_PRODUCT_IDS = "Invalid product_ids"

# Cart errors
ERROR_INVENTORY_CHECK_FAILED = "Failed to check inventory"
ERROR_INVENTORY_REFRESH_FAILED = "Failed to refresh cart inventory"
ERROR_CART_STORAGE_UNAVAILABLE = "Cart storage unavailable"

# Refresh removal reasons
REASON_NOT_FOUND = "product/variant no longer exists"
REASON_UNAVAILABLE = "no longer available"
REASON_OUT_OF_STOCK = "out of stock"

# Generic errors
ERROR_INVALID_REQUEST = "Invalid request body"
ERROR_INTERNAL = "Internal server error"
