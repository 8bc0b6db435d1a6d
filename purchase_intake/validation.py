# purchase_intake/validation.py
"""
Validation rules for purchase requests.

This module provides:
- validate_line_item(item) -> (valid, message)
- validate_form_fields(fields) -> (valid, message)
- validate_purchase_request(candidate) -> (valid, message)

The same functions run on both sides of the network boundary: the submission
client calls them before sending, and the request handler calls them again on
the raw request body. Nothing here raises; the message names the first
violation found, in check order.

Quantity is free-form text ("1000kg", "2 cajas") and is never parsed as a number.
"""

from typing import Any, Mapping, Optional, Tuple

REQUIRED_FIELDS = ("name", "position", "department", "site", "requestType", "justification")

MSG_NOT_AN_OBJECT = "Request body must be a JSON object"
MSG_MISSING_FIELDS = "Missing required fields"
MSG_NO_PRODUCTS = "At least one product is required"
MSG_BAD_PRODUCT = "Each product must have a name and quantity"


def _present(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def validate_line_item(item: Any) -> Tuple[bool, Optional[str]]:
    if not isinstance(item, Mapping):
        return False, MSG_BAD_PRODUCT
    if not _present(item.get("name")) or not _present(item.get("quantity")):
        return False, MSG_BAD_PRODUCT
    spec = item.get("specification")
    if spec is not None and not isinstance(spec, str):
        return False, MSG_BAD_PRODUCT
    return True, None


def validate_form_fields(fields: Any) -> Tuple[bool, Optional[str]]:
    """Check the six scalar fields only (no products)."""
    if not isinstance(fields, Mapping):
        return False, MSG_NOT_AN_OBJECT
    if not all(_present(fields.get(f)) for f in REQUIRED_FIELDS):
        return False, MSG_MISSING_FIELDS
    return True, None


def validate_purchase_request(candidate: Any) -> Tuple[bool, Optional[str]]:
    """
    Full check, in order:
      1. all six scalar fields are non-empty text
      2. products is a non-empty list
      3. every product has a non-empty name and quantity
    """
    ok, message = validate_form_fields(candidate)
    if not ok:
        return ok, message

    products = candidate.get("products")
    if not isinstance(products, list) or len(products) == 0:
        return False, MSG_NO_PRODUCTS

    for product in products:
        ok, message = validate_line_item(product)
        if not ok:
            return ok, message

    return True, None
