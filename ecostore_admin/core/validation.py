# ecostore_admin/core/validation.py
"""
Field rules for the product form.

validate() is pure: it looks only at the draft it is given and returns a
fresh error mapping (field -> message). A field without an entry is valid.
"""
import math
from typing import Any, Dict, Optional

from ecostore_admin.models.product import Category, ProductDraft

REQUIRED_FIELDS = ("title", "description", "original_price", "stock", "category")
VALIDATED_FIELDS = REQUIRED_FIELDS + ("discount_percent",)

MESSAGES = {
    "title": "Title is required.",
    "description": "Description is required.",
    "original_price": "Price must be a number greater than 0.",
    "stock": "Stock must be a whole number of 0 or more.",
    "category": "Choose one of: " + ", ".join(Category.values()) + ".",
    "discount_percent": "Discount must be between 0 and 100.",
    "images": "Add at least one product image.",
}


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_number(value: Any) -> Optional[float]:
    if _blank(value) or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(n):
        return None
    return n


def _check(draft: ProductDraft, field: str) -> Optional[str]:
    value = getattr(draft, field, None)

    if field in ("title", "description"):
        return MESSAGES[field] if _blank(value) else None

    if field == "original_price":
        n = _as_number(value)
        return MESSAGES[field] if n is None or n <= 0 else None

    if field == "stock":
        n = _as_number(value)
        return MESSAGES[field] if n is None or n < 0 or not n.is_integer() else None

    if field == "category":
        name = value.value if isinstance(value, Category) else value
        return None if name in Category.values() else MESSAGES[field]

    if field == "discount_percent":
        if _blank(value):
            return None
        n = _as_number(value)
        return MESSAGES[field] if n is None or n < 0 or n > 100 else None

    return None


def validate_field(draft: ProductDraft, field: str) -> Optional[str]:
    """Message for a single field, or None when it is currently valid."""
    return _check(draft, field)


def validate(draft: ProductDraft) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for f in VALIDATED_FIELDS:
        msg = _check(draft, f)
        if msg:
            errors[f] = msg
    return errors


def validate_images(image_count: int, mode: str) -> Dict[str, str]:
    """
    Submit-time image rule. New products need at least one image; an edited
    product may legitimately end up with none.
    """
    if mode == "create" and image_count < 1:
        return {"images": MESSAGES["images"]}
    return {}
