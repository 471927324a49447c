"""Clothing item data model and category helpers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict

from logic.errors import InputValidationError


class Category(str, Enum):
    """The three wardrobe slots an outfit is built from."""

    TOP = "top"
    BOTTOM = "bottom"
    SHOES = "shoes"


def validate_category(value: Any) -> Category:
    """Validate and normalise a category value.

    Raises :class:`InputValidationError` if the category is not one of the
    supported slots.
    """

    if isinstance(value, Category):
        return value
    key = str(value or "").strip().lower()
    try:
        return Category(key)
    except ValueError:
        allowed = ", ".join(category.value for category in Category)
        raise InputValidationError(
            f"Unsupported category '{value}'. Allowed: {allowed}"
        ) from None


@dataclass
class ClothingItem:
    """A cataloged clothing item owned by a user.

    ``category`` is a plain string here because rows written by other tools
    may carry labels outside :class:`Category`; new rows are validated before
    insert.
    """

    id: int
    user_id: int
    name: str
    category: str
    color: str
    image_path: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["Category", "ClothingItem", "validate_category"]
