"""Model package exports."""

from models.clothing_item import Category, ClothingItem, validate_category
from models.outfit import OutfitChoice, OutfitSelection

__all__ = ["Category", "ClothingItem", "OutfitChoice", "OutfitSelection", "validate_category"]
