"""Outfit selection models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from models.clothing_item import ClothingItem


@dataclass(frozen=True)
class OutfitChoice:
    """Identifiers picked by the model before they are resolved to items."""

    top_id: Any
    bottom_id: Any
    shoes_id: Any
    tip: str


@dataclass
class OutfitSelection:
    """A resolved outfit plus the stylist's rationale. Never persisted."""

    top: ClothingItem
    bottom: ClothingItem
    shoes: ClothingItem
    tip: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "top": self.top.to_dict(),
            "bottom": self.bottom.to_dict(),
            "shoes": self.shoes.to_dict(),
            "tip": self.tip,
        }


__all__ = ["OutfitChoice", "OutfitSelection"]
