"""Prompt construction and answer parsing for the outfit stylist."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, List, Optional, Sequence

from logic.errors import MalformedAIResponseError
from models.clothing_item import ClothingItem
from models.outfit import OutfitChoice

_FENCE_PATTERN = re.compile(r"```json|```", re.IGNORECASE)
_MIME_TYPES = {
    ".webp": "image/webp",
    ".png": "image/png",
}
DEFAULT_MIME_TYPE = "image/jpeg"

PROMPT_TEMPLATE = """
You are a professional fashion stylist. Here are the wardrobe items with their IDs, categories, and descriptions:

{catalog}

The images of the items follow, each introduced by its ID.

Pick exactly 1 top, 1 bottom, and 1 pair of shoes.
Return ONLY a JSON object in this format:
{{"topId": ID, "bottomId": ID, "shoesId": ID, "tip": "Explain why this combination works"}}

Make sure that the topId is an item with category "top", bottomId is "bottom", and shoesId is "shoes". Do NOT repeat the same item for multiple categories.
"""


@dataclass(frozen=True)
class InlineImage:
    """One base64-encoded item image attached to the request."""

    item_id: int
    mime_type: str
    data: str

    @property
    def caption(self) -> str:
        return f"Image for item ID {self.item_id}:"


@dataclass
class StylistRequest:
    """Prompt text plus the images that accompany it."""

    prompt: str
    images: List[InlineImage] = field(default_factory=list)


def mime_type_for(image_path: str) -> str:
    return _MIME_TYPES.get(PurePosixPath(image_path or "").suffix.lower(), DEFAULT_MIME_TYPE)


def describe_item(item: ClothingItem) -> str:
    return f"ID {item.id}: {str(item.category).upper()} - {item.name} ({item.color})"


def build_prompt(items: Sequence[ClothingItem]) -> str:
    catalog = "\n".join(describe_item(item) for item in items)
    return PROMPT_TEMPLATE.format(catalog=catalog)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model sometimes wraps JSON in."""

    return _FENCE_PATTERN.sub("", text or "").strip()


def parse_outfit_choice(raw_text: str) -> OutfitChoice:
    """Parse the model answer into an :class:`OutfitChoice`.

    Raises :class:`MalformedAIResponseError` when the cleaned text is not a
    JSON object.
    """

    cleaned = strip_code_fences(raw_text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedAIResponseError(f"Model answer is not JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedAIResponseError(
            f"Model answer is JSON but not an object: {type(payload).__name__}"
        )

    tip = payload.get("tip")
    return OutfitChoice(
        top_id=payload.get("topId"),
        bottom_id=payload.get("bottomId"),
        shoes_id=payload.get("shoesId"),
        tip="" if tip is None else str(tip),
    )


def coerce_item_id(value: Any) -> Optional[int]:
    """Loosely coerce a model-supplied identifier to an integer id.

    Accepts ints, integral floats and numeric strings; anything else
    (including booleans) yields ``None``.
    """

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None


__all__ = [
    "InlineImage",
    "StylistRequest",
    "PROMPT_TEMPLATE",
    "DEFAULT_MIME_TYPE",
    "build_prompt",
    "coerce_item_id",
    "describe_item",
    "mime_type_for",
    "parse_outfit_choice",
    "strip_code_fences",
]
