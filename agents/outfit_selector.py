"""Outfit selector that delegates the styling decision to a generative model."""
from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from starlette.concurrency import run_in_threadpool

from logic.errors import InsufficientItemsError, MalformedAIResponseError, MissingAssetsError
from logic.prompting import (
    InlineImage,
    StylistRequest,
    build_prompt,
    coerce_item_id,
    mime_type_for,
    parse_outfit_choice,
)
from models.clothing_item import Category, ClothingItem
from models.outfit import OutfitChoice, OutfitSelection
from stylist_app.logging_config import get_logger, log_event
from tools.image_store import ImageStore
from tools.observability import instrument_operation

logger = get_logger(__name__)

MIN_ITEMS = 3


class OutfitModelClient(Protocol):
    """Anything that can answer a stylist request with raw text."""

    async def generate(self, request: StylistRequest) -> str:
        ...


class OutfitSelector:
    """Pick one top, one bottom and one pair of shoes from a user's items.

    The model sees every candidate as a text line plus its image. Its answer
    is accepted only when each of the three ids resolves to an item of the
    matching slot category; anything else is rejected as malformed rather than
    returned as a partial outfit.
    """

    def __init__(self, client: OutfitModelClient, image_store: ImageStore) -> None:
        self.client = client
        self.image_store = image_store

    def collect_images(self, items: Sequence[ClothingItem]) -> List[InlineImage]:
        """Read and encode item images, skipping any whose file is missing."""

        images: List[InlineImage] = []
        for item in items:
            data = self.image_store.read(item.image_path)
            if data is None:
                log_event(
                    logger,
                    logging.WARNING,
                    "item_image_missing",
                    item_id=item.id,
                    image_path=item.image_path,
                )
                continue
            images.append(
                InlineImage(
                    item_id=item.id,
                    mime_type=mime_type_for(item.image_path),
                    data=base64.b64encode(data).decode("ascii"),
                )
            )
        return images

    async def build_request(self, items: Sequence[ClothingItem]) -> StylistRequest:
        images = await run_in_threadpool(self.collect_images, items)
        if len(images) < MIN_ITEMS:
            raise MissingAssetsError(
                f"Only {len(images)} of {len(items)} item images are available"
            )
        return StylistRequest(prompt=build_prompt(items), images=images)

    @staticmethod
    def _resolve(
        by_id: Dict[int, ClothingItem], raw_id: Any, slot: Category
    ) -> ClothingItem:
        item_id = coerce_item_id(raw_id)
        item: Optional[ClothingItem] = by_id.get(item_id) if item_id is not None else None
        if item is None:
            raise MalformedAIResponseError(
                f"{slot.value} id {raw_id!r} does not match any candidate item"
            )
        if item.category != slot.value:
            raise MalformedAIResponseError(
                f"{slot.value} id {item.id} refers to a '{item.category}' item"
            )
        return item

    def resolve_choice(self, items: Sequence[ClothingItem], choice: OutfitChoice) -> OutfitSelection:
        by_id = {item.id: item for item in items}
        top = self._resolve(by_id, choice.top_id, Category.TOP)
        bottom = self._resolve(by_id, choice.bottom_id, Category.BOTTOM)
        shoes = self._resolve(by_id, choice.shoes_id, Category.SHOES)
        return OutfitSelection(top=top, bottom=bottom, shoes=shoes, tip=choice.tip)

    @instrument_operation("outfit_selector.select")
    async def select(self, items: Sequence[ClothingItem]) -> OutfitSelection:
        if len(items) < MIN_ITEMS:
            raise InsufficientItemsError(f"{len(items)} items given, {MIN_ITEMS} required")

        request = await self.build_request(items)
        log_event(
            logger,
            logging.INFO,
            "stylist_request_built",
            candidate_count=len(items),
            image_count=len(request.images),
        )

        raw_text = await self.client.generate(request)
        try:
            choice = parse_outfit_choice(raw_text)
            selection = self.resolve_choice(items, choice)
        except MalformedAIResponseError as exc:
            log_event(
                logger,
                logging.ERROR,
                "stylist_answer_rejected",
                reason=str(exc),
                raw_response=raw_text,
            )
            raise

        log_event(
            logger,
            logging.INFO,
            "stylist_answer_accepted",
            top_id=selection.top.id,
            bottom_id=selection.bottom.id,
            shoes_id=selection.shoes.id,
        )
        return selection


__all__ = ["OutfitSelector", "OutfitModelClient", "MIN_ITEMS"]
