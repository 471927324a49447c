"""Prompt building, answer parsing and outfit selector tests."""
from __future__ import annotations

import asyncio
import base64
import sys
from pathlib import Path
from typing import List

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from agents.outfit_selector import OutfitSelector
from logic.errors import (
    ExternalServiceError,
    InsufficientItemsError,
    MalformedAIResponseError,
    MissingAssetsError,
)
from logic.prompting import (
    StylistRequest,
    build_prompt,
    coerce_item_id,
    mime_type_for,
    parse_outfit_choice,
    strip_code_fences,
)
from models.clothing_item import ClothingItem
from tools.image_store import ImageStore

VALID_ANSWER = '{"topId": 1, "bottomId": 2, "shoesId": 3, "tip": "ok"}'


class StubModelClient:
    """Records requests and replays a canned answer."""

    def __init__(self, answer: str | Exception = VALID_ANSWER) -> None:
        self.answer = answer
        self.requests: List[StylistRequest] = []

    async def generate(self, request: StylistRequest) -> str:
        self.requests.append(request)
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer


def _seed_items(store: ImageStore) -> List[ClothingItem]:
    specs = [
        (1, "Linen shirt", "top", "white", "shirt.png", b"png-top"),
        (2, "Chinos", "bottom", "beige", "chinos.jpg", b"jpg-bottom"),
        (3, "Sneakers", "shoes", "white", "sneakers.webp", b"webp-shoes"),
    ]
    items = []
    for item_id, name, category, color, filename, data in specs:
        path = store.store(data, filename)
        items.append(
            ClothingItem(
                id=item_id, user_id=1, name=name, category=category, color=color, image_path=path
            )
        )
    return items


@pytest.fixture()
def store(tmp_path: Path) -> ImageStore:
    return ImageStore(tmp_path / "uploads")


@pytest.fixture()
def items(store: ImageStore) -> List[ClothingItem]:
    return _seed_items(store)


def test_strip_code_fences_variants() -> None:
    assert strip_code_fences("```json\n{\"a\": 1}\n```") == '{"a": 1}'
    assert strip_code_fences("```JSON {\"a\": 1}```") == '{"a": 1}'
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_parse_outfit_choice_fenced_equals_plain() -> None:
    plain = parse_outfit_choice(VALID_ANSWER)
    fenced = parse_outfit_choice(f"```json\n{VALID_ANSWER}\n```")

    assert plain == fenced
    assert plain.top_id == 1 and plain.tip == "ok"


def test_parse_outfit_choice_rejects_non_json() -> None:
    with pytest.raises(MalformedAIResponseError):
        parse_outfit_choice("I would wear the blue shirt.")
    with pytest.raises(MalformedAIResponseError):
        parse_outfit_choice("[1, 2, 3]")


def test_parse_outfit_choice_defaults_missing_tip() -> None:
    choice = parse_outfit_choice('{"topId": 1, "bottomId": 2, "shoesId": 3}')
    assert choice.tip == ""


@pytest.mark.parametrize(
    "raw, expected",
    [(1, 1), ("1", 1), (" 2 ", 2), (3.0, 3), ("4.0", 4), (1.5, None), ("abc", None), (True, None), (None, None)],
)
def test_coerce_item_id(raw, expected) -> None:
    assert coerce_item_id(raw) == expected


def test_mime_type_for_extensions() -> None:
    assert mime_type_for("/uploads/a.webp") == "image/webp"
    assert mime_type_for("/uploads/a.PNG") == "image/png"
    assert mime_type_for("/uploads/a.jpeg") == "image/jpeg"
    assert mime_type_for("/uploads/a.gif") == "image/jpeg"


def test_build_prompt_lists_every_item(items: List[ClothingItem]) -> None:
    prompt = build_prompt(items)

    assert "ID 1: TOP - Linen shirt (white)" in prompt
    assert "ID 2: BOTTOM - Chinos (beige)" in prompt
    assert "ID 3: SHOES - Sneakers (white)" in prompt
    assert '"topId"' in prompt and '"tip"' in prompt


def test_select_resolves_items_and_attaches_images(store: ImageStore, items: List[ClothingItem]) -> None:
    client = StubModelClient()
    selector = OutfitSelector(client, store)

    selection = asyncio.run(selector.select(items))

    assert (selection.top.id, selection.bottom.id, selection.shoes.id) == (1, 2, 3)
    assert selection.tip == "ok"
    request = client.requests[0]
    assert [image.item_id for image in request.images] == [1, 2, 3]
    assert [image.mime_type for image in request.images] == ["image/png", "image/jpeg", "image/webp"]
    assert base64.b64decode(request.images[0].data) == b"png-top"


def test_select_accepts_string_ids_and_fenced_answers(store: ImageStore, items: List[ClothingItem]) -> None:
    answer = '```json\n{"topId": "1", "bottomId": "2", "shoesId": 3.0, "tip": "fresh"}\n```'
    selector = OutfitSelector(StubModelClient(answer), store)

    selection = asyncio.run(selector.select(items))

    assert (selection.top.id, selection.bottom.id, selection.shoes.id) == (1, 2, 3)
    assert selection.tip == "fresh"


def test_select_requires_three_items(store: ImageStore, items: List[ClothingItem]) -> None:
    client = StubModelClient()
    selector = OutfitSelector(client, store)

    with pytest.raises(InsufficientItemsError):
        asyncio.run(selector.select(items[:2]))
    assert client.requests == []


def test_select_skips_missing_images_but_needs_three(store: ImageStore, items: List[ClothingItem]) -> None:
    extra = ClothingItem(
        id=4, user_id=1, name="Hoodie", category="top", color="grey", image_path="/uploads/gone.jpg"
    )
    client = StubModelClient()
    selector = OutfitSelector(client, store)

    selection = asyncio.run(selector.select(items + [extra]))
    assert selection.top.id == 1
    assert [image.item_id for image in client.requests[0].images] == [1, 2, 3]

    store.discard(items[2].image_path)
    client.requests.clear()
    with pytest.raises(MissingAssetsError):
        asyncio.run(selector.select(items + [extra]))
    assert client.requests == []


@pytest.mark.parametrize(
    "answer",
    [
        "not json at all",
        '{"topId": 9, "bottomId": 2, "shoesId": 3, "tip": "unknown id"}',
        '{"topId": 2, "bottomId": 1, "shoesId": 3, "tip": "swapped slots"}',
        '{"topId": 1, "bottomId": 2, "tip": "no shoes"}',
    ],
)
def test_select_rejects_unusable_answers(store: ImageStore, items: List[ClothingItem], answer: str) -> None:
    selector = OutfitSelector(StubModelClient(answer), store)

    with pytest.raises(MalformedAIResponseError):
        asyncio.run(selector.select(items))


def test_select_propagates_external_failures(store: ImageStore, items: List[ClothingItem]) -> None:
    selector = OutfitSelector(StubModelClient(ExternalServiceError("boom")), store)

    with pytest.raises(ExternalServiceError):
        asyncio.run(selector.select(items))
