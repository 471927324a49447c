"""Pydantic schemas for HTTP request and response payloads."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from logic.errors import InputValidationError
from models.clothing_item import Category, validate_category
from stylist_app.config import DEFAULT_USER_ID


class UploadForm(BaseModel):
    """Form fields sent alongside an uploaded image."""

    name: str = Field(min_length=1)
    category: Category
    color: str = ""
    user_id: int = Field(default=DEFAULT_USER_ID, ge=1)

    @field_validator("name", "color", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("category", mode="before")
    @classmethod
    def _normalise_category(cls, value: Any) -> Category:
        try:
            return validate_category(value)
        except InputValidationError as exc:
            raise ValueError(exc.public_message) from None


class ClothingItemOut(BaseModel):
    """A stored item as returned to clients."""

    id: int
    user_id: int
    name: str
    category: str
    color: str
    image_path: str


class OutfitOut(BaseModel):
    """Body of a successful generate call."""

    top: ClothingItemOut
    bottom: ClothingItemOut
    shoes: ClothingItemOut
    tip: str


class MessageOut(BaseModel):
    message: str


class ErrorOut(BaseModel):
    error: str


def describe_validation_error(exc: ValidationError) -> str:
    """Render the first pydantic error as one human-readable sentence."""

    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "path", "query"))
    message = str(first.get("msg", "is invalid"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{location}: {message}" if location else message


def parse_upload_form(
    name: Optional[str],
    category: Optional[str],
    color: Optional[str],
    user_id: Optional[str],
    default_user_id: int = DEFAULT_USER_ID,
) -> UploadForm:
    """Validate raw form values, falling back to the default user."""

    payload: Dict[str, Any] = {"name": name, "category": category, "color": color or ""}
    payload["user_id"] = user_id if user_id not in (None, "") else default_user_id
    try:
        return UploadForm.model_validate(payload)
    except ValidationError as exc:
        raise InputValidationError(describe_validation_error(exc)) from exc


__all__ = [
    "UploadForm",
    "ClothingItemOut",
    "OutfitOut",
    "MessageOut",
    "ErrorOut",
    "describe_validation_error",
    "parse_upload_form",
]
