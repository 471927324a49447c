"""Relational persistence for clothing items."""
from __future__ import annotations

from typing import Any, List, Mapping

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from logic.errors import PersistenceError
from models.clothing_item import ClothingItem, validate_category
from tools.connection_pool import SQLiteConnectionPool
from tools.observability import instrument_operation

_CREATE_TABLE = text(
    """
    CREATE TABLE IF NOT EXISTS clothing_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        category TEXT NOT NULL,
        color TEXT NOT NULL,
        image_path TEXT NOT NULL
    )
    """
)
_CREATE_USER_INDEX = text(
    "CREATE INDEX IF NOT EXISTS idx_clothing_items_user_id ON clothing_items (user_id)"
)
_INSERT_ITEM = text(
    """
    INSERT INTO clothing_items (user_id, name, category, color, image_path)
    VALUES (:user_id, :name, :category, :color, :image_path)
    """
)
_SELECT_BY_USER = text(
    "SELECT id, user_id, name, category, color, image_path "
    "FROM clothing_items WHERE user_id = :user_id ORDER BY id"
)


class ItemRepository:
    """Insert and query ``clothing_items`` rows through a shared pool.

    Every statement binds its values as parameters.
    """

    def __init__(self, pool: SQLiteConnectionPool) -> None:
        self.pool = pool

    def ensure_schema(self) -> None:
        try:
            with self.pool.connection() as conn:
                conn.execute(_CREATE_TABLE)
                conn.execute(_CREATE_USER_INDEX)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not prepare clothing_items table: {exc}") from exc

    @staticmethod
    def _row_to_item(row: Mapping[str, Any]) -> ClothingItem:
        return ClothingItem(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            category=row["category"],
            color=row["color"],
            image_path=row["image_path"],
        )

    @instrument_operation("item_repository.insert")
    def insert(
        self,
        user_id: int,
        name: str,
        category: str,
        color: str,
        image_path: str,
    ) -> ClothingItem:
        category_value = validate_category(category).value
        try:
            with self.pool.connection() as conn:
                result = conn.execute(
                    _INSERT_ITEM,
                    {
                        "user_id": user_id,
                        "name": name,
                        "category": category_value,
                        "color": color,
                        "image_path": image_path,
                    },
                )
                item_id = result.lastrowid
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Insert into clothing_items failed: {exc}") from exc

        return ClothingItem(
            id=item_id,
            user_id=user_id,
            name=name,
            category=category_value,
            color=color,
            image_path=image_path,
        )

    @instrument_operation("item_repository.list_by_user")
    def list_by_user(self, user_id: int) -> List[ClothingItem]:
        try:
            with self.pool.connection() as conn:
                rows = conn.execute(_SELECT_BY_USER, {"user_id": user_id}).mappings().all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Query on clothing_items failed: {exc}") from exc
        return [self._row_to_item(row) for row in rows]


__all__ = ["ItemRepository"]
