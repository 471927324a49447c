"""Application container wiring config, storage and the outfit selector."""

import logging
from typing import List

from starlette.concurrency import run_in_threadpool

from agents.gemini_client import GeminiOutfitClient
from agents.outfit_selector import MIN_ITEMS, OutfitModelClient, OutfitSelector
from logic.errors import InsufficientItemsError
from models.clothing_item import ClothingItem
from models.outfit import OutfitSelection
from stylist_app.config import StylistConfig
from stylist_app.logging_config import configure_logging, get_logger, log_event
from tools.connection_pool import SQLiteConnectionPool
from tools.image_store import ImageStore
from tools.item_repository import ItemRepository

LOGGER = get_logger(__name__)


class WardrobeStylistApp:
    """Owns the process-scoped resources and the two use cases.

    The connection pool is created here, opened by :meth:`startup` and closed
    by :meth:`shutdown`; requests only ever borrow from it.
    """

    def __init__(
        self,
        config: StylistConfig | None = None,
        ai_client: OutfitModelClient | None = None,
    ) -> None:
        self.config = config or StylistConfig.from_env()
        configure_logging(self.config.log_level)

        self.pool = SQLiteConnectionPool(
            self.config.database_path,
            size=self.config.pool_size,
            timeout=self.config.pool_timeout,
        )
        self.image_store = ImageStore(self.config.upload_dir)
        self.repository = ItemRepository(self.pool)
        self.ai_client = ai_client or GeminiOutfitClient(
            api_key=self.config.api_key,
            model=self.config.model,
            timeout=self.config.ai_timeout_seconds,
        )
        self.selector = OutfitSelector(self.ai_client, self.image_store)

    def startup(self) -> None:
        self.pool.open()
        self.repository.ensure_schema()
        self.image_store.upload_dir.mkdir(parents=True, exist_ok=True)
        log_event(
            LOGGER,
            logging.INFO,
            "app_started",
            model=self.config.model,
            gemini_api_key_loaded=bool(self.config.api_key),
            upload_dir=str(self.image_store.upload_dir),
        )

    def shutdown(self) -> None:
        self.pool.close()
        log_event(LOGGER, logging.INFO, "app_stopped")

    async def upload_item(
        self,
        *,
        user_id: int,
        name: str,
        category: str,
        color: str,
        file_bytes: bytes,
        original_filename: str | None,
    ) -> ClothingItem:
        """Store the image, then insert its row; remove the image if the insert fails."""

        image_path = await run_in_threadpool(
            self.image_store.store, file_bytes, original_filename
        )
        try:
            item = await run_in_threadpool(
                self.repository.insert,
                user_id=user_id,
                name=name,
                category=category,
                color=color,
                image_path=image_path,
            )
        except Exception:
            await run_in_threadpool(self.image_store.discard, image_path)
            raise
        log_event(
            LOGGER,
            logging.INFO,
            "item_uploaded",
            item_id=item.id,
            category=item.category,
            image_path=image_path,
        )
        return item

    async def list_items(self, user_id: int) -> List[ClothingItem]:
        return await run_in_threadpool(self.repository.list_by_user, user_id=user_id)

    async def generate_outfit(self, user_id: int) -> OutfitSelection:
        items = await self.list_items(user_id)
        if len(items) < MIN_ITEMS:
            raise InsufficientItemsError(f"User has {len(items)} items")
        return await self.selector.select(items)


__all__ = ["WardrobeStylistApp"]
