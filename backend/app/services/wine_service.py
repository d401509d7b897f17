"""
Cellar Tracker Backend - Wine Service (Business Logic Orchestrator)
====================================================================

What:  CRUD for wines, coordinating the optional label image with the row.
Who:   Called by the /api/wines route handlers.

Create / Update Flow:
    ┌──────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │  Route   │───▶│  Bin exists? │───▶│ ImageService │───▶│  Flush   │
    │ (parsed) │    │  (404)       │    │ (optional)   │    │  (DB)    │
    └──────────┘    └──────────────┘    └──────────────┘    └──────────┘

    On failure after the image was stored, the new files are removed
    before the error propagates. Files made obsolete by a successful update
    or delete are returned to the route, which removes them in a background
    task once the response has been sent.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import desc, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import CellarError, DatabaseError, NotFoundError, ValidationError
from app.models import Bin, Wine
from app.schemas.wine import WineCreate, WineResponse, WineUpdate
from app.services.image_service import StoredImage, image_service

logger = logging.getLogger(__name__)

# Columns declared NOT NULL; a JSON null in an update leaves them unchanged
_REQUIRED_FIELDS = {"bin_id", "name", "vintage", "region", "variety", "producer"}


class WineService:
    """
    Business logic layer for wine operations.

    Responsibilities:
        - list_wines(): newest first, reviews eager-loaded
        - get_wine(): single wine with not-found handling
        - create_wine() / update_wine(): row + optional image, all or nothing
        - delete_wine(): row and its reviews
    """

    async def _get_wine_or_404(self, db: AsyncSession, wine_id: int) -> Wine:
        result = await db.execute(
            select(Wine)
            .options(selectinload(Wine.reviews))
            .where(Wine.id == wine_id)
            .execution_options(populate_existing=True)
        )
        wine = result.scalar_one_or_none()
        if wine is None:
            raise NotFoundError(resource="wine", resource_id=wine_id)
        return wine

    async def _ensure_bin_exists(self, db: AsyncSession, bin_id: int) -> None:
        result = await db.execute(select(Bin.id).where(Bin.id == bin_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(resource="bin", resource_id=bin_id)

    @staticmethod
    def _check_drinking_window(drink_from: Optional[int], drink_to: Optional[int]) -> None:
        if drink_from is not None and drink_to is not None and drink_from > drink_to:
            raise ValidationError(
                message="drinkFrom must not be later than drinkTo",
                field="drinkFrom",
                context={"drink_from": drink_from, "drink_to": drink_to},
            )

    async def _store_image(
        self,
        image_content: Optional[bytes],
        content_type: Optional[str],
    ) -> Optional[StoredImage]:
        if image_content is None:
            return None
        return await image_service.store(image_content, content_type)

    async def _unreferenced(self, db: AsyncSession, urls: List[str]) -> List[str]:
        """Drop URLs some wine row still points at. Call after flushing."""
        if not urls:
            return []
        result = await db.execute(
            select(Wine.image_url, Wine.thumbnail_url).where(
                or_(Wine.image_url.in_(urls), Wine.thumbnail_url.in_(urls))
            )
        )
        in_use = {url for row in result.all() for url in row if url}
        if in_use:
            logger.info("Keeping %d image file(s) still referenced", len(in_use & set(urls)))
        return [url for url in urls if url not in in_use]

    async def list_wines(self, db: AsyncSession) -> List[WineResponse]:
        """All wines, newest first, each with its reviews."""
        try:
            result = await db.execute(
                select(Wine)
                .options(selectinload(Wine.reviews))
                .order_by(desc(Wine.created_at), desc(Wine.id))
            )
            return [WineResponse.model_validate(w) for w in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing wines: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch wines",
                context={"error_type": type(e).__name__},
            )

    async def get_wine(self, db: AsyncSession, wine_id: int) -> WineResponse:
        try:
            return WineResponse.model_validate(await self._get_wine_or_404(db, wine_id))
        except SQLAlchemyError as e:
            logger.error("Database error fetching wine %s: %s", wine_id, str(e))
            raise DatabaseError(message="Failed to fetch wine", context={"wine_id": wine_id})

    async def create_wine(
        self,
        db: AsyncSession,
        data: WineCreate,
        image_content: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> WineResponse:
        """
        Insert a wine, storing its label image first when one was sent.

        Raises:
            NotFoundError: binId does not reference an existing bin
            ValidationError: image rejected by ImageService
            DatabaseError: insert failed (stored image files are removed)
        """
        stored: Optional[StoredImage] = None
        try:
            await self._ensure_bin_exists(db, data.bin_id)
            stored = await self._store_image(image_content, content_type)

            values = data.model_dump()
            if stored:
                values["image_url"] = stored.image_url
                values["thumbnail_url"] = stored.thumbnail_url

            wine = Wine(**values)
            db.add(wine)
            await db.flush()
            logger.info("Wine created: %s (%s %s)", wine.id, wine.name, wine.vintage)

            return WineResponse.model_validate(await self._get_wine_or_404(db, wine.id))

        except Exception as e:
            if stored:
                await image_service.cleanup_urls(stored.image_url, stored.thumbnail_url)
            if isinstance(e, CellarError):
                raise
            logger.error("Unexpected error creating wine: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to create wine",
                context={"original_error": type(e).__name__},
            )

    async def update_wine(
        self,
        db: AsyncSession,
        wine_id: int,
        data: WineUpdate,
        image_content: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> Tuple[WineResponse, List[str]]:
        """
        Apply a partial update, optionally replacing the label image.

        Returns:
            (updated wine, URLs of image files no wine references any more)
        """
        stored: Optional[StoredImage] = None
        try:
            wine = await self._get_wine_or_404(db, wine_id)
            changes = {
                field: value
                for field, value in data.model_dump(exclude_unset=True).items()
                if not (value is None and field in _REQUIRED_FIELDS)
            }

            if "bin_id" in changes and changes["bin_id"] != wine.bin_id:
                await self._ensure_bin_exists(db, changes["bin_id"])

            self._check_drinking_window(
                changes.get("drink_from", wine.drink_from),
                changes.get("drink_to", wine.drink_to),
            )

            stored = await self._store_image(image_content, content_type)
            if stored:
                changes["image_url"] = stored.image_url
                changes["thumbnail_url"] = stored.thumbnail_url

            stale_urls = []
            for field in ("image_url", "thumbnail_url"):
                previous = getattr(wine, field)
                if field in changes and previous and previous != changes[field]:
                    stale_urls.append(previous)

            for field, value in changes.items():
                setattr(wine, field, value)
            await db.flush()
            logger.info("Wine updated: %s (%d field(s))", wine_id, len(changes))

            return WineResponse.model_validate(wine), await self._unreferenced(db, stale_urls)

        except Exception as e:
            if stored:
                await image_service.cleanup_urls(stored.image_url, stored.thumbnail_url)
            if isinstance(e, CellarError):
                raise
            logger.error("Unexpected error updating wine %s: %s", wine_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to update wine",
                context={"wine_id": wine_id, "original_error": type(e).__name__},
            )

    async def delete_wine(self, db: AsyncSession, wine_id: int) -> List[str]:
        """
        Delete a wine and its reviews.

        Returns: URLs of the wine's image files that no other wine shares,
        for background cleanup.
        """
        try:
            wine = await self._get_wine_or_404(db, wine_id)
            orphaned = [url for url in (wine.image_url, wine.thumbnail_url) if url]
            await db.delete(wine)
            await db.flush()
            logger.info("Wine deleted: %s", wine_id)
            return await self._unreferenced(db, orphaned)
        except SQLAlchemyError as e:
            logger.error("Database error deleting wine %s: %s", wine_id, str(e))
            raise DatabaseError(message="Failed to delete wine", context={"wine_id": wine_id})


# ── Singleton Instance ────────────────────────────────────────────────────
wine_service = WineService()
