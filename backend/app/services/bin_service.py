"""
Cellar Tracker Backend - Bin Service
=====================================

What:  CRUD business logic for storage bins.
Who:   Called by the /api/bins route handlers.

Error Handling Strategy:
    NotFoundError and ConflictError propagate as-is. Any other failure
    (driver error, constraint violation) is logged with context and wrapped
    in DatabaseError, which the global handler renders as a generic 500.
"""

import logging
from typing import List

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, DatabaseError, NotFoundError
from app.models import Bin, Wine
from app.schemas.bin import BinCreate, BinResponse, BinUpdate

logger = logging.getLogger(__name__)


class BinService:
    """Stateless; receives the request's session on every call."""

    async def _get_bin_or_404(self, db: AsyncSession, bin_id: int) -> Bin:
        result = await db.execute(select(Bin).where(Bin.id == bin_id))
        bin_ = result.scalar_one_or_none()
        if bin_ is None:
            raise NotFoundError(resource="bin", resource_id=bin_id)
        return bin_

    async def list_bins(self, db: AsyncSession) -> List[BinResponse]:
        """All bins, newest first."""
        try:
            result = await db.execute(
                select(Bin).order_by(desc(Bin.created_at), desc(Bin.id))
            )
            return [BinResponse.model_validate(b) for b in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing bins: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch bins",
                context={"error_type": type(e).__name__},
            )

    async def get_bin(self, db: AsyncSession, bin_id: int) -> BinResponse:
        try:
            return BinResponse.model_validate(await self._get_bin_or_404(db, bin_id))
        except SQLAlchemyError as e:
            logger.error("Database error fetching bin %s: %s", bin_id, str(e))
            raise DatabaseError(message="Failed to fetch bin", context={"bin_id": bin_id})

    async def create_bin(self, db: AsyncSession, data: BinCreate) -> BinResponse:
        try:
            bin_ = Bin(**data.model_dump())
            db.add(bin_)
            await db.flush()
            await db.refresh(bin_)
            logger.info("Bin created: %s (capacity=%d)", bin_.id, bin_.capacity)
            return BinResponse.model_validate(bin_)
        except SQLAlchemyError as e:
            logger.error("Database error creating bin: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to create bin",
                context={"error_type": type(e).__name__},
            )

    async def update_bin(self, db: AsyncSession, bin_id: int, data: BinUpdate) -> BinResponse:
        try:
            bin_ = await self._get_bin_or_404(db, bin_id)
            for field, value in data.model_dump(exclude_unset=True).items():
                # name/location/capacity are NOT NULL; a JSON null leaves them alone
                if value is None and field != "description":
                    continue
                setattr(bin_, field, value)
            await db.flush()
            logger.info("Bin updated: %s", bin_id)
            return BinResponse.model_validate(bin_)
        except SQLAlchemyError as e:
            logger.error("Database error updating bin %s: %s", bin_id, str(e))
            raise DatabaseError(message="Failed to update bin", context={"bin_id": bin_id})

    async def delete_bin(self, db: AsyncSession, bin_id: int) -> None:
        """
        Delete an empty bin.

        Raises ConflictError while wines still reference the bin, so a wine is
        never left pointing at a missing bin.
        """
        try:
            bin_ = await self._get_bin_or_404(db, bin_id)
            wine_count = (
                await db.execute(select(func.count(Wine.id)).where(Wine.bin_id == bin_id))
            ).scalar_one()
            if wine_count:
                raise ConflictError(
                    message=f"Bin '{bin_.name}' still holds {wine_count} wine(s). Move or delete them first.",
                    context={"bin_id": bin_id, "wine_count": wine_count},
                )
            await db.delete(bin_)
            await db.flush()
            logger.info("Bin deleted: %s", bin_id)
        except SQLAlchemyError as e:
            logger.error("Database error deleting bin %s: %s", bin_id, str(e))
            raise DatabaseError(message="Failed to delete bin", context={"bin_id": bin_id})


# ── Singleton Instance ────────────────────────────────────────────────────
bin_service = BinService()
