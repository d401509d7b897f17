"""
Cellar Tracker Backend - Wine SQLAlchemy Model
===============================================

What:  ORM model representing the `wines` table.
Who:   Used by WineService for CRUD and by AnalyticsService for every
       group-by query.

Notes:
    - bin_id is required: a wine always belongs to exactly one bin
    - drink_from / drink_to are optional years; the CHECK constraint only
      fires when both are present
    - The aggregate rating is not a column. It is derived from `reviews`
      on read by the response schema.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.bin import Bin
    from app.models.review import Review


class Wine(Base):
    """A tracked bottle (or batch of bottles) stored in one bin."""

    __tablename__ = "wines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    bin_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("bins.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    vintage: Mapped[int] = mapped_column(Integer, nullable=False)
    region: Mapped[str] = mapped_column(String(255), nullable=False)
    variety: Mapped[str] = mapped_column(String(255), nullable=False)
    producer: Mapped[str] = mapped_column(String(255), nullable=False)

    # Drinking window, in calendar years
    drink_from: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    drink_to: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Relative URLs produced by ImageService (/uploads/<name>)
    image_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    bin: Mapped["Bin"] = relationship(back_populates="wines")

    reviews: Mapped[List["Review"]] = relationship(
        back_populates="wine",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Review.review_date",
    )

    __table_args__ = (
        CheckConstraint(
            "drink_from IS NULL OR drink_to IS NULL OR drink_from <= drink_to",
            name="ck_wines_drinking_window",
        ),
        Index("idx_wines_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Wine(id={self.id}, name='{self.name}', vintage={self.vintage})>"
