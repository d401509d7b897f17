"""
Cellar Tracker Backend - Review SQLAlchemy Model
=================================================

What:  ORM model representing the `reviews` table.

Reviews are append-only: the API creates them but never updates or deletes
them individually. They disappear only together with their wine.

The column is a plain REAL. The 0-100 range is enforced by the API schema,
not by the store.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Float, ForeignKey, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.wine import Wine


class Review(Base):
    """A single rating event attached to a wine."""

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    wine_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("wines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    rating: Mapped[float] = mapped_column(Float, nullable=False)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    review_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    wine: Mapped["Wine"] = relationship(back_populates="reviews")

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, wine_id={self.wine_id}, rating={self.rating})>"
