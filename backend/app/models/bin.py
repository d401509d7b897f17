"""
Cellar Tracker Backend - Bin SQLAlchemy Model
==============================================

What:  ORM model representing the `bins` table.
Who:   Used by BinService for CRUD, by AnalyticsService for utilization
       queries and by Alembic for schema management.

Table Design:
    - Integer identity primary key, assigned by the database
    - capacity: bottle count, CHECK constraint keeps it positive
    - created_at: UTC with timezone, immutable after insert
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.wine import Wine


class Bin(Base):
    """
    A physical storage location with a finite bottle capacity.

    Lifecycle:
        Created, edited and deleted through /api/bins. A bin that still
        holds wines cannot be deleted (the FK from wines is RESTRICT and the
        service refuses before the database has to).
    """

    __tablename__ = "bins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    location: Mapped[str] = mapped_column(String(255), nullable=False)

    capacity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Number of bottles the bin can hold",
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    # Assigned application-side for microsecond resolution; server default
    # covers rows inserted by hand or by the maintenance scripts
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    wines: Mapped[List["Wine"]] = relationship(back_populates="bin")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_bins_capacity_positive"),
        Index("idx_bins_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Bin(id={self.id}, name='{self.name}', capacity={self.capacity})>"
