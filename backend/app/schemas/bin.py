"""
Cellar Tracker Backend - Bin Schemas
=====================================

Request and response models for /api/bins.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class BinCreate(CamelModel):
    """Body of POST /api/bins. The id and createdAt are assigned by the server."""
    name: str = Field(min_length=1, max_length=255)
    location: str = Field(min_length=1, max_length=255)
    capacity: int = Field(gt=0, description="Number of bottles the bin can hold")
    description: Optional[str] = None


class BinUpdate(CamelModel):
    """Body of PUT /api/bins/{id}. Omitted fields are left unchanged."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    capacity: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = None


class BinResponse(CamelModel):
    id: int
    name: str
    location: str
    capacity: int
    description: Optional[str] = None
    created_at: datetime
