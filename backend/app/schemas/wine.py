"""
Cellar Tracker Backend - Wine Schemas
======================================

Request and response models for /api/wines.

POST and PUT receive the wine as a JSON string in the multipart field
`wine` (next to an optional `image` file), so these models are validated
explicitly with `model_validate_json` in the router rather than by FastAPI's
body parsing.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, computed_field, model_validator

from app.schemas.common import CamelModel
from app.schemas.review import ReviewResponse
from app.services.metrics import mean_rating


class WineCreate(CamelModel):
    bin_id: int = Field(gt=0)
    name: str = Field(min_length=1, max_length=255)
    vintage: int = Field(ge=1000, le=9999)
    region: str = Field(min_length=1, max_length=255)
    variety: str = Field(min_length=1, max_length=255)
    producer: str = Field(min_length=1, max_length=255)
    drink_from: Optional[int] = Field(default=None, ge=1000, le=9999)
    drink_to: Optional[int] = Field(default=None, ge=1000, le=9999)
    # Filled in when the client uploaded through /api/upload beforehand; an
    # `image` file sent with the request takes precedence
    image_url: Optional[str] = Field(default=None, max_length=512)
    thumbnail_url: Optional[str] = Field(default=None, max_length=512)

    @model_validator(mode="after")
    def check_drinking_window(self) -> "WineCreate":
        if (
            self.drink_from is not None
            and self.drink_to is not None
            and self.drink_from > self.drink_to
        ):
            raise ValueError("drinkFrom must not be later than drinkTo")
        return self


class WineUpdate(CamelModel):
    """
    Partial update. Only fields present in the JSON are applied, so an
    explicit `"drinkFrom": null` clears the value while an absent key keeps it.
    """
    bin_id: Optional[int] = Field(default=None, gt=0)
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    vintage: Optional[int] = Field(default=None, ge=1000, le=9999)
    region: Optional[str] = Field(default=None, min_length=1, max_length=255)
    variety: Optional[str] = Field(default=None, min_length=1, max_length=255)
    producer: Optional[str] = Field(default=None, min_length=1, max_length=255)
    drink_from: Optional[int] = Field(default=None, ge=1000, le=9999)
    drink_to: Optional[int] = Field(default=None, ge=1000, le=9999)
    image_url: Optional[str] = Field(default=None, max_length=512)
    thumbnail_url: Optional[str] = Field(default=None, max_length=512)


class WineResponse(CamelModel):
    """A wine with its reviews and the derived aggregate rating."""
    id: int
    bin_id: int
    name: str
    vintage: int
    region: str
    variety: str
    producer: str
    drink_from: Optional[int] = None
    drink_to: Optional[int] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    created_at: datetime
    reviews: List[ReviewResponse] = Field(default_factory=list)

    @computed_field(alias="averageRating")
    @property
    def average_rating(self) -> Optional[float]:
        return mean_rating(review.rating for review in self.reviews)

    @computed_field(alias="reviewCount")
    @property
    def review_count(self) -> int:
        return len(self.reviews)
