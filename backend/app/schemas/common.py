"""
Cellar Tracker Backend - Shared Pydantic Schemas
=================================================

What:  Base model and the response shapes shared by every router.
How:   Field names are snake_case in Python and camelCase on the wire
       (`createdAt`, `binId`, ...), which is what the browser client reads.
       Request bodies accept either spelling.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for all API models: camelCase aliases, ORM attribute loading."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class SuccessResponse(CamelModel):
    """Returned by DELETE endpoints."""
    success: bool = True


class ErrorResponse(CamelModel):
    """
    Error body returned for every 4xx/5xx response.

    Example:
        {
            "error": "Wine with ID '42' was not found",
            "code": "not_found",
            "requestId": "a1b2c3d4"
        }
    """
    error: str = Field(description="Human-readable error description")
    code: str = Field(description="Machine-readable error code")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    """Health check response for monitoring and container probes."""
    status: str = Field(description="ok when the database answers, unhealthy otherwise")
    timestamp: datetime = Field(description="Server time (UTC)")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


class UploadResponse(CamelModel):
    """Relative URLs of a stored image and its thumbnail."""
    image_url: str
    thumbnail_url: str
