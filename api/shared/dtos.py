"""Shared DTOs for the car advisor API."""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from api.shared.utils import utcnow


class BaseDTO(BaseModel):
    """Base DTO with common configuration."""

    class Config:
        from_attributes = True


class CamelDTO(BaseModel):
    """DTO exchanged with the chat front end: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class PaginationInfo(CamelDTO):
    """Pagination block returned alongside list payloads."""
    limit: int = Field(description="Maximum number of items returned")
    offset: int = Field(description="Number of items skipped")
    total: int = Field(description="Total number of items")


class ErrorResponse(BaseDTO):
    """Error response DTO."""
    error_code: str = Field(description="Error code")
    message: str = Field(description="Error message")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error details")
    timestamp: datetime = Field(default_factory=utcnow)
