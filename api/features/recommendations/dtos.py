"""DTOs for the Recommendations feature."""
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from api.features.conversations.dtos import RecommendationDTO
from api.shared.dtos import BaseDTO


class CreateRecommendationRequest(BaseDTO):
    """Attach a catalog car to an assistant message."""

    conversation_id: UUID = Field(description="Owning conversation")
    message_id: UUID = Field(description="Message the recommendation belongs to")
    car_id: UUID = Field(description="Recommended catalog car")
    match_score: int = Field(ge=0, le=100, description="Match score 0..100")
    reasoning_en: Optional[str] = Field(default=None, max_length=1000)
    reasoning_zh: Optional[str] = Field(default=None, max_length=1000)


class RecommendationQueryResponse(BaseDTO):
    items: List[RecommendationDTO] = Field(description="Best matches first")
    total: int
    offset: int
    limit: int
