"""Controller for the Recommendations feature."""
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversations.dtos import RecommendationDTO
from api.features.recommendations.dtos import (
    CreateRecommendationRequest,
    RecommendationQueryResponse,
)
from api.features.recommendations.service import RecommendationService


def _str(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value else None


class RecommendationController:
    def __init__(self, recommendation_service: RecommendationService):
        self.recommendation_service = recommendation_service

    async def list_recommendations(
        self,
        *,
        conversation_id: Optional[UUID],
        message_id: Optional[UUID],
        car_id: Optional[UUID],
        min_score: Optional[int],
        offset: int,
        limit: int,
        db_session: AsyncSession,
    ) -> RecommendationQueryResponse:
        items, total = await self.recommendation_service.list_recommendations(
            conversation_id=_str(conversation_id),
            message_id=_str(message_id),
            car_id=_str(car_id),
            min_score=min_score,
            offset=offset,
            limit=limit,
            db_session=db_session,
        )
        return RecommendationQueryResponse(items=items, total=total, offset=offset, limit=limit)

    async def create_recommendation(
        self, request: CreateRecommendationRequest, *, db_session: AsyncSession
    ) -> RecommendationDTO:
        return await self.recommendation_service.create_recommendation(request, db_session=db_session)
