"""Service layer for the Recommendations feature."""
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.cars.repositories.car_repository import CarRepository
from api.features.conversations.dtos import RecommendationDTO
from api.features.conversations.entities.recommendation import Recommendation
from api.features.conversations.repositories.conversation_repository import (
    ConversationRepository,
    MessageRepository,
)
from api.features.conversations.repositories.recommendation_repository import (
    RecommendationRepository,
)
from api.features.recommendations.dtos import CreateRecommendationRequest
from api.features.recommendations.exceptions import RecommendationReferenceError

logger = logging.getLogger("advisor.recommendations.service")


async def with_car_names(
    entities: Sequence[Recommendation], db_session: AsyncSession
) -> List[RecommendationDTO]:
    """Recommendation DTOs carrying the make and model of their car."""
    cars = await CarRepository(db_session).get_by_ids([entity.car_id for entity in entities])
    names = {car.id: f"{car.make} {car.model}" for car in cars}
    return [
        RecommendationDTO.from_entity(entity, car_name=names.get(entity.car_id))
        for entity in entities
    ]


class RecommendationService:
    """Query and create recommendations across conversations."""

    async def list_recommendations(
        self,
        *,
        conversation_id: Optional[str],
        message_id: Optional[str],
        car_id: Optional[str],
        min_score: Optional[int],
        offset: int,
        limit: int,
        db_session: AsyncSession,
    ) -> Tuple[List[RecommendationDTO], int]:
        entities, total = await RecommendationRepository(db_session).list_filtered(
            conversation_id=conversation_id,
            message_id=message_id,
            car_id=car_id,
            min_score=min_score,
            offset=offset,
            limit=limit,
        )
        return await with_car_names(entities, db_session), total

    async def create_recommendation(
        self, request: CreateRecommendationRequest, *, db_session: AsyncSession
    ) -> RecommendationDTO:
        conversation_id = str(request.conversation_id)
        message_id = str(request.message_id)
        car_id = str(request.car_id)

        if await ConversationRepository(db_session).get_by_id(conversation_id) is None:
            raise RecommendationReferenceError("Conversation", conversation_id)
        message = await MessageRepository(db_session).get_by_id(message_id)
        if message is None or message.conversation_id != conversation_id:
            raise RecommendationReferenceError("Message", message_id)
        car = await CarRepository(db_session).get_by_id(car_id)
        if car is None or not car.is_active:
            raise RecommendationReferenceError("Car", car_id)

        entity = await RecommendationRepository(db_session).create(
            Recommendation(
                conversation_id=conversation_id,
                message_id=message_id,
                car_id=car_id,
                match_score=request.match_score,
                reasoning_en=request.reasoning_en,
                reasoning_zh=request.reasoning_zh,
            )
        )
        await db_session.commit()
        logger.info(f"Recommendation created: {entity.id} (car={car_id}, score={entity.match_score})")
        return RecommendationDTO.from_entity(entity, car_name=f"{car.make} {car.model}")
