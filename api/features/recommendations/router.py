"""Router for the Recommendations feature."""
import logging
from typing import Optional
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer as DependencyContainer
from api.features.conversations.dtos import RecommendationDTO
from api.features.recommendations.controller import RecommendationController
from api.features.recommendations.dtos import (
    CreateRecommendationRequest,
    RecommendationQueryResponse,
)
from api.shared.db import get_db_session
from api.shared.exceptions import ValidationError
from api.shared.response import ResponseModel

router = APIRouter()

logger = logging.getLogger("advisor.recommendations")


@router.get("/", response_model=ResponseModel[RecommendationQueryResponse])
@inject
async def list_recommendations(
    conversation_id: Optional[UUID] = Query(None),
    message_id: Optional[UUID] = Query(None),
    car_id: Optional[UUID] = Query(None),
    min_score: Optional[int] = Query(None, ge=0, le=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    controller: RecommendationController = Depends(
        Provide[DependencyContainer.controllers.recommendation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Recommendations across conversations, best matches first."""
    try:
        result = await controller.list_recommendations(
            conversation_id=conversation_id,
            message_id=message_id,
            car_id=car_id,
            min_score=min_score,
            offset=offset,
            limit=limit,
            db_session=db_session,
        )
        return ResponseModel.success(data=result, message="Recommendations listed")
    except Exception as e:
        logger.exception("Failed to list recommendations")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/", response_model=ResponseModel[RecommendationDTO], status_code=201)
@inject
async def create_recommendation(
    request: CreateRecommendationRequest,
    controller: RecommendationController = Depends(
        Provide[DependencyContainer.controllers.recommendation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        recommendation = await controller.create_recommendation(request, db_session=db_session)
        return ResponseModel.success(data=recommendation, message="Recommendation created")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"message": e.message, "details": e.details})
    except Exception as e:
        logger.exception("Failed to create recommendation")
        raise HTTPException(status_code=500, detail=str(e))
