"""Router for the Conversations feature."""
import logging
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer as DependencyContainer
from api.features.conversations.controller import ConversationController
from api.features.conversations.dtos import (
    ConversationDTO,
    ConversationListResponse,
    CreateConversationRequest,
    MessagesResponse,
    NextStepListResponse,
    RecommendationListResponse,
    SummaryResponse,
    UpdateConversationRequest,
)
from api.features.conversations.exceptions import ConversationNotFoundError
from api.shared.db import get_db_session
from api.shared.response import ResponseModel

router = APIRouter()

logger = logging.getLogger("advisor.conversations")


@router.post("/", response_model=ResponseModel[ConversationDTO], status_code=201)
@inject
async def create_conversation(
    request: CreateConversationRequest,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        conv = await controller.create_conversation(request, db_session=db_session)
        return ResponseModel.success(data=conv, message="Conversation created")
    except Exception as e:
        logger.exception("Failed to create conversation")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/", response_model=ResponseModel[ConversationListResponse])
@inject
async def list_conversations(
    user_id: Optional[str] = Query(None, description="Filter by user id"),
    search: Optional[str] = Query(None, max_length=200, description="Match title or summary"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        result = await controller.list_conversations(
            user_id=user_id, search=search, offset=offset, limit=limit, db_session=db_session
        )
        return ResponseModel.success(data=result, message="Conversations listed")
    except Exception as e:
        logger.exception("Failed to list conversations")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{conversation_id}", response_model=ResponseModel[ConversationDTO])
@inject
async def get_conversation(
    conversation_id: str,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        conv = await controller.get_conversation(conversation_id, db_session=db_session)
        return ResponseModel.success(data=conv, message="Conversation fetched")
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.exception("Failed to fetch conversation")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{conversation_id}", response_model=ResponseModel[ConversationDTO])
@inject
async def update_conversation(
    conversation_id: str,
    request: UpdateConversationRequest,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Update title, summary or language; omitted fields are kept."""
    try:
        conv = await controller.update_conversation(conversation_id, request, db_session=db_session)
        return ResponseModel.success(data=conv, message="Conversation updated")
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.exception("Failed to update conversation")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{conversation_id}", response_model=ResponseModel[None])
@inject
async def delete_conversation(
    conversation_id: str,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        await controller.delete_conversation(conversation_id, db_session=db_session)
        return ResponseModel.success(message="Conversation deleted")
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.exception("Failed to delete conversation")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{conversation_id}/messages", response_model=ResponseModel[MessagesResponse])
@inject
async def get_messages(
    conversation_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        result = await controller.get_messages(
            conversation_id, offset=offset, limit=limit, db_session=db_session
        )
        return ResponseModel.success(data=result, message="Messages fetched")
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.exception("Failed to fetch messages")
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "/{conversation_id}/recommendations",
    response_model=ResponseModel[RecommendationListResponse],
)
@inject
async def get_recommendations(
    conversation_id: str,
    min_score: Optional[int] = Query(None, ge=0, le=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        result = await controller.get_recommendations(
            conversation_id,
            min_score=min_score,
            offset=offset,
            limit=limit,
            db_session=db_session,
        )
        return ResponseModel.success(data=result, message="Recommendations fetched")
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.exception("Failed to fetch recommendations")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{conversation_id}/next-steps", response_model=ResponseModel[NextStepListResponse])
@inject
async def get_next_steps(
    conversation_id: str,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        result = await controller.get_next_steps(conversation_id, db_session=db_session)
        return ResponseModel.success(data=result, message="Next steps fetched")
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.exception("Failed to fetch next steps")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{conversation_id}/summary", response_model=ResponseModel[SummaryResponse])
@inject
async def summarize_conversation(
    conversation_id: str,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        result = await controller.summarize(conversation_id, db_session=db_session)
        return ResponseModel.success(data=result, message="Conversation summarized")
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.exception("Failed to summarize conversation")
        raise HTTPException(status_code=500, detail=str(e))
