"""Router for the Chat feature."""
import logging
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer as DependencyContainer
from api.features.chat.controller import ChatController
from api.features.chat.dtos import ChatHistoryResponse, ChatRequest, ChatResponse
from api.shared.db import get_db_session
from api.shared.exceptions import NotFoundError, StorageError, ValidationError
from api.shared.response import ResponseModel

router = APIRouter()

logger = logging.getLogger("advisor.chat")

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"}


@router.post("", response_model=ResponseModel[ChatResponse], response_model_by_alias=True)
@inject
async def send_message(
    request: Request,
    payload: ChatRequest,
    controller: ChatController = Depends(Provide[DependencyContainer.controllers.chat_controller]),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Process one chat turn, as JSON or as a Server-Sent Events stream."""
    try:
        if payload.stream:
            frames = await controller.open_stream(
                payload, db_session=db_session, is_disconnected=request.is_disconnected
            )
            return StreamingResponse(frames, media_type="text/event-stream", headers=SSE_HEADERS)
        result = await controller.send_message(payload, db_session=db_session)
        return ResponseModel.success(data=result, message="Chat reply generated")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except StorageError as e:
        logger.error(f"Chat turn storage failure: {e.message}")
        raise HTTPException(status_code=503, detail=e.message)
    except Exception as e:
        logger.exception("Chat turn failed")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=ResponseModel[ChatHistoryResponse], response_model_by_alias=True)
@inject
async def get_history(
    conversation_id: Optional[str] = Query(None, alias="conversationId"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    controller: ChatController = Depends(Provide[DependencyContainer.controllers.chat_controller]),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Conversation plus its messages in chronological order."""
    try:
        result = await controller.get_history(
            conversation_id or "", limit=limit, offset=offset, db_session=db_session
        )
        return ResponseModel.success(data=result, message="Chat history fetched")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"message": e.message, "details": e.details})
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.exception("Failed to fetch chat history")
        raise HTTPException(status_code=500, detail=str(e))
