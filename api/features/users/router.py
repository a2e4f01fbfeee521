"""Router for the Users feature."""
import logging
from typing import Literal, Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer as DependencyContainer
from api.features.users.controller import UserController
from api.features.users.dtos import CreateUserRequest, UserDTO, UserListResponse
from api.shared.db import get_db_session
from api.shared.response import ResponseModel

router = APIRouter()

logger = logging.getLogger("advisor.users")


@router.get("/", response_model=ResponseModel[UserListResponse])
@inject
async def list_users(
    search: Optional[str] = Query(None, max_length=200, description="Match name or email"),
    language: Optional[Literal["en", "zh"]] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    controller: UserController = Depends(Provide[DependencyContainer.controllers.user_controller]),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        result = await controller.list_users(
            search=search, language=language, offset=offset, limit=limit, db_session=db_session
        )
        return ResponseModel.success(data=result, message="Users listed")
    except Exception as e:
        logger.exception("Failed to list users")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/", response_model=ResponseModel[UserDTO], status_code=201)
@inject
async def create_user(
    request: CreateUserRequest,
    response: Response,
    controller: UserController = Depends(Provide[DependencyContainer.controllers.user_controller]),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Register a visitor. A session that already has a user gets it back with 200."""
    try:
        user, created = await controller.create_user(request, db_session=db_session)
    except Exception as e:
        logger.exception("Failed to create user")
        raise HTTPException(status_code=500, detail=str(e))
    if not created:
        response.status_code = 200
        return ResponseModel.success(data=user, message="User already exists")
    return ResponseModel.success(data=user, message="User created")
