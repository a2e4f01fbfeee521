"""Controller for the Users feature."""
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.users.dtos import CreateUserRequest, UserDTO, UserListResponse
from api.features.users.service import UserService


class UserController:
    def __init__(self, user_service: UserService):
        self.user_service = user_service

    async def list_users(
        self,
        *,
        search: Optional[str],
        language: Optional[str],
        offset: int,
        limit: int,
        db_session: AsyncSession,
    ) -> UserListResponse:
        items, total = await self.user_service.list_users(
            search=search, language=language, offset=offset, limit=limit, db_session=db_session
        )
        return UserListResponse(
            items=items, total=total, offset=offset, limit=limit, has_more=total > offset + limit
        )

    async def create_user(
        self, request: CreateUserRequest, *, db_session: AsyncSession
    ) -> Tuple[UserDTO, bool]:
        return await self.user_service.create_user(request, db_session=db_session)
