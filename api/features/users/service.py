"""Service layer for the Users feature."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.users.dtos import CreateUserRequest, UserDTO
from api.features.users.entities.user import User
from api.features.users.repositories.user_repository import UserRepository

logger = logging.getLogger("advisor.users.service")


class UserService:
    async def list_users(
        self,
        *,
        search: Optional[str],
        language: Optional[str],
        offset: int,
        limit: int,
        db_session: AsyncSession,
    ) -> Tuple[List[UserDTO], int]:
        entities, total = await UserRepository(db_session).search(
            search=search, language=language, offset=offset, limit=limit
        )
        return [UserDTO.from_entity(entity) for entity in entities], total

    async def create_user(
        self, request: CreateUserRequest, *, db_session: AsyncSession
    ) -> Tuple[UserDTO, bool]:
        """Create a user for the session, or return the one it already has.

        The flag is True only when a new user was stored.
        """
        repository = UserRepository(db_session)
        existing = await repository.get_by_session_id(request.session_id)
        if existing is not None:
            logger.info(f"User already registered for session: {existing.id}")
            return UserDTO.from_entity(existing), False

        entity = await repository.create(
            User(
                email=request.email,
                name=request.name,
                language=request.language,
                session_id=request.session_id,
            )
        )
        await db_session.commit()
        logger.info(f"User created: {entity.id}")
        return UserDTO.from_entity(entity), True
