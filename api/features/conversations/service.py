"""Service layer for the Conversations feature."""
import logging
from typing import List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversations.dtos import (
    ConversationDTO,
    CreateConversationRequest,
    MessageDTO,
    NextStepDTO,
    RecommendationDTO,
    UpdateConversationRequest,
)
from api.features.conversations.entities.conversation import Conversation
from api.features.conversations.exceptions import ConversationNotFoundError
from api.features.conversations.repositories.conversation_repository import (
    ConversationRepository,
    MessageRepository,
)
from api.features.conversations.repositories.recommendation_repository import (
    NextStepRepository,
    RecommendationRepository,
)
from api.features.recommendations.service import with_car_names
from api.shared.utils import is_valid_uuid, utcnow

logger = logging.getLogger("advisor.conversations.service")


class ConversationService:
    """Conversation CRUD and read access to a conversation's derived records."""

    async def create_conversation(
        self, request: CreateConversationRequest, *, db_session: AsyncSession
    ) -> ConversationDTO:
        repository = ConversationRepository(db_session)
        entity = await repository.create(
            Conversation(
                title=request.title,
                summary=request.summary,
                language=request.language,
                user_id=request.user_id,
                session_id=request.session_id or str(uuid4()),
            )
        )
        await db_session.commit()
        logger.info(f"Conversation created: {entity.id}")
        return ConversationDTO.from_entity(entity)

    async def get_conversation(
        self, conversation_id: str, *, db_session: AsyncSession
    ) -> ConversationDTO:
        entity = await self._require(conversation_id, db_session)
        return ConversationDTO.from_entity(entity)

    async def list_conversations(
        self,
        *,
        user_id: Optional[str],
        search: Optional[str],
        offset: int,
        limit: int,
        db_session: AsyncSession,
    ) -> Tuple[List[ConversationDTO], int]:
        repository = ConversationRepository(db_session)
        entities, total = await repository.search(
            user_id=user_id, search=search, offset=offset, limit=limit
        )
        return [ConversationDTO.from_entity(entity) for entity in entities], total

    async def delete_conversation(self, conversation_id: str, *, db_session: AsyncSession) -> None:
        await self._require(conversation_id, db_session)
        await ConversationRepository(db_session).delete(conversation_id)
        await db_session.commit()
        logger.info(f"Conversation deleted: {conversation_id}")

    async def list_messages(
        self,
        conversation_id: str,
        *,
        offset: int,
        limit: int,
        db_session: AsyncSession,
    ) -> Tuple[List[MessageDTO], int]:
        await self._require(conversation_id, db_session)
        entities, total = await MessageRepository(db_session).list_for_conversation(
            conversation_id, offset=offset, limit=limit
        )
        return [MessageDTO.from_entity(entity) for entity in entities], total

    async def list_recent_messages(
        self, conversation_id: str, *, limit: int, db_session: AsyncSession
    ) -> List[MessageDTO]:
        """Last ``limit`` messages, in chronological order."""
        await self._require(conversation_id, db_session)
        entities = await MessageRepository(db_session).list_recent(conversation_id, limit=limit)
        return [MessageDTO.from_entity(entity) for entity in entities]

    async def update_conversation(
        self,
        conversation_id: str,
        request: UpdateConversationRequest,
        *,
        db_session: AsyncSession,
    ) -> ConversationDTO:
        entity = await self._require(conversation_id, db_session)
        values = request.model_dump(exclude_unset=True)
        if values.get("language") is None:
            values.pop("language", None)
        for field_name, value in values.items():
            setattr(entity, field_name, value)
        entity.updated_at = utcnow()
        await db_session.flush()
        await db_session.commit()
        logger.info(f"Conversation updated: {conversation_id}")
        return ConversationDTO.from_entity(entity)

    async def list_recommendations(
        self,
        conversation_id: str,
        *,
        min_score: Optional[int],
        offset: int,
        limit: int,
        db_session: AsyncSession,
    ) -> Tuple[List[RecommendationDTO], int]:
        await self._require(conversation_id, db_session)
        entities, total = await RecommendationRepository(db_session).list_filtered(
            conversation_id=conversation_id, min_score=min_score, offset=offset, limit=limit
        )
        return await with_car_names(entities, db_session), total

    async def list_next_steps(
        self, conversation_id: str, *, db_session: AsyncSession
    ) -> List[NextStepDTO]:
        await self._require(conversation_id, db_session)
        entities = await NextStepRepository(db_session).list_for_conversation(conversation_id)
        return [NextStepDTO.from_entity(entity) for entity in entities]

    async def update_summary(
        self, conversation_id: str, summary: str, *, db_session: AsyncSession
    ) -> None:
        await ConversationRepository(db_session).touch(conversation_id, summary=summary)
        await db_session.commit()

    async def _require(self, conversation_id: str, db_session: AsyncSession) -> Conversation:
        if not is_valid_uuid(conversation_id):
            raise ConversationNotFoundError(conversation_id)
        entity = await ConversationRepository(db_session).get_by_id(conversation_id)
        if entity is None:
            raise ConversationNotFoundError(conversation_id)
        return entity
