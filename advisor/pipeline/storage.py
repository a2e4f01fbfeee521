"""Storage collaborator used by the conversation orchestrator.

``ChatStorage`` is the contract; ``SqlChatStorage`` implements it on one
``AsyncSession`` through the feature repositories. Every write commits on its
own so that, for example, the user's message is durable before the model is
called. Driver errors are rolled back and surfaced as ``StorageError``; a
missing conversation is ``None``, never an error.
"""
from __future__ import annotations

from typing import Optional, Protocol, Sequence

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from advisor.pipeline.metadata import MessageMetadata, dump_metadata
from advisor.pipeline.models import (
    BilingualText,
    CarRecord,
    ConversationRecord,
    Language,
    MessageRecord,
    NextStepRecord,
    RecommendationRecord,
    Role,
)
from api.features.cars.repositories.car_repository import CarRepository
from api.features.conversations.entities.conversation import Conversation, Message
from api.features.conversations.entities.recommendation import NextStep, Recommendation
from api.features.conversations.repositories.conversation_repository import (
    ConversationRepository,
    MessageRepository,
)
from api.features.conversations.repositories.recommendation_repository import (
    NextStepRepository,
    RecommendationRepository,
)
from api.shared.exceptions import StorageError
from api.shared.utils import is_valid_uuid

logger = structlog.get_logger("advisor")


class ChatStorage(Protocol):
    async def find_conversation(self, conversation_id: str) -> Optional[ConversationRecord]:
        ...

    async def create_conversation(
        self,
        *,
        title: Optional[str],
        language: Language,
        session_id: str,
        user_id: Optional[str] = None,
    ) -> ConversationRecord:
        ...

    async def append_message(
        self,
        conversation_id: str,
        role: Role,
        content: str,
        metadata: Optional[MessageMetadata] = None,
    ) -> MessageRecord:
        ...

    async def list_recent_messages(self, conversation_id: str, limit: int) -> list[MessageRecord]:
        ...

    async def touch_conversation(self, conversation_id: str, *, summary: Optional[str] = None) -> None:
        ...

    async def insert_recommendation(
        self,
        *,
        conversation_id: str,
        message_id: str,
        car: CarRecord,
        match_score: int,
        reasoning: BilingualText,
    ) -> RecommendationRecord:
        ...

    async def insert_next_step(
        self,
        *,
        conversation_id: str,
        message_id: str,
        title: BilingualText,
        description: BilingualText,
        priority: str,
        action_type: str,
    ) -> NextStepRecord:
        ...

    async def search_cars(self, keywords: Sequence[str], limit: int) -> list[CarRecord]:
        ...


class SqlChatStorage:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.conversations = ConversationRepository(session)
        self.messages = MessageRepository(session)
        self.recommendations = RecommendationRepository(session)
        self.next_steps = NextStepRepository(session)
        self.cars = CarRepository(session)

    async def _fail(self, operation: str, error: SQLAlchemyError) -> StorageError:
        try:
            await self.session.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error("storage.rollback_failed", operation=operation, error=str(rollback_error))
        logger.error("storage.failed", operation=operation, error=str(error))
        return StorageError(f"{operation} failed", details={"operation": operation, "error": str(error)})

    async def find_conversation(self, conversation_id: str) -> Optional[ConversationRecord]:
        if not is_valid_uuid(conversation_id):
            return None
        try:
            entity = await self.conversations.get_by_id(conversation_id)
        except SQLAlchemyError as e:
            raise await self._fail("find_conversation", e) from e
        return ConversationRecord.model_validate(entity) if entity else None

    async def create_conversation(
        self,
        *,
        title: Optional[str],
        language: Language,
        session_id: str,
        user_id: Optional[str] = None,
    ) -> ConversationRecord:
        try:
            entity = await self.conversations.create(
                Conversation(title=title, language=language, session_id=session_id, user_id=user_id)
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("create_conversation", e) from e
        return ConversationRecord.model_validate(entity)

    async def append_message(
        self,
        conversation_id: str,
        role: Role,
        content: str,
        metadata: Optional[MessageMetadata] = None,
    ) -> MessageRecord:
        try:
            entity = await self.messages.create(
                Message(
                    conversation_id=conversation_id,
                    role=role,
                    content=content,
                    message_metadata=dump_metadata(metadata),
                )
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("append_message", e) from e
        return MessageRecord.from_entity(entity)

    async def list_recent_messages(self, conversation_id: str, limit: int) -> list[MessageRecord]:
        try:
            entities = await self.messages.list_recent(conversation_id, limit=limit)
        except SQLAlchemyError as e:
            raise await self._fail("list_recent_messages", e) from e
        return [MessageRecord.from_entity(entity) for entity in entities]

    async def touch_conversation(self, conversation_id: str, *, summary: Optional[str] = None) -> None:
        try:
            await self.conversations.touch(conversation_id, summary=summary)
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("touch_conversation", e) from e

    async def insert_recommendation(
        self,
        *,
        conversation_id: str,
        message_id: str,
        car: CarRecord,
        match_score: int,
        reasoning: BilingualText,
    ) -> RecommendationRecord:
        try:
            entity = await self.recommendations.create(
                Recommendation(
                    conversation_id=conversation_id,
                    message_id=message_id,
                    car_id=car.id,
                    match_score=match_score,
                    reasoning_en=reasoning.en,
                    reasoning_zh=reasoning.zh,
                )
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("insert_recommendation", e) from e
        return RecommendationRecord(
            id=entity.id,
            conversation_id=conversation_id,
            message_id=message_id,
            car_id=car.id,
            match_score=entity.match_score,
            reasoning=reasoning,
            car=car,
        )

    async def insert_next_step(
        self,
        *,
        conversation_id: str,
        message_id: str,
        title: BilingualText,
        description: BilingualText,
        priority: str,
        action_type: str,
    ) -> NextStepRecord:
        try:
            entity = await self.next_steps.create(
                NextStep(
                    conversation_id=conversation_id,
                    message_id=message_id,
                    title_en=title.en,
                    title_zh=title.zh,
                    description_en=description.en or None,
                    description_zh=description.zh or None,
                    priority=priority,
                    action_type=action_type,
                )
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("insert_next_step", e) from e
        return NextStepRecord(
            id=entity.id,
            conversation_id=conversation_id,
            message_id=message_id,
            title=title,
            description=description,
            priority=priority,
            action_type=action_type,
        )

    async def search_cars(self, keywords: Sequence[str], limit: int) -> list[CarRecord]:
        try:
            entities = await self.cars.search_keywords(keywords, limit=limit)
        except SQLAlchemyError as e:
            raise await self._fail("search_cars", e) from e
        return [CarRecord.from_entity(entity) for entity in entities]
