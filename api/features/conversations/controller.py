"""Controller for the Conversations feature."""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from advisor.pipeline.models import MessageRecord
from advisor.pipeline.summarizer import ConversationSummarizer
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
from api.features.conversations.service import ConversationService

logger = logging.getLogger("advisor.conversations")

SUMMARY_MESSAGE_LIMIT = 50


class ConversationController:
    """Controller handling conversation CRUD and derived-record queries."""

    def __init__(
        self,
        conversation_service: ConversationService,
        summarizer: ConversationSummarizer,
    ):
        self.conversation_service = conversation_service
        self.summarizer = summarizer

    async def create_conversation(
        self, request: CreateConversationRequest, *, db_session: AsyncSession
    ) -> ConversationDTO:
        return await self.conversation_service.create_conversation(request, db_session=db_session)

    async def get_conversation(self, conversation_id: str, *, db_session: AsyncSession) -> ConversationDTO:
        return await self.conversation_service.get_conversation(conversation_id, db_session=db_session)

    async def list_conversations(
        self,
        *,
        user_id: Optional[str],
        search: Optional[str],
        offset: int,
        limit: int,
        db_session: AsyncSession,
    ) -> ConversationListResponse:
        items, total = await self.conversation_service.list_conversations(
            user_id=user_id, search=search, offset=offset, limit=limit, db_session=db_session
        )
        return ConversationListResponse(items=items, total=total, offset=offset, limit=limit)

    async def update_conversation(
        self,
        conversation_id: str,
        request: UpdateConversationRequest,
        *,
        db_session: AsyncSession,
    ) -> ConversationDTO:
        return await self.conversation_service.update_conversation(
            conversation_id, request, db_session=db_session
        )

    async def delete_conversation(self, conversation_id: str, *, db_session: AsyncSession) -> None:
        await self.conversation_service.delete_conversation(conversation_id, db_session=db_session)

    async def get_messages(
        self, conversation_id: str, *, offset: int, limit: int, db_session: AsyncSession
    ) -> MessagesResponse:
        items, total = await self.conversation_service.list_messages(
            conversation_id, offset=offset, limit=limit, db_session=db_session
        )
        return MessagesResponse(items=items, total=total)

    async def get_recommendations(
        self,
        conversation_id: str,
        *,
        min_score: Optional[int],
        offset: int,
        limit: int,
        db_session: AsyncSession,
    ) -> RecommendationListResponse:
        items, total = await self.conversation_service.list_recommendations(
            conversation_id,
            min_score=min_score,
            offset=offset,
            limit=limit,
            db_session=db_session,
        )
        return RecommendationListResponse(items=items, total=total)

    async def get_next_steps(self, conversation_id: str, *, db_session: AsyncSession) -> NextStepListResponse:
        items = await self.conversation_service.list_next_steps(conversation_id, db_session=db_session)
        return NextStepListResponse(items=items, total=len(items))

    async def summarize(self, conversation_id: str, *, db_session: AsyncSession) -> SummaryResponse:
        conversation = await self.conversation_service.get_conversation(
            conversation_id, db_session=db_session
        )
        messages = await self.conversation_service.list_recent_messages(
            conversation_id, limit=SUMMARY_MESSAGE_LIMIT, db_session=db_session
        )
        records = [
            MessageRecord(
                id=message.id,
                conversation_id=message.conversation_id,
                role=message.role,
                content=message.content,
                created_at=message.created_at,
            )
            for message in messages
        ]
        summary = await self.summarizer.summarize(records, conversation.language)
        stored = summary.get(conversation.language)
        await self.conversation_service.update_summary(conversation_id, stored, db_session=db_session)
        logger.info(f"Conversation {conversation_id} summarized from its last {len(records)} messages")
        return SummaryResponse(
            conversation_id=conversation_id,
            summary_en=summary.en,
            summary_zh=summary.zh,
            stored=stored,
        )
