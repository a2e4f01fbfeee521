"""Conversation and message repositories."""
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update

from api.features.conversations.entities.conversation import Conversation, Message
from api.shared.base import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversations with search and recency ordering."""

    model = Conversation

    async def search(
        self,
        *,
        user_id: Optional[str] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Conversation], int]:
        """List conversations, most recently updated first, filtered by owner and title/summary text."""
        stmt = select(Conversation)
        count_stmt = select(func.count(Conversation.id))
        if user_id:
            stmt = stmt.where(Conversation.user_id == user_id)
            count_stmt = count_stmt.where(Conversation.user_id == user_id)
        if search:
            pattern = f"%{search}%"
            clause = or_(Conversation.title.ilike(pattern), Conversation.summary.ilike(pattern))
            stmt = stmt.where(clause)
            count_stmt = count_stmt.where(clause)
        return await self._paginate(
            stmt, count_stmt, offset=offset, limit=limit, order_by="-updated_at"
        )

    async def touch(self, conversation_id: str, *, summary: Optional[str] = None) -> None:
        """Bump updated_at, optionally replacing the summary."""
        values: dict = {"updated_at": func.now()}
        if summary is not None:
            values["summary"] = summary
        await self.session.execute(
            update(Conversation).where(Conversation.id == conversation_id).values(**values)
        )
        await self.session.flush()


class MessageRepository(BaseRepository[Message]):
    """Repository for the append-only message log."""

    model = Message

    async def list_recent(self, conversation_id: str, *, limit: int) -> List[Message]:
        """Most recent ``limit`` messages, returned in chronological order."""
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(reversed(result.scalars().all()))

    async def list_for_conversation(
        self, conversation_id: str, *, offset: int = 0, limit: int = 50
    ) -> Tuple[List[Message], int]:
        """Page through a conversation log in chronological order."""
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        total = await self.count(conversation_id=conversation_id)
        return list(result.scalars().all()), total
