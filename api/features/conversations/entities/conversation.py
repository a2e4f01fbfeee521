"""Conversation and message entities."""
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from api.shared.entities.base import BaseEntity


class Language(str, Enum):
    """Supported conversation languages."""

    EN = "en"
    ZH = "zh"


class Conversation(BaseEntity):
    """A chat session between one (possibly anonymous) user and the advisor."""

    user_id: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    title: Mapped[Optional[str]] = mapped_column(String(200))
    summary: Mapped[Optional[str]] = mapped_column(Text)
    language: Mapped[str] = mapped_column(
        String(5), nullable=False, default=Language.ZH.value
    )
    session_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    messages: Mapped[List["Message"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Message.created_at",
    )


class Message(BaseEntity):
    """Append-only entry in a conversation log."""

    __table_args__ = (Index("ix_message_conversation_created", "conversation_id", "created_at"),)

    conversation_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("conversation.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    message_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSONB)

    conversation: Mapped[Conversation] = relationship(back_populates="messages")
