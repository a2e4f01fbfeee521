"""Controller for the Chat feature."""
import asyncio
import json
import logging
from typing import Any, AsyncGenerator, AsyncIterator, Awaitable, Callable, Dict

import anyio
from sqlalchemy.ext.asyncio import AsyncSession

from advisor.pipeline.orchestrator import (
    ConversationOrchestrator,
    TurnComplete,
    TurnFailed,
    TurnFragment,
    TurnStreamEvent,
)
from advisor.pipeline.storage import SqlChatStorage
from api.features.chat.dtos import (
    ChatConversationDTO,
    ChatHistoryResponse,
    ChatMessageDTO,
    ChatRequest,
    ChatResponse,
)
from api.features.chat.exceptions import ChatValidationError
from api.features.conversations.service import ConversationService
from api.shared.dtos import PaginationInfo
from api.shared.utils import is_valid_uuid, isoformat

logger = logging.getLogger("advisor.chat")

STREAM_ERROR_TEXT = {
    "en": "An error occurred while generating the reply.",
    "zh": "生成回复时发生错误",
}

OrchestratorFactory = Callable[..., ConversationOrchestrator]
DisconnectCheck = Callable[[], Awaitable[bool]]


def sse_event(payload: Dict[str, Any]) -> str:
    """One Server-Sent Events frame."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def render_event(event: TurnStreamEvent) -> Dict[str, Any]:
    if isinstance(event, TurnFragment):
        return {
            "type": "content",
            "content": event.text,
            "conversationId": event.conversation_id,
            "timestamp": isoformat(event.timestamp),
        }
    response = ChatResponse.from_result(event.result).model_dump(mode="json", by_alias=True)
    if isinstance(event, TurnComplete):
        return {
            "type": "complete",
            "messageId": response["messageId"],
            "conversationId": response["conversationId"],
            "fullContent": response["message"],
            "recommendations": response["recommendations"],
            "nextSteps": response["nextSteps"],
            "metadata": response["metadata"],
        }
    language = event.result.language
    return {
        "type": "error",
        "error": STREAM_ERROR_TEXT.get(language, STREAM_ERROR_TEXT["en"]),
        "content": response["message"],
        "conversationId": response["conversationId"],
        "messageId": response["messageId"],
    }


async def _release(events: AsyncGenerator[TurnStreamEvent, None], db_session: AsyncSession) -> None:
    # Shielded: the response task may already be cancelled by a disconnect.
    with anyio.CancelScope(shield=True):
        await events.aclose()
        await db_session.close()


class ChatController:
    """Runs chat turns against a per-request orchestrator and serves chat history."""

    def __init__(
        self,
        orchestrator_factory: OrchestratorFactory,
        conversation_service: ConversationService,
    ):
        self.orchestrator_factory = orchestrator_factory
        self.conversation_service = conversation_service

    def _orchestrator(self, db_session: AsyncSession) -> ConversationOrchestrator:
        return self.orchestrator_factory(storage=SqlChatStorage(db_session))

    async def send_message(self, request: ChatRequest, *, db_session: AsyncSession) -> ChatResponse:
        result = await self._orchestrator(db_session).run_turn(request.to_turn_request())
        logger.info(
            f"Chat turn finished: conversation={result.conversation_id} "
            f"state={result.state.value} error={result.metadata.error}"
        )
        return ChatResponse.from_result(result)

    async def open_stream(
        self,
        request: ChatRequest,
        *,
        db_session: AsyncSession,
        is_disconnected: DisconnectCheck,
    ) -> AsyncIterator[str]:
        """Start a streamed turn and return its SSE frames.

        The first event is pulled before returning, so validation and
        user-message storage failures raise here rather than mid-stream.
        The session is closed once the stream finishes.
        """
        cancel_event = asyncio.Event()
        events = self._orchestrator(db_session).stream_turn(
            request.to_turn_request(), cancel_event
        )
        try:
            first = await anext(events)
        except BaseException:
            await _release(events, db_session)
            raise

        async def frames() -> AsyncIterator[str]:
            event = first
            try:
                while True:
                    yield sse_event(render_event(event))
                    if await is_disconnected():
                        logger.info("Chat stream client disconnected")
                        cancel_event.set()
                    try:
                        event = await anext(events)
                    except StopAsyncIteration:
                        return
            finally:
                await _release(events, db_session)

        return frames()

    async def get_history(
        self,
        conversation_id: str,
        *,
        limit: int,
        offset: int,
        db_session: AsyncSession,
    ) -> ChatHistoryResponse:
        if not is_valid_uuid(conversation_id):
            raise ChatValidationError(
                "A valid conversationId is required",
                details={"field": "conversationId", "value": conversation_id},
            )
        conversation = await self.conversation_service.get_conversation(
            conversation_id, db_session=db_session
        )
        messages, total = await self.conversation_service.list_messages(
            conversation_id, offset=offset, limit=limit, db_session=db_session
        )
        return ChatHistoryResponse(
            conversation=ChatConversationDTO.from_conversation(conversation),
            messages=[ChatMessageDTO.from_message(message) for message in messages],
            pagination=PaginationInfo(limit=limit, offset=offset, total=total),
        )
