"""Conversation orchestrator: one chat turn from inbound message to persisted reply.

A turn moves through::

    RESOLVING_CONVERSATION -> PERSISTING_USER_MESSAGE -> BUILDING_CONTEXT
      -> INVOKING_MODEL -> EXTRACTING_ENTITIES -> PERSISTING_ASSISTANT_MESSAGE -> DONE

with ``FAILED`` reachable from ``INVOKING_MODEL`` only. The user's message is
committed before the model is called, so a model failure never loses it; the
caller then gets a localized apology with ``metadata.error`` set instead of an
exception. Failing to store the user message is fatal. Failing to read the
history, or to store the assistant message, recommendations or next steps,
only degrades the result.

Recommendations and next steps are written strictly after the assistant
message they reference exists.
"""
from __future__ import annotations

import asyncio
from contextlib import aclosing
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import AsyncIterator, List, Optional, Sequence, Tuple, Union
from uuid import uuid4

import structlog
from pydantic import BaseModel

from advisor.extractors.keywords import KeywordExtractor
from advisor.extractors.structured_reply import ParsedReply, ProseGate, parse_structured_reply
from advisor.history.window import DEFAULT_HISTORY_WINDOW, window_messages
from advisor.llm.events import DoneEvent, ErrorEvent, FragmentEvent
from advisor.llm.invoker import ModelInvoker
from advisor.matchers.recommendation_matcher import MAX_RECOMMENDATIONS, RecommendationMatcher
from advisor.pipeline.metadata import (
    ErrorMetadata,
    ModelMetadata,
    StreamMetadata,
    UserContextMetadata,
)
from advisor.pipeline.models import (
    CarRecord,
    ChatContext,
    ConversationRecord,
    Language,
    MessageRecord,
    NextStepRecord,
    RecommendationRecord,
)
from advisor.pipeline.storage import ChatStorage
from advisor.prompts.chat.system_prompt import AssembledPrompt, assemble_prompt
from api.shared.exceptions import ModelError, StorageError, ValidationError
from api.shared.utils import truncate_text, utcnow

logger = structlog.get_logger("advisor")

FALLBACK_TEXT = {
    "en": "Sorry, I can't process your request right now. Please try again later.",
    "zh": "抱歉，我现在无法处理您的请求。请稍后再试。",
}


class TurnState(str, Enum):
    RESOLVING_CONVERSATION = "resolving_conversation"
    PERSISTING_USER_MESSAGE = "persisting_user_message"
    BUILDING_CONTEXT = "building_context"
    INVOKING_MODEL = "invoking_model"
    EXTRACTING_ENTITIES = "extracting_entities"
    PERSISTING_ASSISTANT_MESSAGE = "persisting_assistant_message"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TurnRequest:
    message: str
    conversation_id: Optional[str] = None
    language: Optional[Language] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    context: Optional[ChatContext] = None


class TurnMetadata(BaseModel):
    model_name: Optional[str] = None
    token_estimate: Optional[int] = None
    error: bool = False
    persisted: bool = True
    degraded: bool = False


@dataclass
class TurnResult:
    conversation_id: str
    message_id: str
    text: str
    timestamp: datetime
    metadata: TurnMetadata
    state: TurnState
    recommendations: List[RecommendationRecord] = field(default_factory=list)
    next_steps: List[NextStepRecord] = field(default_factory=list)
    language: Language = "zh"


@dataclass(frozen=True)
class TurnFragment:
    conversation_id: str
    text: str
    timestamp: datetime


@dataclass(frozen=True)
class TurnComplete:
    result: TurnResult


@dataclass(frozen=True)
class TurnFailed:
    result: TurnResult


TurnStreamEvent = Union[TurnFragment, TurnComplete, TurnFailed]


@dataclass
class TurnContext:
    """Mutable per-turn state. Never shared across turns."""

    request: TurnRequest
    state: TurnState = TurnState.RESOLVING_CONVERSATION
    conversation: Optional[ConversationRecord] = None
    user_message: Optional[MessageRecord] = None
    prompt: Optional[AssembledPrompt] = None
    degraded: bool = False

    @property
    def conversation_id(self) -> str:
        if self.conversation is None:
            raise RuntimeError("conversation not resolved yet")
        return self.conversation.id

    @property
    def language(self) -> Language:
        if self.conversation is not None:
            return self.conversation.language
        return self.request.language or "zh"

    def advance(self, state: TurnState) -> None:
        logger.info(
            "turn.state",
            conversation_id=self.conversation.id if self.conversation else None,
            previous=self.state.value,
            state=state.value,
        )
        self.state = state


class ConversationOrchestrator:
    def __init__(
        self,
        storage: ChatStorage,
        invoker: ModelInvoker,
        stream_invoker: Optional[ModelInvoker] = None,
        *,
        extractor: Optional[KeywordExtractor] = None,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        max_recommendations: int = MAX_RECOMMENDATIONS,
        max_next_steps: int = 5,
        title_max_chars: int = 50,
        default_language: Language = "zh",
    ):
        self.storage = storage
        self.invoker = invoker
        self.stream_invoker = stream_invoker or invoker
        self.extractor = extractor or KeywordExtractor()
        self.matcher = RecommendationMatcher(storage, limit=max_recommendations)
        self.history_window = history_window
        self.max_next_steps = max_next_steps
        self.title_max_chars = title_max_chars
        self.default_language = default_language

    async def run_turn(self, request: TurnRequest) -> TurnResult:
        """Process one turn with a single-shot model call."""
        turn = await self._prepare(request)
        turn.advance(TurnState.INVOKING_MODEL)
        try:
            raw_text = await self.invoker.generate(turn.prompt, turn.language)
        except ModelError as e:
            return await self._fail(turn, e)
        return await self._complete(turn, raw_text, model_name=self.invoker.model_name)

    async def stream_turn(
        self,
        request: TurnRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[TurnStreamEvent]:
        """Process one turn, forwarding model fragments as they arrive.

        Ends with exactly one ``TurnComplete`` or ``TurnFailed``, unless the
        turn is cancelled (``cancel_event`` set, or the generator closed or
        cancelled by the consumer), in which case no assistant text is stored.

        Only prose is forwarded: a structured block is withheld, and the
        fragments joined together equal the text of the result.
        """
        turn = await self._prepare(request)
        turn.advance(TurnState.INVOKING_MODEL)
        gate = ProseGate()
        streamed: List[str] = []

        def cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        try:
            async with aclosing(
                self.stream_invoker.generate_stream(turn.prompt, turn.language)
            ) as events:
                async for event in events:
                    if cancelled():
                        logger.info("turn.stream_cancelled", conversation_id=turn.conversation_id)
                        return
                    if isinstance(event, FragmentEvent):
                        visible = gate.feed(event.text)
                        if not visible:
                            continue
                        streamed.append(visible)
                        yield TurnFragment(turn.conversation_id, visible, utcnow())
                        if cancelled():
                            logger.info("turn.stream_cancelled", conversation_id=turn.conversation_id)
                            return
                    elif isinstance(event, DoneEvent):
                        result = await self._complete(
                            turn,
                            event.full_text,
                            model_name=self.stream_invoker.model_name,
                            fragment_count=event.fragment_count,
                        )
                        remainder = self._unsent(turn, result.text, "".join(streamed))
                        if remainder:
                            yield TurnFragment(turn.conversation_id, remainder, utcnow())
                        yield TurnComplete(result)
                        return
                    elif isinstance(event, ErrorEvent):
                        yield TurnFailed(await self._fail(turn, event.error))
                        return
        except (asyncio.CancelledError, GeneratorExit):
            logger.info(
                "turn.stream_aborted",
                conversation_id=turn.conversation_id,
                state=turn.state.value,
            )
            raise

        # A stream that ends without a terminal event is treated as a model failure.
        yield TurnFailed(
            await self._fail(
                turn, ModelError(self.stream_invoker.model_name, "stream ended without completion")
            )
        )

    async def _prepare(self, request: TurnRequest) -> TurnContext:
        message = (request.message or "").strip()
        if not message:
            raise ValidationError("Message must not be empty", details={"field": "message"})
        request.message = message

        turn = TurnContext(request=request)
        turn.conversation = await self._resolve_conversation(request)

        turn.advance(TurnState.PERSISTING_USER_MESSAGE)
        turn.user_message = await self.storage.append_message(
            turn.conversation_id,
            "user",
            message,
            UserContextMetadata(context=request.context),
        )

        turn.advance(TurnState.BUILDING_CONTEXT)
        turn.prompt = await self._build_prompt(turn)
        return turn

    async def _resolve_conversation(self, request: TurnRequest) -> ConversationRecord:
        if request.conversation_id:
            conversation = await self.storage.find_conversation(request.conversation_id)
            if conversation is not None:
                return conversation
            # Unknown ids fall through to a fresh conversation.
            logger.warning(
                "turn.conversation_not_found",
                conversation_id=request.conversation_id,
            )

        conversation = await self.storage.create_conversation(
            title=truncate_text(request.message, self.title_max_chars),
            language=request.language or self.default_language,
            session_id=request.session_id or str(uuid4()),
            user_id=request.user_id,
        )
        logger.info("turn.conversation_created", conversation_id=conversation.id)
        return conversation

    async def _build_prompt(self, turn: TurnContext) -> AssembledPrompt:
        current = turn.user_message
        try:
            # One extra row so the window still holds N prior messages besides the current one.
            recent = await self.storage.list_recent_messages(
                turn.conversation_id, self.history_window + 1
            )
        except StorageError as e:
            logger.error(
                "turn.history_read_failed",
                conversation_id=turn.conversation_id,
                error=e.message,
            )
            turn.degraded = True
            recent = []
        prior = [message for message in recent if message.id != current.id]
        history = [*window_messages(prior, self.history_window), current]

        context = turn.request.context or ChatContext()
        return assemble_prompt(
            language=turn.language,
            history=history,
            preferences=context.user_preferences,
            current_car=context.current_car,
        )

    async def _extract(self, raw_text: str) -> Tuple[ParsedReply, List[str], List[CarRecord]]:
        try:
            parsed = parse_structured_reply(raw_text)
            keywords = self.extractor.extract(parsed.display_text or raw_text)
            for named in parsed.recommendations:
                for term in (named.car_make, named.car_model):
                    if term and term not in keywords:
                        keywords.append(term)
            cars = await self.matcher.match(keywords)
        except Exception:
            logger.exception("turn.extraction_failed")
            return ParsedReply(display_text=raw_text.strip()), [], []
        return parsed, keywords, cars

    async def _complete(
        self,
        turn: TurnContext,
        raw_text: str,
        *,
        model_name: str,
        fragment_count: Optional[int] = None,
    ) -> TurnResult:
        turn.advance(TurnState.EXTRACTING_ENTITIES)
        parsed, keywords, cars = await self._extract(raw_text)
        language = turn.language
        text = (
            parsed.display_text
            or (parsed.summary.get(language) if parsed.summary else "")
            or raw_text.strip()
        )

        turn.advance(TurnState.PERSISTING_ASSISTANT_MESSAGE)
        metadata = TurnMetadata(
            model_name=model_name, token_estimate=len(text), degraded=turn.degraded
        )
        if fragment_count is None:
            stored_metadata = ModelMetadata(model_name=model_name, token_estimate=len(text))
        else:
            stored_metadata = StreamMetadata(
                model_name=model_name,
                token_estimate=len(text),
                fragment_count=fragment_count,
            )

        recommendations: List[RecommendationRecord] = []
        next_steps: List[NextStepRecord] = []
        try:
            assistant = await self.storage.append_message(
                turn.conversation_id, "assistant", text, stored_metadata
            )
        except StorageError as e:
            logger.error(
                "turn.assistant_persist_failed",
                conversation_id=turn.conversation_id,
                error=e.message,
            )
            metadata.persisted = False
            message_id, timestamp = str(uuid4()), utcnow()
        else:
            message_id, timestamp = assistant.id, assistant.created_at
            recommendations = await self._persist_recommendations(
                turn, message_id, cars, keywords, parsed, metadata
            )
            next_steps = await self._persist_next_steps(turn, message_id, parsed, metadata)

        summary = parsed.summary.get(language) if parsed.summary else None
        await self._touch(turn, metadata, summary=summary)

        turn.advance(TurnState.DONE)
        logger.info(
            "turn.done",
            conversation_id=turn.conversation_id,
            message_id=message_id,
            recommendations=len(recommendations),
            next_steps=len(next_steps),
            degraded=metadata.degraded,
        )
        return TurnResult(
            conversation_id=turn.conversation_id,
            message_id=message_id,
            text=text,
            timestamp=timestamp,
            metadata=metadata,
            state=turn.state,
            recommendations=recommendations,
            next_steps=next_steps,
            language=language,
        )

    @staticmethod
    def _unsent(turn: TurnContext, text: str, streamed: str) -> str:
        """Final text not yet covered by the forwarded fragments."""
        if text.startswith(streamed):
            return text[len(streamed):]
        logger.warning(
            "turn.stream_diverged",
            conversation_id=turn.conversation_id,
            streamed=len(streamed),
            final=len(text),
        )
        return ""

    async def _persist_recommendations(
        self,
        turn: TurnContext,
        message_id: str,
        cars: Sequence[CarRecord],
        keywords: Sequence[str],
        parsed: ParsedReply,
        metadata: TurnMetadata,
    ) -> List[RecommendationRecord]:
        stored: List[RecommendationRecord] = []
        for car in cars:
            try:
                stored.append(
                    await self.storage.insert_recommendation(
                        conversation_id=turn.conversation_id,
                        message_id=message_id,
                        car=car,
                        match_score=self.matcher.score(car, keywords, parsed.recommendations),
                        reasoning=self.matcher.reasoning(car, keywords, parsed.recommendations),
                    )
                )
            except StorageError as e:
                logger.warning("turn.recommendation_persist_failed", car_id=car.id, error=e.message)
                metadata.degraded = True
        return stored

    async def _persist_next_steps(
        self,
        turn: TurnContext,
        message_id: str,
        parsed: ParsedReply,
        metadata: TurnMetadata,
    ) -> List[NextStepRecord]:
        stored: List[NextStepRecord] = []
        for step in parsed.next_steps[: self.max_next_steps]:
            try:
                stored.append(
                    await self.storage.insert_next_step(
                        conversation_id=turn.conversation_id,
                        message_id=message_id,
                        title=step.title,
                        description=step.description,
                        priority=step.priority,
                        action_type=step.action_type,
                    )
                )
            except StorageError as e:
                logger.warning("turn.next_step_persist_failed", error=e.message)
                metadata.degraded = True
        return stored

    async def _touch(
        self, turn: TurnContext, metadata: TurnMetadata, *, summary: Optional[str] = None
    ) -> None:
        try:
            await self.storage.touch_conversation(turn.conversation_id, summary=summary)
        except StorageError as e:
            logger.warning("turn.touch_failed", conversation_id=turn.conversation_id, error=e.message)
            metadata.degraded = True

    async def _fail(self, turn: TurnContext, error: ModelError) -> TurnResult:
        turn.advance(TurnState.FAILED)
        logger.warning(
            "turn.model_failed",
            conversation_id=turn.conversation_id,
            model=error.model,
            reason=error.reason,
        )
        language = turn.language
        text = FALLBACK_TEXT.get(language, FALLBACK_TEXT["en"])
        metadata = TurnMetadata(model_name=error.model, error=True, degraded=turn.degraded)
        try:
            message = await self.storage.append_message(
                turn.conversation_id,
                "assistant",
                text,
                ErrorMetadata(model_name=error.model, reason=error.reason),
            )
        except StorageError as e:
            logger.error("turn.fallback_persist_failed", error=e.message)
            metadata.persisted = False
            message_id, timestamp = str(uuid4()), utcnow()
        else:
            message_id, timestamp = message.id, message.created_at
        await self._touch(turn, metadata)
        return TurnResult(
            conversation_id=turn.conversation_id,
            message_id=message_id,
            text=text,
            timestamp=timestamp,
            metadata=metadata,
            state=turn.state,
            language=language,
        )
