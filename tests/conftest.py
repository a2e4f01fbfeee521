"""Shared fixtures: in-memory chat storage and scripted model invokers."""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

import pytest

from advisor.llm.events import StreamEvent
from advisor.pipeline.metadata import MessageMetadata, dump_metadata
from advisor.pipeline.models import (
    BilingualText,
    CarRecord,
    ConversationRecord,
    MessageRecord,
    NextStepRecord,
    RecommendationRecord,
)
from advisor.pipeline.orchestrator import ConversationOrchestrator
from api.shared.exceptions import StorageError

_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeChatStorage:
    """ChatStorage kept in dicts and lists.

    ``fail_on`` names operations that raise ``StorageError``; ``fail_roles``
    makes ``append_message`` fail for specific roles only. Every call is
    recorded in ``calls`` so tests can assert on write order.
    """

    def __init__(self, cars: Sequence[CarRecord] = ()):
        self.conversations: Dict[str, ConversationRecord] = {}
        self.messages: List[MessageRecord] = []
        self.recommendations: List[RecommendationRecord] = []
        self.next_steps: List[NextStepRecord] = []
        self.summaries: Dict[str, Optional[str]] = {}
        self.cars = list(cars)
        self.calls: List[str] = []
        self.fail_on: set = set()
        self.fail_roles: set = set()
        self._tick = 0

    def _now(self) -> datetime:
        self._tick += 1
        return _EPOCH + timedelta(seconds=self._tick)

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise StorageError(f"{operation} failed", details={"operation": operation})

    def message_ids(self) -> set:
        return {message.id for message in self.messages}

    def messages_for(self, conversation_id: str) -> List[MessageRecord]:
        return [message for message in self.messages if message.conversation_id == conversation_id]

    async def find_conversation(self, conversation_id: str) -> Optional[ConversationRecord]:
        self._enter("find_conversation")
        return self.conversations.get(conversation_id)

    async def create_conversation(self, *, title, language, session_id, user_id=None) -> ConversationRecord:
        self._enter("create_conversation")
        now = self._now()
        record = ConversationRecord(
            id=str(uuid4()),
            title=title,
            language=language,
            session_id=session_id,
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        self.conversations[record.id] = record
        return record

    async def append_message(
        self, conversation_id: str, role: str, content: str, metadata: Optional[MessageMetadata] = None
    ) -> MessageRecord:
        self._enter("append_message")
        if role in self.fail_roles:
            raise StorageError("append_message failed", details={"role": role})
        record = MessageRecord(
            id=str(uuid4()),
            conversation_id=conversation_id,
            role=role,
            content=content,
            metadata=dump_metadata(metadata),
            created_at=self._now(),
        )
        self.messages.append(record)
        return record

    async def list_recent_messages(self, conversation_id: str, limit: int) -> List[MessageRecord]:
        self._enter("list_recent_messages")
        return self.messages_for(conversation_id)[-limit:] if limit else []

    async def touch_conversation(self, conversation_id: str, *, summary: Optional[str] = None) -> None:
        self._enter("touch_conversation")
        self.summaries[conversation_id] = summary

    async def insert_recommendation(
        self, *, conversation_id, message_id, car: CarRecord, match_score: int, reasoning: BilingualText
    ) -> RecommendationRecord:
        self._enter("insert_recommendation")
        assert message_id in self.message_ids(), "recommendation references an unknown message"
        record = RecommendationRecord(
            id=str(uuid4()),
            conversation_id=conversation_id,
            message_id=message_id,
            car_id=car.id,
            match_score=match_score,
            reasoning=reasoning,
            car=car,
        )
        self.recommendations.append(record)
        return record

    async def insert_next_step(
        self, *, conversation_id, message_id, title, description, priority, action_type
    ) -> NextStepRecord:
        self._enter("insert_next_step")
        assert message_id in self.message_ids(), "next step references an unknown message"
        record = NextStepRecord(
            id=str(uuid4()),
            conversation_id=conversation_id,
            message_id=message_id,
            title=title,
            description=description,
            priority=priority,
            action_type=action_type,
        )
        self.next_steps.append(record)
        return record

    async def search_cars(self, keywords: Sequence[str], limit: int) -> List[CarRecord]:
        self._enter("search_cars")
        terms = [keyword.casefold() for keyword in keywords]
        hits = [
            car
            for car in self.cars
            if any(term in f"{car.make} {car.model} {car.category}".casefold() for term in terms)
        ]
        return hits[:limit]


class ScriptedInvoker:
    """Single-shot invoker returning (or raising) scripted replies in order."""

    def __init__(self, *replies, model_name: str = "fake-model"):
        self.replies = list(replies)
        self.model_name = model_name
        self.prompts = []

    async def generate(self, prompt, language):
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def generate_stream(self, prompt, language):
        raise AssertionError("single-shot invoker used for streaming")
        yield  # pragma: no cover


class EventInvoker:
    """Streaming invoker that replays a fixed list of stream events."""

    def __init__(self, events: Sequence[StreamEvent], model_name: str = "fake-stream"):
        self.events = list(events)
        self.model_name = model_name
        self.closed = False

    async def generate(self, prompt, language):
        raise AssertionError("event invoker used for a single-shot call")

    async def generate_stream(self, prompt, language):
        try:
            for event in self.events:
                yield event
        finally:
            self.closed = True


def build_car(make: str, model: str, category: str = "suv", **fields) -> CarRecord:
    return CarRecord(id=str(uuid4()), make=make, model=model, category=category, **fields)


@pytest.fixture
def make_car():
    return build_car


@pytest.fixture
def catalog(make_car) -> List[CarRecord]:
    return [
        make_car("Toyota", "RAV4", "suv"),
        make_car("Honda", "CR-V", "suv"),
        make_car("Toyota", "Corolla", "sedan"),
        make_car("Mazda", "CX-5", "suv"),
    ]


@pytest.fixture
def storage(catalog) -> FakeChatStorage:
    return FakeChatStorage(cars=catalog)


@pytest.fixture
def scripted_invoker():
    return ScriptedInvoker


@pytest.fixture
def event_invoker():
    return EventInvoker


@pytest.fixture
def build_orchestrator(storage):
    def _build(invoker, stream_invoker=None, **options) -> ConversationOrchestrator:
        return ConversationOrchestrator(storage, invoker, stream_invoker, **options)

    return _build
