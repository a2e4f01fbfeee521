import asyncio
import json

import pytest

from advisor.llm.events import DoneEvent, FragmentEvent
from advisor.pipeline.orchestrator import ConversationOrchestrator
from api.features.chat.controller import ChatController
from api.features.chat.dtos import ChatRequest
from api.features.conversations.service import ConversationService


class FakeSession:
    def __init__(self):
        self.closed = False

    async def close(self):
        self.closed = True


class StalledInvoker:
    """Streams one fragment, then waits on the model indefinitely."""

    model_name = "fake-stream"

    async def generate(self, prompt, language):
        raise AssertionError("stalled invoker used for a single-shot call")

    async def generate_stream(self, prompt, language):
        yield FragmentEvent("Thinking ")
        await asyncio.sleep(60)
        yield DoneEvent(full_text="Thinking", fragment_count=1)


def disconnect_after(frames: int):
    """Disconnect check that reports the client gone once ``frames`` frames were sent."""
    state = {"calls": 0}

    async def _is_disconnected() -> bool:
        state["calls"] += 1
        return state["calls"] >= frames

    return _is_disconnected


@pytest.fixture
def controller_for(storage, scripted_invoker):
    def _build(stream_invoker) -> ChatController:
        orchestrator = ConversationOrchestrator(storage, scripted_invoker("unused"), stream_invoker)
        return ChatController(
            orchestrator_factory=lambda **_: orchestrator,
            conversation_service=ConversationService(),
        )

    return _build


class TestOpenStream:
    async def test_disconnect_after_first_frame_persists_nothing(self, storage, controller_for, event_invoker):
        stream = event_invoker(
            [
                FragmentEvent("A Toyota "),
                FragmentEvent("RAV4 "),
                FragmentEvent("suits you."),
                DoneEvent(full_text="A Toyota RAV4 suits you.", fragment_count=3),
            ]
        )
        session = FakeSession()
        controller = controller_for(stream)

        frames = await controller.open_stream(
            ChatRequest(message="Need an SUV", language="en"),
            db_session=session,
            is_disconnected=disconnect_after(1),
        )
        sent = [frame async for frame in frames]

        assert len(sent) == 1
        assert json.loads(sent[0][len("data: "):])["type"] == "content"
        assert [m.role for m in storage.messages] == ["user"]
        assert storage.recommendations == []
        assert "touch_conversation" not in storage.calls
        assert stream.closed is True
        assert session.closed is True

    async def test_connected_client_receives_complete_frame(self, storage, controller_for, event_invoker):
        stream = event_invoker(
            [FragmentEvent("Try the "), FragmentEvent("Honda CR-V"), DoneEvent(full_text="Try the Honda CR-V", fragment_count=2)]
        )
        session = FakeSession()
        controller = controller_for(stream)

        frames = await controller.open_stream(
            ChatRequest(message="Need an SUV", language="en"),
            db_session=session,
            is_disconnected=disconnect_after(100),
        )
        payloads = [json.loads(frame[len("data: "):]) async for frame in frames]

        assert payloads[-1]["type"] == "complete"
        content = "".join(p["content"] for p in payloads if p["type"] == "content")
        assert content == payloads[-1]["fullContent"] == "Try the Honda CR-V"
        assert [m.role for m in storage.messages] == ["user", "assistant"]
        assert session.closed is True

    async def test_cancelled_response_still_releases_the_session(self, storage, controller_for):
        session = FakeSession()
        controller = controller_for(StalledInvoker())
        frames = await controller.open_stream(
            ChatRequest(message="Need an SUV", language="en"),
            db_session=session,
            is_disconnected=disconnect_after(100),
        )
        sent = []

        async def consume():
            async for frame in frames:
                sent.append(frame)

        task = asyncio.create_task(consume())
        while not sent:
            await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert session.closed is True
        assert [m.role for m in storage.messages] == ["user"]
