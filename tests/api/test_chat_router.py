import json

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from advisor.llm.streaming import SimulatedStreamInvoker
from advisor.pipeline.orchestrator import FALLBACK_TEXT, ConversationOrchestrator
from api.features.chat.controller import ChatController
from api.features.conversations.service import ConversationService
from api.main import app
from api.shared.db import get_db_session
from api.shared.exceptions import ModelError


class FakeSession:
    def __init__(self):
        self.closed = False

    async def close(self):
        self.closed = True


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def use_invoker(storage, session):
    """Route chat requests to an orchestrator over the in-memory storage."""

    def _use(invoker, stream_invoker=None):
        orchestrator = ConversationOrchestrator(storage, invoker, stream_invoker)
        controller = ChatController(
            orchestrator_factory=lambda **_: orchestrator,
            conversation_service=ConversationService(),
        )
        app.container.controllers.chat_controller.override(providers.Object(controller))

    async def _session():
        yield session

    app.dependency_overrides[get_db_session] = _session
    yield _use
    app.container.controllers.chat_controller.reset_override()
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def sse_payloads(body: str):
    return [json.loads(frame[len("data: "):]) for frame in body.split("\n\n") if frame.startswith("data: ")]


class TestChatEndpoint:
    def test_model_failure_is_still_ok(self, client, use_invoker, scripted_invoker, storage):
        use_invoker(scripted_invoker(ModelError("fake-model", "timeout")))

        response = client.post("/api/v1/chat", json={"message": "Need a winter car", "language": "en"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["metadata"]["error"] is True
        assert data["message"] == FALLBACK_TEXT["en"]
        assert data["conversationId"] in storage.conversations
        assert storage.messages[0].content == "Need a winter car"

    def test_reply_uses_camel_case(self, client, use_invoker, scripted_invoker):
        use_invoker(scripted_invoker("A Toyota SUV handles snow well."))

        response = client.post(
            "/api/v1/chat",
            json={
                "message": "Need a winter car",
                "language": "en",
                "context": {"userPreferences": {"budget": "25000", "carType": "SUV"}},
            },
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["message"] == "A Toyota SUV handles snow well."
        assert data["metadata"]["error"] is False
        assert data["recommendations"]
        assert {"carId", "matchScore", "reasoning"} <= set(data["recommendations"][0])

    def test_blank_message_is_rejected(self, client, use_invoker, scripted_invoker, storage):
        use_invoker(scripted_invoker("unused"))

        response = client.post("/api/v1/chat", json={"message": "   "})

        assert response.status_code == 400
        assert response.json()["error"] == "Validation Error"
        assert storage.calls == []

    def test_oversized_message_is_rejected(self, client, use_invoker, scripted_invoker, storage):
        use_invoker(scripted_invoker("unused"))

        response = client.post("/api/v1/chat", json={"message": "x" * 2001})

        assert response.status_code == 400
        assert storage.calls == []

    def test_padding_does_not_count_towards_the_limit(self, client, use_invoker, scripted_invoker, storage):
        use_invoker(scripted_invoker("Noted."))

        response = client.post("/api/v1/chat", json={"message": "  " + "x" * 2000 + "\n"})

        assert response.status_code == 200
        assert storage.messages[0].content == "x" * 2000

    def test_stream_delivers_content_then_complete(self, client, use_invoker, scripted_invoker, session):
        inner = scripted_invoker("Try the Honda CR-V")
        use_invoker(inner, SimulatedStreamInvoker(inner, chunk_delay=0))

        response = client.post("/api/v1/chat", json={"message": "Suggest an SUV", "stream": True})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = sse_payloads(response.text)
        assert [e["type"] for e in events] == ["content"] * 4 + ["complete"]
        assert "".join(e["content"] for e in events[:-1]) == "Try the Honda CR-V"
        assert events[-1]["fullContent"] == "Try the Honda CR-V"
        assert events[-1]["metadata"]["error"] is False
        assert session.closed is True

    def test_stream_content_matches_full_content(self, client, use_invoker, scripted_invoker):
        reply = (
            "Try the Honda CR-V.\n"
            "```json\n"
            '{"summary": {"en": "SUV shortlist", "zh": "SUV候选"}}\n'
            "```"
        )
        inner = scripted_invoker(reply)
        use_invoker(inner, SimulatedStreamInvoker(inner, chunk_delay=0))

        response = client.post("/api/v1/chat", json={"message": "Suggest an SUV", "language": "en", "stream": True})

        events = sse_payloads(response.text)
        content = "".join(e["content"] for e in events if e["type"] == "content")
        assert events[-1]["type"] == "complete"
        assert content == events[-1]["fullContent"] == "Try the Honda CR-V."

    def test_stream_error_event(self, client, use_invoker, scripted_invoker):
        inner = scripted_invoker(ModelError("fake-model", "timeout"))
        use_invoker(inner, SimulatedStreamInvoker(inner, chunk_delay=0))

        response = client.post("/api/v1/chat", json={"message": "你好", "stream": True})

        events = sse_payloads(response.text)
        assert events[-1]["type"] == "error"
        assert events[-1]["error"] == "生成回复时发生错误"
        assert events[-1]["content"] == FALLBACK_TEXT["zh"]


class TestChatHistoryEndpoint:
    def test_missing_conversation_id(self, client, use_invoker, scripted_invoker):
        use_invoker(scripted_invoker("unused"))

        assert client.get("/api/v1/chat").status_code == 400

    def test_invalid_conversation_id(self, client, use_invoker, scripted_invoker):
        use_invoker(scripted_invoker("unused"))

        assert client.get("/api/v1/chat", params={"conversationId": "not-a-uuid"}).status_code == 400
