from datetime import datetime, timezone

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from api.features.conversations.controller import ConversationController
from api.features.conversations.dtos import ConversationDTO, RecommendationDTO
from api.features.conversations.exceptions import ConversationNotFoundError
from api.features.recommendations.controller import RecommendationController
from api.features.recommendations.exceptions import RecommendationReferenceError
from api.features.users.controller import UserController
from api.features.users.dtos import UserDTO
from api.main import app
from api.shared.db import get_db_session

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)
CONVERSATION_ID = "6f1c1c9e-7b43-4a57-9a3f-0a1b2c3d4e5f"
MESSAGE_ID = "7f1c1c9e-7b43-4a57-9a3f-0a1b2c3d4e5f"
CAR_ID = "8f1c1c9e-7b43-4a57-9a3f-0a1b2c3d4e5f"


def user_dto(session_id: str = "s-1") -> UserDTO:
    return UserDTO(
        id="u1", name="Li", language="zh", session_id=session_id, created_at=NOW, updated_at=NOW
    )


def recommendation_dto(score: int = 90) -> RecommendationDTO:
    return RecommendationDTO(
        id="r1",
        conversation_id=CONVERSATION_ID,
        message_id=MESSAGE_ID,
        car_id=CAR_ID,
        match_score=score,
        car_name="Toyota RAV4",
        created_at=NOW,
    )


class FakeUserService:
    def __init__(self, known_sessions=()):
        self.known_sessions = set(known_sessions)
        self.list_calls = []

    async def list_users(self, **kwargs):
        self.list_calls.append(kwargs)
        return [user_dto()], 45

    async def create_user(self, request, *, db_session):
        created = request.session_id not in self.known_sessions
        self.known_sessions.add(request.session_id)
        return user_dto(request.session_id), created


class FakeRecommendationService:
    def __init__(self, error=None):
        self.error = error
        self.list_calls = []

    async def list_recommendations(self, **kwargs):
        self.list_calls.append(kwargs)
        return [recommendation_dto()], 1

    async def create_recommendation(self, request, *, db_session):
        if self.error:
            raise self.error
        return recommendation_dto(request.match_score)


class FakeConversationService:
    def __init__(self):
        self.updates = []

    async def update_conversation(self, conversation_id, request, *, db_session):
        if conversation_id != CONVERSATION_ID:
            raise ConversationNotFoundError(conversation_id)
        values = request.model_dump(exclude_unset=True)
        self.updates.append(values)
        return ConversationDTO(
            id=conversation_id,
            title=values.get("title"),
            language=values.get("language") or "zh",
            session_id="s-1",
            created_at=NOW,
            updated_at=NOW,
        )


@pytest.fixture
def client():
    async def _session():
        yield object()

    app.dependency_overrides[get_db_session] = _session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def users(client):
    service = FakeUserService(known_sessions={"known"})
    app.container.controllers.user_controller.override(providers.Object(UserController(service)))
    yield service
    app.container.controllers.user_controller.reset_override()


@pytest.fixture
def use_recommendations(client):
    def _use(service):
        controller = RecommendationController(service)
        app.container.controllers.recommendation_controller.override(providers.Object(controller))
        return service

    yield _use
    app.container.controllers.recommendation_controller.reset_override()


@pytest.fixture
def conversations(client):
    service = FakeConversationService()
    controller = ConversationController(conversation_service=service, summarizer=None)
    app.container.controllers.conversation_controller.override(providers.Object(controller))
    yield service
    app.container.controllers.conversation_controller.reset_override()


class TestUsersEndpoint:
    def test_new_session_creates_user(self, client, users):
        response = client.post("/api/v1/users/", json={"session_id": "fresh", "name": "Li"})

        assert response.status_code == 201
        assert response.json()["data"]["session_id"] == "fresh"

    def test_known_session_returns_existing_user(self, client, users):
        response = client.post("/api/v1/users/", json={"session_id": "known"})

        assert response.status_code == 200
        assert response.json()["message"] == "User already exists"

    def test_invalid_email_is_rejected(self, client, users):
        response = client.post("/api/v1/users/", json={"session_id": "s", "email": "nope"})

        assert response.status_code == 400

    def test_list_reports_more_pages(self, client, users):
        response = client.get("/api/v1/users/", params={"search": "li", "language": "zh", "limit": 20})

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["total"] == 45
        assert data["has_more"] is True
        assert users.list_calls[0]["search"] == "li"
        assert users.list_calls[0]["language"] == "zh"


class TestRecommendationsEndpoint:
    def test_filters_reach_the_service(self, client, use_recommendations):
        service = use_recommendations(FakeRecommendationService())

        response = client.get(
            "/api/v1/recommendations/",
            params={"conversation_id": CONVERSATION_ID, "car_id": CAR_ID, "min_score": 80},
        )

        assert response.status_code == 200
        assert response.json()["data"]["items"][0]["car_name"] == "Toyota RAV4"
        call = service.list_calls[0]
        assert call["conversation_id"] == CONVERSATION_ID
        assert call["car_id"] == CAR_ID
        assert call["message_id"] is None
        assert call["min_score"] == 80

    def test_min_score_out_of_range(self, client, use_recommendations):
        use_recommendations(FakeRecommendationService())

        response = client.get("/api/v1/recommendations/", params={"min_score": 101})

        assert response.status_code == 400

    def test_create(self, client, use_recommendations):
        use_recommendations(FakeRecommendationService())

        response = client.post(
            "/api/v1/recommendations/",
            json={"conversation_id": CONVERSATION_ID, "message_id": MESSAGE_ID, "car_id": CAR_ID, "match_score": 75},
        )

        assert response.status_code == 201
        assert response.json()["data"]["match_score"] == 75

    def test_missing_reference_is_a_bad_request(self, client, use_recommendations):
        use_recommendations(FakeRecommendationService(RecommendationReferenceError("Car", CAR_ID)))

        response = client.post(
            "/api/v1/recommendations/",
            json={"conversation_id": CONVERSATION_ID, "message_id": MESSAGE_ID, "car_id": CAR_ID, "match_score": 75},
        )

        assert response.status_code == 400
        assert CAR_ID in response.json()["detail"]["message"]


class TestUpdateConversationEndpoint:
    def test_partial_update(self, client, conversations):
        response = client.put(f"/api/v1/conversations/{CONVERSATION_ID}", json={"title": "Winter SUVs"})

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Winter SUVs"
        assert conversations.updates == [{"title": "Winter SUVs"}]

    def test_unknown_conversation(self, client, conversations):
        response = client.put(f"/api/v1/conversations/{MESSAGE_ID}", json={"title": "x"})

        assert response.status_code == 404

    def test_invalid_language(self, client, conversations):
        response = client.put(f"/api/v1/conversations/{CONVERSATION_ID}", json={"language": "fr"})

        assert response.status_code == 400
        assert conversations.updates == []
