import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from api.features.health.controller import HealthController
from api.features.health.service import DETAILED_PROMPTS, HealthService
from api.main import app
from api.shared.exceptions import ModelError


class FakeResult:
    def __init__(self, value):
        self.value = value

    def scalar(self):
        return self.value


class FakeDbSession:
    def __init__(self, database):
        self.database = database

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, statement):
        if self.database.down:
            raise ConnectionError("connection refused")
        return FakeResult(3)


class FakeDatabase:
    def __init__(self, down: bool = False):
        self.down = down

    def get_session(self):
        return FakeDbSession(self)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def use_health(scripted_invoker):
    def _use(*replies, database_down: bool = False):
        invoker = scripted_invoker(*replies)
        service = HealthService(FakeDatabase(database_down), invoker, environment="local")
        app.container.controllers.health_controller.override(providers.Object(HealthController(service)))
        return invoker

    yield _use
    app.container.controllers.health_controller.reset_override()


class TestQuickCheck:
    def test_healthy(self, client, use_health):
        use_health("pong")

        response = client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["services"]["database"]["status"] == "healthy"
        assert body["services"]["model"]["provider"] == "fake-model"

    def test_model_failure_degrades(self, client, use_health):
        use_health(ModelError("fake-model", "quota"))

        response = client.get("/health")

        assert response.status_code == 207
        assert response.json()["services"]["model"]["status"] == "error"

    def test_database_failure_is_an_error(self, client, use_health):
        use_health("pong", database_down=True)

        response = client.get("/health")

        assert response.status_code == 503
        assert "connection refused" in response.json()["services"]["database"]["error"]

    def test_post_without_detail_runs_quick_check(self, client, use_health):
        invoker = use_health("pong")

        response = client.post("/health", json={})

        assert response.status_code == 200
        assert response.json()["checks"] == []
        assert len(invoker.prompts) == 1


class TestDetailedCheck:
    def test_all_checks_pass(self, client, use_health):
        invoker = use_health("pong")

        response = client.post("/health", json={"detailed": True})

        body = response.json()
        assert response.status_code == 200
        tables, model = body["checks"]
        assert tables["details"] == {"cars_count": 3, "conversations_count": 3}
        assert model["details"]["successful_tests"] == len(DETAILED_PROMPTS)
        assert body["summary"]["healthy_checks"] == 2
        assert [prompt.turns[-1][1] for prompt in invoker.prompts] == list(DETAILED_PROMPTS)

    def test_partial_model_failure_degrades(self, client, use_health):
        use_health("one", ModelError("fake-model", "timeout"), "three")

        response = client.post("/health", json={"detailed": True})

        body = response.json()
        assert response.status_code == 207
        model = body["checks"][1]
        assert model["status"] == "degraded"
        assert model["details"]["successful_tests"] == 2
        assert body["summary"]["degraded_checks"] == 1

    def test_everything_down(self, client, use_health):
        use_health(ModelError("fake-model", "auth"), database_down=True)

        response = client.post("/health", json={"detailed": True})

        assert response.status_code == 503
        assert response.json()["summary"]["error_checks"] == 2
