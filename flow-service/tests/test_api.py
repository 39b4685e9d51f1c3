"""
HTTP surface, exercised with FastAPI's TestClient (generation service disabled).
"""
import pytest
from fastapi.testclient import TestClient

from flowstudio.main import app
from flowstudio.services.export import import_architecture
from flowstudio.services.generation import architecture_pipeline


@pytest.fixture
def client():
    return TestClient(app)


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_full_health_reports_fallback_only(self, client):
        body = client.get("/health/full").json()

        assert body["status"] == "degraded"
        assert body["dependencies"]["text_generation"]["status"] == "degraded"
        assert "architecture" in body["metrics"]

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/health/live", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestGenerateArchitecture:

    def test_returns_architecture_and_diagram(self, client, todo_goal):
        response = client.post("/api/v1/generate-architecture", json={"goal": todo_goal})

        assert response.status_code == 200
        body = response.json()
        screen_types = {s["type"] for s in body["architecture"]["screens"]}
        assert {"auth", "dashboard", "list", "form"} <= screen_types
        assert "from" in body["architecture"]["transitions"][0]
        assert body["diagram"]["nodes"][0]["id"] == "start"
        assert body["metadata"]["generation_method"] == "heuristic"

    @pytest.mark.parametrize("payload", [{"goal": ""}, {"goal": "   "}, {}])
    def test_empty_goal_is_400(self, client, payload):
        response = client.post("/api/v1/generate-architecture", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "empty_goal"

    def test_answers_are_folded_into_the_goal(self, client, monkeypatch, todo_architecture):
        goals = []

        async def record(goal):
            goals.append(goal)
            return todo_architecture, {"generation_method": "heuristic"}

        monkeypatch.setattr(architecture_pipeline, "generate_with_metadata", record)

        response = client.post("/api/v1/generate-architecture", json={
            "goal": "Build a todo app",
            "answers": {"collaboration_scope": "Personal only", "target_users": "  "},
        })

        assert response.status_code == 200
        assert goals == ["Build a todo app\n\nAdditional Context:\n- collaboration_scope: Personal only"]

    def test_answers_do_not_rescue_an_empty_goal(self, client):
        response = client.post("/api/v1/generate-architecture", json={
            "goal": " ",
            "answers": {"target_users": "Students"},
        })

        assert response.status_code == 400


class TestGenerateQuestions:

    def test_fallback_questions_for_detected_app_type(self, client):
        response = client.post("/api/v1/generate-questions", json={"userPrompt": "A todo app for my family"})

        assert response.status_code == 200
        body = response.json()
        assert body["appType"] == "task_management"
        assert [q["id"] for q in body["questions"]] == [
            "collaboration_scope", "task_complexity", "target_users", "platform_priority",
        ]
        assert body["questions"][0]["options"]

    def test_explicit_app_type_wins(self, client):
        response = client.post(
            "/api/v1/generate-questions",
            json={"userPrompt": "A todo app", "appType": "fitness_tracking"},
        )
        assert response.json()["questions"][0]["id"] == "tracking_method"

    def test_empty_prompt_is_400(self, client):
        response = client.post("/api/v1/generate-questions", json={"userPrompt": ""})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "empty_goal"


class TestOtherEndpoints:

    def test_ai_thinking(self, client):
        response = client.post("/api/v1/ai-thinking", json={"userRequest": "Build a todo app"})

        assert response.status_code == 200
        assert len(response.json()["steps"]) == 4

    def test_layout(self, client, todo_architecture):
        response = client.post("/api/v1/layout", json={"architecture": todo_architecture.to_json_dict()})

        assert response.status_code == 200
        nodes = {n["id"]: n for n in response.json()["nodes"]}
        assert nodes["start"]["position"] == {"x": 100, "y": 250}
        assert nodes["screen_1"]["position"]["x"] < nodes["screen_4"]["position"]["x"]

    def test_export_download(self, client, todo_architecture):
        response = client.post("/api/v1/export", json={"architecture": todo_architecture.to_json_dict()})

        assert response.status_code == 200
        assert 'filename="todo-app-architecture.json"' in response.headers["content-disposition"]
        assert import_architecture(response.text) == todo_architecture

    def test_generate_wireframes(self, client, small_architecture):
        response = client.post(
            "/api/v1/generate-wireframes",
            json={"architecture": small_architecture.to_json_dict(), "device": "desktop"},
        )

        assert response.status_code == 200
        body = response.json()
        assert len(body["screens"]) == len(small_architecture.screens)
        assert body["metadata"]["viewport"] == {"width": 1440, "height": 900}
        assert body["screens"][0]["sourceScreenId"] == "login"

    def test_invalid_architecture_is_422(self, client):
        response = client.post("/api/v1/layout", json={"architecture": {
            "id": "a", "name": "A",
            "screens": [{"id": "s", "name": "S"}],
            "transitions": [{"id": "t", "from": "s", "to": "ghost"}],
        }})
        assert response.status_code == 422
