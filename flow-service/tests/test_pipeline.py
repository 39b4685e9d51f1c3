"""
Generation pipelines with fake text-generation clients (no network).
"""
import json

import pytest

from flowstudio.models.schemas.architecture import ScreenType
from flowstudio.models.schemas.questions import QuestionCategory
from flowstudio.models.schemas.wireframe import ComponentType, DeviceType
from flowstudio.services.generation import (
    ArchitecturePipeline,
    EmptyGoalError,
    QuestionsPipeline,
    QuestionsRequest,
    ThinkingPipeline,
    WireframePipeline,
    WireframeRequest,
)
from flowstudio.services.generation.questions_generator import build_contextual_goal, detect_app_type
from flowstudio.services.generation.response_repair import ResponseRepair


GOOD_RESPONSE = json.dumps({
    "appName": "Recipe Box",
    "description": "Save recipes",
    "screens": [
        {"id": "s1", "name": "Recipes", "type": "list"},
        {"id": "s2", "name": "Recipe", "type": "detail"},
        {"id": "s3", "name": "New Recipe", "type": "form"},
    ],
    "transitions": [
        {"from": "s1", "to": "s2", "trigger": "user_action"},
        {"from": "Recipes", "to": "New Recipe", "trigger": "user_action"},
    ],
})


@pytest.fixture
def make_pipeline(heuristic, clock):
    def factory(client):
        return ArchitecturePipeline(
            client=client,
            repairer=ResponseRepair(clock=clock),
            fallback_generator=heuristic,
        )
    return factory


class TestArchitecturePipeline:

    async def test_unconfigured_service_uses_fallback(self, make_pipeline, heuristic, todo_goal):
        pipeline = make_pipeline(None)

        architecture, metadata = await pipeline.generate_with_metadata(todo_goal)

        assert metadata['generation_method'] == 'heuristic'
        assert metadata['fallback_reason'] == 'service_not_configured'
        assert architecture == heuristic.generate(todo_goal)

    async def test_service_success(self, make_pipeline, fake_client_factory):
        client = fake_client_factory(GOOD_RESPONSE)
        pipeline = make_pipeline(client)

        architecture, metadata = await pipeline.generate_with_metadata("recipes")

        assert metadata['generation_method'] == 'llm'
        assert metadata['provider'] == 'openai'
        assert architecture.name == "Recipe Box"
        assert [s.type for s in architecture.screens] == [ScreenType.LIST, ScreenType.DETAIL, ScreenType.FORM]
        assert "recipes" in client.prompts[0]

    async def test_flow_sampling_options_are_sent(self, make_pipeline, fake_client_factory):
        client = fake_client_factory(GOOD_RESPONSE)

        await make_pipeline(client).generate("recipes")

        assert client.options == [(0.3, 4000)]

    async def test_service_failure_falls_back_after_one_attempt(
        self, make_pipeline, fake_client_factory, unavailable_error, todo_goal
    ):
        client = fake_client_factory(unavailable_error, GOOD_RESPONSE)
        pipeline = make_pipeline(client)

        architecture, metadata = await pipeline.generate_with_metadata(todo_goal)

        assert client.calls == 1
        assert metadata['fallback_reason'].startswith('service_unavailable')
        assert architecture.name == "Todo App"
        assert pipeline.stats['service_errors'] == 1

    async def test_garbage_response_falls_back(self, make_pipeline, fake_client_factory, todo_goal):
        pipeline = make_pipeline(fake_client_factory("I'm sorry, I can't do that."))

        architecture, metadata = await pipeline.generate_with_metadata(todo_goal)

        assert metadata['fallback_reason'].startswith('malformed_response')
        assert architecture.screens
        assert pipeline.stats['malformed_responses'] == 1

    async def test_empty_content_falls_back(self, make_pipeline, fake_client_factory, todo_goal):
        pipeline = make_pipeline(fake_client_factory("   "))

        _, metadata = await pipeline.generate_with_metadata(todo_goal)

        assert metadata['fallback_reason'].startswith('service_unavailable')

    async def test_unexpected_error_falls_back(self, make_pipeline, fake_client_factory, todo_goal):
        pipeline = make_pipeline(fake_client_factory(RuntimeError("boom")))

        architecture, metadata = await pipeline.generate_with_metadata(todo_goal)

        assert metadata['fallback_reason'] == 'unexpected_error: RuntimeError'
        assert architecture.screens

    @pytest.mark.parametrize("goal", ["", "   ", None])
    async def test_empty_goal_is_rejected_upfront(self, make_pipeline, fake_client_factory, goal):
        client = fake_client_factory(GOOD_RESPONSE)
        pipeline = make_pipeline(client)

        with pytest.raises(EmptyGoalError):
            await pipeline.generate(goal)
        assert client.calls == 0

    @pytest.mark.parametrize("goal", [
        "Build a todo app with login and dashboard",
        "chat with friends",
        "z",
    ])
    async def test_every_screen_reachable(self, make_pipeline, fake_client_factory, goal):
        for client in (None, fake_client_factory(GOOD_RESPONSE), fake_client_factory("nope")):
            architecture = await make_pipeline(client).generate(goal)
            assert architecture.screens
            assert architecture.reachable_from_entry() == {s.id for s in architecture.screens}

    async def test_statistics(self, make_pipeline, fake_client_factory, todo_goal):
        pipeline = make_pipeline(fake_client_factory(GOOD_RESPONSE, "garbage"))
        await pipeline.generate(todo_goal)
        await pipeline.generate(todo_goal)

        stats = pipeline.get_statistics()
        assert stats['total_requests'] == 2
        assert stats['service_successes'] == 1
        assert stats['fallbacks'] == 1
        assert stats['fallback_rate'] == 50


class TestThinkingPipeline:

    async def test_fallback_picks_playbook(self):
        process = await ThinkingPipeline(client=None).generate("Build a todo app")

        assert [s.id for s in process.steps] == ["analyze", "identify", "structure", "optimize"]
        assert all(s.status == "pending" for s in process.steps)
        assert "task management" in process.thoughts[0]

    async def test_generic_playbook_mentions_request(self):
        process = await ThinkingPipeline(client=None).generate("track bird sightings")
        assert "track bird sightings" in process.thoughts[0]

    async def test_service_response_is_used(self, fake_client_factory):
        reply = json.dumps({
            "steps": [{"id": "a", "title": "Look", "description": "d", "thought": "t"}],
            "thoughts": ["hmm"],
        })
        process = await ThinkingPipeline(client=fake_client_factory(reply)).generate("anything")

        assert process.steps[0].title == "Look"
        assert process.thoughts == ["hmm"]

    async def test_thinking_sampling_options_are_sent(self, fake_client_factory):
        client = fake_client_factory("not json")

        await ThinkingPipeline(client=client).generate("anything")

        assert client.options == [(0.7, 1000)]

    async def test_empty_request_is_rejected(self):
        with pytest.raises(EmptyGoalError):
            await ThinkingPipeline(client=None).generate(" ")


class TestWireframePipeline:

    async def test_fallback_wireframe(self, small_architecture):
        request = WireframeRequest(architecture=small_architecture, screen=small_architecture.screens[1])

        wireframe = await WireframePipeline(client=None).generate(request)

        assert wireframe.source_screen_id == "home"
        assert [c.id for c in wireframe.components] == ["header-1", "main-content-1"]
        assert wireframe.components[1].children[0].type == ComponentType.PARAGRAPH

    async def test_service_components_are_converted(self, fake_client_factory, small_architecture):
        reply = json.dumps({
            "components": [
                {"type": "header", "content": "Hi"},
                {"type": "mystery", "children": [{"type": "button", "content": "Go"}]},
            ]
        })
        request = WireframeRequest(architecture=small_architecture, screen=small_architecture.screens[0])

        wireframe = await WireframePipeline(client=fake_client_factory(reply)).generate(request)

        header, container = wireframe.components
        assert header.type == ComponentType.HEADER
        assert container.type == ComponentType.CONTAINER
        assert container.children[0].type == ComponentType.BUTTON
        assert header.id == "comp-login-1"

    async def test_wireframe_sampling_options_are_sent(self, fake_client_factory, small_architecture):
        client = fake_client_factory("{}")
        request = WireframeRequest(architecture=small_architecture, screen=small_architecture.screens[0])

        await WireframePipeline(client=client).generate(request)

        assert client.options == [(0.4, 3000)]

    async def test_project_covers_every_screen(self, small_architecture, clock):
        pipeline = WireframePipeline(client=None, clock=clock)

        project = await pipeline.generate_project(small_architecture, device=DeviceType.TABLET)

        assert project.id == "wireframe-app_test"
        assert [s.source_screen_id for s in project.screens] == [s.id for s in small_architecture.screens]
        assert project.metadata.viewport == {"width": 768, "height": 1024}


class TestQuestionsPipeline:

    @pytest.mark.parametrize("prompt, app_type", [
        ("Order food from local restaurants", "food_delivery"),
        ("A productivity tracker", "task_management"),
        ("Sell handmade products online", "e_commerce"),
        ("Log my workouts", "fitness_tracking"),
        ("Share bird photos", None),
    ])
    def test_detect_app_type(self, prompt, app_type):
        assert detect_app_type(prompt) == app_type

    async def test_fallback_is_capped_at_four(self):
        question_set = await QuestionsPipeline(client=None).generate(QuestionsRequest("food delivery app"))

        assert [q.id for q in question_set.questions] == [
            "delivery_area", "payment_flow", "customization_level", "target_users",
        ]
        assert question_set.app_type == "food_delivery"

    async def test_fallback_without_app_type_asks_universal_questions(self):
        question_set = await QuestionsPipeline(client=None).generate(QuestionsRequest("Share bird photos"))

        assert [q.id for q in question_set.questions] == ["target_users", "platform_priority"]
        assert question_set.app_type is None

    async def test_unknown_app_type_is_detected_instead(self):
        request = QuestionsRequest("Log my workouts", app_type="spaceship")
        question_set = await QuestionsPipeline(client=None).generate(request)

        assert question_set.app_type == "fitness_tracking"

    async def test_service_questions_are_repaired(self, fake_client_factory):
        reply = json.dumps({
            "questions": [
                {"question": "Who cooks?", "category": "Mystery", "options": ["Me", 3]},
                {"id": "sync", "category": "technical", "question": "Offline use?", "required": True},
                {"category": "ux"},
            ],
            "reasoning": "Because",
        })
        client = fake_client_factory(reply)

        question_set, metadata = await QuestionsPipeline(client=client).generate_with_metadata(
            QuestionsRequest("recipe app", app_type="cooking")
        )

        assert metadata['generation_method'] == 'llm'
        first, second = question_set.questions
        assert (first.id, first.category, first.options, first.required) == (
            "q1", QuestionCategory.USER_CONTEXT, ["Me"], False,
        )
        assert (second.id, second.category, second.required) == ("sync", QuestionCategory.TECHNICAL, True)
        assert question_set.reasoning == "Because"
        assert "DETECTED APP TYPE: cooking" in client.prompts[0]
        assert client.options == [(0.5, 1500)]

    async def test_reply_without_questions_falls_back(self, fake_client_factory):
        client = fake_client_factory('{"questions": []}')

        question_set, metadata = await QuestionsPipeline(client=client).generate_with_metadata(
            QuestionsRequest("todo app")
        )

        assert metadata['fallback_reason'].startswith("malformed_response")
        assert question_set.questions[0].id == "collaboration_scope"

    async def test_empty_prompt_is_rejected(self):
        with pytest.raises(EmptyGoalError):
            await QuestionsPipeline(client=None).generate(QuestionsRequest("  "))

    def test_build_contextual_goal(self):
        goal = build_contextual_goal("Todo app", {"task_complexity": " Simple ", "target_users": ""})

        assert goal == "Todo app\n\nAdditional Context:\n- task_complexity: Simple"
        assert build_contextual_goal("Todo app", {}) == "Todo app"


def test_unknown_pipeline_uses_default_sampling():
    from flowstudio.config import settings

    assert settings.generation_options("unknown") == {
        "temperature": settings.llm_temperature,
        "max_tokens": settings.llm_max_tokens,
    }
