"""
Shared fixtures: fixed clock, fake text-generation clients, sample graphs.
"""
import os

# Tests never talk to a real text-generation service
os.environ["FLOWSTUDIO_GENERATION_ENABLED"] = "false"
os.environ.pop("FLOWSTUDIO_LLM_API_KEY", None)

from datetime import datetime, timezone
from typing import List, Optional, Tuple, Union

import pytest

from flowstudio.llm.base import LLMMessage, LLMProvider, LLMResponse, ServiceUnavailable, TextGenerationClient
from flowstudio.models.schemas.architecture import Architecture, Screen, ScreenType, Transition
from flowstudio.services.generation.heuristic_generator import HeuristicArchitectureGenerator
from flowstudio.utils.datetime_utils import fixed_clock


TODO_GOAL = "Build a todo app with login and dashboard"
FIXED_NOW = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)


class FakeTextClient(TextGenerationClient):
    """Returns canned replies (or raises canned errors) in order; records prompts and sampling options"""

    def __init__(self, *replies: Union[str, Exception]):
        super().__init__({"request_timeout": 1.0})
        self.provider_name = LLMProvider.OPENAI
        self.replies: List[Union[str, Exception]] = list(replies)
        self.prompts: List[str] = []
        self.options: List[Tuple[Optional[float], Optional[int]]] = []

    async def generate(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        self.prompts.append(messages[-1].content)
        self.options.append((temperature, max_tokens))
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=reply, provider=LLMProvider.OPENAI, model="fake")

    async def health_check(self) -> bool:
        return True

    @property
    def calls(self) -> int:
        return len(self.prompts)


@pytest.fixture
def clock():
    return fixed_clock(FIXED_NOW)


@pytest.fixture
def heuristic(clock):
    return HeuristicArchitectureGenerator(clock=clock)


@pytest.fixture
def todo_architecture(heuristic):
    return heuristic.generate(TODO_GOAL)


@pytest.fixture
def fake_client_factory():
    return FakeTextClient


@pytest.fixture
def unavailable_error():
    return ServiceUnavailable("connection refused", provider="openai")


def make_architecture(screens, transitions=()) -> Architecture:
    """Build an architecture from (id, type) pairs and (from, to) pairs"""
    return Architecture(
        id="app_test",
        name="Test App",
        screens=[
            Screen(id=screen_id, name=screen_id.replace("_", " ").title(), type=screen_type)
            for screen_id, screen_type in screens
        ],
        transitions=[
            Transition(id=f"t{i}", from_screen=source, to_screen=target)
            for i, (source, target) in enumerate(transitions)
        ],
    )


@pytest.fixture
def small_architecture():
    return make_architecture(
        [
            ("login", ScreenType.AUTH),
            ("home", ScreenType.HOME),
            ("items", ScreenType.LIST),
            ("item_detail", ScreenType.DETAIL),
        ],
        [("login", "home"), ("home", "items"), ("items", "item_detail")],
    )


@pytest.fixture
def build_architecture():
    return make_architecture


@pytest.fixture
def todo_goal():
    return TODO_GOAL
