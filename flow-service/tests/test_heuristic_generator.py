"""
Heuristic fallback generator: determinism, families and guaranteed shape.
"""
import pytest

from flowstudio.models.schemas.architecture import ComplexityLevel, ScreenType, reachable_ids
from flowstudio.services.generation.architecture_validator import ArchitectureValidator


class TestDeterminism:

    def test_same_goal_same_architecture(self, heuristic, todo_goal):
        assert heuristic.generate(todo_goal) == heuristic.generate(todo_goal)

    def test_id_depends_on_goal(self, heuristic):
        assert heuristic.generate("a notes app").id != heuristic.generate("a recipes app").id


class TestFamilies:

    @pytest.mark.parametrize("goal,family,app_name", [
        ("Build a todo app", "task_management", "Todo App"),
        ("A social network to follow friends", "social", "Social App"),
        ("An online store with a cart", "commerce", "E-commerce App"),
        ("Something for bird watchers", "generic", "My App"),
    ])
    def test_family_detection(self, heuristic, goal, family, app_name):
        analysis = heuristic.analyze_goal(goal)
        assert analysis.family == family
        assert analysis.app_name == app_name

    def test_complexity_from_feature_count(self, heuristic):
        assert heuristic.analyze_goal("birds").complexity == ComplexityLevel.SIMPLE
        assert heuristic.analyze_goal("todo app with login").complexity == ComplexityLevel.MODERATE
        assert heuristic.analyze_goal(
            "todo app with login, dashboard, profile and settings"
        ).complexity == ComplexityLevel.COMPLEX


class TestGuaranteedShape:

    @pytest.mark.parametrize("goal", [
        "Build a todo app with login and dashboard",
        "social feed",
        "shop",
        "x",
        "?!?",
        "a really long and rambling description of nothing in particular " * 10,
    ])
    def test_output_is_valid_and_connected(self, heuristic, goal):
        arch = heuristic.generate(goal)

        types = {s.type for s in arch.screens}
        assert ScreenType.ONBOARDING in types
        assert ScreenType.DETAIL in types
        assert ScreenType.FORM in types
        assert ScreenType.ERROR in types
        assert ScreenType.EMPTY_STATE in types
        assert arch.reachable_from_entry() == {s.id for s in arch.screens}

        is_valid, _ = ArchitectureValidator().validate(arch, source="heuristic")
        assert is_valid

    def test_simple_goal_has_no_launch_or_auth(self, heuristic):
        arch = heuristic.generate("birds")
        types = [s.type for s in arch.screens]
        assert ScreenType.LOADING not in types
        assert ScreenType.AUTH not in types
        assert arch.screens[0].type == ScreenType.ONBOARDING


class TestTodoScenario:

    def test_screens(self, todo_architecture):
        names = [s.name for s in todo_architecture.screens]
        assert names == [
            "App Launch", "Login", "Register", "Welcome", "Dashboard",
            "Task List", "Task Detail", "Add Task", "Network Error", "No Tasks Yet",
        ]
        assert todo_architecture.name == "Todo App"
        assert todo_architecture.metadata.complexity == ComplexityLevel.MODERATE

    def test_path_auth_dashboard_list_form(self, todo_architecture):
        arch = todo_architecture
        login = arch.screens_by_type(ScreenType.AUTH)[0]
        dashboard = arch.screens_by_type(ScreenType.DASHBOARD)[0]
        task_list = arch.screens_by_type(ScreenType.LIST)[0]
        form = arch.screens_by_type(ScreenType.FORM)[0]

        assert dashboard.id in reachable_ids(login.id, arch.transitions)
        assert task_list.id in reachable_ids(dashboard.id, arch.transitions)
        assert form.id in reachable_ids(task_list.id, arch.transitions)

    def test_gated_screens_follow_auth(self, todo_architecture):
        dashboard = todo_architecture.screens_by_type(ScreenType.DASHBOARD)[0]
        assert dashboard.requires_auth

    def test_uses_injected_clock(self, todo_architecture, clock):
        assert todo_architecture.metadata.created_at == clock()
