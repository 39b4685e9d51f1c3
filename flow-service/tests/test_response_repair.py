"""
Response repair: locating the payload, normalizing it, and stitching the graph.
"""
import json
import time

import pytest

from flowstudio.models.schemas.architecture import (
    ComplexityLevel,
    Screen,
    ScreenType,
    Transition,
    TransitionTrigger,
)
from flowstudio.services.generation.response_repair import (
    MalformedResponse,
    ResponseRepair,
    extract_json_object,
    repair_connectivity,
)


def payload(screens, transitions=(), **extra) -> str:
    return json.dumps({"screens": list(screens), "transitions": list(transitions), **extra})


@pytest.fixture
def repairer(clock):
    return ResponseRepair(clock=clock)


class TestExtractJsonObject:

    def test_object_surrounded_by_prose(self):
        text = 'Sure! Here is your app:\n{"appName": "Notes", "screens": []}\nHope that helps.'
        assert extract_json_object(text) == {"appName": "Notes", "screens": []}

    def test_code_fenced_object(self):
        text = '```json\n{"appName": "Notes"}\n```'
        assert extract_json_object(text)["appName"] == "Notes"

    def test_braces_inside_strings_do_not_break_matching(self):
        text = 'prefix {"description": "uses {curly} braces", "ok": true} suffix'
        assert extract_json_object(text)["description"] == "uses {curly} braces"

    def test_trailing_commas_are_fixed(self):
        text = '{"screens": [{"id": "a", "name": "A",},],}'
        assert extract_json_object(text)["screens"][0]["id"] == "a"

    def test_no_object_raises(self):
        with pytest.raises(MalformedResponse, match="No JSON object"):
            extract_json_object("I cannot help with that.")

    def test_undecodable_object_raises(self):
        with pytest.raises(MalformedResponse, match="could not be decoded"):
            extract_json_object("{this is : not [json}")

    def test_empty_text_raises(self):
        with pytest.raises(MalformedResponse):
            extract_json_object("   ")

    def test_nested_objects_return_the_outermost(self):
        text = 'noise {"outer": {"inner": {"x": 1}}} noise'
        assert extract_json_object(text) == {"outer": {"inner": {"x": 1}}}

    def test_unclosed_braces_fail_fast(self):
        started = time.perf_counter()
        with pytest.raises(MalformedResponse, match="No JSON object"):
            extract_json_object("{" * 200_000)
        assert time.perf_counter() - started < 2.0

    def test_deeply_nested_braces_fail_fast(self):
        started = time.perf_counter()
        with pytest.raises(MalformedResponse, match="could not be decoded"):
            extract_json_object("x" + "{" * 20_000 + "}" * 20_000)
        assert time.perf_counter() - started < 2.0


class TestNormalization:

    def test_unknown_screen_type_becomes_home(self, repairer):
        arch = repairer.repair(payload([{"id": "a", "name": "A", "type": "hologram"}]), "goal")
        assert arch.screens[0].type == ScreenType.HOME

    def test_screen_type_is_case_insensitive(self, repairer):
        arch = repairer.repair(payload([{"id": "a", "name": "A", "type": " AUTH "}]), "goal")
        assert arch.screens[0].type == ScreenType.AUTH

    def test_unknown_trigger_becomes_user_action(self, repairer):
        arch = repairer.repair(payload(
            [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}],
            [{"from": "a", "to": "b", "trigger": "telepathy"}],
        ), "goal")
        assert arch.transitions[0].trigger == TransitionTrigger.USER_ACTION

    def test_missing_and_duplicate_screen_ids_are_assigned(self, repairer):
        arch = repairer.repair(payload([
            {"name": "First"},
            {"id": "x", "name": "Second"},
            {"id": "x", "name": "Third"},
        ]), "goal")
        ids = [s.id for s in arch.screens]
        assert len(set(ids)) == 3
        assert ids[1] == "x"

    def test_app_metadata(self, repairer):
        arch = repairer.repair(payload(
            [{"id": "a", "name": "A"}],
            appName="Recipe Box",
            complexity="Complex",
        ), "Store my recipes")
        assert arch.name == "Recipe Box"
        assert arch.description == "Store my recipes"
        assert arch.metadata.complexity == ComplexityLevel.COMPLEX
        assert arch.id.startswith("app_")

    def test_missing_name_defaults(self, repairer):
        arch = repairer.repair(payload([{"id": "a", "name": "A"}]), "goal")
        assert arch.name == "Generated App"

    def test_user_motivation_becomes_condition(self, repairer):
        arch = repairer.repair(payload(
            [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}],
            [{"from": "a", "to": "b", "userMotivation": "wants details"}],
        ), "goal")
        assert arch.transitions[0].condition == "wants details"

    def test_no_screens_is_malformed(self, repairer):
        with pytest.raises(MalformedResponse):
            repairer.repair('{"screens": []}', "goal")
        with pytest.raises(MalformedResponse):
            repairer.repair('{"screens": ["just a string"]}', "goal")


class TestReferentialRepair:

    def test_transition_by_screen_name_is_resolved(self, repairer):
        arch = repairer.repair(payload(
            [{"id": "s1", "name": "Login"}, {"id": "s2", "name": "Home"}],
            [{"from": "Login", "to": "Home"}],
        ), "goal")
        assert len(arch.transitions) == 1
        assert (arch.transitions[0].from_screen, arch.transitions[0].to_screen) == ("s1", "s2")

    def test_dangling_transition_is_dropped_and_nothing_else(self, repairer):
        arch = repairer.repair(payload(
            [{"id": "s1", "name": "Login"}, {"id": "s2", "name": "Home"}],
            [
                {"id": "keep", "from": "s1", "to": "s2"},
                {"id": "gone", "from": "s2", "to": "Ghost Screen"},
            ],
        ), "goal")
        assert [t.id for t in arch.transitions] == ["keep"]
        assert repairer.stats['dropped_transitions'] == 1

    def test_generated_id_does_not_capture_a_later_explicit_id(self, repairer):
        arch = repairer.repair(payload(
            [{"name": "Login"}, {"id": "screen_0", "name": "Home"}],
            [{"from": "Login", "to": "screen_0"}],
        ), "goal")
        names = {s.id: s.name for s in arch.screens}

        assert len(names) == 2
        assert names["screen_0"] == "Home"
        hops = [(names[t.from_screen], names[t.to_screen]) for t in arch.transitions]
        assert hops == [("Login", "Home")]

    def test_generated_transition_id_does_not_capture_a_later_explicit_id(self, repairer):
        arch = repairer.repair(payload(
            [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}],
            [
                {"from": "a", "to": "b"},
                {"id": "transition_0", "from": "b", "to": "a"},
            ],
        ), "goal")
        ids = [t.id for t in arch.transitions]

        assert len(set(ids)) == 2
        reserved = next(t for t in arch.transitions if t.id == "transition_0")
        assert reserved.from_screen == "b"


class TestConnectivityRepair:

    def test_orphan_gets_exactly_one_synthetic_transition(self, repairer):
        arch = repairer.repair(payload(
            [
                {"id": "a", "name": "A"},
                {"id": "b", "name": "B"},
                {"id": "c", "name": "Orphan"},
            ],
            [{"from": "a", "to": "b"}],
        ), "goal")

        assert len(arch.transitions) == 2
        synthetic = arch.transitions[-1]
        assert (synthetic.from_screen, synthetic.to_screen) == ("b", "c")
        assert synthetic.trigger == TransitionTrigger.NAVIGATION
        assert arch.reachable_from_entry() == {"a", "b", "c"}

    def test_no_transitions_chains_every_screen(self, repairer):
        arch = repairer.repair(payload([
            {"id": "a", "name": "A"},
            {"id": "b", "name": "B"},
            {"id": "c", "name": "C"},
        ]), "goal")
        assert arch.reachable_from_entry() == {"a", "b", "c"}

    def test_wrong_direction_is_made_reachable(self):
        screens = [Screen(id="a", name="A"), Screen(id="b", name="B"), Screen(id="c", name="C")]
        transitions = [
            Transition(id="t0", from_screen="a", to_screen="b"),
            Transition(id="t1", from_screen="c", to_screen="b"),
        ]

        repaired = repair_connectivity(screens, transitions)

        assert repaired[:2] == transitions
        assert len(repaired) == 3
        assert (repaired[2].from_screen, repaired[2].to_screen) == ("b", "c")

    def test_connected_graph_is_unchanged(self):
        screens = [Screen(id="a", name="A"), Screen(id="b", name="B")]
        transitions = [Transition(id="t0", from_screen="a", to_screen="b")]
        assert repair_connectivity(screens, transitions) == transitions

    def test_synthetic_ids_do_not_collide(self):
        screens = [Screen(id="a", name="A"), Screen(id="b", name="B"), Screen(id="c", name="C")]
        transitions = [Transition(id="transition_0", from_screen="a", to_screen="b")]

        repaired = repair_connectivity(screens, transitions)

        assert len({t.id for t in repaired}) == len(repaired)
