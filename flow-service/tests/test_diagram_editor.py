"""
Diagram editor: mutations, gating and linear undo/redo history.
"""
import pytest

from flowstudio.models.schemas.architecture import Position, ScreenType
from flowstudio.models.schemas.diagram import START_NODE_ID, Diagram, DiagramEdge, DiagramNode, NodeKind
from flowstudio.services.editor import AlignDirection, DiagramEditor, DistributeDirection, ToolMode
from flowstudio.services.layout import LayoutEngine


def node(node_id, x=0.0, y=0.0, kind=NodeKind.SCREEN):
    return DiagramNode(id=node_id, type=kind, position=Position(x=x, y=y), data={"label": node_id.upper()})


@pytest.fixture
def editor(clock):
    diagram = Diagram(
        nodes=(
            node(START_NODE_ID, 0, 0, NodeKind.START),
            node("a", 50, 10),
            node("b", 200, 20),
            node("c", 10, 30),
        ),
        edges=(
            DiagramEdge(id="start-to-a", source=START_NODE_ID, target="a"),
            DiagramEdge(id="a-to-b", source="a", target="b"),
        ),
    )
    return DiagramEditor(diagram, clock=clock)


def xs(editor, *ids):
    return [editor.get_node(i).position.x for i in ids]


class TestAlignAndDistribute:

    def test_align_left(self, editor):
        editor.select(["a", "b", "c"])
        assert editor.align(AlignDirection.LEFT)
        assert xs(editor, "a", "b", "c") == [10, 10, 10]

    def test_align_right_and_center(self, editor):
        editor.select(["a", "b", "c"])
        editor.align(AlignDirection.RIGHT)
        assert xs(editor, "a", "b", "c") == [200, 200, 200]

        editor.undo()
        editor.align(AlignDirection.CENTER)
        assert xs(editor, "a", "b", "c") == [105, 105, 105]

    def test_align_keeps_y(self, editor):
        editor.select(["a", "b"])
        editor.align("left")
        assert [editor.get_node(i).position.y for i in ("a", "b")] == [10, 20]

    def test_align_needs_two_nodes(self, editor):
        editor.select(["a"])
        assert not editor.align(AlignDirection.LEFT)
        assert len(editor.history) == 1

    def test_distribute_horizontal(self, clock):
        editor = DiagramEditor(Diagram(nodes=(node("x", 0), node("y", 100), node("z", 500))), clock=clock)
        editor.select_all()

        assert editor.distribute(DistributeDirection.HORIZONTAL)
        assert xs(editor, "x", "y", "z") == [0, 250, 500]

    def test_distribute_vertical_sorts_by_axis(self, clock):
        editor = DiagramEditor(
            Diagram(nodes=(node("top", y=0), node("bottom", y=90), node("m1", y=80), node("m2", y=5))),
            clock=clock,
        )
        editor.select_all()
        editor.distribute(DistributeDirection.VERTICAL)

        ys = {n.id: n.position.y for n in editor.nodes}
        assert ys == {"top": 0, "m2": 30, "m1": 60, "bottom": 90}

    def test_distribute_needs_three_nodes(self, editor):
        editor.select(["a", "b"])
        assert not editor.distribute(DistributeDirection.HORIZONTAL)


class TestStructuralEdits:

    def test_delete_node_removes_incident_edges_in_one_step(self, editor):
        editor.connect("b", "c")
        before_nodes, before_edges = editor.nodes, editor.edges
        history_length = len(editor.history)

        editor.select(["a"])
        assert editor.delete_selected()

        assert editor.get_node("a") is None
        assert [(e.source, e.target) for e in editor.edges] == [("b", "c")]
        assert [n.id for n in editor.nodes] == [START_NODE_ID, "b", "c"]
        assert len(editor.history) == history_length + 1
        assert editor.selected_nodes == set()

        editor.undo()
        assert (editor.nodes, editor.edges) == (before_nodes, before_edges)

    def test_delete_selected_edges_only(self, editor):
        editor.select_edges(["a-to-b"])
        editor.delete_selected()
        assert [e.id for e in editor.edges] == ["start-to-a"]
        assert len(editor.nodes) == 4

    def test_connect_uses_default_label_and_unique_ids(self, editor):
        first = editor.connect("b", "c")
        second = editor.connect("c", "b")

        assert first.label == "Action"
        assert first.id != second.id
        assert first.id.startswith("edge_")

    def test_connect_rejects_duplicates_and_unknown_nodes(self, editor):
        assert editor.connect("a", "b") is None
        assert editor.connect("a", "nope") is None
        assert len(editor.history) == 1

    def test_duplicate(self, editor):
        clone = editor.duplicate("a")

        assert clone.id == "a-copy-1"
        assert clone.position == Position(x=100, y=60)
        assert clone.data["label"] == "A (Copy)"
        assert not any(e.touches("a-copy-1") for e in editor.edges)
        assert editor.duplicate("a").id == "a-copy-2"

    def test_start_node_cannot_be_duplicated(self, editor):
        assert editor.duplicate(START_NODE_ID) is None

    def test_add_and_update_node(self, editor):
        added = editor.add_node("Search", ScreenType.SEARCH, Position(x=5, y=5))
        assert added.data["screenType"] == "search"

        assert editor.update_node(added.id, name="Find", requires_auth=True)
        updated = editor.get_node(added.id)
        assert updated.data["label"] == "Find"
        assert updated.data["requiresAuth"] is True

    def test_update_edge_label_and_delete_edge(self, editor):
        assert editor.update_edge_label("a-to-b", "Open")
        assert editor.get_edge("a-to-b").label == "Open"

        assert editor.delete_edge("a-to-b")
        assert editor.get_edge("a-to-b") is None
        assert not editor.delete_edge("a-to-b")


class TestGating:

    def test_not_editable_blocks_everything(self, editor):
        editor.set_editable(False)
        editor.select(["a", "b"])

        assert editor.connect("b", "c") is None
        assert not editor.delete_selected()
        assert editor.duplicate("a") is None
        assert not editor.align(AlignDirection.LEFT)
        assert not editor.move("a", Position(x=1, y=1))
        assert len(editor.history) == 1

    def test_pan_mode_blocks_structural_edits(self, editor):
        editor.set_tool(ToolMode.PAN)
        editor.select(["a", "b", "c"])

        assert editor.connect("b", "c") is None
        assert not editor.distribute(DistributeDirection.HORIZONTAL)
        assert not editor.delete_selected()

        editor.set_tool(ToolMode.SELECT)
        assert editor.delete_selected()

    def test_selection_records_no_history(self, editor):
        editor.select_all()
        editor.clear_selection()
        editor.select(["a", "missing"])

        assert editor.selected_nodes == {"a"}
        assert len(editor.history) == 1


class TestHistory:

    def test_moves_commit_once_per_drag(self, editor):
        editor.move("a", Position(x=60, y=10))
        editor.move("a", Position(x=70, y=10))
        editor.move("a", Position(x=80, y=10))
        assert len(editor.history) == 1

        assert editor.end_drag()
        assert len(editor.history) == 2
        assert not editor.end_drag()

        editor.undo()
        assert editor.get_node("a").position.x == 50

    def test_undo_reverts_an_unfinished_drag(self, editor):
        editor.move("a", Position(x=90, y=10))

        assert editor.undo()
        assert editor.get_node("a").position.x == 50

        assert editor.redo()
        assert editor.get_node("a").position.x == 90

    def test_redo_keeps_an_unfinished_drag(self, editor):
        editor.connect("b", "c")
        editor.undo()
        editor.move("a", Position(x=90, y=10))

        assert not editor.redo()
        assert editor.get_node("a").position.x == 90
        assert [s.action for s in editor.history] == ["initial", "move"]

    def test_snapshots_cannot_be_changed_through_node_data(self, editor):
        editor.update_node("a", name="Renamed")
        snapshot = editor.history[0].nodes[1]

        with pytest.raises(TypeError):
            snapshot.data["label"] = "X"
        with pytest.raises(TypeError):
            editor.get_node("a").data["label"] = "X"

        editor.undo()
        assert editor.get_node("a").label == "A"

    def test_k_undos_and_redos(self, editor):
        initial = (editor.nodes, editor.edges)

        editor.connect("b", "c")
        editor.duplicate("b")
        editor.select(["a", "b", "c"])
        editor.align(AlignDirection.RIGHT)
        editor.select(["c"])
        editor.delete_selected()
        final = (editor.nodes, editor.edges)

        for _ in range(4):
            assert editor.undo()
        assert (editor.nodes, editor.edges) == initial
        assert not editor.undo()

        for _ in range(4):
            assert editor.redo()
        assert (editor.nodes, editor.edges) == final
        assert not editor.redo()

    def test_new_mutation_discards_redo_branch(self, editor):
        editor.connect("b", "c")
        editor.duplicate("a")
        editor.undo()
        assert editor.can_redo

        editor.duplicate("b")

        assert not editor.can_redo
        assert editor.get_node("a-copy-1") is None
        assert [s.action for s in editor.history] == ["initial", "connect", "duplicate"]

    def test_jump_to(self, editor):
        editor.connect("b", "c")
        editor.duplicate("a")

        assert editor.jump_to(0)
        assert len(editor.edges) == 2
        assert editor.jump_to(2)
        assert editor.get_node("a-copy-1") is not None
        assert not editor.jump_to(7)

    def test_undo_prunes_selection(self, editor):
        clone = editor.duplicate("a")
        editor.select([clone.id, "a"])
        editor.undo()
        assert editor.selected_nodes == {"a"}


class TestWriteBack:

    def test_edits_flow_back_to_architecture(self, small_architecture, clock):
        editor = DiagramEditor(LayoutEngine().layout(small_architecture), clock=clock)

        editor.move("home", Position(x=1, y=2))
        editor.end_drag()
        editor.update_node("items", name="Products", screen_type=ScreenType.GRID)
        editor.select(["item_detail"])
        editor.delete_selected()

        updated = editor.write_back(small_architecture)

        assert [s.id for s in updated.screens] == ["login", "home", "items"]
        assert updated.get_screen("home").position == Position(x=1, y=2)
        assert updated.get_screen("items").name == "Products"
        assert updated.get_screen("items").type == ScreenType.GRID
        assert all("item_detail" not in (t.from_screen, t.to_screen) for t in updated.transitions)
        assert updated.metadata.estimated_screens == 3

    def test_new_nodes_and_edges_become_screens_and_transitions(self, small_architecture, clock):
        editor = DiagramEditor(LayoutEngine().layout(small_architecture), clock=clock)

        added = editor.add_node("Search", ScreenType.SEARCH)
        editor.connect("home", added.id, label="Find things")

        updated = editor.write_back(small_architecture)

        assert updated.get_screen(added.id).type == ScreenType.SEARCH
        new_transition = updated.transitions[-1]
        assert (new_transition.from_screen, new_transition.to_screen) == ("home", added.id)
        assert new_transition.description == "Find things"
        assert len(updated.transitions) == len(small_architecture.transitions) + 1
