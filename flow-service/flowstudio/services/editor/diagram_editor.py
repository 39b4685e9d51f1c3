"""
Diagram Editor

Holds the live diagram after layout and applies user mutations to it.

History is an arena of immutable snapshots plus an index. Every committed
mutation appends the resulting node/edge state; undo and redo only move
the index. Anything past the index is discarded on the next commit, so
history is strictly linear.

Unmet preconditions (editing disabled, pan mode, unknown ids, too few
selected nodes) are no-ops logged at debug level. The editor never raises
for them because the UI disables those affordances anyway.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from flowstudio.config import settings
from flowstudio.models.schemas.architecture import (
    Architecture,
    Position,
    Screen,
    ScreenType,
    Transition,
    TransitionTrigger,
)
from flowstudio.models.schemas.diagram import (
    Diagram,
    DiagramEdge,
    DiagramNode,
    NodeKind,
)
from flowstudio.utils.datetime_utils import Clock, timestamp_ms, utc_now
from flowstudio.utils.logging import get_logger

logger = get_logger(__name__)


class ToolMode(str, Enum):
    """Pointer tool; structural edits only happen in SELECT"""
    SELECT = "select"
    PAN = "pan"


class AlignDirection(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class DistributeDirection(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class HistorySnapshot:
    """Full node/edge collection at one editor state"""
    nodes: Tuple[DiagramNode, ...]
    edges: Tuple[DiagramEdge, ...]
    action: str = "initial"


def _unique_id(base: str, taken: Set[str]) -> str:
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"


class DiagramEditor:
    """
    Interactive editing engine over one diagram.

    Operations:
    - move / end_drag: positional drags, committed once per drag
    - connect, delete_selected, duplicate, align, distribute
    - add_node, update_node, delete_edge, update_edge_label
    - undo / redo / jump_to over linear history
    - write_back: project edits onto the source architecture
    """

    def __init__(
        self,
        diagram: Diagram,
        editable: bool = True,
        clock: Clock = utc_now,
        duplicate_offset: Optional[float] = None,
        default_edge_label: Optional[str] = None
    ):
        self.clock = clock
        self.editable = editable
        self.tool = ToolMode.SELECT
        self.duplicate_offset = (
            settings.editor_duplicate_offset if duplicate_offset is None else duplicate_offset
        )
        self.default_edge_label = default_edge_label or settings.editor_default_edge_label

        self.nodes: Tuple[DiagramNode, ...] = tuple(diagram.nodes)
        self.edges: Tuple[DiagramEdge, ...] = tuple(diagram.edges)
        self.selected_nodes: Set[str] = set()
        self.selected_edges: Set[str] = set()

        self.history: List[HistorySnapshot] = [HistorySnapshot(self.nodes, self.edges)]
        self.history_index = 0

    # ------------------------------------------------------------------ #
    # Read access
    # ------------------------------------------------------------------ #

    def to_diagram(self) -> Diagram:
        return Diagram(nodes=self.nodes, edges=self.edges)

    def get_node(self, node_id: str) -> Optional[DiagramNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[DiagramEdge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    @property
    def can_undo(self) -> bool:
        return self.history_index > 0

    @property
    def can_redo(self) -> bool:
        return self.history_index < len(self.history) - 1

    # ------------------------------------------------------------------ #
    # Modes and selection (never recorded in history)
    # ------------------------------------------------------------------ #

    def set_tool(self, tool: ToolMode) -> None:
        self.tool = ToolMode(tool)

    def set_editable(self, editable: bool) -> None:
        self.editable = editable

    def select(self, node_ids: Iterable[str], additive: bool = False) -> None:
        known = {n.id for n in self.nodes}
        chosen = {node_id for node_id in node_ids if node_id in known}
        self.selected_nodes = (self.selected_nodes | chosen) if additive else chosen

    def select_edges(self, edge_ids: Iterable[str], additive: bool = False) -> None:
        known = {e.id for e in self.edges}
        chosen = {edge_id for edge_id in edge_ids if edge_id in known}
        self.selected_edges = (self.selected_edges | chosen) if additive else chosen

    def select_all(self) -> None:
        self.selected_nodes = {n.id for n in self.nodes}
        self.selected_edges = {e.id for e in self.edges}

    def clear_selection(self) -> None:
        self.selected_nodes = set()
        self.selected_edges = set()

    # ------------------------------------------------------------------ #
    # Positional edits
    # ------------------------------------------------------------------ #

    def move(self, node_id: str, position: Position) -> bool:
        """Update one node's position without recording history"""
        if not self.editable:
            return self._ignored("move", reason="not_editable")
        if self.get_node(node_id) is None:
            return self._ignored("move", reason="unknown_node", node_id=node_id)

        self.nodes = tuple(
            node.moved_to(position) if node.id == node_id else node
            for node in self.nodes
        )
        return True

    def end_drag(self) -> bool:
        """Commit the moves made since the last snapshot as one entry"""
        if self.nodes == self.history[self.history_index].nodes:
            return False
        self._commit("move")
        return True

    # ------------------------------------------------------------------ #
    # Structural edits
    # ------------------------------------------------------------------ #

    def connect(self, source_id: str, target_id: str, label: Optional[str] = None) -> Optional[DiagramEdge]:
        if not self._can_edit("connect"):
            return None
        if self.get_node(source_id) is None or self.get_node(target_id) is None:
            self._ignored("connect", reason="unknown_node", source=source_id, target=target_id)
            return None
        if any(e.source == source_id and e.target == target_id for e in self.edges):
            self._ignored("connect", reason="already_connected", source=source_id, target=target_id)
            return None

        edge = DiagramEdge(
            id=_unique_id(f"edge_{timestamp_ms(self.clock)}", {e.id for e in self.edges}),
            source=source_id,
            target=target_id,
            label=label or self.default_edge_label,
        )
        self.edges = self.edges + (edge,)
        self._commit("connect")
        return edge

    def delete_selected(self) -> bool:
        """Remove selected nodes, every incident edge and selected edges in one step"""
        if not self._can_edit("delete_selected"):
            return False
        if not self.selected_nodes and not self.selected_edges:
            return self._ignored("delete_selected", reason="empty_selection")

        doomed = self.selected_nodes
        self.nodes = tuple(n for n in self.nodes if n.id not in doomed)
        self.edges = tuple(
            e for e in self.edges
            if e.id not in self.selected_edges and e.source not in doomed and e.target not in doomed
        )
        self.clear_selection()
        self._commit("delete")
        return True

    def delete_edge(self, edge_id: str) -> bool:
        if not self._can_edit("delete_edge"):
            return False
        if self.get_edge(edge_id) is None:
            return self._ignored("delete_edge", reason="unknown_edge", edge_id=edge_id)

        self.edges = tuple(e for e in self.edges if e.id != edge_id)
        self.selected_edges.discard(edge_id)
        self._commit("delete_edge")
        return True

    def duplicate(self, node_id: str) -> Optional[DiagramNode]:
        """Clone a node at an offset; incident edges are not copied"""
        if not self._can_edit("duplicate"):
            return None
        original = self.get_node(node_id)
        if original is None:
            self._ignored("duplicate", reason="unknown_node", node_id=node_id)
            return None
        if original.type == NodeKind.START:
            self._ignored("duplicate", reason="start_node", node_id=node_id)
            return None

        taken = {n.id for n in self.nodes}
        copy_number = 1
        while f"{node_id}-copy-{copy_number}" in taken:
            copy_number += 1

        clone = DiagramNode(
            id=f"{node_id}-copy-{copy_number}",
            type=original.type,
            position=Position(
                x=original.position.x + self.duplicate_offset,
                y=original.position.y + self.duplicate_offset,
            ),
            data={**original.data, "label": f"{original.label} (Copy)"},
        )
        self.nodes = self.nodes + (clone,)
        self._commit("duplicate")
        return clone

    def add_node(
        self,
        name: str,
        screen_type: ScreenType = ScreenType.HOME,
        position: Optional[Position] = None,
        description: str = "",
        requires_auth: bool = False
    ) -> Optional[DiagramNode]:
        if not self._can_edit("add_node"):
            return None

        node = DiagramNode(
            id=_unique_id(f"screen_{timestamp_ms(self.clock)}", {n.id for n in self.nodes}),
            type=NodeKind.SCREEN,
            position=position or Position(),
            data={
                "label": name,
                "description": description,
                "screenType": ScreenType(screen_type).value,
                "requiresAuth": requires_auth,
            },
        )
        self.nodes = self.nodes + (node,)
        self._commit("add_node")
        return node

    def update_node(
        self,
        node_id: str,
        name: Optional[str] = None,
        screen_type: Optional[ScreenType] = None,
        description: Optional[str] = None,
        requires_auth: Optional[bool] = None
    ) -> bool:
        """Rename, retype, redescribe or toggle auth on a node"""
        if not self._can_edit("update_node"):
            return False
        node = self.get_node(node_id)
        if node is None:
            return self._ignored("update_node", reason="unknown_node", node_id=node_id)

        changes: Dict[str, Any] = {}
        if name is not None:
            changes["label"] = name
        if screen_type is not None:
            changes["screenType"] = ScreenType(screen_type).value
        if description is not None:
            changes["description"] = description
        if requires_auth is not None:
            changes["requiresAuth"] = requires_auth

        if not changes:
            return self._ignored("update_node", reason="no_changes", node_id=node_id)

        updated = node.with_data(**changes)
        self.nodes = tuple(updated if n.id == node_id else n for n in self.nodes)
        self._commit("update_node")
        return True

    def update_edge_label(self, edge_id: str, label: str) -> bool:
        if not self._can_edit("update_edge_label"):
            return False
        if self.get_edge(edge_id) is None:
            return self._ignored("update_edge_label", reason="unknown_edge", edge_id=edge_id)

        self.edges = tuple(
            e.model_copy(update={"label": label}) if e.id == edge_id else e
            for e in self.edges
        )
        self._commit("update_edge_label")
        return True

    def align(self, direction: AlignDirection) -> bool:
        """Give all selected nodes one shared x coordinate"""
        if not self._can_edit("align"):
            return False
        selected = self._selected_node_list()
        if len(selected) < 2:
            return self._ignored("align", reason="needs_two_nodes", selected=len(selected))

        xs = [n.position.x for n in selected]
        direction = AlignDirection(direction)
        if direction == AlignDirection.LEFT:
            target_x = min(xs)
        elif direction == AlignDirection.RIGHT:
            target_x = max(xs)
        else:
            target_x = (min(xs) + max(xs)) / 2

        moved = {n.id: n.moved_to(Position(x=target_x, y=n.position.y)) for n in selected}
        self.nodes = tuple(moved.get(n.id, n) for n in self.nodes)
        self._commit(f"align_{direction.value}")
        return True

    def distribute(self, direction: DistributeDirection) -> bool:
        """Space selected nodes evenly between the two extreme members"""
        if not self._can_edit("distribute"):
            return False
        selected = self._selected_node_list()
        if len(selected) < 3:
            return self._ignored("distribute", reason="needs_three_nodes", selected=len(selected))

        horizontal = DistributeDirection(direction) == DistributeDirection.HORIZONTAL

        def axis(node: DiagramNode) -> float:
            return node.position.x if horizontal else node.position.y

        ordered = sorted(selected, key=axis)
        first, last = axis(ordered[0]), axis(ordered[-1])
        spacing = (last - first) / (len(ordered) - 1)

        moved: Dict[str, DiagramNode] = {}
        for index, node in enumerate(ordered[1:-1], start=1):
            value = first + index * spacing
            if horizontal:
                moved[node.id] = node.moved_to(Position(x=value, y=node.position.y))
            else:
                moved[node.id] = node.moved_to(Position(x=node.position.x, y=value))

        self.nodes = tuple(moved.get(n.id, n) for n in self.nodes)
        self._commit(f"distribute_{'horizontal' if horizontal else 'vertical'}")
        return True

    # ------------------------------------------------------------------ #
    # History
    # ------------------------------------------------------------------ #

    def undo(self) -> bool:
        """
        Step back one entry.

        Moves not yet closed by ``end_drag`` are committed first, so undo
        reverts the drag instead of dropping it.
        """
        self.end_drag()
        if not self.can_undo:
            return False
        self._restore(self.history_index - 1)
        return True

    def redo(self) -> bool:
        """A pending drag is committed first and, like any edit, clears the redo branch"""
        self.end_drag()
        if not self.can_redo:
            return False
        self._restore(self.history_index + 1)
        return True

    def jump_to(self, index: int) -> bool:
        self.end_drag()
        if not 0 <= index < len(self.history):
            return self._ignored("jump_to", reason="out_of_range", index=index)
        self._restore(index)
        return True

    # ------------------------------------------------------------------ #
    # Architecture write-back
    # ------------------------------------------------------------------ #

    def write_back(self, architecture: Architecture) -> Architecture:
        """
        Project the edited diagram onto ``architecture``.

        Positions, names, types, descriptions and auth flags flow back to
        screens. Screens whose node was deleted disappear together with
        every incident transition. New screen nodes become screens and
        new edges between screens become user-action transitions.
        """
        screen_nodes = [n for n in self.nodes if n.type == NodeKind.SCREEN]
        existing = {s.id: s for s in architecture.screens}

        screens: List[Screen] = []
        for node in screen_nodes:
            data = node.data
            base = existing.get(node.id)
            screens.append(Screen(
                id=node.id,
                name=str(data.get("label") or (base.name if base else node.id)),
                type=self._screen_type(data.get("screenType"), base),
                description=str(data.get("description", base.description if base else "")),
                components=list(base.components) if base else [],
                requires_auth=bool(data.get("requiresAuth", base.requires_auth if base else False)),
                form_fields=list(base.form_fields) if base else [],
                user_intent=base.user_intent if base else None,
                navigation_pattern=base.navigation_pattern if base else None,
                position=node.position,
            ))

        kept = {s.id for s in screens}
        transitions = [
            t for t in architecture.transitions
            if t.from_screen in kept and t.to_screen in kept
        ]

        pairs = {(t.from_screen, t.to_screen) for t in transitions}
        taken = {t.id for t in transitions}
        for edge in self.edges:
            if edge.source not in kept or edge.target not in kept:
                continue
            if (edge.source, edge.target) in pairs:
                continue
            transition_id = _unique_id(f"transition_{edge.id}", taken)
            taken.add(transition_id)
            pairs.add((edge.source, edge.target))
            transitions.append(Transition(
                id=transition_id,
                from_screen=edge.source,
                to_screen=edge.target,
                trigger=TransitionTrigger.USER_ACTION,
                description=edge.label or self.default_edge_label,
            ))

        metadata = architecture.metadata.model_copy(update={
            "updated_at": self.clock(),
            "estimated_screens": len(screens),
        })

        dropped = len(architecture.screens) - len([s for s in screens if s.id in existing])
        logger.info(
            "editor.write_back.completed",
            extra={
                "screens": len(screens),
                "transitions": len(transitions),
                "screens_removed": dropped
            }
        )

        return Architecture(
            id=architecture.id,
            name=architecture.name,
            description=architecture.description,
            screens=screens,
            transitions=transitions,
            metadata=metadata,
        )

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _screen_type(self, raw: Any, base: Optional[Screen]) -> ScreenType:
        try:
            return ScreenType(raw)
        except ValueError:
            return base.type if base else ScreenType.HOME

    def _selected_node_list(self) -> List[DiagramNode]:
        return [n for n in self.nodes if n.id in self.selected_nodes]

    def _can_edit(self, operation: str) -> bool:
        if not self.editable:
            return self._ignored(operation, reason="not_editable")
        if self.tool != ToolMode.SELECT:
            return self._ignored(operation, reason="pan_mode")
        return True

    def _ignored(self, operation: str, reason: str, **details: Any) -> bool:
        logger.debug(
            f"editor.{operation}.ignored",
            extra={"reason": reason, **details}
        )
        return False

    def _commit(self, action: str) -> None:
        del self.history[self.history_index + 1:]
        self.history.append(HistorySnapshot(self.nodes, self.edges, action))
        self.history_index = len(self.history) - 1

        logger.debug(
            "editor.history.committed",
            extra={
                "action": action,
                "history_index": self.history_index,
                "nodes": len(self.nodes),
                "edges": len(self.edges)
            }
        )

    def _restore(self, index: int) -> None:
        snapshot = self.history[index]
        self.history_index = index
        self.nodes = snapshot.nodes
        self.edges = snapshot.edges

        node_ids = {n.id for n in self.nodes}
        edge_ids = {e.id for e in self.edges}
        self.selected_nodes &= node_ids
        self.selected_edges &= edge_ids


__all__ = [
    'ToolMode',
    'AlignDirection',
    'DistributeDirection',
    'HistorySnapshot',
    'DiagramEditor',
]
