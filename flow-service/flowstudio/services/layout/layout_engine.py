"""
Layout Engine

Stage-based placement of an architecture's screens on a 2-D canvas.

This is a heuristic tuned for the app-flow screen vocabulary, not a
general graph layout (no force direction, no crossing minimization). It
produces a legible, deterministic diagram: the same architecture always
yields the same node positions and edge set.
"""
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from flowstudio.models.schemas.architecture import Architecture, Position, Screen, ScreenType, Transition
from flowstudio.models.schemas.diagram import (
    START_NODE_ID,
    Diagram,
    DiagramEdge,
    DiagramNode,
    NodeKind,
)
from flowstudio.utils.logging import get_logger, trace_sync

logger = get_logger(__name__)


# ============================================================================
# CONSTANTS
# ============================================================================

START_X = 400
STEP_SPACING = 500
BRANCH_SPACING = 300
BASE_Y = 250
START_NODE_OFFSET = 300


class FlowStage(IntEnum):
    """Ordered horizontal buckets of screen types"""
    LAUNCH = 0
    AUTH = 1
    ONBOARDING = 2
    HOME = 3
    PRIMARY = 4
    SECONDARY = 5
    ACCOUNT = 6
    SUPPORT = 7


STAGE_BY_TYPE: Dict[ScreenType, FlowStage] = {
    ScreenType.LOADING: FlowStage.LAUNCH,

    ScreenType.AUTH: FlowStage.AUTH,
    ScreenType.VERIFICATION: FlowStage.AUTH,

    ScreenType.ONBOARDING: FlowStage.ONBOARDING,
    ScreenType.TUTORIAL: FlowStage.ONBOARDING,

    ScreenType.DASHBOARD: FlowStage.HOME,
    ScreenType.HOME: FlowStage.HOME,
    ScreenType.TAB_BAR: FlowStage.HOME,
    ScreenType.DRAWER: FlowStage.HOME,

    ScreenType.LIST: FlowStage.PRIMARY,
    ScreenType.GRID: FlowStage.PRIMARY,
    ScreenType.FEED: FlowStage.PRIMARY,
    ScreenType.SEARCH: FlowStage.PRIMARY,
    ScreenType.CHAT: FlowStage.PRIMARY,
    ScreenType.GALLERY: FlowStage.PRIMARY,
    ScreenType.MAP: FlowStage.PRIMARY,
    ScreenType.CALENDAR: FlowStage.PRIMARY,
    ScreenType.NOTIFICATIONS: FlowStage.PRIMARY,
    ScreenType.CART: FlowStage.PRIMARY,
    ScreenType.ANALYTICS: FlowStage.PRIMARY,
    ScreenType.REPORTS: FlowStage.PRIMARY,

    ScreenType.DETAIL: FlowStage.SECONDARY,
    ScreenType.FORM: FlowStage.SECONDARY,
    ScreenType.FILTER: FlowStage.SECONDARY,
    ScreenType.MEDIA_VIEWER: FlowStage.SECONDARY,
    ScreenType.CAMERA: FlowStage.SECONDARY,
    ScreenType.CHECKOUT: FlowStage.SECONDARY,
    ScreenType.PAYMENT: FlowStage.SECONDARY,
    ScreenType.ORDER_HISTORY: FlowStage.SECONDARY,
    ScreenType.MODAL: FlowStage.SECONDARY,
    ScreenType.BOTTOM_SHEET: FlowStage.SECONDARY,

    ScreenType.PROFILE: FlowStage.ACCOUNT,
    ScreenType.SETTINGS: FlowStage.ACCOUNT,
    ScreenType.PREFERENCES: FlowStage.ACCOUNT,
    ScreenType.ACCOUNT: FlowStage.ACCOUNT,
    ScreenType.HELP: FlowStage.ACCOUNT,

    ScreenType.ERROR: FlowStage.SUPPORT,
    ScreenType.EMPTY_STATE: FlowStage.SUPPORT,
}

# Stages laid out left to right on the base row
MAIN_LINE = (
    FlowStage.LAUNCH,
    FlowStage.AUTH,
    FlowStage.ONBOARDING,
    FlowStage.HOME,
    FlowStage.PRIMARY,
    FlowStage.ACCOUNT,
)

# Stage pairs always drawn when a transition connects them
ESSENTIAL_PAIRS = {
    (FlowStage.LAUNCH, FlowStage.AUTH),
    (FlowStage.LAUNCH, FlowStage.ONBOARDING),
    (FlowStage.AUTH, FlowStage.ONBOARDING),
    (FlowStage.AUTH, FlowStage.HOME),
    (FlowStage.ONBOARDING, FlowStage.HOME),
    (FlowStage.HOME, FlowStage.PRIMARY),
    (FlowStage.PRIMARY, FlowStage.SECONDARY),
}

PAIR_LABELS: Dict[Tuple[FlowStage, FlowStage], str] = {
    (FlowStage.LAUNCH, FlowStage.ONBOARDING): "Get Started",
    (FlowStage.AUTH, FlowStage.ONBOARDING): "Get Started",
    (FlowStage.AUTH, FlowStage.HOME): "Continue",
    (FlowStage.ONBOARDING, FlowStage.HOME): "Enter App",
    (FlowStage.HOME, FlowStage.PRIMARY): "View Items",
}

DEFAULT_EDGE_LABEL = "Continue"
START_EDGE_LABEL = "App Launch"


def classify_stages(screens: List[Screen]) -> Dict[str, FlowStage]:
    """
    Map each screen id to its flow stage.

    Only the first loading screen is the launch screen; later loading
    screens and unknown types land in SUPPORT.
    """
    stages: Dict[str, FlowStage] = {}
    launch_taken = False

    for screen in screens:
        stage = STAGE_BY_TYPE.get(screen.type, FlowStage.SUPPORT)
        if stage == FlowStage.LAUNCH:
            if launch_taken:
                stage = FlowStage.SUPPORT
            launch_taken = True
        stages[screen.id] = stage

    return stages


class LayoutEngine:
    """
    Layout passes:
    1. Classify screens into flow stages
    2. Place main-line stages left to right, fanning shared stages vertically
    3. Place SECONDARY screens on a row below, starting under PRIMARY
    4. Place the synthetic start node left of the first populated stage
    5. Select edges conservatively and label them by stage pair
    """

    def __init__(self):
        self.stats = {
            'layouts_computed': 0,
            'edges_omitted': 0
        }

    @trace_sync("layout.compute")
    def layout(self, architecture: Architecture) -> Diagram:
        self.stats['layouts_computed'] += 1

        stages = classify_stages(architecture.screens)
        positions, first_x = self._place(architecture.screens, stages)

        nodes: List[DiagramNode] = [
            DiagramNode(
                id=START_NODE_ID,
                type=NodeKind.START,
                position=Position(x=first_x - START_NODE_OFFSET, y=BASE_Y),
                data={"label": "Start"},
            )
        ]

        for screen in architecture.screens:
            nodes.append(DiagramNode(
                id=screen.id,
                type=NodeKind.SCREEN,
                position=screen.position or positions[screen.id],
                data={
                    "label": screen.name,
                    "description": screen.description,
                    "screenType": screen.type.value,
                    "requiresAuth": screen.requires_auth,
                },
            ))

        edges = self._select_edges(architecture, stages)

        logger.debug(
            "layout.compute.summary",
            extra={
                "nodes": len(nodes),
                "edges": len(edges),
                "transitions": len(architecture.transitions)
            }
        )
        return Diagram(nodes=tuple(nodes), edges=tuple(edges))

    # ------------------------------------------------------------------ #
    # Placement
    # ------------------------------------------------------------------ #

    def _place(
        self,
        screens: List[Screen],
        stages: Dict[str, FlowStage]
    ) -> Tuple[Dict[str, Position], float]:
        members: Dict[FlowStage, List[Screen]] = {stage: [] for stage in FlowStage}
        for screen in screens:
            members[stages[screen.id]].append(screen)

        positions: Dict[str, Position] = {}
        stage_x: Dict[FlowStage, float] = {}
        current_x = START_X

        for stage in FlowStage:
            group = members[stage]
            if not group:
                continue

            if stage == FlowStage.SECONDARY:
                sub_x = stage_x.get(FlowStage.PRIMARY, current_x)
                stage_x[stage] = sub_x
                for screen in group:
                    positions[screen.id] = Position(x=sub_x, y=BASE_Y + BRANCH_SPACING)
                    sub_x += STEP_SPACING
                current_x = max(current_x, sub_x)
                continue

            stage_x[stage] = current_x
            count = len(group)
            for index, screen in enumerate(group):
                offset = (index - (count - 1) / 2) * BRANCH_SPACING
                positions[screen.id] = Position(x=current_x, y=BASE_Y + offset)
            current_x += STEP_SPACING

        first_x = min(stage_x.values()) if stage_x else START_X
        return positions, first_x

    # ------------------------------------------------------------------ #
    # Edges
    # ------------------------------------------------------------------ #

    def _entry_screen(self, architecture: Architecture, stages: Dict[str, FlowStage]) -> Optional[Screen]:
        for stage in (FlowStage.LAUNCH, FlowStage.AUTH, FlowStage.ONBOARDING, FlowStage.HOME):
            for screen in architecture.screens:
                if stages[screen.id] == stage:
                    return screen
        return architecture.entry_screen

    def _next_main_stage(self, stage: FlowStage, populated: set) -> Optional[FlowStage]:
        if stage not in MAIN_LINE:
            return None
        for candidate in MAIN_LINE[MAIN_LINE.index(stage) + 1:]:
            if candidate in populated:
                return candidate
        return None

    def _select_edges(self, architecture: Architecture, stages: Dict[str, FlowStage]) -> List[DiagramEdge]:
        edges: List[DiagramEdge] = []
        added = set()

        entry = self._entry_screen(architecture, stages)
        if entry is not None:
            edge_id = f"{START_NODE_ID}-to-{entry.id}"
            edges.append(DiagramEdge(
                id=edge_id,
                source=START_NODE_ID,
                target=entry.id,
                label=START_EDGE_LABEL,
            ))
            added.add(edge_id)

        populated = set(stages.values())
        screens_by_id = {s.id: s for s in architecture.screens}

        for transition in architecture.transitions:
            if transition.is_self_loop:
                self.stats['edges_omitted'] += 1
                continue

            source_stage = stages[transition.from_screen]
            target_stage = stages[transition.to_screen]
            pair = (source_stage, target_stage)

            drawn = pair in ESSENTIAL_PAIRS or target_stage == self._next_main_stage(source_stage, populated)
            if not drawn:
                self.stats['edges_omitted'] += 1
                continue

            edge_id = f"{transition.from_screen}-to-{transition.to_screen}"
            if edge_id in added:
                continue
            added.add(edge_id)

            edges.append(DiagramEdge(
                id=edge_id,
                source=transition.from_screen,
                target=transition.to_screen,
                label=self._label(pair, screens_by_id[transition.to_screen]),
                data=self._edge_data(transition),
            ))

        return edges

    def _label(self, pair: Tuple[FlowStage, FlowStage], target: Screen) -> str:
        if pair == (FlowStage.LAUNCH, FlowStage.AUTH):
            return "Login" if "login" in target.name.lower() else "Sign Up"
        if pair == (FlowStage.PRIMARY, FlowStage.SECONDARY):
            if target.type == ScreenType.DETAIL:
                return "View Details"
            if target.type == ScreenType.FORM:
                return "Add New"
            return "Open"
        return PAIR_LABELS.get(pair, DEFAULT_EDGE_LABEL)

    def _edge_data(self, transition: Transition) -> Dict[str, str]:
        data = {"trigger": transition.trigger.value}
        if transition.condition:
            data["condition"] = transition.condition
        return data

    def get_statistics(self) -> Dict[str, int]:
        return dict(self.stats)


# Global layout engine instance
layout_engine = LayoutEngine()

__all__ = [
    'FlowStage',
    'LayoutEngine',
    'classify_stages',
    'layout_engine',
    'START_X',
    'STEP_SPACING',
    'BRANCH_SPACING',
    'BASE_Y',
]
