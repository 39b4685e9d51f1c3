"""
Schema package: architecture graph, diagram projection, thinking, clarifying questions and wireframes.
"""

from .architecture import (
    ScreenType,
    TransitionTrigger,
    ComplexityLevel,
    NavigationPattern,
    CamelModel,
    Position,
    FormField,
    Screen,
    Transition,
    ArchitectureMetadata,
    Architecture,
    reachable_ids,
)

from .diagram import (
    START_NODE_ID,
    NodeKind,
    DiagramNode,
    DiagramEdge,
    Diagram,
)

from .thinking import (
    ThinkingStep,
    ThinkingProcess,
)

from .questions import (
    QuestionCategory,
    ClarifyingQuestion,
    QuestionSet,
)

from .wireframe import (
    DeviceType,
    ComponentType,
    DEVICE_VIEWPORTS,
    LayoutConfig,
    WireframeComponent,
    WireframeScreen,
    WireframeMetadata,
    WireframeProject,
)

__all__ = [
    # Architecture
    'ScreenType',
    'TransitionTrigger',
    'ComplexityLevel',
    'NavigationPattern',
    'CamelModel',
    'Position',
    'FormField',
    'Screen',
    'Transition',
    'ArchitectureMetadata',
    'Architecture',
    'reachable_ids',

    # Diagram
    'START_NODE_ID',
    'NodeKind',
    'DiagramNode',
    'DiagramEdge',
    'Diagram',

    # Thinking
    'ThinkingStep',
    'ThinkingProcess',

    # Clarifying questions
    'QuestionCategory',
    'ClarifyingQuestion',
    'QuestionSet',

    # Wireframes
    'DeviceType',
    'ComponentType',
    'DEVICE_VIEWPORTS',
    'LayoutConfig',
    'WireframeComponent',
    'WireframeScreen',
    'WireframeMetadata',
    'WireframeProject',
]
