"""
Models package - schemas and prompt templates.
"""

from .schemas import (
    Architecture,
    Screen,
    Transition,
    ScreenType,
    TransitionTrigger,
    Diagram,
    DiagramNode,
    DiagramEdge,
)

from .prompts import (
    PromptTemplate,
    PromptLibrary,
    prompts,
)

__all__ = [
    'Architecture',
    'Screen',
    'Transition',
    'ScreenType',
    'TransitionTrigger',
    'Diagram',
    'DiagramNode',
    'DiagramEdge',
    'PromptTemplate',
    'PromptLibrary',
    'prompts',
]
