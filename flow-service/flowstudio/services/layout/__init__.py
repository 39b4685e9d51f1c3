"""
Diagram layout.
"""
from .layout_engine import (
    FlowStage,
    LayoutEngine,
    classify_stages,
    layout_engine,
)

__all__ = [
    'FlowStage',
    'LayoutEngine',
    'classify_stages',
    'layout_engine',
]
