"""
Interactive diagram editing.
"""
from .diagram_editor import (
    AlignDirection,
    DiagramEditor,
    DistributeDirection,
    HistorySnapshot,
    ToolMode,
)

__all__ = [
    'AlignDirection',
    'DiagramEditor',
    'DistributeDirection',
    'HistorySnapshot',
    'ToolMode',
]
