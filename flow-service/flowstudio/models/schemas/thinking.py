"""
Cosmetic "thinking" progression shown while an architecture is generated.
"""
from typing import List, Literal

from pydantic import Field

from flowstudio.models.schemas.architecture import CamelModel


class ThinkingStep(CamelModel):
    id: str
    title: str
    description: str = ""
    thought: str = ""
    status: Literal["pending", "in_progress", "completed", "error"] = "pending"


class ThinkingProcess(CamelModel):
    steps: List[ThinkingStep] = Field(default_factory=list)
    thoughts: List[str] = Field(default_factory=list)
