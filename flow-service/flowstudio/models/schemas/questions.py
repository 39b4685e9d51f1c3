"""
Clarifying questions asked before an architecture is generated.
"""
from enum import Enum
from typing import List, Optional

from pydantic import Field

from flowstudio.models.schemas.architecture import CamelModel


class QuestionCategory(str, Enum):
    USER_CONTEXT = "user_context"
    FUNCTIONALITY = "functionality"
    TECHNICAL = "technical"
    BUSINESS = "business"
    UX = "ux"


class ClarifyingQuestion(CamelModel):
    id: str
    category: QuestionCategory = QuestionCategory.USER_CONTEXT
    question: str
    options: List[str] = Field(default_factory=list)
    why: str = ""
    required: bool = False


class QuestionSet(CamelModel):
    questions: List[ClarifyingQuestion] = Field(default_factory=list)
    reasoning: str = ""
    app_type: Optional[str] = None
