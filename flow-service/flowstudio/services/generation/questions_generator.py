"""
Questions pipeline: app description -> clarifying questions.

The answers come back with the architecture request and are folded into
the goal by ``build_contextual_goal``. The fallback picks template
questions by app type, detected from keywords when the caller gives none.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from flowstudio.config import settings
from flowstudio.llm import create_text_generator
from flowstudio.models.prompts import prompts
from flowstudio.models.schemas.questions import ClarifyingQuestion, QuestionCategory, QuestionSet
from flowstudio.services.generation.base import GenerationPipeline, require_goal
from flowstudio.services.generation.response_repair import MalformedResponse, extract_json_object
from flowstudio.utils.logging import get_logger

logger = get_logger(__name__)

MAX_QUESTIONS = 4


def _question(question_id, category, question, options, why) -> ClarifyingQuestion:
    return ClarifyingQuestion(
        id=question_id,
        category=category,
        question=question,
        options=options,
        why=why,
        required=True,
    )


APP_TYPE_QUESTIONS: Dict[str, List[ClarifyingQuestion]] = {
    'food_delivery': [
        _question(
            'delivery_area', QuestionCategory.BUSINESS,
            "What delivery model do you want to support?",
            ["Single city/local delivery only", "Multi-city platform",
             "Restaurant-owned delivery", "Peer-to-peer food sharing"],
            "Different delivery models require different user flows and business logic",
        ),
        _question(
            'payment_flow', QuestionCategory.TECHNICAL,
            "How should payment processing work?",
            ["Pay on delivery (cash/card)", "Pre-payment with saved cards",
             "Subscription model with credits", "Mixed payment options"],
            "Payment timing affects order flow, trust and fraud prevention",
        ),
        _question(
            'customization_level', QuestionCategory.FUNCTIONALITY,
            "How much order customization should be supported?",
            ["Simple - quantity and basic options", "Moderate - ingredients, size, special requests",
             "Advanced - full build-your-own", "Minimal - pre-set meals only"],
            "Customization complexity drives the menu UI and cart flow",
        ),
    ],
    'task_management': [
        _question(
            'collaboration_scope', QuestionCategory.FUNCTIONALITY,
            "What level of collaboration do you need?",
            ["Personal only - no sharing", "Simple sharing - share lists with others",
             "Team collaboration - assign tasks, comments", "Enterprise - roles, permissions, reporting"],
            "Collaboration level determines the information architecture and permission system",
        ),
        _question(
            'task_complexity', QuestionCategory.FUNCTIONALITY,
            "How complex should tasks be?",
            ["Simple - title, due date, done/not done", "Moderate - categories, priorities, subtasks",
             "Advanced - dependencies, time tracking, attachments", "Project-level - timelines, resource allocation"],
            "Task complexity affects the data model, UI density and cognitive load",
        ),
    ],
    'e_commerce': [
        _question(
            'product_catalog', QuestionCategory.BUSINESS,
            "What type of products will you sell?",
            ["Physical products with shipping", "Digital products/downloads",
             "Services/appointments", "Mix of physical and digital"],
            "Product type determines checkout, fulfillment and the post-purchase experience",
        ),
        _question(
            'inventory_management', QuestionCategory.TECHNICAL,
            "How should inventory be handled?",
            ["Simple - in stock / out of stock", "Quantity tracking with low stock alerts",
             "Variant management (size, color, etc.)", "No inventory (dropshipping)"],
            "Inventory complexity affects product display, cart behavior and admin screens",
        ),
    ],
    'fitness_tracking': [
        _question(
            'tracking_method', QuestionCategory.TECHNICAL,
            "How should fitness data be captured?",
            ["Manual entry only", "Wearable device integration",
             "Phone sensors (steps, GPS)", "Mix of manual and automatic"],
            "Capture method affects onboarding, permissions and engagement",
        ),
        _question(
            'social_features', QuestionCategory.FUNCTIONALITY,
            "What social features do you want?",
            ["None - completely private", "Friends only - share with connections",
             "Community - leaderboards, challenges", "Social feed - posts, likes, comments"],
            "Social features change privacy, moderation and engagement design",
        ),
    ],
}

UNIVERSAL_QUESTIONS: List[ClarifyingQuestion] = [
    _question(
        'target_users', QuestionCategory.USER_CONTEXT,
        "Who are your primary users?",
        ["General consumers (all ages)", "Young adults (18-35)", "Business professionals",
         "Students and educators", "Specific industry professionals"],
        "User demographics determine UI complexity, onboarding and feature priorities",
    ),
    _question(
        'platform_priority', QuestionCategory.TECHNICAL,
        "What platforms should we prioritize?",
        ["Mobile-first (iOS and Android)", "Web-first (desktop and mobile web)",
         "Mobile app only", "Web app only"],
        "Platform choice affects navigation patterns and interaction design",
    ),
]

# Checked in order; first match wins
_APP_TYPE_KEYWORDS = [
    ('food_delivery', ('food', 'delivery', 'restaurant')),
    ('task_management', ('task', 'todo', 'productivity')),
    ('e_commerce', ('shop', 'ecommerce', 'e-commerce', 'product')),
    ('fitness_tracking', ('fitness', 'workout', 'health')),
]


def detect_app_type(user_prompt: str) -> Optional[str]:
    lower_prompt = user_prompt.lower()
    for app_type, keywords in _APP_TYPE_KEYWORDS:
        if any(k in lower_prompt for k in keywords):
            return app_type
    return None


def build_contextual_goal(goal: str, answers: Optional[Dict[str, str]]) -> str:
    """
    Append answered questions to the goal.

    Blank answers are skipped. With nothing answered, or a blank goal, the
    goal is returned unchanged.
    """
    if not isinstance(goal, str) or not goal.strip():
        return goal

    answered = [
        (question_id, answer.strip())
        for question_id, answer in (answers or {}).items()
        if isinstance(answer, str) and answer.strip()
    ]
    if not answered:
        return goal

    lines = "\n".join(f"- {question_id}: {answer}" for question_id, answer in answered)
    return f"{goal}\n\nAdditional Context:\n{lines}"


@dataclass
class QuestionsRequest:
    user_prompt: str
    app_type: Optional[str] = None


class QuestionsPipeline(GenerationPipeline[QuestionsRequest, QuestionSet]):

    event_prefix = "questions"

    def validate_input(self, request: QuestionsRequest) -> None:
        require_goal(request.user_prompt)

    def build_prompt(self, request: QuestionsRequest) -> str:
        return prompts.CLARIFYING_QUESTIONS.render(
            user_prompt=request.user_prompt.strip(),
            app_type_line=f"DETECTED APP TYPE: {request.app_type}" if request.app_type else "",
        )

    def repair(self, raw_text: str, request: QuestionsRequest) -> QuestionSet:
        data = extract_json_object(raw_text)

        questions: List[ClarifyingQuestion] = []
        raw_questions = data.get("questions") if isinstance(data.get("questions"), list) else []
        for raw in raw_questions:
            if not isinstance(raw, dict):
                continue
            text = raw.get("question")
            if not isinstance(text, str) or not text.strip():
                continue

            try:
                category = QuestionCategory(str(raw.get("category", "")).strip().lower())
            except ValueError:
                category = QuestionCategory.USER_CONTEXT

            options = raw.get("options") if isinstance(raw.get("options"), list) else []
            questions.append(ClarifyingQuestion(
                id=str(raw.get("id") or f"q{len(questions) + 1}"),
                category=category,
                question=text.strip(),
                options=[str(o) for o in options if isinstance(o, str) and o.strip()],
                why=str(raw.get("why") or ""),
                required=raw.get("required") is True,
            ))

        if not questions:
            raise MalformedResponse("Questions payload has no usable questions")

        reasoning = data.get("reasoning")
        return QuestionSet(
            questions=questions,
            reasoning=reasoning if isinstance(reasoning, str) else "",
            app_type=request.app_type,
        )

    def fallback(self, request: QuestionsRequest) -> QuestionSet:
        app_type = request.app_type if request.app_type in APP_TYPE_QUESTIONS else None
        app_type = app_type or detect_app_type(request.user_prompt)

        selected = APP_TYPE_QUESTIONS.get(app_type, []) + UNIVERSAL_QUESTIONS
        logger.debug(
            "questions.fallback.selected",
            extra={"app_type": app_type, "questions": min(len(selected), MAX_QUESTIONS)}
        )

        if app_type:
            reasoning = f"Template questions for a {app_type.replace('_', ' ')} app"
        else:
            reasoning = "Basic questions to gather essential context for app design"

        return QuestionSet(
            questions=[q.model_copy(deep=True) for q in selected[:MAX_QUESTIONS]],
            reasoning=reasoning,
            app_type=app_type,
        )


# Global questions pipeline instance
questions_pipeline = QuestionsPipeline(client=create_text_generator(settings))

__all__ = [
    'QuestionsRequest',
    'QuestionsPipeline',
    'detect_app_type',
    'build_contextual_goal',
    'questions_pipeline',
]
