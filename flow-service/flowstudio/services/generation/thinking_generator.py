"""
Thinking pipeline: goal -> ThinkingProcess.

Purely cosmetic progression displayed while the architecture call is in
flight. Runs independently of the architecture pipeline and shares no
mutable state with it.
"""
from typing import Dict, List, Optional

from flowstudio.config import settings
from flowstudio.llm import TextGenerationClient, create_text_generator
from flowstudio.models.prompts import prompts
from flowstudio.models.schemas.thinking import ThinkingProcess, ThinkingStep
from flowstudio.services.generation.base import GenerationPipeline, require_goal
from flowstudio.services.generation.response_repair import MalformedResponse, extract_json_object
from flowstudio.utils.logging import get_logger

logger = get_logger(__name__)


# (id, title, description) of the four canonical steps
_STEP_OUTLINE = [
    ("analyze", "Analyzing the request", "Understanding what the user wants to build"),
    ("identify", "Identifying key screens", "Determining essential screens and features"),
    ("structure", "Structuring the flow", "Organizing screens into logical user paths"),
    ("optimize", "Optimizing UX", "Ensuring smooth user experience"),
]


class ThinkingPipeline(GenerationPipeline[str, ThinkingProcess]):

    event_prefix = "thinking"

    def __init__(self, client: Optional[TextGenerationClient] = None):
        super().__init__(client)
        self.playbooks = self._build_playbooks()

    def validate_input(self, request: str) -> None:
        require_goal(request)

    def build_prompt(self, request: str) -> str:
        return prompts.THINKING_PROCESS.render(user_request=request.strip())

    def repair(self, raw_text: str, request: str) -> ThinkingProcess:
        data = extract_json_object(raw_text)

        steps: List[ThinkingStep] = []
        raw_steps = data.get("steps") if isinstance(data.get("steps"), list) else []
        for index, raw in enumerate(raw_steps):
            if not isinstance(raw, dict) or not raw.get("title"):
                continue
            steps.append(ThinkingStep(
                id=str(raw.get("id") or f"step_{index}"),
                title=str(raw["title"]),
                description=str(raw.get("description") or ""),
                thought=str(raw.get("thought") or ""),
                status="pending",
            ))

        raw_thoughts = data.get("thoughts") if isinstance(data.get("thoughts"), list) else []
        thoughts = [t for t in raw_thoughts if isinstance(t, str) and t.strip()]

        if not steps and not thoughts:
            raise MalformedResponse("Thinking payload has neither steps nor thoughts")

        return ThinkingProcess(steps=steps, thoughts=thoughts)

    def fallback(self, request: str) -> ThinkingProcess:
        lower_request = request.lower()

        if 'todo' in lower_request or 'task' in lower_request:
            playbook = self.playbooks['task']
        elif any(k in lower_request for k in ('social', 'chat', 'message')):
            playbook = self.playbooks['social']
        elif any(k in lower_request for k in ('ecommerce', 'shop', 'store')):
            playbook = self.playbooks['commerce']
        else:
            playbook = self.playbooks['generic']

        thoughts = [t.format(request=request.strip()) for t in playbook['thoughts']]
        steps = [
            ThinkingStep(id=step_id, title=title, description=description, thought=thought)
            for (step_id, _, _), (title, description, thought) in zip(_STEP_OUTLINE, playbook['steps'])
        ]
        return ThinkingProcess(steps=steps, thoughts=thoughts)

    def _build_playbooks(self) -> Dict[str, Dict[str, list]]:
        generic_thoughts = [
            "I need to identify the core purpose of this app and who the primary users will be.",
            "Based on their description, I should map out the main screens and user actions.",
            "The user journey should be logical and minimize the steps to complete key tasks.",
            "I should follow modern UX principles and make sure the navigation is intuitive.",
        ]
        generic_steps = [
            (title, description, thought)
            for (_, title, description), thought in zip(_STEP_OUTLINE, generic_thoughts)
        ]

        return {
            'task': {
                'thoughts': [
                    "I see they want a task management app. This needs to focus on task creation, organization, and completion.",
                    "For task management, the core flow should be: add task, organize, complete, review progress.",
                    "I should include features like task lists, due dates, and progress tracking.",
                    "The navigation should be simple, probably a tab-based layout with tasks, categories, and profile.",
                    "I'll make sure the task creation flow is quick and intuitive, that's the most important interaction.",
                ],
                'steps': [
                    ("Analyzing task management needs", "Understanding task workflow requirements",
                     "Task apps need to minimize friction in adding and completing tasks."),
                    ("Identifying key screens", "Planning essential task management screens",
                     "I need a task list, add task form, task details, and categories or projects to organize tasks."),
                    ("Structuring task flow", "Organizing screens for optimal task management",
                     "The main flow should be Home (task list) to Add Task to Task Details and back."),
                    ("Optimizing for productivity", "Ensuring the app actually helps users be productive",
                     "Quick actions and swipe gestures should make completing tasks feel satisfying."),
                ],
            },
            'social': {
                'thoughts': [
                    "They want a social app. This is all about connecting people and facilitating communication.",
                    "Social apps need user profiles, friend/follow systems, and content sharing capabilities.",
                    "The core flow is usually: sign up, set up profile, discover and connect, share, engage.",
                    "I need to think about content feeds, messaging, notifications, and user safety features.",
                    "The navigation should probably be tab-based with feed, messages, profile, and discovery sections.",
                ],
                'steps': [
                    ("Analyzing social interaction needs", "Understanding how users will connect and communicate",
                     "Social apps are about relationships and content, for both discovery and ongoing engagement."),
                    ("Identifying social features", "Planning profiles, feeds, and interaction screens",
                     "Core screens: user profiles, content feed, messaging, follow management, and content creation."),
                    ("Structuring social flow", "Creating intuitive social navigation patterns",
                     "Tab navigation with Feed, Messages, Create, Notifications and Profile."),
                    ("Optimizing engagement", "Designing for healthy social interaction",
                     "Meaningful connections over vanity metrics; clear privacy controls are essential."),
                ],
            },
            'commerce': {
                'thoughts': [
                    "This is an e-commerce app. The goal is converting browsers into buyers with a smooth shopping experience.",
                    "E-commerce flows need: browse, search, product details, add to cart, checkout, order confirmation.",
                    "I should focus on product discovery, easy purchasing, and building trust through design.",
                    "Key screens include product catalog, search and filters, product details, cart, and checkout.",
                    "Mobile commerce is all about reducing friction, especially in the checkout process.",
                ],
                'steps': [
                    ("Analyzing shopping behavior", "Understanding the customer purchase journey",
                     "Every screen should either help users find products or complete purchases."),
                    ("Identifying commerce screens", "Planning product discovery and purchase flow",
                     "Home and categories, product listing, product details, cart, checkout, confirmation."),
                    ("Structuring purchase flow", "Optimizing the path from browse to buy",
                     "Minimize steps to purchase while giving enough product information to build confidence."),
                    ("Optimizing conversion", "Reducing friction in the buying process",
                     "Fast checkout, clear pricing and good product images matter most on mobile."),
                ],
            },
            'generic': {
                'thoughts': [
                    'Looking at their request: "{request}". I need to understand the core user need and build around that.',
                    "Every app needs a clear user journey. I should identify the main actions users will take.",
                    "I'll start with essential screens and add complexity only where it adds real value.",
                    "The navigation should be intuitive; users shouldn't have to think about how to move through the app.",
                    "I'll focus on the primary user flow first, then add supporting features and edge cases.",
                ],
                'steps': generic_steps,
            },
        }


# Global thinking pipeline instance
thinking_pipeline = ThinkingPipeline(client=create_text_generator(settings))

__all__ = [
    'ThinkingPipeline',
    'thinking_pipeline',
]
