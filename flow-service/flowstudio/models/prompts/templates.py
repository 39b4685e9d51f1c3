"""
Prompt templates for the text-generation service.

ALL prompts in this file demand a single JSON object as output.
Literal braces inside templates are doubled for ``str.format``.
"""

from typing import Any, Tuple
from dataclasses import dataclass
from enum import Enum


@dataclass
class PromptTemplate:
    """
    Reusable prompt template with system and user components.
    """
    system: str
    user_template: str

    def format(self, **kwargs: Any) -> Tuple[str, str]:
        return self.system, self.user_template.format(**kwargs)

    def render(self, **kwargs: Any) -> str:
        """Single-string prompt for collaborators that take one text input"""
        system, user = self.format(**kwargs)
        return f"{system.strip()}\n\n{user.strip()}"


class PromptType(str, Enum):
    ARCHITECTURE_DESIGN = "architecture_design"
    THINKING_PROCESS = "thinking_process"
    WIREFRAME_SCREEN = "wireframe_screen"
    CLARIFYING_QUESTIONS = "clarifying_questions"


class PromptLibrary:
    """
    Collection of all prompt templates used by the flow service.
    ALL outputs MUST be strict JSON.
    """

    SCREEN_TYPES = (
        "auth|dashboard|home|list|grid|detail|form|search|filter|profile|settings|"
        "preferences|account|chat|notifications|feed|cart|checkout|payment|order_history|"
        "gallery|camera|media_viewer|tab_bar|drawer|modal|bottom_sheet|error|loading|"
        "empty_state|tutorial|help|onboarding|verification|map|calendar|analytics|reports"
    )

    # ======================================================================
    # SHARED STRICT JSON RULES
    # ======================================================================

    STRICT_JSON_RULES = """
CRITICAL OUTPUT RULES (MANDATORY):
1. Output MUST be a SINGLE valid JSON object
2. NO markdown, NO comments, NO explanations
3. NO text before or after JSON
4. Use DOUBLE QUOTES for all strings
"""

    # ======================================================================
    # ARCHITECTURE DESIGN
    # ======================================================================

    ARCHITECTURE_DESIGN = PromptTemplate(
        system=f"""
You are a senior UX designer and information architect for native mobile apps.
You design complete user journeys: app launch, authentication, onboarding,
the core task screens, account management, and error / empty / loading states.
Every screen you design must be reachable from the app launch.

{STRICT_JSON_RULES}
""",
        user_template="""
USER GOAL: "{goal}"

Return a JSON object with EXACTLY this structure:
{{
  "appName": "string - descriptive, memorable app name",
  "description": "string - the problem this app solves",
  "complexity": "simple|moderate|complex",
  "tags": ["domain", "tags"],
  "screens": [
    {{
      "name": "string - clear, action-oriented screen name",
      "type": "{screen_types}",
      "description": "string - what the user accomplishes on this screen",
      "components": ["specific", "UI", "components"],
      "requiresAuth": true,
      "userIntent": "string - what the user is trying to accomplish",
      "navigationPattern": "tab_based|drawer|stack|modal|bottom_sheet|wizard|master_detail|card_stack",
      "formFields": [{{"name": "string", "type": "text|email|password|number|date|select|textarea", "required": true, "validation": "string"}}]
    }}
  ],
  "transitions": [
    {{
      "from": "source screen name (must match exactly)",
      "to": "target screen name (must match exactly)",
      "trigger": "user_action|api_success|api_error|navigation|condition",
      "description": "specific user action or system event",
      "userMotivation": "why the user takes this action"
    }}
  ]
}}

Use exact screen names in transitions and make sure every screen is connected.
Return ONLY the JSON object.
"""
    )

    # ======================================================================
    # THINKING PROCESS
    # ======================================================================

    THINKING_PROCESS = PromptTemplate(
        system=f"""
You are an expert UX designer and app architect. Think through a request
step by step and share your genuine, specific reasoning.

{STRICT_JSON_RULES}
""",
        user_template="""
A user has asked you to: "{user_request}"

Respond with a JSON object in this exact format:
{{
  "thoughts": ["first thought", "second thought", "third thought", "fourth thought", "final thought"],
  "steps": [
    {{"id": "analyze", "title": "Analyzing the request", "description": "Understanding what the user wants to build", "thought": "..."}},
    {{"id": "identify", "title": "Identifying key screens", "description": "Determining essential screens and flows", "thought": "..."}},
    {{"id": "structure", "title": "Structuring the flow", "description": "Organizing screens into logical user paths", "thought": "..."}},
    {{"id": "optimize", "title": "Optimizing UX", "description": "Ensuring smooth user experience", "thought": "..."}}
  ]
}}

Make the thoughts specific to this app idea. Return ONLY the JSON object.
"""
    )

    # ======================================================================
    # WIREFRAME SCREEN
    # ======================================================================

    WIREFRAME_SCREEN = PromptTemplate(
        system=f"""
You are a senior UI designer producing high-fidelity structural wireframes
as HTML/CSS-like component trees. Follow platform conventions, keep one
primary action per screen, and use a 4/8/16/24/32px spacing grid.

{STRICT_JSON_RULES}
""",
        user_template="""
TARGET SCREEN: {screen_name} ({screen_type})
APP CONTEXT: {app_name} - {screen_description}
DEVICE: {device} {device_context}
MENTIONED COMPONENTS: {components}
{design_hints}

Return ONLY this JSON:
{{
  "layout": {{"type": "flex", "direction": "column", "gap": "0px", "padding": "0px", "maxWidth": "{max_width}"}},
  "components": [
    {{
      "id": "unique-component-id",
      "type": "container|header|footer|navbar|heading|paragraph|button|submit_button|input|textarea|form|card|list|list_item|image|badge|avatar|tabs|modal|loading_spinner",
      "tag": "div|header|h1|p|button|input|form|section",
      "content": "realistic text or null",
      "placeholder": "input placeholder or null",
      "styles": {{"padding": "16px", "fontSize": "16px"}},
      "children": []
    }}
  ]
}}
"""
    )

    # ======================================================================
    # CLARIFYING QUESTIONS
    # ======================================================================

    CLARIFYING_QUESTIONS = PromptTemplate(
        system=f"""
You are a senior product manager gathering requirements for a new app.
Ask the few questions whose answers would change the app's screens and
flows the most. Prefer multiple choice, avoid jargon and generic questions.

{STRICT_JSON_RULES}
""",
        user_template="""
USER'S INITIAL REQUEST: "{user_prompt}"
{app_type_line}

Cover what is unclear among: user context and goals, core functionality,
technical preferences (auth, sync, platforms), business logic (flows,
roles, monetization) and UX preferences (style, density, accessibility).

Generate 3-5 questions. Return ONLY this JSON:
{{
  "questions": [
    {{
      "id": "q1",
      "category": "user_context|functionality|technical|business|ux",
      "question": "Clear, specific question text",
      "options": ["Option A", "Option B", "Option C"],
      "why": "Why this matters for the app design",
      "required": true
    }}
  ],
  "reasoning": "Why these questions were chosen"
}}
"""
    )
