"""
App-flow graph models: screens, transitions and the architecture that owns them.

JSON field names are camelCase (``requiresAuth``, ``createdAt``, ``from``);
Python attributes are snake_case. Both spellings are accepted on input.
"""
from typing import List, Optional, Dict, Any
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from flowstudio.utils.datetime_utils import utc_now


class ScreenType(str, Enum):
    """Semantic screen categories"""
    # Authentication & access
    AUTH = "auth"
    ONBOARDING = "onboarding"
    VERIFICATION = "verification"

    # Core
    DASHBOARD = "dashboard"
    HOME = "home"

    # Data & content
    LIST = "list"
    GRID = "grid"
    DETAIL = "detail"
    FORM = "form"
    SEARCH = "search"
    FILTER = "filter"

    # User management
    PROFILE = "profile"
    SETTINGS = "settings"
    PREFERENCES = "preferences"
    ACCOUNT = "account"

    # Communication & social
    CHAT = "chat"
    NOTIFICATIONS = "notifications"
    FEED = "feed"

    # Commerce
    CART = "cart"
    CHECKOUT = "checkout"
    PAYMENT = "payment"
    ORDER_HISTORY = "order_history"

    # Media
    GALLERY = "gallery"
    CAMERA = "camera"
    MEDIA_VIEWER = "media_viewer"

    # Navigation & structure
    TAB_BAR = "tab_bar"
    DRAWER = "drawer"
    MODAL = "modal"
    BOTTOM_SHEET = "bottom_sheet"

    # System & utility
    ERROR = "error"
    LOADING = "loading"
    EMPTY_STATE = "empty_state"
    TUTORIAL = "tutorial"
    HELP = "help"

    # Advanced
    MAP = "map"
    CALENDAR = "calendar"
    ANALYTICS = "analytics"
    REPORTS = "reports"


class TransitionTrigger(str, Enum):
    """What causes a transition to fire"""
    USER_ACTION = "user_action"
    API_SUCCESS = "api_success"
    API_ERROR = "api_error"
    TIMER = "timer"
    CONDITION = "condition"
    NAVIGATION = "navigation"


class ComplexityLevel(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class NavigationPattern(str, Enum):
    TAB_BASED = "tab_based"
    DRAWER = "drawer"
    STACK = "stack"
    MODAL = "modal"
    BOTTOM_SHEET = "bottom_sheet"
    WIZARD = "wizard"
    MASTER_DETAIL = "master_detail"
    CARD_STACK = "card_stack"


class CamelModel(BaseModel):
    """Base model serializing to camelCase JSON"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Position(CamelModel):
    """2-D coordinate"""
    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0


class FormField(CamelModel):
    """Single input field on a form screen"""
    name: str
    type: str = "text"
    required: bool = False
    validation: Optional[str] = None


class Screen(CamelModel):
    """One app view (a node of the architecture graph)"""
    id: str
    name: str
    type: ScreenType = ScreenType.HOME
    description: str = ""
    components: List[str] = Field(default_factory=list)
    requires_auth: bool = False
    form_fields: List[FormField] = Field(default_factory=list)
    user_intent: Optional[str] = None
    navigation_pattern: Optional[NavigationPattern] = None

    # Last-known diagram position, written back by the editor
    position: Optional[Position] = None


class Transition(CamelModel):
    """Directed edge between two screens"""
    id: str
    from_screen: str = Field(alias="from")
    to_screen: str = Field(alias="to")
    trigger: TransitionTrigger = TransitionTrigger.USER_ACTION
    condition: Optional[str] = None
    description: str = ""

    @property
    def is_self_loop(self) -> bool:
        return self.from_screen == self.to_screen


class ArchitectureMetadata(CamelModel):
    """Bookkeeping attached to every architecture"""
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    version: str = "1.0.0"
    tags: List[str] = Field(default_factory=list)
    complexity: ComplexityLevel = ComplexityLevel.SIMPLE
    estimated_screens: int = 0
    estimated_apis: int = 0


class Architecture(CamelModel):
    """
    Validated screen/transition graph describing an app.

    Construction fails with ``pydantic.ValidationError`` when a screen id is
    repeated or a transition references a screen that does not exist.
    """
    id: str
    name: str
    description: str = ""
    screens: List[Screen] = Field(default_factory=list)
    transitions: List[Transition] = Field(default_factory=list)
    metadata: ArchitectureMetadata = Field(default_factory=ArchitectureMetadata)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "app_5f2c9a1b",
                "name": "Todo App",
                "description": "Build a todo app with login",
                "screens": [
                    {
                        "id": "screen_0",
                        "name": "Login",
                        "type": "auth",
                        "description": "User authentication screen",
                        "components": ["LoginForm"],
                        "requiresAuth": False
                    },
                    {
                        "id": "screen_1",
                        "name": "Items List",
                        "type": "list",
                        "description": "List of items",
                        "components": ["ItemList"],
                        "requiresAuth": True
                    }
                ],
                "transitions": [
                    {
                        "id": "transition_0",
                        "from": "screen_0",
                        "to": "screen_1",
                        "trigger": "api_success",
                        "description": "User logs in"
                    }
                ],
                "metadata": {
                    "version": "1.0.0",
                    "tags": ["productivity"],
                    "complexity": "simple",
                    "estimatedScreens": 2,
                    "estimatedApis": 0
                }
            }
        }
    )

    @model_validator(mode="after")
    def check_references(self) -> "Architecture":
        seen = set()
        for screen in self.screens:
            if screen.id in seen:
                raise ValueError(f"Duplicate screen id '{screen.id}'")
            seen.add(screen.id)

        for transition in self.transitions:
            for endpoint in (transition.from_screen, transition.to_screen):
                if endpoint not in seen:
                    raise ValueError(
                        f"Transition '{transition.id}' references unknown screen '{endpoint}'"
                    )
        return self

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    @property
    def entry_screen(self) -> Optional[Screen]:
        """The designated entry point (first screen)"""
        return self.screens[0] if self.screens else None

    def get_screen(self, screen_id: str) -> Optional[Screen]:
        for screen in self.screens:
            if screen.id == screen_id:
                return screen
        return None

    def screens_by_type(self, *types: ScreenType) -> List[Screen]:
        return [s for s in self.screens if s.type in types]

    def incident_transitions(self, screen_id: str) -> List[Transition]:
        return [
            t for t in self.transitions
            if t.from_screen == screen_id or t.to_screen == screen_id
        ]

    def reachable_from_entry(self) -> set:
        """Screen ids reachable by following transitions from the entry screen"""
        if not self.screens:
            return set()
        return reachable_ids(self.screens[0].id, self.transitions)


def reachable_ids(start_id: str, transitions: List[Transition]) -> set:
    """Directed breadth-first reachability over transitions"""
    adjacency: Dict[str, List[str]] = {}
    for t in transitions:
        adjacency.setdefault(t.from_screen, []).append(t.to_screen)

    reached = {start_id}
    queue = [start_id]
    while queue:
        current = queue.pop(0)
        for target in adjacency.get(current, []):
            if target not in reached:
                reached.add(target)
                queue.append(target)
    return reached
