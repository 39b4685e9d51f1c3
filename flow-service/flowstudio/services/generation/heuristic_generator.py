"""
Heuristic Architecture Generator

Builds a valid app-flow architecture deterministically, without any
external service. Used when the text-generation service fails and as a
reproducible baseline in tests.
"""
import hashlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from flowstudio.models.schemas.architecture import (
    Architecture,
    ArchitectureMetadata,
    ComplexityLevel,
    FormField,
    NavigationPattern,
    Screen,
    ScreenType,
    Transition,
    TransitionTrigger,
)
from flowstudio.services.generation.response_repair import repair_connectivity
from flowstudio.utils.datetime_utils import Clock, utc_now
from flowstudio.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class GoalAnalysis:
    """Keyword-level reading of a goal string"""
    family: str
    app_name: str
    tags: List[str]
    complexity: ComplexityLevel
    features: Dict[str, bool] = field(default_factory=dict)

    @property
    def has_auth(self) -> bool:
        return self.features.get('auth', False)


@dataclass
class FamilyTemplate:
    """Family-specific names for the primary list/detail/form triple"""
    app_name: str
    tags: List[str]
    list_name: str
    list_type: ScreenType
    list_description: str
    list_components: List[str]
    detail_name: str
    detail_description: str
    form_name: str
    form_description: str
    form_fields: List[FormField]
    empty_name: str
    item_noun: str


class HeuristicArchitectureGenerator:
    """
    Deterministic fallback architecture generator.

    Same goal string -> same architecture (the id is a hash of the goal and
    timestamps come from the injected clock).

    Every output contains an onboarding screen, a home or dashboard, the
    primary list/detail/form triple, and an error / empty-state pair, and
    is connected from its first screen.
    """

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock

        # Families are scored by keyword hits; ties go to the earlier family
        self.families = {
            'task_management': ['todo', 'task', 'checklist', 'project', 'planner', 'reminder'],
            'social': ['social', 'friend', 'follow', 'post', 'feed', 'chat', 'community'],
            'commerce': ['shop', 'store', 'ecommerce', 'cart', 'product', 'checkout', 'marketplace'],
        }

        self.feature_keywords = {
            'auth': ['login', 'auth', 'user', 'account', 'sign'],
            'dashboard': ['dashboard', 'home'],
            'list': ['list', 'todo', 'task'],
            'profile': ['profile', 'account'],
            'settings': ['settings', 'config', 'preferences'],
        }

        self.templates = self._build_templates()

        self.stats = {
            'total_generations': 0,
            'by_family': {name: 0 for name in list(self.families) + ['generic']}
        }

        logger.info(
            "🛡️ heuristic.generator.initialized",
            extra={"families": list(self.families.keys())}
        )

    def generate(self, goal: str) -> Architecture:
        """
        Generate an architecture from a goal using keyword matching.

        Args:
            goal: User's app description

        Returns:
            Valid, connected Architecture (always succeeds)
        """
        self.stats['total_generations'] += 1

        logger.info(
            "🛡️ heuristic.generation.started",
            extra={"goal_length": len(goal)}
        )

        analysis = self.analyze_goal(goal)
        self.stats['by_family'][analysis.family] += 1
        template = self.templates[analysis.family]

        screens = self._generate_screens(analysis, template)
        transitions = self._generate_transitions(screens, template)
        transitions = repair_connectivity(screens, transitions)

        now = self.clock()
        architecture = Architecture(
            id=f"app_{hashlib.sha256(goal.encode('utf-8')).hexdigest()[:12]}",
            name=analysis.app_name,
            description=goal.strip() or "Generated app",
            screens=screens,
            transitions=transitions,
            metadata=ArchitectureMetadata(
                created_at=now,
                updated_at=now,
                tags=list(analysis.tags),
                complexity=analysis.complexity,
                estimated_screens=len(screens),
                estimated_apis=0,
            ),
        )

        logger.info(
            "✅ heuristic.generation.completed",
            extra={
                "family": analysis.family,
                "screens": len(architecture.screens),
                "transitions": len(architecture.transitions),
                "complexity": analysis.complexity.value
            }
        )
        return architecture

    # ========================================================================
    # ANALYSIS
    # ========================================================================

    def analyze_goal(self, goal: str) -> GoalAnalysis:
        goal_lower = goal.lower()

        family = self._detect_family(goal_lower)
        features = {
            name: any(keyword in goal_lower for keyword in keywords)
            for name, keywords in self.feature_keywords.items()
        }

        feature_count = sum(1 for enabled in features.values() if enabled)
        if feature_count > 3:
            complexity = ComplexityLevel.COMPLEX
        elif feature_count > 1:
            complexity = ComplexityLevel.MODERATE
        else:
            complexity = ComplexityLevel.SIMPLE

        template = self.templates[family]
        return GoalAnalysis(
            family=family,
            app_name=template.app_name,
            tags=list(template.tags),
            complexity=complexity,
            features=features,
        )

    def _detect_family(self, goal_lower: str) -> str:
        """Detect app family from goal using keyword matching"""

        scores = {}
        for family, keywords in self.families.items():
            score = sum(1 for keyword in keywords if keyword in goal_lower)
            if score > 0:
                scores[family] = score

        if scores:
            best_match = max(scores.items(), key=lambda x: x[1])
            logger.debug(
                "heuristic.family.matched",
                extra={
                    "family": best_match[0],
                    "score": best_match[1],
                    "all_scores": scores
                }
            )
            return best_match[0]

        logger.debug("heuristic.family.no_match")
        return 'generic'

    # ========================================================================
    # TEMPLATES
    # ========================================================================

    def _build_templates(self) -> Dict[str, FamilyTemplate]:
        return {
            'task_management': FamilyTemplate(
                app_name="Todo App",
                tags=['productivity', 'task-management'],
                list_name="Task List",
                list_type=ScreenType.LIST,
                list_description="All tasks with search, filters and completion status",
                list_components=['SearchBar', 'FilterControls', 'TaskList', 'AddTaskButton'],
                detail_name="Task Detail",
                detail_description="Details, due date and notes of a single task",
                form_name="Add Task",
                form_description="Form to create a new task",
                form_fields=[
                    FormField(name='title', type='text', required=True),
                    FormField(name='description', type='textarea'),
                    FormField(name='dueDate', type='date'),
                    FormField(name='priority', type='select'),
                ],
                empty_name="No Tasks Yet",
                item_noun="task",
            ),
            'social': FamilyTemplate(
                app_name="Social App",
                tags=['social', 'networking'],
                list_name="Feed",
                list_type=ScreenType.FEED,
                list_description="Posts from people you follow",
                list_components=['PostList', 'StoryBar', 'CreatePostButton'],
                detail_name="Post Detail",
                detail_description="A single post with comments and reactions",
                form_name="Create Post",
                form_description="Compose and publish a new post",
                form_fields=[
                    FormField(name='text', type='textarea', required=True),
                    FormField(name='media', type='file'),
                ],
                empty_name="Empty Feed",
                item_noun="post",
            ),
            'commerce': FamilyTemplate(
                app_name="E-commerce App",
                tags=['ecommerce', 'shopping'],
                list_name="Product Catalog",
                list_type=ScreenType.GRID,
                list_description="Browse products by category with search and filters",
                list_components=['SearchBar', 'CategoryTabs', 'ProductGrid'],
                detail_name="Product Detail",
                detail_description="Product photos, price, reviews and add-to-cart",
                form_name="Checkout",
                form_description="Shipping and payment details to place an order",
                form_fields=[
                    FormField(name='address', type='text', required=True),
                    FormField(name='cardNumber', type='number', required=True),
                ],
                empty_name="No Products",
                item_noun="product",
            ),
            'generic': FamilyTemplate(
                app_name="My App",
                tags=[],
                list_name="Items List",
                list_type=ScreenType.LIST,
                list_description="List of items with search and filter capabilities",
                list_components=['SearchBar', 'FilterControls', 'ItemList', 'Pagination'],
                detail_name="Item Detail",
                detail_description="Detailed view of a single item",
                form_name="Add Item",
                form_description="Form to create a new item",
                form_fields=[
                    FormField(name='title', type='text', required=True),
                    FormField(name='description', type='textarea'),
                    FormField(name='priority', type='select'),
                ],
                empty_name="Empty List",
                item_noun="item",
            ),
        }

    # ========================================================================
    # SCREENS
    # ========================================================================

    def _generate_screens(self, analysis: GoalAnalysis, template: FamilyTemplate) -> List[Screen]:
        screens: List[Screen] = []
        has_auth = analysis.has_auth

        def add(**kwargs) -> Screen:
            screen = Screen(id=f"screen_{len(screens)}", **kwargs)
            screens.append(screen)
            return screen

        if analysis.complexity != ComplexityLevel.SIMPLE:
            add(
                name="App Launch",
                type=ScreenType.LOADING,
                description="App initialization and loading screen",
                components=['AppLogo', 'LoadingIndicator', 'VersionInfo'],
                user_intent="Launch the app",
            )

        if has_auth:
            add(
                name="Login",
                type=ScreenType.AUTH,
                description="User authentication screen",
                components=['LoginForm', 'SignupLink', 'ForgotPassword'],
                form_fields=[
                    FormField(name='email', type='email', required=True),
                    FormField(name='password', type='password', required=True),
                ],
            )
            add(
                name="Register",
                type=ScreenType.AUTH,
                description="User registration screen",
                components=['RegisterForm', 'LoginLink'],
                form_fields=[
                    FormField(name='name', type='text', required=True),
                    FormField(name='email', type='email', required=True),
                    FormField(name='password', type='password', required=True),
                ],
            )

        add(
            name="Welcome",
            type=ScreenType.ONBOARDING,
            description="Introduction to app features and setup of user preferences",
            components=['WelcomeMessage', 'FeatureHighlights', 'GetStartedButton', 'SkipButton'],
            user_intent="Learn about the app and get started",
            navigation_pattern=NavigationPattern.WIZARD,
        )

        if analysis.features.get('dashboard'):
            add(
                name="Dashboard",
                type=ScreenType.DASHBOARD,
                description="Main dashboard with overview and key metrics",
                components=['StatsCards', 'RecentActivity', 'QuickActions'],
                requires_auth=has_auth,
                navigation_pattern=NavigationPattern.TAB_BASED,
            )
        else:
            add(
                name="Home",
                type=ScreenType.HOME,
                description="Starting point with quick actions",
                components=['Header', 'QuickActions', 'RecentItems'],
                requires_auth=has_auth,
                navigation_pattern=NavigationPattern.TAB_BASED,
            )

        add(
            name=template.list_name,
            type=template.list_type,
            description=template.list_description,
            components=list(template.list_components),
            requires_auth=has_auth,
        )
        add(
            name=template.detail_name,
            type=ScreenType.DETAIL,
            description=template.detail_description,
            components=['ItemHeader', 'ItemContent', 'ActionButtons'],
            requires_auth=has_auth,
        )
        add(
            name=template.form_name,
            type=ScreenType.FORM,
            description=template.form_description,
            components=['ItemForm', 'SubmitButton', 'CancelButton'],
            requires_auth=has_auth,
            form_fields=list(template.form_fields),
        )

        if analysis.features.get('profile'):
            add(
                name="Profile",
                type=ScreenType.PROFILE,
                description="User profile with personal information",
                components=['ProfileHeader', 'ProfileForm', 'AvatarUpload'],
                requires_auth=True,
            )

        if analysis.features.get('settings'):
            add(
                name="Settings",
                type=ScreenType.SETTINGS,
                description="App settings and preferences",
                components=['SettingsForm', 'ThemeToggle', 'NotificationSettings'],
                requires_auth=has_auth,
            )

        add(
            name="Network Error",
            type=ScreenType.ERROR,
            description="Handle network connectivity issues",
            components=['ErrorMessage', 'RetryButton', 'OfflineBanner'],
            user_intent="Understand what went wrong and how to fix it",
        )
        add(
            name=template.empty_name,
            type=ScreenType.EMPTY_STATE,
            description="First-time experience when no data exists",
            components=['EmptyStateIllustration', 'WelcomeMessage', 'CreateFirstItemButton'],
            requires_auth=has_auth,
            user_intent="Understand how to get started with the app",
        )

        return screens

    # ========================================================================
    # TRANSITIONS
    # ========================================================================

    def _generate_transitions(self, screens: List[Screen], template: FamilyTemplate) -> List[Transition]:
        transitions: List[Transition] = []

        def first(*types: ScreenType) -> Optional[Screen]:
            return next((s for s in screens if s.type in types), None)

        def link(
            source: Screen,
            target: Screen,
            description: str,
            trigger: TransitionTrigger = TransitionTrigger.USER_ACTION,
            condition: Optional[str] = None
        ):
            transitions.append(Transition(
                id=f"transition_{len(transitions)}",
                from_screen=source.id,
                to_screen=target.id,
                trigger=trigger,
                condition=condition,
                description=description,
            ))

        launch = first(ScreenType.LOADING)
        auth_screens = [s for s in screens if s.type == ScreenType.AUTH]
        onboarding = first(ScreenType.ONBOARDING)
        home = first(ScreenType.DASHBOARD, ScreenType.HOME)
        primary = first(template.list_type)
        detail = first(ScreenType.DETAIL)
        form = first(ScreenType.FORM)
        profile = first(ScreenType.PROFILE)
        settings_screen = first(ScreenType.SETTINGS)
        error = first(ScreenType.ERROR)
        empty = first(ScreenType.EMPTY_STATE)

        if launch and auth_screens:
            for auth in auth_screens:
                choice = "login" if "login" in auth.name.lower() else "sign up"
                link(launch, auth, f"User chooses {choice}")
        elif launch and onboarding:
            link(launch, onboarding, "App launches and starts onboarding")

        if not launch and len(auth_screens) > 1:
            link(auth_screens[0], auth_screens[1], "User chooses to create an account")

        for auth in auth_screens:
            link(
                auth,
                onboarding,
                "User completes authentication and starts onboarding",
                trigger=TransitionTrigger.API_SUCCESS,
            )

        link(onboarding, home, "User completes onboarding")
        link(home, primary, f"User navigates to {template.list_name.lower()}")
        link(primary, detail, f"User clicks on a {template.item_noun}")
        link(primary, form, f"User clicks add new {template.item_noun}")

        if profile:
            link(home, profile, "User navigates to profile")
        if settings_screen:
            link(home, settings_screen, "User opens settings")

        link(
            primary,
            empty,
            f"No {template.item_noun}s exist yet",
            trigger=TransitionTrigger.CONDITION,
            condition=f"{template.item_noun} count is zero",
        )
        link(
            home,
            error,
            "Loading data fails",
            trigger=TransitionTrigger.API_ERROR,
        )

        return transitions

    def get_statistics(self) -> Dict:
        return {
            'total_generations': self.stats['total_generations'],
            'by_family': dict(self.stats['by_family'])
        }


# Global heuristic generator instance
heuristic_architecture_generator = HeuristicArchitectureGenerator()

__all__ = [
    'GoalAnalysis',
    'HeuristicArchitectureGenerator',
    'heuristic_architecture_generator',
]
