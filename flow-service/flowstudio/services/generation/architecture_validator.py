"""
Architecture validator.

Checks the structural invariants of an app-flow graph and reports
UX-level warnings with actionable suggestions.
"""
from typing import Dict, Any, List, Tuple

from flowstudio.config import settings
from flowstudio.models.schemas.architecture import Architecture, ScreenType, reachable_ids
from flowstudio.utils.logging import get_logger, log_context

logger = get_logger(__name__)


class ValidationWarning:
    """Validation warning/error"""

    def __init__(self, level: str, component: str, message: str, suggestion: str = ""):
        self.level = level  # "info", "warning", "error"
        self.component = component
        self.message = message
        self.suggestion = suggestion

    def to_dict(self) -> Dict[str, str]:
        return {
            'level': self.level,
            'component': self.component,
            'message': self.message,
            'suggestion': self.suggestion
        }

    def __str__(self) -> str:
        s = f"[{self.level.upper()}] {self.component}: {self.message}"
        if self.suggestion:
            s += f"\n   {self.suggestion}"
        return s


class ArchitectureValidator:
    """
    Validation passes:
    1. Screens (non-empty, unique ids, size)
    2. Transitions (endpoints exist, self-loops)
    3. Connectivity (reachability from the entry screen, orphans)
    4. Authentication consistency

    Errors make the architecture invalid; warnings and infos do not.
    """

    def __init__(self, max_screens: int = None):
        self.max_screens = max_screens or settings.max_screens

        self.stats = {
            'total_validations': 0,
            'passed': 0,
            'failed': 0
        }

    def validate(
        self,
        architecture: Architecture,
        source: str = "unknown"
    ) -> Tuple[bool, List[ValidationWarning]]:
        """
        Args:
            architecture: Architecture to validate
            source: Where it came from ("llm", "heuristic", "import")

        Returns:
            Tuple of (is_valid, warnings_list)
        """
        warnings: List[ValidationWarning] = []
        self.stats['total_validations'] += 1

        with log_context(operation="architecture_validation"):
            self._validate_screens(architecture, warnings)
            if architecture.screens:
                self._validate_transitions(architecture, warnings)
                self._validate_connectivity(architecture, warnings)
                self._validate_auth(architecture, warnings)

            error_count = sum(1 for w in warnings if w.level == "error")
            warning_count = sum(1 for w in warnings if w.level == "warning")
            is_valid = error_count == 0

            if is_valid:
                self.stats['passed'] += 1
                logger.info(
                    "✅ validation.passed",
                    extra={"warnings": warning_count, "source": source}
                )
            else:
                self.stats['failed'] += 1
                logger.error(
                    "❌ validation.failed",
                    extra={
                        "errors": error_count,
                        "warnings": warning_count,
                        "source": source,
                        "details": [w.to_dict() for w in warnings if w.level == "error"][:10]
                    }
                )

            return is_valid, warnings

    def _validate_screens(self, architecture: Architecture, warnings: List[ValidationWarning]) -> None:
        if len(architecture.screens) == 0:
            warnings.append(ValidationWarning(
                level="error",
                component="screens",
                message="No screens defined",
                suggestion="Add at least one screen to the architecture"
            ))
            return

        screen_ids = [s.id for s in architecture.screens]
        duplicates = {sid for sid in screen_ids if screen_ids.count(sid) > 1}
        if duplicates:
            warnings.append(ValidationWarning(
                level="error",
                component="screens",
                message=f"Duplicate screen IDs: {sorted(duplicates)}",
                suggestion="Ensure all screen IDs are unique"
            ))

        if len(architecture.screens) > self.max_screens:
            warnings.append(ValidationWarning(
                level="warning",
                component="screens",
                message=f"Large number of screens ({len(architecture.screens)})",
                suggestion="Consider grouping screens behind tab or drawer navigation"
            ))

    def _validate_transitions(self, architecture: Architecture, warnings: List[ValidationWarning]) -> None:
        screen_ids = {s.id for s in architecture.screens}

        for transition in architecture.transitions:
            for endpoint in (transition.from_screen, transition.to_screen):
                if endpoint not in screen_ids:
                    warnings.append(ValidationWarning(
                        level="error",
                        component=f"transition:{transition.id}",
                        message=f"Transition references non-existent screen: {endpoint}",
                        suggestion="Remove the transition or add the missing screen"
                    ))

            if transition.is_self_loop:
                warnings.append(ValidationWarning(
                    level="info",
                    component=f"transition:{transition.id}",
                    message=f"Self-loop on screen '{transition.from_screen}'",
                    suggestion="Self-loops usually represent a refresh or in-place update"
                ))

    def _validate_connectivity(self, architecture: Architecture, warnings: List[ValidationWarning]) -> None:
        entry = architecture.screens[0]
        reachable = reachable_ids(entry.id, architecture.transitions)

        unreachable = [s.id for s in architecture.screens if s.id not in reachable]
        if unreachable:
            warnings.append(ValidationWarning(
                level="error",
                component="connectivity",
                message=f"Unreachable screens: {', '.join(unreachable)}",
                suggestion=f"Add transitions from '{entry.name}' or its successors"
            ))

        if len(architecture.screens) > 1:
            for screen in architecture.screens:
                if not architecture.incident_transitions(screen.id):
                    warnings.append(ValidationWarning(
                        level="warning",
                        component=f"screen:{screen.id}",
                        message=f"Screen '{screen.name}' has no transitions",
                        suggestion="Connect the screen to the flow"
                    ))

    def _validate_auth(self, architecture: Architecture, warnings: List[ValidationWarning]) -> None:
        gated = [s for s in architecture.screens if s.requires_auth]
        if gated and not architecture.screens_by_type(ScreenType.AUTH):
            warnings.append(ValidationWarning(
                level="warning",
                component="auth",
                message=f"{len(gated)} screen(s) require authentication but there is no auth screen",
                suggestion="Add a login screen before the gated screens"
            ))

    def get_statistics(self) -> Dict[str, Any]:
        """Get validation statistics"""
        total = self.stats['total_validations']

        return {
            **self.stats,
            'pass_rate': (self.stats['passed'] / total * 100) if total > 0 else 0
        }


# Global validator instance
architecture_validator = ArchitectureValidator()

__all__ = [
    'ValidationWarning',
    'ArchitectureValidator',
    'architecture_validator',
]
