"""
Response repair: untrusted service text -> validated Architecture.

Two separate stages:
1. ``extract_json_object`` - can we find and decode a JSON object at all?
   Failure raises ``MalformedResponse``.
2. ``ResponseRepair.repair`` - normalize vocabulary, resolve references,
   drop dangling transitions and stitch orphans. This stage never fails
   once a payload with a non-empty ``screens`` list was decoded.

``repair_connectivity`` is a pure function over (screens, transitions) so
it can also check hand-authored or imported architectures.
"""
import json
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple
from uuid import uuid4

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
    reachable_ids,
)
from flowstudio.utils.datetime_utils import Clock, utc_now
from flowstudio.utils.logging import get_logger

logger = get_logger(__name__)


class MalformedResponse(Exception):
    """No decodable JSON object in the text, or the decoded value has the wrong shape"""
    pass


# ============================================================================
# STAGE 1: LOCATE + DECODE
# ============================================================================

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)\s*```", re.DOTALL)


def _strip_code_fences(text: str) -> str:
    """Return the first fenced block's body, or the text unchanged"""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


# Candidates tried per response before giving up
MAX_CANDIDATES = 64


def _balanced_objects(text: str) -> Iterator[str]:
    """
    Yield every balanced ``{...}`` substring, in order of its opening brace.

    Single left-to-right pass with a stack of open-brace offsets. String
    literals and escapes are honoured inside an open object so braces in
    quoted values do not count.
    """
    stack: List[int] = []
    spans: List[Tuple[int, int]] = []
    in_string = False
    escaped = False

    for pos, c in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
            continue

        if c == "{":
            stack.append(pos)
        elif not stack:
            continue
        elif c == '"':
            in_string = True
        elif c == "}":
            spans.append((stack.pop(), pos))

    for start, end in sorted(spans):
        yield text[start:end + 1]


def fix_common_json_issues(text: str) -> str:
    """Fix common JSON issues in model output"""

    # Remove single-line comments (outside of URLs)
    lines = []
    for line in text.split('\n'):
        line = re.sub(r'(?<!:)//.*$', '', line)
        lines.append(line)
    text = '\n'.join(lines)

    # Remove trailing commas in arrays and objects
    text = re.sub(r',(\s*[}\]])', r'\1', text)

    # Quote bare keys
    text = re.sub(r'([{,]\s*)([A-Za-z_]\w*)(\s*):', r'\1"\2"\3:', text)

    # Single quotes to double quotes
    text = re.sub(r"'([^']*)'", r'"\1"', text)

    return text


def _decode(candidate: str) -> Optional[Any]:
    # RecursionError: nesting deeper than the decoder allows
    try:
        return json.loads(candidate)
    except (json.JSONDecodeError, RecursionError):
        pass

    try:
        return json.loads(fix_common_json_issues(candidate))
    except (json.JSONDecodeError, RecursionError):
        return None


def extract_json_object(raw_text: str) -> Dict[str, Any]:
    """
    Locate and decode the structured payload in ``raw_text``.

    Raises:
        MalformedResponse: no balanced object found, or none decodes to a dict
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise MalformedResponse("Empty response")

    text = _strip_code_fences(raw_text)

    whole = _decode(text) if text.startswith("{") else None
    if isinstance(whole, dict):
        return whole

    found_any = False
    for tried, candidate in enumerate(_balanced_objects(text)):
        if tried >= MAX_CANDIDATES:
            break
        found_any = True
        decoded = _decode(candidate)
        if isinstance(decoded, dict):
            return decoded

    if not found_any:
        raise MalformedResponse("No JSON object found in response")
    raise MalformedResponse("Located JSON object could not be decoded")


# ============================================================================
# STAGE 2: NORMALIZATION HELPERS
# ============================================================================

def _enum_lookup(enum_cls, value: Any, default):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    return default


def normalize_screen_type(value: Any) -> ScreenType:
    return _enum_lookup(ScreenType, value, ScreenType.HOME)


def normalize_trigger(value: Any) -> TransitionTrigger:
    return _enum_lookup(TransitionTrigger, value, TransitionTrigger.USER_ACTION)


def normalize_complexity(value: Any) -> ComplexityLevel:
    return _enum_lookup(ComplexityLevel, value, ComplexityLevel.SIMPLE)


def normalize_navigation_pattern(value: Any) -> NavigationPattern:
    return _enum_lookup(NavigationPattern, value, NavigationPattern.STACK)


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "y")
    return bool(value)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _next_id(prefix: str, used: set, start: int = 0) -> str:
    n = start
    while f"{prefix}_{n}" in used:
        n += 1
    return f"{prefix}_{n}"


def _assign_ids(raw_ids: List[Optional[str]], prefix: str) -> Tuple[List[str], List[bool]]:
    """
    Final id per entry, plus whether the entry kept its own id.

    The first occurrence of every explicit id is reserved before any id is
    generated, so ``<prefix>_<index>`` never takes an id a later entry asked for.
    """
    kept = [False] * len(raw_ids)
    used: set = set()
    for index, raw_id in enumerate(raw_ids):
        if raw_id and raw_id not in used:
            used.add(raw_id)
            kept[index] = True

    final: List[str] = []
    for index, raw_id in enumerate(raw_ids):
        if kept[index]:
            final.append(raw_id)
            continue
        generated = _next_id(prefix, used, start=index)
        used.add(generated)
        final.append(generated)

    return final, kept


# ============================================================================
# CONNECTIVITY REPAIR (pure)
# ============================================================================

def _synthetic_transition(source: Screen, target: Screen, used_ids: set) -> Transition:
    transition_id = _next_id("transition", used_ids)
    used_ids.add(transition_id)
    return Transition(
        id=transition_id,
        from_screen=source.id,
        to_screen=target.id,
        trigger=TransitionTrigger.NAVIGATION,
        description=f"Continue to {target.name}",
    )


def repair_connectivity(
    screens: List[Screen],
    transitions: List[Transition]
) -> List[Transition]:
    """
    Return ``transitions`` plus the synthetic transitions needed so that
    every screen is reachable from ``screens[0]``.

    Phase one stitches each screen with no incident transition from the
    most recently connected screen (a leading orphan is stitched forward to
    the next screen). Phase two adds a forward transition to any screen
    still unreachable along transition direction, from the nearest
    preceding reachable screen.
    """
    result = list(transitions)
    if len(screens) < 2:
        return result

    used_ids = {t.id for t in result}
    incident = set()
    for t in result:
        incident.add(t.from_screen)
        incident.add(t.to_screen)

    # Phase 1: orphans
    anchor: Optional[Screen] = None
    for index, screen in enumerate(screens):
        if screen.id in incident:
            anchor = screen
            continue

        if anchor is None:
            if index + 1 >= len(screens):
                continue
            target = screens[index + 1]
            result.append(_synthetic_transition(screen, target, used_ids))
            incident.update((screen.id, target.id))
            anchor = screen
            continue

        result.append(_synthetic_transition(anchor, screen, used_ids))
        incident.add(screen.id)
        anchor = screen

    # Phase 2: directed reachability from the entry screen
    entry = screens[0]
    reached = reachable_ids(entry.id, result)
    for index, screen in enumerate(screens):
        if screen.id in reached:
            continue

        source = entry
        for previous in reversed(screens[:index]):
            if previous.id in reached:
                source = previous
                break

        result.append(_synthetic_transition(source, screen, used_ids))
        reached = reachable_ids(entry.id, result)

    return result


# ============================================================================
# RESPONSE REPAIR
# ============================================================================

class ResponseRepair:
    """
    Turns a decoded service payload into a structurally valid Architecture.

    Repairs applied, in order:
    - vocabulary normalization (unknown screen type -> home, unknown
      trigger -> user_action, ...)
    - id assignment for missing / duplicate screen ids
    - reference resolution by id, then exact screen name; unresolvable
      transitions are dropped
    - connectivity repair
    """

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock
        self.stats = {
            'total_repairs': 0,
            'malformed': 0,
            'dropped_transitions': 0,
            'synthetic_transitions': 0,
            'normalized_values': 0
        }

    def repair(self, raw_text: str, original_goal: str) -> Architecture:
        """
        Args:
            raw_text: Untrusted service output
            original_goal: The user's goal (used as default description)

        Raises:
            MalformedResponse: no payload, undecodable, or no screens
        """
        self.stats['total_repairs'] += 1

        try:
            data = extract_json_object(raw_text)
        except MalformedResponse as e:
            self.stats['malformed'] += 1
            logger.warning(
                "⚠️ repair.payload.malformed",
                extra={"error": str(e), "response_preview": str(raw_text)[:200]}
            )
            raise

        return self.repair_payload(data, original_goal)

    def repair_payload(self, data: Dict[str, Any], original_goal: str) -> Architecture:
        """Repair an already-decoded payload"""
        raw_screens = data.get("screens")
        if not isinstance(raw_screens, list) or not raw_screens:
            self.stats['malformed'] += 1
            raise MalformedResponse("Payload has no 'screens' list")

        screen_dicts = [s for s in raw_screens if isinstance(s, dict)]
        if not screen_dicts:
            self.stats['malformed'] += 1
            raise MalformedResponse("Payload 'screens' contains no objects")

        screens, id_map = self._build_screens(screen_dicts)
        raw_transitions = data.get("transitions")
        if not isinstance(raw_transitions, list):
            raw_transitions = []
        transitions = self._build_transitions(raw_transitions, screens, id_map)

        repaired = repair_connectivity(screens, transitions)
        added = len(repaired) - len(transitions)
        if added:
            self.stats['synthetic_transitions'] += added
            logger.info(
                "repair.connectivity.stitched",
                extra={"synthetic_transitions": added}
            )

        now = self.clock()
        architecture = Architecture(
            id=f"app_{uuid4().hex[:12]}",
            name=_optional_text(data.get("appName")) or _optional_text(data.get("name")) or "Generated App",
            description=_optional_text(data.get("description")) or original_goal,
            screens=screens,
            transitions=repaired,
            metadata=ArchitectureMetadata(
                created_at=now,
                updated_at=now,
                tags=_string_list(data.get("tags")),
                complexity=normalize_complexity(data.get("complexity")),
                estimated_screens=len(screens),
                estimated_apis=0,
            ),
        )

        logger.info(
            "✅ repair.completed",
            extra={
                "screens": len(architecture.screens),
                "transitions": len(architecture.transitions),
                "synthetic_transitions": added
            }
        )
        return architecture

    # ------------------------------------------------------------------ #
    # Screens
    # ------------------------------------------------------------------ #

    def _build_screens(
        self,
        raw_screens: List[Dict[str, Any]]
    ) -> Tuple[List[Screen], Dict[str, str]]:
        """Screens plus the map from each explicit raw id to its final id"""
        raw_ids = [_optional_text(raw.get("id")) for raw in raw_screens]
        final_ids, kept = _assign_ids(raw_ids, "screen")
        self.stats['normalized_values'] += kept.count(False)
        id_map = {raw_id: final_ids[i] for i, raw_id in enumerate(raw_ids) if kept[i]}

        screens: List[Screen] = []
        for index, raw in enumerate(raw_screens):
            screen_id = final_ids[index]

            raw_type = raw.get("type")
            screen_type = normalize_screen_type(raw_type)
            if not isinstance(raw_type, str) or screen_type.value != raw_type.strip().lower():
                self.stats['normalized_values'] += 1
                logger.debug(
                    "repair.screen.type_defaulted",
                    extra={"screen_id": screen_id, "raw_type": raw_type}
                )

            raw_pattern = raw.get("navigationPattern", raw.get("navigation_pattern"))
            requires_auth = raw.get("requiresAuth", raw.get("requires_auth", False))
            if isinstance(raw.get("data"), dict) and "requiresAuth" in raw["data"]:
                requires_auth = raw["data"]["requiresAuth"]

            screens.append(Screen(
                id=screen_id,
                name=_optional_text(raw.get("name")) or f"Screen {index + 1}",
                type=screen_type,
                description=_optional_text(raw.get("description")) or "",
                components=_string_list(raw.get("components")),
                requires_auth=_coerce_bool(requires_auth),
                form_fields=self._build_form_fields(raw.get("formFields", raw.get("form_fields"))),
                user_intent=_optional_text(raw.get("userIntent", raw.get("user_intent"))),
                navigation_pattern=normalize_navigation_pattern(raw_pattern) if raw_pattern is not None else None,
            ))

        return screens, id_map

    def _build_form_fields(self, raw_fields: Any) -> List[FormField]:
        if not isinstance(raw_fields, list):
            return []

        fields = []
        for raw in raw_fields:
            if not isinstance(raw, dict) or not _optional_text(raw.get("name")):
                continue
            fields.append(FormField(
                name=raw["name"].strip(),
                type=_optional_text(raw.get("type")) or "text",
                required=_coerce_bool(raw.get("required", False)),
                validation=_optional_text(raw.get("validation")),
            ))
        return fields

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def _build_transitions(
        self,
        raw_transitions: List[Any],
        screens: List[Screen],
        id_map: Dict[str, str]
    ) -> List[Transition]:
        names: Dict[str, str] = {}
        for s in screens:
            names.setdefault(s.name, s.id)

        def resolve(ref: Any) -> Optional[str]:
            if not isinstance(ref, str):
                return None
            ref = ref.strip()
            if ref in id_map:
                return id_map[ref]
            return names.get(ref)

        resolved: List[Tuple[Dict[str, Any], str, str]] = []
        for raw in raw_transitions:
            if not isinstance(raw, dict):
                self.stats['dropped_transitions'] += 1
                continue

            source, target = resolve(raw.get("from")), resolve(raw.get("to"))
            if source is None or target is None:
                self.stats['dropped_transitions'] += 1
                logger.warning(
                    "repair.transition.dropped",
                    extra={"from": raw.get("from"), "to": raw.get("to")}
                )
                continue
            resolved.append((raw, source, target))

        transition_ids, _ = _assign_ids(
            [_optional_text(raw.get("id")) for raw, _, _ in resolved],
            "transition",
        )

        return [
            Transition(
                id=transition_id,
                from_screen=source,
                to_screen=target,
                trigger=normalize_trigger(raw.get("trigger")),
                condition=_optional_text(raw.get("condition")) or _optional_text(raw.get("userMotivation")),
                description=_optional_text(raw.get("description")) or "",
            )
            for transition_id, (raw, source, target) in zip(transition_ids, resolved)
        ]

    def get_statistics(self) -> Dict[str, Any]:
        return dict(self.stats)


# Global response repair instance
response_repair = ResponseRepair()

__all__ = [
    'MalformedResponse',
    'ResponseRepair',
    'extract_json_object',
    'fix_common_json_issues',
    'repair_connectivity',
    'normalize_screen_type',
    'normalize_trigger',
    'normalize_complexity',
    'normalize_navigation_pattern',
    'response_repair',
]
