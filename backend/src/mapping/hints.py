"""
Inline locator and behavior hints in journey steps.

Authors can pin a locator or tweak behavior by appending hints such as
``(role=button)``, ``(testid="submit-btn", exact=true)`` or
``(signal=networkidle)``. Hints always override inferred locators.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

from journeyqa.ir.models import (
    CallModule,
    Check,
    Click,
    ExpectVisible,
    Fill,
    Goto,
    IRPrimitive,
    LocatorOptions,
    LocatorSpec,
    LocatorStrategy,
    ValueSpec,
    supports_timeout,
)

logger = structlog.get_logger(__name__)


class HintType(StrEnum):
    """Recognized hint keys."""

    ROLE = "role"
    TESTID = "testid"
    LABEL = "label"
    TEXT = "text"
    EXACT = "exact"
    LEVEL = "level"
    SIGNAL = "signal"
    MODULE = "module"
    WAIT = "wait"
    TIMEOUT = "timeout"


LOCATOR_HINT_TYPES = frozenset({HintType.ROLE, HintType.TESTID, HintType.LABEL, HintType.TEXT})
BEHAVIOR_HINT_TYPES = frozenset({HintType.SIGNAL, HintType.MODULE, HintType.WAIT, HintType.TIMEOUT})

WAIT_STATES = ("networkidle", "domcontentloaded", "load", "commit")

VALID_ROLES = frozenset(
    {
        "alert", "alertdialog", "application", "article", "banner", "button",
        "cell", "checkbox", "columnheader", "combobox", "complementary",
        "contentinfo", "definition", "dialog", "directory", "document", "feed",
        "figure", "form", "grid", "gridcell", "group", "heading", "img", "link",
        "list", "listbox", "listitem", "log", "main", "marquee", "math", "menu",
        "menubar", "menuitem", "menuitemcheckbox", "menuitemradio", "navigation",
        "none", "note", "option", "presentation", "progressbar", "radio",
        "radiogroup", "region", "row", "rowgroup", "rowheader", "scrollbar",
        "search", "searchbox", "separator", "slider", "spinbutton", "status",
        "switch", "tab", "table", "tablist", "tabpanel", "term", "textbox",
        "timer", "toolbar", "tooltip", "tree", "treegrid", "treeitem",
    }
)

# One (key=value) pair; value is double-quoted, single-quoted or bare.
HINT_PAIR_PATTERN = re.compile(
    r"""([a-z]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^,)\s]*))""",
    re.IGNORECASE,
)

# A whole parenthesized hint section, possibly holding several pairs.
HINT_SECTION_PATTERN = re.compile(
    r"""\(\s*[a-z]+\s*=\s*(?:"[^"]*"|'[^']*'|[^,)\s]*)"""
    r"""(?:\s*,\s*[a-z]+\s*=\s*(?:"[^"]*"|'[^']*'|[^,)\s]*))*\s*\)""",
    re.IGNORECASE,
)

_QUOTED_PATTERN = re.compile(r"""["']([^"']+)["']""")
_WHITESPACE = re.compile(r"\s+")


@dataclass
class Hint:
    """A single parsed hint."""

    type: HintType
    value: str
    raw: str


@dataclass
class ParsedHints:
    """Result of parsing hints out of a step."""

    hints: list[Hint]
    clean_text: str
    original_text: str
    warnings: list[str] = field(default_factory=list)


@dataclass
class LocatorHints:
    """Locator-related hints."""

    role: str | None = None
    testid: str | None = None
    label: str | None = None
    text: str | None = None
    exact: bool | None = None
    level: int | None = None


@dataclass
class BehaviorHints:
    """Behavior-related hints."""

    signal: str | None = None
    module: str | None = None
    wait: str | None = None
    timeout: int | None = None


@dataclass
class ExtractedHints:
    """Hints split into locator and behavior groups."""

    locator: LocatorHints
    behavior: BehaviorHints
    has_hints: bool
    clean_text: str
    warnings: list[str] = field(default_factory=list)


def parse_hints(text: str) -> ParsedHints:
    """
    Parse all hint sections out of a step.

    Invalid hints are dropped with a warning; they never raise.

    Args:
        text: Raw step text

    Returns:
        ParsedHints with the recognized hints and the text without them
    """
    hints: list[Hint] = []
    warnings: list[str] = []

    for section in HINT_SECTION_PATTERN.finditer(text):
        for pair in HINT_PAIR_PATTERN.finditer(section.group(0)):
            key = pair.group(1).lower()
            value = next((g for g in pair.group(2, 3, 4) if g is not None), "")
            raw = pair.group(0)

            try:
                hint_type = HintType(key)
            except ValueError:
                warnings.append(f"Unknown hint type: {key}")
                continue

            if not value.strip():
                warnings.append(f"Empty value for hint: {key}")
                continue

            warning = _validate_hint(hint_type, value)
            if warning:
                warnings.append(warning)
                continue

            hints.append(Hint(type=hint_type, value=value, raw=raw))

    clean_text = _WHITESPACE.sub(" ", HINT_SECTION_PATTERN.sub(" ", text)).strip()

    if warnings:
        logger.debug("Hint warnings", text=text, warnings=warnings)

    return ParsedHints(hints=hints, clean_text=clean_text, original_text=text, warnings=warnings)


def _validate_hint(hint_type: HintType, value: str) -> str | None:
    match hint_type:
        case HintType.ROLE:
            if value.lower() not in VALID_ROLES:
                return f"Invalid ARIA role: {value}"
        case HintType.LEVEL:
            if not value.isdigit() or not 1 <= int(value) <= 6:
                return f"Invalid heading level: {value}"
        case HintType.TIMEOUT:
            if not value.isdigit():
                return f"Invalid timeout: {value}"
        case HintType.WAIT:
            if value.lower() not in WAIT_STATES:
                return f"Invalid wait state: {value}"
        case HintType.EXACT:
            if value.lower() not in ("true", "false"):
                return f"Invalid exact value: {value}"
    return None


def extract_hints(text: str) -> ExtractedHints:
    """Parse hints and group them into locator and behavior hints."""
    parsed = parse_hints(text)
    locator = LocatorHints()
    behavior = BehaviorHints()

    for hint in parsed.hints:
        match hint.type:
            case HintType.ROLE:
                locator.role = hint.value.lower()
            case HintType.TESTID:
                locator.testid = hint.value
            case HintType.LABEL:
                locator.label = hint.value
            case HintType.TEXT:
                locator.text = hint.value
            case HintType.EXACT:
                locator.exact = hint.value.lower() == "true"
            case HintType.LEVEL:
                locator.level = int(hint.value)
            case HintType.SIGNAL:
                behavior.signal = hint.value
            case HintType.MODULE:
                behavior.module = hint.value
            case HintType.WAIT:
                behavior.wait = hint.value.lower()
            case HintType.TIMEOUT:
                behavior.timeout = int(hint.value)

    return ExtractedHints(
        locator=locator,
        behavior=behavior,
        has_hints=bool(parsed.hints),
        clean_text=parsed.clean_text,
        warnings=parsed.warnings,
    )


def has_locator_hints(hints: ExtractedHints) -> bool:
    """True when any hint pins a locator."""
    loc = hints.locator
    return any(v is not None for v in (loc.role, loc.testid, loc.label, loc.text))


def has_behavior_hints(hints: ExtractedHints) -> bool:
    """True when any behavior hint is present."""
    beh = hints.behavior
    return any(v is not None for v in (beh.signal, beh.module, beh.wait, beh.timeout))


def parse_module_hint(value: str) -> tuple[str, str] | None:
    """Split ``module.method``; anything other than two parts is rejected."""
    parts = value.split(".")
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


def build_locator_from_hints(hints: ExtractedHints) -> LocatorSpec | None:
    """
    Build a locator from hints.

    Priority: testid > role (name from label) > label > text.
    """
    loc = hints.locator
    if loc.testid:
        return LocatorSpec.of(LocatorStrategy.TESTID, loc.testid)
    if loc.role:
        level = loc.level if loc.role == "heading" else None
        return LocatorSpec.role(loc.role, name=loc.label, exact=loc.exact, level=level)
    if loc.label:
        return LocatorSpec.of(LocatorStrategy.LABEL, loc.label, exact=loc.exact)
    if loc.text:
        return LocatorSpec.of(LocatorStrategy.TEXT, loc.text, exact=loc.exact)
    return None


EXACT_STRATEGIES = frozenset({LocatorStrategy.ROLE, LocatorStrategy.LABEL, LocatorStrategy.TEXT})


def with_exact(locator: LocatorSpec, exact: bool) -> LocatorSpec:
    """
    Set the exact option on a locator that supports it.

    Returns the locator unchanged for strategies without text matching
    and for role locators without an accessible name.
    """
    if locator.strategy not in EXACT_STRATEGIES:
        return locator
    options = locator.options or LocatorOptions()
    if locator.strategy == LocatorStrategy.ROLE and options.name is None:
        return locator
    return locator.model_copy(update={"options": options.model_copy(update={"exact": exact})})


def create_primitive_from_hints(text: str, hints: ExtractedHints) -> IRPrimitive | None:
    """
    Infer an action from step keywords when only hints locate the target.

    Returns None when the hints do not provide a locator or module.
    """
    locator = build_locator_from_hints(hints)
    if locator is None:
        module = parse_module_hint(hints.behavior.module) if hints.behavior.module else None
        if module is None:
            return None
        return CallModule(module=module[0], method=module[1])

    lowered = text.lower()
    primitive: IRPrimitive
    if "click" in lowered or "press" in lowered:
        primitive = Click(locator=locator)
    elif any(word in lowered for word in ("enter", "type", "fill")):
        quoted = _QUOTED_PATTERN.search(text)
        value = quoted.group(1) if quoted else ""
        primitive = Fill(locator=locator, value=ValueSpec(value=value))
    elif any(word in lowered for word in ("see", "visible", "display")):
        primitive = ExpectVisible(locator=locator)
    elif "check" in lowered or "select" in lowered:
        primitive = Check(locator=locator)
    else:
        primitive = Click(locator=locator)

    return apply_behavior_hints(primitive, hints)


def apply_hints_to_primitive(primitive: IRPrimitive, hints: ExtractedHints) -> IRPrimitive:
    """
    Overlay hints onto a primitive produced by matching.

    A hinted locator replaces the inferred one on primitives that have a
    locator. A lone exact hint refines the inferred locator instead.
    Behavior hints merge into fields the variant declares.
    """
    if not hints.has_hints:
        return primitive

    update: dict[str, object] = {}
    current = getattr(primitive, "locator", None)
    locator = build_locator_from_hints(hints)
    if locator is not None and current is not None:
        update["locator"] = locator
    elif current is not None and hints.locator.exact is not None:
        refined = with_exact(current, hints.locator.exact)
        if refined is current:
            logger.debug("Exact hint ignored", strategy=str(current.strategy))
        else:
            update["locator"] = refined

    if update:
        primitive = primitive.model_copy(update=update)
    return apply_behavior_hints(primitive, hints)


def apply_behavior_hints(primitive: IRPrimitive, hints: ExtractedHints) -> IRPrimitive:
    """Merge timeout, signal, wait and module hints into a primitive."""
    behavior = hints.behavior
    update: dict[str, object] = {}

    if behavior.timeout is not None and supports_timeout(primitive):
        update["timeout"] = behavior.timeout

    match primitive:
        case Goto():
            if behavior.signal is not None:
                update["signal"] = behavior.signal
            if behavior.wait is not None:
                update["wait_until"] = behavior.wait
        case CallModule():
            module = parse_module_hint(behavior.module) if behavior.module else None
            if module is not None:
                update["module"], update["method"] = module

    if not update:
        return primitive
    return primitive.model_copy(update=update)
