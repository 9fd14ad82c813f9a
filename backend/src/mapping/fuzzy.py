"""
Fuzzy step matching against curated example phrasings.

Used after exact patterns and the LLKB fail. Each pattern is associated
with example steps chosen from keywords in its name; the input's
canonical form is compared with each example's canonical form by edit
distance. Thresholds are deliberately high so near-misses do not produce
wrong actions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from journeyqa.ir.models import (
    Check,
    Clear,
    Click,
    DoubleClick,
    ExpectHidden,
    ExpectText,
    ExpectVisible,
    Fill,
    Focus,
    Goto,
    Hover,
    IRPrimitive,
    LocatorSpec,
    LocatorStrategy,
    Press,
    RightClick,
    Select,
    Uncheck,
    ValueSpec,
    WaitForHidden,
    WaitForNetworkIdle,
    WaitForTimeout,
    WaitForVisible,
)
from journeyqa.mapping.normalize import get_canonical_form
from journeyqa.mapping.patterns import ALL_PATTERNS, StepPattern
from journeyqa.mapping.similarity import calculate_similarity

logger = structlog.get_logger(__name__)

EARLY_STOP_SIMILARITY = 0.98
GENERIC_PRIMITIVE_SIMILARITY = 0.90

# (name keywords, example phrasings)
EXAMPLE_PHRASES: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (
        ("navigate", "goto"),
        (
            "navigate to /home",
            "go to /login",
            "open /dashboard",
            "visit the homepage",
            "navigate to the settings page",
        ),
    ),
    (
        ("click",),
        (
            "click the submit button",
            "click on save",
            "click cancel button",
            "press the login button",
            "tap the menu icon",
        ),
    ),
    (
        ("fill", "enter", "type"),
        (
            "enter username in the username field",
            "fill password in password field",
            "type hello in the search box",
            "input test@example.com in email field",
            "enter value into the input",
        ),
    ),
    (
        ("see", "visible", "verify"),
        (
            "see the welcome message",
            "verify the success message is displayed",
            "confirm the error appears",
            "should see login button",
            "expect the form to be visible",
        ),
    ),
    (
        ("wait",),
        (
            "wait for network idle",
            "wait for page to load",
            "wait 3 seconds",
            "wait for the spinner to disappear",
            "wait until the modal closes",
        ),
    ),
    (
        ("select",),
        (
            "select option 1 from dropdown",
            "choose value from the list",
            "pick an item from menu",
            "select country from country dropdown",
        ),
    ),
    (
        ("check",),
        (
            "check the checkbox",
            "tick the agreement box",
            "check remember me",
            "uncheck the newsletter option",
        ),
    ),
    (
        ("hover",),
        (
            "hover over the menu",
            "mouse over the dropdown",
            "hover on the button",
        ),
    ),
    (
        ("press",),
        (
            "press enter",
            "press tab",
            "press escape key",
            "hit the enter key",
        ),
    ),
    (
        ("text", "contain"),
        (
            "see text welcome back",
            "page contains login form",
            "element has text submit",
        ),
    ),
)

_QUOTED = re.compile(r"""["']([^"']+)["']""")
_TARGET_PATTERNS = (
    re.compile(r"(?:the|a)\s+[\"']?(\w+(?:\s+\w+)?)[\"']?\s+(?:button|field|input|link|element)", re.IGNORECASE),
    re.compile(r"(?:on|click|tap|press)\s+(?:the\s+)?[\"']?(\w+(?:\s+\w+)?)[\"']?", re.IGNORECASE),
    re.compile(r"(?:in|into)\s+(?:the\s+)?[\"']?(\w+(?:\s+\w+)?)[\"']?\s+(?:field|input)", re.IGNORECASE),
)


@dataclass
class FuzzyMatchResult:
    """Best fuzzy match for a step."""

    primitive: IRPrimitive
    pattern_name: str
    similarity: float
    matched_example: str
    original_text: str
    normalized_text: str


@dataclass
class _Example:
    pattern: StepPattern
    text: str
    canonical: str


def examples_for_pattern(pattern: StepPattern) -> list[str]:
    """Example phrasings selected by keywords in the pattern name."""
    name = pattern.name.lower()
    examples: list[str] = []
    for keywords, phrases in EXAMPLE_PHRASES:
        if any(k in name for k in keywords):
            examples.extend(phrases)
    return examples


def extract_target(text: str) -> str | None:
    """Guess the element a step refers to."""
    for pattern in _TARGET_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1)
    return None


def create_generic_primitive(pattern: StepPattern, text: str) -> IRPrimitive | None:
    """
    Synthesize a primitive of the pattern's type from loose step text.

    The first quoted string is the target and the second (or first) the
    value; otherwise a heuristic target is used.
    """
    quoted = _QUOTED.findall(text)
    target = quoted[0] if quoted else (extract_target(text) or "element")
    value = quoted[1] if len(quoted) > 1 else (quoted[0] if quoted else "")
    locator = LocatorSpec(strategy=LocatorStrategy.TEXT, value=target)

    match pattern.primitive_type:
        case "click":
            return Click(locator=locator)
        case "dblclick":
            return DoubleClick(locator=locator)
        case "right_click":
            return RightClick(locator=locator)
        case "fill":
            return Fill(locator=locator, value=ValueSpec(value=value))
        case "goto":
            url = re.search(r"(?:to|/)\s*([/\w.-]+)", text, re.IGNORECASE)
            return Goto(url=url.group(1) if url else "/")
        case "wait_for_timeout":
            amount = re.search(r"(\d+)\s*(?:second|sec|ms|millisecond)", text, re.IGNORECASE)
            if amount is None:
                return WaitForTimeout(ms=1000)
            ms = int(amount.group(1))
            return WaitForTimeout(ms=ms if "ms" in text.lower() else ms * 1000)
        case "wait_for_network_idle":
            return WaitForNetworkIdle()
        case "wait_for_visible":
            return WaitForVisible(locator=locator)
        case "wait_for_hidden":
            return WaitForHidden(locator=locator)
        case "expect_visible":
            return ExpectVisible(locator=locator)
        case "expect_hidden":
            return ExpectHidden(locator=locator)
        case "expect_text":
            return ExpectText(locator=locator, text=value)
        case "select":
            return Select(locator=locator, option=value)
        case "hover":
            return Hover(locator=locator)
        case "focus":
            return Focus(locator=locator)
        case "clear":
            return Clear(locator=locator)
        case "check":
            return Check(locator=locator)
        case "uncheck":
            return Uncheck(locator=locator)
        case "press":
            key = re.search(r"(?:press|hit|key)\s+(\w+)", text, re.IGNORECASE)
            return Press(key=key.group(1) if key else "Enter")
        case _:
            return None


class FuzzyMatcher:
    """
    Edit-distance matcher over pattern example phrasings.

    Examples and their canonical forms are computed once per instance.
    """

    def __init__(
        self,
        patterns: tuple[StepPattern, ...] = ALL_PATTERNS,
        min_similarity: float = 0.85,
        max_candidates: int = 10,
    ) -> None:
        self._patterns = patterns
        self._min_similarity = min_similarity
        self._max_candidates = max_candidates
        self._examples: list[_Example] | None = None
        self._log = logger.bind(component="fuzzy_matcher")

    @property
    def examples(self) -> list[_Example]:
        if self._examples is None:
            self._examples = [
                _Example(pattern=pattern, text=example, canonical=get_canonical_form(example))
                for pattern in self._patterns
                for example in examples_for_pattern(pattern)
            ]
        return self._examples

    def clear_cache(self) -> None:
        self._examples = None

    def match(self, text: str, min_similarity: float | None = None) -> FuzzyMatchResult | None:
        """
        Find the best pattern for text by example similarity.

        Args:
            text: Step text
            min_similarity: Override the instance threshold

        Returns:
            FuzzyMatchResult or None when no example is similar enough
        """
        threshold = self._min_similarity if min_similarity is None else min_similarity
        trimmed = text.strip()
        normalized = get_canonical_form(trimmed)

        candidates: list[tuple[float, _Example]] = []
        for example in self.examples:
            similarity = calculate_similarity(normalized, example.canonical)
            if similarity >= threshold:
                candidates.append((similarity, example))
                if similarity >= EARLY_STOP_SIMILARITY:
                    break

        if not candidates:
            return None

        # stable sort keeps library order among equal scores
        candidates.sort(key=lambda c: c[0], reverse=True)
        candidates = candidates[: self._max_candidates]
        similarity, best = candidates[0]

        self._log.debug(
            "Fuzzy candidates",
            text=trimmed,
            top=[(c[1].pattern.name, round(c[0], 3)) for c in candidates],
        )

        match = best.pattern.regex.match(trimmed)
        if match is not None:
            primitive = best.pattern.extract(match)
            if primitive is not None:
                return FuzzyMatchResult(
                    primitive=primitive,
                    pattern_name=best.pattern.name,
                    similarity=similarity,
                    matched_example=best.text,
                    original_text=trimmed,
                    normalized_text=normalized,
                )

        if similarity >= GENERIC_PRIMITIVE_SIMILARITY:
            primitive = create_generic_primitive(best.pattern, trimmed)
            if primitive is not None:
                return FuzzyMatchResult(
                    primitive=primitive,
                    pattern_name=f"{best.pattern.name}:fuzzy",
                    similarity=similarity,
                    matched_example=best.text,
                    original_text=trimmed,
                    normalized_text=normalized,
                )

        return None

    def get_stats(self) -> dict[str, object]:
        """Counts of patterns with examples and examples per primitive type."""
        by_type: dict[str, int] = {}
        with_examples = set()
        for example in self.examples:
            by_type[example.pattern.primitive_type] = by_type.get(example.pattern.primitive_type, 0) + 1
            with_examples.add(example.pattern.name)
        return {
            "patterns_with_examples": len(with_examples),
            "total_examples": len(self.examples),
            "examples_by_type": by_type,
        }
