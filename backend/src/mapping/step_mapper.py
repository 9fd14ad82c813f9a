"""
Step mapper: the cascade from journey step text to an IR primitive.

Per step, in strict order:
1. Inline hints are extracted and stripped from the matching text
2. Glossary synonyms are canonicalized
3. The core pattern library is tried (hints overlay the result)
4. Hints alone may fully determine the primitive
5. Learned patterns (LLKB), exact then fuzzy
6. The fuzzy example matcher
7. An optional fallback hook
8. Otherwise a blocked placeholder carrying the original text
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

import structlog

from journeyqa.ir.models import Blocked, IRPrimitive, is_assertion
from journeyqa.mapping.config import MatchOptions
from journeyqa.mapping.context import MatchingContext
from journeyqa.mapping.glossary import normalize_step_text
from journeyqa.mapping.hints import (
    ExtractedHints,
    apply_hints_to_primitive,
    create_primitive_from_hints,
    extract_hints,
)
from journeyqa.mapping.patterns import match_pattern_named

logger = structlog.get_logger(__name__)


class MatchSource(StrEnum):
    """Cascade stage that produced a primitive."""

    PATTERN = "pattern"
    HINTS = "hints"
    LLKB = "llkb"
    FUZZY = "fuzzy"
    FALLBACK = "fallback"
    NONE = "none"


@runtime_checkable
class StepFallback(Protocol):
    """Last-resort collaborator, e.g. an LLM-assisted mapper."""

    def suggest(self, text: str) -> IRPrimitive | None: ...


@dataclass
class StepMappingResult:
    """Outcome of mapping one step."""

    primitive: IRPrimitive
    source_text: str
    source: MatchSource
    is_assertion: bool = False
    pattern_name: str | None = None
    llkb_pattern_id: str | None = None
    confidence: float = 1.0
    message: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def is_blocked(self) -> bool:
        return isinstance(self.primitive, Blocked)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_text": self.source_text,
            "source": str(self.source),
            "primitive": self.primitive.model_dump(mode="json", exclude_none=True),
            "is_assertion": self.is_assertion,
            "pattern_name": self.pattern_name,
            "llkb_pattern_id": self.llkb_pattern_id,
            "confidence": round(self.confidence, 4),
            "message": self.message,
            "warnings": self.warnings,
        }


@dataclass
class UnifiedMatch:
    """Result of matching clean text without hints."""

    primitive: IRPrimitive | None
    source: MatchSource
    pattern_name: str | None = None
    confidence: float = 0.0
    llkb_pattern_id: str | None = None


@dataclass
class MappingStats:
    total: int
    mapped: int
    blocked: int
    actions: int
    assertions: int
    mapping_rate: float
    by_source: dict[str, int]


class StepMapper:
    """
    Maps journey steps to IR primitives.

    Usage:
        mapper = StepMapper(MatchingContext(store=store))
        result = mapper.map_step('User clicks "Submit" button')
    """

    def __init__(
        self,
        context: MatchingContext | None = None,
        options: MatchOptions | None = None,
        fallback: StepFallback | None = None,
    ) -> None:
        self._context = context or MatchingContext()
        self._options = options or MatchOptions()
        self._fallback = fallback
        self._log = logger.bind(component="step_mapper")

    @property
    def context(self) -> MatchingContext:
        return self._context

    @property
    def options(self) -> MatchOptions:
        return self._options

    def _prepare(self, text: str) -> str:
        if not self._options.normalize_text:
            return text.strip()
        return normalize_step_text(text.strip(), self._context.synonym_map)

    def match_text(self, text: str) -> UnifiedMatch:
        """
        Match hint-free text: core patterns, then LLKB, then fuzzy.

        Args:
            text: Step text without hints

        Returns:
            UnifiedMatch whose source is NONE when nothing matched
        """
        prepared = self._prepare(text)

        core = match_pattern_named(prepared, self._context.patterns)
        if core is not None:
            return UnifiedMatch(primitive=core[1], source=MatchSource.PATTERN, pattern_name=core[0], confidence=1.0)

        store = self._context.store
        if self._options.use_llkb and store is not None:
            llkb = store.match(
                prepared,
                min_confidence=self._options.llkb_min_confidence,
                min_similarity=self._options.llkb_min_similarity,
            )
            if llkb is not None:
                return UnifiedMatch(
                    primitive=llkb.primitive,
                    source=MatchSource.LLKB,
                    pattern_name=f"llkb:{llkb.pattern_id}",
                    confidence=llkb.confidence,
                    llkb_pattern_id=llkb.pattern_id,
                )

        if self._options.use_fuzzy:
            fuzzy = self._context.fuzzy.match(prepared, min_similarity=self._options.min_fuzzy_similarity)
            if fuzzy is not None:
                return UnifiedMatch(
                    primitive=fuzzy.primitive,
                    source=MatchSource.FUZZY,
                    pattern_name=fuzzy.pattern_name,
                    confidence=fuzzy.similarity,
                )

        return UnifiedMatch(primitive=None, source=MatchSource.NONE)

    def match_all(self, text: str) -> dict[str, UnifiedMatch]:
        """Run every matcher with permissive thresholds, for debugging."""
        prepared = self._prepare(text)
        results: dict[str, UnifiedMatch] = {}

        core = match_pattern_named(prepared, self._context.patterns)
        results["core"] = (
            UnifiedMatch(primitive=core[1], source=MatchSource.PATTERN, pattern_name=core[0], confidence=1.0)
            if core
            else UnifiedMatch(primitive=None, source=MatchSource.NONE)
        )

        store = self._context.store
        llkb = store.match(prepared, min_confidence=0.0) if store is not None else None
        results["llkb"] = (
            UnifiedMatch(
                primitive=llkb.primitive,
                source=MatchSource.LLKB,
                pattern_name=f"llkb:{llkb.pattern_id}",
                confidence=llkb.confidence,
                llkb_pattern_id=llkb.pattern_id,
            )
            if llkb
            else UnifiedMatch(primitive=None, source=MatchSource.NONE)
        )

        fuzzy = self._context.fuzzy.match(prepared, min_similarity=0.5)
        results["fuzzy"] = (
            UnifiedMatch(
                primitive=fuzzy.primitive,
                source=MatchSource.FUZZY,
                pattern_name=fuzzy.pattern_name,
                confidence=fuzzy.similarity,
            )
            if fuzzy
            else UnifiedMatch(primitive=None, source=MatchSource.NONE)
        )
        return results

    def has_pattern_match(self, text: str) -> bool:
        return self.match_text(text).primitive is not None

    def get_matched_pattern_name(self, text: str) -> str | None:
        return self.match_text(text).pattern_name

    def map_step(self, text: str, journey_id: str | None = None) -> StepMappingResult:
        """
        Map one step through the full cascade.

        Args:
            text: Raw step text, possibly carrying inline hints
            journey_id: Journey the step belongs to, for logging

        Returns:
            StepMappingResult; the primitive is Blocked when unmapped
        """
        hints = extract_hints(text)
        clean = hints.clean_text

        matched = self.match_text(clean)
        if matched.source == MatchSource.PATTERN and matched.primitive is not None:
            return self._result(text, hints, matched)

        hinted = create_primitive_from_hints(clean, hints)
        if hinted is not None:
            return self._build(text, hinted, MatchSource.HINTS, hints, pattern_name="hints")

        if matched.primitive is not None:
            return self._result(text, hints, matched)

        if self._options.use_fallback and self._fallback is not None:
            suggested = self._ask_fallback(clean)
            if suggested is not None:
                primitive = apply_hints_to_primitive(suggested, hints)
                return self._build(text, primitive, MatchSource.FALLBACK, hints, confidence=0.5)

        message = f'Could not map step: "{text}"'
        self._log.info("Step blocked", text=text, journey_id=journey_id)
        return StepMappingResult(
            primitive=Blocked(reason=message, source_text=text),
            source_text=text,
            source=MatchSource.NONE,
            confidence=0.0,
            message=message,
            warnings=list(hints.warnings),
        )

    def _ask_fallback(self, text: str) -> IRPrimitive | None:
        assert self._fallback is not None
        try:
            return self._fallback.suggest(text)
        except Exception as e:
            self._log.warning("Fallback mapper failed", text=text, error=str(e))
            return None

    def _result(self, text: str, hints: ExtractedHints, matched: UnifiedMatch) -> StepMappingResult:
        assert matched.primitive is not None
        primitive = apply_hints_to_primitive(matched.primitive, hints)
        return self._build(
            text,
            primitive,
            matched.source,
            hints,
            pattern_name=matched.pattern_name,
            llkb_pattern_id=matched.llkb_pattern_id,
            confidence=matched.confidence,
        )

    def _build(
        self,
        text: str,
        primitive: IRPrimitive,
        source: MatchSource,
        hints: ExtractedHints,
        pattern_name: str | None = None,
        llkb_pattern_id: str | None = None,
        confidence: float = 1.0,
    ) -> StepMappingResult:
        self._log.debug("Step mapped", text=text, source=str(source), type=primitive.type)
        return StepMappingResult(
            primitive=primitive,
            source_text=text,
            source=source,
            is_assertion=is_assertion(primitive),
            pattern_name=pattern_name,
            llkb_pattern_id=llkb_pattern_id,
            confidence=confidence,
            warnings=list(hints.warnings),
        )

    def map_steps(self, texts: list[str], journey_id: str | None = None) -> list[StepMappingResult]:
        """Map a list of steps, dropping blocked ones unless include_blocked is set."""
        results = [self.map_step(t, journey_id=journey_id) for t in texts]
        if not self._options.include_blocked:
            results = [r for r in results if not r.is_blocked]
        return results

    def record_outcome(self, result: StepMappingResult, passed: bool, journey_id: str | None = None) -> None:
        """
        Feed a real test outcome back into the LLKB.

        Passing tests teach the store every mapped step; failing tests
        only penalize steps that were mapped by learned or fuzzy matching.
        """
        store = self._context.store
        if store is None or result.is_blocked:
            return
        text = extract_hints(result.source_text).clean_text
        if passed:
            store.record_success(text, result.primitive, journey_id)
        elif result.source in (MatchSource.LLKB, MatchSource.FUZZY):
            store.record_failure(text, journey_id)


def get_mapping_stats(results: list[StepMappingResult]) -> MappingStats:
    """Aggregate counts over mapping results."""
    total = len(results)
    blocked = sum(1 for r in results if r.is_blocked)
    mapped = total - blocked
    assertions = sum(1 for r in results if not r.is_blocked and r.is_assertion)
    by_source: dict[str, int] = {}
    for r in results:
        by_source[str(r.source)] = by_source.get(str(r.source), 0) + 1
    return MappingStats(
        total=total,
        mapped=mapped,
        blocked=blocked,
        actions=mapped - assertions,
        assertions=assertions,
        mapping_rate=mapped / total if total else 0.0,
        by_source=by_source,
    )


def suggest_improvements(results: list[StepMappingResult]) -> list[str]:
    """Rephrasing suggestions for blocked steps."""
    suggestions: list[str] = []
    for result in results:
        if not result.is_blocked:
            continue
        source = result.source_text
        text = source.lower()
        if any(word in text for word in ("go", "open", "navigate")):
            hint = 'Try: "User navigates to /path" or "User opens /path"'
        elif any(word in text for word in ("click", "press", "button")):
            hint = "Try: \"User clicks 'Button Name' button\" or \"Click the 'Label' button\""
        elif any(word in text for word in ("enter", "type", "field")):
            hint = "Try: \"User enters 'value' in 'Field Label' field\""
        elif any(word in text for word in ("see", "visible", "display")):
            hint = "Try: \"User should see 'Text'\" or \"'Element' is visible\""
        else:
            hint = "Could not determine intent. Check the patterns documentation."
        suggestions.append(f'"{source}" - {hint}')
    return suggestions
