"""
Promotion of learned patterns into the core pattern library.

A learned pattern is promoted once it is both confident and proven across
journeys. Promoted patterns are excluded from LLKB matching because the
core library is expected to cover them.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

import structlog

from journeyqa.llkb.models import (
    LearnedPattern,
    NearPromotion,
    PromotedPattern,
    PromotionReport,
)
from journeyqa.llkb.store import LearnedPatternStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PromotionCriteria:
    """Thresholds a learned pattern must meet to be promoted."""

    min_confidence: float = 0.9
    min_success_count: int = 5
    min_source_journeys: int = 2
    # Optional stricter gates, off by default
    max_fail_count: int | None = None
    min_success_rate: float | None = None


DEFAULT_PROMOTION_CRITERIA = PromotionCriteria()

_VERB_VARIANTS = ("click", "fill", "select", "type", "see", "wait")


def generate_regex_from_text(text: str) -> str:
    """
    Generalize an example step into an anchored regex.

    Quoted values become capture groups, articles and a leading "user"
    become optional, and common verbs accept a trailing "s".
    """
    pattern = re.escape(text.strip().lower())
    # re.escape escapes spaces and quotes; unescape them for readability
    pattern = pattern.replace("\\ ", " ").replace('\\"', '"').replace("\\'", "'")
    pattern = re.sub(r'"[^"]+"', '"([^"]+)"', pattern)
    pattern = re.sub(r"'[^']+'", "'([^']+)'", pattern)
    pattern = re.sub(r"\b(the|a|an) ", r"(?:\1\\s+)?", pattern)
    pattern = re.sub(r"^user ", r"(?:user\\s+)?", pattern)
    for verb in _VERB_VARIANTS:
        pattern = re.sub(rf"\b{verb}s?\b", f"{verb}s?", pattern)
    pattern = pattern.replace(" ", r"\s+")
    return f"^{pattern}$"


def meets_promotion_criteria(
    pattern: LearnedPattern,
    criteria: PromotionCriteria = DEFAULT_PROMOTION_CRITERIA,
) -> tuple[bool, list[str]]:
    """
    Check a pattern against the promotion criteria.

    Returns:
        Tuple of (meets all criteria, human-readable missing criteria)
    """
    missing: list[str] = []
    if pattern.confidence < criteria.min_confidence:
        missing.append(f"confidence: {pattern.confidence:.1%} < {criteria.min_confidence:.1%}")
    if pattern.success_count < criteria.min_success_count:
        missing.append(f"success_count: {pattern.success_count} < {criteria.min_success_count}")
    if len(pattern.source_journeys) < criteria.min_source_journeys:
        missing.append(f"source_journeys: {len(pattern.source_journeys)} < {criteria.min_source_journeys}")
    if criteria.max_fail_count is not None and pattern.fail_count > criteria.max_fail_count:
        missing.append(f"fail_count: {pattern.fail_count} > {criteria.max_fail_count}")
    if criteria.min_success_rate is not None and pattern.success_rate < criteria.min_success_rate:
        missing.append(f"success_rate: {pattern.success_rate:.1%} < {criteria.min_success_rate:.1%}")
    return not missing, missing


def _estimate_uses_needed(pattern: LearnedPattern, criteria: PromotionCriteria) -> int:
    needed = [1]
    if pattern.success_count < criteria.min_success_count:
        needed.append(criteria.min_success_count - pattern.success_count)
    if pattern.confidence < criteria.min_confidence:
        target = math.ceil(criteria.min_success_count * (1 + pattern.fail_count / 5))
        needed.append(max(0, target - pattern.success_count))
    return max(needed)


def get_promotable_patterns(
    store: LearnedPatternStore,
    criteria: PromotionCriteria = DEFAULT_PROMOTION_CRITERIA,
) -> list[PromotedPattern]:
    """Patterns meeting the criteria, highest priority first."""
    promotable = [
        PromotedPattern(
            pattern=p,
            generated_regex=generate_regex_from_text(p.original_text),
            priority=p.success_count * p.confidence,
        )
        for p in store.load()
        if not p.promoted_to_core and meets_promotion_criteria(p, criteria)[0]
    ]
    promotable.sort(key=lambda pp: pp.priority, reverse=True)
    return promotable


def mark_patterns_promoted(
    store: LearnedPatternStore,
    pattern_ids: list[str] | None = None,
    criteria: PromotionCriteria = DEFAULT_PROMOTION_CRITERIA,
) -> list[str]:
    """
    Flag patterns as promoted.

    Only patterns meeting the criteria are promoted, so promotion can
    never bypass the thresholds.

    Args:
        store: Store holding the patterns
        pattern_ids: Restrict promotion to these ids (all when None)
        criteria: Promotion thresholds

    Returns:
        Ids of the newly promoted patterns
    """
    patterns = store.load(bypass_cache=True)
    wanted = set(pattern_ids) if pattern_ids is not None else None
    now = store.now()
    promoted: list[str] = []

    for pattern in patterns:
        if pattern.promoted_to_core:
            continue
        if wanted is not None and pattern.id not in wanted:
            continue
        meets, missing = meets_promotion_criteria(pattern, criteria)
        if not meets:
            logger.debug("Pattern not promotable", pattern_id=pattern.id, missing=missing)
            continue
        pattern.promoted_to_core = True
        pattern.promoted_at = now
        promoted.append(pattern.id)

    if promoted:
        store.save(patterns)
        logger.info("Promoted learned patterns", count=len(promoted), pattern_ids=promoted)
    return promoted


def analyze_for_promotion(
    store: LearnedPatternStore,
    criteria: PromotionCriteria = DEFAULT_PROMOTION_CRITERIA,
) -> PromotionReport:
    """Classify every pattern as promoted, promotable, near promotion or immature."""
    patterns = store.load()
    report = PromotionReport(analyzed_at=store.now(), total_patterns=len(patterns))

    for pattern in patterns:
        if pattern.promoted_to_core:
            report.already_promoted += 1
            continue

        meets, missing = meets_promotion_criteria(pattern, criteria)
        if meets:
            report.promotable.append(
                PromotedPattern(
                    pattern=pattern,
                    generated_regex=generate_regex_from_text(pattern.original_text),
                    priority=pattern.success_count * pattern.confidence,
                )
            )
        elif len(missing) <= 2 and pattern.success_count >= 2:
            report.near_promotion.append(
                NearPromotion(
                    pattern=pattern,
                    missing_criteria=missing,
                    estimated_uses_needed=_estimate_uses_needed(pattern, criteria),
                )
            )
        else:
            report.needs_more_data += 1

    report.promotable.sort(key=lambda pp: pp.priority, reverse=True)
    return report
