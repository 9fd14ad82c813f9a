"""
Healing rules: which fixes may be tried for which failure category.

Rule selection only reasons about categories and policy. The text
rewriting itself lives in journeyqa.heal.fixes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from journeyqa.heal.config import FORBIDDEN_FIXES, FixType, HealingConfig
from journeyqa.heal.summary import FailureCategory, FailureClassification


@dataclass(frozen=True)
class HealingRule:
    fix_type: FixType
    applies_to: frozenset[FailureCategory]
    priority: int
    description: str
    enabled_by_default: bool = True


@dataclass
class HealingEvaluation:
    """Whether a failure can be healed and with which fixes, in order."""

    can_heal: bool
    applicable_fixes: list[FixType] = field(default_factory=list)
    reason: str | None = None


DEFAULT_HEALING_RULES: tuple[HealingRule, ...] = (
    HealingRule(
        fix_type=FixType.MISSING_AWAIT,
        applies_to=frozenset({FailureCategory.SELECTOR, FailureCategory.TIMING, FailureCategory.SCRIPT}),
        priority=1,
        description="Add missing await to async operations",
    ),
    HealingRule(
        fix_type=FixType.SELECTOR_REFINE,
        applies_to=frozenset({FailureCategory.SELECTOR}),
        priority=2,
        description="Replace CSS selector with role/label/testid",
    ),
    HealingRule(
        fix_type=FixType.ADD_EXACT,
        applies_to=frozenset({FailureCategory.SELECTOR}),
        priority=3,
        description="Add exact=True to resolve ambiguous locators",
    ),
    HealingRule(
        fix_type=FixType.NAVIGATION_WAIT,
        applies_to=frozenset({FailureCategory.NAVIGATION, FailureCategory.TIMING}),
        priority=4,
        description="Add wait_for_url after navigation",
    ),
    HealingRule(
        fix_type=FixType.WEB_FIRST_ASSERTION,
        applies_to=frozenset({FailureCategory.TIMING, FailureCategory.DATA}),
        priority=5,
        description="Convert to auto-retrying web-first assertion",
    ),
    HealingRule(
        fix_type=FixType.TIMEOUT_INCREASE,
        applies_to=frozenset({FailureCategory.TIMING}),
        priority=6,
        description="Increase operation timeout (bounded)",
        enabled_by_default=False,
    ),
)

DEFAULT_ALLOWED_FIXES: tuple[FixType, ...] = tuple(
    rule.fix_type for rule in sorted(DEFAULT_HEALING_RULES, key=lambda r: r.priority) if rule.enabled_by_default
)

DEFAULT_HEALING_CONFIG = HealingConfig()

UNHEALABLE_CATEGORIES = frozenset({FailureCategory.AUTH, FailureCategory.ENV, FailureCategory.UNKNOWN})


def is_category_healable(category: FailureCategory) -> bool:
    return category not in UNHEALABLE_CATEGORIES


def get_applicable_rules(
    classification: FailureClassification,
    config: HealingConfig = DEFAULT_HEALING_CONFIG,
) -> list[HealingRule]:
    """
    Rules that may be tried for a failure, lowest priority number first.

    Returns an empty list when healing is disabled or the category is
    unhealable. Forbidden fixes are never returned.
    """
    if not config.enabled or not is_category_healable(classification.category):
        return []
    rules = [
        rule
        for rule in DEFAULT_HEALING_RULES
        if classification.category in rule.applies_to
        and rule.fix_type in config.allowed_fixes
        and not is_fix_forbidden(rule.fix_type, config)
    ]
    return sorted(rules, key=lambda r: r.priority)


def evaluate_healing(
    classification: FailureClassification,
    config: HealingConfig = DEFAULT_HEALING_CONFIG,
) -> HealingEvaluation:
    """
    Decide whether a failure can be healed.

    Args:
        classification: Classified failure
        config: Healing policy

    Returns:
        HealingEvaluation with the ordered fixes or the reason it cannot heal
    """
    if not config.enabled:
        return HealingEvaluation(can_heal=False, reason="Healing is disabled")
    if not is_category_healable(classification.category):
        return HealingEvaluation(
            can_heal=False,
            reason=f"Category '{classification.category}' cannot be healed automatically",
        )
    rules = get_applicable_rules(classification, config)
    if not rules:
        return HealingEvaluation(can_heal=False, reason="No applicable healing rules for this failure")
    return HealingEvaluation(can_heal=True, applicable_fixes=[r.fix_type for r in rules])


def get_next_fix(
    classification: FailureClassification,
    attempted: list[FixType] | tuple[FixType, ...],
    config: HealingConfig = DEFAULT_HEALING_CONFIG,
) -> FixType | None:
    """First applicable fix that has not been attempted yet."""
    evaluation = evaluate_healing(classification, config)
    for fix in evaluation.applicable_fixes:
        if fix not in attempted:
            return fix
    return None


def is_fix_allowed(fix_type: str, config: HealingConfig = DEFAULT_HEALING_CONFIG) -> bool:
    return config.enabled and fix_type in config.allowed_fixes and not is_fix_forbidden(fix_type, config)


def is_fix_forbidden(fix_type: str, config: HealingConfig | None = None) -> bool:
    """Forbidden by the built-in list or by the given config."""
    if fix_type in FORBIDDEN_FIXES:
        return True
    return config is not None and config.is_forbidden(fix_type)


def get_healing_recommendation(classification: FailureClassification) -> str:
    match classification.category:
        case FailureCategory.SELECTOR:
            return "Refine selector to use role, label, or testid locator strategy"
        case FailureCategory.TIMING:
            return "Add explicit wait for expected state or use web-first assertion"
        case FailureCategory.NAVIGATION:
            return "Add wait_for_url or to_have_url assertion after navigation"
        case FailureCategory.DATA:
            return "Verify test data and prefer web-first assertions for dynamic values"
        case FailureCategory.AUTH:
            return "Check authentication state; may need to refresh session"
        case FailureCategory.ENV:
            return "Verify environment connectivity and application availability"
        case FailureCategory.SCRIPT:
            return "Fix the Python error in the test code"
        case _:
            return "Review error details manually to determine appropriate fix"


def get_post_healing_recommendation(classification: FailureClassification, attempt_count: int) -> str:
    """Advice once the loop gives up."""
    base = f"Healing exhausted after {attempt_count} attempts."
    match classification.category:
        case FailureCategory.SELECTOR:
            return f"{base} Consider adding data-testid to the target element or quarantining the test."
        case FailureCategory.TIMING:
            return f"{base} The application may have a genuine performance issue. Consider quarantining."
        case FailureCategory.NAVIGATION:
            return f"{base} The navigation flow may have changed. Review Journey steps."
        case _:
            return f"{base} Consider quarantining the test and filing a bug report."
