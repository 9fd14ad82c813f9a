"""
Failure classifier.

Maps the error text of a failing test to a root-cause category by
counting keyword signature hits per category. Signatures cover the error
vocabulary of both the Python and the JavaScript Playwright bindings.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

import structlog

from journeyqa.heal.summary import (
    FailureCategory,
    FailureClassification,
    FailureDetails,
    VerifyStatus,
    VerifySummary,
)

logger = structlog.get_logger(__name__)

MAX_HITS_FOR_FULL_CONFIDENCE = 3


@dataclass(frozen=True)
class ClassificationSignature:
    category: FailureCategory
    keywords: tuple[re.Pattern[str], ...]
    explanation: str
    suggestion: str
    is_test_issue: bool


def _k(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


# Order matters: on equal hit counts the earlier category wins.
CLASSIFICATION_SIGNATURES: tuple[ClassificationSignature, ...] = (
    ClassificationSignature(
        category=FailureCategory.SELECTOR,
        keywords=_k(
            r"locator\s+resolved\s+to\s+\d+\s+elements",
            r"locator\.click:\s+Error",
            r"waiting\s+for\s+locator",
            r"element\s+is\s+not\s+visible",
            r"element\s+is\s+not\s+attached",
            r"element\s+is\s+not\s+enabled",
            r"getBy\w+\s*\([^)]+\)",
            r"get_by_\w+\s*\(",
            r"strict\s+mode\s+violation",
            r"No\s+element\s+matches\s+selector",
            r"Target\s+closed",
            r"element\s+is\s+outside\s+of\s+the\s+viewport",
        ),
        explanation="Element locator failed to find or interact with element",
        suggestion="Update selector to use more stable locator strategy (role, label, testid)",
        is_test_issue=True,
    ),
    ClassificationSignature(
        category=FailureCategory.TIMING,
        keywords=_k(
            r"timeout\s+\d+ms\s+exceeded",
            r"exceeded\s+while\s+waiting",
            r"timed?\s*out",
            r"waiting\s+for\s+navigation",
            r"waiting\s+for\s+load\s+state",
            r"response\s+took\s+too\s+long",
            r"expect\.\w+:\s+Timeout",
            r"LocatorAssertions\.\w+\s+with\s+timeout\s+\d+ms",
            r"navigation\s+was\s+interrupted",
        ),
        explanation="Operation timed out waiting for element or network",
        suggestion="Increase timeout or add explicit wait for expected state",
        is_test_issue=True,
    ),
    ClassificationSignature(
        category=FailureCategory.NAVIGATION,
        keywords=_k(
            r"expected\s+url.*to.*match",
            r"expected.*toHaveURL",
            r"to_have_url",
            r"page\s+has\s+been\s+closed",
            r"navigation\s+failed",
            r"net::ERR_",
            r"ERR_CONNECTION",
            r"ERR_NAME_NOT_RESOLVED",
            r"redirect",
            r"page\.goto:\s+Error",
            r"URL\s+is\s+not\s+valid",
        ),
        explanation="Navigation to URL failed or URL mismatch",
        suggestion="Check URL configuration and network connectivity",
        is_test_issue=False,
    ),
    ClassificationSignature(
        category=FailureCategory.DATA,
        keywords=_k(
            r"expected.*to\s+(?:be|equal|match|contain|have)",
            r"received.*but\s+expected",
            r"toEqual",
            r"toBe\(",
            r"toContain",
            r"toHaveText|to_have_text",
            r"toHaveValue|to_have_value",
            r"to_contain_text",
            r"assertion\s+failed",
            r"expected\s+value",
            r"does\s+not\s+match",
        ),
        explanation="Assertion failed due to unexpected data",
        suggestion="Verify test data matches expected application state",
        is_test_issue=False,
    ),
    ClassificationSignature(
        category=FailureCategory.AUTH,
        keywords=_k(
            r"401\s+Unauthorized",
            r"403\s+Forbidden",
            r"authentication\s+failed",
            r"login\s+failed",
            r"session\s+expired",
            r"token\s+invalid",
            r"access\s+denied",
            r"not\s+authenticated",
            r"sign\s*in\s+required",
            r"invalid\s+credentials",
        ),
        explanation="Authentication or authorization failed",
        suggestion="Check authentication state and credentials",
        is_test_issue=False,
    ),
    ClassificationSignature(
        category=FailureCategory.ENV,
        keywords=_k(
            r"ECONNREFUSED",
            r"ENOTFOUND",
            r"ETIMEDOUT",
            r"connection\s+refused",
            r"network\s+error",
            r"502\s+Bad\s+Gateway",
            r"503\s+Service\s+Unavailable",
            r"504\s+Gateway\s+Timeout",
            r"server\s+error",
            r"browser\s+has\s+been\s+closed",
            r"browser\s+crash",
            r"context\s+closed",
        ),
        explanation="Environment or infrastructure issue",
        suggestion="Check application availability and environment configuration",
        is_test_issue=False,
    ),
    ClassificationSignature(
        category=FailureCategory.SCRIPT,
        keywords=_k(
            r"SyntaxError",
            r"IndentationError",
            r"TypeError",
            r"AttributeError",
            r"NameError",
            r"ReferenceError",
            r"undefined\s+is\s+not",
            r"is\s+not\s+a\s+function",
            r"Cannot\s+read\s+propert",
            r"null\s+is\s+not",
            r"is\s+not\s+defined",
            r"was\s+never\s+awaited",
            r"Unexpected\s+token",
        ),
        explanation="Test script has a code error",
        suggestion="Fix the Python error in the test",
        is_test_issue=True,
    ),
)

HEALABLE_CATEGORIES = frozenset({FailureCategory.SELECTOR, FailureCategory.TIMING})


def unknown_classification(
    explanation: str = "Unable to classify failure",
    suggestion: str = "Review error details manually",
) -> FailureClassification:
    return FailureClassification(
        category=FailureCategory.UNKNOWN,
        confidence=0.0,
        explanation=explanation,
        suggestion=suggestion,
        is_test_issue=False,
    )


def classify_error(message: str, stack: str = "") -> FailureClassification:
    """
    Classify one error by keyword signature hits.

    The category with strictly the most hits wins, so ties go to the
    earlier signature. Confidence is min(hits / 3, 1).

    Args:
        message: Error message
        stack: Optional stack trace or call log

    Returns:
        FailureClassification; category UNKNOWN with confidence 0 when
        nothing matched
    """
    text = f"{message} {stack}"
    best: ClassificationSignature | None = None
    best_hits = 0
    best_keywords: list[str] = []

    for signature in CLASSIFICATION_SIGNATURES:
        matched = [k.pattern for k in signature.keywords if k.search(text)]
        if len(matched) > best_hits:
            best, best_hits, best_keywords = signature, len(matched), matched

    if best is None:
        return unknown_classification()

    return FailureClassification(
        category=best.category,
        confidence=min(best_hits / MAX_HITS_FOR_FULL_CONFIDENCE, 1.0),
        explanation=best.explanation,
        suggestion=best.suggestion,
        is_test_issue=best.is_test_issue,
        matched_keywords=best_keywords,
    )


def classify_test_result(status: str, errors: list[str]) -> FailureClassification:
    """Most confident classification among a failed test's errors."""
    if status != VerifyStatus.FAILED or not errors:
        return unknown_classification(
            explanation="Test did not fail or has no errors",
            suggestion="N/A",
        )
    classifications = [classify_error(e) for e in errors]
    best = classifications[0]
    for candidate in classifications[1:]:
        if candidate.confidence > best.confidence:
            best = candidate
    return best


def classify_test_results(failures: Mapping[str, list[str]]) -> dict[str, FailureClassification]:
    """Classify failed tests keyed by test title."""
    return {title: classify_test_result(VerifyStatus.FAILED, errors) for title, errors in failures.items()}


def get_failure_stats(classifications: Mapping[str, FailureClassification]) -> dict[str, int]:
    """Count classifications per category; every category is present."""
    stats = {category.value: 0 for category in FailureCategory}
    for classification in classifications.values():
        stats[classification.category.value] += 1
    return stats


def is_healable(classification: FailureClassification) -> bool:
    """Whether the failure is typically fixable by rewriting the test."""
    return classification.category in HEALABLE_CATEGORIES


def get_healable_failures(
    classifications: Mapping[str, FailureClassification],
) -> dict[str, FailureClassification]:
    return {title: c for title, c in classifications.items() if is_healable(c)}


def build_verify_summary(
    failures: Mapping[str, list[str]],
    report_path: str | None = None,
) -> VerifySummary:
    """
    Build a VerifySummary from failed test titles and their error messages.

    An empty mapping produces a passed summary.
    """
    classifications = classify_test_results(failures)
    logger.debug("Classified test failures", failed=len(classifications))
    return VerifySummary(
        status=VerifyStatus.FAILED if failures else VerifyStatus.PASSED,
        failures=FailureDetails(
            tests=list(failures),
            classifications=classifications,
            stats=get_failure_stats(classifications) if classifications else {},
        ),
        report_path=report_path,
    )


def generate_classification_report(classifications: Mapping[str, FailureClassification]) -> str:
    """Render classifications as a markdown report."""
    lines = ["# Failure Classification Report", "", "## Summary", ""]
    for category, count in get_failure_stats(classifications).items():
        if count > 0:
            lines.append(f"- {category}: {count}")

    lines.extend(["", "## Detailed Classifications", ""])
    for title, c in classifications.items():
        lines.extend(
            [
                f"### {title}",
                "",
                f"- **Category**: {c.category}",
                f"- **Confidence**: {round(c.confidence * 100)}%",
                f"- **Explanation**: {c.explanation}",
                f"- **Suggestion**: {c.suggestion}",
                f"- **Is Test Issue**: {'Yes' if c.is_test_issue else 'No'}",
                "",
            ]
        )
    return "\n".join(lines)
