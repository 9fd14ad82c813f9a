"""
Self-healing module for failing generated tests.

Provides:
- Failure classification from Playwright error text
- Healing rules constrained by a forbidden-fix policy
- Fix appliers that rewrite Playwright test source
- HealingLoop, the bounded classify-fix-verify state machine
- Persistent per-journey healing logs
"""

from journeyqa.heal.classifier import (
    CLASSIFICATION_SIGNATURES,
    build_verify_summary,
    classify_error,
    classify_test_result,
    classify_test_results,
    generate_classification_report,
    get_failure_stats,
    get_healable_failures,
    is_healable,
)
from journeyqa.heal.config import (
    FORBIDDEN_FIXES,
    FixType,
    ForbiddenFix,
    HealingConfig,
    HealingSettings,
    load_healing_config,
)
from journeyqa.heal.fixes import AriaInfo, FixContext, FixResult, apply_fix
from journeyqa.heal.logger import (
    AttemptResult,
    HealingAttempt,
    HealingLog,
    HealingLogger,
    HealingStatus,
    HealingSummary,
    aggregate_healing_logs,
    create_healing_report,
    format_healing_log,
    load_healing_log,
)
from journeyqa.heal.loop import (
    FixPreview,
    HealingLoop,
    HealingLoopResult,
    extract_line_number,
    preview_healing_fixes,
    run_healing_loop,
    would_fix_apply,
)
from journeyqa.heal.rules import (
    DEFAULT_HEALING_RULES,
    UNHEALABLE_CATEGORIES,
    HealingEvaluation,
    HealingRule,
    evaluate_healing,
    get_applicable_rules,
    get_healing_recommendation,
    get_next_fix,
    get_post_healing_recommendation,
    is_fix_allowed,
    is_fix_forbidden,
)
from journeyqa.heal.summary import (
    FailureCategory,
    FailureClassification,
    FailureDetails,
    VerifyStatus,
    VerifySummary,
)

__all__ = [
    # Summary
    "FailureCategory",
    "FailureClassification",
    "FailureDetails",
    "VerifyStatus",
    "VerifySummary",
    # Classifier
    "CLASSIFICATION_SIGNATURES",
    "build_verify_summary",
    "classify_error",
    "classify_test_result",
    "classify_test_results",
    "generate_classification_report",
    "get_failure_stats",
    "get_healable_failures",
    "is_healable",
    # Configuration
    "FORBIDDEN_FIXES",
    "FixType",
    "ForbiddenFix",
    "HealingConfig",
    "HealingSettings",
    "load_healing_config",
    # Rules
    "DEFAULT_HEALING_RULES",
    "UNHEALABLE_CATEGORIES",
    "HealingEvaluation",
    "HealingRule",
    "evaluate_healing",
    "get_applicable_rules",
    "get_healing_recommendation",
    "get_next_fix",
    "get_post_healing_recommendation",
    "is_fix_allowed",
    "is_fix_forbidden",
    # Fixes
    "AriaInfo",
    "FixContext",
    "FixResult",
    "apply_fix",
    # Logger
    "AttemptResult",
    "HealingAttempt",
    "HealingLog",
    "HealingLogger",
    "HealingStatus",
    "HealingSummary",
    "aggregate_healing_logs",
    "create_healing_report",
    "format_healing_log",
    "load_healing_log",
    # Loop
    "FixPreview",
    "HealingLoop",
    "HealingLoopResult",
    "extract_line_number",
    "preview_healing_fixes",
    "run_healing_loop",
    "would_fix_apply",
]
