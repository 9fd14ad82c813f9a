"""
Learned pattern knowledge base (LLKB).

Records which step phrasings mapped to which primitives and whether the
resulting tests passed, and promotes consistently successful patterns
into regex candidates for the core library.
"""

from journeyqa.llkb.models import (
    LearnedPattern,
    LlkbMatch,
    PatternStats,
    PromotedPattern,
    PromotionReport,
    PruneResult,
    calculate_confidence,
)
from journeyqa.llkb.promotion import (
    DEFAULT_PROMOTION_CRITERIA,
    PromotionCriteria,
    analyze_for_promotion,
    generate_regex_from_text,
    get_promotable_patterns,
    mark_patterns_promoted,
    meets_promotion_criteria,
)
from journeyqa.llkb.store import LearnedPatternStore

__all__ = [
    # Models
    "LearnedPattern",
    "LlkbMatch",
    "PatternStats",
    "PromotedPattern",
    "PromotionReport",
    "PruneResult",
    "calculate_confidence",
    # Store
    "LearnedPatternStore",
    # Promotion
    "DEFAULT_PROMOTION_CRITERIA",
    "PromotionCriteria",
    "analyze_for_promotion",
    "generate_regex_from_text",
    "get_promotable_patterns",
    "mark_patterns_promoted",
    "meets_promotion_criteria",
]
