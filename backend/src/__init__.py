"""
JourneyQA test automation toolkit.

Maps natural-language journey steps onto a typed test IR, learns from
steps that had to be matched loosely, and heals failing generated
Playwright tests within a bounded, policy-constrained loop.
"""

__version__ = "0.1.0"

from journeyqa.exceptions import (
    GlossaryError,
    HealingConfigError,
    JourneyQAError,
    PatternStoreError,
)
from journeyqa.heal import (
    FailureCategory,
    FailureClassification,
    FixType,
    HealingConfig,
    HealingLogger,
    HealingLoop,
    HealingLoopResult,
    VerifySummary,
    apply_fix,
    classify_error,
    load_healing_config,
    run_healing_loop,
)
from journeyqa.ir import IRPrimitive, LocatorSpec, ValueSpec
from journeyqa.llkb import LearnedPatternStore, PromotionCriteria
from journeyqa.mapping import (
    Glossary,
    MappingConfig,
    MatchingContext,
    MatchOptions,
    StepMapper,
    StepMappingResult,
    load_glossary,
    load_mapping_config,
)

__all__ = [
    "__version__",
    # Errors
    "GlossaryError",
    "HealingConfigError",
    "JourneyQAError",
    "PatternStoreError",
    # IR
    "IRPrimitive",
    "LocatorSpec",
    "ValueSpec",
    # Step mapping
    "Glossary",
    "MappingConfig",
    "MatchOptions",
    "MatchingContext",
    "StepMapper",
    "StepMappingResult",
    "load_glossary",
    "load_mapping_config",
    # LLKB
    "LearnedPatternStore",
    "PromotionCriteria",
    # Healing
    "FailureCategory",
    "FailureClassification",
    "FixType",
    "HealingConfig",
    "HealingLogger",
    "HealingLoop",
    "HealingLoopResult",
    "VerifySummary",
    "apply_fix",
    "classify_error",
    "load_healing_config",
    "run_healing_loop",
]
