"""
Step mapping module.

Provides:
- Glossary loading and synonym normalization
- Inline locator and behavior hints
- The core step pattern library
- Fuzzy matching against example phrasings
- StepMapper, the cascade from step text to IR primitives
"""

from journeyqa.mapping.config import (
    MappingConfig,
    MappingSettings,
    MatchOptions,
    load_mapping_config,
)
from journeyqa.mapping.context import MatchingContext
from journeyqa.mapping.fuzzy import FuzzyMatcher, FuzzyMatchResult
from journeyqa.mapping.glossary import (
    DEFAULT_GLOSSARY,
    Glossary,
    GlossaryEntry,
    LabelAlias,
    ModuleMethodMapping,
    build_synonym_map,
    load_glossary,
    merge_glossaries,
    normalize_step_text,
)
from journeyqa.mapping.hints import (
    ExtractedHints,
    HintType,
    apply_hints_to_primitive,
    extract_hints,
    parse_hints,
)
from journeyqa.mapping.normalize import get_canonical_form, normalize_step
from journeyqa.mapping.patterns import (
    ALL_PATTERNS,
    PATTERN_VERSION,
    StepPattern,
    match_pattern,
    match_pattern_named,
)
from journeyqa.mapping.step_mapper import (
    MappingStats,
    MatchSource,
    StepFallback,
    StepMapper,
    StepMappingResult,
    UnifiedMatch,
    get_mapping_stats,
    suggest_improvements,
)

__all__ = [
    # Configuration
    "MappingConfig",
    "MappingSettings",
    "MatchOptions",
    "MatchingContext",
    "load_mapping_config",
    # Glossary
    "DEFAULT_GLOSSARY",
    "Glossary",
    "GlossaryEntry",
    "LabelAlias",
    "ModuleMethodMapping",
    "build_synonym_map",
    "load_glossary",
    "merge_glossaries",
    "normalize_step_text",
    # Hints
    "ExtractedHints",
    "HintType",
    "apply_hints_to_primitive",
    "extract_hints",
    "parse_hints",
    # Patterns
    "ALL_PATTERNS",
    "PATTERN_VERSION",
    "StepPattern",
    "get_canonical_form",
    "match_pattern",
    "match_pattern_named",
    "normalize_step",
    # Fuzzy
    "FuzzyMatchResult",
    "FuzzyMatcher",
    # Step Mapper
    "MappingStats",
    "MatchSource",
    "StepFallback",
    "StepMapper",
    "StepMappingResult",
    "UnifiedMatch",
    "get_mapping_stats",
    "suggest_improvements",
]
