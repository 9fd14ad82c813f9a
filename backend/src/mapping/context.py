"""
Explicit matching context shared by the step-mapping cascade.

Holds the glossary and its derived lookup tables, the pattern library,
an optional learned-pattern store and a lazily built fuzzy matcher.
Derived state is cached on the instance and dropped by ``invalidate()``.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from journeyqa.mapping.config import MappingConfig
from journeyqa.mapping.fuzzy import FuzzyMatcher
from journeyqa.mapping.glossary import (
    DEFAULT_GLOSSARY,
    Glossary,
    build_synonym_map,
    load_glossary,
)
from journeyqa.mapping.patterns import ALL_PATTERNS, StepPattern

if TYPE_CHECKING:
    from journeyqa.llkb.store import LearnedPatternStore

logger = structlog.get_logger(__name__)


class MatchingContext:
    """Glossary, patterns, LLKB and fuzzy matcher for one mapping session."""

    def __init__(
        self,
        glossary: Glossary = DEFAULT_GLOSSARY,
        patterns: tuple[StepPattern, ...] = ALL_PATTERNS,
        store: LearnedPatternStore | None = None,
        fuzzy_min_similarity: float = 0.85,
    ) -> None:
        self._glossary = glossary
        self._patterns = patterns
        self._store = store
        self._fuzzy_min_similarity = fuzzy_min_similarity
        self._synonym_map: dict[str, str] | None = None
        self._fuzzy: FuzzyMatcher | None = None

    @classmethod
    def from_config(cls, config: MappingConfig) -> MatchingContext:
        """Build a context from configuration, loading glossary and LLKB."""
        from journeyqa.llkb.store import LearnedPatternStore

        glossary = load_glossary(config.glossary_file) if config.glossary_file else DEFAULT_GLOSSARY
        store = None
        if config.llkb_enabled:
            store = LearnedPatternStore(
                Path(config.llkb_root),
                cache_ttl_seconds=config.llkb_cache_ttl_seconds,
                synonym_map=build_synonym_map(glossary),
            )
        logger.debug(
            "Matching context created",
            glossary_entries=len(glossary.entries),
            llkb_root=str(config.llkb_root) if store else None,
        )
        return cls(
            glossary=glossary,
            store=store,
            fuzzy_min_similarity=config.options.min_fuzzy_similarity,
        )

    @property
    def glossary(self) -> Glossary:
        return self._glossary

    @property
    def patterns(self) -> tuple[StepPattern, ...]:
        return self._patterns

    @property
    def store(self) -> LearnedPatternStore | None:
        return self._store

    @property
    def synonym_map(self) -> dict[str, str]:
        if self._synonym_map is None:
            self._synonym_map = build_synonym_map(self._glossary)
        return self._synonym_map

    @property
    def fuzzy(self) -> FuzzyMatcher:
        if self._fuzzy is None:
            self._fuzzy = FuzzyMatcher(self._patterns, min_similarity=self._fuzzy_min_similarity)
        return self._fuzzy

    def set_glossary(self, glossary: Glossary) -> None:
        """Swap the glossary and drop anything derived from it."""
        self._glossary = glossary
        self.invalidate()

    def invalidate(self) -> None:
        """Drop derived caches and the LLKB read cache."""
        self._synonym_map = None
        self._fuzzy = None
        if self._store is not None:
            self._store.invalidate()
