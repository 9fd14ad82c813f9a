"""
File-backed store of learned step patterns.

Patterns live in ``<root>/learned-patterns.json``. Reads go through a
short TTL cache; every write replaces the file atomically and invalidates
the cache. The store does no locking, so concurrent writers must be
serialized by the caller.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from journeyqa.exceptions import PatternStoreError
from journeyqa.ir.models import Blocked, IRPrimitive
from journeyqa.llkb.models import (
    STORE_VERSION,
    LearnedPattern,
    LearnedPatternFile,
    LlkbMatch,
    PatternStats,
    PruneResult,
    utc_now,
)
from journeyqa.mapping.glossary import DEFAULT_GLOSSARY, build_synonym_map, normalize_step_text
from journeyqa.mapping.similarity import calculate_similarity

logger = structlog.get_logger(__name__)

DEFAULT_LLKB_ROOT = Path(".journeyqa/llkb")
PATTERNS_FILENAME = "learned-patterns.json"
EXPORT_FILENAME = "autogen-patterns.json"


class LearnedPatternStore:
    """
    Persistent LLKB of learned patterns.

    Usage:
        store = LearnedPatternStore(".journeyqa/llkb")
        store.record_success("Click the Save thing", primitive, journey_id="JRN-1")
        match = store.match("click the save thing")
    """

    def __init__(
        self,
        root: Path | str = DEFAULT_LLKB_ROOT,
        cache_ttl_seconds: float = 5.0,
        synonym_map: dict[str, str] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._root = Path(root)
        self._cache_ttl = cache_ttl_seconds
        self._synonym_map = synonym_map if synonym_map is not None else build_synonym_map(DEFAULT_GLOSSARY)
        self._clock = clock
        self._cache: list[LearnedPattern] | None = None
        self._cache_loaded_at = 0.0
        self._log = logger.bind(component="llkb_store", root=str(self._root))

    @property
    def root(self) -> Path:
        return self._root

    @property
    def path(self) -> Path:
        return self._root / PATTERNS_FILENAME

    def normalize(self, text: str) -> str:
        """Key used to identify a phrasing: glossary-normalized and lower-cased."""
        return normalize_step_text(text.strip(), self._synonym_map).lower()

    def now(self) -> datetime:
        return self._clock()

    def invalidate(self) -> None:
        """Drop the read cache so the next load hits the file."""
        self._cache = None
        self._cache_loaded_at = 0.0

    def load(self, bypass_cache: bool = False) -> list[LearnedPattern]:
        """
        Load all learned patterns.

        Args:
            bypass_cache: Read the file even when the cache is fresh

        Returns:
            List of patterns; empty when the file does not exist

        Raises:
            PatternStoreError: If the file is unreadable or invalid
        """
        now = time.monotonic()
        if not bypass_cache and self._cache is not None and now - self._cache_loaded_at < self._cache_ttl:
            return [p.model_copy(deep=True) for p in self._cache]

        if not self.path.exists():
            patterns: list[LearnedPattern] = []
        else:
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
                patterns = LearnedPatternFile.model_validate(data).patterns
            except (OSError, json.JSONDecodeError) as e:
                raise PatternStoreError(f"Cannot read learned patterns: {e}", self.path) from e
            except ValidationError as e:
                raise PatternStoreError(
                    f"Invalid learned patterns: {e.error_count()} validation error(s)", self.path
                ) from e

        self._cache = patterns
        self._cache_loaded_at = now
        return [p.model_copy(deep=True) for p in patterns]

    def save(self, patterns: list[LearnedPattern]) -> None:
        """Atomically replace the pattern file and invalidate the cache."""
        envelope = LearnedPatternFile(version=STORE_VERSION, last_updated=self._clock(), patterns=patterns)
        payload = json.dumps(envelope.model_dump(mode="json"), indent=2)
        self._atomic_write(self.path, payload)
        self.invalidate()
        self._log.debug("Saved learned patterns", count=len(patterns))

    def _atomic_write(self, path: Path, payload: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PatternStoreError(f"Cannot write learned patterns: {e}", path) from e

    def record_success(
        self,
        text: str,
        primitive: IRPrimitive,
        journey_id: str | None = None,
    ) -> LearnedPattern:
        """
        Record that text mapped to primitive and the resulting test passed.

        Creates the pattern on first sight; otherwise increments its
        success count and recomputes confidence.

        Args:
            text: Original step text
            primitive: Primitive the step mapped to
            journey_id: Journey the step came from

        Returns:
            The created or updated pattern
        """
        if isinstance(primitive, Blocked):
            raise ValueError("Blocked primitives cannot be learned")

        key = self.normalize(text)
        patterns = self.load(bypass_cache=True)
        now = self._clock()

        pattern = next((p for p in patterns if p.normalized_text == key), None)
        if pattern is None:
            pattern = LearnedPattern(
                original_text=text.strip(),
                normalized_text=key,
                mapped_primitive=primitive,
                created_at=now,
                last_used=now,
            )
            patterns.append(pattern)
            self._log.info("Learned new pattern", pattern_id=pattern.id, text=text)

        pattern.success_count += 1
        pattern.recompute_confidence()
        pattern.add_journey(journey_id)
        pattern.last_used = now

        self.save(patterns)
        return pattern

    def record_failure(self, text: str, journey_id: str | None = None) -> LearnedPattern | None:
        """Record a failed use of a learned pattern; unknown text is a no-op."""
        key = self.normalize(text)
        patterns = self.load(bypass_cache=True)
        pattern = next((p for p in patterns if p.normalized_text == key), None)
        if pattern is None:
            return None

        pattern.fail_count += 1
        pattern.recompute_confidence()
        pattern.last_used = self._clock()
        self.save(patterns)

        self._log.info(
            "Recorded pattern failure",
            pattern_id=pattern.id,
            journey_id=journey_id,
            confidence=round(pattern.confidence, 4),
        )
        return pattern

    def match(
        self,
        text: str,
        min_confidence: float = 0.5,
        min_similarity: float = 0.7,
        use_fuzzy: bool = True,
    ) -> LlkbMatch | None:
        """
        Find a learned pattern for text.

        Exact key matches win. Otherwise the most similar pattern at or
        above min_similarity is used and its confidence is scaled by the
        similarity. Promoted patterns are never matched.
        """
        key = self.normalize(text)
        candidates = [
            p for p in self.load() if not p.promoted_to_core and p.confidence >= min_confidence
        ]

        for pattern in candidates:
            if pattern.normalized_text == key:
                return LlkbMatch(pattern_id=pattern.id, primitive=pattern.mapped_primitive, confidence=pattern.confidence)

        if not use_fuzzy:
            return None

        best: LearnedPattern | None = None
        best_similarity = 0.0
        for pattern in candidates:
            similarity = calculate_similarity(key, pattern.normalized_text)
            if similarity >= min_similarity and similarity > best_similarity:
                best, best_similarity = pattern, similarity

        if best is None:
            return None
        return LlkbMatch(
            pattern_id=best.id,
            primitive=best.mapped_primitive,
            confidence=best.confidence * best_similarity,
            similarity=best_similarity,
        )

    def get(self, pattern_id: str) -> LearnedPattern | None:
        return next((p for p in self.load() if p.id == pattern_id), None)

    def prune(
        self,
        min_confidence: float = 0.3,
        min_success: int = 1,
        max_age_days: int = 90,
    ) -> PruneResult:
        """
        Remove weak patterns; promoted patterns are always kept.

        A pattern is removed when its confidence is below min_confidence,
        when it has fewer than min_success successes, or when it is older
        than max_age_days and has never succeeded.
        """
        patterns = self.load(bypass_cache=True)
        cutoff = self._clock() - timedelta(days=max_age_days)

        def keep(p: LearnedPattern) -> bool:
            if p.promoted_to_core:
                return True
            if p.confidence < min_confidence:
                return False
            if min_success > 0 and p.success_count < min_success:
                return False
            if p.created_at < cutoff and p.success_count == 0:
                return False
            return True

        kept = [p for p in patterns if keep(p)]
        removed = len(patterns) - len(kept)
        if removed:
            self.save(kept)
            self._log.info("Pruned learned patterns", removed=removed, remaining=len(kept))
        return PruneResult(removed=removed, remaining=len(kept))

    def get_stats(self) -> PatternStats:
        patterns = self.load()
        if not patterns:
            return PatternStats()
        return PatternStats(
            total=len(patterns),
            promoted=sum(1 for p in patterns if p.promoted_to_core),
            high_confidence=sum(1 for p in patterns if p.confidence >= 0.7),
            low_confidence=sum(1 for p in patterns if p.confidence < 0.3),
            avg_confidence=sum(p.confidence for p in patterns) / len(patterns),
            total_successes=sum(p.success_count for p in patterns),
            total_failures=sum(p.fail_count for p in patterns),
        )

    def export_to_config(
        self,
        output_path: Path | str | None = None,
        min_confidence: float = 0.7,
    ) -> tuple[Path, int]:
        """
        Export confident, non-promoted patterns for consumption by tooling.

        Returns:
            Tuple of (written path, exported pattern count)
        """
        target = Path(output_path) if output_path else self._root / EXPORT_FILENAME
        exported: list[dict[str, Any]] = [
            {
                "id": p.id,
                "trigger": p.original_text,
                "primitive": p.mapped_primitive.model_dump(mode="json"),
                "confidence": p.confidence,
                "source_count": len(p.source_journeys),
            }
            for p in self.load()
            if p.confidence >= min_confidence and not p.promoted_to_core
        ]
        payload = {
            "version": STORE_VERSION,
            "exported_at": self._clock().isoformat(),
            "patterns": exported,
        }
        self._atomic_write(target, json.dumps(payload, indent=2))
        self._log.info("Exported learned patterns", path=str(target), count=len(exported))
        return target, len(exported)

    def clear(self) -> None:
        """Delete all learned patterns."""
        self.path.unlink(missing_ok=True)
        self.invalidate()
        self._log.info("Cleared learned patterns")
