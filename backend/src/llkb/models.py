"""
Models for the learned-pattern knowledge base (LLKB).

Confidence is always derived from success and failure counts; callers
record outcomes and never set confidence directly.
"""

from __future__ import annotations

import math
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from journeyqa.ir.models import IRPrimitive

STORE_VERSION = "1.0.0"

# z-score for a 95% confidence interval
WILSON_Z = 1.96

_BASE36 = string.digits + string.ascii_uppercase


def calculate_confidence(success_count: int, fail_count: int) -> float:
    """
    Wilson score lower bound of the success rate at 95% confidence.

    Returns 0.0 when no outcome has been recorded, which keeps the score
    non-decreasing in success_count for a fixed fail_count.
    """
    total = success_count + fail_count
    if total <= 0:
        return 0.0

    p = success_count / total
    z2 = WILSON_Z * WILSON_Z
    denominator = 1 + z2 / total
    centre = p + z2 / (2 * total)
    margin = WILSON_Z * math.sqrt((p * (1 - p) + z2 / (4 * total)) / total)
    return min(1.0, max(0.0, (centre - margin) / denominator))


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_pattern_id() -> str:
    """LP + base-36 millisecond timestamp + 4 random characters, upper-cased."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"LP{_to_base36(int(time.time() * 1000))}{suffix}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LearnedPattern(BaseModel):
    """A step phrasing the system has learned to map to a primitive."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: str = Field(default_factory=generate_pattern_id)
    original_text: str
    normalized_text: str
    mapped_primitive: IRPrimitive
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    success_count: int = Field(default=0, ge=0)
    fail_count: int = Field(default=0, ge=0)
    source_journeys: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    last_used: datetime = Field(default_factory=utc_now)
    promoted_to_core: bool = False
    promoted_at: datetime | None = None

    @property
    def success_rate(self) -> float:
        total = self.success_count + self.fail_count
        return self.success_count / total if total else 0.0

    def add_journey(self, journey_id: str | None) -> None:
        """Record a source journey once, preserving first-seen order."""
        if journey_id and journey_id not in self.source_journeys:
            self.source_journeys = [*self.source_journeys, journey_id]

    def recompute_confidence(self) -> None:
        self.confidence = calculate_confidence(self.success_count, self.fail_count)


class LearnedPatternFile(BaseModel):
    """On-disk envelope for learned patterns."""

    model_config = ConfigDict(extra="ignore")

    version: str = STORE_VERSION
    last_updated: datetime = Field(default_factory=utc_now)
    patterns: list[LearnedPattern] = Field(default_factory=list)


@dataclass
class LlkbMatch:
    """A learned pattern matched to step text."""

    pattern_id: str
    primitive: IRPrimitive
    confidence: float
    similarity: float = 1.0


@dataclass
class PromotedPattern:
    """A learned pattern eligible for promotion to the core library."""

    pattern: LearnedPattern
    generated_regex: str
    priority: float


@dataclass
class PruneResult:
    removed: int
    remaining: int


@dataclass
class PatternStats:
    """Aggregate statistics over the store."""

    total: int = 0
    promoted: int = 0
    high_confidence: int = 0
    low_confidence: int = 0
    avg_confidence: float = 0.0
    total_successes: int = 0
    total_failures: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "promoted": self.promoted,
            "high_confidence": self.high_confidence,
            "low_confidence": self.low_confidence,
            "avg_confidence": round(self.avg_confidence, 4),
            "total_successes": self.total_successes,
            "total_failures": self.total_failures,
        }


@dataclass
class NearPromotion:
    pattern: LearnedPattern
    missing_criteria: list[str]
    estimated_uses_needed: int


@dataclass
class PromotionReport:
    """Result of analyzing the store for promotion candidates."""

    analyzed_at: datetime
    total_patterns: int
    promotable: list[PromotedPattern] = field(default_factory=list)
    near_promotion: list[NearPromotion] = field(default_factory=list)
    already_promoted: int = 0
    needs_more_data: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "analyzed_at": self.analyzed_at.isoformat(),
            "total_patterns": self.total_patterns,
            "promotable": [
                {
                    "id": p.pattern.id,
                    "example": p.pattern.original_text,
                    "regex": p.generated_regex,
                    "primitive_type": p.pattern.mapped_primitive.type,
                    "priority": round(p.priority, 4),
                }
                for p in self.promotable
            ],
            "near_promotion": [
                {
                    "id": n.pattern.id,
                    "example": n.pattern.original_text,
                    "missing_criteria": n.missing_criteria,
                    "estimated_uses_needed": n.estimated_uses_needed,
                }
                for n in self.near_promotion
            ],
            "stats": {
                "already_promoted": self.already_promoted,
                "eligible_for_promotion": len(self.promotable),
                "near_promotion": len(self.near_promotion),
                "needs_more_data": self.needs_more_data,
            },
        }
