"""
Unit tests for learned pattern promotion.

Tests cover:
- Regex generation from example steps
- Promotion criteria checks
- Promotion analysis reports
- Marking patterns promoted
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path

import pytest

from journeyqa.ir import Click, LocatorSpec
from journeyqa.llkb.models import LearnedPattern
from journeyqa.llkb.promotion import (
    PromotionCriteria,
    analyze_for_promotion,
    generate_regex_from_text,
    get_promotable_patterns,
    mark_patterns_promoted,
    meets_promotion_criteria,
)
from journeyqa.llkb.store import LearnedPatternStore

NOW = datetime(2026, 2, 1, tzinfo=timezone.utc)
CRITERIA = PromotionCriteria(min_confidence=0.7, min_success_count=5, min_source_journeys=2)


def make_pattern(
    text: str,
    successes: int,
    failures: int = 0,
    journeys: int = 1,
    promoted: bool = False,
) -> LearnedPattern:
    pattern = LearnedPattern(
        original_text=text,
        normalized_text=text.lower(),
        mapped_primitive=Click(locator=LocatorSpec.role("button", name="Save")),
        success_count=successes,
        fail_count=failures,
        source_journeys=[f"JRN-{i}" for i in range(journeys)],
        promoted_to_core=promoted,
    )
    pattern.recompute_confidence()
    return pattern


@pytest.fixture
def store(temp_dir: Path) -> LearnedPatternStore:
    """Store holding one pattern in each promotion state."""
    store = LearnedPatternStore(temp_dir, cache_ttl_seconds=0, clock=lambda: NOW)
    store.save(
        [
            make_pattern("Click the Save thing", successes=10, journeys=2),
            make_pattern("Click the Draft thing", successes=5, journeys=1),
            make_pattern("Click the Other thing", successes=1),
            make_pattern("Click the Old thing", successes=40, journeys=3, promoted=True),
        ]
    )
    return store


class TestGenerateRegex:
    """Tests for generate_regex_from_text."""

    def test_generalizes_quotes_and_actor(self) -> None:
        """Test quoted values become groups and the actor is optional."""
        regex = generate_regex_from_text('User clicks "Save" button')

        assert regex.startswith("^") and regex.endswith("$")
        match = re.match(regex, 'user clicks "Publish" button')
        assert match is not None
        assert match.group(1) == "Publish"
        assert re.match(regex, 'click "Save" button') is not None

    def test_optional_articles(self) -> None:
        """Test articles may be omitted."""
        regex = generate_regex_from_text("See the dashboard")

        assert re.match(regex, "sees the dashboard") is not None
        assert re.match(regex, "see dashboard") is not None

    def test_special_characters_escaped(self) -> None:
        """Test regex metacharacters are literal."""
        regex = generate_regex_from_text("Open menu (main)")

        assert re.match(regex, "open menu (main)") is not None
        assert re.match(regex, "open menu main") is None


class TestCriteria:
    """Tests for meets_promotion_criteria."""

    def test_meets(self) -> None:
        """Test a proven pattern qualifies."""
        meets, missing = meets_promotion_criteria(make_pattern("x", 10, journeys=2), CRITERIA)

        assert meets
        assert missing == []

    def test_reports_missing(self) -> None:
        """Test every unmet criterion is listed."""
        meets, missing = meets_promotion_criteria(make_pattern("x", 1), CRITERIA)

        assert not meets
        assert len(missing) == 3
        assert missing[1] == "success_count: 1 < 5"
        assert missing[2] == "source_journeys: 1 < 2"

    def test_optional_gates(self) -> None:
        """Test fail count and success rate gates."""
        criteria = PromotionCriteria(
            min_confidence=0.0,
            min_success_count=1,
            min_source_journeys=0,
            max_fail_count=0,
            min_success_rate=0.9,
        )
        meets, missing = meets_promotion_criteria(make_pattern("x", 5, failures=2), criteria)

        assert not meets
        assert missing == ["fail_count: 2 > 0", "success_rate: 71.4% < 90.0%"]


class TestPromotion:
    """Tests for promotion over a store."""

    def test_promotable_patterns(self, store: LearnedPatternStore) -> None:
        """Test only qualifying, unpromoted patterns are returned."""
        promotable = get_promotable_patterns(store, CRITERIA)

        assert [p.pattern.original_text for p in promotable] == ["Click the Save thing"]
        assert promotable[0].priority == pytest.approx(10 * promotable[0].pattern.confidence)

    def test_analysis_report(self, store: LearnedPatternStore) -> None:
        """Test every pattern lands in one bucket."""
        report = analyze_for_promotion(store, CRITERIA)

        assert report.total_patterns == 4
        assert report.already_promoted == 1
        assert len(report.promotable) == 1
        assert [n.pattern.original_text for n in report.near_promotion] == ["Click the Draft thing"]
        assert report.near_promotion[0].estimated_uses_needed == 1
        assert report.needs_more_data == 1
        assert report.analyzed_at == NOW

        data = report.to_dict()
        assert data["promotable"][0]["example"] == "Click the Save thing"

    def test_mark_promoted(self, store: LearnedPatternStore) -> None:
        """Test qualifying patterns are flagged with a timestamp."""
        promoted = mark_patterns_promoted(store, criteria=CRITERIA)

        assert len(promoted) == 1
        pattern = store.get(promoted[0])
        assert pattern is not None
        assert pattern.promoted_to_core
        assert pattern.promoted_at == NOW
        assert store.match("Click the Save thing", min_confidence=0.0) is None

    def test_mark_promoted_never_bypasses_criteria(self, store: LearnedPatternStore) -> None:
        """Test ids that do not qualify are ignored."""
        weak = next(p for p in store.load() if p.original_text == "Click the Other thing")

        assert mark_patterns_promoted(store, [weak.id], CRITERIA) == []
