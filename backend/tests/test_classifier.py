"""
Unit tests for the failure classifier.

Tests cover:
- Category selection by keyword hits
- Confidence scaling and tie-breaking
- Per-test classification and statistics
- Verify summaries and markdown reports
"""

from __future__ import annotations

import pytest

from journeyqa.heal.classifier import (
    build_verify_summary,
    classify_error,
    classify_test_result,
    generate_classification_report,
    get_failure_stats,
    get_healable_failures,
    is_healable,
)
from journeyqa.heal.summary import FailureCategory, VerifyStatus, VerifySummary


class TestClassifyError:
    """Tests for classify_error."""

    def test_timeout(self) -> None:
        """Test Playwright timeouts are timing failures."""
        result = classify_error('Timeout 30000ms exceeded.\nwaiting for locator("#submit")')

        assert result.category == FailureCategory.TIMING
        assert result.confidence == pytest.approx(2 / 3)
        assert result.is_test_issue

    def test_strict_mode_violation(self) -> None:
        """Test ambiguous locators are selector failures."""
        result = classify_error('strict mode violation: get_by_role("button") resolved to 2 elements')

        assert result.category == FailureCategory.SELECTOR
        assert result.confidence == pytest.approx(2 / 3)
        assert len(result.matched_keywords) == 2

    def test_network_error(self) -> None:
        """Test browser network errors are navigation failures."""
        assert classify_error("net::ERR_CONNECTION_REFUSED").category == FailureCategory.NAVIGATION

    def test_auth(self) -> None:
        """Test authorization failures."""
        result = classify_error("401 Unauthorized: session expired")

        assert result.category == FailureCategory.AUTH
        assert not result.is_test_issue

    def test_python_error(self) -> None:
        """Test Python exceptions are script failures."""
        assert classify_error("NameError: name 'pagee' is not defined").category == FailureCategory.SCRIPT

    def test_stack_is_searched(self) -> None:
        """Test keywords in the stack count too."""
        result = classify_error("Test failed", stack="ECONNREFUSED 127.0.0.1:3000")

        assert result.category == FailureCategory.ENV

    def test_tie_goes_to_earlier_category(self) -> None:
        """Test equal hit counts prefer selector over timing."""
        result = classify_error("element is not visible; timed out")

        assert result.category == FailureCategory.SELECTOR
        assert result.confidence == pytest.approx(1 / 3)

    def test_unknown(self) -> None:
        """Test unmatched text is unknown with zero confidence."""
        result = classify_error("something odd happened")

        assert result.category == FailureCategory.UNKNOWN
        assert result.confidence == 0.0
        assert result.matched_keywords == []


class TestClassifyTestResult:
    """Tests for per-test classification."""

    def test_not_failed(self) -> None:
        """Test passing tests are not classified."""
        result = classify_test_result("passed", ["Timeout 5000ms exceeded"])

        assert result.category == FailureCategory.UNKNOWN
        assert result.explanation == "Test did not fail or has no errors"
        assert result.suggestion == "N/A"

    def test_no_errors(self) -> None:
        """Test failed tests without errors are not classified."""
        assert classify_test_result("failed", []).category == FailureCategory.UNKNOWN

    def test_most_confident_error_wins(self) -> None:
        """Test the strongest classification among several errors."""
        result = classify_test_result(
            "failed",
            ["something odd happened", 'Timeout 30000ms exceeded.\nwaiting for locator("#submit")'],
        )

        assert result.category == FailureCategory.TIMING


class TestSummaryAndStats:
    """Tests for statistics, summaries and reports."""

    FAILURES = {
        "login works": ["Timeout 30000ms exceeded."],
        "checkout works": ["401 Unauthorized"],
    }

    def test_stats_cover_every_category(self) -> None:
        """Test every category key is present."""
        summary = build_verify_summary(self.FAILURES)
        stats = get_failure_stats(summary.failures.classifications)

        assert set(stats) == {c.value for c in FailureCategory}
        assert stats["timing"] == 1
        assert stats["auth"] == 1

    def test_healable_failures(self) -> None:
        """Test only selector and timing failures are healable."""
        summary = build_verify_summary(self.FAILURES)
        healable = get_healable_failures(summary.failures.classifications)

        assert list(healable) == ["login works"]
        assert is_healable(healable["login works"])

    def test_verify_summary(self) -> None:
        """Test failures produce a failed summary."""
        summary = build_verify_summary(self.FAILURES, report_path="report.json")

        assert summary.status == VerifyStatus.FAILED
        assert not summary.passed
        assert summary.first_failure == "login works"
        assert summary.report_path == "report.json"
        first = summary.first_classification()
        assert first is not None
        assert first.category == FailureCategory.TIMING

    def test_empty_summary_passes(self) -> None:
        """Test no failures means passed."""
        summary = build_verify_summary({})

        assert summary.passed
        assert summary.first_failure is None
        assert summary.first_classification() is None

    def test_summary_ignores_unknown_keys(self) -> None:
        """Test runner metadata validates."""
        summary = VerifySummary.model_validate({"status": "passed", "counts": {"passed": 3}})

        assert summary.passed

    def test_summary_accepts_camel_case_report_path(self) -> None:
        """Test reportPath from JS runners is kept."""
        summary = VerifySummary.model_validate({"status": "passed", "reportPath": "results.json"})

        assert summary.report_path == "results.json"

    def test_report(self) -> None:
        """Test the markdown report."""
        summary = build_verify_summary(self.FAILURES)
        report = generate_classification_report(summary.failures.classifications)

        assert report.startswith("# Failure Classification Report")
        assert "- timing: 1" in report
        assert "### login works" in report
        assert "- **Is Test Issue**: No" in report
