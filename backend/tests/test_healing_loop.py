"""
Unit tests for the healing loop.

Tests cover:
- Healing a failing test by rewriting it in place
- Attempt budget and exhausted sessions
- Unhealable and unclassified failures
- Verification errors
- Line extraction and fix previews
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from journeyqa.heal.config import FixType, HealingConfig
from journeyqa.heal.logger import AttemptResult, HealingStatus, load_healing_log
from journeyqa.heal.loop import (
    HealingLoop,
    extract_line_number,
    preview_healing_fixes,
    run_healing_loop,
    would_fix_apply,
)
from journeyqa.heal.summary import FailureCategory, FailureClassification, VerifySummary

TEST_CODE = """async def test_login(page):
    await page.goto("/login")
    await page.locator(".submit-btn").click()
"""

PASSED: dict[str, Any] = {"status": "passed"}


def failed(category: str, title: str = "test_login.py:3", explanation: str = "") -> dict[str, Any]:
    return {
        "status": "failed",
        "failures": {
            "tests": [title],
            "classifications": {
                title: {"category": category, "confidence": 0.9, "explanation": explanation},
            },
        },
    }


@pytest.fixture
def test_file(temp_dir: Path) -> Path:
    """Generated test module with a brittle CSS locator."""
    path = temp_dir / "test_login.py"
    path.write_text(TEST_CODE)
    return path


@pytest.fixture
def loop(temp_dir: Path) -> HealingLoop:
    """Loop writing logs into a temp directory."""
    return HealingLoop(HealingConfig(), output_dir=temp_dir / "logs")


class TestHealingLoop:
    """Tests for HealingLoop.run."""

    @pytest.mark.asyncio
    async def test_already_passing(self, loop: HealingLoop, test_file: Path) -> None:
        """Test a passing test is healed with no attempts."""
        verify = AsyncMock(return_value=PASSED)

        result = await loop.run("JRN-1", test_file, verify)

        assert result.success
        assert result.status == HealingStatus.HEALED
        assert result.attempts == 0
        assert verify.await_count == 1
        assert test_file.read_text() == TEST_CODE

    @pytest.mark.asyncio
    async def test_heals_selector_failure(self, loop: HealingLoop, test_file: Path) -> None:
        """Test selector refinement heals the test and is logged."""
        verify = AsyncMock(side_effect=[failed("selector"), PASSED])

        result = await loop.run("JRN-1", test_file, verify)

        assert result.success
        assert result.attempts == 2
        assert result.applied_fix == FixType.SELECTOR_REFINE
        assert 'page.get_by_role("button", name="submit btn").click()' in test_file.read_text()
        assert result.modified_code == test_file.read_text()

        log = load_healing_log(result.log_path)
        assert log is not None
        assert log.status == HealingStatus.HEALED
        assert [a.fix_type for a in log.attempts] == [FixType.MISSING_AWAIT, FixType.SELECTOR_REFINE]
        assert [a.result for a in log.attempts] == [AttemptResult.FAIL, AttemptResult.PASS]
        assert log.attempts[0].error_message == "Fix not applied"

    @pytest.mark.asyncio
    async def test_report_path_recorded_as_evidence(self, loop: HealingLoop, test_file: Path) -> None:
        """Test the passing run's report is attached to the attempt."""
        verify = AsyncMock(side_effect=[failed("selector"), {**PASSED, "reportPath": "reports/run-2.json"}])

        result = await loop.run("JRN-1", test_file, verify)

        log = load_healing_log(result.log_path)
        assert log is not None
        assert log.attempts[-1].evidence == ["reports/run-2.json"]

    @pytest.mark.asyncio
    async def test_accepts_verify_summary_models(self, loop: HealingLoop, test_file: Path) -> None:
        """Test verify may return VerifySummary instances."""
        verify = AsyncMock(
            side_effect=[VerifySummary.model_validate(failed("selector")), VerifySummary(status="passed")]
        )

        result = await loop.run("JRN-1", test_file, verify)

        assert result.success

    @pytest.mark.asyncio
    async def test_exhausted_after_budget(self, loop: HealingLoop, test_file: Path) -> None:
        """Test the loop stops at max_attempts."""
        verify = AsyncMock(return_value=failed("selector"))

        result = await loop.run("JRN-1", test_file, verify)

        assert not result.success
        assert result.status == HealingStatus.EXHAUSTED
        assert result.attempts == 3
        assert result.recommendation is not None
        assert result.recommendation.startswith("Healing exhausted after 3 attempts.")
        assert "exact=True" in test_file.read_text()

    @pytest.mark.asyncio
    async def test_exhausted_when_fixes_run_out(self, temp_dir: Path) -> None:
        """Test the loop stops once no untried fix remains."""
        path = temp_dir / "test_nav.py"
        path.write_text(TEST_CODE)
        verify = AsyncMock(return_value=failed("navigation"))

        result = await run_healing_loop(
            "JRN-2",
            path,
            verify,
            output_dir=temp_dir / "logs",
            config=HealingConfig(max_attempts=5),
        )

        assert result.status == HealingStatus.EXHAUSTED
        assert result.attempts == 1
        assert result.recommendation == (
            "Healing exhausted after 1 attempts. The navigation flow may have changed. Review Journey steps."
        )

    @pytest.mark.asyncio
    async def test_unhealable_category(self, loop: HealingLoop, test_file: Path) -> None:
        """Test auth failures are reported without attempts."""
        verify = AsyncMock(return_value=failed("auth"))

        result = await loop.run("JRN-1", test_file, verify)

        assert result.status == HealingStatus.FAILED
        assert result.attempts == 0
        assert result.recommendation == "Category 'auth' cannot be healed automatically"
        assert test_file.read_text() == TEST_CODE

    @pytest.mark.asyncio
    async def test_disabled(self, temp_dir: Path, test_file: Path) -> None:
        """Test disabled healing fails immediately."""
        loop = HealingLoop(HealingConfig(enabled=False), output_dir=temp_dir)

        result = await loop.run("JRN-1", test_file, AsyncMock(return_value=failed("selector")))

        assert result.status == HealingStatus.FAILED
        assert result.recommendation == "Healing is disabled"

    @pytest.mark.asyncio
    async def test_unclassified_failure(self, loop: HealingLoop, test_file: Path) -> None:
        """Test failures without classifications cannot be healed."""
        verify = AsyncMock(return_value={"status": "failed", "failures": {"tests": ["x"]}})

        result = await loop.run("JRN-1", test_file, verify)

        assert result.status == HealingStatus.FAILED
        assert result.recommendation == "Unable to classify failure for healing"

    @pytest.mark.asyncio
    async def test_missing_test_file(self, loop: HealingLoop, temp_dir: Path) -> None:
        """Test a missing file fails before verifying."""
        verify = AsyncMock(return_value=PASSED)

        result = await loop.run("JRN-1", temp_dir / "missing.py", verify)

        assert result.status == HealingStatus.FAILED
        assert result.recommendation == "Test file not found"
        verify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_initial_verify_error(self, loop: HealingLoop, test_file: Path) -> None:
        """Test a crashing first verification is reported."""
        verify = AsyncMock(side_effect=RuntimeError("runner crashed"))

        result = await loop.run("JRN-1", test_file, verify)

        assert result.status == HealingStatus.FAILED
        assert result.recommendation == "Initial verification failed: runner crashed"

    @pytest.mark.asyncio
    async def test_verify_error_during_attempt(self, loop: HealingLoop, test_file: Path) -> None:
        """Test a crashing re-verification is logged and the loop continues."""
        verify = AsyncMock(side_effect=[failed("selector"), RuntimeError("runner crashed"), PASSED])

        result = await loop.run("JRN-1", test_file, verify)

        assert result.success
        assert result.attempts == 3
        assert result.applied_fix == FixType.ADD_EXACT
        log = load_healing_log(result.log_path)
        assert log is not None
        assert [a.result for a in log.attempts] == [AttemptResult.FAIL, AttemptResult.ERROR, AttemptResult.PASS]
        assert log.attempts[1].error_message == "runner crashed"


class TestHelpers:
    """Tests for line extraction and previews."""

    def test_line_from_test_location(self) -> None:
        """Test file:line locations."""
        summary = VerifySummary.model_validate(failed("selector", title="tests/test_login.py:42:7"))

        assert extract_line_number(summary) == 42

    def test_line_from_text(self) -> None:
        """Test 'line N' in the title."""
        summary = VerifySummary.model_validate(failed("selector", title="login fails at line 7"))

        assert extract_line_number(summary) == 7

    def test_line_from_explanation(self) -> None:
        """Test locations in the explanation."""
        summary = VerifySummary.model_validate(
            failed("selector", title="login works", explanation="at test_login.py:12:5")
        )

        assert extract_line_number(summary) == 12

    def test_line_default(self) -> None:
        """Test the first line is the default."""
        summary = VerifySummary.model_validate(failed("selector", title="login works"))

        assert extract_line_number(summary) == 1

    def test_preview(self) -> None:
        """Test previews list only fixes that change the code."""
        classification = FailureClassification(category=FailureCategory.SELECTOR, confidence=1.0)

        previews = preview_healing_fixes(TEST_CODE, classification)

        assert [p.fix_type for p in previews] == [FixType.SELECTOR_REFINE]
        assert previews[0].confidence == 0.6

    def test_would_fix_apply(self) -> None:
        """Test single-fix probing."""
        assert would_fix_apply(TEST_CODE, FixType.SELECTOR_REFINE)
        assert not would_fix_apply(TEST_CODE, FixType.ADD_EXACT)
        assert not would_fix_apply(TEST_CODE, "add-sleep")
