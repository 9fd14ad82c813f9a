"""
Bounded healing loop.

Classifies a failing generated test, applies the next allowed fix,
re-verifies through an injected async callable, and repeats until the
test passes or the attempt budget is spent. Expected "could not heal"
outcomes are reported as statuses, not raised.
"""

from __future__ import annotations

import re
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from journeyqa.heal.config import FixType, HealingConfig
from journeyqa.heal.fixes import AriaInfo, FixContext, apply_fix
from journeyqa.heal.logger import AttemptResult, HealingLogger, HealingStatus
from journeyqa.heal.rules import (
    evaluate_healing,
    get_next_fix,
    get_post_healing_recommendation,
)
from journeyqa.heal.summary import FailureClassification, VerifySummary

logger = structlog.get_logger(__name__)

DEFAULT_HEAL_LOG_DIR = Path(".journeyqa/heal-logs")

VerifyFn = Callable[[], Awaitable[VerifySummary | dict[str, Any]]]

_LOCATION_LINE = re.compile(r":(\d+)(?::\d+)?(?:\)|$)", re.MULTILINE)
_AT_LINE = re.compile(r"(?:at\s+)?line\s+(\d+)", re.IGNORECASE)
_EXPLANATION_LINE = re.compile(r":(\d+)(?::\d+)?")


@dataclass
class HealingLoopResult:
    """Outcome of a healing session."""

    success: bool
    status: HealingStatus
    attempts: int
    log_path: Path
    applied_fix: FixType | None = None
    recommendation: str | None = None
    modified_code: str | None = None


@dataclass
class FixPreview:
    fix_type: FixType
    description: str
    confidence: float


def extract_line_number(summary: VerifySummary) -> int:
    """
    Failing line from the first failing test, else from explanations.

    Looks for ``file.py:42`` or ``file.py:42:7`` locations, then
    ``line 42``. Defaults to 1.
    """
    first = summary.first_failure
    if first:
        match = _LOCATION_LINE.search(first) or _AT_LINE.search(first)
        if match:
            return int(match.group(1))
    for classification in summary.failures.classifications.values():
        match = _EXPLANATION_LINE.search(classification.explanation)
        if match:
            return int(match.group(1))
    return 1


class HealingLoop:
    """
    Runs healing sessions under one policy.

    Usage:
        loop = HealingLoop(load_healing_config(), output_dir=".journeyqa/heal-logs")
        result = await loop.run("JRN-0001", Path("tests/test_login.py"), verify)
    """

    def __init__(
        self,
        config: HealingConfig | None = None,
        output_dir: Path | str = DEFAULT_HEAL_LOG_DIR,
    ) -> None:
        self._config = config or HealingConfig()
        self._output_dir = Path(output_dir)
        self._log = logger.bind(component="healing_loop")

    @property
    def config(self) -> HealingConfig:
        return self._config

    async def _verify(self, verify: VerifyFn) -> VerifySummary:
        summary = await verify()
        if isinstance(summary, VerifySummary):
            return summary
        return VerifySummary.model_validate(summary)

    async def run(
        self,
        journey_id: str,
        test_file: Path | str,
        verify: VerifyFn,
        aria_info: AriaInfo | None = None,
    ) -> HealingLoopResult:
        """
        Heal one generated test.

        Args:
            journey_id: Journey the test was generated from; names the log file
            test_file: Test module to rewrite in place
            verify: Async callable that runs the test and returns a VerifySummary
            aria_info: Accessibility facts for selector refinement

        Returns:
            HealingLoopResult with the terminal status
        """
        path = Path(test_file)
        heal_log = HealingLogger(journey_id, self._output_dir, self._config.max_attempts)
        log = self._log.bind(journey_id=journey_id, test_file=str(path))

        def finish(
            status: HealingStatus,
            attempts: int,
            recommendation: str | None = None,
            applied_fix: FixType | None = None,
            modified_code: str | None = None,
        ) -> HealingLoopResult:
            match status:
                case HealingStatus.HEALED:
                    heal_log.mark_healed()
                case HealingStatus.EXHAUSTED:
                    heal_log.mark_exhausted(recommendation)
                case _:
                    heal_log.mark_failed(recommendation)
            log.info("Healing finished", status=str(status), attempts=attempts)
            return HealingLoopResult(
                success=status == HealingStatus.HEALED,
                status=status,
                attempts=attempts,
                log_path=heal_log.output_path,
                applied_fix=applied_fix,
                recommendation=recommendation,
                modified_code=modified_code,
            )

        if not path.exists():
            return finish(HealingStatus.FAILED, 0, "Test file not found")
        try:
            current_code = path.read_text(encoding="utf-8")
        except OSError as e:
            return finish(HealingStatus.FAILED, 0, f"Unable to read test file: {e}")

        try:
            last_summary = await self._verify(verify)
        except Exception as e:
            log.warning("Initial verification failed", error=str(e))
            return finish(HealingStatus.FAILED, 0, f"Initial verification failed: {e}")
        if last_summary.passed:
            return finish(HealingStatus.HEALED, 0)

        initial = last_summary.first_classification()
        if initial is None:
            return finish(HealingStatus.FAILED, 0, "Unable to classify failure for healing")
        classification = initial.model_copy()

        evaluation = evaluate_healing(classification, self._config)
        if not evaluation.can_heal:
            return finish(HealingStatus.FAILED, 0, evaluation.reason)

        attempted: list[FixType] = []
        while not heal_log.is_max_attempts_reached():
            attempt = heal_log.get_attempt_count() + 1
            started = time.monotonic()

            fix = get_next_fix(classification, attempted, self._config)
            if fix is None:
                return finish(
                    HealingStatus.EXHAUSTED,
                    attempt - 1,
                    get_post_healing_recommendation(classification, attempt - 1),
                )
            attempted.append(fix)

            context = FixContext(
                line_number=extract_line_number(last_summary),
                error_message=last_summary.first_failure or "",
                aria_info=aria_info,
                max_timeout_increase=self._config.max_timeout_increase,
            )
            fix_result = apply_fix(current_code, fix, context)

            def elapsed_ms() -> int:
                return int((time.monotonic() - started) * 1000)

            if not fix_result.applied:
                heal_log.log_attempt(
                    attempt=attempt,
                    failure_type=classification.category,
                    fix_type=fix,
                    file=str(path),
                    change=fix_result.description,
                    result=AttemptResult.FAIL,
                    error_message="Fix not applied",
                    duration_ms=elapsed_ms(),
                )
                continue

            try:
                path.write_text(fix_result.code, encoding="utf-8")
            except OSError as e:
                return finish(HealingStatus.FAILED, attempt - 1, f"Unable to write test file: {e}")
            current_code = fix_result.code
            log.info("Fix applied", fix_type=str(fix), attempt=attempt, confidence=fix_result.confidence)

            try:
                last_summary = await self._verify(verify)
            except Exception as e:
                log.warning("Verification raised", fix_type=str(fix), attempt=attempt, error=str(e))
                heal_log.log_attempt(
                    attempt=attempt,
                    failure_type=classification.category,
                    fix_type=fix,
                    file=str(path),
                    change=fix_result.description,
                    result=AttemptResult.ERROR,
                    error_message=str(e),
                    duration_ms=elapsed_ms(),
                )
                continue

            evidence = [last_summary.report_path] if last_summary.report_path else []
            if last_summary.passed:
                heal_log.log_attempt(
                    attempt=attempt,
                    failure_type=classification.category,
                    fix_type=fix,
                    file=str(path),
                    change=fix_result.description,
                    result=AttemptResult.PASS,
                    evidence=evidence,
                    duration_ms=elapsed_ms(),
                )
                return finish(
                    HealingStatus.HEALED,
                    attempt,
                    applied_fix=fix,
                    modified_code=current_code,
                )

            heal_log.log_attempt(
                attempt=attempt,
                failure_type=classification.category,
                fix_type=fix,
                file=str(path),
                change=fix_result.description,
                result=AttemptResult.FAIL,
                evidence=evidence,
                error_message=last_summary.first_failure or "Unknown error",
                duration_ms=elapsed_ms(),
            )
            latest = last_summary.first_classification()
            if latest is not None and latest.category != classification.category:
                log.info(
                    "Failure category changed",
                    previous=str(classification.category),
                    current=str(latest.category),
                )
                classification = latest.model_copy()

        max_attempts = self._config.max_attempts
        return finish(
            HealingStatus.EXHAUSTED,
            max_attempts,
            get_post_healing_recommendation(classification, max_attempts),
        )


async def run_healing_loop(
    journey_id: str,
    test_file: Path | str,
    verify: VerifyFn,
    output_dir: Path | str = DEFAULT_HEAL_LOG_DIR,
    config: HealingConfig | None = None,
    aria_info: AriaInfo | None = None,
) -> HealingLoopResult:
    """Run a single healing session with a throwaway HealingLoop."""
    loop = HealingLoop(config, output_dir)
    return await loop.run(journey_id, test_file, verify, aria_info)


def preview_healing_fixes(
    code: str,
    classification: FailureClassification,
    config: HealingConfig | None = None,
) -> list[FixPreview]:
    """Fixes that would change code for this failure, without writing anything."""
    evaluation = evaluate_healing(classification, config or HealingConfig())
    previews: list[FixPreview] = []
    for fix in evaluation.applicable_fixes:
        result = apply_fix(code, fix)
        if result.applied:
            previews.append(FixPreview(fix_type=fix, description=result.description, confidence=result.confidence))
    return previews


def would_fix_apply(code: str, fix_type: FixType | str) -> bool:
    return apply_fix(code, fix_type).applied
