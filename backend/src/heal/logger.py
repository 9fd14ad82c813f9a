"""
Healing session log.

Each session is persisted as ``<output_dir>/<journey_id>.heal-log.json``
and rewritten after every attempt and on the terminal status, so a
crashed session still leaves a readable record.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, ValidationError

from journeyqa.heal.config import FixType
from journeyqa.heal.summary import FailureCategory

logger = structlog.get_logger(__name__)

LOG_SUFFIX = ".heal-log.json"


def utc_now() -> datetime:
    return datetime.now(UTC)


class HealingStatus(StrEnum):
    IN_PROGRESS = "in_progress"
    HEALED = "healed"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


class AttemptResult(StrEnum):
    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"


class HealingAttempt(BaseModel):
    """One fix attempt within a session."""

    attempt: int = Field(ge=1)
    timestamp: datetime
    failure_type: FailureCategory
    fix_type: FixType
    file: str
    change: str
    evidence: list[str] = Field(default_factory=list)
    result: AttemptResult
    error_message: str | None = None
    duration_ms: int = Field(default=0, ge=0)


class HealingSummary(BaseModel):
    total_attempts: int = 0
    successful_fixes: int = 0
    failed_attempts: int = 0
    total_duration_ms: int = 0
    fix_types_attempted: list[FixType] = Field(default_factory=list)
    recommendation: str | None = None


class HealingLog(BaseModel):
    """Persisted record of a healing session."""

    journey_id: str
    session_start: datetime
    max_attempts: int
    status: HealingStatus = HealingStatus.IN_PROGRESS
    attempts: list[HealingAttempt] = Field(default_factory=list)
    session_end: datetime | None = None
    summary: HealingSummary | None = None


@dataclass
class HealingReport:
    success: bool
    attempt_count: int
    fix_applied: FixType | None = None
    recommendation: str | None = None


@dataclass
class HealingAggregate:
    """Totals across many healing sessions."""

    total_journeys: int = 0
    healed: int = 0
    failed: int = 0
    exhausted: int = 0
    total_attempts: int = 0
    most_common_fixes: list[tuple[str, int]] = field(default_factory=list)
    most_common_failures: list[tuple[str, int]] = field(default_factory=list)


class HealingLogger:
    """
    Records healing attempts for one journey and persists them as JSON.

    Usage:
        log = HealingLogger("JRN-0001", Path(".journeyqa/heal-logs"), max_attempts=3)
        log.log_attempt(attempt=1, failure_type=..., fix_type=..., ...)
        log.mark_healed()
    """

    def __init__(
        self,
        journey_id: str,
        output_dir: Path | str,
        max_attempts: int = 3,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._output_path = Path(output_dir) / f"{journey_id}{LOG_SUFFIX}"
        self._clock = clock
        self._log = HealingLog(
            journey_id=journey_id,
            session_start=clock(),
            max_attempts=max_attempts,
        )
        self._logger = logger.bind(component="healing_logger", journey_id=journey_id)

    @property
    def output_path(self) -> Path:
        return self._output_path

    def log_attempt(
        self,
        attempt: int,
        failure_type: FailureCategory,
        fix_type: FixType,
        file: str,
        change: str,
        result: AttemptResult,
        evidence: list[str] | None = None,
        error_message: str | None = None,
        duration_ms: int = 0,
    ) -> HealingAttempt:
        """Append an attempt and persist the log."""
        record = HealingAttempt(
            attempt=attempt,
            timestamp=self._clock(),
            failure_type=failure_type,
            fix_type=fix_type,
            file=file,
            change=change,
            evidence=evidence or [],
            result=result,
            error_message=error_message,
            duration_ms=duration_ms,
        )
        self._log.attempts.append(record)
        self._save()
        self._logger.info(
            "Healing attempt logged",
            attempt=attempt,
            fix_type=str(fix_type),
            result=str(result),
        )
        return record

    def mark_healed(self) -> None:
        self._finish(HealingStatus.HEALED)

    def mark_failed(self, recommendation: str | None = None) -> None:
        self._finish(HealingStatus.FAILED, recommendation)

    def mark_exhausted(self, recommendation: str | None = None) -> None:
        self._finish(HealingStatus.EXHAUSTED, recommendation)

    def _finish(self, status: HealingStatus, recommendation: str | None = None) -> None:
        self._log.status = status
        self._log.session_end = self._clock()
        self._log.summary = self._summarize()
        if recommendation:
            self._log.summary.recommendation = recommendation
        self._save()
        self._logger.info(
            "Healing session finished",
            status=str(status),
            attempts=len(self._log.attempts),
        )

    def _summarize(self) -> HealingSummary:
        attempts = self._log.attempts
        return HealingSummary(
            total_attempts=len(attempts),
            successful_fixes=sum(1 for a in attempts if a.result == AttemptResult.PASS),
            failed_attempts=sum(1 for a in attempts if a.result != AttemptResult.PASS),
            total_duration_ms=sum(a.duration_ms for a in attempts),
            fix_types_attempted=list(dict.fromkeys(a.fix_type for a in attempts)),
        )

    def _save(self) -> None:
        self._output_path.parent.mkdir(parents=True, exist_ok=True)
        self._output_path.write_text(
            json.dumps(self._log.model_dump(mode="json"), indent=2),
            encoding="utf-8",
        )

    def get_log(self) -> HealingLog:
        return self._log.model_copy(deep=True)

    def get_last_attempt(self) -> HealingAttempt | None:
        return self._log.attempts[-1] if self._log.attempts else None

    def get_attempt_count(self) -> int:
        return len(self._log.attempts)

    def is_max_attempts_reached(self) -> bool:
        return len(self._log.attempts) >= self._log.max_attempts


def load_healing_log(path: Path | str) -> HealingLog | None:
    """Read a persisted log; None when missing or unreadable."""
    log_path = Path(path)
    if not log_path.exists():
        return None
    try:
        return HealingLog.model_validate_json(log_path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        logger.warning("Unreadable healing log", path=str(log_path), error=str(e))
        return None


def format_healing_log(log: HealingLog) -> str:
    """Render a healing log as markdown."""
    lines = [
        f"# Healing Log: {log.journey_id}",
        "",
        f"Status: {log.status.value.upper()}",
        f"Started: {log.session_start.isoformat()}",
    ]
    if log.session_end:
        lines.append(f"Ended: {log.session_end.isoformat()}")
    lines.extend(["", "## Attempts", ""])

    for a in log.attempts:
        icon = "✅" if a.result == AttemptResult.PASS else "❌"
        lines.extend(
            [
                f"### Attempt {a.attempt} {icon}",
                "",
                f"- **Fix Type**: {a.fix_type}",
                f"- **Failure Type**: {a.failure_type}",
                f"- **File**: {a.file}",
                f"- **Duration**: {a.duration_ms}ms",
                f"- **Result**: {a.result}",
            ]
        )
        if a.error_message:
            lines.append(f"- **Error**: {a.error_message}")
        if a.change:
            lines.append(f"- **Change**: {a.change}")
        if a.evidence:
            lines.append(f"- **Evidence**: {', '.join(a.evidence)}")
        lines.append("")

    if log.summary:
        s = log.summary
        lines.extend(
            [
                "## Summary",
                "",
                f"- Total Attempts: {s.total_attempts}",
                f"- Successful Fixes: {s.successful_fixes}",
                f"- Failed Attempts: {s.failed_attempts}",
                f"- Total Duration: {s.total_duration_ms}ms",
                f"- Fix Types Tried: {', '.join(s.fix_types_attempted)}",
            ]
        )
        if s.recommendation:
            lines.extend(["", f"**Recommendation**: {s.recommendation}"])

    return "\n".join(lines)


def create_healing_report(log: HealingLog) -> HealingReport:
    passing = next((a for a in log.attempts if a.result == AttemptResult.PASS), None)
    return HealingReport(
        success=log.status == HealingStatus.HEALED,
        attempt_count=len(log.attempts),
        fix_applied=passing.fix_type if passing else None,
        recommendation=log.summary.recommendation if log.summary else None,
    )


def aggregate_healing_logs(logs: list[HealingLog]) -> HealingAggregate:
    """Session totals plus fix and failure types ordered by frequency."""
    fixes: Counter[str] = Counter()
    failures: Counter[str] = Counter()
    for log in logs:
        for a in log.attempts:
            fixes[a.fix_type.value] += 1
            failures[a.failure_type.value] += 1
    return HealingAggregate(
        total_journeys=len(logs),
        healed=sum(1 for log in logs if log.status == HealingStatus.HEALED),
        failed=sum(1 for log in logs if log.status == HealingStatus.FAILED),
        exhausted=sum(1 for log in logs if log.status == HealingStatus.EXHAUSTED),
        total_attempts=sum(fixes.values()),
        most_common_fixes=fixes.most_common(),
        most_common_failures=failures.most_common(),
    )
