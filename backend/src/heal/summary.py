"""
Verification summary models.

A verify collaborator runs the generated test and reports a VerifySummary:
overall status plus, for failures, the failing test names and a failure
classification per test.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class FailureCategory(StrEnum):
    """Root-cause category of a test failure."""

    SELECTOR = "selector"
    TIMING = "timing"
    NAVIGATION = "navigation"
    DATA = "data"
    AUTH = "auth"
    ENV = "env"
    SCRIPT = "script"
    UNKNOWN = "unknown"


class VerifyStatus(StrEnum):
    PASSED = "passed"
    FAILED = "failed"


class FailureClassification(BaseModel):
    """Classifier verdict for one failure."""

    model_config = ConfigDict(extra="ignore")

    category: FailureCategory = FailureCategory.UNKNOWN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    explanation: str = ""
    suggestion: str = ""
    is_test_issue: bool = False
    matched_keywords: list[str] = Field(default_factory=list)


class FailureDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tests: list[str] = Field(default_factory=list)
    classifications: dict[str, FailureClassification] = Field(default_factory=dict)
    stats: dict[str, int] = Field(default_factory=dict)


class VerifySummary(BaseModel):
    """
    Outcome of running a generated test.

    Unknown keys (counts, runner metadata) are accepted and ignored so
    summaries produced by external runners validate directly.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    status: VerifyStatus
    failures: FailureDetails = Field(default_factory=FailureDetails)
    report_path: str | None = Field(default=None, alias="reportPath")

    @property
    def passed(self) -> bool:
        return self.status == VerifyStatus.PASSED

    @property
    def first_failure(self) -> str | None:
        return self.failures.tests[0] if self.failures.tests else None

    def first_classification(self) -> FailureClassification | None:
        """Classification of the first failing test, if any."""
        for classification in self.failures.classifications.values():
            return classification
        return None
