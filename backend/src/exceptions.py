"""
Exception hierarchy for journeyqa.

Policy outcomes of the healing loop are reported as statuses, not
exceptions. These errors cover malformed input and storage failures.
"""

from __future__ import annotations

from pathlib import Path


class JourneyQAError(Exception):
    """Base exception for journeyqa errors."""

    pass


class GlossaryError(JourneyQAError):
    """Raised when a glossary file cannot be loaded or validated."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        location = f" ({self.path})" if self.path is not None else ""
        super().__init__(f"{message}{location}")


class PatternStoreError(JourneyQAError):
    """Raised when the learned pattern store is corrupt or unwritable."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        location = f" ({self.path})" if self.path is not None else ""
        super().__init__(f"{message}{location}")


class HealingConfigError(JourneyQAError):
    """Raised when healing configuration is invalid."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        prefix = f"{field}: " if field else ""
        super().__init__(f"{prefix}{message}")
