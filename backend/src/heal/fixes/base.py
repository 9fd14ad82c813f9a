"""Shared types for fix appliers."""

from __future__ import annotations

import re
from dataclasses import dataclass

_INDENT = re.compile(r"^[ \t]*")


@dataclass
class FixResult:
    """
    Outcome of applying a fix to test source.

    When applied is False, code is the unmodified input.
    """

    applied: bool
    code: str
    description: str
    confidence: float = 0.0
    new_locator: str | None = None


@dataclass
class AriaInfo:
    """Accessibility facts about the element a failing locator targeted."""

    test_id: str | None = None
    role: str | None = None
    name: str | None = None
    label: str | None = None
    level: int | None = None


@dataclass
class FixContext:
    """Where and why the test failed, as known to the healing loop."""

    line_number: int = 1
    error_message: str = ""
    aria_info: AriaInfo | None = None
    current_timeout: int | None = None
    max_timeout_increase: int = 30000
    expected_url: str | None = None


def not_applied(code: str, description: str) -> FixResult:
    return FixResult(applied=False, code=code, description=description, confidence=0.0)


def py_string(value: str) -> str:
    """Render value as a double-quoted Python string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def indentation_of(line: str) -> str:
    match = _INDENT.match(line)
    return match.group(0) if match else ""
