"""
Navigation fixes.

Inserts an explicit wait after the failing line so the test does not
race the page transition.
"""

from __future__ import annotations

import re

from journeyqa.heal.fixes.base import FixResult, indentation_of, not_applied, py_string

EXISTING_WAIT_PATTERNS = (
    re.compile(r"await\s+page\.wait_for_url\s*\("),
    re.compile(r"await\s+expect\(\s*page\s*\)\.to_have_url\s*\("),
    re.compile(r"(?:async\s+with|await)\s+page\.expect_navigation\s*\("),
    re.compile(r"await\s+page\.wait_for_load_state\s*\("),
)

ERROR_URL_PATTERNS = (
    re.compile(r"""Expected\s+URL\s+to\s+match\s+['"]([^'"]+)['"]""", re.IGNORECASE),
    re.compile(r"""expected\s+['"]([^'"]+)['"]\s+to\s+match""", re.IGNORECASE),
    re.compile(r"""Page\s+URL\s+expected\s+to\s+(?:be|match)\s+['"]([^'"]+)['"]""", re.IGNORECASE),
    re.compile(r"""waiting\s+for\s+URL\s+['"]([^'"]+)['"]""", re.IGNORECASE),
    re.compile(r"""waiting\s+for\s+navigation\s+to\s+['"]([^'"]+)['"]""", re.IGNORECASE),
)

_GOTO_URL = re.compile(r"""page\.goto\(\s*f?(["'])([^"'\n]+)\1""")


def has_navigation_wait(code: str) -> bool:
    return any(p.search(code) for p in EXISTING_WAIT_PATTERNS)


def extract_url_from_error(error_message: str) -> str | None:
    for pattern in ERROR_URL_PATTERNS:
        match = pattern.search(error_message)
        if match:
            return match.group(1)
    return None


def extract_url_from_goto(code: str, line_number: int | None = None) -> str | None:
    """URL of the last page.goto at or before line_number, else the first in the file."""
    lines = code.split("\n")
    if line_number is not None and 1 <= line_number <= len(lines):
        for line in reversed(lines[:line_number]):
            match = _GOTO_URL.search(line)
            if match:
                return match.group(2)
    match = _GOTO_URL.search(code)
    return match.group(2) if match else None


def url_to_glob(url: str) -> str:
    """Glob for wait_for_url; absolute URLs and globs pass through."""
    if "://" in url or "*" in url:
        return url
    path = url if url.startswith("/") else f"/{url}"
    return f"**{path}"


def apply_navigation_fix(
    code: str,
    line_number: int,
    error_message: str = "",
    expected_url: str | None = None,
) -> FixResult:
    """
    Wait for the expected URL after the failing line.

    The URL comes from expected_url, the error message, or the preceding
    page.goto. Without a URL a networkidle load-state wait is inserted.

    Args:
        code: Test source
        line_number: 1-based failing line
        error_message: Failure message from the verify run
        expected_url: URL the test should reach, when known

    Returns:
        FixResult; not applied when a wait already exists
    """
    url = expected_url or extract_url_from_error(error_message) or extract_url_from_goto(code, line_number)
    if url is None:
        return apply_load_state_wait(code, line_number)

    lines = code.split("\n")
    if not 1 <= line_number <= len(lines):
        return not_applied(code, "Invalid line number")
    if has_navigation_wait(code):
        return not_applied(code, "Navigation wait already exists")

    glob = url_to_glob(url)
    indent = indentation_of(lines[line_number - 1])
    lines.insert(line_number, f"{indent}await page.wait_for_url({py_string(glob)})")
    return FixResult(
        applied=True,
        code="\n".join(lines),
        description=f"Added wait_for_url for '{glob}'",
        confidence=0.7,
    )


def apply_load_state_wait(code: str, line_number: int) -> FixResult:
    """Insert a networkidle load-state wait after the failing line."""
    lines = code.split("\n")
    if not 1 <= line_number <= len(lines):
        return not_applied(code, "Invalid line number")

    start = max(0, line_number - 2)
    end = min(len(lines), line_number + 2)
    if has_navigation_wait("\n".join(lines[start:end])):
        return not_applied(code, "Navigation wait already exists in context")

    indent = indentation_of(lines[line_number - 1])
    lines.insert(line_number, f'{indent}await page.wait_for_load_state("networkidle")')
    return FixResult(
        applied=True,
        code="\n".join(lines),
        description="Added wait_for_load_state as fallback",
        confidence=0.5,
    )
