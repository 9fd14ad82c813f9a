"""
Timing fixes.

- Missing ``await`` on Playwright calls
- Polling reads rewritten as auto-retrying ``expect`` assertions
- Bounded timeout increase on the failing line
"""

from __future__ import annotations

import re

from journeyqa.heal.fixes.base import FixResult, not_applied

DEFAULT_TIMEOUT_MS = 5000
TIMEOUT_MULTIPLIER = 1.5

_ACTIONS = (
    "click|dblclick|fill|type|check|uncheck|select_option|hover|focus|press|tap|drag_and_drop|set_input_files"
)
_PAGE_CALLS = f"{_ACTIONS}|goto|reload|go_back|go_forward|wait_for_url|wait_for_load_state|wait_for_selector"
_DEVICE_CALLS = "press|type|down|up|insert_text|click|dblclick|move|wheel"

# Statements that must be awaited, matched at the start of a line.
MISSING_AWAIT_PATTERN = re.compile(
    r"^(?P<indent>[ \t]*)(?P<stmt>"
    rf"page\.(?:{_PAGE_CALLS})\s*\("
    rf"|page\.(?:keyboard|mouse)\.(?:{_DEVICE_CALLS})\s*\("
    r"|expect\(.+\)\.(?:not_)?to_\w+\s*\("
    rf"|page\.(?:locator|get_by_\w+)\(.*\)\.(?:{_ACTIONS}|clear)\s*\("
    rf"|[a-z_]\w*\.(?:{_ACTIONS})\s*\("
    r")",
)

_TEXT_READ = re.compile(
    r"^(?P<indent>[ \t]*)(?P<var>\w+)\s*=\s*await\s+(?P<loc>[^\n]+?)\.(?:text_content|inner_text)\(\s*\)[ \t]*\n"
    r"[ \t]*assert\s+(?P=var)\s*==\s*(?P<expected>(?P<q>[\"'])[^\"'\n]*(?P=q))[ \t]*$",
    re.MULTILINE,
)
_VISIBILITY_READ = re.compile(
    r"^(?P<indent>[ \t]*)(?P<var>\w+)\s*=\s*await\s+(?P<loc>[^\n]+?)\.(?P<check>is_visible|is_hidden)\(\s*\)[ \t]*\n"
    r"[ \t]*assert\s+(?P=var)(?:\s+is\s+True|\s*==\s*True)?[ \t]*$",
    re.MULTILINE,
)

_TIMEOUT_FROM_ERROR = re.compile(r"timeout\s+(\d+)\s*ms", re.IGNORECASE)
_TIMEOUT_KWARG = re.compile(r"\btimeout\s*=")
_TIMEOUT_CALLS = re.compile(
    rf"\.(?P<method>{_ACTIONS}|wait_for|wait_for_url|wait_for_selector"
    r"|to_be_visible|to_be_hidden|to_have_text|to_contain_text|to_have_value"
    r"|to_have_url|to_have_title|to_be_checked|to_be_enabled|to_be_disabled|to_have_count)"
    r"\((?P<args>[^()\n]*)\)"
)


def fix_missing_await(code: str) -> FixResult:
    """Prefix await to Playwright statements that lack it."""
    lines = code.split("\n")
    fixed = 0
    for i, line in enumerate(lines):
        stripped = line.lstrip()
        if not stripped or stripped.startswith(("await ", "#")):
            continue
        match = MISSING_AWAIT_PATTERN.match(line)
        if match is None:
            continue
        lines[i] = f"{match.group('indent')}await {line[len(match.group('indent')):]}"
        fixed += 1

    if fixed == 0:
        return not_applied(code, "No missing await found")
    return FixResult(
        applied=True,
        code="\n".join(lines),
        description=f"Added {fixed} missing await statement(s)",
        confidence=0.9,
    )


def convert_to_web_first_assertion(code: str) -> FixResult:
    """
    Replace read-then-assert pairs with auto-retrying expect assertions.

    ``x = await loc.text_content()`` followed by ``assert x == "v"`` becomes
    ``await expect(loc).to_have_text("v")``; is_visible and is_hidden reads
    become to_be_visible and to_be_hidden.
    """
    converted = 0

    def text(match: re.Match[str]) -> str:
        nonlocal converted
        converted += 1
        return f"{match.group('indent')}await expect({match.group('loc')}).to_have_text({match.group('expected')})"

    def visibility(match: re.Match[str]) -> str:
        nonlocal converted
        converted += 1
        assertion = "to_be_visible" if match.group("check") == "is_visible" else "to_be_hidden"
        return f"{match.group('indent')}await expect({match.group('loc')}).{assertion}()"

    modified = _TEXT_READ.sub(text, code)
    modified = _VISIBILITY_READ.sub(visibility, modified)
    if converted == 0:
        return not_applied(code, "No conversion needed")
    return FixResult(
        applied=True,
        code=modified,
        description=f"Converted {converted} assertion(s) to web-first form",
        confidence=0.85,
    )


def extract_timeout_from_error(error_message: str) -> int | None:
    match = _TIMEOUT_FROM_ERROR.search(error_message)
    return int(match.group(1)) if match else None


def suggest_timeout_increase(current_timeout: int, max_timeout: int = 30000) -> int:
    return min(round(current_timeout * TIMEOUT_MULTIPLIER), max_timeout)


def apply_timeout_increase(
    code: str,
    line_number: int,
    error_message: str = "",
    current_timeout: int | None = None,
    max_timeout: int = 30000,
) -> FixResult:
    """
    Add a bounded timeout to the action and assertion calls on the failing line.

    Args:
        code: Test source
        line_number: 1-based failing line
        error_message: Failure message, used to read the current timeout
        current_timeout: Known current timeout in ms
        max_timeout: Ceiling for the new timeout

    Returns:
        FixResult; not applied when the line already sets a timeout
    """
    lines = code.split("\n")
    if not 1 <= line_number <= len(lines):
        return not_applied(code, "Invalid line number")

    line = lines[line_number - 1]
    if _TIMEOUT_KWARG.search(line):
        return not_applied(code, "Timeout already specified")

    base = current_timeout or extract_timeout_from_error(error_message) or DEFAULT_TIMEOUT_MS
    timeout = suggest_timeout_increase(base, max_timeout)

    def add_timeout(match: re.Match[str]) -> str:
        args = match.group("args").strip()
        joined = f"{args}, timeout={timeout}" if args else f"timeout={timeout}"
        return f".{match.group('method')}({joined})"

    modified = _TIMEOUT_CALLS.sub(add_timeout, line)
    if modified == line:
        return not_applied(code, "Unable to add timeout")

    lines[line_number - 1] = modified
    return FixResult(
        applied=True,
        code="\n".join(lines),
        description=f"Added timeout={timeout}ms to line {line_number}",
        confidence=0.6,
    )
