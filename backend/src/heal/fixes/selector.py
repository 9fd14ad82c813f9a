"""
Selector fixes.

Replaces brittle CSS ``page.locator(...)`` calls with semantic Playwright
locators and disambiguates semantic locators with ``exact=True``.
"""

from __future__ import annotations

import re

from journeyqa.heal.fixes.base import AriaInfo, FixResult, not_applied, py_string

# page.locator(".class"), page.locator("#id"), page.locator("[attr]"), page.locator("tag.class")
CSS_LOCATOR_PATTERN = re.compile(
    r"""page\.locator\(\s*(?P<q>["'])(?P<selector>[.#][^"'\n]+|\[[^\]\n]+\]|[a-z]+[.#][^"'\n]+)(?P=q)\s*\)"""
)

# Ordered: the first entry whose key is a token of the selector wins.
UI_PATTERN_TO_ROLE: dict[str, str] = {
    "button": "button",
    "btn": "button",
    "submit": "button",
    "input": "textbox",
    "textbox": "textbox",
    "checkbox": "checkbox",
    "radio": "radio",
    "select": "combobox",
    "dropdown": "combobox",
    "link": "link",
    "heading": "heading",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "dialog": "dialog",
    "modal": "dialog",
    "alert": "alert",
    "tab": "tab",
    "menu": "menu",
    "menuitem": "menuitem",
    "table": "table",
    "row": "row",
    "cell": "cell",
    "grid": "grid",
    "list": "list",
    "listitem": "listitem",
    "img": "img",
    "image": "img",
    "nav": "navigation",
    "navigation": "navigation",
    "search": "search",
    "main": "main",
    "banner": "banner",
    "footer": "contentinfo",
}

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
_NAME_ATTRIBUTE = re.compile(r"""\[(?:aria-label|title|alt|name)=['"]([^'"]+)['"]\]""")
_CLASS_NAME = re.compile(r"\.([a-zA-Z][-a-zA-Z0-9_]*)")
_SEMANTIC_CALL = re.compile(r"\.get_by_(?P<kind>role|label|text)\((?P<args>[^()\n]*)\)")
_SINGLE_STRING = re.compile(r"""^\s*(["'])[^"'\n]*\1\s*$""")
SEMANTIC_LOCATOR_PATTERN = re.compile(r"\.get_by_(?:role|label|text|test_id|placeholder|alt_text|title)\(")


def find_css_selectors(code: str) -> list[str]:
    """CSS selectors passed to page.locator, in source order."""
    return [m.group("selector") for m in CSS_LOCATOR_PATTERN.finditer(code)]


def infer_role_from_selector(selector: str) -> str | None:
    tokens = set(_TOKEN_SPLIT.split(selector.lower()))
    for pattern, role in UI_PATTERN_TO_ROLE.items():
        if pattern in tokens:
            return role
    return None


def extract_name_from_selector(selector: str) -> str | None:
    """Accessible-name guess from name-like attributes or class words."""
    attr = _NAME_ATTRIBUTE.search(selector)
    if attr:
        return attr.group(1)
    cls = _CLASS_NAME.search(selector)
    if cls:
        words = [w for w in re.split(r"[-_]", cls.group(1)) if w]
        if words and len(words[0]) > 2:
            return " ".join(words)
    return None


def role_locator(role: str, name: str | None = None, exact: bool = False, level: int | None = None) -> str:
    args = [py_string(role)]
    if name:
        args.append(f"name={py_string(name)}")
        if exact:
            args.append("exact=True")
    if level is not None and role == "heading":
        args.append(f"level={level}")
    return f"page.get_by_role({', '.join(args)})"


def label_locator(label: str, exact: bool = False) -> str:
    suffix = ", exact=True" if exact else ""
    return f"page.get_by_label({py_string(label)}{suffix})"


def text_locator(text: str, exact: bool = False) -> str:
    suffix = ", exact=True" if exact else ""
    return f"page.get_by_text({py_string(text)}{suffix})"


def testid_locator(test_id: str) -> str:
    return f"page.get_by_test_id({py_string(test_id)})"


def _replace_selector(code: str, selector: str, new_locator: str) -> str:
    call = re.compile(r"""page\.locator\(\s*(["'])""" + re.escape(selector) + r"""\1\s*\)""")
    return call.sub(lambda _: new_locator, code)


def _failing_line(code: str, line_number: int) -> str | None:
    lines = code.split("\n")
    return lines[line_number - 1] if 1 <= line_number <= len(lines) else None


def _offending_selector(code: str, line_number: int) -> str | None:
    line = _failing_line(code, line_number)
    if line is not None:
        on_line = find_css_selectors(line)
        if on_line:
            return on_line[0]
    selectors = find_css_selectors(code)
    return selectors[0] if selectors else None


def locator_from_aria(aria: AriaInfo) -> tuple[str, float] | None:
    """Best semantic locator for known ARIA facts, with its confidence."""
    if aria.test_id:
        return testid_locator(aria.test_id), 1.0
    if aria.role and aria.name:
        return role_locator(aria.role, aria.name, exact=True, level=aria.level), 0.9
    if aria.label:
        return label_locator(aria.label, exact=True), 0.85
    if aria.role:
        return role_locator(aria.role, level=aria.level), 0.6
    return None


def locator_from_css(selector: str) -> tuple[str, float] | None:
    """Semantic locator inferred from the shape of a CSS selector."""
    role = infer_role_from_selector(selector)
    name = extract_name_from_selector(selector)
    if role and name:
        return role_locator(role, name), 0.6
    if role:
        return role_locator(role), 0.4
    if name:
        return text_locator(name), 0.3
    return None


def apply_selector_fix(code: str, line_number: int = 1, aria_info: AriaInfo | None = None) -> FixResult:
    """
    Replace the offending CSS locator with a semantic one.

    The offending selector is the first CSS locator on the failing line,
    or else the first in the file. A failing line that already uses a
    semantic locator is left alone. Every call using the offending
    selector is replaced; other CSS locators are untouched.

    Args:
        code: Test source
        line_number: 1-based failing line
        aria_info: Accessibility facts about the target element

    Returns:
        FixResult carrying the new locator expression
    """
    line = _failing_line(code, line_number)
    if line is not None and not find_css_selectors(line) and SEMANTIC_LOCATOR_PATTERN.search(line):
        return not_applied(code, "Failing line already uses a semantic locator")

    selector = _offending_selector(code, line_number)
    if selector is None:
        return not_applied(code, "No CSS selector found to refine")

    if aria_info is not None:
        candidate = locator_from_aria(aria_info)
        if candidate is None:
            return not_applied(code, "Unable to generate locator from ARIA info")
        verb = "Replaced CSS selector with"
    else:
        candidate = locator_from_css(selector)
        if candidate is None:
            return not_applied(code, "Unable to infer semantic locator from CSS selector")
        verb = "Inferred"

    new_locator, confidence = candidate
    modified = _replace_selector(code, selector, new_locator)
    if modified == code:
        return not_applied(code, "CSS selector could not be replaced")

    method = new_locator.split("(")[0]
    description = f"{verb} {method}" + ("" if aria_info is not None else f" from CSS selector '{selector}'")
    return FixResult(
        applied=True,
        code=modified,
        description=description,
        confidence=confidence,
        new_locator=new_locator,
    )


def add_exact_to_locators(code: str) -> FixResult:
    """
    Add exact=True to get_by_role(name=...), get_by_label and get_by_text
    calls that do not specify exact already.
    """
    count = 0

    def add_exact(match: re.Match[str]) -> str:
        nonlocal count
        kind, args = match.group("kind"), match.group("args")
        if "exact" in args:
            return match.group(0)
        if kind == "role" and "name=" not in args:
            return match.group(0)
        if kind != "role" and not _SINGLE_STRING.match(args):
            return match.group(0)
        count += 1
        return f".get_by_{kind}({args.rstrip()}, exact=True)"

    modified = _SEMANTIC_CALL.sub(add_exact, code)
    if count == 0:
        return not_applied(code, "No locator found to add exact option")
    return FixResult(
        applied=True,
        code=modified,
        description=f"Added exact=True to {count} locator(s)",
        confidence=0.8,
    )
