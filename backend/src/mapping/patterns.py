"""
Ordered regex pattern library mapping step text to IR primitives.

Patterns are tried in list order and the first pattern whose extractor
returns a primitive wins. More specific groups come before the generic
ones they would otherwise shadow ("go back" before "go to", "is not
visible" before "is visible").
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from journeyqa.ir.models import (
    AcceptAlert,
    CallModule,
    Check,
    Clear,
    Click,
    DismissAlert,
    DismissModal,
    DoubleClick,
    ExpectChecked,
    ExpectCount,
    ExpectDisabled,
    ExpectEnabled,
    ExpectHidden,
    ExpectText,
    ExpectTitle,
    ExpectToast,
    ExpectUrl,
    ExpectValue,
    ExpectVisible,
    Fill,
    Focus,
    GoBack,
    GoForward,
    Goto,
    Hover,
    IRPrimitive,
    LocatorSpec,
    LocatorStrategy,
    Press,
    Reload,
    RightClick,
    Select,
    ToastType,
    Uncheck,
    ValueSpec,
    ValueType,
    WaitForHidden,
    WaitForLoadingComplete,
    WaitForNetworkIdle,
    WaitForTimeout,
    WaitForUrl,
    WaitForVisible,
)

PATTERN_VERSION = "1.1.0"

Extractor = Callable[[re.Match[str]], IRPrimitive | None]


@dataclass(frozen=True)
class StepPattern:
    """A named regex rule producing one primitive type."""

    name: str
    regex: re.Pattern[str]
    primitive_type: str
    extract: Extractor

    @property
    def category(self) -> str:
        return self.name.split("-")[0] or "other"


def _p(name: str, regex: str, primitive_type: str, extract: Extractor) -> StepPattern:
    return StepPattern(name, re.compile(regex, re.IGNORECASE), primitive_type, extract)


def _strip_quotes(value: str) -> str:
    return value.replace('"', "").replace("'", "")


def create_locator(strategy: LocatorStrategy | str, value: str, name: str | None = None) -> LocatorSpec | None:
    """Build a locator from matched text; blank values yield None."""
    value = value.strip()
    if not value:
        return None
    strategy = LocatorStrategy(strategy)
    if strategy == LocatorStrategy.ROLE:
        return LocatorSpec.role(value, name=name or None)
    return LocatorSpec.of(strategy, value)


def create_value_from_text(text: str) -> ValueSpec:
    """
    Classify a value token.

    ``{{email}}`` is an actor reference, ``$user.email`` a test-data
    reference, anything holding ``${...}`` a generated value, and
    everything else a literal.
    """
    if re.match(r"^\{\{.+\}\}$", text):
        return ValueSpec(type=ValueType.ACTOR, value=text[2:-2].strip())
    if re.match(r"^\$.+", text) and not text.startswith("${"):
        return ValueSpec(type=ValueType.TEST_DATA, value=text[1:])
    if re.search(r"\$\{.+\}", text):
        return ValueSpec(type=ValueType.GENERATED, value=text)
    return ValueSpec(type=ValueType.LITERAL, value=text)


def parse_selector_to_locator(selector: str) -> LocatorSpec | None:
    """
    Turn a natural-language element description into a locator.

    "Save button" is a button named Save, "Help link" a link, "Email
    field" or "Email input" a labelled control; anything else is matched
    by text.
    """
    clean = re.sub(r"^the\s+", "", selector.strip(), flags=re.IGNORECASE).strip()
    if re.search(r"button$", clean, re.IGNORECASE):
        return create_locator("role", "button", re.sub(r"\s*button$", "", clean, flags=re.IGNORECASE).strip())
    if re.search(r"link$", clean, re.IGNORECASE):
        return create_locator("role", "link", re.sub(r"\s*link$", "", clean, flags=re.IGNORECASE).strip())
    if re.search(r"(?:input|field)$", clean, re.IGNORECASE):
        return create_locator("label", re.sub(r"\s*(?:input|field)$", "", clean, flags=re.IGNORECASE))
    return create_locator("text", clean)


# Helpers building common extractors


def _with_locator(
    factory: Callable[[LocatorSpec], IRPrimitive],
    strategy: str,
    group: int = 1,
    name_group: int | None = None,
    role: str | None = None,
    strip: bool = False,
) -> Extractor:
    def extract(match: re.Match[str]) -> IRPrimitive | None:
        value = match.group(group)
        if strip:
            value = _strip_quotes(value)
        if role is not None:
            locator = create_locator("role", role, value)
        else:
            locator = create_locator(strategy, value)
        if locator is None:
            return None
        return factory(locator)

    return extract


def _fill(locator_group: int, value_group: int, strategy: str = "label", strip: bool = False) -> Extractor:
    def extract(match: re.Match[str]) -> IRPrimitive | None:
        target, value = match.group(locator_group), match.group(value_group)
        if strip:
            target, value = _strip_quotes(target), _strip_quotes(value)
        locator = create_locator(strategy, target)
        if locator is None:
            return None
        return Fill(locator=locator, value=create_value_from_text(value))

    return extract


def _structured(factory: Callable[[LocatorSpec, re.Match[str]], IRPrimitive], suffix: str = "") -> Extractor:
    def extract(match: re.Match[str]) -> IRPrimitive | None:
        locator = parse_selector_to_locator(match.group(1) + suffix)
        if locator is None:
            return None
        return factory(locator, match)

    return extract


def _navigate_to_page(match: re.Match[str]) -> IRPrimitive:
    slug = re.sub(r"\s+", "-", match.group(1).strip().lower())
    return Goto(url=f"/{slug}")


def _fill_from_actor(match: re.Match[str]) -> IRPrimitive | None:
    field = _strip_quotes(match.group(1)).strip()
    locator = create_locator("label", field)
    if locator is None:
        return None
    actor_key = re.sub(r"\s+", "_", field.lower())
    return Fill(locator=locator, value=ValueSpec(type=ValueType.ACTOR, value=actor_key))


def _toast(toast_type: ToastType) -> Extractor:
    return lambda m: ExpectToast(toast_type=toast_type, message=m.group(1))


structured_patterns = [
    _p(
        "structured-action-click",
        r"^\*\*Action\*\*:\s*click\s+(?:the\s+)?['\"]?(.+?)['\"]?\s*(?:button|link)?$",
        "click",
        _structured(lambda loc, m: Click(locator=loc), suffix=" button"),
    ),
    _p(
        "structured-action-fill",
        r"^\*\*Action\*\*:\s*fill\s+(?:in\s+)?['\"]?(.+?)['\"]?\s+with\s+['\"]?(.+?)['\"]?$",
        "fill",
        _structured(lambda loc, m: Fill(locator=loc, value=create_value_from_text(m.group(2)))),
    ),
    _p(
        "structured-action-navigate",
        r"^\*\*Action\*\*:\s*navigate\s+to\s+['\"]?(.+?)['\"]?$",
        "goto",
        lambda m: Goto(url=m.group(1)),
    ),
    _p(
        "structured-wait-for-visible",
        r"^\*\*Wait for\*\*:\s*(.+?)\s+(?:to\s+)?(?:be\s+)?(?:visible|appear|load)",
        "expect_visible",
        _structured(lambda loc, m: ExpectVisible(locator=loc)),
    ),
    _p(
        "structured-assert-visible",
        r"^\*\*Assert\*\*:\s*(.+?)\s+(?:is\s+)?visible$",
        "expect_visible",
        _structured(lambda loc, m: ExpectVisible(locator=loc)),
    ),
    _p(
        "structured-assert-text",
        r"^\*\*Assert\*\*:\s*(.+?)\s+(?:contains|has text)\s+['\"]?(.+?)['\"]?$",
        "expect_text",
        _structured(lambda loc, m: ExpectText(locator=loc, text=m.group(2))),
    ),
]

auth_patterns = [
    _p(
        "user-login",
        r"^(?:user\s+)?(?:logs?\s*in|login\s+is\s+performed|authenticates?)$",
        "call_module",
        lambda m: CallModule(module="auth", method="login"),
    ),
    _p(
        "user-logout",
        r"^(?:user\s+)?(?:logs?\s*out|logout\s+is\s+performed|signs?\s*out)$",
        "call_module",
        lambda m: CallModule(module="auth", method="logout"),
    ),
    _p(
        "login-as-role",
        r"^(?:user\s+)?logs?\s*in\s+as\s+(?:an?\s+)?(.+?)(?:\s+user)?$",
        "call_module",
        lambda m: CallModule(module="auth", method="login_as", args=[m.group(1).lower()]),
    ),
]

toast_patterns = [
    _p(
        "success-toast-message",
        r"^(?:a\s+)?success\s+toast\s+(?:with\s+)?[\"']([^\"']+)[\"']\s*(?:message\s+)?(?:appears?|is\s+shown|displays?)$",
        "expect_toast",
        _toast(ToastType.SUCCESS),
    ),
    _p(
        "success-toast-appears-with",
        r"^(?:a\s+)?success\s+toast\s+(?:appears?|is\s+shown|displays?)\s+(?:with\s+)?(?:(?:message|text)\s+)?[\"']?(.+?)[\"']?$",
        "expect_toast",
        _toast(ToastType.SUCCESS),
    ),
    _p(
        "error-toast-message",
        r"^(?:an?\s+)?error\s+toast\s+(?:with\s+)?[\"']([^\"']+)[\"']\s*(?:message\s+)?(?:appears?|is\s+shown|displays?)$",
        "expect_toast",
        _toast(ToastType.ERROR),
    ),
    _p(
        "error-toast-appears-with",
        r"^(?:an?\s+)?error\s+toast\s+(?:appears?|is\s+shown|displays?)\s+(?:with\s+)?(?:(?:message|text)\s+)?[\"']?(.+?)[\"']?$",
        "expect_toast",
        _toast(ToastType.ERROR),
    ),
    _p(
        "toast-appears",
        r"^(?:a\s+)?(?:(success|error|info|warning)\s+)?toast\s+(?:notification\s+)?(?:appears?|is\s+shown|displays?)$",
        "expect_toast",
        lambda m: ExpectToast(toast_type=ToastType((m.group(1) or "info").lower())),
    ),
    _p(
        "toast-with-text",
        r"^(?:a\s+)?(?:toast|notification)\s+(?:with\s+)?(?:(?:text|message)\s+)?[\"']?(.+?)[\"']?\s+(?:appears?|is\s+shown|displays?)$",
        "expect_toast",
        _toast(ToastType.INFO),
    ),
    _p(
        "status-message-visible",
        r"^(?:a\s+)?status\s+(?:message\s+)?[\"']([^\"']+)[\"']\s+(?:is\s+)?(?:visible|shown|displayed)$",
        "expect_visible",
        _with_locator(lambda loc: ExpectVisible(locator=loc), "role", role="status"),
    ),
    _p(
        "verify-status-message",
        r"^(?:verify|check)\s+(?:that\s+)?(?:the\s+)?status\s+(?:message\s+)?(?:shows?|displays?|contains?)\s+[\"']([^\"']+)[\"']$",
        "expect_visible",
        _with_locator(lambda loc: ExpectVisible(locator=loc), "role", role="status"),
    ),
]

modal_alert_patterns = [
    _p(
        "dismiss-modal",
        r"^(?:dismiss|close)\s+(?:the\s+)?(?:modal|dialog)(?:\s+dialog)?$",
        "dismiss_modal",
        lambda m: DismissModal(),
    ),
    _p("accept-alert", r"^(?:accept|confirm|ok)\s+(?:the\s+)?alert$", "accept_alert", lambda m: AcceptAlert()),
    _p("dismiss-alert", r"^(?:dismiss|cancel|close)\s+(?:the\s+)?alert$", "dismiss_alert", lambda m: DismissAlert()),
]

extended_navigation_patterns = [
    _p("refresh-page", r"^(?:user\s+)?(?:refresh(?:es)?|reloads?)\s+(?:the\s+)?page$", "reload", lambda m: Reload()),
    _p("go-back", r"^(?:user\s+)?(?:go(?:es)?|navigates?)\s+back$", "go_back", lambda m: GoBack()),
    _p("go-forward", r"^(?:user\s+)?(?:go(?:es)?|navigates?)\s+forward$", "go_forward", lambda m: GoForward()),
]

navigation_patterns = [
    _p(
        "navigate-to-url",
        r"^(?:user\s+)?(?:navigates?|go(?:es)?|opens?)\s+(?:to\s+)?(?:the\s+)?[\"']?([^\"'\s]+)[\"']?$",
        "goto",
        lambda m: Goto(url=m.group(1)),
    ),
    _p(
        "navigate-to-page",
        r"^(?:user\s+)?(?:navigates?|go(?:es)?|opens?)\s+(?:to\s+)?(?:the\s+)?(.+?)\s+page$",
        "goto",
        _navigate_to_page,
    ),
    _p(
        "wait-for-url-change",
        r"^(?:user\s+)?waits?\s+(?:for\s+)?(?:the\s+)?url\s+(?:to\s+)?(?:change\s+to|contain|include)\s+[\"']?([^\"']+)[\"']?$",
        "wait_for_url",
        lambda m: WaitForUrl(pattern=m.group(1)),
    ),
]

extended_click_patterns = [
    _p(
        "click-on-element",
        r"^(?:user\s+)?(?:clicks?|selects?)\s+on\s+(?:the\s+)?(.+?)(?:\s+button|\s+link)?$",
        "click",
        _with_locator(lambda loc: Click(locator=loc), "text", strip=True),
    ),
    _p(
        "press-enter-key",
        r"^(?:user\s+)?(?:press(?:es)?|hits?)\s+(?:the\s+)?(?:enter|return)(?:\s+key)?$",
        "press",
        lambda m: Press(key="Enter"),
    ),
    _p(
        "press-tab-key",
        r"^(?:user\s+)?(?:press(?:es)?|hits?)\s+(?:the\s+)?tab(?:\s+key)?$",
        "press",
        lambda m: Press(key="Tab"),
    ),
    _p(
        "press-escape-key",
        r"^(?:user\s+)?(?:press(?:es)?|hits?)\s+(?:the\s+)?(?:escape|esc)(?:\s+key)?$",
        "press",
        lambda m: Press(key="Escape"),
    ),
    _p(
        "double-click",
        r"^(?:user\s+)?double[-\s]?clicks?\s+(?:on\s+)?(?:the\s+)?[\"']?(.+?)[\"']?$",
        "dblclick",
        _with_locator(lambda loc: DoubleClick(locator=loc), "text", strip=True),
    ),
    _p(
        "right-click",
        r"^(?:user\s+)?right[-\s]?clicks?\s+(?:on\s+)?(?:the\s+)?[\"']?(.+?)[\"']?$",
        "right_click",
        _with_locator(lambda loc: RightClick(locator=loc), "text", strip=True),
    ),
    _p(
        "submit-form",
        r"^(?:user\s+)?submits?\s+(?:the\s+)?form$",
        "click",
        lambda m: Click(locator=LocatorSpec.role("button", name="Submit")),
    ),
]

click_patterns = [
    _p(
        "click-button-quoted",
        r"^(?:user\s+)?(?:clicks?|presses?|taps?|selects?)\s+(?:on\s+)?(?:the\s+)?[\"']([^\"']+)[\"']\s+button$",
        "click",
        _with_locator(lambda loc: Click(locator=loc), "role", role="button"),
    ),
    _p(
        "click-link-quoted",
        r"^(?:user\s+)?(?:clicks?|presses?|taps?|selects?)\s+(?:on\s+)?(?:the\s+)?[\"']([^\"']+)[\"']\s+link$",
        "click",
        _with_locator(lambda loc: Click(locator=loc), "role", role="link"),
    ),
    _p(
        "click-menuitem-quoted",
        r"^(?:user\s+)?(?:clicks?|selects?)\s+(?:on\s+)?(?:the\s+)?[\"']([^\"']+)[\"']\s+menu\s*item$",
        "click",
        _with_locator(lambda loc: Click(locator=loc), "role", role="menuitem"),
    ),
    _p(
        "click-tab-quoted",
        r"^(?:user\s+)?(?:clicks?|selects?)\s+(?:on\s+)?(?:the\s+)?[\"']([^\"']+)[\"']\s+tab$",
        "click",
        _with_locator(lambda loc: Click(locator=loc), "role", role="tab"),
    ),
    _p(
        "click-element-quoted",
        r"^(?:user\s+)?(?:clicks?|presses?|taps?|selects?)\s+(?:on\s+)?(?:the\s+)?[\"']([^\"']+)[\"']$",
        "click",
        _with_locator(lambda loc: Click(locator=loc), "text"),
    ),
    _p(
        "click-element-generic",
        r"^(?:user\s+)?(?:clicks?|presses?|taps?|selects?)\s+(?:on\s+)?(?:the\s+)?(.+?)\s+(?:button|link|icon|menu|tab)$",
        "click",
        _with_locator(lambda loc: Click(locator=loc), "text"),
    ),
]

extended_fill_patterns = [
    _p(
        "fill-field-with-value",
        r"^(?:user\s+)?(?:fills?|enters?|types?|inputs?)(?:\s+in)?\s+(?:the\s+)?[\"']?(.+?)[\"']?\s+(?:field|input)\s+with\s+[\"']?(.+?)[\"']?$",
        "fill",
        _fill(1, 2, strip=True),
    ),
    _p(
        "type-into-field",
        r"^(?:user\s+)?types?\s+['\"](.+?)['\"]\s+into\s+(?:the\s+)?[\"']?(.+?)[\"']?\s*(?:field|input)?$",
        "fill",
        _fill(2, 1),
    ),
    _p(
        "fill-in-field-no-value",
        r"^(?:user\s+)?fills?\s+in\s+(?:the\s+)?[\"']?(.+?)[\"']?\s*(?:field|input)?$",
        "fill",
        _fill_from_actor,
    ),
    _p(
        "clear-field",
        r"^(?:user\s+)?clears?\s+(?:the\s+)?[\"']?(.+?)[\"']?\s*(?:field|input)?$",
        "clear",
        _with_locator(lambda loc: Clear(locator=loc), "label", strip=True),
    ),
    _p(
        "set-value",
        r"^(?:user\s+)?sets?\s+(?:the\s+)?(?:value\s+)?(?:of\s+)?[\"']?(.+?)[\"']?\s+to\s+['\"](.+?)['\"]$",
        "fill",
        _fill(1, 2),
    ),
]

fill_patterns = [
    _p(
        "fill-field-quoted-value",
        r"^(?:user\s+)?(?:enters?|types?|fills?(?:\s+in)?|inputs?)\s+[\"']([^\"']+)[\"']\s+(?:in|into)\s+(?:the\s+)?[\"']([^\"']+)[\"']\s*(?:field|input)?$",
        "fill",
        _fill(2, 1),
    ),
    _p(
        "fill-field-actor-value",
        r"^(?:user\s+)?(?:enters?|types?|fills?(?:\s+in)?|inputs?)\s+(\{\{[^}]+\}\})\s+(?:in|into)\s+(?:the\s+)?[\"']([^\"']+)[\"']\s*(?:field|input)?$",
        "fill",
        _fill(2, 1),
    ),
    _p(
        "fill-placeholder-field",
        r"^(?:user\s+)?(?:enters?|types?|fills?)\s+[\"']([^\"']+)[\"']\s+(?:in|into)\s+(?:the\s+)?(?:field|input)\s+with\s+placeholder\s+[\"']([^\"']+)[\"']$",
        "fill",
        _fill(2, 1, strategy="placeholder"),
    ),
    _p(
        "fill-field-generic",
        r"^(?:user\s+)?(?:enters?|types?|fills?(?:\s+in)?|inputs?)\s+(.+?)\s+(?:in|into)\s+(?:the\s+)?(.+?)\s*(?:field|input)?$",
        "fill",
        _fill(2, 1, strip=True),
    ),
]

extended_select_patterns = [
    _p(
        "select-from-named-dropdown",
        r"^(?:user\s+)?(?:selects?|chooses?)\s+[\"'](.+?)[\"']\s+from\s+(?:the\s+)?(.+?)\s*(?:dropdown|select|selector|menu|list)$",
        "select",
        lambda m: (
            Select(locator=loc, option=m.group(1))
            if (loc := create_locator("label", _strip_quotes(m.group(2))))
            else None
        ),
    ),
    _p(
        "select-from-dropdown",
        r"^(?:user\s+)?(?:selects?|chooses?)\s+['\"](.+?)['\"]\s+from\s+(?:the\s+)?dropdown$",
        "select",
        lambda m: Select(locator=LocatorSpec.role("combobox"), option=m.group(1)),
    ),
    _p(
        "select-option-named",
        r"^(?:user\s+)?(?:selects?|chooses?)\s+(?:the\s+)?(?:option\s+)?(?:named\s+)?[\"'](.+?)[\"'](?:\s+option)?$",
        "select",
        lambda m: Select(locator=LocatorSpec.role("combobox"), option=m.group(1)),
    ),
]

select_patterns = [
    _p(
        "select-option",
        r"^(?:user\s+)?(?:selects?|chooses?)\s+[\"']([^\"']+)[\"']\s+(?:from|in)\s+(?:the\s+)?[\"']([^\"']+)[\"']\s*(?:dropdown|select|menu)?$",
        "select",
        lambda m: (
            Select(locator=loc, option=m.group(1))
            if (loc := create_locator("label", _strip_quotes(m.group(2))))
            else None
        ),
    ),
]

check_patterns = [
    _p(
        "check-checkbox",
        r"^(?:user\s+)?(?:checks?|enables?|ticks?)\s+(?:the\s+)?[\"']([^\"']+)[\"']\s*(?:checkbox|option)?$",
        "check",
        _with_locator(lambda loc: Check(locator=loc), "label"),
    ),
    _p(
        "check-checkbox-unquoted",
        r"^(?:user\s+)?(?:checks?|enables?|ticks?)\s+(?:the\s+)?(\w+(?:\s+\w+)*)\s+checkbox$",
        "check",
        _with_locator(lambda loc: Check(locator=loc), "label"),
    ),
    _p(
        "uncheck-checkbox",
        r"^(?:user\s+)?(?:unchecks?|disables?|unticks?)\s+(?:the\s+)?[\"']([^\"']+)[\"']\s*(?:checkbox|option)?$",
        "uncheck",
        _with_locator(lambda loc: Uncheck(locator=loc), "label"),
    ),
    _p(
        "uncheck-checkbox-unquoted",
        r"^(?:user\s+)?(?:unchecks?|disables?|unticks?)\s+(?:the\s+)?(\w+(?:\s+\w+)*)\s+checkbox$",
        "uncheck",
        _with_locator(lambda loc: Uncheck(locator=loc), "label"),
    ),
]

extended_assertion_patterns = [
    # Negative assertions before their positive counterparts
    _p(
        "verify-not-visible",
        r"^(?:verify|confirm|check)\s+(?:that\s+)?(?:the\s+)?[\"']?(.+?)[\"']?\s+is\s+not\s+visible$",
        "expect_hidden",
        _with_locator(lambda loc: ExpectHidden(locator=loc), "text"),
    ),
    _p(
        "element-should-not-be-visible",
        r"^(?:the\s+)?[\"']?(.+?)[\"']?\s+(?:should\s+)?(?:not\s+be|is\s+not)\s+(?:visible|displayed|shown)$",
        "expect_hidden",
        _with_locator(lambda loc: ExpectHidden(locator=loc), "text"),
    ),
    # URL and title
    _p(
        "verify-url-contains",
        r"^(?:verify|confirm|check)\s+(?:that\s+)?(?:the\s+)?url\s+contains?\s+[\"']([^\"']+)[\"']$",
        "expect_url",
        lambda m: ExpectUrl(pattern=m.group(1)),
    ),
    _p(
        "verify-title-is",
        r"^(?:verify|confirm|check)\s+(?:that\s+)?(?:the\s+)?(?:page\s+)?title\s+(?:is|equals?)\s+[\"']([^\"']+)[\"']$",
        "expect_title",
        lambda m: ExpectTitle(title=m.group(1)),
    ),
    # Element state
    _p(
        "verify-field-value",
        r"^(?:verify|confirm|check)\s+(?:that\s+)?(?:the\s+)?[\"']?(\w+)[\"']?\s+(?:field\s+)?has\s+value\s+[\"']([^\"']+)[\"']$",
        "expect_value",
        lambda m: ExpectValue(locator=LocatorSpec.of(LocatorStrategy.LABEL, m.group(1)), value=m.group(2)),
    ),
    _p(
        "verify-element-enabled",
        r"^(?:verify|confirm|check)\s+(?:that\s+)?(?:the\s+)?[\"']?(.+?)[\"']?\s+(?:button\s+)?is\s+enabled$",
        "expect_enabled",
        _with_locator(lambda loc: ExpectEnabled(locator=loc), "label"),
    ),
    _p(
        "verify-element-disabled",
        r"^(?:verify|confirm|check)\s+(?:that\s+)?(?:the\s+)?[\"']?(.+?)[\"']?\s+(?:input\s+)?is\s+disabled$",
        "expect_disabled",
        _with_locator(lambda loc: ExpectDisabled(locator=loc), "label"),
    ),
    _p(
        "verify-checkbox-checked",
        r"^(?:verify|confirm|check)\s+(?:that\s+)?(?:the\s+)?[\"']?(.+?)[\"']?\s+(?:checkbox\s+)?is\s+checked$",
        "expect_checked",
        _with_locator(lambda loc: ExpectChecked(locator=loc), "label"),
    ),
    _p(
        "verify-count",
        r"^(?:verify|confirm|check)\s+(?:that\s+)?(\d+)\s+(?:items?|elements?|rows?)\s+(?:are\s+)?(?:shown|displayed|exist|visible)$",
        "expect_count",
        lambda m: ExpectCount(locator=LocatorSpec.of(LocatorStrategy.TEXT, "item"), count=int(m.group(1))),
    ),
    # Generic visibility
    _p(
        "verify-element-showing",
        r"^(?:verify|confirm|ensure)\s+(?:that\s+)?(?:the\s+)?[\"']?(.+?)[\"']?\s+(?:is\s+)?(?:showing|displayed|visible)$",
        "expect_visible",
        _with_locator(lambda loc: ExpectVisible(locator=loc), "text"),
    ),
    _p(
        "page-should-show",
        r"^(?:the\s+)?page\s+should\s+(?:show|display|contain)\s+['\"](.+?)['\"]$",
        "expect_text",
        lambda m: ExpectText(locator=LocatorSpec.role("main"), text=m.group(1)),
    ),
    _p(
        "make-sure-assertion",
        r"^make\s+sure\s+(?:that\s+)?(?:the\s+)?(.+?)\s+(?:is\s+)?(?:visible|displayed|shown)$",
        "expect_visible",
        _with_locator(lambda loc: ExpectVisible(locator=loc), "text"),
    ),
    _p(
        "confirm-that-assertion",
        r"^(?:verify|confirm)\s+(?:that\s+)?(?:the\s+)?[\"']?(.+?)[\"']?\s+(?:appears?|is\s+shown|displays?)$",
        "expect_visible",
        _with_locator(lambda loc: ExpectVisible(locator=loc), "text"),
    ),
    _p(
        "check-element-exists",
        r"^check\s+(?:that\s+)?(?:the\s+)?[\"']?(.+?)[\"']?\s+(?:exists?|is\s+present)$",
        "expect_visible",
        _with_locator(lambda loc: ExpectVisible(locator=loc), "text"),
    ),
    # Generic text assertions last
    _p(
        "element-contains-text",
        r"^(?:the\s+)?[\"']?(.+?)[\"']?\s+(?:should\s+)?contains?\s+['\"](.+?)['\"]$",
        "expect_text",
        lambda m: (
            ExpectText(locator=loc, text=m.group(2))
            if (loc := create_locator("text", m.group(1)))
            else None
        ),
    ),
]

visibility_patterns = [
    _p(
        "should-see-text",
        r"^(?:user\s+)?(?:should\s+)?(?:sees?|views?)\s+(?:the\s+)?[\"']([^\"']+)[\"']$",
        "expect_visible",
        _with_locator(lambda loc: ExpectVisible(locator=loc), "text"),
    ),
    _p(
        "is-visible",
        r"^[\"']?([^\"']+)[\"']?\s+(?:is\s+)?(?:visible|displayed|shown)$",
        "expect_visible",
        _with_locator(lambda loc: ExpectVisible(locator=loc), "text"),
    ),
    _p(
        "should-see-element",
        r"^(?:user\s+)?(?:should\s+)?(?:sees?|views?)\s+(?:the\s+)?(.+?)\s+(?:heading|button|link|form|page|element)$",
        "expect_visible",
        _with_locator(lambda loc: ExpectVisible(locator=loc), "text"),
    ),
    _p(
        "page-displayed",
        r"^(?:the\s+)?(.+?)\s+(?:page|screen|view)\s+(?:is\s+)?(?:displayed|shown|visible)$",
        "expect_visible",
        _with_locator(lambda loc: ExpectVisible(locator=loc), "text"),
    ),
]

url_patterns = [
    _p(
        "url-contains",
        r"^(?:the\s+)?url\s+(?:should\s+)?(?:contains?|includes?)\s+[\"']?([^\"'\s]+)[\"']?$",
        "expect_url",
        lambda m: ExpectUrl(pattern=m.group(1)),
    ),
    _p(
        "url-is",
        r"^(?:the\s+)?url\s+(?:should\s+)?(?:is|equals?|be)\s+[\"']?([^\"'\s]+)[\"']?$",
        "expect_url",
        lambda m: ExpectUrl(pattern=m.group(1)),
    ),
    _p(
        "redirected-to",
        r"^(?:user\s+)?(?:is\s+)?redirected\s+to\s+[\"']?([^\"'\s]+)[\"']?$",
        "expect_url",
        lambda m: ExpectUrl(pattern=m.group(1)),
    ),
]

extended_wait_patterns = [
    _p(
        "wait-for-element-hidden",
        r"^(?:user\s+)?waits?\s+(?:for\s+)?(?:the\s+)?[\"']?(.+?)[\"']?\s+to\s+(?:disappear|be\s+hidden)$",
        "wait_for_hidden",
        _with_locator(lambda loc: WaitForHidden(locator=loc), "text"),
    ),
    _p(
        "wait-for-element-appear",
        r"^(?:user\s+)?waits?\s+(?:for\s+)?(?:the\s+)?[\"']?(.+?)[\"']?\s+to\s+(?:appear|show|be\s+visible)$",
        "wait_for_visible",
        _with_locator(lambda loc: WaitForVisible(locator=loc), "text"),
    ),
    _p(
        "wait-until-loaded",
        r"^(?:user\s+)?waits?\s+until\s+(?:the\s+)?(?:page|content|data)\s+(?:is\s+)?loaded$",
        "wait_for_loading_complete",
        lambda m: WaitForLoadingComplete(),
    ),
    _p(
        "wait-seconds",
        r"^(?:user\s+)?waits?\s+(?:for\s+)?(\d+)\s+seconds?$",
        "wait_for_timeout",
        lambda m: WaitForTimeout(ms=int(m.group(1)) * 1000),
    ),
    _p(
        "wait-for-network",
        r"^(?:user\s+)?waits?\s+(?:for\s+)?(?:the\s+)?network\s+(?:to\s+be\s+)?idle$",
        "wait_for_network_idle",
        lambda m: WaitForNetworkIdle(),
    ),
]

wait_patterns = [
    _p(
        "wait-for-navigation",
        r"^(?:user\s+)?(?:waits?\s+)?(?:for\s+)?navigation\s+to\s+[\"']?([^\"'\s]+)[\"']?$",
        "wait_for_url",
        lambda m: WaitForUrl(pattern=m.group(1)),
    ),
    _p(
        "wait-for-page",
        r"^(?:user\s+)?(?:waits?\s+)?(?:for\s+)?(?:the\s+)?(.+?)\s+(?:page|screen)\s+to\s+load$",
        "wait_for_loading_complete",
        lambda m: WaitForLoadingComplete(),
    ),
]

hover_patterns = [
    _p(
        "hover-over-element",
        r"^(?:user\s+)?hovers?\s+(?:over|on)\s+(?:the\s+)?[\"']?(.+?)[\"']?$",
        "hover",
        _with_locator(lambda loc: Hover(locator=loc), "text", strip=True),
    ),
    _p(
        "mouse-over",
        r"^(?:user\s+)?mouse\s*over\s+(?:the\s+)?[\"']?(.+?)[\"']?$",
        "hover",
        _with_locator(lambda loc: Hover(locator=loc), "text", strip=True),
    ),
]

focus_patterns = [
    _p(
        "focus-on-element",
        r"^(?:user\s+)?focus(?:es)?\s+(?:on\s+)?(?:the\s+)?[\"']?(.+?)[\"']?$",
        "focus",
        _with_locator(lambda loc: Focus(locator=loc), "label", strip=True),
    ),
]

ALL_PATTERNS: tuple[StepPattern, ...] = (
    *structured_patterns,
    *auth_patterns,
    *toast_patterns,
    *modal_alert_patterns,
    *extended_navigation_patterns,
    *navigation_patterns,
    *extended_click_patterns,
    *click_patterns,
    *extended_fill_patterns,
    *fill_patterns,
    *extended_select_patterns,
    *select_patterns,
    *check_patterns,
    *extended_assertion_patterns,
    *visibility_patterns,
    *url_patterns,
    *extended_wait_patterns,
    *wait_patterns,
    *hover_patterns,
    *focus_patterns,
)


def match_pattern_named(
    text: str, patterns: tuple[StepPattern, ...] = ALL_PATTERNS
) -> tuple[str, IRPrimitive] | None:
    """Return the first pattern name and primitive produced for text."""
    trimmed = text.strip()
    for pattern in patterns:
        match = pattern.regex.match(trimmed)
        if match is None:
            continue
        primitive = pattern.extract(match)
        if primitive is not None:
            return pattern.name, primitive
    return None


def match_pattern(text: str, patterns: tuple[StepPattern, ...] = ALL_PATTERNS) -> IRPrimitive | None:
    """Map text with the first matching pattern, or None."""
    result = match_pattern_named(text, patterns)
    return result[1] if result else None


def get_pattern_matches(text: str) -> list[tuple[str, IRPrimitive]]:
    """Every pattern that would produce a primitive for text, in order."""
    trimmed = text.strip()
    matches: list[tuple[str, IRPrimitive]] = []
    for pattern in ALL_PATTERNS:
        match = pattern.regex.match(trimmed)
        if match is None:
            continue
        primitive = pattern.extract(match)
        if primitive is not None:
            matches.append((pattern.name, primitive))
    return matches


def find_matching_patterns(text: str) -> list[str]:
    """Names of all patterns whose regex matches text."""
    trimmed = text.strip()
    return [p.name for p in ALL_PATTERNS if p.regex.match(trimmed)]


def get_all_pattern_names() -> list[str]:
    return [p.name for p in ALL_PATTERNS]


def get_pattern_count_by_category() -> dict[str, int]:
    """Count patterns by the first segment of their name."""
    counts: dict[str, int] = {}
    for pattern in ALL_PATTERNS:
        counts[pattern.category] = counts.get(pattern.category, 0) + 1
    return counts


def get_pattern(name: str) -> StepPattern | None:
    return next((p for p in ALL_PATTERNS if p.name == name), None)
