"""
Text normalization for fuzzy step comparison.

Reduces phrasing variation ("The user clicks the Submit button" vs
"click submit button") to a canonical form so that similarity scores
reflect intent rather than grammar. Quoted strings are never altered.
"""

from __future__ import annotations

import re

VERB_STEMS: dict[str, str] = {
    "clicks": "click",
    "clicking": "click",
    "clicked": "click",
    "enters": "enter",
    "entering": "enter",
    "entered": "enter",
    "types": "type",
    "typing": "type",
    "typed": "type",
    "fills": "fill",
    "filling": "fill",
    "filled": "fill",
    "navigates": "navigate",
    "navigating": "navigate",
    "navigated": "navigate",
    "goes": "go",
    "going": "go",
    "went": "go",
    "opens": "open",
    "opening": "open",
    "opened": "open",
    "visits": "visit",
    "visiting": "visit",
    "visited": "visit",
    "sees": "see",
    "seeing": "see",
    "saw": "see",
    "selects": "select",
    "selecting": "select",
    "selected": "select",
    "chooses": "choose",
    "choosing": "choose",
    "chose": "choose",
    "checks": "check",
    "checking": "check",
    "checked": "check",
    "unchecks": "uncheck",
    "unchecking": "uncheck",
    "waits": "wait",
    "waiting": "wait",
    "waited": "wait",
    "presses": "press",
    "pressing": "press",
    "pressed": "press",
    "hovers": "hover",
    "hovering": "hover",
    "hovered": "hover",
    "verifies": "verify",
    "verifying": "verify",
    "verified": "verify",
    "submits": "submit",
    "submitting": "submit",
    "submitted": "submit",
    "taps": "tap",
    "tapping": "tap",
    "tapped": "tap",
    "displays": "display",
    "displayed": "display",
    "shows": "show",
    "showing": "show",
    "shown": "show",
    "appears": "appear",
    "appearing": "appear",
    "appeared": "appear",
    "contains": "contain",
    "containing": "contain",
    "focuses": "focus",
    "focusing": "focus",
    "clears": "clear",
    "clearing": "clear",
    "reloads": "reload",
    "refreshes": "refresh",
    "expects": "expect",
    "confirms": "confirm",
    "dismisses": "dismiss",
    "accepts": "accept",
    "logs": "log",
}

# Multi-word forms first so that "text field" wins over "field".
ABBREVIATIONS: dict[str, str] = {
    "text field": "field",
    "text input": "field",
    "input field": "field",
    "textbox": "field",
    "inputbox": "field",
    "select box": "dropdown",
    "combobox": "dropdown",
    "picker": "dropdown",
    "listbox": "dropdown",
    "sign in": "login",
    "log in": "login",
    "signin": "login",
    "sign out": "logout",
    "log out": "logout",
    "signout": "logout",
    "submit button": "submit",
    "search box": "search field",
    "search bar": "search field",
    "btn": "button",
}

STOP_WORDS = frozenset({"the", "a", "an", "on", "in", "to", "of", "for", "with", "into", "is", "be", "that"})

_ACTOR_PREFIX = re.compile(
    r"^(?:the\s+)?(?:user|i|we|they|customer|visitor|admin|administrator)\s+",
    re.IGNORECASE,
)
_QUOTED = re.compile(r"""(["'])(.*?)\1""")
_PLACEHOLDER = re.compile(r"__q(\d+)__")
_WHITESPACE = re.compile(r"\s+")
_ABBREVIATION_PATTERNS = [
    (re.compile(rf"\b{re.escape(phrase)}\b"), replacement)
    for phrase, replacement in sorted(ABBREVIATIONS.items(), key=lambda kv: -len(kv[0]))
]


def _protect_quotes(text: str) -> tuple[str, list[str]]:
    quotes: list[str] = []

    def replace(match: re.Match[str]) -> str:
        quotes.append(match.group(0))
        return f" __q{len(quotes) - 1}__ "

    return _QUOTED.sub(replace, text), quotes


def _restore_quotes(text: str, quotes: list[str]) -> str:
    return _PLACEHOLDER.sub(lambda m: quotes[int(m.group(1))], text)


def remove_actor_prefix(text: str) -> str:
    """Strip a leading actor such as "User" or "The admin"."""
    return _ACTOR_PREFIX.sub("", text.strip(), count=1)


def expand_abbreviations(text: str) -> str:
    """Replace known abbreviations and compound terms, longest first."""
    for pattern, replacement in _ABBREVIATION_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def stem_verbs(text: str) -> str:
    """Reduce inflected verbs to their base form, word by word."""
    words = []
    for word in text.split(" "):
        if word and re.fullmatch(r"[a-z]+", word):
            word = VERB_STEMS.get(word, word)
        words.append(word)
    return " ".join(words)


def remove_stop_words(text: str) -> str:
    return " ".join(w for w in text.split() if w not in STOP_WORDS)


def normalize_step(text: str, *, remove_stops: bool = False) -> str:
    """
    Normalize a step for comparison.

    Steps: protect quoted strings, drop the actor prefix, lowercase,
    expand abbreviations, stem verbs, optionally drop stop words,
    collapse whitespace and restore quotes.
    """
    protected, quotes = _protect_quotes(text)
    result = remove_actor_prefix(protected).lower()
    result = _WHITESPACE.sub(" ", result).strip()
    result = expand_abbreviations(result)
    result = stem_verbs(result)
    if remove_stops:
        result = remove_stop_words(result)
    result = _WHITESPACE.sub(" ", result).strip()
    return _restore_quotes(result, quotes)


def get_canonical_form(text: str) -> str:
    """Most aggressive normalization, used by the fuzzy matcher."""
    return normalize_step(text, remove_stops=True)


def normalize_light(text: str) -> str:
    """Lowercase and collapse whitespace only; quotes are kept as written."""
    protected, quotes = _protect_quotes(text)
    result = _WHITESPACE.sub(" ", protected.lower()).strip()
    return _restore_quotes(result, quotes)


def are_steps_equivalent(a: str, b: str) -> bool:
    """True when two steps share a canonical form."""
    return get_canonical_form(a) == get_canonical_form(b)


def get_all_normalizations(text: str) -> dict[str, str]:
    """Return each normalization level of a step, for debugging."""
    return {
        "original": text,
        "light": normalize_light(text),
        "standard": normalize_step(text),
        "canonical": get_canonical_form(text),
    }
