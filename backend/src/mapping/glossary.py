"""
Glossary of synonyms, label aliases and module-method phrases.

The glossary canonicalizes step vocabulary before pattern matching and
resolves domain phrases ("log in as admin") to reusable module calls.
Only synonyms that cannot collide with pattern keywords are shipped by
default; projects extend it with a YAML file.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from journeyqa.exceptions import GlossaryError
from journeyqa.ir.models import LocatorSpec, LocatorStrategy

logger = structlog.get_logger(__name__)

_TOKEN_PATTERN = re.compile(r"""(['"][^'"]+['"])|(\S+)""")


class GlossaryEntry(BaseModel):
    """A canonical term and the synonyms that map onto it."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    canonical: str = Field(min_length=1)
    synonyms: list[str] = Field(default_factory=list)


class LabelAlias(BaseModel):
    """Maps a human label to a stable locator."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    label: str = Field(min_length=1)
    testid: str | None = None
    role: str | None = None
    selector: str | None = None


class ModuleMethodMapping(BaseModel):
    """Maps a natural-language phrase to a module method call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    phrase: str = Field(min_length=1)
    module: str = Field(min_length=1)
    method: str = Field(min_length=1)
    params: dict[str, Any] | None = None


class Glossary(BaseModel):
    """Complete glossary definition."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: int = Field(default=1, ge=1)
    entries: list[GlossaryEntry] = Field(default_factory=list)
    label_aliases: list[LabelAlias] = Field(default_factory=list)
    module_methods: list[ModuleMethodMapping] = Field(default_factory=list)

    @field_validator("entries")
    @classmethod
    def validate_entries(cls, v: list[GlossaryEntry]) -> list[GlossaryEntry]:
        """Canonical terms must be unique (case-insensitive)."""
        seen: set[str] = set()
        for entry in v:
            key = entry.canonical.lower()
            if key in seen:
                raise ValueError(f"Duplicate canonical term: {entry.canonical}")
            seen.add(key)
        return v


DEFAULT_GLOSSARY = Glossary(
    version=1,
    entries=[
        GlossaryEntry(canonical="navigate", synonyms=["visit", "browse"]),
        GlossaryEntry(canonical="button", synonyms=["btn", "cta"]),
        GlossaryEntry(canonical="field", synonyms=["textbox", "inputbox"]),
        GlossaryEntry(canonical="dropdown", synonyms=["combobox", "picker"]),
        GlossaryEntry(canonical="toast", synonyms=["snackbar"]),
        GlossaryEntry(canonical="modal", synonyms=["popup", "overlay", "lightbox"]),
        GlossaryEntry(canonical="user", synonyms=["customer", "visitor", "member", "client"]),
        GlossaryEntry(canonical="see", synonyms=["observe", "notice"]),
    ],
)


def merge_glossaries(base: Glossary, extension: Glossary) -> Glossary:
    """
    Merge an extension glossary onto a base glossary.

    Entries sharing a canonical term get the union of their synonyms; label
    aliases and module methods from the extension replace base items with
    the same label or phrase.

    Args:
        base: Glossary being extended
        extension: Glossary whose items take precedence

    Returns:
        New merged Glossary
    """
    entries: dict[str, GlossaryEntry] = {e.canonical.lower(): e for e in base.entries}
    for entry in extension.entries:
        key = entry.canonical.lower()
        existing = entries.get(key)
        if existing is None:
            entries[key] = entry
            continue
        synonyms = list(existing.synonyms)
        known = {s.lower() for s in synonyms}
        for synonym in entry.synonyms:
            if synonym.lower() not in known:
                synonyms.append(synonym)
                known.add(synonym.lower())
        entries[key] = GlossaryEntry(canonical=existing.canonical, synonyms=synonyms)

    aliases = {a.label.lower(): a for a in base.label_aliases}
    aliases.update({a.label.lower(): a for a in extension.label_aliases})

    methods = {m.phrase.lower(): m for m in base.module_methods}
    methods.update({m.phrase.lower(): m for m in extension.module_methods})

    return Glossary(
        version=max(base.version, extension.version),
        entries=list(entries.values()),
        label_aliases=list(aliases.values()),
        module_methods=list(methods.values()),
    )


def load_glossary(path: Path | str, base: Glossary | None = None) -> Glossary:
    """
    Load a glossary YAML file and merge it onto the base glossary.

    Args:
        path: Path to a YAML glossary file
        base: Glossary to extend (defaults to DEFAULT_GLOSSARY)

    Returns:
        Merged Glossary

    Raises:
        GlossaryError: If the file is missing, unreadable or invalid
    """
    glossary_path = Path(path)
    if not glossary_path.exists():
        raise GlossaryError("Glossary file not found", glossary_path)

    try:
        with glossary_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise GlossaryError(f"Invalid YAML: {e}", glossary_path) from e

    if not isinstance(data, dict):
        raise GlossaryError("Glossary root must be a mapping", glossary_path)

    try:
        extension = Glossary.model_validate(data)
    except ValidationError as e:
        raise GlossaryError(f"Invalid glossary: {e.error_count()} validation error(s)", glossary_path) from e

    logger.info(
        "Loaded glossary",
        path=str(glossary_path),
        entries=len(extension.entries),
        label_aliases=len(extension.label_aliases),
        module_methods=len(extension.module_methods),
    )
    return merge_glossaries(base or DEFAULT_GLOSSARY, extension)


def build_synonym_map(glossary: Glossary) -> dict[str, str]:
    """Map every lower-cased synonym to its canonical term."""
    synonym_map: dict[str, str] = {}
    for entry in glossary.entries:
        for synonym in entry.synonyms:
            synonym_map[synonym.lower()] = entry.canonical
    return synonym_map


def normalize_step_text(text: str, synonym_map: dict[str, str]) -> str:
    """
    Replace known synonyms with their canonical terms.

    Quoted strings are passed through untouched.
    """
    parts: list[str] = []
    for match in _TOKEN_PATTERN.finditer(text):
        quoted, word = match.group(1), match.group(2)
        if quoted is not None:
            parts.append(quoted)
        else:
            parts.append(synonym_map.get(word.lower(), word))
    return " ".join(parts)


def get_canonical_term(term: str, synonym_map: dict[str, str]) -> str:
    """Return the canonical term for a word, or the word itself."""
    return synonym_map.get(term.lower(), term)


def find_label_alias(glossary: Glossary, label: str) -> LabelAlias | None:
    """Find a label alias by case-insensitive label."""
    wanted = label.lower()
    for alias in glossary.label_aliases:
        if alias.label.lower() == wanted:
            return alias
    return None


def locator_from_label_alias(glossary: Glossary, label: str) -> LocatorSpec | None:
    """Build a locator for a label alias (testid > role > css)."""
    alias = find_label_alias(glossary, label)
    if alias is None:
        return None
    if alias.testid:
        return LocatorSpec.of(LocatorStrategy.TESTID, alias.testid)
    if alias.role:
        return LocatorSpec.role(alias.role, name=alias.label)
    if alias.selector:
        return LocatorSpec.of(LocatorStrategy.CSS, alias.selector)
    return None


def resolve_module_method(glossary: Glossary, text: str) -> ModuleMethodMapping | None:
    """Return the module method whose phrase is the longest one contained in text."""
    lowered = text.lower()
    best: ModuleMethodMapping | None = None
    for mapping in glossary.module_methods:
        phrase = mapping.phrase.lower()
        if phrase in lowered and (best is None or len(phrase) > len(best.phrase)):
            best = mapping
    return best
