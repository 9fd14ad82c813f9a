"""
Healing configuration.

Provides the healing policy model plus environment and YAML loading.
Forbidden fixes are enforced regardless of what configuration says.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from journeyqa.exceptions import HealingConfigError

logger = structlog.get_logger(__name__)


class FixType(StrEnum):
    """Code fixes the healing loop may apply."""

    SELECTOR_REFINE = "selector-refine"
    ADD_EXACT = "add-exact"
    MISSING_AWAIT = "missing-await"
    NAVIGATION_WAIT = "navigation-wait"
    TIMEOUT_INCREASE = "timeout-increase"
    WEB_FIRST_ASSERTION = "web-first-assertion"


class ForbiddenFix(StrEnum):
    """Fixes that would hide real failures and are never applied."""

    ADD_SLEEP = "add-sleep"
    REMOVE_ASSERTION = "remove-assertion"
    WEAKEN_ASSERTION = "weaken-assertion"
    FORCE_CLICK = "force-click"
    BYPASS_AUTH = "bypass-auth"


FORBIDDEN_FIXES: frozenset[str] = frozenset(f.value for f in ForbiddenFix)
KNOWN_FIXES: frozenset[str] = frozenset(f.value for f in FixType) | FORBIDDEN_FIXES


def default_allowed_fixes() -> tuple[FixType, ...]:
    """Fix types whose healing rule is enabled by default."""
    from journeyqa.heal.rules import DEFAULT_ALLOWED_FIXES

    return DEFAULT_ALLOWED_FIXES


class HealingConfig(BaseModel):
    """Policy for the healing loop."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(default=True, description="Enable automatic healing")
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum fix attempts per session",
    )
    allowed_fixes: tuple[FixType | ForbiddenFix, ...] = Field(
        default_factory=default_allowed_fixes,
        description="Fix types the loop may apply; forbidden entries are accepted but never applied",
    )
    forbidden_fixes: frozenset[str] = Field(
        default=FORBIDDEN_FIXES,
        description="Fix types never applied; always includes the built-in forbidden set",
    )
    max_timeout_increase: int = Field(
        default=30000,
        ge=1000,
        le=300000,
        description="Upper bound in ms for timeout-increase fixes",
    )

    @field_validator("allowed_fixes")
    @classmethod
    def dedupe_allowed(cls, v: tuple[FixType | ForbiddenFix, ...]) -> tuple[FixType | ForbiddenFix, ...]:
        forbidden = sorted(f.value for f in v if isinstance(f, ForbiddenFix))
        if forbidden:
            logger.warning("Forbidden fixes in allowed_fixes are ignored", fixes=forbidden)
        return tuple(dict.fromkeys(v))

    @field_validator("forbidden_fixes")
    @classmethod
    def validate_forbidden(cls, v: frozenset[str]) -> frozenset[str]:
        unknown = sorted(set(v) - KNOWN_FIXES)
        if unknown:
            raise ValueError(f"Unknown fix type(s): {', '.join(unknown)}")
        return frozenset(v) | FORBIDDEN_FIXES

    def is_forbidden(self, fix_type: str) -> bool:
        return fix_type in self.forbidden_fixes


class HealingSettings(BaseSettings):
    """
    Environment-based healing settings.

    Loads configuration from environment variables with JOURNEYQA_HEAL_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="JOURNEYQA_HEAL_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = True
    max_attempts: int = 3
    allowed_fixes: list[str] | None = None
    max_timeout_increase: int = 30000


STANDARD_HEALING_PATHS = (
    Path(".journeyqa/heal.yaml"),
    Path(".journeyqa/heal.yml"),
    Path("journeyqa-heal.yaml"),
    Path("journeyqa-heal.yml"),
)


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open() as f:
        return yaml.safe_load(f) or {}


def build_healing_config(data: dict[str, Any]) -> HealingConfig:
    """
    Validate a configuration mapping.

    Raises:
        HealingConfigError: If a value is invalid or a fix name is unknown
    """
    for key in ("allowed_fixes", "forbidden_fixes"):
        names = data.get(key) or []
        unknown = sorted(str(n) for n in names if str(n) not in KNOWN_FIXES)
        if unknown:
            raise HealingConfigError(f"Unknown fix type(s): {', '.join(unknown)}", field=key)
    try:
        return HealingConfig(**data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"]) or None
        raise HealingConfigError(first["msg"], field=field) from e


def load_healing_config(
    config_file: Path | str | None = None,
    env_override: bool = True,
) -> HealingConfig:
    """
    Load healing configuration from file and/or environment.

    Priority (highest to lowest):
    1. Environment variables (if env_override=True)
    2. Config file (explicit, else first standard path found)
    3. Defaults

    Args:
        config_file: Optional path to YAML config file
        env_override: Whether environment variables override file config

    Returns:
        Complete HealingConfig instance

    Raises:
        HealingConfigError: If the resulting configuration is invalid
    """
    file_config: dict[str, Any] = {}
    if config_file:
        config_path = Path(config_file)
        if config_path.exists():
            file_config = _read_yaml(config_path)

    if not file_config:
        for path in STANDARD_HEALING_PATHS:
            if path.exists():
                file_config = _read_yaml(path)
                break

    data = dict(file_config)
    env_fields: list[str] = []
    if env_override:
        settings = HealingSettings()
        for name in settings.model_fields_set:
            value = getattr(settings, name)
            if value is not None:
                data[name] = value
                env_fields.append(name)

    config = build_healing_config(data)
    logger.debug(
        "Loaded healing config",
        from_file=bool(file_config),
        env_fields=sorted(env_fields),
        max_attempts=config.max_attempts,
    )
    return config
