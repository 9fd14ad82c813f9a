"""
Unit tests for mapping and healing configuration.

Tests cover:
- Model defaults and validation
- Forbidden fixes always enforced
- YAML file loading and standard paths
- Environment variable overrides
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from journeyqa.exceptions import HealingConfigError
from journeyqa.heal.config import (
    FORBIDDEN_FIXES,
    FixType,
    ForbiddenFix,
    HealingConfig,
    build_healing_config,
    load_healing_config,
)
from journeyqa.heal.rules import DEFAULT_ALLOWED_FIXES, DEFAULT_HEALING_RULES
from journeyqa.mapping.config import MappingConfig, MatchOptions, load_mapping_config


@pytest.fixture
def isolated(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty directory so no standard config file is found."""
    monkeypatch.chdir(temp_dir)
    return temp_dir


class TestHealingConfig:
    """Tests for the HealingConfig model."""

    def test_defaults(self) -> None:
        """Test default policy values."""
        config = HealingConfig()

        assert config.enabled
        assert config.max_attempts == 3
        assert config.allowed_fixes == DEFAULT_ALLOWED_FIXES
        assert FixType.TIMEOUT_INCREASE not in config.allowed_fixes
        assert config.forbidden_fixes == FORBIDDEN_FIXES
        assert config.max_timeout_increase == 30000

    def test_default_allowed_follows_rules(self) -> None:
        """Test the default allow-list is the rules enabled by default."""
        enabled = {r.fix_type for r in DEFAULT_HEALING_RULES if r.enabled_by_default}

        assert set(HealingConfig().allowed_fixes) == enabled

    def test_max_attempts_bounds(self) -> None:
        """Test attempts must be between 1 and 10."""
        with pytest.raises(ValidationError):
            HealingConfig(max_attempts=0)
        with pytest.raises(ValidationError):
            HealingConfig(max_attempts=11)

    def test_timeout_bounds(self) -> None:
        """Test the timeout ceiling range."""
        with pytest.raises(ValidationError):
            HealingConfig(max_timeout_increase=500)

    def test_forbidden_cannot_be_removed(self) -> None:
        """Test an empty forbidden set still holds the built-in list."""
        config = HealingConfig(forbidden_fixes=frozenset())

        assert config.forbidden_fixes == FORBIDDEN_FIXES
        assert config.is_forbidden("remove-assertion")

    def test_forbidden_extends(self) -> None:
        """Test configured fixes join the built-in list."""
        config = HealingConfig(forbidden_fixes=frozenset({"add-exact"}))

        assert config.forbidden_fixes == FORBIDDEN_FIXES | {"add-exact"}

    def test_unknown_forbidden_rejected(self) -> None:
        """Test unknown names are rejected."""
        with pytest.raises(ValidationError, match="Unknown fix type"):
            HealingConfig(forbidden_fixes=frozenset({"teleport"}))

    def test_allowed_deduplicated(self) -> None:
        """Test repeated allowed fixes collapse in order."""
        config = HealingConfig(allowed_fixes=("add-exact", "selector-refine", "add-exact"))

        assert config.allowed_fixes == (FixType.ADD_EXACT, FixType.SELECTOR_REFINE)

    def test_frozen(self) -> None:
        """Test configs are immutable."""
        with pytest.raises(ValidationError):
            HealingConfig().max_attempts = 5


class TestBuildHealingConfig:
    """Tests for build_healing_config."""

    def test_unknown_allowed_name(self) -> None:
        """Test unknown allowed fixes name the field."""
        with pytest.raises(HealingConfigError) as exc_info:
            build_healing_config({"allowed_fixes": ["teleport"]})

        assert exc_info.value.field == "allowed_fixes"
        assert str(exc_info.value) == "allowed_fixes: Unknown fix type(s): teleport"

    def test_unknown_forbidden_name(self) -> None:
        """Test unknown forbidden fixes name the field."""
        with pytest.raises(HealingConfigError) as exc_info:
            build_healing_config({"forbidden_fixes": ["teleport", "blink"]})

        assert exc_info.value.field == "forbidden_fixes"
        assert "blink, teleport" in str(exc_info.value)

    def test_forbidden_fix_accepted_in_allowed(self) -> None:
        """Test a forbidden name in allowed_fixes is kept as data, not rejected."""
        config = build_healing_config({"allowed_fixes": ["selector-refine", "add-sleep"]})

        assert config.allowed_fixes == (FixType.SELECTOR_REFINE, ForbiddenFix.ADD_SLEEP)
        assert config.is_forbidden("add-sleep")

    def test_out_of_range(self) -> None:
        """Test range violations are wrapped."""
        with pytest.raises(HealingConfigError) as exc_info:
            build_healing_config({"max_attempts": 50})

        assert exc_info.value.field == "max_attempts"

    def test_valid(self) -> None:
        """Test a valid mapping."""
        config = build_healing_config({"max_attempts": 5, "allowed_fixes": ["timeout-increase"]})

        assert config.max_attempts == 5
        assert config.allowed_fixes == (FixType.TIMEOUT_INCREASE,)


class TestLoadHealingConfig:
    """Tests for load_healing_config."""

    def test_defaults_without_file(self, isolated: Path) -> None:
        """Test defaults when nothing is configured."""
        with patch.dict("os.environ", {}, clear=True):
            config = load_healing_config()

        assert config == HealingConfig()

    def test_explicit_file(self, isolated: Path) -> None:
        """Test values from an explicit YAML file."""
        path = isolated / "heal.yaml"
        path.write_text("max_attempts: 2\nallowed_fixes:\n  - selector-refine\n")

        with patch.dict("os.environ", {}, clear=True):
            config = load_healing_config(path)

        assert config.max_attempts == 2
        assert config.allowed_fixes == (FixType.SELECTOR_REFINE,)

    def test_standard_path(self, isolated: Path) -> None:
        """Test the standard location is discovered."""
        (isolated / ".journeyqa").mkdir()
        (isolated / ".journeyqa" / "heal.yaml").write_text("enabled: false\n")

        with patch.dict("os.environ", {}, clear=True):
            config = load_healing_config()

        assert not config.enabled

    def test_empty_file(self, isolated: Path) -> None:
        """Test an empty YAML file yields defaults."""
        path = isolated / "heal.yaml"
        path.write_text("")

        with patch.dict("os.environ", {}, clear=True):
            assert load_healing_config(path) == HealingConfig()

    def test_env_overrides_file(self, isolated: Path) -> None:
        """Test environment variables win over file values."""
        path = isolated / "heal.yaml"
        path.write_text("max_attempts: 2\n")
        env = {
            "JOURNEYQA_HEAL_MAX_ATTEMPTS": "5",
            "JOURNEYQA_HEAL_ALLOWED_FIXES": '["add-exact"]',
        }

        with patch.dict("os.environ", env, clear=True):
            config = load_healing_config(path)

        assert config.max_attempts == 5
        assert config.allowed_fixes == (FixType.ADD_EXACT,)

    def test_env_ignored_without_override(self, isolated: Path) -> None:
        """Test env_override=False ignores the environment."""
        with patch.dict("os.environ", {"JOURNEYQA_HEAL_MAX_ATTEMPTS": "5"}, clear=True):
            config = load_healing_config(env_override=False)

        assert config.max_attempts == 3

    def test_invalid_file_values(self, isolated: Path) -> None:
        """Test invalid file values raise HealingConfigError."""
        path = isolated / "heal.yaml"
        path.write_text("max_attempts: 99\n")

        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(HealingConfigError):
                load_healing_config(path)


class TestMappingConfig:
    """Tests for MatchOptions, MappingConfig and load_mapping_config."""

    def test_defaults(self) -> None:
        """Test default matching options."""
        options = MatchOptions()

        assert options.normalize_text
        assert options.use_llkb
        assert options.llkb_min_confidence == 0.7
        assert options.min_fuzzy_similarity == 0.85
        assert not options.use_fallback
        assert options.include_blocked

    def test_rejects_unknown_keys(self) -> None:
        """Test typos in options are errors."""
        with pytest.raises(ValidationError):
            MatchOptions(use_fuzy=False)

    def test_confidence_range(self) -> None:
        """Test thresholds are within 0..1."""
        with pytest.raises(ValidationError):
            MatchOptions(llkb_min_confidence=1.5)

    def test_load_file(self, isolated: Path) -> None:
        """Test nested options and top-level keys from YAML."""
        path = isolated / "mapping.yaml"
        path.write_text("llkb_root: custom/llkb\noptions:\n  use_fuzzy: false\n  llkb_min_confidence: 0.5\n")

        with patch.dict("os.environ", {}, clear=True):
            config = load_mapping_config(path)

        assert config.llkb_root == Path("custom/llkb")
        assert not config.options.use_fuzzy
        assert config.options.llkb_min_confidence == 0.5

    def test_env_routes_to_options(self, isolated: Path) -> None:
        """Test option-level environment variables land in options."""
        env = {
            "JOURNEYQA_MAPPING_USE_FUZZY": "false",
            "JOURNEYQA_MAPPING_LLKB_ENABLED": "false",
        }

        with patch.dict("os.environ", env, clear=True):
            config = load_mapping_config()

        assert not config.options.use_fuzzy
        assert not config.llkb_enabled

    def test_defaults_without_file(self, isolated: Path) -> None:
        """Test defaults when nothing is configured."""
        with patch.dict("os.environ", {}, clear=True):
            assert load_mapping_config() == MappingConfig()
