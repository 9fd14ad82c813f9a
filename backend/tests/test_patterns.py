"""
Unit tests for the step pattern library.

Tests cover:
- Common step phrasings across navigation, interaction and assertions
- Ordering of specific patterns before generic ones
- Value classification and natural-language selectors
- Library introspection helpers
"""

from __future__ import annotations

import pytest

from journeyqa.ir import (
    CallModule,
    Click,
    ExpectHidden,
    ExpectToast,
    ExpectUrl,
    ExpectVisible,
    Fill,
    GoBack,
    Goto,
    LocatorSpec,
    LocatorStrategy,
    Press,
    Select,
    ToastType,
    ValueType,
    WaitForTimeout,
)
from journeyqa.mapping.patterns import (
    ALL_PATTERNS,
    create_value_from_text,
    find_matching_patterns,
    get_all_pattern_names,
    get_pattern,
    get_pattern_count_by_category,
    match_pattern,
    match_pattern_named,
    parse_selector_to_locator,
)


class TestNavigationPatterns:
    """Tests for navigation steps."""

    def test_navigate_to_url(self) -> None:
        """Test a bare URL."""
        assert match_pattern("User navigates to /dashboard") == Goto(url="/dashboard")

    def test_navigate_to_named_page(self) -> None:
        """Test a page name becomes a slug."""
        assert match_pattern("User navigates to the account settings page") == Goto(url="/account-settings")

    def test_go_back_before_go_to(self) -> None:
        """Test go back is not read as a URL named back."""
        assert match_pattern_named("User goes back") == ("go-back", GoBack())


class TestInteractionPatterns:
    """Tests for click, fill, select and key steps."""

    def test_click_quoted_button(self) -> None:
        """Test quoted button names become role locators."""
        result = match_pattern_named('User clicks "Submit" button')

        assert result is not None
        name, primitive = result
        assert name == "click-button-quoted"
        assert primitive == Click(locator=LocatorSpec.role("button", name="Submit"))

    def test_fill_quoted_value(self) -> None:
        """Test quoted value and field label."""
        primitive = match_pattern('User enters "alice@example.com" in the "Email" field')

        assert isinstance(primitive, Fill)
        assert primitive.locator == LocatorSpec.of(LocatorStrategy.LABEL, "Email")
        assert primitive.value.value == "alice@example.com"
        assert primitive.value.type == ValueType.LITERAL

    def test_select_from_dropdown(self) -> None:
        """Test dropdown selection strips quotes from the label."""
        primitive = match_pattern('User selects "Canada" from the "Country" dropdown')

        assert primitive == Select(locator=LocatorSpec.of(LocatorStrategy.LABEL, "Country"), option="Canada")

    def test_press_enter(self) -> None:
        """Test key presses win over generic click verbs."""
        assert match_pattern("Press Enter") == Press(key="Enter")

    def test_structured_click(self) -> None:
        """Test structured action steps."""
        primitive = match_pattern("**Action**: Click the Save button")

        assert primitive == Click(locator=LocatorSpec.role("button", name="Save"))


class TestAssertionPatterns:
    """Tests for assertion steps."""

    def test_should_see_text(self) -> None:
        """Test quoted visible text."""
        assert match_pattern('User should see "Welcome"') == ExpectVisible(
            locator=LocatorSpec.of(LocatorStrategy.TEXT, "Welcome")
        )

    def test_negative_before_positive(self) -> None:
        """Test not-visible steps map to hidden expectations."""
        assert match_pattern('Verify "Error" is not visible') == ExpectHidden(
            locator=LocatorSpec.of(LocatorStrategy.TEXT, "Error")
        )

    def test_url_contains(self) -> None:
        """Test URL assertions."""
        assert match_pattern("The URL should contain /dashboard") == ExpectUrl(pattern="/dashboard")

    def test_success_toast(self) -> None:
        """Test typed toast with message."""
        assert match_pattern('A success toast appears with "Saved"') == ExpectToast(
            toast_type=ToastType.SUCCESS, message="Saved"
        )


class TestOtherPatterns:
    """Tests for auth and wait steps."""

    def test_login(self) -> None:
        """Test plain login."""
        assert match_pattern("User logs in") == CallModule(module="auth", method="login")

    def test_login_as_role(self) -> None:
        """Test role login passes the role as argument."""
        assert match_pattern("User logs in as an Admin") == CallModule(
            module="auth", method="login_as", args=["admin"]
        )

    def test_wait_seconds(self) -> None:
        """Test waits convert to milliseconds."""
        assert match_pattern("Wait for 3 seconds") == WaitForTimeout(ms=3000)

    def test_unmatched(self) -> None:
        """Test unknown phrasing returns None."""
        assert match_pattern("Do a barrel roll") is None


class TestValueAndSelectorHelpers:
    """Tests for value classification and selector parsing."""

    @pytest.mark.parametrize(
        ("text", "value_type", "value"),
        [
            ("{{email}}", ValueType.ACTOR, "email"),
            ("$user.email", ValueType.TEST_DATA, "user.email"),
            ("user-${runId}", ValueType.GENERATED, "user-${runId}"),
            ("hello", ValueType.LITERAL, "hello"),
        ],
    )
    def test_create_value_from_text(self, text: str, value_type: ValueType, value: str) -> None:
        """Test each value source is recognized."""
        spec = create_value_from_text(text)

        assert spec.type == value_type
        assert spec.value == value

    def test_parse_selector_to_locator(self) -> None:
        """Test element descriptions."""
        assert parse_selector_to_locator("the Save button") == LocatorSpec.role("button", name="Save")
        assert parse_selector_to_locator("Help link") == LocatorSpec.role("link", name="Help")
        assert parse_selector_to_locator("Email field") == LocatorSpec.of(LocatorStrategy.LABEL, "Email")
        assert parse_selector_to_locator("Dashboard") == LocatorSpec.of(LocatorStrategy.TEXT, "Dashboard")


class TestLibraryIntrospection:
    """Tests for library helpers."""

    def test_names_are_unique(self) -> None:
        """Test every pattern has a distinct name."""
        names = get_all_pattern_names()

        assert len(names) == len(set(names)) == len(ALL_PATTERNS)

    def test_get_pattern(self) -> None:
        """Test lookup by name."""
        pattern = get_pattern("wait-seconds")

        assert pattern is not None
        assert pattern.primitive_type == "wait_for_timeout"
        assert get_pattern("missing") is None

    def test_category_counts(self) -> None:
        """Test categories cover every pattern."""
        counts = get_pattern_count_by_category()

        assert sum(counts.values()) == len(ALL_PATTERNS)
        assert counts["structured"] == 6

    def test_find_matching_patterns(self) -> None:
        """Test every matching regex is reported."""
        assert "wait-seconds" in find_matching_patterns("Wait for 3 seconds")
