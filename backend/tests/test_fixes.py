"""
Unit tests for healing fix appliers.

Tests cover:
- Selector refinement from ARIA facts and CSS shape
- exact=True for ambiguous semantic locators
- Missing await and web-first assertion rewrites
- Navigation waits and bounded timeout increases
- Dispatch through apply_fix, including forbidden fixes
"""

from __future__ import annotations

from journeyqa.heal.fixes import (
    AriaInfo,
    FixContext,
    add_exact_to_locators,
    apply_fix,
    apply_load_state_wait,
    apply_navigation_fix,
    apply_selector_fix,
    apply_timeout_increase,
    convert_to_web_first_assertion,
    extract_timeout_from_error,
    extract_url_from_error,
    find_css_selectors,
    fix_missing_await,
    infer_role_from_selector,
    suggest_timeout_increase,
)
from journeyqa.heal.fixes.navigation import url_to_glob

CSS_TEST = """async def test_login(page):
    await page.locator("#email").fill("alice@example.com")
    await page.locator(".submit-btn").click()"""

TWO_CSS_TEST = """async def test_form(page):
    await page.locator(".submit-btn").click()
    await page.locator(".cancel-btn").click()"""

NAV_TEST = """async def test_nav(page):
    await page.goto("/login")
    await page.get_by_role("button", name="Sign in").click()"""


class TestSelectorFix:
    """Tests for apply_selector_fix and helpers."""

    def test_find_css_selectors(self) -> None:
        """Test CSS locators are found in order."""
        assert find_css_selectors(CSS_TEST) == ["#email", ".submit-btn"]

    def test_infer_role(self) -> None:
        """Test role words in selectors."""
        assert infer_role_from_selector(".submit-btn") == "button"
        assert infer_role_from_selector("#main-nav") == "navigation"
        assert infer_role_from_selector("#xyz") is None

    def test_inferred_from_css(self) -> None:
        """Test the failing line's selector is replaced using its shape."""
        result = apply_selector_fix(CSS_TEST, line_number=3)

        assert result.applied
        assert result.new_locator == 'page.get_by_role("button", name="submit btn")'
        assert result.confidence == 0.6
        assert result.description == "Inferred page.get_by_role from CSS selector '.submit-btn'"
        assert 'await page.get_by_role("button", name="submit btn").click()' in result.code

    def test_only_offending_selector_replaced(self) -> None:
        """Test other CSS locators are untouched."""
        result = apply_selector_fix(CSS_TEST, line_number=3)

        assert 'page.locator("#email")' in result.code

    def test_aria_role_and_name(self) -> None:
        """Test ARIA facts produce an exact role locator."""
        result = apply_selector_fix(CSS_TEST, 3, AriaInfo(role="button", name="Sign in"))

        assert result.applied
        assert result.new_locator == 'page.get_by_role("button", name="Sign in", exact=True)'
        assert result.confidence == 0.9
        assert result.description == "Replaced CSS selector with page.get_by_role"

    def test_aria_test_id_preferred(self) -> None:
        """Test a test id wins over role and name."""
        result = apply_selector_fix(CSS_TEST, 3, AriaInfo(test_id="submit", role="button", name="Go"))

        assert result.new_locator == 'page.get_by_test_id("submit")'
        assert result.confidence == 1.0

    def test_aria_without_facts(self) -> None:
        """Test empty ARIA info does not guess."""
        result = apply_selector_fix(CSS_TEST, 3, AriaInfo())

        assert not result.applied
        assert result.code == CSS_TEST
        assert result.description == "Unable to generate locator from ARIA info"

    def test_uninferable_selector(self) -> None:
        """Test selectors without role or name words."""
        code = 'await page.locator("#xyz").click()'

        result = apply_selector_fix(code)

        assert not result.applied
        assert result.description == "Unable to infer semantic locator from CSS selector"

    def test_no_css(self) -> None:
        """Test code without CSS locators."""
        result = apply_selector_fix(NAV_TEST, 2)

        assert not result.applied
        assert result.description == "No CSS selector found to refine"

    def test_failing_line_already_semantic(self) -> None:
        """Test CSS elsewhere in the file is ignored once the failing line is semantic."""
        code = TWO_CSS_TEST.replace('page.locator(".submit-btn")', 'page.get_by_role("button", name="Submit")')

        result = apply_selector_fix(code, line_number=2)

        assert not result.applied
        assert result.code == code
        assert result.description == "Failing line already uses a semantic locator"


class TestAddExact:
    """Tests for add_exact_to_locators."""

    def test_adds_exact(self) -> None:
        """Test named roles and labels get exact=True."""
        code = (
            'await page.get_by_role("button", name="Save").click()\n'
            'await page.get_by_label("Email").fill("a")\n'
            'await page.get_by_role("dialog").wait_for()'
        )

        result = add_exact_to_locators(code)

        assert result.applied
        assert result.description == "Added exact=True to 2 locator(s)"
        assert 'get_by_role("button", name="Save", exact=True)' in result.code
        assert 'get_by_label("Email", exact=True)' in result.code
        assert 'get_by_role("dialog")' in result.code

    def test_already_exact(self) -> None:
        """Test locators that already set exact are skipped."""
        result = add_exact_to_locators('await page.get_by_text("Hi", exact=True).click()')

        assert not result.applied
        assert result.description == "No locator found to add exact option"


class TestTimingFixes:
    """Tests for await, web-first and timeout fixes."""

    def test_missing_await(self) -> None:
        """Test Playwright calls and expectations get awaited."""
        code = (
            "async def test_x(page):\n"
            '    page.goto("/login")\n'
            '    await page.click("#a")\n'
            '    expect(page.get_by_text("Hi")).to_be_visible()'
        )

        result = fix_missing_await(code)

        assert result.applied
        assert result.description == "Added 2 missing await statement(s)"
        lines = result.code.split("\n")
        assert lines[1] == '    await page.goto("/login")'
        assert lines[2] == '    await page.click("#a")'
        assert lines[3] == '    await expect(page.get_by_text("Hi")).to_be_visible()'

    def test_missing_await_on_keyboard_and_mouse(self) -> None:
        """Test chained keyboard and mouse calls get awaited."""
        code = '    page.keyboard.press("Enter")\n    page.mouse.click(10, 20)'

        result = fix_missing_await(code)

        assert result.applied
        assert result.code == '    await page.keyboard.press("Enter")\n    await page.mouse.click(10, 20)'

    def test_nothing_missing(self) -> None:
        """Test fully awaited code is unchanged."""
        result = fix_missing_await(NAV_TEST)

        assert not result.applied
        assert result.code == NAV_TEST

    def test_web_first_text(self) -> None:
        """Test text reads become to_have_text."""
        code = '    text = await page.locator("#msg").text_content()\n    assert text == "Saved"'

        result = convert_to_web_first_assertion(code)

        assert result.applied
        assert result.code == '    await expect(page.locator("#msg")).to_have_text("Saved")'

    def test_web_first_visibility(self) -> None:
        """Test visibility reads become to_be_visible."""
        code = '    visible = await page.get_by_text("Done").is_visible()\n    assert visible'

        result = convert_to_web_first_assertion(code)

        assert result.code == '    await expect(page.get_by_text("Done")).to_be_visible()'

    def test_web_first_nothing(self) -> None:
        """Test code without reads."""
        assert not convert_to_web_first_assertion(NAV_TEST).applied

    def test_timeout_from_error(self) -> None:
        """Test the current timeout is read from the error."""
        assert extract_timeout_from_error("Timeout 5000ms exceeded") == 5000
        assert extract_timeout_from_error("boom") is None

    def test_suggest_bounded(self) -> None:
        """Test increases are capped."""
        assert suggest_timeout_increase(5000) == 7500
        assert suggest_timeout_increase(25000, max_timeout=30000) == 30000

    def test_timeout_increase(self) -> None:
        """Test the failing line gets a larger timeout."""
        code = 'async def test_x(page):\n    await page.click("#save")'

        result = apply_timeout_increase(code, 2, "Timeout 5000ms exceeded")

        assert result.applied
        assert result.code.split("\n")[1] == '    await page.click("#save", timeout=7500)'
        assert result.description == "Added timeout=7500ms to line 2"

    def test_timeout_already_set(self) -> None:
        """Test lines with a timeout are left alone."""
        code = 'await page.click("#save", timeout=1000)'

        result = apply_timeout_increase(code, 1)

        assert not result.applied
        assert result.description == "Timeout already specified"

    def test_timeout_invalid_line(self) -> None:
        """Test out-of-range lines."""
        assert apply_timeout_increase("x = 1", 5).description == "Invalid line number"


class TestNavigationFix:
    """Tests for navigation waits."""

    def test_expected_url(self) -> None:
        """Test a wait_for_url is inserted after the failing line."""
        result = apply_navigation_fix(NAV_TEST, 3, expected_url="/dashboard")

        assert result.applied
        assert result.code.split("\n")[3] == '    await page.wait_for_url("**/dashboard")'
        assert result.description == "Added wait_for_url for '**/dashboard'"

    def test_url_from_error(self) -> None:
        """Test the expected URL is read from the failure message."""
        message = "Expected URL to match '/home'"

        assert extract_url_from_error(message) == "/home"
        result = apply_navigation_fix(NAV_TEST, 3, message)
        assert "wait_for_url(\"**/home\")" in result.code

    def test_existing_wait(self) -> None:
        """Test no duplicate wait is added."""
        code = NAV_TEST + '\n    await page.wait_for_url("**/home")'

        result = apply_navigation_fix(code, 3, expected_url="/home")

        assert not result.applied
        assert result.description == "Navigation wait already exists"

    def test_load_state_fallback(self) -> None:
        """Test a load-state wait when no URL is known."""
        code = 'async def test_x(page):\n    await page.get_by_role("link", name="Home").click()'

        result = apply_navigation_fix(code, 2)

        assert result.applied
        assert result.confidence == 0.5
        assert result.code.split("\n")[2] == '    await page.wait_for_load_state("networkidle")'

    def test_load_state_idempotent(self) -> None:
        """Test the load-state wait is not inserted twice."""
        code = 'await page.click("#a")\nawait page.wait_for_load_state("networkidle")'

        assert not apply_load_state_wait(code, 1).applied

    def test_url_to_glob(self) -> None:
        """Test glob conversion."""
        assert url_to_glob("/dashboard") == "**/dashboard"
        assert url_to_glob("dashboard") == "**/dashboard"
        assert url_to_glob("https://example.com/a") == "https://example.com/a"


class TestIdempotence:
    """Applying a fix to its own output changes nothing."""

    def test_reapplied_fixes_are_noops(self) -> None:
        """Test every applier leaves already-fixed code alone."""
        code = (
            "async def test_x(page):\n"
            '    page.goto("/login")\n'
            '    await page.get_by_role("button", name="Save").click()\n'
            '    text = await page.locator("#msg").text_content()\n'
            '    assert text == "Saved"'
        )
        for fix_type in ("missing-await", "add-exact", "web-first-assertion", "navigation-wait"):
            once = apply_fix(code, fix_type, FixContext(line_number=2))
            assert once.applied, fix_type

            twice = apply_fix(once.code, fix_type, FixContext(line_number=2))

            assert not twice.applied, fix_type
            assert twice.code == once.code

    def test_selector_refine_leaves_other_css_alone(self) -> None:
        """Test a second refine on the same failing line does not move to another selector."""
        context = FixContext(line_number=2)
        once = apply_fix(TWO_CSS_TEST, "selector-refine", context)
        assert once.applied
        assert 'page.locator(".cancel-btn")' in once.code

        twice = apply_fix(once.code, "selector-refine", context)

        assert not twice.applied
        assert twice.code == once.code

    def test_timeout_increase_once(self) -> None:
        """Test the failing line is not given a second timeout."""
        code = 'async def test_x(page):\n    await page.click("#save")'
        context = FixContext(line_number=2, error_message="Timeout 5000ms exceeded")
        once = apply_fix(code, "timeout-increase", context)
        assert once.applied

        twice = apply_fix(once.code, "timeout-increase", context)

        assert not twice.applied
        assert twice.code == once.code


class TestApplyFix:
    """Tests for apply_fix dispatch."""

    def test_dispatch(self) -> None:
        """Test fix types route to their applier."""
        result = apply_fix(CSS_TEST, "selector-refine", FixContext(line_number=3))

        assert result.applied
        assert result.new_locator is not None

    def test_context_reaches_timeout_fix(self) -> None:
        """Test the timeout ceiling comes from context."""
        code = 'await page.click("#save")'
        context = FixContext(line_number=1, current_timeout=20000, max_timeout_increase=25000)

        result = apply_fix(code, "timeout-increase", context)

        assert "timeout=25000" in result.code

    def test_forbidden(self) -> None:
        """Test forbidden fixes are never applied."""
        result = apply_fix(CSS_TEST, "force-click")

        assert not result.applied
        assert result.code == CSS_TEST
        assert result.description == "Fix type is forbidden: force-click"

    def test_unknown(self) -> None:
        """Test unknown fix types."""
        assert apply_fix(CSS_TEST, "teleport").description == "Unknown fix type: teleport"
