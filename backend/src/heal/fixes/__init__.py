"""
Fix appliers for generated Playwright tests.

Every applier takes test source text and returns a FixResult. When a fix
does not apply, the returned code is the input unchanged.
"""

from journeyqa.heal.config import FORBIDDEN_FIXES, FixType
from journeyqa.heal.fixes.base import AriaInfo, FixContext, FixResult, not_applied
from journeyqa.heal.fixes.navigation import (
    apply_load_state_wait,
    apply_navigation_fix,
    extract_url_from_error,
    has_navigation_wait,
)
from journeyqa.heal.fixes.selector import (
    add_exact_to_locators,
    apply_selector_fix,
    find_css_selectors,
    infer_role_from_selector,
)
from journeyqa.heal.fixes.timing import (
    apply_timeout_increase,
    convert_to_web_first_assertion,
    extract_timeout_from_error,
    fix_missing_await,
    suggest_timeout_increase,
)


def apply_fix(code: str, fix_type: str, context: FixContext | None = None) -> FixResult:
    """
    Apply one fix type to test source.

    Args:
        code: Test source
        fix_type: FixType value
        context: Failure location and details

    Returns:
        FixResult; forbidden or unknown fix types are never applied
    """
    ctx = context or FixContext()
    if fix_type in FORBIDDEN_FIXES:
        return not_applied(code, f"Fix type is forbidden: {fix_type}")

    match fix_type:
        case FixType.SELECTOR_REFINE:
            return apply_selector_fix(code, ctx.line_number, ctx.aria_info)
        case FixType.ADD_EXACT:
            return add_exact_to_locators(code)
        case FixType.MISSING_AWAIT:
            return fix_missing_await(code)
        case FixType.NAVIGATION_WAIT:
            return apply_navigation_fix(code, ctx.line_number, ctx.error_message, ctx.expected_url)
        case FixType.WEB_FIRST_ASSERTION:
            return convert_to_web_first_assertion(code)
        case FixType.TIMEOUT_INCREASE:
            return apply_timeout_increase(
                code,
                ctx.line_number,
                ctx.error_message,
                ctx.current_timeout,
                ctx.max_timeout_increase,
            )
        case _:
            return not_applied(code, f"Unknown fix type: {fix_type}")


__all__ = [
    # Types
    "AriaInfo",
    "FixContext",
    "FixResult",
    "apply_fix",
    # Selector
    "add_exact_to_locators",
    "apply_selector_fix",
    "find_css_selectors",
    "infer_role_from_selector",
    # Navigation
    "apply_load_state_wait",
    "apply_navigation_fix",
    "extract_url_from_error",
    "has_navigation_wait",
    # Timing
    "apply_timeout_increase",
    "convert_to_web_first_assertion",
    "extract_timeout_from_error",
    "fix_missing_await",
    "suggest_timeout_increase",
]
