"""
Test intermediate representation.

Typed primitives produced by step mapping and consumed by code generators.
"""

from journeyqa.ir.models import (
    AcceptAlert,
    Blocked,
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
    LocatorOptions,
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
    describe_locator,
    describe_primitive,
    is_assertion,
    parse_primitive,
    primitive_adapter,
    primitive_locator,
    supports_timeout,
)

__all__ = [
    # Locators & values
    "LocatorOptions",
    "LocatorSpec",
    "LocatorStrategy",
    "ToastType",
    "ValueSpec",
    "ValueType",
    # Primitives
    "AcceptAlert",
    "Blocked",
    "CallModule",
    "Check",
    "Clear",
    "Click",
    "DismissAlert",
    "DismissModal",
    "DoubleClick",
    "ExpectChecked",
    "ExpectCount",
    "ExpectDisabled",
    "ExpectEnabled",
    "ExpectHidden",
    "ExpectText",
    "ExpectTitle",
    "ExpectToast",
    "ExpectUrl",
    "ExpectValue",
    "ExpectVisible",
    "Fill",
    "Focus",
    "GoBack",
    "GoForward",
    "Goto",
    "Hover",
    "IRPrimitive",
    "Press",
    "Reload",
    "RightClick",
    "Select",
    "Uncheck",
    "WaitForHidden",
    "WaitForLoadingComplete",
    "WaitForNetworkIdle",
    "WaitForTimeout",
    "WaitForUrl",
    "WaitForVisible",
    # Helpers
    "describe_locator",
    "describe_primitive",
    "is_assertion",
    "parse_primitive",
    "primitive_adapter",
    "primitive_locator",
    "supports_timeout",
]
