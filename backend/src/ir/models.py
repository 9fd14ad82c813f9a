"""
Pydantic models for the test intermediate representation (IR).

A journey step maps to exactly one IR primitive. Primitives form a closed
tagged union keyed by ``type``; consumers dispatch on it with ``match``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, Self, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)


class LocatorStrategy(StrEnum):
    """Strategies for locating an element, in accessibility-first order."""

    ROLE = "role"
    LABEL = "label"
    PLACEHOLDER = "placeholder"
    TEXT = "text"
    TESTID = "testid"
    CSS = "css"


class ValueType(StrEnum):
    """Sources for values typed into form fields."""

    LITERAL = "literal"
    ACTOR = "actor"
    RUN_ID = "run_id"
    GENERATED = "generated"
    TEST_DATA = "test_data"


class ToastType(StrEnum):
    """Toast notification flavours."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


class LocatorOptions(BaseModel):
    """Optional refinements for a locator."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str | None = None
    exact: bool | None = None
    level: int | None = Field(default=None, ge=1, le=6)


class LocatorSpec(BaseModel):
    """How to find an element on the page."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: LocatorStrategy
    value: str = Field(min_length=1)
    options: LocatorOptions | None = None

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: str) -> str:
        """Reject whitespace-only locator values."""
        if not v.strip():
            raise ValueError("locator value must not be blank")
        return v

    @model_validator(mode="after")
    def validate_level(self) -> Self:
        """Heading level is only meaningful for role=heading locators."""
        if self.options is not None and self.options.level is not None:
            if self.strategy != LocatorStrategy.ROLE or self.value != "heading":
                raise ValueError("level option requires role=heading")
        return self

    @classmethod
    def role(
        cls,
        role: str,
        name: str | None = None,
        exact: bool | None = None,
        level: int | None = None,
    ) -> LocatorSpec:
        """Build a role locator, omitting empty options."""
        options = None
        if name is not None or exact is not None or level is not None:
            options = LocatorOptions(name=name, exact=exact, level=level)
        return cls(strategy=LocatorStrategy.ROLE, value=role, options=options)

    @classmethod
    def of(cls, strategy: LocatorStrategy, value: str, exact: bool | None = None) -> LocatorSpec:
        """Build a non-role locator with an optional exact flag."""
        options = LocatorOptions(exact=exact) if exact is not None else None
        return cls(strategy=strategy, value=value, options=options)


class ValueSpec(BaseModel):
    """A value to type into a field."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: ValueType = ValueType.LITERAL
    value: str = ""


class _Primitive(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# Navigation


class Goto(_Primitive):
    type: Literal["goto"] = "goto"
    url: str = Field(min_length=1)
    wait_for_load: bool = True
    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] | None = None
    signal: str | None = None
    timeout: int | None = Field(default=None, ge=0)


class GoBack(_Primitive):
    type: Literal["go_back"] = "go_back"


class GoForward(_Primitive):
    type: Literal["go_forward"] = "go_forward"


class Reload(_Primitive):
    type: Literal["reload"] = "reload"


class WaitForUrl(_Primitive):
    type: Literal["wait_for_url"] = "wait_for_url"
    pattern: str = Field(min_length=1)
    timeout: int | None = Field(default=None, ge=0)


# Interaction


class Click(_Primitive):
    type: Literal["click"] = "click"
    locator: LocatorSpec
    timeout: int | None = Field(default=None, ge=0)


class DoubleClick(_Primitive):
    type: Literal["dblclick"] = "dblclick"
    locator: LocatorSpec
    timeout: int | None = Field(default=None, ge=0)


class RightClick(_Primitive):
    type: Literal["right_click"] = "right_click"
    locator: LocatorSpec
    timeout: int | None = Field(default=None, ge=0)


class Hover(_Primitive):
    type: Literal["hover"] = "hover"
    locator: LocatorSpec
    timeout: int | None = Field(default=None, ge=0)


class Focus(_Primitive):
    type: Literal["focus"] = "focus"
    locator: LocatorSpec


class Clear(_Primitive):
    type: Literal["clear"] = "clear"
    locator: LocatorSpec


class Check(_Primitive):
    type: Literal["check"] = "check"
    locator: LocatorSpec
    timeout: int | None = Field(default=None, ge=0)


class Uncheck(_Primitive):
    type: Literal["uncheck"] = "uncheck"
    locator: LocatorSpec
    timeout: int | None = Field(default=None, ge=0)


class Fill(_Primitive):
    type: Literal["fill"] = "fill"
    locator: LocatorSpec
    value: ValueSpec
    timeout: int | None = Field(default=None, ge=0)


class Select(_Primitive):
    type: Literal["select"] = "select"
    locator: LocatorSpec
    option: str


class Press(_Primitive):
    type: Literal["press"] = "press"
    key: str = Field(min_length=1)
    locator: LocatorSpec | None = None


# Waits


class WaitForVisible(_Primitive):
    type: Literal["wait_for_visible"] = "wait_for_visible"
    locator: LocatorSpec
    timeout: int | None = Field(default=None, ge=0)


class WaitForHidden(_Primitive):
    type: Literal["wait_for_hidden"] = "wait_for_hidden"
    locator: LocatorSpec
    timeout: int | None = Field(default=None, ge=0)


class WaitForTimeout(_Primitive):
    type: Literal["wait_for_timeout"] = "wait_for_timeout"
    ms: int = Field(ge=0)


class WaitForNetworkIdle(_Primitive):
    type: Literal["wait_for_network_idle"] = "wait_for_network_idle"
    timeout: int | None = Field(default=None, ge=0)


class WaitForLoadingComplete(_Primitive):
    type: Literal["wait_for_loading_complete"] = "wait_for_loading_complete"
    timeout: int | None = Field(default=None, ge=0)


# Assertions


class ExpectVisible(_Primitive):
    type: Literal["expect_visible"] = "expect_visible"
    locator: LocatorSpec
    timeout: int | None = Field(default=None, ge=0)


class ExpectHidden(_Primitive):
    type: Literal["expect_hidden"] = "expect_hidden"
    locator: LocatorSpec
    timeout: int | None = Field(default=None, ge=0)


class ExpectText(_Primitive):
    type: Literal["expect_text"] = "expect_text"
    locator: LocatorSpec
    text: str
    timeout: int | None = Field(default=None, ge=0)


class ExpectValue(_Primitive):
    type: Literal["expect_value"] = "expect_value"
    locator: LocatorSpec
    value: str


class ExpectChecked(_Primitive):
    type: Literal["expect_checked"] = "expect_checked"
    locator: LocatorSpec


class ExpectEnabled(_Primitive):
    type: Literal["expect_enabled"] = "expect_enabled"
    locator: LocatorSpec


class ExpectDisabled(_Primitive):
    type: Literal["expect_disabled"] = "expect_disabled"
    locator: LocatorSpec


class ExpectUrl(_Primitive):
    type: Literal["expect_url"] = "expect_url"
    pattern: str = Field(min_length=1)


class ExpectTitle(_Primitive):
    type: Literal["expect_title"] = "expect_title"
    title: str


class ExpectCount(_Primitive):
    type: Literal["expect_count"] = "expect_count"
    locator: LocatorSpec
    count: int = Field(ge=0)


# Signals


class ExpectToast(_Primitive):
    type: Literal["expect_toast"] = "expect_toast"
    toast_type: ToastType = ToastType.INFO
    message: str | None = None


class DismissModal(_Primitive):
    type: Literal["dismiss_modal"] = "dismiss_modal"


class AcceptAlert(_Primitive):
    type: Literal["accept_alert"] = "accept_alert"


class DismissAlert(_Primitive):
    type: Literal["dismiss_alert"] = "dismiss_alert"


# Modules


class CallModule(_Primitive):
    type: Literal["call_module"] = "call_module"
    module: str = Field(min_length=1)
    method: str = Field(min_length=1)
    args: list[str] = Field(default_factory=list)


# Terminal


class Blocked(_Primitive):
    type: Literal["blocked"] = "blocked"
    reason: str
    source_text: str


IRPrimitive = Annotated[
    Union[
        Goto,
        GoBack,
        GoForward,
        Reload,
        WaitForUrl,
        Click,
        DoubleClick,
        RightClick,
        Hover,
        Focus,
        Clear,
        Check,
        Uncheck,
        Fill,
        Select,
        Press,
        WaitForVisible,
        WaitForHidden,
        WaitForTimeout,
        WaitForNetworkIdle,
        WaitForLoadingComplete,
        ExpectVisible,
        ExpectHidden,
        ExpectText,
        ExpectValue,
        ExpectChecked,
        ExpectEnabled,
        ExpectDisabled,
        ExpectUrl,
        ExpectTitle,
        ExpectCount,
        ExpectToast,
        DismissModal,
        AcceptAlert,
        DismissAlert,
        CallModule,
        Blocked,
    ],
    Field(discriminator="type"),
]

primitive_adapter: TypeAdapter[IRPrimitive] = TypeAdapter(IRPrimitive)


def parse_primitive(data: dict[str, Any]) -> IRPrimitive:
    """Validate a JSON-shaped dict into the matching primitive variant."""
    return primitive_adapter.validate_python(data)


def is_assertion(primitive: IRPrimitive) -> bool:
    """True for expect_* primitives."""
    return primitive.type.startswith("expect_")


def primitive_locator(primitive: IRPrimitive) -> LocatorSpec | None:
    """Return the locator a primitive targets, if any."""
    return getattr(primitive, "locator", None)


def supports_timeout(primitive: IRPrimitive) -> bool:
    """True when the primitive variant declares a timeout field."""
    return "timeout" in type(primitive).model_fields


def describe_primitive(primitive: IRPrimitive) -> str:
    """Render a short human readable summary of a primitive."""
    match primitive:
        case Goto(url=url):
            return f"goto {url}"
        case Blocked(reason=reason):
            return f"blocked: {reason}"
        case CallModule(module=module, method=method):
            return f"call {module}.{method}"
        case Fill(locator=locator, value=value):
            return f"fill {describe_locator(locator)} with {value.value!r}"
        case _:
            locator = primitive_locator(primitive)
            if locator is not None:
                return f"{primitive.type} {describe_locator(locator)}"
            return primitive.type


def describe_locator(locator: LocatorSpec) -> str:
    """Render a locator as strategy=value[name]."""
    text = f"{locator.strategy}={locator.value}"
    if locator.options and locator.options.name:
        text += f"[{locator.options.name}]"
    return text
