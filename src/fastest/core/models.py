"""fastest data models — Pydantic v2.

This module is a leaf: no internal project imports.
All Enum and Model definitions live here.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ============================================================
# Enums
# ============================================================


class Platform(StrEnum):
    """Which chain flavour to build."""

    GENERIC = "generic"
    ANDROID = "android"


class Using(StrEnum):
    """Element location strategy sent as ``using``."""

    XPATH = "xpath"
    ID = "id"
    CLASS_NAME = "class name"


class ChainAction(StrEnum):
    """Chain step name usable from scenario files."""

    # Session
    SET_IMPLICIT_WAIT_TIMEOUT = "set_implicit_wait_timeout"
    WINDOW_RECT = "window_rect"
    RESET_APP = "reset_app"
    HIDE_KEYBOARD = "hide_keyboard"
    # Find
    ELEMENTS = "elements"
    ELEMENTS_BY_XPATH = "elements_by_xpath"
    ELEMENTS_BY_ID = "elements_by_id"
    ELEMENTS_BY_CLASS_NAME = "elements_by_class_name"
    AT = "at"
    REVERSE_AT = "reverse_at"
    # Element actions
    CLICK = "click"
    SET_VALUE = "set_value"
    CLEAR = "clear"
    TEXT = "text"
    RECT = "rect"
    FLICK = "flick"
    FLICK_UP = "flick_up"
    FLICK_DOWN = "flick_down"
    FLICK_LEFT = "flick_left"
    FLICK_RIGHT = "flick_right"
    # Assert / wait
    IS_DISPLAYED = "is_displayed"
    IS_NOT_DISPLAYED = "is_not_displayed"
    IS_ENABLED = "is_enabled"
    IS_SELECTED = "is_selected"
    WAIT_DISPLAYED = "wait_displayed"
    WAIT_ENABLED = "wait_enabled"
    WAIT_SELECTED = "wait_selected"
    WAIT_STOP = "wait_stop"
    # Utility
    SLEEP = "sleep"
    # Android
    TEXTS = "texts"
    TEXT_VIEWS = "text_views"
    TEXT_VIEW = "text_view"
    TEXT_INPUTS = "text_inputs"
    TEXT_INPUT = "text_input"
    BUTTONS = "buttons"
    BUTTON = "button"
    VIEWS_BY_ID = "views_by_id"
    VIEW_BY_ID = "view_by_id"


# Actions only AndroidTester provides
ANDROID_ACTIONS: frozenset[ChainAction] = frozenset(
    {
        ChainAction.TEXTS,
        ChainAction.TEXT_VIEWS,
        ChainAction.TEXT_VIEW,
        ChainAction.TEXT_INPUTS,
        ChainAction.TEXT_INPUT,
        ChainAction.BUTTONS,
        ChainAction.BUTTON,
        ChainAction.VIEWS_BY_ID,
        ChainAction.VIEW_BY_ID,
    }
)

# Actions that cannot run without an argument
ARGUMENT_ACTIONS: frozenset[ChainAction] = frozenset(
    {
        ChainAction.SET_IMPLICIT_WAIT_TIMEOUT,
        ChainAction.ELEMENTS,
        ChainAction.ELEMENTS_BY_XPATH,
        ChainAction.ELEMENTS_BY_ID,
        ChainAction.ELEMENTS_BY_CLASS_NAME,
        ChainAction.AT,
        ChainAction.REVERSE_AT,
        ChainAction.SET_VALUE,
        ChainAction.FLICK,
        ChainAction.SLEEP,
        ChainAction.VIEWS_BY_ID,
        ChainAction.VIEW_BY_ID,
    }
)


# ============================================================
# Wire Models
# ============================================================


class WireResponse(BaseModel):
    """Decoded automation server reply."""

    status: int
    body: dict[str, Any] = Field(default_factory=dict)


# ============================================================
# Config Models
# ============================================================


class TimingConfig(BaseModel):
    """Waits, polling and HTTP timeouts."""

    implicit_wait_ms: int = Field(default=10000, ge=0)
    poll_interval_ms: int = Field(default=50, ge=1, le=10000)
    request_timeout_s: float = Field(default=30.0, gt=0.0)


class Config(BaseSettings):
    """Project configuration. Merged from YAML + env var + overrides."""

    model_config = SettingsConfigDict(
        env_prefix="FASTEST_",
        env_nested_delimiter="__",
    )

    server_url: str = Field(default="http://127.0.0.1:4723/")
    platform: Platform = Field(default=Platform.GENERIC)
    package_name: str = Field(default="", description="Android package, e.g. fi.foo.bar")
    capabilities: dict[str, Any] = Field(default_factory=dict)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    scenarios_dir: str = Field(default="scenarios")

    @model_validator(mode="after")
    def android_needs_package(self) -> Config:
        if self.platform == Platform.ANDROID and not self.package_name:
            msg = "platform=android requires package_name"
            raise ValueError(msg)
        return self


# ============================================================
# Scenario Models
# ============================================================


class StepConfig(BaseModel):
    """One chain call within a scenario."""

    action: ChainAction
    args: list[Any] = Field(default_factory=list)
    kwargs: dict[str, Any] = Field(default_factory=dict)
    description: str = Field(default="")

    @model_validator(mode="after")
    def validate_arguments(self) -> StepConfig:
        if self.action in ARGUMENT_ACTIONS and not (self.args or self.kwargs):
            msg = f"action={self.action.value} requires args or kwargs"
            raise ValueError(msg)
        return self


class Scenario(BaseModel):
    """Test scenario definition."""

    id: str = Field(..., pattern=r"^SC-\d{3,}$", description="Scenario ID: SC-001")
    name: str = Field(..., min_length=1)
    description: str = Field(default="")
    tags: list[str] = Field(default_factory=list)
    steps: list[StepConfig] = Field(..., min_length=1)
    variables: dict[str, Any] = Field(default_factory=dict)

    @property
    def needs_android(self) -> bool:
        return any(step.action in ANDROID_ACTIONS for step in self.steps)


# ============================================================
# Result Models
# ============================================================


class ScenarioResult(BaseModel):
    """Single scenario execution result."""

    scenario_id: str
    scenario_name: str
    passed: bool
    total_steps: int = Field(ge=0)
    error_message: str | None = None
    value: Any = None
    duration_ms: float = Field(default=0.0, ge=0.0)
    timestamp: datetime = Field(default_factory=datetime.now)
