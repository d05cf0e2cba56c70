"""Shared models used across the browser action API."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .content.platforms import get_rule


class ActionKind(str, enum.Enum):
    """Enumerated browser commands accepted by the serializer."""

    NAVIGATE = "navigate"
    TYPE = "type"
    CLICK = "click"
    FILL_FORM = "fill_form"
    GET_TEXT = "get_text"
    SCREENSHOT = "screenshot"
    WAIT_FOR_ELEMENT = "wait_for_element"
    DOWNLOAD_MEDIA = "download_media"
    EXTRACT_DATA = "extract_data"
    OPEN_LOGIN_PAGE = "open_login_page"
    SERVICE_REQUEST = "service_request"


class ErrorKind(str, enum.Enum):
    """Failure classes reported back to callers."""

    MALFORMED_INPUT = "malformed_input"
    ELEMENT_NOT_FOUND = "element_not_found"
    TIMEOUT = "timeout"
    NAVIGATION_ERROR = "navigation_error"
    SESSION_FATAL = "session_fatal"
    EXECUTION_ERROR = "execution_error"


class DataType(str, enum.Enum):
    """Built-in extraction categories."""

    TEXT = "text"
    LINKS = "links"
    IMAGES = "images"
    METRICS = "metrics"


# Result keys of the built-in categories; custom selector names may not reuse them.
CATEGORY_KEYS = {
    DataType.TEXT: "allText",
    DataType.LINKS: "links",
    DataType.IMAGES: "images",
    DataType.METRICS: "metrics",
}


class ApiModel(BaseModel):
    """Base for request bodies: camelCase on the wire, unknown fields rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


# Action parameters -----------------------------------------------------------


class NavigateParams(ApiModel):
    url: str = Field(min_length=1)


class TypeParams(ApiModel):
    selector: str = Field(min_length=1)
    text: str
    delay: float = Field(default=0, ge=0, description="Delay between keystrokes in ms.")
    clear: bool = False


class ClickParams(ApiModel):
    selector: str = Field(min_length=1)


class FillFormParams(ApiModel):
    form_fields: dict[str, str] = Field(alias="fields")
    submit_selector: Optional[str] = None
    submit_delay: float = Field(default=1000, ge=0, description="Pause before submitting, in ms.")


class GetTextParams(ApiModel):
    selector: str = Field(min_length=1)
    multiple: bool = False


class ScreenshotParams(ApiModel):
    selector: Optional[str] = None
    full_page: bool = False


class WaitForElementParams(ApiModel):
    selector: str = Field(min_length=1)
    timeout: float = Field(default=30000, gt=0, description="Wait bound in ms.")
    visible: bool = False


class DownloadMediaParams(ApiModel):
    urls: list[str]
    output_format: str = "base64"


class ExtractionConfig(ApiModel):
    """What to pull out of the current page."""

    selectors: dict[str, str] = Field(default_factory=dict)
    data_types: list[DataType] = Field(
        default_factory=lambda: [DataType.TEXT, DataType.LINKS, DataType.IMAGES]
    )
    limit: int = Field(default=50, gt=0)
    wait_for: Optional[str] = None

    @field_validator("selectors")
    @classmethod
    def _reject_reserved_names(cls, value: dict[str, str]) -> dict[str, str]:
        reserved = set(CATEGORY_KEYS.values()) & value.keys()
        if reserved:
            names = ", ".join(sorted(reserved))
            raise ValueError(f"Selector names collide with built-in categories: {names}")
        return value


class OpenLoginPageParams(ApiModel):
    platform: str = Field(min_length=1)
    credentials: dict[str, Any] = Field(
        default_factory=dict,
        description="Accepted but unused; the login form is completed by hand.",
    )

    @field_validator("platform")
    @classmethod
    def _require_login_page(cls, value: str) -> str:
        rule = get_rule(value)
        if rule is None or rule.login_url is None:
            raise ValueError(f"Unsupported platform: {value}")
        return rule.name


class ServiceRequestParams(ApiModel):
    endpoint: str = Field(min_length=1)
    data: Any = None
    headers: dict[str, str] = Field(default_factory=dict)
    method: str = "POST"


ActionParams = Union[
    NavigateParams,
    TypeParams,
    ClickParams,
    FillFormParams,
    GetTextParams,
    ScreenshotParams,
    WaitForElementParams,
    DownloadMediaParams,
    ExtractionConfig,
    OpenLoginPageParams,
    ServiceRequestParams,
]


# Content pipeline parameters -------------------------------------------------


class AnalyzeContentParams(ApiModel):
    content: Union[str, list[dict[str, Any]]]
    analysis_types: list[str] = Field(default_factory=lambda: ["keywords", "engagement"])

    @field_validator("content")
    @classmethod
    def _require_content(cls, value: Union[str, list[dict[str, Any]]]):
        if isinstance(value, str) and not value:
            raise ValueError("Content is required")
        return value


class GenerateVariantsParams(ApiModel):
    base_content: str = Field(min_length=1)
    platforms: list[str] = Field(default_factory=lambda: ["instagram", "twitter", "tiktok"])


class TemplateParams(ApiModel):
    template: str = Field(min_length=1)
    data: dict[str, Any]
    template_type: str = "text"


# Queue envelopes -------------------------------------------------------------


@dataclass(frozen=True)
class ActionRequest:
    """One queued operation against the automation target."""

    kind: ActionKind
    params: ActionParams
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class ActionSuccess:
    payload: dict[str, Any]

    ok = True


@dataclass(frozen=True)
class ActionFailure:
    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    ok = False


ActionResult = Union[ActionSuccess, ActionFailure]
