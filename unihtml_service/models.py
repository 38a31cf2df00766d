"""
Request models for the conversion service.

Two layers live here:
- Pydantic models mirroring the JSON body of POST /v1/pdf
- Immutable dataclasses the conversion pipeline works on

The wire model is converted once, at the HTTP edge, via
GeneratePDFRequestV1.to_conversion_request().
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from pydantic import Base64Bytes, BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import RequestDecodeError

# Method flag that selects a remote URL instead of inline content
WEB_METHOD = "web"


# ============================================================================
# Pipeline Models
# ============================================================================

@dataclass(frozen=True)
class ContentSource:
    """Where the HTML comes from: inline bytes or a remote URL."""

    method: str = ""
    content: bytes = b""
    content_type: str = ""
    url: str = ""

    @property
    def is_remote(self) -> bool:
        return self.method == WEB_METHOD


@dataclass(frozen=True)
class PageParameters:
    """
    Page geometry exactly as the caller sent it.

    Sizes and margins are text such as "210mm" or "8.5"; they are turned
    into inches by layout.normalize_layout().
    """

    paper_width: str = ""
    paper_height: str = ""
    page_size: Optional[str] = None
    orientation: str = ""
    margin_top: str = ""
    margin_bottom: str = ""
    margin_left: str = ""
    margin_right: str = ""


@dataclass(frozen=True)
class SelectorSpec:
    """A selector plus the strategy tag ('id', 'xpath', 'css', ...)."""

    selector: str
    by: str = ""


@dataclass(frozen=True)
class RenderPolicy:
    """Conditions gating when the page is ready to print."""

    wait_time_ms: int = 0
    wait_ready: Tuple[SelectorSpec, ...] = ()
    wait_visible: Tuple[SelectorSpec, ...] = ()


@dataclass(frozen=True)
class ConversionRequest:
    """Everything a single conversion needs. Created per request."""

    source: ContentSource = field(default_factory=ContentSource)
    page: PageParameters = field(default_factory=PageParameters)
    render: RenderPolicy = field(default_factory=RenderPolicy)
    timeout_ms: Optional[int] = None


# ============================================================================
# Wire Models
# ============================================================================

class WireModel(BaseModel):
    """
    Base for request body models.

    Keys match field names case-insensitively, an exact match taking
    precedence, and a JSON null object decodes to all defaults.
    """

    @model_validator(mode="before")
    @classmethod
    def match_keys_case_insensitively(cls, data):
        if data is None:
            return {}
        if not isinstance(data, dict):
            return data

        keys = {}
        for name, info in cls.model_fields.items():
            key = info.alias or name
            keys[key.lower()] = key

        matched = {}
        for key, value in data.items():
            target = keys.get(key.lower(), key) if isinstance(key, str) else key
            if target != key and target in data:
                continue
            matched[target] = value
        return matched


class BySelector(WireModel):
    """Selector entry of waitReady / waitVisible."""

    selector: str = Field("", description="Selector to wait for")
    by: Optional[str] = Field(None, description="Strategy: 'id', 'xpath' or 'css'")


class PageParametersV1(WireModel):
    """Page layout fields. Each size is a string like '10mm' or a bare number."""

    paperWidth: Optional[str] = Field(None, description="Paper width, bare numbers are inches")
    paperHeight: Optional[str] = Field(None, description="Paper height, bare numbers are inches")
    pageSize: Optional[str] = Field(None, description="Named paper format, e.g. 'A4' or 'letter'")
    orientation: Optional[str] = Field(None, description="'portrait' (default) or 'landscape'")
    marginTop: Optional[str] = Field(None, description="Top margin, bare numbers are millimeters")
    marginBottom: Optional[str] = Field(None, description="Bottom margin")
    marginLeft: Optional[str] = Field(None, description="Left margin")
    marginRight: Optional[str] = Field(None, description="Right margin")

    def to_page_parameters(self) -> PageParameters:
        return PageParameters(
            paper_width=self.paperWidth or "",
            paper_height=self.paperHeight or "",
            page_size=self.pageSize,
            orientation=self.orientation or "",
            margin_top=self.marginTop or "",
            margin_bottom=self.marginBottom or "",
            margin_left=self.marginLeft or "",
            margin_right=self.marginRight or "",
        )


class RenderParametersV1(WireModel):
    """Render readiness policy."""

    waitTime: Optional[int] = Field(None, description="Fixed delay in milliseconds")
    waitReady: Optional[List[BySelector]] = Field(None, description="Wait until present, in order")
    waitVisible: Optional[List[BySelector]] = Field(None, description="Wait until visible, in order")

    def to_render_policy(self) -> RenderPolicy:
        return RenderPolicy(
            wait_time_ms=self.waitTime or 0,
            wait_ready=tuple(
                SelectorSpec(selector=s.selector, by=s.by or "") for s in self.waitReady or []
            ),
            wait_visible=tuple(
                SelectorSpec(selector=s.selector, by=s.by or "") for s in self.waitVisible or []
            ),
        )


class GeneratePDFRequestV1(WireModel):
    """JSON body of POST /v1/pdf."""

    model_config = ConfigDict(populate_by_name=True)

    content: Optional[Base64Bytes] = Field(None, description="Base64 encoded HTML")
    contentType: Optional[str] = Field(None, description="MIME type of content")
    contentURL: Optional[str] = Field(None, description="URL to render when method is 'web'")
    method: Optional[str] = Field(None, description="'web' renders contentURL, anything else renders content")
    timeoutDuration: Optional[int] = Field(None, description="Deadline in milliseconds, <= 0 means default")
    page_parameters: Optional[PageParametersV1] = Field(None, alias="PageParameters")
    render_parameters: Optional[RenderParametersV1] = Field(None, alias="RenderParameters")

    def to_conversion_request(self) -> ConversionRequest:
        return ConversionRequest(
            source=ContentSource(
                method=self.method or "",
                content=self.content or b"",
                content_type=self.contentType or "",
                url=self.contentURL or "",
            ),
            page=(self.page_parameters or PageParametersV1()).to_page_parameters(),
            render=(self.render_parameters or RenderParametersV1()).to_render_policy(),
            timeout_ms=self.timeoutDuration,
        )


def decode_request(body: bytes) -> ConversionRequest:
    """
    Decode a POST /v1/pdf body.

    Raises:
        RequestDecodeError: If the body is not valid JSON or a field has the wrong type
    """
    try:
        wire = GeneratePDFRequestV1.model_validate_json(body)
    except ValidationError as e:
        raise RequestDecodeError(str(e)) from e
    return wire.to_conversion_request()
