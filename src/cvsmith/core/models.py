"""Pydantic models describing themes, templates, documents and export options.

Persisted forms (YAML front matter, settings JSON) use camelCase keys; the
Python attributes are snake_case and both spellings are accepted on input.

Margins

`top`, `right`, `bottom`, `left` (`float`)
: Millimetres, never negative. Numbers are taken as millimetres and length
  strings such as ``"2cm"`` or ``"0.5in"`` are converted.

Theme

`primary_color` (`str`)
: Required accent used for headings, tag borders and skill bars. Every other
  field is optional and filled in by the style resolver.

DocumentMetadata

: Mirrors the YAML front matter of a résumé document. Unknown keys are
  ignored and missing keys take the library defaults.

ExportOptions

`image_quality` (`int`)
: JPEG quality from 0 to 100 handed to the rasterizer as a 0..1 fraction.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .paper import Orientation, PageSize, to_millimetres


__all__ = [
    "DEFAULT_FONT_FAMILY",
    "DEFAULT_FONT_SIZE",
    "DEFAULT_LINE_HEIGHT",
    "DEFAULT_MARGIN_MM",
    "DEFAULT_SPACING",
    "DEFAULT_THEME_COLOR",
    "CamelModel",
    "Document",
    "DocumentMetadata",
    "ExportOptions",
    "Margins",
    "Template",
    "TemplateStyle",
    "Theme",
]

DEFAULT_THEME_COLOR = "#4051b5"
DEFAULT_FONT_FAMILY = "Inter, sans-serif"
DEFAULT_FONT_SIZE = 10.0
DEFAULT_LINE_HEIGHT = 1.5
DEFAULT_MARGIN_MM = 20.0
DEFAULT_SPACING = 1.15

_UNSAFE_STYLE_CHARS = re.compile(r"[;{}<>\"\\]")


def _coerce_style_token(value: Any, *, field: str) -> str | None:
    """Return a stripped CSS value, rejecting characters that break inline styles."""
    if value is None:
        return None
    candidate = value if isinstance(value, str) else str(value)
    stripped = candidate.strip()
    if not stripped:
        return None
    if _UNSAFE_STYLE_CHARS.search(stripped):
        raise ValueError(f"Invalid {field} value '{candidate}'.")
    return stripped


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        validate_assignment=True,
    )

    def to_payload(self) -> dict[str, Any]:
        """Return the camelCase JSON-compatible form used for persistence."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Margins(CamelModel):
    """Page margins in millimetres."""

    top: float = DEFAULT_MARGIN_MM
    right: float = DEFAULT_MARGIN_MM
    bottom: float = DEFAULT_MARGIN_MM
    left: float = DEFAULT_MARGIN_MM

    @model_validator(mode="before")
    @classmethod
    def _coerce_payload(cls, data: Any) -> Any:
        if isinstance(data, (int, float, str)) and not isinstance(data, bool):
            value = to_millimetres(data)
            return {"top": value, "right": value, "bottom": value, "left": value}
        if isinstance(data, (list, tuple)):
            if len(data) != 4:
                raise ValueError("Margins need exactly four values (top, right, bottom, left).")
            return dict(zip(("top", "right", "bottom", "left"), data))
        return data

    @field_validator("top", "right", "bottom", "left", mode="before")
    @classmethod
    def _normalise_length(cls, value: Any) -> float:
        millimetres = to_millimetres(value)
        if millimetres < 0:
            raise ValueError(f"Margins cannot be negative (got {millimetres:g}mm).")
        return millimetres

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.top, self.right, self.bottom, self.left)


class Theme(CamelModel):
    """Palette and typography applied to rendered output."""

    primary_color: str
    secondary_color: str | None = None
    accent_color: str | None = None
    text_color: str | None = None
    link_color: str | None = None
    background_color: str | None = None
    heading_font: str | None = None
    body_font: str | None = None
    font_size: str | None = None
    line_height: str | None = None

    @field_validator("primary_color", mode="before")
    @classmethod
    def _require_primary(cls, value: Any) -> str:
        token = _coerce_style_token(value, field="primaryColor")
        if token is None:
            raise ValueError("Theme primary colour cannot be empty.")
        return token

    @field_validator(
        "secondary_color",
        "accent_color",
        "text_color",
        "link_color",
        "background_color",
        "heading_font",
        "body_font",
        "font_size",
        "line_height",
        mode="before",
    )
    @classmethod
    def _coerce_optional(cls, value: Any, info: ValidationInfo) -> str | None:
        return _coerce_style_token(value, field=info.field_name)


class TemplateStyle(CamelModel):
    """Theme plus page geometry bundled with a template."""

    theme: Theme
    margins: Margins = Field(default_factory=Margins)
    spacing: float = Field(default=DEFAULT_SPACING, gt=0)
    custom_css: str | None = Field(default=None, alias="customCSS")


class Template(CamelModel):
    """Named bundle of starter markup plus a style descriptor."""

    id: str
    name: str
    description: str = ""
    content: str = ""
    style: TemplateStyle
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    preview_image: str | None = None

    @field_validator("id", "name", mode="before")
    @classmethod
    def _require_text(cls, value: Any, info: ValidationInfo) -> str:
        candidate = "" if value is None else str(value).strip()
        if not candidate:
            raise ValueError(f"Template {info.field_name} cannot be empty.")
        return candidate


class DocumentMetadata(CamelModel):
    """Front matter stored at the top of every résumé document."""

    title: str = "CV"
    last_modified: int = 0
    page_size: PageSize = PageSize.A4
    orientation: Orientation | None = None
    margins: Margins = Field(default_factory=Margins)
    theme_color: str = DEFAULT_THEME_COLOR
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: float = Field(default=DEFAULT_FONT_SIZE, gt=0)
    line_height: float = Field(default=DEFAULT_LINE_HEIGHT, gt=0)
    custom_css: str | None = None
    tags: list[str] | None = None

    @field_validator("theme_color", "font_family", mode="before")
    @classmethod
    def _coerce_token(cls, value: Any, info: ValidationInfo) -> str:
        token = _coerce_style_token(value, field=info.field_name)
        if token is None:
            raise ValueError(f"{info.field_name} cannot be empty.")
        return token

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, value: Any) -> str:
        return "" if value is None else str(value)


class Document(BaseModel):
    """A résumé document: storage path, metadata and markup body."""

    model_config = ConfigDict(validate_assignment=True)

    path: str = ""
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    content: str = ""


class ExportOptions(CamelModel):
    """Fully merged options for one export run."""

    filename: str = "CV.pdf"
    page_size: PageSize = PageSize.A4
    orientation: Orientation = Orientation.PORTRAIT
    margins: Margins = Field(default_factory=Margins)
    include_header: bool = False
    header_content: str | None = None
    include_footer: bool = False
    footer_content: str | None = None
    include_page_numbers: bool = True
    embed_fonts: bool = True
    image_quality: int = Field(default=90, ge=0, le=100)

    @field_validator("filename", mode="before")
    @classmethod
    def _require_filename(cls, value: Any) -> str:
        candidate = "" if value is None else str(value).strip()
        if not candidate:
            raise ValueError("Export filename cannot be empty.")
        return candidate
