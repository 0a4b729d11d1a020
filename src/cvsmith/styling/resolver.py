"""Merge template, document and settings styling into one complete theme.

Every field is resolved independently with the precedence

1. the active template style,
2. fields explicitly present in the document front matter,
3. the global settings defaults,
4. built-in fallbacks.

Metadata fields only take part when they were actually provided, so a
document that never mentions ``themeColor`` does not mask the settings
default with the model default.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import TYPE_CHECKING

from cvsmith.core.models import (
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_LINE_HEIGHT,
    DEFAULT_SPACING,
    DEFAULT_THEME_COLOR,
    Margins,
    Theme,
)
from cvsmith.core.paper import Orientation, PageSize, content_width, page_dimensions


if TYPE_CHECKING:  # pragma: no cover - typing only
    from cvsmith.core.models import DocumentMetadata, Template
    from cvsmith.core.settings import Settings


__all__ = [
    "FALLBACK_BACKGROUND_COLOR",
    "FALLBACK_TEXT_COLOR",
    "ResolvedStyle",
    "StyleResolver",
    "secondary_from_primary",
]

FALLBACK_TEXT_COLOR = "#333333"
FALLBACK_BACKGROUND_COLOR = "#ffffff"

_HEX6 = re.compile(r"^#[0-9a-fA-F]{6}$")


def secondary_from_primary(primary: str) -> str:
    """Return the primary colour at half opacity when it is a 6-digit hex."""
    return f"{primary}80" if _HEX6.match(primary) else primary


def _format_number(value: float) -> str:
    return f"{value:g}"


@dataclass(slots=True, frozen=True)
class ResolvedStyle:
    """Complete styling for one render: no colour or font is left unset."""

    theme: Theme
    margins: Margins
    spacing: float
    custom_css: str | None
    page_size: PageSize
    orientation: Orientation

    @property
    def primary_color(self) -> str:
        return self.theme.primary_color

    @property
    def page_dimensions(self) -> tuple[float, float]:
        return page_dimensions(self.page_size, self.orientation)

    def content_width(self, margins: Margins | None = None) -> float:
        """Printable width in millimetres for the given (or resolved) margins."""
        active = margins or self.margins
        return content_width(self.page_size, self.orientation, active.left, active.right)

    def css_variables(self) -> dict[str, str]:
        theme = self.theme
        return {
            "--cv-primary": theme.primary_color,
            "--cv-secondary": theme.secondary_color or "",
            "--cv-accent": theme.accent_color or "",
            "--cv-text": theme.text_color or "",
            "--cv-link": theme.link_color or "",
            "--cv-background": theme.background_color or "",
            "--cv-heading-font": theme.heading_font or "",
            "--cv-body-font": theme.body_font or "",
            "--cv-font-size": theme.font_size or "",
            "--cv-line-height": theme.line_height or "",
            "--cv-spacing": _format_number(self.spacing),
        }

    def stylesheet(self, selector: str = ".cv-document") -> str:
        """Return the preview stylesheet scoped under ``selector``."""
        variables = "\n".join(f"  {name}: {value};" for name, value in self.css_variables().items())
        rules = [
            f"{selector} {{\n{variables}\n"
            "  font-family: var(--cv-body-font);\n"
            "  font-size: var(--cv-font-size);\n"
            "  line-height: var(--cv-line-height);\n"
            "  color: var(--cv-text);\n"
            "  background: var(--cv-background);\n"
            "}",
            f"{selector} h1, {selector} h2, {selector} h3 {{\n"
            "  font-family: var(--cv-heading-font);\n"
            "  color: var(--cv-primary);\n"
            "}",
            f"{selector} h2.cv-section {{ border-bottom: 1px solid var(--cv-secondary); }}",
            f"{selector} a.cv-link {{ color: var(--cv-link); text-decoration: none; }}",
            f"{selector} .cv-tag {{\n"
            "  display: inline-block;\n"
            "  padding: 0 0.4em;\n"
            "  margin: 0 0.2em 0.2em 0;\n"
            "  border: 1px solid var(--cv-primary);\n"
            "  border-radius: 3px;\n"
            "  color: var(--cv-primary);\n"
            "}",
            f"{selector} .cv-small-caps {{ font-variant: small-caps; }}",
            f"{selector} .cv-skill {{ display: flex; align-items: center; gap: 0.5em; }}",
            f"{selector} .cv-skill-name {{ flex: 0 0 30%; }}",
            f"{selector} .cv-skill-bar {{\n"
            "  flex: 1;\n"
            "  height: 0.5em;\n"
            "  background: var(--cv-secondary);\n"
            "  border-radius: 3px;\n"
            "}",
            f"{selector} .cv-skill-level {{\n"
            "  height: 100%;\n"
            "  background: var(--cv-primary);\n"
            "  border-radius: 3px;\n"
            "}",
            f"{selector} .cv-date-range {{ float: right; font-style: italic; }}",
            f"{selector} .cv-page-break {{ break-after: page; }}",
            f"{selector} .cv-page-break-indicator {{\n"
            "  border-top: 1px dashed var(--cv-secondary);\n"
            "  color: var(--cv-secondary);\n"
            "  font-size: 0.8em;\n"
            "  text-align: center;\n"
            "}",
        ]
        if self.custom_css:
            rules.append(self.custom_css)
        return "\n".join(rules) + "\n"


class StyleResolver:
    """Resolve the effective style of a render from its three sources."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def resolve(
        self,
        template: Template | None = None,
        metadata: DocumentMetadata | None = None,
    ) -> ResolvedStyle:
        settings = self.settings
        template_style = template.style if template is not None else None
        template_theme = template_style.theme if template_style is not None else None
        provided = metadata.model_fields_set if metadata is not None else set()

        def from_metadata(name: str) -> object | None:
            if metadata is None or name not in provided:
                return None
            return getattr(metadata, name)

        def from_theme(name: str) -> str | None:
            return getattr(template_theme, name) if template_theme is not None else None

        primary = (
            from_theme("primary_color")
            or from_metadata("theme_color")
            or settings.default_theme_color
            or DEFAULT_THEME_COLOR
        )
        family = from_metadata("font_family") or settings.default_font_family or DEFAULT_FONT_FAMILY

        metadata_size = from_metadata("font_size")
        font_size = from_theme("font_size") or (
            f"{_format_number(metadata_size)}pt"
            if isinstance(metadata_size, (int, float))
            else f"{_format_number(settings.default_font_size or DEFAULT_FONT_SIZE)}pt"
        )
        metadata_line_height = from_metadata("line_height")
        line_height = from_theme("line_height") or _format_number(
            metadata_line_height
            if isinstance(metadata_line_height, (int, float))
            else settings.default_line_height or DEFAULT_LINE_HEIGHT
        )

        theme = Theme(
            primary_color=primary,
            secondary_color=from_theme("secondary_color") or secondary_from_primary(primary),
            accent_color=from_theme("accent_color") or primary,
            text_color=from_theme("text_color") or FALLBACK_TEXT_COLOR,
            link_color=from_theme("link_color") or primary,
            background_color=from_theme("background_color") or FALLBACK_BACKGROUND_COLOR,
            heading_font=from_theme("heading_font") or str(family),
            body_font=from_theme("body_font") or str(family),
            font_size=font_size,
            line_height=line_height,
        )

        if template_style is not None:
            margins = template_style.margins
        else:
            margins = from_metadata("margins") or settings.default_margins

        custom_css = (
            (template_style.custom_css if template_style is not None else None)
            or from_metadata("custom_css")
            or (settings.default_custom_css if settings.enable_custom_css else None)
            or None
        )

        return ResolvedStyle(
            theme=theme,
            margins=Margins.model_validate(margins.model_dump()),
            spacing=template_style.spacing if template_style is not None else DEFAULT_SPACING,
            custom_css=custom_css,
            page_size=from_metadata("page_size") or settings.default_page_size,
            orientation=from_metadata("orientation") or settings.default_orientation,
        )
