"""Handlers that make an exported tree visually self-contained.

The live preview relies on a stylesheet provided by the host. An exported
clone cannot, so these handlers inline every declaration the artefact needs
and add the page-break intent the rasterizer honours.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup
from bs4.element import Tag

from cvsmith.core.context import ExportContext
from cvsmith.core.nodes import add_class, coerce_attribute, format_style, has_class, merge_style
from cvsmith.core.paper import content_width, page_dimensions
from cvsmith.core.rules import RenderPhase, renders
from cvsmith.markup.transformer import PAGE_BREAK_CLASS, strip_preview_decorations


EXPORT_CLASS = "cv-export"
HEADER_CLASS = "cv-header"
FOOTER_CLASS = "cv-footer"
PAGE_NUMBER_CLASS = "cv-page-number"

PAGE_NUMBER_CSS = (
    f".{PAGE_NUMBER_CLASS}::after {{ content: counter(page); }}\n"
    "@page { @bottom-center { content: counter(page); } }"
)

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:(?!\d)")
_HOST_SHAPED = re.compile(
    r"^(?:[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?\.)+[A-Za-z]{2,}(?::\d+)?(?:[/?#]\S*)?$"
)


def _mm(value: float) -> str:
    return f"{value:g}mm"


def absolute_href(href: str) -> str | None:
    """Return ``https://`` + ``href`` for schemeless host names, else ``None``.

    Fragments, ``mailto:`` and other scheme-carrying values, rooted and
    relative paths are never rewritten.
    """
    candidate = href.strip()
    if not candidate or candidate[0] in "#/.?" or "://" in candidate:
        return None
    if _SCHEME.match(candidate):
        return None
    if not _HOST_SHAPED.match(candidate):
        return None
    return f"https://{candidate}"


def _style_node(context: ExportContext, css: str, css_class: str) -> Tag:
    node = context.new_tag("style")
    node["class"] = css_class
    node.string = css
    return node


def _band(context: ExportContext, css_class: str, html: str) -> Tag:
    band = context.new_tag("div")
    band["class"] = css_class
    # Header and footer HTML is inserted verbatim.
    fragment = BeautifulSoup(html, "html.parser")
    for child in list(fragment.contents):
        band.append(child.extract())
    return band


# PRE


@renders(phase=RenderPhase.PRE, auto_mark=False, name="strip_preview_indicators")
def strip_preview_indicators(root: Tag, context: ExportContext) -> None:
    """Drop page-break indicators that only exist for the live preview."""

    for _ in range(strip_preview_decorations(root)):
        context.count("indicators_stripped")


# BLOCK


@renders(phase=RenderPhase.BLOCK, name="style_root")
def style_root(root: Tag, context: ExportContext) -> None:
    """Inline typography, colours and the printable width on the container."""

    options = context.options
    theme = context.style.theme
    margins = options.margins
    width, height = page_dimensions(options.page_size, options.orientation)
    printable = content_width(options.page_size, options.orientation, margins.left, margins.right)

    merge_style(
        root,
        {
            "--cv-primary": theme.primary_color,
            "font-family": theme.body_font or "",
            "font-size": theme.font_size or "",
            "line-height": theme.line_height or "",
            "color": theme.text_color or "",
            "background-color": theme.background_color or "",
            "width": _mm(printable),
            "box-sizing": "border-box",
        },
    )
    add_class(root, EXPORT_CLASS)
    root["data-page-size"] = options.page_size.value
    root["data-orientation"] = options.orientation.value
    root["data-page-width"] = _mm(width)
    root["data-page-height"] = _mm(height)


@renders("h1", "h2", "h3", phase=RenderPhase.BLOCK, name="style_headings")
def style_headings(element: Tag, context: ExportContext) -> None:
    theme = context.style.theme
    merge_style(
        element,
        {
            "font-family": theme.heading_font or "",
            "color": theme.primary_color,
            "break-after": "avoid",
            "page-break-after": "avoid",
        },
    )


@renders("li", phase=RenderPhase.BLOCK, name="keep_list_items")
def keep_list_items(element: Tag, context: ExportContext) -> None:
    merge_style(element, {"break-inside": "avoid", "page-break-inside": "avoid"})


@renders("div", phase=RenderPhase.BLOCK, name="page_breaks")
def page_breaks(element: Tag, context: ExportContext) -> None:
    """Turn page-break markers into forced breaks."""

    if not has_class(element, PAGE_BREAK_CLASS):
        return
    merge_style(
        element,
        {"display": "block", "height": "0", "break-after": "page", "page-break-after": "always"},
    )
    context.count("page_breaks")


@renders("div", phase=RenderPhase.BLOCK, name="skill_bars")
def skill_bars(element: Tag, context: ExportContext) -> None:
    theme = context.style.theme
    if has_class(element, "cv-skill"):
        merge_style(element, {"display": "flex", "align-items": "center", "break-inside": "avoid"})
    elif has_class(element, "cv-skill-name"):
        merge_style(element, {"flex": "0 0 30%"}, override=False)
    elif has_class(element, "cv-skill-bar"):
        merge_style(
            element,
            {"flex": "1", "height": "0.5em", "background-color": theme.secondary_color or ""},
        )
    elif has_class(element, "cv-skill-level"):
        merge_style(element, {"height": "100%", "background-color": theme.primary_color})


@renders("div", phase=RenderPhase.BLOCK, name="spacers")
def spacers(element: Tag, context: ExportContext) -> None:
    if has_class(element, "cv-spacer"):
        merge_style(element, {"display": "block"})


@renders("span", phase=RenderPhase.BLOCK, name="inline_badges")
def inline_badges(element: Tag, context: ExportContext) -> None:
    primary = context.style.primary_color
    if has_class(element, "cv-tag"):
        merge_style(
            element,
            {
                "display": "inline-block",
                "padding": "0 0.4em",
                "margin": "0 0.2em 0.2em 0",
                "border": f"1px solid {primary}",
                "border-radius": "3px",
                "color": primary,
            },
        )
    elif has_class(element, "cv-small-caps"):
        merge_style(element, {"font-variant": "small-caps"})
    elif has_class(element, "cv-date-range"):
        merge_style(element, {"float": "right", "font-style": "italic"})


# INLINE


@renders("a", phase=RenderPhase.INLINE, name="style_links")
def style_links(element: Tag, context: ExportContext) -> None:
    """Colour links and make host-name hrefs absolute."""

    merge_style(
        element,
        {"color": context.style.theme.link_color or "", "text-decoration": "none"},
    )
    href = coerce_attribute(element.get("href"))
    if not href:
        return
    rewritten = absolute_href(href)
    if rewritten is None:
        return
    element["href"] = rewritten
    context.count("links_rewritten")
    context.emitter.event("link_rewritten", {"source": href, "target": rewritten})


# POST


@renders(phase=RenderPhase.POST, priority=10, name="header_band")
def header_band(root: Tag, context: ExportContext) -> None:
    options = context.options
    if options.include_header and options.header_content:
        root.insert(0, _band(context, HEADER_CLASS, options.header_content))


@renders(phase=RenderPhase.POST, priority=20, name="footer_band")
def footer_band(root: Tag, context: ExportContext) -> None:
    options = context.options
    if options.include_footer and options.footer_content:
        root.append(_band(context, FOOTER_CLASS, options.footer_content))


@renders(phase=RenderPhase.POST, priority=30, name="page_number_placeholder")
def page_number_placeholder(root: Tag, context: ExportContext) -> None:
    """Append a page-number slot; engines without paged media show nothing."""

    if not context.options.include_page_numbers:
        return
    placeholder = context.new_tag("div")
    placeholder["class"] = PAGE_NUMBER_CLASS
    placeholder["style"] = format_style({"text-align": "center", "font-size": "0.8em"})
    root.append(placeholder)
    root.insert(0, _style_node(context, PAGE_NUMBER_CSS, "cv-page-number-style"))


@renders(phase=RenderPhase.POST, priority=40, name="custom_stylesheet")
def custom_stylesheet(root: Tag, context: ExportContext) -> None:
    css = context.style.custom_css
    if css and css.strip():
        root.insert(0, _style_node(context, css, "cv-custom-style"))
