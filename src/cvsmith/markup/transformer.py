"""Turn résumé markup into a styled-ready BeautifulSoup tree.

The transformer renders the token stream produced by
:mod:`cvsmith.markup.lexer` into a ``div.cv-document`` container. Every token
kind maps to exactly one node builder, so generated markup is never scanned a
second time.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup, NavigableString
from bs4.element import Tag
from slugify import slugify

from cvsmith.core.diagnostics import DiagnosticEmitter, NullEmitter
from cvsmith.core.exceptions import RenderError
from cvsmith.core.nodes import add_class, coerce_attribute, format_style, has_class

from .casing import CasingNormalizer
from .lexer import Block, BlockKind, Span, SpanKind, tokenize


if TYPE_CHECKING:  # pragma: no cover - typing only
    from cvsmith.core.settings import Settings


__all__ = [
    "PAGE_BREAK_CLASS",
    "PAGE_BREAK_INDICATOR_CLASS",
    "MarkupTransformer",
    "decorate_page_breaks",
    "link_cross_references",
    "strip_preview_decorations",
]

DOCUMENT_CLASS = "cv-document"
PAGE_BREAK_CLASS = "cv-page-break"
PAGE_BREAK_INDICATOR_CLASS = "cv-page-break-indicator"
PAGE_BREAK_LABEL = "Page Break"
DATE_SEPARATOR = " – "

_HEADING_CLASSES = {1: ("h1", "cv-name"), 2: ("h2", "cv-section"), 3: ("h3", "cv-subsection")}

_WRAPPERS: dict[SpanKind, tuple[str, str | None]] = {
    SpanKind.STRONG: ("strong", None),
    SpanKind.EMPHASIS: ("em", None),
    SpanKind.UNDERLINE: ("u", None),
    SpanKind.SMALL_CAPS: ("span", "cv-small-caps"),
    SpanKind.TAG: ("span", "cv-tag"),
}


def _format_percent(value: float) -> str:
    return f"{value:g}"


class _TreeBuilder:
    """Build nodes for one transformation run."""

    def __init__(self) -> None:
        self.soup = BeautifulSoup("", "html.parser")
        self.used_ids: dict[str, int] = {}
        self._inline: dict[SpanKind, Callable[[Tag, Span], None]] = {
            SpanKind.LITERAL: self._literal,
            SpanKind.SKILL: self._skill,
            SpanKind.DATE_RANGE: self._date_range,
            SpanKind.LINK: self._link,
        }
        self._blocks: dict[BlockKind, Callable[[Tag, Block], None]] = {
            BlockKind.HEADING: self._heading,
            BlockKind.PARAGRAPH: self._paragraph,
            BlockKind.LIST: self._list,
            BlockKind.PAGE_BREAK: self._page_break,
            BlockKind.SPACER: self._spacer,
            BlockKind.SKILLS: self._skills,
        }

    def tag(self, name: str, css_class: str | None = None, **attrs: str) -> Tag:
        if css_class:
            attrs["class"] = css_class
        return self.soup.new_tag(name, attrs=attrs)

    def root(self) -> Tag:
        root = self.tag("div", DOCUMENT_CLASS)
        self.soup.append(root)
        return root

    def unique_id(self, text: str) -> str:
        base = slugify(text) or "section"
        count = self.used_ids.get(base, 0) + 1
        self.used_ids[base] = count
        return base if count == 1 else f"{base}-{count}"

    def blocks(self, parent: Tag, blocks: list[Block]) -> None:
        for block in blocks:
            self._blocks[block.kind](parent, block)

    def spans(self, parent: Tag, spans: list[Span]) -> None:
        for span in spans:
            builder = self._inline.get(span.kind)
            if builder is not None:
                builder(parent, span)
                continue
            name, css_class = _WRAPPERS[span.kind]
            node = self.tag(name, css_class)
            self.spans(node, span.children)
            parent.append(node)

    # Inline builders

    def _literal(self, parent: Tag, span: Span) -> None:
        parent.append(NavigableString(span.text))

    def _skill(self, parent: Tag, span: Span) -> None:
        percent = span.percent if span.percent is not None else 0.0
        skill = self.tag("div", "cv-skill")
        skill["data-percent"] = _format_percent(percent)
        name = self.tag("div", "cv-skill-name")
        self.spans(name, span.children)
        bar = self.tag("div", "cv-skill-bar")
        level = self.tag("div", "cv-skill-level")
        level["style"] = format_style({"width": f"{_format_percent(percent)}%"})
        bar.append(level)
        skill.append(name)
        skill.append(bar)
        parent.append(skill)

    def _date_range(self, parent: Tag, span: Span) -> None:
        start_spans, end_spans = span.parts
        wrapper = self.tag("span", "cv-date-range")
        start = self.tag("span", "cv-date-start")
        self.spans(start, start_spans)
        end = self.tag("span", "cv-date-end")
        self.spans(end, end_spans)
        wrapper.append(start)
        wrapper.append(NavigableString(DATE_SEPARATOR))
        wrapper.append(end)
        parent.append(wrapper)

    def _link(self, parent: Tag, span: Span) -> None:
        link = self.tag("a", "cv-link", href=span.href or "")
        self.spans(link, span.children)
        parent.append(link)

    # Block builders

    def _heading(self, parent: Tag, block: Block) -> None:
        name, css_class = _HEADING_CLASSES[block.level]
        heading = self.tag(name, css_class)
        self.spans(heading, block.spans)
        heading["id"] = self.unique_id(heading.get_text())
        parent.append(heading)

    def _paragraph(self, parent: Tag, block: Block) -> None:
        paragraph = self.tag("p", "cv-paragraph")
        self.spans(paragraph, block.spans)
        parent.append(paragraph)

    def _list(self, parent: Tag, block: Block) -> None:
        listing = self.tag("ul", "cv-list")
        for item_spans in block.items:
            item = self.tag("li", "cv-list-item")
            self.spans(item, item_spans)
            listing.append(item)
        parent.append(listing)

    def _page_break(self, parent: Tag, block: Block) -> None:
        parent.append(self.tag("div", PAGE_BREAK_CLASS))

    def _spacer(self, parent: Tag, block: Block) -> None:
        spacer = self.tag("div", "cv-spacer")
        spacer["style"] = format_style({"height": f"{block.height}px"})
        parent.append(spacer)

    def _skills(self, parent: Tag, block: Block) -> None:
        self.spans(parent, block.spans)


def link_cross_references(root: Tag) -> int:
    """Annotate in-document anchors pointing at existing ids.

    Returns the number of links annotated.
    """
    targets: dict[str, Tag] = {}
    for node in root.find_all(id=True):
        identifier = coerce_attribute(node.get("id"))
        if identifier and identifier not in targets:
            targets[identifier] = node

    linked = 0
    for anchor in root.find_all("a", href=True):
        href = coerce_attribute(anchor.get("href")) or ""
        if not href.startswith("#"):
            continue
        target = targets.get(href[1:])
        if target is None:
            continue
        anchor["title"] = target.get_text(" ", strip=True)
        add_class(anchor, "cv-cross-reference")
        linked += 1
    return linked


def decorate_page_breaks(root: Tag) -> int:
    """Insert a visible indicator inside every page break."""
    soup = BeautifulSoup("", "html.parser")
    decorated = 0
    for node in root.find_all("div", class_=PAGE_BREAK_CLASS):
        if node.find("div", class_=PAGE_BREAK_INDICATOR_CLASS, recursive=False):
            continue
        indicator = soup.new_tag("div", attrs={"class": PAGE_BREAK_INDICATOR_CLASS})
        indicator.string = PAGE_BREAK_LABEL
        node.insert(0, indicator)
        decorated += 1
    return decorated


def strip_preview_decorations(root: Tag) -> int:
    """Remove preview-only indicators. Returns the number of nodes removed."""
    removed = 0
    for node in root.find_all("div"):
        if has_class(node, PAGE_BREAK_INDICATOR_CLASS):
            node.decompose()
            removed += 1
    return removed


class MarkupTransformer:
    """Render résumé markup into a ``div.cv-document`` tree.

    ``transform`` never raises. An unexpected failure is reported as a
    :class:`RenderError` through the emitter and the source comes back as a
    single literal paragraph.
    """

    def __init__(
        self,
        *,
        tex_support: bool = True,
        show_page_breaks: bool = False,
        casing: CasingNormalizer | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.tex_support = tex_support
        self.show_page_breaks = show_page_breaks
        self.casing = casing
        self.emitter = emitter or NullEmitter()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        preview: bool = True,
        emitter: DiagnosticEmitter | None = None,
    ) -> MarkupTransformer:
        """Configure a transformer from the feature toggles in ``settings``."""
        return cls(
            tex_support=settings.tex_support,
            show_page_breaks=preview and settings.show_page_breaks,
            casing=CasingNormalizer(enabled=settings.auto_casing),
            emitter=emitter,
        )

    def transform(self, source: str) -> Tag:
        text = source or ""
        try:
            if self.casing is not None:
                text = self.casing.apply(text)
            return self._render(text)
        except Exception as exc:
            error = RenderError(f"Failed to render markup: {exc}")
            error.__cause__ = exc
            self.emitter.error(str(error), error)
            return self._fallback(text)

    def render_html(self, source: str) -> str:
        """Return the transformed tree serialised as an HTML fragment."""
        return str(self.transform(source))

    def _render(self, text: str) -> Tag:
        builder = _TreeBuilder()
        root = builder.root()
        builder.blocks(root, tokenize(text, directives=self.tex_support))
        if self.tex_support:
            link_cross_references(root)
        if self.show_page_breaks:
            decorate_page_breaks(root)
        return root

    def _fallback(self, text: str) -> Tag:
        builder = _TreeBuilder()
        root = builder.root()
        paragraph = builder.tag("p", "cv-paragraph")
        paragraph.append(NavigableString(text))
        root.append(paragraph)
        return root
