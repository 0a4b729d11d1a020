"""Export orchestration: option merging, styling and rasterization.

Options are merged field by field with the precedence

1. values passed explicitly by the caller,
2. the document front matter (paper, orientation, margins, filename),
3. the settings defaults (``exportDefaults``, default paper and margins).

The merged filename is passed through :func:`sanitize_filename`, so path
separators never reach the rasterizer.

Only rasterization is awaited. Every export styles its own clone, so a
request abandoned by its caller cannot corrupt the live tree.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
from typing import Any
from urllib.parse import quote_plus

from bs4.element import Tag
from pydantic import ValidationError as PydanticValidationError

from cvsmith.core.diagnostics import DiagnosticEmitter, NullEmitter
from cvsmith.core.documents import sanitize_filename, serialize_document
from cvsmith.core.exceptions import CvsmithError, ExportError, ValidationError, exception_hint
from cvsmith.core.models import Document, DocumentMetadata, ExportOptions, Template
from cvsmith.core.results import Outcome
from cvsmith.core.settings import SettingsStore
from cvsmith.markup.transformer import MarkupTransformer
from cvsmith.styling.resolver import ResolvedStyle, StyleResolver

from .rasterizer import Rasterizer, RasterizerConfig, standalone_html
from .styler import ExportStyler


__all__ = ["DEFAULT_EXPORT_FILENAME", "ExportDriver", "ExportResult", "font_face_urls"]

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_FILENAME = "CV.pdf"
GOOGLE_FONTS_CSS = "https://fonts.googleapis.com/css2?family={family}&display=swap"

_GENERIC_FAMILIES = {
    "serif",
    "sans-serif",
    "monospace",
    "cursive",
    "fantasy",
    "system-ui",
    "ui-serif",
    "ui-sans-serif",
    "ui-monospace",
}


@dataclass(slots=True)
class ExportResult:
    """Outcome of one export request."""

    success: bool
    error: CvsmithError | None = None
    options: ExportOptions | None = None
    config: RasterizerConfig | None = None
    output: bytes | None = None
    stats: dict[str, int] = field(default_factory=dict)

    @property
    def message(self) -> str | None:
        return exception_hint(self.error) if self.error is not None else None


def font_face_urls(style: ResolvedStyle) -> list[str]:
    """Return stylesheet URLs for the named (non-generic) fonts of a theme."""
    urls: list[str] = []
    for stack in (style.theme.heading_font, style.theme.body_font):
        if not stack:
            continue
        family = stack.split(",")[0].strip().strip("'\"")
        if not family or family.lower() in _GENERIC_FAMILIES:
            continue
        url = GOOGLE_FONTS_CSS.format(family=quote_plus(family))
        if url not in urls:
            urls.append(url)
    return urls


def _explicit_fields(explicit: ExportOptions | Mapping[str, Any] | None) -> dict[str, Any]:
    if explicit is None:
        return {}
    if isinstance(explicit, ExportOptions):
        return {name: getattr(explicit, name) for name in explicit.model_fields_set}
    return dict(explicit)


class ExportDriver:
    """Resolve options, style a clone of the tree and hand it to a rasterizer."""

    def __init__(
        self,
        store: SettingsStore,
        rasterizer: Rasterizer,
        *,
        styler: ExportStyler | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.store = store
        self.rasterizer = rasterizer
        self.emitter = emitter or NullEmitter()
        self.styler = styler or ExportStyler(emitter=self.emitter)

    def resolve_options(
        self,
        metadata: DocumentMetadata | None = None,
        explicit: ExportOptions | Mapping[str, Any] | None = None,
    ) -> Outcome[ExportOptions]:
        settings = self.store.settings
        merged: dict[str, Any] = settings.export_defaults.model_dump()
        merged.update(
            filename=DEFAULT_EXPORT_FILENAME,
            page_size=settings.default_page_size,
            orientation=settings.default_orientation,
            margins=settings.default_margins.model_dump(),
        )

        if metadata is not None:
            provided = metadata.model_fields_set
            if "page_size" in provided:
                merged["page_size"] = metadata.page_size
            if metadata.orientation is not None:
                merged["orientation"] = metadata.orientation
            if "margins" in provided:
                merged["margins"] = metadata.margins.model_dump()
            if metadata.title.strip():
                merged["filename"] = f"{sanitize_filename(metadata.title)}.pdf"

        merged.update(_explicit_fields(explicit))
        if isinstance(merged.get("filename"), str):
            merged["filename"] = sanitize_filename(merged["filename"])
        try:
            return Outcome.success(ExportOptions.model_validate(merged))
        except PydanticValidationError as exc:
            error = ValidationError(f"Invalid export options: {exc.errors()[0]['msg']}")
            error.__cause__ = exc
            return Outcome.failure(error)

    def build_config(
        self, options: ExportOptions, style: ResolvedStyle | None = None
    ) -> RasterizerConfig:
        return RasterizerConfig(
            filename=options.filename,
            margins=options.margins.as_tuple(),
            image_quality=options.image_quality / 100,
            page_size=options.page_size,
            orientation=options.orientation,
            font_faces=font_face_urls(style) if style is not None and options.embed_fonts else [],
        )

    def resolve_style(
        self, template: Template | None = None, metadata: DocumentMetadata | None = None
    ) -> ResolvedStyle:
        return StyleResolver(self.store.settings).resolve(template, metadata)

    async def export_tree(
        self,
        root: Tag,
        metadata: DocumentMetadata | None = None,
        options: ExportOptions | Mapping[str, Any] | None = None,
        template: Template | None = None,
    ) -> ExportResult:
        """Export a rendered tree. Failures are reported in the result."""
        resolved = self.resolve_options(metadata, options)
        if not resolved.ok:
            self.emitter.event("export_failed", {"reason": str(resolved.error)})
            return ExportResult(success=False, error=resolved.error)
        export_options = resolved.unwrap()

        try:
            self.store.set_last_export_options(export_options)
        except Exception as exc:
            logger.warning("Could not persist last export options: %s", exc)

        style = self.resolve_style(template, metadata)
        config = self.build_config(export_options, style)
        self.emitter.event(
            "export_started",
            {
                "filename": export_options.filename,
                "page_size": export_options.page_size.value,
                "orientation": export_options.orientation.value,
            },
        )

        stats: dict[str, int] = {}
        try:
            styled = self.styler.style(root, export_options, style)
            stats = dict(self.styler.last_stats)
            output = await self.rasterizer.save(styled, config)
        except ExportError as exc:
            return self._failed(exc, export_options, config, stats)
        except Exception as exc:
            error = ExportError(str(exc) or exc.__class__.__name__)
            error.__cause__ = exc
            return self._failed(error, export_options, config, stats)

        self.emitter.event("export_finished", {"filename": export_options.filename})
        return ExportResult(
            success=True, options=export_options, config=config, output=output, stats=stats
        )

    async def export_document(
        self,
        document: Document,
        options: ExportOptions | Mapping[str, Any] | None = None,
        template: Template | None = None,
    ) -> ExportResult:
        root = self._transformer().transform(document.content)
        return await self.export_tree(root, document.metadata, options, template)

    def render_html(
        self,
        document: Document,
        template: Template | None = None,
        options: ExportOptions | Mapping[str, Any] | None = None,
    ) -> str:
        """Return the export-styled document as a standalone HTML page.

        Raises :class:`ValidationError` when the options cannot be merged.
        """
        export_options = self.resolve_options(document.metadata, options).unwrap()
        style = self.resolve_style(template, document.metadata)
        root = self._transformer().transform(document.content)
        styled = self.styler.style(root, export_options, style)
        config = self.build_config(export_options, style)
        return standalone_html(styled, config, title=document.metadata.title)

    def export_markdown(self, document: Document) -> str:
        """Return the document in its persisted front-matter form."""
        return serialize_document(document)

    def _transformer(self) -> MarkupTransformer:
        return MarkupTransformer.from_settings(
            self.store.settings, preview=False, emitter=self.emitter
        )

    def _failed(
        self,
        error: ExportError,
        options: ExportOptions,
        config: RasterizerConfig,
        stats: dict[str, int],
    ) -> ExportResult:
        logger.error("Export of %s failed: %s", options.filename, error.message)
        self.emitter.event("export_failed", {"filename": options.filename, "reason": error.message})
        return ExportResult(
            success=False, error=error, options=options, config=config, stats=stats
        )
