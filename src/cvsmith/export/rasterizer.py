"""Rasterizer port and the WeasyPrint implementation.

The export driver hands a fully styled, detached tree to a
:class:`Rasterizer` together with a :class:`RasterizerConfig`. The config
mirrors the option mapping understood by HTML-to-PDF engines:

`margin` (`list[float]`)
: ``[top, right, bottom, left]`` in millimetres, always in that order.

`image` (`dict`)
: ``{"type": "jpeg", "quality": q}`` with ``q`` in ``0..1``.

`page` (`dict`)
: ``{"unit": "mm", "format": "a4", "orientation": "portrait"}``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from html import escape
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from bs4.element import Tag

from cvsmith.core.exceptions import ExportError
from cvsmith.core.paper import Orientation, PageSize


__all__ = [
    "CANVAS_SCALE",
    "Rasterizer",
    "RasterizerConfig",
    "WeasyPrintRasterizer",
    "page_rule",
    "standalone_html",
]

logger = logging.getLogger(__name__)

CANVAS_SCALE = 2

_CSS_PAGE_FORMATS = {
    PageSize.A4: "A4",
    PageSize.LETTER: "letter",
    PageSize.LEGAL: "legal",
    PageSize.TABLOID: "ledger",
}


@dataclass(slots=True)
class RasterizerConfig:
    filename: str
    margins: tuple[float, float, float, float]
    image_quality: float
    page_size: PageSize
    orientation: Orientation
    font_faces: list[str] = field(default_factory=list)
    canvas_scale: int = CANVAS_SCALE

    def to_dict(self) -> dict[str, Any]:
        return {
            "margin": list(self.margins),
            "filename": self.filename,
            "image": {"type": "jpeg", "quality": self.image_quality},
            "canvas": {"scale": self.canvas_scale},
            "page": {
                "unit": "mm",
                "format": self.page_size.value.lower(),
                "orientation": self.orientation.value,
            },
            "fontFaces": list(self.font_faces),
        }


@runtime_checkable
class Rasterizer(Protocol):
    """Turn a styled tree into the final artefact.

    Implementations return the produced bytes, or ``None`` when the artefact
    is delivered elsewhere (written straight to disk, handed to a viewer).
    Failures are raised; the driver converts them into an export error.
    """

    async def save(self, element: Tag, config: RasterizerConfig) -> bytes | None: ...


def page_rule(config: RasterizerConfig) -> str:
    """Return the ``@page`` rule matching the configured paper and margins."""
    top, right, bottom, left = (f"{value:g}mm" for value in config.margins)
    size = _CSS_PAGE_FORMATS.get(config.page_size, config.page_size.value)
    return f"@page {{ size: {size} {config.orientation.value}; margin: {top} {right} {bottom} {left}; }}"


def standalone_html(element: Tag | str, config: RasterizerConfig, *, title: str | None = None) -> str:
    """Wrap a styled fragment into a complete HTML page."""
    head_title = escape(title if title is not None else Path(config.filename).stem)
    font_links = "".join(
        f'<link rel="stylesheet" href="{escape(url, quote=True)}">' for url in config.font_faces
    )
    return (
        "<!DOCTYPE html>\n"
        '<html>\n<head>\n<meta charset="utf-8">\n'
        f"<title>{head_title}</title>\n"
        f"{font_links}"
        f"<style>{page_rule(config)} body {{ margin: 0; }}</style>\n"
        "</head>\n<body>\n"
        f"{element}\n"
        "</body>\n</html>\n"
    )


class WeasyPrintRasterizer:
    """Render PDFs with WeasyPrint (``pip install cvsmith[pdf]``)."""

    def __init__(self, output_dir: str | Path | None = None, *, base_url: str | None = None) -> None:
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.base_url = base_url

    def target_path(self, filename: str) -> Path | None:
        """Return where ``filename`` is written, refusing paths outside ``output_dir``."""
        if self.output_dir is None:
            return None
        root = self.output_dir.resolve()
        target = (root / filename).resolve()
        if target.parent != root:
            raise ExportError(f"Refusing to write '{filename}' outside {root}.")
        return target

    async def save(self, element: Tag, config: RasterizerConfig) -> bytes | None:
        target = self.target_path(config.filename)
        html = standalone_html(element, config)
        return await asyncio.to_thread(self._write, html, target)

    def _write(self, html: str, target: Path | None) -> bytes:
        try:
            from weasyprint import HTML
        except ImportError as exc:
            raise ExportError(
                "WeasyPrint is required for PDF export; install the 'pdf' extra."
            ) from exc

        pdf = HTML(string=html, base_url=self.base_url).write_pdf()
        if pdf is None:
            raise ExportError("WeasyPrint did not produce any output.")
        if target is not None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(pdf)
            logger.debug("Wrote %d bytes to %s", len(pdf), target)
        return pdf
