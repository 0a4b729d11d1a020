"""Export pipeline: option merging, export styling and rasterization."""

from __future__ import annotations

from .driver import DEFAULT_EXPORT_FILENAME, ExportDriver, ExportResult, font_face_urls
from .rasterizer import Rasterizer, RasterizerConfig, WeasyPrintRasterizer, standalone_html
from .rules import absolute_href
from .styler import ExportStyler, clone_tree


__all__ = [
    "DEFAULT_EXPORT_FILENAME",
    "ExportDriver",
    "ExportResult",
    "ExportStyler",
    "Rasterizer",
    "RasterizerConfig",
    "WeasyPrintRasterizer",
    "absolute_href",
    "clone_tree",
    "font_face_urls",
    "standalone_html",
]
