"""Résumé markup rendering, styling and paginated export."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from cvsmith.core.diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from cvsmith.core.documents import parse_document, serialize_document
from cvsmith.core.exceptions import (
    CollisionError,
    CvsmithError,
    ExportError,
    NotFoundError,
    RenderError,
    ValidationError,
)
from cvsmith.core.models import (
    Document,
    DocumentMetadata,
    ExportOptions,
    Margins,
    Template,
    TemplateStyle,
    Theme,
)
from cvsmith.core.paper import Orientation, PageSize
from cvsmith.core.results import Outcome
from cvsmith.core.settings import (
    JsonFileSettingsBackend,
    MemorySettingsBackend,
    Settings,
    SettingsStore,
)
from cvsmith.export import (
    ExportDriver,
    ExportResult,
    ExportStyler,
    Rasterizer,
    RasterizerConfig,
    WeasyPrintRasterizer,
)
from cvsmith.markup import CasingNormalizer, MarkupTransformer
from cvsmith.session import AsyncDialogs, AutoDialogs, EditingSession
from cvsmith.storage import DocumentStorage, FileSystemStorage
from cvsmith.styling import ResolvedStyle, StyleResolver
from cvsmith.templates import TemplateRepository


try:
    __version__ = _pkg_version("cvsmith")
except PackageNotFoundError:
    __version__ = "0.0.0"


__all__ = [
    "AsyncDialogs",
    "AutoDialogs",
    "CasingNormalizer",
    "CollisionError",
    "CvsmithError",
    "DiagnosticEmitter",
    "Document",
    "DocumentMetadata",
    "DocumentStorage",
    "EditingSession",
    "ExportDriver",
    "ExportError",
    "ExportOptions",
    "ExportResult",
    "ExportStyler",
    "FileSystemStorage",
    "JsonFileSettingsBackend",
    "LoggingEmitter",
    "Margins",
    "MarkupTransformer",
    "MemorySettingsBackend",
    "NotFoundError",
    "NullEmitter",
    "Orientation",
    "Outcome",
    "PageSize",
    "Rasterizer",
    "RasterizerConfig",
    "RenderError",
    "ResolvedStyle",
    "Settings",
    "SettingsStore",
    "StyleResolver",
    "Template",
    "TemplateRepository",
    "TemplateStyle",
    "Theme",
    "ValidationError",
    "WeasyPrintRasterizer",
    "__version__",
    "parse_document",
    "serialize_document",
]
