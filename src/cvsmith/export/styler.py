"""Apply the export rule set to a detached clone of a rendered tree."""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING

from bs4.element import Tag

from cvsmith.core.context import ExportContext
from cvsmith.core.diagnostics import DiagnosticEmitter, NullEmitter
from cvsmith.core.rules import RenderEngine

from . import rules as export_rules


if TYPE_CHECKING:  # pragma: no cover - typing only
    from cvsmith.core.models import ExportOptions
    from cvsmith.styling.resolver import ResolvedStyle


__all__ = ["ExportStyler", "clone_tree"]

logger = logging.getLogger(__name__)


def clone_tree(root: Tag) -> Tag:
    """Return a detached deep copy of ``root``."""
    return copy.copy(root)


class ExportStyler:
    """Inline styles and break rules so an exported tree stands on its own.

    The styler never touches the tree it is given; it styles a clone, which
    keeps the live preview intact while an export is in flight.
    """

    def __init__(
        self,
        engine: RenderEngine | None = None,
        *,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        if engine is None:
            engine = RenderEngine()
            engine.collect_from(export_rules)
        self.engine = engine
        self.emitter = emitter or NullEmitter()
        self.last_stats: dict[str, int] = {}

    def style(self, root: Tag, options: ExportOptions, style: ResolvedStyle) -> Tag:
        clone = clone_tree(root)
        context = ExportContext(options=options, style=style, root=clone, emitter=self.emitter)
        self.engine.run(clone, context)
        self.last_stats = dict(context.stats)
        logger.debug("Export styling finished: %s", context.stats)
        return clone
