"""Context shared by every handler while the export styler runs."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from bs4 import BeautifulSoup
from bs4.element import Tag

from .diagnostics import DiagnosticEmitter, NullEmitter


if TYPE_CHECKING:  # pragma: no cover - typing only
    from cvsmith.styling.resolver import ResolvedStyle

    from .models import ExportOptions
    from .rules import RenderPhase


@dataclass
class ExportContext:
    """Options, resolved style and traversal bookkeeping for one styling run."""

    options: ExportOptions
    style: ResolvedStyle
    root: Tag
    emitter: DiagnosticEmitter = field(default_factory=NullEmitter)
    phase: RenderPhase | None = None
    stats: dict[str, int] = field(default_factory=dict)

    _factory: BeautifulSoup = field(
        default_factory=lambda: BeautifulSoup("", "html.parser"), init=False, repr=False
    )
    _processed_nodes: defaultdict[tuple[int, str], set[int]] = field(
        default_factory=lambda: defaultdict(set), init=False, repr=False
    )

    def enter_phase(self, phase: RenderPhase) -> None:
        """Mark the phase whose rules are about to run."""
        self.phase = phase

    def new_tag(self, name: str, **attrs: Any) -> Tag:
        """Create a detached tag usable anywhere in the tree."""
        return self._factory.new_tag(name, attrs=attrs)

    def count(self, key: str) -> None:
        """Increment a named statistic (rewritten links, stripped indicators...)."""
        self.stats[key] = self.stats.get(key, 0) + 1

    def mark_processed(self, node: Any, *, rule: str = "") -> None:
        if self.phase is None:
            return
        self._processed_nodes[(self.phase.value, rule)].add(id(node))

    def is_processed(self, node: Any, *, rule: str = "") -> bool:
        if self.phase is None:
            return False
        return id(node) in self._processed_nodes[(self.phase.value, rule)]

