"""Phased styling rules applied to BeautifulSoup trees.

Export styling is a list of small handlers, each bound to a set of tag names
and a :class:`RenderPhase`. Handlers declare themselves with ``@renders``;
a :class:`RenderEngine` collects them from a module, orders them and walks
the tree once per phase.

Ordering inside a phase and tag

`priority`
: lower values run first.

`before` / `after`
: names of rules that must run after / before this one. Constraints naming
  unknown rules are ignored; cycles are rejected at registration.

`name`
: breaks remaining ties, so the order never depends on import order.

Rules registered without tags target the document root itself and run once
per phase, before the tree walk.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from enum import Enum
import heapq
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:  # pragma: no cover - typing only
    from bs4.element import Tag

    from .context import ExportContext


__all__ = [
    "DOCUMENT_NODE",
    "RenderEngine",
    "RenderPhase",
    "RenderRegistry",
    "RenderRule",
    "renders",
]


class RenderPhase(Enum):
    """Ordered passes executed while mutating the tree.

    ``PRE``
    : strip preview-only decorations before any styling happens.

    ``BLOCK``
    : style block-level nodes (root container, headings, lists, breaks).

    ``INLINE``
    : style inline nodes once blocks have their final shape.

    ``POST``
    : append synthetic nodes such as header and footer bands.
    """

    PRE = 1
    BLOCK = 2
    INLINE = 3
    POST = 4


Handler = Callable[[Any, "ExportContext"], None]

DOCUMENT_NODE = "__document__"
RULE_ATTRIBUTE = "__render_rule__"


@dataclass(frozen=True, slots=True)
class RenderRule:
    """A handler with its targeting and ordering metadata.

    ``once`` skips a node the rule already handled in the current phase.
    """

    phase: RenderPhase
    tags: tuple[str, ...]
    name: str = ""
    handler: Handler | None = None
    priority: int = 0
    once: bool = True
    before: tuple[str, ...] = ()
    after: tuple[str, ...] = ()

    def bind(self, handler: Handler) -> RenderRule:
        """Return a copy attached to ``handler``, named after it when unnamed."""
        return replace(self, handler=handler, name=self.name or handler.__name__)

    def __call__(self, node: Any, context: ExportContext) -> None:
        if self.once and context.is_processed(node, rule=self.name):
            return
        if self.handler is not None:
            self.handler(node, context)
        if self.once:
            context.mark_processed(node, rule=self.name)


def renders(
    *tags: str,
    phase: RenderPhase = RenderPhase.BLOCK,
    priority: int = 0,
    name: str | None = None,
    auto_mark: bool = True,
    before: Iterable[str] = (),
    after: Iterable[str] = (),
) -> Callable[[Handler], Handler]:
    """Declare ``handler`` as a styling rule for ``tags`` (or the root)."""
    declared = RenderRule(
        phase=phase,
        tags=tuple(tags) or (DOCUMENT_NODE,),
        name=name or "",
        priority=priority,
        once=auto_mark,
        before=tuple(before),
        after=tuple(after),
    )

    def decorator(handler: Handler) -> Handler:
        setattr(handler, RULE_ATTRIBUTE, declared)
        return handler

    return decorator


def _declared_rule(candidate: Any) -> RenderRule | None:
    declared = getattr(candidate, RULE_ATTRIBUTE, None)
    if declared is None:
        declared = getattr(getattr(candidate, "__func__", None), RULE_ATTRIBUTE, None)
    return declared if isinstance(declared, RenderRule) else None


def _ordered(rules: list[RenderRule]) -> list[RenderRule]:
    """Kahn's algorithm, always releasing the smallest (priority, name) first."""
    index_of: dict[str, int] = {}
    for index, rule in enumerate(rules):
        index_of.setdefault(rule.name, index)

    successors: list[set[int]] = [set() for _ in rules]
    for index, rule in enumerate(rules):
        for later in rule.before:
            if later in index_of:
                successors[index].add(index_of[later])
        for earlier in rule.after:
            if earlier in index_of:
                successors[index_of[earlier]].add(index)

    pending = [0] * len(rules)
    for targets in successors:
        for target in targets:
            pending[target] += 1

    def key(index: int) -> tuple[int, str, int]:
        return (rules[index].priority, rules[index].name, index)

    ready = [key(index) for index, count in enumerate(pending) if count == 0]
    heapq.heapify(ready)
    ordered: list[RenderRule] = []
    while ready:
        *_, index = heapq.heappop(ready)
        ordered.append(rules[index])
        for target in successors[index]:
            pending[target] -= 1
            if pending[target] == 0:
                heapq.heappush(ready, key(target))

    if len(ordered) != len(rules):
        stuck = sorted(rule.name for index, rule in enumerate(rules) if pending[index] > 0)
        raise RuntimeError("Cyclic render rule dependencies detected: " + ", ".join(stuck))
    return ordered


class RenderRegistry:
    """Rules grouped by phase then tag, kept in execution order."""

    def __init__(self) -> None:
        self._buckets: dict[tuple[RenderPhase, str], list[RenderRule]] = {}

    def register(self, rule: RenderRule) -> None:
        """Add ``rule``. Raises ``RuntimeError`` when it closes an ordering cycle."""
        for tag in rule.tags:
            bucket = self._buckets.get((rule.phase, tag), [])
            self._buckets[(rule.phase, tag)] = _ordered([*bucket, rule])

    def rules_for_phase(self, phase: RenderPhase) -> dict[str, tuple[RenderRule, ...]]:
        selected: dict[str, tuple[RenderRule, ...]] = {}
        for (bucket_phase, tag), rules in self._buckets.items():
            if bucket_phase is phase:
                selected[tag] = tuple(rules)
        return selected

    def describe(self) -> list[dict[str, object]]:
        """Flat listing of every rule in execution order, for debugging."""
        entries: list[dict[str, object]] = []
        for phase in RenderPhase:
            for tag, rules in sorted(self.rules_for_phase(phase).items()):
                entries.extend(
                    {
                        "phase": phase.name,
                        "tag": tag,
                        "name": rule.name,
                        "priority": rule.priority,
                        "order": position,
                        "before": list(rule.before),
                        "after": list(rule.after),
                    }
                    for position, rule in enumerate(rules)
                )
        return entries


class RenderEngine:
    """Collect ``@renders`` handlers and run them phase by phase."""

    def __init__(self, registry: RenderRegistry | None = None) -> None:
        self.registry = registry or RenderRegistry()

    def collect_from(self, owner: Any) -> None:
        """Register every decorated callable found on a module or object."""
        for attribute in dir(owner):
            handler = getattr(owner, attribute)
            declared = _declared_rule(handler)
            if declared is not None:
                self.registry.register(declared.bind(handler))

    def register(self, handler: Handler) -> None:
        declared = _declared_rule(handler)
        if declared is None:
            raise TypeError("Handler must be decorated with @renders")
        self.registry.register(declared.bind(handler))

    def run(self, root: Tag, context: ExportContext) -> None:
        for phase in RenderPhase:
            context.enter_phase(phase)
            by_tag = self.registry.rules_for_phase(phase)
            for rule in by_tag.get(DOCUMENT_NODE, ()):
                rule(root, context)
            self._walk(root, by_tag, context)

    def _walk(
        self, node: Tag, by_tag: dict[str, tuple[RenderRule, ...]], context: ExportContext
    ) -> None:
        for rule in by_tag.get(node.name, ()):
            rule(node, context)
        # Snapshot: handlers may insert or detach siblings.
        for child in list(node.children):
            if getattr(child, "name", None):
                self._walk(child, by_tag, context)
