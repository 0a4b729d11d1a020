from __future__ import annotations

from typing import Any

from bs4 import BeautifulSoup
import pytest

from cvsmith.core.context import ExportContext
from cvsmith.core.models import ExportOptions
from cvsmith.core.rules import RenderEngine, RenderPhase, RenderRegistry, renders
from cvsmith.core.settings import Settings
from cvsmith.styling.resolver import StyleResolver


def _make_handler(
    name: str, *, priority: int = 0, before: tuple[str, ...] = (), after: tuple[str, ...] = ()
):
    @renders("p", phase=RenderPhase.BLOCK, name=name, priority=priority, before=before, after=after)
    def handler(_node: Any, _context: Any) -> None:
        return None

    definition = handler.__render_rule__
    return definition.bind(handler)


def test_rule_order_respects_priority_and_topology() -> None:
    registry = RenderRegistry()
    registry.register(_make_handler("third", priority=1))
    registry.register(_make_handler("first", priority=0))
    registry.register(_make_handler("second", priority=1, after=("first",)))

    rules = registry.rules_for_phase(RenderPhase.BLOCK)["p"]
    assert [rule.name for rule in rules] == ["first", "second", "third"]


def test_rule_order_cycle_detection() -> None:
    registry = RenderRegistry()
    registry.register(_make_handler("a", priority=0, before=("b",)))
    with pytest.raises(RuntimeError, match="Cyclic render rule dependencies"):
        registry.register(_make_handler("b", priority=0, before=("a",)))


def test_registry_describe_returns_sorted_entries() -> None:
    registry = RenderRegistry()
    registry.register(_make_handler("alpha", priority=0))
    registry.register(_make_handler("beta", priority=1, after=("alpha",)))

    snapshot = registry.describe()
    assert snapshot[0]["name"] == "alpha"
    assert snapshot[1]["name"] == "beta"
    assert snapshot[1]["after"] == ["alpha"]


def test_engine_runs_phases_in_order() -> None:
    seen: list[str] = []

    @renders("p", phase=RenderPhase.POST, name="post")
    def post(_node: Any, _context: Any) -> None:
        seen.append("post")

    @renders("p", phase=RenderPhase.PRE, name="pre")
    def pre(_node: Any, _context: Any) -> None:
        seen.append("pre")

    @renders(phase=RenderPhase.INLINE, name="document")
    def document(_node: Any, _context: Any) -> None:
        seen.append("document")

    engine = RenderEngine()
    for handler in (post, pre, document):
        engine.register(handler)

    soup = BeautifulSoup("<div><p>x</p></div>", "html.parser")
    root = soup.div
    context = ExportContext(
        options=ExportOptions(), style=StyleResolver(Settings()).resolve(), root=root
    )
    engine.run(root, context)
    assert seen == ["pre", "document", "post"]


def test_register_requires_decorated_handler() -> None:
    engine = RenderEngine()
    with pytest.raises(TypeError):
        engine.register(lambda node, context: None)


def test_marked_rules_handle_a_node_once_per_phase() -> None:
    calls: list[str] = []

    @renders("p", name="marked")
    def marked(_node: Any, _context: Any) -> None:
        calls.append("marked")

    @renders("p", name="unmarked", auto_mark=False)
    def unmarked(_node: Any, _context: Any) -> None:
        calls.append("unmarked")

    engine = RenderEngine()
    engine.register(marked)
    engine.register(unmarked)
    root = BeautifulSoup("<div><p>x</p></div>", "html.parser").div
    context = ExportContext(
        options=ExportOptions(), style=StyleResolver(Settings()).resolve(), root=root
    )
    engine.run(root, context)
    engine.run(root, context)
    assert calls.count("marked") == 1
    assert calls.count("unmarked") == 2
