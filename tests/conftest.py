from __future__ import annotations

from typing import Any

from bs4.element import Tag
import pytest

from cvsmith.core.exceptions import ExportError
from cvsmith.core.settings import MemorySettingsBackend, SettingsStore
from cvsmith.export.driver import ExportDriver
from cvsmith.export.rasterizer import RasterizerConfig
from cvsmith.templates.repository import TemplateRepository


class RecordingRasterizer:
    """Rasterizer double that keeps every tree and config it receives."""

    def __init__(self, *, fail_with: BaseException | None = None, payload: bytes = b"%PDF") -> None:
        self.fail_with = fail_with
        self.payload = payload
        self.calls: list[tuple[Tag, RasterizerConfig]] = []

    async def save(self, element: Tag, config: RasterizerConfig) -> bytes | None:
        self.calls.append((element, config))
        if self.fail_with is not None:
            raise self.fail_with
        return self.payload


class RecordingEmitter:
    """Emitter double collecting everything it is sent."""

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.errors: list[tuple[str, BaseException | None]] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append((message, exc))

    def event(self, name: str, payload: Any) -> None:
        self.events.append((name, dict(payload)))


@pytest.fixture
def backend() -> MemorySettingsBackend:
    return MemorySettingsBackend()


@pytest.fixture
def store(backend: MemorySettingsBackend) -> SettingsStore:
    return SettingsStore(backend)


@pytest.fixture
def repository(store: SettingsStore) -> TemplateRepository:
    return TemplateRepository(store, clock=lambda: 1_700_000_000_000)


@pytest.fixture
def rasterizer() -> RecordingRasterizer:
    return RecordingRasterizer()


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def driver(store: SettingsStore, rasterizer: RecordingRasterizer) -> ExportDriver:
    return ExportDriver(store, rasterizer)


@pytest.fixture
def failing_rasterizer() -> RecordingRasterizer:
    return RecordingRasterizer(fail_with=ExportError("engine crashed"))


@pytest.fixture
def rasterizer_factory() -> type[RecordingRasterizer]:
    return RecordingRasterizer
