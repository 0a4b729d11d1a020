from __future__ import annotations

import asyncio
from pathlib import Path

from bs4.element import Tag
import pytest

from cvsmith.core.exceptions import CollisionError, ExportError, NotFoundError, ValidationError
from cvsmith.core.settings import SettingsStore
from cvsmith.export.driver import ExportDriver
from cvsmith.export.rasterizer import RasterizerConfig
from cvsmith.session import APPLY_TEMPLATE_WARNING, AutoDialogs, EditingSession
from cvsmith.storage import FileSystemStorage
from cvsmith.templates.repository import TemplateRepository


class BlockingRasterizer:
    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def save(self, element: Tag, config: RasterizerConfig) -> bytes | None:
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return b"%PDF"


@pytest.fixture
def storage(tmp_path: Path) -> FileSystemStorage:
    return FileSystemStorage(tmp_path, clock=lambda: 1_000)


@pytest.fixture
def dialogs() -> AutoDialogs:
    return AutoDialogs(confirm=True)


@pytest.fixture
def session(
    store: SettingsStore,
    storage: FileSystemStorage,
    driver: ExportDriver,
    repository: TemplateRepository,
    dialogs: AutoDialogs,
) -> EditingSession:
    session = EditingSession(store, storage, driver, repository, dialogs)
    session.open(storage.create("Jane", "# Jane Doe"))
    return session


def test_set_content_tracks_unsaved_changes(session: EditingSession) -> None:
    session.set_content("# Jane Doe")
    assert session.unsaved_changes is False
    session.set_content("# Jane Q. Doe")
    assert session.unsaved_changes is True
    session.save()
    assert session.unsaved_changes is False
    assert session.storage.load("Jane.cv.md").content == "# Jane Q. Doe"


def test_update_metadata_rejects_invalid_values(session: EditingSession) -> None:
    outcome = session.update_metadata(page_size="B5")
    assert isinstance(outcome.error, ValidationError)
    assert session.document.metadata.page_size.value == "A4"
    assert session.unsaved_changes is False

    outcome = session.update_metadata(theme_color="#112233")
    assert outcome.ok
    assert session.document.metadata.theme_color == "#112233"
    assert session.document.metadata.title == "Jane"


def test_preview_keeps_page_break_indicators(session: EditingSession) -> None:
    session.set_content("a\n\n\\newpage\n\nb")
    root = session.render_preview()
    assert root.find("div", class_="cv-page-break-indicator") is not None
    assert "--cv-primary" in session.preview_stylesheet()


def test_apply_template_confirms_before_replacing(
    session: EditingSession, dialogs: AutoDialogs
) -> None:
    dialogs.confirm_reply = False
    outcome = asyncio.run(session.apply_template("academic"))
    assert not outcome.ok
    assert session.document.content == "# Jane Doe"
    assert dialogs.asked == [("Apply template", APPLY_TEMPLATE_WARNING)]

    dialogs.confirm_reply = True
    outcome = asyncio.run(session.apply_template("academic"))
    assert outcome.ok
    assert session.template.id == "academic"
    assert session.document.content == session.templates.get_by_id("academic").content


def test_apply_template_on_empty_document_skips_confirmation(
    session: EditingSession, dialogs: AutoDialogs
) -> None:
    session.set_content("   \n")
    asyncio.run(session.apply_template("modern-minimal"))
    assert dialogs.asked == []


def test_apply_unknown_template(session: EditingSession) -> None:
    outcome = asyncio.run(session.apply_template("ghost"))
    assert isinstance(outcome.error, NotFoundError)


def test_new_from_template_prompts_for_title(
    session: EditingSession, dialogs: AutoDialogs
) -> None:
    dialogs.reply = "Jane Academic"
    document = asyncio.run(session.new_from_template("academic")).unwrap()
    assert document.path == "Jane Academic.cv.md"
    assert document.metadata.title == "Jane Academic"
    assert session.document is document
    assert session.template.id == "academic"

    dialogs.reply = ""
    outcome = asyncio.run(session.new_from_template("academic"))
    assert isinstance(outcome.error, ValidationError)


def test_new_from_template_reports_duplicate_titles(
    session: EditingSession, dialogs: AutoDialogs
) -> None:
    dialogs.reply = "Jane Academic"
    first = asyncio.run(session.new_from_template("academic"))
    assert first.ok

    second = asyncio.run(session.new_from_template("academic"))
    assert not second.ok
    assert isinstance(second.error, CollisionError)
    assert session.document is first.unwrap()


def test_save_as_template_overwrites_only_after_confirmation(
    session: EditingSession, dialogs: AutoDialogs
) -> None:
    first = asyncio.run(session.save_as_template("Mine", "first")).unwrap()
    assert first.id.startswith("user-template-mine-")

    session.set_content("# Changed")
    dialogs.confirm_reply = False
    refused = asyncio.run(session.save_as_template("Mine"))
    assert not refused.ok
    assert session.templates.get_by_id(first.id).content == "# Jane Doe"

    dialogs.confirm_reply = True
    updated = asyncio.run(session.save_as_template("Mine", "second")).unwrap()
    assert updated.id == first.id
    assert updated.content == "# Changed"
    assert len(session.templates.list_user()) == 1


def test_save_as_template_requires_a_name(session: EditingSession, dialogs: AutoDialogs) -> None:
    dialogs.reply = "  "
    outcome = asyncio.run(session.save_as_template())
    assert isinstance(outcome.error, ValidationError)


def test_export_uses_document_metadata(session: EditingSession, rasterizer) -> None:
    result = asyncio.run(session.export())
    assert result.success
    assert result.config.filename == "Jane.pdf"
    assert len(rasterizer.calls) == 1
    assert session.exporting is False


def test_concurrent_export_is_rejected(
    store: SettingsStore, storage: FileSystemStorage, repository: TemplateRepository
) -> None:
    rasterizer = BlockingRasterizer()
    session = EditingSession(store, storage, ExportDriver(store, rasterizer), repository)
    session.open(storage.create("Jane", "# Jane"))

    async def scenario():
        first = asyncio.create_task(session.export())
        await rasterizer.started.wait()
        assert session.exporting is True
        second = await session.export()
        rasterizer.release.set()
        return await first, second

    first, second = asyncio.run(scenario())
    assert first.success
    assert not second.success
    assert isinstance(second.error, ExportError)
    assert second.message == "An export is already in progress."
    assert rasterizer.calls == 1
    assert session.exporting is False


def test_export_flag_is_cleared_after_failure(
    store: SettingsStore,
    storage: FileSystemStorage,
    repository: TemplateRepository,
    failing_rasterizer,
) -> None:
    session = EditingSession(store, storage, ExportDriver(store, failing_rasterizer), repository)
    session.open(storage.create("Jane"))
    assert not asyncio.run(session.export()).success
    assert session.exporting is False
    assert asyncio.run(session.export()).error.message == "engine crashed"


def test_operations_require_an_open_document(
    store: SettingsStore,
    storage: FileSystemStorage,
    driver: ExportDriver,
    repository: TemplateRepository,
) -> None:
    session = EditingSession(store, storage, driver, repository)
    with pytest.raises(NotFoundError):
        session.render_preview()
