"""Editing session tying a document to preview, templates and export.

Hosts drive one :class:`EditingSession` per open document. User interaction
(confirmations, title prompts) goes through an :class:`AsyncDialogs`
implementation supplied by the host, so the session never blocks on UI.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from bs4.element import Tag
from pydantic import ValidationError as PydanticValidationError

from cvsmith.core.diagnostics import DiagnosticEmitter, NullEmitter
from cvsmith.core.exceptions import CollisionError, ExportError, NotFoundError, ValidationError
from cvsmith.core.models import Document, DocumentMetadata, ExportOptions, Template
from cvsmith.core.results import Outcome
from cvsmith.core.settings import SettingsStore
from cvsmith.export.driver import ExportDriver, ExportResult
from cvsmith.markup.transformer import MarkupTransformer
from cvsmith.storage import DocumentStorage
from cvsmith.styling.resolver import StyleResolver
from cvsmith.templates.repository import TemplateRepository


__all__ = ["AsyncDialogs", "AutoDialogs", "EditingSession"]

logger = logging.getLogger(__name__)

APPLY_TEMPLATE_WARNING = "Applying a template will replace your current content. Are you sure?"


class AsyncDialogs(Protocol):
    """Host-provided confirmation and text prompts."""

    async def confirm(self, title: str, message: str) -> bool: ...

    async def prompt(self, title: str, message: str, default: str = "") -> str | None: ...


class AutoDialogs:
    """Answer every dialog with fixed replies, for headless hosts and tests."""

    def __init__(self, *, confirm: bool = True, reply: str | None = None) -> None:
        self.confirm_reply = confirm
        self.reply = reply
        self.asked: list[tuple[str, str]] = []

    async def confirm(self, title: str, message: str) -> bool:
        self.asked.append((title, message))
        return self.confirm_reply

    async def prompt(self, title: str, message: str, default: str = "") -> str | None:
        self.asked.append((title, message))
        return self.reply if self.reply is not None else default


class EditingSession:
    """State of one open document: content, active template and export lock."""

    def __init__(
        self,
        store: SettingsStore,
        storage: DocumentStorage,
        driver: ExportDriver,
        templates: TemplateRepository,
        dialogs: AsyncDialogs | None = None,
        *,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.store = store
        self.storage = storage
        self.driver = driver
        self.templates = templates
        self.dialogs: AsyncDialogs = dialogs or AutoDialogs()
        self.emitter = emitter or NullEmitter()
        self.document: Document | None = None
        self.template: Template | None = None
        self.unsaved_changes = False
        self._export_in_flight = False

    @property
    def exporting(self) -> bool:
        return self._export_in_flight

    def _require_document(self) -> Document:
        if self.document is None:
            raise NotFoundError("No document is open in this session.")
        return self.document

    # Documents

    def open(self, document: Document) -> None:
        self.document = document
        self.unsaved_changes = False

    def load(self, path: str) -> Document:
        document = self.storage.load(path)
        self.open(document)
        return document

    async def new_from_template(self, template_id: str) -> Outcome[Document]:
        """Create a document seeded with a template, prompting for its title."""
        template = self.templates.get_by_id(template_id)
        if template is None:
            return Outcome.failure(NotFoundError(f"Unknown template '{template_id}'."))
        title = await self.dialogs.prompt("New CV", "Enter a title for your CV:", template.name)
        if not title:
            return Outcome.failure(ValidationError("Document creation cancelled."))
        try:
            document = self.storage.create(title, template.content, DocumentMetadata(title=title))
        except (CollisionError, ValidationError) as exc:
            return Outcome.failure(exc)
        self.open(document)
        self.template = template
        return Outcome.success(document)

    def set_content(self, content: str) -> None:
        document = self._require_document()
        if document.content != content:
            document.content = content
            self.unsaved_changes = True

    def update_metadata(self, **changes: Any) -> Outcome[DocumentMetadata]:
        """Validate and apply metadata changes; nothing changes on failure."""
        document = self._require_document()
        payload = document.metadata.model_dump(exclude_unset=True)
        payload.update(changes)
        try:
            metadata = DocumentMetadata.model_validate(payload)
        except PydanticValidationError as exc:
            error = ValidationError(f"Invalid document metadata: {exc.errors()[0]['msg']}")
            error.__cause__ = exc
            return Outcome.failure(error)
        document.metadata = metadata
        self.unsaved_changes = True
        return Outcome.success(metadata)

    def save(self) -> Document:
        """Persist the document. Storage errors propagate."""
        document = self.storage.save(self._require_document())
        self.unsaved_changes = False
        return document

    # Preview

    def render_preview(self) -> Tag:
        transformer = MarkupTransformer.from_settings(
            self.store.settings, preview=True, emitter=self.emitter
        )
        return transformer.transform(self._require_document().content)

    def preview_stylesheet(self) -> str:
        document = self._require_document()
        style = StyleResolver(self.store.settings).resolve(self.template, document.metadata)
        return style.stylesheet()

    # Templates

    async def apply_template(self, template_id: str) -> Outcome[Template]:
        """Replace the content with a template after confirming when not empty."""
        document = self._require_document()
        template = self.templates.get_by_id(template_id)
        if template is None:
            return Outcome.failure(NotFoundError(f"Unknown template '{template_id}'."))
        if document.content.strip():
            confirmed = await self.dialogs.confirm("Apply template", APPLY_TEMPLATE_WARNING)
            if not confirmed:
                return Outcome.failure(ValidationError("Template application cancelled."))
        self.set_content(template.content)
        self.template = template
        return Outcome.success(template)

    async def save_as_template(self, name: str | None = None, description: str = "") -> Outcome[Template]:
        """Store the current content as a user template.

        A user template with the same name is only overwritten after
        confirmation.
        """
        document = self._require_document()
        if name is None:
            name = await self.dialogs.prompt("Save template", "Template name:", document.metadata.title)
        if not name or not name.strip():
            return Outcome.failure(ValidationError("Template name cannot be empty."))

        existing = next(
            (template for template in self.templates.list_user() if template.name == name),
            None,
        )
        if existing is not None:
            confirmed = await self.dialogs.confirm(
                "Overwrite template", f"A template named '{name}' already exists. Overwrite it?"
            )
            if not confirmed:
                return Outcome.failure(ValidationError("Template save cancelled."))
            return self.templates.update(
                existing.id, {"content": document.content, "description": description}
            )

        style = self.template.style if self.template is not None else None
        return self.templates.create_from_current(name, description, document.content, style)

    # Export

    async def export(self, options: ExportOptions | dict[str, Any] | None = None) -> ExportResult:
        """Export the document; a second request while one runs is rejected."""
        document = self._require_document()
        if self._export_in_flight:
            logger.info("Rejecting export of %s: another export is running.", document.path)
            return ExportResult(success=False, error=ExportError("An export is already in progress."))
        self._export_in_flight = True
        try:
            return await self.driver.export_document(document, options, self.template)
        finally:
            self._export_in_flight = False
