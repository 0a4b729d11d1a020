"""Two-tier template catalogue: immutable builtins plus persisted user templates."""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
import time
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from slugify import slugify

from cvsmith.core.diagnostics import DiagnosticEmitter, NullEmitter
from cvsmith.core.exceptions import CollisionError, NotFoundError, ValidationError
from cvsmith.core.models import DEFAULT_SPACING, Template, TemplateStyle, Theme
from cvsmith.core.results import Outcome
from cvsmith.core.settings import SettingsStore

from .builtins import builtin_template, builtin_templates, is_builtin


__all__ = ["CUSTOM_CATEGORY", "USER_TEMPLATE_TAG", "TemplateRepository"]

logger = logging.getLogger(__name__)

CUSTOM_CATEGORY = "Custom"
USER_TEMPLATE_TAG = "user-created"
USER_TEMPLATE_PREFIX = "user-template"


def _current_millis() -> int:
    return time.time_ns() // 1_000_000


def _field_name(key: str) -> str:
    for name, info in Template.model_fields.items():
        if key in (name, info.alias):
            return name
    return key


def _invalid(exc: PydanticValidationError) -> ValidationError:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'template'}: {error['msg']}"
        for error in exc.errors()
    )
    error = ValidationError(f"Invalid template: {details}")
    error.__cause__ = exc
    return error


class TemplateRepository:
    """Read and mutate templates with builtin priority.

    Every public operation holds the settings store's re-entrant lock, so
    repositories sharing a store never interleave a read-modify-write. Every
    successful mutation is persisted through the store. Templates are returned
    as copies, so callers never alias repository state.
    """

    def __init__(
        self,
        store: SettingsStore,
        *,
        emitter: DiagnosticEmitter | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.store = store
        self.emitter = emitter or NullEmitter()
        self._clock = clock or _current_millis
        self._lock = store.lock

    # Queries

    def list_all(self) -> list[Template]:
        with self._lock:
            return builtin_templates() + self.list_user()

    def list_user(self) -> list[Template]:
        with self._lock:
            return [template.model_copy(deep=True) for template in self.store.user_templates()]

    def list_by_category(self, category: str) -> list[Template]:
        with self._lock:
            return [template for template in self.list_all() if template.category == category]

    def list_by_tag(self, tag: str) -> list[Template]:
        with self._lock:
            return [template for template in self.list_all() if tag in template.tags]

    def get_by_id(self, template_id: str) -> Template | None:
        """Return the template, looking at builtins first."""
        with self._lock:
            builtin = builtin_template(template_id)
            if builtin is not None:
                return builtin
            for template in self.store.user_templates():
                if template.id == template_id:
                    return template.model_copy(deep=True)
            return None

    def require(self, template_id: str) -> Outcome[Template]:
        template = self.get_by_id(template_id)
        if template is None:
            return Outcome.failure(NotFoundError(f"Unknown template '{template_id}'."))
        return Outcome.success(template)

    # Mutations

    def add(self, template: Template) -> Outcome[Template]:
        """Insert a user template or replace the one with the same id."""
        with self._lock:
            if is_builtin(template.id):
                return Outcome.failure(
                    CollisionError(f"Template id '{template.id}' is reserved by a builtin.")
                )
            stored = template.model_copy(deep=True)
            templates = self.store.user_templates()
            mode = "added"
            for index, existing in enumerate(templates):
                if existing.id == stored.id:
                    templates[index] = stored
                    mode = "replaced"
                    break
            else:
                templates.append(stored)
            self.store.replace_user_templates(templates)
            self.emitter.event("template_saved", {"id": stored.id, "mode": mode})
            return Outcome.success(stored.model_copy(deep=True))

    def update(self, template_id: str, changes: Mapping[str, Any]) -> Outcome[Template]:
        """Shallow-merge ``changes`` into a user template."""
        with self._lock:
            templates = self.store.user_templates()
            index = next(
                (position for position, item in enumerate(templates) if item.id == template_id),
                None,
            )
            if index is None:
                return Outcome.failure(NotFoundError(f"Unknown user template '{template_id}'."))

            normalised = {_field_name(key): value for key, value in changes.items()}
            if normalised.get("id", template_id) != template_id:
                return Outcome.failure(ValidationError("Template id cannot be changed."))

            payload = templates[index].model_dump()
            payload.update(normalised)
            try:
                updated = Template.model_validate(payload)
            except PydanticValidationError as exc:
                return Outcome.failure(_invalid(exc))

            templates[index] = updated
            self.store.replace_user_templates(templates)
            self.emitter.event("template_saved", {"id": template_id, "mode": "updated"})
            return Outcome.success(updated.model_copy(deep=True))

    def delete(self, template_id: str) -> bool:
        """Remove a user template. Builtin and unknown ids are left alone."""
        with self._lock:
            if is_builtin(template_id):
                logger.debug("Refusing to delete builtin template '%s'.", template_id)
                return False
            templates = self.store.user_templates()
            remaining = [template for template in templates if template.id != template_id]
            if len(remaining) == len(templates):
                return False
            self.store.replace_user_templates(remaining)
            return True

    def create_from_current(
        self,
        name: str,
        description: str,
        content: str,
        style: TemplateStyle | None = None,
    ) -> Outcome[Template]:
        """Save the current document content as a new user template."""
        with self._lock:
            base = f"{USER_TEMPLATE_PREFIX}-{slugify(name) or 'untitled'}-{self._clock()}"
            identifier = base
            suffix = 2
            while self.get_by_id(identifier) is not None:
                identifier = f"{base}-{suffix}"
                suffix += 1
            try:
                template = Template(
                    id=identifier,
                    name=name,
                    description=description,
                    content=content,
                    style=style.model_copy(deep=True) if style is not None else self.default_style(),
                    category=CUSTOM_CATEGORY,
                    tags=[USER_TEMPLATE_TAG],
                )
            except PydanticValidationError as exc:
                return Outcome.failure(_invalid(exc))
            return self.add(template)

    def default_style(self) -> TemplateStyle:
        """Build a template style from the global settings defaults."""
        settings = self.store.settings
        theme = Theme(
            primary_color=settings.default_theme_color,
            heading_font=settings.default_font_family,
            body_font=settings.default_font_family,
            font_size=f"{settings.default_font_size:g}pt",
            line_height=f"{settings.default_line_height:g}",
        )
        return TemplateStyle(
            theme=theme,
            margins=settings.default_margins.model_copy(),
            spacing=DEFAULT_SPACING,
            custom_css=settings.default_custom_css if settings.enable_custom_css else None,
        )
