"""Settings aggregate and its JSON persistence.

The settings object is persisted as one JSON document mirroring
:class:`Settings`. Loading is forgiving: missing keys take their defaults,
unknown keys are ignored and keys holding invalid values are dropped with a
warning so a single bad entry never locks the user out of the rest.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import json
import logging
import os
from pathlib import Path
from threading import RLock
from typing import Any, Protocol

from pydantic import Field, ValidationError as PydanticValidationError, field_validator

from .models import (
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_LINE_HEIGHT,
    DEFAULT_THEME_COLOR,
    ExportOptions,
    Margins,
    Template,
    CamelModel,
)
from .paper import Orientation, PageSize


__all__ = [
    "MAX_RECENT_FONTS",
    "ExportDefaults",
    "JsonFileSettingsBackend",
    "MemorySettingsBackend",
    "Settings",
    "SettingsBackend",
    "SettingsStore",
    "default_settings_path",
]

logger = logging.getLogger(__name__)

MAX_RECENT_FONTS = 10


class ExportDefaults(CamelModel):
    """Global fallbacks for the export options a document does not carry."""

    include_header: bool = False
    header_content: str | None = None
    include_footer: bool = False
    footer_content: str | None = None
    include_page_numbers: bool = True
    embed_fonts: bool = True
    image_quality: int = Field(default=90, ge=0, le=100)


def _dedupe_fonts(fonts: Iterable[Any]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for font in fonts:
        if not isinstance(font, str):
            continue
        name = font.strip()
        if not name or name in seen:
            continue
        seen.add(name)
        result.append(name)
    return result[:MAX_RECENT_FONTS]


def _valid_templates(entries: list[Any]) -> list[Any]:
    kept: list[Any] = []
    for entry in entries:
        try:
            Template.model_validate(entry)
        except PydanticValidationError:
            identifier = entry.get("id") if isinstance(entry, Mapping) else None
            logger.warning("Dropping invalid user template %r from settings.", identifier)
            continue
        kept.append(entry)
    return kept


class Settings(CamelModel):
    """Global defaults, user templates and feature toggles."""

    default_page_size: PageSize = PageSize.A4
    default_orientation: Orientation = Orientation.PORTRAIT
    default_margins: Margins = Field(default_factory=Margins)
    default_theme_color: str = DEFAULT_THEME_COLOR
    default_font_family: str = DEFAULT_FONT_FAMILY
    default_font_size: float = Field(default=DEFAULT_FONT_SIZE, gt=0)
    default_line_height: float = Field(default=DEFAULT_LINE_HEIGHT, gt=0)
    enable_custom_css: bool = False
    default_custom_css: str = ""
    auto_casing: bool = True
    tex_support: bool = True
    show_page_breaks: bool = True
    icon_support: bool = True
    google_fonts_api_key: str = ""
    recently_used_fonts: list[str] = Field(
        default_factory=lambda: ["Inter", "Roboto", "Open Sans", "Lato", "Montserrat"]
    )
    templates: list[Template] = Field(default_factory=list)
    export_defaults: ExportDefaults = Field(default_factory=ExportDefaults)
    last_export_options: ExportOptions | None = None

    @field_validator("recently_used_fonts", mode="before")
    @classmethod
    def _limit_fonts(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return _dedupe_fonts([value])
        return _dedupe_fonts(value)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> Settings:
        """Build settings from persisted data, dropping keys that fail validation."""
        data = dict(payload) if isinstance(payload, Mapping) else {}
        spellings: dict[str, set[str]] = {}
        for name, info in cls.model_fields.items():
            variants = {name, info.alias or name}
            for variant in variants:
                spellings[variant] = variants
        for _ in range(len(data) + 2):
            try:
                return cls.model_validate(data)
            except PydanticValidationError as exc:
                offending: set[str] = set()
                for error in exc.errors():
                    loc = error.get("loc") or ()
                    if loc:
                        offending |= spellings.get(str(loc[0]), {str(loc[0])})
                offending &= set(data)
                if offending & {"templates"} and isinstance(data.get("templates"), list):
                    data["templates"] = _valid_templates(data["templates"])
                    offending.discard("templates")
                    if not offending:
                        continue
                if not offending:
                    raise
                for key in sorted(offending):
                    logger.warning("Ignoring invalid settings value for '%s'.", key)
                    data.pop(key, None)
        return cls()


class SettingsBackend(Protocol):
    """Storage for the raw settings payload."""

    def load(self) -> Mapping[str, Any] | None: ...

    def save(self, payload: Mapping[str, Any]) -> None: ...


class MemorySettingsBackend:
    """Keep the settings payload in memory, mostly for hosts and tests."""

    def __init__(self, payload: Mapping[str, Any] | None = None) -> None:
        self.payload: dict[str, Any] | None = dict(payload) if payload is not None else None
        self.saves = 0

    def load(self) -> Mapping[str, Any] | None:
        return json.loads(json.dumps(self.payload)) if self.payload is not None else None

    def save(self, payload: Mapping[str, Any]) -> None:
        self.payload = json.loads(json.dumps(dict(payload)))
        self.saves += 1


def default_settings_path() -> Path:
    """Return ``$CVSMITH_HOME/settings.json`` or ``~/.cvsmith/settings.json``."""
    env_root = os.environ.get("CVSMITH_HOME")
    root = Path(env_root).expanduser() if env_root else Path.home() / ".cvsmith"
    return root / "settings.json"


class JsonFileSettingsBackend:
    """Persist the settings payload as a UTF-8 JSON file."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_settings_path()

    def load(self) -> Mapping[str, Any] | None:
        if not self.path.exists():
            return None
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Settings file %s is not valid JSON; using defaults.", self.path)
            return None
        return payload if isinstance(payload, dict) else None

    def save(self, payload: Mapping[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(dict(payload), indent=2), encoding="utf-8")
        tmp_path.replace(self.path)


class SettingsStore:
    """Serialised access to the settings aggregate and its backend."""

    def __init__(self, backend: SettingsBackend | None = None) -> None:
        self.backend: SettingsBackend = backend or MemorySettingsBackend()
        self._lock = RLock()
        self._settings = Settings()

    @property
    def lock(self) -> RLock:
        return self._lock

    @property
    def settings(self) -> Settings:
        with self._lock:
            return self._settings

    def load(self) -> Settings:
        """Reload settings from the backend."""
        with self._lock:
            self._settings = Settings.from_payload(self.backend.load())
            return self._settings

    def save(self) -> None:
        """Persist the current settings. Backend errors propagate."""
        with self._lock:
            self.backend.save(self._settings.to_payload())

    def update(self, **changes: Any) -> Settings:
        """Validate and apply field changes, then persist."""
        with self._lock:
            payload = self._settings.model_dump()
            payload.update(changes)
            self._settings = Settings.model_validate(payload)
            self.save()
            return self._settings

    def add_recent_font(self, font_name: str) -> list[str]:
        """Move ``font_name`` to the front of the recency list."""
        with self._lock:
            fonts = [font_name, *self._settings.recently_used_fonts]
            self._settings.recently_used_fonts = _dedupe_fonts(fonts)
            self.save()
            return list(self._settings.recently_used_fonts)

    def user_templates(self) -> list[Template]:
        with self._lock:
            return list(self._settings.templates)

    def replace_user_templates(self, templates: Iterable[Template]) -> None:
        with self._lock:
            self._settings.templates = list(templates)
            self.save()

    def last_export_options(self) -> ExportOptions | None:
        with self._lock:
            return self._settings.last_export_options

    def set_last_export_options(self, options: ExportOptions) -> None:
        with self._lock:
            self._settings.last_export_options = options
            self.save()
