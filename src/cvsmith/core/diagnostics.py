"""Diagnostics channel shared by the transformer, repository and exporter.

Components never print or raise for recoverable problems; they report them
to a :class:`DiagnosticEmitter` supplied by the host. Structured events carry
a name and a small payload (``export_started``, ``template_saved``...), which
:func:`format_event_message` turns into a one-line notice.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Sink for warnings, errors and named events."""

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Discard everything."""

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        pass

    def error(self, message: str, exc: BaseException | None = None) -> None:
        pass

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        pass


class LoggingEmitter:
    """Route diagnostics to a :mod:`logging` logger.

    Known events are logged at ``INFO`` with their formatted notice; other
    events only show up at ``DEBUG``.
    """

    def __init__(self, *, logger_obj: logging.Logger | None = None) -> None:
        self._logger = logger_obj or logger

    def _log(self, level: int, message: str, exc: BaseException | None) -> None:
        self._logger.log(level, message, exc_info=exc)

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self._log(logging.WARNING, message, exc)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self._log(logging.ERROR, message, exc)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        notice = format_event_message(name, payload)
        if notice is None:
            self._logger.debug("diagnostic event %s: %s", name, dict(payload))
        else:
            self._logger.info(notice)


def ensure_emitter(emitter: DiagnosticEmitter | None) -> DiagnosticEmitter:
    """Return ``emitter`` or a logging-backed default."""
    return emitter if emitter is not None else LoggingEmitter()


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected diagnostic events."""
    data = dict(payload)

    if name == "export_started":
        filename = data.get("filename") or "<unnamed>"
        page = data.get("page_size") or "?"
        orientation = data.get("orientation") or "portrait"
        return f"Exporting {filename} ({page}, {orientation})"

    if name == "export_finished":
        filename = data.get("filename") or "<unnamed>"
        return f"Export completed: {filename}"

    if name == "export_failed":
        filename = data.get("filename") or "<unnamed>"
        reason = data.get("reason") or "unknown error"
        return f"Export failed for {filename}: {reason}"

    if name == "template_saved":
        identifier = data.get("id") or "<unknown>"
        mode = data.get("mode") or "added"
        return f"Template '{identifier}' {mode}"

    if name == "link_rewritten":
        source = data.get("source") or ""
        target = data.get("target") or ""
        return f"Rewrote link {source} -> {target}"

    return None


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "ensure_emitter",
    "format_event_message",
]
