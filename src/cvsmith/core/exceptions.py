"""Exception hierarchy for the résumé rendering pipeline."""

from __future__ import annotations


__all__ = [
    "CollisionError",
    "CvsmithError",
    "ExportError",
    "NotFoundError",
    "RenderError",
    "ValidationError",
    "exception_hint",
    "exception_messages",
]


class CvsmithError(RuntimeError):
    """Base exception for every failure raised by cvsmith."""


class ValidationError(CvsmithError, ValueError):
    """Raised when a value falls outside its allowed range or enumeration."""


class NotFoundError(CvsmithError, LookupError):
    """Raised when a template, document or setting cannot be resolved."""


class CollisionError(CvsmithError):
    """Raised when a title, filename or identifier is already taken."""


class RenderError(CvsmithError):
    """Raised when markup cannot be turned into a node tree.

    The transformer always recovers from these locally; they only travel
    through the diagnostics emitter.
    """


class ExportError(CvsmithError):
    """Raised when the rasterizer fails to produce the exported artefact."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None
