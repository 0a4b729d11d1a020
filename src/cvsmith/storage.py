"""Filesystem persistence for résumé documents.

Documents live under a root directory as ``<title>.cv.md`` files. Paths on
:class:`~cvsmith.core.models.Document` are POSIX paths relative to that root.
I/O errors propagate unchanged; only name collisions are translated into
:class:`~cvsmith.core.exceptions.CollisionError`.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
from pathlib import Path
import time
from typing import Protocol

from cvsmith.core.documents import (
    CV_FILE_EXTENSION,
    parse_document,
    sanitize_filename,
    serialize_document,
)
from cvsmith.core.exceptions import CollisionError, ValidationError
from cvsmith.core.models import Document, DocumentMetadata


__all__ = ["DEFAULT_DOCUMENT_TITLE", "DocumentStorage", "FileSystemStorage"]

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_TITLE = "Untitled CV"


class DocumentStorage(Protocol):
    def create(
        self, title: str, content: str = "", metadata: DocumentMetadata | None = None
    ) -> Document: ...

    def load(self, path: str) -> Document: ...

    def save(self, document: Document) -> Document: ...

    def rename(self, document: Document, title: str) -> Document: ...

    def delete(self, path: str) -> None: ...

    def list_documents(self) -> list[Document]: ...


class FileSystemStorage:
    """Store documents as front-matter files below ``root``."""

    def __init__(self, root: str | Path, *, clock: Callable[[], int] | None = None) -> None:
        self.root = Path(root)
        self._clock = clock or (lambda: time.time_ns() // 1_000_000)

    def _relative(self, target: Path) -> str:
        return target.relative_to(self.root).as_posix()

    def _target(self, title: str) -> Path:
        name = sanitize_filename(title) or DEFAULT_DOCUMENT_TITLE
        return self.root / f"{name}{CV_FILE_EXTENSION}"

    def _touch(self, metadata: DocumentMetadata) -> None:
        metadata.last_modified = max(self._clock(), metadata.last_modified + 1)

    def create(
        self, title: str, content: str = "", metadata: DocumentMetadata | None = None
    ) -> Document:
        """Create a new document file. Raises :class:`CollisionError` if it exists."""
        target = self._target(title)
        if target.exists():
            raise CollisionError(f"A document named '{target.name}' already exists.")
        meta = metadata.model_copy(deep=True) if metadata is not None else DocumentMetadata()
        meta.title = title
        self._touch(meta)
        document = Document(path=self._relative(target), metadata=meta, content=content)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(serialize_document(document), encoding="utf-8")
        logger.debug("Created document %s", target)
        return document

    def load(self, path: str) -> Document:
        text = (self.root / path).read_text(encoding="utf-8")
        return parse_document(text, path)

    def save(self, document: Document) -> Document:
        """Write ``document`` back to its path, bumping ``last_modified``."""
        self._touch(document.metadata)
        target = self.root / document.path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(serialize_document(document), encoding="utf-8")
        return document

    def rename(self, document: Document, title: str) -> Document:
        source = self.root / document.path
        target = self._target(title)
        if target != source and target.exists():
            raise CollisionError(f"A document named '{target.name}' already exists.")
        document.metadata.title = title
        new_path = self._relative(target)
        if target != source and source.exists():
            source.replace(target)
        document.path = new_path
        return self.save(document)

    def delete(self, path: str) -> None:
        (self.root / path).unlink()

    def list_documents(self) -> list[Document]:
        """Return every parseable document below the root, sorted by path."""
        if not self.root.exists():
            return []
        documents: list[Document] = []
        for candidate in sorted(self.root.rglob(f"*{CV_FILE_EXTENSION}")):
            relative = self._relative(candidate)
            try:
                documents.append(parse_document(candidate.read_text(encoding="utf-8"), relative))
            except ValidationError as exc:
                logger.warning("Skipping %s: %s", relative, exc)
        return documents
