"""Front-matter codec for résumé documents.

A document is persisted as UTF-8 text::

    ---
    <YAML metadata>
    ---

    <markup body>

Metadata keys mirror :class:`~cvsmith.core.models.DocumentMetadata` in
camelCase. Serialising then parsing yields deep-equal metadata and the same
body once surrounding whitespace is trimmed.
"""

from __future__ import annotations

from collections.abc import Mapping
import re
from typing import Any

from pydantic import ValidationError as PydanticValidationError
import yaml

from .exceptions import ValidationError
from .models import Document, DocumentMetadata


__all__ = [
    "CV_FILE_EXTENSION",
    "parse_document",
    "parse_metadata",
    "sanitize_filename",
    "serialize_document",
    "split_front_matter",
]

CV_FILE_EXTENSION = ".cv.md"

_UNSAFE_FILENAME_CHARS = re.compile(r"[\\/:*?\"<>|]")


def sanitize_filename(title: str) -> str:
    """Replace characters that are not allowed in file names with ``-``."""
    return _UNSAFE_FILENAME_CHARS.sub("-", title).strip()


def split_front_matter(source: str) -> tuple[dict[str, Any], str] | None:
    """Return ``(metadata, body)`` or ``None`` when no front matter block exists."""
    candidate = source.lstrip("\ufeff")
    lines = candidate.splitlines()
    if not lines or lines[0].strip() != "---":
        return None

    front_matter_lines: list[str] = []
    closing_index: int | None = None
    for idx, line in enumerate(lines[1:], start=1):
        stripped = line.strip()
        if stripped in {"---", "..."}:
            closing_index = idx
            break
        front_matter_lines.append(line)

    if closing_index is None:
        return None

    raw_block = "\n".join(front_matter_lines)
    try:
        metadata = yaml.safe_load(raw_block) or {}
    except yaml.YAMLError as exc:
        raise ValidationError(f"Front matter is not valid YAML: {exc}") from exc

    if not isinstance(metadata, dict):
        raise ValidationError("Front matter must be a mapping of metadata keys.")

    body = "\n".join(lines[closing_index + 1 :])
    return metadata, body


def parse_metadata(payload: Mapping[str, Any]) -> DocumentMetadata:
    """Validate a raw metadata mapping."""
    try:
        return DocumentMetadata.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid document metadata: {exc}") from exc


def parse_document(text: str, path: str = "") -> Document:
    """Parse the persisted text form of a document."""
    split = split_front_matter(text)
    if split is None:
        location = f" in {path}" if path else ""
        raise ValidationError(f"Document{location} does not contain valid front matter.")
    metadata, body = split
    return Document(path=path, metadata=parse_metadata(metadata), content=body.strip())


def serialize_document(document: Document) -> str:
    """Render the persisted text form of a document."""
    payload = document.metadata.to_payload()
    front_matter = yaml.safe_dump(
        payload, sort_keys=False, allow_unicode=True, default_flow_style=False
    )
    return f"---\n{front_matter}---\n\n{document.content.strip()}\n"
