from __future__ import annotations

import pytest

from cvsmith.core.documents import (
    parse_document,
    sanitize_filename,
    serialize_document,
    split_front_matter,
)
from cvsmith.core.exceptions import ValidationError
from cvsmith.core.models import Document, DocumentMetadata, Margins
from cvsmith.core.paper import Orientation, PageSize


def test_round_trip_preserves_metadata_and_body() -> None:
    document = Document(
        path="me.cv.md",
        metadata=DocumentMetadata(
            title="Jane Doe",
            last_modified=1_700_000_000_000,
            page_size=PageSize.LETTER,
            orientation=Orientation.LANDSCAPE,
            margins=Margins(top=10, right=12, bottom=14, left=16),
            theme_color="#861f41",
            custom_css=".cv-name { letter-spacing: 1px; }",
            tags=["engineering"],
        ),
        content="\n\n# Jane Doe\n\\cvtag{Python}\n\n",
    )
    text = serialize_document(document)
    parsed = parse_document(text, "me.cv.md")

    assert parsed.metadata == document.metadata
    assert parsed.content == document.content.strip()
    assert parsed.path == "me.cv.md"


def test_serialized_front_matter_uses_camel_case() -> None:
    text = serialize_document(Document(metadata=DocumentMetadata(title="A"), content="x"))
    assert text.startswith("---\n")
    assert "pageSize: A4" in text
    assert "themeColor:" in text
    assert text.endswith("---\n\nx\n")


def test_missing_front_matter_is_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_document("# No metadata here")


def test_invalid_yaml_and_non_mapping_front_matter() -> None:
    with pytest.raises(ValidationError):
        parse_document("---\ntitle: [unclosed\n---\nbody")
    with pytest.raises(ValidationError):
        parse_document("---\n- a\n- b\n---\nbody")


def test_invalid_metadata_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_document("---\npageSize: A7\n---\nbody")


def test_byte_order_mark_is_ignored() -> None:
    split = split_front_matter("\ufeff---\ntitle: X\n---\nbody")
    assert split == ({"title": "X"}, "body")


def test_sanitize_filename() -> None:
    assert sanitize_filename('a/b\\c:d*e?f"g<h>i|j') == "a-b-c-d-e-f-g-h-i-j"
