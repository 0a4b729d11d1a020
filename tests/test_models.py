from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from cvsmith.core.exceptions import ValidationError
from cvsmith.core.models import (
    DocumentMetadata,
    ExportOptions,
    Margins,
    Template,
    TemplateStyle,
    Theme,
)
from cvsmith.core.paper import (
    Orientation,
    PageSize,
    content_width,
    page_dimensions,
    to_millimetres,
)


def test_margins_accept_units_and_scalars() -> None:
    margins = Margins(top="2cm", right="0.5in", bottom=10, left="15")
    assert margins.as_tuple() == pytest.approx((20.0, 12.7, 10.0, 15.0))
    assert Margins.model_validate(12).as_tuple() == (12.0, 12.0, 12.0, 12.0)
    assert Margins.model_validate([1, 2, 3, 4]).as_tuple() == (1.0, 2.0, 3.0, 4.0)


def test_margins_reject_negative_and_bad_values() -> None:
    with pytest.raises(PydanticValidationError):
        Margins(top=-1)
    with pytest.raises(PydanticValidationError):
        Margins(top="3 apples")
    with pytest.raises(PydanticValidationError):
        Margins.model_validate([1, 2])


def test_to_millimetres_rejects_non_lengths() -> None:
    with pytest.raises(ValidationError):
        to_millimetres("3 seconds")
    with pytest.raises(ValidationError):
        to_millimetres(True)
    assert to_millimetres("12pt") == pytest.approx(4.2333, rel=1e-3)
    assert to_millimetres("96px") == pytest.approx(25.4)
    assert to_millimetres("2 centimeters") == pytest.approx(20.0)


def test_page_size_and_orientation_parsing() -> None:
    assert PageSize("Letter") is PageSize.LETTER
    assert PageSize("a4paper") is PageSize.A4
    assert Orientation("horizontal") is Orientation.LANDSCAPE
    with pytest.raises(ValueError):
        PageSize("A5")


def test_page_dimensions() -> None:
    assert page_dimensions(PageSize.A4) == (210.0, 297.0)
    assert page_dimensions(PageSize.LETTER, Orientation.LANDSCAPE) == (279.4, 215.9)
    assert content_width(PageSize.A4, Orientation.PORTRAIT, 20, 20) == 170.0


def test_theme_requires_primary_color() -> None:
    with pytest.raises(PydanticValidationError):
        Theme(primary_color="  ")
    with pytest.raises(PydanticValidationError):
        Theme(primary_color="red; background: url(x)")


def test_template_accepts_camel_case_payload() -> None:
    template = Template.model_validate(
        {
            "id": "t",
            "name": "T",
            "style": {
                "theme": {"primaryColor": "#112233", "headingFont": "Inter"},
                "margins": {"top": 10, "right": 10, "bottom": 10, "left": 10},
                "customCSS": ".x { color: red; }",
            },
            "previewImage": "t.png",
        }
    )
    assert template.style.theme.heading_font == "Inter"
    assert template.style.custom_css == ".x { color: red; }"
    assert template.preview_image == "t.png"
    payload = template.to_payload()
    assert payload["style"]["customCSS"] == ".x { color: red; }"
    assert payload["style"]["theme"]["primaryColor"] == "#112233"


def test_template_id_and_name_cannot_be_blank() -> None:
    style = TemplateStyle(theme=Theme(primary_color="#000000"))
    with pytest.raises(PydanticValidationError):
        Template(id=" ", name="x", style=style)


def test_metadata_defaults_and_unknown_keys() -> None:
    metadata = DocumentMetadata.model_validate({"title": "Me", "mystery": 1})
    assert metadata.theme_color == "#4051b5"
    assert metadata.font_family == "Inter, sans-serif"
    assert metadata.font_size == 10.0
    assert metadata.page_size is PageSize.A4
    assert metadata.margins.as_tuple() == (20.0, 20.0, 20.0, 20.0)
    assert not hasattr(metadata, "mystery")


def test_export_options_validate_quality_and_filename() -> None:
    with pytest.raises(PydanticValidationError):
        ExportOptions(image_quality=101)
    with pytest.raises(PydanticValidationError):
        ExportOptions(filename="  ")
    assert ExportOptions().filename == "CV.pdf"
