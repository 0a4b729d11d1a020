from __future__ import annotations

import asyncio
from pathlib import Path

from bs4 import BeautifulSoup
import pytest

from cvsmith.core.exceptions import ExportError
from cvsmith.core.paper import Orientation, PageSize
from cvsmith.export.rasterizer import (
    Rasterizer,
    RasterizerConfig,
    WeasyPrintRasterizer,
    page_rule,
    standalone_html,
)


def _config(**overrides) -> RasterizerConfig:
    values = dict(
        filename="Jane.pdf",
        margins=(10.0, 12.5, 10.0, 12.5),
        image_quality=0.9,
        page_size=PageSize.TABLOID,
        orientation=Orientation.LANDSCAPE,
    )
    values.update(overrides)
    return RasterizerConfig(**values)


def test_page_rule_uses_css_page_names() -> None:
    assert page_rule(_config()) == (
        "@page { size: ledger landscape; margin: 10mm 12.5mm 10mm 12.5mm; }"
    )


def test_standalone_html_links_fonts_and_escapes_title() -> None:
    fragment = BeautifulSoup('<div class="cv-document">Hi</div>', "html.parser").div
    html = standalone_html(
        fragment,
        _config(font_faces=["https://fonts.googleapis.com/css2?family=Lato&display=swap"]),
        title="Jane <Doe>",
    )
    assert "<title>Jane &lt;Doe&gt;</title>" in html
    assert 'href="https://fonts.googleapis.com/css2?family=Lato&amp;display=swap"' in html
    assert '<div class="cv-document">Hi</div>' in html


def test_standalone_html_defaults_title_to_filename() -> None:
    assert "<title>Jane</title>" in standalone_html("<p>x</p>", _config())


def test_weasyprint_rasterizer_satisfies_protocol(tmp_path: Path) -> None:
    assert isinstance(WeasyPrintRasterizer(tmp_path), Rasterizer)


def test_weasyprint_writes_pdf(tmp_path: Path) -> None:
    pytest.importorskip("weasyprint")
    fragment = BeautifulSoup("<div><h1>Jane</h1></div>", "html.parser").div
    rasterizer = WeasyPrintRasterizer(tmp_path)
    output = asyncio.run(rasterizer.save(fragment, _config(page_size=PageSize.A4)))
    assert output is not None and output.startswith(b"%PDF")
    assert (tmp_path / "Jane.pdf").read_bytes() == output


def test_target_path_stays_inside_output_dir(tmp_path: Path) -> None:
    rasterizer = WeasyPrintRasterizer(tmp_path)
    assert rasterizer.target_path("Jane.pdf") == tmp_path.resolve() / "Jane.pdf"
    assert WeasyPrintRasterizer().target_path("../Jane.pdf") is None


@pytest.mark.parametrize("filename", ["../x.pdf", "nested/../../x.pdf", "..", "/tmp/x.pdf"])
def test_filenames_escaping_output_dir_are_refused(tmp_path: Path, filename: str) -> None:
    rasterizer = WeasyPrintRasterizer(tmp_path / "out")
    fragment = BeautifulSoup("<div>Jane</div>", "html.parser").div
    with pytest.raises(ExportError, match="outside"):
        asyncio.run(rasterizer.save(fragment, _config(filename=filename)))
    assert not (tmp_path / "x.pdf").exists()
