"""Shared fixtures for pdfmaker tests."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

import pytest
from pypdf import PdfReader, PdfWriter
from pypdf.generic import RectangleObject
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from pdfmaker.model.field import SequentialNames, TextAlign
from pdfmaker.pdf.renderer import OutputMode, PdfRenderer, TemplateSize


@dataclass(frozen=True)
class FakeTemplate:
    source: str
    page_number: int


class RecordingRenderer(PdfRenderer):
    """Renderer that records every call instead of drawing."""

    def __init__(
        self,
        page_counts: dict[str, int] | None = None,
        template_size: TemplateSize = TemplateSize(8.5, 11.0),
    ) -> None:
        self.page_counts = page_counts or {}
        self.template_size = template_size
        self.calls: list[tuple[Any, ...]] = []
        self.current_source: str | None = None
        self.closed = False

    def set_source_file(self, path: str | Path) -> int:
        self.current_source = Path(path).name
        self.calls.append(("set_source_file", self.current_source))
        return self.page_counts.get(self.current_source, 1)

    def import_page(self, page_number: int, box: str = "/CropBox") -> FakeTemplate:
        self.calls.append(("import_page", page_number, box))
        return FakeTemplate(self.current_source or "", page_number)

    def get_template_size(self, template: Any) -> TemplateSize:
        return self.template_size

    def add_page(self) -> None:
        self.calls.append(("add_page",))

    def use_template(self, template: Any, x: float, y: float) -> None:
        self.calls.append(("use_template", template, x, y))

    def set_font(self, family: str, style: str, size: float) -> None:
        self.calls.append(("set_font", family, style, size))

    def set_text_color(self, r: int, g: int, b: int) -> None:
        self.calls.append(("set_text_color", r, g, b))

    def set_cursor(self, x: float, y: float) -> None:
        self.calls.append(("set_cursor", x, y))

    def draw_cell(
        self,
        width: float,
        height: float,
        text: str,
        border: bool = False,
        align: TextAlign = TextAlign.LEFT,
    ) -> None:
        self.calls.append(("draw_cell", width, height, text, border, align))

    def draw_text(self, x: float, y: float, text: str) -> None:
        self.calls.append(("draw_text", x, y, text))

    def output(
        self,
        destination: str | Path | BinaryIO | None = None,
        mode: OutputMode = OutputMode.INLINE,
    ) -> bytes:
        self.calls.append(("output", destination, mode))
        return b"%PDF-fake"

    def close(self) -> None:
        self.closed = True

    def named(self, name: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]

    def drawn_values(self) -> list[str]:
        values = []
        for call in self.calls:
            if call[0] == "draw_cell":
                values.append(call[3])
            elif call[0] == "draw_text":
                values.append(call[3])
        return values


@pytest.fixture
def names() -> SequentialNames:
    return SequentialNames("field")


@pytest.fixture
def make_pdf(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing a PDF with one labelled page per entry."""

    def factory(
        name: str,
        labels: list[str],
        pagesize: tuple[float, float] = letter,
        rotate: int = 0,
        cropbox: tuple[float, float, float, float] | None = None,
    ) -> Path:
        path = tmp_path / name
        report = canvas.Canvas(str(path), pagesize=pagesize)
        for label in labels:
            report.setFont("Helvetica", 14)
            report.drawString(72, pagesize[1] - 72, label)
            report.showPage()
        report.save()

        if rotate or cropbox:
            writer = PdfWriter()
            for page in PdfReader(str(path)).pages:
                added = writer.add_page(page)
                if rotate:
                    added.rotate(rotate)
                if cropbox:
                    added.cropbox = RectangleObject(cropbox)
            with path.open("wb") as handle:
                writer.write(handle)
        return path

    return factory


@pytest.fixture
def make_renderer() -> Callable[..., RecordingRenderer]:
    return RecordingRenderer
