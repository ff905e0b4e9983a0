"""PDF renderer using reportlab overlays merged onto pypdf page templates."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from io import BytesIO
import logging
from pathlib import Path
from typing import BinaryIO

from pypdf import PageObject, PdfReader, PdfWriter, Transformation
from pypdf.generic import RectangleObject
from reportlab.lib import pagesizes
from reportlab.lib.units import cm, inch, mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from pdfmaker.model.field import TextAlign
from pdfmaker.model.source import SourcePdf
from pdfmaker.pdf.loader import load_pdf
from pdfmaker.pdf.renderer import OutputMode, PdfRenderError, PdfRenderer, TemplateSize

logger = logging.getLogger(__name__)

UNITS = {"pt": 1.0, "mm": mm, "cm": cm, "in": inch}

STANDARD_FONTS = {
    "helvetica": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"),
    "arial": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"),
    "times": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "courier": ("Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique"),
    "symbol": ("Symbol",) * 4,
    "zapfdingbats": ("ZapfDingbats",) * 4,
}

PAGE_BOXES = {
    "/MediaBox": "mediabox",
    "/CropBox": "cropbox",
    "/BleedBox": "bleedbox",
    "/TrimBox": "trimbox",
    "/ArtBox": "artbox",
}

CELL_PADDING = 1 * mm
BORDER_WIDTH = 0.2 * mm


class PdfWriteError(RuntimeError):
    """Raised when output generation fails."""


@dataclass(frozen=True, slots=True)
class PageTemplate:
    source: Path
    page_number: int
    page: PageObject
    left: float
    bottom: float
    width: float
    height: float


@dataclass(slots=True)
class _Placement:
    template: PageTemplate
    x: float
    y: float


@dataclass(slots=True)
class _OutputPage:
    placements: list[_Placement] = field(default_factory=list)
    draw_ops: list[Callable[[canvas.Canvas], None]] = field(default_factory=list)


def resolve_font_name(family: str, style: str = "") -> str:
    flags = (style or "").upper()
    variant = ("B" in flags) + 2 * ("I" in flags)
    standard = STANDARD_FONTS.get(family.strip().lower().replace(" ", ""))
    if standard is not None:
        return standard[variant]
    if family in pdfmetrics.getRegisteredFontNames():
        return family
    raise PdfRenderError(f"Undefined font: {family} {style}".rstrip())


def resolve_page_size(page_size: str | tuple[float, float], orientation: str = "P") -> tuple[float, float]:
    if isinstance(page_size, str):
        size = None
        for candidate in (page_size, page_size.upper(), page_size.lower()):
            size = getattr(pagesizes, candidate, None)
            if isinstance(size, tuple):
                break
        if not isinstance(size, tuple):
            raise ValueError(f"Unknown page size: {page_size}")
    else:
        size = (float(page_size[0]), float(page_size[1]))

    if orientation.upper().startswith("L"):
        return pagesizes.landscape(size)
    return pagesizes.portrait(size)


class ReportlabRenderer(PdfRenderer):
    def __init__(
        self,
        unit: str = "in",
        page_size: str | tuple[float, float] = "letter",
        orientation: str = "P",
    ) -> None:
        if unit not in UNITS:
            raise ValueError(f"Unknown unit: {unit}")
        self.unit = unit
        self._scale = UNITS[unit]
        self.page_width, self.page_height = resolve_page_size(page_size, orientation)

        self._sources: dict[Path, SourcePdf] = {}
        self._current_source: SourcePdf | None = None
        self._pages: list[_OutputPage] = []
        self._template_pages = PdfWriter()

        self._font_name = "Helvetica"
        self._font_size = 12.0
        self._underline = False
        self._text_rgb = (0.0, 0.0, 0.0)
        self._cursor = (0.0, 0.0)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def set_source_file(self, path: str | Path) -> int:
        key = Path(path).resolve()
        source = self._sources.get(key)
        if source is None:
            source = load_pdf(key)
            self._sources[key] = source
        self._current_source = source
        return source.page_count

    def import_page(self, page_number: int, box: str = "/CropBox") -> PageTemplate:
        if self._current_source is None:
            raise PdfRenderError("No source file selected")
        if box not in PAGE_BOXES:
            raise PdfRenderError(f"Unknown page box: {box}")

        try:
            page = self._current_source.page(page_number)
        except IndexError as exc:
            raise PdfRenderError(str(exc)) from exc

        # Merging clips to the crop box, and /Rotate is not applied by the merge.
        template_page = self._template_pages.add_page(page)
        template_page.cropbox = RectangleObject(getattr(page, PAGE_BOXES[box]))
        if template_page.rotation % 360:
            template_page.transfer_rotation_to_content()

        rect = template_page.cropbox
        logger.debug(
            "Imported page %d of %s as a %.1fx%.1fpt template",
            page_number,
            self._current_source.path,
            float(rect.width),
            float(rect.height),
        )
        return PageTemplate(
            source=self._current_source.path,
            page_number=page_number,
            page=template_page,
            left=float(rect.left),
            bottom=float(rect.bottom),
            width=float(rect.width),
            height=float(rect.height),
        )

    def get_template_size(self, template: PageTemplate) -> TemplateSize:
        return TemplateSize(
            width=template.width / self._scale,
            height=template.height / self._scale,
        )

    def add_page(self) -> None:
        self._pages.append(_OutputPage())

    def use_template(self, template: PageTemplate, x: float, y: float) -> None:
        self._current_page().placements.append(_Placement(template, x, y))

    def set_font(self, family: str, style: str, size: float) -> None:
        self._font_name = resolve_font_name(family, style)
        self._font_size = float(size)
        self._underline = "U" in (style or "").upper()

    def set_text_color(self, r: int, g: int, b: int) -> None:
        self._text_rgb = (r / 255, g / 255, b / 255)

    def set_cursor(self, x: float, y: float) -> None:
        self._cursor = (x, y)

    def draw_cell(
        self,
        width: float,
        height: float,
        text: str,
        border: bool = False,
        align: TextAlign = TextAlign.LEFT,
    ) -> None:
        page = self._current_page()
        text = "" if text is None else str(text)
        x, y = self._cursor
        left = x * self._scale
        top = self.page_height - y * self._scale
        box_width = width * self._scale
        box_height = height * self._scale

        font_name, font_size = self._font_name, self._font_size
        text_width = pdfmetrics.stringWidth(text, font_name, font_size)
        align = TextAlign.coerce(align)
        if align is TextAlign.RIGHT:
            text_x = left + box_width - CELL_PADDING - text_width
        elif align is TextAlign.CENTER:
            text_x = left + (box_width - text_width) / 2
        else:
            text_x = left + CELL_PADDING
        baseline = top - pdfmetrics.getAscent(font_name, font_size)

        if border:
            def draw_border(report: canvas.Canvas) -> None:
                report.setStrokeColorRGB(0, 0, 0)
                report.setLineWidth(BORDER_WIDTH)
                report.rect(left, top - box_height, box_width, box_height, stroke=1, fill=0)

            page.draw_ops.append(draw_border)

        if text:
            page.draw_ops.append(self._text_op(text_x, baseline, text, text_width))
        self._cursor = (x + width, y)

    def draw_text(self, x: float, y: float, text: str) -> None:
        page = self._current_page()
        text = "" if text is None else str(text)
        if not text:
            return
        text_width = pdfmetrics.stringWidth(text, self._font_name, self._font_size)
        page.draw_ops.append(
            self._text_op(x * self._scale, self.page_height - y * self._scale, text, text_width)
        )

    def output(
        self,
        destination: str | Path | BinaryIO | None = None,
        mode: OutputMode = OutputMode.INLINE,
    ) -> bytes:
        mode = OutputMode(mode)
        if mode is OutputMode.FILE and not isinstance(destination, (str, Path)):
            raise PdfWriteError("File output requires a destination path")

        try:
            data = self._build()
        except Exception as exc:
            raise PdfWriteError("Failed to build output PDF") from exc

        if mode is OutputMode.FILE:
            output_path = Path(destination).resolve()  # type: ignore[arg-type]
            try:
                with output_path.open("wb") as handle:
                    handle.write(data)
            except OSError as exc:
                raise PdfWriteError(f"Failed to write output PDF: {output_path}") from exc
            logger.debug("Wrote %d page(s) to %s", self.page_count, output_path)
        elif destination is not None:
            destination.write(data)  # type: ignore[union-attr]
        return data

    def close(self) -> None:
        self._sources.clear()
        self._current_source = None
        self._pages.clear()
        self._template_pages = PdfWriter()

    def _current_page(self) -> _OutputPage:
        if not self._pages:
            raise PdfRenderError("No page has been added")
        return self._pages[-1]

    def _text_op(
        self,
        x: float,
        baseline: float,
        text: str,
        text_width: float,
    ) -> Callable[[canvas.Canvas], None]:
        font_name, font_size = self._font_name, self._font_size
        rgb, underline = self._text_rgb, self._underline

        def draw(report: canvas.Canvas) -> None:
            report.setFont(font_name, font_size)
            report.setFillColorRGB(*rgb)
            report.drawString(x, baseline, text)
            if underline:
                report.setStrokeColorRGB(*rgb)
                report.setLineWidth(font_size * 0.05)
                offset = font_size * 0.1
                report.line(x, baseline - offset, x + text_width, baseline - offset)

        return draw

    def _build(self) -> bytes:
        overlay_buffer = BytesIO()
        report = canvas.Canvas(overlay_buffer, pagesize=(self.page_width, self.page_height))
        for page in self._pages:
            for draw in page.draw_ops:
                draw(report)
            report.showPage()
        report.save()
        overlay_buffer.seek(0)
        overlay_reader = PdfReader(overlay_buffer)

        writer = PdfWriter()
        for index, page in enumerate(self._pages):
            target = writer.add_blank_page(width=self.page_width, height=self.page_height)
            for placement in page.placements:
                template = placement.template
                tx = placement.x * self._scale - template.left
                ty = self.page_height - placement.y * self._scale - template.height - template.bottom
                logger.debug(
                    "Output page %d: page %d of %s at %s,%s",
                    index,
                    template.page_number,
                    template.source.name,
                    placement.x,
                    placement.y,
                )
                target.merge_transformed_page(template.page, Transformation().translate(tx, ty))
            if page.draw_ops and index < len(overlay_reader.pages):
                target.merge_page(overlay_reader.pages[index])

        buffer = BytesIO()
        writer.write(buffer)
        return buffer.getvalue()
