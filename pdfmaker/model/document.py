"""Compose output PDFs from imported source pages and positioned fields.

A :class:`Document` imports the pages of one or more source PDFs, keeps the
fields attached to each output page index and, on :meth:`Document.save`,
replays every source page as a template with its fields drawn on top.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
import math
from pathlib import Path
from typing import Any, BinaryIO
import warnings

from pdfmaker.config import DocumentConfig
from pdfmaker.model.field import (
    FIELD_DEFAULTS,
    Field,
    NameFactory,
    TextAlign,
    coerce_field,
    resolve_style,
    unique_name,
)
from pdfmaker.pdf.renderer import OutputMode, PdfRenderer
from pdfmaker.pdf.writer import ReportlabRenderer
from pdfmaker.state.session import FieldRegistry, PageCursor

logger = logging.getLogger(__name__)


class Document:
    def __init__(
        self,
        import_file: str | Path | None = None,
        defaults: Mapping[str, Any] | None = None,
        *,
        config: DocumentConfig | None = None,
        renderer: PdfRenderer | None = None,
        name_factory: NameFactory | None = None,
    ) -> None:
        self.config = config or DocumentConfig()
        self.renderer = renderer or ReportlabRenderer(
            unit=self.config.unit,
            page_size=self.config.page_size,
            orientation=self.config.orientation,
        )
        self.name_factory = name_factory or unique_name

        self.page_margin_x = self.config.page_margin_x
        self.page_margin_y = self.config.page_margin_y
        self.draw_borders = self.config.draw_borders

        self.fields = FieldRegistry()
        self.source_pdf_files: list[Path] = []
        self._cursor = PageCursor()

        self.field_defaults = self._build_defaults(defaults)

        if import_file:
            self.add_pages_from_file(import_file)

    def __enter__(self) -> Document:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def total_pages(self) -> int:
        return self._cursor.total_pages

    def set_field_defaults(self, defaults: Mapping[str, Any] | None) -> None:
        """Replace the render-time defaults used for unset field styles."""
        self.field_defaults = self._build_defaults(defaults)

    def add_pages_from_file(self, filename: str | Path) -> int:
        path = Path(filename)
        page_count = self.renderer.set_source_file(path)
        self.source_pdf_files.append(path)
        first_index = self._cursor.advance(page_count)
        logger.debug(
            "Imported %s as pages %d-%d", path, first_index, self._cursor.last_page_index
        )
        return page_count

    def set_source_pdf(self, filename: str | Path) -> int:
        warnings.warn(
            "set_source_pdf() is deprecated, use add_pages_from_file()",
            DeprecationWarning,
            stacklevel=2,
        )
        return self.add_pages_from_file(filename)

    def add_field(self, field: Field | Mapping[str, Any], page_number: int | None = None) -> Field:
        """Attach a field to a page, by default the last imported one.

        A field with the same name on that page is replaced. The stored field
        is returned so its value can still be changed before saving.
        """
        if page_number is None:
            page_number = self._cursor.last_page_index

        placed = coerce_field(field, self.name_factory)
        if page_number >= self.total_pages:
            logger.debug(
                "Field %s attached to page %d, beyond the %d imported page(s)",
                placed.name,
                page_number,
                self.total_pages,
            )
        return self.fields.add(page_number, placed)

    def get_field(self, name: str, page_number: int | None = None) -> Field:
        return self.fields.get(name, page_number)

    def add_page_and_field(
        self,
        filename: str | Path,
        field: Field | Mapping[str, Any],
        field_values: Mapping[Any, Any] | Iterable[Any],
        page_break_after_each_field: bool = False,
    ) -> int:
        """Stack one field template down the page, once per value.

        The first page of ``filename`` is drawn together with the field for
        each value, each copy directly below the previous one. A new page is
        started when the next copy would cross ``config.page_break_height``
        (or for every value with ``page_break_after_each_field``). Fields
        drawn here are not registered on the document. Returns the number of
        pages started.
        """
        field = coerce_field(field, self.name_factory)
        page_x = self.page_margin_x
        original_y = field.y
        page_y = math.inf

        self.renderer.set_source_file(filename)
        template = self.renderer.import_page(1, self.config.box)
        size = self.renderer.get_template_size(template)

        if isinstance(field_values, Mapping):
            items = field_values.items()
        else:
            items = enumerate(field_values)

        pages_added = 0
        for value_index, value in items:
            if page_break_after_each_field or page_y + size.height >= self.config.page_break_height:
                logger.debug("%s: page break (page_y=%s)", value_index, page_y)
                page_y = self.page_margin_y
                field.y = original_y
                self.renderer.add_page()
                pages_added += 1

            logger.debug(
                "%s: template at %s,%s, field at %s,%s", value_index, page_x, page_y, field.x, field.y
            )
            self.renderer.use_template(template, page_x, page_y)
            field.set_value(value)
            self.render_field(field)

            field.y += size.height
            page_y += size.height

        return pages_added

    def render_field(self, field: Field) -> None:
        style = resolve_style(field, self.field_defaults)
        border = self.draw_borders or style.border

        self.renderer.set_font(style.font, style.font_style, style.font_size)
        self.renderer.set_text_color(*style.rgb)
        if field.is_boxed:
            self.renderer.set_cursor(field.x, field.y)
            self.renderer.draw_cell(field.width, field.height, field.value, border, style.text_align)
        else:
            self.renderer.draw_text(field.x, field.y, field.value)

    def draw_text_box(
        self,
        text: str,
        x: float,
        y: float,
        width: float,
        height: float,
        align: TextAlign | str = TextAlign.LEFT,
    ) -> None:
        warnings.warn(
            "draw_text_box() is deprecated, add a boxed field instead",
            DeprecationWarning,
            stacklevel=2,
        )
        self.renderer.set_font("Helvetica", "", 10)
        self.renderer.set_text_color(0, 0, 0)
        self.renderer.set_cursor(x, y)
        self.renderer.draw_cell(width, height, text, self.draw_borders, TextAlign.coerce(align))

    def save(self, filename: str | Path | None = None, stream: BinaryIO | None = None) -> bytes:
        """Render every imported page with its fields and output the PDF.

        With ``filename`` the PDF is written to that path; otherwise it goes
        to ``stream`` when given. The PDF bytes are returned either way.
        """
        output_cursor = PageCursor()
        for pdf_file in self.source_pdf_files:
            page_count = self.renderer.set_source_file(pdf_file)
            for import_page_number in range(1, page_count + 1):
                template = self.renderer.import_page(import_page_number, self.config.box)
                self.renderer.add_page()
                self.renderer.use_template(template, self.page_margin_x, self.page_margin_y)
                page_index = output_cursor.advance()
                for field in self.fields.get_page_fields(page_index):
                    self.render_field(field)

        orphaned = [index for index in self.fields if index >= output_cursor.total_pages]
        if orphaned:
            logger.warning(
                "Fields on page(s) %s were not rendered, the document has %d page(s)",
                orphaned,
                output_cursor.total_pages,
            )

        if filename is None:
            return self.renderer.output(stream, OutputMode.INLINE)
        data = self.renderer.output(filename, OutputMode.FILE)
        logger.info("Saved %s", filename)
        return data

    def output_inline(self, stream: BinaryIO | None = None) -> bytes:
        return self.renderer.output(stream, OutputMode.INLINE)

    def close(self) -> None:
        self.renderer.close()

    def _build_defaults(self, overrides: Mapping[str, Any] | None) -> Field:
        properties = {"name": "defaults", **FIELD_DEFAULTS, **(overrides or {})}
        return Field.from_mapping(properties)
