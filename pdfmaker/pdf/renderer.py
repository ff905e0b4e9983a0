"""Rendering interface the document composes pages through."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO

from pdfmaker.model.field import TextAlign


class PdfRenderError(RuntimeError):
    """Raised when a page or its content cannot be rendered."""


class OutputMode(str, Enum):
    INLINE = "I"
    FILE = "F"


@dataclass(frozen=True, slots=True)
class TemplateSize:
    width: float
    height: float


class PdfRenderer(ABC):
    """One exclusive document-build session.

    Coordinates and sizes are in the renderer's document unit, measured from
    the top-left corner of the page.
    """

    @abstractmethod
    def set_source_file(self, path: str | Path) -> int:
        """Select ``path`` as the import source and return its page count."""

    @abstractmethod
    def import_page(self, page_number: int, box: str = "/CropBox") -> Any:
        """Import a 1-based page of the current source as a template handle."""

    @abstractmethod
    def get_template_size(self, template: Any) -> TemplateSize: ...

    @abstractmethod
    def add_page(self) -> None: ...

    @abstractmethod
    def use_template(self, template: Any, x: float, y: float) -> None: ...

    @abstractmethod
    def set_font(self, family: str, style: str, size: float) -> None: ...

    @abstractmethod
    def set_text_color(self, r: int, g: int, b: int) -> None: ...

    @abstractmethod
    def set_cursor(self, x: float, y: float) -> None: ...

    @abstractmethod
    def draw_cell(
        self,
        width: float,
        height: float,
        text: str,
        border: bool = False,
        align: TextAlign = TextAlign.LEFT,
    ) -> None:
        """Draw a single-line, top-anchored cell at the cursor."""

    @abstractmethod
    def draw_text(self, x: float, y: float, text: str) -> None:
        """Draw text with its baseline at ``(x, y)``."""

    @abstractmethod
    def output(
        self,
        destination: str | Path | BinaryIO | None = None,
        mode: OutputMode = OutputMode.INLINE,
    ) -> bytes:
        """Serialize the document and return its bytes.

        ``FILE`` writes to the ``destination`` path, ``INLINE`` writes to the
        ``destination`` stream when one is given.
        """

    def close(self) -> None:
        """Release source files and rendered pages."""
