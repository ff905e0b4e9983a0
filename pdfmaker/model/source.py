"""Source PDF handles used as page templates."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pypdf import PageObject, PdfReader


@dataclass(slots=True)
class SourcePdf:
    path: Path
    reader: PdfReader

    @property
    def page_count(self) -> int:
        return len(self.reader.pages)

    def page(self, page_number: int) -> PageObject:
        """Return a page by its 1-based number."""
        if page_number < 1 or page_number > self.page_count:
            raise IndexError(
                f"Page {page_number} out of range for {self.path} ({self.page_count} pages)"
            )
        return self.reader.pages[page_number - 1]
