"""PDF loading helpers."""

from __future__ import annotations

import logging
from pathlib import Path

from pypdf import PdfReader

from pdfmaker.model.source import SourcePdf

logger = logging.getLogger(__name__)


class PdfLoadError(RuntimeError):
    """Raised when a PDF cannot be opened."""


def load_pdf(path: str | Path) -> SourcePdf:
    source_path = Path(path)
    if not source_path.is_file():
        raise PdfLoadError(f"File not found: {source_path}")

    try:
        reader = PdfReader(str(source_path))
        page_count = len(reader.pages)
    except Exception as exc:
        raise PdfLoadError(f"Failed to open PDF: {source_path}") from exc

    logger.debug("Loaded %s (%d pages)", source_path, page_count)
    return SourcePdf(path=source_path, reader=reader)
