"""Rasterize PDF pages to image files."""

from __future__ import annotations

import logging
from pathlib import Path
import re
import subprocess
from typing import Protocol

import fitz

logger = logging.getLogger(__name__)


class ImageConversionError(RuntimeError):
    """Raised when a PDF cannot be converted to images."""


class ImageConverter(Protocol):
    def convert(self, input_file: str | Path, output_file: str | Path) -> list[Path]: ...


def page_image_path(output_file: str | Path, page_index: int) -> Path:
    output = Path(output_file)
    return output.with_name(f"{output.stem}-{page_index}{output.suffix}")


def get_pdf_images(filename: str | Path) -> list[Path]:
    """Return the ``<stem>-<n><suffix>`` images next to ``filename`` by page."""
    output = Path(filename)
    pattern = re.compile(rf"^{re.escape(output.stem)}-(\d+){re.escape(output.suffix)}$")
    matches: list[tuple[int, Path]] = []
    for candidate in output.parent.glob(f"{output.stem}-*{output.suffix}"):
        found = pattern.match(candidate.name)
        if found:
            matches.append((int(found.group(1)), candidate))
    return [path for _, path in sorted(matches)]


class PixmapImageConverter:
    def __init__(self, dpi: int = 300, quality: int = 100) -> None:
        self.dpi = dpi
        self.quality = quality

    def convert(self, input_file: str | Path, output_file: str | Path) -> list[Path]:
        source = Path(input_file)
        written: list[Path] = []
        try:
            with fitz.open(source) as document:
                for page_index in range(document.page_count):
                    page = document.load_page(page_index)
                    pix = page.get_pixmap(dpi=self.dpi, alpha=False, annots=True)
                    target = page_image_path(output_file, page_index)
                    pix.save(str(target), jpg_quality=self.quality)
                    written.append(target)
        except Exception as exc:
            raise ImageConversionError(f"Failed to rasterize PDF: {source}") from exc

        logger.debug("Rasterized %s into %d image(s)", source, len(written))
        return written


class MagickImageConverter:
    """Convert with the ImageMagick command line."""

    def __init__(self, density: int = 300, quality: int = 100, executable: str = "magick") -> None:
        self.density = density
        self.quality = quality
        self.executable = executable

    def command(self, input_file: str | Path, output_file: str | Path) -> list[str]:
        output = Path(output_file)
        pattern = output.with_name(f"{output.stem}-%d{output.suffix}")
        return [
            self.executable,
            "-density",
            str(self.density),
            "-quality",
            str(self.quality),
            str(input_file),
            str(pattern),
        ]

    def convert(self, input_file: str | Path, output_file: str | Path) -> list[Path]:
        cmd = self.command(input_file, output_file)
        try:
            subprocess.run(cmd, check=True, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise ImageConversionError(f"Image conversion failed: {' '.join(cmd)}") from exc
        return get_pdf_images(output_file)


def pdf_to_images(
    input_file: str | Path,
    output_file: str | Path,
    converter: ImageConverter | None = None,
) -> list[Path]:
    converter = converter or PixmapImageConverter()
    return converter.convert(input_file, output_file)
