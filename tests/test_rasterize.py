"""Tests for PDF to image conversion."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
import subprocess

import pytest

from pdfmaker.pdf import rasterize
from pdfmaker.pdf.rasterize import (
    ImageConversionError,
    MagickImageConverter,
    PixmapImageConverter,
    get_pdf_images,
    page_image_path,
    pdf_to_images,
)


class TestGetPdfImages:
    """Tests for locating generated page images."""

    def test_orders_by_page_index(self, tmp_path: Path) -> None:
        for index in (10, 2, 0, 1):
            (tmp_path / f"cert-{index}.png").write_bytes(b"")
        (tmp_path / "cert-notes.png").write_bytes(b"")
        (tmp_path / "cert-3.jpg").write_bytes(b"")

        images = get_pdf_images(tmp_path / "cert.png")

        assert [path.name for path in images] == ["cert-0.png", "cert-1.png", "cert-2.png", "cert-10.png"]

    def test_no_images(self, tmp_path: Path) -> None:
        assert get_pdf_images(tmp_path / "cert.png") == []

    def test_page_image_path(self, tmp_path: Path) -> None:
        assert page_image_path(tmp_path / "cert.jpg", 3) == tmp_path / "cert-3.jpg"


class TestPixmapImageConverter:
    """Tests for PyMuPDF rasterization."""

    def test_writes_one_image_per_page(self, make_pdf: Callable, tmp_path: Path) -> None:
        source = make_pdf("two.pdf", ["One", "Two"])

        images = PixmapImageConverter(dpi=36).convert(source, tmp_path / "two.png")

        assert images == [tmp_path / "two-0.png", tmp_path / "two-1.png"]
        assert all(path.stat().st_size > 0 for path in images)
        assert get_pdf_images(tmp_path / "two.png") == images

    def test_default_converter(self, make_pdf: Callable, tmp_path: Path) -> None:
        source = make_pdf("one.pdf", ["One"])
        assert pdf_to_images(source, tmp_path / "one.jpg") == [tmp_path / "one-0.jpg"]

    def test_missing_input(self, tmp_path: Path) -> None:
        with pytest.raises(ImageConversionError):
            PixmapImageConverter().convert(tmp_path / "missing.pdf", tmp_path / "out.png")


class TestMagickImageConverter:
    """Tests for the ImageMagick command invocation."""

    def test_command(self, tmp_path: Path) -> None:
        cmd = MagickImageConverter().command("in.pdf", tmp_path / "out.png")
        assert cmd == [
            "magick",
            "-density",
            "300",
            "-quality",
            "100",
            "in.pdf",
            str(tmp_path / "out-%d.png"),
        ]

    def test_returns_generated_images(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(cmd: list[str], **kwargs: object) -> subprocess.CompletedProcess:
            for index in range(2):
                Path(cmd[-1].replace("%d", str(index))).write_bytes(b"img")
            return subprocess.CompletedProcess(cmd, 0)

        monkeypatch.setattr(rasterize.subprocess, "run", fake_run)

        images = pdf_to_images("in.pdf", tmp_path / "out.png", converter=MagickImageConverter())

        assert images == [tmp_path / "out-0.png", tmp_path / "out-1.png"]

    def test_failure_raises(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(cmd: list[str], **kwargs: object) -> subprocess.CompletedProcess:
            raise subprocess.CalledProcessError(1, cmd)

        monkeypatch.setattr(rasterize.subprocess, "run", fake_run)

        with pytest.raises(ImageConversionError, match="Image conversion failed"):
            MagickImageConverter().convert("in.pdf", tmp_path / "out.png")

    def test_missing_executable(self, tmp_path: Path) -> None:
        converter = MagickImageConverter(executable="definitely-not-installed-magick")
        with pytest.raises(ImageConversionError):
            converter.convert("in.pdf", tmp_path / "out.png")
