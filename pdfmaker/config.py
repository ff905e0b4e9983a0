"""Document configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class DocumentConfig:
    unit: str = "in"
    page_size: str | tuple[float, float] = "letter"
    orientation: str = "P"
    page_margin_x: float = 0.0
    page_margin_y: float = 0.0
    draw_borders: bool = False
    # Vertical limit used by add_page_and_field, in document units.
    page_break_height: float = 11.0
    box: str = "/CropBox"
