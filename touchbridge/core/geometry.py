"""Mapping between device coordinates and canvas pixels.

Device space is the integer grid of the emulated touch screen
(`DEVICE_WIDTH` x `DEVICE_HEIGHT`). Canvas space is the on-screen preview
rectangle, offset by its margins. All arithmetic is integer so that every
device point survives a pixel round trip when the canvas is at least as large
as the device grid.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from touchbridge.core.state import DEVICE_HEIGHT, DEVICE_WIDTH, clamp


def _scale(value: int, src_span: int, dst_span: int) -> int:
    """floor(value * dst_span / src_span + 0.5)"""
    if src_span <= 0:
        return 0
    return (2 * value * dst_span + src_span) // (2 * src_span)


@dataclass(frozen=True)
class CoordinateMapper:
    canvas_width: int
    canvas_height: int
    margin_left: int = 0
    margin_top: int = 0
    device_width: int = DEVICE_WIDTH
    device_height: int = DEVICE_HEIGHT

    def __post_init__(self):
        if self.canvas_width < 1 or self.canvas_height < 1:
            raise ValueError(f"canvas must be at least 1x1, got {self.canvas_width}x{self.canvas_height}")
        if self.device_width < 1 or self.device_height < 1:
            raise ValueError(f"device grid must be at least 1x1, got {self.device_width}x{self.device_height}")

    @classmethod
    def fitted(cls, avail_width: int, avail_height: int, margin_left: int = 0, margin_top: int = 0,
               device_width: int = DEVICE_WIDTH, device_height: int = DEVICE_HEIGHT):
        """Largest canvas inside the available area that keeps the device aspect ratio.

        The canvas is centred horizontally in the available width.
        """
        width = max(1, min(avail_width, avail_height * device_width // device_height))
        height = max(1, min(avail_height, avail_width * device_height // device_width))
        left = margin_left + max(0, (avail_width - width) // 2)
        return cls(width, height, left, margin_top, device_width, device_height)

    def device_to_pixel(self, x: int, y: int) -> Tuple[int, int]:
        px = self.margin_left + _scale(x, self.device_width - 1, self.canvas_width - 1)
        py = self.margin_top + _scale(y, self.device_height - 1, self.canvas_height - 1)
        return px, py

    def pixel_to_device(self, px: int, py: int) -> Optional[Tuple[int, int]]:
        """Device point under a pixel, or None when the pixel is outside the canvas."""
        if not (self.margin_left <= px < self.margin_left + self.canvas_width):
            return None
        if not (self.margin_top <= py < self.margin_top + self.canvas_height):
            return None
        x = _scale(px - self.margin_left, self.canvas_width - 1, self.device_width - 1)
        y = _scale(py - self.margin_top, self.canvas_height - 1, self.device_height - 1)
        if 0 <= x < self.device_width and 0 <= y < self.device_height:
            return x, y
        return None

    def clamp_pixel(self, px: int, py: int) -> Tuple[int, int]:
        return (clamp(px, self.margin_left, self.margin_left + self.canvas_width - 1),
                clamp(py, self.margin_top, self.margin_top + self.canvas_height - 1))

    def marker_origin(self, x: int, y: int, marker_width: int, marker_height: int) -> Tuple[int, int]:
        """Top-left pixel for drawing a marker centred on device point (x, y)."""
        px, py = self.device_to_pixel(x, y)
        return px - marker_width // 2, py - marker_height // 2
