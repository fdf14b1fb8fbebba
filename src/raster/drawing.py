"""Drawing operations on a PixelBuffer.

Every operation takes the target buffer first, then geometry, then the
paint: a Color (constant fill) or a PixelFunction ``(x, y, old) -> Color``.
Writes go through PixelBuffer.set_color with the given AddressMode, so
under NO_CHANGE anything outside the buffer is silently skipped and under
WRAP_AROUND it wraps onto the opposite edge.

Shapes:
    draw_line        Bresenham line, both endpoints included
    draw_circle      1-pixel annulus (r - 1)^2 < d^2 <= r^2
    fill_circle      disc d^2 <= r^2
    draw_rectangle   border pixels of [x, x + w) × [y, y + h)
    fill_rectangle   every pixel of [x, x + w) × [y, y + h)
    draw_triangle    three edges A→B, B→C, C→A
    fill_triangle    rasterizer scanline runs, clipped to the buffer

Degenerate geometry (zero radius, empty rectangle, collinear triangle)
draws whatever pixels it covers, possibly none, and never raises.
"""

import logging
from typing import Iterable, Optional, Tuple

from src.raster import rasterizer
from src.raster.colors import Color
from src.raster.pixel_buffer import AddressMode, PixelBuffer
from src.raster.pixel_functions import Paint, PixelFunction, as_pixel_function

logger = logging.getLogger(__name__)


def _paint_pixels(
    buffer: PixelBuffer,
    pixels: Iterable[Tuple[int, int]],
    fn: PixelFunction,
    mode: AddressMode
) -> int:
    """Apply fn to each pixel; returns the number of pixels visited."""
    count = 0
    for x, y in pixels:
        old = buffer.get_color(x, y, mode)
        new = fn(x, y, old)
        if not isinstance(new, Color):
            raise TypeError(f"pixel function returned {new!r} at x={x}, y={y}")
        buffer.set_color(x, y, new, mode)
        count += 1
    return count


def draw_line(
    buffer: PixelBuffer,
    x0: int,
    y0: int,
    x1: int,
    y1: int,
    paint: Paint = Color.BLACK,
    mode: AddressMode = AddressMode.NO_CHANGE
) -> None:
    """Draw the Bresenham line from (x0, y0) to (x1, y1)."""
    fn = as_pixel_function(paint)
    _paint_pixels(buffer, rasterizer.rasterize_line(x0, y0, x1, y1), fn, mode)


def _circle_pixels(cx: int, cy: int, radius: int, outline: bool):
    r_sq = radius * radius
    inner_sq = (radius - 1) * (radius - 1)
    for i in range(-radius, radius + 1):
        for j in range(-radius, radius + 1):
            d_sq = i * i + j * j
            if d_sq <= r_sq and (not outline or d_sq > inner_sq):
                yield cx + j, cy + i


def draw_circle(
    buffer: PixelBuffer,
    cx: int,
    cy: int,
    radius: int,
    paint: Paint = Color.BLACK,
    mode: AddressMode = AddressMode.NO_CHANGE
) -> None:
    """Draw a 1-pixel-wide circle outline centred on (cx, cy)."""
    fn = as_pixel_function(paint)
    _paint_pixels(buffer, _circle_pixels(cx, cy, radius, outline=True), fn, mode)


def fill_circle(
    buffer: PixelBuffer,
    cx: int,
    cy: int,
    radius: int,
    paint: Paint = Color.BLACK,
    mode: AddressMode = AddressMode.NO_CHANGE
) -> None:
    """Fill every pixel within ``radius`` of (cx, cy)."""
    fn = as_pixel_function(paint)
    _paint_pixels(buffer, _circle_pixels(cx, cy, radius, outline=False), fn, mode)


def _rectangle_pixels(x: int, y: int, w: int, h: int, outline: bool):
    for i in range(y, y + h):
        for j in range(x, x + w):
            if not outline or i == y or i == y + h - 1 or j == x or j == x + w - 1:
                yield j, i


def draw_rectangle(
    buffer: PixelBuffer,
    x: int,
    y: int,
    w: int,
    h: int,
    paint: Paint = Color.BLACK,
    mode: AddressMode = AddressMode.NO_CHANGE
) -> None:
    """Draw the border of the w×h rectangle with top-left corner (x, y)."""
    fn = as_pixel_function(paint)
    _paint_pixels(buffer, _rectangle_pixels(x, y, w, h, outline=True), fn, mode)


def fill_rectangle(
    buffer: PixelBuffer,
    x: int,
    y: int,
    w: int,
    h: int,
    paint: Paint = Color.BLACK,
    mode: AddressMode = AddressMode.NO_CHANGE
) -> None:
    """Fill every pixel of the w×h rectangle with top-left corner (x, y)."""
    fn = as_pixel_function(paint)
    _paint_pixels(buffer, _rectangle_pixels(x, y, w, h, outline=False), fn, mode)


def draw_triangle(
    buffer: PixelBuffer,
    ax: int,
    ay: int,
    bx: int,
    by: int,
    cx: int,
    cy: int,
    paint: Paint = Color.BLACK,
    mode: AddressMode = AddressMode.NO_CHANGE,
    paint_bc: Optional[Paint] = None,
    paint_ca: Optional[Paint] = None
) -> None:
    """Draw the three edges A→B, B→C and C→A.

    ``paint`` is used for A→B and, unless overridden with ``paint_bc`` /
    ``paint_ca``, for the other two edges.
    """
    edges = (
        (ax, ay, bx, by, paint),
        (bx, by, cx, cy, paint if paint_bc is None else paint_bc),
        (cx, cy, ax, ay, paint if paint_ca is None else paint_ca),
    )
    for x0, y0, x1, y1, edge_paint in edges:
        draw_line(buffer, x0, y0, x1, y1, edge_paint, mode)


def fill_triangle(
    buffer: PixelBuffer,
    ax: int,
    ay: int,
    bx: int,
    by: int,
    cx: int,
    cy: int,
    paint: Paint = Color.BLACK,
    mode: AddressMode = AddressMode.NO_CHANGE
) -> None:
    """Fill the triangle ABC using the rasterizer's scanline runs.

    Runs are clipped to the buffer by the rasterizer, so ``mode`` only
    affects how the pixel function's reads and writes are addressed.
    """
    fn = as_pixel_function(paint)
    scanlines = rasterizer.rasterize_triangle(ax, ay, bx, by, cx, cy, buffer.width, buffer.height)
    count = _paint_pixels(buffer, (p for run in scanlines for p in run), fn, mode)
    logger.debug(f"Filled triangle ({ax},{ay}) ({bx},{by}) ({cx},{cy}): {len(scanlines)} runs, {count} px")
