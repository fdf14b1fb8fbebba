"""Per-pixel paint functions for the drawing operations.

A PixelFunction is any callable ``(x, y, old_color) -> Color``. The drawing
operations call it once per covered pixel with the pixel coordinates and the
color currently stored there, and write back whatever it returns.

Factories here cover the common cases: constant fills, barycentric
interpolation across a triangle, linear gradients, checkerboards, and alpha
compositing over the existing pixel.
"""

from typing import Callable, Union

from src.raster.colors import Color
from src.utils.geometry import barycentric_coordinates

PixelFunction = Callable[[float, float, Color], Color]

Paint = Union[Color, PixelFunction]


def constant(color: Color) -> PixelFunction:
    """Always return ``color``."""
    if not isinstance(color, Color):
        raise TypeError(f"color must be a Color, got {type(color).__name__}")
    return lambda x, y, old_color: color


def as_pixel_function(paint: Paint) -> PixelFunction:
    """Wrap a Color as a constant function; pass callables through.

    Raises
    ------
    TypeError
        If paint is neither a Color nor callable
    """
    if isinstance(paint, Color):
        return constant(paint)
    if callable(paint):
        return paint
    raise TypeError(f"paint must be a Color or a callable, got {type(paint).__name__}")


def barycentric_interpolation(
    ax: float,
    ay: float,
    bx: float,
    by: float,
    cx: float,
    cy: float,
    ca: Color = Color.RED,
    cb: Color = Color.GREEN,
    cc: Color = Color.BLUE
) -> PixelFunction:
    """Blend three vertex colors by the barycentric weights of each pixel.

    The weighted sum is normalized with ``min_to_0().max_to_1()`` so pixels
    outside the triangle (negative weights) still produce a valid color.

    Raises
    ------
    ValueError
        If the triangle has zero area
    """
    # Raises on degenerate triangles
    barycentric_coordinates(ax, ay, bx, by, cx, cy, ax, ay)

    def fn(x: float, y: float, old_color: Color) -> Color:
        u, v, w = barycentric_coordinates(ax, ay, bx, by, cx, cy, x, y)
        return (ca * u + cb * v + cc * w).min_to_0().max_to_1()

    return fn


def linear_gradient(
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    ca: Color,
    cb: Color
) -> PixelFunction:
    """Linear ramp from ``ca`` at (x0, y0) to ``cb`` at (x1, y1).

    Pixels are projected onto the gradient axis; the parameter is clamped
    to [0, 1]. A zero-length axis yields ``ca`` everywhere.
    """
    dx = x1 - x0
    dy = y1 - y0
    length_sq = dx * dx + dy * dy

    def fn(x: float, y: float, old_color: Color) -> Color:
        if length_sq == 0.0:
            return ca
        t = ((x - x0) * dx + (y - y0) * dy) / length_sq
        return ca.lerp(cb, min(max(t, 0.0), 1.0))

    return fn


def checkerboard(size: int, ca: Color = Color.WHITE, cb: Color = Color.BLACK) -> PixelFunction:
    """Alternate ``ca``/``cb`` in square cells of ``size`` pixels."""
    if size <= 0:
        raise ValueError(f"size must be > 0, got {size}")

    def fn(x: float, y: float, old_color: Color) -> Color:
        return ca if (int(x // size) + int(y // size)) % 2 == 0 else cb

    return fn


def alpha_over(color: Color) -> PixelFunction:
    """Composite ``color`` over the existing pixel by its alpha."""
    if not isinstance(color, Color):
        raise TypeError(f"color must be a Color, got {type(color).__name__}")
    return lambda x, y, old_color: Color.blend(old_color, color, color.a)
