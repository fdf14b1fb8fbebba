"""Raster layer: colors, pixel buffers, scan conversion and drawing.

Modules:
    - colors: Color (RGBA) and XYZColor immutable values
    - pixel_buffer: PixelBuffer storage, AddressMode, codec boundary
    - rasterizer: Bresenham lines, scanline triangles
    - pixel_functions: per-pixel paint callables
    - drawing: line/circle/rectangle/triangle draw and fill
    - convolution: kernel presets and convolve()

Depends only on src.utils.
"""

from .colors import Color, XYZColor
from .pixel_buffer import AddressMode, PixelBuffer

__all__ = [
    'AddressMode',
    'Color',
    'PixelBuffer',
    'XYZColor',
]
