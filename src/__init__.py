"""Raster Film: 2D raster images and progressive sample accumulation.

This package contains an in-memory pixel buffer with drawing primitives,
a line/triangle rasterizer, RGBA/XYZ color values, convolution filters,
and a film that reconstructs images from weighted sub-pixel samples.

Architecture layers (strict one-way dependency):
    scripts/ → src/film/ → src/raster/ → src/utils/

Key invariants:
    - Pixel coordinates: x right, y down, top-left origin, row-major storage
    - Out-of-bounds pixel access is defined (no-op or wrap), never an error
    - Colors are immutable and always finite
    - Film state is linear XYZ; display encoding only at render_to_image
    - YAML-only configs
"""

__version__ = "1.0.0"
