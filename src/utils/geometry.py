"""Planar geometry helpers for raster operations.

Provides:
    - Barycentric coordinates of a point relative to a triangle
    - Rectangle overlap in global and local coordinate frames

Used by:
    - Pixel functions: barycentric color interpolation over triangles
    - PixelBuffer.draw_image / crop: clipping one rectangle against another

All coordinates are pixels, x to the right and y down (top-left origin).
"""

from typing import NamedTuple, Optional, Tuple


class Rect(NamedTuple):
    """Half-open rectangle ``[x0, x1) × [y0, y1)``."""
    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    def is_empty(self) -> bool:
        return self.x1 <= self.x0 or self.y1 <= self.y0


def barycentric_coordinates(
    ax: float, ay: float,
    bx: float, by: float,
    cx: float, cy: float,
    px: float, py: float
) -> Tuple[float, float, float]:
    """Barycentric coordinates (u, v, w) of P with respect to triangle ABC.

    Parameters
    ----------
    ax, ay, bx, by, cx, cy : float
        Triangle vertices
    px, py : float
        Query point

    Returns
    -------
    tuple
        (u, v, w) with u + v + w == 1; weights of A, B and C respectively

    Raises
    ------
    ValueError
        If the triangle is degenerate (zero signed area)

    Notes
    -----
    Uses the 2D cross-product form:
        v = (AP × AC) / (AB × AC), w = (AB × AP) / (AB × AC), u = 1 - v - w
    """
    ab_x, ab_y = bx - ax, by - ay
    ac_x, ac_y = cx - ax, cy - ay
    ap_x, ap_y = px - ax, py - ay

    denominator = ab_x * ac_y - ac_x * ab_y
    if denominator == 0.0:
        raise ValueError(
            f"Degenerate triangle ({ax}, {ay}), ({bx}, {by}), ({cx}, {cy}) has zero area"
        )

    v = (ap_x * ac_y - ac_x * ap_y) / denominator
    w = (ab_x * ap_y - ap_x * ab_y) / denominator
    u = 1.0 - v - w

    return u, v, w


def intersect_rects(a: Rect, b: Rect) -> Optional[Rect]:
    """Intersection of two half-open rectangles, or None when disjoint."""
    x0 = max(a.x0, b.x0)
    y0 = max(a.y0, b.y0)
    x1 = min(a.x1, b.x1)
    y1 = min(a.y1, b.y1)
    result = Rect(x0, y0, x1, y1)
    return None if result.is_empty() else result


def placed_overlap(
    dst_w: int,
    dst_h: int,
    src_w: int,
    src_h: int,
    x: int,
    y: int
) -> Optional[Tuple[Rect, Rect]]:
    """Overlap of a src rectangle placed at (x, y) on a dst rectangle.

    Parameters
    ----------
    dst_w, dst_h : int
        Destination size; its frame is ``[0, dst_w) × [0, dst_h)``
    src_w, src_h : int
        Source size
    x, y : int
        Position of the source's top-left corner in the destination frame

    Returns
    -------
    tuple or None
        (dst_rect, src_rect): the same region expressed in each local frame,
        or None when nothing overlaps
    """
    overlap = intersect_rects(Rect(0, 0, dst_w, dst_h), Rect(x, y, x + src_w, y + src_h))
    if overlap is None:
        return None
    src_rect = Rect(overlap.x0 - x, overlap.y0 - y, overlap.x1 - x, overlap.y1 - y)
    return overlap, src_rect
