"""Scan conversion of lines and triangles into integer pixel coordinates.

Stateless functions; all output is plain lists of (x, y) tuples so callers
can write through any addressing policy.

Lines:
    rasterize_line() walks Bresenham's algorithm in all octants with an
    error accumulator starting at half the major delta. The result has
    exactly max(|dx|, |dy|) + 1 points, both endpoints included, and
    consecutive points are 8-connected.

    rasterize_line_clipped() clamps both endpoints into the buffer before
    walking. This is not true segment clipping: a line whose endpoints lie
    far outside the buffer is bent onto the border instead of being cut.

Triangles:
    rasterize_triangle() sorts vertices by y and walks the two bounding
    edges one scanline at a time. Flat-bottom triangles are walked top-down,
    flat-top triangles bottom-up, and general triangles are split at the
    middle vertex's row into one of each. Each scanline becomes a
    horizontal clipped line; rows above or below the buffer, and spans
    lying entirely to one side of it, are dropped.
"""

from typing import List, Sequence, Tuple

from src.utils.compute import clamp_int

Point = Tuple[int, int]
Scanline = List[Point]


def _sign(v: int) -> int:
    return (v > 0) - (v < 0)


def rasterize_line(x0: int, y0: int, x1: int, y1: int) -> List[Point]:
    """Bresenham line from (x0, y0) to (x1, y1), both endpoints included.

    Parameters
    ----------
    x0, y0 : int
        Start pixel
    x1, y1 : int
        End pixel

    Returns
    -------
    list of (int, int)
        ``max(|x1 - x0|, |y1 - y0|) + 1`` points in walk order

    Examples
    --------
    >>> rasterize_line(0, 0, 3, 0)
    [(0, 0), (1, 0), (2, 0), (3, 0)]
    >>> rasterize_line(0, 0, 2, 2)
    [(0, 0), (1, 1), (2, 2)]
    """
    w = x1 - x0
    h = y1 - y0
    w_abs = abs(w)
    h_abs = abs(h)

    # Diagonal step
    dax = _sign(w)
    day = _sign(h)

    # Straight step along the major axis
    if w_abs > h_abs:
        dbx, dby = dax, 0
        major, minor = w_abs, h_abs
    else:
        dbx, dby = 0, day
        major, minor = h_abs, w_abs

    points = []
    n = major >> 1
    x, y = x0, y0
    for _ in range(major + 1):
        points.append((x, y))
        n += minor
        if n >= major:
            n -= major
            x += dax
            y += day
        else:
            x += dbx
            y += dby

    return points


def rasterize_line_clipped(
    x0: int,
    y0: int,
    x1: int,
    y1: int,
    resolution_x: int,
    resolution_y: int
) -> List[Point]:
    """Bresenham line with both endpoints clamped into the buffer first.

    Endpoints are clamped to ``[0, resolution_x) × [0, resolution_y)``
    before walking, so every returned point is in bounds. Returns ``[]``
    when either resolution is zero.
    """
    if resolution_x <= 0 or resolution_y <= 0:
        return []

    max_x = resolution_x - 1
    max_y = resolution_y - 1
    return rasterize_line(
        clamp_int(x0, 0, max_x),
        clamp_int(y0, 0, max_y),
        clamp_int(x1, 0, max_x),
        clamp_int(y1, 0, max_y)
    )


def _scanline(x0: float, x1: float, y: int, resolution_x: int, resolution_y: int) -> Scanline:
    """Horizontal span at row y, truncating x toward zero; [] when off-buffer."""
    if not 0 <= y < resolution_y:
        return []
    start = int(x0)
    end = int(x1)
    if max(start, end) < 0 or min(start, end) >= resolution_x:
        return []
    return rasterize_line_clipped(start, y, end, y, resolution_x, resolution_y)


def _walk_top_down(
    a: Point,
    b: Point,
    c: Point,
    resolution_x: int,
    resolution_y: int
) -> List[Scanline]:
    """Flat-bottom walk (b.y == c.y) from a's row down to b's row inclusive."""
    slope0 = (b[0] - a[0]) / (b[1] - a[1])
    slope1 = (c[0] - a[0]) / (c[1] - a[1])

    x0 = float(a[0])
    x1 = a[0] + 0.5

    scanlines = []
    for y in range(a[1], b[1] + 1):
        scanlines.append(_scanline(x0, x1, y, resolution_x, resolution_y))
        x0 += slope0
        x1 += slope1
    return scanlines


def _walk_bottom_up(
    a: Point,
    b: Point,
    c: Point,
    resolution_x: int,
    resolution_y: int,
    include_top: bool
) -> List[Scanline]:
    """Flat-top walk (a.y == b.y) from c's row up to a's row.

    The top row is included only when ``include_top``; in a split triangle
    it is the shared row already emitted by the upper half. Scanlines are
    returned top-to-bottom.
    """
    slope0 = (c[0] - a[0]) / (c[1] - a[1])
    slope1 = (c[0] - b[0]) / (c[1] - b[1])

    x0 = float(c[0])
    x1 = c[0] + 0.5

    y_end = a[1] - 1 if include_top else a[1]

    scanlines = []
    for y in range(c[1], y_end, -1):
        scanlines.append(_scanline(x0, x1, y, resolution_x, resolution_y))
        x0 -= slope0
        x1 -= slope1

    scanlines.reverse()
    return scanlines


def sort_vertices_by_y(vertices: Sequence[Point]) -> List[Point]:
    """Stable ascending sort of three vertices by y."""
    return sorted(vertices, key=lambda v: v[1])


def rasterize_triangle(
    ax: int,
    ay: int,
    bx: int,
    by: int,
    cx: int,
    cy: int,
    resolution_x: int,
    resolution_y: int
) -> List[Scanline]:
    """Scan-convert a triangle into horizontal pixel runs.

    Parameters
    ----------
    ax, ay, bx, by, cx, cy : int
        Vertices in any order and winding
    resolution_x, resolution_y : int
        Buffer size used to clip each scanline

    Returns
    -------
    list of list of (int, int)
        One run per covered row, ordered top-to-bottom. Rows outside the
        buffer are omitted, so the list is empty when the triangle misses
        the buffer entirely.

    Notes
    -----
    Left edge positions start at the vertex x and right edge positions at
    x + 0.5, both truncated toward zero per row. A general triangle is split
    at D on the long edge A→C at B's row; that row belongs to the upper
    half only. A triangle with all three vertices on one row degenerates to
    a single run from the smallest to the largest x.
    """
    a, b, c = sort_vertices_by_y([(ax, ay), (bx, by), (cx, cy)])

    if a[1] == c[1]:
        xs = (a[0], b[0], c[0])
        run = _scanline(min(xs), max(xs), a[1], resolution_x, resolution_y)
        return [run] if run else []

    if b[1] == c[1]:
        scanlines = _walk_top_down(a, b, c, resolution_x, resolution_y)
    elif a[1] == b[1]:
        scanlines = _walk_bottom_up(a, b, c, resolution_x, resolution_y, include_top=True)
    else:
        d = (int(a[0] + (b[1] - a[1]) / (c[1] - a[1]) * (c[0] - a[0])), b[1])
        scanlines = (
            _walk_top_down(a, b, d, resolution_x, resolution_y)
            + _walk_bottom_up(b, d, c, resolution_x, resolution_y, include_top=False)
        )

    return [run for run in scanlines if run]
