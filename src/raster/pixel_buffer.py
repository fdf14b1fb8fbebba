"""In-memory RGBA pixel buffer with per-pixel sample counts.

Provides:
    - PixelBuffer: width×height colors (float64 RGBA) plus int32 sample counts
    - AddressMode: per-call policy for out-of-bounds coordinates/indices
    - Codec boundary: interleaved bytes and packed 32-bit ints in any channel
      order; PNG load/save through src.utils.fs (Pillow)
    - Whole-buffer operations: clear, copy, crop, flip, resize, update,
      draw_image, blend, random

Storage layout:
    colors:        (H, W, 4) float64, row-major (flat index = y * W + x)
    sample_counts: (H, W) int32, number of samples averaged into each pixel

Addressing:
    AddressMode.NO_CHANGE (default): out-of-bounds reads return the default
        color, writes are dropped
    AddressMode.WRAP_AROUND: coordinates reduced with a non-negative modulo;
        on a zero-size buffer this degrades to NO_CHANGE

Out-of-bounds access is never an error under either policy.

Invariants:
    - width >= 0, height >= 0, width * height <= MAX_RESOLUTION
    - colors.shape == (height, width, 4); every stored value finite
    - set_color() sets the sample count to 1; add_color_sample() increments it
"""

import logging
import math
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np

from src.raster.colors import Color, channel_indices
from src.utils import compute, fs, geometry

logger = logging.getLogger(__name__)


class AddressMode(Enum):
    """Out-of-bounds policy for pixel coordinates and flat indices."""
    NO_CHANGE = "no_change"
    WRAP_AROUND = "wrap_around"


def _require_mode(mode) -> AddressMode:
    if not isinstance(mode, AddressMode):
        raise TypeError(f"mode must be an AddressMode, got {mode!r}")
    return mode


def _require_color(color, name: str = "color") -> Color:
    if not isinstance(color, Color):
        raise TypeError(f"{name} must be a Color, got {type(color).__name__}")
    return color


class PixelBuffer:
    """Mutable width×height image of RGBA colors.

    Parameters
    ----------
    width, height : int
        Dimensions in pixels, >= 0
    fill : Color
        Initial color of every pixel, default Color.BLACK

    Raises
    ------
    TypeError
        If a dimension is not an int or fill is not a Color
    ValueError
        If a dimension is negative or width * height overflows

    Notes
    -----
    Not thread-safe; callers partition or synchronize concurrent access.
    """

    def __init__(self, width: int, height: int, fill: Color = Color.BLACK):
        width, height, _ = compute.require_resolution(width, height)
        fill = _require_color(fill, "fill")

        self.colors = np.empty((height, width, 4), dtype=np.float64)
        self.colors[...] = fill.to_tuple()
        self.sample_counts = np.zeros((height, width), dtype=np.int32)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def _wrap(cls, colors: np.ndarray, sample_counts: Optional[np.ndarray] = None) -> "PixelBuffer":
        height, width = colors.shape[:2]
        compute.require_resolution(width, height)
        buf = cls.__new__(cls)
        buf.colors = colors
        buf.sample_counts = (
            sample_counts if sample_counts is not None
            else np.zeros((height, width), dtype=np.int32)
        )
        return buf

    @classmethod
    def from_colors(cls, width: int, height: int, colors: Sequence[Color]) -> "PixelBuffer":
        """Build from a row-major sequence of exactly width * height Colors."""
        width, height, resolution = compute.require_resolution(width, height)
        compute.require_exact_length(colors, resolution, "colors")

        data = np.empty((resolution, 4), dtype=np.float64)
        for i, color in enumerate(colors):
            if color is None:
                raise TypeError(f"colors[{i}] is None")
            data[i] = _require_color(color, f"colors[{i}]").to_tuple()
        return cls._wrap(data.reshape(height, width, 4))

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Build from a (H, W, 3) or (H, W, 4) float array (alpha 1.0 when absent).

        Raises
        ------
        ValueError
            If the shape is wrong or any value is NaN/Inf
        """
        array = np.asarray(array, dtype=np.float64)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3) or (H, W, 4) array, got {array.shape}")
        compute.assert_finite(array, "array")

        height, width = array.shape[:2]
        colors = np.ones((height, width, 4), dtype=np.float64)
        colors[..., :array.shape[2]] = array
        return cls._wrap(colors)

    @classmethod
    def from_bytes(
        cls,
        width: int,
        height: int,
        data: Union[bytes, bytearray, np.ndarray],
        order: str = "RGBA"
    ) -> "PixelBuffer":
        """Build from interleaved 8-bit channels.

        Parameters
        ----------
        width, height : int
            Dimensions in pixels
        data : bytes-like or uint8 array
            ``width * height * len(order)`` bytes, row-major
        order : str
            Channel order, a 3- or 4-letter permutation drawn from "RGBA"
            (e.g. "RGBA", "BGRA", "ARGB", "RGB", "BGR")

        Raises
        ------
        ValueError
            If the order is invalid or the data length does not match
        """
        width, height, resolution = compute.require_resolution(width, height)
        indices = channel_indices(order)
        channels = len(indices)

        if isinstance(data, np.ndarray):
            raw = np.asarray(data, dtype=np.uint8).ravel()
        else:
            raw = np.frombuffer(bytes(data), dtype=np.uint8)
        compute.require_exact_length(raw, resolution * channels, "data")

        raw = raw.reshape(height, width, channels)
        colors = np.ones((height, width, 4), dtype=np.float64)
        for position, index in enumerate(indices):
            colors[..., index] = raw[..., position] / 255.0
        return cls._wrap(colors)

    @classmethod
    def from_packed(
        cls,
        width: int,
        height: int,
        values: Sequence[int],
        order: str = "ARGB"
    ) -> "PixelBuffer":
        """Build from one packed 32-bit int per pixel (first channel = high byte)."""
        width, height, resolution = compute.require_resolution(width, height)
        indices = channel_indices(order, lengths=(4,))

        packed = np.asarray(values, dtype=np.int64).ravel() & 0xFFFFFFFF
        compute.require_exact_length(packed, resolution, "values")

        packed = packed.reshape(height, width)
        colors = np.empty((height, width, 4), dtype=np.float64)
        for position, index in enumerate(indices):
            colors[..., index] = ((packed >> (8 * (3 - position))) & 0xFF) / 255.0
        return cls._wrap(colors)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "PixelBuffer":
        """Load any Pillow-readable image file (RGBA, sample counts 0)."""
        buf = cls._wrap(fs.load_image_rgba(path).astype(np.float64))
        logger.info(f"Loaded {buf.width}x{buf.height} pixel buffer from {path}")
        return buf

    @classmethod
    def random(
        cls,
        width: int,
        height: int,
        rng: Optional[np.random.Generator] = None
    ) -> "PixelBuffer":
        """Uniform random RGB in [0, 1) per pixel, alpha 1.0."""
        width, height, _ = compute.require_resolution(width, height)
        rng = rng if rng is not None else np.random.default_rng()
        colors = np.ones((height, width, 4), dtype=np.float64)
        colors[..., :3] = rng.random((height, width, 3))
        return cls._wrap(colors)

    @classmethod
    def from_tensor(cls, tensor) -> "PixelBuffer":
        """Build from a (C, H, W) torch tensor with C in {3, 4}."""
        from src.utils import torch_utils

        return cls.from_array(torch_utils.tensor_to_array(tensor))

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self.colors.shape[1]

    @property
    def height(self) -> int:
        return self.colors.shape[0]

    @property
    def resolution(self) -> int:
        return self.width * self.height

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def _locate(self, x: int, y: int, mode: AddressMode) -> Optional[Tuple[int, int]]:
        """Resolve (x, y) to an in-bounds (row, col) or None under mode."""
        mode = _require_mode(mode)
        width, height = self.width, self.height
        if 0 <= x < width and 0 <= y < height:
            return y, x
        if mode is AddressMode.WRAP_AROUND and width > 0 and height > 0:
            return compute.wrap_index(y, height), compute.wrap_index(x, width)
        return None

    def _locate_index(self, index: int, mode: AddressMode) -> Optional[Tuple[int, int]]:
        mode = _require_mode(mode)
        resolution = self.resolution
        if not 0 <= index < resolution:
            if mode is AddressMode.WRAP_AROUND and resolution > 0:
                index = compute.wrap_index(index, resolution)
            else:
                return None
        return divmod(index, self.width)

    def _read(self, cell: Tuple[int, int]) -> Color:
        return Color(*self.colors[cell])

    def _write(self, cell: Tuple[int, int], color: Color, count: int = 1) -> None:
        self.colors[cell] = color.to_tuple()
        self.sample_counts[cell] = count

    def _accumulate(self, cell: Tuple[int, int], color: Color) -> None:
        count = int(self.sample_counts[cell]) + 1
        self._write(cell, self._read(cell).add_sample(color, count), count)

    def get_color(
        self,
        x: int,
        y: int,
        mode: AddressMode = AddressMode.NO_CHANGE,
        default: Color = Color.BLACK
    ) -> Color:
        """Color at (x, y); ``default`` when out of bounds and not wrapped."""
        cell = self._locate(x, y, mode)
        return default if cell is None else self._read(cell)

    def get_color_at(
        self,
        index: int,
        mode: AddressMode = AddressMode.NO_CHANGE,
        default: Color = Color.BLACK
    ) -> Color:
        """Color at flat row-major index; ``default`` when out of bounds."""
        cell = self._locate_index(index, mode)
        return default if cell is None else self._read(cell)

    def get_color_bilinear(
        self,
        x: float,
        y: float,
        mode: AddressMode = AddressMode.NO_CHANGE,
        default: Color = Color.BLACK
    ) -> Color:
        """Bilinearly interpolated color at a continuous position.

        Integer positions read the pixel exactly. Otherwise the four
        neighbours at floor/ceil of each axis are blended by the fractional
        offsets (neighbours resolved with ``mode``; result alpha is 1.0, as
        for Color.blend).
        """
        min_x, max_x = math.floor(x), math.ceil(x)
        min_y, max_y = math.floor(y), math.ceil(y)

        if min_x == max_x and min_y == max_y:
            return self.get_color(min_x, min_y, mode, default)

        c00 = self.get_color(min_x, min_y, mode, default)
        c01 = self.get_color(max_x, min_y, mode, default)
        c10 = self.get_color(min_x, max_y, mode, default)
        c11 = self.get_color(max_x, max_y, mode, default)

        tx = x - min_x
        ty = y - min_y
        top = Color.blend(c00, c01, tx)
        bottom = Color.blend(c10, c11, tx)
        return Color.blend(top, bottom, ty)

    def get_sample_count(self, x: int, y: int, mode: AddressMode = AddressMode.NO_CHANGE) -> int:
        """Sample count at (x, y); 0 when out of bounds and not wrapped."""
        cell = self._locate(x, y, mode)
        return 0 if cell is None else int(self.sample_counts[cell])

    def set_color(
        self,
        x: int,
        y: int,
        color: Color,
        mode: AddressMode = AddressMode.NO_CHANGE
    ) -> None:
        """Overwrite pixel (x, y) and reset its sample count to 1."""
        color = _require_color(color)
        cell = self._locate(x, y, mode)
        if cell is not None:
            self._write(cell, color)

    def set_color_at(
        self,
        index: int,
        color: Color,
        mode: AddressMode = AddressMode.NO_CHANGE
    ) -> None:
        color = _require_color(color)
        cell = self._locate_index(index, mode)
        if cell is not None:
            self._write(cell, color)

    def add_color_sample(
        self,
        x: int,
        y: int,
        color: Color,
        mode: AddressMode = AddressMode.NO_CHANGE
    ) -> None:
        """Fold ``color`` into the running average at (x, y) (count += 1)."""
        color = _require_color(color)
        cell = self._locate(x, y, mode)
        if cell is not None:
            self._accumulate(cell, color)

    def add_color_sample_at(
        self,
        index: int,
        color: Color,
        mode: AddressMode = AddressMode.NO_CHANGE
    ) -> None:
        color = _require_color(color)
        cell = self._locate_index(index, mode)
        if cell is not None:
            self._accumulate(cell, color)

    # ------------------------------------------------------------------
    # Whole-buffer operations
    # ------------------------------------------------------------------

    def clear(self, color: Color = Color.BLACK) -> None:
        """Fill every pixel with color and reset sample counts to 0."""
        color = _require_color(color)
        self.colors[...] = color.to_tuple()
        self.sample_counts[...] = 0

    def copy(self) -> "PixelBuffer":
        return self._wrap(self.colors.copy(), self.sample_counts.copy())

    def crop(
        self,
        ax: int,
        ay: int,
        bx: int,
        by: int,
        fill: Color = Color.BLACK,
        repeat_x: bool = False,
        repeat_y: bool = False
    ) -> "PixelBuffer":
        """Copy out the region spanned by corners (ax, ay) and (bx, by).

        The region is ``[min(ax, bx), max(ax, bx)) × [min(ay, by), max(ay, by))``
        and may extend outside this buffer. Outside pixels are taken from
        ``fill`` (sample count 1), or wrapped around along an axis whose
        repeat flag is set.

        Returns
        -------
        PixelBuffer
            New buffer of size (max_x - min_x) × (max_y - min_y)
        """
        fill = _require_color(fill, "fill")
        min_x, max_x = min(ax, bx), max(ax, bx)
        min_y, max_y = min(ay, by), max(ay, by)

        xs = np.arange(min_x, max_x)
        ys = np.arange(min_y, max_y)
        if repeat_x and self.width > 0:
            xs = np.mod(xs, self.width)
        if repeat_y and self.height > 0:
            ys = np.mod(ys, self.height)

        valid_x = (xs >= 0) & (xs < self.width)
        valid_y = (ys >= 0) & (ys < self.height)

        result = PixelBuffer(len(xs), len(ys), fill)
        result.sample_counts[...] = 1

        if valid_x.any() and valid_y.any():
            dst_rows = np.nonzero(valid_y)[0]
            dst_cols = np.nonzero(valid_x)[0]
            src_rows = ys[valid_y]
            src_cols = xs[valid_x]
            result.colors[np.ix_(dst_rows, dst_cols)] = self.colors[np.ix_(src_rows, src_cols)]
            result.sample_counts[np.ix_(dst_rows, dst_cols)] = self.sample_counts[np.ix_(src_rows, src_cols)]

        return result

    def flip(self, flip_x: bool, flip_y: bool) -> None:
        """Mirror in place: flip_x reverses columns, flip_y reverses rows."""
        col_step = -1 if flip_x else 1
        row_step = -1 if flip_y else 1
        self.colors = self.colors[::row_step, ::col_step].copy()
        self.sample_counts = self.sample_counts[::row_step, ::col_step].copy()

    def resize(self, width: int, height: int, fill: Color = Color.BLACK) -> None:
        """Change the resolution in place.

        The overlap with the old top-left-anchored content (colors and
        sample counts) is kept; new pixels get ``fill`` with sample count 0.
        """
        width, height, _ = compute.require_resolution(width, height)
        fill = _require_color(fill, "fill")

        colors = np.empty((height, width, 4), dtype=np.float64)
        colors[...] = fill.to_tuple()
        counts = np.zeros((height, width), dtype=np.int32)

        keep_h = min(height, self.height)
        keep_w = min(width, self.width)
        colors[:keep_h, :keep_w] = self.colors[:keep_h, :keep_w]
        counts[:keep_h, :keep_w] = self.sample_counts[:keep_h, :keep_w]

        logger.debug(f"Resized pixel buffer {self.width}x{self.height} -> {width}x{height}")
        self.colors = colors
        self.sample_counts = counts

    def update(
        self,
        fn: Callable[[Color], Color],
        region: Optional[Tuple[int, int, int, int]] = None
    ) -> None:
        """Replace each pixel color with ``fn(old)`` over a clipped region.

        Parameters
        ----------
        fn : Callable[[Color], Color]
            Per-pixel transform
        region : tuple, optional
            Corners (ax, ay, bx, by); the whole buffer when None

        Raises
        ------
        TypeError
            If fn returns something other than a Color
        """
        if region is None:
            region = (0, 0, self.width, self.height)
        ax, ay, bx, by = region
        rect = geometry.intersect_rects(
            geometry.Rect(min(ax, bx), min(ay, by), max(ax, bx), max(ay, by)),
            geometry.Rect(0, 0, self.width, self.height)
        )
        if rect is None:
            return

        for y in range(rect.y0, rect.y1):
            for x in range(rect.x0, rect.x1):
                new = fn(self._read((y, x)))
                if not isinstance(new, Color):
                    raise TypeError(f"update function returned {new!r} at x={x}, y={y}")
                self._write((y, x), new)

    def draw_image(
        self,
        x: int,
        y: int,
        other: "PixelBuffer",
        blend: Optional[Callable[[Color, Color], Color]] = None
    ) -> None:
        """Composite ``other`` with its top-left corner at (x, y).

        ``blend(dst, src)`` combines the two colors; the default is
        ``Color.blend(dst, src, src.a)``. Only the overlapping region is
        touched and it takes the source sample counts.
        """
        if not isinstance(other, PixelBuffer):
            raise TypeError(f"other must be a PixelBuffer, got {type(other).__name__}")
        if blend is None:
            blend = lambda dst, src: Color.blend(dst, src, src.a)

        overlap = geometry.placed_overlap(self.width, self.height, other.width, other.height, x, y)
        if overlap is None:
            return
        dst_rect, src_rect = overlap

        for dy in range(dst_rect.height):
            for dx in range(dst_rect.width):
                dst_cell = (dst_rect.y0 + dy, dst_rect.x0 + dx)
                src_cell = (src_rect.y0 + dy, src_rect.x0 + dx)
                new = blend(self._read(dst_cell), other._read(src_cell))
                if not isinstance(new, Color):
                    raise TypeError(f"blend function returned {new!r}")
                self._write(dst_cell, new, int(other.sample_counts[src_cell]))

    @staticmethod
    def blend(
        a: "PixelBuffer",
        b: "PixelBuffer",
        factor: float,
        factor_g: Optional[float] = None,
        factor_b: Optional[float] = None
    ) -> "PixelBuffer":
        """Per-pixel Color.blend of two buffers into a new one.

        The result is sized to the larger extent of both on each axis;
        pixels missing from either input read as black. Alpha is 1.0.
        """
        width = max(a.width, b.width)
        height = max(a.height, b.height)
        t = np.array([
            factor,
            factor if factor_g is None else factor_g,
            factor if factor_b is None else factor_b
        ], dtype=np.float64)

        def padded(buf: "PixelBuffer") -> np.ndarray:
            rgb = np.zeros((height, width, 3), dtype=np.float64)
            rgb[:buf.height, :buf.width] = buf.colors[..., :3]
            return rgb

        colors = np.ones((height, width, 4), dtype=np.float64)
        colors[..., :3] = (1.0 - t) * padded(a) + t * padded(b)
        compute.assert_finite(colors, "blended colors")
        return PixelBuffer._wrap(colors)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_array(self) -> np.ndarray:
        """Copy of the (H, W, 4) float64 color array."""
        return self.colors.copy()

    def to_bytes(self, order: str = "RGBA") -> bytes:
        """Interleaved 8-bit channels in ``order`` (see from_bytes)."""
        indices = channel_indices(order)
        ints = fs.to_uint8(self.colors)
        return np.ascontiguousarray(ints[..., list(indices)]).tobytes()

    def to_packed(self, order: str = "ARGB") -> np.ndarray:
        """One unsigned 32-bit int per pixel, row-major, shape (W * H,)."""
        indices = channel_indices(order, lengths=(4,))
        ints = fs.to_uint8(self.colors).astype(np.uint32)
        packed = np.zeros((self.height, self.width), dtype=np.uint32)
        for index in indices:
            packed = (packed << np.uint32(8)) | ints[..., index]
        return packed.ravel()

    def to_tensor(self, device: str = "cpu"):
        """(4, H, W) float32 torch tensor copy of the colors."""
        from src.utils import torch_utils

        return torch_utils.array_to_tensor(self.colors, device=device)

    def save(self, path: Union[str, Path], **pil_kwargs) -> None:
        """Save as an 8-bit RGBA image (format from the extension, atomic)."""
        fs.atomic_save_image(self.colors, path, pil_kwargs=pil_kwargs)
        logger.info(f"Saved {self.width}x{self.height} pixel buffer to {path}")

    # ------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return (
            self.colors.shape == other.colors.shape
            and np.array_equal(self.colors, other.colors)
            and np.array_equal(self.sample_counts, other.sample_counts)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"
