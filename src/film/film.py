"""Film: filtered sample accumulation over a PixelBuffer.

Samples arrive at continuous image positions with a color (XYZ) and a
weight. Each sample is spread over every pixel inside the reconstruction
filter's footprint, weighted by the filter evaluated at the pixel-centre
offset. ``render_to_image`` normalizes the accumulated sums, adds the
unfiltered splat contribution, encodes for display and writes the result
into the bound image.

Footprint for a sample at (x, y), with pixel centres at integer + 0.5:
    delta = x - 0.5
    min_x = max(ceil(delta - rx), 0)
    max_x = min(floor(delta + rx), width - 1)        (same for y)
    bucket(px) = min(floor(|px - delta| * (1 / rx) * 16), 15)
    weight(px, py) = table[bucket(py), bucket(px)]

Resolve per pixel:
    rgb = xyz_to_rgb(color_xyz)
    rgb = max(rgb / weight_sum, 0)    if weight_sum != 0
    rgb += xyz_to_rgb(splat_xyz) * splat_scale

Invariants:
    - color_xyz, splat_xyz, filter_weight_sum always match the bound
      image's resolution once a resolution check has run
    - The filter table always corresponds to the current filter
    - Accumulation is additive, so the order of add() calls does not change
      the result beyond floating-point rounding
"""

import logging
import math
from typing import NamedTuple, Optional, Union

import numpy as np

from src.film.filters import FILTER_TABLE_SIZE, Filter, MitchellFilter, build_filter_table, create_filter
from src.raster.colors import Color, XYZColor
from src.raster.pixel_buffer import PixelBuffer
from src.utils import color as color_utils
from src.utils.compute import require_finite
from src.utils.validators import RESOLUTION_POLICIES

logger = logging.getLogger(__name__)


class ResolutionChangedError(RuntimeError):
    """Bound image changed resolution under the "raise" policy."""


class FilmPixel(NamedTuple):
    """Accumulated state of one film pixel."""

    color_xyz: XYZColor
    splat_xyz: XYZColor
    filter_weight_sum: float


class Film:
    """Accumulate filtered samples and resolve them into a PixelBuffer.

    Parameters
    ----------
    image : PixelBuffer
        Output buffer; its resolution sizes the accumulation arrays
    filter : Filter, optional
        Reconstruction filter, MitchellFilter() when None
    encoding : str
        Display encoding applied by render_to_image ("srgb", "linear",
        "gamma22", "reinhard", "aces")
    on_resolution_change : str
        "clear" reallocates and discards accumulated samples when the image
        resolution changed since the last operation; "raise" raises
        ResolutionChangedError instead

    Raises
    ------
    TypeError
        If image is not a PixelBuffer or filter is not a Filter
    ValueError
        If encoding or on_resolution_change is unknown
    """

    def __init__(
        self,
        image: PixelBuffer,
        filter: Optional[Filter] = None,
        *,
        encoding: str = "srgb",
        on_resolution_change: str = "clear"
    ):
        if on_resolution_change not in RESOLUTION_POLICIES:
            raise ValueError(
                f"on_resolution_change must be one of {RESOLUTION_POLICIES}, got {on_resolution_change!r}"
            )
        self._encode = color_utils.get_encoding(encoding)
        self.encoding = encoding
        self.on_resolution_change = on_resolution_change

        self._image: Optional[PixelBuffer] = None
        self._shape = (0, 0)
        self._color_xyz = np.zeros((0, 0, 3), dtype=np.float64)
        self._splat_xyz = np.zeros((0, 0, 3), dtype=np.float64)
        self._filter_weight_sum = np.zeros((0, 0), dtype=np.float64)

        self.set_filter(MitchellFilter() if filter is None else filter)
        self.set_image(image)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_resolution(cls, width: int, height: int, filter: Optional[Filter] = None, **kwargs) -> "Film":
        """Film over a fresh black width×height PixelBuffer."""
        return cls(PixelBuffer(width, height), filter, **kwargs)

    @classmethod
    def from_config(cls, cfg, image: Optional[PixelBuffer] = None) -> "Film":
        """Build from a validated FilmConfigV1.

        Parameters
        ----------
        cfg : FilmConfigV1
            Film configuration (resolution, filter, encoding, policy)
        image : PixelBuffer, optional
            Buffer to bind; a new one of the configured resolution when None
        """
        film_filter = create_filter(
            cfg.filter.kind,
            cfg.filter.radius_x,
            cfg.filter.radius_y,
            **cfg.filter.params
        )
        if image is None:
            image = PixelBuffer(cfg.resolution.width, cfg.resolution.height)
        return cls(
            image,
            film_filter,
            encoding=cfg.encoding,
            on_resolution_change=cfg.on_resolution_change
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def image(self) -> PixelBuffer:
        return self._image

    @property
    def filter(self) -> Filter:
        return self._filter

    @property
    def filter_table(self) -> np.ndarray:
        """(16, 16) read-only weights for the current filter."""
        return self._filter_table

    @property
    def resolution_x(self) -> int:
        return self._shape[1]

    @property
    def resolution_y(self) -> int:
        return self._shape[0]

    @property
    def color_xyz(self) -> np.ndarray:
        """(H, W, 3) filtered XYZ sums. Do not mutate."""
        return self._color_xyz

    @property
    def splat_xyz(self) -> np.ndarray:
        """(H, W, 3) unfiltered XYZ sums. Do not mutate."""
        return self._splat_xyz

    @property
    def filter_weight_sum(self) -> np.ndarray:
        """(H, W) sum of filter weights. Do not mutate."""
        return self._filter_weight_sum

    # ------------------------------------------------------------------
    # Binding and state
    # ------------------------------------------------------------------

    def _allocate(self) -> None:
        height, width = self._image.height, self._image.width
        self._shape = (height, width)
        self._color_xyz = np.zeros((height, width, 3), dtype=np.float64)
        self._splat_xyz = np.zeros((height, width, 3), dtype=np.float64)
        self._filter_weight_sum = np.zeros((height, width), dtype=np.float64)

    def _check_resolution(self) -> None:
        current = (self._image.height, self._image.width)
        if current == self._shape:
            return
        if self.on_resolution_change == "raise":
            raise ResolutionChangedError(
                f"Image resolution changed from {self._shape[1]}x{self._shape[0]} "
                f"to {current[1]}x{current[0]}"
            )
        logger.warning(
            f"Image resolution changed from {self._shape[1]}x{self._shape[0]} "
            f"to {current[1]}x{current[0]}; discarding accumulated samples"
        )
        self._allocate()

    def set_image(self, image: PixelBuffer) -> None:
        """Bind ``image``; reallocates and clears if it differs from the current one.

        Rebinding the same buffer at the same resolution keeps the
        accumulated samples.
        """
        if not isinstance(image, PixelBuffer):
            raise TypeError(f"image must be a PixelBuffer, got {type(image).__name__}")
        if image is self._image and (image.height, image.width) == self._shape:
            return
        self._image = image
        self._allocate()
        logger.info(f"Film allocated {image.width}x{image.height}")

    def set_filter(self, filter: Filter) -> None:
        """Replace the reconstruction filter and rebuild its lookup table."""
        if not isinstance(filter, Filter):
            raise TypeError(f"filter must be a Filter, got {type(filter).__name__}")
        self._filter = filter
        self._filter_table = build_filter_table(filter, FILTER_TABLE_SIZE)
        logger.info(f"Film filter set to {filter!r}")

    def clear(self) -> None:
        """Zero all accumulated state."""
        self._check_resolution()
        self._color_xyz.fill(0.0)
        self._splat_xyz.fill(0.0)
        self._filter_weight_sum.fill(0.0)

    def get_pixel(self, x: int, y: int) -> Optional[FilmPixel]:
        """Accumulated state at (x, y), or None outside the film."""
        if not (0 <= x < self._shape[1] and 0 <= y < self._shape[0]):
            return None
        return FilmPixel(
            XYZColor(*self._color_xyz[y, x]),
            XYZColor(*self._splat_xyz[y, x]),
            float(self._filter_weight_sum[y, x])
        )

    # ------------------------------------------------------------------
    # Sample accumulation
    # ------------------------------------------------------------------

    @staticmethod
    def _as_xyz(color: Union[XYZColor, Color]) -> XYZColor:
        if isinstance(color, XYZColor):
            return color
        if isinstance(color, Color):
            return XYZColor.from_color(color)
        raise TypeError(f"color must be an XYZColor or Color, got {type(color).__name__}")

    def _bucket_offsets(self, lo: int, hi: int, delta: float, reciprocal: float) -> np.ndarray:
        pixels = np.arange(lo, hi + 1, dtype=np.float64)
        buckets = np.floor(np.abs((pixels - delta) * reciprocal * FILTER_TABLE_SIZE))
        return np.minimum(buckets, FILTER_TABLE_SIZE - 1).astype(np.intp)

    def add(self, x: float, y: float, color: Union[XYZColor, Color], weight: float = 1.0) -> None:
        """Accumulate a filtered sample at continuous position (x, y).

        Parameters
        ----------
        x, y : float
            Image-space position; pixel (i, j) has its centre at (i + 0.5, j + 0.5)
        color : XYZColor or Color
            Sample radiance; a Color is converted from linear RGB
        weight : float
            Sample weight multiplied into the color contribution only

        Raises
        ------
        ValueError
            If x, y or weight is not finite
        TypeError
            If color is neither an XYZColor nor a Color
        """
        x = require_finite(x, "x")
        y = require_finite(y, "y")
        weight = require_finite(weight, "weight")
        xyz = self._as_xyz(color)
        self._check_resolution()

        height, width = self._shape
        rx, ry = self._filter.resolution_x, self._filter.resolution_y
        delta_x = x - 0.5
        delta_y = y - 0.5

        min_x = max(math.ceil(delta_x - rx), 0)
        max_x = min(math.floor(delta_x + rx), width - 1)
        min_y = max(math.ceil(delta_y - ry), 0)
        max_y = min(math.floor(delta_y + ry), height - 1)
        if max_x < min_x or max_y < min_y:
            return

        offsets_x = self._bucket_offsets(min_x, max_x, delta_x, self._filter.resolution_x_reciprocal)
        offsets_y = self._bucket_offsets(min_y, max_y, delta_y, self._filter.resolution_y_reciprocal)
        weights = self._filter_table[np.ix_(offsets_y, offsets_x)]

        contribution = np.array(xyz.to_tuple(), dtype=np.float64) * weight
        rows = slice(min_y, max_y + 1)
        cols = slice(min_x, max_x + 1)
        self._color_xyz[rows, cols] += weights[..., np.newaxis] * contribution
        self._filter_weight_sum[rows, cols] += weights

    def splat(self, x: float, y: float, color: Union[XYZColor, Color]) -> None:
        """Add ``color`` unfiltered to the pixel containing (x, y).

        Positions outside the film are ignored.
        """
        x = require_finite(x, "x")
        y = require_finite(y, "y")
        xyz = self._as_xyz(color)
        self._check_resolution()

        px, py = math.floor(x), math.floor(y)
        if 0 <= px < self._shape[1] and 0 <= py < self._shape[0]:
            self._splat_xyz[py, px] += xyz.to_tuple()

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def resolve(self, splat_scale: float = 1.0) -> np.ndarray:
        """Normalized linear RGB before display encoding.

        Returns
        -------
        np.ndarray
            (H, W, 3) float64
        """
        splat_scale = require_finite(splat_scale, "splat_scale")
        self._check_resolution()

        rgb = color_utils.xyz_to_rgb(self._color_xyz)
        weight_sum = self._filter_weight_sum
        nonzero = weight_sum != 0.0
        safe_sum = np.where(nonzero, weight_sum, 1.0)[..., np.newaxis]
        rgb = np.where(nonzero[..., np.newaxis], np.maximum(rgb / safe_sum, 0.0), rgb)

        return rgb + color_utils.xyz_to_rgb(self._splat_xyz) * splat_scale

    def render_to_image(self, splat_scale: float = 1.0) -> None:
        """Resolve, encode and write every pixel into the bound image.

        Each pixel is written with alpha 1 and sample count 1.
        """
        rgb = self.resolve(splat_scale)
        encoded = np.asarray(self._encode(rgb), dtype=np.float64)

        image = self._image
        image.colors[..., :3] = encoded
        image.colors[..., 3] = 1.0
        image.sample_counts[...] = 1
        logger.debug(f"Rendered {self.resolution_x}x{self.resolution_y} film (splat_scale={splat_scale})")

    def __repr__(self) -> str:
        return (
            f"Film({self.resolution_x}x{self.resolution_y}, filter={self._filter!r}, "
            f"encoding={self.encoding!r}, on_resolution_change={self.on_resolution_change!r})"
        )
