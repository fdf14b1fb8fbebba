"""Immutable color values: RGBA Color and CIE XYZColor.

Provides:
    - Color: four finite floats (r, g, b, a); arithmetic, blending, gray
      conversions, normalization, gamma, tone mapping, byte/packed export
    - XYZColor: tristimulus value used by the film accumulator
    - channel_indices(): parse channel-order strings ("RGBA", "BGR", "ARGB")

Used by:
    - src.raster.pixel_buffer: per-pixel reads/writes, codec boundary
    - src.raster.drawing / pixel_functions: paint values
    - src.film.film: sample colors (converted to XYZ)

Invariants:
    - Every component is finite; construction raises ValueError otherwise
    - Every operation returns a new value; RGB arithmetic keeps self.a
    - Byte conversion is int(saturate(v) * 255 + 0.5)

Scalar math mirrors src.utils.color (same sRGB curve, same XYZ matrices),
which is the array version used for whole images.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from src.utils import color as color_utils

_COMPONENTS = "RGBA"


def channel_indices(order: str, lengths: Tuple[int, ...] = (3, 4)) -> Tuple[int, ...]:
    """Map a channel-order string to component indices into (r, g, b, a).

    Parameters
    ----------
    order : str
        Permutation of a subset of "RGBA", e.g. "RGBA", "BGR", "ARGB"
    lengths : tuple of int
        Allowed string lengths

    Returns
    -------
    tuple of int
        Index of each channel in (r, g, b, a) order, e.g. "BGR" → (2, 1, 0)

    Raises
    ------
    TypeError
        If order is not a string
    ValueError
        If order has an unsupported length, repeats a channel, or contains
        characters outside "RGBA"
    """
    if not isinstance(order, str):
        raise TypeError(f"order must be a str, got {type(order).__name__}")
    order = order.upper()
    if len(order) not in lengths:
        raise ValueError(f"order must have length in {lengths}, got '{order}'")
    if len(set(order)) != len(order) or any(ch not in _COMPONENTS for ch in order):
        raise ValueError(f"order must be a permutation of channels from 'RGBA', got '{order}'")
    if len(order) == 3 and "A" in order:
        raise ValueError(f"3-channel order must contain R, G and B, got '{order}'")
    return tuple(_COMPONENTS.index(ch) for ch in order)


def _to_byte(v: float) -> int:
    return int(min(max(v, 0.0), 1.0) * 255.0 + 0.5)


def _byte_to_float(v: int) -> float:
    return min(max(int(v), 0), 255) / 255.0


@dataclass(frozen=True)
class Color:
    """RGBA color with finite float components (alpha defaults to 1.0).

    Components are nominally in [0, 1] but any finite value is allowed, so
    HDR intermediates and negative filter lobes can be represented.
    """

    r: float
    g: float
    b: float
    a: float = 1.0

    def __post_init__(self):
        for name in ("r", "g", "b", "a"):
            value = getattr(self, name)
            if value is None or isinstance(value, bool):
                raise TypeError(f"Color.{name} must be a number, got {value!r}")
            value = float(value)
            if not math.isfinite(value):
                raise ValueError(f"Color.{name} must be finite, got {value}")
            object.__setattr__(self, name, value)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def gray(cls, value: float, a: float = 1.0) -> "Color":
        return cls(value, value, value, a)

    @classmethod
    def from_ints(cls, r: int, g: int, b: int, a: int = 255) -> "Color":
        """Build from 8-bit components (each saturated to [0, 255], then /255)."""
        return cls(_byte_to_float(r), _byte_to_float(g), _byte_to_float(b), _byte_to_float(a))

    @classmethod
    def from_packed(cls, value: int, order: str = "ARGB") -> "Color":
        """Unpack a 32-bit integer; the first channel of ``order`` is the high byte."""
        indices = channel_indices(order, lengths=(4,))
        value = int(value) & 0xFFFFFFFF
        components = [0, 0, 0, 0]
        for position, index in enumerate(indices):
            components[index] = (value >> (8 * (3 - position))) & 0xFF
        return cls.from_ints(*components)

    @classmethod
    def random(cls, rng: Optional[np.random.Generator] = None, a: float = 1.0) -> "Color":
        rng = rng if rng is not None else np.random.default_rng()
        r, g, b = rng.random(3)
        return cls(r, g, b, a)

    @classmethod
    def random_red(cls, rng: Optional[np.random.Generator] = None, a: float = 1.0) -> "Color":
        rng = rng if rng is not None else np.random.default_rng()
        return cls(rng.random(), 0.0, 0.0, a)

    @classmethod
    def random_green(cls, rng: Optional[np.random.Generator] = None, a: float = 1.0) -> "Color":
        rng = rng if rng is not None else np.random.default_rng()
        return cls(0.0, rng.random(), 0.0, a)

    @classmethod
    def random_blue(cls, rng: Optional[np.random.Generator] = None, a: float = 1.0) -> "Color":
        rng = rng if rng is not None else np.random.default_rng()
        return cls(0.0, 0.0, rng.random(), a)

    @classmethod
    def random_gray(cls, rng: Optional[np.random.Generator] = None, a: float = 1.0) -> "Color":
        """One random value copied to all three channels."""
        rng = rng if rng is not None else np.random.default_rng()
        return cls.gray(rng.random(), a)

    # ------------------------------------------------------------------
    # Arithmetic (alpha kept from self)
    # ------------------------------------------------------------------

    def _rgb_of(self, other) -> Tuple[float, float, float]:
        if isinstance(other, Color):
            return other.r, other.g, other.b
        if isinstance(other, (int, float, np.floating, np.integer)) and not isinstance(other, bool):
            v = float(other)
            return v, v, v
        raise TypeError(f"Expected Color or scalar, got {type(other).__name__}")

    def add(self, other: Union["Color", float]) -> "Color":
        r, g, b = self._rgb_of(other)
        return Color(self.r + r, self.g + g, self.b + b, self.a)

    def subtract(self, other: Union["Color", float]) -> "Color":
        r, g, b = self._rgb_of(other)
        return Color(self.r - r, self.g - g, self.b - b, self.a)

    def multiply(self, other: Union["Color", float]) -> "Color":
        r, g, b = self._rgb_of(other)
        return Color(self.r * r, self.g * g, self.b * b, self.a)

    def divide(self, other: Union["Color", float]) -> "Color":
        """Component-wise division; a zero divisor raises ZeroDivisionError."""
        r, g, b = self._rgb_of(other)
        return Color(self.r / r, self.g / g, self.b / b, self.a)

    def __add__(self, other):
        return self.add(other)

    def __sub__(self, other):
        return self.subtract(other)

    def __mul__(self, other):
        return self.multiply(other)

    def __rmul__(self, other):
        return self.multiply(other)

    def __truediv__(self, other):
        return self.divide(other)

    def add_sample(self, sample: "Color", count: int) -> "Color":
        """Moving-average update ``self + (sample - self) / count`` on RGB.

        ``self`` is the running average of ``count - 1`` samples; the result
        is the average of ``count`` samples. Alpha is kept from self.
        """
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        return Color(
            self.r + (sample.r - self.r) / count,
            self.g + (sample.g - self.g) / count,
            self.b + (sample.b - self.b) / count,
            self.a
        )

    @staticmethod
    def blend(
        a: "Color",
        b: "Color",
        factor: float,
        factor_g: Optional[float] = None,
        factor_b: Optional[float] = None
    ) -> "Color":
        """Per-channel lerp ``(1 - t) * a + t * b``; result alpha is 1.0.

        Pass ``factor`` alone for a uniform blend, or three factors for R, G
        and B individually.
        """
        tr = factor
        tg = factor if factor_g is None else factor_g
        tb = factor if factor_b is None else factor_b
        return Color(
            (1.0 - tr) * a.r + tr * b.r,
            (1.0 - tg) * a.g + tg * b.g,
            (1.0 - tb) * a.b + tb * b.b
        )

    def lerp(self, other: "Color", t: float) -> "Color":
        return Color.blend(self, other, t)

    # ------------------------------------------------------------------
    # Derived colors
    # ------------------------------------------------------------------

    def invert(self) -> "Color":
        return Color(1.0 - self.r, 1.0 - self.g, 1.0 - self.b, self.a)

    def negate(self) -> "Color":
        return Color(-self.r, -self.g, -self.b, self.a)

    def sepia(self) -> "Color":
        return Color(
            self.r * 0.393 + self.g * 0.769 + self.b * 0.189,
            self.r * 0.349 + self.g * 0.686 + self.b * 0.168,
            self.r * 0.272 + self.g * 0.534 + self.b * 0.131,
            self.a
        )

    def gray_average(self) -> "Color":
        return Color.gray(self.average(), self.a)

    def gray_luminance(self) -> "Color":
        return Color.gray(self.luminance(), self.a)

    def gray_lightness(self) -> "Color":
        return Color.gray((self.max_component() + self.min_component()) / 2.0, self.a)

    def gray_min(self) -> "Color":
        return Color.gray(self.min_component(), self.a)

    def gray_max(self) -> "Color":
        return Color.gray(self.max_component(), self.a)

    def gray_r(self) -> "Color":
        return Color.gray(self.r, self.a)

    def gray_g(self) -> "Color":
        return Color.gray(self.g, self.a)

    def gray_b(self) -> "Color":
        return Color.gray(self.b, self.a)

    def min_to_0(self) -> "Color":
        """Shift RGB up by -min when the smallest component is negative."""
        lowest = self.min_component()
        if lowest < 0.0:
            return Color(self.r - lowest, self.g - lowest, self.b - lowest, self.a)
        return self

    def max_to_1(self) -> "Color":
        """Divide RGB by the largest component when it exceeds 1."""
        highest = self.max_component()
        if highest > 1.0:
            return Color(self.r / highest, self.g / highest, self.b / highest, self.a)
        return self

    def saturate(self, lo: float = 0.0, hi: float = 1.0) -> "Color":
        """Clamp RGB to [min(lo, hi), max(lo, hi)]."""
        lo, hi = min(lo, hi), max(lo, hi)
        return Color(
            min(max(self.r, lo), hi),
            min(max(self.g, lo), hi),
            min(max(self.b, lo), hi),
            self.a
        )

    def _map_rgb(self, fn) -> "Color":
        r, g, b = fn(np.array([self.r, self.g, self.b], dtype=np.float64))
        return Color(r, g, b, self.a)

    def redo_gamma_correction(self) -> "Color":
        """Linear → sRGB encoded (RGB saturated to [0, 1] first)."""
        return self._map_rgb(color_utils.linear_to_srgb)

    def undo_gamma_correction(self) -> "Color":
        """sRGB encoded → linear (RGB saturated to [0, 1] first)."""
        return self._map_rgb(color_utils.srgb_to_linear)

    def tone_map_reinhard(self, exposure: float = 1.0) -> "Color":
        return self._map_rgb(lambda rgb: color_utils.tone_map_reinhard(rgb, exposure))

    def tone_map_filmic(
        self,
        exposure: float,
        a: float,
        b: float,
        c: float,
        d: float,
        e: float,
        subtract: float = 0.0,
        minimum: float = float(np.finfo(np.float32).tiny)
    ) -> "Color":
        return self._map_rgb(
            lambda rgb: color_utils.tone_map_filmic(rgb, exposure, a, b, c, d, e, subtract, minimum)
        )

    def tone_map_aces(self, exposure: float = 1.0) -> "Color":
        return self._map_rgb(lambda rgb: color_utils.tone_map_aces(rgb, exposure))

    # ------------------------------------------------------------------
    # Scalars and export
    # ------------------------------------------------------------------

    def luminance(self) -> float:
        return float(color_utils.luminance_linear([self.r, self.g, self.b]))

    def average(self) -> float:
        return (self.r + self.g + self.b) / 3.0

    def max_component(self) -> float:
        return max(self.r, self.g, self.b)

    def min_component(self) -> float:
        return min(self.r, self.g, self.b)

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return self.r, self.g, self.b, self.a

    def to_ints(self) -> Tuple[int, int, int, int]:
        """8-bit (r, g, b, a), each ``int(saturate(v) * 255 + 0.5)``."""
        return _to_byte(self.r), _to_byte(self.g), _to_byte(self.b), _to_byte(self.a)

    def pack(self, order: str = "ARGB") -> int:
        """Pack into an unsigned 32-bit int; first channel of order is the high byte."""
        indices = channel_indices(order, lengths=(4,))
        ints = self.to_ints()
        value = 0
        for index in indices:
            value = (value << 8) | ints[index]
        return value


Color.BLACK = Color(0.0, 0.0, 0.0)
Color.WHITE = Color(1.0, 1.0, 1.0)
Color.RED = Color(1.0, 0.0, 0.0)
Color.GREEN = Color(0.0, 1.0, 0.0)
Color.BLUE = Color(0.0, 0.0, 1.0)
Color.CYAN = Color(0.0, 1.0, 1.0)
Color.MAGENTA = Color(1.0, 0.0, 1.0)
Color.YELLOW = Color(1.0, 1.0, 0.0)
Color.ORANGE = Color(1.0, 0.5, 0.0)
Color.GRAY = Color(0.5, 0.5, 0.5)


@dataclass(frozen=True)
class XYZColor:
    """CIE XYZ tristimulus value (D65), finite components."""

    x: float
    y: float
    z: float

    def __post_init__(self):
        for name in ("x", "y", "z"):
            value = getattr(self, name)
            if value is None or isinstance(value, bool):
                raise TypeError(f"XYZColor.{name} must be a number, got {value!r}")
            value = float(value)
            if not math.isfinite(value):
                raise ValueError(f"XYZColor.{name} must be finite, got {value}")
            object.__setattr__(self, name, value)

    @classmethod
    def from_color(cls, color: Color) -> "XYZColor":
        """Linear RGB → XYZ with the exact inverse of the XYZ → RGB matrix."""
        x, y, z = color_utils.rgb_to_xyz([color.r, color.g, color.b])
        return cls(x, y, z)

    def add(self, other: "XYZColor") -> "XYZColor":
        return XYZColor(self.x + other.x, self.y + other.y, self.z + other.z)

    def multiply(self, other: Union["XYZColor", float]) -> "XYZColor":
        if isinstance(other, XYZColor):
            return XYZColor(self.x * other.x, self.y * other.y, self.z * other.z)
        return XYZColor(self.x * other, self.y * other, self.z * other)

    def __add__(self, other):
        return self.add(other)

    def __mul__(self, other):
        return self.multiply(other)

    def normalize(self) -> "XYZColor":
        """Chromaticity normalization: divide by x + y + z (unchanged if sum < 1e-6)."""
        total = self.x + self.y + self.z
        if total < 1e-6:
            return self
        return XYZColor(self.x / total, self.y / total, self.z / total)

    def to_color(self, a: float = 1.0) -> Color:
        """XYZ → linear RGB (unclamped)."""
        r, g, b = color_utils.xyz_to_rgb([self.x, self.y, self.z])
        return Color(r, g, b, a)

    def to_tuple(self) -> Tuple[float, float, float]:
        return self.x, self.y, self.z


XYZColor.ZERO = XYZColor(0.0, 0.0, 0.0)
