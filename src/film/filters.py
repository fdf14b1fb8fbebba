"""Reconstruction filters for the film and their discretized lookup table.

Provides:
    - Filter: abstract 2D weighting kernel with half-widths (resolution_x,
      resolution_y) and cached reciprocals
    - BoxFilter, TriangleFilter, GaussianFilter, MitchellFilter,
      CatmullRomFilter, LanczosSincFilter
    - create_filter(): build a filter from a registry name (configuration)
    - build_filter_table(): 16×16 table of weights sampled at bucket centres

Filters are evaluated at an offset (x, y) from the sample position, in
pixels. Only |x| <= resolution_x and |y| <= resolution_y matter to the film;
outside that support every filter returns 0.

Invariants:
    - resolution_x, resolution_y are finite and >= 0
    - A zero half-width has reciprocal 0.0, so normalized offsets collapse
      to 0 instead of producing 0 * inf
    - Filters are immutable; the lookup table is a read-only array
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

import numpy as np

logger = logging.getLogger(__name__)

FILTER_TABLE_SIZE = 16


class Filter(ABC):
    """2D reconstruction filter with half-width support in each axis.

    Parameters
    ----------
    resolution_x, resolution_y : float
        Half-width of the support in pixels, finite and >= 0

    Raises
    ------
    ValueError
        If a half-width is negative or non-finite
    """

    __slots__ = ("_resolution_x", "_resolution_y", "_resolution_x_reciprocal", "_resolution_y_reciprocal")

    def __init__(self, resolution_x: float, resolution_y: float):
        for name, value in (("resolution_x", resolution_x), ("resolution_y", resolution_y)):
            if not math.isfinite(value) or value < 0.0:
                raise ValueError(f"{name} must be finite and >= 0, got {value}")

        object.__setattr__(self, "_resolution_x", float(resolution_x))
        object.__setattr__(self, "_resolution_y", float(resolution_y))
        object.__setattr__(self, "_resolution_x_reciprocal", 1.0 / resolution_x if resolution_x > 0.0 else 0.0)
        object.__setattr__(self, "_resolution_y_reciprocal", 1.0 / resolution_y if resolution_y > 0.0 else 0.0)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def resolution_x(self) -> float:
        return self._resolution_x

    @property
    def resolution_y(self) -> float:
        return self._resolution_y

    @property
    def resolution_x_reciprocal(self) -> float:
        return self._resolution_x_reciprocal

    @property
    def resolution_y_reciprocal(self) -> float:
        return self._resolution_y_reciprocal

    def in_support(self, x: float, y: float) -> bool:
        return abs(x) <= self._resolution_x and abs(y) <= self._resolution_y

    @abstractmethod
    def evaluate(self, x: float, y: float) -> float:
        """Weight at offset (x, y) from the sample position."""

    def _params(self) -> Dict[str, float]:
        return {}

    def __repr__(self) -> str:
        params = "".join(f", {k}={v}" for k, v in self._params().items())
        return f"{type(self).__name__}({self._resolution_x}, {self._resolution_y}{params})"


class BoxFilter(Filter):
    """Constant weight 1 inside the support."""

    __slots__ = ()

    def __init__(self, resolution_x: float = 0.5, resolution_y: float = 0.5):
        super().__init__(resolution_x, resolution_y)

    def evaluate(self, x: float, y: float) -> float:
        return 1.0 if self.in_support(x, y) else 0.0


class TriangleFilter(Filter):
    """Tent ``max(0, rx - |x|) * max(0, ry - |y|)``."""

    __slots__ = ()

    def __init__(self, resolution_x: float = 2.0, resolution_y: float = 2.0):
        super().__init__(resolution_x, resolution_y)

    def evaluate(self, x: float, y: float) -> float:
        return max(0.0, self.resolution_x - abs(x)) * max(0.0, self.resolution_y - abs(y))


class GaussianFilter(Filter):
    """Separable truncated Gaussian ``max(0, e^(-a d^2) - e^(-a r^2))`` per axis."""

    __slots__ = ("_alpha", "_exp_x", "_exp_y")

    def __init__(self, resolution_x: float = 2.0, resolution_y: float = 2.0, alpha: float = 2.0):
        super().__init__(resolution_x, resolution_y)
        if not math.isfinite(alpha) or alpha <= 0.0:
            raise ValueError(f"alpha must be finite and > 0, got {alpha}")
        object.__setattr__(self, "_alpha", float(alpha))
        object.__setattr__(self, "_exp_x", math.exp(-alpha * resolution_x * resolution_x))
        object.__setattr__(self, "_exp_y", math.exp(-alpha * resolution_y * resolution_y))

    @property
    def alpha(self) -> float:
        return self._alpha

    def _gaussian(self, d: float, expv: float) -> float:
        return max(0.0, math.exp(-self._alpha * d * d) - expv)

    def evaluate(self, x: float, y: float) -> float:
        return self._gaussian(x, self._exp_x) * self._gaussian(y, self._exp_y)

    def _params(self) -> Dict[str, float]:
        return {"alpha": self._alpha}


class MitchellFilter(Filter):
    """Separable Mitchell-Netravali cubic on offsets normalized by the half-width.

    ``b`` and ``c`` default to 1/3 each. The kernel has small negative lobes
    near the edge of its support.
    """

    __slots__ = ("_b", "_c")

    def __init__(
        self,
        resolution_x: float = 2.0,
        resolution_y: float = 2.0,
        b: float = 1.0 / 3.0,
        c: float = 1.0 / 3.0
    ):
        super().__init__(resolution_x, resolution_y)
        object.__setattr__(self, "_b", float(b))
        object.__setattr__(self, "_c", float(c))

    @property
    def b(self) -> float:
        return self._b

    @property
    def c(self) -> float:
        return self._c

    def _mitchell_1d(self, x: float) -> float:
        b, c = self._b, self._c
        x = abs(2.0 * x)
        if x >= 2.0:
            return 0.0
        if x > 1.0:
            return ((-b - 6.0 * c) * x ** 3 + (6.0 * b + 30.0 * c) * x ** 2
                    + (-12.0 * b - 48.0 * c) * x + (8.0 * b + 24.0 * c)) / 6.0
        return ((12.0 - 9.0 * b - 6.0 * c) * x ** 3
                + (-18.0 + 12.0 * b + 6.0 * c) * x ** 2 + (6.0 - 2.0 * b)) / 6.0

    def evaluate(self, x: float, y: float) -> float:
        return (self._mitchell_1d(x * self.resolution_x_reciprocal)
                * self._mitchell_1d(y * self.resolution_y_reciprocal))

    def _params(self) -> Dict[str, float]:
        return {"b": self._b, "c": self._c}


class CatmullRomFilter(Filter):
    """Radial piecewise cubic of r = sqrt(x^2 + y^2) in pixels.

        r < 1:      3r^3 - 5r^2 + 2
        1 <= r < 2: -r^3 + 5r^2 - 8r + 4
        r >= 2:     0

    The falloff is fixed in pixel units; the half-widths only bound the
    footprint the film visits.
    """

    __slots__ = ()

    def __init__(self, resolution_x: float = 2.0, resolution_y: float = 2.0):
        super().__init__(resolution_x, resolution_y)

    def evaluate(self, x: float, y: float) -> float:
        r_sq = x * x + y * y
        r = math.sqrt(r_sq)
        if r < 1.0:
            return 3.0 * r * r_sq - 5.0 * r_sq + 2.0
        if r < 2.0:
            return -r * r_sq + 5.0 * r_sq - 8.0 * r + 4.0
        return 0.0


class LanczosSincFilter(Filter):
    """Separable windowed sinc on offsets normalized by the half-width."""

    __slots__ = ("_tau",)

    def __init__(self, resolution_x: float = 4.0, resolution_y: float = 4.0, tau: float = 3.0):
        super().__init__(resolution_x, resolution_y)
        if not math.isfinite(tau) or tau <= 0.0:
            raise ValueError(f"tau must be finite and > 0, got {tau}")
        object.__setattr__(self, "_tau", float(tau))

    @property
    def tau(self) -> float:
        return self._tau

    def _sinc_1d(self, x: float) -> float:
        x = abs(x)
        if x < 1e-5:
            return 1.0
        if x > 1.0:
            return 0.0
        x *= math.pi
        sinc = math.sin(x * self._tau) / (x * self._tau)
        lanczos = math.sin(x) / x
        return sinc * lanczos

    def evaluate(self, x: float, y: float) -> float:
        return (self._sinc_1d(x * self.resolution_x_reciprocal)
                * self._sinc_1d(y * self.resolution_y_reciprocal))

    def _params(self) -> Dict[str, float]:
        return {"tau": self._tau}


FILTERS: Dict[str, Type[Filter]] = {
    "box": BoxFilter,
    "triangle": TriangleFilter,
    "gaussian": GaussianFilter,
    "mitchell": MitchellFilter,
    "catmull_rom": CatmullRomFilter,
    "lanczos_sinc": LanczosSincFilter,
}


def create_filter(
    kind: str,
    radius_x: Optional[float] = None,
    radius_y: Optional[float] = None,
    **params
) -> Filter:
    """Instantiate a filter by registry name.

    Parameters
    ----------
    kind : str
        One of FILTERS keys
    radius_x, radius_y : float, optional
        Half-widths; the filter's defaults when None
    **params
        Extra constructor arguments (alpha, b, c, tau)

    Raises
    ------
    ValueError
        If kind is unknown or a parameter is out of range
    TypeError
        If params names an argument the filter does not take
    """
    try:
        cls = FILTERS[kind]
    except KeyError:
        raise ValueError(f"Unknown filter kind: {kind}. Use one of {sorted(FILTERS)}.") from None

    kwargs = dict(params)
    if radius_x is not None:
        kwargs["resolution_x"] = radius_x
    if radius_y is not None:
        kwargs["resolution_y"] = radius_y
    return cls(**kwargs)


def build_filter_table(filter: Filter, size: int = FILTER_TABLE_SIZE) -> np.ndarray:
    """Sample ``filter`` at the centre of each bucket of its positive quadrant.

    Parameters
    ----------
    filter : Filter
        Filter to discretize
    size : int
        Buckets per axis, default 16

    Returns
    -------
    np.ndarray
        (size, size) float64, read-only; cell [j, i] holds
        ``evaluate((i + 0.5) * rx / size, (j + 0.5) * ry / size)``
    """
    if not isinstance(filter, Filter):
        raise TypeError(f"filter must be a Filter, got {type(filter).__name__}")
    if size <= 0:
        raise ValueError(f"size must be > 0, got {size}")

    centres = (np.arange(size) + 0.5) / size
    xs = centres * filter.resolution_x
    ys = centres * filter.resolution_y

    table = np.empty((size, size), dtype=np.float64)
    for j, fy in enumerate(ys):
        for i, fx in enumerate(xs):
            table[j, i] = filter.evaluate(float(fx), float(fy))

    table.setflags(write=False)
    return table
