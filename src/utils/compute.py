"""Integer addressing, bounds checks, and finiteness guards.

Core utilities:
    - Non-negative modulo: wrap_index() for wrap-around pixel addressing
    - Clamping: clamp_int() for endpoint clipping in the rasterizer
    - Precondition checks: require_resolution(), require_exact_length(),
      require_finite() with actionable messages
    - Array guards: assert_finite() for bulk numeric inputs

Invariants:
    - wrap_index(v, n) is always in [0, n) for n > 0, including negative v
    - Precondition failures raise ValueError/TypeError immediately; no
      partially-constructed objects are returned
"""

import math
from typing import Sized, Tuple

import numpy as np


# Largest pixel count a buffer may hold (signed 32-bit index space)
MAX_RESOLUTION = 2 ** 31 - 1


def wrap_index(value: int, size: int) -> int:
    """Reduce an index into [0, size) with a non-negative modulo.

    Parameters
    ----------
    value : int
        Coordinate or flat index, may be negative
    size : int
        Dimension length, must be > 0

    Returns
    -------
    int
        ``value % size``, always in [0, size)

    Raises
    ------
    ValueError
        If size <= 0

    Examples
    --------
    >>> wrap_index(-1, 4)
    3
    >>> wrap_index(9, 4)
    1
    """
    if size <= 0:
        raise ValueError(f"size must be > 0, got {size}")
    return value % size


def clamp_int(value: int, lo: int, hi: int) -> int:
    """Clamp integer to [lo, hi] (hi inclusive)."""
    return lo if value < lo else hi if value > hi else value


def require_int(value, name: str) -> int:
    """Return value if it is an int (bools rejected), else raise TypeError."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    return int(value)


def require_resolution(width, height) -> Tuple[int, int, int]:
    """Validate a width×height resolution.

    Parameters
    ----------
    width, height : int
        Dimensions in pixels

    Returns
    -------
    tuple
        (width, height, width * height)

    Raises
    ------
    TypeError
        If either dimension is not an int
    ValueError
        If either dimension is negative or the product exceeds MAX_RESOLUTION
    """
    width = require_int(width, "width")
    height = require_int(height, "height")

    if width < 0:
        raise ValueError(f"width < 0: width={width}")
    if height < 0:
        raise ValueError(f"height < 0: height={height}")

    resolution = width * height
    if resolution > MAX_RESOLUTION:
        raise ValueError(
            f"width * height overflows: {width} * {height} = {resolution} > {MAX_RESOLUTION}"
        )
    return width, height, resolution


def require_exact_length(values: Sized, expected: int, name: str) -> Sized:
    """Raise ValueError unless ``len(values) == expected``."""
    if values is None:
        raise TypeError(f"{name} must not be None")
    if len(values) != expected:
        raise ValueError(f"len({name}) != {expected}: got {len(values)}")
    return values


def require_finite(value: float, name: str) -> float:
    """Return value as float if finite, else raise ValueError naming it."""
    value = float(value)
    if math.isnan(value):
        raise ValueError(f"{name} is NaN")
    if math.isinf(value):
        raise ValueError(f"{name} is infinite: {name}={value}")
    return value


def assert_finite(x: np.ndarray, name: str = "array") -> None:
    """Assert array contains no NaN or Inf values.

    Parameters
    ----------
    x : np.ndarray
        Array to check
    name : str
        Array name for error message

    Raises
    ------
    ValueError
        If array contains NaN or Inf
    """
    x = np.asarray(x)
    if not np.isfinite(x).all():
        nan_count = int(np.isnan(x).sum())
        inf_count = int(np.isinf(x).sum())
        raise ValueError(
            f"{name} contains non-finite values: {nan_count} NaNs, {inf_count} Infs. "
            f"Shape: {x.shape}, dtype: {x.dtype}"
        )
