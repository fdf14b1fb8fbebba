"""Spectral curves and their conversion to CIE XYZ.

Provides:
    - SpectralCurve: abstract ``sample(wavelength_nm)`` with a concrete
      ``to_xyz()`` that integrates against the CIE 1931 matching functions
    - ConstantSpectralCurve: the same value at every wavelength
    - SampledSpectralCurve: regularly sampled data, linearly interpolated

Used by:
    - Film.add() / Film.splat(): callers pass ``curve.to_xyz()`` as the color

Invariants:
    - to_xyz() samples at 360, 365, ..., 830 nm and scales by the 5 nm step
    - Curves are immutable
"""

from abc import ABC, abstractmethod

import numpy as np

from src.raster.colors import XYZColor
from src.utils import color as color_utils
from src.utils.compute import assert_finite, require_finite


class SpectralCurve(ABC):
    """Sampled or analytic spectral data over wavelength in nanometers."""

    __slots__ = ()

    @abstractmethod
    def sample(self, wavelength_nm: float) -> float:
        """Spectral value at ``wavelength_nm``."""

    def to_xyz(self) -> XYZColor:
        """Integrate this curve against x̄, ȳ, z̄ (step 5 nm, 360–830 nm)."""
        samples = np.array(
            [self.sample(float(w)) for w in color_utils.WAVELENGTHS],
            dtype=np.float64
        )
        x, y, z = color_utils.spectrum_to_xyz(samples)
        return XYZColor(x, y, z)


class ConstantSpectralCurve(SpectralCurve):
    """Flat spectrum; ``value`` at every wavelength."""

    __slots__ = ("_value",)

    def __init__(self, value: float):
        object.__setattr__(self, "_value", require_finite(value, "value"))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def value(self) -> float:
        return self._value

    def sample(self, wavelength_nm: float) -> float:
        return self._value

    def __repr__(self) -> str:
        return f"ConstantSpectralCurve({self._value})"


class SampledSpectralCurve(SpectralCurve):
    """Values at evenly spaced wavelengths from ``lambda_min`` to ``lambda_max``.

    Parameters
    ----------
    lambda_min, lambda_max : float
        First and last sample wavelength in nm, ``lambda_min < lambda_max``
    values : array-like
        At least two finite samples

    Notes
    -----
    Between samples the curve is linearly interpolated; outside the sampled
    range it holds the first/last value.
    """

    __slots__ = ("_wavelengths", "_values")

    def __init__(self, lambda_min: float, lambda_max: float, values):
        lambda_min = require_finite(lambda_min, "lambda_min")
        lambda_max = require_finite(lambda_max, "lambda_max")
        if lambda_max <= lambda_min:
            raise ValueError(f"lambda_max must exceed lambda_min: {lambda_min} >= {lambda_max}")

        values = np.array(values, dtype=np.float64)
        if values.ndim != 1 or values.size < 2:
            raise ValueError(f"values must be 1D with at least 2 samples, got shape {values.shape}")
        assert_finite(values, "values")

        wavelengths = np.linspace(lambda_min, lambda_max, values.size)
        values.setflags(write=False)
        wavelengths.setflags(write=False)
        object.__setattr__(self, "_wavelengths", wavelengths)
        object.__setattr__(self, "_values", values)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def wavelengths(self) -> np.ndarray:
        return self._wavelengths

    @property
    def values(self) -> np.ndarray:
        return self._values

    def sample(self, wavelength_nm: float) -> float:
        return float(np.interp(wavelength_nm, self._wavelengths, self._values))
