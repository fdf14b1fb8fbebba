"""Tests for spectral curves and the CIE 1931 matching tables.

Tests for src.film.spectral and src.utils.color:
    - CIE tables: 95 samples, 360–830 nm, read-only
    - spectrum_to_xyz(): step scaling, batch shape, shape errors
    - SpectralCurve.to_xyz(): flat spectrum integrals, single-line spectrum
    - Abstract base, immutability, sampled-curve interpolation

Run:
    pytest tests/test_spectral.py -v
"""

import math

import numpy as np
import pytest

from src.film import ConstantSpectralCurve, Film, SampledSpectralCurve, SpectralCurve
from src.raster.colors import XYZColor
from src.raster.pixel_buffer import PixelBuffer
from src.utils import color


class LineSpectrum(SpectralCurve):
    """1.0 at a single wavelength, 0 elsewhere."""

    __slots__ = ("nm",)

    def __init__(self, nm):
        self.nm = nm

    def sample(self, wavelength_nm):
        return 1.0 if wavelength_nm == self.nm else 0.0


# ============================================================================
# CIE TABLES
# ============================================================================

def test_tables_shape_and_range():
    for table in (color.CIE_X_BAR, color.CIE_Y_BAR, color.CIE_Z_BAR):
        assert table.shape == (95,)
        assert table.dtype == np.float64
    assert color.WAVELENGTHS[0] == 360.0
    assert color.WAVELENGTHS[-1] == 830.0
    assert np.all(np.diff(color.WAVELENGTHS) == 5.0)


@pytest.mark.parametrize("name", ["CIE_X_BAR", "CIE_Y_BAR", "CIE_Z_BAR", "WAVELENGTHS"])
def test_tables_read_only(name):
    with pytest.raises(ValueError):
        getattr(color, name)[0] = 1.0


def test_y_bar_peaks_at_555nm():
    assert color.WAVELENGTHS[np.argmax(color.CIE_Y_BAR)] == 555.0
    assert color.CIE_Y_BAR.max() == 1.0


def test_spectrum_to_xyz_batch():
    samples = np.ones((2, 3, 95))
    xyz = color.spectrum_to_xyz(samples)
    assert xyz.shape == (2, 3, 3)
    assert xyz[1, 2, 1] == pytest.approx(color.CIE_Y_BAR.sum() * 5.0)


def test_spectrum_to_xyz_shape_error():
    with pytest.raises(ValueError, match=r"Expected shape"):
        color.spectrum_to_xyz(np.ones(94))


# ============================================================================
# CURVES
# ============================================================================

def test_flat_spectrum_integrals():
    xyz = ConstantSpectralCurve(1.0).to_xyz()

    assert isinstance(xyz, XYZColor)
    assert xyz.x == pytest.approx(106.8657, abs=1e-3)
    assert xyz.y == pytest.approx(106.8570, abs=1e-3)
    assert xyz.z == pytest.approx(106.8933, abs=1e-3)


def test_to_xyz_scales_linearly():
    one = ConstantSpectralCurve(1.0).to_xyz()
    half = ConstantSpectralCurve(0.5).to_xyz()
    assert half.y == pytest.approx(one.y * 0.5)


def test_single_line_spectrum():
    """Only the 555 nm sample contributes: ȳ(555) = 1 times the 5 nm step."""
    xyz = LineSpectrum(555.0).to_xyz()
    assert xyz.y == pytest.approx(5.0)
    assert xyz.x == pytest.approx(color.CIE_X_BAR[39] * 5.0)


def test_line_off_grid_contributes_nothing():
    assert LineSpectrum(557.0).to_xyz() == XYZColor(0.0, 0.0, 0.0)


def test_abstract_sample_required():
    class NoSample(SpectralCurve):
        pass

    with pytest.raises(TypeError):
        NoSample()
    with pytest.raises(TypeError):
        SpectralCurve()


def test_constant_curve_immutable_and_finite():
    curve = ConstantSpectralCurve(2.0)
    with pytest.raises(AttributeError):
        curve.value = 3.0
    with pytest.raises(ValueError):
        ConstantSpectralCurve(math.nan)


def test_sampled_curve_interpolates_and_holds():
    curve = SampledSpectralCurve(400.0, 700.0, [0.0, 1.0, 0.5, 0.0])

    assert curve.sample(400.0) == 0.0
    assert curve.sample(450.0) == pytest.approx(0.5)
    assert curve.sample(600.0) == pytest.approx(0.5)
    assert curve.sample(300.0) == 0.0
    assert curve.sample(900.0) == 0.0


def test_flat_sampled_curve_matches_constant():
    sampled = SampledSpectralCurve(360.0, 830.0, [0.25, 0.25]).to_xyz()
    constant = ConstantSpectralCurve(0.25).to_xyz()
    assert (sampled.x, sampled.y, sampled.z) == pytest.approx((constant.x, constant.y, constant.z))


@pytest.mark.parametrize("args", [
    (700.0, 400.0, [0.0, 1.0]),
    (400.0, 700.0, [1.0]),
    (400.0, 700.0, [[1.0, 2.0]]),
    (400.0, 700.0, [1.0, math.inf]),
])
def test_sampled_curve_validation(args):
    with pytest.raises(ValueError):
        SampledSpectralCurve(*args)


def test_spectral_sample_through_film():
    """A normalized spectrum is an ordinary XYZ sample for the film."""
    film = Film(PixelBuffer(2, 2), encoding="linear")
    xyz = ConstantSpectralCurve(1.0).to_xyz().normalize()

    film.add(0.5, 0.5, xyz)
    assert film.get_pixel(0, 0).color_xyz.y > 0.0
