"""Tests for array color space conversions and display encodings.

Tests for src.utils.color:
    - sRGB transfer function: round trip, clamping, breakpoints
    - Linear RGB ↔ XYZ matrices are exact inverses
    - Luminance weights and shape validation
    - Tone mapping curves stay in range
    - ENCODINGS registry and get_encoding() lookup

Run:
    pytest tests/test_color.py -v
"""

import numpy as np
import pytest

from src.utils import color


# ============================================================================
# TRANSFER FUNCTIONS
# ============================================================================

def test_srgb_round_trip():
    x = np.linspace(0.0, 1.0, 101)
    np.testing.assert_allclose(color.srgb_to_linear(color.linear_to_srgb(x)), x, atol=1e-9)


def test_srgb_endpoints_and_midpoint():
    assert color.linear_to_srgb(0.0) == 0.0
    assert color.linear_to_srgb(1.0) == pytest.approx(1.0)
    # 0.5 sRGB is about 0.214 linear
    assert color.srgb_to_linear(0.5) == pytest.approx(0.21404, abs=1e-5)


def test_srgb_linear_segment():
    assert color.linear_to_srgb(0.001) == pytest.approx(0.01292)
    assert color.srgb_to_linear(0.02) == pytest.approx(0.02 / 12.92)


def test_transfer_clamps_out_of_range():
    out = color.linear_to_srgb(np.array([-0.5, 4.0]))
    np.testing.assert_allclose(out, [0.0, 1.0])


def test_gamma_encode():
    assert color.gamma_encode(0.25, 2.0) == pytest.approx(0.5)
    with pytest.raises(ValueError):
        color.gamma_encode(0.5, 0.0)


# ============================================================================
# XYZ
# ============================================================================

def test_matrices_are_inverses():
    np.testing.assert_allclose(color.RGB_TO_XYZ @ color.XYZ_TO_RGB, np.eye(3), atol=1e-12)


def test_matrices_read_only():
    with pytest.raises(ValueError):
        color.XYZ_TO_RGB[0, 0] = 1.0


def test_xyz_round_trip_image():
    rng = np.random.default_rng(0)
    rgb = rng.uniform(-0.5, 4.0, size=(5, 7, 3))
    np.testing.assert_allclose(color.xyz_to_rgb(color.rgb_to_xyz(rgb)), rgb, atol=1e-12)


def test_xyz_of_white_has_unit_y():
    assert color.rgb_to_xyz(np.ones(3))[1] == pytest.approx(1.0, abs=1e-4)


@pytest.mark.parametrize("fn", [color.rgb_to_xyz, color.xyz_to_rgb, color.luminance_linear])
def test_shape_validation(fn):
    with pytest.raises(ValueError, match=r"Expected shape"):
        fn(np.zeros((4, 4)))


def test_luminance():
    rgb = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 1.0]])
    lum = color.luminance_linear(rgb)
    assert lum.shape == (3,)
    assert lum[1] > lum[0]
    assert lum[2] == pytest.approx(1.0, abs=1e-5)


# ============================================================================
# TONE MAPPING
# ============================================================================

def test_reinhard():
    np.testing.assert_allclose(color.tone_map_reinhard(np.array([0.0, 1.0, 3.0])), [0.0, 0.5, 0.75])
    assert color.tone_map_reinhard(1.0, exposure=3.0) == pytest.approx(0.75)


def test_aces_range_and_monotonic():
    x = np.linspace(0.0, 50.0, 200)
    y = color.tone_map_aces(x)
    assert y.min() >= 0.0
    assert y.max() <= 1.0
    assert np.all(np.diff(y) >= 0.0)


def test_filmic_minimum_guards_negative():
    out = color.tone_map_filmic(np.array([-5.0]), 1.0, 2.51, 0.03, 2.43, 0.59, 0.14)
    assert out[0] >= 0.0


# ============================================================================
# ENCODINGS
# ============================================================================

def test_encodings_registry():
    assert set(color.ENCODINGS) == {"srgb", "linear", "gamma22", "reinhard", "aces"}


def test_linear_encoding_is_identity():
    rgb = np.array([[-0.2, 0.5, 3.0]])
    np.testing.assert_array_equal(color.get_encoding("linear")(rgb), rgb)


def test_srgb_encoding():
    enc = color.get_encoding("srgb")
    assert enc(np.array([0.5]))[0] == pytest.approx(color.linear_to_srgb(0.5))


@pytest.mark.parametrize("name", ["reinhard", "aces", "gamma22"])
def test_display_encodings_bounded(name):
    out = color.get_encoding(name)(np.array([0.0, 0.5, 20.0]))
    assert out.min() >= 0.0
    assert out.max() <= 1.0


def test_unknown_encoding():
    with pytest.raises(ValueError, match="Unknown encoding"):
        color.get_encoding("rec2020")
