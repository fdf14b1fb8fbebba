"""Tests for the Color and XYZColor value types.

Tests for src.raster.colors:
    - Construction: finite check, None/bool rejection, immutability
    - Arithmetic with colors and scalars; alpha kept from the left operand
    - blend/lerp, moving-average add_sample
    - min_to_0 / max_to_1 / saturate normalization
    - 8-bit conversion and packed channel orders
    - Gamma and tone mapping delegate to src.utils.color
    - XYZColor conversion round trip and normalize

Run:
    pytest tests/test_colors.py -v
"""

import dataclasses
import math

import numpy as np
import pytest

from src.raster.colors import Color, XYZColor, channel_indices


# ============================================================================
# CONSTRUCTION
# ============================================================================

class TestConstruction:
    """Validation and constructors."""

    def test_default_alpha_is_one(self):
        assert Color(0.1, 0.2, 0.3).a == 1.0

    def test_ints_are_coerced_to_float(self):
        c = Color(1, 0, 0, 1)
        assert isinstance(c.r, float)
        assert c == Color.RED

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_rejected(self, bad):
        with pytest.raises(ValueError):
            Color(bad, 0.0, 0.0)
        with pytest.raises(ValueError):
            Color(0.0, 0.0, 0.0, bad)

    def test_none_and_bool_rejected(self):
        with pytest.raises(TypeError):
            Color(None, 0.0, 0.0)
        with pytest.raises(TypeError):
            Color(True, 0.0, 0.0)

    def test_immutable(self):
        c = Color(0.1, 0.2, 0.3)
        with pytest.raises(dataclasses.FrozenInstanceError):
            c.r = 0.5

    def test_hdr_and_negative_values_allowed(self):
        c = Color(4.0, -0.5, 12.0)
        assert c.to_tuple() == (4.0, -0.5, 12.0, 1.0)

    def test_from_ints_saturates(self):
        c = Color.from_ints(300, -4, 51, 255)
        assert c.r == 1.0
        assert c.g == 0.0
        assert c.b == pytest.approx(0.2)
        assert c.a == 1.0

    def test_gray(self):
        assert Color.gray(0.25, a=0.5) == Color(0.25, 0.25, 0.25, 0.5)

    def test_random_in_unit_range(self):
        rng = np.random.default_rng(7)
        for _ in range(20):
            c = Color.random(rng)
            assert all(0.0 <= v < 1.0 for v in (c.r, c.g, c.b))
            assert c.a == 1.0

    def test_random_reproducible(self):
        a = Color.random(np.random.default_rng(3))
        b = Color.random(np.random.default_rng(3))
        assert a == b

    @pytest.mark.parametrize("factory, channel", [
        (Color.random_red, 0),
        (Color.random_green, 1),
        (Color.random_blue, 2),
    ])
    def test_random_single_channel(self, factory, channel):
        rng = np.random.default_rng(11)
        for _ in range(10):
            c = factory(rng, a=0.5)
            rgb = (c.r, c.g, c.b)
            assert 0.0 <= rgb[channel] < 1.0
            assert [v for i, v in enumerate(rgb) if i != channel] == [0.0, 0.0]
            assert c.a == 0.5
        assert factory(np.random.default_rng(5)) == factory(np.random.default_rng(5))

    def test_random_gray(self):
        c = Color.random_gray(np.random.default_rng(2), a=0.25)
        assert c.r == c.g == c.b
        assert 0.0 <= c.r < 1.0
        assert c.a == 0.25


# ============================================================================
# ARITHMETIC
# ============================================================================

class TestArithmetic:
    """Component-wise math; alpha comes from the left operand."""

    def test_add_subtract(self):
        a = Color(0.5, 0.25, 0.0, 0.3)
        b = Color(0.25, 0.25, 1.0, 0.9)
        assert a + b == Color(0.75, 0.5, 1.0, 0.3)
        assert a - b == Color(0.25, 0.0, -1.0, 0.3)

    def test_scalar_multiply_divide(self):
        c = Color(0.5, 1.0, 2.0, 0.4)
        assert c * 2 == Color(1.0, 2.0, 4.0, 0.4)
        assert 2 * c == Color(1.0, 2.0, 4.0, 0.4)
        assert c / 2.0 == Color(0.25, 0.5, 1.0, 0.4)

    def test_color_multiply(self):
        assert Color(0.5, 0.5, 0.5).multiply(Color(1.0, 0.0, 0.5)) == Color(0.5, 0.0, 0.25)

    def test_numpy_scalar_accepted(self):
        assert Color(1.0, 1.0, 1.0) * np.float64(0.5) == Color.GRAY

    def test_divide_by_zero_raises(self):
        with pytest.raises(ZeroDivisionError):
            Color.WHITE / 0.0

    def test_bad_operand_type(self):
        with pytest.raises(TypeError):
            Color.WHITE + "red"

    def test_add_sample_moving_average(self):
        """Averaging n samples incrementally equals their mean."""
        samples = [Color(0.1, 0.9, 0.3), Color(0.5, 0.1, 0.7), Color(0.9, 0.2, 0.2)]
        avg = Color.BLACK
        for i, s in enumerate(samples, start=1):
            avg = avg.add_sample(s, i)

        assert avg.r == pytest.approx(0.5)
        assert avg.g == pytest.approx(0.4)
        assert avg.b == pytest.approx(0.4)

    def test_add_sample_requires_positive_count(self):
        with pytest.raises(ValueError):
            Color.BLACK.add_sample(Color.WHITE, 0)


# ============================================================================
# BLENDING AND NORMALIZATION
# ============================================================================

class TestBlending:

    def test_blend_endpoints(self):
        assert Color.blend(Color.RED, Color.BLUE, 0.0) == Color.RED
        assert Color.blend(Color.RED, Color.BLUE, 1.0) == Color.BLUE

    def test_blend_midpoint_alpha_is_one(self):
        c = Color.blend(Color(0.0, 0.0, 0.0, 0.2), Color(1.0, 1.0, 1.0, 0.4), 0.5)
        assert c == Color(0.5, 0.5, 0.5, 1.0)

    def test_blend_per_channel(self):
        c = Color.blend(Color.BLACK, Color.WHITE, 0.0, 0.5, 1.0)
        assert c == Color(0.0, 0.5, 1.0)

    def test_lerp(self):
        assert Color.BLACK.lerp(Color.WHITE, 0.25) == Color.gray(0.25)

    def test_min_to_0_shifts_negative(self):
        assert Color(-0.5, 0.0, 0.5).min_to_0() == Color(0.0, 0.5, 1.0)

    def test_min_to_0_leaves_non_negative(self):
        c = Color(0.1, 0.2, 0.3)
        assert c.min_to_0() is c

    def test_max_to_1_scales_down(self):
        assert Color(2.0, 1.0, 0.0).max_to_1() == Color(1.0, 0.5, 0.0)

    def test_max_to_1_leaves_in_range(self):
        c = Color(0.1, 1.0, 0.3)
        assert c.max_to_1() is c

    def test_saturate(self):
        assert Color(-1.0, 0.5, 3.0, 0.7).saturate() == Color(0.0, 0.5, 1.0, 0.7)

    def test_saturate_swapped_bounds(self):
        assert Color(0.0, 0.5, 1.0).saturate(0.8, 0.2) == Color(0.2, 0.5, 0.8)

    def test_invert_negate(self):
        assert Color(0.25, 0.5, 1.0).invert() == Color(0.75, 0.5, 0.0)
        assert Color(0.25, 0.5, 1.0).negate() == Color(-0.25, -0.5, -1.0)

    def test_gray_variants(self):
        c = Color(0.2, 0.4, 0.9)
        assert c.gray_average().r == pytest.approx(0.5)
        assert c.gray_min() == Color.gray(0.2)
        assert c.gray_max() == Color.gray(0.9)
        assert c.gray_lightness().r == pytest.approx(0.55)
        assert c.gray_luminance().g == pytest.approx(c.luminance())

    def test_gray_from_single_channel(self):
        c = Color(0.2, 0.4, 0.9, 0.5)
        assert c.gray_r() == Color(0.2, 0.2, 0.2, 0.5)
        assert c.gray_g() == Color(0.4, 0.4, 0.4, 0.5)
        assert c.gray_b() == Color(0.9, 0.9, 0.9, 0.5)

    def test_luminance_of_white_is_one(self):
        assert Color.WHITE.luminance() == pytest.approx(1.0, abs=1e-6)

    def test_sepia_of_white(self):
        s = Color.WHITE.sepia()
        assert s.r == pytest.approx(1.351)
        assert s.b == pytest.approx(0.937)


# ============================================================================
# GAMMA AND TONE MAPPING
# ============================================================================

class TestGamma:

    def test_gamma_round_trip(self):
        c = Color(0.2, 0.5, 0.8, 0.6)
        back = c.redo_gamma_correction().undo_gamma_correction()
        for got, want in zip(back.to_tuple(), c.to_tuple()):
            assert got == pytest.approx(want, abs=1e-9)

    def test_gamma_keeps_alpha(self):
        assert Color(0.5, 0.5, 0.5, 0.3).redo_gamma_correction().a == 0.3

    def test_gamma_clamps_hdr(self):
        c = Color(5.0, -1.0, 1.0).redo_gamma_correction()
        assert (c.r, c.g, c.b) == pytest.approx((1.0, 0.0, 1.0))

    def test_reinhard(self):
        assert Color(1.0, 3.0, 0.0).tone_map_reinhard() == Color(0.5, 0.75, 0.0)

    def test_aces_stays_in_unit_range(self):
        c = Color(100.0, 0.5, 0.0).tone_map_aces()
        assert all(0.0 <= v <= 1.0 for v in (c.r, c.g, c.b))


# ============================================================================
# 8-BIT AND PACKED
# ============================================================================

class TestPacking:

    def test_to_ints_rounds_and_saturates(self):
        assert Color(1.5, -0.2, 0.5, 1.0).to_ints() == (255, 0, 128, 255)

    def test_pack_argb(self):
        assert Color(1.0, 0.0, 0.0, 1.0).pack("ARGB") == 0xFFFF0000

    def test_pack_rgba(self):
        assert Color(1.0, 0.0, 0.0, 1.0).pack("RGBA") == 0xFF0000FF

    @pytest.mark.parametrize("order", ["ARGB", "RGBA", "ABGR", "BGRA"])
    def test_unpack_inverts_pack(self, order):
        c = Color.from_ints(12, 200, 77, 128)
        assert Color.from_packed(c.pack(order), order) == c

    def test_from_packed_high_byte_first(self):
        c = Color.from_packed(0x80FF0000, "ARGB")
        assert c.to_ints() == (255, 0, 0, 128)

    def test_channel_indices(self):
        assert channel_indices("BGR") == (2, 1, 0)
        assert channel_indices("argb") == (3, 0, 1, 2)

    @pytest.mark.parametrize("order", ["RGBB", "RGX", "RG", "RGA", "RGBAA"])
    def test_channel_indices_rejects(self, order):
        with pytest.raises(ValueError):
            channel_indices(order)

    def test_channel_indices_type(self):
        with pytest.raises(TypeError):
            channel_indices(None)


# ============================================================================
# XYZ
# ============================================================================

class TestXYZColor:

    @pytest.mark.parametrize("color", [Color.RED, Color.WHITE, Color(0.2, 0.7, 0.05)])
    def test_round_trip(self, color):
        back = XYZColor.from_color(color).to_color()
        for got, want in zip(back.to_tuple(), color.to_tuple()):
            assert got == pytest.approx(want, abs=1e-12)

    def test_white_luminance_y(self):
        """Y of linear white is the luminance of white."""
        assert XYZColor.from_color(Color.WHITE).y == pytest.approx(1.0, abs=1e-4)

    def test_arithmetic(self):
        a = XYZColor(1.0, 2.0, 3.0)
        assert a + XYZColor(1.0, 1.0, 1.0) == XYZColor(2.0, 3.0, 4.0)
        assert a * 2.0 == XYZColor(2.0, 4.0, 6.0)
        assert a.multiply(XYZColor(0.0, 1.0, 2.0)) == XYZColor(0.0, 2.0, 6.0)

    def test_normalize(self):
        n = XYZColor(1.0, 2.0, 1.0).normalize()
        assert (n.x, n.y, n.z) == pytest.approx((0.25, 0.5, 0.25))

    def test_normalize_near_zero_unchanged(self):
        assert XYZColor.ZERO.normalize() == XYZColor.ZERO

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError):
            XYZColor(math.nan, 0.0, 0.0)
