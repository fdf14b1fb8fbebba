"""Tests for integer addressing and precondition guards.

Tests for src.utils.compute:
    - wrap_index(): non-negative modulo, idempotence, size validation
    - clamp_int(): inclusive bounds
    - require_int(), require_resolution(): type and overflow checks
    - require_exact_length(), require_finite(), assert_finite()

Run:
    pytest tests/test_compute.py -v
"""

import math

import numpy as np
import pytest

from src.utils import compute


# ============================================================================
# WRAP INDEX
# ============================================================================

@pytest.mark.parametrize("value,size,expected", [
    (0, 4, 0),
    (3, 4, 3),
    (4, 4, 0),
    (9, 4, 1),
    (-1, 4, 3),
    (-4, 4, 0),
    (-9, 4, 3),
])
def test_wrap_index_values(value, size, expected):
    assert compute.wrap_index(value, size) == expected


def test_wrap_index_in_range_and_idempotent():
    for n in (1, 2, 7, 16):
        for i in range(-40, 40):
            w = compute.wrap_index(i, n)
            assert 0 <= w < n
            assert compute.wrap_index(w, n) == w


@pytest.mark.parametrize("size", [0, -3])
def test_wrap_index_rejects_non_positive_size(size):
    with pytest.raises(ValueError, match="size must be > 0"):
        compute.wrap_index(1, size)


def test_clamp_int():
    assert compute.clamp_int(-5, 0, 9) == 0
    assert compute.clamp_int(12, 0, 9) == 9
    assert compute.clamp_int(4, 0, 9) == 4
    assert compute.clamp_int(9, 0, 9) == 9


# ============================================================================
# PRECONDITIONS
# ============================================================================

def test_require_int_accepts_numpy_integers():
    assert compute.require_int(np.int32(7), "x") == 7
    assert type(compute.require_int(np.int64(7), "x")) is int


@pytest.mark.parametrize("bad", [True, 1.0, "3", None])
def test_require_int_rejects(bad):
    with pytest.raises(TypeError, match="x must be an int"):
        compute.require_int(bad, "x")


def test_require_resolution_ok():
    assert compute.require_resolution(4, 3) == (4, 3, 12)
    assert compute.require_resolution(0, 10) == (0, 10, 0)


def test_require_resolution_negative():
    with pytest.raises(ValueError, match="width < 0"):
        compute.require_resolution(-1, 3)
    with pytest.raises(ValueError, match="height < 0"):
        compute.require_resolution(3, -1)


def test_require_resolution_overflow():
    with pytest.raises(ValueError, match="overflows"):
        compute.require_resolution(2 ** 16, 2 ** 16)


def test_require_resolution_at_limit():
    w, h, n = compute.require_resolution(compute.MAX_RESOLUTION, 1)
    assert n == compute.MAX_RESOLUTION


def test_require_resolution_type():
    with pytest.raises(TypeError):
        compute.require_resolution(4.0, 3)


def test_require_exact_length():
    values = [1, 2, 3]
    assert compute.require_exact_length(values, 3, "values") is values

    with pytest.raises(ValueError, match=r"len\(values\) != 4"):
        compute.require_exact_length(values, 4, "values")
    with pytest.raises(TypeError, match="must not be None"):
        compute.require_exact_length(None, 4, "values")


def test_require_finite():
    assert compute.require_finite(2, "w") == 2.0
    with pytest.raises(ValueError, match="w is NaN"):
        compute.require_finite(math.nan, "w")
    with pytest.raises(ValueError, match="w is infinite"):
        compute.require_finite(-math.inf, "w")


def test_assert_finite():
    compute.assert_finite(np.zeros((3, 3)))

    arr = np.array([1.0, np.nan, np.inf, np.inf])
    with pytest.raises(ValueError, match="1 NaNs, 2 Infs"):
        compute.assert_finite(arr, "pixels")
