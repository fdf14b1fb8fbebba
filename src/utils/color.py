"""Color space conversions on numpy arrays.

Provides:
    - sRGB ↔ linear RGB conversions (exact sRGB transfer function)
    - Power-law gamma encoding
    - Linear RGB ↔ CIE XYZ (sRGB primaries, D65 white point)
    - Luminance calculation from linear RGB
    - CIE 1931 color-matching tables and spectrum → XYZ integration
    - Display encodings registry used by the film resolve step

Used by:
    - src.raster.colors: scalar Color/XYZColor conversions
    - src.film.film: XYZ → RGB resolve + final display encoding
    - src.raster.pixel_buffer: byte/packed codec helpers
    - src.film.spectral: SpectralCurve.to_xyz()

All conversions operate on numpy arrays with channels last, shape (..., 3).
Scalars are accepted too (treated as 0-d arrays).

Invariants:
    - Internal pipeline uses linear RGB
    - sRGB only at the display/I-O boundary
    - Matrices are module-level read-only constants
"""

from typing import Callable, Dict

import numpy as np


# XYZ → linear RGB (sRGB primaries, D65). RGB_TO_XYZ is its exact inverse so
# that an RGB sample pushed through the film comes back unchanged.
XYZ_TO_RGB = np.array([
    [3.240479, -1.537150, -0.498535],
    [-0.969256, 1.875991, 0.041556],
    [0.055648, -0.204043, 1.057311]
], dtype=np.float64)
RGB_TO_XYZ = np.linalg.inv(XYZ_TO_RGB)

XYZ_TO_RGB.setflags(write=False)
RGB_TO_XYZ.setflags(write=False)

# Rec. 709 luminance weights
LUMINANCE_WEIGHTS = np.array([0.212671, 0.715160, 0.072169], dtype=np.float64)
LUMINANCE_WEIGHTS.setflags(write=False)


# ============================================================================
# CIE 1931 COLOR-MATCHING FUNCTIONS
# ============================================================================

# x̄, ȳ, z̄ sampled every 5 nm from 360 nm to 830 nm (95 samples each)
WAVELENGTH_MIN = 360
WAVELENGTH_MAX = 830
WAVELENGTH_STEP = 5

CIE_X_BAR = np.array([
    0.0001299, 0.0002321, 0.0004149, 0.0007416, 0.001368, 0.002236,
    0.004243, 0.00765, 0.01431, 0.02319, 0.04351, 0.07763,
    0.13438, 0.21477, 0.2839, 0.3285, 0.34828, 0.34806,
    0.3362, 0.3187, 0.2908, 0.2511, 0.19536, 0.1421,
    0.09564, 0.05795001, 0.03201, 0.0147, 0.0049, 0.0024,
    0.0093, 0.0291, 0.06327, 0.1096, 0.1655, 0.2257499,
    0.2904, 0.3597, 0.4334499, 0.5120501, 0.5945, 0.6784,
    0.7621, 0.8425, 0.9163, 0.9786, 1.0263, 1.0567,
    1.0622, 1.0456, 1.0026, 0.9384, 0.8544499, 0.7514,
    0.6424, 0.5419, 0.4479, 0.3608, 0.2835, 0.2187,
    0.1649, 0.1212, 0.0874, 0.0636, 0.04677, 0.0329,
    0.0227, 0.01584, 0.01135916, 0.008110916, 0.005790346, 0.004106457,
    0.002899327, 0.00204919, 0.001439971, 0.0009999493, 0.0006900786, 0.0004760213,
    0.0003323011, 0.0002348261, 0.0001661505, 0.000117413, 0.00008307527, 0.00005870652,
    0.00004150994, 0.00002935326, 0.00002067383, 0.00001455977, 0.00001025398, 0.000007221456,
    0.000005085868, 0.000003581652, 0.000002522525, 0.000001776509, 0.000001251141,
], dtype=np.float64)

CIE_Y_BAR = np.array([
    0.000003917, 0.000006965, 0.00001239, 0.00002202, 0.000039, 0.000064,
    0.00012, 0.000217, 0.000396, 0.00064, 0.00121, 0.00218,
    0.004, 0.0073, 0.0116, 0.01684, 0.023, 0.0298,
    0.038, 0.048, 0.06, 0.0739, 0.09098, 0.1126,
    0.13902, 0.1693, 0.20802, 0.2586, 0.323, 0.4073,
    0.503, 0.6082, 0.71, 0.7932, 0.862, 0.9148501,
    0.954, 0.9803, 0.9949501, 1.0, 0.995, 0.9786,
    0.952, 0.9154, 0.87, 0.8163, 0.757, 0.6949,
    0.631, 0.5668, 0.503, 0.4412, 0.381, 0.321,
    0.265, 0.217, 0.175, 0.1382, 0.107, 0.0816,
    0.061, 0.04458, 0.032, 0.0232, 0.017, 0.01192,
    0.00821, 0.005723, 0.004102, 0.002929, 0.002091, 0.001484,
    0.001047, 0.00074, 0.00052, 0.0003611, 0.0002492, 0.0001719,
    0.00012, 0.0000848, 0.00006, 0.0000424, 0.00003, 0.0000212,
    0.00001499, 0.0000106, 0.0000074657, 0.0000052578, 0.0000037029, 0.0000026078,
    0.0000018366, 0.0000012934, 0.00000091093, 0.00000064153, 0.00000045181,
], dtype=np.float64)

CIE_Z_BAR = np.array([
    0.0006061, 0.001086, 0.001946, 0.003486, 0.006450001, 0.01054999,
    0.02005001, 0.03621, 0.06785001, 0.1102, 0.2074, 0.3713,
    0.6456, 1.0390501, 1.3856, 1.62296, 1.74706, 1.7826,
    1.77211, 1.7441, 1.6692, 1.5281, 1.28764, 1.0419,
    0.8129501, 0.6162, 0.46518, 0.3533, 0.272, 0.2123,
    0.1582, 0.1117, 0.07824999, 0.05725001, 0.04216, 0.02984,
    0.0203, 0.0134, 0.008749999, 0.005749999, 0.0039, 0.002749999,
    0.0021, 0.0018, 0.001650001, 0.0014, 0.0011, 0.001,
    0.0008, 0.0006, 0.00034, 0.00024, 0.00019, 0.0001,
    0.00004999999, 0.00003, 0.00002, 0.00001, 0.0, 0.0,
    0.0, 0.0, 0.0, 0.0, 0.0, 0.0,
    0.0, 0.0, 0.0, 0.0, 0.0, 0.0,
    0.0, 0.0, 0.0, 0.0, 0.0, 0.0,
    0.0, 0.0, 0.0, 0.0, 0.0, 0.0,
    0.0, 0.0, 0.0, 0.0, 0.0, 0.0,
    0.0, 0.0, 0.0, 0.0, 0.0,
], dtype=np.float64)

WAVELENGTHS = np.arange(WAVELENGTH_MIN, WAVELENGTH_MAX + 1, WAVELENGTH_STEP, dtype=np.float64)

CIE_X_BAR.setflags(write=False)
CIE_Y_BAR.setflags(write=False)
CIE_Z_BAR.setflags(write=False)
WAVELENGTHS.setflags(write=False)


def spectrum_to_xyz(samples: np.ndarray) -> np.ndarray:
    """Integrate spectral samples against the CIE matching functions.

    Parameters
    ----------
    samples : np.ndarray
        Spectral values at ``WAVELENGTHS``, shape (..., 95)

    Returns
    -------
    np.ndarray
        XYZ, shape (..., 3): ``sum(s * bar) * WAVELENGTH_STEP`` per axis

    Raises
    ------
    ValueError
        If the last axis is not 95 long
    """
    samples = np.asarray(samples, dtype=np.float64)
    if samples.shape[-1:] != WAVELENGTHS.shape:
        raise ValueError(f"Expected shape (..., {WAVELENGTHS.size}), got {samples.shape}")
    bars = np.stack([CIE_X_BAR, CIE_Y_BAR, CIE_Z_BAR], axis=-1)
    return (samples @ bars) * WAVELENGTH_STEP


def srgb_to_linear(img: np.ndarray) -> np.ndarray:
    """Convert sRGB [0,1] to linear RGB [0,1].

    Parameters
    ----------
    img : np.ndarray
        sRGB values, any shape, range [0, 1]

    Returns
    -------
    np.ndarray
        Linear RGB values, same shape, float64

    Notes
    -----
    Exact sRGB transfer function:
        - Linear region for small values: x / 12.92
        - Power region: ((x + 0.055) / 1.055)^2.4
    """
    img = np.clip(np.asarray(img, dtype=np.float64), 0.0, 1.0)

    linear = img / 12.92
    power = np.power((img + 0.055) / 1.055, 2.4)

    return np.where(img <= 0.04045, linear, power)


def linear_to_srgb(img: np.ndarray) -> np.ndarray:
    """Convert linear RGB [0,1] to sRGB [0,1].

    Parameters
    ----------
    img : np.ndarray
        Linear RGB values, any shape

    Returns
    -------
    np.ndarray
        sRGB values, same shape, clamped to [0, 1]

    Notes
    -----
    Inverse of srgb_to_linear. Inputs outside [0, 1] are clamped first,
    so HDR values saturate at white.
    """
    img = np.clip(np.asarray(img, dtype=np.float64), 0.0, 1.0)

    linear = img * 12.92
    power = 1.055 * np.power(img, 1.0 / 2.4) - 0.055

    return np.where(img <= 0.0031308, linear, power)


def gamma_encode(img: np.ndarray, gamma: float = 2.2) -> np.ndarray:
    """Pure power-law encoding ``x^(1/gamma)`` on values clamped to [0, 1]."""
    if gamma <= 0.0:
        raise ValueError(f"gamma must be > 0, got {gamma}")
    img = np.clip(np.asarray(img, dtype=np.float64), 0.0, 1.0)
    return np.power(img, 1.0 / gamma)


def rgb_to_xyz(rgb: np.ndarray) -> np.ndarray:
    """Convert linear RGB to CIE XYZ (D65).

    Parameters
    ----------
    rgb : np.ndarray
        Linear RGB, shape (..., 3)

    Returns
    -------
    np.ndarray
        XYZ coordinates, shape (..., 3), float64
    """
    rgb = np.asarray(rgb, dtype=np.float64)
    if rgb.shape[-1:] != (3,):
        raise ValueError(f"Expected shape (..., 3), got {rgb.shape}")
    return rgb @ RGB_TO_XYZ.T


def xyz_to_rgb(xyz: np.ndarray) -> np.ndarray:
    """Convert CIE XYZ (D65) to linear RGB.

    Parameters
    ----------
    xyz : np.ndarray
        XYZ coordinates, shape (..., 3)

    Returns
    -------
    np.ndarray
        Linear RGB, shape (..., 3), float64, unclamped
    """
    xyz = np.asarray(xyz, dtype=np.float64)
    if xyz.shape[-1:] != (3,):
        raise ValueError(f"Expected shape (..., 3), got {xyz.shape}")
    return xyz @ XYZ_TO_RGB.T


def luminance_linear(rgb: np.ndarray) -> np.ndarray:
    """Luminance of linear RGB, shape (..., 3) → (...)."""
    rgb = np.asarray(rgb, dtype=np.float64)
    if rgb.shape[-1:] != (3,):
        raise ValueError(f"Expected shape (..., 3), got {rgb.shape}")
    return rgb @ LUMINANCE_WEIGHTS


def tone_map_reinhard(rgb: np.ndarray, exposure: float = 1.0) -> np.ndarray:
    """Reinhard operator ``v / (1 + v)`` after exposure scaling."""
    v = np.asarray(rgb, dtype=np.float64) * exposure
    return v / (1.0 + v)


def tone_map_filmic(
    rgb: np.ndarray,
    exposure: float,
    a: float,
    b: float,
    c: float,
    d: float,
    e: float,
    subtract: float = 0.0,
    minimum: float = np.finfo(np.float32).tiny
) -> np.ndarray:
    """Rational filmic curve ``x(ax + b) / (x(cx + d) + e)``, saturated to [0, 1].

    Parameters
    ----------
    rgb : np.ndarray
        Linear RGB values, any shape
    exposure : float
        Multiplier applied before the curve
    a, b, c, d, e : float
        Curve coefficients
    subtract : float
        Toe offset subtracted after exposure, default 0
    minimum : float
        Lower bound applied after the toe offset

    Returns
    -------
    np.ndarray
        Tone-mapped values in [0, 1]
    """
    x = np.maximum(np.asarray(rgb, dtype=np.float64) * exposure - subtract, minimum)
    return np.clip((x * (a * x + b)) / (x * (c * x + d) + e), 0.0, 1.0)


def tone_map_aces(rgb: np.ndarray, exposure: float = 1.0) -> np.ndarray:
    """ACES filmic approximation (Narkowicz 2016)."""
    return tone_map_filmic(rgb, exposure, 2.51, 0.03, 2.43, 0.59, 0.14)


# ============================================================================
# DISPLAY ENCODINGS
# ============================================================================

Encoding = Callable[[np.ndarray], np.ndarray]

ENCODINGS: Dict[str, Encoding] = {
    "srgb": linear_to_srgb,
    "linear": lambda rgb: np.asarray(rgb, dtype=np.float64),
    "gamma22": lambda rgb: gamma_encode(rgb, 2.2),
    "reinhard": lambda rgb: linear_to_srgb(tone_map_reinhard(rgb)),
    "aces": lambda rgb: linear_to_srgb(tone_map_aces(rgb)),
}


def get_encoding(name: str) -> Encoding:
    """Look up a display encoding by name.

    Parameters
    ----------
    name : str
        One of ``ENCODINGS`` keys ("srgb", "linear", "gamma22", "reinhard", "aces")

    Returns
    -------
    Callable
        Function mapping linear RGB (..., 3) to encoded values

    Raises
    ------
    ValueError
        If name is unknown
    """
    try:
        return ENCODINGS[name]
    except KeyError:
        raise ValueError(
            f"Unknown encoding: {name}. Use one of {sorted(ENCODINGS)}."
        ) from None
