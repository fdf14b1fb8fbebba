"""Convolution kernels applied to a PixelBuffer.

Provides:
    - ConvolutionKernel: square odd-sized weight matrix with factor and bias
    - Presets: 3×3 BOX_BLUR, EDGE_DETECTION, EMBOSS, GAUSSIAN_BLUR_3,
      GRADIENT_HORIZONTAL, GRADIENT_VERTICAL, SHARPEN; 5×5 GAUSSIAN_BLUR_5,
      UNSHARP_MASKING
    - convolve(): filter the RGB channels of a buffer in place

Per pixel, ``convolve`` computes
    rgb = sum_{i,j} weights[i, j] * src[y + i - k, x + j - k]   (k = size // 2)
    rgb = rgb * factor + bias
    rgb = min_to_0(rgb) then max_to_1(rgb)
reading pixels outside the buffer as black. Weights are applied as a
correlation (not flipped), so weights[0, 0] multiplies the top-left
neighbour. Alpha is left untouched; every sample count becomes 1.

Filtering runs through OpenCV filter2D with a constant zero border.
"""

import logging
from dataclasses import dataclass

import cv2
import numpy as np

from src.raster.pixel_buffer import PixelBuffer
from src.utils.compute import assert_finite

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConvolutionKernel:
    """Square, odd-sized convolution weights with a post-scale and offset.

    Attributes
    ----------
    weights : np.ndarray
        (n, n) float64, n odd; stored read-only
    factor : float
        Multiplier applied after the weighted sum
    bias : float
        Offset added after the factor
    """

    weights: np.ndarray
    factor: float = 1.0
    bias: float = 0.0

    def __post_init__(self):
        weights = np.array(self.weights, dtype=np.float64)
        if weights.ndim != 2 or weights.shape[0] != weights.shape[1] or weights.shape[0] % 2 == 0:
            raise ValueError(f"weights must be a square odd-sized matrix, got shape {weights.shape}")
        assert_finite(weights, "weights")
        assert_finite(np.array([self.factor, self.bias]), "factor/bias")
        weights.setflags(write=False)
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "factor", float(self.factor))
        object.__setattr__(self, "bias", float(self.bias))

    @property
    def size(self) -> int:
        return self.weights.shape[0]

    def __eq__(self, other) -> bool:
        if not isinstance(other, ConvolutionKernel):
            return NotImplemented
        return (
            np.array_equal(self.weights, other.weights)
            and self.factor == other.factor
            and self.bias == other.bias
        )

    def __hash__(self) -> int:
        return hash((self.weights.tobytes(), self.weights.shape, self.factor, self.bias))


# ============================================================================
# PRESETS
# ============================================================================

IDENTITY = ConvolutionKernel([[0, 0, 0], [0, 1, 0], [0, 0, 0]])

BOX_BLUR = ConvolutionKernel([[1, 1, 1], [1, 1, 1], [1, 1, 1]], factor=1.0 / 9.0)

EDGE_DETECTION = ConvolutionKernel([[-1, -1, -1], [-1, 8, -1], [-1, -1, -1]])

EMBOSS = ConvolutionKernel([[-1, -1, 0], [-1, 0, 1], [0, 1, 1]], factor=1.0, bias=0.5)

GAUSSIAN_BLUR_3 = ConvolutionKernel([[1, 2, 1], [2, 4, 2], [1, 2, 1]], factor=1.0 / 16.0)

GRADIENT_HORIZONTAL = ConvolutionKernel([[-1, -1, -1], [0, 0, 0], [1, 1, 1]])

GRADIENT_VERTICAL = ConvolutionKernel([[-1, 0, 1], [-1, 0, 1], [-1, 0, 1]])

SHARPEN = ConvolutionKernel([[-1, -1, -1], [-1, 9, -1], [-1, -1, -1]])

GAUSSIAN_BLUR_5 = ConvolutionKernel(
    [[1, 4, 6, 4, 1],
     [4, 16, 24, 16, 4],
     [6, 24, 36, 24, 6],
     [4, 16, 24, 16, 4],
     [1, 4, 6, 4, 1]],
    factor=1.0 / 256.0
)

UNSHARP_MASKING = ConvolutionKernel(
    [[1, 4, 6, 4, 1],
     [4, 16, 24, 16, 4],
     [6, 24, -476, 24, 6],
     [4, 16, 24, 16, 4],
     [1, 4, 6, 4, 1]],
    factor=-1.0 / 256.0
)


def normalize_rgb(rgb: np.ndarray) -> np.ndarray:
    """Vectorized Color.min_to_0().max_to_1() over an (..., 3) array."""
    lowest = rgb.min(axis=-1, keepdims=True)
    rgb = np.where(lowest < 0.0, rgb - lowest, rgb)
    highest = rgb.max(axis=-1, keepdims=True)
    return np.where(highest > 1.0, rgb / np.where(highest > 1.0, highest, 1.0), rgb)


def convolve(buffer: PixelBuffer, kernel: ConvolutionKernel) -> None:
    """Apply ``kernel`` to the RGB channels of ``buffer`` in place.

    Parameters
    ----------
    buffer : PixelBuffer
        Target buffer; alpha channel preserved
    kernel : ConvolutionKernel
        Weights, factor and bias

    Raises
    ------
    TypeError
        If kernel is not a ConvolutionKernel
    """
    if not isinstance(kernel, ConvolutionKernel):
        raise TypeError(f"kernel must be a ConvolutionKernel, got {type(kernel).__name__}")
    if buffer.resolution == 0:
        return

    rgb = np.ascontiguousarray(buffer.colors[..., :3])
    filtered = cv2.filter2D(
        rgb,
        ddepth=-1,
        kernel=kernel.weights,
        borderType=cv2.BORDER_CONSTANT
    )
    filtered = filtered * kernel.factor + kernel.bias

    buffer.colors[..., :3] = normalize_rgb(filtered)
    buffer.sample_counts[...] = 1
    logger.debug(f"Convolved {buffer.width}x{buffer.height} buffer with {kernel.size}x{kernel.size} kernel")
