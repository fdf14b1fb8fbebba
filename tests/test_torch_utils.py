"""Test PyTorch interop for pixel data.

Tests for src.utils.torch_utils:
    - array_to_tensor(): layout (H, W, C) → (C, H, W), dtype, 2D input
    - tensor_to_array(): both layouts, batch squeeze, shape errors
    - get_device(): "auto", explicit strings, passthrough

Run:
    pytest tests/test_torch_utils.py -v
"""

import numpy as np
import pytest

torch = pytest.importorskip("torch")

from src.utils import torch_utils  # noqa: E402


def _image():
    return np.arange(2 * 3 * 4, dtype=np.float64).reshape(2, 3, 4)


def test_array_to_tensor_layout():
    arr = _image()
    t = torch_utils.array_to_tensor(arr)

    assert t.shape == (4, 2, 3)
    assert t.dtype == torch.float32
    # Channel c of pixel (y, x) lands at [c, y, x]
    assert t[3, 1, 2].item() == arr[1, 2, 3]


def test_array_to_tensor_grayscale():
    t = torch_utils.array_to_tensor(np.zeros((5, 6)))
    assert t.shape == (1, 5, 6)


def test_array_to_tensor_dtype_override():
    t = torch_utils.array_to_tensor(_image(), dtype=torch.float64)
    assert t.dtype == torch.float64


def test_array_to_tensor_rejects_bad_rank():
    with pytest.raises(ValueError):
        torch_utils.array_to_tensor(np.zeros(5))


def test_tensor_round_trip():
    arr = _image().astype(np.float32)
    back = torch_utils.tensor_to_array(torch_utils.array_to_tensor(arr))
    np.testing.assert_array_equal(back, arr)


def test_tensor_to_array_channels_last():
    t = torch.zeros(2, 3, 4)
    assert torch_utils.tensor_to_array(t, channels_first=False).shape == (2, 3, 4)


def test_tensor_to_array_squeezes_batch():
    t = torch.ones(1, 4, 2, 3, requires_grad=True)
    out = torch_utils.tensor_to_array(t)
    assert out.shape == (2, 3, 4)
    assert out.dtype == np.float32


def test_tensor_to_array_rejects_bad_rank():
    with pytest.raises(ValueError, match="Expected 3D"):
        torch_utils.tensor_to_array(torch.zeros(2, 2, 2, 2))


def test_get_device():
    assert torch_utils.get_device("cpu") == torch.device("cpu")
    dev = torch.device("cpu")
    assert torch_utils.get_device(dev) is dev
    assert torch_utils.get_device("auto").type in ("cpu", "cuda")
