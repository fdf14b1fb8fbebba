"""PyTorch interop for pixel data.

Provides:
    - array_to_tensor(): (H, W, C) numpy → (C, H, W) float32 tensor
    - tensor_to_array(): (C, H, W) or (H, W, C) tensor → (H, W, C) numpy
    - get_device(): resolve "auto"/"cpu"/"cuda" to a torch.device

Used by PixelBuffer.to_tensor() / PixelBuffer.from_tensor() so that buffers
can be fed to, and read back from, tensor pipelines. Rendering itself
stays on the CPU in numpy.

Layout convention: tensors are channels-first (C, H, W), arrays are
channels-last (H, W, C), both with the top-left pixel at index [0, 0].
"""

from typing import Optional, Union

import numpy as np
import torch


def get_device(device: Union[str, torch.device] = "auto") -> torch.device:
    """Resolve a device name; "auto" picks CUDA when available."""
    if isinstance(device, torch.device):
        return device
    if device == "auto":
        return torch.device("cuda" if torch.cuda.is_available() else "cpu")
    return torch.device(device)


def array_to_tensor(
    arr: np.ndarray,
    device: Union[str, torch.device] = "cpu",
    dtype: Optional[torch.dtype] = torch.float32
) -> torch.Tensor:
    """Convert a channels-last image array to a channels-first tensor.

    Parameters
    ----------
    arr : np.ndarray
        Image array, shape (H, W, C) or (H, W)
    device : str or torch.device
        Target device, default "cpu"
    dtype : torch.dtype, optional
        Target dtype, default float32

    Returns
    -------
    torch.Tensor
        Shape (C, H, W) (a (H, W) input becomes (1, H, W)); contiguous copy

    Raises
    ------
    ValueError
        If arr is not 2D or 3D
    """
    arr = np.asarray(arr)
    if arr.ndim == 2:
        arr = arr[:, :, None]
    if arr.ndim != 3:
        raise ValueError(f"Expected (H, W, C) or (H, W) array, got shape {arr.shape}")

    t = torch.from_numpy(np.ascontiguousarray(arr)).permute(2, 0, 1).contiguous()
    return t.to(device=get_device(device), dtype=dtype)


def tensor_to_array(t: torch.Tensor, channels_first: bool = True) -> np.ndarray:
    """Convert an image tensor back to a channels-last float32 numpy array.

    Parameters
    ----------
    t : torch.Tensor
        Shape (C, H, W) when channels_first else (H, W, C); a leading batch
        dimension of size 1 is squeezed
    channels_first : bool
        Layout of ``t``, default True

    Returns
    -------
    np.ndarray
        (H, W, C) float32 on the CPU

    Raises
    ------
    ValueError
        If t does not have 3 dimensions after squeezing the batch
    """
    t = t.detach()
    if t.ndim == 4 and t.shape[0] == 1:
        t = t[0]
    if t.ndim != 3:
        raise ValueError(f"Expected 3D image tensor, got shape {tuple(t.shape)}")
    if channels_first:
        t = t.permute(1, 2, 0)
    return t.to(device="cpu", dtype=torch.float32).contiguous().numpy()
