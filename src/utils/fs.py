"""Filesystem helpers: atomic writes, YAML config loading, raster image I/O.

Provides:
    - Atomic writes: tmp file → fsync → rename (no partially written files)
    - YAML load/save (PyYAML safe_load/safe_dump)
    - PNG/raster load and atomic save via Pillow
    - Directory creation with exist_ok semantics

Images cross this boundary as float32 arrays (H, W, 4) in [0, 1], RGBA,
row-major with the top-left pixel first. Conversion to/from 8-bit happens
here and nowhere else in the package.

All paths use pathlib.Path for cross-platform compatibility.

Usage:
    from src.utils import fs
    rgba = fs.load_image_rgba("input.png")
    fs.atomic_save_image(rgba, "outputs/pass_004.png")
    cfg = fs.load_yaml("configs/film.v1.yaml")
    fs.atomic_yaml_dump(cfg, "outputs/film.effective.yaml")
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import yaml
from PIL import Image

logger = logging.getLogger(__name__)


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory if it doesn't exist, return Path object.

    Parameters
    ----------
    p : Union[str, Path]
        Directory path

    Returns
    -------
    Path
        Path object (guaranteed to exist)
    """
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(
    path: Union[str, Path],
    data: bytes,
    tmp_suffix: str = ".tmp"
) -> None:
    """Write bytes to file atomically (tmp → fsync → rename).

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    data : bytes
        Data to write
    tmp_suffix : str
        Temporary file suffix, default ".tmp"

    Raises
    ------
    RuntimeError
        If the write or rename fails (temp file removed, cause chained)
    """
    path = Path(path)
    ensure_dir(path.parent)

    tmp_path = path.with_suffix(path.suffix + tmp_suffix)

    try:
        with open(tmp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        # Overwrites existing file on POSIX
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def to_uint8(img: np.ndarray) -> np.ndarray:
    """Quantize float [0, 1] image data to uint8 with round-half-up.

    Matches the scalar Color.to_ints() rule ``int(saturate(v) * 255 + 0.5)``
    so that array and per-pixel exports agree bit for bit.
    """
    img = np.asarray(img)
    if img.dtype == np.uint8:
        return img
    return np.floor(np.clip(img, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


def atomic_save_image(
    img: np.ndarray,
    path: Union[str, Path],
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save image atomically (prevents partial reads).

    Parameters
    ----------
    img : np.ndarray
        Image data, one of:
        - (H, W, 4) / (H, W, 3) / (H, W) uint8
        - same shapes as float in [0, 1] (quantized with to_uint8)
    path : Union[str, Path]
        Target file path (extension determines format, PNG recommended)
    pil_kwargs : Optional[Dict[str, Any]]
        Additional kwargs for PIL.Image.save (e.g., compress_level=1)

    Raises
    ------
    ValueError
        If the array shape is not an image layout
    RuntimeError
        If saving fails (temp file removed, cause chained)
    """
    path = Path(path)
    pil_kwargs = pil_kwargs or {}

    img = to_uint8(img)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img.squeeze(2)
    if img.ndim not in (2, 3) or (img.ndim == 3 and img.shape[2] not in (3, 4)):
        raise ValueError(f"Expected (H, W), (H, W, 3) or (H, W, 4) image, got {img.shape}")

    pil_img = Image.fromarray(img)

    ensure_dir(path.parent)
    # Keep the real extension last so Pillow can detect the format
    tmp_path = path.with_name(path.stem + ".tmp" + path.suffix)
    try:
        pil_img.save(tmp_path, **pil_kwargs)
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to save image {path} atomically: {e}") from e

    logger.debug(f"Saved {img.shape[1]}x{img.shape[0]} image to {path}")


def load_image_rgba(path: Union[str, Path]) -> np.ndarray:
    """Load a raster image file as float32 RGBA.

    Parameters
    ----------
    path : Union[str, Path]
        Image path (any format Pillow can decode)

    Returns
    -------
    np.ndarray
        (H, W, 4) float32 in [0, 1]; opaque images get alpha 1.0

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    PIL.UnidentifiedImageError
        If Pillow cannot decode the file
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    with Image.open(path) as pil_img:
        rgba = np.asarray(pil_img.convert("RGBA"), dtype=np.uint8)

    logger.debug(f"Loaded {rgba.shape[1]}x{rgba.shape[0]} image from {path}")
    return rgba.astype(np.float32) / 255.0


def atomic_yaml_dump(obj: Any, path: Union[str, Path]) -> None:
    """Save object as YAML atomically (PyYAML safe_dump, key order kept)."""
    yaml_str = yaml.safe_dump(
        obj,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True
    )
    atomic_write_bytes(path, yaml_str.encode('utf-8'))


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file safely.

    Parameters
    ----------
    path : Union[str, Path]
        YAML file path

    Returns
    -------
    Dict[str, Any]
        Parsed YAML content

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e
