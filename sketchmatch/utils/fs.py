"""Filesystem helpers: atomic writes, YAML and PNG round trips.

Provides:
    - Atomic writes: tmp file → fsync → rename (readers never see partial files)
    - YAML load/dump (PyYAML safe loader/dumper)
    - Image load/save through Pillow, as float32 RGBA arrays in [0, 1]

Images cross this boundary as numpy arrays of shape (H, W, 4); wrapping them
in a PixelBuffer is the raster layer's job (utils/ never imports upward).

Usage:
    from sketchmatch.utils import fs
    rgba = fs.load_image("targets/spiral.png")
    fs.atomic_save_image(canvas.snapshot().pixels, "out/drawing.png")
    fs.atomic_yaml_dump(report, "out/report.yaml")
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import yaml
from PIL import Image


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory (and parents) if missing, return it as a Path."""
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
        If the write or rename fails; the temporary file is removed
    """
    path = Path(path)
    ensure_dir(path.parent)
    tmp_path = path.with_suffix(path.suffix + tmp_suffix)

    try:
        with open(tmp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def to_uint8_image(img: np.ndarray) -> np.ndarray:
    """Convert a float [0, 1] or uint8 image array to uint8.

    Parameters
    ----------
    img : np.ndarray
        (H, W), (H, W, 1), (H, W, 3) or (H, W, 4)

    Returns
    -------
    np.ndarray
        uint8 array; single-channel images are squeezed to (H, W)
    """
    if img.dtype != np.uint8:
        if np.issubdtype(img.dtype, np.floating):
            img = np.rint(np.clip(img, 0.0, 1.0) * 255.0)
        img = np.clip(img, 0, 255).astype(np.uint8)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[:, :, 0]
    return img


def atomic_save_image(
    img: np.ndarray,
    path: Union[str, Path],
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save an image array atomically; format follows the file extension.

    Parameters
    ----------
    img : np.ndarray
        Float [0, 1] or uint8 array, (H, W[, C]) with C in {1, 3, 4}
    path : Union[str, Path]
        Target file path (PNG recommended: lossless, keeps alpha)
    pil_kwargs : Optional[Dict[str, Any]]
        Extra kwargs for PIL.Image.save

    Raises
    ------
    RuntimeError
        If Pillow fails to encode or the rename fails
    """
    path = Path(path)
    ensure_dir(path.parent)
    pil_img = Image.fromarray(to_uint8_image(np.asarray(img)))

    # Keep the real extension last so Pillow picks the right encoder
    tmp_path = path.with_name(path.stem + ".tmp" + path.suffix)
    try:
        pil_img.save(tmp_path, **(pil_kwargs or {}))
        tmp_path.replace(path)
    except (OSError, ValueError) as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to save image {path} atomically: {e}") from e


def load_image(path: Union[str, Path]) -> np.ndarray:
    """Decode an image file into a float32 RGBA array.

    Parameters
    ----------
    path : Union[str, Path]
        Image file (any format Pillow reads)

    Returns
    -------
    np.ndarray
        Shape (H, W, 4), float32 in [0, 1]; opaque images get alpha 1.0

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist
    ValueError
        If Pillow cannot decode it
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    try:
        with Image.open(path) as pil_img:
            rgba = np.asarray(pil_img.convert("RGBA"), dtype=np.uint8)
    except OSError as e:
        raise ValueError(f"Failed to decode image {path}: {e}") from e

    return rgba.astype(np.float32) / 255.0


def atomic_yaml_dump(obj: Any, path: Union[str, Path]) -> None:
    """Serialize obj with yaml.safe_dump and write it atomically."""
    yaml_str = yaml.safe_dump(
        obj,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True
    )
    atomic_write_bytes(path, yaml_str.encode('utf-8'))


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML mapping safely.

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails
    ValueError
        If the document is not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at top level of {path}, got {type(data).__name__}")
    return data
