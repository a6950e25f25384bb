"""Owned 2-D RGBA pixel grid shared by the canvas, stencils and the scorer.

Storage:
    - numpy float32 array, shape (height, width, 4), row-major
    - channels R, G, B, A normalized to [0, 1]
    - row y, column x; pixel (x, y) lives at pixels[y, x]

Sampling convention (used by resize and stencil stamping):
    - Normalized (u, v) ∈ [0, 1]² cover the whole buffer
    - Texel (i, j) has its center at ((i + 0.5)/width, (j + 0.5)/height)
    - Bilinear interpolation across the 2×2 neighbourhood, clamped at borders

The single-pixel accessors are bounds-checked and raise OutOfBoundsError.
Bulk writers (canvas rasterization, stamping) clip their own index arrays
and write to ``pixels`` directly.
"""

from typing import Tuple

import numpy as np

from ..errors import OutOfBoundsError
from ..utils.color import RGBA, TRANSPARENT, ColorLike, parse_color


class PixelBuffer:
    """RGBA float32 image with bounds-checked access and bilinear resampling.

    Parameters
    ----------
    pixels : np.ndarray
        Array of shape (H, W, 4), float32 in [0, 1]. Ownership is taken
        (no copy); use ``from_array`` for arbitrary input.

    Raises
    ------
    ValueError
        If the array has the wrong shape, dtype or an empty extent
    """

    def __init__(self, pixels: np.ndarray):
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"pixels must have shape (H, W, 4), got {pixels.shape}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise ValueError(f"PixelBuffer needs at least 1×1 pixels, got {pixels.shape[:2]}")
        if pixels.dtype != np.float32:
            raise ValueError(f"pixels must be float32, got {pixels.dtype}")
        self.pixels = pixels

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, width: int, height: int, fill: ColorLike = TRANSPARENT) -> 'PixelBuffer':
        """New buffer of the given size with every pixel set to ``fill``."""
        if width < 1 or height < 1:
            raise ValueError(f"Buffer size must be positive, got {width}x{height}")
        pixels = np.empty((height, width, 4), dtype=np.float32)
        pixels[:, :] = parse_color(fill)
        return cls(pixels)

    @classmethod
    def from_array(cls, array: np.ndarray) -> 'PixelBuffer':
        """Copy an image array into a new buffer.

        Parameters
        ----------
        array : np.ndarray
            (H, W), (H, W, 3) or (H, W, 4); uint8 is scaled from 0-255,
            floats are clipped to [0, 1]. Missing alpha becomes 1.0 and
            grayscale is replicated to RGB.

        Returns
        -------
        PixelBuffer
            Independent buffer (the input is never aliased)
        """
        array = np.asarray(array)
        if array.dtype == np.uint8:
            data = array.astype(np.float32) / 255.0
        else:
            data = np.clip(array.astype(np.float32), 0.0, 1.0)

        if data.ndim == 2:
            data = np.repeat(data[:, :, None], 3, axis=2)
        if data.ndim != 3 or data.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W), (H, W, 3) or (H, W, 4) array, got {array.shape}")
        if data.shape[2] == 3:
            alpha = np.ones(data.shape[:2] + (1,), dtype=np.float32)
            data = np.concatenate([data, alpha], axis=2)

        return cls(np.ascontiguousarray(data, dtype=np.float32))

    def copy(self) -> 'PixelBuffer':
        """Deep copy."""
        return PixelBuffer(self.pixels.copy())

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height)."""
        return self.width, self.height

    def same_size(self, other: 'PixelBuffer') -> bool:
        return self.size == other.size

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    # ------------------------------------------------------------------
    # Checked single-pixel access
    # ------------------------------------------------------------------

    def _check(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            raise OutOfBoundsError(x, y, self.width, self.height)

    def get_pixel(self, x: int, y: int) -> RGBA:
        """RGBA at integer pixel (x, y); raises OutOfBoundsError outside the buffer."""
        self._check(x, y)
        return tuple(float(c) for c in self.pixels[y, x])

    def set_pixel(self, x: int, y: int, color: ColorLike) -> None:
        """Write one pixel; raises OutOfBoundsError outside the buffer."""
        self._check(x, y)
        self.pixels[y, x] = parse_color(color)

    def fill(self, color: ColorLike) -> None:
        self.pixels[:, :] = parse_color(color)

    # ------------------------------------------------------------------
    # Bilinear sampling
    # ------------------------------------------------------------------

    def sample_bilinear(self, us: np.ndarray, vs: np.ndarray) -> np.ndarray:
        """Bilinear samples at normalized coordinates.

        Parameters
        ----------
        us, vs : np.ndarray
            Normalized coordinates, any (matching) shape S. Values outside
            [0, 1] are clamped to the border texels.

        Returns
        -------
        np.ndarray
            Shape S + (4,), float32
        """
        us = np.asarray(us, dtype=np.float64)
        vs = np.asarray(vs, dtype=np.float64)
        w, h = self.width, self.height

        x = us * w - 0.5
        y = vs * h - 0.5
        x0 = np.floor(x)
        y0 = np.floor(y)
        fx = (x - x0)[..., None]
        fy = (y - y0)[..., None]

        x0i = np.clip(x0.astype(np.int64), 0, w - 1)
        x1i = np.clip(x0.astype(np.int64) + 1, 0, w - 1)
        y0i = np.clip(y0.astype(np.int64), 0, h - 1)
        y1i = np.clip(y0.astype(np.int64) + 1, 0, h - 1)

        p = self.pixels
        top = p[y0i, x0i] * (1.0 - fx) + p[y0i, x1i] * fx
        bottom = p[y1i, x0i] * (1.0 - fx) + p[y1i, x1i] * fx
        return (top * (1.0 - fy) + bottom * fy).astype(np.float32)

    def get_pixel_bilinear(self, u: float, v: float) -> RGBA:
        """Bilinear RGBA at normalized (u, v) ∈ [0, 1]², clamped at borders."""
        sample = self.sample_bilinear(np.array([u]), np.array([v]))[0]
        return tuple(float(c) for c in sample)

    def resize(self, new_width: int, new_height: int) -> 'PixelBuffer':
        """Bilinear resample to a new size.

        Destination pixel (x, y) samples the source at
        (u, v) = (x / new_width, y / new_height). Resizing to the current
        size returns an unchanged copy.

        Raises
        ------
        ValueError
            If a target dimension is < 1
        """
        if new_width < 1 or new_height < 1:
            raise ValueError(f"Resize target must be positive, got {new_width}x{new_height}")
        if (new_width, new_height) == self.size:
            return self.copy()

        us = np.arange(new_width, dtype=np.float64) / new_width
        vs = np.arange(new_height, dtype=np.float64) / new_height
        uu, vv = np.meshgrid(us, vs, indexing='xy')
        return PixelBuffer(np.ascontiguousarray(self.sample_bilinear(uu, vv)))

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_uint8(self) -> np.ndarray:
        """(H, W, 4) uint8 copy for image encoders."""
        return np.rint(np.clip(self.pixels, 0.0, 1.0) * 255.0).astype(np.uint8)

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"
