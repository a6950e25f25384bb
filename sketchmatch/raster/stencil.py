"""Stencil templates: a named pattern buffer plus a placement transform.

A template is stamped onto the canvas through its *footprint*: the set of
destination pixels it covers at the current scale and rotation, each paired
with the normalized (u, v) coordinate at which the pattern is sampled.

Transform rules:
    - rotation: degrees, wrapped into [0, 360)
    - scale: per-axis, clamped into [0.1, 5.0]
    - footprint size = base_size * scale
    - rotation is applied when sampling: destination pixels are rotated back
      about the footprint center; samples landing outside the pattern are dropped

Positive rotation turns the pattern's x axis toward its y axis (buffer rows).
At rotation 0 the footprint is exactly the axis-aligned grid
u = x / size_x, v = y / size_y for x ∈ [0, size_x), y ∈ [0, size_y).
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from ..errors import InvalidInputError
from ..utils import fs, geometry
from ..utils.validators import StencilConfigV1, load_stencil_config
from .pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

MIN_SCALE = 0.1
MAX_SCALE = 5.0

Point = Tuple[float, float]


@dataclass(frozen=True)
class Footprint:
    """Destination pixels (xs, ys) and their pattern sample coordinates (us, vs).

    All four arrays are 1-D with equal length. Destination coordinates are
    not clipped to any canvas; the caller discards out-of-bounds pixels.
    """
    xs: np.ndarray
    ys: np.ndarray
    us: np.ndarray
    vs: np.ndarray

    def __len__(self) -> int:
        return len(self.xs)


def _clamp_scale(value: float) -> float:
    return float(min(MAX_SCALE, max(MIN_SCALE, value)))


def _wrap_degrees(value: float) -> float:
    # tiny negatives round up to exactly 360.0 under %
    wrapped = float(value) % 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


class StencilTemplate:
    """Reusable stamp pattern with rotation, non-uniform scale and position.

    Parameters
    ----------
    name : str
        Display name
    pattern : PixelBuffer
        Pattern image; its alpha channel decides which pixels are stamped.
        Owned by the template and never modified.
    base_size : tuple of float
        Footprint size in canvas pixels at scale (1, 1)
    rotation : float
        Initial rotation in degrees
    scale : tuple of float
        Initial per-axis scale
    position : tuple of float
        Default stamp center in canvas pixels
    rotatable, scalable : bool
        Locked templates ignore rotate() / set_scale()

    Raises
    ------
    InvalidInputError
        If pattern is None
    ValueError
        If base_size is not positive
    """

    def __init__(
        self,
        name: str,
        pattern: PixelBuffer,
        base_size: Point = (100.0, 100.0),
        rotation: float = 0.0,
        scale: Point = (1.0, 1.0),
        position: Point = (0.0, 0.0),
        rotatable: bool = True,
        scalable: bool = True,
    ):
        if pattern is None:
            raise InvalidInputError(f"Stencil '{name}' has no pattern buffer")
        if base_size[0] <= 0 or base_size[1] <= 0:
            raise ValueError(f"base_size must be positive, got {base_size}")

        self.name = name
        self.pattern = pattern
        self.base_size = (float(base_size[0]), float(base_size[1]))
        self.rotatable = rotatable
        self.scalable = scalable
        self.position = (float(position[0]), float(position[1]))
        self._rotation = _wrap_degrees(rotation)
        self._scale = (_clamp_scale(scale[0]), _clamp_scale(scale[1]))

    @classmethod
    def from_config(cls, cfg: Union[StencilConfigV1, str, Path]) -> 'StencilTemplate':
        """Build a template from a stencil.v1 model or YAML path."""
        if not isinstance(cfg, StencilConfigV1):
            cfg = load_stencil_config(cfg)
        pattern = PixelBuffer.from_array(fs.load_image(cfg.pattern_path))
        logger.debug(f"Loaded stencil '{cfg.name}' pattern {pattern.width}x{pattern.height}")
        return cls(
            name=cfg.name,
            pattern=pattern,
            base_size=cfg.base_size,
            rotation=cfg.rotation,
            scale=cfg.scale,
            rotatable=cfg.rotatable,
            scalable=cfg.scalable,
        )

    # ------------------------------------------------------------------
    # Transform
    # ------------------------------------------------------------------

    @property
    def rotation(self) -> float:
        """Current rotation in degrees, in [0, 360)."""
        return self._rotation

    @property
    def scale(self) -> Point:
        return self._scale

    @property
    def footprint_size(self) -> Point:
        """(width, height) of the unrotated footprint in canvas pixels."""
        return (self.base_size[0] * self._scale[0], self.base_size[1] * self._scale[1])

    def rotate(self, delta_degrees: float) -> None:
        """Add to the rotation, wrapping into [0, 360)."""
        if not self.rotatable:
            logger.debug(f"Stencil '{self.name}' is not rotatable; ignoring rotate({delta_degrees})")
            return
        self._rotation = _wrap_degrees(self._rotation + float(delta_degrees))

    def set_scale(self, sx: float, sy: Optional[float] = None) -> None:
        """Set the per-axis scale, clamping each axis into [0.1, 5.0].

        A single argument scales both axes uniformly.
        """
        if not self.scalable:
            logger.debug(f"Stencil '{self.name}' is not scalable; ignoring set_scale")
            return
        if sy is None:
            sy = sx
        self._scale = (_clamp_scale(sx), _clamp_scale(sy))

    def move_to(self, position: Point) -> None:
        self.position = (float(position[0]), float(position[1]))

    # ------------------------------------------------------------------
    # Footprint
    # ------------------------------------------------------------------

    def footprint(self, position: Optional[Point] = None) -> Footprint:
        """Destination pixels and sample coordinates for a stamp centered at position.

        Parameters
        ----------
        position : tuple of float, optional
            Stamp center in canvas pixels; defaults to ``self.position``

        Returns
        -------
        Footprint
            Every pixel whose rotated-back sample lies in [0, 1)²
        """
        cx, cy = self.position if position is None else position
        size_x, size_y = self.footprint_size

        # Top-left of the unrotated footprint, snapped to the pixel grid
        start_x = int(round(cx - size_x / 2.0))
        start_y = int(round(cy - size_y / 2.0))
        pivot = (size_x / 2.0, size_y / 2.0)

        ext_x, ext_y = geometry.rotated_extent(size_x, size_y, self._rotation)
        lx = np.arange(math.floor(pivot[0] - ext_x / 2.0), math.ceil(pivot[0] + ext_x / 2.0) + 1)
        ly = np.arange(math.floor(pivot[1] - ext_y / 2.0), math.ceil(pivot[1] + ext_y / 2.0) + 1)
        gx, gy = np.meshgrid(lx, ly, indexing='xy')
        local = np.stack([gx.ravel(), gy.ravel()], axis=1).astype(np.float64)

        source = geometry.rotate_points(local, -self._rotation, pivot)
        us = source[:, 0] / size_x
        vs = source[:, 1] / size_y
        keep = (us >= 0.0) & (us < 1.0) & (vs >= 0.0) & (vs < 1.0)

        return Footprint(
            xs=local[keep, 0].astype(np.int64) + start_x,
            ys=local[keep, 1].astype(np.int64) + start_y,
            us=us[keep],
            vs=vs[keep],
        )

    def __repr__(self) -> str:
        return (
            f"StencilTemplate({self.name!r}, size={self.footprint_size}, "
            f"rotation={self._rotation:.1f})"
        )
