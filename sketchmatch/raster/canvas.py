"""Drawing canvas: freehand strokes and stencil stamps into a pixel buffer.

Stroke state machine::

    Idle --begin_stroke(p)--> Drawing --continue_stroke(q)*--> Drawing --end_stroke()--> Idle

Rasterization rules:
    - A brush dab is a hard-edged filled disc: every integer offset (dx, dy)
      with dx² + dy² ≤ radius² around the rounded center gets the brush color
    - A segment is covered by dabs spaced at radius * 0.5,
      steps = ceil(distance / (radius * 0.5)), endpoints included
    - Stencil stamps overwrite only where the sampled pattern alpha > 0.1
    - Out-of-canvas pixels are skipped, never clamped or wrapped

Coordinates are canvas pixels; converting pointer/screen positions is the
caller's job. The canvas is not thread-safe; hand snapshot() copies to any
concurrent reader.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from ..errors import InvalidInputError
from ..utils import fs, geometry
from ..utils.color import BLACK, RGBA, WHITE, ColorLike, parse_color
from ..utils.validators import CanvasConfigV1, load_canvas_config
from .pixel_buffer import PixelBuffer
from .stencil import StencilTemplate

logger = logging.getLogger(__name__)

STENCIL_ALPHA_THRESHOLD = 0.1
MIN_BRUSH_RADIUS = 1.0

Point = Tuple[float, float]


@dataclass
class BrushState:
    """Current brush color (RGBA in [0, 1]) and radius in pixels (≥ 1)."""
    color: RGBA = BLACK
    radius: float = 10.0


class Canvas:
    """Mutable raster surface with an optional background to restore on clear.

    Parameters
    ----------
    width, height : int
        Canvas size in pixels; ignored when ``background`` is given
    background : PixelBuffer, optional
        Blank state of the canvas (copied, never modified)
    brush : BrushState, optional
        Initial brush; defaults to black, radius 10

    Attributes
    ----------
    revision : int
        Incremented by every call that changes pixels; lets callers detect
        that a snapshot has been superseded
    """

    def __init__(
        self,
        width: int = 1024,
        height: int = 1024,
        background: Optional[PixelBuffer] = None,
        brush: Optional[BrushState] = None,
    ):
        self._background = background.copy() if background is not None else None
        if self._background is not None:
            width, height = self._background.size

        self._buffer = PixelBuffer.create(width, height, WHITE)
        # private copy; the caller keeps its own BrushState
        brush = brush if brush is not None else BrushState()
        self.brush = BrushState(
            color=parse_color(brush.color),
            radius=max(MIN_BRUSH_RADIUS, float(brush.radius)),
        )

        self._drawing = False
        self._last_point: Optional[Point] = None
        self.revision = 0

        self.clear()
        logger.debug(f"Canvas initialized: {width}x{height}, background={self._background is not None}")

    @classmethod
    def from_config(cls, cfg: Union[CanvasConfigV1, str, Path]) -> 'Canvas':
        """Build a canvas from a canvas.v1 model or YAML path."""
        if not isinstance(cfg, CanvasConfigV1):
            cfg = load_canvas_config(cfg)
        background = None
        if cfg.background_path:
            background = PixelBuffer.from_array(fs.load_image(cfg.background_path))
        return cls(
            width=cfg.width,
            height=cfg.height,
            background=background,
            brush=BrushState(color=tuple(cfg.brush.color), radius=cfg.brush.radius),
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._buffer.width

    @property
    def height(self) -> int:
        return self._buffer.height

    @property
    def buffer(self) -> PixelBuffer:
        """Live working buffer. Do not hold on to it across strokes; use snapshot()."""
        return self._buffer

    @property
    def background(self) -> Optional[PixelBuffer]:
        return self._background

    @property
    def is_drawing(self) -> bool:
        return self._drawing

    @property
    def last_point(self) -> Optional[Point]:
        return self._last_point

    def set_color(self, color: ColorLike) -> None:
        self.brush.color = parse_color(color)

    def set_brush_radius(self, radius: float) -> None:
        """Set the brush radius, clamped to at least 1 pixel."""
        self.brush.radius = max(MIN_BRUSH_RADIUS, float(radius))

    # ------------------------------------------------------------------
    # Strokes
    # ------------------------------------------------------------------

    def begin_stroke(self, point: Point) -> None:
        """Start a stroke and dab once at ``point``."""
        self._drawing = True
        self._last_point = (float(point[0]), float(point[1]))
        self._draw_disc(self._last_point)
        self.revision += 1

    def continue_stroke(self, point: Point) -> None:
        """Extend the active stroke with a straight segment; no-op when idle."""
        if not self._drawing:
            return

        point = (float(point[0]), float(point[1]))
        spacing = self.brush.radius * 0.5
        for center in geometry.segment_centers(self._last_point, point, spacing):
            self._draw_disc(center)
        self._last_point = point
        self.revision += 1

    def end_stroke(self) -> None:
        self._drawing = False

    def _draw_disc(self, center: Point) -> None:
        cx = int(round(center[0]))
        cy = int(round(center[1]))
        dx, dy = geometry.disc_offsets(self.brush.radius)

        xs = cx + dx
        ys = cy + dy
        inside = (xs >= 0) & (xs < self.width) & (ys >= 0) & (ys < self.height)
        self._buffer.pixels[ys[inside], xs[inside]] = self.brush.color

    # ------------------------------------------------------------------
    # Stencils
    # ------------------------------------------------------------------

    def stamp_stencil(self, template: StencilTemplate, position: Optional[Point] = None) -> int:
        """Composite a stencil centered at ``position``.

        Parameters
        ----------
        template : StencilTemplate
            Template to stamp
        position : tuple of float, optional
            Stamp center; defaults to the template's own position

        Returns
        -------
        int
            Number of canvas pixels written

        Raises
        ------
        InvalidInputError
            If template is None
        """
        if template is None:
            raise InvalidInputError("Cannot stamp: no stencil template given")

        fp = template.footprint(position)
        inside = (fp.xs >= 0) & (fp.xs < self.width) & (fp.ys >= 0) & (fp.ys < self.height)
        if not np.any(inside):
            logger.debug(f"Stencil '{template.name}' footprint lies entirely off-canvas")
            return 0

        samples = template.pattern.sample_bilinear(fp.us[inside], fp.vs[inside])
        opaque = samples[:, 3] > STENCIL_ALPHA_THRESHOLD

        xs = fp.xs[inside][opaque]
        ys = fp.ys[inside][opaque]
        written = int(opaque.sum())
        if written:
            self._buffer.pixels[ys, xs] = samples[opaque]
            self.revision += 1
        return written

    # ------------------------------------------------------------------
    # Whole-canvas operations
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Restore the background, or fill with white when there is none."""
        if self._background is not None:
            np.copyto(self._buffer.pixels, self._background.pixels)
        else:
            self._buffer.fill(WHITE)
        self.revision += 1

    def set_background(self, background: Optional[PixelBuffer]) -> None:
        """Replace the background, adopt its size and clear.

        ``None`` removes the background; the canvas keeps its size and
        clears to white.
        """
        if background is None:
            self._background = None
        else:
            self._background = background.copy()
            if not self._buffer.same_size(self._background):
                self._buffer = PixelBuffer.create(self._background.width, self._background.height, WHITE)
        self.clear()

    def snapshot(self) -> PixelBuffer:
        """Independent deep copy of the working buffer."""
        return self._buffer.copy()

    def restore(self, image: PixelBuffer) -> None:
        """Replace the canvas contents with ``image``, resized to the canvas.

        Raises
        ------
        InvalidInputError
            If image is None
        """
        if image is None:
            raise InvalidInputError("Cannot restore canvas from a missing buffer")
        resized = image.resize(self.width, self.height)
        np.copyto(self._buffer.pixels, resized.pixels)
        self.revision += 1

    def __repr__(self) -> str:
        return f"Canvas({self.width}x{self.height}, drawing={self._drawing})"
