"""Drawing session: wires a canvas, a scorer, a target and a stencil set.

The session is the orchestrator a host UI talks to once it has translated
pointer events into canvas coordinates:

    - strokes go straight to ``session.canvas``
    - stencils are registered, one is made active, and stamped at a position
    - ``compare_with_target()`` scores a snapshot of the canvas
    - ``save_drawing()`` / ``load_drawing()`` round-trip the canvas as PNG

Stale results:
    Every comparison is tied to the canvas revision it was computed from.
    A host that scores off its interaction thread takes a CanvasSnapshot,
    scores it anywhere (scoring only reads the snapshot) and checks
    ``is_current(snapshot)`` before applying the result; a False answer means
    a newer stroke, stamp or clear has happened and the result should be
    dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..errors import InvalidInputError
from ..raster.canvas import Canvas
from ..raster.pixel_buffer import PixelBuffer
from ..raster.stencil import StencilTemplate
from ..scoring.similarity import ComparisonResult, SimilarityScorer
from ..utils import fs
from ..utils.profiler import TimerAccumulator
from .target import TargetSpec

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass(frozen=True)
class CanvasSnapshot:
    """Copy of the canvas pixels and the revision they were taken at."""

    revision: int
    image: PixelBuffer


class DrawingSession:
    """Orchestrates drawing, stencil stamping and comparison for one target.

    Parameters
    ----------
    canvas : Canvas
        Canvas the player draws on
    scorer : SimilarityScorer, optional
        Defaults to SimilarityScorer() with default settings
    target : TargetSpec, optional
        Initial target; its required accuracy becomes the match threshold
    """

    def __init__(
        self,
        canvas: Canvas,
        scorer: Optional[SimilarityScorer] = None,
        target: Optional[TargetSpec] = None,
    ) -> None:
        self.canvas = canvas
        self.scorer = scorer if scorer is not None else SimilarityScorer()
        self.target: Optional[TargetSpec] = None
        self.active_stencil: Optional[StencilTemplate] = None
        self.last_result: Optional[ComparisonResult] = None
        self.last_result_revision: Optional[int] = None
        self.compare_timer = TimerAccumulator("session.compare")
        self._stencils: List[StencilTemplate] = []

        if target is not None:
            self.set_target(target)

    # ------------------------------------------------------------------
    # Target
    # ------------------------------------------------------------------

    def set_target(self, target: Optional[TargetSpec]) -> None:
        """Switch target and copy its required accuracy into the scorer."""
        self.target = target
        self.last_result = None
        self.last_result_revision = None
        if target is not None:
            self.scorer.set_match_threshold(target.required_accuracy)
            logger.info(
                f"Target set: '{target.name}' "
                f"(accuracy {target.required_accuracy:.0%}, complexity {target.complexity_level})"
            )

    # ------------------------------------------------------------------
    # Stencils
    # ------------------------------------------------------------------

    @property
    def stencils(self) -> List[StencilTemplate]:
        """Registered stencils (a copy of the list)."""
        return list(self._stencils)

    def register_stencil(self, stencil: StencilTemplate) -> None:
        if stencil not in self._stencils:
            self._stencils.append(stencil)

    def unregister_stencil(self, stencil: StencilTemplate) -> None:
        if stencil in self._stencils:
            self._stencils.remove(stencil)
        if self.active_stencil is stencil:
            self.active_stencil = None

    def get_stencil(self, name: str) -> Optional[StencilTemplate]:
        for stencil in self._stencils:
            if stencil.name == name:
                return stencil
        return None

    def set_active_stencil(self, stencil: Optional[StencilTemplate]) -> None:
        self.active_stencil = stencil

    def apply_active_stencil(self, position: Point) -> int:
        """Stamp the active stencil at ``position``; returns pixels written.

        Without an active stencil nothing is drawn and 0 is returned.
        """
        if self.active_stencil is None:
            logger.warning("Cannot apply stencil: no active stencil")
            return 0
        return self.canvas.stamp_stencil(self.active_stencil, position)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def take_snapshot(self) -> CanvasSnapshot:
        return CanvasSnapshot(revision=self.canvas.revision, image=self.canvas.snapshot())

    def is_current(
        self,
        ref: Union[CanvasSnapshot, ComparisonResult, int, None] = None
    ) -> bool:
        """Whether a snapshot, revision or result still matches the canvas.

        With no argument the last compare_with_target() result is checked.
        Results other than the last one are never current.
        """
        if ref is None:
            revision = self.last_result_revision
        elif isinstance(ref, CanvasSnapshot):
            revision = ref.revision
        elif isinstance(ref, ComparisonResult):
            revision = self.last_result_revision if ref is self.last_result else None
        else:
            revision = ref
        return revision is not None and revision == self.canvas.revision

    def compare_snapshot(self, snapshot: CanvasSnapshot) -> ComparisonResult:
        """Score a snapshot against the current target (never raises)."""
        if self.target is None:
            logger.warning("No target image set for comparison")
            return ComparisonResult.failed("No target image set")
        return self.scorer.compare(snapshot.image, self.target.reference_image)

    def compare_with_target(self) -> ComparisonResult:
        """Snapshot the canvas, score it and remember the result."""
        snapshot = self.take_snapshot()
        with self.compare_timer.measure():
            result = self.compare_snapshot(snapshot)

        self.last_result = result
        self.last_result_revision = snapshot.revision

        if result.is_match:
            logger.info(f"Match found! Similarity: {result.overall_score:.0%}")
        elif self.target is not None:
            logger.info(
                f"No match. Similarity: {result.overall_score:.0%} "
                f"(required: {self.scorer.match_threshold:.0%})"
            )
        return result

    def difference_map(self) -> PixelBuffer:
        """Difference map of the current canvas against the target.

        Raises
        ------
        InvalidInputError
            If no target is set
        """
        if self.target is None:
            raise InvalidInputError("No target image set")
        return self.scorer.get_difference_map(self.canvas.snapshot(), self.target.reference_image)

    # ------------------------------------------------------------------
    # Canvas lifecycle
    # ------------------------------------------------------------------

    def clear_canvas(self) -> None:
        self.canvas.clear()
        logger.info("Canvas cleared")

    def save_drawing(self, path: Union[str, Path]) -> Path:
        """Write the canvas to a PNG file (".png" is appended when missing)."""
        path = Path(path)
        if path.suffix.lower() != ".png":
            path = path.with_name(path.name + ".png")
        fs.atomic_save_image(self.canvas.snapshot().to_uint8(), path)
        logger.info(f"Drawing saved to {path}")
        return path

    def load_drawing(self, path: Union[str, Path]) -> None:
        """Replace the canvas contents with an image file (resized to fit).

        Raises
        ------
        FileNotFoundError
            If the file doesn't exist
        """
        image = PixelBuffer.from_array(fs.load_image(path))
        self.canvas.restore(image)
        logger.info(f"Drawing loaded from {path}")
