"""Drawing-vs-target similarity: color distance and Sobel edge structure.

Provides:
    - color_similarity(): 1 - mean RGB Euclidean distance / √3, clamped to [0, 1]
    - edge_map(): Sobel gradient magnitude over Rec. 601 luma
    - structural_similarity(): color_similarity of the two edge maps
    - difference_map(): red-for-different / cyan-for-equal diagnostic image
    - SimilarityScorer: configured pipeline returning a ComparisonResult

Comparison pipeline (SimilarityScorer.compare):
    1. Missing buffer → zero-score, non-match result (compare never raises)
    2. Resize the drawing to the target's size (bilinear)
    3. Optional integer downsample of both images
    4. Color score and/or structural score
    5. Overall = mean of the enabled scores; match when overall ≥ threshold

Inputs are never modified; every intermediate buffer is local to the call.

Known values:
    - compare(X, X) → color 1.0, structural 1.0, overall 1.0
    - all-black vs all-white → color 0.0
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np

from ..errors import DimensionMismatchError, InvalidInputError
from ..raster.pixel_buffer import PixelBuffer
from ..utils import profiler
from ..utils.color import clamp01, luminance
from ..utils.validators import ScorerConfigV1, load_scorer_config

logger = logging.getLogger(__name__)

MAX_RGB_DISTANCE = math.sqrt(3.0)

# Sobel kernels; row index grows along buffer rows (+y)
SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float32)
SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float32)


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of one comparison; scores are in [0, 1]."""
    overall_score: float
    is_match: bool
    color_score: float
    structural_score: float
    detail: str

    @classmethod
    def failed(cls, detail: str) -> 'ComparisonResult':
        """Degenerate zero-score, non-match result."""
        return cls(
            overall_score=0.0,
            is_match=False,
            color_score=0.0,
            structural_score=0.0,
            detail=detail,
        )

    def to_dict(self) -> dict:
        return {
            'overall_score': float(self.overall_score),
            'is_match': bool(self.is_match),
            'color_score': float(self.color_score),
            'structural_score': float(self.structural_score),
            'detail': self.detail,
        }


# ============================================================================
# SCORING PRIMITIVES
# ============================================================================

def color_similarity(image1: PixelBuffer, image2: PixelBuffer) -> float:
    """Normalized inverse mean RGB distance between equally sized buffers.

    Parameters
    ----------
    image1, image2 : PixelBuffer
        Buffers of identical size (alpha is ignored)

    Returns
    -------
    float
        clamp01(1 - mean(√(ΔR² + ΔG² + ΔB²)) / √3)

    Raises
    ------
    DimensionMismatchError
        If the buffers differ in size (no implicit resize here)
    """
    if not image1.same_size(image2):
        raise DimensionMismatchError(
            f"Cannot compare {image1.width}x{image1.height} with {image2.width}x{image2.height}"
        )
    delta = image1.pixels[..., :3].astype(np.float64) - image2.pixels[..., :3].astype(np.float64)
    distance = np.sqrt(np.sum(delta * delta, axis=-1))
    return clamp01(1.0 - float(distance.mean()) / MAX_RGB_DISTANCE)


def edge_map(image: PixelBuffer) -> PixelBuffer:
    """Sobel edge magnitude over luma, replicated into RGB.

    Parameters
    ----------
    image : PixelBuffer
        Source buffer

    Returns
    -------
    PixelBuffer
        Same size; RGB = clamp01(√(gx² + gy²)), alpha = 1. The one-pixel
        border (where the 3×3 kernel is undefined) stays 0.

    Notes
    -----
    Buffers narrower or shorter than 3 pixels have no interior and map to
    all-zero edges.
    """
    luma = luminance(image.pixels)
    h, w = luma.shape
    magnitude = np.zeros((h, w), dtype=np.float32)

    if h >= 3 and w >= 3:
        gx = np.zeros((h - 2, w - 2), dtype=np.float32)
        gy = np.zeros((h - 2, w - 2), dtype=np.float32)
        for ky in range(3):
            for kx in range(3):
                window = luma[ky:ky + h - 2, kx:kx + w - 2]
                if SOBEL_X[ky, kx]:
                    gx += SOBEL_X[ky, kx] * window
                if SOBEL_Y[ky, kx]:
                    gy += SOBEL_Y[ky, kx] * window
        magnitude[1:-1, 1:-1] = np.clip(np.sqrt(gx * gx + gy * gy), 0.0, 1.0)

    pixels = np.empty((h, w, 4), dtype=np.float32)
    pixels[..., :3] = magnitude[..., None]
    pixels[..., 3] = 1.0
    return PixelBuffer(pixels)


def structural_similarity(image1: PixelBuffer, image2: PixelBuffer) -> float:
    """color_similarity() of the two Sobel edge maps."""
    return color_similarity(edge_map(image1), edge_map(image2))


def difference_map(image1: PixelBuffer, image2: PixelBuffer) -> PixelBuffer:
    """Per-pixel divergence visualization at image2's size.

    Parameters
    ----------
    image1 : PixelBuffer
        Resized to image2's dimensions first
    image2 : PixelBuffer
        Reference

    Returns
    -------
    PixelBuffer
        RGBA (d, 1-d, 1-d, 1) with d = (|ΔR| + |ΔG| + |ΔB|) / 3:
        identical pixels render cyan, fully different ones red
    """
    resized = image1.resize(image2.width, image2.height)
    diff = np.abs(resized.pixels[..., :3] - image2.pixels[..., :3]).mean(axis=-1)

    pixels = np.empty((image2.height, image2.width, 4), dtype=np.float32)
    pixels[..., 0] = diff
    pixels[..., 1] = 1.0 - diff
    pixels[..., 2] = 1.0 - diff
    pixels[..., 3] = 1.0
    return PixelBuffer(pixels)


# ============================================================================
# SCORER
# ============================================================================

class SimilarityScorer:
    """Configured comparison of a drawing against a target image.

    Parameters
    ----------
    config : ScorerConfigV1, optional
        Threshold, enabled comparisons and downsample factor; defaults to
        ScorerConfigV1() (threshold 0.85, both comparisons, factor 2)

    Examples
    --------
    >>> scorer = SimilarityScorer(ScorerConfigV1(downsample_factor=1))
    >>> result = scorer.compare(canvas.snapshot(), target.reference_image)
    >>> result.is_match
    """

    def __init__(self, config: Optional[ScorerConfigV1] = None):
        config = config or ScorerConfigV1()
        self._match_threshold = clamp01(config.match_threshold)
        self.use_color = config.use_color
        self.use_structural = config.use_structural
        self.downsample_factor = max(1, int(config.downsample_factor))

    @classmethod
    def from_config(cls, path: Union[str, Path]) -> 'SimilarityScorer':
        """Build a scorer from a scorer.v1 YAML file."""
        return cls(load_scorer_config(path))

    @property
    def match_threshold(self) -> float:
        return self._match_threshold

    def set_match_threshold(self, threshold: float) -> None:
        """Store the threshold clamped into [0, 1]."""
        self._match_threshold = clamp01(threshold)

    def compare(
        self,
        drawn: Optional[PixelBuffer],
        target: Optional[PixelBuffer]
    ) -> ComparisonResult:
        """Score a drawing against a target.

        Parameters
        ----------
        drawn : PixelBuffer
            Player drawing (any size; resized to the target)
        target : PixelBuffer
            Reference image

        Returns
        -------
        ComparisonResult
            Always returned; failures yield a zero-score non-match whose
            ``detail`` explains the problem
        """
        try:
            with profiler.timer("similarity.compare"):
                return self._compare(drawn, target)
        except InvalidInputError as e:
            logger.error(f"Cannot compare images: {e}")
            return ComparisonResult.failed(str(e))
        except Exception as e:
            logger.exception("Comparison failed")
            return ComparisonResult.failed(f"Comparison failed: {e}")

    def _compare(self, drawn: Optional[PixelBuffer], target: Optional[PixelBuffer]) -> ComparisonResult:
        if drawn is None or target is None:
            raise InvalidInputError("Null image provided")

        drawn_cmp = drawn.resize(target.width, target.height)
        target_cmp = target
        if self.downsample_factor > 1:
            w = max(1, target.width // self.downsample_factor)
            h = max(1, target.height // self.downsample_factor)
            drawn_cmp = drawn_cmp.resize(w, h)
            target_cmp = target.resize(w, h)

        color_score = color_similarity(drawn_cmp, target_cmp) if self.use_color else 0.0
        structural_score = structural_similarity(drawn_cmp, target_cmp) if self.use_structural else 0.0

        if self.use_color and self.use_structural:
            overall = 0.5 * color_score + 0.5 * structural_score
        elif self.use_color:
            overall = color_score
        elif self.use_structural:
            overall = structural_score
        else:
            logger.warning("Both color and structural comparison disabled; score is 0")
            overall = 0.0

        is_match = overall >= self._match_threshold
        result = ComparisonResult(
            overall_score=overall,
            is_match=is_match,
            color_score=color_score,
            structural_score=structural_score,
            detail=f"Color: {color_score:.2f}, Structure: {structural_score:.2f}, Overall: {overall:.2f}",
        )
        logger.debug(
            f"compare {drawn.width}x{drawn.height} vs {target.width}x{target.height}: {result.detail}"
        )
        return result

    def get_difference_map(self, image1: PixelBuffer, image2: PixelBuffer) -> PixelBuffer:
        """Diagnostic difference map (see difference_map()); not used in scoring.

        Raises
        ------
        InvalidInputError
            If either image is None
        """
        if image1 is None or image2 is None:
            raise InvalidInputError("Cannot build a difference map from a missing image")
        return difference_map(image1, image2)
