"""Target definitions: the reference image a player must reproduce.

A TargetSpec is supplied by level content and is read-only to the engine.
Its ``required_accuracy`` is wired into the scorer's match threshold by
DrawingSession.set_target().

Usage::

    from sketchmatch.game.target import TargetSpec
    target = TargetSpec.from_config("configs/targets/spiral.yaml")
    target.hint()   # description, or a generic prompt naming the target
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..errors import InvalidInputError
from ..raster.pixel_buffer import PixelBuffer
from ..utils import fs
from ..utils.color import clamp01
from ..utils.validators import TargetConfigV1, load_target_config

MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 5


@dataclass(frozen=True)
class TargetMetadata:
    """Plain description of a target, without pixel data."""

    name: str
    description: str
    width: int
    height: int
    required_accuracy: float
    complexity_level: int


@dataclass(frozen=True)
class TargetSpec:
    """Reference image plus difficulty settings.

    ``reference_image`` is shared, not copied; treat it as immutable.
    """

    reference_image: PixelBuffer
    required_accuracy: float = 0.85
    complexity_level: int = 1
    name: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        if self.reference_image is None:
            raise InvalidInputError(f"Target '{self.name}' has no reference image")
        if not 0.0 <= self.required_accuracy <= 1.0:
            raise ValueError(
                f"required_accuracy must be in [0, 1], got {self.required_accuracy}"
            )
        if not MIN_COMPLEXITY <= self.complexity_level <= MAX_COMPLEXITY:
            raise ValueError(
                f"complexity_level must be in [{MIN_COMPLEXITY}, {MAX_COMPLEXITY}], "
                f"got {self.complexity_level}"
            )

    @classmethod
    def from_config(cls, cfg: Union[TargetConfigV1, str, Path]) -> TargetSpec:
        """Load a target.v1 model or YAML path and decode its image."""
        if not isinstance(cfg, TargetConfigV1):
            cfg = load_target_config(cfg)
        return cls(
            reference_image=PixelBuffer.from_array(fs.load_image(cfg.image_path)),
            required_accuracy=cfg.required_accuracy,
            complexity_level=cfg.complexity_level,
            name=cfg.name,
            description=cfg.description,
        )

    def with_required_accuracy(self, accuracy: float) -> TargetSpec:
        """Copy with a new required accuracy, clamped into [0, 1]."""
        return dataclasses.replace(self, required_accuracy=clamp01(accuracy))

    def image_copy(self) -> PixelBuffer:
        return self.reference_image.copy()

    def hint(self) -> str:
        if self.description:
            return self.description
        return f"Try to recreate the {self.name} pattern"

    def metadata(self) -> TargetMetadata:
        return TargetMetadata(
            name=self.name,
            description=self.description,
            width=self.reference_image.width,
            height=self.reference_image.height,
            required_accuracy=self.required_accuracy,
            complexity_level=self.complexity_level,
        )
