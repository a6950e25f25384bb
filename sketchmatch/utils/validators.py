"""YAML schema validation and config loading.

Centralized pydantic schemas for every configuration file:
    - Canvas schema (canvas.v1): dimensions, optional background, initial brush
    - Scorer schema (scorer.v1): threshold, enabled comparisons, downsampling
    - Stencil schema (stencil.v1): pattern image, base size, initial transform
    - Target schema (target.v1): reference image, required accuracy, complexity

All loaders fail fast with the offending file in the message. Relative image
paths inside a config are resolved against the config file's directory.

Units:
    - Geometry: canvas pixels
    - Angles: degrees
    - Color / accuracy / threshold: [0.0, 1.0]

Usage:
    from sketchmatch.utils import validators
    scorer_cfg = validators.load_scorer_config("configs/scorer.v1.yaml")
    target_cfg = validators.load_target_config("configs/targets/spiral.yaml")
"""

from pathlib import Path
from typing import Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .color import parse_color

ModelT = TypeVar('ModelT', bound=BaseModel)


def _check_schema(value: str, expected: str) -> str:
    if value != expected:
        raise ValueError(f"Expected schema '{expected}', got '{value}'")
    return value


# ============================================================================
# CANVAS SCHEMA V1
# ============================================================================

class BrushConfig(BaseModel):
    """Initial brush state (color accepts hex strings or 3/4-tuples)."""
    model_config = ConfigDict(extra='forbid')

    color: Tuple[float, float, float, float] = Field((0.0, 0.0, 0.0, 1.0), description="RGBA in [0,1]")
    radius: float = Field(10.0, ge=1.0, le=512.0, description="Brush radius (px)")

    @field_validator('color', mode='before')
    @classmethod
    def parse_rgba(cls, v):
        return parse_color(v)


class CanvasConfigV1(BaseModel):
    """Canvas definition (canvas.v1 schema).

    When ``background_path`` is set, the canvas takes the background's size
    and width/height are ignored.
    """
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    schema_version: str = Field("canvas.v1", alias="schema")
    width: int = Field(1024, ge=1, le=8192, description="Canvas width (px)")
    height: int = Field(1024, ge=1, le=8192, description="Canvas height (px)")
    background_path: Optional[str] = Field(None, description="Optional background image")
    brush: BrushConfig = Field(default_factory=BrushConfig)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        return _check_schema(v, "canvas.v1")


# ============================================================================
# SCORER SCHEMA V1
# ============================================================================

class ScorerConfigV1(BaseModel):
    """Similarity scorer settings (scorer.v1 schema)."""
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    schema_version: str = Field("scorer.v1", alias="schema")
    match_threshold: float = Field(0.85, ge=0.0, le=1.0, description="Minimum overall score for a match")
    use_color: bool = Field(True, description="Include RGB distance score")
    use_structural: bool = Field(True, description="Include Sobel edge score")
    downsample_factor: int = Field(2, ge=1, le=64, description="Integer shrink before scoring")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        return _check_schema(v, "scorer.v1")

    @model_validator(mode='after')
    def validate_any_comparison(self) -> 'ScorerConfigV1':
        """At least one comparison must be enabled, else every score is 0."""
        if not (self.use_color or self.use_structural):
            raise ValueError("At least one of use_color / use_structural must be enabled")
        return self


# ============================================================================
# STENCIL SCHEMA V1
# ============================================================================

class StencilConfigV1(BaseModel):
    """Stencil template definition (stencil.v1 schema)."""
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    schema_version: str = Field("stencil.v1", alias="schema")
    name: str = Field(..., min_length=1)
    pattern_path: str = Field(..., description="Pattern image (alpha masks the stamp)")
    base_size: Tuple[float, float] = Field((100.0, 100.0), description="Footprint at scale 1 (px)")
    rotation: float = Field(0.0, description="Initial rotation (degrees, wrapped)")
    scale: Tuple[float, float] = Field((1.0, 1.0), description="Initial scale (clamped to [0.1, 5])")
    rotatable: bool = True
    scalable: bool = True

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        return _check_schema(v, "stencil.v1")

    @field_validator('base_size')
    @classmethod
    def validate_base_size(cls, v: Tuple[float, float]) -> Tuple[float, float]:
        if v[0] <= 0 or v[1] <= 0:
            raise ValueError(f"base_size must be positive, got {v}")
        return v


# ============================================================================
# TARGET SCHEMA V1
# ============================================================================

class TargetConfigV1(BaseModel):
    """Target image definition (target.v1 schema)."""
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    schema_version: str = Field("target.v1", alias="schema")
    name: str = Field(..., min_length=1)
    description: str = ""
    image_path: str
    required_accuracy: float = Field(0.85, ge=0.0, le=1.0)
    complexity_level: int = Field(1, ge=1, le=5)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        return _check_schema(v, "target.v1")


# ============================================================================
# PUBLIC API
# ============================================================================

def _load(path: Union[str, Path], model: Type[ModelT], label: str) -> ModelT:
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{label} config not found: {path}")

    data = fs.load_yaml(path)
    try:
        return model(**data)
    except ValidationError as e:
        raise ValueError(f"{label} config validation failed at {path}: {e}") from e


def resolve_relative(config_path: Union[str, Path], value: str) -> Path:
    """Resolve a path found inside a config file against that file's directory."""
    p = Path(value)
    if p.is_absolute():
        return p
    return Path(config_path).parent / p


def load_canvas_config(path: Union[str, Path]) -> CanvasConfigV1:
    """Load and validate a canvas.v1 YAML file.

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails
    """
    cfg = _load(path, CanvasConfigV1, "Canvas")
    if cfg.background_path:
        cfg.background_path = str(resolve_relative(path, cfg.background_path))
    return cfg


def load_scorer_config(path: Union[str, Path]) -> ScorerConfigV1:
    """Load and validate a scorer.v1 YAML file."""
    return _load(path, ScorerConfigV1, "Scorer")


def load_stencil_config(path: Union[str, Path]) -> StencilConfigV1:
    """Load and validate a stencil.v1 YAML file (pattern path resolved)."""
    cfg = _load(path, StencilConfigV1, "Stencil")
    cfg.pattern_path = str(resolve_relative(path, cfg.pattern_path))
    return cfg


def load_target_config(path: Union[str, Path]) -> TargetConfigV1:
    """Load and validate a target.v1 YAML file (image path resolved)."""
    cfg = _load(path, TargetConfigV1, "Target")
    cfg.image_path = str(resolve_relative(path, cfg.image_path))
    return cfg
