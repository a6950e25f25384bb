"""sketchmatch: freehand-drawing match engine.

A player draws on a pixel canvas (freehand strokes or stamped stencils) and the
engine scores how closely the drawing matches a target raster image.

Architecture layers (strict one-way dependency):
    scripts/ → sketchmatch/{game,scoring,raster}/ → sketchmatch/utils/

Key invariants:
    - Pixel buffers are float32 RGBA in [0, 1], shape (H, W, 4), row-major
    - Canvas coordinates are pixel coordinates; no screen/world transforms here
    - Comparison never raises; it always returns a ComparisonResult
    - YAML configs validated by pydantic schemas (utils.validators)
"""

__version__ = "1.0.0"
