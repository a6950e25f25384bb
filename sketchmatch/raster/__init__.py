"""Raster layer: pixel buffers, stencil templates and the drawing canvas.

Public API:
    PixelBuffer: RGBA float32 grid with checked access and bilinear resize
    StencilTemplate: pattern + rotation/scale/position, yields stamp footprints
    Canvas: stroke rasterization, stencil compositing, clear/snapshot
"""

from .canvas import BrushState, Canvas, STENCIL_ALPHA_THRESHOLD
from .pixel_buffer import PixelBuffer
from .stencil import Footprint, StencilTemplate

__all__ = [
    'BrushState',
    'Canvas',
    'Footprint',
    'PixelBuffer',
    'STENCIL_ALPHA_THRESHOLD',
    'StencilTemplate',
]
