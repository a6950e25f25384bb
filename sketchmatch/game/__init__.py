"""Game layer: targets and the drawing session that scores against them.

Public API:
    TargetSpec: reference image plus required accuracy and complexity
    DrawingSession: canvas + scorer + stencil registry orchestration
    CanvasSnapshot: canvas copy tagged with its revision
"""

from .session import CanvasSnapshot, DrawingSession
from .target import TargetMetadata, TargetSpec

__all__ = [
    'CanvasSnapshot',
    'DrawingSession',
    'TargetMetadata',
    'TargetSpec',
]
