"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config validation (validators)
    - Color parsing and luminance (color)
    - Disc / segment / rotation geometry (geometry)
    - Atomic YAML and image I/O (fs)
    - Timing (profiler)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (raster, scoring, game).

Convenience imports:
    from sketchmatch.utils import fs, color, validators
    from sketchmatch.utils.logging_config import setup_logging, get_logger
"""

from . import color
from . import fs
from . import geometry
from . import logging_config
from . import profiler
from . import validators

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    'color',
    'fs',
    'geometry',
    'logging_config',
    'profiler',
    'validators',
    'setup_logging',
    'get_logger',
    'push_context',
]
