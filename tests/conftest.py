"""Shared fixtures for the sketchmatch test suite.

Fixtures:
    - project_root: repository root (for configs/)
    - white_10 / black_10: uniform 10×10 buffers
    - noise_32: seeded random 32×32 RGBA buffer
    - half_opaque_pattern: 10×10 pattern, opaque black on the left half only
    - clean_logging: restores root logger state after tests that configure logging
"""

import logging
import sys
from pathlib import Path

import numpy as np
import pytest

from sketchmatch.raster.pixel_buffer import PixelBuffer
from sketchmatch.utils import logging_config
from sketchmatch.utils.color import BLACK, WHITE


@pytest.fixture(scope="session")
def project_root():
    """Project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def white_10():
    return PixelBuffer.create(10, 10, WHITE)


@pytest.fixture
def black_10():
    return PixelBuffer.create(10, 10, BLACK)


@pytest.fixture
def noise_32():
    """Seeded random opaque image (deterministic across runs)."""
    rng = np.random.default_rng(1234)
    pixels = rng.random((32, 32, 4), dtype=np.float32)
    pixels[..., 3] = 1.0
    return PixelBuffer(pixels)


@pytest.fixture
def half_opaque_pattern():
    """10×10 pattern: columns 0-4 opaque black, columns 5-9 fully transparent."""
    pixels = np.zeros((10, 10, 4), dtype=np.float32)
    pixels[:, :5] = (0.0, 0.0, 0.0, 1.0)
    return PixelBuffer(pixels)


@pytest.fixture
def clean_logging():
    """Undo setup_logging() side effects (handlers, level, context, excepthook)."""
    root = logging.getLogger()
    level = root.level
    excepthook = sys.excepthook
    yield
    sys.excepthook = excepthook
    logging_config.shutdown()
    logging_config.pop_context()
    logging.captureWarnings(False)
    root.setLevel(level)
