"""Test rasterization geometry helpers.

Tests for sketchmatch.utils.geometry:
    - disc_offsets(): every offset inside the radius, symmetric, cached
    - segment_centers(): endpoints included, spacing respected, zero length
    - rotate_points(): +90° maps +x to +y about the pivot
    - rotated_extent(): 0° identity, 90° swap, 45° diagonal

Run:
    pytest tests/test_geometry.py -v
"""

import math

import numpy as np
import pytest

from sketchmatch.utils import geometry


# ============================================================================
# DISCS
# ============================================================================

@pytest.mark.parametrize("radius,count", [(0.0, 1), (1.0, 5), (1.5, 9), (2.0, 13)])
def test_disc_offsets_counts(radius, count):
    dx, dy = geometry.disc_offsets(radius)
    assert len(dx) == len(dy) == count
    assert np.all(dx * dx + dy * dy <= radius * radius)


def test_disc_offsets_cached_and_read_only():
    a = geometry.disc_offsets(7.0)
    b = geometry.disc_offsets(7.0)
    assert a[0] is b[0]
    with pytest.raises(ValueError):
        a[0][0] = 99


# ============================================================================
# SEGMENTS
# ============================================================================

def test_segment_centers_endpoints_and_spacing():
    centers = geometry.segment_centers((0.0, 0.0), (10.0, 0.0), 2.5)
    assert len(centers) == 4 + 1
    assert centers[0] == (0.0, 0.0)
    assert centers[-1] == pytest.approx((10.0, 0.0))
    gaps = [b[0] - a[0] for a, b in zip(centers, centers[1:])]
    assert max(gaps) <= 2.5 + 1e-9


def test_segment_centers_uneven_division():
    centers = geometry.segment_centers((0.0, 0.0), (0.0, 7.0), 2.0)
    # ceil(7 / 2) = 4 steps
    assert len(centers) == 5


def test_segment_centers_zero_length():
    assert geometry.segment_centers((3.0, 4.0), (3.0, 4.0), 1.0) == [(3.0, 4.0)]


# ============================================================================
# ROTATION
# ============================================================================

def test_rotate_points_quarter_turn():
    out = geometry.rotate_points(np.array([[2.0, 1.0]]), 90.0, (1.0, 1.0))
    assert out[0] == pytest.approx((1.0, 2.0))


def test_rotate_points_full_turn_identity():
    pts = np.array([[0.0, 0.0], [3.0, -2.0]])
    out = geometry.rotate_points(pts, 360.0, (5.0, 5.0))
    assert np.allclose(out, pts)


@pytest.mark.parametrize("degrees,expected", [
    (0.0, (10.0, 20.0)),
    (90.0, (20.0, 10.0)),
    (45.0, (30.0 / math.sqrt(2.0), 30.0 / math.sqrt(2.0))),
])
def test_rotated_extent(degrees, expected):
    assert geometry.rotated_extent(10.0, 20.0, degrees) == pytest.approx(expected)
