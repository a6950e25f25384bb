"""Planar geometry for rasterization: discs, segments and rotated boxes.

Provides:
    - disc_offsets(): integer (dx, dy) offsets of a hard-edged filled disc
    - segment_centers(): evenly spaced disc centers along a straight segment
    - rotate_points(): rotate (N, 2) points about a pivot
    - rotated_extent(): axis-aligned extent of a rotated w×h rectangle

All coordinates are canvas pixel coordinates (x right, y along buffer rows).
Rounding to integer pixels uses Python's round() (half-to-even).
"""

import math
from functools import lru_cache
from typing import List, Tuple

import numpy as np

Point = Tuple[float, float]


@lru_cache(maxsize=64)
def disc_offsets(radius: float) -> Tuple[np.ndarray, np.ndarray]:
    """Integer offsets covered by a filled disc of the given radius.

    Parameters
    ----------
    radius : float
        Disc radius in pixels (≥ 0)

    Returns
    -------
    tuple of np.ndarray
        (dx, dy) int64 arrays of equal length; every pair satisfies
        dx² + dy² ≤ radius²

    Notes
    -----
    The scan box is ±round(radius), so the disc is hard-stepped (no
    anti-aliasing). Results are cached per radius; callers must not mutate
    the returned arrays.
    """
    r_int = int(round(radius))
    span = np.arange(-r_int, r_int + 1)
    dx, dy = np.meshgrid(span, span, indexing='xy')
    inside = dx * dx + dy * dy <= radius * radius
    dx = dx[inside]
    dy = dy[inside]
    dx.setflags(write=False)
    dy.setflags(write=False)
    return dx, dy


def segment_centers(start: Point, end: Point, spacing: float) -> List[Point]:
    """Disc centers along start → end, both endpoints included.

    Parameters
    ----------
    start, end : tuple of float
        Segment endpoints
    spacing : float
        Maximum distance between consecutive centers (> 0)

    Returns
    -------
    list of tuple
        steps + 1 points, steps = ceil(distance / spacing); a zero-length
        segment yields the single point ``end``
    """
    distance = math.hypot(end[0] - start[0], end[1] - start[1])
    steps = int(math.ceil(distance / spacing))
    if steps == 0:
        return [(float(end[0]), float(end[1]))]

    centers = []
    for i in range(steps + 1):
        t = i / steps
        centers.append((
            start[0] + (end[0] - start[0]) * t,
            start[1] + (end[1] - start[1]) * t,
        ))
    return centers


def rotate_points(points: np.ndarray, degrees: float, pivot: Point) -> np.ndarray:
    """Rotate points counter-clockwise (x toward y) about a pivot.

    Parameters
    ----------
    points : np.ndarray
        Shape (N, 2)
    degrees : float
        Rotation angle
    pivot : tuple of float
        Center of rotation

    Returns
    -------
    np.ndarray
        Rotated points, shape (N, 2), float64
    """
    theta = math.radians(degrees)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    rel = np.asarray(points, dtype=np.float64) - np.asarray(pivot, dtype=np.float64)
    out = np.empty_like(rel)
    out[:, 0] = rel[:, 0] * cos_t - rel[:, 1] * sin_t
    out[:, 1] = rel[:, 0] * sin_t + rel[:, 1] * cos_t
    return out + np.asarray(pivot, dtype=np.float64)


def rotated_extent(width: float, height: float, degrees: float) -> Tuple[float, float]:
    """Axis-aligned bounding size of a width×height box rotated by degrees."""
    theta = math.radians(degrees)
    cos_t, sin_t = abs(math.cos(theta)), abs(math.sin(theta))
    return (
        width * cos_t + height * sin_t,
        width * sin_t + height * cos_t,
    )
