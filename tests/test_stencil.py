"""Test stencil templates and stamping.

Tests for sketchmatch.raster.stencil and Canvas.stamp_stencil:
    - Transform state: rotation wraps into [0, 360), scale clamps to [0.1, 5]
    - Locked templates ignore rotate() / set_scale()
    - Footprint size = base_size * scale; axis-aligned grid at rotation 0
    - Stamping writes only where sampled alpha > 0.1
    - Off-canvas footprint pixels are skipped
    - Rotation turns the pattern's x axis toward +y

Rotation scenario (40×40 canvas, stamp at (20, 20), base 10×10,
pattern opaque on its left half):
    - 0°:  (17, 20) painted, (23, 20) untouched
    - 90°: (20, 17) painted, (20, 23) untouched

Run:
    pytest tests/test_stencil.py -v
"""

import numpy as np
import pytest

from sketchmatch.errors import InvalidInputError
from sketchmatch.raster.canvas import Canvas
from sketchmatch.raster.pixel_buffer import PixelBuffer
from sketchmatch.raster.stencil import MAX_SCALE, MIN_SCALE, StencilTemplate
from sketchmatch.utils.color import BLACK, WHITE


@pytest.fixture
def canvas_40():
    return Canvas(40, 40)


@pytest.fixture
def half_stencil(half_opaque_pattern):
    return StencilTemplate("half", half_opaque_pattern, base_size=(10, 10))


def solid_pattern(color, size=4):
    return PixelBuffer.create(size, size, color)


# ============================================================================
# TRANSFORM STATE
# ============================================================================

def test_rotation_wraps(half_stencil):
    half_stencil.rotate(370)
    assert half_stencil.rotation == pytest.approx(10.0)
    half_stencil.rotate(-20)
    assert half_stencil.rotation == pytest.approx(350.0)
    assert StencilTemplate("s", solid_pattern(BLACK), rotation=-90).rotation == pytest.approx(270.0)


def test_rotation_stays_below_full_turn(half_stencil):
    half_stencil.rotate(-1e-15)
    assert 0.0 <= half_stencil.rotation < 360.0
    assert half_stencil.rotation == 0.0

    stencil = StencilTemplate("s", solid_pattern(BLACK), rotation=-1e-14)
    assert 0.0 <= stencil.rotation < 360.0


def test_scale_clamped(half_stencil):
    half_stencil.set_scale(10.0)
    assert half_stencil.scale == (MAX_SCALE, MAX_SCALE)
    half_stencil.set_scale(0.01, 2.0)
    assert half_stencil.scale == (MIN_SCALE, 2.0)


def test_locked_template_ignores_transforms(half_opaque_pattern):
    stencil = StencilTemplate(
        "locked", half_opaque_pattern, rotatable=False, scalable=False, scale=(2.0, 2.0)
    )
    stencil.rotate(45)
    stencil.set_scale(0.5)
    assert stencil.rotation == 0.0
    assert stencil.scale == (2.0, 2.0)


def test_missing_pattern_rejected():
    with pytest.raises(InvalidInputError):
        StencilTemplate("empty", None)
    with pytest.raises(ValueError):
        StencilTemplate("flat", solid_pattern(BLACK), base_size=(0, 10))


# ============================================================================
# FOOTPRINT
# ============================================================================

def test_footprint_size_follows_scale(half_stencil):
    half_stencil.set_scale(2.0, 0.5)
    assert half_stencil.footprint_size == (20.0, 5.0)


def test_footprint_axis_aligned_grid(half_stencil):
    fp = half_stencil.footprint((20, 20))
    assert len(fp) == 100
    assert fp.xs.min() == 15 and fp.xs.max() == 24
    assert fp.ys.min() == 15 and fp.ys.max() == 24
    assert np.all((fp.us >= 0.0) & (fp.us < 1.0))
    # u = local_x / size_x exactly at rotation 0
    assert np.allclose(fp.us, (fp.xs - 15) / 10.0)


def test_footprint_defaults_to_template_position(half_stencil):
    half_stencil.move_to((30, 12))
    fp = half_stencil.footprint()
    assert fp.xs.min() == 25
    assert fp.ys.min() == 7


def test_rotated_footprint_keeps_area(half_stencil):
    half_stencil.rotate(45)
    fp = half_stencil.footprint((50, 50))
    # Pixel count of a rotated 10×10 square stays close to 100
    assert 80 <= len(fp) <= 120


# ============================================================================
# STAMPING
# ============================================================================

def test_stamp_writes_pattern_color(canvas_40):
    red = (1.0, 0.0, 0.0, 1.0)
    stencil = StencilTemplate("red", solid_pattern(red), base_size=(6, 6))
    written = canvas_40.stamp_stencil(stencil, (20, 20))

    assert written == 36
    assert canvas_40.buffer.get_pixel(20, 20) == red
    assert canvas_40.buffer.get_pixel(10, 10) == WHITE


def test_stamp_respects_alpha_threshold(canvas_40):
    faint = StencilTemplate("faint", solid_pattern((0.0, 0.0, 0.0, 0.05)), base_size=(8, 8))
    revision = canvas_40.revision
    assert canvas_40.stamp_stencil(faint, (20, 20)) == 0
    assert np.all(canvas_40.buffer.pixels == 1.0)
    assert canvas_40.revision == revision

    solid = StencilTemplate("solid", solid_pattern((0.0, 0.0, 0.0, 0.5)), base_size=(8, 8))
    assert canvas_40.stamp_stencil(solid, (20, 20)) == 64


def test_stamp_transparent_half_untouched(canvas_40, half_stencil):
    canvas_40.stamp_stencil(half_stencil, (20, 20))
    assert canvas_40.buffer.get_pixel(16, 18) == BLACK
    assert canvas_40.buffer.get_pixel(23, 18) == WHITE
    assert canvas_40.buffer.get_pixel(24, 22) == WHITE


def test_stamp_clips_off_canvas(canvas_40):
    stencil = StencilTemplate("block", solid_pattern(BLACK), base_size=(10, 10))
    written = canvas_40.stamp_stencil(stencil, (0, 0))

    assert written == 25
    painted = np.any(canvas_40.buffer.pixels != 1.0, axis=-1)
    assert painted.sum() == 25
    assert painted[:5, :5].all()


def test_stamp_entirely_off_canvas(canvas_40):
    stencil = StencilTemplate("block", solid_pattern(BLACK), base_size=(10, 10))
    revision = canvas_40.revision
    assert canvas_40.stamp_stencil(stencil, (200, -200)) == 0
    assert canvas_40.revision == revision


def test_stamp_none_template_raises(canvas_40):
    with pytest.raises(InvalidInputError):
        canvas_40.stamp_stencil(None, (10, 10))


def test_stamp_scaled_footprint(canvas_40):
    stencil = StencilTemplate("block", solid_pattern(BLACK), base_size=(10, 10))
    stencil.set_scale(2.0, 0.5)
    assert canvas_40.stamp_stencil(stencil, (20, 20)) == 20 * 5


# ============================================================================
# ROTATION
# ============================================================================

def test_rotation_zero_scenario(canvas_40, half_stencil):
    canvas_40.stamp_stencil(half_stencil, (20, 20))
    assert canvas_40.buffer.get_pixel(17, 20) == BLACK
    assert canvas_40.buffer.get_pixel(23, 20) == WHITE


def test_rotation_ninety_scenario(canvas_40, half_stencil):
    half_stencil.rotate(90)
    canvas_40.stamp_stencil(half_stencil, (20, 20))

    # Opaque left half now faces -y
    assert canvas_40.buffer.get_pixel(20, 17) == BLACK
    assert canvas_40.buffer.get_pixel(20, 23) == WHITE
    assert canvas_40.buffer.get_pixel(17, 17) == BLACK
    assert canvas_40.buffer.get_pixel(17, 23) == WHITE


def test_rotation_changes_output(half_opaque_pattern):
    plain = Canvas(40, 40)
    turned = Canvas(40, 40)
    stencil = StencilTemplate("half", half_opaque_pattern, base_size=(10, 10))

    plain.stamp_stencil(stencil, (20, 20))
    stencil.rotate(180)
    turned.stamp_stencil(stencil, (20, 20))

    assert not np.array_equal(plain.buffer.pixels, turned.buffer.pixels)
    assert turned.buffer.get_pixel(23, 20) == BLACK
    assert turned.buffer.get_pixel(16, 20) == WHITE


def test_from_config(project_root):
    stencil = StencilTemplate.from_config(project_root / "configs/stencils/circle.yaml")
    assert stencil.name == "circle"
    assert stencil.footprint_size == (100.0, 100.0)
    assert not stencil.rotatable
    assert stencil.pattern.size == (32, 32)


@pytest.mark.parametrize("degrees,scale", [
    (0.0, (1.0, 1.0)),
    (30.0, (1.0, 1.0)),
    (45.0, (2.0, 0.5)),
    (90.0, (1.5, 1.5)),
    (135.0, (0.7, 2.2)),
    (200.0, (3.0, 1.0)),
    (315.0, (0.4, 0.4)),
])
def test_stamp_never_writes_faint_samples(half_opaque_pattern, degrees, scale):
    canvas = Canvas(60, 60)
    stencil = StencilTemplate("half", half_opaque_pattern, base_size=(10, 10))
    stencil.rotate(degrees)
    stencil.set_scale(*scale)

    fp = stencil.footprint((30, 30))
    inside = (fp.xs >= 0) & (fp.xs < 60) & (fp.ys >= 0) & (fp.ys < 60)
    alpha = half_opaque_pattern.sample_bilinear(fp.us, fp.vs)[:, 3]
    faint = inside & (alpha <= 0.1)
    opaque = inside & (alpha > 0.1)

    written = canvas.stamp_stencil(stencil, (30, 30))

    assert written == int(opaque.sum())
    assert np.all(canvas.buffer.pixels[fp.ys[faint], fp.xs[faint]] == 1.0)
    changed = np.any(canvas.buffer.pixels != 1.0, axis=-1)
    assert changed.sum() == written
