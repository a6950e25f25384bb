"""Test color parsing and luminance.

Tests for sketchmatch.utils.color:
    - Hex strings (#RRGGBB, #RRGGBBAA, without '#')
    - Float tuples in [0, 1] (clamped) and int tuples in [0, 255]
    - Malformed input rejected
    - Rec. 601 luminance

Known values:
    - "#ff000080" → (1, 0, 0, 128/255)
    - luminance(white) = 1.0, luminance(pure green) = 0.587

Run:
    pytest tests/test_color.py -v
"""

import numpy as np
import pytest

from sketchmatch.utils import color


@pytest.mark.parametrize("value,expected", [
    ("#ff0000", (1.0, 0.0, 0.0, 1.0)),
    ("00ff00", (0.0, 1.0, 0.0, 1.0)),
    ("#ff000080", (1.0, 0.0, 0.0, 128 / 255)),
    ((0.2, 0.4, 0.6), (0.2, 0.4, 0.6, 1.0)),
    ((0.2, 0.4, 0.6, 0.5), (0.2, 0.4, 0.6, 0.5)),
    ((255, 0, 51), (1.0, 0.0, 0.2, 1.0)),
    ((1.5, -0.5, 0.5), (1.0, 0.0, 0.5, 1.0)),
])
def test_parse_color(value, expected):
    assert color.parse_color(value) == pytest.approx(expected)


def test_parse_color_int_requires_all_ints():
    # A single float switches the whole tuple to [0, 1] interpretation
    assert color.parse_color((1, 0, 0.0)) == pytest.approx((1.0, 0.0, 0.0, 1.0))
    assert color.parse_color((1, 0, 0)) == pytest.approx((1 / 255, 0.0, 0.0, 1.0))


@pytest.mark.parametrize("bad", ["#fff", "#gggggg", (0.1, 0.2), (1, 2, 3, 4, 5)])
def test_parse_color_rejects_malformed(bad):
    with pytest.raises(ValueError):
        color.parse_color(bad)


def test_clamp01():
    assert color.clamp01(-1) == 0.0
    assert color.clamp01(0.25) == 0.25
    assert color.clamp01(7) == 1.0


def test_luminance():
    pixels = np.array([[color.WHITE, color.BLACK, (0.0, 1.0, 0.0, 1.0)]], dtype=np.float32)
    luma = color.luminance(pixels)
    assert luma.shape == (1, 3)
    assert luma.dtype == np.float32
    assert luma[0, 0] == pytest.approx(1.0)
    assert luma[0, 1] == 0.0
    assert luma[0, 2] == pytest.approx(0.587)
