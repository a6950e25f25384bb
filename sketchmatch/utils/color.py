"""Color helpers: RGBA parsing, clamping and luminance.

Provides:
    - parse_color(): hex strings / 3- or 4-tuples (float or 0-255 int) → RGBA
    - clamp01(): scalar clamp into [0, 1]
    - luminance(): Rec. 601 luma of an (..., ≥3) RGB(A) array

All colors inside sketchmatch are normalized RGBA tuples of floats in [0, 1].
Integer input is interpreted as 0-255 and normalized at this boundary only.

Usage:
    from sketchmatch.utils import color
    rgba = color.parse_color("#ff000080")   # (1.0, 0.0, 0.0, 0.502)
    luma = color.luminance(buffer.pixels)    # (H, W)
"""

from typing import Sequence, Tuple, Union

import numpy as np

RGBA = Tuple[float, float, float, float]
ColorLike = Union[str, Sequence[float], Sequence[int]]

WHITE: RGBA = (1.0, 1.0, 1.0, 1.0)
BLACK: RGBA = (0.0, 0.0, 0.0, 1.0)
TRANSPARENT: RGBA = (0.0, 0.0, 0.0, 0.0)

# Rec. 601 luma weights
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def clamp01(x: float) -> float:
    """Clamp a scalar into [0, 1]."""
    return float(min(1.0, max(0.0, x)))


def parse_color(value: ColorLike) -> RGBA:
    """Convert a color specification to a normalized RGBA tuple.

    Parameters
    ----------
    value : str or sequence
        - "#RRGGBB" or "#RRGGBBAA" hex string (leading '#' optional)
        - (r, g, b) or (r, g, b, a) floats in [0, 1]
        - (r, g, b) or (r, g, b, a) ints in [0, 255]

    Returns
    -------
    RGBA
        Tuple of four floats in [0, 1]; alpha defaults to 1.0

    Raises
    ------
    ValueError
        If the hex string is malformed or the sequence has the wrong length

    Notes
    -----
    A sequence is treated as 0-255 only when every component is an int.
    Float components outside [0, 1] are clamped.
    """
    if isinstance(value, str):
        text = value.strip().lstrip('#')
        if len(text) not in (6, 8):
            raise ValueError(f"Hex color must have 6 or 8 digits, got '{value}'")
        try:
            components = [int(text[i:i + 2], 16) for i in range(0, len(text), 2)]
        except ValueError as e:
            raise ValueError(f"Invalid hex color '{value}'") from e
        if len(components) == 3:
            components.append(255)
        return tuple(c / 255.0 for c in components)

    components = list(value)
    if len(components) not in (3, 4):
        raise ValueError(
            f"Color must have 3 or 4 components, got {len(components)}"
        )

    is_int = all(isinstance(c, (int, np.integer)) and not isinstance(c, bool)
                 for c in components)
    if is_int:
        if len(components) == 3:
            components.append(255)
        return tuple(clamp01(c / 255.0) for c in components)

    if len(components) == 3:
        components.append(1.0)
    return tuple(clamp01(float(c)) for c in components)


def luminance(pixels: np.ndarray) -> np.ndarray:
    """Compute Rec. 601 luma from RGB(A) pixels.

    Parameters
    ----------
    pixels : np.ndarray
        Array of shape (..., C) with C ≥ 3, values in [0, 1]

    Returns
    -------
    np.ndarray
        Luma of shape (...), float32

    Notes
    -----
    luma = 0.299·R + 0.587·G + 0.114·B (alpha ignored).
    """
    r, g, b = LUMA_WEIGHTS
    return (r * pixels[..., 0] + g * pixels[..., 1] + b * pixels[..., 2]).astype(np.float32)
