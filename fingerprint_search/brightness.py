"""
Per-pixel luma and image-level average brightness.

Gray intensity uses fixed RGB weights (0.3, 0.59, 0.11) on unit-interval
samples. Only the first three channels take part; any further channel
(alpha) is stepped over, never averaged in.
"""

import logging
from typing import Sequence

import numpy as np

from .errors import EmptyImage
from .pixel_buffer import ConvertibleToUnitBuffer

logger = logging.getLogger(__name__)

LUMA_WEIGHTS = (0.3, 0.59, 0.11)

_WEIGHTS_F32 = np.array(LUMA_WEIGHTS, dtype=np.float32)


def gray_intensity(red: float, green: float, blue: float) -> float:
    """Luma of a single pixel given unit-interval RGB values."""
    return (LUMA_WEIGHTS[0] * red) + (LUMA_WEIGHTS[1] * green) + (LUMA_WEIGHTS[2] * blue)


def gray_intensity_array(picture: ConvertibleToUnitBuffer) -> np.ndarray:
    """
    Compute one gray value per pixel.

    Buffers with three or more channels use the RGB luma weights on the
    first three channels. One- and two-channel buffers (gray, gray+alpha)
    already carry intensity in channel 0, which is returned as is.

    Args:
        picture: Any buffer convertible to unit-interval samples.

    Returns:
        float32 array with one entry per pixel.
    """
    unit = picture.to_unit_buffer()
    pixels = unit.pixels()

    if unit.channel_count >= 3:
        rgb = pixels[:, :3]
        return (rgb[:, 0] * _WEIGHTS_F32[0]
                + rgb[:, 1] * _WEIGHTS_F32[1]
                + rgb[:, 2] * _WEIGHTS_F32[2]).astype(np.float32)

    return pixels[:, 0].astype(np.float32)


def average_brightness(gray_values: Sequence[float]) -> float:
    """
    Mean of a gray-intensity array.

    Raises:
        EmptyImage: If the array is empty.
    """
    gray = np.asarray(gray_values, dtype=np.float64)
    if gray.size == 0:
        raise EmptyImage("Cannot compute average brightness of an image with no pixels")
    return float(gray.sum() / gray.size)


def image_brightness(picture: ConvertibleToUnitBuffer) -> float:
    """Average brightness of a whole buffer."""
    return average_brightness(gray_intensity_array(picture))
