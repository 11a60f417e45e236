"""
Grayscale / luminance conversion.

Functions:
    luminance_float: Unrounded BT.601 luminance per pixel
    luminance: Rounded luminance, one byte per pixel
"""

import numpy as np

from OC_Libs.constants import LUMA_BLUE, LUMA_GREEN, LUMA_RED
from OC_Libs.FilterLib.pixel_buffer import PixelBuffer, clamp_round


def luminance_float(buffer: PixelBuffer) -> np.ndarray:
    """
    Compute ``0.299*R + 0.587*G + 0.114*B`` for every pixel without rounding.

    Returns:
        float64 array of shape ``(height, width)``
    """
    rgb = buffer.rgb.astype(np.float64)
    return rgb[..., 0] * LUMA_RED + rgb[..., 1] * LUMA_GREEN + rgb[..., 2] * LUMA_BLUE


def luminance(buffer: PixelBuffer) -> np.ndarray:
    """
    Convert an RGBA buffer to single-channel luminance.

    Each value is ``round(0.299*R + 0.587*G + 0.114*B)`` with round-half-up.

    Args:
        buffer: Source PixelBuffer (not modified)

    Returns:
        uint8 array of shape ``(height, width)``
    """
    return clamp_round(luminance_float(buffer))
