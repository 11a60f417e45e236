"""
Neighborhood smoothing filters.

Provides three smoothing algorithms:
- Box blur: Unweighted mean over a (2r+1)x(2r+1) window
- Gaussian blur: Fixed 3x3 kernel [1,2,1, 2,4,2, 1,2,1] / 16
- Bilateral filter: Edge-preserving spatial + color-distance weighting

All three work on RGB channels independently, leave alpha untouched and
only rewrite interior pixels; the radius-wide frame keeps its source values.
Every pass reads from a snapshot of its input, never from pixels it has
already written.

Example:
    >>> from OC_Libs.FilterLib.pixel_buffer import PixelBuffer
    >>> buffer = PixelBuffer.new(32, 32, (200, 100, 50, 255))
    >>>
    >>> soft = apply_box_blur(buffer, radius=1, passes=2)
    >>> smooth = apply_bilateral_filter(buffer, radius=2, sigma_space=2.0, sigma_color=30.0)
"""

import math
from typing import Optional

import numpy as np

from OC_Libs.constants import (
    DEFAULT_BILATERAL_RADIUS,
    DEFAULT_BOX_RADIUS,
    DEFAULT_CHUNK_ROWS,
    DEFAULT_SIGMA_COLOR,
    DEFAULT_SIGMA_SPACE,
    GAUSSIAN_3X3_KERNEL,
)
from OC_Libs.FilterLib.cancellation import CancellationToken, run_row_chunks
from OC_Libs.FilterLib.pixel_buffer import PixelBuffer, clamp_round


def _has_interior(buffer: PixelBuffer, radius: int) -> bool:
    return buffer.width > 2 * radius and buffer.height > 2 * radius


# ============================================================================
# Box Blur
# ============================================================================

def apply_box_blur(
    buffer: PixelBuffer,
    radius: int = DEFAULT_BOX_RADIUS,
    passes: int = 1,
    cancel_token: Optional[CancellationToken] = None,
    max_workers: Optional[int] = None,
) -> PixelBuffer:
    """
    Apply an unweighted mean blur.

    Args:
        buffer: Source buffer (not modified)
        radius: Window radius; the window is (2r+1)x(2r+1)
        passes: Number of sequential passes; each pass reads the previous
                pass's output (two passes give the watercolor softening)
        cancel_token: Optional token checked between row chunks
        max_workers: Optional thread count for row chunks

    Returns:
        New blurred PixelBuffer

    Raises:
        ValueError: If radius < 1 or passes < 1
    """
    if radius < 1:
        raise ValueError(f"radius must be >= 1, got {radius}")
    if passes < 1:
        raise ValueError(f"passes must be >= 1, got {passes}")

    result = buffer.copy()
    if not _has_interior(buffer, radius):
        return result

    h, w = buffer.height, buffer.width
    count = (2 * radius + 1) ** 2

    for _ in range(passes):
        source = result.pixels[..., :3].astype(np.int64)
        target = result.pixels

        def blur_rows(row_start: int, row_stop: int) -> None:
            total = np.zeros((row_stop - row_start, w - 2 * radius, 3), dtype=np.int64)
            for dy in range(-radius, radius + 1):
                for dx in range(-radius, radius + 1):
                    total += source[row_start + dy:row_stop + dy, radius + dx:w - radius + dx]
            target[row_start:row_stop, radius:w - radius, :3] = clamp_round(total / count)

        run_row_chunks(
            blur_rows, radius, h - radius,
            cancel_token=cancel_token,
            chunk_rows=DEFAULT_CHUNK_ROWS,
            max_workers=max_workers,
            description="box blur",
        )

    return result


# ============================================================================
# Gaussian Blur (3x3)
# ============================================================================

def apply_gaussian_blur(buffer: PixelBuffer) -> PixelBuffer:
    """
    Apply a single 3x3 Gaussian blur pass.

    Weights are ``[1, 2, 1, 2, 4, 2, 1, 2, 1] / 16``, accumulated row by row
    and rounded half up.

    Returns:
        New blurred PixelBuffer
    """
    result = buffer.copy()
    if not _has_interior(buffer, 1):
        return result

    h, w = buffer.height, buffer.width
    source = buffer.pixels[..., :3].astype(np.float64)
    total = np.zeros((h - 2, w - 2, 3), dtype=np.float64)

    kernel_index = 0
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            total += source[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx] * GAUSSIAN_3X3_KERNEL[kernel_index]
            kernel_index += 1

    result.pixels[1:-1, 1:-1, :3] = clamp_round(total)
    return result


# ============================================================================
# Bilateral Filter
# ============================================================================

def apply_bilateral_filter(
    buffer: PixelBuffer,
    radius: int = DEFAULT_BILATERAL_RADIUS,
    sigma_space: float = DEFAULT_SIGMA_SPACE,
    sigma_color: float = DEFAULT_SIGMA_COLOR,
    cancel_token: Optional[CancellationToken] = None,
    max_workers: Optional[int] = None,
) -> PixelBuffer:
    """
    Apply an edge-preserving bilateral filter.

    Each neighbor is weighted by
    ``exp(-d^2 / (2*sigma_space^2)) * exp(-c^2 / (2*sigma_color^2))`` where
    ``d^2`` is the squared pixel offset and ``c`` the difference between the
    neighbor's and the center's value in the channel being filtered.

    Args:
        buffer: Source buffer (not modified)
        radius: Neighborhood radius (typical 2)
        sigma_space: Spatial falloff (typical 2.0)
        sigma_color: Color-distance falloff (typical 30.0)
        cancel_token: Optional token checked between row chunks
        max_workers: Optional thread count for row chunks

    Returns:
        New filtered PixelBuffer

    Raises:
        ValueError: If radius < 1 or either sigma <= 0
    """
    if radius < 1:
        raise ValueError(f"radius must be >= 1, got {radius}")
    if sigma_space <= 0 or sigma_color <= 0:
        raise ValueError(
            f"sigmas must be > 0, got sigma_space={sigma_space}, sigma_color={sigma_color}"
        )

    result = buffer.copy()
    if not _has_interior(buffer, radius):
        return result

    h, w = buffer.height, buffer.width
    source = buffer.pixels[..., :3].astype(np.float64)
    target = result.pixels
    space_denominator = 2 * sigma_space * sigma_space
    color_denominator = 2 * sigma_color * sigma_color

    offsets = [
        (dy, dx, math.exp(-(dx * dx + dy * dy) / space_denominator))
        for dy in range(-radius, radius + 1)
        for dx in range(-radius, radius + 1)
    ]

    def filter_rows(row_start: int, row_stop: int) -> None:
        center = source[row_start:row_stop, radius:w - radius]
        weighted_sum = np.zeros_like(center)
        total_weight = np.zeros_like(center)
        for dy, dx, spatial_weight in offsets:
            sample = source[row_start + dy:row_stop + dy, radius + dx:w - radius + dx]
            difference = center - sample
            weight = spatial_weight * np.exp(-(difference * difference) / color_denominator)
            weighted_sum += sample * weight
            total_weight += weight
        target[row_start:row_stop, radius:w - radius, :3] = clamp_round(weighted_sum / total_weight)

    run_row_chunks(
        filter_rows, radius, h - radius,
        cancel_token=cancel_token,
        chunk_rows=DEFAULT_CHUNK_ROWS,
        max_workers=max_workers,
        description="bilateral filter",
    )
    return result
