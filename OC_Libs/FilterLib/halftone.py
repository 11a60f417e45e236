"""
Halftone dot synthesis and grid line rasterization.

Functions:
    default_dot_size: Dot size scaled to the image
    apply_halftone: Comic-print dots sized by cell darkness
    default_grid_layout: Block size and line thickness for grid compositions
    draw_grid_lines: Evenly spaced horizontal and vertical bars

Halftoning is lossy and not invertible: each cell collapses to one average
color drawn as a single disk on a white background.
"""

import logging
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from OC_Libs.constants import (
    CHANNEL_MAX,
    DOT_SIZE_DIVISOR,
    HALFTONE_BACKGROUND,
    LUMA_BLUE,
    LUMA_GREEN,
    LUMA_RED,
    MIN_DOT_SIZE,
    MONDRIAN_BLOCK_DIVISOR,
    MONDRIAN_GRID_DIVISIONS,
    MONDRIAN_LINE_COLOR,
    MONDRIAN_LINE_DIVISOR,
    MONDRIAN_MIN_BLOCK,
    MONDRIAN_MIN_LINE,
)
from OC_Libs.FilterLib.pixel_buffer import PixelBuffer, round_half_up

logger = logging.getLogger(__name__)


def default_dot_size(width: int, height: int) -> int:
    """``max(4, floor(min(width, height) / 100))``."""
    return max(MIN_DOT_SIZE, min(width, height) // DOT_SIZE_DIVISOR)


def _disk(radius: int, spacing: int, dot_size: int) -> np.ndarray:
    """Boolean disk of ``radius`` centered at ``(dot_size, dot_size)`` in a cell."""
    coords = np.arange(spacing)
    dy = coords[:, None] - dot_size
    dx = coords[None, :] - dot_size
    return dx * dx + dy * dy <= radius * radius


def apply_halftone(
    buffer: PixelBuffer,
    dot_size: Optional[int] = None,
    background: Sequence[int] = HALFTONE_BACKGROUND,
) -> PixelBuffer:
    """
    Render the image as halftone dots.

    The image is tiled into cells of side ``2 * dot_size``. Each cell is
    painted with the background color, then a filled disk of radius
    ``max(1, round(dot_size * (255 - brightness) / 255))`` is drawn at the
    cell center in the cell's average color. Darker cells get bigger dots.
    Alpha is left untouched.

    Args:
        buffer: Source buffer (not modified)
        dot_size: Maximum dot radius; defaults to ``default_dot_size``
        background: RGB color behind the dots

    Returns:
        New PixelBuffer with the dot pattern

    Raises:
        ValueError: If dot_size < 1
    """
    if dot_size is None:
        dot_size = default_dot_size(buffer.width, buffer.height)
    if dot_size < 1:
        raise ValueError(f"dot_size must be >= 1, got {dot_size}")

    spacing = dot_size * 2
    source = buffer.rgb.astype(np.float64)
    result = buffer.copy()
    out = result.pixels
    backdrop = np.asarray(background[:3], dtype=np.uint8)
    disks: Dict[int, np.ndarray] = {}

    for top in range(0, buffer.height, spacing):
        for left in range(0, buffer.width, spacing):
            cell = source[top:top + spacing, left:left + spacing]
            cell_h, cell_w = cell.shape[:2]

            average = round_half_up(cell.reshape(-1, 3).sum(axis=0) / (cell_h * cell_w))
            brightness = round_half_up(
                LUMA_RED * average[0] + LUMA_GREEN * average[1] + LUMA_BLUE * average[2]
            )
            radius = max(1, int(round_half_up(dot_size * (CHANNEL_MAX - brightness) / CHANNEL_MAX)))

            if radius not in disks:
                disks[radius] = _disk(radius, spacing, dot_size)
            disk = disks[radius][:cell_h, :cell_w]

            region = out[top:top + cell_h, left:left + cell_w, :3]
            region[...] = backdrop
            region[disk] = average.astype(np.uint8)

    logger.debug(f"Applied halftone to {buffer.width}x{buffer.height} buffer (dot_size={dot_size})")
    return result


def default_grid_layout(width: int, height: int) -> Tuple[int, int]:
    """
    Block size and line thickness for a grid composition.

    Returns:
        ``(max(10, floor(min/20)), max(3, floor(min/100)))``
    """
    shortest = min(width, height)
    block_size = max(MONDRIAN_MIN_BLOCK, shortest // MONDRIAN_BLOCK_DIVISOR)
    line_thickness = max(MONDRIAN_MIN_LINE, shortest // MONDRIAN_LINE_DIVISOR)
    return block_size, line_thickness


def grid_line_positions(length: int, divisions: int = MONDRIAN_GRID_DIVISIONS) -> Tuple[int, ...]:
    """Line centers at ``floor(length * i / divisions)`` for ``i`` in ``1..divisions-1``."""
    return tuple(length * i // divisions for i in range(1, divisions))


def draw_grid_lines(
    buffer: PixelBuffer,
    divisions: int = MONDRIAN_GRID_DIVISIONS,
    thickness: Optional[int] = None,
    color: Sequence[int] = MONDRIAN_LINE_COLOR,
) -> PixelBuffer:
    """
    Draw ``divisions - 1`` horizontal and vertical bars across the image.

    Each bar is ``thickness`` pixels wide, starting ``floor(thickness / 2)``
    before its center line and clipped to the image. Alpha is untouched.

    Raises:
        ValueError: If divisions < 1 or thickness < 1
    """
    if divisions < 1:
        raise ValueError(f"divisions must be >= 1, got {divisions}")
    if thickness is None:
        _, thickness = default_grid_layout(buffer.width, buffer.height)
    if thickness < 1:
        raise ValueError(f"thickness must be >= 1, got {thickness}")

    result = buffer.copy()
    line_color = np.asarray(color[:3], dtype=np.uint8)
    offset = thickness // 2

    for center in grid_line_positions(buffer.height, divisions):
        start = max(0, center - offset)
        stop = min(buffer.height, center - offset + thickness)
        result.pixels[start:stop, :, :3] = line_color

    for center in grid_line_positions(buffer.width, divisions):
        start = max(0, center - offset)
        stop = min(buffer.width, center - offset + thickness)
        result.pixels[:, start:stop, :3] = line_color

    return result
