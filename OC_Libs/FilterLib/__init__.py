"""
FilterLib - Pixel-level image filter primitives

This module provides the pixel buffer model and the per-pixel and
neighborhood passes the Open Canvas styles are built from.
"""

from OC_Libs.FilterLib.errors import (
    PixelPipelineError,
    InvalidBufferError,
    UnsupportedStyleError,
    OutOfBoundsSeedError,
    StyleParameterError,
    StyleExecutionError,
    OperationCancelledError,
    RemoteStyleError,
)
from OC_Libs.FilterLib.pixel_buffer import EdgeMask, PixelBuffer, RgbaColor, RgbColor
from OC_Libs.FilterLib.luminance import luminance
from OC_Libs.FilterLib.edge_detector import (
    edge_magnitude,
    detect_edges,
    sketch_edges,
    thicken_edges,
)
from OC_Libs.FilterLib.spatial_filter import (
    apply_box_blur,
    apply_gaussian_blur,
    apply_bilateral_filter,
)
from OC_Libs.FilterLib.halftone import apply_halftone, draw_grid_lines
from OC_Libs.FilterLib.flood_fill import colors_match, find_fill_region, flood_fill
from OC_Libs.FilterLib.cancellation import CancellationToken

__all__ = [
    "PixelPipelineError",
    "InvalidBufferError",
    "UnsupportedStyleError",
    "OutOfBoundsSeedError",
    "StyleParameterError",
    "StyleExecutionError",
    "OperationCancelledError",
    "RemoteStyleError",
    "EdgeMask",
    "PixelBuffer",
    "RgbaColor",
    "RgbColor",
    "luminance",
    "edge_magnitude",
    "detect_edges",
    "sketch_edges",
    "thicken_edges",
    "apply_box_blur",
    "apply_gaussian_blur",
    "apply_bilateral_filter",
    "apply_halftone",
    "draw_grid_lines",
    "colors_match",
    "find_fill_region",
    "flood_fill",
    "CancellationToken",
]
