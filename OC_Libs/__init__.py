"""
OC_Libs - Open Canvas Library Modules

This package contains the pixel-level image filter pipeline behind the
Open Canvas style converters, organized into specialized sub-packages:

- FilterLib: Pixel buffer, edge detection, smoothing, color, halftone and flood fill primitives
- StyleLib: Pass registry, style parameter tables and the style composer
"""

__version__ = "0.1.0"
