"""
Pillow decode/encode helpers for PixelBuffers.

The filter pipeline itself never touches files; these helpers sit on the
caller's side of that boundary.

Functions:
    buffer_from_image: Convert a PIL Image to a PixelBuffer
    buffer_to_image: Convert a PixelBuffer to an RGBA PIL Image
    load_buffer: Open an image file as a PixelBuffer
    save_buffer: Save a PixelBuffer to disk
"""

from pathlib import Path
from typing import Any, Union

import numpy as np
from PIL import Image

from OC_Libs.constants import DEFAULT_OUTPUT_FORMAT
from OC_Libs.FilterLib.pixel_buffer import PixelBuffer


def buffer_from_image(image: Any) -> PixelBuffer:
    """
    Convert a PIL Image (any mode) to an RGBA PixelBuffer.

    Raises:
        TypeError: If image is not a PIL Image
    """
    if not hasattr(image, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")

    rgba = image if image.mode == "RGBA" else image.convert("RGBA")
    width, height = rgba.size
    return PixelBuffer(width, height, np.array(rgba, dtype=np.uint8))


def buffer_to_image(buffer: PixelBuffer) -> Any:
    """Convert a PixelBuffer to an RGBA PIL Image."""
    buffer.validate()
    return Image.fromarray(buffer.pixels.copy())


def load_buffer(path: Union[str, Path]) -> PixelBuffer:
    """
    Open an image file as a PixelBuffer.

    Raises:
        FileNotFoundError: If the file does not exist
        OSError: If Pillow cannot decode the file
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    with Image.open(path) as image:
        image.load()
        return buffer_from_image(image)


def save_buffer(buffer: PixelBuffer, path: Union[str, Path], format: str = DEFAULT_OUTPUT_FORMAT) -> Path:
    """
    Save a PixelBuffer to disk.

    JPEG has no alpha channel, so the buffer is flattened to RGB for it.

    Returns:
        The path written to

    Raises:
        OSError: If the parent directory does not exist or the file cannot be written
    """
    path = Path(path)
    if not path.parent.exists():
        raise OSError(f"Output directory does not exist: {path.parent}")

    image = buffer_to_image(buffer)
    format = format.upper()
    if format in ("JPEG", "JPG"):
        format = "JPEG"
        image = image.convert("RGB")
    image.save(path, format=format)
    return path
