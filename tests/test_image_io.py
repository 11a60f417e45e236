"""
Tests for Pillow decode/encode helpers.
"""

import unittest

import numpy as np
import pytest
from PIL import Image

from OC_Libs.FilterLib.image_io import buffer_from_image, buffer_to_image, load_buffer, save_buffer
from OC_Libs.FilterLib.pixel_buffer import PixelBuffer


class TestImageConversion(unittest.TestCase):
    """Test conversion between PIL Images and PixelBuffers."""

    def test_rgba_image_to_buffer(self):
        """Test that RGBA pixels are copied in row-major order."""
        image = Image.new("RGBA", (3, 2), (10, 20, 30, 40))
        image.putpixel((2, 1), (1, 2, 3, 4))
        buffer = buffer_from_image(image)

        self.assertEqual(buffer.size, (3, 2))
        self.assertEqual(buffer.get_pixel(2, 1), (1, 2, 3, 4))
        self.assertEqual(buffer.get_pixel(0, 0), (10, 20, 30, 40))

    def test_rgb_image_gets_opaque_alpha(self):
        """Test that RGB images are converted to RGBA."""
        buffer = buffer_from_image(Image.new("RGB", (2, 2), (5, 6, 7)))
        self.assertEqual(buffer.get_pixel(1, 1), (5, 6, 7, 255))

    def test_buffer_to_image(self):
        """Test converting back to a PIL Image."""
        buffer = PixelBuffer.new(4, 3, (200, 100, 50, 25))
        image = buffer_to_image(buffer)
        self.assertEqual(image.mode, "RGBA")
        self.assertEqual(image.size, (4, 3))
        self.assertEqual(image.getpixel((3, 2)), (200, 100, 50, 25))

    def test_non_image_rejected(self):
        """Test that arbitrary objects raise TypeError."""
        with self.assertRaises(TypeError):
            buffer_from_image("not an image")


class TestFileHelpers:
    """Test loading and saving buffers."""

    def test_png_round_trip(self, temp_output_dir):
        """Test that PNG preserves every byte."""
        rng = np.random.default_rng(0)
        buffer = PixelBuffer(5, 4, rng.integers(0, 256, size=(4, 5, 4), dtype=np.uint8))
        path = save_buffer(buffer, temp_output_dir / "out.png")
        assert load_buffer(path) == buffer

    def test_jpeg_drops_alpha(self, temp_output_dir):
        """Test that JPEG output is flattened and loads back opaque."""
        buffer = PixelBuffer.new(8, 8, (120, 120, 120, 10))
        path = save_buffer(buffer, temp_output_dir / "out.jpg", format="jpg")
        loaded = load_buffer(path)
        assert np.all(loaded.alpha == 255)

    def test_missing_file(self, temp_output_dir):
        """Test that loading a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_buffer(temp_output_dir / "missing.png")

    def test_missing_directory(self, temp_output_dir):
        """Test that saving into a missing directory raises OSError."""
        with pytest.raises(OSError):
            save_buffer(PixelBuffer.new(1, 1), temp_output_dir / "nope" / "out.png")
