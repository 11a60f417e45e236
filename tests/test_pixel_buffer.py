"""
Tests for the pixel buffer model.

Tests cover:
- Construction from arrays, flat data and bytes
- Dimension validation
- Byte coercion and rounding helpers
- Pixel accessors and color normalization
- Edge mask helpers
"""

import unittest

import numpy as np
import pytest

from OC_Libs.FilterLib.errors import InvalidBufferError, PixelPipelineError
from OC_Libs.FilterLib.pixel_buffer import (
    EdgeMask,
    PixelBuffer,
    clamp_round,
    normalize_color,
    round_half_up,
    to_channel,
)


class TestPixelBufferConstruction(unittest.TestCase):
    """Test creating PixelBuffers."""

    def test_new_fills_color(self):
        """Test that new() fills every pixel with the color."""
        buffer = PixelBuffer.new(3, 2, (10, 20, 30, 40))
        self.assertEqual(buffer.pixels.shape, (2, 3, 4))
        self.assertEqual(buffer.get_pixel(2, 1), (10, 20, 30, 40))

    def test_new_defaults_alpha(self):
        """Test that an RGB color gets an opaque alpha."""
        buffer = PixelBuffer.new(1, 1, (1, 2, 3))
        self.assertEqual(buffer.get_pixel(0, 0), (1, 2, 3, 255))

    def test_flat_array_is_reshaped(self):
        """Test that a flat row-major array is accepted."""
        data = np.arange(2 * 2 * 4, dtype=np.uint8)
        buffer = PixelBuffer(2, 2, data)
        self.assertEqual(buffer.get_pixel(1, 0), (4, 5, 6, 7))
        self.assertEqual(buffer.get_pixel(0, 1), (8, 9, 10, 11))

    def test_from_bytes_round_trips(self):
        """Test that from_bytes and to_bytes agree."""
        data = bytes(range(16))
        buffer = PixelBuffer.from_bytes(2, 2, data)
        self.assertEqual(buffer.to_bytes(), data)

    def test_float_data_is_clamped(self):
        """Test that float pixels clamp and round on construction."""
        buffer = PixelBuffer(1, 1, np.array([-5.0, 300.0, 12.5, 13.5]))
        self.assertEqual(buffer.get_pixel(0, 0), (0, 255, 12, 14))

    def test_copy_is_independent(self):
        """Test that copies do not share pixel storage."""
        buffer = PixelBuffer.new(2, 2, (0, 0, 0, 255))
        clone = buffer.copy()
        clone.set_pixel(0, 0, (255, 255, 255))
        self.assertEqual(buffer.get_pixel(0, 0), (0, 0, 0, 255))
        self.assertNotEqual(buffer, clone)

    def test_with_rgb_keeps_alpha(self):
        """Test that with_rgb replaces color and preserves alpha."""
        buffer = PixelBuffer.new(2, 1, (0, 0, 0, 77))
        result = buffer.with_rgb(np.full((1, 2, 3), 200.4))
        self.assertEqual(result.get_pixel(1, 0), (200, 200, 200, 77))
        self.assertEqual(buffer.get_pixel(1, 0), (0, 0, 0, 77))


class TestPixelBufferValidation(unittest.TestCase):
    """Test buffer invariant checks."""

    def test_zero_width_raises(self):
        """Test that a zero width is rejected."""
        with self.assertRaises(InvalidBufferError):
            PixelBuffer(0, 2, np.zeros(0, dtype=np.uint8))

    def test_negative_height_raises(self):
        """Test that a negative height is rejected."""
        with self.assertRaises(InvalidBufferError):
            PixelBuffer.new(2, -1)

    def test_length_mismatch_raises(self):
        """Test that a wrong pixel count is rejected."""
        with self.assertRaises(InvalidBufferError):
            PixelBuffer(2, 2, np.zeros(15, dtype=np.uint8))

    def test_invalid_buffer_error_is_value_error(self):
        """Test that InvalidBufferError can be caught as ValueError."""
        with self.assertRaises(ValueError):
            PixelBuffer(2, 2, np.zeros(3, dtype=np.uint8))
        self.assertTrue(issubclass(InvalidBufferError, PixelPipelineError))

    def test_validate_detects_replaced_pixels(self):
        """Test that validate() catches a pixel array swapped after construction."""
        buffer = PixelBuffer.new(2, 2)
        buffer.pixels = np.zeros((3, 3, 4), dtype=np.uint8)
        with self.assertRaises(InvalidBufferError):
            buffer.validate()

    def test_pixel_access_out_of_range(self):
        """Test that get_pixel outside the buffer raises IndexError."""
        buffer = PixelBuffer.new(2, 2)
        with self.assertRaises(IndexError):
            buffer.get_pixel(2, 0)


class TestRoundingHelpers:
    """Test channel rounding helpers."""

    def test_round_half_up(self):
        """Test that .5 rounds up."""
        assert list(round_half_up([0.5, 1.5, 2.5, 2.49])) == [1.0, 2.0, 3.0, 2.0]

    def test_to_channel_rounds_half_even(self):
        """Test that byte storage rounds half to even and clamps."""
        assert list(to_channel([0.5, 1.5, 2.5, -3, 256])) == [0, 2, 2, 0, 255]

    def test_clamp_round(self):
        """Test that clamp_round rounds half up then clamps."""
        assert list(clamp_round([2.5, 254.5, 255.5, -0.4])) == [3, 255, 255, 0]

    def test_normalize_color_clamps(self):
        """Test that colors clamp into the byte range."""
        assert normalize_color((300, -4, 12)) == (255, 0, 12, 255)

    def test_normalize_color_rejects_bad_length(self):
        """Test that 2-channel colors are rejected."""
        with pytest.raises(ValueError):
            normalize_color((1, 2))


class TestEdgeMask:
    """Test EdgeMask helpers."""

    def test_to_buffer_replicates_channels(self):
        """Test that the mask is copied into RGB with opaque alpha."""
        mask = EdgeMask(2, 1, np.array([[0, 255]], dtype=np.uint8))
        buffer = mask.to_buffer()
        assert buffer.get_pixel(0, 0) == (0, 0, 0, 255)
        assert buffer.get_pixel(1, 0) == (255, 255, 255, 255)

    def test_edge_count(self):
        """Test counting edge pixels."""
        mask = EdgeMask(3, 1, np.array([[0, 255, 0]], dtype=np.uint8))
        assert mask.edge_count() == 2
