"""
Tests for Sobel edge detection.

Tests cover:
- Uniform and split-image scenarios
- Binary range of inverted masks
- Raw magnitude masks
- Border policy
- Edge thickening
"""

import unittest

import numpy as np

from OC_Libs.FilterLib.edge_detector import (
    detect_edges,
    edge_magnitude,
    sketch_edges,
    thicken_edges,
)
from OC_Libs.FilterLib.pixel_buffer import EdgeMask, PixelBuffer


def split_buffer(width=10, height=10):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, : width // 2, :3] = 255
    pixels[..., 3] = 255
    return PixelBuffer(width, height, pixels)


class TestDetectEdges(unittest.TestCase):
    """Test binary edge detection."""

    def test_uniform_black_has_no_edges(self):
        """Test that a uniform 4x4 black image yields an all-white mask."""
        buffer = PixelBuffer.new(4, 4, (0, 0, 0, 255))
        mask = detect_edges(buffer, threshold=30)
        self.assertEqual(mask.values.shape, (4, 4))
        self.assertTrue(np.all(mask.values == 255))

    def test_vertical_boundary(self):
        """Test that a left-white/right-black split yields a vertical edge line."""
        mask = detect_edges(split_buffer(), threshold=30)

        expected = np.full((10, 10), 255, dtype=np.uint8)
        expected[1:-1, 4:6] = 0
        np.testing.assert_array_equal(mask.values, expected)

    def test_binary_range(self):
        """Test that an inverted mask only holds 0 and 255."""
        rng = np.random.default_rng(3)
        pixels = rng.integers(0, 256, size=(15, 12, 4), dtype=np.uint8)
        mask = detect_edges(PixelBuffer(12, 15, pixels), threshold=30)
        self.assertTrue(set(np.unique(mask.values)).issubset({0, 255}))

    def test_border_value_override(self):
        """Test that the one-pixel frame can be forced to edge color."""
        buffer = PixelBuffer.new(5, 5, (0, 0, 0, 255))
        mask = detect_edges(buffer, border_value=0)
        self.assertTrue(np.all(mask.values[0, :] == 0))
        self.assertTrue(np.all(mask.values[:, -1] == 0))
        self.assertTrue(np.all(mask.values[1:-1, 1:-1] == 255))

    def test_threshold_is_strict(self):
        """Test that a gradient equal to the threshold is not an edge."""
        buffer = split_buffer()
        magnitude = edge_magnitude(buffer)
        strongest = float(magnitude.max())
        mask = detect_edges(buffer, threshold=strongest)
        self.assertEqual(mask.edge_count(), 0)

    def test_tiny_buffer(self):
        """Test that buffers too small for Sobel return only border."""
        buffer = PixelBuffer.new(2, 2, (10, 10, 10, 255))
        mask = detect_edges(buffer)
        self.assertTrue(np.all(mask.values == 255))

    def test_thicken_requires_binary(self):
        """Test that thickening a raw-magnitude mask is rejected."""
        with self.assertRaises(ValueError):
            detect_edges(split_buffer(), invert=False, thicken=True)


class TestMagnitudeMasks:
    """Test raw magnitude and sketch masks."""

    def test_raw_magnitude_clamped(self):
        """Test that raw magnitude at a hard boundary saturates at 255."""
        mask = detect_edges(split_buffer(), invert=False)
        assert not mask.binary
        assert mask.values[5, 4] == 255
        assert mask.values[5, 1] == 0
        assert mask.values[0, 0] == 0

    def test_sketch_edges_inverts_magnitude(self):
        """Test that sketch edges are dark on boundaries and white elsewhere."""
        mask = sketch_edges(split_buffer())
        assert mask.values[5, 4] == 0
        assert mask.values[5, 1] == 255
        assert mask.values[0, 0] == 255


class TestThickenEdges:
    """Test one-pixel edge dilation."""

    def test_single_edge_grows_to_3x3(self):
        """Test that one interior edge pixel becomes a 3x3 block."""
        values = np.full((5, 5), 255, dtype=np.uint8)
        values[2, 2] = 0
        thickened = thicken_edges(EdgeMask(5, 5, values))

        expected = np.full((5, 5), 255, dtype=np.uint8)
        expected[1:4, 1:4] = 0
        np.testing.assert_array_equal(thickened.values, expected)

    def test_dilation_does_not_cascade(self):
        """Test that newly marked pixels do not seed further growth."""
        values = np.full((7, 7), 255, dtype=np.uint8)
        values[3, 2] = 0
        thickened = thicken_edges(EdgeMask(7, 7, values))
        assert thickened.values[3, 4] == 255
        assert thickened.values[3, 3] == 0

    def test_input_not_modified(self):
        """Test that thickening returns a new mask."""
        values = np.full((5, 5), 255, dtype=np.uint8)
        values[2, 2] = 0
        mask = EdgeMask(5, 5, values)
        thicken_edges(mask)
        assert mask.edge_count() == 1
