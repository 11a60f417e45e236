"""
Pytest configuration and shared fixtures for Open Canvas tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import numpy as np
import pytest

from OC_Libs.FilterLib.pixel_buffer import PixelBuffer


def make_split_buffer(width=10, height=10, left=(255, 255, 255, 255), right=(0, 0, 0, 255)):
    """Buffer whose left half is one color and right half another."""
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[:, : width // 2] = left
    pixels[:, width // 2:] = right
    return PixelBuffer(width, height, pixels)


def make_noise_buffer(width=24, height=18, seed=7):
    """Deterministic random opaque buffer."""
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return PixelBuffer(width, height, pixels)


@pytest.fixture
def temp_output_dir(tmp_path):
    """
    Provide a temporary directory for written images.

    Args:
        tmp_path: Pytest's built-in temporary directory fixture

    Returns:
        Path object pointing to a temporary directory
    """
    return tmp_path


@pytest.fixture
def sample_rgba_colors():
    """
    Provide a list of sample RGBA color tuples for testing.

    Returns:
        List of (R, G, B, A) tuples with common test colors
    """
    return [
        (255, 0, 0, 255),    # Red
        (0, 255, 0, 255),    # Green
        (0, 0, 255, 255),    # Blue
        (255, 255, 255, 255),  # White
        (0, 0, 0, 255),      # Black
        (128, 128, 128, 255),  # Gray
    ]


@pytest.fixture
def split_buffer():
    """10x10 buffer, left half white, right half black."""
    return make_split_buffer()


@pytest.fixture
def noise_buffer():
    """24x18 deterministic random buffer."""
    return make_noise_buffer()


@pytest.fixture
def gradient_buffer():
    """32x20 buffer with a red ramp across and a blue ramp down."""
    width, height = 32, 20
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = np.linspace(0, 255, width).astype(np.uint8)[None, :]
    pixels[..., 2] = np.linspace(0, 255, height).astype(np.uint8)[:, None]
    pixels[..., 1] = 90
    pixels[..., 3] = 255
    return PixelBuffer(width, height, pixels)
