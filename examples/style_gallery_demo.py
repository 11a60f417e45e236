"""
Style gallery demonstration.

Renders every built-in style for one image and writes the results next to
each other. Shows the speedup from rendering styles on a thread pool
compared to one after another.

Usage:
    python examples/style_gallery_demo.py photo.jpg [output_dir]

Without an input path a synthetic gradient image is used.
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging
import time

import numpy as np

from OC_Libs.constants import OUTPUT_FILE_PREFIX
from OC_Libs.FilterLib.image_io import load_buffer, save_buffer
from OC_Libs.FilterLib.pixel_buffer import PixelBuffer
from OC_Libs.StyleLib.style_composer import apply_styles, get_default_composer


def make_gradient(width=320, height=240):
    """Synthetic test image: horizontal red ramp, vertical blue ramp, a green square."""
    xs = np.linspace(0, 255, width)[None, :].repeat(height, axis=0)
    ys = np.linspace(0, 255, height)[:, None].repeat(width, axis=1)
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = xs
    pixels[..., 2] = ys
    pixels[..., 3] = 255
    pixels[height // 3:2 * height // 3, width // 3:2 * width // 3, 1] = 200
    return PixelBuffer(width, height, pixels)


def render(buffer, use_threading):
    start = time.time()
    results = apply_styles(buffer, use_threading=use_threading)
    return results, time.time() - start


def main():
    """Render all styles and save them."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    source = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    output_dir = Path(sys.argv[2]) if len(sys.argv) > 2 else Path("styled_output")
    output_dir.mkdir(parents=True, exist_ok=True)

    buffer = load_buffer(source) if source else make_gradient()
    stem = source.stem if source else "gradient"
    print(f"Input: {stem} ({buffer.width}x{buffer.height})")
    print("-" * 60)

    composer = get_default_composer()
    for name in composer.list_styles():
        print(composer.describe(name))
        print()

    _, sequential = render(buffer, use_threading=False)
    results, threaded = render(buffer, use_threading=True)
    print(f"Sequential: {sequential:.3f}s")
    print(f"Threaded:   {threaded:.3f}s")

    for name, styled in results.items():
        path = save_buffer(styled, output_dir / f"{OUTPUT_FILE_PREFIX}{name}_{stem}.png")
        print(f"  Saved {path}")


if __name__ == "__main__":
    main()
