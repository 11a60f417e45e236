"""
Per-pixel color transforms.

Every function takes a PixelBuffer, returns a new PixelBuffer and leaves
alpha untouched. The functions are independent and composable; each style
picks a subset and an order.

Functions:
    grayscale, invert: Basic channel remaps
    saturation_boost: Push channels away from the pixel's minimum channel
    heuristic_tone_shift: Coarse skin / sky / foliage rules
    vivid_tones: Saturation boost followed by heuristic tone shifts
    landscape_tone_shift: Green/blue gains, lifted shadows, warm highlights
    channel_gain: Per-channel multipliers
    split_contrast: Push channels +/- a fixed amount around a pivot
    luma_saturation: Push channels away from the pixel's luminance
    adjust_contrast: Linear contrast around a midpoint
    contrast_stretch: Global luminance min/max stretch with optional gamma
    darken: Uniform multiplier
    posterize: Uniform per-channel quantization
    quantize_to_palette: Nearest palette color by Euclidean RGB distance
    tone_bucket_palette: Palette lookup by luminance bucket
    quadrant_palette: Per-quadrant 3-tone palette remap
    wall_texture: Seedable noise plus light box-blur mix
    color_dodge: Color dodge blend of two layers
    css_filter: CSS saturate/contrast/brightness functions in order
    color_overlay: Flat color laid over the image at an opacity
    blend_layers: Mix two buffers at an opacity
    blend_edges: Mix an edge mask into a buffer

The skin/sky/foliage thresholds are fixed-threshold RGB rules, not a real
color-space segmentation. They are kept exactly as tuned.
"""

import logging
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from OC_Libs.constants import (
    CHANNEL_MAX,
    CONTRAST_MIDPOINT,
    DEFAULT_DARKEN_FACTOR,
    DEFAULT_NOISE_SEED,
    DEFAULT_POSTERIZE_LEVELS,
    DEFAULT_SATURATION_BOOST,
    DEFAULT_STRETCH_GAMMA,
    FOLIAGE_GREEN_GAIN,
    HIGHLIGHT_CUTOFF,
    HIGHLIGHT_WARMTH,
    LANDSCAPE_GAINS,
    SHADOW_CUTOFF,
    SHADOW_LIFT,
    SKIN_GAINS,
    SKIN_MIN_BLUE,
    SKIN_MIN_GREEN,
    SKIN_MIN_RED,
    SKY_BLUE_GAIN,
    WALL_BLUR_MIX,
    WALL_NOISE_INTENSITY,
    WARHOL_QUADRANT_PALETTES,
    WARHOL_TONE_CUTOFFS,
)
from OC_Libs.FilterLib.luminance import luminance, luminance_float
from OC_Libs.FilterLib.pixel_buffer import (
    EdgeMask,
    PixelBuffer,
    RgbColor,
    clamp_round,
    round_half_up,
    to_channel,
)

logger = logging.getLogger(__name__)

CssOperation = Tuple[str, float]


def _rgb(buffer: PixelBuffer) -> np.ndarray:
    return buffer.rgb.astype(np.float64)


def _palette_array(palette: Sequence[Sequence[int]]) -> np.ndarray:
    colors = np.asarray(palette, dtype=np.float64)
    if colors.ndim != 2 or colors.shape[1] != 3 or len(colors) == 0:
        raise ValueError(f"palette must be a non-empty sequence of RGB triples, got shape {colors.shape}")
    return colors


# ============================================================================
# Basic remaps
# ============================================================================

def grayscale(buffer: PixelBuffer) -> PixelBuffer:
    """Replace RGB with the rounded luminance."""
    gray = luminance(buffer)
    return buffer.with_rgb(np.repeat(gray[..., None], 3, axis=2))


def invert(buffer: PixelBuffer) -> PixelBuffer:
    """Replace every RGB channel value v with 255 - v."""
    return buffer.with_rgb(CHANNEL_MAX - buffer.rgb)


def darken(buffer: PixelBuffer, factor: float = DEFAULT_DARKEN_FACTOR) -> PixelBuffer:
    """Multiply RGB by ``factor`` and round half up."""
    return buffer.with_rgb(clamp_round(_rgb(buffer) * factor))


def channel_gain(buffer: PixelBuffer, gains: Sequence[float]) -> PixelBuffer:
    """
    Multiply each RGB channel by its own gain, capping at 255.

    Args:
        gains: (red, green, blue) multipliers
    """
    if len(gains) != 3:
        raise ValueError(f"gains must have 3 values, got {len(gains)}")
    return buffer.with_rgb(to_channel(_rgb(buffer) * np.asarray(gains, dtype=np.float64)))


# ============================================================================
# Saturation
# ============================================================================

def saturation_boost(buffer: PixelBuffer, boost: float = DEFAULT_SATURATION_BOOST) -> PixelBuffer:
    """
    Boost saturation by scaling each channel's distance from the minimum channel.

    For ``max = max(R,G,B)``, ``min = min(R,G,B)``, ``delta = max - min``:
    when ``max > 0`` and ``delta > 0``, ``satMult = boost * delta / max`` and
    every channel becomes ``min(255, c + (c - min) * satMult)``. Gray and
    black pixels are left unchanged.

    Args:
        buffer: Source buffer
        boost: Boost factor (1.4-1.5 in the built-in styles)
    """
    rgb = _rgb(buffer)
    high = rgb.max(axis=2)
    low = rgb.min(axis=2)
    delta = high - low
    active = (high > 0) & (delta > 0)

    sat_mult = np.zeros_like(high)
    sat_mult[active] = boost * delta[active] / high[active]

    boosted = np.minimum(CHANNEL_MAX, rgb + (rgb - low[..., None]) * sat_mult[..., None])
    return buffer.with_rgb(to_channel(np.where(active[..., None], boosted, rgb)))


def luma_saturation(buffer: PixelBuffer, factor: float) -> PixelBuffer:
    """Push each channel away from the pixel's luminance: ``L + factor * (c - L)``."""
    rgb = _rgb(buffer)
    lum = luminance_float(buffer)[..., None]
    return buffer.with_rgb(to_channel(lum + factor * (rgb - lum)))


# ============================================================================
# Heuristic tone shifts
# ============================================================================

def heuristic_tone_shift(buffer: PixelBuffer, reference: Optional[PixelBuffer] = None) -> PixelBuffer:
    """
    Apply the skin / sky / foliage tone rules.

    Rules are evaluated on ``reference`` (defaults to ``buffer``) and the
    replacement values are computed from the reference colors:

    - skin (R>150, G>100, B>80, R>G>B): R*1.15, G*1.08, B*0.9
    - sky/water (B>R and B>G): B*1.2
    - foliage (G>R and G>B): G*1.15

    Pixels matching no rule keep ``buffer``'s values.
    """
    ref = _rgb(reference if reference is not None else buffer)
    if ref.shape != buffer.rgb.shape:
        raise ValueError("reference buffer must match buffer dimensions")

    r, g, b = ref[..., 0], ref[..., 1], ref[..., 2]
    out = buffer.rgb.copy()

    skin = (r > SKIN_MIN_RED) & (g > SKIN_MIN_GREEN) & (b > SKIN_MIN_BLUE) & (r > g) & (g > b)
    skin_values = to_channel(ref * np.asarray(SKIN_GAINS, dtype=np.float64))
    out[skin] = skin_values[skin]

    sky = (b > r) & (b > g)
    out[..., 2][sky] = to_channel(b * SKY_BLUE_GAIN)[sky]

    foliage = (g > r) & (g > b)
    out[..., 1][foliage] = to_channel(g * FOLIAGE_GREEN_GAIN)[foliage]

    return buffer.with_rgb(out)


def vivid_tones(buffer: PixelBuffer, boost: float = DEFAULT_SATURATION_BOOST) -> PixelBuffer:
    """Saturation boost, then heuristic tone shifts keyed on the pre-boost colors."""
    return heuristic_tone_shift(saturation_boost(buffer, boost), reference=buffer)


def landscape_tone_shift(
    buffer: PixelBuffer,
    gains: Sequence[float] = LANDSCAPE_GAINS,
    shadow_cutoff: int = SHADOW_CUTOFF,
    shadow_lift: int = SHADOW_LIFT,
    highlight_cutoff: int = HIGHLIGHT_CUTOFF,
    highlight_warmth: Sequence[int] = HIGHLIGHT_WARMTH,
) -> PixelBuffer:
    """
    Lush-landscape palette: channel gains, lifted shadows, warm highlights.

    Pixels with every channel below ``shadow_cutoff`` are lifted by
    ``shadow_lift`` instead of gained. Pixels with every channel above
    ``highlight_cutoff`` get red and green warmed by ``highlight_warmth``
    while blue keeps its gain.
    """
    rgb = _rgb(buffer)
    out = to_channel(rgb * np.asarray(gains, dtype=np.float64))

    shadows = np.all(rgb < shadow_cutoff, axis=2)
    out[shadows] = to_channel(rgb + shadow_lift)[shadows]

    highlights = np.all(rgb > highlight_cutoff, axis=2)
    warm = to_channel(rgb[..., :2] + np.asarray(highlight_warmth, dtype=np.float64))
    out[..., :2][highlights] = warm[highlights]

    return buffer.with_rgb(out)


# ============================================================================
# Contrast
# ============================================================================

def split_contrast(buffer: PixelBuffer, pivot: int = CONTRAST_MIDPOINT, amount: int = 20) -> PixelBuffer:
    """Add ``amount`` to channels above ``pivot`` and subtract it from the rest."""
    rgb = buffer.rgb.astype(np.int32)
    shifted = np.where(rgb > pivot, rgb + amount, rgb - amount)
    return buffer.with_rgb(np.clip(shifted, 0, CHANNEL_MAX).astype(np.uint8))


def adjust_contrast(buffer: PixelBuffer, factor: float, midpoint: float = CONTRAST_MIDPOINT) -> PixelBuffer:
    """
    Linear contrast: ``clamp(round((v - midpoint) * factor + midpoint))``.

    A factor of 2.5 gives the poster-like high contrast of the Warhol style.
    """
    return buffer.with_rgb(clamp_round((_rgb(buffer) - midpoint) * factor + midpoint))


def contrast_stretch(buffer: PixelBuffer, gamma: Optional[float] = DEFAULT_STRETCH_GAMMA) -> PixelBuffer:
    """
    Stretch the global luminance range to [0, 255], then optionally gamma-boost.

    Each channel becomes ``round((v - min) / (max - min) * 255)``; a flat
    image (max == min) skips the stretch. With ``gamma`` set, each channel
    then becomes ``round(255 * (v / 255) ** gamma)``.
    """
    lum = luminance(buffer)
    low, high = int(lum.min()), int(lum.max())
    values = _rgb(buffer)

    value_range = high - low
    if value_range > 0:
        values = clamp_round((values - low) / value_range * CHANNEL_MAX).astype(np.float64)

    if gamma is not None:
        values = clamp_round(np.power(values / CHANNEL_MAX, gamma) * CHANNEL_MAX).astype(np.float64)

    return buffer.with_rgb(values.astype(np.uint8))


# ============================================================================
# Quantization and palettes
# ============================================================================

def posterize(buffer: PixelBuffer, levels: int = DEFAULT_POSTERIZE_LEVELS) -> PixelBuffer:
    """Snap every channel to the nearest of ``levels`` evenly spaced steps."""
    if levels < 1:
        raise ValueError(f"levels must be >= 1, got {levels}")
    step = CHANNEL_MAX / levels
    return buffer.with_rgb(clamp_round(round_half_up(_rgb(buffer) / step) * step))


def _nearest_palette_index(colors: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """Index of the nearest palette entry; ties resolve to the earliest entry."""
    best_index = np.zeros(colors.shape[:-1], dtype=np.int64)
    best_distance = np.full(colors.shape[:-1], np.inf)
    for index, entry in enumerate(palette):
        difference = colors - entry
        distance = np.sum(difference * difference, axis=-1)
        closer = distance < best_distance
        best_index[closer] = index
        best_distance[closer] = distance[closer]
    return best_index


def quantize_to_palette(
    buffer: PixelBuffer,
    palette: Sequence[RgbColor],
    block_size: Optional[int] = None,
    skip_color: Optional[RgbColor] = None,
) -> PixelBuffer:
    """
    Replace colors with the nearest palette entry by Euclidean RGB distance.

    Args:
        buffer: Source buffer
        palette: RGB palette; earlier entries win ties
        block_size: When set, the image is tiled into blocks and each block
                    is filled with the palette color nearest its rounded
                    average color
        skip_color: Pixels exactly equal to this RGB color are left alone
                    (per-pixel mode only)

    Raises:
        ValueError: If the palette is empty or block_size < 1
    """
    colors = _palette_array(palette)
    rgb = _rgb(buffer)

    if block_size is None:
        quantized = colors[_nearest_palette_index(rgb, colors)]
        if skip_color is not None:
            keep = np.all(buffer.rgb == np.asarray(skip_color, dtype=np.uint8), axis=2)
            quantized[keep] = rgb[keep]
        return buffer.with_rgb(quantized.astype(np.uint8))

    if block_size < 1:
        raise ValueError(f"block_size must be >= 1, got {block_size}")

    out = buffer.rgb.copy()
    for top in range(0, buffer.height, block_size):
        for left in range(0, buffer.width, block_size):
            block = rgb[top:top + block_size, left:left + block_size]
            average = round_half_up(block.reshape(-1, 3).sum(axis=0) / (block.shape[0] * block.shape[1]))
            index = int(_nearest_palette_index(average[None, :], colors)[0])
            out[top:top + block_size, left:left + block_size] = colors[index].astype(np.uint8)
    return buffer.with_rgb(out)


def tone_bucket_palette(
    buffer: PixelBuffer,
    palette: Sequence[RgbColor],
    skip_color: Optional[RgbColor] = (255, 255, 255),
) -> PixelBuffer:
    """
    Map each pixel's rounded luminance into ``len(palette)`` equal buckets.

    With a 4-color palette, luminance 0-63 maps to entry 0, 64-127 to entry
    1, and so on. Pixels equal to ``skip_color`` are left alone.
    """
    colors = _palette_array(palette).astype(np.uint8)
    bucket_width = 256 / len(colors)
    gray = luminance(buffer).astype(np.float64)
    index = np.minimum(np.floor(gray / bucket_width).astype(np.int64), len(colors) - 1)

    out = colors[index]
    if skip_color is not None:
        keep = np.all(buffer.rgb == np.asarray(skip_color, dtype=np.uint8), axis=2)
        out[keep] = buffer.rgb[keep]
    return buffer.with_rgb(out)


def quadrant_palette(
    buffer: PixelBuffer,
    palettes: Sequence[Sequence[RgbColor]] = WARHOL_QUADRANT_PALETTES,
    cutoffs: Sequence[int] = WARHOL_TONE_CUTOFFS,
) -> PixelBuffer:
    """
    Replace each pixel with its quadrant's dark / mid / light palette color.

    Quadrants split at ``floor(width / 2)`` and ``floor(height / 2)`` and are
    ordered top-left, top-right, bottom-left, bottom-right. Luminance below
    ``cutoffs[0]`` is dark, below ``cutoffs[1]`` mid, otherwise light.
    """
    if len(palettes) != 4 or any(len(p) != 3 for p in palettes):
        raise ValueError("palettes must hold 4 quadrants of 3 colors each")

    table = np.asarray(palettes, dtype=np.uint8)
    gray = luminance(buffer)
    tone = np.where(gray < cutoffs[0], 0, np.where(gray < cutoffs[1], 1, 2))

    xs = np.arange(buffer.width)
    ys = np.arange(buffer.height)
    quadrant = (xs >= buffer.width // 2)[None, :].astype(np.int64) + 2 * (ys >= buffer.height // 2)[:, None].astype(np.int64)

    return buffer.with_rgb(table[quadrant, tone])


# ============================================================================
# Texture
# ============================================================================

def wall_texture(
    buffer: PixelBuffer,
    intensity: float = WALL_NOISE_INTENSITY,
    blur_mix: float = WALL_BLUR_MIX,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = DEFAULT_NOISE_SEED,
) -> PixelBuffer:
    """
    Simulate a painted wall: per-pixel noise followed by a light 3x3 blur mix.

    The same noise value (uniform in ``[-intensity/2, intensity/2)``) is
    added to all three channels of a pixel. Interior pixels are then mixed
    ``(1 - blur_mix)`` original to ``blur_mix`` 3x3 mean.

    Args:
        buffer: Source buffer
        intensity: Noise amplitude
        blur_mix: Weight of the blurred value
        rng: Random generator; takes precedence over ``seed``
        seed: Seed for a fresh generator when ``rng`` is not given
    """
    generator = rng if rng is not None else np.random.default_rng(seed)
    noise = (generator.random((buffer.height, buffer.width)) - 0.5) * intensity
    noisy = to_channel(_rgb(buffer) + noise[..., None]).astype(np.float64)

    out = noisy.copy()
    h, w = buffer.height, buffer.width
    if h > 2 and w > 2:
        total = np.zeros((h - 2, w - 2, 3), dtype=np.float64)
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                total += noisy[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx]
        out[1:-1, 1:-1] = round_half_up(noisy[1:-1, 1:-1] * (1 - blur_mix) + (total / 9) * blur_mix)

    return buffer.with_rgb(clamp_round(out))


# ============================================================================
# Layer blending
# ============================================================================

def color_dodge(base: PixelBuffer, blend: PixelBuffer) -> PixelBuffer:
    """
    Color dodge: ``base * 255 / (255 - blend)``, 255 where ``blend`` is 255.

    Alpha is taken from ``base``.
    """
    if base.size != blend.size:
        raise ValueError("base and blend buffers must have the same size")

    base_rgb = _rgb(base)
    divisor = CHANNEL_MAX - _rgb(blend)
    safe_divisor = np.where(divisor == 0, 1, divisor)
    dodged = np.where(divisor == 0, CHANNEL_MAX, np.minimum(CHANNEL_MAX, base_rgb * CHANNEL_MAX / safe_divisor))
    return base.with_rgb(to_channel(dodged))


def blend_layers(base: PixelBuffer, layer: PixelBuffer, opacity: float) -> PixelBuffer:
    """Draw ``layer`` over ``base`` at ``opacity`` (0-1). Alpha comes from ``base``."""
    if base.size != layer.size:
        raise ValueError("base and layer buffers must have the same size")
    if not 0.0 <= opacity <= 1.0:
        raise ValueError(f"opacity must be in [0, 1], got {opacity}")
    return base.with_rgb(to_channel(_rgb(base) * (1 - opacity) + _rgb(layer) * opacity))


def color_overlay(buffer: PixelBuffer, color: Sequence[int], opacity: float) -> PixelBuffer:
    """Fill the image with a flat RGB color at ``opacity`` (0-1)."""
    if not 0.0 <= opacity <= 1.0:
        raise ValueError(f"opacity must be in [0, 1], got {opacity}")
    tint = np.asarray(color[:3], dtype=np.float64)
    return buffer.with_rgb(to_channel(_rgb(buffer) * (1 - opacity) + tint * opacity))


def blend_edges(
    buffer: PixelBuffer,
    mask: EdgeMask,
    color_weight: float,
    edge_weight: Optional[float] = None,
) -> PixelBuffer:
    """
    Mix an edge mask into a buffer: ``round(color * wColor + edge * wEdge)``.

    Args:
        buffer: Color-processed buffer
        mask: Edge mask, replicated across RGB
        color_weight: Weight of the color buffer (0.6-0.9 in the built-in styles)
        edge_weight: Weight of the edge mask; defaults to ``1 - color_weight``

    Raises:
        ValueError: If sizes differ or the weights do not sum to 1
    """
    if (mask.width, mask.height) != buffer.size:
        raise ValueError(
            f"mask size {(mask.width, mask.height)} does not match buffer size {buffer.size}"
        )
    if edge_weight is None:
        edge_weight = 1.0 - color_weight
    if not np.isclose(color_weight + edge_weight, 1.0):
        raise ValueError(f"color_weight + edge_weight must be 1, got {color_weight + edge_weight}")

    edges = mask.values.astype(np.float64)[..., None]
    return buffer.with_rgb(clamp_round(_rgb(buffer) * color_weight + edges * edge_weight))


# ============================================================================
# CSS filter functions
# ============================================================================

def _css_saturate(rgb: np.ndarray, amount: float) -> np.ndarray:
    s = amount
    matrix = np.array([
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ])
    return rgb @ matrix.T


def _css_contrast(rgb: np.ndarray, amount: float) -> np.ndarray:
    return (rgb - CHANNEL_MAX / 2) * amount + CHANNEL_MAX / 2


def _css_brightness(rgb: np.ndarray, amount: float) -> np.ndarray:
    return rgb * amount


_CSS_FUNCTIONS = {
    "saturate": _css_saturate,
    "contrast": _css_contrast,
    "brightness": _css_brightness,
}


def css_filter(buffer: PixelBuffer, operations: Sequence[CssOperation]) -> PixelBuffer:
    """
    Apply CSS filter functions (``saturate``, ``contrast``, ``brightness``) in order.

    Amounts are multipliers (``1.5`` for ``150%``). Values are clamped after
    every function, like a compositor chaining filter primitives.

    Example:
        >>> css_filter(buffer, [("saturate", 1.5), ("contrast", 1.3), ("brightness", 1.1)])

    Raises:
        ValueError: If an operation name is unknown or an amount is negative
    """
    rgb = _rgb(buffer)
    for name, amount in operations:
        function = _CSS_FUNCTIONS.get(str(name).lower())
        if function is None:
            raise ValueError(
                f"Unknown CSS filter function: {name}. "
                f"Valid functions: {', '.join(sorted(_CSS_FUNCTIONS))}"
            )
        if amount < 0:
            raise ValueError(f"CSS filter amount must be >= 0, got {name}({amount})")
        rgb = np.clip(function(rgb, float(amount)), 0, CHANNEL_MAX)
    return buffer.with_rgb(to_channel(rgb))


def describe_css(operations: Sequence[CssOperation]) -> str:
    """Render operations as a CSS filter string, e.g. ``saturate(150%) contrast(130%)``."""
    return " ".join(f"{name}({amount * 100:g}%)" for name, amount in operations)


def as_css_operations(value: Any) -> Tuple[CssOperation, ...]:
    """Normalize a list of ``[name, amount]`` pairs (e.g. from JSON) into tuples."""
    return tuple((str(name), float(amount)) for name, amount in value)
