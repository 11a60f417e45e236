"""
Filter pass lookup table.

Each style is a list of passes naming an operation key ("bilateral",
"posterize", ...). This module maps those keys to the functions that run
them and records each operation's default parameters. The composer uses the
defaults both to fill in missing values and to decide which override names
are legal for a pass.

Classes:
    PassContext: Per-run state shared between the passes of one style
    PassRegistry: Operation keys mapped to pass functions and parameter defaults

Functions:
    get_default_registry: Shared registry holding the built-in passes
    register_default_passes: Add the built-in passes to a registry
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from OC_Libs.constants import (
    ANIME_WARM_OPACITY,
    ANIME_WARM_OVERLAY,
    CONTRAST_MIDPOINT,
    DEFAULT_BILATERAL_RADIUS,
    DEFAULT_BOX_RADIUS,
    DEFAULT_DARKEN_FACTOR,
    DEFAULT_EDGE_THRESHOLD,
    DEFAULT_POSTERIZE_LEVELS,
    DEFAULT_SATURATION_BOOST,
    DEFAULT_SIGMA_COLOR,
    DEFAULT_SIGMA_SPACE,
    DEFAULT_STRETCH_GAMMA,
    HIGHLIGHT_CUTOFF,
    HIGHLIGHT_WARMTH,
    LANDSCAPE_GAINS,
    MONDRIAN_GRID_DIVISIONS,
    MONDRIAN_LINE_COLOR,
    MONDRIAN_PALETTE,
    NO_EDGE_VALUE,
    SHADOW_CUTOFF,
    SHADOW_LIFT,
    SOFT_BLUR_OPACITY,
    WALL_BLUR_MIX,
    WALL_NOISE_INTENSITY,
    WARHOL_QUADRANT_PALETTES,
    WARHOL_TONE_CUTOFFS,
)
from OC_Libs.FilterLib import color_transform
from OC_Libs.FilterLib.cancellation import CancellationToken
from OC_Libs.FilterLib.edge_detector import detect_edges, sketch_edges
from OC_Libs.FilterLib.halftone import apply_halftone, default_grid_layout, draw_grid_lines
from OC_Libs.FilterLib.pixel_buffer import EdgeMask, PixelBuffer
from OC_Libs.FilterLib.spatial_filter import (
    apply_bilateral_filter,
    apply_box_blur,
    apply_gaussian_blur,
)

logger = logging.getLogger(__name__)

DEFAULT_MASK_NAME = "edges"


@dataclass
class PassContext:
    """
    State shared by the passes of a single style run.

    Attributes:
        original: Unmodified snapshot of the input; edge passes read this
        edge_masks: Masks produced by edge passes, keyed by mask name
        rng: Random source for texture passes
        cancel_token: Optional cancellation token
        max_workers: Optional thread count for chunked passes
    """
    original: PixelBuffer
    edge_masks: Dict[str, EdgeMask] = field(default_factory=dict)
    rng: np.random.Generator = field(default_factory=np.random.default_rng)
    cancel_token: Optional[CancellationToken] = None
    max_workers: Optional[int] = None

    def get_mask(self, name: str) -> EdgeMask:
        if name not in self.edge_masks:
            available = ", ".join(sorted(self.edge_masks)) or "none"
            raise KeyError(f"No edge mask named '{name}' has been computed. Available masks: {available}")
        return self.edge_masks[name]


# Type alias for executor function
PassExecutor = Callable[[PixelBuffer, Dict[str, Any], PassContext], PixelBuffer]


class PassRegistry:
    """
    Operation keys mapped to pass functions and their parameter schema.

    The parameter dict given at registration is the full set of names a
    style override may set for that operation; anything else is rejected
    by the composer before a style runs.

    Example:
        >>> registry = PassRegistry()
        >>> registry.register("darken", darken_pass, parameters={"factor": 0.8})
        >>> registry.execute("darken", buffer, {"factor": 0.5}, context)
    """

    def __init__(self):
        self._executors: Dict[str, PassExecutor] = {}
        self._pass_metadata: Dict[str, Dict[str, Any]] = {}

    def register(
        self,
        op: str,
        executor: PassExecutor,
        description: str = "",
        parameters: Optional[Dict[str, Any]] = None,
        tags: Optional[List[str]] = None,
    ) -> None:
        """
        Add an operation.

        Args:
            op: Operation key used in style pass lists (e.g., "bilateral")
            executor: ``(buffer, params, context) -> PixelBuffer``
            description: Shown by ``StyleComposer.describe``
            parameters: Defaults, which also define the overridable names
            tags: Free-form labels such as "smoothing" or "edges"

        Raises:
            ValueError: If op is empty or executor is not callable
            RuntimeError: If op is taken; existing passes are never
                          silently replaced
        """
        op = str(op).strip()

        if not op:
            raise ValueError("op cannot be empty")

        if not callable(executor):
            raise ValueError(f"executor must be callable, got {type(executor)}")

        if op in self._executors:
            raise RuntimeError(f"Pass operation '{op}' already exists")

        self._executors[op] = executor
        self._pass_metadata[op] = {
            "description": str(description),
            "parameters": dict(parameters) if parameters else {},
            "tags": list(tags) if tags else [],
        }

        logger.debug(f"Added pass operation {op}")

    def unregister(self, op: str) -> bool:
        """Remove an operation. Returns False if it was not present."""
        op = str(op).strip()

        if op in self._executors:
            del self._executors[op]
            del self._pass_metadata[op]
            logger.debug(f"Removed pass operation {op}")
            return True

        return False

    def get_executor(self, op: str) -> PassExecutor:
        op = str(op).strip()

        if op not in self._executors:
            available = ", ".join(self.list_ops())
            raise KeyError(f"Unknown pass operation '{op}' (known: {available})")

        return self._executors[op]

    def has_executor(self, op: str) -> bool:
        return str(op).strip() in self._executors

    def execute(
        self,
        op: str,
        buffer: PixelBuffer,
        params: Dict[str, Any],
        context: PassContext,
    ) -> PixelBuffer:
        """Run ``op`` on ``buffer`` with its defaults overlaid by ``params``."""
        executor = self.get_executor(op)
        merged = self.get_default_parameters(op)
        merged.update(params)
        return executor(buffer, merged, context)

    def list_ops(self) -> List[str]:
        """Sorted list of all registered operation keys."""
        return sorted(self._executors.keys())

    def get_metadata(self, op: str) -> Dict[str, Any]:
        """Copy of the description, default parameters and tags for ``op``."""
        op = str(op).strip()

        if op not in self._pass_metadata:
            raise KeyError(f"Unknown pass operation '{op}'")

        meta = self._pass_metadata[op]
        return {
            "description": meta["description"],
            "parameters": dict(meta["parameters"]),
            "tags": list(meta["tags"]),
        }

    def get_default_parameters(self, op: str) -> Dict[str, Any]:
        return self.get_metadata(op)["parameters"]

    def filter_by_tag(self, tag: str) -> List[str]:
        """Sorted operation keys carrying ``tag`` (case-insensitive)."""
        tag = str(tag).strip().lower()
        return sorted([
            op
            for op, meta in self._pass_metadata.items()
            if tag in [t.lower() for t in meta.get("tags", [])]
        ])

    def clear(self) -> None:
        """Drop every operation; styles using this registry will fail to plan."""
        self._executors.clear()
        self._pass_metadata.clear()
        logger.warning("All pass operations removed from registry")


# ============================================================================
# Built-in executors
# ============================================================================

def _box_blur(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return apply_box_blur(
        buffer,
        radius=int(params["radius"]),
        passes=int(params["passes"]),
        cancel_token=context.cancel_token,
        max_workers=context.max_workers,
    )


def _gaussian_blur(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return apply_gaussian_blur(buffer)


def _soft_blur_layer(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.blend_layers(buffer, apply_gaussian_blur(buffer), float(params["opacity"]))


def _bilateral(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return apply_bilateral_filter(
        buffer,
        radius=int(params["radius"]),
        sigma_space=float(params["sigma_space"]),
        sigma_color=float(params["sigma_color"]),
        cancel_token=context.cancel_token,
        max_workers=context.max_workers,
    )


def _saturation_boost(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.saturation_boost(buffer, float(params["boost"]))


def _vivid_tones(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.vivid_tones(buffer, float(params["boost"]))


def _landscape_tones(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.landscape_tone_shift(
        buffer,
        gains=params["gains"],
        shadow_cutoff=params["shadow_cutoff"],
        shadow_lift=params["shadow_lift"],
        highlight_cutoff=params["highlight_cutoff"],
        highlight_warmth=params["highlight_warmth"],
    )


def _channel_gain(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.channel_gain(buffer, params["gains"])


def _split_contrast(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.split_contrast(buffer, int(params["pivot"]), int(params["amount"]))


def _luma_saturation(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.luma_saturation(buffer, float(params["factor"]))


def _contrast(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.adjust_contrast(buffer, float(params["factor"]), float(params["midpoint"]))


def _contrast_stretch(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    gamma = params["gamma"]
    return color_transform.contrast_stretch(buffer, None if gamma is None else float(gamma))


def _darken(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.darken(buffer, float(params["factor"]))


def _grayscale(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.grayscale(buffer)


def _posterize(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.posterize(buffer, int(params["levels"]))


def _palette_quantize(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    method = str(params["method"]).lower()
    skip_color = params["skip_color"]

    if method == "tone":
        return color_transform.tone_bucket_palette(buffer, params["palette"], skip_color=skip_color)

    if method != "nearest":
        raise ValueError(f"Unknown palette method: {method}. Valid methods: nearest, tone")

    block_size = params["block_size"]
    if block_size == "auto":
        block_size, _ = default_grid_layout(buffer.width, buffer.height)

    return color_transform.quantize_to_palette(
        buffer,
        params["palette"],
        block_size=None if block_size is None else int(block_size),
        skip_color=skip_color,
    )


def _quadrant_palette(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.quadrant_palette(buffer, params["palettes"], params["cutoffs"])


def _halftone(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    dot_size = params["dot_size"]
    return apply_halftone(buffer, None if dot_size is None else int(dot_size))


def _grid_lines(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    thickness = params["thickness"]
    return draw_grid_lines(
        buffer,
        divisions=int(params["divisions"]),
        thickness=None if thickness is None else int(thickness),
        color=params["color"],
    )


def _wall_texture(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    seed = params["seed"]
    rng = context.rng if seed is None else np.random.default_rng(seed)
    return color_transform.wall_texture(
        buffer,
        intensity=float(params["intensity"]),
        blur_mix=float(params["blur_mix"]),
        rng=rng,
    )


def _dodge_sketch(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    gray = color_transform.grayscale(buffer)
    blurred = apply_gaussian_blur(color_transform.invert(gray))
    return color_transform.color_dodge(gray, blurred)


def _edges(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    mask = detect_edges(
        context.original,
        threshold=float(params["threshold"]),
        invert=True,
        thicken=bool(params["thicken"]),
        border_value=params["border_value"],
    )
    context.edge_masks[str(params["mask"])] = mask
    return buffer


def _sketch_edges(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    context.edge_masks[str(params["mask"])] = sketch_edges(context.original, int(params["border_value"]))
    return buffer


def _edge_blend(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    edge_weight = params["edge_weight"]
    return color_transform.blend_edges(
        buffer,
        context.get_mask(str(params["mask"])),
        color_weight=float(params["color_weight"]),
        edge_weight=None if edge_weight is None else float(edge_weight),
    )


def _css_filter(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.css_filter(buffer, color_transform.as_css_operations(params["operations"]))


def _color_overlay(buffer: PixelBuffer, params: Dict[str, Any], context: PassContext) -> PixelBuffer:
    return color_transform.color_overlay(buffer, params["color"], float(params["opacity"]))


# Global singleton registry
_default_registry: Optional[PassRegistry] = None


def get_default_registry() -> PassRegistry:
    """Registry with the built-in passes, created on first use."""
    global _default_registry

    if _default_registry is None:
        _default_registry = PassRegistry()
        register_default_passes(_default_registry)

    return _default_registry


def register_default_passes(registry: PassRegistry) -> None:
    """Add every built-in pass operation used by the style tables to ``registry``."""
    registry.register(
        "box_blur", _box_blur,
        description="Unweighted mean blur, optionally repeated",
        parameters={"radius": DEFAULT_BOX_RADIUS, "passes": 1},
        tags=["smoothing", "spatial"],
    )
    registry.register(
        "gaussian_blur", _gaussian_blur,
        description="Fixed 3x3 Gaussian blur",
        tags=["smoothing", "spatial"],
    )
    registry.register(
        "soft_blur_layer", _soft_blur_layer,
        description="Gaussian-blurred copy laid over the image at an opacity",
        parameters={"opacity": SOFT_BLUR_OPACITY},
        tags=["smoothing", "spatial", "finish"],
    )
    registry.register(
        "bilateral", _bilateral,
        description="Edge-preserving bilateral filter",
        parameters={
            "radius": DEFAULT_BILATERAL_RADIUS,
            "sigma_space": DEFAULT_SIGMA_SPACE,
            "sigma_color": DEFAULT_SIGMA_COLOR,
        },
        tags=["smoothing", "spatial"],
    )
    registry.register(
        "saturation_boost", _saturation_boost,
        description="Scale channels away from the minimum channel",
        parameters={"boost": DEFAULT_SATURATION_BOOST},
        tags=["color"],
    )
    registry.register(
        "vivid_tones", _vivid_tones,
        description="Saturation boost plus skin/sky/foliage tone rules",
        parameters={"boost": DEFAULT_SATURATION_BOOST},
        tags=["color"],
    )
    registry.register(
        "landscape_tones", _landscape_tones,
        description="Green/blue gains, lifted shadows and warm highlights",
        parameters={
            "gains": LANDSCAPE_GAINS,
            "shadow_cutoff": SHADOW_CUTOFF,
            "shadow_lift": SHADOW_LIFT,
            "highlight_cutoff": HIGHLIGHT_CUTOFF,
            "highlight_warmth": HIGHLIGHT_WARMTH,
        },
        tags=["color"],
    )
    registry.register(
        "channel_gain", _channel_gain,
        description="Per-channel multipliers",
        parameters={"gains": (1.0, 1.0, 1.0)},
        tags=["color"],
    )
    registry.register(
        "split_contrast", _split_contrast,
        description="Push channels up or down by a fixed amount around a pivot",
        parameters={"pivot": CONTRAST_MIDPOINT, "amount": 20},
        tags=["color", "contrast"],
    )
    registry.register(
        "luma_saturation", _luma_saturation,
        description="Push channels away from luminance",
        parameters={"factor": DEFAULT_SATURATION_BOOST},
        tags=["color"],
    )
    registry.register(
        "contrast", _contrast,
        description="Linear contrast around a midpoint",
        parameters={"factor": 1.0, "midpoint": CONTRAST_MIDPOINT},
        tags=["color", "contrast"],
    )
    registry.register(
        "contrast_stretch", _contrast_stretch,
        description="Global luminance stretch with gamma boost",
        parameters={"gamma": DEFAULT_STRETCH_GAMMA},
        tags=["color", "contrast"],
    )
    registry.register(
        "darken", _darken,
        description="Uniform channel multiplier",
        parameters={"factor": DEFAULT_DARKEN_FACTOR},
        tags=["color"],
    )
    registry.register(
        "grayscale", _grayscale,
        description="Replace RGB with luminance",
        tags=["color"],
    )
    registry.register(
        "posterize", _posterize,
        description="Uniform per-channel quantization",
        parameters={"levels": DEFAULT_POSTERIZE_LEVELS},
        tags=["color", "quantize"],
    )
    registry.register(
        "palette_quantize", _palette_quantize,
        description="Map colors onto a fixed palette (nearest color or tone buckets)",
        parameters={
            "palette": MONDRIAN_PALETTE,
            "method": "nearest",
            "block_size": None,
            "skip_color": None,
        },
        tags=["color", "quantize"],
    )
    registry.register(
        "quadrant_palette", _quadrant_palette,
        description="Per-quadrant three-tone palette remap",
        parameters={"palettes": WARHOL_QUADRANT_PALETTES, "cutoffs": WARHOL_TONE_CUTOFFS},
        tags=["color", "quantize"],
    )
    registry.register(
        "halftone", _halftone,
        description="Comic-print dots sized by cell darkness",
        parameters={"dot_size": None},
        tags=["pattern"],
    )
    registry.register(
        "grid_lines", _grid_lines,
        description="Evenly spaced horizontal and vertical bars",
        parameters={"divisions": MONDRIAN_GRID_DIVISIONS, "thickness": None, "color": MONDRIAN_LINE_COLOR},
        tags=["pattern"],
    )
    registry.register(
        "wall_texture", _wall_texture,
        description="Seedable noise plus a light blur mix",
        parameters={"intensity": WALL_NOISE_INTENSITY, "blur_mix": WALL_BLUR_MIX, "seed": None},
        tags=["texture"],
    )
    registry.register(
        "dodge_sketch", _dodge_sketch,
        description="Grayscale dodged by its blurred inverse",
        tags=["sketch"],
    )
    registry.register(
        "edges", _edges,
        description="Binary Sobel edge mask of the original image",
        parameters={
            "threshold": DEFAULT_EDGE_THRESHOLD,
            "thicken": False,
            "border_value": NO_EDGE_VALUE,
            "mask": DEFAULT_MASK_NAME,
        },
        tags=["edges"],
    )
    registry.register(
        "sketch_edges", _sketch_edges,
        description="Inverted Sobel magnitude of the original image",
        parameters={"border_value": NO_EDGE_VALUE, "mask": DEFAULT_MASK_NAME},
        tags=["edges", "sketch"],
    )
    registry.register(
        "edge_blend", _edge_blend,
        description="Mix a computed edge mask into the image",
        parameters={"color_weight": 0.8, "edge_weight": None, "mask": DEFAULT_MASK_NAME},
        tags=["edges", "blend"],
    )
    registry.register(
        "css_filter", _css_filter,
        description="CSS saturate/contrast/brightness functions in order",
        parameters={"operations": ()},
        tags=["color", "finish"],
    )
    registry.register(
        "color_overlay", _color_overlay,
        description="Flat color laid over the image at an opacity",
        parameters={"color": ANIME_WARM_OVERLAY, "opacity": ANIME_WARM_OPACITY},
        tags=["color", "finish"],
    )

    logger.info("Registered default pass executors")
