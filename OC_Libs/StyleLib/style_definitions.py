"""
Built-in artistic style definitions.

A style is an ordered list of passes. Each pass names a registered pass
operation and carries its parameters, so the styles are plain data that can
be listed, described and serialized.

Classes:
    StyleName: Enumeration of the built-in styles
    PassSpec: One step of a style
    StyleDefinition: Named, ordered list of passes

Functions:
    get_style_definition: Look up a style by name
    list_styles: Names of all built-in styles
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple, Union

from OC_Libs.constants import (
    ANIME_WARM_OPACITY,
    ANIME_WARM_OVERLAY,
    EDGE_THRESHOLD_ANIME,
    EDGE_THRESHOLD_CARICATURE,
    EDGE_THRESHOLD_CARTOON,
    EDGE_THRESHOLD_GHIBLI,
    EDGE_THRESHOLD_POP_ART,
    EDGE_THRESHOLD_WALL,
    EDGE_VALUE,
    HIGH_CONTRAST_FACTOR,
    HALFTONE_BACKGROUND,
    MONDRIAN_PALETTE,
    POP_ART_PALETTE,
    SOFT_BLUR_OPACITY,
    STYLE_ANIME_PORTRAIT,
    STYLE_CARICATURE,
    STYLE_COLOR_ON_WALL,
    STYLE_GHIBLI,
    STYLE_LICHTENSTEIN,
    STYLE_MONDRIAN,
    STYLE_PENCIL_SKETCH,
    STYLE_WARHOL,
    STYLE_WYNWOOD,
)
from OC_Libs.FilterLib.errors import UnsupportedStyleError


class StyleName(str, Enum):
    """Built-in artistic styles."""
    GHIBLI = STYLE_GHIBLI
    ANIME_PORTRAIT = STYLE_ANIME_PORTRAIT
    CARICATURE = STYLE_CARICATURE
    WYNWOOD = STYLE_WYNWOOD
    WARHOL = STYLE_WARHOL
    MONDRIAN = STYLE_MONDRIAN
    LICHTENSTEIN = STYLE_LICHTENSTEIN
    COLOR_ON_WALL = STYLE_COLOR_ON_WALL
    PENCIL_SKETCH = STYLE_PENCIL_SKETCH


@dataclass
class PassSpec:
    """
    One step of a style.

    Attributes:
        id: Identifier unique within the style; override maps target it
        op: Registered pass operation key
        params: Parameters overriding the operation's defaults
    """
    id: str
    op: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"id": self.id, "op": self.op, "params": dict(self.params)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PassSpec":
        """Create from dictionary."""
        return cls(
            id=str(data["id"]),
            op=str(data.get("op", data["id"])),
            params=dict(data.get("params", {})),
        )


@dataclass
class StyleDefinition:
    """A named, ordered list of passes."""
    name: str
    passes: List[PassSpec]
    description: str = ""

    def __post_init__(self):
        ids = [spec.id for spec in self.passes]
        duplicates = sorted({pass_id for pass_id in ids if ids.count(pass_id) > 1})
        if duplicates:
            raise ValueError(f"Style '{self.name}' has duplicate pass ids: {', '.join(duplicates)}")

    def pass_ids(self) -> List[str]:
        return [spec.id for spec in self.passes]

    def get_pass(self, pass_id: str) -> PassSpec:
        for spec in self.passes:
            if spec.id == pass_id:
                return spec
        raise KeyError(f"Style '{self.name}' has no pass '{pass_id}'")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "description": self.description,
            "passes": [spec.to_dict() for spec in self.passes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StyleDefinition":
        """Create from dictionary."""
        return cls(
            name=str(data["name"]),
            passes=[PassSpec.from_dict(item) for item in data.get("passes", [])],
            description=str(data.get("description", "")),
        )


def _edges(threshold: int, thicken: bool = False) -> PassSpec:
    return PassSpec("edges", "edges", {
        "threshold": threshold,
        "thicken": thicken,
        "border_value": EDGE_VALUE,
    })


def _edge_blend(color_weight: float, edge_weight: float) -> PassSpec:
    return PassSpec("edge_blend", "edge_blend", {"color_weight": color_weight, "edge_weight": edge_weight})


def _css(*operations: Tuple[str, float]) -> PassSpec:
    return PassSpec("css", "css_filter", {"operations": tuple(operations)})


BUILTIN_STYLES: Dict[str, StyleDefinition] = {
    definition.name: definition
    for definition in (
        StyleDefinition(
            STYLE_GHIBLI,
            [
                PassSpec("smooth", "box_blur", {"radius": 1, "passes": 2}),
                PassSpec("tones", "landscape_tones"),
                _edges(EDGE_THRESHOLD_GHIBLI),
                _edge_blend(0.9, 0.1),
                _css(("saturate", 1.4), ("contrast", 1.1), ("brightness", 1.05)),
                PassSpec("soft_blur", "soft_blur_layer", {"opacity": SOFT_BLUR_OPACITY}),
            ],
            "Soft painterly landscapes with lifted shadows and warm highlights",
        ),
        StyleDefinition(
            STYLE_ANIME_PORTRAIT,
            [
                PassSpec("smooth", "bilateral", {"radius": 2, "sigma_space": 2.0, "sigma_color": 30.0}),
                PassSpec("tones", "vivid_tones", {"boost": 1.5}),
                _edges(EDGE_THRESHOLD_ANIME),
                _edge_blend(0.8, 0.2),
                _css(("saturate", 1.5), ("contrast", 1.3), ("brightness", 1.15)),
                PassSpec("soft_blur", "soft_blur_layer", {"opacity": SOFT_BLUR_OPACITY}),
                PassSpec("warm_overlay", "color_overlay", {
                    "color": ANIME_WARM_OVERLAY,
                    "opacity": ANIME_WARM_OPACITY,
                }),
            ],
            "Smooth skin, saturated color and clean line art",
        ),
        StyleDefinition(
            STYLE_CARICATURE,
            [
                PassSpec("gains", "channel_gain", {"gains": (1.2, 1.1, 1.3)}),
                PassSpec("split_contrast", "split_contrast", {"pivot": 128, "amount": 20}),
                _edges(EDGE_THRESHOLD_CARICATURE),
                _edge_blend(0.75, 0.25),
                _css(("saturate", 1.5), ("contrast", 1.3), ("brightness", 1.1)),
            ],
            "Exaggerated color and contrast with strong outlines",
        ),
        StyleDefinition(
            STYLE_WYNWOOD,
            [
                PassSpec("posterize", "posterize", {"levels": 5}),
                PassSpec("saturation", "luma_saturation", {"factor": 1.5}),
                _edges(EDGE_THRESHOLD_CARTOON),
                _edge_blend(0.8, 0.2),
                _css(("saturate", 1.8), ("contrast", 1.2), ("brightness", 1.1)),
            ],
            "Street-mural posterized color",
        ),
        StyleDefinition(
            STYLE_WARHOL,
            [
                PassSpec("contrast", "contrast", {"factor": HIGH_CONTRAST_FACTOR, "midpoint": 128}),
                PassSpec("palette", "quadrant_palette"),
            ],
            "Four-panel screen print in flat tones",
        ),
        StyleDefinition(
            STYLE_MONDRIAN,
            [
                PassSpec("palette", "palette_quantize", {
                    "palette": MONDRIAN_PALETTE,
                    "method": "nearest",
                    "block_size": "auto",
                }),
                PassSpec("grid", "grid_lines"),
            ],
            "Primary-color blocks divided by black bars",
        ),
        StyleDefinition(
            STYLE_LICHTENSTEIN,
            [
                PassSpec("halftone", "halftone"),
                _edges(EDGE_THRESHOLD_POP_ART, thicken=True),
                PassSpec("palette", "palette_quantize", {
                    "palette": POP_ART_PALETTE,
                    "method": "nearest",
                    "skip_color": HALFTONE_BACKGROUND,
                }),
                _edge_blend(0.8, 0.2),
            ],
            "Comic-print halftone dots with bold outlines",
        ),
        StyleDefinition(
            STYLE_COLOR_ON_WALL,
            [
                PassSpec("texture", "wall_texture"),
                PassSpec("saturation", "luma_saturation", {"factor": 1.4}),
                PassSpec("contrast", "contrast", {"factor": 1.2, "midpoint": 128}),
                _edges(EDGE_THRESHOLD_WALL),
                _edge_blend(0.9, 0.1),
                _css(("saturate", 1.3), ("contrast", 1.2)),
            ],
            "Painted-wall texture with graffiti outlines",
        ),
        StyleDefinition(
            STYLE_PENCIL_SKETCH,
            [
                PassSpec("dodge", "dodge_sketch"),
                PassSpec("edges", "sketch_edges", {"border_value": EDGE_VALUE}),
                _edge_blend(0.6, 0.4),
                PassSpec("stretch", "contrast_stretch", {"gamma": 0.7}),
                PassSpec("darken", "darken", {"factor": 0.8}),
                _css(("contrast", 1.5), ("brightness", 0.9), ("saturate", 0.0)),
            ],
            "Graphite sketch shading",
        ),
    )
}


def get_style_definition(style: Union[str, StyleName]) -> StyleDefinition:
    """
    Look up a built-in style by name.

    Names are matched case-insensitively; hyphens and spaces count as
    underscores ("Anime Portrait" finds ``anime_portrait``).

    Raises:
        UnsupportedStyleError: If no style has that name
    """
    key = normalize_style_name(style)
    if key not in BUILTIN_STYLES:
        raise UnsupportedStyleError(
            f"Unsupported style: {style!r}. Available styles: {', '.join(list_styles())}"
        )
    return BUILTIN_STYLES[key]


def normalize_style_name(style: Union[str, StyleName]) -> str:
    if isinstance(style, StyleName):
        return style.value
    return str(style).strip().lower().replace("-", "_").replace(" ", "_")


def list_styles() -> List[str]:
    """Names of all built-in styles, in definition order."""
    return list(BUILTIN_STYLES)
