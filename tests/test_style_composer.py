"""
Tests for the style composer.

Tests cover:
- Dimension and alpha preservation for every style
- Deterministic output
- Mondrian, Warhol and pencil sketch output properties
- Parameter overrides and validate-then-execute
- Unsupported styles and pass failures
- Cancellation
- Rendering several styles with and without threading
"""

import unittest

import numpy as np
import pytest

from OC_Libs.constants import MONDRIAN_PALETTE, WARHOL_QUADRANT_PALETTES
from OC_Libs.FilterLib.cancellation import CancellationToken
from OC_Libs.FilterLib.errors import (
    OperationCancelledError,
    StyleExecutionError,
    StyleParameterError,
    UnsupportedStyleError,
)
from OC_Libs.FilterLib.halftone import grid_line_positions
from OC_Libs.FilterLib.pixel_buffer import PixelBuffer
from OC_Libs.StyleLib.pass_registry import PassRegistry
from OC_Libs.StyleLib.style_composer import StyleComposer, apply_style, apply_styles
from OC_Libs.StyleLib.style_definitions import (
    PassSpec,
    StyleDefinition,
    StyleName,
    get_style_definition,
    list_styles,
)

ALL_STYLES = [
    "ghibli",
    "anime_portrait",
    "caricature",
    "wynwood",
    "warhol",
    "mondrian",
    "lichtenstein",
    "color_on_wall",
    "pencil_sketch",
]


def random_buffer(width, height, seed=1, alpha=255):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    pixels[..., 3] = alpha
    return PixelBuffer(width, height, pixels)


class TestStyleDefinitions(unittest.TestCase):
    """Test the built-in style tables."""

    def test_all_styles_listed(self):
        """Test that exactly the nine built-in styles exist."""
        self.assertEqual(list_styles(), ALL_STYLES)
        self.assertEqual([s.value for s in StyleName], ALL_STYLES)

    def test_lookup_normalizes_names(self):
        """Test case-insensitive lookup with spaces and hyphens."""
        self.assertEqual(get_style_definition("Anime Portrait").name, "anime_portrait")
        self.assertEqual(get_style_definition("color-on-wall").name, "color_on_wall")
        self.assertEqual(get_style_definition(StyleName.WARHOL).name, "warhol")

    def test_unknown_style(self):
        """Test that unknown styles raise UnsupportedStyleError."""
        with self.assertRaises(UnsupportedStyleError) as ctx:
            get_style_definition("cubism")
        self.assertIn("cubism", str(ctx.exception))
        self.assertIsInstance(ctx.exception, KeyError)

    def test_definition_round_trip(self):
        """Test to_dict / from_dict on a built-in style."""
        definition = get_style_definition("ghibli")
        restored = StyleDefinition.from_dict(definition.to_dict())
        self.assertEqual(restored.pass_ids(), definition.pass_ids())
        self.assertEqual(restored.get_pass("smooth").params, {"radius": 1, "passes": 2})

    def test_duplicate_pass_ids_rejected(self):
        """Test that pass ids must be unique within a style."""
        with self.assertRaises(ValueError):
            StyleDefinition("bad", [PassSpec("a", "darken"), PassSpec("a", "grayscale")])


class TestApplyStyle:
    """Test applying the built-in styles."""

    @pytest.mark.parametrize("style", ALL_STYLES)
    @pytest.mark.parametrize("size", [(1, 1), (3, 2), (17, 11)])
    def test_dimensions_preserved(self, style, size):
        """Test that every style keeps the buffer dimensions."""
        buffer = random_buffer(*size)
        result = apply_style(style, buffer)
        assert result.size == buffer.size
        assert result.pixels.shape == buffer.pixels.shape

    @pytest.mark.parametrize("style", ALL_STYLES)
    def test_deterministic(self, style):
        """Test that identical inputs give byte-identical output."""
        buffer = random_buffer(20, 16, seed=4)
        assert apply_style(style, buffer).to_bytes() == apply_style(style, buffer).to_bytes()

    @pytest.mark.parametrize("style", ALL_STYLES)
    def test_alpha_and_input_preserved(self, style):
        """Test that alpha passes through and the input is not modified."""
        buffer = random_buffer(14, 12, seed=2, alpha=90)
        snapshot = buffer.copy()
        result = apply_style(style, buffer)
        assert np.all(result.alpha == 90)
        assert buffer == snapshot

    def test_mondrian_only_palette_colors(self):
        """Test that Mondrian output uses only palette colors, with black grid bars."""
        buffer = random_buffer(60, 50, seed=9)
        result = apply_style("mondrian", buffer)

        colors = {tuple(int(v) for v in c) for c in result.rgb.reshape(-1, 3)}
        assert colors <= set(MONDRIAN_PALETTE)

        for row in grid_line_positions(50):
            assert np.all(result.rgb[row] == 0)
        for column in grid_line_positions(60):
            assert np.all(result.rgb[:, column] == 0)

    def test_warhol_only_quadrant_colors(self):
        """Test that each Warhol quadrant only uses its own palette."""
        buffer = random_buffer(20, 20, seed=6)
        result = apply_style("warhol", buffer)
        top_left = {tuple(int(v) for v in c) for c in result.rgb[:10, :10].reshape(-1, 3)}
        assert top_left <= set(WARHOL_QUADRANT_PALETTES[0])

    def test_pencil_sketch_is_gray(self):
        """Test that pencil sketch output has no color."""
        result = apply_style("pencil_sketch", random_buffer(16, 16, seed=3))
        rgb = result.rgb.astype(int)
        assert np.all(np.abs(rgb[..., 0] - rgb[..., 1]) <= 1)
        assert np.all(np.abs(rgb[..., 1] - rgb[..., 2]) <= 1)

    def test_unsupported_style(self):
        """Test that an unknown style raises before processing."""
        with pytest.raises(UnsupportedStyleError):
            apply_style("vaporwave", random_buffer(4, 4))

    def test_cancelled_token(self):
        """Test that a cancelled token stops the style."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            apply_style("ghibli", random_buffer(8, 8), cancel_token=token)


class TestOverrides(unittest.TestCase):
    """Test parameter overrides."""

    def setUp(self):
        self.composer = StyleComposer()
        self.buffer = random_buffer(16, 16, seed=8)

    def test_per_pass_override(self):
        """Test that a per-pass override reaches only that pass."""
        plan = dict((pass_id, params) for pass_id, _, params in self.composer.plan(
            "caricature", {"edge_blend": {"color_weight": 1.0, "edge_weight": 0.0}}
        ))
        self.assertEqual(plan["edge_blend"]["color_weight"], 1.0)
        self.assertEqual(plan["edges"]["threshold"], 25)

    def test_flat_override(self):
        """Test that a flat override reaches every pass declaring the parameter."""
        plan = dict((pass_id, params) for pass_id, _, params in self.composer.plan(
            "ghibli", {"threshold": 80}
        ))
        self.assertEqual(plan["edges"]["threshold"], 80)
        self.assertNotIn("threshold", plan["smooth"])

    def test_override_changes_output(self):
        """Test that overriding the edge blend changes the result."""
        default = self.composer.apply("caricature", self.buffer)
        no_edges = self.composer.apply(
            "caricature", self.buffer, {"edge_blend": {"color_weight": 1.0, "edge_weight": 0.0}}
        )
        self.assertNotEqual(default, no_edges)

    def test_seed_override_changes_texture(self):
        """Test that the wall texture seed can be overridden."""
        first = self.composer.apply("color_on_wall", self.buffer, {"seed": 1})
        second = self.composer.apply("color_on_wall", self.buffer, {"seed": 2})
        self.assertNotEqual(first, second)
        self.assertEqual(first, self.composer.apply("color_on_wall", self.buffer, {"seed": 1}))

    def test_unknown_pass_raises(self):
        """Test that an unknown pass id raises StyleParameterError."""
        with self.assertRaises(StyleParameterError):
            self.composer.apply("warhol", self.buffer, {"outline": {"threshold": 3}})

    def test_unknown_parameter_raises(self):
        """Test that an unknown parameter on a known pass raises StyleParameterError."""
        with self.assertRaises(StyleParameterError):
            self.composer.apply("ghibli", self.buffer, {"edges": {"sharpness": 3}})

    def test_describe(self):
        """Test the human-readable style summary."""
        text = self.composer.describe("warhol")
        self.assertIn("Style Summary: warhol", text)
        self.assertIn("Total Passes: 2", text)
        self.assertIn("Pass Order: contrast -> palette", text)


class TestComposerWithCustomRegistry(unittest.TestCase):
    """Test validation and error wrapping with a custom registry."""

    def setUp(self):
        self.calls = []
        self.registry = PassRegistry()

        def record(buffer, params, context):
            self.calls.append(dict(params))
            return buffer

        def explode(buffer, params, context):
            raise RuntimeError("boom")

        self.registry.register("record", record, parameters={"level": 1})
        self.registry.register("explode", explode)
        self.composer = StyleComposer(
            registry=self.registry,
            definitions={
                "plain": StyleDefinition("plain", [PassSpec("first", "record"), PassSpec("second", "record")]),
                "broken": StyleDefinition("broken", [PassSpec("first", "record"), PassSpec("fail", "explode")]),
            },
        )

    def test_bad_override_runs_no_pass(self):
        """Test that invalid overrides are rejected before any pass runs."""
        with self.assertRaises(StyleParameterError):
            self.composer.apply("plain", PixelBuffer.new(2, 2), {"first": {"level": 2}, "missing": 1})
        self.assertEqual(self.calls, [])

    def test_per_pass_override_wins(self):
        """Test that per-pass overrides take precedence over flat ones."""
        self.composer.apply("plain", PixelBuffer.new(2, 2), {"level": 5, "second": {"level": 7}})
        self.assertEqual(self.calls, [{"level": 5}, {"level": 7}])

    def test_pass_failure_wrapped(self):
        """Test that pass errors are re-raised with the pass id."""
        with self.assertRaises(StyleExecutionError) as ctx:
            self.composer.apply("broken", PixelBuffer.new(2, 2))
        self.assertIn("fail", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)


class TestApplyStyles:
    """Test rendering several styles from one input."""

    def test_threaded_matches_sequential(self):
        """Test that threaded rendering gives the same buffers."""
        buffer = random_buffer(18, 14, seed=12)
        styles = ["warhol", "color_on_wall", "pencil_sketch"]

        threaded = apply_styles(buffer, styles, use_threading=True, max_workers=3)
        sequential = apply_styles(buffer, styles, use_threading=False)

        assert list(threaded) == styles
        for name in styles:
            assert threaded[name] == sequential[name]

    def test_defaults_to_every_style(self):
        """Test that all styles are rendered when none are named."""
        results = apply_styles(random_buffer(6, 6), use_threading=False)
        assert list(results) == ALL_STYLES

    def test_unknown_style_fails_fast(self):
        """Test that an unknown name is rejected before rendering."""
        with pytest.raises(UnsupportedStyleError):
            apply_styles(random_buffer(6, 6), ["warhol", "nope"])
