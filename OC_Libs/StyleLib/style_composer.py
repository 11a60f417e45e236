"""
Style composer.

Runs a style's passes in order over a copy of the input buffer. All
validation (buffer shape, style name, override keys) happens before any
pixel work, so a bad request never produces partial output.

Classes:
    StyleComposer: Applies named styles using a pass registry

Functions:
    apply_style: Apply one style with the default composer
    apply_styles: Apply several styles to the same input, optionally in parallel
    get_default_composer: Global composer bound to the default registry
"""

import concurrent.futures
import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np

from OC_Libs.constants import DEFAULT_NOISE_SEED
from OC_Libs.FilterLib.cancellation import CancellationToken, check_cancelled
from OC_Libs.FilterLib.errors import (
    PixelPipelineError,
    StyleExecutionError,
    StyleParameterError,
    UnsupportedStyleError,
)
from OC_Libs.FilterLib.pixel_buffer import PixelBuffer
from OC_Libs.StyleLib.pass_registry import PassContext, PassRegistry, get_default_registry
from OC_Libs.StyleLib.style_definitions import (
    BUILTIN_STYLES,
    StyleDefinition,
    StyleName,
    normalize_style_name,
)

logger = logging.getLogger(__name__)

StyleLike = Union[str, StyleName]
# Resolved plan: (pass id, op, merged params)
PlannedPass = Tuple[str, str, Dict[str, Any]]


class StyleComposer:
    """
    Apply artistic styles to PixelBuffers.

    Example:
        >>> composer = StyleComposer()
        >>> result = composer.apply("warhol", buffer)
        >>> softer = composer.apply("ghibli", buffer, params={"edge_blend": {"color_weight": 0.95, "edge_weight": 0.05}})
    """

    def __init__(
        self,
        registry: Optional[PassRegistry] = None,
        definitions: Optional[Dict[str, StyleDefinition]] = None,
    ):
        """
        Args:
            registry: Pass registry (default: the global registry)
            definitions: Style definitions by name (default: built-in styles)
        """
        self.registry = registry if registry is not None else get_default_registry()
        self.definitions = dict(definitions) if definitions is not None else dict(BUILTIN_STYLES)

    # ========================================================================
    # Lookup and planning
    # ========================================================================

    def list_styles(self) -> List[str]:
        return list(self.definitions)

    def get_definition(self, style: StyleLike) -> StyleDefinition:
        """
        Raises:
            UnsupportedStyleError: If the style name is unknown
        """
        key = normalize_style_name(style)
        if key not in self.definitions:
            raise UnsupportedStyleError(
                f"Unsupported style: {style!r}. Available styles: {', '.join(self.list_styles())}"
            )
        return self.definitions[key]

    def plan(self, style: StyleLike, params: Optional[Dict[str, Any]] = None) -> List[PlannedPass]:
        """
        Resolve a style and its overrides into concrete pass parameters.

        Overrides come in two shapes, which may be mixed:

        - ``{pass_id: {param: value}}`` targets a single pass
        - ``{param: value}`` applies to every pass that declares ``param``

        Per-pass overrides win over flat ones.

        Returns:
            List of ``(pass_id, op, params)`` in execution order

        Raises:
            UnsupportedStyleError: If the style name is unknown
            StyleParameterError: If an override names an unknown pass or parameter
            KeyError: If the style uses an unregistered pass operation
        """
        definition = self.get_definition(style)
        params = dict(params or {})

        declared: Dict[str, Dict[str, Any]] = {}
        for spec in definition.passes:
            merged = self.registry.get_default_parameters(spec.op)
            merged.update(spec.params)
            declared[spec.id] = merged

        per_pass: Dict[str, Dict[str, Any]] = {}
        flat: Dict[str, Any] = {}
        for key, value in params.items():
            if key in declared and isinstance(value, Mapping):
                per_pass[key] = dict(value)
            else:
                flat[key] = value

        for key in flat:
            if not any(key in names for names in declared.values()):
                raise StyleParameterError(
                    f"Style '{definition.name}' has no pass or parameter named '{key}'. "
                    f"Passes: {', '.join(definition.pass_ids())}"
                )

        for pass_id, overrides in per_pass.items():
            unknown = sorted(set(overrides) - set(declared[pass_id]))
            if unknown:
                raise StyleParameterError(
                    f"Pass '{pass_id}' of style '{definition.name}' has no parameter(s): "
                    f"{', '.join(unknown)}. Valid parameters: {', '.join(sorted(declared[pass_id])) or 'none'}"
                )

        planned: List[PlannedPass] = []
        for spec in definition.passes:
            resolved = dict(declared[spec.id])
            resolved.update({k: v for k, v in flat.items() if k in resolved})
            resolved.update(per_pass.get(spec.id, {}))
            planned.append((spec.id, spec.op, resolved))
        return planned

    # ========================================================================
    # Execution
    # ========================================================================

    def apply(
        self,
        style: StyleLike,
        buffer: PixelBuffer,
        params: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
        rng: Optional[np.random.Generator] = None,
        max_workers: Optional[int] = None,
    ) -> PixelBuffer:
        """
        Apply a style and return a new buffer of the same size.

        The input buffer is never modified.

        Args:
            style: Style name or StyleName
            buffer: Input image
            params: Optional overrides (see ``plan``)
            cancel_token: Checked between passes and inside chunked passes
            rng: Random source for texture passes; defaults to a generator
                 seeded with DEFAULT_NOISE_SEED so output is reproducible
            max_workers: Thread count for chunked passes (None/1 = sequential)

        Raises:
            InvalidBufferError: If the buffer is malformed
            UnsupportedStyleError: If the style name is unknown
            StyleParameterError: If an override is invalid
            OperationCancelledError: If the token is cancelled
            StyleExecutionError: If a pass fails unexpectedly
        """
        buffer.validate()
        definition = self.get_definition(style)
        planned = self.plan(definition.name, params)

        context = PassContext(
            original=buffer.copy(),
            rng=rng if rng is not None else np.random.default_rng(DEFAULT_NOISE_SEED),
            cancel_token=cancel_token,
            max_workers=max_workers,
        )
        current = buffer.copy()

        logger.debug(f"Applying style '{definition.name}' to {buffer.width}x{buffer.height} buffer")

        for pass_id, op, pass_params in planned:
            check_cancelled(cancel_token, f"style '{definition.name}'")
            try:
                current = self.registry.execute(op, current, pass_params, context)
            except PixelPipelineError:
                raise
            except Exception as e:
                # Re-raise with pass context
                raise StyleExecutionError(
                    f"Error executing pass '{pass_id}' ({op}) of style '{definition.name}': {e}"
                ) from e

        if current.size != buffer.size:
            raise StyleExecutionError(
                f"Style '{definition.name}' changed the buffer size from {buffer.size} to {current.size}"
            )

        logger.info(f"Applied style '{definition.name}' ({len(planned)} passes)")
        return current

    def apply_many(
        self,
        buffer: PixelBuffer,
        styles: Optional[Iterable[StyleLike]] = None,
        params: Optional[Dict[str, Dict[str, Any]]] = None,
        use_threading: bool = True,
        max_workers: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Dict[str, PixelBuffer]:
        """
        Apply several styles to the same input.

        Each style runs on its own copy of the input, so styles can run in
        parallel on a ThreadPoolExecutor when ``use_threading`` is enabled.

        Args:
            buffer: Input image
            styles: Style names (default: every known style)
            params: Optional overrides keyed by style name
            use_threading: Run styles in parallel (default: True)
            max_workers: Maximum number of threads (default: None = CPU count)
            cancel_token: Shared cancellation token

        Returns:
            Dictionary mapping style name -> styled buffer

        Raises:
            UnsupportedStyleError: If any style name is unknown (checked up front)
            StyleParameterError: If any override is invalid (checked up front)
            StyleExecutionError: If a style fails
        """
        buffer.validate()
        params = params or {}
        names = [self.get_definition(style).name for style in (styles or self.list_styles())]
        overrides = {name: params.get(name) for name in names}
        for name in names:
            self.plan(name, overrides[name])

        results: Dict[str, PixelBuffer] = {}

        if use_threading and len(names) > 1:
            with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures: Dict[concurrent.futures.Future, str] = {
                    executor.submit(
                        self.apply, name, buffer.copy(), overrides[name], cancel_token
                    ): name
                    for name in names
                }
                for future in concurrent.futures.as_completed(futures):
                    name = futures[future]
                    try:
                        results[name] = future.result()
                    except PixelPipelineError:
                        raise
                    except Exception as e:
                        raise StyleExecutionError(f"Error executing style {name}: {e}") from e
        else:
            for name in names:
                results[name] = self.apply(name, buffer, overrides[name], cancel_token)

        # Keep the requested order regardless of completion order
        return {name: results[name] for name in names}

    def describe(self, style: StyleLike, params: Optional[Dict[str, Any]] = None) -> str:
        """
        Generate a human-readable summary of a style's passes.

        Example:
            >>> print(StyleComposer().describe("warhol"))
            Style Summary: warhol
              Four-panel screen print in flat tones
              Total Passes: 2
            ...
        """
        definition = self.get_definition(style)
        planned = self.plan(definition.name, params)

        lines = [f"Style Summary: {definition.name}"]
        if definition.description:
            lines.append(f"  {definition.description}")
        lines.extend([f"  Total Passes: {len(planned)}", ""])

        for index, (pass_id, op, pass_params) in enumerate(planned, start=1):
            if pass_params:
                param_str = ", ".join(f"{k}={v!r}" for k, v in sorted(pass_params.items()))
            else:
                param_str = "no parameters"
            lines.append(f"  {index}. {pass_id} [{op}] ({param_str})")

        lines.append("")
        lines.append(f"Pass Order: {' -> '.join(pass_id for pass_id, _, _ in planned)}")
        return "\n".join(lines)


_default_composer: Optional[StyleComposer] = None


def get_default_composer() -> StyleComposer:
    global _default_composer

    if _default_composer is None:
        _default_composer = StyleComposer()

    return _default_composer


def apply_style(
    style: StyleLike,
    buffer: PixelBuffer,
    params: Optional[Dict[str, Any]] = None,
    cancel_token: Optional[CancellationToken] = None,
    rng: Optional[np.random.Generator] = None,
    max_workers: Optional[int] = None,
) -> PixelBuffer:
    """Apply one style with the default composer. See ``StyleComposer.apply``."""
    return get_default_composer().apply(style, buffer, params, cancel_token, rng, max_workers)


def apply_styles(
    buffer: PixelBuffer,
    styles: Optional[Iterable[StyleLike]] = None,
    params: Optional[Dict[str, Dict[str, Any]]] = None,
    use_threading: bool = True,
    max_workers: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> Dict[str, PixelBuffer]:
    """Apply several styles with the default composer. See ``StyleComposer.apply_many``."""
    return get_default_composer().apply_many(buffer, styles, params, use_threading, max_workers, cancel_token)
