"""
Open Canvas Style Library.

This module composes FilterLib passes into the named artistic styles.

Modules:
    pass_registry: Registry of pass executors and their default parameters
    style_definitions: Built-in style tables
    style_composer: Runs a style's passes over a buffer
    remote_fallback: Remote style-transfer jobs with local fallback
"""

from OC_Libs.StyleLib.pass_registry import (
    PassContext,
    PassRegistry,
    get_default_registry,
    register_default_passes,
)
from OC_Libs.StyleLib.style_definitions import (
    BUILTIN_STYLES,
    PassSpec,
    StyleDefinition,
    StyleName,
    get_style_definition,
    list_styles,
)
from OC_Libs.StyleLib.style_composer import (
    StyleComposer,
    apply_style,
    apply_styles,
    get_default_composer,
)
from OC_Libs.StyleLib.remote_fallback import (
    JobStatus,
    RenderResult,
    StyleService,
    render_with_fallback,
    run_remote_job,
)

__all__ = [
    "PassContext",
    "PassRegistry",
    "get_default_registry",
    "register_default_passes",
    "BUILTIN_STYLES",
    "PassSpec",
    "StyleDefinition",
    "StyleName",
    "get_style_definition",
    "list_styles",
    "StyleComposer",
    "apply_style",
    "apply_styles",
    "get_default_composer",
    "JobStatus",
    "RenderResult",
    "StyleService",
    "render_with_fallback",
    "run_remote_job",
]
