"""cubekit - STM32 project scaffolding.

Bootstraps STM32CubeMX project trees and keeps them patched across
regenerations.

Example usage:
    >>> from cubekit import parse_makefile, apply_patch, ReplacePatch
    >>>
    >>> # Extract the build configuration from a CubeMX Makefile
    >>> config = parse_makefile(Path("Makefile").read_text())
    >>> config.includes
    ['Core/Inc', 'Drivers/STM32F4xx_HAL_Driver/Inc', ...]
    >>>
    >>> # Apply an idempotent patch; running it again is a no-op
    >>> apply_patch(ReplacePatch(file="Makefile", find="-Og", insert="-O2"))
    <PatchOutcome.APPLIED: 'applied'>
"""

from .config import CUBEKIT_CONFIG_ENV, DEFAULT_CONFIG_PATH, load_config, parse_yaml
from .cubemx import CubeMXError, Toolchain, build_script, generate_code
from .eide import eide_context
from .generator import ProjectGenerator
from .makefile import load_makefile, parse_makefile, unfold_lines
from .models import (
    AppendPatch,
    BuildConfig,
    EideContext,
    PatchOutcome,
    PatchSpec,
    ProjectConfig,
    ProjectContext,
    RegexReplacePatch,
    ReplacePatch,
)
from .patches import PatchError, apply_patch, apply_patches, patch_content

__all__ = [
    # Core
    "parse_makefile",
    "load_makefile",
    "unfold_lines",
    "apply_patch",
    "apply_patches",
    "patch_content",
    "PatchError",
    # Models
    "BuildConfig",
    "PatchSpec",
    "AppendPatch",
    "ReplacePatch",
    "RegexReplacePatch",
    "PatchOutcome",
    "ProjectConfig",
    "ProjectContext",
    "EideContext",
    # Orchestration
    "ProjectGenerator",
    "load_config",
    "parse_yaml",
    "eide_context",
    "CUBEKIT_CONFIG_ENV",
    "DEFAULT_CONFIG_PATH",
    # STM32CubeMX
    "Toolchain",
    "CubeMXError",
    "build_script",
    "generate_code",
]
