"""Package Rust binaries into Apple app bundles and IPA archives."""

from .bridge import BridgeConfig, resolve_bridge
from .bundle import Bundle, BundleAssembler, BundleState
from .context import BuildContext, DirectoryLayout, ProjectIdentity, ToolConfig
from .errors import IpaError, Stage
from .manifest import build_manifest_values, render_manifest
from .packager import Packager
from .pipeline import BuildArtifact, BuildOptions, BuildPipeline
from .settings import ToolSettings, load_settings
from .targets import Architecture, BuildTarget, Platform, ToolchainKind, generate_targets, triple_for
from .toolchain import Toolchain
from .cli import main

__all__ = [
    "Architecture",
    "BridgeConfig",
    "BuildArtifact",
    "BuildContext",
    "BuildOptions",
    "BuildPipeline",
    "BuildTarget",
    "Bundle",
    "BundleAssembler",
    "BundleState",
    "DirectoryLayout",
    "IpaError",
    "Packager",
    "Platform",
    "ProjectIdentity",
    "Stage",
    "ToolConfig",
    "ToolSettings",
    "Toolchain",
    "ToolchainKind",
    "build_manifest_values",
    "generate_targets",
    "load_settings",
    "main",
    "render_manifest",
    "resolve_bridge",
    "triple_for",
]
