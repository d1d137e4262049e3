"""Build orchestration: one target at a time, from compile to archive."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from core.command_runner import CommandRunner

from .bridge import BridgeConfig, resolve_bridge
from .bundle import BundleAssembler
from .context import BuildContext
from .manifest import build_manifest_values, write_manifest
from .packager import Packager
from .targets import Architecture, BuildTarget, Platform, generate_targets
from .toolchain import Toolchain


@dataclass(slots=True)
class BuildOptions:
    example: str | None = None
    release: bool = False
    name: str | None = None
    platform: Platform | None = None
    architecture: Architecture | None = None


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    target: BuildTarget
    path: Path


class BuildPipeline:
    def __init__(self, context: BuildContext, runner: CommandRunner) -> None:
        self._context = context
        self._runner = runner
        self._toolchain = Toolchain(context, runner)
        self._assembler = BundleAssembler(context)
        self._packager = Packager(context, runner)

    @property
    def toolchain(self) -> Toolchain:
        return self._toolchain

    def write_manifest(self, example: str | None) -> Path:
        context = self._context
        values = build_manifest_values(
            context.identity,
            self._toolchain.binary_name(example),
            context.tool_config.plist,
        )
        context.console.info(f"Generating `{context.layout.manifest_path.name}`...")
        return write_manifest(context.layout.manifest_path, values)

    def build_target(
        self,
        target: BuildTarget,
        options: BuildOptions,
        bridge: BridgeConfig | None,
    ) -> BuildArtifact:
        console = self._context.console
        console.info(f"Building {self._context.identity.name} for {target.rust_triple}...")
        binary = self._toolchain.build(
            target,
            release=options.release,
            example=options.example,
            bridge=bridge,
        )

        console.info("Generating app...")
        bundle = self._assembler.assemble(target, binary, self._toolchain.binary_name(options.example))
        if not target.platform.archived:
            return BuildArtifact(target=target, path=bundle.path)
        return BuildArtifact(target=target, path=self._packager.package(bundle, target))

    def cleanup(self) -> None:
        manifest = self._context.layout.manifest_path
        try:
            manifest.unlink(missing_ok=True)
        except OSError as exc:
            self._context.console.warning(f"Failed to remove {manifest}: {exc}")

    def run(self, options: BuildOptions) -> List[BuildArtifact]:
        """Build every selected target in order; the first failure aborts the run."""

        bridge = resolve_bridge(self._context, options.release)
        if bridge is not None:
            self._context.console.debug(f"Linking Swift package {bridge.package_dir}")
        targets = generate_targets(options.platform, options.architecture)

        self.write_manifest(options.example)
        artifacts: List[BuildArtifact] = []
        for target in targets:
            artifacts.append(self.build_target(target, options, bridge))

        self.cleanup()
        return artifacts


__all__ = ["BuildArtifact", "BuildOptions", "BuildPipeline"]
