"""Argument vectors and invocation of cargo, swift and their helpers."""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from core.command_runner import CommandError, CommandResult, CommandRunner

from .bridge import BridgeConfig
from .context import BuildContext
from .errors import IpaError, Stage
from .settings import ToolSettings
from .targets import BuildTarget

DEFAULT_XCODE_PATH = "/Applications/Xcode.app/Contents/Developer"
SYSTEM_SWIFT_LIB = "/usr/lib/swift"


class Toolchain:
    """Compile one target at a time; every failure aborts the target."""

    def __init__(self, context: BuildContext, runner: CommandRunner) -> None:
        self._context = context
        self._runner = runner

    @property
    def _settings(self) -> ToolSettings:
        return self._context.settings

    def _run(
        self,
        command: Sequence[str],
        stage: Stage,
        *,
        cwd: Path | None = None,
        stream: bool = False,
    ) -> CommandResult:
        try:
            return self._runner.run(
                command,
                cwd=cwd or self._context.layout.root,
                note=stage.name.lower(),
                stream=stream,
            )
        except CommandError as exc:
            raise IpaError(stage, str(exc)) from exc
        except OSError as exc:
            raise IpaError(stage, f"could not run `{command[0]}`: {exc}") from exc

    def binary_name(self, example: str | None) -> str:
        return example or self._context.identity.id

    def binary_path(self, target: BuildTarget, *, release: bool, example: str | None) -> Path:
        artifact_dir = self._context.layout.artifact_dir(target, release)
        if example:
            artifact_dir = artifact_dir / "examples"
        return artifact_dir / self.binary_name(example)

    def clean_command(self, target: BuildTarget, *, release: bool) -> List[str]:
        command = [
            self._settings.cargo,
            "clean",
            "--package",
            self._context.identity.id,
            "--target",
            target.rust_triple,
        ]
        if release:
            command.append("--release")
        return command

    def bindings_command(self, bridge: BridgeConfig) -> List[str]:
        command = [
            self._settings.swift_bridge_cli,
            "parse-bridges",
            "--crate-name",
            self._context.identity.id,
        ]
        for path in bridge.bridges:
            command.extend(["-f", str(path)])
        command.extend(["-o", str(bridge.generated_dir)])
        return command

    def swift_command(self, target: BuildTarget, bridge: BridgeConfig, sdk_path: str) -> List[str]:
        command = [
            self._settings.swift,
            "build",
            "--package-path",
            str(bridge.package_dir),
            "-Xswiftc",
            "-target",
            "-Xswiftc",
            target.swift_triple,
            "--sdk",
            sdk_path,
            "-Xswiftc",
            "-static",
            "-Xswiftc",
            "-import-objc-header",
            "-Xswiftc",
            str(bridge.bridging_header),
        ]
        if bridge.release:
            command.extend(["-c", "release"])
        return command

    def cargo_command(
        self,
        target: BuildTarget,
        *,
        release: bool,
        example: str | None,
        link_args: Sequence[str] = (),
    ) -> List[str]:
        # `cargo build` cannot forward flags to rustc, `cargo rustc` can.
        subcommand = "rustc" if link_args else "build"
        command = [self._settings.cargo, subcommand, "--target", target.rust_triple]
        if example:
            command.extend(["--example", example])
        elif link_args:
            # rustc arguments are only accepted for a single cargo target.
            command.extend(["--bin", self._context.identity.id])
        if release:
            command.append("--release")
        if link_args:
            command.append("--")
            command.extend(link_args)
        return command

    def sdk_path(self, target: BuildTarget) -> str:
        result = self._run(
            [self._settings.xcrun, "--sdk", target.platform.sdk, "--show-sdk-path"],
            Stage.SDK_LOOKUP,
        )
        path = result.stdout.strip()
        if not path:
            raise IpaError(Stage.SDK_LOOKUP, f"xcrun returned no path for the {target.platform.sdk} SDK")
        return path

    def xcode_path(self) -> str:
        try:
            result = self._runner.run([self._settings.xcode_select, "--print-path"], check=False)
        except OSError:
            return DEFAULT_XCODE_PATH
        path = result.stdout.strip()
        return path if result.ok and path else DEFAULT_XCODE_PATH

    def link_args(self, target: BuildTarget, bridge: BridgeConfig) -> List[str]:
        swift_sdk_libs = (
            Path(self.xcode_path())
            / "Toolchains"
            / "XcodeDefault.xctoolchain"
            / "usr"
            / "lib"
            / "swift"
            / target.platform.sdk
        )
        return [
            "-l",
            f"static={bridge.library_name}",
            "-L",
            str(bridge.build_dir),
            "-L",
            str(swift_sdk_libs),
            "-L",
            SYSTEM_SWIFT_LIB,
        ]

    def compile_bridge(self, target: BuildTarget, bridge: BridgeConfig) -> List[str]:
        """Build the Swift static library and return the extra rustc arguments."""

        console = self._context.console
        console.step("Generating swift-bridge bindings...")
        self._run(self.bindings_command(bridge), Stage.BINDINGS)

        console.step(f"Compiling Swift package {bridge.library_name} for {target.swift_triple}...")
        sdk_path = self.sdk_path(target)
        self._run(self.swift_command(target, bridge, sdk_path), Stage.BRIDGE_COMPILE, stream=True)
        return self.link_args(target, bridge)

    def build(
        self,
        target: BuildTarget,
        *,
        release: bool = False,
        example: str | None = None,
        bridge: BridgeConfig | None = None,
    ) -> Path:
        """Compile ``target`` and return the path of the produced binary."""

        console = self._context.console
        link_args: List[str] = []
        if bridge is not None:
            if bridge.force_rebuild:
                console.step(f"Cleaning cached artifacts for {target.rust_triple}...")
                self._run(self.clean_command(target, release=release), Stage.CLEAN)
            link_args = self.compile_bridge(target, bridge)

        what = f"example {example}" if example else "Rust binary"
        console.step(f"Compiling {what} for {target.rust_triple}...")
        self._run(
            self.cargo_command(target, release=release, example=example, link_args=link_args),
            Stage.PRIMARY_COMPILE,
            stream=True,
        )
        return self.binary_path(target, release=release, example=example)


__all__ = ["Toolchain", "DEFAULT_XCODE_PATH"]
