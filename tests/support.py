"""Shared fixtures: throwaway Cargo projects and fake external tools."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, List
import textwrap
import zipfile

from core.command_runner import CommandResult, RecordedCommand, RecordingCommandRunner
from core.console import Console

from cargo_ipa.context import BuildContext
from cargo_ipa.settings import ToolSettings

SDK_PATH = "/Applications/Xcode.app/Contents/Developer/Platforms/iPhoneOS.platform/Developer/SDKs/iPhoneOS.sdk"


def write_project(root: Path, *, name: str = "demo", version: str = "1.0", extra: str = "") -> Path:
    manifest = root / "Cargo.toml"
    manifest.write_text(
        textwrap.dedent(
            f"""
            [package]
            name = "{name}"
            version = "{version}"
            edition = "2021"
            """
        )
        + textwrap.dedent(extra)
    )
    return manifest


def make_context(root: Path, *, cli_name: str | None = None, console: Console | None = None) -> BuildContext:
    return BuildContext.create(
        root,
        cli_name=cli_name,
        settings=ToolSettings(),
        console=console or Console("none"),
    )


class FakeTools:
    """Responder for :class:`RecordingCommandRunner` imitating cargo, xcrun and zip."""

    def __init__(
        self,
        root: Path,
        package_id: str = "demo",
        *,
        fail: Callable[[RecordedCommand], bool] | None = None,
    ) -> None:
        self.root = root
        self.package_id = package_id
        self.fail = fail

    def runner(self) -> RecordingCommandRunner:
        return RecordingCommandRunner(self)

    def __call__(self, record: RecordedCommand) -> CommandResult | int | None:
        if self.fail is not None and self.fail(record):
            return CommandResult(command=record.command, returncode=101, stdout="", stderr="boom")

        command = record.command
        tool = command[0]
        subcommand = command[1] if len(command) > 1 else ""
        if tool == "cargo" and subcommand in {"build", "rustc"}:
            self._emit_binary(command)
        elif tool == "xcrun":
            return CommandResult(command=command, returncode=0, stdout=f"{SDK_PATH}\n", stderr="")
        elif tool == "zip":
            self._emit_archive(command, Path(record.cwd or "."))
        return None

    def _emit_binary(self, command: List[str]) -> None:
        triple = command[command.index("--target") + 1]
        profile = "release" if "--release" in command else "debug"
        directory = self.root / "target" / triple / profile
        name = self.package_id
        if "--example" in command:
            name = command[command.index("--example") + 1]
            directory = directory / "examples"
        directory.mkdir(parents=True, exist_ok=True)
        (directory / name).write_bytes(b"\xcf\xfa\xed\xfe" + triple.encode())

    @staticmethod
    def _emit_archive(command: List[str], cwd: Path) -> None:
        archive = cwd / command[-2]
        staging = cwd / command[-1]
        mode = "a" if archive.exists() else "w"
        with zipfile.ZipFile(archive, mode) as handle:
            handle.write(staging, staging.name)
            for path in sorted(staging.rglob("*")):
                handle.write(path, path.relative_to(cwd).as_posix())


def commands_for(runner: RecordingCommandRunner, tool: str) -> List[List[str]]:
    return [record.command for record in runner.iter_commands() if record.command[0] == tool]
