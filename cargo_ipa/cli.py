"""Command line interface for cargo-ipa."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable
import sys

from core.command_runner import CommandRunner, SubprocessCommandRunner
from core.console import Console

from .context import BuildContext
from .errors import IpaError
from .pipeline import BuildOptions, BuildPipeline
from .settings import ToolSettings, load_settings
from .targets import Architecture, Platform

CARGO_SUBCOMMAND = "ipa"


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="cargo-ipa", description="Compile Rust projects into Apple app bundles and IPA files")
    parser.add_argument(
        "-l",
        "--log",
        choices=list(Console.LEVELS),
        default=None,
        help="Set log level (default: from settings, usually info)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Compile a Rust binary or example into an app bundle")
    build_parser.add_argument(
        "-e",
        "--example",
        help="Compile the provided library example; if blank, compile the Rust binary",
    )
    build_parser.add_argument("-r", "--release", action="store_true", help="Compile in release mode")
    build_parser.add_argument(
        "-n",
        "--name",
        help="The app's name; defaults to the configured name, then the package name",
    )
    build_parser.add_argument(
        "-p",
        "--platform",
        choices=[platform.value for platform in Platform],
        help="Only build for this platform (default: all)",
    )
    build_parser.add_argument(
        "-a",
        "--arch",
        choices=[arch.value for arch in Architecture],
        help="Only build for this architecture (default: all)",
    )

    args = list(argv)
    # `cargo ipa build` runs us as `cargo-ipa ipa build`.
    if args and args[0] == CARGO_SUBCOMMAND:
        args = args[1:]
    return parser.parse_args(args)


def _build_options(args: Namespace) -> BuildOptions:
    return BuildOptions(
        example=args.example,
        release=args.release,
        name=args.name,
        platform=Platform(args.platform) if args.platform else None,
        architecture=Architecture(args.arch) if args.arch else None,
    )


def _handle_build(
    args: Namespace,
    workspace: Path,
    settings: ToolSettings,
    console: Console,
    runner: CommandRunner,
) -> int:
    options = _build_options(args)
    try:
        context = BuildContext.create(workspace, cli_name=options.name, settings=settings, console=console)
        artifacts = BuildPipeline(context, runner).run(options)
    except IpaError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    for artifact in artifacts:
        kind = "IPA" if artifact.target.platform.archived else "App"
        print(f"Done! {kind} for {artifact.target.rust_triple} is at {artifact.path}")
    return 0


def main(
    argv: Iterable[str] | None = None,
    *,
    workspace: Path | None = None,
    runner: CommandRunner | None = None,
    settings: ToolSettings | None = None,
) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    try:
        settings = (settings or load_settings()).with_log_level(args.log)
    except (ValueError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    console = Console(settings.log_level)
    if sys.platform != "darwin":
        console.warning("Apple SDKs are only available on macOS; external tools are likely to fail.")
    runner = runner or SubprocessCommandRunner(console)

    if args.command == "build":
        return _handle_build(args, workspace or Path.cwd(), settings, console, runner)
    raise ValueError(f"Unknown command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
