"""Project configuration resolution and the per-invocation build context."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple
import tomllib

from core.config_loader import load_config_file, normalize_string_list
from core.console import Console

from .errors import IpaError, Stage
from .settings import TOOL_NAME, ToolSettings
from .targets import BuildTarget

MANIFEST_NAME = "Cargo.toml"
PLIST_NAME = "Info.plist"
STAGING_NAME = "Payload"


@dataclass(frozen=True, slots=True)
class ProjectIdentity:
    id: str
    name: str
    version: str

    @property
    def bundle_identifier(self) -> str:
        return f"com.{self.id}"


CONFIG_KEYS = frozenset({"name", "swift-bridges", "swift-library", "force-rebuild", "plist"})


def _stringify_override(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


@dataclass(frozen=True, slots=True)
class ToolConfig:
    """The ``[package.metadata.cargo-ipa]`` table.

    Malformed entries are reported as warnings and dropped; the table is
    optional, so nothing in it stops a build. Keys that are not tool options
    are ``Info.plist`` overrides, as are the entries of the nested ``plist``
    table, which win on collision.
    """

    name: str | None = None
    swift_bridges: Tuple[str, ...] = ()
    swift_library: str | None = None
    force_rebuild: bool = True
    plist: Dict[str, str] = field(default_factory=dict)

    @property
    def bridged(self) -> bool:
        return bool(self.swift_bridges) or self.swift_library is not None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], console: Console | None = None) -> "ToolConfig":
        console = console or Console("none")

        def ignore(key: str, reason: str) -> None:
            console.warning(f"Ignoring `{TOOL_NAME}.{key}`: {reason}")

        plist: Dict[str, str] = {}
        overrides = [(str(key), value) for key, value in data.items() if str(key) not in CONFIG_KEYS]
        plist_section = data.get("plist", {})
        if isinstance(plist_section, Mapping):
            overrides.extend((str(key), value) for key, value in plist_section.items())
        else:
            ignore("plist", "expected a table")
        for key, value in overrides:
            text = _stringify_override(value)
            if text is None:
                ignore(key, "manifest overrides must be strings, numbers or booleans")
                continue
            plist[key] = text

        name = data.get("name")
        if name is not None and not isinstance(name, str):
            ignore("name", "expected a string")
            name = None

        try:
            bridges = normalize_string_list(data.get("swift-bridges"), field_name="`swift-bridges`")
        except TypeError as exc:
            ignore("swift-bridges", str(exc))
            bridges = []

        library = data.get("swift-library")
        if library is not None and (not isinstance(library, str) or not library.strip()):
            ignore("swift-library", "expected a non-empty string")
            library = None

        force_rebuild = data.get("force-rebuild", True)
        if not isinstance(force_rebuild, bool):
            ignore("force-rebuild", "expected a boolean")
            force_rebuild = True

        return cls(
            name=name,
            swift_bridges=tuple(bridges),
            swift_library=library.strip() if library else None,
            force_rebuild=force_rebuild,
            plist=plist,
        )


@dataclass(frozen=True, slots=True)
class DirectoryLayout:
    root: Path

    @property
    def build_root(self) -> Path:
        return self.root / "target"

    @property
    def work_dir(self) -> Path:
        return self.build_root / TOOL_NAME

    @property
    def manifest_path(self) -> Path:
        return self.work_dir / PLIST_NAME

    @property
    def staging_dir(self) -> Path:
        return self.work_dir / STAGING_NAME

    def bundle_dir(self, name: str, target: BuildTarget) -> Path:
        return self.work_dir / f"{name}.{target.rust_triple}.app"

    def archive_path(self, name: str, target: BuildTarget) -> Path:
        return self.work_dir / f"{name}{target.rust_triple}.ipa"

    def artifact_dir(self, target: BuildTarget, release: bool) -> Path:
        return self.build_root / target.rust_triple / ("release" if release else "debug")

    def ensure(self) -> None:
        for directory in (self.build_root, self.work_dir):
            try:
                directory.mkdir(exist_ok=True)
            except OSError as exc:
                raise IpaError(Stage.WORK_DIR_CREATE, f"{directory}: {exc}") from exc


def find_manifest(start: Path) -> Path:
    """Return the nearest ``Cargo.toml`` in ``start`` or one of its ancestors."""

    current = start.resolve()
    for directory in (current, *current.parents):
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate
    raise IpaError(Stage.CONFIG_NOT_FOUND, f"no {MANIFEST_NAME} in {current} or any parent directory")


def load_manifest(path: Path) -> Mapping[str, Any]:
    try:
        return load_config_file(path)
    except (tomllib.TOMLDecodeError, UnicodeDecodeError, OSError) as exc:
        raise IpaError(Stage.CONFIG_PARSE, str(exc)) from exc


def _package_field(package: Mapping[str, Any], key: str) -> str:
    value = package.get(key)
    if not isinstance(value, str):
        raise IpaError(Stage.CONFIG_INVALID, f"failed to get package {key}")
    return value


def extract_tool_config(package: Mapping[str, Any], console: Console) -> ToolConfig:
    metadata = package.get("metadata")
    if not isinstance(metadata, Mapping) or TOOL_NAME not in metadata:
        return ToolConfig()
    section = metadata[TOOL_NAME]
    if not isinstance(section, Mapping):
        console.warning(f"Invalid `{TOOL_NAME}` configuration format detected. Defaulting to None.")
        return ToolConfig()
    return ToolConfig.from_mapping(section, console)


def resolve_name(cli_name: str | None, tool_config: ToolConfig, package_id: str) -> str:
    """Pick the app name: CLI argument, then configuration, then package id.

    Blank candidates are skipped like missing ones.
    """

    for candidate in (cli_name, tool_config.name, package_id):
        name = (candidate or "").strip()
        if name:
            return name
    raise IpaError(
        Stage.NAME_UNRESOLVED,
        "please provide a value in Cargo.toml or pass the `--name` argument",
    )


@dataclass(frozen=True, slots=True)
class BuildContext:
    identity: ProjectIdentity
    tool_config: ToolConfig
    layout: DirectoryLayout
    settings: ToolSettings
    console: Console

    @classmethod
    def create(
        cls,
        cwd: Path,
        *,
        cli_name: str | None = None,
        settings: ToolSettings | None = None,
        console: Console | None = None,
    ) -> "BuildContext":
        settings = settings or ToolSettings()
        console = console or Console(settings.log_level)

        manifest = find_manifest(cwd)
        console.debug(f"Using {manifest}")
        data = load_manifest(manifest)

        package = data.get("package")
        if not isinstance(package, Mapping):
            raise IpaError(Stage.CONFIG_INVALID, "missing [package] table")
        package_id = _package_field(package, "name")
        version = _package_field(package, "version")
        tool_config = extract_tool_config(package, console)

        identity = ProjectIdentity(
            id=package_id,
            name=resolve_name(cli_name, tool_config, package_id),
            version=version,
        )
        layout = DirectoryLayout(manifest.parent)
        layout.ensure()
        return cls(identity=identity, tool_config=tool_config, layout=layout, settings=settings, console=console)


__all__ = [
    "BuildContext",
    "DirectoryLayout",
    "ProjectIdentity",
    "ToolConfig",
    "extract_tool_config",
    "find_manifest",
    "load_manifest",
    "resolve_name",
]
