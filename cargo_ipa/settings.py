"""Tool settings: which executables to run and how loud to be."""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping
import os

import yaml

from core.config_loader import collect_config_files, load_config_file, merge_mappings, split_path_list
from core.console import Console

TOOL_NAME = "cargo-ipa"
ENV_PREFIX = "CARGO_IPA_"
CONFIG_DIR_ENV = "CARGO_IPA_CONFIG_DIR"
SETTINGS_STEM = "config"


@dataclass(frozen=True, slots=True)
class ToolSettings:
    cargo: str = "cargo"
    swift: str = "swift"
    swift_bridge_cli: str = "swift-bridge-cli"
    xcrun: str = "xcrun"
    xcode_select: str = "xcode-select"
    zip: str = "zip"
    log_level: str = "info"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ToolSettings":
        allowed = {field.name for field in fields(cls)}
        values: Dict[str, str] = {}
        for key, value in _normalize_keys(data).items():
            if key not in allowed:
                raise ValueError(f"Unknown {TOOL_NAME} setting: {key}")
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Setting '{key}' must be a non-empty string")
            values[key] = value.strip()
        settings = cls(**values)
        if settings.log_level not in Console.LEVELS:
            raise ValueError(
                f"Unknown log level '{settings.log_level}'. Expected one of: {', '.join(Console.LEVELS)}"
            )
        return settings

    def with_log_level(self, level: str | None) -> "ToolSettings":
        return replace(self, log_level=level) if level else self


def default_settings_dirs(environ: Mapping[str, str]) -> List[Path]:
    """Directories searched for ``config.{toml,json,yaml,yml}``, lowest priority first."""

    xdg = environ.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    directories = [base / TOOL_NAME]
    directories.extend(split_path_list(environ.get(CONFIG_DIR_ENV)))
    return directories


def _normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(key).strip().lower().replace("-", "_"): value for key, value in data.items()}


def _settings_from_environment(environ: Mapping[str, str]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for field in fields(ToolSettings):
        value = environ.get(ENV_PREFIX + field.name.upper())
        if value:
            values[field.name] = value
    return values


def load_settings(
    environ: Mapping[str, str] | None = None,
    directories: Iterable[Path] | None = None,
) -> ToolSettings:
    """Resolve settings from defaults, config files and ``CARGO_IPA_*`` variables."""

    environ = os.environ if environ is None else environ
    search = list(directories) if directories is not None else default_settings_dirs(environ)

    merged: Dict[str, Any] = {}
    for directory in search:
        path = collect_config_files(directory).get(SETTINGS_STEM)
        if path is None:
            continue
        try:
            data = load_config_file(path)
        except (yaml.YAMLError, OSError) as exc:
            raise ValueError(f"Failed to read settings file {path}: {exc}") from exc
        merged = merge_mappings(merged, _normalize_keys(data))

    merged = merge_mappings(merged, _settings_from_environment(environ))
    return ToolSettings.from_mapping(merged)


__all__ = ["TOOL_NAME", "ToolSettings", "default_settings_dirs", "load_settings"]
