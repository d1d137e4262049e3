"""Swift package integration through swift-bridge."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from .context import BuildContext
from .errors import IpaError, Stage


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    bridges: Tuple[Path, ...]
    package_dir: Path
    release: bool
    force_rebuild: bool = True

    @property
    def library_name(self) -> str:
        return self.package_dir.name

    @property
    def source_dir(self) -> Path:
        return self.package_dir / "Sources" / self.library_name

    @property
    def build_dir(self) -> Path:
        return self.package_dir / ".build" / ("release" if self.release else "debug")

    @property
    def generated_dir(self) -> Path:
        return self.source_dir / "generated"

    @property
    def bridging_header(self) -> Path:
        return self.source_dir / "bridging-header.h"


def resolve_bridge(context: BuildContext, release: bool) -> BridgeConfig | None:
    """Return the Swift bridge settings, or ``None`` when bridging is not configured.

    Both ``swift-bridges`` and ``swift-library`` must be present; either one
    alone is an error.
    """

    config = context.tool_config
    if not config.bridged:
        return None
    if not config.swift_bridges:
        raise IpaError(
            Stage.BRIDGE_CONFIG_INCOMPLETE,
            "a Swift package was listed, but no swift-bridges were listed to generate",
        )
    if config.swift_library is None:
        raise IpaError(
            Stage.BRIDGE_CONFIG_INCOMPLETE,
            "swift-bridges were listed, but no Swift package was listed to compile",
        )

    root = context.layout.root
    return BridgeConfig(
        bridges=tuple((root / bridge).resolve() for bridge in config.swift_bridges),
        package_dir=(root / config.swift_library).resolve(),
        release=release,
        force_rebuild=config.force_rebuild,
    )


__all__ = ["BridgeConfig", "resolve_bridge"]
