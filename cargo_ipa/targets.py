"""Platform/architecture matrix and toolchain triple naming."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple


class Platform(str, Enum):
    IOS = "ios"
    MACOS = "macos"

    @property
    def sdk(self) -> str:
        return "iphoneos" if self is Platform.IOS else "macosx"

    @property
    def archived(self) -> bool:
        return self is Platform.IOS


class Architecture(str, Enum):
    X86_64 = "x86_64"
    AARCH64 = "aarch64"


class ToolchainKind(str, Enum):
    RUST = "rust"
    SWIFT = "swift"


# Rust and Swift spell the same target differently; keep both vocabularies here.
TRIPLES: Dict[Tuple[Platform, Architecture, ToolchainKind], str] = {
    (Platform.IOS, Architecture.X86_64, ToolchainKind.RUST): "x86_64-apple-ios",
    (Platform.IOS, Architecture.X86_64, ToolchainKind.SWIFT): "x86_64-apple-ios14",
    (Platform.IOS, Architecture.AARCH64, ToolchainKind.RUST): "aarch64-apple-ios",
    (Platform.IOS, Architecture.AARCH64, ToolchainKind.SWIFT): "arm64-apple-ios14",
    (Platform.MACOS, Architecture.X86_64, ToolchainKind.RUST): "x86_64-apple-darwin",
    (Platform.MACOS, Architecture.X86_64, ToolchainKind.SWIFT): "x86_64-apple-macosx11",
    (Platform.MACOS, Architecture.AARCH64, ToolchainKind.RUST): "aarch64-apple-darwin",
    (Platform.MACOS, Architecture.AARCH64, ToolchainKind.SWIFT): "arm64-apple-macosx11",
}


def triple_for(platform: Platform, architecture: Architecture, kind: ToolchainKind) -> str:
    return TRIPLES[(platform, architecture, kind)]


@dataclass(frozen=True, slots=True)
class BuildTarget:
    platform: Platform
    architecture: Architecture

    @property
    def rust_triple(self) -> str:
        return triple_for(self.platform, self.architecture, ToolchainKind.RUST)

    @property
    def swift_triple(self) -> str:
        return triple_for(self.platform, self.architecture, ToolchainKind.SWIFT)

    def __str__(self) -> str:
        return self.rust_triple


def generate_targets(
    platform: Platform | None = None,
    architecture: Architecture | None = None,
) -> List[BuildTarget]:
    """Expand the selectors into targets, architecture-major.

    A ``None`` selector means every value of that axis.
    """

    platforms = [platform] if platform is not None else list(Platform)
    architectures = [architecture] if architecture is not None else list(Architecture)
    return [BuildTarget(p, a) for a in architectures for p in platforms]


__all__ = [
    "Architecture",
    "BuildTarget",
    "Platform",
    "TRIPLES",
    "ToolchainKind",
    "generate_targets",
    "triple_for",
]
