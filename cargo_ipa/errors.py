"""The single error kind raised by every stage of the build."""
from __future__ import annotations

from enum import Enum


class Stage(str, Enum):
    CONFIG_NOT_FOUND = "Failed to locate Cargo.toml"
    CONFIG_PARSE = "Failed to parse Cargo.toml"
    CONFIG_INVALID = "Invalid Cargo.toml detected"
    NAME_UNRESOLVED = "Failed to find the app name"
    WORK_DIR_CREATE = "Failed to create build directory"
    BRIDGE_CONFIG_INCOMPLETE = "Incomplete swift-bridge configuration"
    CLEAN = "Failed to clean cached build artifacts"
    BINDINGS = "Failed to generate swift-bridge bindings"
    SDK_LOOKUP = "Failed to locate the Apple SDK"
    BRIDGE_COMPILE = "Swift failed to compile the project"
    PRIMARY_COMPILE = "Cargo failed to compile the project"
    MANIFEST_WRITE = "Failed to write `Info.plist`"
    BUNDLE_EXISTS = "Failed to remove old app bundle"
    BUNDLE_DIR_CREATE = "Failed to create app bundle directory"
    MANIFEST_COPY = "Failed to copy `Info.plist` into the app bundle"
    BINARY_COPY = "Failed to copy the binary"
    CHMOD = "Failed to mark the binary as executable"
    ARCHIVE_EXISTS = "Failed to remove old IPA file"
    STAGING = "Failed to prepare the Payload directory"
    BUNDLE_MOVE = "Failed to move the app bundle into Payload"
    ARCHIVE = "Failed to create IPA file"


class IpaError(RuntimeError):
    """A fatal build failure, tagged with the stage that produced it."""

    def __init__(self, stage: Stage, detail: str | None = None) -> None:
        message = stage.value if not detail else f"{stage.value}: {detail}"
        super().__init__(message)
        self.stage = stage
        self.detail = detail


__all__ = ["IpaError", "Stage"]
