"""Assembly of ``.app`` bundle directories."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import shutil

from .context import PLIST_NAME, BuildContext
from .errors import IpaError, Stage
from .targets import BuildTarget, Platform

EXECUTABLE_MODE = 0o755


class BundleState(str, Enum):
    EMPTY = "empty"
    BUNDLE_DIR_CREATED = "bundle-dir-created"
    MANIFEST_COPIED = "manifest-copied"
    BINARY_COPIED = "binary-copied"
    PERMISSIONS_SET = "permissions-set"


@dataclass(slots=True)
class Bundle:
    path: Path
    target: BuildTarget
    executable: str
    state: BundleState = BundleState.EMPTY

    @property
    def contents_dir(self) -> Path:
        if self.target.platform is Platform.MACOS:
            return self.path / "Contents"
        return self.path

    @property
    def manifest_path(self) -> Path:
        return self.contents_dir / PLIST_NAME

    @property
    def binary_dir(self) -> Path:
        if self.target.platform is Platform.MACOS:
            return self.contents_dir / "MacOS"
        return self.contents_dir

    @property
    def binary_path(self) -> Path:
        return self.binary_dir / self.executable


class BundleAssembler:
    """Build a fresh bundle for one target from a compiled binary.

    Any stale bundle with the same name is removed first, so repeated runs
    produce the same tree.
    """

    def __init__(self, context: BuildContext) -> None:
        self._context = context

    def _create_dir(self, bundle: Bundle) -> None:
        if bundle.path.exists():
            try:
                shutil.rmtree(bundle.path)
            except OSError as exc:
                raise IpaError(Stage.BUNDLE_EXISTS, f"{bundle.path}: {exc}") from exc
        try:
            bundle.binary_dir.mkdir(parents=True)
        except OSError as exc:
            raise IpaError(Stage.BUNDLE_DIR_CREATE, f"{bundle.path}: {exc}") from exc
        bundle.state = BundleState.BUNDLE_DIR_CREATED

    def _copy_manifest(self, bundle: Bundle, manifest: Path) -> None:
        try:
            shutil.copyfile(manifest, bundle.manifest_path)
        except OSError as exc:
            raise IpaError(Stage.MANIFEST_COPY, str(exc)) from exc
        bundle.state = BundleState.MANIFEST_COPIED

    def _copy_binary(self, bundle: Bundle, binary: Path) -> None:
        if not binary.is_file():
            raise IpaError(Stage.BINARY_COPY, f"failed to find compiled binary at {binary}")
        try:
            shutil.copyfile(binary, bundle.binary_path)
        except OSError as exc:
            raise IpaError(Stage.BINARY_COPY, str(exc)) from exc
        bundle.state = BundleState.BINARY_COPIED

    def _set_permissions(self, bundle: Bundle) -> None:
        try:
            bundle.binary_path.chmod(EXECUTABLE_MODE)
        except OSError as exc:
            raise IpaError(Stage.CHMOD, str(exc)) from exc
        bundle.state = BundleState.PERMISSIONS_SET

    def assemble(self, target: BuildTarget, binary: Path, executable: str) -> Bundle:
        layout = self._context.layout
        bundle = Bundle(
            path=layout.bundle_dir(self._context.identity.name, target),
            target=target,
            executable=executable,
        )
        console = self._context.console

        console.step(f"Creating {bundle.path.name}...")
        self._create_dir(bundle)
        console.step(f"Copying `{PLIST_NAME}`...")
        self._copy_manifest(bundle, layout.manifest_path)
        console.step("Copying the binary...")
        self._copy_binary(bundle, binary)
        self._set_permissions(bundle)
        return bundle


__all__ = ["Bundle", "BundleAssembler", "BundleState", "EXECUTABLE_MODE"]
