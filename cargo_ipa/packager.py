"""Compression of an assembled iOS bundle into an ``.ipa`` archive."""
from __future__ import annotations

from pathlib import Path
import shutil

from core.command_runner import CommandError, CommandRunner

from .bundle import Bundle
from .context import BuildContext
from .errors import IpaError, Stage
from .targets import BuildTarget


class Packager:
    def __init__(self, context: BuildContext, runner: CommandRunner) -> None:
        self._context = context
        self._runner = runner

    def _remove_stale_archive(self, archive: Path) -> None:
        # zip appends to an existing archive instead of replacing it.
        if not archive.exists():
            return
        try:
            archive.unlink()
        except OSError as exc:
            raise IpaError(Stage.ARCHIVE_EXISTS, f"{archive}: {exc}") from exc

    def _reset_staging(self) -> Path:
        staging = self._context.layout.staging_dir
        try:
            if staging.exists():
                shutil.rmtree(staging)
            staging.mkdir()
        except OSError as exc:
            raise IpaError(Stage.STAGING, f"{staging}: {exc}") from exc
        return staging

    def _stage_bundle(self, bundle: Bundle, staging: Path) -> Path:
        destination = staging / bundle.path.name
        try:
            shutil.move(str(bundle.path), str(destination))
        except OSError as exc:
            raise IpaError(Stage.BUNDLE_MOVE, str(exc)) from exc
        bundle.path = destination
        return destination

    def archive_command(self, archive: Path, staging: Path) -> list[str]:
        return [self._context.settings.zip, "-r", "-q", archive.name, staging.name]

    def package(self, bundle: Bundle, target: BuildTarget) -> Path:
        """Archive ``bundle`` and return the path of the ``.ipa``.

        The archiver runs with its working directory set to the staging
        directory's parent, so entries start with ``Payload/``.
        """

        if not target.platform.archived:
            raise ValueError(f"{target.platform.value} bundles are not archived")

        layout = self._context.layout
        archive = layout.archive_path(self._context.identity.name, target)
        console = self._context.console

        console.info("Compressing app into an IPA...")
        self._remove_stale_archive(archive)
        staging = self._reset_staging()
        self._stage_bundle(bundle, staging)

        command = self.archive_command(archive, staging)
        try:
            self._runner.run(command, cwd=staging.parent, note="archive")
        except CommandError as exc:
            raise IpaError(Stage.ARCHIVE, str(exc)) from exc
        except OSError as exc:
            raise IpaError(Stage.ARCHIVE, f"could not run `{command[0]}`: {exc}") from exc

        console.step("Cleaning up...")
        try:
            shutil.rmtree(staging)
        except OSError as exc:
            raise IpaError(Stage.STAGING, f"{staging}: {exc}") from exc
        return archive


__all__ = ["Packager"]
