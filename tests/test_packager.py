from __future__ import annotations

from pathlib import Path
import os
import tempfile
import unittest
import zipfile
from unittest.mock import patch

from cargo_ipa.bundle import BundleAssembler
from cargo_ipa.errors import IpaError, Stage
from cargo_ipa.manifest import build_manifest_values, write_manifest
from cargo_ipa.packager import Packager
from cargo_ipa.targets import Architecture, BuildTarget, Platform
from tests.support import FakeTools, make_context, write_project


class PackagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name).resolve()
        write_project(self.root)
        self.context = make_context(self.root, cli_name="Demo")
        write_manifest(self.context.layout.manifest_path, build_manifest_values(self.context.identity, "demo"))
        self.binary = self.root / "demo-bin"
        self.binary.write_bytes(b"binary")
        self.target = BuildTarget(Platform.IOS, Architecture.AARCH64)
        self.bundle = BundleAssembler(self.context).assemble(self.target, self.binary, "demo")

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _package(self, tools: FakeTools | None = None) -> tuple[Path, list]:
        runner = (tools or FakeTools(self.root)).runner()
        archive = Packager(self.context, runner).package(self.bundle, self.target)
        return archive, runner.commands

    def test_archives_payload_relative_to_work_dir(self) -> None:
        cwd_before = Path.cwd()
        archive, commands = self._package()

        work_dir = self.context.layout.work_dir
        self.assertEqual(archive, work_dir / "Demoaarch64-apple-ios.ipa")
        self.assertEqual(
            commands[0].command,
            ["zip", "-r", "-q", "Demoaarch64-apple-ios.ipa", "Payload"],
        )
        self.assertEqual(commands[0].cwd, str(work_dir))
        self.assertEqual(Path.cwd(), cwd_before)

        with zipfile.ZipFile(archive) as handle:
            names = handle.namelist()
        self.assertIn("Payload/Demo.aarch64-apple-ios.app/", names)
        self.assertIn("Payload/Demo.aarch64-apple-ios.app/demo", names)
        self.assertIn("Payload/Demo.aarch64-apple-ios.app/Info.plist", names)
        self.assertTrue(all(not os.path.isabs(name) for name in names))

        self.assertFalse(self.context.layout.staging_dir.exists())
        self.assertFalse((work_dir / "Demo.aarch64-apple-ios.app").exists())

    def test_stale_archive_is_replaced(self) -> None:
        archive = self.context.layout.archive_path("Demo", self.target)
        with zipfile.ZipFile(archive, "w") as handle:
            handle.writestr("stale.txt", "old")

        self._package()

        with zipfile.ZipFile(archive) as handle:
            self.assertNotIn("stale.txt", handle.namelist())

    def test_stale_staging_is_replaced(self) -> None:
        staging = self.context.layout.staging_dir
        (staging / "Old.app").mkdir(parents=True)
        archive, _ = self._package()
        with zipfile.ZipFile(archive) as handle:
            self.assertFalse([name for name in handle.namelist() if "Old.app" in name])

    def test_unremovable_archive(self) -> None:
        self.context.layout.archive_path("Demo", self.target).write_bytes(b"old")
        with patch("pathlib.Path.unlink", side_effect=PermissionError("locked")):
            with self.assertRaises(IpaError) as ctx:
                self._package()
        self.assertIs(ctx.exception.stage, Stage.ARCHIVE_EXISTS)

    def test_move_failure(self) -> None:
        with patch("cargo_ipa.packager.shutil.move", side_effect=OSError("cross-device")):
            with self.assertRaises(IpaError) as ctx:
                self._package()
        self.assertIs(ctx.exception.stage, Stage.BUNDLE_MOVE)

    def test_archiver_failure(self) -> None:
        tools = FakeTools(self.root, fail=lambda record: record.command[0] == "zip")
        with self.assertRaises(IpaError) as ctx:
            self._package(tools)
        self.assertIs(ctx.exception.stage, Stage.ARCHIVE)
        self.assertIn("Failed to create IPA file", str(ctx.exception))

    def test_macos_is_not_archived(self) -> None:
        target = BuildTarget(Platform.MACOS, Architecture.AARCH64)
        with self.assertRaises(ValueError):
            Packager(self.context, FakeTools(self.root).runner()).package(self.bundle, target)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
