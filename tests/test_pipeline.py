from __future__ import annotations

from pathlib import Path
import re
import tempfile
import unittest
import zipfile

from cargo_ipa.errors import IpaError, Stage
from cargo_ipa.pipeline import BuildOptions, BuildPipeline
from cargo_ipa.targets import Architecture, Platform
from tests.support import FakeTools, commands_for, make_context, write_project


class BuildPipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name).resolve()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_ios_end_to_end(self) -> None:
        write_project(self.root, name="demo", version="1.0")
        context = make_context(self.root, cli_name="Demo")
        runner = FakeTools(self.root).runner()

        artifacts = BuildPipeline(context, runner).run(
            BuildOptions(name="Demo", platform=Platform.IOS, architecture=Architecture.AARCH64)
        )

        work_dir = context.layout.work_dir
        self.assertEqual(len(artifacts), 1)
        archive = artifacts[0].path
        self.assertEqual(archive, work_dir / "Demoaarch64-apple-ios.ipa")
        self.assertEqual(sorted(path.name for path in work_dir.glob("*.ipa")), [archive.name])
        self.assertFalse(context.layout.manifest_path.exists())

        with zipfile.ZipFile(archive) as handle:
            self.assertIn("Payload/Demo.aarch64-apple-ios.app/", handle.namelist())
            plist = handle.read("Payload/Demo.aarch64-apple-ios.app/Info.plist").decode("utf-8")
            binary = handle.read("Payload/Demo.aarch64-apple-ios.app/demo")
        pairs = dict(re.findall(r"<key>(.*?)</key>\n<string>(.*?)</string>", plist))
        self.assertEqual(pairs["CFBundleIdentifier"], "com.demo")
        self.assertEqual(pairs["CFBundleVersion"], "1.0")
        self.assertEqual(pairs["CFBundleName"], "Demo")
        self.assertEqual(pairs["CFBundleExecutable"], "demo")
        self.assertTrue(binary.endswith(b"aarch64-apple-ios"))

    def test_full_matrix(self) -> None:
        write_project(
            self.root,
            extra="""
            [package.metadata.cargo-ipa]
            name = "Demo"

            [package.metadata.cargo-ipa.plist]
            CFBundleShortVersionString = "1.0 beta"
            """,
        )
        context = make_context(self.root)
        runner = FakeTools(self.root).runner()

        artifacts = BuildPipeline(context, runner).run(BuildOptions(release=True))

        self.assertEqual(
            [artifact.target.rust_triple for artifact in artifacts],
            ["x86_64-apple-ios", "x86_64-apple-darwin", "aarch64-apple-ios", "aarch64-apple-darwin"],
        )
        self.assertEqual(
            [command[3] for command in commands_for(runner, "cargo")],
            ["x86_64-apple-ios", "x86_64-apple-darwin", "aarch64-apple-ios", "aarch64-apple-darwin"],
        )
        self.assertTrue(all("--release" in command for command in commands_for(runner, "cargo")))
        self.assertEqual(len(commands_for(runner, "zip")), 2)

        mac_app = artifacts[1].path
        self.assertEqual(mac_app.name, "Demo.x86_64-apple-darwin.app")
        self.assertTrue((mac_app / "Contents" / "MacOS" / "demo").is_file())
        plist = (mac_app / "Contents" / "Info.plist").read_text(encoding="utf-8")
        self.assertIn("<key>CFBundleShortVersionString</key>\n<string>1.0 beta</string>", plist)
        self.assertEqual(artifacts[0].path.suffix, ".ipa")

    def test_example_binary(self) -> None:
        write_project(self.root)
        context = make_context(self.root)
        runner = FakeTools(self.root).runner()

        artifacts = BuildPipeline(context, runner).run(
            BuildOptions(example="hello", platform=Platform.MACOS, architecture=Architecture.AARCH64)
        )

        app = artifacts[0].path
        self.assertTrue((app / "Contents" / "MacOS" / "hello").is_file())
        self.assertIn(
            "<key>CFBundleExecutable</key>\n<string>hello</string>",
            (app / "Contents" / "Info.plist").read_text(encoding="utf-8"),
        )

    def test_primary_compile_failure_leaves_no_bundle(self) -> None:
        write_project(self.root)
        context = make_context(self.root, cli_name="Demo")
        runner = FakeTools(self.root, fail=lambda record: record.command[0] == "cargo").runner()

        with self.assertRaises(IpaError) as ctx:
            BuildPipeline(context, runner).run(
                BuildOptions(platform=Platform.IOS, architecture=Architecture.AARCH64)
            )

        self.assertIs(ctx.exception.stage, Stage.PRIMARY_COMPILE)
        self.assertIn("Cargo failed to compile", str(ctx.exception))
        work_dir = context.layout.work_dir
        self.assertEqual(list(work_dir.glob("*.app")), [])
        self.assertEqual(list(work_dir.glob("*.ipa")), [])
        self.assertEqual(commands_for(runner, "zip"), [])

    def test_failure_keeps_finished_siblings(self) -> None:
        write_project(self.root)
        context = make_context(self.root, cli_name="Demo")

        def fail_on_aarch64(record):
            return record.command[0] == "cargo" and "aarch64-apple-ios" in record.command

        runner = FakeTools(self.root, fail=fail_on_aarch64).runner()
        with self.assertRaises(IpaError):
            BuildPipeline(context, runner).run(BuildOptions(platform=Platform.IOS))

        work_dir = context.layout.work_dir
        self.assertTrue((work_dir / "Demox86_64-apple-ios.ipa").is_file())
        self.assertFalse((work_dir / "Demoaarch64-apple-ios.ipa").exists())

    def test_incomplete_bridge_fails_before_compiling(self) -> None:
        write_project(
            self.root,
            extra="""
            [package.metadata.cargo-ipa]
            swift-library = "DemoKit"
            """,
        )
        context = make_context(self.root)
        runner = FakeTools(self.root).runner()
        with self.assertRaises(IpaError) as ctx:
            BuildPipeline(context, runner).run(BuildOptions())
        self.assertIs(ctx.exception.stage, Stage.BRIDGE_CONFIG_INCOMPLETE)
        self.assertEqual(runner.commands, [])

    def test_rerun_overwrites_previous_output(self) -> None:
        write_project(self.root)
        context = make_context(self.root, cli_name="Demo")
        options = BuildOptions(platform=Platform.IOS, architecture=Architecture.X86_64)

        first = BuildPipeline(context, FakeTools(self.root).runner()).run(options)
        with zipfile.ZipFile(first[0].path) as handle:
            first_names = sorted(handle.namelist())
        second = BuildPipeline(context, FakeTools(self.root).runner()).run(options)
        with zipfile.ZipFile(second[0].path) as handle:
            self.assertEqual(sorted(handle.namelist()), first_names)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
