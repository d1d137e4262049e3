"""Run external tools, either for real or recorded for inspection."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Sequence
import os
import shlex
import subprocess

from .console import Console


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    streamed: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, result: CommandResult):
        message = f"Command failed with exit code {result.returncode}: {format_command(result.command)}"
        if not result.streamed and (result.stdout or result.stderr):
            message = (
                f"{message}\n"
                f"stdout: {result.stdout}\n"
                f"stderr: {result.stderr}"
            )
        super().__init__(message)
        self.result = result


def format_command(command: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(part)) for part in command)


class CommandRunner:
    """Abstract command runner interface.

    ``cwd`` is the only way a command gets a different working directory;
    runners never call :func:`os.chdir`.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return format_command(command)

    def _log(self, command: Sequence[str], cwd: Path | None, note: str | None) -> None:
        if self.console is None:
            return
        prefix = f"{note}: " if note else ""
        where = f" (cwd={cwd})" if cwd else ""
        self.console.debug(f"{prefix}{self.format_command(command)}{where}")

    @staticmethod
    def _finalize(result: CommandResult, *, check: bool) -> CommandResult:
        if check and result.returncode != 0:
            raise CommandError(result)
        return result


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`.

    Commands block until they exit; there is no timeout.
    """

    @staticmethod
    def _merge_environment(env: Mapping[str, str] | None) -> Dict[str, str] | None:
        if env is None:
            return None
        merged = os.environ.copy()
        merged.update(env)
        return merged

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        self._log(command, cwd, note)
        merged_env = self._merge_environment(env)
        argv = [str(part) for part in command]
        if not stream:
            process = subprocess.run(
                argv,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
                capture_output=True,
                text=True,
                check=False,
            )
            return self._finalize(
                CommandResult(
                    command=argv,
                    returncode=process.returncode,
                    stdout=process.stdout,
                    stderr=process.stderr,
                ),
                check=check,
            )

        process = subprocess.run(
            argv,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
            check=False,
        )
        return self._finalize(
            CommandResult(
                command=argv,
                returncode=process.returncode,
                stdout="",
                stderr="",
                streamed=True,
            ),
            check=check,
        )


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    env: Dict[str, str] = field(default_factory=dict)
    note: str | None = None
    stream: bool = False


Responder = Callable[[RecordedCommand], "CommandResult | int | None"]
"""Callback deciding the outcome of a recorded command.

Returning ``None`` means success, an ``int`` is used as the exit code.
"""


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them."""

    def __init__(self, responder: Responder | None = None, console: Console | None = None) -> None:
        super().__init__(console)
        self.commands: List[RecordedCommand] = []
        self._responder = responder

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        self._log(command, cwd, note)
        record = RecordedCommand(
            command=[str(part) for part in command],
            cwd=str(cwd) if cwd else None,
            env=dict(env) if env else {},
            note=note,
            stream=stream,
        )
        self.commands.append(record)

        outcome = self._responder(record) if self._responder else None
        if isinstance(outcome, CommandResult):
            result = outcome
        else:
            result = CommandResult(
                command=record.command,
                returncode=int(outcome) if outcome is not None else 0,
                stdout="",
                stderr="",
                streamed=stream,
            )
        return self._finalize(result, check=check)

    def iter_commands(self) -> Iterable[RecordedCommand]:
        return iter(self.commands)
