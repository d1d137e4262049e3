"""Levelled console output shared by the command line tools."""
from __future__ import annotations

import sys


class Console:
    """Simple console output handler with configurable log level.

    Levels: none < error < warning < info < debug
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "warning": 2,
        "info": 3,
        "debug": 4,
    }

    def __init__(self, level: str = "info") -> None:
        if level not in self.LEVELS:
            raise ValueError(
                f"Unknown log level '{level}'. Expected one of: {', '.join(self.LEVELS)}"
            )
        self.level_name = level
        self.level = self.LEVELS[level]

    def enabled(self, level: str) -> bool:
        return self.level >= self.LEVELS[level]

    def error(self, message: str) -> None:
        if self.enabled("error"):
            print(f"[ERROR] {message}", file=sys.stderr)

    def warning(self, message: str) -> None:
        if self.enabled("warning"):
            print(f"[WARNING] {message}", file=sys.stderr)

    def info(self, message: str) -> None:
        if self.enabled("info"):
            print(f"[INFO] {message}")

    def step(self, message: str) -> None:
        """Print a nested progress line under the last info message."""
        if self.enabled("info"):
            print(f"[INFO] |- {message}")

    def debug(self, message: str) -> None:
        if self.enabled("debug"):
            print(f"[DEBUG] {message}")
