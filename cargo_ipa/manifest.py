"""Generation of the bundle's ``Info.plist``."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping

from .context import ProjectIdentity
from .errors import IpaError, Stage

PLIST_OPENING = """
<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
"""
PLIST_CLOSING = """
</dict>
</plist>
"""

MANDATORY_KEYS = (
    "CFBundleExecutable",
    "CFBundleIdentifier",
    "CFBundleName",
    "CFBundleVersion",
    "CFBundleShortVersionString",
)


def build_manifest_values(
    identity: ProjectIdentity,
    executable: str,
    overrides: Mapping[str, str] | None = None,
) -> Dict[str, str]:
    """Return the plist entries; ``overrides`` replace computed keys."""

    values = {
        "CFBundleExecutable": executable,
        "CFBundleIdentifier": identity.bundle_identifier,
        "CFBundleName": identity.name,
        "CFBundleVersion": identity.version,
        "CFBundleShortVersionString": identity.version,
    }
    values.update(overrides or {})
    return values


def render_manifest(values: Mapping[str, str]) -> str:
    # Values are written verbatim. `<` or `&` in a value yields an invalid plist.
    parts = [PLIST_OPENING]
    for key, value in values.items():
        parts.append(f"<key>{key}</key>\n")
        parts.append(f"<string>{value}</string>\n")
    parts.append(PLIST_CLOSING)
    return "".join(parts)


def write_manifest(path: Path, values: Mapping[str, str]) -> Path:
    try:
        path.write_text(render_manifest(values), encoding="utf-8")
    except OSError as exc:
        raise IpaError(Stage.MANIFEST_WRITE, str(exc)) from exc
    return path


__all__ = [
    "MANDATORY_KEYS",
    "PLIST_CLOSING",
    "PLIST_OPENING",
    "build_manifest_values",
    "render_manifest",
    "write_manifest",
]
