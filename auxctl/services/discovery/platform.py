"""
Platform identifiers for native release assets.

Identifiers have the form ``<os>-<arch>``: os is win, linux or osx and arch
is x64, x86, arm64 or arm.
"""

from __future__ import annotations

import platform
import sys

_ARCH_MAP = {
    "x86_64": "x64",
    "amd64": "x64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
    "arm64": "arm64",
    "aarch64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "arm": "arm",
}


def current_platform() -> str:
    """Identifier of the host running auxctl."""
    if sys.platform.startswith("win"):
        os_name = "win"
    elif sys.platform == "darwin":
        os_name = "osx"
    elif sys.platform.startswith("linux"):
        os_name = "linux"
    else:
        os_name = "unknown"
    arch = _ARCH_MAP.get(platform.machine().lower(), "unknown")
    return f"{os_name}-{arch}"


def _has_any(text: str, *needles: str) -> bool:
    return any(n in text for n in needles)


def detect_platform(filename: str) -> str:
    """
    Guess the platform an asset was built for from its file name.

    macOS markers are checked before Windows ones because "darwin" contains
    "win". Assets with no recognizable marker are assumed to target the
    current host.
    """
    lower = filename.lower()
    is_arm64 = _has_any(lower, "arm64", "aarch64")
    is_x64 = _has_any(lower, "x86_64", "x64", "amd64")

    if _has_any(lower, "darwin", "macos", "osx", "apple"):
        if is_arm64:
            return "osx-arm64"
        return "osx-x64"

    if _has_any(lower, "windows", "win", "msvc"):
        if is_arm64 and not is_x64:
            return "win-arm64"
        return "win-x64"

    if _has_any(lower, "linux", "gnu", "musl"):
        if is_x64:
            return "linux-x64"
        if is_arm64:
            return "linux-arm64"
        if _has_any(lower, "armv7", "armhf"):
            return "linux-arm"
        return "linux-x64"

    return current_platform()
