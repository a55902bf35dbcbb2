from __future__ import annotations

import logging
import platform
import shlex
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from ..errors import UnsupportedPlatformError

logger = logging.getLogger(__name__)

DEFAULT_OS_RELEASE = "/etc/os-release"


class Platform(str, Enum):
    MACOS = "macos"
    UBUNTU = "ubuntu"
    ARCH = "arch"

    def __str__(self) -> str:
        return self.value


# Distribution ids grouped into the family whose package manager they share.
_DISTRO_FAMILIES = {
    "ubuntu": Platform.UBUNTU,
    "debian": Platform.UBUNTU,
    "arch": Platform.ARCH,
    "manjaro": Platform.ARCH,
}


def parse_os_release(text: str) -> Dict[str, str]:
    """Parse os-release(5) content into a dict.

    Values may be quoted shell-style; comments and blank lines are ignored.
    """

    out: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        try:
            parts = shlex.split(value)
        except ValueError:
            parts = [value.strip("\"'")]
        out[key.strip()] = parts[0] if parts else ""
    return out


def classify_distribution(os_id: str) -> Platform:
    distro = (os_id or "").strip().lower()
    try:
        return _DISTRO_FAMILIES[distro]
    except KeyError:
        raise UnsupportedPlatformError(f"Unsupported Linux distribution: {distro or '<empty>'}") from None


def detect(*, system: Optional[str] = None, os_release_path: str = DEFAULT_OS_RELEASE) -> Platform:
    """Classify the host into one of the supported platforms."""

    kernel = (system if system is not None else platform.system()).lower()
    if kernel == "darwin":
        logger.info("Platform: macos (kernel=%s)", kernel)
        return Platform.MACOS

    p = Path(os_release_path)
    if not p.is_file():
        raise UnsupportedPlatformError("Unable to detect operating system")

    info = parse_os_release(p.read_text(encoding="utf-8", errors="ignore"))
    detected = classify_distribution(info.get("ID", ""))
    logger.info("Platform: %s (kernel=%s id=%s)", detected, kernel, info.get("ID"))
    return detected
