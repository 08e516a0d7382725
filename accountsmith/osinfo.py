"""OS family lookup used for home directory defaults."""

import logging
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")

# platform.system() values that are already a family name
_SYSTEM_FAMILIES = {
    "SunOS": "Solaris",
    "Darwin": "Darwin",
    "FreeBSD": "FreeBSD",
    "OpenBSD": "OpenBSD",
    "NetBSD": "NetBSD",
    "AIX": "AIX",
}

# os-release ID / ID_LIKE values to family
_LINUX_FAMILIES = {
    "debian": "Debian",
    "ubuntu": "Debian",
    "rhel": "RedHat",
    "fedora": "RedHat",
    "centos": "RedHat",
    "suse": "Suse",
    "opensuse": "Suse",
    "arch": "Archlinux",
    "alpine": "Alpine",
    "gentoo": "Gentoo",
}


class OSInfo(Protocol):
    """Supplies the operating-system family string."""

    @property
    def family(self) -> str: ...


@dataclass(frozen=True)
class StaticOSInfo:
    """Fixed OS family, for configuration overrides and tests."""

    family: str


class HostOSInfo:
    """OS family of the running host, detected once on first access."""

    def __init__(self, os_release: Path = OS_RELEASE):
        self._os_release = os_release
        self._family: str | None = None

    @property
    def family(self) -> str:
        if self._family is None:
            self._family = detect_os_family(os_release=self._os_release)
            logger.debug(f"Detected OS family: {self._family}")
        return self._family


def _read_os_release(path: Path) -> dict[str, str]:
    values = {}
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return values
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key] = value.strip().strip('"').strip("'")
    return values


def detect_os_family(system: str | None = None, os_release: Path = OS_RELEASE) -> str:
    """Return the OS family of a host.

    Args:
        system: platform.system() value, read from the running host if None
        os_release: os-release file consulted on Linux

    Returns:
        Family name such as "Debian", "RedHat" or "Solaris"; "Linux" for an
        unrecognised distribution
    """
    system = system or platform.system()
    if system != "Linux":
        return _SYSTEM_FAMILIES.get(system, system)

    release = _read_os_release(os_release)
    candidates = [release.get("ID", "")] + release.get("ID_LIKE", "").split()
    for candidate in candidates:
        family = _LINUX_FAMILIES.get(candidate.lower())
        if family:
            return family
    return "Linux"
