"""Dependency installation through the distribution package manager.

Supports apt (Debian/Ubuntu family), dnf (Fedora/RHEL family), pacman
(Arch family) and zypper (openSUSE). Installation needs root; nothing is
attempted otherwise.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from amdconv.core.subprocess_utils import run_command
from amdconv.exceptions import InstallError
from amdconv.tools.models import ToolRegistry

logger = logging.getLogger(__name__)

OS_RELEASE_PATH = Path("/etc/os-release")

# Legacy release files checked when /etc/os-release is missing
_RELEASE_FILES: tuple[tuple[str, str], ...] = (
    ("/etc/debian_version", "debian"),
    ("/etc/fedora-release", "fedora"),
    ("/etc/arch-release", "arch"),
    ("/etc/SuSE-release", "suse"),
)


class PackageManager(Enum):
    """Supported package managers."""

    APT = "apt"
    DNF = "dnf"
    PACMAN = "pacman"
    ZYPPER = "zypper"


_DISTRO_MANAGERS: Mapping[str, PackageManager] = MappingProxyType(
    {
        "ubuntu": PackageManager.APT,
        "debian": PackageManager.APT,
        "linuxmint": PackageManager.APT,
        "pop": PackageManager.APT,
        "popos": PackageManager.APT,
        "fedora": PackageManager.DNF,
        "rhel": PackageManager.DNF,
        "centos": PackageManager.DNF,
        "almalinux": PackageManager.DNF,
        "rocky": PackageManager.DNF,
        "arch": PackageManager.PACMAN,
        "manjaro": PackageManager.PACMAN,
        "endeavouros": PackageManager.PACMAN,
        "opensuse": PackageManager.ZYPPER,
        "suse": PackageManager.ZYPPER,
        "sles": PackageManager.ZYPPER,
    }
)

PACKAGES: Mapping[PackageManager, tuple[str, ...]] = MappingProxyType(
    {
        PackageManager.APT: (
            "ffmpeg",
            "vainfo",
            "mesa-va-drivers",
            "libva-drm2",
            "libva-x11-2",
            "va-driver-all",
            "mesa-utils",
            "pciutils",
        ),
        PackageManager.DNF: (
            "ffmpeg",
            "ffmpeg-libs",
            "mesa-va-drivers",
            "libva-utils",
            "pciutils",
        ),
        PackageManager.PACMAN: (
            "ffmpeg",
            "libva-utils",
            "mesa-utils",
            "libva-mesa-driver",
            "pciutils",
        ),
        PackageManager.ZYPPER: (
            "ffmpeg",
            "libva-utils",
            "Mesa-dri",
            "pciutils",
        ),
    }
)

# Tools whose absence triggers an install
_CHECKED_TOOLS = ("ffmpeg", "ffprobe", "vainfo", "lspci")

RPMFUSION_URL = (
    "https://download1.rpmfusion.org/free/{family}/"
    "rpmfusion-free-release-{version}.noarch.rpm"
)


@dataclass(frozen=True)
class Distribution:
    """Identified Linux distribution."""

    id: str
    like: tuple[str, ...] = ()
    version_id: str | None = None

    @property
    def package_manager(self) -> PackageManager | None:
        """Package manager for this distribution or one it derives from."""
        for candidate in (self.id, *self.like):
            if candidate.startswith("opensuse"):
                return PackageManager.ZYPPER
            if candidate in _DISTRO_MANAGERS:
                return _DISTRO_MANAGERS[candidate]
        return None


def parse_os_release(text: str) -> dict[str, str]:
    """Parse /etc/os-release ``KEY=value`` lines, unquoting values."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip().strip("\"'")
    return values


def detect_distribution(os_release: Path = OS_RELEASE_PATH) -> Distribution:
    """Identify the running distribution.

    Returns:
        Distribution with id "unknown" if nothing matches.
    """
    try:
        values = parse_os_release(os_release.read_text(encoding="utf-8"))
    except OSError:
        values = {}

    if values.get("ID"):
        return Distribution(
            id=values["ID"].lower(),
            like=tuple(values.get("ID_LIKE", "").lower().split()),
            version_id=values.get("VERSION_ID"),
        )

    for marker, distro_id in _RELEASE_FILES:
        if Path(marker).exists():
            return Distribution(id=distro_id)
    return Distribution(id="unknown")


def install_commands(
    manager: PackageManager, distro: Distribution
) -> list[list[str]]:
    """Build the package manager commands for a full dependency install."""
    packages = list(PACKAGES[manager])
    if manager is PackageManager.APT:
        return [["apt-get", "update"], ["apt-get", "install", "-y", *packages]]
    if manager is PackageManager.DNF:
        # ffmpeg lives in RPM Fusion on Fedora and EL
        family = "fedora" if distro.id == "fedora" else "el"
        version = (distro.version_id or "").split(".")[0]
        commands: list[list[str]] = []
        if version:
            commands.append(
                [
                    "dnf",
                    "install",
                    "-y",
                    RPMFUSION_URL.format(family=family, version=version),
                ]
            )
        commands.append(["dnf", "install", "-y", *packages])
        return commands
    if manager is PackageManager.PACMAN:
        return [["pacman", "-S", "--needed", "--noconfirm", *packages]]
    return [["zypper", "--non-interactive", "install", *packages]]


@dataclass(frozen=True)
class InstallResult:
    """Outcome of install_dependencies."""

    missing: tuple[str, ...]
    distribution: Distribution | None = None
    package_manager: PackageManager | None = None
    commands: tuple[tuple[str, ...], ...] = ()

    @property
    def already_satisfied(self) -> bool:
        return not self.missing


def install_dependencies(
    registry: ToolRegistry,
    *,
    os_release: Path = OS_RELEASE_PATH,
    euid: int | None = None,
    runner: Callable[..., tuple[str, str, int]] = run_command,
) -> InstallResult:
    """Install missing tools with the system package manager.

    Args:
        registry: Current tool detection results.
        os_release: Path to the os-release file.
        euid: Effective user id (defaults to os.geteuid()).
        runner: Command runner, injectable for tests.

    Returns:
        InstallResult describing what was (or did not need to be) done.

    Raises:
        InstallError: If not running as root, the distribution is not
            supported, or a package command fails.
    """
    missing = tuple(name for name in _CHECKED_TOOLS if not registry.is_available(name))
    if not missing:
        logger.info("All dependencies are already installed.")
        return InstallResult(missing=())

    logger.info("Missing dependencies: %s", " ".join(missing))

    distro = detect_distribution(os_release)
    manager = distro.package_manager
    logger.info("Detected distribution: %s", distro.id)
    if manager is None:
        raise InstallError(
            f"Unsupported distribution for automatic installation: {distro.id}"
        )
    logger.info("Using package manager: %s", manager.value)

    if (euid if euid is not None else os.geteuid()) != 0:
        raise InstallError(
            "Dependencies need to be installed, but amdconv is not running as "
            "root. Please run: sudo amdconv --install-deps"
        )

    commands = install_commands(manager, distro)
    for command in commands:
        logger.info("Running: %s", " ".join(command))
        try:
            stdout, stderr, rc = runner(command, timeout=None)
        except OSError as e:
            raise InstallError(f"Could not run {command[0]}: {e}") from e
        for line in (stdout + stderr).splitlines():
            logger.debug("%s: %s", command[0], line)
        if rc != 0:
            # RPM Fusion may already be installed; only the package step is fatal
            if manager is PackageManager.DNF and command is not commands[-1]:
                logger.warning("Enabling RPM Fusion failed (exit %d), continuing", rc)
                continue
            raise InstallError(f"{' '.join(command[:3])} failed with exit code {rc}")

    logger.info("Dependencies installed successfully.")
    return InstallResult(
        missing=missing,
        distribution=distro,
        package_manager=manager,
        commands=tuple(tuple(c) for c in commands),
    )
