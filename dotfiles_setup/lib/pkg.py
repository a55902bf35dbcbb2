from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from ..packages import PackageKind, PackageSpec
from .host import Host
from .osdetect import Platform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageManager:
    name: str
    refresh: Tuple[str, ...]
    query: Dict[PackageKind, Tuple[str, ...]]
    install: Dict[PackageKind, Tuple[str, ...]]
    # True: one install call for all missing packages; False: one per package.
    batch: bool = True
    # Expected query stdout when the query exit code alone is not conclusive.
    installed_marker: str = ""
    kinds: frozenset = field(default_factory=frozenset)


HOMEBREW = PackageManager(
    name="homebrew",
    refresh=(),
    query={
        PackageKind.FORMULA: ("brew", "list"),
        PackageKind.CASK: ("brew", "list", "--cask"),
    },
    install={
        PackageKind.FORMULA: ("brew", "install"),
        PackageKind.CASK: ("brew", "install", "--cask"),
    },
    batch=False,
    kinds=frozenset({PackageKind.FORMULA, PackageKind.CASK}),
)

APT = PackageManager(
    name="apt",
    refresh=("sudo", "apt", "update"),
    query={PackageKind.SYSTEM: ("dpkg-query", "-W", "-f=${Status}")},
    install={PackageKind.SYSTEM: ("sudo", "apt", "install", "-y")},
    installed_marker="install ok installed",
    kinds=frozenset({PackageKind.SYSTEM}),
)

PACMAN = PackageManager(
    name="pacman",
    refresh=("sudo", "pacman", "-Sy"),
    query={PackageKind.SYSTEM: ("pacman", "-Q")},
    install={PackageKind.SYSTEM: ("sudo", "pacman", "-S", "--needed", "--noconfirm")},
    kinds=frozenset({PackageKind.SYSTEM}),
)

MANAGERS: Dict[Platform, PackageManager] = {
    Platform.MACOS: HOMEBREW,
    Platform.UBUNTU: APT,
    Platform.ARCH: PACMAN,
}


def manager_for(platform: Platform) -> PackageManager:
    return MANAGERS[platform]


def _checked_kind(pm: PackageManager, spec: PackageSpec) -> None:
    if spec.kind not in pm.kinds:
        raise ValueError(f"{pm.name} cannot handle {spec.kind.value} package {spec.name!r}")


def is_installed(host: Host, spec: PackageSpec) -> bool:
    pm = manager_for(host.platform)
    _checked_kind(pm, spec)
    r = host.query([*pm.query[spec.kind], spec.name])
    if not r.ok:
        return False
    if pm.installed_marker:
        return pm.installed_marker in r.stdout
    return True


def refresh_index(host: Host) -> None:
    pm = manager_for(host.platform)
    if pm.refresh:
        host.run(list(pm.refresh))


def install(host: Host, specs: Sequence[PackageSpec]) -> None:
    if not specs:
        return
    pm = manager_for(host.platform)
    for spec in specs:
        _checked_kind(pm, spec)

    if pm.batch:
        by_kind: Dict[PackageKind, List[str]] = {}
        for spec in specs:
            by_kind.setdefault(spec.kind, []).append(spec.name)
        for kind, names in by_kind.items():
            host.run([*pm.install[kind], *names])
    else:
        for spec in specs:
            host.run([*pm.install[spec.kind], spec.name])


def missing_packages(host: Host, specs: Sequence[PackageSpec]) -> List[PackageSpec]:
    missing: List[PackageSpec] = []
    for spec in specs:
        if is_installed(host, spec):
            logger.info("  -> %s already installed", spec.name)
        else:
            missing.append(spec)
    return missing
