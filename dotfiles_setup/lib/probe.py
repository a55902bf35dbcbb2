"""Read-only capability probes.

A probe answers "does this resource already exist in the state the matching
action would leave it in?". Probes never mutate the host, so they are safe to
call any number of times.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..packages import PackageSpec
from . import pkg
from .host import Host

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandOnPath:
    name: str


@dataclass(frozen=True)
class PathExists:
    path: Path


@dataclass(frozen=True)
class PathIsSymlink:
    path: Path


@dataclass(frozen=True)
class PackageInstalled:
    spec: PackageSpec


ResourceRef = Union[CommandOnPath, PathExists, PathIsSymlink, PackageInstalled]


def is_satisfied(ref: ResourceRef, host: Host) -> bool:
    if isinstance(ref, CommandOnPath):
        found = host.which(ref.name) is not None
    elif isinstance(ref, PathIsSymlink):
        found = host.expand(ref.path).is_symlink()
    elif isinstance(ref, PathExists):
        # exists() follows links; a dangling symlink still occupies the path.
        p = host.expand(ref.path)
        found = p.exists() or p.is_symlink()
    elif isinstance(ref, PackageInstalled):
        found = pkg.is_installed(host, ref.spec)
    else:
        raise TypeError(f"Unknown resource reference: {ref!r}")

    logger.debug("Probe %s -> %s", ref, found)
    return found
