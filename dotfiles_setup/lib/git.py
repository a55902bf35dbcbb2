from __future__ import annotations

import logging
from pathlib import Path

from .host import Host

logger = logging.getLogger(__name__)


def is_checkout(path: Path) -> bool:
    return (path / ".git").exists()


def clone(host: Host, url: str, dest: Path) -> None:
    if not host.dry_run:
        dest.parent.mkdir(parents=True, exist_ok=True)
    host.run(["git", "clone", url, str(dest)])


def pull(host: Host, dest: Path) -> None:
    host.run(["git", "-C", str(dest), "pull"])


def is_up_to_date(host: Host, dest: Path) -> bool:
    """Compare local HEAD with the remote default branch without fetching."""

    local = host.query(["git", "-C", str(dest), "rev-parse", "HEAD"])
    remote = host.query(["git", "-C", str(dest), "ls-remote", "origin", "HEAD"])
    if not (local.ok and remote.ok):
        return False
    remote_sha = remote.stdout.split()[0] if remote.stdout.split() else ""
    current = local.stdout.strip() == remote_sha
    logger.debug("Checkout %s up to date: %s", dest, current)
    return current
