from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path

from ..errors import SetupError

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"


class LinkOutcome(str, Enum):
    ALREADY_LINKED = "already_linked"
    CREATED = "created"
    BACKED_UP = "backed_up"


def ensure_dir(path: Path, *, dry_run: bool = False) -> bool:
    """Create a directory (and parents). Returns True if it had to be created."""
    if path.is_dir():
        return False
    if dry_run:
        logger.info("Would create directory %s", path)
        return True
    path.mkdir(parents=True, exist_ok=True)
    logger.info("Created directory %s", path)
    return True


def ensure_symlink(link: Path, target: Path, *, dry_run: bool = False) -> LinkOutcome:
    """Make `link` a symlink to `target`.

    Any symlink already at `link` is accepted as is. A real directory or file
    is moved aside to `<link>.backup` first.
    """

    if link.is_symlink():
        return LinkOutcome.ALREADY_LINKED

    outcome = LinkOutcome.CREATED
    if link.exists():
        backup = link.with_name(link.name + BACKUP_SUFFIX)
        if backup.exists() or backup.is_symlink():
            raise SetupError(f"Cannot back up {link}: {backup} already exists")
        logger.warning("%s exists but is not a symlink; moving it to %s", link, backup)
        if not dry_run:
            link.rename(backup)
        outcome = LinkOutcome.BACKED_UP

    if dry_run:
        logger.info("Would link %s -> %s", link, target)
        return outcome

    link.parent.mkdir(parents=True, exist_ok=True)
    os.symlink(target, link)
    logger.info("Linked %s -> %s", link, target)
    return outcome


def ensure_line(path: Path, line: str, *, dry_run: bool = False) -> bool:
    """Append `line` to a text file unless an identical line is present."""

    existing = path.read_text(encoding="utf-8").splitlines() if path.exists() else []
    if line in existing:
        return False
    if dry_run:
        logger.info("Would append to %s: %s", path, line)
        return True

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        if existing and not path.read_text(encoding="utf-8").endswith("\n"):
            fh.write("\n")
        fh.write(line + "\n")
    logger.info("Appended to %s: %s", path, line)
    return True
