from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

DEFAULT_LOG_PATH = "~/.local/state/dotfiles-setup/setup.log"
FALLBACK_LOG_NAME = "dotfiles-setup.log"

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

_CONFIGURED_ATTR = "_dotfiles_setup_log_path"


def _open_log_file(requested: Path) -> Tuple[logging.FileHandler, Path]:
    try:
        requested.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(requested, encoding="utf-8"), requested
    except OSError:
        fallback = Path.cwd() / FALLBACK_LOG_NAME
        return logging.FileHandler(fallback, encoding="utf-8"), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
    console_level: int = logging.WARNING,
) -> str:
    """Attach the run's log file (and optionally stderr) to the root logger.

    The file gets everything at `level` and above: every command, every probe
    decision, every step outcome. The console handler stays at warnings unless
    asked otherwise, since per-step progress is printed by `console.Console`.

    When the requested location cannot be created, the log goes to
    `./dotfiles-setup.log` instead and both paths are noted in it.

    Safe to call more than once; later calls only adjust the root level and
    return the path chosen the first time.
    """

    root = logging.getLogger()
    root.setLevel(min(level, console_level))

    existing = getattr(root, _CONFIGURED_ATTR, None)
    if existing is not None:
        return existing

    requested = Path(log_path).expanduser()
    file_handler, actual = _open_log_file(requested)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    root.addHandler(file_handler)

    if also_console:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(console_level)
        stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root.addHandler(stream_handler)

    setattr(root, _CONFIGURED_ATTR, str(actual))
    log = logging.getLogger(__name__)
    if actual != requested:
        log.warning("Cannot write log to %s; using %s", requested, actual)
    log.info("Logging to %s", actual)
    return str(actual)
