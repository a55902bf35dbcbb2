from __future__ import annotations

import getpass
import logging
import os
import pwd
import shutil
import sys
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from .command import CmdResult, fmt_argv, run_cmd
from .osdetect import Platform

logger = logging.getLogger(__name__)


class Host:
    """The machine being provisioned.

    Steps never touch subprocess or PATH lookups directly; they go through a
    Host so a run can be simulated end to end.

    - run(): mutating command, honours dry_run, raises on failure by default.
      Output goes straight to the terminal unless `capture` is set.
    - shell(): a bash script run with pipefail, so `curl ... | sh` fails when
      the download does.
    - query(): read-only command for probes. Always executes (even in dry-run),
      captures output and never raises; a missing binary reports exit code 127.
    """

    def __init__(
        self,
        *,
        platform: Platform,
        home: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        user: Optional[str] = None,
        extra_path: Iterable[str] = (),
        dry_run: bool = False,
        assume_yes: bool = False,
        interactive: Optional[bool] = None,
    ) -> None:
        self.platform = platform
        self.home = Path(home) if home is not None else Path.home()
        self.env = dict(os.environ if env is None else env)
        self.user = user or self.env.get("USER") or getpass.getuser()
        self.dry_run = dry_run
        self.assume_yes = assume_yes
        self.interactive = sys.stdin.isatty() if interactive is None else interactive

        for entry in extra_path:
            self.append_path(str(self.expand(entry)))

    def expand(self, value: str | Path) -> Path:
        s = str(value)
        if s == "~":
            return self.home
        if s.startswith("~/"):
            return self.home / s[2:]
        return Path(s)

    def append_path(self, directory: str) -> None:
        parts = [p for p in self.env.get("PATH", "").split(os.pathsep) if p]
        if directory not in parts:
            parts.append(directory)
            self.env["PATH"] = os.pathsep.join(parts)

    def prepend_path(self, directory: str) -> None:
        parts = [p for p in self.env.get("PATH", "").split(os.pathsep) if p and p != directory]
        self.env["PATH"] = os.pathsep.join([directory, *parts])

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name, path=self.env.get("PATH"))

    def login_shell(self) -> str:
        """Shell recorded in the user database (what chsh changes)."""
        try:
            return pwd.getpwnam(self.user).pw_shell
        except KeyError:
            return self.env.get("SHELL", "")

    def run(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        cwd: Optional[str | Path] = None,
        input_text: Optional[str] = None,
        capture: bool = False,
    ) -> CmdResult:
        return run_cmd(
            argv,
            check=check,
            env=self.env,
            cwd=str(cwd) if cwd is not None else None,
            input_text=input_text,
            dry_run=self.dry_run,
            capture=capture,
        )

    def shell(self, script: str, *, check: bool = True, cwd: Optional[str | Path] = None) -> CmdResult:
        return self.run(["bash", "-o", "pipefail", "-c", script], check=check, cwd=cwd)

    def query(self, argv: Sequence[str], *, cwd: Optional[str | Path] = None) -> CmdResult:
        try:
            return run_cmd(argv, check=False, env=self.env, cwd=str(cwd) if cwd is not None else None)
        except FileNotFoundError:
            logger.debug("Probe command not found: %s", fmt_argv(argv))
            return CmdResult(argv=list(argv), returncode=127, stdout="", stderr=f"{argv[0]}: not found")

    def confirm(self, question: str) -> bool:
        if self.assume_yes:
            logger.info("Auto-confirmed: %s", question)
            return True
        if not self.interactive:
            logger.info("Not interactive, declining: %s", question)
            return False
        answer = input(f"{question} [y/N]: ").strip().lower()
        return answer in {"y", "yes"}
