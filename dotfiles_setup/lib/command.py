from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from ..errors import CommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr together; some tools print instructions on either."""
        return "\n".join(s for s in (self.stdout, self.stderr) if s)


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def _log_stream(label: str, text: str) -> None:
    for line in text.strip().splitlines():
        logger.debug("%s %s", label, line)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[str] = None,
    input_text: Optional[str] = None,
    dry_run: bool = False,
    capture: bool = True,
) -> CmdResult:
    """Run one external command.

    Every call lands in the log as `CMD ...` (with the working directory when
    one is given). With `capture` the output is returned and also logged at
    debug level; without it the command shares the terminal, so progress and
    prompts (sudo, installers waiting for RETURN) reach the operator and the
    result carries no output. In dry-run mode nothing executes and a
    successful empty result is returned. A missing binary surfaces as
    FileNotFoundError.
    """

    cmd = list(argv)
    where = f" (in {cwd})" if cwd else ""
    if dry_run:
        logger.info("CMD [dry-run] %s%s", fmt_argv(cmd), where)
        return CmdResult(argv=cmd, returncode=0)

    logger.info("CMD %s%s", fmt_argv(cmd), where)
    proc = subprocess.run(
        cmd,
        input=input_text,
        capture_output=capture,
        text=True,
        cwd=cwd,
        env=dict(env) if env is not None else os.environ.copy(),
    )
    stdout = proc.stdout or ""
    stderr = proc.stderr or ""
    _log_stream("stdout:", stdout)
    _log_stream("stderr:", stderr)

    result = CmdResult(argv=cmd, returncode=proc.returncode, stdout=stdout, stderr=stderr)
    if check and not result.ok:
        raise CommandError(cmd, result.returncode, result.stderr)
    return result
