from __future__ import annotations

import shlex
from typing import Sequence


class SetupError(RuntimeError):
    pass


class UnsupportedPlatformError(SetupError):
    pass


class CommandError(SetupError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command failed ({returncode}): {' '.join(shlex.quote(a) for a in self.argv)}"
        if stderr.strip():
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)


class CriticalStepFailure(SetupError):
    """A critical step failed; the remaining steps must not run."""

    def __init__(self, step_id: str, cause: BaseException) -> None:
        self.step_id = step_id
        self.cause = cause
        super().__init__(f"{step_id}: {cause}")
