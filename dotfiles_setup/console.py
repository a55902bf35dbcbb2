"""Console output for a provisioning run."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from .report import RunReport, StepRecord, StepStatus, render_manual_steps

RED = "\033[0;31m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
BLUE = "\033[0;34m"
MAGENTA = "\033[0;35m"
CYAN = "\033[0;36m"
BOLD = "\033[1m"
RESET = "\033[0m"

_MARKERS = {
    StepStatus.COMPLETED: (GREEN, "✓"),
    StepStatus.REMEDIATED: (GREEN, "↺"),
    StepStatus.MANUAL: (MAGENTA, "✎"),
    StepStatus.SKIPPED: (BLUE, "→"),
    StepStatus.WARNING: (YELLOW, "⚠"),
    StepStatus.FAILED: (RED, "✗"),
}


class Console:
    """Per-step status lines and the end-of-run summary."""

    def __init__(self, stream: Optional[TextIO] = None, color: Optional[bool] = None) -> None:
        self.stream = stream or sys.stdout
        if color is None:
            color = bool(getattr(self.stream, "isatty", lambda: False)())
        self.color = color

    def _c(self, code: str, text: str) -> str:
        return f"{code}{text}{RESET}" if self.color else text

    def _print(self, text: str = "") -> None:
        print(text, file=self.stream)

    def header(self, title: str) -> None:
        self._print()
        self._print(self._c(CYAN + BOLD, f"== {title} =="))
        self._print()

    def step(self, record: StepRecord) -> None:
        code, marker = _MARKERS[record.status]
        line = f"{self._c(code, marker)} {record.title}"
        if record.status == StepStatus.SKIPPED:
            line += " (already done)"
        elif record.status == StepStatus.REMEDIATED:
            line += " (existing state backed up and repaired)"
        elif record.status == StepStatus.MANUAL:
            line += " (manual follow-up recorded)"
        elif record.message:
            line += f": {record.message.splitlines()[0]}"
        self._print(line)

    def error(self, message: str) -> None:
        self._print(f"{self._c(RED, '✗')} {message}")

    def summary(self, report: RunReport, *, dry_run: bool = False) -> None:
        if report.aborted:
            self.header("Setup Aborted")
            self.error(report.abort_reason or "critical step failed")
        else:
            self.header("Setup Complete!" + (" (dry run)" if dry_run else ""))

        if report.warnings:
            self._print(self._c(YELLOW + BOLD, f"{len(report.warnings)} warning(s):"))
            for r in report.warnings:
                self._print(f"  {self._c(YELLOW, '⚠')} {r.step_id}: {r.message.splitlines()[0] if r.message else ''}")
            self._print()

        rendered = render_manual_steps(report.manual_steps)
        if rendered:
            self._print(self._c(YELLOW + BOLD, "Manual Steps Required:"))
            self._print()
            self._print(rendered)
