from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, FrozenSet, Optional, Protocol, Sequence, Tuple

from .config import SetupConfig
from .errors import CriticalStepFailure
from .lib.host import Host
from .lib.osdetect import Platform
from .report import RunReport, StepRecord, StepStatus

logger = logging.getLogger(__name__)

# Statuses that satisfy a later step's `requires`.
_DONE = frozenset({StepStatus.COMPLETED, StepStatus.REMEDIATED, StepStatus.MANUAL, StepStatus.SKIPPED})


@dataclass
class StepContext:
    host: Host
    config: SetupConfig
    report: RunReport

    @property
    def platform(self) -> Platform:
        return self.host.platform

    @property
    def dry_run(self) -> bool:
        return self.host.dry_run

    def path(self, value: str | Path) -> Path:
        return self.host.expand(value)

    def manual_step(self, description: str) -> None:
        self.report.manual.record(description)


class Step(Protocol):
    """A single idempotent step: a read-only probe guarding an action."""

    step_id: str
    title: str
    platforms: Optional[FrozenSet[Platform]]
    critical: bool
    requires: Tuple[str, ...]

    def probe(self, ctx: StepContext) -> bool:
        ...

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        ...


class BaseStep:
    step_id: str = ""
    title: str = ""
    # None means every platform.
    platforms: Optional[FrozenSet[Platform]] = None
    critical: bool = True
    requires: Tuple[str, ...] = ()

    def probe(self, ctx: StepContext) -> bool:
        return False

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.step_id}>"


def applies_to(step: Step, platform: Platform) -> bool:
    return step.platforms is None or platform in step.platforms


def validate_steps(
    steps: Sequence[Step],
    *,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> None:
    """Reject duplicate ids, dependencies on steps that do not come first, and
    `start_at` / `stop_after` values that name no step."""

    seen: set[str] = set()
    for step in steps:
        if step.step_id in seen:
            raise ValueError(f"Duplicate step id: {step.step_id}")
        for dep in step.requires:
            if dep not in seen:
                raise ValueError(f"Step {step.step_id} requires {dep}, which must come earlier in the list")
        seen.add(step.step_id)

    for flag, value in (("start_at", start_at), ("stop_after", stop_after)):
        if value is not None and value not in seen:
            raise ValueError(f"Unknown step id for {flag}: {value}")


def run_pipeline(
    *,
    ctx: StepContext,
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    on_record: Optional[Callable[[StepRecord], None]] = None,
) -> RunReport:
    """Run steps in order: platform filter, probe, then action.

    A failing critical step aborts the run; a failing non-critical step is
    recorded as a warning and the run continues.
    """

    validate_steps(steps, start_at=start_at, stop_after=stop_after)
    report = ctx.report
    report.platform = ctx.platform

    def emit(step: Step, status: StepStatus, message: str = "") -> None:
        record = report.add(StepRecord(step.step_id, step.title or step.step_id, status, message))
        if on_record is not None:
            on_record(record)

    started = start_at is None
    for step in steps:
        if not started:
            if step.step_id == start_at:
                started = True
            else:
                continue

        if not applies_to(step, ctx.platform):
            logger.debug("Step %s not applicable on %s", step.step_id, ctx.platform)
        else:
            _run_one(ctx, step, report, emit)
            if report.aborted:
                break

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    return report


def _run_one(ctx: StepContext, step: Step, report: RunReport, emit: Callable[..., None]) -> None:
    blocked = [
        dep for dep in step.requires
        if report.status_of(dep) is not None and report.status_of(dep) not in _DONE
    ]
    if blocked:
        msg = f"not run: requires {', '.join(blocked)}, which did not complete"
        logger.warning("Step %s %s", step.step_id, msg)
        emit(step, StepStatus.WARNING, msg)
        return

    try:
        if step.probe(ctx):
            logger.info("Skipping step %s (already done)", step.step_id)
            emit(step, StepStatus.SKIPPED, "already done")
            return

        logger.info("Running step %s", step.step_id)
        status = step.run(ctx) or StepStatus.COMPLETED
    except Exception as e:
        if step.critical:
            failure = CriticalStepFailure(step.step_id, e)
            logger.error("Critical step failed, aborting: %s", failure)
            logger.debug("Traceback for %s", step.step_id, exc_info=True)
            report.aborted = True
            report.abort_reason = str(failure)
            emit(step, StepStatus.FAILED, str(e))
        else:
            logger.warning("Step %s failed, continuing: %s", step.step_id, e)
            emit(step, StepStatus.WARNING, str(e))
        return

    emit(step, status)
