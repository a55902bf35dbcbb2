from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .lib.osdetect import Platform

logger = logging.getLogger(__name__)


class StepStatus(str, Enum):
    COMPLETED = "completed"
    REMEDIATED = "remediated"
    MANUAL = "manual"
    SKIPPED = "skipped"
    WARNING = "warning"
    FAILED = "failed"


# Statuses that mean the step changed the machine.
ACTION_STATUSES = frozenset({StepStatus.COMPLETED, StepStatus.REMEDIATED})


@dataclass(frozen=True)
class StepRecord:
    step_id: str
    title: str
    status: StepStatus
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_id": self.step_id,
            "title": self.title,
            "status": self.status.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class ManualStep:
    description: str


class ManualStepCollector:
    """Append-only list of follow-ups for the operator, in discovery order."""

    def __init__(self) -> None:
        self._steps: List[ManualStep] = []

    def record(self, description: str) -> None:
        logger.info("Manual step recorded: %s", description.splitlines()[0] if description else "")
        self._steps.append(ManualStep(description=description))

    def all(self) -> List[ManualStep]:
        return list(self._steps)

    def __len__(self) -> int:
        return len(self._steps)


def render_manual_steps(steps: List[ManualStep]) -> str:
    if not steps:
        return ""
    return "\n\n".join(f"{i}. {s.description}" for i, s in enumerate(steps, start=1)) + "\n"


@dataclass
class RunReport:
    platform: Optional[Platform] = None
    records: List[StepRecord] = field(default_factory=list)
    manual: ManualStepCollector = field(default_factory=ManualStepCollector)
    aborted: bool = False
    abort_reason: Optional[str] = None

    def add(self, record: StepRecord) -> StepRecord:
        self.records.append(record)
        return record

    def _ids(self, *statuses: StepStatus) -> List[str]:
        return [r.step_id for r in self.records if r.status in statuses]

    @property
    def completed(self) -> List[str]:
        return self._ids(StepStatus.COMPLETED, StepStatus.REMEDIATED, StepStatus.MANUAL)

    @property
    def remediated(self) -> List[str]:
        return self._ids(StepStatus.REMEDIATED)

    @property
    def skipped(self) -> List[str]:
        return self._ids(StepStatus.SKIPPED)

    @property
    def actions_taken(self) -> List[str]:
        return self._ids(*ACTION_STATUSES)

    @property
    def warnings(self) -> List[StepRecord]:
        return [r for r in self.records if r.status == StepStatus.WARNING]

    @property
    def manual_steps(self) -> List[ManualStep]:
        return self.manual.all()

    def status_of(self, step_id: str) -> Optional[StepStatus]:
        for r in reversed(self.records):
            if r.step_id == step_id:
                return r.status
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform.value if self.platform else None,
            "records": [r.to_dict() for r in self.records],
            "completed": self.completed,
            "remediated": self.remediated,
            "skipped": self.skipped,
            "warnings": [{"step_id": r.step_id, "message": r.message} for r in self.warnings],
            "manual_steps": [m.description for m in self.manual_steps],
            "aborted": self.aborted,
            "abort_reason": self.abort_reason,
        }


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"yaml", "yml"}:
        return "yaml"
    # Default to JSON for unknown extensions.
    return "json"


def save_report(path: str, report: RunReport) -> None:
    p = Path(path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)

    data = report.to_dict()
    if _detect_format(p) == "yaml":
        p.write_text(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8")
    else:
        p.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.info("Run report written to %s", p)

