from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..pipeline import BaseStep, StepContext
from ..report import StepStatus
from .generic import DirectoryStep


class DevDirectoryStep(DirectoryStep):
    step_id = "50_dev_directory"
    title = "Create development directory"

    def dest(self, ctx: StepContext) -> Path:
        return ctx.path(ctx.config.dev_dir)


class NodeStep(BaseStep):
    step_id = "51_nodejs"
    title = "Install Node.js LTS with mise"
    requires = ("20_packages",)

    def probe(self, ctx: StepContext) -> bool:
        return ctx.host.query(["mise", "which", "node"]).ok

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        ctx.host.run(["mise", "use", "--global", "node@lts"])
        return StepStatus.COMPLETED
