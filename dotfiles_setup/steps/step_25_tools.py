from __future__ import annotations

import logging
from typing import Optional

from ..errors import SetupError
from ..lib.fsops import ensure_line
from ..lib.probe import CommandOnPath, is_satisfied
from ..packages import ToolSpec
from ..pipeline import BaseStep, StepContext
from ..report import StepStatus

logger = logging.getLogger(__name__)


class InstallToolStep(BaseStep):
    """Install a tool that the platform's standard repositories do not carry."""

    requires = ("20_packages",)

    def __init__(self, tool: ToolSpec) -> None:
        self.tool = tool
        self.step_id = f"25_tool_{tool.name}"
        self.title = f"Install {tool.name}"
        self.platforms = tool.platforms

    def probe(self, ctx: StepContext) -> bool:
        return is_satisfied(CommandOnPath(self.tool.command), ctx.host)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        for method in self.tool.methods.get(ctx.platform, []):
            if method.when and not ctx.host.which(method.when):
                logger.debug("%s: %s not available, trying next method", self.tool.name, method.when)
                continue

            logger.info("Installing %s%s", self.tool.name, f" via {method.when}" if method.when else "")
            ctx.host.shell(method.run)
            if not ctx.dry_run and not is_satisfied(CommandOnPath(self.tool.command), ctx.host):
                raise SetupError(
                    f"{self.tool.name} install finished but {self.tool.command!r} is still not on PATH"
                )
            if method.shell_init:
                ensure_line(ctx.path("~/.zshrc"), method.shell_init, dry_run=ctx.dry_run)
            return StepStatus.COMPLETED

        raise SetupError(f"No install method for {self.tool.name} is available on {ctx.platform}")
