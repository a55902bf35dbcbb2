from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..pipeline import BaseStep, StepContext
from ..report import StepStatus
from .generic import CheckoutStep

logger = logging.getLogger(__name__)


class DotfilesCheckoutStep(CheckoutStep):
    step_id = "30_dotfiles"
    title = "Clone dotfiles repository"
    requires = ("20_packages",)

    def url(self, ctx: StepContext) -> str:
        return ctx.config.dotfiles_repo

    def dest(self, ctx: StepContext) -> Path:
        return ctx.path(ctx.config.dotfiles_dir)


class StowDotfilesStep(BaseStep):
    """Link the dotfiles tree into $HOME with GNU stow."""

    step_id = "31_stow_dotfiles"
    title = "Stow dotfiles"
    requires = ("30_dotfiles",)

    def _argv(self, ctx: StepContext, *flags: str) -> list[str]:
        return ["stow", *flags, "--target", str(ctx.host.home), "."]

    def probe(self, ctx: StepContext) -> bool:
        # Simulation mode reports every link it would create as "LINK: ...".
        r = ctx.host.query(self._argv(ctx, "--no", "--verbose"), cwd=ctx.path(ctx.config.dotfiles_dir))
        return r.ok and "LINK:" not in r.stderr

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        ctx.host.run(self._argv(ctx, "--restow"), cwd=ctx.path(ctx.config.dotfiles_dir))
        return StepStatus.COMPLETED
