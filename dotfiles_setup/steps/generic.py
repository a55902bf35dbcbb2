from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..errors import SetupError
from ..lib import git
from ..lib.fsops import ensure_dir
from ..lib.probe import PathExists, is_satisfied
from ..pipeline import BaseStep, StepContext
from ..report import StepStatus

logger = logging.getLogger(__name__)


class CheckoutStep(BaseStep):
    """Clone a git repository, or pull it when `update_checkouts` is set.

    Satisfied when the checkout exists (and, with `update_checkouts`, when its
    HEAD matches the remote).
    """

    def url(self, ctx: StepContext) -> str:
        raise NotImplementedError

    def dest(self, ctx: StepContext) -> Path:
        raise NotImplementedError

    def probe(self, ctx: StepContext) -> bool:
        dest = self.dest(ctx)
        if not git.is_checkout(dest):
            return False
        return (not ctx.config.update_checkouts) or git.is_up_to_date(ctx.host, dest)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        dest = self.dest(ctx)
        if git.is_checkout(dest):
            logger.info("Pulling latest changes in %s", dest)
            git.pull(ctx.host, dest)
        elif dest.exists():
            raise SetupError(f"{dest} exists but is not a git checkout")
        else:
            git.clone(ctx.host, self.url(ctx), dest)
        return StepStatus.COMPLETED


class DirectoryStep(BaseStep):
    def dest(self, ctx: StepContext) -> Path:
        raise NotImplementedError

    def probe(self, ctx: StepContext) -> bool:
        return is_satisfied(PathExists(self.dest(ctx)), ctx.host)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        ensure_dir(self.dest(ctx), dry_run=ctx.dry_run)
        return StepStatus.COMPLETED
