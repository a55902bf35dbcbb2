from __future__ import annotations

import logging
from typing import List, Optional

from ..lib import pkg
from ..lib.probe import PackageInstalled, is_satisfied
from ..packages import PackageSpec, PackageTable, load_package_table, packages_for
from ..pipeline import BaseStep, StepContext
from ..report import StepStatus

logger = logging.getLogger(__name__)


class InstallPackagesStep(BaseStep):
    step_id = "20_packages"
    title = "Install packages"
    requires = ("10_homebrew",)

    def __init__(self, table: Optional[PackageTable] = None) -> None:
        self._table = table

    def _packages(self, ctx: StepContext) -> List[PackageSpec]:
        if self._table is None:
            self._table = load_package_table(ctx.config.packages_manifest)
        return packages_for(ctx.platform, self._table)

    def probe(self, ctx: StepContext) -> bool:
        return all(is_satisfied(PackageInstalled(spec), ctx.host) for spec in self._packages(ctx))

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        missing = pkg.missing_packages(ctx.host, self._packages(ctx))
        logger.info(
            "Installing %d package(s) on %s: %s",
            len(missing),
            ctx.platform,
            ", ".join(s.name for s in missing),
        )
        pkg.refresh_index(ctx.host)
        pkg.install(ctx.host, missing)
        return StepStatus.COMPLETED
