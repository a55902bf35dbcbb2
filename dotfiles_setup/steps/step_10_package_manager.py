from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..errors import SetupError
from ..lib import pkg
from ..lib.osdetect import Platform
from ..lib.probe import CommandOnPath, is_satisfied
from ..packages import PackageKind, PackageSpec
from ..pipeline import BaseStep, StepContext
from ..report import StepStatus

logger = logging.getLogger(__name__)

LINUX = frozenset({Platform.UBUNTU, Platform.ARCH})

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
HOMEBREW_PREFIXES = ("/opt/homebrew/bin", "/usr/local/bin")


class InstallHomebrewStep(BaseStep):
    step_id = "10_homebrew"
    title = "Install Homebrew"
    platforms = frozenset({Platform.MACOS})

    def probe(self, ctx: StepContext) -> bool:
        return is_satisfied(CommandOnPath("brew"), ctx.host)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        ctx.host.shell(f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"')

        # Equivalent of `eval "$(brew shellenv)"` for the rest of this run.
        for prefix in HOMEBREW_PREFIXES:
            if (Path(prefix) / "brew").exists():
                ctx.host.prepend_path(prefix)
                break
        return StepStatus.COMPLETED


class InstallZshStep(BaseStep):
    step_id = "11_zsh"
    title = "Install zsh"
    platforms = LINUX

    def probe(self, ctx: StepContext) -> bool:
        return is_satisfied(CommandOnPath("zsh"), ctx.host)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        pkg.refresh_index(ctx.host)
        pkg.install(ctx.host, [PackageSpec("zsh", PackageKind.SYSTEM)])
        return StepStatus.COMPLETED


class DefaultShellStep(BaseStep):
    step_id = "12_default_shell"
    title = "Set zsh as default shell"
    platforms = LINUX
    critical = False
    requires = ("11_zsh",)

    def probe(self, ctx: StepContext) -> bool:
        return "zsh" in Path(ctx.host.login_shell()).name

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        zsh = ctx.host.which("zsh")
        if not zsh:
            raise SetupError("zsh is not on PATH")

        ctx.host.run(["chsh", "-s", zsh])
        logger.warning("Default shell changed to zsh. Log out and back in for this to take effect.")
        ctx.manual_step("Log out and log back in to use zsh as your default shell")
        return StepStatus.COMPLETED
