from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..errors import SetupError
from ..lib.osdetect import Platform
from ..lib.probe import PathExists, is_satisfied
from ..pipeline import BaseStep, StepContext
from ..report import StepStatus
from .generic import CheckoutStep

logger = logging.getLogger(__name__)

MACOS = frozenset({Platform.MACOS})

UEBERSICHT_URL = "https://tracesof.net/uebersicht/"
UEBERSICHT_WIDGETS = "~/Library/Application Support/Übersicht/widgets"


class WallpaperStep(BaseStep):
    step_id = "40_wallpaper"
    title = "Apply wallpaper"
    platforms = MACOS
    critical = False
    requires = ("30_dotfiles",)

    def probe(self, ctx: StepContext) -> bool:
        r = ctx.host.query(
            ["osascript", "-e", 'tell application "System Events" to get picture of current desktop']
        )
        return r.ok and r.stdout.strip() == str(ctx.path(ctx.config.wallpaper))

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        wallpaper = ctx.path(ctx.config.wallpaper)
        if not wallpaper.is_file():
            raise SetupError(f"Wallpaper not found at {wallpaper}")

        ctx.host.run(
            ["osascript", "-e", f'tell application "Finder" to set desktop picture to POSIX file "{wallpaper}"']
        )
        return StepStatus.COMPLETED


class UebersichtStep(BaseStep):
    step_id = "41_uebersicht"
    title = "Check Übersicht"
    platforms = MACOS
    critical = False

    def probe(self, ctx: StepContext) -> bool:
        return is_satisfied(PathExists(ctx.path(ctx.config.applications_dir) / "Übersicht.app"), ctx.host)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        logger.warning("Übersicht not installed")
        ctx.manual_step(f"Install Übersicht from: {UEBERSICHT_URL}")
        return StepStatus.MANUAL


class SimpleBarWidgetStep(CheckoutStep):
    step_id = "42_simple_bar"
    title = "Install simple-bar widget"
    platforms = MACOS
    requires = ("20_packages",)

    def url(self, ctx: StepContext) -> str:
        return ctx.config.simple_bar_repo

    def dest(self, ctx: StepContext) -> Path:
        return ctx.path(UEBERSICHT_WIDGETS) / "simple-bar"
