from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from ..lib import pkg
from ..lib.fsops import LinkOutcome, ensure_symlink
from ..lib.osdetect import Platform
from ..lib.probe import CommandOnPath, PathExists, PathIsSymlink, is_satisfied
from ..packages import PackageKind, PackageSpec
from ..pipeline import BaseStep, StepContext
from ..report import StepStatus

logger = logging.getLogger(__name__)

MACOS = frozenset({Platform.MACOS})
LINUX = frozenset({Platform.UBUNTU, Platform.ARCH})

MOUSECAPE_URL = "https://github.com/sdmj76/Mousecape-swiftUI/releases/latest"
QUARANTINE_ATTR = "com.apple.quarantine"
CURSOR_THEME = "Banana"


def mousecape_app(ctx: StepContext) -> Path:
    return ctx.path(ctx.config.applications_dir) / "Mousecape.app"


class MousecapeQuarantineStep(BaseStep):
    step_id = "70_mousecape_quarantine"
    title = "Remove Mousecape quarantine attribute"
    platforms = MACOS
    critical = False

    def probe(self, ctx: StepContext) -> bool:
        app = mousecape_app(ctx)
        if not app.exists():
            return True
        return not ctx.host.query(["xattr", "-p", QUARANTINE_ATTR, str(app)]).ok

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        ctx.host.run(["xattr", "-d", QUARANTINE_ATTR, str(mousecape_app(ctx))])
        return StepStatus.COMPLETED


class MousecapeCapesLinkStep(BaseStep):
    """Point Mousecape's capes directory at the one shipped in the dotfiles."""

    step_id = "71_mousecape_capes"
    title = "Link Mousecape capes directory"
    platforms = MACOS
    critical = False

    def _link(self, ctx: StepContext) -> Path:
        return ctx.path("~/Library/Application Support/Mousecape/capes")

    def probe(self, ctx: StepContext) -> bool:
        return is_satisfied(PathIsSymlink(self._link(ctx)), ctx.host)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        outcome = ensure_symlink(self._link(ctx), ctx.path("~/.config/mousescape/capes"), dry_run=ctx.dry_run)
        if outcome == LinkOutcome.BACKED_UP:
            return StepStatus.REMEDIATED
        return StepStatus.COMPLETED


class MousecapeStep(BaseStep):
    """Mousecape has no CLI; installing and configuring it is left to the operator."""

    step_id = "72_mousecape"
    title = "Mousecape follow-up"
    platforms = MACOS
    critical = False

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        if mousecape_app(ctx).exists():
            ctx.manual_step(
                "Configure Mousecape:\n"
                "    1. Open Mousecape\n"
                "    2. Open Settings > General: Install 'Mousescape Helper' and enable 'Apply Last Cape on Launch'\n"
                "    3. Save settings\n"
                "    4. Select the Banana cursor to apply it"
            )
        else:
            logger.warning("Mousecape not installed")
            ctx.manual_step(
                f"Install Mousecape from: {MOUSECAPE_URL}\n"
                "    Then run this script again to remove its quarantine attribute"
            )
        return StepStatus.MANUAL


class BananaCursorStep(BaseStep):
    step_id = "75_banana_cursor"
    title = "Install Banana cursor theme"
    platforms = LINUX
    critical = False

    def _theme_dir(self, ctx: StepContext) -> Path:
        return ctx.path(ctx.config.icons_dir) / CURSOR_THEME

    def probe(self, ctx: StepContext) -> bool:
        return is_satisfied(PathExists(self._theme_dir(ctx)), ctx.host)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        url = ctx.config.banana_cursor_url
        archive = Path(urlparse(url).path).name

        with tempfile.TemporaryDirectory(prefix="dotfiles-setup-") as tmp:
            ctx.host.run(["wget", "-q", url], cwd=tmp)
            ctx.host.run(["tar", "-xf", archive], cwd=tmp)
            ctx.host.run(["sudo", "mv", str(Path(tmp) / CURSOR_THEME), str(ctx.path(ctx.config.icons_dir))])
        return StepStatus.COMPLETED


class GnomeTweaksStep(BaseStep):
    step_id = "76_gnome_tweaks"
    title = "Install GNOME Tweaks"
    platforms = LINUX
    critical = False

    def probe(self, ctx: StepContext) -> bool:
        return is_satisfied(CommandOnPath("gnome-tweaks"), ctx.host)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        if ctx.platform == Platform.UBUNTU:
            pkg.refresh_index(ctx.host)
        pkg.install(ctx.host, [PackageSpec("gnome-tweaks", PackageKind.SYSTEM)])
        return StepStatus.COMPLETED


class CursorThemeStep(BaseStep):
    step_id = "77_cursor_theme"
    title = "Select Banana cursor"
    platforms = LINUX
    critical = False
    requires = ("75_banana_cursor",)

    def probe(self, ctx: StepContext) -> bool:
        r = ctx.host.query(["gsettings", "get", "org.gnome.desktop.interface", "cursor-theme"])
        return r.ok and r.stdout.strip().strip("'\"") == CURSOR_THEME

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        ctx.manual_step(
            "Configure Banana cursor:\n"
            "    1. Open GNOME Tweaks: gnome-tweaks\n"
            "    2. Go to: Appearance > Cursor > Select 'Banana'\n"
            "    3. (Optional) In Settings app: Accessibility > Cursor Size > Large for a bigger banana"
        )
        return StepStatus.MANUAL
