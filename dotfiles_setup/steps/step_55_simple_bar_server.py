from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from ..errors import SetupError
from ..lib.osdetect import Platform
from ..lib.probe import CommandOnPath, PathExists, is_satisfied
from ..pipeline import BaseStep, StepContext
from ..report import StepStatus
from .generic import CheckoutStep

logger = logging.getLogger(__name__)

MACOS = frozenset({Platform.MACOS})

SERVER_NAME = "simple-bar-server"


def server_dir(ctx: StepContext) -> Path:
    return ctx.path(ctx.config.dev_dir) / SERVER_NAME


def pm2_app_online(jlist_stdout: str, name: str) -> bool:
    """True if `pm2 jlist` output lists `name` with status online."""
    try:
        apps = json.loads(jlist_stdout or "[]")
    except json.JSONDecodeError:
        return False
    if not isinstance(apps, list):
        return False
    for app in apps:
        if not isinstance(app, dict) or app.get("name") != name:
            continue
        if (app.get("pm2_env") or {}).get("status") == "online":
            return True
    return False


def pm2_startup_command(output: str) -> Optional[str]:
    """Extract the sudo command that `pm2 startup` asks the user to run."""
    for line in output.splitlines():
        if "sudo env PATH" in line:
            return line.strip()
    return None


class SimpleBarServerCheckoutStep(CheckoutStep):
    step_id = "55_simple_bar_server"
    title = "Clone simple-bar-server"
    platforms = MACOS
    requires = ("50_dev_directory",)

    def url(self, ctx: StepContext) -> str:
        return ctx.config.simple_bar_server_repo

    def dest(self, ctx: StepContext) -> Path:
        return server_dir(ctx)


class SimpleBarServerDepsStep(BaseStep):
    step_id = "56_simple_bar_server_deps"
    title = "Install simple-bar-server dependencies"
    platforms = MACOS
    requires = ("51_nodejs", "55_simple_bar_server")

    def probe(self, ctx: StepContext) -> bool:
        return is_satisfied(PathExists(server_dir(ctx) / "node_modules"), ctx.host)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        ctx.host.run(["npm", "install"], cwd=server_dir(ctx))
        return StepStatus.COMPLETED


class Pm2Step(BaseStep):
    step_id = "57_pm2"
    title = "Install pm2"
    platforms = MACOS
    requires = ("51_nodejs",)

    def probe(self, ctx: StepContext) -> bool:
        return is_satisfied(CommandOnPath("pm2"), ctx.host)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        ctx.host.run(["npm", "install", "pm2", "-g"])
        return StepStatus.COMPLETED


class SimpleBarServerProcessStep(BaseStep):
    step_id = "58_simple_bar_server_process"
    title = "Start simple-bar-server under pm2"
    platforms = MACOS
    critical = False
    requires = ("56_simple_bar_server_deps", "57_pm2")

    def probe(self, ctx: StepContext) -> bool:
        r = ctx.host.query(["pm2", "jlist"])
        return r.ok and pm2_app_online(r.stdout, SERVER_NAME)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        ctx.host.run(["pm2", "delete", SERVER_NAME], check=False)
        ctx.host.run(["pm2", "startOrRestart", "ecosystem.config.cjs"], cwd=server_dir(ctx))
        ctx.host.run(["pm2", "save"])
        return StepStatus.COMPLETED


class Pm2StartupStep(BaseStep):
    """Register pm2 as a LaunchAgent so the server survives reboots."""

    step_id = "59_pm2_startup"
    title = "Configure pm2 startup"
    platforms = MACOS
    critical = False
    requires = ("57_pm2",)

    def _plist(self, ctx: StepContext) -> Path:
        return ctx.host.home / "Library" / "LaunchAgents" / f"pm2.{ctx.host.user}.plist"

    def probe(self, ctx: StepContext) -> bool:
        return is_satisfied(PathExists(self._plist(ctx)), ctx.host)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        if ctx.dry_run:
            logger.info("Would run pm2 startup and the sudo command it prints")
            return StepStatus.COMPLETED

        # Without root, `pm2 startup` only prints the command to run.
        r = ctx.host.query(["pm2", "startup"])
        command = pm2_startup_command(r.output)
        if not command:
            raise SetupError("pm2 startup did not print a command to run")

        question = (
            "pm2 needs to be configured to start simple-bar-server on login. "
            "This runs a command with sudo privileges. Run it now?"
        )
        if ctx.host.confirm(question):
            ctx.host.shell(command)
            return StepStatus.COMPLETED

        logger.warning("Skipping pm2 startup configuration")
        ctx.manual_step("Configure pm2 to start on boot by running: pm2 startup\n    Then run the sudo command it provides")
        return StepStatus.MANUAL
