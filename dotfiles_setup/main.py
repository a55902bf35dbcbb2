from __future__ import annotations

import argparse
import logging
from typing import List, Optional

import yaml

from .config import SetupConfig, load_config
from .console import Console
from .errors import UnsupportedPlatformError
from .lib.host import Host
from .lib.osdetect import detect
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .packages import load_tools
from .pipeline import Step, StepContext, applies_to, run_pipeline, validate_steps
from .report import RunReport, save_report
from .steps import (
    BananaCursorStep,
    CursorThemeStep,
    DefaultShellStep,
    DevDirectoryStep,
    DotfilesCheckoutStep,
    GnomeTweaksStep,
    InstallHomebrewStep,
    InstallPackagesStep,
    InstallToolStep,
    InstallZshStep,
    MousecapeCapesLinkStep,
    MousecapeQuarantineStep,
    MousecapeStep,
    NodeStep,
    Pm2StartupStep,
    Pm2Step,
    SimpleBarServerCheckoutStep,
    SimpleBarServerDepsStep,
    SimpleBarServerProcessStep,
    SimpleBarWidgetStep,
    SipStatusStep,
    StowDotfilesStep,
    UebersichtStep,
    WallpaperStep,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_UNSUPPORTED = 2
EXIT_USAGE = 3


def build_steps(config: Optional[SetupConfig] = None) -> List[Step]:
    """The full provisioning sequence. Order matters: later steps rely on
    earlier post-conditions (package manager, packages, checkouts, node)."""

    config = config or SetupConfig()
    tools = load_tools(config.tools_manifest)
    return [
        InstallHomebrewStep(),
        InstallZshStep(),
        DefaultShellStep(),
        InstallPackagesStep(),
        *[InstallToolStep(tool) for tool in tools],
        DotfilesCheckoutStep(),
        StowDotfilesStep(),
        WallpaperStep(),
        UebersichtStep(),
        SimpleBarWidgetStep(),
        DevDirectoryStep(),
        NodeStep(),
        SimpleBarServerCheckoutStep(),
        SimpleBarServerDepsStep(),
        Pm2Step(),
        SimpleBarServerProcessStep(),
        Pm2StartupStep(),
        SipStatusStep(),
        MousecapeQuarantineStep(),
        MousecapeCapesLinkStep(),
        MousecapeStep(),
        BananaCursorStep(),
        GnomeTweaksStep(),
        CursorThemeStep(),
    ]


def run(
    *,
    config_path: Optional[str] = None,
    log_path: str = DEFAULT_LOG_PATH,
    report_path: Optional[str] = None,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    dry_run: Optional[bool] = None,
    assume_yes: Optional[bool] = None,
    update: Optional[bool] = None,
    verbose: bool = False,
    host: Optional[Host] = None,
    console: Optional[Console] = None,
) -> RunReport:
    """Run the provisioning sequence once and return its report.

    Raises UnsupportedPlatformError before any step runs when the host is not
    recognized, and ValueError for a bad step list or unknown `start_at` /
    `stop_after` id.
    """

    actual_log_path = configure_logging(
        log_path=log_path,
        console_level=logging.INFO if verbose else logging.WARNING,
    )

    config = load_config(config_path).with_overrides(
        dry_run=dry_run,
        assume_yes=assume_yes,
        update_checkouts=update,
    )
    console = console or Console()

    if host is None:
        host = Host(
            platform=detect(),
            extra_path=config.extra_path,
            dry_run=config.dry_run,
            assume_yes=config.assume_yes,
        )

    console.header(f"Detected OS: {host.platform.value.upper()}")
    logger.info("Setup starting (platform=%s dry_run=%s log=%s)", host.platform, host.dry_run, actual_log_path)

    steps = build_steps(config)
    validate_steps(steps, start_at=start_at, stop_after=stop_after)

    ctx = StepContext(host=host, config=config, report=RunReport(platform=host.platform))
    try:
        report = run_pipeline(
            ctx=ctx,
            steps=steps,
            start_at=start_at,
            stop_after=stop_after,
            on_record=console.step,
        )
    except Exception:
        logger.exception("Setup failed")
        raise
    finally:
        if report_path:
            save_report(report_path, ctx.report)

    console.summary(report, dry_run=host.dry_run)
    return report


def list_steps(config: SetupConfig, console: Console) -> int:
    try:
        platform = detect()
    except UnsupportedPlatformError as e:
        console.error(str(e))
        return EXIT_UNSUPPORTED

    console.header(f"Steps for {platform.value}")
    for step in build_steps(config):
        if applies_to(step, platform):
            flag = "critical" if step.critical else "best-effort"
            print(f"  {step.step_id:<32} {step.title} ({flag})", file=console.stream)
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="dotfiles-setup",
        description="Provision this machine: packages, dotfiles and desktop tweaks. Safe to re-run.",
    )
    p.add_argument("--config", default=None, help="Path to a YAML config file")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to the setup log")
    p.add_argument("--report", default=None, help="Write the run report to this path (json|yaml)")
    p.add_argument("--dry-run", action="store_true", default=None, help="Probe only; log actions without running them")
    p.add_argument("--yes", action="store_true", default=None, help="Answer yes to confirmation prompts")
    p.add_argument("--update", action="store_true", default=None, help="Pull git checkouts that are behind their remote")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 30_dotfiles)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--list-steps", action="store_true", help="List the steps for this platform and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Show info-level log messages on the console")

    args = p.parse_args(argv)
    console = Console()

    try:
        if args.list_steps:
            return list_steps(load_config(args.config), console)

        report = run(
            config_path=args.config,
            log_path=args.log,
            report_path=args.report,
            start_at=args.start_at,
            stop_after=args.stop_after,
            dry_run=args.dry_run,
            assume_yes=args.yes,
            update=args.update,
            verbose=args.verbose,
            console=console,
        )
    except UnsupportedPlatformError as e:
        logger.error("%s", e)
        console.error(str(e))
        return EXIT_UNSUPPORTED
    except (OSError, ValueError, yaml.YAMLError) as e:
        # Bad config, manifest or step id: nothing has run yet.
        logger.error("Cannot start setup: %s", e)
        console.error(f"Cannot start setup: {e}")
        return EXIT_USAGE

    return EXIT_ABORTED if report.aborted else EXIT_OK


def cli() -> None:
    raise SystemExit(main())
