from .generic import CheckoutStep, DirectoryStep
from .step_10_package_manager import DefaultShellStep, InstallHomebrewStep, InstallZshStep
from .step_20_packages import InstallPackagesStep
from .step_25_tools import InstallToolStep
from .step_30_dotfiles import DotfilesCheckoutStep, StowDotfilesStep
from .step_40_desktop import SimpleBarWidgetStep, UebersichtStep, WallpaperStep
from .step_50_dev_env import DevDirectoryStep, NodeStep
from .step_55_simple_bar_server import (
    Pm2StartupStep,
    Pm2Step,
    SimpleBarServerCheckoutStep,
    SimpleBarServerDepsStep,
    SimpleBarServerProcessStep,
)
from .step_60_yabai import SipStatusStep
from .step_70_cursor import (
    BananaCursorStep,
    CursorThemeStep,
    GnomeTweaksStep,
    MousecapeCapesLinkStep,
    MousecapeQuarantineStep,
    MousecapeStep,
)

__all__ = [
    "CheckoutStep",
    "DirectoryStep",
    "InstallHomebrewStep",
    "InstallZshStep",
    "DefaultShellStep",
    "InstallPackagesStep",
    "InstallToolStep",
    "DotfilesCheckoutStep",
    "StowDotfilesStep",
    "WallpaperStep",
    "UebersichtStep",
    "SimpleBarWidgetStep",
    "DevDirectoryStep",
    "NodeStep",
    "SimpleBarServerCheckoutStep",
    "SimpleBarServerDepsStep",
    "Pm2Step",
    "SimpleBarServerProcessStep",
    "Pm2StartupStep",
    "SipStatusStep",
    "MousecapeQuarantineStep",
    "MousecapeCapesLinkStep",
    "MousecapeStep",
    "BananaCursorStep",
    "GnomeTweaksStep",
    "CursorThemeStep",
]
