from __future__ import annotations

import logging
from typing import Optional

from ..lib.osdetect import Platform
from ..pipeline import BaseStep, StepContext
from ..report import StepStatus

logger = logging.getLogger(__name__)

SIP_GUIDE_URL = "https://github.com/koekeishiya/yabai/wiki/Disabling-System-Integrity-Protection"

# Protections yabai's scripting addition needs switched off.
_PARTIAL_FLAGS = (
    "Filesystem Protections: disabled",
    "Debugging Restrictions: disabled",
    "NVRAM Protections: disabled",
)


def sip_allows_yabai(csrutil_output: str) -> bool:
    if "System Integrity Protection status: disabled" in csrutil_output:
        return True
    return all(flag in csrutil_output for flag in _PARTIAL_FLAGS)


class SipStatusStep(BaseStep):
    step_id = "60_yabai_sip"
    title = "Check SIP configuration for yabai"
    platforms = frozenset({Platform.MACOS})
    critical = False

    def probe(self, ctx: StepContext) -> bool:
        r = ctx.host.query(["csrutil", "status"])
        return sip_allows_yabai(r.stdout)

    def run(self, ctx: StepContext) -> Optional[StepStatus]:
        logger.warning("SIP needs to be partially disabled for advanced yabai features")
        ctx.manual_step(f"Partially disable SIP for yabai features: {SIP_GUIDE_URL}")
        return StepStatus.MANUAL
