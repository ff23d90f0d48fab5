from __future__ import annotations

import logging

from ..lib.env import PATHS
from ..lib.wlan_profile import stage_profile
from ..pipeline import CustomizeContext

logger = logging.getLogger(__name__)


class StageWifiProfileStep:
    step_id = "10_wifi_profile"

    def run(self, ctx: CustomizeContext) -> None:
        action = stage_profile(
            ctx.root,
            PATHS.wifi_profile,
            credential=ctx.credential,
            profile_path=ctx.profile_path,
        )
        ctx.decisions["wifi_profile"] = action
        logger.info("Wi-Fi profile step: %s", action)
