from __future__ import annotations

import logging

from ..lib.connect_helper import render_connect_helper
from ..lib.env import PATHS
from ..pipeline import CustomizeContext

logger = logging.getLogger(__name__)


class WriteConnectHelperStep:
    step_id = "20_connect_helper"

    def run(self, ctx: CustomizeContext) -> None:
        settings = ctx.cfg.helper_settings()
        ctx.root.write_text(PATHS.connect_helper, render_connect_helper(settings))
        ctx.decisions["connect_helper"] = {
            "path": PATHS.connect_helper,
            "probe_host": settings.probe_host,
            "connect_retries": settings.connect_retries,
        }
        logger.info("Wrote connect helper %s (probe=%s)", PATHS.connect_helper, settings.probe_host)
