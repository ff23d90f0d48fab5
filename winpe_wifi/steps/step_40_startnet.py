from __future__ import annotations

import logging

from ..lib.env import PATHS
from ..lib.patch import apply_patch, blanket_comment
from ..pipeline import CustomizeContext

logger = logging.getLogger(__name__)


class DisableStartnetStep:
    step_id = "40_startnet"

    def run(self, ctx: CustomizeContext) -> None:
        # winpeshl.ini now drives startup; startnet.cmd must not run a second launch chain.
        if not ctx.root.exists(PATHS.startnet_cmd):
            logger.warning("%s not present in image; nothing to disable", PATHS.startnet_cmd)
            ctx.decisions["startnet"] = "missing"
            return
        changed = apply_patch(ctx.root, blanket_comment(PATHS.startnet_cmd))
        ctx.decisions["startnet"] = "commented" if changed else "already_commented"
