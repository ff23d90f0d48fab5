from __future__ import annotations

import logging
from pathlib import PureWindowsPath

from ..lib.connect_helper import launcher_invocation
from ..lib.env import PATHS
from ..lib.patch import apply_patch, launcher_injection
from ..pipeline import CustomizeContext

logger = logging.getLogger(__name__)


class InjectLauncherStep:
    """Make winpeshl.ini run the connect helper before the existing launch apps."""

    step_id = "30_launcher"

    def run(self, ctx: CustomizeContext) -> None:
        spec = launcher_injection(
            PATHS.launcher_ini,
            launcher_invocation(PATHS.pe_connect_helper),
            marker=PureWindowsPath(PATHS.pe_connect_helper).name,
        )
        ctx.decisions["launcher"] = "injected" if apply_patch(ctx.root, spec) else "already_present"
        logger.info("Launcher %s: %s", PATHS.launcher_ini, ctx.decisions["launcher"])
