from __future__ import annotations

import logging

from ..errors import PatchAnomalyError
from ..lib.env import PATHS
from ..lib.patch import apply_patch, comment_statement, statement_comment
from ..pipeline import CustomizeContext

logger = logging.getLogger(__name__)

WIFI_PROMPT_STATEMENT = "Start-WinREWiFi"
NOTE = "Disabled by winpe-wifi: ConnectWifi.ps1 joins Wi-Fi before this runs"


class DisableModuleWifiPromptStep:
    """Comment out the OSD module's own interactive Wi-Fi prompt."""

    step_id = "50_module_wifi_prompt"

    def run(self, ctx: CustomizeContext) -> None:
        path = ctx.root.resolve_one(PATHS.osd_startnet_function)
        rel = path.relative_to(ctx.root.root)
        lines, _ = ctx.root.read_lines(rel)

        scan = comment_statement(lines, WIFI_PROMPT_STATEMENT, NOTE)
        ctx.decisions["module_wifi_prompt"] = {
            "file": rel.as_posix(),
            "newly_commented": scan.newly_commented,
            "already_commented": scan.already_commented,
        }

        if scan.total == 0:
            logger.warning(
                "%s not found in %s; the OSD module structure may have changed upstream",
                WIFI_PROMPT_STATEMENT,
                rel.as_posix(),
            )
            self._require_confirmation(ctx, f"{WIFI_PROMPT_STATEMENT} was not found. Continue anyway?")
        elif scan.total > 1:
            logger.warning(
                "%s found %d times in %s (expected once)",
                WIFI_PROMPT_STATEMENT,
                scan.total,
                rel.as_posix(),
            )
            self._require_confirmation(
                ctx, f"{WIFI_PROMPT_STATEMENT} found {scan.total} times. Continue and comment out all of them?"
            )

        if scan.total == 0:
            logger.info("%s not present in %s; leaving the file unchanged", WIFI_PROMPT_STATEMENT, rel.as_posix())
        elif apply_patch(ctx.root, statement_comment(rel.as_posix(), WIFI_PROMPT_STATEMENT, NOTE)):
            logger.info("Commented out %d %s call(s) in %s", scan.newly_commented, WIFI_PROMPT_STATEMENT, rel.as_posix())
        else:
            logger.info("%s already commented out in %s", WIFI_PROMPT_STATEMENT, rel.as_posix())

    @staticmethod
    def _require_confirmation(ctx: CustomizeContext, question: str) -> None:
        if not ctx.decider.confirm(question):
            raise PatchAnomalyError(f"Aborted by operator: {question}")
