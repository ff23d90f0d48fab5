from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .config import CustomizeConfig
from .lib.fs import MountRoot
from .lib.wlan_profile import WifiCredential
from .prompts import Decider

logger = logging.getLogger(__name__)


@dataclass
class CustomizeContext:
    root: MountRoot
    decider: Decider
    cfg: CustomizeConfig = field(default_factory=CustomizeConfig)
    credential: Optional[WifiCredential] = None
    profile_path: Optional[Path] = None
    decisions: Dict[str, Any] = field(default_factory=dict)


class Step(Protocol):
    """A single idempotent edit of the mounted image."""

    step_id: str

    def run(self, ctx: CustomizeContext) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]
    decisions: Dict[str, Any]


def run_pipeline(ctx: CustomizeContext, steps: Sequence[Step]) -> PipelineResult:
    """Run steps in order; the first exception stops the run and propagates."""

    ran: List[str] = []
    for step in steps:
        logger.info("Running step %s", step.step_id)
        ctx.decisions["current_step"] = step.step_id
        step.run(ctx)
        ran.append(step.step_id)

    ctx.decisions["current_step"] = None
    return PipelineResult(ran_steps=ran, decisions=dict(ctx.decisions))
