from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"yaml", "yml"}:
        return "yaml"
    # Default to JSON for unknown extensions.
    return "json"


def save_report(path: str, report: Dict[str, Any]) -> None:
    """Write the run record as JSON or YAML (by extension)."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) == "yaml":
        try:
            import yaml  # type: ignore
        except Exception as e:  # pragma: no cover
            raise RuntimeError("YAML report requested but PyYAML is not available. Use a .json report path.") from e
        p.write_text(yaml.safe_dump(report, sort_keys=False) + "\n", encoding="utf-8")
    else:
        p.write_text(json.dumps(report, indent=2, sort_keys=True, default=str) + "\n", encoding="utf-8")
    logger.info("Run report written to %s", str(p))


def new_report() -> Dict[str, Any]:
    return {
        "image": None,
        "mount_root": None,
        "ephemeral_mount_root": None,
        "ran_steps": [],
        "decisions": {},
        "outcome": "not_started",
        "errors": [],
        "teardown_errors": [],
    }
