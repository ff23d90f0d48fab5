from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        # DISM reports its errors on stdout.
        return (self.stderr or self.stdout or "").strip()


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def find_tool(name: str) -> Optional[str]:
    return shutil.which(name)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    timeout_s: float | None = None,
    dry_run: bool = False,
) -> CmdResult:
    """Run an external tool with consistent logging.

    - Always logs the command line.
    - Captures stdout/stderr (logged at DEBUG).
    - check=True raises RuntimeError with the tool's output on non-zero exit.
    - dry_run logs but does not execute.
    """

    argv_list = list(argv)
    logger.info("CMD %s", _fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    p = subprocess.run(
        argv_list,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        timeout=timeout_s,
    )
    result = CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout or "", stderr=p.stderr or "")

    if result.stdout:
        logger.debug("STDOUT %s", result.stdout.strip())
    if result.stderr:
        logger.debug("STDERR %s", result.stderr.strip())

    if check and result.returncode != 0:
        raise RuntimeError(f"Command failed ({result.returncode}): {_fmt_argv(argv_list)}\n{result.output}")

    return result
