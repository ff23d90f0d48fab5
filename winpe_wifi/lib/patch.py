from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, List

from .fs import MountRoot, TextLayout

logger = logging.getLogger(__name__)


LAUNCH_SECTION = "[LaunchApps]"
PS_COMMENT = "#"
CMD_COMMENT = "REM "


@dataclass(frozen=True)
class PatchSpec:
    """One idempotent edit of a file under the mount root.

    ``target`` may contain single-segment ``*`` wildcards; it must then resolve
    to exactly one file.
    """

    name: str
    target: str
    is_applied: Callable[[List[str]], bool]
    transform: Callable[[List[str]], List[str]]
    create_missing: bool = False


def _target_rel(root: MountRoot, target: str) -> str:
    if "*" in target:
        return str(root.resolve_one(target).relative_to(root.root))
    return target


def apply_patch(root: MountRoot, spec: PatchSpec) -> int:
    """Apply spec to its target; return 1 if the file was rewritten, 0 otherwise."""

    rel = _target_rel(root, spec.target)
    if root.exists(rel):
        lines, layout = root.read_lines(rel)
    elif spec.create_missing:
        lines, layout = [], TextLayout(newline="\r\n")
    else:
        raise FileNotFoundError(str(root.resolve_rel(rel)))

    if spec.is_applied(lines):
        logger.info("Patch %s already present in %s", spec.name, rel)
        return 0

    root.write_lines(rel, spec.transform(lines), layout)
    logger.info("Patch %s applied to %s", spec.name, rel)
    return 1


# Launcher injection (winpeshl.ini)


def _is_section_header(line: str) -> bool:
    s = line.strip()
    return s.startswith("[") and s.endswith("]")


def launcher_injection(target: str, invocation: str, marker: str) -> PatchSpec:
    marker_l = marker.lower()

    def is_applied(lines: List[str]) -> bool:
        return any(marker_l in ln.lower() for ln in lines)

    def transform(lines: List[str]) -> List[str]:
        kept = [ln for ln in lines if not _is_section_header(ln)]
        return [LAUNCH_SECTION, invocation, *kept]

    return PatchSpec(
        name="launcher_injection",
        target=target,
        is_applied=is_applied,
        transform=transform,
        create_missing=True,
    )


# Blanket comment (startnet.cmd)


def _has_marker(line: str, marker: str) -> bool:
    return line.lstrip().upper().startswith(marker.upper())


def blanket_comment(target: str, marker: str = CMD_COMMENT) -> PatchSpec:
    def is_applied(lines: List[str]) -> bool:
        return all(_has_marker(ln, marker) for ln in lines)

    def transform(lines: List[str]) -> List[str]:
        return [ln if _has_marker(ln, marker) else marker + ln for ln in lines]

    return PatchSpec(name="blanket_comment", target=target, is_applied=is_applied, transform=transform)


# Single statement comment (third-party module function)


@dataclass(frozen=True)
class StatementScan:
    lines: List[str]
    newly_commented: int
    already_commented: int

    @property
    def total(self) -> int:
        return self.newly_commented + self.already_commented


def statement_pattern(statement: str) -> re.Pattern[str]:
    return re.compile(rf"^\s*{re.escape(statement)}\b")


def commented_pattern(statement: str, marker: str = PS_COMMENT) -> re.Pattern[str]:
    return re.compile(rf"^\s*{re.escape(marker)}\s*{re.escape(statement)}\b")


def comment_statement(lines: List[str], statement: str, note: str, marker: str = PS_COMMENT) -> StatementScan:
    """Replace every live ``statement`` line with ``note`` plus the commented original."""

    live = statement_pattern(statement)
    dead = commented_pattern(statement, marker)

    out: List[str] = []
    newly = 0
    already = 0
    for ln in lines:
        if dead.match(ln):
            already += 1
            out.append(ln)
        elif live.match(ln):
            newly += 1
            indent = ln[: len(ln) - len(ln.lstrip())]
            out.append(f"{indent}{marker} {note}")
            out.append(f"{indent}{marker}{ln[len(indent):]}")
        else:
            out.append(ln)
    return StatementScan(lines=out, newly_commented=newly, already_commented=already)


def statement_comment(target: str, statement: str, note: str, marker: str = PS_COMMENT) -> PatchSpec:
    live = statement_pattern(statement)

    def is_applied(lines: List[str]) -> bool:
        return not any(live.match(ln) for ln in lines)

    def transform(lines: List[str]) -> List[str]:
        return comment_statement(lines, statement, note, marker).lines

    return PatchSpec(name="statement_comment", target=target, is_applied=is_applied, transform=transform)
