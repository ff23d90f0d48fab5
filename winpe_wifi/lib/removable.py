from __future__ import annotations

import json
import logging
import platform
import string
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .command import run_cmd

logger = logging.getLogger(__name__)

DRIVE_REMOVABLE = 2


def _windows_removable_roots() -> List[Path]:
    import ctypes

    kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
    bitmask = kernel32.GetLogicalDrives()
    roots: List[Path] = []
    for i, letter in enumerate(string.ascii_uppercase):
        if not bitmask & (1 << i):
            continue
        root = f"{letter}:\\"
        if kernel32.GetDriveTypeW(ctypes.c_wchar_p(root)) == DRIVE_REMOVABLE:
            roots.append(Path(root))
    return roots


def _walk(devices: Iterable[Dict[str, Any]], removable_parent: bool = False) -> Iterable[Dict[str, Any]]:
    for dev in devices:
        removable = removable_parent or dev.get("tran") == "usb" or dev.get("rm") in (1, True, "1")
        yield {**dev, "_removable": removable}
        yield from _walk(dev.get("children") or [], removable)


def removable_mountpoints(lsblk: Dict[str, Any]) -> List[Path]:
    """Mountpoints of removable/USB block devices from ``lsblk -J`` output."""

    roots: List[Path] = []
    for dev in _walk(lsblk.get("blockdevices") or []):
        mp = dev.get("mountpoint")
        if dev["_removable"] and mp and mp != "[SWAP]":
            roots.append(Path(mp))
    return roots


def _linux_removable_roots() -> List[Path]:
    r = run_cmd(["lsblk", "-J", "-o", "NAME,TYPE,RM,TRAN,MOUNTPOINT"], check=False)
    if r.returncode != 0:
        logger.warning("lsblk failed (%s); assuming no removable media", r.output)
        return []
    try:
        data = json.loads(r.stdout or "{}")
    except json.JSONDecodeError:
        logger.warning("lsblk returned invalid JSON; assuming no removable media")
        return []
    return removable_mountpoints(data)


def list_removable_roots() -> List[Path]:
    """Current removable volume roots. Polled by the discovery loop."""

    if platform.system().lower() == "windows":
        return _windows_removable_roots()
    return _linux_removable_roots()
