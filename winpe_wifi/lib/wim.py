from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Protocol

from ..errors import MountError, ResolutionError, ValidationError
from .command import find_tool, run_cmd

logger = logging.getLogger(__name__)


class ImageMounter(Protocol):
    """Attach a WIM image read-write and later save or drop the changes."""

    def mount(self, image_path: Path, mount_root: Path, index: int) -> None:
        ...

    def commit(self, mount_root: Path) -> None:
        ...

    def discard(self, mount_root: Path) -> None:
        ...


class DismMounter:
    name = "dism"

    def __init__(self, exe: str = "dism", *, dry_run: bool = False) -> None:
        self.exe = exe
        self.dry_run = dry_run

    def mount(self, image_path: Path, mount_root: Path, index: int) -> None:
        try:
            run_cmd(
                [
                    self.exe,
                    "/Mount-Image",
                    f"/ImageFile:{image_path}",
                    f"/Index:{index}",
                    f"/MountDir:{mount_root}",
                ],
                dry_run=self.dry_run,
            )
        except RuntimeError as e:
            raise MountError(f"Unable to mount {image_path} (index {index}) at {mount_root}: {e}") from e

    def _unmount(self, mount_root: Path, mode: str) -> None:
        try:
            run_cmd([self.exe, "/Unmount-Image", f"/MountDir:{mount_root}", f"/{mode}"], dry_run=self.dry_run)
        except RuntimeError as e:
            raise ResolutionError(f"Unable to unmount {mount_root} ({mode.lower()}): {e}") from e

    def commit(self, mount_root: Path) -> None:
        self._unmount(mount_root, "Commit")

    def discard(self, mount_root: Path) -> None:
        self._unmount(mount_root, "Discard")


class WimlibMounter:
    name = "wimlib"

    def __init__(self, exe: str = "wimlib-imagex", *, dry_run: bool = False) -> None:
        self.exe = exe
        self.dry_run = dry_run

    def mount(self, image_path: Path, mount_root: Path, index: int) -> None:
        try:
            run_cmd([self.exe, "mountrw", str(image_path), str(index), str(mount_root)], dry_run=self.dry_run)
        except RuntimeError as e:
            raise MountError(f"Unable to mount {image_path} (index {index}) at {mount_root}: {e}") from e

    def commit(self, mount_root: Path) -> None:
        try:
            run_cmd([self.exe, "unmount", str(mount_root), "--commit"], dry_run=self.dry_run)
        except RuntimeError as e:
            raise ResolutionError(f"Unable to commit {mount_root}: {e}") from e

    def discard(self, mount_root: Path) -> None:
        try:
            run_cmd([self.exe, "unmount", str(mount_root)], dry_run=self.dry_run)
        except RuntimeError as e:
            raise ResolutionError(f"Unable to discard {mount_root}: {e}") from e


_BACKENDS = {"dism": (DismMounter, "dism"), "wimlib": (WimlibMounter, "wimlib-imagex")}


def select_mounter(backend: str = "auto", *, dry_run: bool = False) -> ImageMounter:
    """Pick the mounting backend: DISM on Windows, wimlib elsewhere, unless named."""

    name = backend.lower()
    if name == "auto":
        name = "dism" if platform.system().lower() == "windows" else "wimlib"
    if name not in _BACKENDS:
        raise ValidationError(f"Unknown mount backend {backend!r} (expected auto, dism or wimlib)")

    cls, tool = _BACKENDS[name]
    exe = find_tool(tool)
    if exe is None and not dry_run:
        raise MountError(
            f"{tool} not found on PATH. "
            + ("Run from an elevated Windows prompt." if name == "dism" else "Install wimtools / wimlib-utils.")
        )
    logger.info("Mount backend: %s (%s)", name, exe or tool)
    return cls(exe or tool, dry_run=dry_run)
