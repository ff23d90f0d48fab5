"""
Pytest configuration and shared fixtures for winpe-wifi tests.

The mounting facility is replaced by FakeMounter: the "image" is a plain
directory tree that is copied into the mount root on mount and copied back on
commit.
"""

import shutil
from pathlib import Path
from typing import List, Tuple

import pytest

from winpe_wifi.errors import MountError, ResolutionError
from winpe_wifi.lib.env import PATHS

LAUNCHER_LINES = [
    r"%SYSTEMROOT%\System32\wpeinit.exe",
    r"%SYSTEMROOT%\System32\WindowsPowerShell\v1.0\powershell.exe, -NoLogo -Command Start-OSDCloudGUI",
]

OSD_FUNCTION = """function Initialize-OSDCloudStartnet {
    [CmdletBinding()]
    param ()
    if ($env:SystemDrive -eq 'X:') {
        Write-Host 'Initialize Wi-Fi'
        Start-WinREWiFi
        Write-Host 'Wi-Fi done'
    }
}
"""


def _clear(directory: Path) -> None:
    for child in directory.iterdir():
        if child.is_dir():
            shutil.rmtree(child)
        else:
            child.unlink()


class FakeMounter:
    """Records calls; the image content lives in ``source``."""

    def __init__(
        self,
        source: Path,
        *,
        fail_mount: bool = False,
        fail_commit: bool = False,
        fail_discard: bool = False,
    ) -> None:
        self.source = source
        self.fail_mount = fail_mount
        self.fail_commit = fail_commit
        self.fail_discard = fail_discard
        self.calls: List[Tuple[str, Path]] = []
        self.indexes: List[int] = []

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def mount(self, image_path: Path, mount_root: Path, index: int) -> None:
        self.calls.append(("mount", mount_root))
        self.indexes.append(index)
        if self.fail_mount:
            raise MountError(f"cannot mount {image_path}")
        shutil.copytree(self.source, mount_root, dirs_exist_ok=True)

    def commit(self, mount_root: Path) -> None:
        self.calls.append(("commit", mount_root))
        if self.fail_commit:
            raise ResolutionError("commit failed")
        shutil.rmtree(self.source)
        shutil.copytree(mount_root, self.source)
        _clear(mount_root)

    def discard(self, mount_root: Path) -> None:
        self.calls.append(("discard", mount_root))
        if self.fail_discard:
            raise ResolutionError("discard failed")
        _clear(mount_root)


@pytest.fixture
def pe_tree(tmp_path: Path) -> Path:
    """A minimal OSDCloud-style WinPE tree."""

    root = tmp_path / "image-content"
    (root / "Windows/System32").mkdir(parents=True)
    (root / "Windows/Temp").mkdir(parents=True)
    (root / PATHS.launcher_ini).write_bytes(("[LaunchApps]\r\n" + "\r\n".join(LAUNCHER_LINES) + "\r\n").encode())
    (root / PATHS.startnet_cmd).write_bytes(b"wpeinit\r\n@echo off\r\n")

    fn = root / PATHS.osd_startnet_function.replace("*", "24.1.1")
    fn.parent.mkdir(parents=True)
    fn.write_text(OSD_FUNCTION, encoding="utf-8")
    return root


@pytest.fixture
def osd_function_path(pe_tree: Path) -> Path:
    return pe_tree / PATHS.osd_startnet_function.replace("*", "24.1.1")


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    p = tmp_path / "boot.wim"
    p.write_bytes(b"MSWIM\x00\x00\x00")
    return p


@pytest.fixture
def fake_mounter(pe_tree: Path) -> FakeMounter:
    return FakeMounter(pe_tree)


@pytest.fixture
def mount_dir(tmp_path: Path) -> Path:
    p = tmp_path / "mnt"
    p.mkdir()
    return p
