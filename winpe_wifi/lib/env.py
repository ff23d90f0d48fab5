from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    # Relative to the mount root, forward slashes.
    launcher_ini: str = "Windows/System32/winpeshl.ini"
    startnet_cmd: str = "Windows/System32/startnet.cmd"
    connect_helper: str = "Windows/System32/ConnectWifi.ps1"
    wifi_profile: str = "Windows/Temp/wifiprofile.xml"
    osd_startnet_function: str = (
        "Program Files/WindowsPowerShell/Modules/OSD/*/Public/OSDCloudSetup/Initialize-OSDCloudStartnet.ps1"
    )

    # Relative to a removable volume root.
    usb_image: str = "sources/boot.wim"

    # As seen from inside the booted WinPE (X: is the RAM disk).
    pe_connect_helper: str = r"X:\Windows\System32\ConnectWifi.ps1"
    pe_profile_dir: str = r"X:\Windows\Temp"


PATHS = Paths()
