from __future__ import annotations

from dataclasses import dataclass

from .env import PATHS


@dataclass(frozen=True)
class HelperSettings:
    probe_host: str = "google.com"
    connect_retries: int = 15
    connect_retry_delay_s: int = 2
    os_volume_label: str = "OS"
    profile_name: str = "wifiprofile.xml"
    pe_profile_dir: str = PATHS.pe_profile_dir


def _ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def render_connect_helper(settings: HelperSettings = HelperSettings()) -> str:
    """Render the PowerShell script that joins Wi-Fi inside the booted WinPE.

    Order of attempts:
      1. already online -> exit
      2. find wifiprofile.xml on the OS volume, then on X:
      3. wpeinit
      4. Connect-WinREWiFiByXMLProfile, then a manual netsh import/connect
         with a bounded reachability poll, then Start-WinREWiFi
      5. no profile at all -> Start-WinREWiFi
    """

    pe_dir = _ps_quote(settings.pe_profile_dir.rstrip("\\") + "\\")
    lines = [
        "# Generated by winpe-wifi. Joins Wi-Fi before the WinPE launch apps run.",
        "$ErrorActionPreference = 'Continue'",
        "",
        f"$ProbeHost = {_ps_quote(settings.probe_host)}",
        f"$ProfileName = {_ps_quote(settings.profile_name)}",
        f"$OsVolumeLabel = {_ps_quote(settings.os_volume_label)}",
        f"$MaxRetries = {int(settings.connect_retries)}",
        f"$RetryDelaySeconds = {int(settings.connect_retry_delay_s)}",
        "",
        "function Test-Online {",
        "    Test-Connection -ComputerName $ProbeHost -Count 1 -Quiet -ErrorAction SilentlyContinue",
        "}",
        "",
        "if (Test-Online) {",
        "    Write-Host \"Network already available, nothing to do.\"",
        "    exit 0",
        "}",
        "",
        "$Candidates = @()",
        "$OsVolume = Get-Volume -ErrorAction SilentlyContinue |",
        "    Where-Object { $_.FileSystemLabel -eq $OsVolumeLabel -and $_.DriveLetter } |",
        "    Select-Object -First 1",
        "if ($OsVolume) {",
        "    $Candidates += \"$($OsVolume.DriveLetter):\\Windows\\Temp\\$ProfileName\"",
        "}",
        f"$Candidates += {pe_dir} + $ProfileName",
        "",
        "$WifiProfile = $null",
        "foreach ($Candidate in $Candidates) {",
        "    if (Test-Path -LiteralPath $Candidate) {",
        "        $WifiProfile = $Candidate",
        "        break",
        "    }",
        "}",
        "",
        "Write-Host \"Initializing WinPE (wpeinit)...\"",
        "wpeinit",
        "",
        "if ($WifiProfile) {",
        "    Write-Host \"Using Wi-Fi profile $WifiProfile\"",
        "    try {",
        "        Connect-WinREWiFiByXMLProfile -wifiProfile $WifiProfile -ErrorAction Stop",
        "    }",
        "    catch {",
        "        Write-Host \"Connect-WinREWiFiByXMLProfile failed, connecting manually: $_\"",
        "        Start-Service -Name WlanSvc -ErrorAction SilentlyContinue",
        "        $Ssid = ([xml](Get-Content -LiteralPath $WifiProfile -Raw)).WLANProfile.name",
        "        netsh wlan delete profile name=\"$Ssid\" | Out-Null",
        "        netsh wlan add profile filename=\"$WifiProfile\" | Out-Null",
        "        netsh wlan connect name=\"$Ssid\"",
        "        if ($LASTEXITCODE -ne 0) {",
        "            Write-Host \"netsh wlan connect failed, starting interactive Wi-Fi setup\"",
        "            Start-WinREWiFi",
        "        }",
        "        else {",
        "            $Attempt = 0",
        "            while (-not (Test-Online) -and $Attempt -lt $MaxRetries) {",
        "                $Attempt++",
        "                Write-Host \"Waiting for network ($Attempt/$MaxRetries)...\"",
        "                Start-Sleep -Seconds $RetryDelaySeconds",
        "            }",
        "            if (Test-Online) {",
        "                Write-Host \"Connected to $Ssid\"",
        "            }",
        "            else {",
        "                Write-Host \"No connectivity after $MaxRetries attempts, giving up\"",
        "            }",
        "        }",
        "    }",
        "}",
        "else {",
        "    Write-Host \"No Wi-Fi profile found, starting interactive Wi-Fi setup\"",
        "    Start-WinREWiFi",
        "}",
        "",
    ]
    return "\r\n".join(lines)


def launcher_invocation(helper_pe_path: str = PATHS.pe_connect_helper) -> str:
    """winpeshl.ini LaunchApps entry that runs the helper."""

    return (
        r"%SYSTEMROOT%\System32\WindowsPowerShell\v1.0\powershell.exe, "
        f"-NoProfile -ExecutionPolicy Bypass -File {helper_pe_path}"
    )
