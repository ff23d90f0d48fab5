from __future__ import annotations

import argparse
import getpass
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from .config import CustomizeConfig, load_config
from .discovery import ImageHandle, discover_image
from .errors import CustomizeError, ValidationError
from .lib.fs import MountRoot
from .lib.removable import list_removable_roots
from .lib.wim import ImageMounter, select_mounter
from .lib.wlan_profile import WifiCredential, load_profile
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import CustomizeContext, run_pipeline
from .prompts import AutoDecider, ConsoleDecider, Decider
from .report import new_report, save_report
from .session import mounted
from .steps import (
    DisableModuleWifiPromptStep,
    DisableStartnetStep,
    InjectLauncherStep,
    StageWifiProfileStep,
    WriteConnectHelperStep,
)

logger = logging.getLogger(__name__)


def build_steps():
    return [
        StageWifiProfileStep(),
        WriteConnectHelperStep(),
        InjectLauncherStep(),
        DisableStartnetStep(),
        DisableModuleWifiPromptStep(),
    ]


def is_elevated() -> bool:
    if os.name == "nt":
        import ctypes

        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
        except OSError:
            return False
    return os.geteuid() == 0


def validate_mount_dir(mount_dir: Optional[str]) -> Optional[Path]:
    if mount_dir is None:
        return None
    p = Path(mount_dir).expanduser()
    if not p.is_dir():
        raise ValidationError(f"Mount directory must be an existing directory: {p}")
    if any(p.iterdir()):
        raise ValidationError(f"Mount directory must be empty: {p}")
    return p.resolve()


def validate_wifi_input(
    credential: Optional[WifiCredential],
    profile_path: Optional[str | Path],
) -> Optional[Path]:
    """Reject contradictory Wi-Fi input and check a supplied profile artifact."""

    if credential is not None and profile_path is not None:
        raise ValidationError("Use either --ssid/--password or --profile, not both")
    if credential is not None and not credential.ssid:
        raise ValidationError("SSID must not be empty")
    if profile_path is None:
        return None
    profile = load_profile(profile_path)
    logger.info("Wi-Fi profile %s validated (name=%r)", str(profile_path), profile.name)
    return Path(profile_path).resolve()


def run(
    *,
    image: Optional[str | Path] = None,
    mount_dir: Optional[str] = None,
    credential: Optional[WifiCredential] = None,
    profile_path: Optional[str | Path] = None,
    pause: bool = False,
    decider: Optional[Decider] = None,
    cfg: Optional[CustomizeConfig] = None,
    mounter: Optional[ImageMounter] = None,
    index: Optional[int] = None,
    report_path: Optional[str] = None,
    enumerate_roots: Callable[[], Sequence[Path]] = list_removable_roots,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    """Customize one WinPE image; return the run record.

    Inputs are validated before anything is mounted. Once mounted, the image
    is committed if every step succeeds and discarded otherwise.
    """

    cfg = cfg or CustomizeConfig()
    decider = decider or ConsoleDecider()
    index = index if index is not None else cfg.image_index
    report = new_report()
    session = None

    try:
        if index < 1:
            raise ValidationError(f"Image index must be >= 1, got {index}")
        profile = validate_wifi_input(credential, profile_path)
        root_dir = validate_mount_dir(mount_dir)
        handle = ImageHandle.from_path(image, index) if image is not None else None
        mounter = mounter or select_mounter(cfg.mount_backend)

        if handle is None:
            handle = discover_image(
                enumerate_roots=enumerate_roots,
                image_relpath=cfg.image_relpath,
                decider=decider,
                interval_s=cfg.discovery_interval_s,
                index=index,
                confirm=cfg.confirm_device,
                sleep=sleep,
            )
        report["image"] = str(handle.path)

        with mounted(handle, root_dir, mounter=mounter) as session:
            report["mount_root"] = str(session.mount_root)
            report["ephemeral_mount_root"] = session.ephemeral
            ctx = CustomizeContext(
                root=MountRoot.from_path(session.mount_root),
                decider=decider,
                cfg=cfg,
                credential=credential,
                profile_path=profile,
            )
            report["decisions"] = ctx.decisions
            result = run_pipeline(ctx, build_steps())
            report["ran_steps"] = result.ran_steps
            report["decisions"] = result.decisions

            if pause:
                decider.pause(f"Image mounted at {session.mount_root}. Inspect it now; changes will be saved next.")

        report["outcome"] = session.state
        logger.info("Done: %s %s", str(handle.path), session.state)
        return report
    except Exception as e:
        report["outcome"] = session.state if session is not None else "aborted_before_mount"
        report["errors"].append({"step": (report.get("decisions") or {}).get("current_step"), "error": str(e)})
        raise
    finally:
        if session is not None:
            report["teardown_errors"] = list(session.teardown_errors)
        if report_path:
            save_report(report_path, report)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="winpe-wifi",
        description="Prepare a WinPE boot.wim to join Wi-Fi automatically on boot.",
    )
    p.add_argument("--image", default=None, help="Path to boot.wim (default: search removable drives)")
    p.add_argument("--mount-dir", default=None, help="Existing empty directory to mount into (default: temp dir)")
    p.add_argument("--index", type=int, default=None, help="Image index inside the WIM (default: 1)")
    p.add_argument("--ssid", default=None, help="Wi-Fi SSID (case-sensitive)")
    p.add_argument("--password", default=None, help="Wi-Fi password (prompted if --ssid is given without it)")
    p.add_argument("--profile", default=None, help="Exported WLAN profile XML (netsh wlan export profile key=clear)")
    p.add_argument("--pause", action="store_true", help="Pause before saving so the mounted image can be inspected")
    p.add_argument("--yes", action="store_true", help="Answer yes to every confirmation (non-interactive)")
    p.add_argument("--backend", default=None, choices=["auto", "dism", "wimlib"], help="Mounting backend")
    p.add_argument("--config", default=None, help="YAML config file")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Log file path")
    p.add_argument("--verbose", action="store_true", help="Show debug output (tool output) on the console")
    p.add_argument("--report", default=None, help="Write a run report (json|yaml)")
    return p


def _credential_from_args(args: argparse.Namespace) -> Optional[WifiCredential]:
    if args.ssid is None:
        if args.password is not None:
            raise ValidationError("--password requires --ssid")
        return None
    if args.profile is not None:
        raise ValidationError("Use either --ssid/--password or --profile, not both")
    password = args.password
    if password is None:
        password = getpass.getpass(f"Password for {args.ssid}: ")
    return WifiCredential(ssid=args.ssid, password=password)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_path=args.log, verbose=args.verbose)

    try:
        if not is_elevated():
            raise ValidationError("Mounting images requires an elevated (administrator/root) prompt")

        cfg = load_config(args.config)
        if args.backend:
            cfg = CustomizeConfig(raw={**cfg.raw, "mount": {**(cfg.raw.get("mount") or {}), "backend": args.backend}})

        run(
            image=args.image,
            mount_dir=args.mount_dir,
            credential=_credential_from_args(args),
            profile_path=args.profile,
            pause=bool(args.pause),
            decider=AutoDecider(True) if args.yes else ConsoleDecider(),
            cfg=cfg,
            index=args.index,
            report_path=args.report,
        )
        return 0
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130
    except CustomizeError as e:
        logger.error("%s", e)
        return 1
    except Exception:
        logger.exception("winpe-wifi failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
