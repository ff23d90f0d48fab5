from __future__ import annotations

import logging
import shutil
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from ..errors import ValidationError
from .fs import MountRoot

logger = logging.getLogger(__name__)

WLAN_NS = "http://www.microsoft.com/networking/WLAN/profile/v1"


@dataclass(frozen=True)
class WifiCredential:
    ssid: str
    password: str


@dataclass(frozen=True)
class WifiProfile:
    name: str
    ssid: str
    password: Optional[str]
    xml: str


def ssid_to_hex(ssid: str) -> str:
    return ssid.encode("utf-8").hex().upper()


def hex_to_ssid(value: str) -> str:
    return bytes.fromhex(value).decode("utf-8")


def render_profile_xml(ssid: str, password: str) -> str:
    name = escape(ssid)
    return "\n".join(
        [
            '<?xml version="1.0"?>',
            f'<WLANProfile xmlns="{WLAN_NS}">',
            f"\t<name>{name}</name>",
            "\t<SSIDConfig>",
            "\t\t<SSID>",
            f"\t\t\t<hex>{ssid_to_hex(ssid)}</hex>",
            f"\t\t\t<name>{name}</name>",
            "\t\t</SSID>",
            "\t</SSIDConfig>",
            "\t<connectionType>ESS</connectionType>",
            "\t<connectionMode>auto</connectionMode>",
            "\t<MSM>",
            "\t\t<security>",
            "\t\t\t<authEncryption>",
            "\t\t\t\t<authentication>WPA2PSK</authentication>",
            "\t\t\t\t<encryption>AES</encryption>",
            "\t\t\t\t<useOneX>false</useOneX>",
            "\t\t\t</authEncryption>",
            "\t\t\t<sharedKey>",
            "\t\t\t\t<keyType>passPhrase</keyType>",
            "\t\t\t\t<protected>false</protected>",
            f"\t\t\t\t<keyMaterial>{escape(password)}</keyMaterial>",
            "\t\t\t</sharedKey>",
            "\t\t</security>",
            "\t</MSM>",
            "</WLANProfile>",
            "",
        ]
    )


def synthesize_profile(credential: WifiCredential) -> WifiProfile:
    if not credential.ssid:
        raise ValidationError("SSID must not be empty")
    return WifiProfile(
        name=credential.ssid,
        ssid=credential.ssid,
        password=credential.password,
        xml=render_profile_xml(credential.ssid, credential.password),
    )


def _find(elem: ET.Element, path: str) -> Optional[ET.Element]:
    # Profiles exported by netsh carry the v1 namespace; hand-written ones may not.
    found = elem.find(path.replace("{ns}", f"{{{WLAN_NS}}}"))
    if found is None:
        found = elem.find(path.replace("{ns}", ""))
    return found


def parse_profile(xml_text: str, *, source: str = "<profile>") -> WifiProfile:
    """Parse and validate an exported WLAN profile document.

    The profile must be well-formed, carry a non-empty name and store the key
    unprotected, otherwise it cannot be imported inside another machine's WinPE.
    """

    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ValidationError(f"{source}: not a well-formed XML document ({e})") from e

    if root.tag.rsplit("}", 1)[-1] != "WLANProfile":
        raise ValidationError(f"{source}: root element must be WLANProfile, got {root.tag}")

    name_el = _find(root, "{ns}name")
    name = (name_el.text or "").strip() if name_el is not None else ""
    if not name:
        raise ValidationError(f"{source}: profile has no name")

    protected_el = _find(root, "{ns}MSM/{ns}security/{ns}sharedKey/{ns}protected")
    if protected_el is None or (protected_el.text or "").strip().lower() != "false":
        raise ValidationError(
            f"{source}: key must be exported unprotected "
            "(netsh wlan export profile key=clear), <protected>false</protected> not found"
        )

    ssid_el = _find(root, "{ns}SSIDConfig/{ns}SSID/{ns}name")
    ssid = (ssid_el.text or "").strip() if ssid_el is not None else name
    key_el = _find(root, "{ns}MSM/{ns}security/{ns}sharedKey/{ns}keyMaterial")
    password = key_el.text if key_el is not None else None

    return WifiProfile(name=name, ssid=ssid or name, password=password, xml=xml_text)


def load_profile(path: str | Path) -> WifiProfile:
    p = Path(path)
    if not p.is_file():
        raise ValidationError(f"Wi-Fi profile not found: {p}")
    return parse_profile(p.read_bytes().decode("utf-8-sig", errors="replace"), source=str(p))


def _stale_profile_name(root: MountRoot, rel: str) -> str:
    try:
        text, _ = root.read_text(rel)
        return parse_profile(text, source=rel).ssid
    except (ValidationError, UnicodeError):
        return "<unreadable>"


def stage_profile(
    root: MountRoot,
    rel: str,
    *,
    credential: Optional[WifiCredential] = None,
    profile_path: Optional[str | Path] = None,
) -> str:
    """Leave exactly one profile (or none) at ``rel`` under the mount root.

    Returns the action taken: synthesized, copied, removed_stale or none.
    """

    if credential is not None and profile_path is not None:
        raise ValidationError("Use either a Wi-Fi credential or a profile file, not both")

    if credential is not None:
        profile = synthesize_profile(credential)
        root.write_text(rel, profile.xml)
        logger.warning(
            "Wi-Fi password for SSID %r is stored UNENCRYPTED in the image (%s)",
            profile.ssid,
            rel,
        )
        return "synthesized"

    if profile_path is not None:
        dst = root.resolve_rel(rel)
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(str(profile_path), str(dst))
        logger.info("Copied Wi-Fi profile %s -> %s", str(profile_path), rel)
        return "copied"

    if root.exists(rel):
        ssid = _stale_profile_name(root, rel)
        root.remove(rel)
        logger.warning("Removed Wi-Fi profile left by a previous run (SSID %r)", ssid)
        return "removed_stale"

    logger.info("No Wi-Fi profile supplied; the image will fall back to interactive Wi-Fi setup")
    return "none"
