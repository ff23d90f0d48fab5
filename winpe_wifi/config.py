from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ValidationError
from .lib.connect_helper import HelperSettings
from .lib.env import PATHS


@dataclass(frozen=True)
class CustomizeConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _get(self, section: str, key: str, default: Any) -> Any:
        # An explicit 0 or false is a setting; only a missing or null key falls back.
        value = (self.raw.get(section) or {}).get(key)
        return default if value is None else value

    @property
    def image_relpath(self) -> str:
        return str(self._get("discovery", "image_relpath", PATHS.usb_image))

    @property
    def discovery_interval_s(self) -> float:
        return float(self._get("discovery", "interval_s", 5))

    @property
    def confirm_device(self) -> bool:
        return bool(self._get("discovery", "confirm", True))

    @property
    def image_index(self) -> int:
        return int(self._get("image", "index", 1))

    @property
    def mount_backend(self) -> str:
        return str(self._get("mount", "backend", "auto"))

    @property
    def probe_host(self) -> str:
        return str(self._get("helper", "probe_host", "google.com"))

    @property
    def connect_retries(self) -> int:
        return int(self._get("helper", "connect_retries", 15))

    @property
    def connect_retry_delay_s(self) -> int:
        return int(self._get("helper", "retry_delay_s", 2))

    @property
    def os_volume_label(self) -> str:
        return str(self._get("helper", "os_volume_label", "OS"))

    def helper_settings(self) -> HelperSettings:
        return HelperSettings(
            probe_host=self.probe_host,
            connect_retries=self.connect_retries,
            connect_retry_delay_s=self.connect_retry_delay_s,
            os_volume_label=self.os_volume_label,
            profile_name=Path(PATHS.wifi_profile).name,
        )


def load_config(path: Optional[str]) -> CustomizeConfig:
    if not path:
        return CustomizeConfig()

    p = Path(path)
    if not p.exists():
        raise ValidationError(f"Config file not found: {path}")

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValidationError("config must be YAML")

    try:
        import yaml  # type: ignore
    except Exception as e:
        raise RuntimeError("PyYAML is required to read the config file") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"{path}: invalid YAML ({e})") from e
    if not isinstance(raw, dict):
        raise ValidationError(f"{path} must contain a mapping/object")

    return CustomizeConfig(raw=raw)
