"""Tests for config.py and report.py."""

from __future__ import annotations

import json

import pytest
import yaml

from winpe_wifi.config import CustomizeConfig, load_config
from winpe_wifi.errors import ValidationError
from winpe_wifi.report import new_report, save_report


class TestLoadConfig:
    def test_defaults(self):
        cfg = load_config(None)

        assert cfg.image_relpath == "sources/boot.wim"
        assert cfg.discovery_interval_s == 5
        assert cfg.confirm_device is True
        assert cfg.image_index == 1
        assert cfg.mount_backend == "auto"
        settings = cfg.helper_settings()
        assert settings.probe_host == "google.com"
        assert settings.connect_retries == 15
        assert settings.profile_name == "wifiprofile.xml"

    def test_yaml_values(self, tmp_path):
        p = tmp_path / "winpe-wifi.yaml"
        p.write_text(
            "discovery:\n"
            "  interval_s: 2\n"
            "  confirm: false\n"
            "mount:\n"
            "  backend: dism\n"
            "helper:\n"
            "  probe_host: example.org\n"
            "  retry_delay_s: 3\n",
            encoding="utf-8",
        )

        cfg = load_config(str(p))

        assert cfg.discovery_interval_s == 2
        assert cfg.confirm_device is False
        assert cfg.mount_backend == "dism"
        assert cfg.helper_settings().probe_host == "example.org"
        assert cfg.helper_settings().connect_retry_delay_s == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError, match="not found"):
            load_config(str(tmp_path / "nope.yaml"))

    def test_not_yaml(self, tmp_path):
        p = tmp_path / "cfg.json"
        p.write_text("{}", encoding="utf-8")
        with pytest.raises(ValidationError, match="YAML"):
            load_config(str(p))

    def test_invalid_yaml(self, tmp_path):
        p = tmp_path / "cfg.yml"
        p.write_text("discovery: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValidationError, match="invalid YAML"):
            load_config(str(p))

    def test_top_level_must_be_mapping(self, tmp_path):
        p = tmp_path / "cfg.yml"
        p.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValidationError, match="mapping"):
            load_config(str(p))

    def test_explicit_zero_values_kept(self, tmp_path):
        p = tmp_path / "cfg.yaml"
        p.write_text(
            "discovery:\n"
            "  interval_s: 0\n"
            "image:\n"
            "  index: 0\n"
            "helper:\n"
            "  connect_retries: 0\n"
            "  retry_delay_s: 0\n",
            encoding="utf-8",
        )

        cfg = load_config(str(p))

        assert cfg.discovery_interval_s == 0
        assert cfg.image_index == 0
        assert cfg.helper_settings().connect_retries == 0
        assert cfg.helper_settings().connect_retry_delay_s == 0

    def test_null_value_falls_back(self):
        assert CustomizeConfig(raw={"helper": {"connect_retries": None}}).connect_retries == 15

    def test_empty_sections_fall_back(self):
        assert CustomizeConfig(raw={"helper": None}).os_volume_label == "OS"


class TestSaveReport:
    def test_json(self, tmp_path):
        report = new_report()
        report["outcome"] = "committed"
        path = tmp_path / "out" / "report.json"

        save_report(str(path), report)

        assert json.loads(path.read_text(encoding="utf-8"))["outcome"] == "committed"

    def test_yaml(self, tmp_path):
        report = new_report()
        report["decisions"] = {"launcher": "injected"}
        path = tmp_path / "report.yaml"

        save_report(str(path), report)

        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data["decisions"] == {"launcher": "injected"}
        assert data["teardown_errors"] == []
