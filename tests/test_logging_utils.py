"""Tests for logging_utils.py."""

from __future__ import annotations

import logging

import pytest

from winpe_wifi import logging_utils


@pytest.fixture
def clean_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for h in root.handlers:
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    if hasattr(root, "_winpe_wifi_log_path"):
        delattr(root, "_winpe_wifi_log_path")


def test_writes_debug_to_file_and_installs_once(clean_root_logger, tmp_path):
    log_path = tmp_path / "logs" / "run.log"

    assert logging_utils.configure_logging(str(log_path)) == str(log_path)
    added = len(clean_root_logger.handlers)
    assert logging_utils.configure_logging(str(tmp_path / "other.log")) == str(log_path)
    assert len(clean_root_logger.handlers) == added

    logging.getLogger("winpe_wifi.test").debug("tool output here")
    for h in clean_root_logger.handlers:
        h.flush()
    assert "tool output here" in log_path.read_text(encoding="utf-8")


def test_console_level_follows_verbose(clean_root_logger, tmp_path):
    logging_utils.configure_logging(str(tmp_path / "run.log"), verbose=True)

    consoles = [h for h in clean_root_logger.handlers if type(h) is logging.StreamHandler]
    assert consoles[-1].level == logging.DEBUG


def test_falls_back_to_cwd(clean_root_logger, tmp_path, monkeypatch, mocker):
    monkeypatch.chdir(tmp_path)
    mocker.patch("winpe_wifi.logging_utils.Path.mkdir", side_effect=PermissionError("denied"))

    chosen = logging_utils.configure_logging("/nonexistent-root/winpe-wifi.log")

    assert chosen == str(tmp_path / logging_utils.LOG_NAME)
