from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Tuple

LOG_NAME = "winpe-wifi.log"
DEFAULT_LOG_PATH = str(Path(tempfile.gettempdir()) / LOG_NAME)


def _open_log_file(log_path: str) -> Tuple[logging.Handler, str]:
    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path, encoding="utf-8"), log_path
    except OSError:
        fallback = str(Path.cwd() / LOG_NAME)
        return logging.FileHandler(fallback, encoding="utf-8"), fallback


def configure_logging(log_path: str = DEFAULT_LOG_PATH, *, verbose: bool = False) -> str:
    """Send everything to the log file and INFO (DEBUG when verbose) to the console.

    Only the first call installs handlers. Returns the log file actually used.
    """

    root = logging.getLogger()
    configured = getattr(root, "_winpe_wifi_log_path", None)
    if configured:
        return configured

    root.setLevel(logging.DEBUG)

    file_handler, chosen_path = _open_log_file(log_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(file_handler)

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root.addHandler(console)

    setattr(root, "_winpe_wifi_log_path", chosen_path)
    if chosen_path != log_path:
        logging.getLogger(__name__).warning("Cannot write %s; logging to %s", log_path, chosen_path)
    return chosen_path
