from __future__ import annotations

import os
import sys
from pathlib import Path


def config_dir() -> Path:
    """Return the Maestro configuration directory (~/.maestro, %APPDATA%\\maestro on Windows)."""
    override = os.environ.get("MAESTRO_HOME")
    if override:
        return Path(override).expanduser()
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(app_data) / "maestro"
    return Path.home() / ".maestro"


def config_file() -> Path:
    return config_dir() / "config.yml"


def auth_dir() -> Path:
    return config_dir() / ".claude"


def credentials_file(auth_path: str | None = None) -> Path:
    """Credentials written by `maestro auth`, relative to the configured auth path."""
    base = Path(auth_path).expanduser() if auth_path else auth_dir()
    return base / ".credentials.json"


def log_dir() -> Path:
    return config_dir() / "logs"


def tui_state_path() -> Path:
    return config_dir() / "tui_state.json"
