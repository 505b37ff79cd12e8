"""
DrvIndex — Application configuration.

Provides:
  - Tool locations (7-Zip, pnputil)
  - Scratch directory for archive extraction
  - Default index file name and debug log settings
  - Persistent config loading/saving from JSON
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from typing import Optional

CONFIG_DIR = os.path.join(os.environ.get("APPDATA", "."), "DrvIndex")
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.json")


@dataclass
class AppConfig:
    """Application-wide configuration."""
    seven_zip: str = "7z"                       # 7-Zip executable
    pnputil: str = "pnputil"                    # pnputil executable
    temp_dir: str = field(default_factory=lambda: os.path.join(tempfile.gettempdir(), "DrvIndex"))
    index_name: str = "DriverIndex.json"        # Default index file name
    log_file: str = os.path.join(CONFIG_DIR, "DrvIndex.log")
    debug: bool = False                         # Mirror console messages to log_file


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load app config from disk, or return defaults."""
    config = AppConfig()
    path = path or CONFIG_FILE
    try:
        if os.path.isfile(path):
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            config.seven_zip = data.get("seven_zip", config.seven_zip)
            config.pnputil = data.get("pnputil", config.pnputil)
            config.temp_dir = data.get("temp_dir", config.temp_dir)
            config.index_name = data.get("index_name", config.index_name)
            config.log_file = data.get("log_file", config.log_file)
            config.debug = bool(data.get("debug", config.debug))
    except (json.JSONDecodeError, OSError, PermissionError, AttributeError):
        pass
    return config


def save_config(config: AppConfig, path: Optional[str] = None) -> None:
    """Save app config to disk."""
    path = path or CONFIG_FILE
    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        data = {
            "seven_zip": config.seven_zip,
            "pnputil": config.pnputil,
            "temp_dir": config.temp_dir,
            "index_name": config.index_name,
            "log_file": config.log_file,
            "debug": config.debug,
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
    except (OSError, PermissionError):
        pass
