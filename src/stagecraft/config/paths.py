"""Platform-aware configuration path resolution.

- Windows: %PROGRAMDATA% (system), %APPDATA% (user)
- Unix: /etc/stagecraft (system), $XDG_CONFIG_HOME/stagecraft or ~/.stagecraft (user)
- Project: $project_root/.stagecraft/
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "stagecraft"
SHORT_NAME = ".stagecraft"


def get_system_config_path() -> Path | None:
    """Get system-level config path (the file may not exist)."""
    if sys.platform == "win32":
        program_data = os.environ.get("PROGRAMDATA")
        return Path(program_data) / APP_NAME / CONFIG_FILENAME if program_data else None
    return Path("/etc") / APP_NAME / CONFIG_FILENAME


def get_user_config_path() -> Path | None:
    """Get user-level config path (the file may not exist)."""
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        return Path(app_data) / APP_NAME / CONFIG_FILENAME if app_data else None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME
    return Path.home() / SHORT_NAME / CONFIG_FILENAME


def get_project_config_path(project_root: str) -> Path:
    """Get project-level config path (the file may not exist)."""
    return Path(project_root) / SHORT_NAME / CONFIG_FILENAME


def get_config_paths(project_root: str | None = None) -> list[Path]:
    """Get all config paths in priority order (lowest to highest)."""
    paths = [p for p in (get_system_config_path(), get_user_config_path()) if p]
    if project_root:
        paths.append(get_project_config_path(project_root))
    return paths
