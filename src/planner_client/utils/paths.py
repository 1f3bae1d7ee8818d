# src/planner_client/utils/paths.py
"""
Centralized path management for the planner client.

Supports two runtime modes:
1. PyInstaller EXE -> files in the directory containing the executable
2. Script/Library  -> files in the current working directory (overridable)

Library users can override by passing explicit paths to ClientConfig.
"""

import sys
from pathlib import Path
from typing import Optional, Union


def get_default_root() -> Path:
    """
    Get the default root directory for data files.

    - EXE mode (PyInstaller): directory containing the executable
    - Otherwise: current working directory
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    return Path.cwd()


def get_logs_dir(root: Optional[Union[Path, str]] = None) -> Path:
    """
    Get the logs directory, creating it if needed.

    Args:
        root: Optional root directory. If None, uses get_default_root().

    Returns:
        Path to the logs directory
    """
    base = Path(root) if root else get_default_root()
    logs_dir = base / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def get_credentials_file(root: Optional[Union[Path, str]] = None) -> Path:
    """
    Get the path of the persisted credential file (does not create it).

    The file plays the role of the browser's cookie jar: it holds the
    access token and the refresh token between CLI invocations.
    """
    base = Path(root) if root else get_default_root()
    return base / "credentials.json"
