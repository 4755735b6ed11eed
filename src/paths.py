"""
Path utilities for the page builder.

Handles path resolution for both development mode and frozen (PyInstaller) executables.
- In development: paths are relative to the project root
- When frozen: paths are relative to the executable location

Saved pages (pages/) and config.json live NEXT TO the executable, not bundled inside.
"""

import os
import sys
from pathlib import Path


def get_app_dir() -> Path:
    """
    Get the application directory.

    - In development: the project root (parent of src/)
    - When frozen: the directory containing the executable
    - PAGEBUILDER_HOME overrides both
    """
    override = os.environ.get("PAGEBUILDER_HOME")
    if override:
        return Path(override)
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).parent.parent


def get_pages_dir() -> Path:
    """Get the directory holding saved page scenes."""
    return get_app_dir() / "pages"


def get_config_path() -> Path:
    """Get the path to the config file (editor settings)."""
    return get_app_dir() / "config.json"


def ensure_pages_dir() -> Path:
    """
    Ensure the pages directory exists, creating it if necessary.
    Returns the path to the pages directory.
    """
    pages_dir = get_pages_dir()
    pages_dir.mkdir(parents=True, exist_ok=True)
    return pages_dir
