"""
Configuration management for the page builder.

Handles persistent configuration including:
- Editor tuning (snap threshold, grid, history size, ...)
- Other user preferences

Config is stored in config.json next to the executable/project root, under the
"editor" key. Environment variables (PAGEBUILDER_<FIELD>) take priority over
the file; a .env file is loaded by app.py at startup.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict

from src.edit import constants
from src.paths import get_config_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "PAGEBUILDER_"


def load_config() -> dict:
    """Load configuration from config.json."""
    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config file {config_path}: {e}")
            return {}
    return {}


def save_config(config: dict) -> None:
    """Save configuration to config.json."""
    config_path = get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


@dataclass
class EditorSettings:
    """Tunable editor parameters. Defaults come from src.edit.constants."""
    snap_threshold: float = constants.SNAP_THRESHOLD
    grid_size: int = constants.GRID_SIZE
    grid_enabled: bool = False
    group_padding: float = constants.GROUP_PADDING
    max_history_size: int = constants.MAX_HISTORY_SIZE
    history_debounce_ms: int = constants.HISTORY_DEBOUNCE_MS
    drag_threshold: float = constants.DRAG_THRESHOLD
    min_width: float = constants.MIN_WIDTH
    min_height: float = constants.MIN_HEIGHT
    duplicate_offset: float = constants.DUPLICATE_OFFSET
    canvas_width: float = constants.CANVAS_WIDTH
    canvas_height: float = constants.CANVAS_HEIGHT

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorSettings":
        """Build settings from a dict, ignoring unknown keys and bad values."""
        settings = cls()
        for f in fields(cls):
            if f.name in data:
                _assign(settings, f.name, data[f.name])
        return settings


def _coerce(current: Any, value: Any) -> Any:
    if isinstance(current, bool):
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)
    if isinstance(current, int):
        return int(float(value))
    if isinstance(current, float):
        return float(value)
    return value


def _assign(settings: EditorSettings, name: str, value: Any) -> None:
    try:
        setattr(settings, name, _coerce(getattr(settings, name), value))
    except (TypeError, ValueError):
        logger.warning(f"Invalid value for editor setting {name}: {value!r}, keeping default")


def load_settings() -> EditorSettings:
    """
    Get the editor settings.

    Priority:
    1. Environment variables PAGEBUILDER_<FIELD> (e.g. PAGEBUILDER_GRID_SIZE)
    2. "editor" section of config.json
    3. Built-in defaults
    """
    section = load_config().get("editor") or {}
    settings = EditorSettings.from_dict(section if isinstance(section, dict) else {})

    for f in fields(EditorSettings):
        env_value = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
        if env_value is not None:
            _assign(settings, f.name, env_value)
    return settings


def save_settings(settings: EditorSettings) -> None:
    """Persist editor settings into config.json, keeping other keys."""
    config = load_config()
    config["editor"] = settings.to_dict()
    save_config(config)
