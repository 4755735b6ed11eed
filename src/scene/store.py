"""
JSON persistence for scene snapshots.

A page is stored as one JSON file holding the output of
SceneAccessor.serialize(). Files live under the app's pages/ directory
by default (see src.paths).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from src.paths import ensure_pages_dir
from src.scene.protocol import SceneAccessor

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class SceneStoreError(ValueError):
    """Raised when a scene file cannot be read back into a scene."""


def page_path(page_name: str) -> Path:
    """Resolve a page name to its file in the pages directory."""
    return ensure_pages_dir() / f"{page_name}.json"


def save_scene(scene: SceneAccessor, path: PathLike) -> Path:
    """Write the scene snapshot to disk and return the path written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(scene.serialize(), f, indent=2, ensure_ascii=False)
    logger.info(f"Saved scene to {path}")
    return path


def read_snapshot(path: PathLike) -> Dict[str, Any]:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SceneStoreError(f"Scene file {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SceneStoreError(f"Scene file {path} does not contain an object")
    return data


def load_scene(scene: SceneAccessor, path: PathLike) -> SceneAccessor:
    """
    Replace the scene content with the snapshot stored at path.

    Raises:
        FileNotFoundError if the file does not exist
        SceneStoreError if the file is corrupt; the scene is left unchanged
    """
    snapshot = read_snapshot(path)
    try:
        scene.restore(snapshot)
    except ValueError as e:
        raise SceneStoreError(f"Scene file {path} is malformed: {e}") from e
    logger.info(f"Loaded scene from {path}")
    return scene


def list_pages() -> List[str]:
    return sorted(p.stem for p in ensure_pages_dir().glob("*.json"))
