"""
Scene layer for the page builder.

The editing engine only talks to a SceneAccessor. InMemoryScene is the
reference implementation used by the app and the tests.
"""

from src.scene.model import Rect, Element, Point, ELEMENT_KIND, GROUP_KIND
from src.scene.protocol import SceneAccessor
from src.scene.memory import InMemoryScene
from src.scene.store import SceneStoreError, save_scene, load_scene, page_path, list_pages

__all__ = [
    'Rect',
    'Element',
    'Point',
    'ELEMENT_KIND',
    'GROUP_KIND',
    'SceneAccessor',
    'InMemoryScene',
    'SceneStoreError',
    'save_scene',
    'load_scene',
    'page_path',
    'list_pages',
]
