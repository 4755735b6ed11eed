"""
Editor session - wires every manager together for one open page.

There are no module-level singletons; the UI (or a test) creates a session
and passes it around explicitly.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.config import EditorSettings
from src.edit.alignment import AlignmentEngine
from src.edit.batch import BatchOperations
from src.edit.controller import EditorController
from src.edit.groups import GroupManager
from src.edit.guides import SmartGuides
from src.edit.history import UndoRedoManager
from src.edit.resize import ResizeManager
from src.edit.selection import SelectionModel
from src.scene.memory import InMemoryScene
from src.scene.protocol import SceneAccessor

logger = logging.getLogger(__name__)


@dataclass
class EditorSession:
    scene: SceneAccessor
    settings: EditorSettings
    selection: SelectionModel
    alignment: AlignmentEngine
    guides: SmartGuides
    groups: GroupManager
    history: UndoRedoManager
    resize: ResizeManager
    batch: BatchOperations
    controller: EditorController


def create_editor_session(scene: Optional[SceneAccessor] = None,
                          settings: Optional[EditorSettings] = None,
                          record_initial_state: bool = True) -> EditorSession:
    """
    Build a fully wired editor around a scene.

    Args:
        scene: Scene to edit; a blank InMemoryScene sized from settings if None
        settings: Editor tuning; defaults if None
        record_initial_state: Seed history with the starting scene so the
            first real action can be undone
    """
    settings = settings or EditorSettings()
    if scene is None:
        scene = InMemoryScene(settings.canvas_width, settings.canvas_height)

    selection = SelectionModel(scene)
    alignment = AlignmentEngine(snap_threshold=settings.snap_threshold)
    guides = SmartGuides(scene, alignment, grid_size=settings.grid_size,
                         grid_enabled=settings.grid_enabled)
    groups = GroupManager(scene, padding=settings.group_padding)
    history = UndoRedoManager(scene, max_history_size=settings.max_history_size,
                              debounce_ms=settings.history_debounce_ms)
    resize = ResizeManager(scene, min_width=settings.min_width, min_height=settings.min_height)
    batch = BatchOperations(scene, selection, alignment, groups, history,
                            duplicate_offset=settings.duplicate_offset)
    controller = EditorController(scene, selection, guides, resize, history,
                                  drag_threshold=settings.drag_threshold)

    if record_initial_state:
        history.save_initial_state()

    logger.info("Editor session created")
    return EditorSession(
        scene=scene,
        settings=settings,
        selection=selection,
        alignment=alignment,
        guides=guides,
        groups=groups,
        history=history,
        resize=resize,
        batch=batch,
        controller=controller,
    )
