"""
Batch Operations - user commands over the current selection.

This is the facade the toolbar, keyboard shortcuts and context menu call.
Each mutating command:
- checks its preconditions and returns a rejected OperationResult (never raises)
- skips ids that no longer resolve
- writes exactly one history entry
- re-syncs the selection so it never holds locked, hidden or deleted ids
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Optional, Tuple

from src.edit.alignment import AlignmentEngine, DISTRIBUTE_AXES, normalize_align_mode
from src.edit.constants import DUPLICATE_OFFSET
from src.edit.events import EventEmitter
from src.edit.groups import GroupManager
from src.edit.history import ActionMeta, UndoRedoManager
from src.edit.selection import SelectionModel, outermost_ids
from src.scene.model import GROUP_KIND
from src.scene.protocol import SceneAccessor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a batch command, suitable for a toast."""
    ok: bool
    message: str = ''
    action: str = ''
    affected: Tuple[str, ...] = ()


class BatchOperations:
    """Composes selection, alignment, grouping and history into atomic commands."""

    def __init__(self, scene: SceneAccessor, selection: SelectionModel,
                 alignment: AlignmentEngine, groups: GroupManager,
                 history: UndoRedoManager, duplicate_offset: float = DUPLICATE_OFFSET):
        self._scene = scene
        self._selection = selection
        self._alignment = alignment
        self._groups = groups
        self._history = history
        self.duplicate_offset = duplicate_offset
        self.events = EventEmitter(['completed', 'rejected'])

    # --- Helpers ---

    def _resolve(self, ids: Optional[Iterable[str]] = None) -> List[str]:
        """Existing ids from ids (default: the selection), stale ones skipped."""
        source = self._selection.selected_ids if ids is None else list(dict.fromkeys(ids))
        resolved = []
        for element_id in source:
            if self._scene.get_element(element_id) is None:
                logger.debug(f"Skipping stale id {element_id}")
                continue
            resolved.append(element_id)
        return resolved

    def _outermost(self, ids: List[str]) -> List[str]:
        return outermost_ids(self._scene, ids)

    def _z_sorted(self, ids: List[str]) -> List[str]:
        """Sort ids back-to-front by their slot among siblings."""
        def key(element_id: str):
            parent_id = self._scene.get_parent(element_id)
            return self._scene.get_children(parent_id).index(element_id)
        return sorted(ids, key=key)

    def _translate(self, ids: List[str], dx: float, dy: float) -> None:
        for element_id in ids:
            rect = self._scene.get_geometry(element_id)
            self._scene.set_geometry(element_id, rect.translated(dx, dy))

    def _reject(self, action: str, message: str) -> OperationResult:
        logger.info(f"{action} rejected: {message}")
        result = OperationResult(ok=False, message=message, action=action)
        self.events.emit('rejected', result)
        return result

    def _complete(self, action: str, message: str, affected: Iterable[str]) -> OperationResult:
        affected = tuple(affected)
        self._history.commit(action, message, affected)
        self._selection.sync()
        result = OperationResult(ok=True, message=message, action=action, affected=affected)
        logger.info(message)
        self.events.emit('completed', result)
        return result

    # --- Alignment ---

    def align(self, mode: str) -> OperationResult:
        try:
            mode = normalize_align_mode(mode)
        except ValueError as e:
            return self._reject('align', str(e))
        ids = self._outermost(self._resolve())
        if len(ids) < 2:
            return self._reject('align', "Select at least 2 elements to align")

        self._history.flush_pending()
        rects = {i: self._scene.absolute_rect(i) for i in ids}
        for element_id, (dx, dy) in self._alignment.align(rects, mode).items():
            self._translate([element_id], dx, dy)
        return self._complete('align', f"Aligned {len(ids)} elements: {mode}", ids)

    def distribute(self, axis: str) -> OperationResult:
        if axis not in DISTRIBUTE_AXES:
            return self._reject('distribute', f"Unknown distribute axis: {axis}")
        ids = self._outermost(self._resolve())
        if len(ids) < 3:
            return self._reject('distribute', "Select at least 3 elements to distribute")

        self._history.flush_pending()
        rects = {i: self._scene.absolute_rect(i) for i in ids}
        for element_id, (dx, dy) in self._alignment.distribute(rects, axis).items():
            self._translate([element_id], dx, dy)
        return self._complete('distribute', f"Distributed {len(ids)} elements: {axis}", ids)

    # --- Grouping ---

    def group(self, name: Optional[str] = None) -> OperationResult:
        ids = self._resolve()
        if len(ids) < 2:
            return self._reject('group', "Select at least 2 elements to group")
        problem = self._groups.validate(ids)
        if problem:
            return self._reject('group', problem)

        self._history.flush_pending()
        group_id = self._groups.create_group(ids, name)
        self._selection.select_single(group_id)
        return self._complete('group', f"Group created with {len(ids)} elements", [group_id, *ids])

    def ungroup(self) -> OperationResult:
        ids = self._resolve()
        if len(ids) != 1:
            return self._reject('ungroup', "Select one group to ungroup")
        if not self._groups.is_group(ids[0]):
            return self._reject('ungroup', "The selected element is not a group")

        self._history.flush_pending()
        members = self._groups.destroy_group(ids[0])
        self._selection.select_many(members)
        return self._complete('ungroup', "Group ungrouped", [ids[0], *members])

    # --- Style ---

    def apply_style(self, prop: str, value: Any) -> OperationResult:
        ids = self._resolve()
        if not ids:
            return self._reject('style', "No elements selected")

        self._history.flush_pending()
        for element_id in ids:
            self._scene.set_style(element_id, prop, value)
        return self._complete('style', f"Style applied to {len(ids)} elements", ids)

    # --- Lifecycle ---

    def delete_selected(self) -> OperationResult:
        ids = self._outermost(self._resolve())
        if not ids:
            return self._reject('delete', "No elements selected")

        self._history.flush_pending()
        removed: List[str] = []
        parents = []
        for element_id in ids:
            parents.append(self._scene.get_parent(element_id))
            removed.extend(self._scene.remove_element(element_id))
        for parent_id in dict.fromkeys(parents):
            if parent_id is not None and self._scene.get_element(parent_id) is not None:
                self._groups.dissolve_if_undersized(parent_id)
        return self._complete('delete', f"Deleted {len(ids)} elements", removed)

    def _clone(self, element_id: str, parent_id: Optional[str], index: Optional[int],
               dx: float, dy: float) -> str:
        original = self._scene.get_element(element_id)
        prefix = "group" if original.kind == GROUP_KIND else "el"
        clone = replace(
            original,
            id=self._scene.generate_id(prefix),
            parent_id=parent_id,
            geometry=original.geometry.translated(dx, dy),
            style=dict(original.style),
            name=f"{original.name} copy" if original.name else original.name,
        )
        new_id = self._scene.add_element(clone, index)
        for child_id in self._scene.get_children(element_id):
            self._clone(child_id, new_id, None, 0.0, 0.0)
        return new_id

    def duplicate_selected(self) -> OperationResult:
        ids = self._z_sorted(self._outermost(self._resolve()))
        if not ids:
            return self._reject('duplicate', "No elements selected")

        self._history.flush_pending()
        offset = self.duplicate_offset
        duplicates = []
        for element_id in ids:
            parent_id = self._scene.get_parent(element_id)
            slot = self._scene.get_children(parent_id).index(element_id) + 1
            duplicates.append(self._clone(element_id, parent_id, slot, offset, offset))
        self._selection.select_many(duplicates)
        return self._complete('duplicate', f"Duplicated {len(ids)} elements", duplicates)

    # --- Flags ---

    def _set_flag(self, action: str, ids: Optional[Iterable[str]], setter, value: bool,
                  message: str) -> OperationResult:
        targets = self._resolve(ids)
        if not targets:
            return self._reject(action, "No elements selected")
        self._history.flush_pending()
        for element_id in targets:
            setter(element_id, value)
        return self._complete(action, message.format(n=len(targets)), targets)

    def lock_selected(self) -> OperationResult:
        return self._set_flag('lock', None, self._scene.set_locked, True, "Locked {n} elements")

    def unlock_selected(self, ids: Optional[Iterable[str]] = None) -> OperationResult:
        """Unlock ids (locked elements are never selected, so pass them explicitly)."""
        return self._set_flag('unlock', ids, self._scene.set_locked, False, "Unlocked {n} elements")

    def hide_selected(self) -> OperationResult:
        return self._set_flag('hide', None, self._scene.set_visible, False, "Hid {n} elements")

    def show_selected(self, ids: Optional[Iterable[str]] = None) -> OperationResult:
        return self._set_flag('show', ids, self._scene.set_visible, True, "Showed {n} elements")

    # --- Z-order ---

    def bring_to_front(self) -> OperationResult:
        ids = self._z_sorted(self._resolve())
        if not ids:
            return self._reject('bring_to_front', "No elements selected")
        self._history.flush_pending()
        # Back-to-front order keeps the moved elements' relative stacking
        for element_id in ids:
            siblings = self._scene.get_children(self._scene.get_parent(element_id))
            self._scene.move_in_parent(element_id, len(siblings))
        return self._complete('bring_to_front', f"Brought {len(ids)} elements to front", ids)

    def send_to_back(self) -> OperationResult:
        ids = self._z_sorted(self._resolve())
        if not ids:
            return self._reject('send_to_back', "No elements selected")
        self._history.flush_pending()
        for element_id in reversed(ids):
            self._scene.move_in_parent(element_id, 0)
        return self._complete('send_to_back', f"Sent {len(ids)} elements to back", ids)

    # --- Movement ---

    def move_selected(self, dx: float, dy: float) -> OperationResult:
        ids = self._outermost(self._resolve())
        if not ids:
            return self._reject('move', "No elements selected")
        self._history.flush_pending()
        self._translate(ids, dx, dy)
        return self._complete('move', f"Moved {len(ids)} elements", ids)

    def nudge_selected(self, dx: float, dy: float) -> OperationResult:
        """Arrow-key move; a burst of nudges becomes one debounced history entry."""
        ids = self._outermost(self._resolve())
        if not ids:
            return self._reject('nudge', "No elements selected")
        self._translate(ids, dx, dy)
        self._history.schedule_save(ActionMeta('move', f"Moved {len(ids)} elements", tuple(ids)))
        result = OperationResult(ok=True, message=f"Nudged {len(ids)} elements",
                                 action='nudge', affected=tuple(ids))
        self.events.emit('completed', result)
        return result

    # --- Misc ---

    def rename(self, element_id: str, name: str) -> OperationResult:
        if self._scene.get_element(element_id) is None:
            return self._reject('rename', f"Element {element_id} no longer exists")
        self._history.flush_pending()
        self._scene.set_name(element_id, name)
        return self._complete('rename', f"Renamed to '{name}'", [element_id])

    def undo(self) -> OperationResult:
        self._history.flush_pending()
        if not self._history.can_undo:
            return self._reject('undo', "Nothing to undo")
        description = self._history.undo_description
        if not self._history.undo():
            return self._reject('undo', "Undo failed, history entry could not be restored")
        self._selection.sync()
        result = OperationResult(ok=True, message=f"Undone: {description}", action='undo')
        self.events.emit('completed', result)
        return result

    def redo(self) -> OperationResult:
        self._history.flush_pending()
        if not self._history.can_redo:
            return self._reject('redo', "Nothing to redo")
        if not self._history.redo():
            return self._reject('redo', "Redo failed, history entry could not be restored")
        self._selection.sync()
        result = OperationResult(ok=True, message=f"Redone: {self._history.current.action.description}",
                                 action='redo')
        self.events.emit('completed', result)
        return result
