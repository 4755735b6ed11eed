"""
Undo/Redo Manager - linear history of scene snapshots.

Each entry holds the scene snapshot taken right after an action was
committed. The cursor points at the entry matching the current scene:

    can_undo  = cursor > 0
    can_redo  = cursor < len(history) - 1

Appending truncates every entry after the cursor. The list is capped; the
oldest entry is evicted first and the cursor is shifted so it keeps pointing
at the same entry.

Continuous gestures (drags, arrow-key nudges) go through schedule_save(),
a trailing debounce that coalesces a burst into one entry. The debounce is an
asyncio task when an event loop is running; otherwise the save stays pending
until flush_pending() or the next commit.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from src.edit.constants import HISTORY_DEBOUNCE_MS, MAX_HISTORY_SIZE
from src.edit.events import EventEmitter
from src.scene.protocol import SceneAccessor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionMeta:
    """What a history entry represents, for undo/redo labels."""
    type: str = 'edit'
    description: str = 'Edit'
    element_ids: Tuple[str, ...] = ()


@dataclass
class HistoryEntry:
    snapshot: Dict[str, Any]
    action: ActionMeta
    timestamp: float = field(default_factory=time.time)


class UndoRedoManager:
    """Snapshot history with a cursor, a size cap and a save debounce."""

    def __init__(self, scene: SceneAccessor,
                 max_history_size: int = MAX_HISTORY_SIZE,
                 debounce_ms: int = HISTORY_DEBOUNCE_MS):
        """
        Initialize UndoRedoManager.

        Args:
            scene: Anything with serialize()/restore(snapshot)
            max_history_size: Entries kept before the oldest is evicted
            debounce_ms: Quiet period before a scheduled save is written
        """
        self._scene = scene
        self.max_history_size = max(1, max_history_size)
        self.debounce_ms = debounce_ms

        self._history: List[HistoryEntry] = []
        self._cursor = -1
        self._restoring = False

        self._pending: Optional[ActionMeta] = None
        self._debounce_task: Optional[asyncio.Task] = None

        self.events = EventEmitter(['changed', 'error'])

    # --- State ---

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def length(self) -> int:
        return len(self._history)

    def __len__(self) -> int:
        return len(self._history)

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._history)

    @property
    def current(self) -> Optional[HistoryEntry]:
        return self._history[self._cursor] if self._cursor >= 0 else None

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._history) - 1

    @property
    def is_restoring(self) -> bool:
        return self._restoring

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def undo_description(self) -> Optional[str]:
        """Label of the action an undo would revert."""
        return self._history[self._cursor].action.description if self.can_undo else None

    @property
    def redo_description(self) -> Optional[str]:
        """Label of the action a redo would reapply."""
        return self._history[self._cursor + 1].action.description if self.can_redo else None

    def _notify(self) -> None:
        self.events.emit('changed', {
            'can_undo': self.can_undo,
            'can_redo': self.can_redo,
            'cursor': self._cursor,
            'length': len(self._history),
            'undo_description': self.undo_description,
            'redo_description': self.redo_description,
        })

    # --- Saving ---

    def save_state(self, action: Optional[ActionMeta] = None) -> bool:
        """
        Append a snapshot of the current scene.

        Ignored while a restore is in progress.
        """
        if self._restoring:
            logger.debug("save_state ignored during restore")
            return False

        entry = HistoryEntry(snapshot=self._scene.serialize(), action=action or ActionMeta())

        if self._cursor < len(self._history) - 1:
            del self._history[self._cursor + 1:]

        self._history.append(entry)
        self._cursor += 1

        while len(self._history) > self.max_history_size:
            self._history.pop(0)
            self._cursor -= 1

        logger.debug(f"History saved '{entry.action.description}' ({self._cursor + 1}/{len(self._history)})")
        self._notify()
        return True

    def save_initial_state(self) -> bool:
        return self.save_state(ActionMeta('initial', 'Initial state'))

    def commit(self, action_type: str, description: str,
               element_ids: Iterable[str] = ()) -> bool:
        """Record one user action immediately, flushing any pending save first."""
        self.flush_pending()
        return self.save_state(ActionMeta(action_type, description, tuple(element_ids)))

    # --- Debounce ---

    def schedule_save(self, action: Optional[ActionMeta] = None) -> None:
        """
        Request a save after the debounce period.

        Repeated calls within the period restart the timer; only one entry
        is written, labelled with the latest action.
        """
        if self._restoring:
            return
        self._pending = action or ActionMeta()

        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; save stays pending until flushed")
            return

        async def flush():
            await asyncio.sleep(self.debounce_ms / 1000)
            self._debounce_task = None
            self.flush_pending()

        self._debounce_task = loop.create_task(flush())

    def flush_pending(self) -> bool:
        """Write a pending scheduled save now. Returns True if one was written."""
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

        action, self._pending = self._pending, None
        if action is None:
            return False
        return self.save_state(action)

    def cancel_pending(self) -> None:
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None
        self._pending = None

    # --- Navigation ---

    def _restore(self, index: int) -> bool:
        self._restoring = True
        try:
            self._scene.restore(self._history[index].snapshot)
            return True
        except Exception as e:
            logger.error(f"Failed to restore history entry {index}: {e}")
            self.events.emit('error', {'index': index, 'message': str(e)})
            return False
        finally:
            self._restoring = False

    def undo(self) -> bool:
        self.flush_pending()
        if not self.can_undo:
            logger.info("Nothing to undo")
            return False
        if not self._restore(self._cursor - 1):
            return False
        self._cursor -= 1
        self._notify()
        return True

    def redo(self) -> bool:
        self.flush_pending()
        if not self.can_redo:
            logger.info("Nothing to redo")
            return False
        if not self._restore(self._cursor + 1):
            return False
        self._cursor += 1
        self._notify()
        return True

    def jump_to_state(self, index: int) -> bool:
        if not 0 <= index < len(self._history):
            logger.warning(f"jump_to_state: index {index} out of range")
            return False
        self.cancel_pending()
        if not self._restore(index):
            return False
        self._cursor = index
        self._notify()
        return True

    # --- Listing ---

    def get_history(self) -> List[Dict[str, Any]]:
        return [
            {
                'index': i,
                'is_current': i == self._cursor,
                'type': entry.action.type,
                'description': entry.action.description,
                'element_ids': list(entry.action.element_ids),
                'timestamp': entry.timestamp,
            }
            for i, entry in enumerate(self._history)
        ]

    def clear_history(self) -> None:
        """Drop everything and start over from the current scene."""
        self.cancel_pending()
        self._history = []
        self._cursor = -1
        self.save_initial_state()
