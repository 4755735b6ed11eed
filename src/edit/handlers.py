"""
Edit Handlers - browser event handlers for the editor page in app.py

This module keeps the keyboard and pointer plumbing out of app.py so the
main application file stays focused on routing and layout. Every handler
decodes a NiceGUI event into plain values and calls the editor session.
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from nicegui import ui

from src.edit.batch import OperationResult
from src.edit.constants import NUDGE_STEP, NUDGE_STEP_LARGE
from src.edit.overlay import EditOverlay
from src.edit.session import EditorSession

logger = logging.getLogger(__name__)

# JS side of the pointer events: canvas-local coordinates, the element id
# under the pointer (closest [data-element-id]) and modifier keys.
POINTER_JS = '''(e) => {
    const canvas = e.currentTarget.getBoundingClientRect();
    const hit = e.target.closest('[data-element-id]');
    emit({
        x: e.clientX - canvas.left,
        y: e.clientY - canvas.top,
        id: hit ? hit.dataset.elementId : null,
        ctrl: e.ctrlKey || e.metaKey,
        shift: e.shiftKey,
        handle: e.target.dataset.handle || null,
    });
}'''


def parse_pointer(raw: Any) -> Optional[Dict[str, Any]]:
    """Normalize a pointer payload into {'point', 'id', 'ctrl', 'shift', 'handle'}."""
    if not isinstance(raw, dict):
        return None
    try:
        point: Tuple[float, float] = (float(raw.get('x', 0)), float(raw.get('y', 0)))
    except (TypeError, ValueError):
        return None
    return {
        'point': point,
        'id': raw.get('id') or None,
        'ctrl': bool(raw.get('ctrl')),
        'shift': bool(raw.get('shift')),
        'handle': raw.get('handle') or None,
    }


def setup_editor_handlers(
    session: EditorSession,
    state: Dict[str, Any],
    overlay: EditOverlay,
    refresh_canvas: Callable,
):
    """
    Set up all editor event handlers.

    Args:
        session: Wired editor session for the open page
        state: Page state dictionary
        overlay: EditOverlay for guides and marquee
        refresh_canvas: Function that re-renders the scene

    Returns:
        Dict with handler functions for binding to UI events
    """
    controller = session.controller
    batch = session.batch

    def on_gesture_change(gesture_state):
        """Called whenever the controller state changes - update overlay."""
        overlay.update(gesture_state)

    controller.set_on_state_change(on_gesture_change)

    def notify_result(result: OperationResult):
        if result.ok:
            ui.notify(result.message, type='positive', position='bottom', timeout=1000)
        else:
            ui.notify(result.message, type='warning', position='bottom')

    batch.events.on('completed', notify_result)
    batch.events.on('rejected', notify_result)
    session.history.events.on(
        'error', lambda data: ui.notify(f"Could not restore history: {data['message']}", type='negative')
    )

    def run_command(name: str, *args) -> Optional[OperationResult]:
        """Dispatch a toolbar/shortcut command to BatchOperations."""
        command = getattr(batch, name, None)
        if command is None:
            logger.warning(f"Unknown editor command: {name}")
            return None
        result = command(*args)
        refresh_canvas()
        return result

    def handle_keyboard(e):
        """Editor shortcuts. Only keydown events are handled."""
        if not e.action.keydown:
            return
        key = e.key.name
        mods = e.modifiers
        ctrl = mods.ctrl or mods.meta

        if key == 'Escape':
            if controller.state.kind != 'idle':
                controller.cancel()
                refresh_canvas()
            else:
                session.selection.clear()
                refresh_canvas()
            return

        if ctrl and key.lower() == 'z':
            run_command('redo' if mods.shift else 'undo')
        elif ctrl and key.lower() == 'y':
            run_command('redo')
        elif ctrl and key.lower() == 'a':
            session.selection.select_all()
            refresh_canvas()
        elif ctrl and key.lower() == 'd':
            run_command('duplicate_selected')
        elif ctrl and key.lower() == 'g':
            run_command('ungroup' if mods.shift else 'group')
        elif ctrl and key.lower() == 'l':
            run_command('lock_selected')
        elif key in ('Delete', 'Backspace'):
            run_command('delete_selected')
        elif key == ']':
            run_command('bring_to_front')
        elif key == '[':
            run_command('send_to_back')
        elif key.startswith('Arrow') and session.selection.count:
            step = NUDGE_STEP_LARGE if mods.shift else NUDGE_STEP
            dx, dy = {
                'ArrowLeft': (-step, 0),
                'ArrowRight': (step, 0),
                'ArrowUp': (0, -step),
                'ArrowDown': (0, step),
            }.get(key, (0, 0))
            batch.nudge_selected(dx, dy)
            refresh_canvas()

    def handle_pointer_down(event):
        payload = parse_pointer(event.args if hasattr(event, 'args') else event)
        if payload is None:
            return
        if payload['handle'] and payload['id']:
            controller.begin_resize(payload['id'], payload['handle'], payload['point'],
                                    preserve_aspect=payload['shift'])
        else:
            controller.pointer_down(payload['point'], payload['id'],
                                    additive=payload['ctrl'], range_select=payload['shift'])
        refresh_canvas()

    def handle_pointer_move(event):
        if controller.state.kind == 'idle':
            return
        payload = parse_pointer(event.args if hasattr(event, 'args') else event)
        if payload is None:
            return
        before = controller.state.kind
        controller.pointer_move(payload['point'], preserve_aspect=payload['shift'])
        # Marquee frames only touch the overlay and selection outlines
        if before != 'marquee' or controller.state.kind != 'marquee':
            refresh_canvas()
        elif state.get('selection_version') != session.selection.selected_ids:
            state['selection_version'] = session.selection.selected_ids
            refresh_canvas()

    def handle_pointer_up(event):
        payload = parse_pointer(event.args if hasattr(event, 'args') else event)
        controller.pointer_up(payload['point'] if payload else None)
        refresh_canvas()

    return {
        'handle_keyboard': handle_keyboard,
        'handle_pointer_down': handle_pointer_down,
        'handle_pointer_move': handle_pointer_move,
        'handle_pointer_up': handle_pointer_up,
        'run_command': run_command,
    }
