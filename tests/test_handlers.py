from types import SimpleNamespace

import pytest

from src.edit.handlers import parse_pointer, setup_editor_handlers


class RecordingOverlay:
    def __init__(self):
        self.states = []

    def update(self, state):
        self.states.append(state)


def key_event(name, ctrl=False, shift=False, keydown=True):
    return SimpleNamespace(
        action=SimpleNamespace(keydown=keydown),
        key=SimpleNamespace(name=name),
        modifiers=SimpleNamespace(ctrl=ctrl, meta=False, shift=shift),
    )


@pytest.fixture
def wired(session):
    overlay = RecordingOverlay()
    refreshes = []
    handlers = setup_editor_handlers(session, {}, overlay, lambda: refreshes.append(1))
    return SimpleNamespace(handlers=handlers, overlay=overlay, refreshes=refreshes)


def test_parse_pointer_normalizes_payload():
    payload = parse_pointer({'x': '12.5', 'y': 4, 'id': '', 'ctrl': 1, 'shift': None})
    assert payload == {
        'point': (12.5, 4.0),
        'id': None,
        'ctrl': True,
        'shift': False,
        'handle': None,
    }


@pytest.mark.parametrize('raw', [None, 'a', ['x'], {'x': 'left'}])
def test_parse_pointer_rejects_garbage(raw):
    assert parse_pointer(raw) is None


def test_pointer_stream_drags_element(session, wired):
    wired.handlers['handle_pointer_down']({'x': 15, 'y': 15, 'id': 'a'})
    wired.handlers['handle_pointer_move']({'x': 115, 'y': 52, 'id': 'a'})
    wired.handlers['handle_pointer_up']({'x': 115, 'y': 52})

    assert session.scene.get_geometry('a').origin == (110, 47)
    assert [s.kind for s in wired.overlay.states] == ['pressed', 'dragging', 'idle']
    assert wired.refreshes


def test_pointer_down_on_handle_starts_resize(session, wired):
    session.selection.select_single('a')
    wired.handlers['handle_pointer_down']({'x': 30, 'y': 30, 'id': 'a', 'handle': 'se'})
    assert session.controller.state.kind == 'resizing'


def test_move_without_gesture_is_ignored(wired):
    wired.handlers['handle_pointer_move']({'x': 1, 'y': 1})
    assert wired.refreshes == []


def test_ctrl_a_selects_all(session, wired):
    wired.handlers['handle_keyboard'](key_event('a', ctrl=True))
    assert session.selection.selected_ids == ['a', 'b', 'c']


def test_escape_cancels_gesture_then_clears_selection(session, wired):
    wired.handlers['handle_pointer_down']({'x': 15, 'y': 15, 'id': 'a'})
    wired.handlers['handle_pointer_move']({'x': 215, 'y': 215})

    wired.handlers['handle_keyboard'](key_event('Escape'))
    assert session.controller.state.kind == 'idle'
    assert session.scene.get_geometry('a').origin == (10, 10)
    assert session.selection.selected_ids == ['a']

    wired.handlers['handle_keyboard'](key_event('Escape'))
    assert session.selection.selected_ids == []


def test_keyup_is_ignored(session, wired):
    wired.handlers['handle_keyboard'](key_event('a', ctrl=True, keydown=False))
    assert session.selection.selected_ids == []


def test_unknown_command(wired):
    assert wired.handlers['run_command']('explode') is None
