import asyncio

import pytest

from src.edit.history import ActionMeta, UndoRedoManager
from src.scene.memory import InMemoryScene
from src.scene.model import Rect


@pytest.fixture
def history(scene):
    manager = UndoRedoManager(scene, max_history_size=50, debounce_ms=20)
    manager.save_initial_state()
    return manager


def move_a(scene, x):
    scene.set_geometry("a", scene.get_geometry("a").moved_to(x, 10))


def test_initial_state_has_nothing_to_undo(history):
    assert history.length == 1
    assert history.cursor == 0
    assert not history.can_undo
    assert not history.can_redo
    assert history.current.action.type == "initial"


def test_undo_redo_walks_the_cursor(scene, history):
    for x in (100, 200, 300):
        move_a(scene, x)
        history.commit("move", f"Move to {x}", ["a"])

    assert history.undo() and history.undo()
    assert scene.get_geometry("a").x == 100
    assert history.cursor == 1
    assert history.can_redo

    assert history.redo()
    assert scene.get_geometry("a").x == 200


def test_saving_after_undo_truncates_redo_branch(scene, history):
    for x in (100, 200, 300):
        move_a(scene, x)
        history.commit("move", f"Move to {x}")
    history.undo()
    history.undo()

    move_a(scene, 999)
    history.commit("move", "Move to 999")

    assert history.length == 3
    assert history.cursor == 2
    assert not history.can_redo
    assert [h["description"] for h in history.get_history()] == [
        "Initial state", "Move to 100", "Move to 999",
    ]


def test_undo_and_redo_descriptions(scene, history):
    move_a(scene, 100)
    history.commit("move", "Move A")
    assert history.undo_description == "Move A"
    assert history.redo_description is None

    history.undo()
    assert history.undo_description is None
    assert history.redo_description == "Move A"


def test_nothing_to_undo_or_redo(history):
    assert history.undo() is False
    assert history.redo() is False
    assert history.cursor == 0


def test_cap_evicts_oldest_and_keeps_cursor_on_latest(scene):
    history = UndoRedoManager(scene, max_history_size=3)
    history.save_initial_state()
    for x in (100, 200, 300, 400):
        move_a(scene, x)
        history.commit("move", f"Move to {x}")

    assert history.length == 3
    assert history.cursor == 2
    assert history.entries[0].action.description == "Move to 200"
    history.undo()
    history.undo()
    assert scene.get_geometry("a").x == 200
    assert not history.can_undo


def test_jump_to_state(scene, history):
    for x in (100, 200):
        move_a(scene, x)
        history.commit("move", f"Move to {x}")

    assert history.jump_to_state(0)
    assert scene.get_geometry("a").x == 10
    assert history.cursor == 0
    assert history.can_redo


@pytest.mark.parametrize("index", [-1, 5])
def test_jump_out_of_range_is_rejected(history, index):
    assert history.jump_to_state(index) is False
    assert history.cursor == 0


class FailingScene(InMemoryScene):
    """Scene whose restore always raises."""

    def restore(self, snapshot):
        raise ValueError("corrupt snapshot")


def test_failed_restore_keeps_cursor_and_reports_error():
    scene = FailingScene()
    scene.create_element(0, 0, 10, 10, element_id="a")
    history = UndoRedoManager(scene)
    history.save_initial_state()
    scene.set_geometry("a", Rect(50, 50, 10, 10))
    history.commit("move", "Move A")

    errors = []
    history.events.on("error", errors.append)

    assert history.undo() is False
    assert history.cursor == 1
    assert errors == [{"index": 0, "message": "corrupt snapshot"}]
    assert not history.is_restoring


class SavingScene(InMemoryScene):
    """Scene that tries to record history while being restored."""

    history = None

    def restore(self, snapshot):
        super().restore(snapshot)
        self.saved_during_restore = self.history.save_state()


def test_save_is_ignored_while_restoring():
    scene = SavingScene()
    scene.create_element(0, 0, 10, 10, element_id="a")
    history = UndoRedoManager(scene)
    scene.history = history
    history.save_initial_state()
    history.commit("move", "Move A")

    history.undo()

    assert scene.saved_during_restore is False
    assert history.length == 2


def test_schedule_save_without_event_loop_stays_pending(scene, history):
    move_a(scene, 100)
    history.schedule_save(ActionMeta("move", "Nudge"))
    assert history.has_pending
    assert history.length == 1

    assert history.flush_pending() is True
    assert not history.has_pending
    assert history.length == 2
    assert history.current.action.description == "Nudge"


def test_commit_flushes_pending_save_first(scene, history):
    move_a(scene, 100)
    history.schedule_save(ActionMeta("move", "Nudge"))
    scene.set_style("a", "color", "red")
    history.commit("style", "Change color")

    assert [h["description"] for h in history.get_history()] == [
        "Initial state", "Nudge", "Change color",
    ]


def test_undo_flushes_pending_save(scene, history):
    move_a(scene, 100)
    history.schedule_save(ActionMeta("move", "Nudge"))
    assert history.undo() is True
    assert scene.get_geometry("a").x == 10
    assert history.redo_description == "Nudge"


def test_debounce_coalesces_burst_into_one_entry(scene, history):

    async def burst():
        for x in (20, 30, 40):
            move_a(scene, x)
            history.schedule_save(ActionMeta("move", f"Nudge to {x}"))
            await asyncio.sleep(0)
        await asyncio.sleep(0.1)

    asyncio.run(burst())

    assert history.length == 2
    assert history.current.action.description == "Nudge to 40"
    assert history.current.snapshot == scene.serialize()
    assert not history.has_pending


def test_jump_to_state_cancels_pending_save(scene, history):
    move_a(scene, 100)
    history.commit("move", "Move A")
    move_a(scene, 200)
    history.schedule_save(ActionMeta("move", "Nudge"))

    history.jump_to_state(0)

    assert not history.has_pending
    assert history.length == 2


def test_changed_event_payload(scene, history):
    events = []
    history.events.on("changed", events.append)
    move_a(scene, 100)
    history.commit("move", "Move A", ["a"])

    assert events[-1] == {
        "can_undo": True,
        "can_redo": False,
        "cursor": 1,
        "length": 2,
        "undo_description": "Move A",
        "redo_description": None,
    }


def test_get_history_entries(scene, history):
    history.commit("align", "Align left", ["a", "b"])
    entries = history.get_history()
    assert entries[1]["type"] == "align"
    assert entries[1]["element_ids"] == ["a", "b"]
    assert entries[1]["is_current"]
    assert not entries[0]["is_current"]


def test_clear_history_starts_over(scene, history):
    move_a(scene, 100)
    history.commit("move", "Move A")
    history.clear_history()
    assert history.length == 1
    assert not history.can_undo
    assert history.current.snapshot == scene.serialize()
