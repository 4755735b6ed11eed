"""
Tests for BatchOperations.

Every mutating command must write exactly one history entry, be reverted by
a single undo, and leave the selection free of locked, hidden or deleted ids.
"""

import pytest

from src.scene.model import Rect


@pytest.fixture
def batch(session):
    return session.batch


def xs(scene, ids="abc"):
    return [scene.get_geometry(i).x for i in ids]


class TestAlignAndDistribute:

    def test_align_left_is_one_undoable_step(self, session, batch):
        session.selection.select_all()
        result = batch.align("left")

        assert result.ok
        assert result.action == "align"
        assert xs(session.scene) == [10, 10, 10]
        assert session.history.length == 2

        batch.undo()
        assert xs(session.scene) == [10, 50, 30]

    def test_align_alias(self, session, batch):
        session.selection.select_many(["a", "b"])
        assert batch.align("center").ok
        assert session.history.current.action.description.endswith("center-horizontal")

    def test_align_needs_two(self, session, batch):
        session.selection.select_single("a")
        result = batch.align("left")
        assert not result.ok
        assert result.message == "Select at least 2 elements to align"
        assert session.history.length == 1

    def test_stale_ids_are_skipped(self, session, batch):
        session.selection.select_all()
        session.scene.remove_element("c")

        result = batch.align("top")

        assert result.ok
        assert set(result.affected) == {"a", "b"}
        assert session.scene.get_geometry("b").y == 10
        assert session.selection.selected_ids == ["a", "b"]

    def test_unknown_mode_or_axis_is_rejected(self, session, batch):
        session.selection.select_all()
        rejected = []
        batch.events.on("rejected", rejected.append)

        result = batch.align("diagonal")
        assert not result.ok
        assert result.message == "Unknown alignment mode: diagonal"
        assert batch.distribute("diagonal").message == "Unknown distribute axis: diagonal"

        assert [r.action for r in rejected] == ["align", "distribute"]
        assert xs(session.scene) == [10, 50, 30]
        assert session.history.length == 1

    def test_distribute_needs_three(self, session, batch):
        session.selection.select_many(["a", "b"])
        result = batch.distribute("vertical")
        assert result.message == "Select at least 3 elements to distribute"

    def test_distribute_vertical(self, session, batch):
        session.selection.select_all()
        assert batch.distribute("vertical").ok
        # span 10..220, sizes 60, gap 75
        assert [session.scene.get_geometry(i).y for i in "abc"] == [10, 105, 200]


class TestGrouping:

    def test_group_selects_new_group(self, session, batch):
        session.selection.select_many(["a", "b"])
        result = batch.group()

        group_id = result.affected[0]
        assert result.ok
        assert session.groups.is_group(group_id)
        assert session.selection.selected_ids == [group_id]
        assert session.history.length == 2

    def test_undo_group_restores_flat_scene_and_clears_selection(self, session, batch):
        session.selection.select_many(["a", "b"])
        batch.group()

        assert batch.undo().ok
        assert session.groups.get_all_groups() == []
        assert session.scene.get_children(None) == ["a", "b", "c"]
        assert session.selection.selected_ids == []

    def test_group_rejects_locked(self, session, batch):
        session.selection.select_many(["a", "b"])
        session.scene.set_locked("b", True)
        session.selection.sync()
        result = batch.group()
        assert not result.ok
        assert result.message == "Select at least 2 elements to group"

    def test_ungroup(self, session, batch):
        session.selection.select_many(["a", "b"])
        group_id = batch.group().affected[0]

        result = batch.ungroup()

        assert result.ok
        assert session.scene.get_element(group_id) is None
        assert session.selection.selected_ids == ["a", "b"]

    def test_ungroup_plain_element(self, session, batch):
        session.selection.select_single("a")
        assert batch.ungroup().message == "The selected element is not a group"
        session.selection.select_many(["a", "b"])
        assert batch.ungroup().message == "Select one group to ungroup"


class TestLifecycle:

    def test_delete_dissolves_undersized_group(self, session, batch):
        session.selection.select_many(["a", "b"])
        group_id = batch.group().affected[0]
        session.selection.select_single("a")

        result = batch.delete_selected()

        assert result.ok
        assert session.scene.get_element("a") is None
        assert session.scene.get_element(group_id) is None
        assert session.scene.get_parent("b") is None
        assert session.selection.selected_ids == []
        assert session.history.length == 3

    def test_deleting_nested_group_members_dissolves_outer_group(self, session, batch):
        session.selection.select_many(["a", "b"])
        inner = batch.group().affected[0]
        session.selection.select_many([inner, "c"])
        outer = batch.group().affected[0]
        session.selection.select_many(["a", "b"])

        assert batch.delete_selected().ok

        assert session.scene.get_element(inner) is None
        assert session.scene.get_element(outer) is None
        assert session.groups.get_all_groups() == []
        assert session.scene.get_children(None) == ["c"]
        assert session.scene.absolute_rect("c") == Rect(30, 200, 20, 20)
        assert session.history.length == 4

        batch.undo()
        assert session.scene.get_children(outer) == [inner, "c"]
        assert session.scene.get_children(inner) == ["a", "b"]

    def test_delete_nothing_selected(self, batch):
        assert batch.delete_selected().message == "No elements selected"

    def test_duplicate_places_copy_after_original(self, session, batch):
        session.selection.select_single("a")
        result = batch.duplicate_selected()

        copy_id = result.affected[0]
        copy = session.scene.get_element(copy_id)
        assert copy.name == "A copy"
        assert (copy.geometry.x, copy.geometry.y) == (20, 20)
        assert session.scene.get_children(None) == ["a", copy_id, "b", "c"]
        assert session.selection.selected_ids == [copy_id]

    def test_duplicate_group_copies_members(self, session, batch):
        session.selection.select_many(["a", "b"])
        group_id = batch.group().affected[0]

        copy_id = batch.duplicate_selected().affected[0]

        assert session.groups.is_group(copy_id)
        assert copy_id != group_id
        assert len(session.scene.get_children(copy_id)) == 2
        # members keep their group-relative geometry
        assert session.scene.get_geometry(session.scene.get_children(copy_id)[0]) == \
            session.scene.get_geometry("a")


class TestFlagsAndOrder:

    def test_lock_drops_selection_and_unlock_by_id(self, session, batch):
        session.selection.select_many(["a", "b"])
        assert batch.lock_selected().ok
        assert session.selection.selected_ids == []
        assert session.scene.get_element("a").locked

        assert batch.unlock_selected(["a", "b"]).ok
        assert not session.scene.get_element("b").locked
        assert session.history.length == 3

    def test_unlock_without_targets(self, batch):
        assert batch.unlock_selected().message == "No elements selected"

    def test_hide_and_show(self, session, batch):
        session.selection.select_single("a")
        batch.hide_selected()
        assert not session.scene.get_element("a").visible
        assert session.selection.selected_ids == []
        batch.show_selected(["a"])
        assert session.scene.get_element("a").visible

    def test_apply_style_and_undo(self, session, batch):
        session.selection.select_many(["a", "b"])
        batch.apply_style("background", "#f00")
        assert session.scene.get_element("b").style == {"background": "#f00"}
        batch.undo()
        assert session.scene.get_element("b").style == {}

    def test_bring_to_front(self, session, batch):
        session.selection.select_single("a")
        batch.bring_to_front()
        assert session.scene.get_children(None) == ["b", "c", "a"]

    def test_send_to_back_keeps_relative_order(self, session, batch):
        session.selection.select_many(["c", "b"])
        batch.send_to_back()
        assert session.scene.get_children(None) == ["b", "c", "a"]

    def test_rename(self, session, batch):
        assert batch.rename("a", "Logo").ok
        assert session.scene.get_element("a").name == "Logo"
        assert not batch.rename("ghost", "x").ok


class TestMovementAndHistory:

    def test_move_selected_commits(self, session, batch):
        session.selection.select_many(["a", "b"])
        batch.move_selected(5, -5)
        assert session.scene.get_geometry("b").origin == (55, 95)
        assert session.history.length == 2

    def test_nudges_coalesce_until_flushed(self, session, batch):
        session.selection.select_single("a")
        for _ in range(3):
            assert batch.nudge_selected(1, 0).ok

        assert session.scene.get_geometry("a").x == 13
        assert session.history.length == 1
        assert session.history.has_pending

        result = batch.undo()
        assert result.message == "Undone: Moved 1 elements"
        assert session.scene.get_geometry("a").x == 10
        assert session.history.length == 2

    def test_undo_redo_messages(self, session, batch):
        assert batch.undo().message == "Nothing to undo"
        batch.rename("a", "Logo")
        assert batch.undo().ok
        assert batch.redo().message == "Redone: Renamed to 'Logo'"
        assert batch.redo().message == "Nothing to redo"

    def test_events(self, session, batch):
        completed, rejected = [], []
        batch.events.on("completed", completed.append)
        batch.events.on("rejected", rejected.append)

        batch.align("left")
        batch.rename("a", "Logo")

        assert [r.action for r in rejected] == ["align"]
        assert [r.action for r in completed] == ["rename"]
