import logging

import pytest

from src.edit.alignment import AlignmentEngine, normalize_align_mode
from src.scene.model import Rect


@pytest.fixture
def engine():
    return AlignmentEngine()


def three_boxes():
    return {
        "a": Rect(10, 0, 20, 20),
        "b": Rect(50, 30, 20, 20),
        "c": Rect(30, 60, 20, 40),
    }


def apply(rects, offsets):
    return {i: r.translated(*offsets[i]) for i, r in rects.items()}


def test_bounds(engine):
    assert engine.bounds(three_boxes().values()) == Rect(10, 0, 60, 100)


def test_align_left_moves_everyone_to_min_left(engine):
    rects = three_boxes()
    moved = apply(rects, engine.align(rects, "left"))
    assert [r.x for r in moved.values()] == [10, 10, 10]
    # y untouched
    assert [r.y for r in moved.values()] == [0, 30, 60]


def test_align_right_and_bottom(engine):
    rects = three_boxes()
    right = apply(rects, engine.align(rects, "right"))
    assert {r.right for r in right.values()} == {70}
    bottom = apply(rects, engine.align(rects, "bottom"))
    assert {r.bottom for r in bottom.values()} == {100}


def test_align_center_horizontal_uses_bounds_center(engine):
    rects = three_boxes()
    offsets = engine.align(rects, "center-horizontal")
    assert offsets == {"a": (20, 0), "b": (-20, 0), "c": (0, 0)}


@pytest.mark.parametrize("alias, mode", [
    ("center", "center-horizontal"),
    ("horizontal-center", "center-horizontal"),
    ("middle", "center-vertical"),
    ("vertical-center", "center-vertical"),
])
def test_align_aliases(engine, alias, mode):
    assert normalize_align_mode(alias) == mode
    rects = three_boxes()
    assert engine.align(rects, alias) == engine.align(rects, mode)


def test_unknown_align_mode_raises(engine):
    with pytest.raises(ValueError):
        engine.align(three_boxes(), "diagonal")


def test_align_needs_two_elements(engine, caplog):
    with caplog.at_level(logging.WARNING):
        assert engine.align({"a": Rect(0, 0, 10, 10)}, "left") == {}
    assert "at least 2" in caplog.text


def test_distribute_even_gaps(engine):
    rects = {
        "a": Rect(0, 0, 20, 20),
        "b": Rect(40, 0, 20, 20),
        "c": Rect(200, 0, 20, 20),
    }
    moved = apply(rects, engine.distribute(rects, "horizontal"))
    assert [moved[i].x for i in "abc"] == [0, 100, 200]


def test_distribute_already_even_is_noop(engine):
    rects = {
        "a": Rect(0, 0, 20, 20),
        "b": Rect(100, 0, 20, 20),
        "c": Rect(200, 0, 20, 20),
    }
    offsets = engine.distribute(rects, "horizontal")
    assert all(o == (0, 0) for o in offsets.values())


def test_distribute_sorts_by_leading_edge(engine):
    rects = {
        "late": Rect(0, 300, 10, 10),
        "early": Rect(0, 0, 10, 10),
        "mid": Rect(0, 20, 10, 30),
    }
    moved = apply(rects, engine.distribute(rects, "vertical"))
    # span 310, sizes 50, gap 130
    assert moved["early"].y == 0
    assert moved["mid"].y == 140
    assert moved["late"].y == 300


def test_distribute_negative_gap_overlaps(engine):
    rects = {
        "a": Rect(0, 0, 100, 10),
        "b": Rect(10, 0, 100, 10),
        "c": Rect(50, 0, 100, 10),
    }
    moved = apply(rects, engine.distribute(rects, "horizontal"))
    # span 150, sizes 300, gap -75
    assert [moved[i].x for i in "abc"] == [0, 25, 50]


def test_distribute_needs_three(engine):
    assert engine.distribute({"a": Rect(), "b": Rect()}, "vertical") == {}


def test_distribute_unknown_axis(engine):
    with pytest.raises(ValueError):
        engine.distribute(three_boxes(), "diagonal")


def test_should_snap_threshold_is_inclusive(engine):
    assert engine.should_snap(10, 15)
    assert not engine.should_snap(10, 15.5)
    assert engine.snap(12, 10) == 10
    assert engine.snap(30, 10) == 30


def test_snap_points_lists_others_then_canvas(engine):
    rects = {"me": Rect(0, 0, 10, 10), "other": Rect(100, 50, 20, 40)}
    points = engine.snap_points("me", rects, Rect(0, 0, 1000, 800))
    assert points["x"] == [
        (100, "other"), (120, "other"), (110, "other"),
        (0, None), (1000, None), (500, None),
    ]
    assert points["y"] == [
        (50, "other"), (90, "other"), (70, "other"),
        (0, None), (800, None), (400, None),
    ]
