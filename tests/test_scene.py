import json

import pytest

from src.scene import (
    GROUP_KIND,
    Element,
    InMemoryScene,
    Rect,
    SceneAccessor,
    SceneStoreError,
    load_scene,
    save_scene,
)


def test_rect_intersects_is_inclusive_on_touching_edges():
    a = Rect(0, 0, 10, 10)
    assert a.intersects(Rect(10, 10, 5, 5))
    assert not a.intersects(Rect(10.5, 0, 5, 5))


def test_rect_from_points_normalizes_drag_direction():
    assert Rect.from_points((50, 40), (10, 0)) == Rect(10, 0, 40, 40)


def test_rect_union_and_padding():
    union = Rect.union([Rect(10, 10, 20, 20), Rect(50, 100, 20, 20)])
    assert union == Rect(10, 10, 60, 110)
    assert union.padded(10) == Rect(0, 0, 80, 130)
    assert Rect.union([]) is None


def test_in_memory_scene_satisfies_protocol(scene):
    assert isinstance(scene, SceneAccessor)


def test_get_element_returns_a_copy(scene):
    element = scene.get_element("a")
    element.style["color"] = "red"
    element.locked = True
    assert scene.get_element("a").style == {}
    assert not scene.get_element("a").locked


def test_unknown_id_lookups(scene):
    assert scene.get_element("missing") is None
    with pytest.raises(KeyError):
        scene.set_locked("missing", True)


def test_all_elements_in_depth_first_preorder():
    s = InMemoryScene()
    s.create_element(0, 0, 10, 10, element_id="a")
    s.create_element(0, 0, 100, 100, element_id="g", kind=GROUP_KIND)
    s.create_element(0, 0, 10, 10, element_id="x", parent_id="g")
    s.create_element(0, 0, 10, 10, element_id="y", parent_id="g")
    s.create_element(0, 0, 10, 10, element_id="b")

    assert [e.id for e in s.get_all_elements()] == ["a", "g", "x", "y", "b"]
    assert s.get_children(None) == ["a", "g", "b"]
    assert s.get_children("g") == ["x", "y"]


def test_absolute_rect_sums_parent_origins():
    s = InMemoryScene()
    s.create_element(100, 50, 200, 200, element_id="outer", kind=GROUP_KIND)
    s.create_element(10, 20, 100, 100, element_id="inner", parent_id="outer", kind=GROUP_KIND)
    s.create_element(5, 5, 30, 30, element_id="leaf", parent_id="inner")

    assert s.parent_origin("inner") == (110, 70)
    assert s.absolute_rect("leaf") == Rect(115, 75, 30, 30)
    assert s.get_ancestors("leaf") == ["inner", "outer"]


def test_set_parent_rejects_cycles():
    s = InMemoryScene()
    s.create_element(0, 0, 10, 10, element_id="g", kind=GROUP_KIND)
    s.create_element(0, 0, 10, 10, element_id="child", parent_id="g")

    with pytest.raises(ValueError):
        s.set_parent("g", "child")
    with pytest.raises(ValueError):
        s.set_parent("g", "g")
    assert s.get_parent("g") is None


def test_set_parent_and_move_in_parent_control_sibling_order(scene):
    scene.move_in_parent("c", 0)
    assert scene.get_children(None) == ["c", "a", "b"]

    scene.create_element(0, 0, 50, 50, element_id="g", kind=GROUP_KIND)
    scene.set_parent("a", "g")
    scene.set_parent("b", "g", 0)
    assert scene.get_children("g") == ["b", "a"]
    assert scene.get_children(None) == ["c", "g"]
    assert scene.get_element("a").parent_id == "g"


def test_remove_element_removes_subtree(scene):
    scene.create_element(0, 0, 50, 50, element_id="g", kind=GROUP_KIND)
    scene.set_parent("a", "g")
    removed = scene.remove_element("g")
    assert removed == ["g", "a"]
    assert scene.get_element("a") is None
    assert scene.get_children(None) == ["b", "c"]


def test_generate_id_never_collides(scene):
    scene.create_element(0, 0, 1, 1, element_id="el-1")
    new_id = scene.generate_id()
    assert new_id != "el-1"
    assert scene.get_element(new_id) is None


def test_add_element_rejects_duplicate_id(scene):
    with pytest.raises(ValueError):
        scene.add_element(Element(id="a"))


def test_serialize_restore_round_trip(scene):
    scene.create_element(0, 0, 50, 50, element_id="g", kind=GROUP_KIND, name="Group 1")
    scene.set_parent("b", "g")
    scene.set_style("c", "background", "#fff")
    scene.set_locked("a", True)
    snapshot = scene.serialize()

    other = InMemoryScene(10, 10)
    other.restore(snapshot)

    assert other.serialize() == snapshot
    assert other.canvas_rect == Rect(0, 0, 1000, 800)
    assert other.get_children("g") == ["b"]


def test_restore_survives_json_round_trip(scene):
    snapshot = json.loads(json.dumps(scene.serialize()))
    other = InMemoryScene()
    other.restore(snapshot)
    assert other.serialize() == scene.serialize()


@pytest.mark.parametrize("snapshot", [
    {},
    {"elements": [{"id": "x", "parent_id": "missing"}]},
    {"elements": [{"id": "x"}, {"id": "x"}]},
    {"elements": [{"name": "no id"}]},
    {"elements": [5]},
])
def test_restore_rejects_malformed_snapshot_and_keeps_scene(scene, snapshot):
    before = scene.serialize()
    with pytest.raises(ValueError):
        scene.restore(snapshot)
    assert scene.serialize() == before


def test_save_and_load_scene(tmp_path, scene):
    path = save_scene(scene, tmp_path / "pages" / "home.json")
    assert path.exists()

    loaded = load_scene(InMemoryScene(), path)
    assert loaded.serialize() == scene.serialize()


def test_load_scene_rejects_corrupt_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SceneStoreError):
        load_scene(InMemoryScene(), path)


def test_load_scene_rejects_bad_structure_and_keeps_scene(tmp_path, scene):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"elements": [{"id": "x", "parent_id": "nope"}]}), encoding="utf-8")
    before = scene.serialize()

    with pytest.raises(SceneStoreError):
        load_scene(scene, path)
    assert scene.serialize() == before


def test_load_scene_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_scene(InMemoryScene(), tmp_path / "nope.json")
