import pytest

from src.edit.session import create_editor_session
from src.scene.memory import InMemoryScene


@pytest.fixture
def scene():
    """Canvas 1000x800 with three top-level boxes a, b, c."""
    s = InMemoryScene(1000, 800)
    s.create_element(10, 10, 20, 20, element_id="a", name="A")
    s.create_element(50, 100, 20, 20, element_id="b", name="B")
    s.create_element(30, 200, 20, 20, element_id="c", name="C")
    return s


@pytest.fixture
def session(scene):
    return create_editor_session(scene)
