import pytest

from geometry.transform import Viewport
from layout.store import LayoutStore


@pytest.fixture
def store():
    s = LayoutStore()
    s.create_layout("Reception")
    return s


@pytest.fixture
def viewport():
    return Viewport()


def add_box(store, x, y, width=1.0, height=1.0, element_type="bar", **extra):
    data = {"type": element_type, "x": x, "y": y, "width": width, "height": height}
    data.update(extra)
    return store.add_element(data)
