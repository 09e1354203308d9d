import pytest

from behavior.primitives import parse_color
from config import PLACEHOLDER_COLOR
from render.frame_driver import FrameDriver
from world.canvas_object import CanvasObject, ObjectKind

from conftest import GLOW_SOURCE

RAISING_SOURCE = """\
def Unstable():
    def explode(fragment, dt, elapsed):
        raise RuntimeError("frame bug")
    return Fragment(Cube(), on_frame=explode)
"""


def synthesized(object_id, source=GLOW_SOURCE, position=(0, 0, 0)):
    return CanvasObject(id=object_id, kind=ObjectKind.SYNTHESIZED, position=position, source=source)


@pytest.fixture
def driver(registry, painter):
    return FrameDriver(registry, painter=painter)


def test_builtins_draw_in_insertion_order(registry, painter, driver):
    registry.insert(CanvasObject(id="t", kind="text", properties={"text": "hi"}))
    registry.insert(CanvasObject(id="c", kind="cube"))
    registry.insert(CanvasObject(id="s", kind="sphere"))
    stats = driver.tick(0.016)
    assert painter.kinds() == ["text", "cube", "sphere"]
    assert stats.drawn == 3
    assert stats.faults == 0


def test_synthesized_object_animates(registry, painter, driver):
    registry.insert(synthesized("glow"))
    driver.tick(0.5)
    driver.tick(0.25)
    mount = driver.mount_for("glow")
    assert not mount.placeholder
    assert mount.fragment.position.y == pytest.approx(0.75)
    assert painter.kinds() == ["fragment", "fragment"]
    assert painter.calls[0][2] is mount.fragment


def test_mount_is_reused_between_ticks(registry, driver):
    registry.insert(synthesized("glow"))
    driver.tick(0.1)
    first = driver.mount_for("glow")
    driver.tick(0.1)
    assert driver.mount_for("glow") is first


def test_callback_stops_after_delete(registry, painter, driver):
    registry.insert(synthesized("glow"))
    driver.tick(0.1)
    fragment = driver.mount_for("glow").fragment
    assert "glow" in driver.callback_ids

    registry.remove("glow")
    assert driver.callback_ids == ()
    assert driver.mounted_ids == ()

    y_before = fragment.position.y
    painter.calls.clear()
    driver.tick(0.1)
    assert fragment.position.y == y_before
    assert painter.calls == []


def test_faulting_object_does_not_stop_the_frame(registry, painter, driver):
    registry.insert(synthesized("bad", RAISING_SOURCE))
    registry.insert(CanvasObject(id="c", kind="cube"))
    stats = driver.tick(0.016)
    assert stats.faults == 1
    assert stats.skipped == ["bad"]
    assert painter.kinds() == ["cube"]
    assert "frame bug" in driver.faults["bad"]

    stats = driver.tick(0.016)
    assert stats.faults == 1
    assert painter.kinds() == ["cube", "cube"]


def test_uncompilable_behavior_mounts_placeholder(registry, painter, driver):
    registry.insert(synthesized("broken", "def Broken(:\n    pass\n"))
    stats = driver.tick(0.016)
    assert stats.placeholders == 1
    mount = driver.mount_for("broken")
    assert mount.placeholder
    assert "syntax" in mount.error
    fragment = painter.calls[0][2]
    assert fragment.shapes[0].color == parse_color(PLACEHOLDER_COLOR)


def test_factory_returning_wrong_type_mounts_placeholder(registry, driver):
    registry.insert(synthesized("odd", "def Odd():\n    return 5\n"))
    driver.tick(0.016)
    mount = driver.mount_for("odd")
    assert mount.placeholder
    assert "int" in mount.error


def test_source_update_remounts(registry, driver):
    registry.insert(synthesized("glow"))
    driver.tick(0.1)
    old = driver.mount_for("glow")
    new_source = "def Still():\n    return Fragment(Sphere())\n"
    assert registry.update("glow", {"source": new_source}).ok
    assert driver.mount_for("glow") is None
    driver.tick(0.1)
    mount = driver.mount_for("glow")
    assert mount is not old
    assert mount.source == new_source
    assert "glow" not in driver.callback_ids


def test_entry_point_update_remounts(registry, driver):
    source = "def First():\n    return Fragment(Cube())\n\ndef Second():\n    return Fragment(Sphere(), Sphere())\n"
    registry.insert(CanvasObject(id="pair", kind="synthesized", source=source, entry_point="First"))
    driver.tick(0.1)
    assert len(driver.mount_for("pair").fragment.shapes) == 1

    assert registry.update("pair", {"entry_point": "Second"}).ok
    assert driver.mount_for("pair") is None
    driver.tick(0.1)
    mount = driver.mount_for("pair")
    assert mount.entry_point == "Second"
    assert len(mount.fragment.shapes) == 2


def test_property_update_keeps_mount(registry, driver):
    registry.insert(synthesized("glow"))
    driver.tick(0.1)
    mount = driver.mount_for("glow")
    registry.update("glow", {"color": "#ff0000"})
    assert driver.mount_for("glow") is mount


def test_runs_without_painter(registry):
    driver = FrameDriver(registry)
    registry.insert(synthesized("glow"))
    registry.insert(CanvasObject(id="c", kind="cube"))
    stats = driver.tick(0.2)
    assert stats.drawn == 2
    assert driver.elapsed == pytest.approx(0.2)
    assert driver.tick_count == 1


def test_close_unsubscribes(registry, driver):
    registry.insert(synthesized("glow"))
    driver.tick(0.1)
    driver.close()
    assert driver.mounted_ids == ()
    registry.remove("glow")
    assert driver.mounted_ids == ()
