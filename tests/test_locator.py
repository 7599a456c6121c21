from monitorspaces.mapping.host import WindowType
from monitorspaces.mapping.locator import (
    monitor_for_point,
    monitor_for_rect,
    sort_raster,
    window_at_point,
)
from monitorspaces.mapping.rect import Rect

from tests.fakes import make_monitors


MONITORS = make_monitors(3)


def test_centre_decides_the_monitor():
    # Mostly on M0, but the centre is past the edge
    rect = Rect(1000, 100, 1900, 400)
    assert rect.center_x > 1920
    assert monitor_for_rect(rect, MONITORS) == 1


def test_shared_edge_belongs_to_one_monitor():
    assert monitor_for_point(1920, 10, MONITORS) == 1
    assert monitor_for_point(1919, 10, MONITORS) == 0


def test_point_outside_every_monitor():
    assert monitor_for_point(-10, 10, MONITORS) is None
    assert monitor_for_rect(Rect(0, 2000, 100, 100), MONITORS) is None


def test_raster_order_uses_row_bands(host):
    a = host.add_window("a", Rect(600, 20, 100, 100))
    b = host.add_window("b", Rect(0, 0, 100, 100))
    c = host.add_window("c", Rect(100, 500, 100, 100))
    d = host.add_window("d", Rect(0, 70, 100, 100))

    assert [w.title for w in sort_raster([a, b, c, d])] == ["b", "a", "d", "c"]


def test_window_at_point_prefers_higher_layer(host):
    low = host.add_window("low", Rect(0, 0, 500, 500))
    high = host.add_window("high", Rect(100, 100, 500, 500), layer=2)
    other = host.add_window("other", Rect(100, 100, 500, 500))

    assert window_at_point(200, 200, [low, high, other]) is high
    assert window_at_point(50, 50, [low, high, other]) is low
    assert window_at_point(1000, 1000, [low, high]) is None


def test_window_monitor_and_pointer(rig, host):
    w = host.add_window("w", Rect(2000, 100, 400, 300))
    assert rig.engine.locator.window_monitor(w) == 1

    host.pointer = (4000, 10)
    assert rig.engine.locator.monitor_at_pointer() == 2

    host.pointer = (-50, -50)
    assert rig.engine.locator.monitor_at_pointer() == 0


def test_windows_on_monitor_filters(rig, host):
    normal = host.add_window("normal", Rect(100, 100, 400, 300))
    host.add_window("dialog", Rect(100, 100, 400, 300), window_type=WindowType.DIALOG)
    host.add_window("tool", Rect(100, 100, 400, 300), skip_taskbar=True)
    hidden = host.add_window("hidden", Rect(100, 100, 400, 300), workspace=5)
    gone = host.add_window("gone", Rect(100, 100, 400, 300))
    gone.destroyed = True

    locator = rig.engine.locator
    assert locator.windows_on_monitor(0) == [normal]
    assert locator.windows_on_monitor(0, include_hidden=True) == [normal, hidden]
    assert locator.windows_on_monitor(7) == []
    assert locator.windows_on_workspace(5) == [hidden]
    assert locator.find_window(gone.id) is None


def test_visible_windows_respect_primary_tags(rig, host):
    shown = host.add_window("shown", Rect(100, 100, 400, 300))
    host.add_window("other-ws", Rect(100, 100, 400, 300), workspace=3)
    minimized = host.add_window("min", Rect(100, 100, 400, 300))
    minimized.is_minimized = True
    sticky = host.add_window("sticky", Rect(2000, 100, 400, 300), workspace=8)

    locator = rig.engine.locator
    assert locator.windows_visible_on_monitor_for_workspace(0, 0) == [shown]
    # En un secundario la etiqueta no cuenta
    assert locator.windows_visible_on_monitor_for_workspace(1, 1) == [sticky]
