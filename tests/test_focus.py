from monitorspaces.mapping.host import WindowType
from monitorspaces.mapping.rect import Rect


def test_focus_is_recorded_per_workspace(rig, host):
    main = host.add_window("main", Rect(100, 100, 600, 400))
    side = host.add_window("side", Rect(2020, 100, 600, 400))

    host.pointer = (300, 300)
    host.focus_window = main
    rig.focus.on_focus_changed()
    host.pointer = (2200, 300)
    host.focus_window = side
    rig.focus.on_focus_changed()

    assert rig.engine.last_focused == {0: main.id, 1: side.id}


def test_focus_during_internal_switch_is_not_recorded(rig, host):
    main = host.add_window("main", Rect(100, 100, 600, 400))
    rig.engine.internal_switch = True
    host.focus_window = main
    rig.focus.on_focus_changed()
    assert rig.engine.last_focused == {}


def test_focus_on_other_monitor_is_pulled_back(rig, host):
    main = host.add_window("main", Rect(100, 100, 600, 400))
    side = host.add_window("side", Rect(2020, 100, 600, 400))

    host.pointer = (2200, 300)
    host.focus_window = main
    rig.focus.on_focus_changed()

    assert host.focus_window is side
    assert side.focus_calls == 1
    # El registro se hace antes de corregir
    assert rig.engine.last_focused[0] == main.id


def test_focus_drift_to_empty_monitor_unfocuses(rig, host):
    main = host.add_window("main", Rect(100, 100, 600, 400))
    host.pointer = (4500, 300)
    host.focus_window = main
    rig.focus.on_focus_changed()

    assert host.focus_window is None
    assert host.unfocus_calls == 1


def test_pending_window_keeps_focus(rig, host):
    main = host.add_window("main", Rect(100, 100, 600, 400))
    host.add_window("side", Rect(2020, 100, 600, 400))
    rig.engine.pending_placement[main.id] = 1

    host.pointer = (2200, 300)
    host.focus_window = main
    rig.focus.on_focus_changed()
    assert host.focus_window is main


def test_dialog_focus_is_left_alone(rig, host):
    dialog = host.add_window("Open", Rect(100, 100, 400, 300), window_type=WindowType.DIALOG)
    host.pointer = (2200, 300)
    host.focus_window = dialog
    rig.focus.on_focus_changed()
    assert host.focus_window is dialog
    assert rig.engine.last_focused == {}


def test_warp_pointer_to_focused_window(rig, host, store):
    store.set("warp_pointer_to_focus", True)
    main = host.add_window("main", Rect(100, 100, 600, 400))

    host.pointer = (1500, 900)
    host.focus_window = main
    rig.focus.on_focus_changed()
    assert host.pointer == (400, 300)

    # Foco por click: el puntero ya esta dentro
    host.pointer = (150, 150)
    host.warps.clear()
    rig.focus.on_focus_changed()
    assert host.warps == []


def test_window_under_pointer_wins(rig, host):
    back = host.add_window("back", Rect(0, 0, 1000, 800))
    front = host.add_window("front", Rect(900, 600, 500, 400))

    assert rig.focus.focus_window_at_position(50, 50, 0) is back
    # Fuera de todas: la mas alta (ultima en el orden de apilamiento)
    assert rig.focus.focus_window_at_position(1800, 1050, 0) is front


def test_last_valid_window(rig, host):
    main = host.add_window("main", Rect(100, 100, 600, 400))
    rig.engine.last_focused[0] = main.id
    assert rig.focus.last_valid_window(0, 0) is main

    # Otro monitor: el registro se descarta
    main.move_frame(2020, 100)
    assert rig.focus.last_valid_window(0, 0) is None
    assert 0 not in rig.engine.last_focused


def test_last_valid_window_on_hidden_workspace(rig, host):
    hidden = host.add_window("hidden", Rect(100, 100, 600, 400), workspace=4)
    rig.engine.last_focused[4] = hidden.id
    assert rig.focus.last_valid_window(0, 4) is None
    assert rig.engine.last_focused == {}


def test_focus_last_or_at_position(rig, host):
    a = host.add_window("a", Rect(100, 100, 600, 400))
    b = host.add_window("b", Rect(900, 100, 600, 400))
    rig.engine.last_focused[0] = a.id

    assert rig.focus.focus_last_or_at_position(0, 0, 1000, 200) is a
    assert host.pointer == a.rect.center

    del rig.engine.last_focused[0]
    assert rig.focus.focus_last_or_at_position(0, 0, 1000, 200) is b


def test_restore_pointer_after_drift(rig, host):
    host.pointer = (800, 800)
    rig.focus.restore_pointer(500, 500)
    assert host.pointer == (500, 500)

    # El host re-centra el puntero de forma asincrona
    host.pointer = (900, 900)
    rig.settle(60)
    assert host.pointer == (500, 500)

    host.pointer = (100, 100)
    rig.settle(100)
    assert host.pointer == (500, 500)


def test_restore_pointer_within_threshold(rig, host):
    host.pointer = (503, 498)
    rig.focus.restore_pointer(500, 500)
    rig.settle(200)
    assert host.warps == []
