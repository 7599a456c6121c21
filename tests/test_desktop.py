"""VirtualDesktop sobre ventanas simuladas (solo Windows: importa pywin32)."""

from unittest.mock import Mock

import pytest

pytest.importorskip("win32api")

from monitorspaces.core import win32  # noqa: E402
from monitorspaces.core.desktop import VirtualDesktop  # noqa: E402
from monitorspaces.mapping.rect import Rect  # noqa: E402

from tests.fakes import make_monitors  # noqa: E402


@pytest.fixture
def shown(monkeypatch):
    calls = []
    monkeypatch.setattr(win32, "show_window", lambda hwnd, cmd: calls.append((hwnd, cmd)))
    return calls


@pytest.fixture
def desktop():
    d = VirtualDesktop()
    d.set_monitors(make_monitors())
    return d


def _window(hwnd, rect):
    w = Mock()
    w.hwnd = hwnd
    w.frame_rect.return_value = rect
    w.is_destroyed.return_value = False
    return w


def test_new_window_adopts_active_workspace(desktop):
    desktop.activate(3, [])
    w = _window(10, Rect(100, 100, 400, 300))
    assert desktop.workspace_of(w) == 3


def test_secondary_window_is_sticky(desktop):
    w = _window(10, Rect(2000, 100, 400, 300))
    assert desktop.is_sticky(w)
    assert desktop.workspace_of(w) is None


def test_activate_hides_and_shows(desktop, shown):
    a = _window(1, Rect(100, 100, 400, 300))
    b = _window(2, Rect(100, 100, 400, 300))
    side = _window(3, Rect(2000, 100, 400, 300))
    desktop.set_workspace(a, 0)
    desktop.set_workspace(b, 1)

    assert shown == [(2, win32.SW_HIDE)]
    assert desktop.is_hidden_by_us(2)

    desktop.activate(1, [a, b, side])
    assert shown[1:] == [(1, win32.SW_HIDE), (2, win32.SW_SHOWNOACTIVATE)]
    assert desktop.consume_own_toggle(2)
    assert not desktop.consume_own_toggle(2)
    assert not desktop.is_hidden_by_us(3)


def test_destroyed_window_is_forgotten(desktop, shown):
    w = _window(1, Rect(100, 100, 400, 300))
    desktop.set_workspace(w, 5)
    assert desktop.is_hidden_by_us(1)

    w.is_destroyed.return_value = True
    desktop.sync(w)
    assert not desktop.is_hidden_by_us(1)
