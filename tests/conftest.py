import pytest

from monitorspaces.config.settings import SettingsStore
from tests.fakes import FakeHost, Rig, make_monitors


@pytest.fixture
def host():
    return FakeHost(make_monitors(3))


@pytest.fixture
def store():
    return SettingsStore()


@pytest.fixture
def rig(host, store):
    """Motor sobre tres monitores con el mapa M0=0, M1=1, M2=2."""
    r = Rig(host, store)
    r.map({0: 0, 1: 1, 2: 2})
    return r
