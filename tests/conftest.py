# conftest.py
# Shared fixtures; the fakes themselves live in fakes.py.

import pytest

from fakes import A, THREE_STEPS, FakeClock, FakeDirections, FakeGPS, FakeSpeechSink, directions_payload, google_route
from navigation.guidance.nav_config import NavConfig
from navigation.guidance.timers import TimerQueue


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers(clock):
    return TimerQueue(clock)


@pytest.fixture
def config(tmp_path):
    return NavConfig(log_dir=str(tmp_path), persist_session=False)


@pytest.fixture
def sink():
    return FakeSpeechSink()


@pytest.fixture
def manual_sink():
    return FakeSpeechSink(auto_complete=False)


@pytest.fixture
def three_step_payload():
    return directions_payload(google_route(THREE_STEPS))


@pytest.fixture
def fake_directions(three_step_payload):
    return FakeDirections(three_step_payload)


@pytest.fixture
def gps():
    return FakeGPS(A)
