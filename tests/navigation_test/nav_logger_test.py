import json

import pytest

from fakes import A, P1
from navigation.guidance.models import ProgressResult, RouteStatus
from navigation.guidance.nav_config import NavConfig
from navigation.guidance.nav_logger import NavLogger
from navigation.guidance.route_calculator import build_straight_line_route


@pytest.fixture
def persisting(tmp_path):
    return NavConfig(log_dir=str(tmp_path / "nav_logs"))


def test_creates_log_dir(persisting, tmp_path):
    NavLogger(persisting)
    assert (tmp_path / "nav_logs").is_dir()


def test_route_snapshot_round_trip(persisting):
    nav_logger = NavLogger(persisting)
    route = build_straight_line_route(A, P1)

    assert nav_logger.save_route(route)
    with open(persisting.route_filepath, encoding="utf-8") as f:
        saved = json.load(f)
    assert saved["step_count"] == 1

    restored = nav_logger.load_route()
    assert restored.steps == route.steps
    assert restored.is_fallback


def test_events_are_appended_as_json_lines(persisting):
    nav_logger = NavLogger(persisting)
    nav_logger.log_event(ProgressResult(RouteStatus.PROGRESSING, "333 m to go, heading east.", 0, 333.6, 90.0), A)
    nav_logger.log_event(ProgressResult(RouteStatus.STEP_ADVANCED, "Turn left", 1, 333.6, 0.0), P1)

    with open(persisting.session_filepath, encoding="utf-8") as f:
        entries = [json.loads(line) for line in f]
    assert [e["status"] for e in entries] == ["progressing", "step_advanced"]
    assert entries[1]["lon"] == pytest.approx(0.003)
    assert entries[1]["step_index"] == 1


def test_disabled_logger_writes_nothing(tmp_path):
    config = NavConfig(log_dir=str(tmp_path / "unused"), persist_session=False)
    nav_logger = NavLogger(config)

    assert not nav_logger.save_route(build_straight_line_route(A, P1))
    nav_logger.log_event(ProgressResult(RouteStatus.PROGRESSING, "", 0), A)
    assert not (tmp_path / "unused").exists()


def test_load_route_failures_return_none(persisting, tmp_path):
    nav_logger = NavLogger(persisting)
    assert nav_logger.load_route() is None

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    assert nav_logger.load_route(str(broken)) is None

    wrong_shape = tmp_path / "wrong.json"
    wrong_shape.write_text(json.dumps({"saved_at": "yesterday"}))
    assert nav_logger.load_route(str(wrong_shape)) is None
