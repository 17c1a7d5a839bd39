# nav_config.py
# All tuneable constants in one place.
# Pass a NavConfig instance to every module that needs settings.

import os
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Guidance constants
# ---------------------------------------------------------------------------

WALKING_SPEED_MPS: float = 1.4          # average pedestrian speed, m/s

STEP_ADVANCE_THRESHOLD_M: float = 20.0
ARRIVAL_THRESHOLD_M: float = 30.0

POSITION_POLL_INTERVAL_S: float = 5.0
REMINDER_INTERVAL_S: float = 30.0

GOOGLE_MAPS_BASE_URL: str = "https://maps.googleapis.com/maps/api"


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class NavConfig:
    # Progress tracking
    step_advance_threshold_m: float = STEP_ADVANCE_THRESHOLD_M
    arrival_threshold_m: float = ARRIVAL_THRESHOLD_M   # only checked on the last step

    # Timers
    position_poll_interval_s: float = POSITION_POLL_INTERVAL_S
    reminder_interval_s: float = REMINDER_INTERVAL_S

    # Routing
    walking_speed_mps: float = WALKING_SPEED_MPS       # used by the straight-line fallback
    travel_mode: str = "walking"
    language: str = "en"
    request_alternatives: bool = True
    places_radius_m: float = 500.0

    # Google Maps web services
    api_key: str = ""
    api_base_url: str = GOOGLE_MAPS_BASE_URL
    request_timeout_s: float = 10.0

    # Speech
    speech_retry_limit: int = 1            # extra attempts for an immediate announcement
    tts_rate: int = 150
    tts_volume: float = 1.0
    listen_timeout_s: float = 10.0

    # Logging
    log_dir: str = "."                     # directory for saved JSON files
    route_filename: str = "active_route.json"
    session_filename: str = "nav_session.jsonl"
    persist_session: bool = True

    def __post_init__(self) -> None:
        if self.step_advance_threshold_m <= 0 or self.arrival_threshold_m <= 0:
            raise ValueError("Distance thresholds must be positive.")
        if self.position_poll_interval_s <= 0 or self.reminder_interval_s <= 0:
            raise ValueError("Timer intervals must be positive.")
        if self.walking_speed_mps <= 0:
            raise ValueError("Walking speed must be positive.")

    @property
    def route_filepath(self) -> str:
        return os.path.join(self.log_dir, self.route_filename)

    @property
    def session_filepath(self) -> str:
        return os.path.join(self.log_dir, self.session_filename)

    @classmethod
    def from_env(cls, **overrides) -> "NavConfig":
        """
        Build a config from environment variables.

        Reads GOOGLE_MAPS_API_KEY and NAV_LOG_DIR; keyword overrides win.
        """
        values = {
            "api_key": os.environ.get("GOOGLE_MAPS_API_KEY", ""),
            "log_dir": os.environ.get("NAV_LOG_DIR", "."),
        }
        values.update(overrides)
        return cls(**values)
