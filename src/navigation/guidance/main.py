# main.py
# Entry point: simulates a walk along the acquired route and feeds it to
# NavigationSystem through a replayed GPS. In production, replace ReplayGPS
# with a real GeolocationProvider.
#
#   GOOGLE_MAPS_API_KEY=... python -m navigation.guidance.main
#
# Without an API key the directions request is denied and the straight-line
# fallback is used.

import logging
from typing import List

from navigation.guidance.errors import GeolocationError, SpeechError
from navigation.guidance.google_maps import GoogleMapsClient
from navigation.guidance.models import Coord, Route
from navigation.guidance.nav_config import NavConfig
from navigation.guidance.navigator import NavigationSystem
from navigation.guidance.timers import TimerQueue
from tts_stt.tts import ConsoleSpeechSink, Pyttsx3SpeechSink

# ------------------------------------------------------------------
# Logging setup, configured once here; all modules inherit
# ------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ------------------------------------------------------------------
# Config: tweak thresholds or paths here, not inside the modules
# ------------------------------------------------------------------
config = NavConfig.from_env(
    log_dir="logs",
    position_poll_interval_s=1.0,     # sped up for the simulation
    reminder_interval_s=6.0,
)

# Sıhhiye → Kurtuluş, Ankara
ORIGIN      = Coord(39.92409, 32.845382)
DESTINATION = Coord(39.9210086, 32.8529793)


class ReplayGPS:
    """GeolocationProvider that hands out a prepared list of fixes, then holds the last one."""

    def __init__(self, start: Coord) -> None:
        self._fixes: List[Coord] = [start]
        self._index = 0

    def load(self, fixes: List[Coord]) -> None:
        self._fixes = list(fixes)
        self._index = 0

    def get_current_position(self) -> Coord:
        if not self._fixes:
            raise GeolocationError("No fixes loaded.")
        fix = self._fixes[min(self._index, len(self._fixes) - 1)]
        self._index += 1
        return fix


def walk(route: Route, points_per_step: int = 4) -> List[Coord]:
    """Evenly spaced fixes from each step's start to its end."""
    fixes: List[Coord] = []
    for step in route.steps:
        for i in range(1, points_per_step + 1):
            t = i / points_per_step
            fixes.append(Coord(
                step.start.lat + (step.end.lat - step.start.lat) * t,
                step.start.lon + (step.end.lon - step.start.lon) * t,
            ))
    return fixes


def main() -> None:
    timers = TimerQueue()

    try:
        sink = Pyttsx3SpeechSink(config)
        timers.call_every(0.1, sink.pump, name="tts-pump")
    except SpeechError as e:
        logger.warning(f"{e} — printing announcements instead.")
        sink = ConsoleSpeechSink()

    gps = ReplayGPS(ORIGIN)
    maps = GoogleMapsClient(config)
    nav = NavigationSystem(
        directions=maps,
        geolocation=gps,
        speech_sink=sink,
        places=maps,
        geocoder=maps,
        config=config,
        timers=timers,
    )
    nav.subscribe(lambda event: print(f"  [EVENT] {event}"))

    # 1. Request a route and start guidance
    success, msg = nav.navigate_to(DESTINATION)
    print(f"[Main] {msg}")
    if not success:
        return

    # 2. Walk the route (replace with a real GPS feed in production)
    gps.load(walk(nav.route))
    print("\n--- Guidance loop active ---")
    timers.run(until=lambda: not nav.is_active)

    # 3. Let the last announcement finish
    timers.run_for(3.0)
    print(f"\n--- Session complete: {nav.state.value} ---")
    print(f"    Log files written to: {config.log_dir}/")


if __name__ == "__main__":
    main()
