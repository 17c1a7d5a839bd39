# fakes.py
# Fakes for every external collaborator plus a controllable clock.

from typing import List, Optional

import polyline

from navigation.guidance.errors import GeolocationError, SpeechError
from navigation.guidance.models import Coord, Place


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

class FakeClock:
    """Time only moves when somebody sleeps."""

    def __init__(self, start: float = 0.0) -> None:
        self.t = start

    def now(self) -> float:
        return self.t

    def sleep(self, seconds: float) -> None:
        self.t += max(0.0, seconds)


# ---------------------------------------------------------------------------
# Speech
# ---------------------------------------------------------------------------

class FakeSpeechSink:
    """
    Records what it was asked to say.

    auto_complete=True finishes every utterance inside speak();
    otherwise call finish() / fail() to signal completion.
    """

    def __init__(self, auto_complete: bool = True) -> None:
        self.auto_complete = auto_complete
        self.spoken: List[str] = []
        self.stops = 0
        self.raise_on_speak = 0          # number of upcoming speak() calls that raise
        self.speak_error = SpeechError   # exception type they raise
        self._pending = None

    def speak(self, text, on_done) -> None:
        if self.raise_on_speak:
            self.raise_on_speak -= 1
            raise self.speak_error("engine busy")
        self.spoken.append(text)
        if self.auto_complete:
            on_done(None)
        else:
            self._pending = on_done

    def stop(self) -> None:
        self.stops += 1
        self._pending = None

    @property
    def busy(self) -> bool:
        return self._pending is not None

    def finish(self) -> None:
        callback, self._pending = self._pending, None
        callback(None)

    def fail(self, message: str = "audio device lost") -> None:
        callback, self._pending = self._pending, None
        callback(SpeechError(message))


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

class FakeDirections:
    def __init__(self, payload: Optional[dict] = None, error: Optional[Exception] = None) -> None:
        self.payload = payload
        self.error = error
        self.calls = []

    def get_directions(self, origin, destination, mode, alternatives):
        self.calls.append((origin, destination, mode, alternatives))
        if self.error is not None:
            raise self.error
        return self.payload


class FakeGPS:
    def __init__(self, position: Optional[Coord] = None) -> None:
        self.position = position
        self.calls = 0

    def get_current_position(self) -> Coord:
        self.calls += 1
        if self.position is None:
            raise GeolocationError("no fix")
        return self.position


class FakeStream:
    """Position stream the test pushes fixes into."""

    def __init__(self) -> None:
        self.interval_hint_s = None
        self.on_position = None
        self.unsubscribed = False

    def subscribe(self, interval_hint_s, on_position):
        self.interval_hint_s = interval_hint_s
        self.on_position = on_position
        self.unsubscribed = False

        def unsubscribe():
            self.unsubscribed = True
        return unsubscribe

    def push(self, position: Coord) -> None:
        if self.on_position is not None and not self.unsubscribed:
            self.on_position(position)


class FakePlaces:
    def __init__(self, places: Optional[List[Place]] = None, error: Optional[Exception] = None) -> None:
        self.places = places or []
        self.error = error
        self.calls = []

    def search_nearby(self, location, category, radius_m):
        self.calls.append((location, category, radius_m))
        if self.error is not None:
            raise self.error
        return list(self.places)


class FakeGeocoder:
    def __init__(self, results: Optional[dict] = None) -> None:
        self.results = results or {}
        self.queries = []

    def geocode(self, query):
        self.queries.append(query)
        return self.results.get(query)


class FakeVoiceInput:
    def __init__(self, transcript: Optional[str], focus=None) -> None:
        self.transcript = transcript
        self.focus = focus
        self.focus_during_listen = None

    def listen(self):
        if self.focus is not None:
            self.focus_during_listen = self.focus.state
        return self.transcript


# ---------------------------------------------------------------------------
# Route payloads
# ---------------------------------------------------------------------------

# Three legs of ~333 m each around the equator: east, north, east.
A  = Coord(0.0, 0.0)
P1 = Coord(0.0, 0.003)
P2 = Coord(0.003, 0.003)
B  = Coord(0.003, 0.006)

THREE_STEPS = [
    (A, P1, "Head <b>east</b> on <b>Main St</b>", None),
    (P1, P2, "Turn <b>left</b> onto <b>Oak Ave</b>", "turn-left"),
    (P2, B, 'Turn <b>right</b> onto <b>Elm St</b><div style="font-size:0.9em">Destination will be on the left</div>', "turn-right"),
]


def _loc(c: Coord) -> dict:
    return {"lat": c.lat, "lng": c.lon}


def google_route(steps, summary="Main St", distance_text="1.0 km", duration_text="12 mins", traffic=None) -> dict:
    raw_steps = []
    for start, end, html_text, maneuver in steps:
        step = {
            "start_location": _loc(start),
            "end_location": _loc(end),
            "html_instructions": html_text,
            "distance": {"text": "0.3 km", "value": 333},
            "duration": {"text": "4 mins", "value": 238},
        }
        if maneuver:
            step["maneuver"] = maneuver
        raw_steps.append(step)

    points = [steps[0][0]] + [s[1] for s in steps]
    leg = {
        "distance": {"text": distance_text, "value": 1000},
        "duration": {"text": duration_text, "value": 714},
        "steps": raw_steps,
    }
    if traffic:
        leg["duration_in_traffic"] = {"text": traffic, "value": 800}
    return {
        "summary": summary,
        "warnings": ["Walking directions are in beta."],
        "overview_polyline": {"points": polyline.encode([(p.lat, p.lon) for p in points])},
        "legs": [leg],
    }


def directions_payload(*routes) -> dict:
    return {"status": "OK", "routes": list(routes)}


