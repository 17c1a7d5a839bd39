# models.py
# Shared data structures and enums used across all modules.

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


# ---------------------------------------------------------------------------
# Coordinate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coord:
    """Immutable geographic coordinate (WGS-84 degrees)."""
    lat: float
    lon: float

    def is_valid(self) -> bool:
        try:
            lat, lon = float(self.lat), float(self.lon)
        except (TypeError, ValueError):
            return False
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return False
        return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}

    @staticmethod
    def from_dict(d: dict) -> "Coord":
        # Google payloads use "lng", our own snapshots use "lon"
        lon = d["lon"] if "lon" in d else d["lng"]
        return Coord(float(d["lat"]), float(lon))

    def __str__(self) -> str:
        return f"({self.lat:.6f}, {self.lon:.6f})"


@dataclass(frozen=True)
class BoundingBox:
    southwest: Coord
    northeast: Coord

    def to_dict(self) -> dict:
        return {"southwest": self.southwest.to_dict(), "northeast": self.northeast.to_dict()}

    @staticmethod
    def from_dict(d: dict) -> "BoundingBox":
        return BoundingBox(Coord.from_dict(d["southwest"]), Coord.from_dict(d["northeast"]))


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------

class RouteSource(Enum):
    PROVIDER               = "provider"
    FALLBACK_STRAIGHT_LINE = "fallback_straight_line"


@dataclass
class RouteStep:
    """A single maneuver-to-maneuver segment; complete once `end` is reached."""
    start: Coord
    end: Coord
    instruction: str
    distance_m: float
    distance_text: str = ""
    duration_s: float = 0.0
    duration_text: str = ""
    maneuver: Optional[str] = None       # "turn-left", "straight" … when the provider sends one

    def __post_init__(self) -> None:
        if self.distance_m < 0:
            raise ValueError(f"Step distance cannot be negative: {self.distance_m}")

    @property
    def announcement(self) -> str:
        """Instruction as spoken: text plus its distance when known."""
        text = self.instruction or "Continue on the current road"
        if self.distance_text:
            text += f" for {self.distance_text}"
        return text

    def to_dict(self) -> dict:
        return {
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "instruction": self.instruction,
            "distance_m": self.distance_m,
            "distance_text": self.distance_text,
            "duration_s": self.duration_s,
            "duration_text": self.duration_text,
            "maneuver": self.maneuver,
        }

    @staticmethod
    def from_dict(d: dict) -> "RouteStep":
        return RouteStep(
            start=Coord.from_dict(d["start"]),
            end=Coord.from_dict(d["end"]),
            instruction=d["instruction"],
            distance_m=d["distance_m"],
            distance_text=d.get("distance_text", ""),
            duration_s=d.get("duration_s", 0.0),
            duration_text=d.get("duration_text", ""),
            maneuver=d.get("maneuver"),
        )


@dataclass
class Route:
    """A normalized route, whichever way it was obtained."""
    steps: List[RouteStep]
    polyline: List[Coord]
    total_distance_text: str
    total_duration_text: str
    source: RouteSource = RouteSource.PROVIDER
    traffic_duration_text: Optional[str] = None
    bounds: Optional[BoundingBox] = None
    summary: str = ""
    warnings: List[str] = field(default_factory=list)
    alternatives: List["Route"] = field(default_factory=list)

    @property
    def destination(self) -> Optional[Coord]:
        return self.steps[-1].end if self.steps else None

    @property
    def total_distance_m(self) -> float:
        return sum(s.distance_m for s in self.steps)

    @property
    def total_duration_s(self) -> float:
        return sum(s.duration_s for s in self.steps)

    @property
    def is_fallback(self) -> bool:
        return self.source is RouteSource.FALLBACK_STRAIGHT_LINE

    def to_dict(self) -> dict:
        return {
            "source": self.source.value,
            "summary": self.summary,
            "total_distance_text": self.total_distance_text,
            "total_duration_text": self.total_duration_text,
            "traffic_duration_text": self.traffic_duration_text,
            "bounds": self.bounds.to_dict() if self.bounds else None,
            "warnings": list(self.warnings),
            "polyline": [p.to_dict() for p in self.polyline],
            "steps": [s.to_dict() for s in self.steps],
        }

    @staticmethod
    def from_dict(d: dict) -> "Route":
        bounds = d.get("bounds")
        return Route(
            steps=[RouteStep.from_dict(s) for s in d["steps"]],
            polyline=[Coord.from_dict(p) for p in d.get("polyline", [])],
            total_distance_text=d.get("total_distance_text", ""),
            total_duration_text=d.get("total_duration_text", ""),
            source=RouteSource(d.get("source", RouteSource.PROVIDER.value)),
            traffic_duration_text=d.get("traffic_duration_text"),
            bounds=BoundingBox.from_dict(bounds) if bounds else None,
            summary=d.get("summary", ""),
            warnings=list(d.get("warnings", [])),
        )


# ---------------------------------------------------------------------------
# Navigation status
# ---------------------------------------------------------------------------

class NavigationState(Enum):
    IDLE      = "idle"
    ACTIVE    = "active"
    SUSPENDED = "suspended"    # app in background; timers off, progress kept
    ARRIVED   = "arrived"
    STOPPED   = "stopped"


class RouteStatus(Enum):
    INACTIVE      = "inactive"
    PROGRESSING   = "progressing"
    STEP_ADVANCED = "step_advanced"
    FINISHED      = "finished"
    SKIPPED       = "skipped"       # fix could not be evaluated against the step


@dataclass
class ProgressResult:
    """Returned by RouteTracker.check_progress() every position update."""
    status: RouteStatus
    message: str
    step_index: int = 0
    distance_to_step_end: Optional[float] = None   # metres
    bearing: Optional[float] = None                # degrees toward the step end
    current_step: Optional[RouteStep] = None


@dataclass
class NavigationSession:
    """Mutable state of the single active navigation; owned by NavigationSystem."""
    route: Route
    generation: int
    step_index: int = 0
    state: NavigationState = NavigationState.ACTIVE
    last_position: Optional[Coord] = None
    last_sequence: int = -1
    started_at: float = 0.0
    step_entered_at: float = 0.0
    last_announcement_at: Optional[float] = None

    @property
    def current_step(self) -> RouteStep:
        return self.route.steps[self.step_index]

    @property
    def is_last_step(self) -> bool:
        return self.step_index >= len(self.route.steps) - 1


@dataclass(frozen=True)
class GuidanceProjection:
    """Read-only view of the session for display."""
    state: NavigationState
    instruction: str = ""
    step_number: int = 0
    step_count: int = 0
    remaining_distance_m: Optional[float] = None
    cardinal: Optional[str] = None
    distance_text: str = ""
    duration_text: str = ""

    @staticmethod
    def idle(state: NavigationState = NavigationState.IDLE) -> "GuidanceProjection":
        return GuidanceProjection(state=state)


# ---------------------------------------------------------------------------
# Guidance events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NavigationStarted:
    step_count: int
    source: RouteSource
    instruction: str


@dataclass(frozen=True)
class StepAdvanced:
    previous_index: int
    step_index: int
    instruction: str


@dataclass(frozen=True)
class ProgressUpdated:
    step_index: int
    position: Coord
    remaining_distance_m: float
    bearing: float
    cardinal: str


@dataclass(frozen=True)
class Arrived:
    destination: Coord
    position: Coord


@dataclass(frozen=True)
class NavigationStopped:
    step_index: int


# ---------------------------------------------------------------------------
# Places
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Place:
    """A point of interest as returned by a places provider."""
    name: str
    location: Coord
    vicinity: str = ""
    place_id: Optional[str] = None
    types: Tuple[str, ...] = ()
