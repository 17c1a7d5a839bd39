"""Guidance - turn-by-turn spoken navigation for blind and low-vision walkers."""

from .nav_config import NavConfig
from .errors import (
    NavigationError,
    EmptyInputError,
    EmptyRouteError,
    InvalidCoordinateError,
    ProviderUnavailable,
    GeolocationError,
    SpeechError,
)
from .models import (
    Coord,
    BoundingBox,
    RouteStep,
    Route,
    RouteSource,
    NavigationState,
    GuidanceProjection,
    NavigationStarted,
    StepAdvanced,
    ProgressUpdated,
    Arrived,
    NavigationStopped,
    Place,
)
from .geo_utils import (
    haversine_distance,
    calculate_bearing,
    cardinal_direction,
    bounding_box,
    format_distance,
    format_duration,
)
from .timers import TimerQueue, MonotonicClock
from .announcer import AnnouncementScheduler, AudioFocus, Priority
from .route_calculator import RouteCalculator, build_straight_line_route
from .route_tracker import RouteTracker
from .google_maps import GoogleMapsClient
from .poi_finder import POIFinder, POIResult
from .nav_logger import NavLogger
from .navigator import NavigationSystem

__all__ = [
    "NavConfig",
    "NavigationError",
    "EmptyInputError",
    "EmptyRouteError",
    "InvalidCoordinateError",
    "ProviderUnavailable",
    "GeolocationError",
    "SpeechError",
    "Coord",
    "BoundingBox",
    "RouteStep",
    "Route",
    "RouteSource",
    "NavigationState",
    "GuidanceProjection",
    "NavigationStarted",
    "StepAdvanced",
    "ProgressUpdated",
    "Arrived",
    "NavigationStopped",
    "Place",
    "haversine_distance",
    "calculate_bearing",
    "cardinal_direction",
    "bounding_box",
    "format_distance",
    "format_duration",
    "TimerQueue",
    "MonotonicClock",
    "AnnouncementScheduler",
    "AudioFocus",
    "Priority",
    "RouteCalculator",
    "build_straight_line_route",
    "RouteTracker",
    "GoogleMapsClient",
    "POIFinder",
    "POIResult",
    "NavLogger",
    "NavigationSystem",
]
