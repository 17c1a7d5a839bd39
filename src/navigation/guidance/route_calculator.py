# route_calculator.py
# Turns a directions-provider response into a Route.
# Falls back to a straight-line route whenever the provider cannot help.

import html
import logging
import math
import re
from typing import List, Optional

import polyline

from .errors import InvalidCoordinateError, ProviderUnavailable
from .geo_utils import (
    bounding_box,
    calculate_bearing,
    cardinal_direction,
    format_distance,
    format_duration,
    haversine_distance,
)
from .models import BoundingBox, Coord, Route, RouteSource, RouteStep
from .nav_config import NavConfig
from .providers import DirectionsProvider

logger = logging.getLogger(__name__)


_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")

_INVALID = Coord(math.nan, math.nan)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def clean_instruction(raw: str) -> str:
    """Strip HTML markup from a provider instruction and collapse whitespace."""
    text = _TAG_RE.sub(" ", raw or "")
    text = html.unescape(text)
    return _SPACE_RE.sub(" ", text).strip()


def _coord(d: Optional[dict]) -> Coord:
    """Provider location dict → Coord; an unusable entry becomes NaN."""
    try:
        return Coord.from_dict(d)
    except (KeyError, TypeError, ValueError):
        return _INVALID


def _text_value(d: Optional[dict]):
    d = d or {}
    return d.get("text", ""), float(d.get("value", 0) or 0)


def _parse_step(raw: dict) -> RouteStep:
    distance_text, distance_m = _text_value(raw.get("distance"))
    duration_text, duration_s = _text_value(raw.get("duration"))
    return RouteStep(
        start=_coord(raw.get("start_location")),
        end=_coord(raw.get("end_location")),
        instruction=clean_instruction(raw.get("html_instructions", "")),
        distance_m=max(0.0, distance_m),
        distance_text=distance_text,
        duration_s=duration_s,
        duration_text=duration_text,
        maneuver=raw.get("maneuver") or None,
    )


def _parse_route(raw: dict) -> Route:
    """One entry of the Directions `routes` array → Route (first leg only)."""
    leg = raw["legs"][0]
    steps = [_parse_step(s) for s in leg.get("steps", [])]

    encoded = (raw.get("overview_polyline") or {}).get("points", "")
    points = [Coord(lat, lon) for lat, lon in polyline.decode(encoded)] if encoded else []

    bounds: Optional[BoundingBox] = None
    if raw.get("bounds"):
        bounds = BoundingBox.from_dict(raw["bounds"])
    elif points:
        bounds = bounding_box(points)

    traffic = leg.get("duration_in_traffic")
    return Route(
        steps=steps,
        polyline=points,
        total_distance_text=(leg.get("distance") or {}).get("text", ""),
        total_duration_text=(leg.get("duration") or {}).get("text", ""),
        source=RouteSource.PROVIDER,
        traffic_duration_text=traffic.get("text") if traffic else None,
        bounds=bounds,
        summary=raw.get("summary", ""),
        warnings=list(raw.get("warnings", [])),
    )


def build_straight_line_route(
    origin: Coord,
    destination: Coord,
    walking_speed_mps: float = 1.4,
) -> Route:
    """
    Single synthetic step from origin straight to destination.

    Duration is estimated from the average walking speed.
    """
    distance = haversine_distance(origin, destination)
    duration = distance / walking_speed_mps
    heading = cardinal_direction(calculate_bearing(origin, destination))
    step = RouteStep(
        start=origin,
        end=destination,
        instruction=f"Head {heading} toward your destination",
        distance_m=distance,
        distance_text=format_distance(distance),
        duration_s=duration,
        duration_text=format_duration(duration),
        maneuver="straight",
    )
    return Route(
        steps=[step],
        polyline=[origin, destination],
        total_distance_text=step.distance_text,
        total_duration_text=step.duration_text,
        source=RouteSource.FALLBACK_STRAIGHT_LINE,
        bounds=bounding_box([origin, destination]),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class RouteCalculator:
    """
    Acquires a route from a DirectionsProvider.

    Never raises for provider problems: a non-OK status, transport error,
    malformed payload or empty step list yields the straight-line fallback.

    Args:
        directions: DirectionsProvider implementation.
        config:     NavConfig instance.
    """

    def __init__(self, directions: DirectionsProvider, config: Optional[NavConfig] = None) -> None:
        self.directions = directions
        self.config = config or NavConfig()

    def acquire_route(
        self,
        origin: Optional[Coord],
        destination: Optional[Coord],
        mode: Optional[str] = None,
    ) -> Route:
        """
        Build a Route from origin to destination.

        Raises:
            InvalidCoordinateError: origin or destination missing or invalid.
        """
        for label, coord in (("origin", origin), ("destination", destination)):
            if not isinstance(coord, Coord) or not coord.is_valid():
                raise InvalidCoordinateError(f"Invalid {label}: {coord!r}")

        mode = mode or self.config.travel_mode
        try:
            route = self._fetch(origin, destination, mode)
        except ProviderUnavailable as e:
            logger.warning(f"Directions unavailable ({e}); using straight-line route.")
            return self.fallback(origin, destination)

        if route is None:
            return self.fallback(origin, destination)

        logger.info(
            f"Route ready — {len(route.steps)} steps, {route.total_distance_text}, "
            f"{len(route.alternatives)} alternative(s)."
        )
        return route

    def fallback(self, origin: Coord, destination: Coord) -> Route:
        route = build_straight_line_route(origin, destination, self.config.walking_speed_mps)
        logger.info(f"Straight-line route: {route.total_distance_text}, about {route.total_duration_text}.")
        return route

    def _fetch(self, origin: Coord, destination: Coord, mode: str) -> Optional[Route]:
        data = self.directions.get_directions(
            origin, destination, mode, self.config.request_alternatives,
        )
        status = (data or {}).get("status")
        if status != "OK":
            logger.warning(
                f"Directions status {status}: {(data or {}).get('error_message', 'Unknown error')}"
            )
            return None

        try:
            routes: List[Route] = [_parse_route(r) for r in data.get("routes", [])]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"Malformed directions payload: {e}")
            return None

        if not routes or not routes[0].steps:
            logger.warning("Directions response contained no steps.")
            return None

        primary = routes[0]
        primary.alternatives = [r for r in routes[1:] if r.steps]
        return primary
