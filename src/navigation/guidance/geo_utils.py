# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects; only depends on the shared models and errors.

import math
from typing import Iterable

from .errors import EmptyInputError
from .models import BoundingBox, Coord


EARTH_RADIUS_M = 6_371_000.0

CARDINAL_DIRECTIONS = (
    "north", "northeast", "east", "southeast",
    "south", "southwest", "west", "northwest",
)


def haversine_distance(a: Coord, b: Coord) -> float:
    """
    Great-circle distance between two points in metres.

    Args:
        a: Origin.
        b: Destination.

    Returns:
        Distance in metres.
    """
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat))
        * math.cos(math.radians(b.lat))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def calculate_bearing(a: Coord, b: Coord) -> float:
    """
    Forward azimuth (bearing) from a to b in degrees [0, 360).

    Args:
        a: Origin.
        b: Destination.

    Returns:
        Bearing in degrees, 0 = north, 90 = east.
    """
    rlat1, rlon1 = math.radians(a.lat), math.radians(a.lon)
    rlat2, rlon2 = math.radians(b.lat), math.radians(b.lon)
    d_lon = rlon2 - rlon1
    y = math.sin(d_lon) * math.cos(rlat2)
    x = math.cos(rlat1) * math.sin(rlat2) - math.sin(rlat1) * math.cos(rlat2) * math.cos(d_lon)
    bearing = math.degrees(math.atan2(y, x))
    if bearing < 0:
        bearing += 360
    # atan2 can return exactly -0.0 or round up to 360.0
    return bearing % 360


def cardinal_direction(bearing: float) -> str:
    """
    Map a bearing onto one of eight 45° compass sectors.

    Index 8 (bearings just under 360) wraps back to north.
    """
    index = int(round((bearing % 360) / 45)) % 8
    return CARDINAL_DIRECTIONS[index]


def bounding_box(points: Iterable[Coord]) -> BoundingBox:
    """
    Smallest lat/lon box containing every point.

    Raises:
        EmptyInputError: if no points are given.
    """
    points = list(points)
    if not points:
        raise EmptyInputError("Cannot compute a bounding box of zero points.")
    lats = [p.lat for p in points]
    lons = [p.lon for p in points]
    return BoundingBox(
        southwest=Coord(min(lats), min(lons)),
        northeast=Coord(max(lats), max(lons)),
    )


def format_distance(meters: float) -> str:
    """Spoken distance: "1.2 km" from a kilometre up, whole metres below."""
    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{int(round(meters))} m"


def format_duration(seconds: float) -> str:
    """Spoken duration rounded to whole minutes ("1 hour 5 mins")."""
    minutes = max(1, int(round(seconds / 60)))
    hours, minutes = divmod(minutes, 60)
    parts = []
    if hours:
        parts.append(f"{hours} hour" + ("s" if hours > 1 else ""))
    if minutes:
        parts.append(f"{minutes} min" + ("s" if minutes > 1 else ""))
    return " ".join(parts)
