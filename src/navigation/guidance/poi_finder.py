# poi_finder.py
# Finds nearby places (pharmacy, hospital, bus stop …) through a PlacesProvider
# and ranks them by distance so NavigationSystem can route to the closest one.
#
# Usage:
#   finder = POIFinder(google_client)
#   result = finder.find_nearest(Coord(39.924, 32.845), category="pharmacy")
#   if result:
#       nav.navigate_to(result.coord)

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import ProviderUnavailable
from .geo_utils import format_distance, haversine_distance
from .models import Coord, Place
from .nav_config import NavConfig
from .providers import PlacesProvider

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Spoken category → provider place type
# ---------------------------------------------------------------------------

CATEGORY_MAP: Dict[str, str] = {
    # Health
    "pharmacy":     "pharmacy",
    "chemist":      "pharmacy",
    "hospital":     "hospital",
    "doctor":       "doctor",

    # Shopping
    "supermarket":  "supermarket",
    "grocery":      "supermarket",
    "store":        "convenience_store",

    # Transit
    "bus stop":     "bus_station",
    "bus station":  "bus_station",
    "train station": "train_station",
    "subway":       "subway_station",
    "metro":        "subway_station",

    # Other
    "restaurant":   "restaurant",
    "cafe":         "cafe",
    "coffee":       "cafe",
    "atm":          "atm",
    "bank":         "bank",
    "park":         "park",
    "police":       "police",
    "parking":      "parking",
}


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass
class POIResult:
    """A place together with its distance from the user."""
    name: str
    category: str          # the word the user asked for
    place_type: str        # provider type actually searched
    coord: Coord
    vicinity: str
    distance_m: float

    def __str__(self) -> str:
        return f"{self.name} ({self.place_type}), {int(self.distance_m)} m away"


# ---------------------------------------------------------------------------
# Main class
# ---------------------------------------------------------------------------

class POIFinder:
    """
    Nearby point-of-interest lookup.

    Args:
        places: PlacesProvider implementation.
        config: NavConfig (default search radius).
    """

    def __init__(self, places: PlacesProvider, config: Optional[NavConfig] = None) -> None:
        self.places = places
        self.config = config or NavConfig()

    def find_nearest(
        self,
        position: Coord,
        category: str,
        radius_m: Optional[float] = None,
    ) -> Optional[POIResult]:
        """
        Closest matching place, or None if nothing was found.

        Args:
            position: Where the user is.
            category: Spoken category ("pharmacy", "bus stop" …) or a raw
                      provider place type.
            radius_m: Search radius; config.places_radius_m if omitted.
        """
        results = self.find_all(position, category, radius_m)
        return results[0] if results else None

    def find_all(
        self,
        position: Coord,
        category: str,
        radius_m: Optional[float] = None,
    ) -> List[POIResult]:
        """All matching places within the radius, nearest first."""
        place_type = self.resolve_category(category)
        radius = radius_m if radius_m is not None else self.config.places_radius_m

        try:
            places: List[Place] = self.places.search_nearby(position, place_type, radius)
        except ProviderUnavailable as e:
            logger.warning(f"Places search for '{category}' failed: {e}")
            return []

        results: List[POIResult] = []
        for place in places:
            dist = haversine_distance(position, place.location)
            if dist > radius:
                continue
            results.append(POIResult(
                name=place.name,
                category=category,
                place_type=place_type,
                coord=place.location,
                vicinity=place.vicinity,
                distance_m=dist,
            ))

        results.sort(key=lambda r: r.distance_m)
        logger.info(f"{len(results)} '{category}' result(s) within {int(radius)} m.")
        return results

    def describe(self, results: List[POIResult], category: str) -> str:
        """Spoken summary of a search."""
        if not results:
            return f"No {category} found nearby."
        closest = results[0]
        return (
            f"Found {len(results)} {category} nearby. The closest one is {closest.name}, "
            f"about {format_distance(closest.distance_m)} away."
        )

    def list_categories(self) -> List[str]:
        """Supported spoken category names."""
        return sorted(CATEGORY_MAP.keys())

    @staticmethod
    def resolve_category(category: str) -> str:
        key = category.lower().strip()
        return CATEGORY_MAP.get(key, key.replace(" ", "_"))
