# google_maps.py
# Thin client for the Google Maps web services used by navigation:
# Directions, Places nearby search and Geocoding.
# Implements DirectionsProvider, PlacesProvider and Geocoder.

import logging
from typing import List, Optional

import requests

from .errors import ProviderUnavailable
from .models import Coord, Place
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


def _latlng(coord: Coord) -> str:
    return f"{coord.lat},{coord.lon}"


class GoogleMapsClient:
    """
    Google Maps web-service client.

    Transport failures and non-200 responses raise ProviderUnavailable;
    API-level statuses ("ZERO_RESULTS", "REQUEST_DENIED" …) are left to the
    caller for directions and mapped to empty results for places/geocoding.

    Args:
        config:  NavConfig with api_key, api_base_url, language and timeout.
        session: Optional requests.Session (shared connection pool, tests).
    """

    def __init__(self, config: Optional[NavConfig] = None, session: Optional[requests.Session] = None) -> None:
        self.config = config or NavConfig()
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _get(self, path: str, params: dict) -> dict:
        url = f"{self.config.api_base_url}/{path}"
        query = dict(params, key=self.config.api_key)
        try:
            response = self.session.get(url, params=query, timeout=self.config.request_timeout_s)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {path} failed: {e}")
            raise ProviderUnavailable("ERROR", str(e)) from e

        if response.status_code != 200:
            logger.error(f"{path} returned HTTP {response.status_code}")
            raise ProviderUnavailable(str(response.status_code), response.reason)

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderUnavailable("INVALID_RESPONSE", str(e)) from e

        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            logger.warning(f"{path} status {status}: {data.get('error_message', 'No error message provided')}")
        return data

    # ------------------------------------------------------------------
    # Directions
    # ------------------------------------------------------------------

    def get_directions(
        self,
        origin: Coord,
        destination: Coord,
        mode: str = "walking",
        alternatives: bool = True,
    ) -> dict:
        """Raw Directions API response for origin → destination."""
        logger.info(f"Getting directions from {origin} to {destination} ({mode})")
        return self._get("directions/json", {
            "origin": _latlng(origin),
            "destination": _latlng(destination),
            "mode": mode,
            "alternatives": "true" if alternatives else "false",
            "language": self.config.language,
        })

    def verify_api_key(self) -> bool:
        """Issue a small directions request to check that the key is accepted."""
        try:
            data = self.get_directions(
                Coord(40.712776, -74.005974),
                Coord(40.758896, -73.985130),
                alternatives=False,
            )
        except ProviderUnavailable as e:
            logger.warning(f"Google Maps API verification failed: {e}")
            return False
        return data.get("status") == "OK"

    # ------------------------------------------------------------------
    # Places
    # ------------------------------------------------------------------

    def search_nearby(self, location: Coord, category: str, radius_m: float) -> List[Place]:
        """Places of `category` (a Google place type) within radius_m."""
        logger.info(f"Searching for places of type '{category}' near {location}")
        data = self._get("place/nearbysearch/json", {
            "location": _latlng(location),
            "radius": str(int(radius_m)),
            "type": category,
            "language": self.config.language,
        })
        if data.get("status") != "OK":
            return []

        places: List[Place] = []
        for item in data.get("results", []):
            try:
                loc = item["geometry"]["location"]
                places.append(Place(
                    name=item.get("name", "Unnamed place"),
                    location=Coord(loc["lat"], loc["lng"]),
                    vicinity=item.get("vicinity", ""),
                    place_id=item.get("place_id"),
                    types=tuple(item.get("types", [])),
                ))
            except (KeyError, TypeError) as e:
                logger.debug(f"Skipping malformed place entry: {e}")
        logger.info(f"Found {len(places)} places nearby")
        return places

    # ------------------------------------------------------------------
    # Geocoding
    # ------------------------------------------------------------------

    def geocode(self, query: str) -> Optional[Coord]:
        """First geocoding match for a free-text address, or None."""
        data = self._get("geocode/json", {"address": query, "language": self.config.language})
        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            logger.info(f"No geocoding result for {query!r}")
            return None
        try:
            loc = results[0]["geometry"]["location"]
            return Coord(float(loc["lat"]), float(loc["lng"]))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"Malformed geocoding result for {query!r}: {e}")
            return None
