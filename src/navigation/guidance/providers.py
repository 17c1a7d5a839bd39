# providers.py
# Interfaces of the external collaborators the guidance engine talks to.
# Concrete implementations: google_maps.GoogleMapsClient, tts_stt.tts, tts_stt.stt.

from typing import Callable, List, Optional, Protocol

from .models import Coord, Place


# Called once per utterance with None on success or the failure otherwise.
SpeechCallback = Callable[[Optional[Exception]], None]


class DirectionsProvider(Protocol):
    def get_directions(
        self,
        origin: Coord,
        destination: Coord,
        mode: str,
        alternatives: bool,
    ) -> dict:
        """
        Fetch directions in the Google Directions JSON shape.

        Raises:
            ProviderUnavailable: on transport failure.
        """
        ...


class GeolocationProvider(Protocol):
    def get_current_position(self) -> Coord:
        """
        Raises:
            GeolocationError: if no fix is available.
        """
        ...


class PositionStream(Protocol):
    def subscribe(self, interval_hint_s: float, on_position: Callable[[Coord], None]) -> Callable[[], None]:
        """
        Push fixes to on_position roughly every interval_hint_s seconds.

        Returns:
            A callable that ends the subscription.
        """
        ...


class SpeechSink(Protocol):
    def speak(self, text: str, on_done: SpeechCallback) -> None:
        """Start speaking; on_done fires when the utterance ends or fails."""
        ...

    def stop(self) -> None:
        """Abort the utterance in progress, if any."""
        ...


class PlacesProvider(Protocol):
    def search_nearby(self, location: Coord, category: str, radius_m: float) -> List[Place]:
        ...


class Geocoder(Protocol):
    def geocode(self, query: str) -> Optional[Coord]:
        ...


class VoiceInputProvider(Protocol):
    def listen(self) -> Optional[str]:
        """Record one spoken phrase and return its transcript, or None."""
        ...
