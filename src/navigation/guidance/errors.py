# errors.py
# Exception hierarchy for the guidance engine.
# Provider failures are recovered locally; only caller mistakes propagate.

from typing import Optional


class NavigationError(Exception):
    """Base class for every error raised by the guidance package."""


class EmptyInputError(NavigationError, ValueError):
    """A geometric helper received an empty sequence of points."""


class EmptyRouteError(NavigationError, ValueError):
    """Navigation was started with a route that has no steps."""


class InvalidCoordinateError(NavigationError, ValueError):
    """Origin or destination is missing, NaN or out of range."""


class ProviderUnavailable(NavigationError):
    """
    A remote provider (directions, places, geocoding) could not serve a request.

    Args:
        status:  Provider status code ("REQUEST_DENIED", "ERROR", HTTP code …).
        message: Optional human-readable detail.
    """

    def __init__(self, status: str, message: Optional[str] = None) -> None:
        self.status = status
        self.message = message
        detail = f"{status}: {message}" if message else status
        super().__init__(detail)


class GeolocationError(NavigationError):
    """The geolocation provider could not produce a fix."""


class SpeechError(NavigationError):
    """The speech sink failed to start or finish an utterance."""
