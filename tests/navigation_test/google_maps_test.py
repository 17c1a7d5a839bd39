import pytest
import requests

from fakes import A, B
from navigation.guidance.errors import ProviderUnavailable
from navigation.guidance.google_maps import GoogleMapsClient
from navigation.guidance.models import Coord
from navigation.guidance.nav_config import NavConfig
from navigation.guidance.navigator import NavigationSystem


class FakeResponse:
    def __init__(self, payload=None, status_code=200, reason="OK"):
        self.payload = payload
        self.status_code = status_code
        self.reason = reason

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def maps_config():
    return NavConfig(api_key="test-key", persist_session=False)


def _client(maps_config, payload=None, **kwargs):
    session = FakeSession(FakeResponse(payload, **kwargs))
    return GoogleMapsClient(maps_config, session=session), session


# ---------------------------------------------------------------------------
# Directions
# ---------------------------------------------------------------------------

def test_directions_request_parameters(maps_config):
    client, session = _client(maps_config, {"status": "OK", "routes": []})
    data = client.get_directions(A, B, mode="walking", alternatives=True)

    assert data["status"] == "OK"
    url, params, timeout = session.requests[0]
    assert url == "https://maps.googleapis.com/maps/api/directions/json"
    assert params == {
        "origin": "0.0,0.0",
        "destination": "0.003,0.006",
        "mode": "walking",
        "alternatives": "true",
        "language": "en",
        "key": "test-key",
    }
    assert timeout == maps_config.request_timeout_s


def test_api_status_errors_are_returned_to_the_caller(maps_config):
    client, _ = _client(maps_config, {"status": "REQUEST_DENIED", "error_message": "bad key"})
    assert client.get_directions(A, B)["status"] == "REQUEST_DENIED"


def test_transport_error_becomes_provider_unavailable(maps_config):
    session = FakeSession(error=requests.exceptions.ConnectionError("connection refused"))
    client = GoogleMapsClient(maps_config, session=session)
    with pytest.raises(ProviderUnavailable) as info:
        client.get_directions(A, B)
    assert info.value.status == "ERROR"


def test_http_error_becomes_provider_unavailable(maps_config):
    client, _ = _client(maps_config, {}, status_code=503, reason="Service Unavailable")
    with pytest.raises(ProviderUnavailable) as info:
        client.get_directions(A, B)
    assert info.value.status == "503"


def test_unparseable_body_becomes_provider_unavailable(maps_config):
    client, _ = _client(maps_config, None)
    with pytest.raises(ProviderUnavailable) as info:
        client.get_directions(A, B)
    assert info.value.status == "INVALID_RESPONSE"


@pytest.mark.parametrize("payload, ok", [
    ({"status": "OK", "routes": [{}]}, True),
    ({"status": "REQUEST_DENIED"}, False),
])
def test_verify_api_key(maps_config, payload, ok):
    client, session = _client(maps_config, payload)
    assert client.verify_api_key() is ok
    assert session.requests[0][1]["alternatives"] == "false"


def test_verify_api_key_offline(maps_config):
    session = FakeSession(error=requests.exceptions.Timeout("timed out"))
    assert not GoogleMapsClient(maps_config, session=session).verify_api_key()


# ---------------------------------------------------------------------------
# Places
# ---------------------------------------------------------------------------

def test_nearby_places_are_parsed(maps_config):
    payload = {
        "status": "OK",
        "results": [
            {
                "name": "Corner Pharmacy",
                "geometry": {"location": {"lat": 0.001, "lng": 0.002}},
                "vicinity": "12 Main St",
                "place_id": "abc",
                "types": ["pharmacy", "store"],
            },
            {"name": "No geometry"},
            {"geometry": {"location": {"lat": 0.002, "lng": 0.0}}},
        ],
    }
    client, session = _client(maps_config, payload)
    places = client.search_nearby(A, "pharmacy", 500)

    assert [p.name for p in places] == ["Corner Pharmacy", "Unnamed place"]
    assert places[0].location == Coord(0.001, 0.002)
    assert places[0].types == ("pharmacy", "store")
    params = session.requests[0][1]
    assert params["radius"] == "500"
    assert params["type"] == "pharmacy"


def test_no_places_found(maps_config):
    client, _ = _client(maps_config, {"status": "ZERO_RESULTS", "results": []})
    assert client.search_nearby(A, "hospital", 500) == []


# ---------------------------------------------------------------------------
# Geocoding
# ---------------------------------------------------------------------------

def test_geocode_first_match(maps_config):
    payload = {
        "status": "OK",
        "results": [
            {"geometry": {"location": {"lat": 39.9208, "lng": 32.8541}}},
            {"geometry": {"location": {"lat": 0, "lng": 0}}},
        ],
    }
    client, session = _client(maps_config, payload)
    assert client.geocode("Kizilay Square") == Coord(39.9208, 32.8541)
    assert session.requests[0][1]["address"] == "Kizilay Square"


def test_geocode_no_match(maps_config):
    client, _ = _client(maps_config, {"status": "ZERO_RESULTS", "results": []})
    assert client.geocode("Atlantis") is None


@pytest.mark.parametrize("result", [
    {"formatted_address": "Kizilay Square"},
    {"geometry": {"location": {"lat": 39.9}}},
    {"geometry": None},
])
def test_geocode_malformed_result(maps_config, result):
    client, _ = _client(maps_config, {"status": "OK", "results": [result]})
    assert client.geocode("Kizilay Square") is None


def test_malformed_geocode_is_announced_not_raised(maps_config, gps, sink, timers, fake_directions):
    client, _ = _client(maps_config, {"status": "OK", "results": [{"formatted_address": "x"}]})
    nav = NavigationSystem(fake_directions, gps, sink, geocoder=client, config=maps_config, timers=timers)

    ok, msg = nav.navigate_to_query("somewhere")
    assert not ok
    assert msg == "Could not find the location. Please try again with a different address."
    assert sink.spoken == [msg]
