import pytest
import requests

from routing import osrm_client
from routing.geo import GeoPoint
from routing.osrm_client import OSRMClient, OSRMError
from routing.route_service import OSRMRoutingProvider, RoutingProviderError

POINTS = [GeoPoint(-17.80, 31.00), GeoPoint(-17.79, 31.10), GeoPoint(-17.80, 31.50)]


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


@pytest.fixture
def client():
    return OSRMClient(base_url="http://osrm.test/")


def fake_get(monkeypatch, payload, status=200, calls=None):
    def _get(url, params=None, timeout=None):
        if calls is not None:
            calls.append((url, params, timeout))
        return FakeResponse(payload, status)

    monkeypatch.setattr(osrm_client.requests, "get", _get)


def test_client_requires_a_base_url(monkeypatch):
    monkeypatch.setattr(osrm_client, "BASE_URL", None)
    with pytest.raises(ValueError):
        OSRMClient()


def test_coordinates_are_formatted_lng_lat(client):
    assert client.format_coordinates(POINTS[:2]) == "31.0,-17.8;31.1,-17.79"


def test_route_parses_distance_duration_legs_and_geometry(client, monkeypatch):
    calls = []
    fake_get(monkeypatch, {
        "code": "Ok",
        "routes": [{
            "distance": 5400.0,
            "duration": 420.0,
            "legs": [{"distance": 1200.0, "duration": 100.0}, {"distance": 4200.0, "duration": 320.0}],
            "geometry": {"coordinates": [[31.0, -17.8], [31.1, -17.79], [31.5, -17.8]]},
        }],
    }, calls=calls)

    route = client.compute_route(POINTS)

    assert route["distance"] == 5400.0
    assert route["legs"][1] == {"distance": 4200.0, "duration": 320.0}
    assert route["geometry"][1] == GeoPoint(-17.79, 31.1)
    url, params, timeout = calls[0]
    assert url == "http://osrm.test/route/v1/driving/31.0,-17.8;31.1,-17.79;31.5,-17.8"
    assert params["overview"] == "full"
    assert timeout == 5


def test_trip_maps_waypoint_positions_to_input_order(client, monkeypatch):
    calls = []
    # input 1 is visited last-but-one, input 2 (the destination) last
    fake_get(monkeypatch, {
        "code": "Ok",
        "trips": [{"distance": 1.0, "duration": 1.0}],
        "waypoints": [{"waypoint_index": 0}, {"waypoint_index": 2}, {"waypoint_index": 1}, {"waypoint_index": 3}],
    }, calls=calls)
    points = POINTS + [GeoPoint(-17.80, 31.60)]

    assert client.compute_trip(points) == [0, 2, 1, 3]
    _, params, _ = calls[0]
    assert params["source"] == "first"
    assert params["destination"] == "last"
    assert params["roundtrip"] == "false"


@pytest.mark.parametrize("payload, status", [
    ({"code": "NoRoute", "message": "Impossible route"}, 200),
    ({"code": "Ok", "routes": []}, 200),
    ({"code": "Ok"}, 502),
    (ValueError("not json"), 200),
])
def test_route_failures_raise_osrm_error(client, monkeypatch, payload, status):
    fake_get(monkeypatch, payload, status)

    with pytest.raises(OSRMError):
        client.compute_route(POINTS)


def test_trip_with_a_non_permutation_is_rejected(client, monkeypatch):
    fake_get(monkeypatch, {
        "code": "Ok",
        "trips": [{}],
        "waypoints": [{"waypoint_index": 0}, {"waypoint_index": 0}, {"waypoint_index": 2}],
    })

    with pytest.raises(OSRMError):
        client.compute_trip(POINTS)


def test_transport_errors_become_osrm_errors(client, monkeypatch):
    def _timeout(url, params=None, timeout=None):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(osrm_client.requests, "get", _timeout)

    with pytest.raises(OSRMError):
        client.compute_route(POINTS)


@pytest.mark.asyncio
async def test_provider_wraps_client_failures(client, monkeypatch):
    fake_get(monkeypatch, {"code": "InvalidQuery", "message": "bad"})
    provider = OSRMRoutingProvider(client)

    with pytest.raises(RoutingProviderError):
        await provider.optimize_order(POINTS)
    with pytest.raises(RoutingProviderError):
        await provider.route(POINTS)


@pytest.mark.asyncio
async def test_provider_route_result(client, monkeypatch):
    fake_get(monkeypatch, {
        "code": "Ok",
        "routes": [{
            "distance": 3000.0,
            "duration": 240.0,
            "legs": [{"distance": 3000.0, "duration": 240.0}],
        }],
    })
    provider = OSRMRoutingProvider(client)

    result = await provider.route(POINTS[:2], geometry=False)

    assert result.distance_m == 3000.0
    assert result.legs[0].duration_s == 240.0
    assert result.geometry == []
