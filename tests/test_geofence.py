import pytest

from conftest import ROUTE_END, ROUTE_START, make_trip
from routing.geo import GeoPoint, InvalidCoordinatesError, haversine_m, project_onto_polyline
from routing.geofence import GeoProximityError, PolylineProximityOracle


def test_geopoint_rejects_out_of_range_and_non_numeric_coordinates():
    with pytest.raises(InvalidCoordinatesError):
        GeoPoint(91.0, 0.0)
    with pytest.raises(InvalidCoordinatesError):
        GeoPoint(0.0, -180.5)
    with pytest.raises(InvalidCoordinatesError):
        GeoPoint("17.8", 31.0)
    with pytest.raises(InvalidCoordinatesError):
        GeoPoint(float("nan"), 31.0)


def test_location_key_merges_points_equal_to_six_decimals():
    assert GeoPoint(-17.8000001, 31.0).location_key() == GeoPoint(-17.8, 31.0000004).location_key()
    assert GeoPoint(-17.80001, 31.0).location_key() != GeoPoint(-17.8, 31.0).location_key()


def test_haversine_one_degree_of_latitude():
    assert haversine_m(GeoPoint(0.0, 0.0), GeoPoint(1.0, 0.0)) == pytest.approx(111_195, rel=1e-3)


def test_projection_distance_and_fraction_on_straight_line():
    line = [ROUTE_START, ROUTE_END]
    # halfway along, ~1.1 km north of the line
    projection = project_onto_polyline(GeoPoint(-17.79, 31.25), line)

    assert projection.distance_m == pytest.approx(1112, rel=0.01)
    assert projection.fraction == pytest.approx(0.5, abs=0.01)


def test_projection_clamps_to_line_ends():
    line = [ROUTE_START, ROUTE_END]

    before = project_onto_polyline(GeoPoint(-17.80, 30.90), line)
    after = project_onto_polyline(GeoPoint(-17.80, 31.60), line)

    assert before.fraction == 0.0
    assert after.fraction == 1.0
    assert before.distance_m == pytest.approx(haversine_m(GeoPoint(-17.80, 30.90), ROUTE_START), rel=0.01)


def test_projection_of_empty_line_is_an_error():
    with pytest.raises(ValueError):
        project_onto_polyline(ROUTE_START, [])


@pytest.mark.asyncio
async def test_polyline_oracle_answers_from_stored_route(store):
    store.add_trip(make_trip("trip-1"))
    oracle = PolylineProximityOracle(store)

    assert await oracle.is_near_route("trip-1", GeoPoint(-17.79, 31.20), 5000) is True
    assert await oracle.is_near_route("trip-1", GeoPoint(-17.70, 31.20), 5000) is False

    early = await oracle.fraction_along_route("trip-1", GeoPoint(-17.81, 31.10))
    late = await oracle.fraction_along_route("trip-1", GeoPoint(-17.79, 31.40))
    assert early < late


@pytest.mark.asyncio
async def test_polyline_oracle_fails_closed_for_unknown_or_routeless_trips(store):
    store.add_trip(make_trip("no-route", route=None))
    oracle = PolylineProximityOracle(store)

    with pytest.raises(GeoProximityError):
        await oracle.is_near_route("missing", ROUTE_START, 5000)
    with pytest.raises(GeoProximityError):
        await oracle.is_near_route("no-route", ROUTE_START, 5000)
