import random

from conftest import make_stop
from orders.models import StopType
from orders.sequencing import (
    greedy_nearest_neighbor,
    precedence_violations,
    repair_precedence,
    respects_precedence,
)
from routing.geo import GeoPoint

P = StopType.PICKUP
D = StopType.DELIVERY


def ids(stops):
    return [stop.id for stop in stops]


def test_delivery_before_its_pickup_is_moved_right_after_it():
    d1 = make_stop(D, GeoPoint(-17.80, 31.10), "o1", stop_id="d1")
    p1 = make_stop(P, GeoPoint(-17.80, 31.20), "o1", stop_id="p1")
    p2 = make_stop(P, GeoPoint(-17.80, 31.30), "o2", stop_id="p2")

    result = repair_precedence([d1, p1, p2])

    assert ids(result.stops) == ["p1", "d1", "p2"]
    assert result.moves == 1
    assert result.converged


def test_delivery_waits_for_the_last_of_several_pickups():
    p1 = make_stop(P, GeoPoint(-17.80, 31.10), "o1", stop_id="p1")
    d1 = make_stop(D, GeoPoint(-17.80, 31.20), "o1", stop_id="d1")
    p2 = make_stop(P, GeoPoint(-17.80, 31.30), "o1", stop_id="p2")

    result = repair_precedence([p1, d1, p2])

    assert ids(result.stops) == ["p1", "p2", "d1"]
    assert respects_precedence(result.stops)


def test_merged_pickup_gates_every_order_it_serves():
    shared = make_stop(P, GeoPoint(-17.80, 31.10), "o1", "o2", stop_id="shared")
    d1 = make_stop(D, GeoPoint(-17.80, 31.20), "o1", stop_id="d1")
    d2 = make_stop(D, GeoPoint(-17.80, 31.30), "o2", stop_id="d2")

    assert precedence_violations([d1, d2, shared]) == ["o1", "o2"]

    result = repair_precedence([d1, d2, shared])
    assert ids(result.stops)[0] == "shared"
    assert respects_precedence(result.stops)


def test_repair_reports_when_bound_stops_it_early():
    stops = [
        make_stop(D, GeoPoint(-17.80, 31.10), "o1"),
        make_stop(D, GeoPoint(-17.80, 31.20), "o2"),
        make_stop(P, GeoPoint(-17.80, 31.30), "o1"),
        make_stop(P, GeoPoint(-17.80, 31.40), "o2"),
    ]

    result = repair_precedence(stops, max_iterations=1)

    assert result.iterations == 1
    assert not result.converged


def test_repair_fixes_any_shuffled_sequence():
    rng = random.Random(7)
    for _ in range(50):
        stops = []
        for order in range(rng.randint(1, 4)):
            for _ in range(rng.randint(1, 3)):
                stops.append(make_stop(P, GeoPoint(-17.8, 31.0 + rng.random() / 2), f"o{order}"))
            stops.append(make_stop(D, GeoPoint(-17.8, 31.0 + rng.random() / 2), f"o{order}"))
        rng.shuffle(stops)

        result = repair_precedence(stops)

        assert result.converged
        assert respects_precedence(result.stops)
        assert sorted(ids(result.stops)) == sorted(ids(stops))


def test_greedy_visits_nearest_but_never_a_delivery_before_its_pickup():
    origin = GeoPoint(-17.80, 31.00)
    # the delivery is the closest stop, but its pickup is far away
    d1 = make_stop(D, GeoPoint(-17.80, 31.01), "o1", stop_id="d1")
    p2 = make_stop(P, GeoPoint(-17.80, 31.05), "o2", stop_id="p2")
    p1 = make_stop(P, GeoPoint(-17.80, 31.30), "o1", stop_id="p1")
    d2 = make_stop(D, GeoPoint(-17.80, 31.40), "o2", stop_id="d2")

    ordered = greedy_nearest_neighbor(origin, [d1, p2, p1, d2])

    assert ids(ordered) == ["p2", "p1", "d2", "d1"]
    assert respects_precedence(ordered)


def test_greedy_breaks_ties_by_input_order():
    origin = GeoPoint(-17.80, 31.00)
    first = make_stop(P, GeoPoint(-17.79, 31.02), "o1", stop_id="first")
    second = make_stop(P, GeoPoint(-17.79, 31.02), "o2", stop_id="second")

    assert ids(greedy_nearest_neighbor(origin, [first, second])) == ["first", "second"]
    assert ids(greedy_nearest_neighbor(origin, [second, first])) == ["second", "first"]
