from types import MappingProxyType

import pytest

from app.src.bus_routes import (
    BUS_ROUTES,
    Route,
    RouteAssignment,
    assignRoute,
    listRoutes,
    resolveStop,
)
from app.src.constants import (
    BUS_NUMBER_PREFIX,
    DEFAULT_BUS_NUMBER,
    DEFAULT_ROUTE_NAME,
    ROUTE_NAME_PREFIX,
)
from app.src.enums import AssignmentSource


def test_resolves_nitk_to_route_four():
    assert resolveStop("NITK") == RouteAssignment("Route 4", "BUS004")


@pytest.mark.parametrize(
    "stop,route_name,bus_number",
    [
        ("Talapady", "Route 1", "BUS001"),
        ("Puttur (Darbe Circle)", "Route 2", "BUS002"),
        ("Chowki Canara Bank", "Route 4", "BUS004"),
        ("Konchadi Kandak (Land links)", "Route 9", "BUS009"),
        ("Kalpane", "Route 11", "BUS011"),
    ],
)
def test_resolves_known_stops(stop, route_name, bus_number):
    assignment = resolveStop(stop)
    assert assignment.route_name == route_name
    assert assignment.bus_number == bus_number


@pytest.mark.parametrize("stop", ["nitk", " NITK", "NITK ", "Nowhere", "", None])
def test_matching_is_exact(stop):
    assert resolveStop(stop) is None


def test_resolution_is_deterministic():
    assert {resolveStop("Hampankatta") for _ in range(20)} == {
        RouteAssignment("Route 12", "BUS012")
    }


def test_first_declared_route_wins_for_shared_stop():
    # "Pumpwell" is declared on both Route 7 and Route 12
    assert resolveStop("Pumpwell") == RouteAssignment("Route 7", "BUS007")


def test_first_declared_route_wins_in_custom_registry():
    registry = MappingProxyType(
        {
            "Route 2": Route("Route 2", "BUS002", ("Gate",)),
            "Route 1": Route("Route 1", "BUS001", ("Gate",)),
        }
    )
    assert resolveStop("Gate", registry).route_name == "Route 2"


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        BUS_ROUTES["Route 99"] = Route("Route 99", "BUS099", ("Depot",))


def test_routes_use_canonical_identifiers():
    routes = listRoutes()
    assert [route.name for route in routes][:3] == ["Route 1", "Route 2", "Route 3"]
    assert len(routes) == 12
    for route in routes:
        assert route.name.startswith(ROUTE_NAME_PREFIX)
        assert route.bus_number.startswith(BUS_NUMBER_PREFIX)
        assert len(set(route.stops)) == len(route.stops)


def test_assign_derives_from_pickup_point():
    assignment = assignRoute("Kuloor")
    assert assignment == RouteAssignment("Route 4", "BUS004", AssignmentSource.DERIVED)
    assert not assignment.defaulted


def test_assign_keeps_supplied_values():
    assignment = assignRoute("NITK", "Route 9", "BUS009")
    assert (assignment.route_name, assignment.bus_number) == ("Route 9", "BUS009")
    assert assignment.source == AssignmentSource.SUPPLIED


def test_assign_completes_partial_values():
    assignment = assignRoute("NITK", routeName="Route 4")
    assert assignment.bus_number == "BUS004"
    assert assignment.source == AssignmentSource.PARTIAL


def test_assign_falls_back_to_placeholder():
    assignment = assignRoute("Unknown Stop")
    assert assignment.route_name == DEFAULT_ROUTE_NAME
    assert assignment.bus_number == DEFAULT_BUS_NUMBER
    assert assignment.defaulted


def test_blank_supplied_values_are_treated_as_missing():
    assignment = assignRoute("NITK", "  ", "")
    assert assignment == RouteAssignment("Route 4", "BUS004", AssignmentSource.DERIVED)
