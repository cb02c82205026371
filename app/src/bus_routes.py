"""
Static route registry.

The campus route table is declared once at import time and exposed as a
read-only mapping. Stops are matched exactly, so the names used by clients
must agree byte for byte with the ones declared here.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from app.src.constants import DEFAULT_BUS_NUMBER, DEFAULT_ROUTE_NAME
from app.src.enums import AssignmentSource


@dataclass(frozen=True)
class Route:
    name: str
    bus_number: str
    stops: Tuple[str, ...]


@dataclass(frozen=True)
class RouteAssignment:
    route_name: str
    bus_number: str
    source: AssignmentSource = AssignmentSource.DERIVED

    @property
    def defaulted(self) -> bool:
        return self.source == AssignmentSource.DEFAULTED


def _buildRegistry(routes: List[Route]) -> Mapping[str, Route]:
    return MappingProxyType({route.name: route for route in routes})


# Declaration order is the resolution order
BUS_ROUTES: Mapping[str, Route] = _buildRegistry(
    [
        Route(
            "Route 1",
            "BUS001",
            ("Talapady", "Beeri", "Kotekar", "Kolya"),
        ),
        Route(
            "Route 2",
            "BUS002",
            (
                "Puttur (Darbe Circle)",
                "Bus Stand",
                "Bolwar",
                "Nagara",
                "Kabaka",
                "Mani",
                "Kalladka",
            ),
        ),
        Route(
            "Route 3",
            "BUS003",
            (
                "Kavoor",
                "Bondel",
                "Padavinangadi",
                "Mary Hill",
                "Yeyyadi",
                "KPT",
                "Nanthoar Junction",
                "Bikkarnakatte",
            ),
        ),
        Route(
            "Route 4",
            "BUS004",
            (
                "NITK",
                "Thadambail",
                "Marigudi (Surathkal)",
                "Suraj Hotel",
                "Govindadas College",
                "Hosabettu",
                "Honnavatte",
                "Kulal Pannambur",
                "Kuloor",
                "Kodical Cross",
                "Chowki Canara Bank",
            ),
        ),
        Route(
            "Route 5",
            "BUS005",
            (
                "RTO",
                "Pandeshwar",
                "Mangala Devi",
                "Marnamikatte",
                "Nandigudde",
                "Velencia",
                "Kankandy",
            ),
        ),
        Route(
            "Route 6",
            "BUS006",
            (
                "Ashok Nagar",
                "Daivajna Hall",
                "Marigudi",
                "Urwa Market",
                "Mannagudda",
                "Durga Mahal",
                "Adyarkatte",
            ),
        ),
        Route(
            "Route 7",
            "BUS007",
            (
                "Kumpala",
                "Ullala",
                "Thokkottu",
                "Kallapu",
                "Jeppinamogaru",
                "Yekkuru",
                "Gorigudda",
                "Ujjodi",
                "Pumpwell",
            ),
        ),
        Route(
            "Route 8",
            "BUS008",
            (
                "Pandith House",
                "Kuttar",
                "Yenepoya",
                "Deralakatte",
                "Kanchana",
                "Assaigoli",
                "Konaje",
                "Mudipu",
                "Sajipa",
                "Melkar",
                "Panemangalore",
                "BC Road",
                "Kaikamba (BC Road)",
                "Modankap",
                "Pachinadka",
            ),
        ),
        Route(
            "Route 9",
            "BUS009",
            (
                "Malaemere",
                "Derebail Konchady",
                "Konchadi Kandak (Land links)",
                "Derebail Church",
                "Kuntikan",
                "Kottara Cross",
                "Bejai Kapikad Kapikaad",
                "KSRTC Bus Stand",
                "Bejai Circle",
                "Museum",
                "Padavu School",
                "Alape",
                "Padil Junction",
                "Adyar",
                "Adyar P O",
                "Theerthakere",
                "Calmady",
            ),
        ),
        Route(
            "Route 10",
            "BUS010",
            (
                "Kottara Chowki",
                "Ekkur",
                "Shaktinagar",
                "Bovikanam",
                "New Bus Store",
                "Chilimbi",
                "Lady Hill",
                "Lalbagh",
                "Ballalbagh",
                "Capitanio",
                "Bejai Church School",
                "PVS",
                "Bunts Hostel",
                "CV Nayak Hall",
                "City Hospital",
                "Kadri Mallikatte",
                "Shivabagh",
                "Nanthur",
                "Koodalkat",
                "Farangipet",
            ),
        ),
        Route(
            "Route 11",
            "BUS011",
            (
                "Moodabidri",
                "Yedapadavu",
                "Ganjimatta",
                "Kaikamba",
                "Polali Dwara",
                "Polali",
                "Kalpane",
            ),
        ),
        Route(
            "Route 12",
            "BUS012",
            (
                "Kudroli",
                "Boloor",
                "Carstreet",
                "Venkatagrama Temple",
                "Temple Square",
                "Hampankatta",
                "Jyothi",
                "Pumpwell",
                "Padil",
            ),
        ),
    ]
)


def listRoutes(registry: Mapping[str, Route] = BUS_ROUTES) -> List[Route]:
    """Return every route in declaration order."""
    return list(registry.values())


def resolveStop(
    stopName: Optional[str], registry: Mapping[str, Route] = BUS_ROUTES
) -> Optional[RouteAssignment]:
    """
    Find the route serving a stop.

    Args:
        stopName (str | None): Stop name, compared with exact string equality.
        registry (Mapping[str, Route]): Route table to scan, in iteration order.

    Returns:
        RouteAssignment | None: The first route whose stops contain `stopName`,
        or None if no route does.

    Example:
        >>> resolveStop("NITK")
        RouteAssignment(route_name='Route 4', bus_number='BUS004', source=<AssignmentSource.DERIVED: 2>)
        >>> resolveStop("nitk") is None
        True
    """
    if not stopName:
        return None
    for route in registry.values():
        if stopName in route.stops:
            return RouteAssignment(route.name, route.bus_number)
    return None


def assignRoute(
    pickupPoint: Optional[str],
    routeName: Optional[str] = None,
    busNumber: Optional[str] = None,
    registry: Mapping[str, Route] = BUS_ROUTES,
) -> RouteAssignment:
    """
    Decide the route and bus of an account.

    Caller supplied values are kept. Missing values are derived from the
    pickup point, and when the pickup point is unknown the placeholder route
    and bus are used instead. The `source` of the result tells these cases apart.

    Args:
        pickupPoint (str | None): Stop where the user boards.
        routeName (str | None): Explicit route name, if the client sent one.
        busNumber (str | None): Explicit bus number, if the client sent one.
        registry (Mapping[str, Route]): Route table used for resolution.

    Returns:
        RouteAssignment: A complete, never empty, route and bus pair.
    """
    routeName = routeName.strip() if routeName and routeName.strip() else None
    busNumber = busNumber.strip() if busNumber and busNumber.strip() else None
    if routeName and busNumber:
        return RouteAssignment(routeName, busNumber, AssignmentSource.SUPPLIED)

    resolved = resolveStop(pickupPoint, registry)
    if resolved is None:
        return RouteAssignment(
            routeName or DEFAULT_ROUTE_NAME,
            busNumber or DEFAULT_BUS_NUMBER,
            AssignmentSource.DEFAULTED,
        )
    if routeName is None and busNumber is None:
        return resolved
    return RouteAssignment(
        routeName or resolved.route_name,
        busNumber or resolved.bus_number,
        AssignmentSource.PARTIAL,
    )
