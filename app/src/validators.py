"""
Input validation for the Campus Bus Tracker API.

Violation checks are pure: they return lists of human readable problems and
leave raising and logging to the caller. Guards that stop a request outright
(coordinates) raise the matching exception from `app.src.exceptions`.
"""

import re
from typing import Any, Dict, List, Optional
from shapely.geometry import Point

from app.src import exceptions
from app.src.constants import (
    BUS_NUMBER_PREFIX,
    MAX_ACADEMIC_YEAR,
    MIN_ACADEMIC_YEAR,
    REGEX_PHONE,
    REGEX_USN,
    ROUTE_NAME_PREFIX,
)
from app.src.enums import UserRole
from app.src.functions import isSRID4326


# Client facing names of the user columns
USER_FIELD_LABELS = {
    "name": "name",
    "usn": "usn",
    "year": "year",
    "branch": "branch",
    "pickup_point": "pickupPoint",
    "phone": "phone",
    "password": "password",
    "route_name": "routeName",
    "bus_number": "busNumber",
}
ROUTE_FIELDS = ("route_name", "bus_number")


def isMissing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def missingFields(values: Dict[str, Any]) -> List[str]:
    """
    List the keys of `values` whose value is absent.

    None and blank strings count as absent. Zero and False do not, so a
    latitude of 0 or `isActive=False` is a real value.

    Example:
        >>> missingFields({"busNumber": "BUS004", "latitude": 0, "coordinatorPhone": " "})
        ['coordinatorPhone']
    """
    return [key for key, value in values.items() if isMissing(value)]


def missingUserFields(fields: Dict[str, Any], includeRoute: bool = True) -> List[str]:
    """Client facing names of the required user fields that are absent."""
    return [
        label
        for column, label in USER_FIELD_LABELS.items()
        if (includeRoute or column not in ROUTE_FIELDS)
        and isMissing(fields.get(column))
    ]


def isValidPhone(phone: Optional[str]) -> bool:
    return isinstance(phone, str) and re.fullmatch(REGEX_PHONE, phone) is not None


def isValidUsn(usn: Optional[str]) -> bool:
    return isinstance(usn, str) and re.fullmatch(REGEX_USN, usn) is not None


def userViolations(fields: Dict[str, Any]) -> List[str]:
    """
    Check the format of user fields.

    Absent fields are skipped here, they are reported by `missingUserFields`.

    Args:
        fields (dict): User columns keyed by column name.

    Returns:
        List[str]: One message per violated rule, empty when the fields are valid.
    """
    violations = []
    usn = fields.get("usn")
    if not isMissing(usn) and not isValidUsn(usn):
        violations.append("USN must contain only letters and digits")
    year = fields.get("year")
    if year is not None and (
        isinstance(year, bool)
        or not isinstance(year, int)
        or not MIN_ACADEMIC_YEAR <= year <= MAX_ACADEMIC_YEAR
    ):
        violations.append(
            f"Year must be a number between {MIN_ACADEMIC_YEAR} and {MAX_ACADEMIC_YEAR}"
        )
    phone = fields.get("phone")
    if not isMissing(phone) and not isValidPhone(phone):
        violations.append("Phone number must be 10 digits")
    routeName = fields.get("route_name")
    if not isMissing(routeName) and not routeName.startswith(ROUTE_NAME_PREFIX):
        violations.append(
            f'Invalid route name format. Must start with "{ROUTE_NAME_PREFIX}"'
        )
    busNumber = fields.get("bus_number")
    if not isMissing(busNumber) and not busNumber.startswith(BUS_NUMBER_PREFIX):
        violations.append(
            f'Invalid bus number format. Must start with "{BUS_NUMBER_PREFIX}"'
        )
    role = fields.get("role")
    if role is not None and role not in {r.value for r in UserRole}:
        violations.append(
            "Role must be one of " + ", ".join(r.value for r in UserRole)
        )
    return violations


def coordinate(latitude: float, longitude: float) -> Point:
    """
    Build a WGS84 point from a latitude and longitude.

    Raises:
        exceptions.InvalidCoordinate: If either value is out of range or not finite.
    """
    try:
        point = Point(float(longitude), float(latitude))
    except (TypeError, ValueError):
        raise exceptions.InvalidCoordinate()
    if point.is_empty or not isSRID4326(point):
        raise exceptions.InvalidCoordinate()
    return point
