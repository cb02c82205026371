"""
Bus location store and the freshness-gated location service.

The store keeps one row per bus and overwrites it on every update. The
service puts the coordinator authorization in front of writes and decides on
reads whether the stored position is still worth showing.
"""

from datetime import datetime, timedelta
from typing import Optional, Tuple
from shapely.geometry import mapping
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.session import Session

from app.src import exceptions, validators
from app.src.constants import LOCATION_FRESHNESS_WINDOW
from app.src.db import BusLocation
from app.src.functions import asUTC, utcNow
from app.src.identity import authorizeCoordinator

# Smallest step the stored timestamp can move by
TIMESTAMP_RESOLUTION = timedelta(microseconds=1)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------
def toGeoJSON(longitude: float, latitude: float) -> dict:
    point = validators.coordinate(latitude, longitude)
    geoJSON = mapping(point)
    return {"type": geoJSON["type"], "coordinates": list(geoJSON["coordinates"])}


def coordinatesOf(record: BusLocation) -> Optional[Tuple[float, float]]:
    """Return the (longitude, latitude) pair of a record, None for placeholders."""
    if not record.location:
        return None
    longitude, latitude = record.location["coordinates"]
    return longitude, latitude


def recordView(record: BusLocation) -> dict:
    return {
        "busNumber": record.bus_number,
        "location": record.location,
        "speed": float(record.speed or 0),
        "timestamp": asUTC(record.timestamp),
        "isActive": record.is_active,
        "updatedBy": record.updated_by,
    }


def locationView(record: BusLocation) -> dict:
    longitude, latitude = coordinatesOf(record)
    return {
        "busNumber": record.bus_number,
        "latitude": latitude,
        "longitude": longitude,
        "speed": float(record.speed or 0),
        "lastUpdated": asUTC(record.timestamp),
    }


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------
def getLocation(session: Session, busNumber: str) -> Optional[BusLocation]:
    return session.query(BusLocation).filter(BusLocation.bus_number == busNumber).first()


def _nextTimestamp(record: BusLocation, now: datetime) -> datetime:
    previous = asUTC(record.timestamp)
    if previous is not None and now <= previous:
        return previous + TIMESTAMP_RESOLUTION
    return now


def _upsert(session: Session, busNumber: str, apply) -> BusLocation:
    """
    Create or update the row of a bus with `apply(record)`.

    A concurrent insert of the same bus surfaces as a unique violation, the
    write is then replayed against the row that won.
    """
    record = getLocation(session, busNumber)
    if record is None:
        record = BusLocation(bus_number=busNumber)
        session.add(record)
    apply(record)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        if not exceptions.isUniqueViolation(e):
            raise
        record = getLocation(session, busNumber)
        if record is None:
            raise
        apply(record)
        session.commit()
    session.refresh(record)
    return record


def upsertLocation(
    session: Session,
    busNumber: str,
    coordinate: Tuple[float, float],
    speed: Optional[float],
    updatedBy: str,
    forceActive: bool = True,
    now: Optional[datetime] = None,
) -> BusLocation:
    """
    Store the latest position of a bus, replacing the previous one.

    Args:
        session (Session): Active SQLAlchemy session.
        busNumber (str): Bus the position belongs to.
        coordinate (Tuple[float, float]): (longitude, latitude) pair.
        speed (float | None): Reported speed, 0 when absent.
        updatedBy (str): Phone number of the reporting coordinator.
        forceActive (bool): Mark the bus active as part of the update.
        now (datetime | None): Server time of the update, defaults to the current UTC time.

    Returns:
        BusLocation: The stored record. Its timestamp is later than the one it replaced.
    """
    now = asUTC(now) or utcNow()
    longitude, latitude = coordinate
    location = toGeoJSON(longitude, latitude)

    def apply(record: BusLocation) -> None:
        record.location = location
        record.speed = speed or 0
        record.timestamp = _nextTimestamp(record, now)
        record.updated_by = updatedBy
        if forceActive:
            record.is_active = True

    return _upsert(session, busNumber, apply)


def setActive(session: Session, busNumber: str, isActive: bool) -> BusLocation:
    """
    Change only the active flag of a bus.

    A bus without a record gets a placeholder row with no position, which
    stays unreadable until the first location update.
    """

    def apply(record: BusLocation) -> None:
        record.is_active = isActive

    return _upsert(session, busNumber, apply)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------
def isFresh(
    record: Optional[BusLocation],
    now: Optional[datetime] = None,
    window: int = LOCATION_FRESHNESS_WINDOW,
) -> bool:
    """
    Decide whether a stored position can be shown to riders.

    A record qualifies when it is active, has a position and was updated at
    most `window` seconds before `now`.

    Example:
        >>> isFresh(record, now=record.timestamp + timedelta(minutes=4))
        True
        >>> isFresh(record, now=record.timestamp + timedelta(minutes=6))
        False
    """
    if record is None or not record.is_active:
        return False
    if coordinatesOf(record) is None or record.timestamp is None:
        return False
    now = asUTC(now) or utcNow()
    return now - asUTC(record.timestamp) <= timedelta(seconds=window)


def updateLocation(
    session: Session,
    busNumber: Optional[str],
    latitude: Optional[float],
    longitude: Optional[float],
    speed: Optional[float],
    coordinatorPhone: Optional[str],
    now: Optional[datetime] = None,
) -> BusLocation:
    """
    Publish the position of a bus on behalf of its coordinator.

    Raises:
        exceptions.MissingFields: If the bus, coordinates or phone are absent.
        exceptions.InvalidCoordinate: If the coordinates are outside WGS84 ranges.
        exceptions.ValidationFailed: If the speed is negative.
        exceptions.UnauthorizedCoordinator: If the phone is not a coordinator of the bus.
    """
    missing = validators.missingFields(
        {
            "busNumber": busNumber,
            "latitude": latitude,
            "longitude": longitude,
            "coordinatorPhone": coordinatorPhone,
        }
    )
    if missing:
        raise exceptions.MissingFields(missing)
    validators.coordinate(latitude, longitude)
    if speed is not None and speed < 0:
        raise exceptions.ValidationFailed(["Speed must not be negative"])

    if not authorizeCoordinator(session, coordinatorPhone, busNumber):
        raise exceptions.UnauthorizedCoordinator()

    return upsertLocation(
        session,
        busNumber,
        (longitude, latitude),
        speed,
        coordinatorPhone,
        forceActive=True,
        now=now or utcNow(),
    )


def setStatus(
    session: Session,
    busNumber: Optional[str],
    isActive: Optional[bool],
    coordinatorPhone: Optional[str],
) -> BusLocation:
    """
    Start or stop broadcasting for a bus without sending a position.

    Raises:
        exceptions.UnauthorizedCoordinator: If the phone is not a coordinator of the bus.
        exceptions.MissingFields: If `isActive` is absent.
    """
    if not authorizeCoordinator(session, coordinatorPhone, busNumber):
        raise exceptions.UnauthorizedCoordinator()
    if isActive is None:
        raise exceptions.MissingFields(["isActive"])
    return setActive(session, busNumber, isActive)


def readLocation(
    session: Session, busNumber: str, now: Optional[datetime] = None
) -> dict:
    """
    Return the position of a bus for riders.

    Raises:
        exceptions.LocationNotFound: If there is no record, the bus is
        inactive, or the position is older than the freshness window.
    """
    record = getLocation(session, busNumber)
    if not isFresh(record, now or utcNow()):
        raise exceptions.LocationNotFound()
    return locationView(record)
